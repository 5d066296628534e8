"""
Pydantic models for the catalog records.

Each entity kind has a frozen draft model holding the validated form
values, and a record model that adds the store-assigned ``id`` and the
derived values the views display (``url``, ``name``, ``lifespan``).
"""

from __future__ import annotations

import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from typing_extensions import Literal


class EntityKind(str, Enum):
    GENRE = "genre"
    AUTHOR = "author"
    BOOK = "book"
    BOOKINSTANCE = "bookinstance"

    @property
    def list_url(self) -> str:
        return f"/catalog/{self.value}s"

    def detail_url(self, record_id: str) -> str:
        return f"/catalog/{self.value}/{record_id}"


BookStatus = Literal["Available", "Maintenance", "Loaned", "Reserved"]

STATUS_CHOICES: List[BookStatus] = ["Maintenance", "Available", "Loaned", "Reserved"]
DEFAULT_STATUS: BookStatus = "Maintenance"


def _iso(value: Optional[datetime.date]) -> str:
    return value.isoformat() if value else ""


# Drafts are the validated, not yet persisted form values. They are frozen
# so a single draft can be handed to whichever branch needs it.


class GenreDraft(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str


class AuthorDraft(BaseModel):
    model_config = ConfigDict(frozen=True)

    first_name: str
    family_name: str
    date_of_birth: Optional[datetime.date] = None
    date_of_death: Optional[datetime.date] = None


class BookDraft(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str
    author: str
    summary: str
    isbn: str
    genre: List[str] = Field(default_factory=list)


class BookInstanceDraft(BaseModel):
    model_config = ConfigDict(frozen=True)

    book: str
    imprint: str
    status: str = DEFAULT_STATUS
    due_back: Optional[datetime.date] = None


class Genre(GenreDraft):
    id: str

    @property
    def url(self) -> str:
        return EntityKind.GENRE.detail_url(self.id)


class Author(AuthorDraft):
    id: str

    @property
    def name(self) -> str:
        """Full name as shown in lists: ``"family_name, first_name"``."""
        if not self.first_name or not self.family_name:
            return ""
        return f"{self.family_name}, {self.first_name}"

    @property
    def lifespan(self) -> str:
        return f"{_iso(self.date_of_birth)} - {_iso(self.date_of_death)}"

    @property
    def date_of_birth_iso(self) -> str:
        return _iso(self.date_of_birth)

    @property
    def date_of_death_iso(self) -> str:
        return _iso(self.date_of_death)

    @property
    def url(self) -> str:
        return EntityKind.AUTHOR.detail_url(self.id)


class Book(BookDraft):
    id: str

    @property
    def url(self) -> str:
        return EntityKind.BOOK.detail_url(self.id)


class BookInstance(BookInstanceDraft):
    id: str

    @property
    def due_back_iso(self) -> str:
        return _iso(self.due_back)

    @property
    def url(self) -> str:
        return EntityKind.BOOKINSTANCE.detail_url(self.id)


DRAFT_TYPES = {
    EntityKind.GENRE: GenreDraft,
    EntityKind.AUTHOR: AuthorDraft,
    EntityKind.BOOK: BookDraft,
    EntityKind.BOOKINSTANCE: BookInstanceDraft,
}

RECORD_TYPES = {
    EntityKind.GENRE: Genre,
    EntityKind.AUTHOR: Author,
    EntityKind.BOOK: Book,
    EntityKind.BOOKINSTANCE: BookInstance,
}
