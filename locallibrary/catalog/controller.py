"""
Form controllers for the four catalog entity kinds.

Every handler is a coroutine that returns either a ``Render`` (template
name plus context) or a ``Redirect``; the router turns those into HTTP
responses. Handlers never hold state between requests, everything lives
in the entity store.

Flow for a submitted form::

    raw values -> validation.clean() -> draft
        ValidationFailed -> re-render the form with errors and echo
        genre only: duplicate name -> redirect to existing (create)
                                      or form error (update)
        otherwise -> insert/update -> redirect to the detail page

Deletes go through ``ReferenceGuard`` first and re-render the
confirmation page with the blocking records when refused.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Union

from pydantic import BaseModel

from ..errors import DuplicateName, NotFound, ReferenceBlocked, ValidationFailed
from ..models import STATUS_CHOICES, EntityKind
from ..storage import EntityStore
from . import validation
from .guard import ReferenceGuard
from .validation import FieldError


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Render:
    template: str
    context: Dict[str, Any] = field(default_factory=dict)
    status_code: int = 200


@dataclass(frozen=True)
class Redirect:
    url: str


Outcome = Union[Render, Redirect]


class FormController:
    """List, detail, create, update and delete flows for one entity kind."""

    kind: EntityKind
    label: str
    sort_field: str

    def __init__(self, store: EntityStore, guard: Optional[ReferenceGuard] = None) -> None:
        self.store = store
        self.guard = guard or ReferenceGuard(store)

    # -- hooks ---------------------------------------------------------------

    async def list_context(self) -> Dict[str, Any]:
        return {"records": await self.store.find_all(self.kind, sort=self.sort_field)}

    async def detail_context(self, record: BaseModel) -> Dict[str, Any]:
        return {"dependents": await self.guard.dependents(self.kind, record.id)}

    async def choices(self, form: Mapping[str, Any]) -> Dict[str, Any]:
        """Supporting lists a form needs (authors, genres, books...)."""
        return {}

    def form_values(self, record: BaseModel) -> Dict[str, Any]:
        values = record.model_dump(exclude={"id"})
        return {key: ("" if value is None else value) for key, value in values.items()}

    def detail_title(self, record: BaseModel, context: Mapping[str, Any]) -> str:
        return f"{self.label} Detail"

    async def insert(self, draft: BaseModel) -> Outcome:
        record = await self.store.insert(self.kind, draft)
        logger.info("Created %s %s", self.kind.value, record.id)
        return Redirect(record.url)

    async def replace(self, record_id: str, draft: BaseModel) -> Outcome:
        record = await self.store.update(self.kind, record_id, draft)
        if record is None:
            raise NotFound(self.kind.value, record_id)
        logger.info("Updated %s %s", self.kind.value, record_id)
        return Redirect(record.url)

    # -- helpers -------------------------------------------------------------

    async def _load(self, record_id: str) -> BaseModel:
        record = await self.store.get(self.kind, record_id)
        if record is None:
            raise NotFound(self.kind.value, record_id)
        return record

    async def _render_form(
        self,
        title: str,
        form: Mapping[str, Any],
        errors: Optional[List[FieldError]] = None,
        record_id: Optional[str] = None,
    ) -> Render:
        context: Dict[str, Any] = {
            "title": title,
            "form": dict(form),
            "errors": list(errors or []),
            "record_id": record_id,
        }
        context.update(await self.choices(form))
        return Render(f"{self.kind.value}_form.html", context)

    def _delete_view(self, record: Optional[BaseModel], dependents: List[BaseModel]) -> Render:
        return Render(
            f"{self.kind.value}_delete.html",
            {
                "title": f"Delete {self.label}",
                "record": record,
                "dependents": dependents,
            },
        )

    # -- handlers ------------------------------------------------------------

    async def list(self) -> Render:
        context = {"title": f"{self.label} List"}
        context.update(await self.list_context())
        return Render(f"{self.kind.value}_list.html", context)

    async def detail(self, record_id: str) -> Render:
        record = await self._load(record_id)
        context: Dict[str, Any] = {"record": record}
        context.update(await self.detail_context(record))
        context["title"] = self.detail_title(record, context)
        return Render(f"{self.kind.value}_detail.html", context)

    async def create_form(self) -> Render:
        return await self._render_form(f"Create {self.label}", validation.echo_values(self.kind, {}))

    async def create(self, raw: Mapping[str, Any]) -> Outcome:
        try:
            draft = validation.clean(self.kind, raw)
        except ValidationFailed as exc:
            return await self._render_form(f"Create {self.label}", exc.echo, exc.errors)
        return await self.insert(draft)

    async def update_form(self, record_id: str) -> Render:
        record = await self._load(record_id)
        form = self.form_values(record)
        return await self._render_form(f"Update {self.label}", form, record_id=record_id)

    async def update(self, record_id: str, raw: Mapping[str, Any]) -> Outcome:
        title = f"Update {self.label}"
        await self._load(record_id)
        try:
            draft = validation.clean(self.kind, raw)
            return await self.replace(record_id, draft)
        except ValidationFailed as exc:
            return await self._render_form(title, exc.echo, exc.errors, record_id=record_id)
        except DuplicateName as exc:
            error = FieldError(field="name", code=validation.DUPLICATE_NAME, message=str(exc))
            form = validation.echo_values(self.kind, raw)
            return await self._render_form(title, form, [error], record_id=record_id)

    async def delete_form(self, record_id: str) -> Outcome:
        record, dependents = await asyncio.gather(
            self.store.get(self.kind, record_id),
            self.guard.dependents(self.kind, record_id),
        )
        if record is None:
            return Redirect(self.kind.list_url)
        return self._delete_view(record, dependents)

    async def delete(self, record_id: str) -> Outcome:
        record = await self.store.get(self.kind, record_id)
        if record is None:
            return Redirect(self.kind.list_url)
        try:
            await self.guard.check_delete(self.kind, record_id)
        except ReferenceBlocked as exc:
            return self._delete_view(record, exc.blocking_records)
        if await self.store.delete(self.kind, record_id):
            logger.info("Deleted %s %s", self.kind.value, record_id)
        return Redirect(self.kind.list_url)


class GenreController(FormController):
    kind = EntityKind.GENRE
    label = "Genre"
    sort_field = "name"

    async def insert(self, draft: BaseModel) -> Outcome:
        existing = await self.guard.find_genre_named(draft.name)
        if existing is not None:
            logger.info("Genre %r already exists as %s", draft.name, existing.id)
            return Redirect(existing.url)
        return await super().insert(draft)

    async def replace(self, record_id: str, draft: BaseModel) -> Outcome:
        existing = await self.guard.find_genre_named(draft.name, exclude_id=record_id)
        if existing is not None:
            raise DuplicateName(draft.name, existing)
        return await super().replace(record_id, draft)


class AuthorController(FormController):
    kind = EntityKind.AUTHOR
    label = "Author"
    sort_field = "family_name"


class BookController(FormController):
    kind = EntityKind.BOOK
    label = "Book"
    sort_field = "title"

    async def list_context(self) -> Dict[str, Any]:
        books, authors = await asyncio.gather(
            self.store.find_all(EntityKind.BOOK, sort="title"),
            self.store.find_all(EntityKind.AUTHOR),
        )
        by_id = {author.id: author for author in authors}
        return {"records": [{"book": book, "author": by_id.get(book.author)} for book in books]}

    async def detail_context(self, record: BaseModel) -> Dict[str, Any]:
        author, genres, copies = await asyncio.gather(
            self.store.get(EntityKind.AUTHOR, record.author),
            self.store.find_all(EntityKind.GENRE, sort="name"),
            self.guard.dependents(self.kind, record.id),
        )
        return {
            "author": author,
            "genres": [genre for genre in genres if genre.id in record.genre],
            "dependents": copies,
        }

    def detail_title(self, record: BaseModel, context: Mapping[str, Any]) -> str:
        return record.title

    async def choices(self, form: Mapping[str, Any]) -> Dict[str, Any]:
        authors, genres = await asyncio.gather(
            self.store.find_all(EntityKind.AUTHOR, sort="family_name"),
            self.store.find_all(EntityKind.GENRE, sort="name"),
        )
        selected = set(validation.normalize_multi(form.get("genre")))
        return {
            "authors": authors,
            "genres": [{"genre": genre, "checked": genre.id in selected} for genre in genres],
        }


class BookInstanceController(FormController):
    kind = EntityKind.BOOKINSTANCE
    label = "BookInstance"
    sort_field = "imprint"

    async def list_context(self) -> Dict[str, Any]:
        copies, books = await asyncio.gather(
            self.store.find_all(EntityKind.BOOKINSTANCE),
            self.store.find_all(EntityKind.BOOK),
        )
        by_id = {book.id: book for book in books}
        return {"records": [{"bookinstance": copy, "book": by_id.get(copy.book)} for copy in copies]}

    async def detail_context(self, record: BaseModel) -> Dict[str, Any]:
        return {"book": await self.store.get(EntityKind.BOOK, record.book)}

    def detail_title(self, record: BaseModel, context: Mapping[str, Any]) -> str:
        book = context.get("book")
        return f"Copy: {book.title}" if book is not None else "Copy"

    async def choices(self, form: Mapping[str, Any]) -> Dict[str, Any]:
        return {
            "books": await self.store.find_all(EntityKind.BOOK, sort="title"),
            "statuses": STATUS_CHOICES,
        }


CONTROLLERS = {
    EntityKind.GENRE: GenreController,
    EntityKind.AUTHOR: AuthorController,
    EntityKind.BOOK: BookController,
    EntityKind.BOOKINSTANCE: BookInstanceController,
}


def controller_for(kind: EntityKind, store: EntityStore) -> FormController:
    return CONTROLLERS[EntityKind(kind)](store)


async def index(store: EntityStore) -> Render:
    """Home page: how many of each record the catalog holds."""
    (
        book_count,
        book_instance_count,
        book_instance_available_count,
        author_count,
        genre_count,
    ) = await asyncio.gather(
        store.count(EntityKind.BOOK),
        store.count(EntityKind.BOOKINSTANCE),
        store.count(EntityKind.BOOKINSTANCE, status="Available"),
        store.count(EntityKind.AUTHOR),
        store.count(EntityKind.GENRE),
    )
    return Render(
        "index.html",
        {
            "title": "Local Library Home",
            "data": {
                "book_count": book_count,
                "book_instance_count": book_instance_count,
                "book_instance_available_count": book_instance_available_count,
                "author_count": author_count,
                "genre_count": genre_count,
            },
        },
    )
