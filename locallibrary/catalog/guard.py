"""
Referential checks the store does not enforce.

``DEPENDENTS`` is the single table of which records point at which: a
genre or author is referenced by books, a book by its copies. A record
may only be deleted once nothing in that table still points at it.
Checks and the writes that follow are not atomic; a dependent created
in between is not detected.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, Field

from ..errors import ReferenceBlocked
from ..models import EntityKind, Genre
from ..storage import EntityStore


logger = logging.getLogger(__name__)

# kind -> [(dependent kind, field on the dependent holding the reference)]
DEPENDENTS: Dict[EntityKind, List[Tuple[EntityKind, str]]] = {
    EntityKind.GENRE: [(EntityKind.BOOK, "genre")],
    EntityKind.AUTHOR: [(EntityKind.BOOK, "author")],
    EntityKind.BOOK: [(EntityKind.BOOKINSTANCE, "book")],
    EntityKind.BOOKINSTANCE: [],
}


class GuardDecision(BaseModel):
    allowed: bool
    blocking_records: List[BaseModel] = Field(default_factory=list)


class ReferenceGuard:
    def __init__(self, store: EntityStore) -> None:
        self.store = store

    async def dependents(self, kind: EntityKind, record_id: str) -> List[BaseModel]:
        """Every record that references ``record_id``."""
        lookups = [
            self.store.find(dependent, **{field: record_id})
            for dependent, field in DEPENDENTS[EntityKind(kind)]
        ]
        found: List[BaseModel] = []
        for records in await asyncio.gather(*lookups):
            found.extend(records)
        return found

    async def can_delete(self, kind: EntityKind, record_id: str) -> GuardDecision:
        blocking = await self.dependents(kind, record_id)
        return GuardDecision(allowed=not blocking, blocking_records=blocking)

    async def check_delete(self, kind: EntityKind, record_id: str) -> None:
        decision = await self.can_delete(kind, record_id)
        if not decision.allowed:
            logger.info(
                "Refusing to delete %s %s: %d dependent record(s)",
                EntityKind(kind).value,
                record_id,
                len(decision.blocking_records),
            )
            raise ReferenceBlocked(EntityKind(kind).value, record_id, decision.blocking_records)

    async def find_genre_named(self, name: str, exclude_id: Optional[str] = None) -> Optional[Genre]:
        """Return a genre already called ``name``, ignoring ``exclude_id``."""
        for genre in await self.store.find(EntityKind.GENRE, name=name):
            if genre.id != exclude_id:
                return genre
        return None
