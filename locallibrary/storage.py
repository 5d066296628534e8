"""
Entity store for the catalog.

``EntityStore`` is the persistence contract used by the catalog: a small
document-database style API (find by id, find by filter, sorted find-all,
insert, update, delete) over the four entity kinds. ``MemoryStore`` keeps
every collection in process memory, which is enough for development and
tests. Backends that talk to a real database must raise
``StoreUnavailable`` when the database cannot be reached.
"""

from __future__ import annotations

import abc
import copy
import json
import logging
import secrets
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel

from .errors import StoreUnavailable
from .models import RECORD_TYPES, EntityKind


logger = logging.getLogger(__name__)

FIXTURE_KEYS = {
    "genres": EntityKind.GENRE,
    "authors": EntityKind.AUTHOR,
    "books": EntityKind.BOOK,
    "bookinstances": EntityKind.BOOKINSTANCE,
}


def new_id() -> str:
    """Return an opaque 24 character hex id."""
    return secrets.token_hex(12)


def _matches(document: Dict[str, Any], filters: Dict[str, Any]) -> bool:
    for field, expected in filters.items():
        value = document.get(field)
        # list-valued fields match when they contain the value
        if isinstance(value, list) and not isinstance(expected, list):
            if expected not in value:
                return False
        elif value != expected:
            return False
    return True


def _sort_key(field: str):
    def key(document: Dict[str, Any]):
        value = document.get(field)
        if value is None:
            return (1, "")
        if isinstance(value, str):
            return (0, value.lower())
        return (0, value)

    return key


class EntityStore(abc.ABC):
    """Async persistence contract for genres, authors, books and copies."""

    @abc.abstractmethod
    async def get(self, kind: EntityKind, record_id: str) -> Optional[BaseModel]:
        ...

    @abc.abstractmethod
    async def find(self, kind: EntityKind, **filters: Any) -> List[BaseModel]:
        ...

    @abc.abstractmethod
    async def find_all(self, kind: EntityKind, sort: Optional[str] = None) -> List[BaseModel]:
        ...

    @abc.abstractmethod
    async def count(self, kind: EntityKind, **filters: Any) -> int:
        ...

    @abc.abstractmethod
    async def insert(self, kind: EntityKind, draft: BaseModel) -> BaseModel:
        ...

    @abc.abstractmethod
    async def update(self, kind: EntityKind, record_id: str, draft: BaseModel) -> Optional[BaseModel]:
        ...

    @abc.abstractmethod
    async def delete(self, kind: EntityKind, record_id: str) -> bool:
        ...


class MemoryStore(EntityStore):
    """In-memory document store.

    Documents are kept as plain dicts keyed by id, one collection per
    entity kind. Documents are copied on the way in and out so callers
    never share state with the store.
    """

    def __init__(self) -> None:
        self._collections: Dict[EntityKind, Dict[str, Dict[str, Any]]] = {
            kind: {} for kind in EntityKind
        }

    def _collection(self, kind: EntityKind) -> Dict[str, Dict[str, Any]]:
        try:
            return self._collections[EntityKind(kind)]
        except (KeyError, ValueError) as exc:
            raise StoreUnavailable(f"unknown collection: {kind!r}") from exc

    def _to_record(self, kind: EntityKind, document: Dict[str, Any]) -> BaseModel:
        return RECORD_TYPES[EntityKind(kind)].model_validate(copy.deepcopy(document))

    def seed(self, kind: EntityKind, record: Union[BaseModel, Dict[str, Any]]) -> BaseModel:
        """Store a record with an explicit id, replacing any previous one."""
        if not isinstance(record, BaseModel):
            record = RECORD_TYPES[EntityKind(kind)].model_validate(record)
        document = record.model_dump()
        self._collection(kind)[document["id"]] = document
        return self._to_record(kind, document)

    async def get(self, kind: EntityKind, record_id: str) -> Optional[BaseModel]:
        document = self._collection(kind).get(str(record_id))
        if document is None:
            return None
        return self._to_record(kind, document)

    async def find(self, kind: EntityKind, **filters: Any) -> List[BaseModel]:
        return [
            self._to_record(kind, document)
            for document in self._collection(kind).values()
            if _matches(document, filters)
        ]

    async def find_all(self, kind: EntityKind, sort: Optional[str] = None) -> List[BaseModel]:
        documents = list(self._collection(kind).values())
        if sort:
            documents.sort(key=_sort_key(sort))
        return [self._to_record(kind, document) for document in documents]

    async def count(self, kind: EntityKind, **filters: Any) -> int:
        return sum(1 for document in self._collection(kind).values() if _matches(document, filters))

    async def insert(self, kind: EntityKind, draft: BaseModel) -> BaseModel:
        document = draft.model_dump()
        document["id"] = new_id()
        self._collection(kind)[document["id"]] = document
        logger.debug("Inserted %s %s", EntityKind(kind).value, document["id"])
        return self._to_record(kind, document)

    async def update(self, kind: EntityKind, record_id: str, draft: BaseModel) -> Optional[BaseModel]:
        collection = self._collection(kind)
        record_id = str(record_id)
        if record_id not in collection:
            return None
        document = draft.model_dump()
        document["id"] = record_id
        collection[record_id] = document
        logger.debug("Updated %s %s", EntityKind(kind).value, record_id)
        return self._to_record(kind, document)

    async def delete(self, kind: EntityKind, record_id: str) -> bool:
        removed = self._collection(kind).pop(str(record_id), None)
        if removed is not None:
            logger.debug("Deleted %s %s", EntityKind(kind).value, record_id)
        return removed is not None


def load_fixture(store: MemoryStore, path: Union[str, Path]) -> int:
    """Seed ``store`` from a JSON fixture file.

    The file holds one list per collection (``genres``, ``authors``,
    ``books``, ``bookinstances``), each record carrying its own ``id``.
    A missing file is logged and skipped. Returns the number of records
    loaded.
    """
    path = Path(path)
    if not path.exists():
        logger.warning("Fixture file %s not found, starting with an empty catalog", path)
        return 0
    with path.open("r", encoding="utf-8") as f:
        raw = json.load(f)
    if not isinstance(raw, dict):
        raise ValueError(f"Fixture {path} must contain a JSON object")

    loaded = 0
    for key, kind in FIXTURE_KEYS.items():
        entries = raw.get(key) or []
        if not isinstance(entries, list):
            raise ValueError(f"Fixture key {key!r} must be a list")
        for entry in entries:
            store.seed(kind, entry)
            loaded += 1
    logger.info("Loaded %d catalog records from %s", loaded, path)
    return loaded
