import asyncio

import pytest

from locallibrary.models import EntityKind
from locallibrary.storage import MemoryStore


@pytest.fixture
def run():
    return asyncio.run


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def library(store):
    store.seed(EntityKind.GENRE, {"id": "g-fantasy", "name": "Fantasy"})
    store.seed(EntityKind.GENRE, {"id": "g-poetry", "name": "Poetry"})
    store.seed(
        EntityKind.AUTHOR,
        {
            "id": "a-rothfuss",
            "first_name": "Patrick",
            "family_name": "Rothfuss",
            "date_of_birth": "1973-06-06",
        },
    )
    store.seed(EntityKind.AUTHOR, {"id": "a-doe", "first_name": "Jane", "family_name": "Doe"})
    store.seed(
        EntityKind.BOOK,
        {
            "id": "b-wind",
            "title": "The Name of the Wind",
            "author": "a-rothfuss",
            "summary": "Kvothe tells his story.",
            "isbn": "9781473211896",
            "genre": ["g-fantasy"],
        },
    )
    store.seed(
        EntityKind.BOOK,
        {
            "id": "b-fear",
            "title": "The Wise Mans Fear",
            "author": "a-rothfuss",
            "summary": "Day two.",
            "isbn": "9780756407919",
            "genre": ["g-fantasy"],
        },
    )
    store.seed(
        EntityKind.BOOKINSTANCE,
        {"id": "c-1", "book": "b-wind", "imprint": "Gollancz, 2011", "status": "Available"},
    )
    return store
