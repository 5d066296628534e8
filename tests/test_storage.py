import json
import re

import pytest

from locallibrary.models import Author, EntityKind, GenreDraft
from locallibrary.storage import MemoryStore, load_fixture


def test_insert_assigns_opaque_id(store, run):
    genre = run(store.insert(EntityKind.GENRE, GenreDraft(name="Horror")))
    assert re.fullmatch(r"[0-9a-f]{24}", genre.id)
    assert run(store.get(EntityKind.GENRE, genre.id)) == genre
    assert genre.url == f"/catalog/genre/{genre.id}"


def test_get_missing_returns_none(store, run):
    assert run(store.get(EntityKind.BOOK, "nope")) is None


def test_find_matches_inside_list_fields(library, run):
    books = run(library.find(EntityKind.BOOK, genre="g-fantasy"))
    assert sorted(book.id for book in books) == ["b-fear", "b-wind"]
    assert run(library.find(EntityKind.BOOK, genre="g-poetry")) == []


def test_find_all_sorts_case_insensitively(store, run):
    for name in ["poetry", "Fantasy", "Horror"]:
        run(store.insert(EntityKind.GENRE, GenreDraft(name=name)))
    names = [genre.name for genre in run(store.find_all(EntityKind.GENRE, sort="name"))]
    assert names == ["Fantasy", "Horror", "poetry"]


def test_update_replaces_fields_and_keeps_id(library, run):
    updated = run(library.update(EntityKind.GENRE, "g-poetry", GenreDraft(name="Verse")))
    assert updated.id == "g-poetry"
    assert run(library.get(EntityKind.GENRE, "g-poetry")).name == "Verse"


def test_update_missing_returns_none(store, run):
    assert run(store.update(EntityKind.GENRE, "nope", GenreDraft(name="X"))) is None


def test_delete_reports_whether_removed(library, run):
    assert run(library.delete(EntityKind.AUTHOR, "a-doe")) is True
    assert run(library.delete(EntityKind.AUTHOR, "a-doe")) is False
    assert run(library.get(EntityKind.AUTHOR, "a-doe")) is None


def test_count_with_filter(library, run):
    assert run(library.count(EntityKind.BOOKINSTANCE)) == 1
    assert run(library.count(EntityKind.BOOKINSTANCE, status="Available")) == 1
    assert run(library.count(EntityKind.BOOKINSTANCE, status="Loaned")) == 0


def test_returned_records_do_not_share_state(library, run):
    book = run(library.get(EntityKind.BOOK, "b-wind"))
    book.genre.append("g-poetry")
    assert run(library.get(EntityKind.BOOK, "b-wind")).genre == ["g-fantasy"]


def test_author_derived_fields(library, run):
    author = run(library.get(EntityKind.AUTHOR, "a-rothfuss"))
    assert isinstance(author, Author)
    assert author.name == "Rothfuss, Patrick"
    assert author.lifespan == "1973-06-06 - "
    assert author.date_of_birth_iso == "1973-06-06"


def test_load_fixture_seeds_every_collection(tmp_path, run):
    path = tmp_path / "catalog.json"
    path.write_text(
        json.dumps(
            {
                "genres": [{"id": "g1", "name": "Fantasy"}],
                "authors": [{"id": "a1", "first_name": "Ursula", "family_name": "LeGuin"}],
                "books": [
                    {
                        "id": "b1",
                        "title": "A Wizard of Earthsea",
                        "author": "a1",
                        "summary": "Ged.",
                        "isbn": "9780547773742",
                        "genre": ["g1"],
                    }
                ],
                "bookinstances": [{"id": "c1", "book": "b1", "imprint": "Parnassus", "due_back": "2024-05-01"}],
            }
        ),
        encoding="utf-8",
    )
    store = MemoryStore()
    assert load_fixture(store, path) == 4
    copy = run(store.get(EntityKind.BOOKINSTANCE, "c1"))
    assert copy.status == "Maintenance"
    assert copy.due_back_iso == "2024-05-01"


def test_load_fixture_missing_file_is_skipped(tmp_path):
    assert load_fixture(MemoryStore(), tmp_path / "missing.json") == 0


def test_load_fixture_rejects_malformed_file(tmp_path):
    path = tmp_path / "bad.json"
    path.write_text(json.dumps({"genres": {"id": "g1"}}), encoding="utf-8")
    with pytest.raises(ValueError):
        load_fixture(MemoryStore(), path)
