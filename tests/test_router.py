import pytest
from fastapi.testclient import TestClient

from locallibrary.errors import StoreUnavailable
from locallibrary.main import create_app
from locallibrary.models import EntityKind
from locallibrary.storage import MemoryStore


@pytest.fixture
def client(library):
    return TestClient(create_app(library))


def test_root_redirects_to_catalog(client):
    response = client.get("/", follow_redirects=False)
    assert response.status_code in (302, 307)
    assert response.headers["location"] == "/catalog/"


def test_index_page(client):
    response = client.get("/catalog/")
    assert response.status_code == 200
    assert "Local Library Home" in response.text


def test_genre_list_is_sorted(client):
    response = client.get("/catalog/genres")
    assert response.status_code == 200
    assert response.text.index("Fantasy") < response.text.index("Poetry")


def test_bookinstance_list(client):
    response = client.get("/catalog/bookinstances")
    assert response.status_code == 200
    assert "Gollancz, 2011" in response.text
    assert 'href="/catalog/bookinstance/c-1"' in response.text
    assert 'class="status-available"' in response.text


def test_unknown_kind_is_rejected(client):
    assert client.get("/catalog/publishers").status_code == 422


def test_detail_missing_is_404(client):
    response = client.get("/catalog/book/nope")
    assert response.status_code == 404
    assert "Book not found" in response.text


def test_create_duplicate_genre_redirects_to_existing(client, library):
    response = client.post("/catalog/genre/create", data={"name": "Fantasy"}, follow_redirects=False)
    assert response.status_code == 303
    assert response.headers["location"] == "/catalog/genre/g-fantasy"


def test_create_blank_genre_shows_errors(client):
    response = client.post("/catalog/genre/create", data={"name": "  "})
    assert response.status_code == 200
    assert "Genre name required" in response.text


def test_create_book_with_several_genres(client, library, run):
    data = {
        "title": "Ancillary Justice",
        "author": "a-doe",
        "summary": "Breq.",
        "isbn": "9780316246620",
        "genre": ["g-fantasy", "g-poetry"],
    }
    response = client.post("/catalog/book/create", data=data, follow_redirects=False)
    assert response.status_code == 303
    book_id = response.headers["location"].rsplit("/", 1)[-1]
    assert run(library.get(EntityKind.BOOK, book_id)).genre == ["g-fantasy", "g-poetry"]


def test_update_genre_to_taken_name(client, library, run):
    response = client.post("/catalog/genre/g-poetry/update", data={"name": "Fantasy"})
    assert response.status_code == 200
    assert "Genre already exists" in response.text
    assert run(library.get(EntityKind.GENRE, "g-poetry")).name == "Poetry"


def test_update_form_for_missing_author_is_404(client):
    assert client.get("/catalog/author/nope/update").status_code == 404


def test_delete_form_for_missing_author_redirects(client):
    response = client.get("/catalog/author/nope/delete", follow_redirects=False)
    assert response.status_code == 303
    assert response.headers["location"] == "/catalog/authors"


def test_blocked_delete_lists_books(client, library, run):
    response = client.post("/catalog/author/a-rothfuss/delete")
    assert response.status_code == 200
    assert "The Name of the Wind" in response.text
    assert run(library.get(EntityKind.AUTHOR, "a-rothfuss")) is not None


def test_delete_copy_redirects_to_list(client, library, run):
    response = client.post("/catalog/bookinstance/c-1/delete", follow_redirects=False)
    assert response.headers["location"] == "/catalog/bookinstances"
    assert run(library.get(EntityKind.BOOKINSTANCE, "c-1")) is None


def test_store_failure_renders_generic_page():
    class BrokenStore(MemoryStore):
        async def count(self, kind, **filters):
            raise StoreUnavailable("database unreachable")

    client = TestClient(create_app(BrokenStore()))
    response = client.get("/catalog/")
    assert response.status_code == 503
    assert "temporarily unavailable" in response.text


def test_health_check(client):
    assert client.get("/health").json() == {"status": "ok"}
