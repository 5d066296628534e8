"""
Catalog package for the Local Library site.

Server-rendered pages for browsing and editing genres, authors, books
and book copies. Submitted forms go through ``validation``; deletes
and genre renames are checked by ``guard`` against records the store
itself does not protect; ``controller`` ties both to the entity store
and ``router`` exposes the flows over HTTP.
"""

from .router import router as catalog_router  # noqa: F401
