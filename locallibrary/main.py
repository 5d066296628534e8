"""Application factory: builds the FastAPI app, wires the catalog routes and error pages."""

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import RedirectResponse

from . import __version__, config
from .catalog import catalog_router
from .catalog.router import templates
from .errors import NotFound, StoreUnavailable
from .storage import EntityStore, MemoryStore, load_fixture


logger = logging.getLogger("locallibrary")


def configure_logging(level: str = config.LOG_LEVEL) -> None:
    if logger.handlers:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(level)


def _default_store() -> MemoryStore:
    store = MemoryStore()
    if config.FIXTURE_FILE is not None:
        load_fixture(store, config.FIXTURE_FILE)
    return store


def create_app(store: Optional[EntityStore] = None) -> FastAPI:
    configure_logging()
    app = FastAPI(
        title=config.SITE_TITLE,
        description="Catalog of books, authors, genres and book copies.",
        version=__version__,
    )
    app.state.store = store if store is not None else _default_store()
    app.include_router(catalog_router)

    @app.get("/")
    def home():
        return RedirectResponse(url="/catalog/")

    @app.get("/health")
    def health_check():
        return {"status": "ok"}

    @app.exception_handler(NotFound)
    async def not_found_handler(request: Request, exc: NotFound):
        logger.info("%s %s: %s", request.method, request.url.path, exc)
        return templates.TemplateResponse(
            request,
            "error.html",
            {"title": "Not Found", "message": f"{exc.kind.capitalize()} not found"},
            status_code=404,
        )

    @app.exception_handler(StoreUnavailable)
    async def store_unavailable_handler(request: Request, exc: StoreUnavailable):
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
        return templates.TemplateResponse(
            request,
            "error.html",
            {"title": "Error", "message": "The catalog is temporarily unavailable."},
            status_code=503,
        )

    return app


app = create_app()
