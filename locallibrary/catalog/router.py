"""
Route definitions for the catalog site.

Endpoints under /catalog, ``{kind}`` being one of genre, author, book
or bookinstance:

- GET       /                       : home page with record counts
- GET       /{kind}s                : list
- GET|POST  /{kind}/create          : create form / submit
- GET       /{kind}/{id}            : detail
- GET|POST  /{kind}/{id}/update     : update form / submit
- GET|POST  /{kind}/{id}/delete     : delete confirmation / guarded delete
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse, Response
from fastapi.templating import Jinja2Templates

from ..config import SITE_TITLE, TEMPLATES_DIR
from ..models import EntityKind
from ..storage import EntityStore
from . import controller
from .controller import Outcome, Redirect


templates = Jinja2Templates(directory=str(TEMPLATES_DIR))
templates.env.globals["site_title"] = SITE_TITLE

router = APIRouter(prefix="/catalog", tags=["catalog"])


def get_store(request: Request) -> EntityStore:
    return request.app.state.store


async def _form_values(request: Request) -> Dict[str, Any]:
    """Submitted form as a dict; repeated keys (checkboxes) become lists."""
    form = await request.form()
    values: Dict[str, Any] = {}
    for key in form.keys():
        items = form.getlist(key)
        values[key] = items if len(items) > 1 else items[0]
    return values


def respond(request: Request, outcome: Outcome) -> Response:
    if isinstance(outcome, Redirect):
        return RedirectResponse(url=outcome.url, status_code=303)
    return templates.TemplateResponse(
        request, outcome.template, outcome.context, status_code=outcome.status_code
    )


@router.get("/")
async def index(request: Request, store: EntityStore = Depends(get_store)) -> Response:
    return respond(request, await controller.index(store))


@router.get("/{kind}s")
async def list_records(
    request: Request, kind: EntityKind, store: EntityStore = Depends(get_store)
) -> Response:
    return respond(request, await controller.controller_for(kind, store).list())


@router.get("/{kind}/create")
async def create_form(
    request: Request, kind: EntityKind, store: EntityStore = Depends(get_store)
) -> Response:
    return respond(request, await controller.controller_for(kind, store).create_form())


@router.post("/{kind}/create")
async def create(
    request: Request, kind: EntityKind, store: EntityStore = Depends(get_store)
) -> Response:
    raw = await _form_values(request)
    return respond(request, await controller.controller_for(kind, store).create(raw))


@router.get("/{kind}/{record_id}")
async def detail(
    request: Request, kind: EntityKind, record_id: str, store: EntityStore = Depends(get_store)
) -> Response:
    return respond(request, await controller.controller_for(kind, store).detail(record_id))


@router.get("/{kind}/{record_id}/update")
async def update_form(
    request: Request, kind: EntityKind, record_id: str, store: EntityStore = Depends(get_store)
) -> Response:
    return respond(request, await controller.controller_for(kind, store).update_form(record_id))


@router.post("/{kind}/{record_id}/update")
async def update(
    request: Request, kind: EntityKind, record_id: str, store: EntityStore = Depends(get_store)
) -> Response:
    raw = await _form_values(request)
    return respond(request, await controller.controller_for(kind, store).update(record_id, raw))


@router.get("/{kind}/{record_id}/delete")
async def delete_form(
    request: Request, kind: EntityKind, record_id: str, store: EntityStore = Depends(get_store)
) -> Response:
    return respond(request, await controller.controller_for(kind, store).delete_form(record_id))


@router.post("/{kind}/{record_id}/delete")
async def delete(
    request: Request, kind: EntityKind, record_id: str, store: EntityStore = Depends(get_store)
) -> Response:
    return respond(request, await controller.controller_for(kind, store).delete(record_id))
