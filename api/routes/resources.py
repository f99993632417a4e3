"""
api/routes/resources.py -- Generic collection CRUD behind the access gate.

Mounted under API_PREFIX (default /api) by api/main.py:
  GET    /{collection}        -- list items
  GET    /{collection}/{id}   -- one item
  POST   /{collection}        -- create (201)
  PUT    /{collection}/{id}   -- replace
  PATCH  /{collection}/{id}   -- merge
  DELETE /{collection}/{id}   -- remove

Every route depends on authorize_request. Whether that dependency actually
demands a token is decided by the AccessPolicy (AUTH_READ for GET,
AUTH_WRITE for the rest). On success the gate's annotations (userId, and
updatedAt for POST/PUT) are merged over the client's body before the store
sees it, so a client cannot forge either field.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends, Request, Response

from auth.dependencies import authorize_request
from auth.gate import Grant
from core.errors import ValidationError
from resources.store import ResourceStore

router = APIRouter()


def _store(request: Request) -> ResourceStore:
    return request.app.state.resources


def _object_body(body: Any, grant: Grant) -> dict:
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object.")
    return {**body, **grant.annotations}


@router.get("/{collection}")
def list_items(
    collection: str,
    store: ResourceStore = Depends(_store),
    grant: Grant = Depends(authorize_request),
) -> list:
    return store.list_items(collection)


@router.get("/{collection}/{item_id}")
def get_item(
    collection: str,
    item_id: str,
    store: ResourceStore = Depends(_store),
    grant: Grant = Depends(authorize_request),
) -> dict:
    return store.get(collection, item_id)


@router.post("/{collection}", status_code=201)
def create_item(
    collection: str,
    body: Any = Body(default=None),
    store: ResourceStore = Depends(_store),
    grant: Grant = Depends(authorize_request),
) -> dict:
    return store.create(collection, _object_body(body, grant))


@router.put("/{collection}/{item_id}")
def replace_item(
    collection: str,
    item_id: str,
    body: Any = Body(default=None),
    store: ResourceStore = Depends(_store),
    grant: Grant = Depends(authorize_request),
) -> dict:
    return store.replace(collection, item_id, _object_body(body, grant))


@router.patch("/{collection}/{item_id}")
def update_item(
    collection: str,
    item_id: str,
    body: Any = Body(default=None),
    store: ResourceStore = Depends(_store),
    grant: Grant = Depends(authorize_request),
) -> dict:
    return store.update(collection, item_id, _object_body(body, grant))


@router.delete("/{collection}/{item_id}", status_code=204)
def delete_item(
    collection: str,
    item_id: str,
    store: ResourceStore = Depends(_store),
    grant: Grant = Depends(authorize_request),
) -> Response:
    store.delete(collection, item_id)
    return Response(status_code=204)
