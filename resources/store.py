"""
resources/store.py -- Minimal generic collection store behind the gateway.

Every top-level list in the shared JSON document is a collection; its object
entries are keyed by "id" and any other entries are left alone. This is
plain CRUD: no filtering, sorting, pagination or relationship expansion.

The users collection lives in the same document but is never exposed here;
it belongs to auth.store.CredentialStore and holds password hashes.

Writes go through JsonDocument.transaction(), the same writer lock the
credential store uses, so a resource write can never clobber a concurrent
registration (or vice versa).

Usage:
    store = ResourceStore(JsonDocument("db.json"))
    post = store.create("posts", {"title": "hello"})
    store.update("posts", post["id"], {"title": "hi"})
"""

from __future__ import annotations

from core.document import JsonDocument
from core.errors import ConflictError, NotFoundError

_HIDDEN = frozenset({"users"})


def _same_id(item: object, item_id: str | int) -> bool:
    return isinstance(item, dict) and str(item.get("id")) == str(item_id)


def _next_id(items: list) -> int:
    numeric = [item["id"] for item in items if isinstance(item, dict) and isinstance(item.get("id"), int)]
    return max(numeric, default=0) + 1


class ResourceStore:
    def __init__(self, document: JsonDocument, hidden: frozenset[str] = _HIDDEN) -> None:
        self.document = document
        self.hidden = hidden

    def list_items(self, name: str) -> list:
        return self._collection(self.document.read(), name)

    def get(self, name: str, item_id: str | int) -> dict:
        items = self._collection(self.document.read(), name)
        return items[self._index(items, item_id)]

    def create(self, name: str, data: dict) -> dict:
        """Insert an item, assigning max(id) + 1 when the body carries no id."""
        with self.document.transaction() as doc:
            items = self._collection(doc, name)
            item = dict(data)
            if "id" in item:
                if any(_same_id(existing, item["id"]) for existing in items):
                    raise ConflictError("Insert failed, duplicate id")
            else:
                item["id"] = _next_id(items)
            items.append(item)
        return item

    def replace(self, name: str, item_id: str | int, data: dict) -> dict:
        """PUT semantics: swap the whole item, keeping its id."""
        with self.document.transaction() as doc:
            items = self._collection(doc, name)
            index = self._index(items, item_id)
            item = {**data, "id": items[index]["id"]}
            items[index] = item
        return item

    def update(self, name: str, item_id: str | int, data: dict) -> dict:
        """PATCH semantics: shallow-merge into the existing item, id immutable."""
        with self.document.transaction() as doc:
            items = self._collection(doc, name)
            index = self._index(items, item_id)
            item = {**items[index], **data, "id": items[index]["id"]}
            items[index] = item
        return item

    def delete(self, name: str, item_id: str | int) -> None:
        with self.document.transaction() as doc:
            items = self._collection(doc, name)
            del items[self._index(items, item_id)]

    def _collection(self, doc: dict, name: str) -> list[dict]:
        items = doc.get(name)
        if name in self.hidden or not isinstance(items, list):
            raise NotFoundError()
        return items

    @staticmethod
    def _index(items: list[dict], item_id: str | int) -> int:
        for index, item in enumerate(items):
            if _same_id(item, item_id):
                return index
        raise NotFoundError()
