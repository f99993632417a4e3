"""
auth/store.py -- Credential persistence on top of the shared JSON document.

Pattern: Repository. CredentialStore owns the users array inside the document
the resource API also reads and writes. Route code never touches the file.

Read path (load_all): availability over consistency. Any read or parse
failure is logged and reported as "no users yet" so login and registration
stay up while the file is transiently corrupt.

Write path (append / try_insert_unique): runs inside
JsonDocument.transaction(), i.e. under the per-file writer lock. Failures
raise StoreError. try_insert_unique() is the only write the registration flow
uses: the duplicate check, id assignment and append happen in one locked
read-modify-write, so concurrent registrations of the same username cannot
both succeed.

Layer rule: no imports from api/ or resources/.
"""

from __future__ import annotations

import logging

from auth.models import UserRecord
from core.document import JsonDocument
from core.errors import StoreError

logger = logging.getLogger("authgate.store")

USERS_COLLECTION = "users"


def _users_from(data: dict, collection: str) -> list[UserRecord]:
    raw = data.get(collection)
    if not isinstance(raw, list):
        return []
    users: list[UserRecord] = []
    for entry in raw:
        try:
            users.append(UserRecord.from_dict(entry))
        except (KeyError, TypeError, ValueError):
            logger.warning("Skipping malformed user entry in %s", collection)
    return users


class CredentialStore:
    """Repository for UserRecord entries.

    Usage:
        store = CredentialStore(JsonDocument("db.json"))
        record = store.try_insert_unique("alice", hasher.hash("pw1"))
        user = store.get_by_username("alice")
    """

    def __init__(self, document: JsonDocument, collection: str = USERS_COLLECTION) -> None:
        self.document = document
        self.collection = collection

    def load_all(self) -> list[UserRecord]:
        """Return every stored user, or an empty list if the file is unreadable.

        A value under the users key that is not a list is ignored (treated as
        empty), not repaired.
        """
        try:
            data = self.document.read()
        except StoreError as exc:
            logger.error("Error while retrieving users: %s", exc)
            return []
        return _users_from(data, self.collection)

    def get_by_username(self, username: str) -> UserRecord | None:
        """Exact, case-sensitive username lookup. Returns None if not found."""
        for user in self.load_all():
            if user.username == username:
                return user
        return None

    def append(self, record: UserRecord) -> None:
        """Append a record unconditionally. Raises StoreError on read/write failure.

        Replaces a non-list value under the users key with a fresh list.
        Registration must use try_insert_unique() instead; this is for seeding
        and migration scripts that already guarantee uniqueness.
        """
        with self.document.transaction() as data:
            users = data.get(self.collection)
            if not isinstance(users, list):
                users = data[self.collection] = []
            users.append(record.to_dict())

    def try_insert_unique(self, username: str, password_hash: str) -> UserRecord | None:
        """Atomically insert a new user unless the username already exists.

        Returns the created record, or None if the username is taken.
        Raises StoreError if the document cannot be read or written; in that
        case nothing is persisted.
        """
        with self.document.transaction() as data:
            if any(user.username == username for user in _users_from(data, self.collection)):
                return None
            users = data.get(self.collection)
            if not isinstance(users, list):
                users = data[self.collection] = []
            record = UserRecord(id=len(users) + 1, username=username, password_hash=password_hash)
            users.append(record.to_dict())
        logger.info("Registered user id=%d", record.id)
        return record
