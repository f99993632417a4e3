"""
auth/accounts.py -- Login and registration flows.

authenticate_user() always runs exactly one bcrypt verification, whether or
not the username exists, and callers get the same AuthenticationError either
way. A client cannot tell "no such user" from "wrong password" by the
message or by the response time.

register_user() hashes first (slow, lock-free) and then performs a single
atomic insert. The insert is the only side effect, so a registration either
fully happens or does not happen at all.

Layer rule: no imports from api/ or resources/.
"""

from __future__ import annotations

import logging

from auth.models import UserRecord
from auth.passwords import PasswordHasher
from auth.store import CredentialStore
from core.errors import AuthenticationError, ConflictError, ValidationError

logger = logging.getLogger("authgate.auth")


def require_credentials(username: str | None, password: str | None) -> tuple[str, str]:
    """Both fields must be present and non-empty."""
    if not username or not password:
        raise ValidationError()
    return username, password


def authenticate_user(store: CredentialStore, hasher: PasswordHasher, username: str, password: str) -> UserRecord:
    """Return the matching user or raise AuthenticationError."""
    user = store.get_by_username(username)
    if user is None:
        hasher.burn(password)
        logger.info("Failed login attempt")
        raise AuthenticationError()
    if not hasher.verify(password, user.password_hash):
        logger.info("Failed login attempt for user id=%d", user.id)
        raise AuthenticationError()
    return user


def register_user(store: CredentialStore, hasher: PasswordHasher, username: str, password: str) -> UserRecord:
    """Create a user or raise ConflictError if the username is taken.

    StoreError from the insert propagates unchanged.
    """
    password_hash = hasher.hash(password)
    record = store.try_insert_unique(username, password_hash)
    if record is None:
        raise ConflictError()
    return record
