"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic beyond (de)serialization
helpers). The store and routes do the work.

Wire names: records are persisted with the keys "id", "username" and
"password" (the hash), and token payloads use "userId". These keys are shared
with the resource API's JSON file and with existing clients, so they stay
camelCase on the wire while the Python attributes stay snake_case.

Layer rule: no imports from api/ or resources/.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass
class UserRecord:
    """One entry of the users array in the shared JSON document.

    id is assigned as count-at-insert + 1. There are no update or delete
    operations, so ids stay dense and monotonic.
    """

    id: int
    username: str
    password_hash: str

    @classmethod
    def from_dict(cls, data: dict) -> UserRecord:
        return cls(id=int(data["id"]), username=str(data["username"]), password_hash=str(data["password"]))

    def to_dict(self) -> dict:
        return {"id": self.id, "username": self.username, "password": self.password_hash}


@dataclass(frozen=True)
class TokenClaims:
    """Decoded, verified payload of an access token."""

    user_id: int
    username: str
    exp: datetime
