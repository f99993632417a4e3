"""
auth/gate.py -- Method-based access control in front of the resource API.

Per request the gate walks a fixed sequence:

  policy check      -> method not gated: forward untouched (empty Grant)
  token extraction  -> "Authorization: <scheme> <token>", else reject
  token check       -> TokenService.verify, else reject
  annotate          -> userId, plus updatedAt for POST/PUT
  forward

Any rejection raises AccessDenied, which api/main.py renders as
401 {"status": 401, "message": "Wrong access token"}. The message is the same
whether the header was missing, malformed, tampered with or expired.

AccessPolicy is fixed at startup from AUTH_READ / AUTH_WRITE. There is no
per-resource or per-user override.

Layer rule: no imports from api/ or resources/.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone

from auth.tokens import Clock, TokenError, TokenService, utcnow
from core.errors import AccessDenied

logger = logging.getLogger("authgate.gate")

READ_METHODS = frozenset({"GET", "HEAD"})
WRITE_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE"})
STAMPED_METHODS = frozenset({"POST", "PUT"})


def isoformat_z(moment: datetime) -> str:
    """Render as 2024-01-31T12:00:00.000Z (UTC, millisecond precision)."""
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True)
class AccessPolicy:
    require_auth_on_read: bool = False
    require_auth_on_write: bool = True


@dataclass(frozen=True)
class Grant:
    """Outcome of a request that passed the gate.

    user_id is None when the method was not gated. annotations are the
    fields to merge into the request body before the resource API sees it.
    """

    user_id: int | None = None
    annotations: dict = field(default_factory=dict)


class AccessGate:
    def __init__(self, policy: AccessPolicy, tokens: TokenService, clock: Clock = utcnow) -> None:
        self.policy = policy
        self.tokens = tokens
        self.clock = clock

    def requires_auth(self, method: str) -> bool:
        method = method.upper()
        if method in READ_METHODS:
            return self.policy.require_auth_on_read
        if method in WRITE_METHODS:
            return self.policy.require_auth_on_write
        return False

    @staticmethod
    def extract_token(authorization: str | None) -> str | None:
        """Return the token from "<scheme> <token>", or None if the header is unusable."""
        if not authorization:
            return None
        parts = authorization.split()
        if len(parts) != 2:
            return None
        return parts[1]

    def authorize(self, method: str, authorization: str | None) -> Grant:
        """Run the gate for one request. Raises AccessDenied on rejection."""
        method = method.upper()
        if not self.requires_auth(method):
            return Grant()

        token = self.extract_token(authorization)
        if token is None:
            logger.info("Rejected %s: missing or malformed Authorization header", method)
            raise AccessDenied()

        try:
            claims = self.tokens.verify(token)
        except TokenError as exc:
            logger.info("Rejected %s: token %s", method, exc.reason)
            raise AccessDenied() from exc

        annotations: dict = {"userId": claims.user_id}
        if method in STAMPED_METHODS:
            annotations["updatedAt"] = isoformat_z(self.clock())
        return Grant(user_id=claims.user_id, annotations=annotations)
