"""
auth/tokens.py -- Signed, time-limited bearer tokens.

JWT: python-jose with HS256. Tokens carry userId, username, iat and exp.
They are stateless and self-contained: there is no server-side session store
and no revocation list, so a token stays valid until its exp passes.

Expiry is checked against the injected clock rather than by python-jose's
own wall-clock check, so tests (and anything else that needs a controlled
notion of "now") can move time forward without sleeping.

Layer rule: no imports from api/ or resources/.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from auth.models import TokenClaims

logger = logging.getLogger("authgate.auth")

_ALGORITHM = "HS256"

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TokenError(Exception):
    """Token could not be verified. reason is "expired" or "invalid"."""

    EXPIRED = "expired"
    INVALID = "invalid"

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Token {reason}")


class TokenService:
    def __init__(self, secret: str, lifetime_seconds: int = 24 * 60 * 60, clock: Clock = utcnow) -> None:
        self._secret = secret
        self.lifetime_seconds = lifetime_seconds
        self.clock = clock

    def issue(self, user_id: int, username: str) -> str:
        """Encode a signed JWT that expires lifetime_seconds from now."""
        now = self.clock()
        payload = {
            "userId": user_id,
            "username": username,
            "iat": int(now.timestamp()),
            "exp": int((now + timedelta(seconds=self.lifetime_seconds)).timestamp()),
        }
        return jwt.encode(payload, self._secret, algorithm=_ALGORITHM)

    def verify(self, token: str) -> TokenClaims:
        """Check signature and expiry and return the claims.

        Raises TokenError(EXPIRED) once exp has passed, TokenError(INVALID)
        for a bad signature, a malformed token or a payload missing claims.
        """
        try:
            payload = jwt.decode(token, self._secret, algorithms=[_ALGORITHM], options={"verify_exp": False})
        except JWTError as exc:
            raise TokenError(TokenError.INVALID) from exc

        try:
            exp = datetime.fromtimestamp(int(payload["exp"]), tz=timezone.utc)
            claims = TokenClaims(user_id=int(payload["userId"]), username=str(payload["username"]), exp=exp)
        except (KeyError, TypeError, ValueError, OverflowError) as exc:
            raise TokenError(TokenError.INVALID) from exc

        if self.clock() >= claims.exp:
            raise TokenError(TokenError.EXPIRED)
        return claims
