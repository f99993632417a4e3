"""
core/errors.py -- Error taxonomy shared by every layer of the gateway.

Each error carries the HTTP status it maps to and a client-safe message.
api/main.py registers a single exception handler that turns any GatewayError
into a JSON body, so route and store code only ever raise.

Messages must stay generic for authentication failures: the client never
learns whether the username, the password or the token was the problem.
"""

from __future__ import annotations


class GatewayError(Exception):
    status_code: int = 500
    default_message: str = "An unexpected error occurred."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    def body(self) -> dict:
        return {"message": self.message}


class ValidationError(GatewayError):
    """Required request fields are missing or malformed."""

    status_code = 400
    default_message = "username and password needed."


class AuthenticationError(GatewayError):
    """Bad username/password combination."""

    status_code = 401
    default_message = "Wrong username/password"


class AccessDenied(AuthenticationError):
    """The access gate rejected the request (missing, malformed, bad or expired token)."""

    default_message = "Wrong access token"

    def body(self) -> dict:
        return {"status": self.status_code, "message": self.message}


class ConflictError(GatewayError):
    status_code = 400
    default_message = "Username is taken"


class NotFoundError(GatewayError):
    status_code = 404
    default_message = "Not found"


class StoreError(GatewayError):
    """Reading or writing the shared JSON document failed."""

    status_code = 500
    default_message = "Storage is unavailable."


class UploadError(GatewayError):
    status_code = 400
    default_message = "file field is required"
