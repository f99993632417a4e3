"""
API request and response models for the AuthGate REST endpoints.

These Pydantic v2 models define the HTTP transport contract. They are kept
separate from the dataclasses in auth/models.py, which own the internal
domain representation. Route handlers map between the two.

Wire names follow the existing client contract ("accessToken"), so response
models use serialization aliases and are dumped with by_alias=True.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class Credentials(BaseModel):
    """Body of POST /auth/login and POST /auth/register.

    Both fields are optional at the schema level so a missing field reaches
    the handler and gets the documented 400 message instead of a generic
    validation error.
    """

    username: Optional[str] = None
    password: Optional[str] = None


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class LoginResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    access_token: str = Field(serialization_alias="accessToken")


class MessageResponse(BaseModel):
    message: str


class UploadResponse(BaseModel):
    path: str


class ErrorResponse(BaseModel):
    """Envelope for every error response. status is only set by the access gate."""

    message: str
    status: Optional[int] = None


class HealthResponse(BaseModel):
    status: str = "healthy"
    version: str
