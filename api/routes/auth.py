"""
api/routes/auth.py -- Login and registration endpoints.

Routes:
  POST /auth/login     -- {username, password} -> 201 {accessToken}
  POST /auth/register  -- {username, password} -> 201 {message}

Both routes are public; they sit outside the gated API prefix.

Security:
  POST /login is rate-limited per client IP (LOGIN_RATE_LIMIT).
  authenticate_user() equalizes work between unknown user and wrong
  password, and both produce the same 401 message.
  Cache-Control: no-store on login responses so tokens are not cached.

Handlers are plain `def` so FastAPI runs them in its threadpool: bcrypt and
file I/O block, and overlapping requests must not stall the event loop.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from api.limiter import limiter, login_limit
from api.models import Credentials, LoginResponse, MessageResponse
from auth.accounts import authenticate_user, register_user, require_credentials
from auth.passwords import PasswordHasher
from auth.store import CredentialStore
from auth.tokens import TokenService

logger = logging.getLogger("authgate.api")

router = APIRouter()


@router.post("/auth/login", response_model=LoginResponse, status_code=201)
@limiter.limit(login_limit)  # below @router so the registered endpoint is the limited one
def login(request: Request, body: Optional[Credentials] = None) -> JSONResponse:
    """Exchange a username and password for an access token.

    Returns the same generic error for wrong username and wrong password to
    avoid leaking username existence.
    """
    body = body or Credentials()
    username, password = require_credentials(body.username, body.password)

    store: CredentialStore = request.app.state.credentials
    hasher: PasswordHasher = request.app.state.hasher
    tokens: TokenService = request.app.state.tokens

    user = authenticate_user(store, hasher, username, password)
    token = tokens.issue(user.id, user.username)
    resp = JSONResponse(
        status_code=201,
        content=LoginResponse(access_token=token).model_dump(by_alias=True),
    )
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.post("/auth/register", response_model=MessageResponse, status_code=201)
def register(request: Request, body: Optional[Credentials] = None) -> MessageResponse:
    """Create a new user. Exactly one of 201 / 400 is sent per call."""
    body = body or Credentials()
    username, password = require_credentials(body.username, body.password)

    store: CredentialStore = request.app.state.credentials
    hasher: PasswordHasher = request.app.state.hasher

    register_user(store, hasher, username, password)
    return MessageResponse(message="Registration completed")
