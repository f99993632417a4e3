"""
api/main.py -- FastAPI application entry point for AuthGate.

AuthGate puts username/password authentication and method-based access
control in front of a generic JSON collection API.

Run with:  python main.py
           uvicorn api.main:app --reload

Middleware stack (outermost to innermost):
  1. CORSMiddleware    -- adds CORS headers for allowed browser origins
  2. SlowAPIMiddleware -- enforces per-route rate limits from api.limiter
  3. log_requests      -- method, path, status, latency for every request

Route layout:
  /auth/login, /auth/register   public
  {API_PREFIX}/...              resource API, gated per AUTH_READ / AUTH_WRITE
  /upload                       gated per AUTH_WRITE
  /health                       public liveness probe
  /<file>                       static files from UPLOAD_FOLDER

Lifespan builds every collaborator once from Settings and parks it on
app.state. Route handlers only ever read from app.state.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.limiter import limiter
from api.models import ErrorResponse, HealthResponse
from api.routes.auth import router as auth_router
from api.routes.resources import router as resources_router
from api.routes.upload import router as upload_router
from auth.gate import AccessGate, AccessPolicy
from auth.passwords import PasswordHasher
from auth.store import CredentialStore
from auth.tokens import TokenService
from core.config import Settings, get_settings
from core.document import JsonDocument
from core.errors import GatewayError
from resources.store import ResourceStore
from resources.uploads import UploadStore

VERSION = "1.0.0"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("authgate.api")

settings = get_settings()


def init_state(app: FastAPI, settings: Settings) -> None:
    """Build the gateway's collaborators from settings and attach them to app.state.

    The credential store and the resource store share one JsonDocument, and
    therefore one writer lock.
    """
    document = JsonDocument(settings.db_file)
    tokens = TokenService(settings.secret_key, settings.token_lifetime_seconds)
    app.state.document = document
    app.state.credentials = CredentialStore(document)
    app.state.resources = ResourceStore(document)
    app.state.hasher = PasswordHasher(settings.salt_rounds, per_password_salt=settings.hash_salt_per_password)
    app.state.tokens = tokens
    app.state.gate = AccessGate(
        AccessPolicy(require_auth_on_read=settings.auth_read, require_auth_on_write=settings.auth_write),
        tokens,
    )
    app.state.uploads = UploadStore(settings.upload_folder)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Build collaborators on startup. Nothing holds open handles, so shutdown only logs."""
    logger.info("AuthGate starting up")
    Path(settings.upload_folder).mkdir(parents=True, exist_ok=True)
    init_state(app, settings)
    logger.info(
        "Gate initialized (auth_read=%s, auth_write=%s, prefix=%s, db=%s)",
        settings.auth_read,
        settings.auth_write,
        settings.api_prefix,
        settings.db_file,
    )
    yield
    logger.info("AuthGate shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="AuthGate",
    description="Token-gated access to a JSON collection API.",
    version=VERSION,
    lifespan=lifespan,
)

# ---------------------------------------------------------------------------
# Middleware stack
# ---------------------------------------------------------------------------

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
    allow_headers=["Content-Type", "Authorization"],
    max_age=3600,
)

app.add_middleware(SlowAPIMiddleware)

# SlowAPI looks for app.state.limiter by convention.
app.state.limiter = limiter


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    ms = (time.perf_counter() - start) * 1000
    logger.info(
        "%s %s %d %.1fms %s",
        request.method,
        request.url.path,
        response.status_code,
        ms,
        request.client.host if request.client else "unknown",
    )
    return response


# ---------------------------------------------------------------------------
# Exception handlers
#
# Every error leaves as {"message": ...} (plus "status" for gate rejections),
# and terminates the request. No partial responses.
# ---------------------------------------------------------------------------


@app.exception_handler(GatewayError)
async def gateway_error_handler(request: Request, exc: GatewayError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc)
    return JSONResponse(status_code=exc.status_code, content=exc.body())


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Return 429 with Retry-After when a rate limit is exceeded."""
    retry_after = int(getattr(exc, "retry_after", 60))
    response = JSONResponse(
        status_code=429,
        content=ErrorResponse(message="Too many requests.").model_dump(exclude_none=True),
    )
    response.headers["Retry-After"] = str(retry_after)
    return response


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed bodies are client errors like any other: 400, not FastAPI's default 422."""
    return JSONResponse(
        status_code=400,
        content=ErrorResponse(message="Invalid request body.").model_dump(exclude_none=True),
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(message=str(exc.detail)).model_dump(exclude_none=True),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all for unexpected server errors. The traceback goes to the log only."""
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(message="An unexpected error occurred.").model_dump(exclude_none=True),
    )


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------


@app.get("/health", tags=["Health"])
async def health() -> HealthResponse:
    """Return liveness and current version. Never gated, never rate limited."""
    return HealthResponse(version=VERSION)


app.include_router(auth_router, tags=["Auth"])
app.include_router(upload_router, tags=["Upload"])
app.include_router(resources_router, prefix=settings.api_prefix, tags=["Resources"])

# Must stay last: a mount at the root matches every path not claimed above.
app.mount("/", StaticFiles(directory=settings.upload_folder, check_dir=False), name="uploads")
