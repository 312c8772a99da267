"""
api/main.py -- FastAPI application entry point for Postboard.

Run with:      uvicorn asgi:app --reload
               python main.py --port 3000

Middleware stack (outermost to innermost):
  1. CORSMiddleware -- adds CORS headers for ALLOWED_ORIGINS, credentials allowed
  2. log_requests   -- one log line per request with status and latency

Session checks are NOT middleware here. They are route dependencies
(auth/session.py) so public routes never pay for them.

Lifespan builds the shared, immutable collaborators once (stores,
CredentialManager, TokenService with the configured secret) and closes the
stores on shutdown.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import timedelta

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from api.models import FieldError, HealthResponse, MessageResponse, ValidationErrorResponse
from api.routes.posts import router as posts_router
from api.routes.session import router as session_router
from auth.errors import AuthError, InvalidToken
from auth.passwords import CredentialManager
from auth.store import UserStore
from auth.tokens import TokenService
from core.config import get_settings
from core.storage import StorageFailure
from posts.store import PostStore

__version__ = "0.1.0"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("postboard.api")

_settings = get_settings()


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Create application-level collaborators on startup, release them on shutdown.

    The secret key is read from Settings exactly once, here, and handed to
    TokenService. It does not change for the lifetime of the process.
    """
    logger.info("Postboard API starting up")
    app.state.user_store = UserStore(_settings.database_url)
    app.state.post_store = PostStore(_settings.database_url)
    app.state.credentials = CredentialManager(rounds=_settings.bcrypt_rounds)
    app.state.tokens = TokenService(
        secret_key=_settings.secret_key,
        ttl=timedelta(seconds=_settings.token_ttl_seconds),
    )
    app.state.secure_cookies = _settings.secure_cookies
    logger.info("Stores initialized (bcrypt rounds=%d)", _settings.bcrypt_rounds)

    yield

    app.state.user_store.close()
    app.state.post_store.close()
    logger.info("Postboard API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="Postboard API",
    description="Posts with cookie-based sessions.",
    version=__version__,
    lifespan=lifespan,
)

# ---------------------------------------------------------------------------
# Middleware stack
# ---------------------------------------------------------------------------

app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.allowed_origin_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Content-Type"],
    max_age=3600,
)


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
# Router registration
# ---------------------------------------------------------------------------

app.include_router(session_router, tags=["Session"])
app.include_router(posts_router, tags=["Posts"])


# ---------------------------------------------------------------------------
# Exception handlers
#
# Every error body is {"message": ...} (422 adds "errors"). None of them
# include exception text from storage, tokens or hashing.
# ---------------------------------------------------------------------------


@app.exception_handler(AuthError)
async def auth_error_handler(request: Request, exc: AuthError) -> JSONResponse:
    """MissingToken, InvalidToken and CredentialMismatch all become 401.

    The fixed class-level message is sent, never str(exc): InvalidToken
    carries the internal token-error kind, which stays in the logs.
    """
    if isinstance(exc, InvalidToken) and exc.reason is not None:
        logger.debug("Invalid token reason: %s", exc.reason.kind)
    response = JSONResponse(
        status_code=exc.status_code,
        content=MessageResponse(message=exc.message).model_dump(),
    )
    response.headers["Cache-Control"] = "no-store"
    return response


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 422 with field locations and messages.

    Pydantic's error dicts also carry the rejected "input"; it is dropped so
    a password can never be echoed back.
    """
    errors = [
        FieldError(loc=[str(part) for part in err.get("loc", ())], msg=err.get("msg", "")) for err in exc.errors()
    ]
    return JSONResponse(
        status_code=422,
        content=ValidationErrorResponse(errors=errors).model_dump(),
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=MessageResponse(message=str(exc.detail)).model_dump(),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(StorageFailure)
async def storage_failure_handler(request: Request, exc: StorageFailure) -> JSONResponse:
    """Backing-store errors are not recovered. Log with traceback, answer 500."""
    logger.error("Storage failure on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=500,
        content=MessageResponse(message="An unexpected error occurred.").model_dump(),
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected server errors.

    The raw exception goes to the server log only, never to the response body.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content=MessageResponse(message="An unexpected error occurred.").model_dump(),
    )


# ---------------------------------------------------------------------------
# Health endpoint
# ---------------------------------------------------------------------------


@app.get("/health", tags=["Health"])
async def health() -> HealthResponse:
    """Return API liveness and current version."""
    return HealthResponse(version=__version__)
