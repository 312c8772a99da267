"""
auth/session.py -- Session middleware and the request-scoped identity context.

The middleware is a FastAPI dependency, not an ASGI middleware, so it can be
attached to exactly the routes that need it:

    router.post("/posts", dependencies=[Depends(require_session)])

FastAPI runs route-level dependencies before the handler's own parameters.
require_session() either binds an Identity for the request or raises an
AuthError, which short-circuits the handler and becomes a 401.

Per-request state machine:
  NoToken       cookie absent or empty          -> MissingToken
  TokenPresent  TokenService.parse() fails      -> InvalidToken (reason kept)
                TokenService.parse() succeeds   -> Authenticated, Identity bound

The identity lives on request.state under a private attribute and is gone
when the request ends. Handlers read it with bound_identity(); nothing in the
request body can influence it.

Layer rule: may import fastapi (Request) because this module is part of the
dependency injection system. No imports from api/ or posts/.
"""

from __future__ import annotations

import logging

from fastapi import Request

from auth.errors import InvalidToken, MissingToken, TokenError
from auth.models import Identity
from auth.tokens import TokenService

logger = logging.getLogger("postboard.auth")

COOKIE_NAME = "token"

_IDENTITY_ATTR = "_postboard_identity"


def current_identity(request: Request) -> Identity | None:
    """Return the identity bound to this request, or None if there is none."""
    identity = getattr(request.state, _IDENTITY_ATTR, None)
    return identity if isinstance(identity, Identity) else None


def require_session(request: Request) -> None:
    """Validate the session cookie and bind the caller's Identity.

    Raises:
        MissingToken: no "token" cookie, or an empty one.
        InvalidToken: the token is malformed, forged, or expired.
    """
    token = request.cookies.get(COOKIE_NAME)
    if not token:
        raise MissingToken()

    tokens: TokenService = request.app.state.tokens
    try:
        user_id = tokens.parse(token)
    except TokenError as exc:
        logger.info("Rejected session token on %s (%s)", request.url.path, exc.kind)
        raise InvalidToken(exc) from exc

    setattr(request.state, _IDENTITY_ATTR, Identity(user_id=user_id))


def bound_identity(request: Request) -> Identity:
    """Handler dependency: the Identity bound by require_session().

    A protected route that forgot to attach require_session() gets a
    MissingToken here instead of running unauthenticated.
    """
    identity = current_identity(request)
    if identity is None:
        raise MissingToken()
    return identity
