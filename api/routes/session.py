"""
api/routes/session.py -- Session establishment and identity endpoints.

Routes:
  POST   /session  -- log in, or register an unknown username; sets "token" cookie
  DELETE /session  -- clear the "token" cookie
  GET    /auth     -- current user (requires session)

Security:
  Login and registration run one bcrypt operation each, so timing does not
  reveal whether a username exists (see auth/passwords.py).
  Cache-Control: no-store on every POST /session response.
  Cookie expiry is taken from the issued token so both lapse together.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request, Response

from api.models import MessageResponse, SessionRequest, UserResponse
from auth.errors import InvalidToken
from auth.models import Identity, SessionToken
from auth.service import establish_session
from auth.session import COOKIE_NAME, bound_identity, require_session
from core.storage import UserStorage

logger = logging.getLogger("postboard.api")

# Auth policy:
# - POST   /session: public -- this is where sessions come from
# - DELETE /session: public -- clearing a cookie needs no prior auth
# - GET    /auth:    requires session (require_session)
router = APIRouter()


@router.post("/session", response_model=UserResponse)
def create_session(request: Request, body: SessionRequest, response: Response) -> UserResponse:
    """Authenticate with username and password, registering the username if it is new.

    An unknown username creates an account with the submitted password. A
    known username must match its stored hash or the request fails with 401
    and no cookie is set.
    """
    response.headers["Cache-Control"] = "no-store"
    grant = establish_session(
        request.app.state.user_store,
        request.app.state.credentials,
        request.app.state.tokens,
        body.username,
        body.password,
    )
    _set_session_cookie(response, grant.token, secure=request.app.state.secure_cookies)
    return UserResponse.from_user(grant.user)


@router.delete("/session", response_model=MessageResponse)
def delete_session(response: Response) -> MessageResponse:
    """Clear the session cookie. The token itself stays valid until it expires."""
    response.delete_cookie(COOKIE_NAME, path="/")
    return MessageResponse(message="Logged out")


@router.get("/auth", response_model=UserResponse, dependencies=[Depends(require_session)])
def auth(request: Request, identity: Identity = Depends(bound_identity)) -> UserResponse:
    """Return the user behind the session cookie."""
    user_store: UserStorage = request.app.state.user_store
    user = user_store.get_user_by_id(identity.user_id)
    if user is None:
        # Validly signed token for an account that no longer exists.
        logger.warning("Session token for unknown user_id=%s", identity.user_id)
        raise InvalidToken()
    return UserResponse.from_user(user)


def _set_session_cookie(response: Response, token: SessionToken, secure: bool) -> None:
    """Write the session token cookie.

    httponly=True: JS cannot read the cookie (XSS mitigation).
    samesite="lax": not sent on cross-site POSTs.
    secure: only sent over HTTPS when SECURE_COOKIES=true.
    """
    response.set_cookie(
        COOKIE_NAME,
        value=token.value,
        path="/",
        expires=token.expires_at,
        httponly=True,
        samesite="lax",
        secure=secure,
    )
