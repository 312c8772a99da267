"""
auth/service.py -- Session establishment (login with register-on-demand).

POST /session is both sign-up and sign-in. The flow is an explicit two-branch
state machine:

  Start -> look up username
    NotFound -> hash password -> create user -> Authenticated (registered)
    Found    -> verify password
                  mismatch -> CredentialMismatch (terminal, no token)
                  match    -> Authenticated
  Authenticated -> issue token

Storage calls run one after another with no compensation. If anything fails
after create_user() the new account stays in place and the error propagates.

Layer rule: no imports from api/ or posts/. Works against the storage
Protocol, not a concrete store.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from auth.errors import CredentialMismatch
from auth.models import SessionToken
from auth.passwords import CredentialManager
from auth.tokens import TokenService
from core.models import User
from core.storage import StorageFailure, UserStorage

logger = logging.getLogger("postboard.auth")


@dataclass(frozen=True)
class SessionGrant:
    user: User
    token: SessionToken
    registered: bool


def establish_session(
    users: UserStorage,
    credentials: CredentialManager,
    tokens: TokenService,
    username: str,
    password: str,
) -> SessionGrant:
    """Authenticate (or provision) username and issue a session token.

    Raises:
        CredentialMismatch: username exists and the password does not match.
        StorageFailure:     any backing-store error, including losing a race
                            to register the same username.
    """
    user = users.get_user_by_username(username)
    registered = user is None

    if user is None:
        user = _register(users, credentials, username, password)
    elif not credentials.verify(user.hashed_password, password):
        logger.warning("Failed login attempt for existing username (user_id=%s)", user.id)
        raise CredentialMismatch()
    else:
        logger.info("Login: user_id=%s", user.id)

    token = tokens.issue(user.id)
    return SessionGrant(user=user, token=token, registered=registered)


def _register(users: UserStorage, credentials: CredentialManager, username: str, password: str) -> User:
    hashed = credentials.hash(password)
    user_id = users.create_user(User(username=username, hashed_password=hashed))
    created = users.get_user_by_id(user_id)
    if created is None:
        raise StorageFailure("create_user returned an id that cannot be read back")
    logger.info("Registered new user: user_id=%s", created.id)
    return created
