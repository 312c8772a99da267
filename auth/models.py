"""
auth/models.py -- Value objects produced by the session core.

Pattern: Data class (pure data container, zero logic), same as core/models.py.

Layer rule: no imports from api/ or posts/.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class Identity:
    """The verified caller of a protected request.

    Only auth/session.py creates and binds these, and only after the session
    token has been parsed successfully. Handlers take ownership decisions from
    user_id and nothing else.
    """

    user_id: int


@dataclass(frozen=True)
class SessionToken:
    """A freshly issued session token.

    value is the signed string that goes into the cookie. expires_at mirrors
    the "exp" claim so the cookie and the token expire together.
    """

    value: str
    user_id: int
    expires_at: datetime
