"""
core/models.py -- Domain dataclasses shared by the auth and posts layers.

Pure data containers with zero logic. Stores map rows into these; routes map
them into API response models. Neither direction goes through SQL or JSON here.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class User:
    """A registered account.

    hashed_password is the bcrypt hash. It never leaves the server: the API
    response model for users has no field for it.

    id and created_at are None/"" until the store assigns them on insert.
    """

    username: str
    hashed_password: str
    id: int | None = None
    created_at: str = ""


@dataclass
class Post:
    """A post owned by exactly one user.

    user_id is always taken from the authenticated identity of the request
    that wrote the post, never from the request body.
    """

    user_id: int
    title: str
    content: str = ""
    id: int | None = None
    created_at: str = ""
    updated_at: str | None = None
