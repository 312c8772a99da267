"""
core/storage.py -- Storage contract consumed by the auth and posts layers.

The session core never talks to a database directly. It depends on the two
Protocols below; auth/store.py and posts/store.py are the SQLAlchemy-backed
implementations wired up in the API lifespan.

Contract:
  - Each method is a single atomic call against the backing store.
  - "Not found" is a normal outcome and is returned as None (or False for
    update/delete). It is never raised.
  - Every other backend failure is raised as StorageFailure. Callers do not
    retry and do not compensate earlier calls in the same flow.
  - Username uniqueness is enforced by the store (UNIQUE constraint), not by
    callers. Two concurrent registrations for the same name produce one user
    and one StorageFailure.

Layer rule: no imports from api/, auth/, or posts/.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Protocol

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from core.models import Post, User

logger = logging.getLogger("postboard.store")


class StorageFailure(Exception):
    """A backing-store error other than not-found.

    The message names the failed operation only. The original driver error is
    chained as __cause__ for server-side logs and never reaches a response.
    """


class UserStorage(Protocol):
    def get_user_by_username(self, username: str) -> User | None: ...

    def get_user_by_id(self, user_id: int) -> User | None: ...

    def create_user(self, user: User) -> int: ...


class PostStorage(Protocol):
    def get_all_posts(self) -> list[Post]: ...

    def get_post_by_id(self, post_id: int) -> Post | None: ...

    def create_post(self, post: Post) -> int: ...

    def update_post(self, post: Post) -> bool:
        """Overwrite title/content of post.id if it is owned by post.user_id."""
        ...

    def delete_post(self, post_id: int, user_id: int) -> bool: ...


# ---------------------------------------------------------------------------
# Shared SQLAlchemy plumbing for the store implementations
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode for concurrent read safety.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def create_store_engine(db_url: str) -> Engine:
    """Create an Engine with the SQLite tweaks both stores need."""
    connect_args: dict = {}
    if db_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    engine = create_engine(db_url, connect_args=connect_args)
    if db_url.startswith("sqlite"):
        event.listen(engine, "connect", _set_wal_mode)
    return engine


@contextmanager
def translate_errors(operation: str) -> Iterator[None]:
    """Re-raise any SQLAlchemy error from the wrapped block as StorageFailure."""
    try:
        yield
    except SQLAlchemyError as exc:
        logger.error("Storage operation %s failed: %s", operation, exc.__class__.__name__)
        raise StorageFailure(f"{operation} failed") from exc
