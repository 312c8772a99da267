"""
posts/store.py -- SQLAlchemy Core persistence layer for posts.

Pattern: Repository + Data Mapper (same as auth/store.py). PostStore
satisfies core.storage.PostStorage.

Ownership guard: update_post() and delete_post() match on BOTH the post id
and the owning user id. A caller who knows another user's post id gets the
same "not found" result as for an id that does not exist.

Security: all queries use bound parameters. No f-strings in SQL.

Layer rule: no imports from api/ or auth/.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Column, Integer, MetaData, String, Table, Text
from sqlalchemy.engine import Engine

from core.models import Post
from core.storage import create_store_engine, translate_errors

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_posts = Table(
    "posts",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("user_id", Integer, nullable=False, index=True),
    Column("title", String(200), nullable=False),
    Column("content", Text, nullable=False, server_default=""),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32)),
)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class PostStore:
    """Repository for Post entities.

    Usage:
        store = PostStore("sqlite:///:memory:")
        post_id = store.create_post(Post(user_id=7, title="hello"))
        store.update_post(Post(id=post_id, user_id=7, title="hello again"))
        store.delete_post(post_id, user_id=7)
        store.close()
    """

    def __init__(self, db_url: str) -> None:
        self.engine: Engine = create_store_engine(db_url)
        with translate_errors("create_schema"):
            _metadata.create_all(self.engine)

    def get_all_posts(self) -> list[Post]:
        """Return every post, newest first."""
        with translate_errors("get_all_posts"), self.engine.connect() as conn:
            rows = conn.execute(_posts.select().order_by(_posts.c.id.desc())).fetchall()
        return [_row_to_post(r) for r in rows]

    def get_post_by_id(self, post_id: int) -> Post | None:
        with translate_errors("get_post_by_id"), self.engine.connect() as conn:
            row = conn.execute(_posts.select().where(_posts.c.id == post_id)).fetchone()
        return _row_to_post(row) if row is not None else None

    def create_post(self, post: Post) -> int:
        """Insert a post and return its ID. post.user_id must already be trusted."""
        with translate_errors("create_post"), self.engine.connect() as conn:
            result = conn.execute(
                _posts.insert().values(
                    user_id=post.user_id,
                    title=post.title,
                    content=post.content,
                    created_at=_now_iso(),
                )
            )
            conn.commit()
            return result.inserted_primary_key[0]

    def update_post(self, post: Post) -> bool:
        """Overwrite title and content of post.id if owned by post.user_id.

        Returns True if a row was updated, False if not found or wrong owner.
        The owner itself is never changed.
        """
        with translate_errors("update_post"), self.engine.connect() as conn:
            result = conn.execute(
                _posts.update()
                .where((_posts.c.id == post.id) & (_posts.c.user_id == post.user_id))
                .values(title=post.title, content=post.content, updated_at=_now_iso())
            )
            conn.commit()
        return result.rowcount > 0

    def delete_post(self, post_id: int, user_id: int) -> bool:
        """Delete a post. Returns True if deleted, False if not found or wrong owner."""
        with translate_errors("delete_post"), self.engine.connect() as conn:
            result = conn.execute(_posts.delete().where((_posts.c.id == post_id) & (_posts.c.user_id == user_id)))
            conn.commit()
        return result.rowcount > 0

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper
# ---------------------------------------------------------------------------


def _row_to_post(row) -> Post:
    return Post(
        id=row.id,
        user_id=row.user_id,
        title=row.title,
        content=row.content,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
