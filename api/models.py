"""
API request and response models for Postboard REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in core/models.py, which
own the internal domain representation. Route handlers map between the two.

JSON field names are camelCase (userId, createdAt) to match the browser
client; Python attributes stay snake_case via alias_generator.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from core.models import Post, User

# bcrypt only looks at the first 72 bytes of a password, and bcrypt 5 refuses
# longer input outright. Reject here so the hasher never sees it.
_BCRYPT_MAX_BYTES = 72


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class SessionRequest(BaseModel):
    """Request body for POST /session.

    No whitespace stripping: usernames are case- and byte-exact, and
    passwords are hashed as typed.
    """

    username: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1)

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, value: str) -> str:
        if len(value.encode("utf-8")) > _BCRYPT_MAX_BYTES:
            raise ValueError(f"password must be at most {_BCRYPT_MAX_BYTES} bytes")
        return value


class PostWrite(BaseModel):
    """Request body for POST /posts and PUT /posts/{id}.

    There is deliberately no userId field. Unknown keys (including a
    client-supplied userId) are dropped during validation; the owner always
    comes from the session.
    """

    model_config = ConfigDict(extra="ignore")

    title: str = Field(min_length=1, max_length=200)
    content: str = Field(default="", max_length=10_000)


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class UserResponse(BaseModel):
    """Public view of a user. The password hash has no field here."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    id: int
    username: str
    created_at: str

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls(id=user.id, username=user.username, created_at=user.created_at)


class PostResponse(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    id: int
    user_id: int
    title: str
    content: str
    created_at: str
    updated_at: str | None = None

    @classmethod
    def from_post(cls, post: Post) -> "PostResponse":
        return cls(
            id=post.id,
            user_id=post.user_id,
            title=post.title,
            content=post.content,
            created_at=post.created_at,
            updated_at=post.updated_at,
        )


class MessageResponse(BaseModel):
    """Body of every error response and of simple acknowledgements."""

    model_config = ConfigDict(frozen=True)

    message: str


class FieldError(BaseModel):
    model_config = ConfigDict(frozen=True)

    loc: list[str]
    msg: str


class ValidationErrorResponse(BaseModel):
    """422 body. Carries field locations and messages, never the submitted values."""

    model_config = ConfigDict(frozen=True)

    message: str = "Invalid request"
    errors: list[FieldError] = Field(default_factory=list)


class HealthResponse(BaseModel):
    """Response for GET /health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
