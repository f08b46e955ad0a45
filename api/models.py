"""
API request and response models for the Inkwell JSON surface.

These Pydantic v2 models define the HTTP transport contract. They are
intentionally separate from the dataclasses in auth/models.py and
feed/models.py, which own the internal domain representation. Route handlers
map between the two.

Pydantic only checks shape and hard upper bounds here. Semantic rules (email
format, secret length, title length) live in auth/accounts.py and
feed/service.py so the HTML surface applies exactly the same rules; those
failures come back as InvalidInput with per-field messages.
"""

from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, Field, StringConstraints

from feed.models import Post

# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------

# Identity fields are trimmed; secrets never are, leading/trailing spaces are
# part of the credential.
_Trimmed = Annotated[str, StringConstraints(strip_whitespace=True)]


class UserCreate(BaseModel):
    """Request body for POST /api/v1/users (createUser)."""

    email: _Trimmed = Field(max_length=255)
    password: str = Field(max_length=255, json_schema_extra={"format": "password"})
    display_name: _Trimmed = Field(default="", max_length=100)


class LoginRequest(BaseModel):
    """Request body for POST /api/v1/auth/login."""

    email: str = Field(max_length=255)
    password: str = Field(max_length=255)


class ResetRequest(BaseModel):
    """Request body for POST /api/v1/auth/reset."""

    email: str = Field(max_length=255)


class NewPasswordRequest(BaseModel):
    """Request body for POST /api/v1/auth/reset/{token}."""

    password: str = Field(max_length=255)


class PostWrite(BaseModel):
    """Request body for POST /api/v1/posts and PUT /api/v1/posts/{id}."""

    title: str = Field(max_length=200)
    content: str = Field(max_length=20000)


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class UserResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    email: str
    display_name: str


class LoginResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    token: str
    user_id: int
    token_type: str = "bearer"
    expires_in: int


class MeResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    user_id: int
    email: str
    display_name: str


class MessageResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    message: str


class ResetDoneResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    user_id: int
    message: str = "Password updated."


class PostResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    title: str
    content: str
    creator_id: int
    created_at: str
    updated_at: str

    @classmethod
    def from_post(cls, post: Post) -> "PostResponse":
        """Factory Method: the domain -> transport mapping lives next to the model."""
        return cls(
            id=post.id,
            title=post.title,
            content=post.content,
            creator_id=post.creator_id,
            created_at=post.created_at,
            updated_at=post.updated_at,
        )


class PostListResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    posts: list[PostResponse]
    total_items: int
    page: int
    total_pages: int


class ErrorField(BaseModel):
    model_config = ConfigDict(frozen=True)

    field: str
    message: str


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None
    fields: list[ErrorField] = Field(default_factory=list)


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /api/v1/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "ok"
    version: str
