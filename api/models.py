"""
API request and response models for the TodoList REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py and
todos/models.py, which own the internal domain representation. Route handlers
map between the two.

Todo payloads use camelCase on the wire (isCompleted, createdAt) to match the
browser client; populate_by_name lets Python callers use snake_case too.

Field-level limits here are transport hygiene only. The rules that matter --
password policy, title trimming, ownership -- are enforced by auth/credentials.py
and todos/service.py, not by these annotations.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from todos.models import TodoItem

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

# Deliberately loose: one "@", no whitespace, a dot in the domain part.
EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


# ---------------------------------------------------------------------------
# Auth -- request models
# ---------------------------------------------------------------------------


class RegisterRequest(BaseModel):
    """Request body for POST /api/v1/auth/register."""

    email: str = Field(max_length=256, pattern=EMAIL_PATTERN)
    # Never stripped: login compares the password byte-for-byte.
    password: str = Field(min_length=1, max_length=100)


class LoginRequest(BaseModel):
    """Request body for POST /api/v1/auth/login."""

    email: str = Field(min_length=1, max_length=256)
    password: str = Field(min_length=1, max_length=100)


# ---------------------------------------------------------------------------
# Auth -- response models
# ---------------------------------------------------------------------------


class LoginResponse(BaseModel):
    """Response for a successful login. The token goes in Authorization: Bearer."""

    model_config = ConfigDict(frozen=True)

    token: str
    email: str


class MessageResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    message: str


class MeResponse(BaseModel):
    """Identity extracted from the caller's validated token."""

    model_config = ConfigDict(frozen=True)

    id: str
    email: str


# ---------------------------------------------------------------------------
# Todos
# ---------------------------------------------------------------------------


class TodoCreate(BaseModel):
    """Request body for POST /api/v1/todos."""

    title: str


class TodoUpdate(BaseModel):
    """Request body for PUT /api/v1/todos/{id}. Both fields are replaced."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    title: str
    is_completed: bool = False


class TodoResponse(BaseModel):
    """Client projection of a TodoItem. owner_id is never included."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str
    title: str
    is_completed: bool
    created_at: str

    @classmethod
    def from_item(cls, item: TodoItem) -> "TodoResponse":
        return cls(
            id=item.id,
            title=item.title,
            is_completed=item.is_completed,
            created_at=item.created_at,
        )


# ---------------------------------------------------------------------------
# Errors and health
# ---------------------------------------------------------------------------


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /api/v1/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str] = Field(default_factory=dict)
