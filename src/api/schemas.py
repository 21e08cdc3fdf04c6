from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from src.domain.entities import EventType


class CamelModel(BaseModel):
    """Accepts both ``snake_case`` and ``camelCase`` keys; emits camelCase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# --- Envelope ---
class ApiResponse(CamelModel):
    status_code: int = 200
    message: str = "Success"
    data: Any = None
    success: bool = True


def ok(data: Any = None, message: str = "Success", status_code: int = 200) -> ApiResponse:
    return ApiResponse(status_code=status_code, message=message, data=data, success=True)


# --- Users ---
class RegisterRequest(CamelModel):
    registration_number: str
    fullname: str
    username: str
    email: str
    password: str


class LoginRequest(CamelModel):
    email: str
    password: str


class LoginResponse(CamelModel):
    user: Any
    access_token: str
    token_type: str = "bearer"


class ProfileUpdateRequest(CamelModel):
    fullname: str | None = None
    bio: str | None = None
    skills: list[str] | None = None
    social_links: dict[str, str] | None = None


class PasswordChangeRequest(CamelModel):
    current_password: str
    new_password: str


class RoleChangeRequest(CamelModel):
    role: str


# --- Content ---
class BlogCreateRequest(CamelModel):
    title: str
    body: str
    tags: list[str] = Field(default_factory=list)


class BlogUpdateRequest(CamelModel):
    title: str | None = None
    body: str | None = None
    tags: list[str] | None = None


class ProjectCreateRequest(CamelModel):
    title: str
    description: str
    source_link: str
    deployed_link: str | None = None
    tech_stack: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)


class ProjectUpdateRequest(CamelModel):
    title: str | None = None
    description: str | None = None
    source_link: str | None = None
    deployed_link: str | None = None
    tech_stack: list[str] | None = None
    tags: list[str] | None = None


class EventCreateRequest(CamelModel):
    title: str
    description: str
    date: datetime
    venue: str
    event_type: EventType = "OTHERS"
    duration_minutes: int
    tags: list[str] = Field(default_factory=list)


class EventUpdateRequest(CamelModel):
    title: str | None = None
    description: str | None = None
    date: datetime | None = None
    venue: str | None = None
    event_type: EventType | None = None
    duration_minutes: int | None = None
    tags: list[str] | None = None


class WinnerRequest(CamelModel):
    winner_id: UUID


# --- Moderation / Reactions ---
class ReviewRequest(CamelModel):
    # Validated by the state machine, so a bad value is a transition error
    status: str | None = None


class CommentCreateRequest(CamelModel):
    content: str
