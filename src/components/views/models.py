"""
Read models returned by the view assembler.

Serialized with camelCase aliases (``likeCount``, ``viewerHasLiked``...).
Identities only ever appear as ``UserProjection``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from src.domain.entities import (
    ContentKind,
    EventType,
    ModerationStatus,
    RoleType,
    SocialPlatform,
    User,
    UserProjection,
)

# --- Inputs ---


@dataclass(frozen=True)
class ItemViewInput:
    viewer: User | None
    kind: ContentKind
    item_id: UUID


@dataclass(frozen=True)
class ListingInput:
    """``approved_only=False`` is the admin listing of every status."""

    viewer: User | None
    kind: ContentKind
    approved_only: bool = True


@dataclass(frozen=True)
class ProfileInput:
    viewer: User | None
    username: str


# --- Views ---


class ViewModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ReactionStats(ViewModel):
    like_count: int = 0
    viewer_has_liked: bool = False


class ContentView(ViewModel):
    id: UUID
    kind: ContentKind
    title: str
    tags: list[str] = Field(default_factory=list)
    status: ModerationStatus
    author: UserProjection | None = None
    reviewer: UserProjection | None = None
    created_at: datetime
    updated_at: datetime


class BlogView(ContentView):
    body: str


class ProjectView(ContentView):
    description: str
    source_link: str
    deployed_link: str | None = None
    tech_stack: list[str] = Field(default_factory=list)


class EventView(ContentView):
    description: str
    date: datetime
    venue: str
    event_type: EventType
    duration_minutes: int
    image_url: str | None = None
    participants: list[UserProjection] = Field(default_factory=list)
    winner: UserProjection | None = None


class ReactedBlogView(BlogView, ReactionStats):
    pass


class ReactedProjectView(ProjectView, ReactionStats):
    pass


class ReactedEventView(EventView, ReactionStats):
    pass


class CommentView(ReactionStats):
    id: UUID
    content: str
    status: ModerationStatus
    author: UserProjection | None = None
    created_at: datetime


class EventDetailView(ReactedEventView):
    """Event detail: approved comments only, each with its own reaction stats."""

    comments: list[CommentView] = Field(default_factory=list)


class CommentAdminView(ViewModel):
    id: UUID
    content: str
    status: ModerationStatus
    target_kind: ContentKind
    target_id: UUID
    target_title: str | None = None
    author: UserProjection | None = None
    reviewer: UserProjection | None = None
    created_at: datetime


class PublicUserView(ViewModel):
    id: UUID
    fullname: str
    username: str
    email: str
    role: RoleType
    avatar: str | None = None
    bio: str = ""
    skills: list[str] = Field(default_factory=list)
    social_links: dict[SocialPlatform, str] = Field(default_factory=dict)
    created_at: datetime


class AccountView(PublicUserView):
    """What a user sees about themselves."""

    registration_number: str
    updated_at: datetime


class ProfileView(ViewModel):
    user: PublicUserView
    blogs: list[ReactedBlogView] = Field(default_factory=list)
    projects: list[ReactedProjectView] = Field(default_factory=list)
    events: list[ReactedEventView] = Field(default_factory=list)
