from datetime import UTC, datetime
from typing import Annotated, Literal
from uuid import UUID, uuid4

from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)

# --- Enums / Literals ---
RoleType = Literal["ADMIN", "USER", "ALUMNI"]
ModerationStatus = Literal["PENDING", "APPROVED", "REJECTED"]
ContentKind = Literal["blog", "project", "event"]
TargetKind = Literal["blog", "project", "event", "comment"]
EventType = Literal["QUIZ", "DSA", "HACKATHON", "TECHFEST", "OTHERS"]
SocialPlatform = Literal[
    "github", "linkedin", "twitter", "facebook", "instagram", "portfolio", "discord"
]


def ordered_set(values: list[str] | None) -> list[str]:
    """Trim, drop blanks and duplicates, keep first-seen order."""
    seen: dict[str, None] = {}
    for value in values or []:
        v = value.strip()
        if v:
            seen.setdefault(v, None)
    return list(seen)


OrderedSet = Annotated[list[str], AfterValidator(ordered_set)]


def utcnow() -> datetime:
    return datetime.now(UTC)


# --- Identity ---

class User(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    registration_number: str
    fullname: str
    username: str
    email: str
    password_hash: str
    role: RoleType = "USER"
    bio: str = ""
    avatar: str | None = None
    skills: OrderedSet = Field(default_factory=list)
    social_links: dict[SocialPlatform, str] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @property
    def is_admin(self) -> bool:
        return self.role == "ADMIN"


class UserProjection(BaseModel):
    """The only slice of a User that is embedded in read models."""

    id: UUID
    fullname: str
    username: str
    avatar: str | None = None
    email: str
    role: RoleType

    @classmethod
    def of(cls, user: User) -> "UserProjection":
        return cls(
            id=user.id,
            fullname=user.fullname,
            username=user.username,
            avatar=user.avatar,
            email=user.email,
            role=user.role,
        )


# --- Polymorphic references ---

class TargetRef(BaseModel):
    """Anything a Like can point at."""

    model_config = ConfigDict(frozen=True)

    kind: TargetKind
    id: UUID

    def as_content(self) -> "ContentRef":
        if self.kind == "comment":
            raise ValueError("A comment is not a content item")
        return ContentRef(kind=self.kind, id=self.id)


class ContentRef(BaseModel):
    """Anything a Comment can point at (a content item, never another comment)."""

    model_config = ConfigDict(frozen=True)

    kind: ContentKind
    id: UUID

    def as_target(self) -> TargetRef:
        return TargetRef(kind=self.kind, id=self.id)


# --- Content ---

class ModeratedItem(BaseModel):
    """Shared moderation fields: reviewer is set iff the status left PENDING."""

    status: ModerationStatus = "PENDING"
    reviewer_id: UUID | None = None

    @model_validator(mode="after")
    def _reviewer_matches_status(self) -> "ModeratedItem":
        if (self.status == "PENDING") != (self.reviewer_id is None):
            raise ValueError("reviewer_id must be set exactly when status is not PENDING")
        return self


class ContentItem(ModeratedItem):
    kind: ContentKind
    id: UUID = Field(default_factory=uuid4)
    author_id: UUID
    title: str
    tags: OrderedSet = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @property
    def ref(self) -> ContentRef:
        return ContentRef(kind=self.kind, id=self.id)

    @property
    def body_text(self) -> str:
        raise NotImplementedError


class Blog(ContentItem):
    kind: Literal["blog"] = "blog"
    body: str

    @property
    def body_text(self) -> str:
        return self.body


class Project(ContentItem):
    kind: Literal["project"] = "project"
    description: str
    source_link: str
    deployed_link: str | None = None
    tech_stack: OrderedSet = Field(default_factory=list)

    @property
    def body_text(self) -> str:
        return self.description


class Event(ContentItem):
    kind: Literal["event"] = "event"
    description: str
    date: datetime
    venue: str
    event_type: EventType = "OTHERS"
    duration_minutes: int
    image_url: str | None = None
    participants: list[UUID] = Field(default_factory=list)
    winner_id: UUID | None = None

    @field_validator("participants")
    @classmethod
    def _unique_participants(cls, value: list[UUID]) -> list[UUID]:
        return list(dict.fromkeys(value))

    @property
    def body_text(self) -> str:
        return self.description


CONTENT_TYPES: dict[ContentKind, type[ContentItem]] = {
    "blog": Blog,
    "project": Project,
    "event": Event,
}


# --- Reactions ---

class Comment(ModeratedItem):
    id: UUID = Field(default_factory=uuid4)
    author_id: UUID
    content: str
    target: ContentRef
    created_at: datetime = Field(default_factory=utcnow)

    @property
    def ref(self) -> TargetRef:
        return TargetRef(kind="comment", id=self.id)


class Like(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    author_id: UUID
    target: TargetRef
    created_at: datetime = Field(default_factory=utcnow)
