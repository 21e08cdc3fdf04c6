from dataclasses import dataclass
from uuid import UUID

from src.domain.entities import ContentRef, User


@dataclass(frozen=True)
class ReviewContentInput:
    actor: User
    ref: ContentRef
    status: str | None


@dataclass(frozen=True)
class ReviewCommentInput:
    actor: User
    comment_id: UUID
    status: str | None
