from dataclasses import dataclass
from uuid import UUID

from src.domain.entities import ContentRef, TargetRef, User


@dataclass(frozen=True)
class LikeInput:
    """Used for both like and unlike."""

    actor: User
    target: TargetRef


@dataclass(frozen=True)
class CreateCommentInput:
    actor: User
    target: ContentRef
    content: str


@dataclass(frozen=True)
class DeleteCommentInput:
    actor: User
    comment_id: UUID


@dataclass(frozen=True)
class ListCommentsInput:
    actor: User
