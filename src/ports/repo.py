from collections.abc import Iterable
from datetime import datetime
from typing import Protocol
from uuid import UUID

from src.domain.entities import (
    Comment,
    ContentItem,
    ContentKind,
    ContentRef,
    Like,
    ModerationStatus,
    TargetRef,
    User,
)


class UserRepoPort(Protocol):
    def get_by_id(self, user_id: UUID) -> User | None:
        ...

    def get_by_email(self, email: str) -> User | None:
        ...

    def get_by_username(self, username: str) -> User | None:
        ...

    def get_many(self, user_ids: Iterable[UUID]) -> dict[UUID, User]:
        """Resolve many identities in one query."""
        ...

    def list_all(self) -> list[User]:
        ...

    def save(self, user: User) -> None:
        """Insert or update. Raises ValidationError on a unique-field clash."""
        ...

    def delete(self, user_id: UUID, *, reassign_reviews_to: UUID) -> bool:
        """
        Delete the user and everything they authored, in one transaction.

        Their content (with its reactions), their comments (with their likes),
        their likes and their event memberships go. Events they won lose their
        winner. Reviews they made are re-attributed to ``reassign_reviews_to``.
        """
        ...


class ContentRepoPort(Protocol):
    def add(self, item: ContentItem) -> ContentItem:
        ...

    def update(self, item: ContentItem) -> ContentItem:
        """Persist editable fields. Author and moderation fields are left alone."""
        ...

    def get(self, ref: ContentRef) -> ContentItem | None:
        ...

    def get_many(self, refs: Iterable[ContentRef]) -> dict[ContentRef, ContentItem]:
        ...

    def list_items(
        self,
        kind: ContentKind,
        *,
        status: ModerationStatus | None = None,
        author_id: UUID | None = None,
        participant_id: UUID | None = None,
    ) -> list[ContentItem]:
        """Newest first."""
        ...

    def set_review(
        self, ref: ContentRef, status: ModerationStatus, reviewer_id: UUID, *, at: datetime
    ) -> bool:
        """Conditional update: applies only while the row is PENDING. Stamps updated_at."""
        ...

    def delete(self, ref: ContentRef) -> bool:
        """Delete the item together with its likes, its comments and their likes."""
        ...

    def add_participant(self, event_id: UUID, user_id: UUID, *, at: datetime) -> None:
        ...

    def remove_participant(self, event_id: UUID, user_id: UUID, *, at: datetime) -> None:
        """Leave the event; a departing winner is cleared in the same write."""
        ...

    def set_winner(self, event_id: UUID, user_id: UUID | None, *, at: datetime) -> None:
        ...

    def set_image(self, event_id: UUID, image_url: str | None, *, at: datetime) -> None:
        ...


class CommentRepoPort(Protocol):
    def add(self, comment: Comment) -> Comment:
        ...

    def get(self, comment_id: UUID) -> Comment | None:
        ...

    def list_for_target(
        self, target: ContentRef, *, status: ModerationStatus | None = None
    ) -> list[Comment]:
        """Oldest first."""
        ...

    def list_all(self) -> list[Comment]:
        ...

    def set_review(
        self, comment_id: UUID, status: ModerationStatus, reviewer_id: UUID
    ) -> bool:
        """Conditional update: applies only while the row is PENDING."""
        ...

    def delete(self, comment_id: UUID) -> bool:
        """Delete the comment and the likes pointing at it."""
        ...


class LikeRepoPort(Protocol):
    def add(self, like: Like) -> Like:
        """Raises ValidationError if the author already likes the target."""
        ...

    def find(self, author_id: UUID, target: TargetRef) -> Like | None:
        ...

    def remove(self, author_id: UUID, target: TargetRef) -> Like | None:
        """Delete and return the matching row, or None if there was none."""
        ...

    def list_for_targets(self, targets: Iterable[TargetRef]) -> list[Like]:
        """Every like on any of the targets, in a single read."""
        ...
