"""In-memory repository adapters.

They implement the same ports as the SQLite repos, cascades and conditional
review included, over one shared ``InMemoryStore``. Suitable for component
tests and single-process experiments; nothing is persisted.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID

from src.domain.entities import (
    Comment,
    ContentItem,
    ContentKind,
    ContentRef,
    Event,
    Like,
    ModerationStatus,
    TargetRef,
    User,
)
from src.domain.errors import ValidationError


@dataclass
class InMemoryStore:
    users: dict[UUID, User] = field(default_factory=dict)
    content: dict[ContentRef, ContentItem] = field(default_factory=dict)
    comments: dict[UUID, Comment] = field(default_factory=dict)
    likes: dict[UUID, Like] = field(default_factory=dict)


class InMemoryUserRepo:
    def __init__(self, store: InMemoryStore | None = None) -> None:
        self.store = store or InMemoryStore()

    def get_by_id(self, user_id: UUID) -> User | None:
        return self.store.users.get(user_id)

    def get_by_email(self, email: str) -> User | None:
        return next((u for u in self.store.users.values() if u.email == email), None)

    def get_by_username(self, username: str) -> User | None:
        return next((u for u in self.store.users.values() if u.username == username), None)

    def get_many(self, user_ids: Iterable[UUID]) -> dict[UUID, User]:
        return {uid: self.store.users[uid] for uid in set(user_ids) if uid in self.store.users}

    def list_all(self) -> list[User]:
        return sorted(self.store.users.values(), key=lambda u: u.username)

    def save(self, user: User) -> None:
        for other in self.store.users.values():
            if other.id == user.id:
                continue
            if (
                other.email == user.email
                or other.username == user.username
                or other.registration_number == user.registration_number
            ):
                raise ValidationError("User already exists")
        self.store.users[user.id] = user

    def delete(self, user_id: UUID, *, reassign_reviews_to: UUID) -> bool:
        if user_id not in self.store.users:
            return False
        content = InMemoryContentRepo(self.store)
        for ref in [r for r, i in self.store.content.items() if i.author_id == user_id]:
            content.delete(ref)
        comments = InMemoryCommentRepo(self.store)
        for cid in [c.id for c in self.store.comments.values() if c.author_id == user_id]:
            comments.delete(cid)
        for like_id in [k for k, v in self.store.likes.items() if v.author_id == user_id]:
            del self.store.likes[like_id]

        for ref, item in list(self.store.content.items()):
            changes: dict[str, object] = {}
            if item.reviewer_id == user_id:
                changes["reviewer_id"] = reassign_reviews_to
            if isinstance(item, Event):
                if user_id in item.participants:
                    changes["participants"] = [p for p in item.participants if p != user_id]
                if item.winner_id == user_id:
                    changes["winner_id"] = None
            if changes:
                self.store.content[ref] = item.model_copy(update=changes)
        for cid, comment in list(self.store.comments.items()):
            if comment.reviewer_id == user_id:
                self.store.comments[cid] = comment.model_copy(
                    update={"reviewer_id": reassign_reviews_to}
                )

        del self.store.users[user_id]
        return True


class InMemoryContentRepo:
    def __init__(self, store: InMemoryStore | None = None) -> None:
        self.store = store or InMemoryStore()

    def add(self, item: ContentItem) -> ContentItem:
        self.store.content[item.ref] = item
        return item

    def update(self, item: ContentItem) -> ContentItem:
        current = self.store.content[item.ref]
        kept = {
            "author_id": current.author_id,
            "status": current.status,
            "reviewer_id": current.reviewer_id,
        }
        if isinstance(current, Event):
            kept.update(
                participants=current.participants,
                winner_id=current.winner_id,
                image_url=current.image_url,
            )
        self.store.content[item.ref] = item.model_copy(update=kept)
        return self.store.content[item.ref]

    def get(self, ref: ContentRef) -> ContentItem | None:
        return self.store.content.get(ref)

    def get_many(self, refs: Iterable[ContentRef]) -> dict[ContentRef, ContentItem]:
        return {r: self.store.content[r] for r in set(refs) if r in self.store.content}

    def list_items(
        self,
        kind: ContentKind,
        *,
        status: ModerationStatus | None = None,
        author_id: UUID | None = None,
        participant_id: UUID | None = None,
    ) -> list[ContentItem]:
        items = [i for i in self.store.content.values() if i.kind == kind]
        if status:
            items = [i for i in items if i.status == status]
        if author_id:
            items = [i for i in items if i.author_id == author_id]
        if participant_id:
            items = [
                i for i in items if isinstance(i, Event) and participant_id in i.participants
            ]
        return sorted(items, key=lambda i: i.created_at, reverse=True)

    def set_review(
        self, ref: ContentRef, status: ModerationStatus, reviewer_id: UUID, *, at: datetime
    ) -> bool:
        item = self.store.content.get(ref)
        if item is None or item.status != "PENDING":
            return False
        self.store.content[ref] = item.model_copy(
            update={"status": status, "reviewer_id": reviewer_id, "updated_at": at}
        )
        return True

    def delete(self, ref: ContentRef) -> bool:
        if ref not in self.store.content:
            return False
        doomed = {c.id for c in self.store.comments.values() if c.target == ref}
        doomed_targets = {TargetRef(kind="comment", id=cid) for cid in doomed}
        doomed_targets.add(ref.as_target())
        for like_id in [k for k, v in self.store.likes.items() if v.target in doomed_targets]:
            del self.store.likes[like_id]
        for cid in doomed:
            del self.store.comments[cid]
        del self.store.content[ref]
        return True

    def _event(self, event_id: UUID) -> Event | None:
        item = self.store.content.get(ContentRef(kind="event", id=event_id))
        return item if isinstance(item, Event) else None

    def _replace_event(self, event: Event, **changes: object) -> None:
        self.store.content[event.ref] = event.model_copy(update=changes)

    def add_participant(self, event_id: UUID, user_id: UUID, *, at: datetime) -> None:
        event = self._event(event_id)
        if event and user_id not in event.participants:
            self._replace_event(event, participants=[*event.participants, user_id])

    def remove_participant(self, event_id: UUID, user_id: UUID, *, at: datetime) -> None:
        event = self._event(event_id)
        if not event:
            return
        changes: dict[str, object] = {
            "participants": [p for p in event.participants if p != user_id]
        }
        if event.winner_id == user_id:
            changes.update(winner_id=None, updated_at=at)
        self._replace_event(event, **changes)

    def set_winner(self, event_id: UUID, user_id: UUID | None, *, at: datetime) -> None:
        event = self._event(event_id)
        if event:
            self._replace_event(event, winner_id=user_id, updated_at=at)

    def set_image(self, event_id: UUID, image_url: str | None, *, at: datetime) -> None:
        event = self._event(event_id)
        if event:
            self._replace_event(event, image_url=image_url, updated_at=at)


class InMemoryCommentRepo:
    def __init__(self, store: InMemoryStore | None = None) -> None:
        self.store = store or InMemoryStore()

    def add(self, comment: Comment) -> Comment:
        self.store.comments[comment.id] = comment
        return comment

    def get(self, comment_id: UUID) -> Comment | None:
        return self.store.comments.get(comment_id)

    def list_for_target(
        self, target: ContentRef, *, status: ModerationStatus | None = None
    ) -> list[Comment]:
        found = [c for c in self.store.comments.values() if c.target == target]
        if status:
            found = [c for c in found if c.status == status]
        return sorted(found, key=lambda c: c.created_at)

    def list_all(self) -> list[Comment]:
        return sorted(self.store.comments.values(), key=lambda c: c.created_at, reverse=True)

    def set_review(self, comment_id: UUID, status: ModerationStatus, reviewer_id: UUID) -> bool:
        comment = self.store.comments.get(comment_id)
        if comment is None or comment.status != "PENDING":
            return False
        self.store.comments[comment_id] = comment.model_copy(
            update={"status": status, "reviewer_id": reviewer_id}
        )
        return True

    def delete(self, comment_id: UUID) -> bool:
        comment = self.store.comments.pop(comment_id, None)
        if comment is None:
            return False
        for like_id in [k for k, v in self.store.likes.items() if v.target == comment.ref]:
            del self.store.likes[like_id]
        return True


class InMemoryLikeRepo:
    def __init__(self, store: InMemoryStore | None = None) -> None:
        self.store = store or InMemoryStore()

    def add(self, like: Like) -> Like:
        if self.find(like.author_id, like.target):
            raise ValidationError(f"You already liked this {like.target.kind}")
        self.store.likes[like.id] = like
        return like

    def find(self, author_id: UUID, target: TargetRef) -> Like | None:
        return next(
            (
                v
                for v in self.store.likes.values()
                if v.author_id == author_id and v.target == target
            ),
            None,
        )

    def remove(self, author_id: UUID, target: TargetRef) -> Like | None:
        like = self.find(author_id, target)
        if like:
            del self.store.likes[like.id]
        return like

    def list_for_targets(self, targets: Iterable[TargetRef]) -> list[Like]:
        wanted = set(targets)
        return sorted(
            (v for v in self.store.likes.values() if v.target in wanted),
            key=lambda v: v.created_at,
        )
