"""
Views component - read snapshots for items, listings, event detail and profiles.

Every assembler follows the same three reads, then merges in memory:

1. fetch the content (and, for event detail, its approved comments),
2. fetch every like on every target in the response in ONE query,
3. fetch every referenced identity in ONE query.

There are no per-item lookups. All counts in one response come from the
same like read, so they agree with each other. The content read and the
like read are separate statements: a like added or an item deleted between
them is either reflected or not. That window is accepted; the snapshot is
eventually consistent, never partially merged.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
from typing import Any
from uuid import UUID

from src.components.reactions import ListCommentsInput, run_list_comments
from src.domain.entities import (
    Comment,
    ContentItem,
    ContentKind,
    ContentRef,
    Event,
    Like,
    TargetRef,
    User,
    UserProjection,
)
from src.domain.errors import Forbidden, NotFound
from src.domain.policy import PolicyEngine

from .models import (
    AccountView,
    BlogView,
    CommentAdminView,
    CommentView,
    ContentView,
    EventDetailView,
    EventView,
    ItemViewInput,
    ListingInput,
    ProfileInput,
    ProfileView,
    ProjectView,
    PublicUserView,
    ReactedBlogView,
    ReactedEventView,
    ReactedProjectView,
)
from .ports import CommentRepoPort, ContentRepoPort, LikeRepoPort, UserRepoPort

LISTING_VIEWS: dict[ContentKind, type[ContentView]] = {
    "blog": BlogView,
    "project": ProjectView,
    "event": EventView,
}

DETAIL_VIEWS: dict[ContentKind, type[ContentView]] = {
    "blog": ReactedBlogView,
    "project": ReactedProjectView,
    "event": EventDetailView,
}

PROFILE_VIEWS: dict[ContentKind, type[ContentView]] = {
    "blog": ReactedBlogView,
    "project": ReactedProjectView,
    "event": ReactedEventView,
}


class ReactionIndex:
    """Like counts and the viewer's own likes, from a single like read."""

    def __init__(self, likes: Iterable[Like], viewer: User | None):
        self.counts: Counter[TargetRef] = Counter()
        self.mine: set[TargetRef] = set()
        for like in likes:
            self.counts[like.target] += 1
            if viewer is not None and like.author_id == viewer.id:
                self.mine.add(like.target)

    def stats(self, target: TargetRef) -> dict[str, Any]:
        return {"like_count": self.counts[target], "viewer_has_liked": target in self.mine}


# --- Identity merge ---


def _user_ids(items: Iterable[ContentItem], comments: Iterable[Comment] = ()) -> set[UUID]:
    ids: set[UUID] = set()
    for item in items:
        ids.add(item.author_id)
        if item.reviewer_id:
            ids.add(item.reviewer_id)
        if isinstance(item, Event):
            ids.update(item.participants)
            if item.winner_id:
                ids.add(item.winner_id)
    for comment in comments:
        ids.add(comment.author_id)
        if comment.reviewer_id:
            ids.add(comment.reviewer_id)
    return ids


def _project(users: dict[UUID, User], user_id: UUID | None) -> UserProjection | None:
    if user_id is None or user_id not in users:
        return None
    return UserProjection.of(users[user_id])


def _content_data(item: ContentItem, users: dict[UUID, User]) -> dict[str, Any]:
    data = item.model_dump(exclude={"author_id", "reviewer_id", "participants", "winner_id"})
    data["author"] = _project(users, item.author_id)
    data["reviewer"] = _project(users, item.reviewer_id)
    if isinstance(item, Event):
        projected = (_project(users, uid) for uid in item.participants)
        data["participants"] = [p for p in projected if p is not None]
        data["winner"] = _project(users, item.winner_id)
    return data


def _comment_view(
    comment: Comment, users: dict[UUID, User], reactions: ReactionIndex
) -> CommentView:
    return CommentView(
        id=comment.id,
        content=comment.content,
        status=comment.status,
        author=_project(users, comment.author_id),
        created_at=comment.created_at,
        **reactions.stats(comment.ref),
    )


def public_user_view(user: User) -> PublicUserView:
    return PublicUserView.model_validate(user.model_dump(exclude={"password_hash"}))


def account_view(user: User) -> AccountView:
    return AccountView.model_validate(user.model_dump(exclude={"password_hash"}))


# --- Assemblers ---


def assemble_item(
    inp: ItemViewInput,
    *,
    content_repo: ContentRepoPort,
    comment_repo: CommentRepoPort,
    like_repo: LikeRepoPort,
    user_repo: UserRepoPort,
    policy: PolicyEngine,
) -> ContentView:
    """
    Detail view with author, reviewer and reaction stats.

    Events also carry their approved comments. Items that are not APPROVED
    are reported as NotFound unless the viewer is the author or an admin.
    """
    item = content_repo.get(ContentRef(kind=inp.kind, id=inp.item_id))
    if item is None or not policy.can_view(inp.viewer, item):
        raise NotFound(f"{inp.kind.capitalize()} not found")

    comments: list[Comment] = []
    if isinstance(item, Event):
        comments = comment_repo.list_for_target(item.ref, status="APPROVED")

    targets = [item.ref.as_target(), *(c.ref for c in comments)]
    reactions = ReactionIndex(like_repo.list_for_targets(targets), inp.viewer)
    users = user_repo.get_many(_user_ids([item], comments))

    data = _content_data(item, users)
    data.update(reactions.stats(item.ref.as_target()))
    if isinstance(item, Event):
        data["comments"] = [_comment_view(c, users, reactions) for c in comments]
    return DETAIL_VIEWS[item.kind].model_validate(data)


def assemble_listing(
    inp: ListingInput,
    *,
    content_repo: ContentRepoPort,
    user_repo: UserRepoPort,
    policy: PolicyEngine,
) -> list[ContentView]:
    """Projections only: no like counts, no comments. Newest first."""
    if not inp.approved_only and not policy.is_admin(inp.viewer):
        raise Forbidden(f"Only admins can list every {inp.kind}")

    status = "APPROVED" if inp.approved_only else None
    items = content_repo.list_items(inp.kind, status=status)
    users = user_repo.get_many(_user_ids(items))
    view = LISTING_VIEWS[inp.kind]
    return [view.model_validate(_content_data(i, users)) for i in items]


def assemble_projection(item: ContentItem, *, user_repo: UserRepoPort) -> ContentView:
    """Listing projection of a single item."""
    users = user_repo.get_many(_user_ids([item]))
    return LISTING_VIEWS[item.kind].model_validate(_content_data(item, users))


def assemble_profile(
    inp: ProfileInput,
    *,
    content_repo: ContentRepoPort,
    like_repo: LikeRepoPort,
    user_repo: UserRepoPort,
) -> ProfileView:
    """A user's approved blogs and projects, plus the approved events they take part in."""
    user = user_repo.get_by_username(inp.username)
    if user is None:
        raise NotFound("User not found")

    blogs = content_repo.list_items("blog", status="APPROVED", author_id=user.id)
    projects = content_repo.list_items("project", status="APPROVED", author_id=user.id)
    events = content_repo.list_items("event", status="APPROVED", participant_id=user.id)
    items = [*blogs, *projects, *events]

    reactions = ReactionIndex(
        like_repo.list_for_targets(i.ref.as_target() for i in items), inp.viewer
    )
    users = user_repo.get_many(_user_ids(items))

    def _reacted(item: ContentItem) -> Any:
        data = _content_data(item, users)
        data.update(reactions.stats(item.ref.as_target()))
        return PROFILE_VIEWS[item.kind].model_validate(data)

    return ProfileView(
        user=public_user_view(user),
        blogs=[_reacted(b) for b in blogs],
        projects=[_reacted(p) for p in projects],
        events=[_reacted(e) for e in events],
    )


def assemble_comments(
    inp: ListCommentsInput,
    *,
    content_repo: ContentRepoPort,
    comment_repo: CommentRepoPort,
    user_repo: UserRepoPort,
    policy: PolicyEngine,
) -> list[CommentAdminView]:
    """Admin listing of every comment with its target title."""
    comments = run_list_comments(inp, comment_repo=comment_repo, policy=policy)
    targets = content_repo.get_many({c.target for c in comments})
    users = user_repo.get_many(_user_ids([], comments))

    views = []
    for c in comments:
        target = targets.get(c.target)
        views.append(
            CommentAdminView(
                id=c.id,
                content=c.content,
                status=c.status,
                target_kind=c.target.kind,
                target_id=c.target.id,
                target_title=target.title if target else None,
                author=_project(users, c.author_id),
                reviewer=_project(users, c.reviewer_id),
                created_at=c.created_at,
            )
        )
    return views
