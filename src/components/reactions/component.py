"""
Reactions component - likes and comments on any target kind.

A like points at a blog, project, event or comment; a comment points at a
blog, project or event. Both targets are tagged references, so "exactly one
target" holds by construction. At most one like per (author, target): the
store enforces it and a duplicate is a ValidationError. ``unlike`` deletes
exactly one row and fails with NotFound when there is none.
"""

import logging

from src.domain.entities import Comment, Like, TargetRef, User
from src.domain.errors import Forbidden, NotFound, ValidationError
from src.domain.policy import PolicyEngine
from src.rules.models import Rules

from .models import CreateCommentInput, DeleteCommentInput, LikeInput, ListCommentsInput
from .ports import ClockPort, CommentRepoPort, ContentRepoPort, LikeRepoPort

logger = logging.getLogger(__name__)


def ensure_target_visible(
    actor: User,
    target: TargetRef,
    *,
    content_repo: ContentRepoPort,
    comment_repo: CommentRepoPort,
    policy: PolicyEngine,
) -> None:
    """
    Missing and hidden targets look the same: both are NotFound.

    A comment is visible when it and the item it sits on are both visible.
    """
    if target.kind == "comment":
        comment = comment_repo.get(target.id)
        if comment is None or not policy.can_view_comment(actor, comment):
            raise NotFound("Comment not found")
        ref = comment.target
    else:
        ref = target.as_content()
    item = content_repo.get(ref)
    if item is None or not policy.can_view(actor, item):
        raise NotFound(f"{target.kind.capitalize()} not found")


def run_like(
    inp: LikeInput,
    *,
    likes: LikeRepoPort,
    content_repo: ContentRepoPort,
    comment_repo: CommentRepoPort,
    policy: PolicyEngine,
    clock: ClockPort,
) -> Like:
    if not policy.check_permission(inp.actor, "reaction:like"):
        raise Forbidden("You are not allowed to like content")

    ensure_target_visible(
        inp.actor,
        inp.target,
        content_repo=content_repo,
        comment_repo=comment_repo,
        policy=policy,
    )
    like = Like(author_id=inp.actor.id, target=inp.target, created_at=clock.now_utc())
    return likes.add(like)


def run_unlike(inp: LikeInput, *, likes: LikeRepoPort) -> Like:
    removed = likes.remove(inp.actor.id, inp.target)
    if removed is None:
        raise NotFound(f"You have not liked this {inp.target.kind}")
    return removed


def run_create_comment(
    inp: CreateCommentInput,
    *,
    comment_repo: CommentRepoPort,
    content_repo: ContentRepoPort,
    policy: PolicyEngine,
    rules: Rules,
    clock: ClockPort,
) -> Comment:
    """New comments start PENDING and stay hidden until approved.

    Only items the caller can see take comments; the rest are NotFound.
    """
    if not policy.check_permission(inp.actor, "reaction:comment"):
        raise Forbidden("You are not allowed to comment")

    item = content_repo.get(inp.target)
    if item is None or not policy.can_view(inp.actor, item):
        raise NotFound(f"{inp.target.kind.capitalize()} not found")

    text = (inp.content or "").strip()
    limits = rules.comments.content
    if len(text) < limits.min:
        raise ValidationError("Comment content is required")
    if len(text) > limits.max:
        raise ValidationError(f"Comment must be at most {limits.max} characters")

    comment = Comment(
        author_id=inp.actor.id,
        content=text,
        target=inp.target,
        created_at=clock.now_utc(),
    )
    return comment_repo.add(comment)


def run_delete_comment(
    inp: DeleteCommentInput,
    *,
    comment_repo: CommentRepoPort,
    policy: PolicyEngine,
) -> Comment:
    """Author or admin. The comment's likes go with it."""
    comment = comment_repo.get(inp.comment_id)
    if comment is None:
        raise NotFound("Comment not found")
    if not policy.can_delete(inp.actor, comment):
        raise Forbidden("You are not allowed to delete this comment")

    if not comment_repo.delete(comment.id):
        raise NotFound("Comment not found")
    logger.info("comment %s deleted by %s", comment.id, inp.actor.id)
    return comment


def run_list_comments(
    inp: ListCommentsInput,
    *,
    comment_repo: CommentRepoPort,
    policy: PolicyEngine,
) -> list[Comment]:
    """Every comment in every status, newest first. Admin only."""
    if not policy.is_admin(inp.actor):
        raise Forbidden("Only admins can list all comments")
    return comment_repo.list_all()
