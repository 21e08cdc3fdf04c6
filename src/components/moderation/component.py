"""
Moderation component - the single write path out of PENDING.

Preconditions are checked in order: admin capability (Forbidden), target
exists (NotFound), requested status is a decision (InvalidStateTransition),
target is still PENDING (InvalidStateTransition). The store write is a
conditional update, so of two concurrent reviews only one lands; the other
surfaces as InvalidStateTransition.
"""

import logging

from src.domain.entities import Comment, ContentItem, ModeratedItem
from src.domain.errors import Forbidden, InvalidStateTransition, NotFound
from src.domain.policy import PolicyEngine
from src.domain.state import parse_decision, review

from .models import ReviewCommentInput, ReviewContentInput
from .ports import ClockPort, CommentRepoPort, ContentRepoPort

logger = logging.getLogger(__name__)


def _lost_race(item: ModeratedItem) -> InvalidStateTransition:
    label = type(item).__name__.lower()
    return InvalidStateTransition(f"Already reviewed: this {label} is no longer PENDING")


def run_review_content(
    inp: ReviewContentInput,
    *,
    repo: ContentRepoPort,
    policy: PolicyEngine,
    clock: ClockPort,
) -> ContentItem:
    if not policy.can_review(inp.actor):
        raise Forbidden("Only admins can review content")

    item = repo.get(inp.ref)
    if item is None:
        raise NotFound(f"{inp.ref.kind.capitalize()} not found")

    decision = parse_decision(inp.status)
    now = clock.now_utc()
    reviewed = review(item, decision, inp.actor.id).model_copy(update={"updated_at": now})
    if not repo.set_review(item.ref, decision, inp.actor.id, at=now):
        raise _lost_race(item)

    logger.info("%s %s %s by %s", item.kind, item.id, decision, inp.actor.id)
    return reviewed


def run_review_comment(
    inp: ReviewCommentInput,
    *,
    repo: CommentRepoPort,
    policy: PolicyEngine,
) -> Comment:
    if not policy.can_review(inp.actor):
        raise Forbidden("Only admins can review comments")

    comment = repo.get(inp.comment_id)
    if comment is None:
        raise NotFound("Comment not found")

    decision = parse_decision(inp.status)
    reviewed = review(comment, decision, inp.actor.id)
    if not repo.set_review(comment.id, decision, inp.actor.id):
        raise _lost_race(comment)

    logger.info("comment %s %s by %s", comment.id, decision, inp.actor.id)
    return reviewed
