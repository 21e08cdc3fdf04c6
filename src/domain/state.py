from typing import TypeVar, cast
from uuid import UUID

from src.domain.entities import ModeratedItem, ModerationStatus
from src.domain.errors import InvalidStateTransition

M = TypeVar("M", bound=ModeratedItem)

# PENDING is the only state with outgoing edges; APPROVED and REJECTED are terminal.
TRANSITIONS: dict[ModerationStatus, tuple[ModerationStatus, ...]] = {
    "PENDING": ("APPROVED", "REJECTED"),
    "APPROVED": (),
    "REJECTED": (),
}


def can_transition(current: ModerationStatus, new: str) -> bool:
    """
    Determine if a moderation decision is allowed from ``current``.
    """
    return new in TRANSITIONS.get(current, ())


def parse_decision(value: str | None) -> ModerationStatus:
    """
    Validate a reviewer's requested status.

    Only APPROVED and REJECTED are decisions; PENDING or anything unknown
    raises InvalidStateTransition.
    """
    if not value:
        raise InvalidStateTransition("Status is required")
    normalized = value.strip().upper()
    if normalized not in ("APPROVED", "REJECTED"):
        raise InvalidStateTransition(f"Invalid status: {value}")
    return cast(ModerationStatus, normalized)


def review(item: M, new_status: str, reviewer_id: UUID) -> M:
    """
    Return a NEW item carrying the decision and the reviewer.

    Raises InvalidStateTransition if the status is not a decision or the item
    has already been reviewed.
    """
    decision = parse_decision(new_status)
    if not can_transition(item.status, decision):
        raise InvalidStateTransition(f"Already reviewed: {item.status} is final")
    return item.model_copy(update={"status": decision, "reviewer_id": reviewer_id})
