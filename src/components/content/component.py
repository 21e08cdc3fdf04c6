"""
Content component - blog, project and event lifecycle.

Creation always starts in PENDING; moderation lives in the moderation
component. Update and delete use the ownership predicate (author, or any
caller holding the admin capability). Event membership is a set: joining
twice is a no-op, leaving when absent is a no-op.

Deleting an item removes its likes, its comments and the likes on those
comments in one transaction (see SQLiteContentRepo.delete), then drops the
event image from the blob store.
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from src.domain.entities import CONTENT_TYPES, ContentItem, ContentKind, ContentRef, Event
from src.domain.errors import (
    DependencyFailure,
    Forbidden,
    NotFound,
    ValidationError,
    describe_pydantic_error,
)
from src.domain.policy import PolicyEngine
from src.domain.uploads import validate_image_upload
from src.rules.models import ContentRules, Rules

from .models import (
    CreateContentInput,
    DeclareWinnerInput,
    DeleteContentInput,
    EventMembershipInput,
    SetEventImageInput,
    UpdateContentInput,
)
from .ports import BlobStorePort, ClockPort, ContentRepoPort

logger = logging.getLogger(__name__)

# Fields a caller may set on create/update, per kind. Author, moderation
# fields, participants, winner and image have their own operations.
EDITABLE_FIELDS: dict[ContentKind, frozenset[str]] = {
    "blog": frozenset({"title", "body", "tags"}),
    "project": frozenset(
        {"title", "description", "source_link", "deployed_link", "tech_stack", "tags"}
    ),
    "event": frozenset(
        {"title", "description", "date", "venue", "event_type", "duration_minutes", "tags"}
    ),
}


# --- Validation ---


def _check_fields(kind: ContentKind, fields: dict[str, Any]) -> None:
    unknown = sorted(set(fields) - EDITABLE_FIELDS[kind])
    if unknown:
        raise ValidationError(f"Field '{unknown[0]}' cannot be set on a {kind}")


def _strip_strings(fields: dict[str, Any]) -> dict[str, Any]:
    return {k: v.strip() if isinstance(v, str) else v for k, v in fields.items()}


def _build(kind: ContentKind, data: dict[str, Any]) -> ContentItem:
    try:
        return CONTENT_TYPES[kind].model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError(describe_pydantic_error(e)) from e


def validate_content(item: ContentItem, limits: ContentRules) -> None:
    """Length and count limits from rules.yaml, plus per-kind requirements."""
    title = item.title.strip()
    if len(title) < limits.title.min:
        raise ValidationError("Title is required")
    if len(title) > limits.title.max:
        raise ValidationError(f"Title must be at most {limits.title.max} characters")

    body = item.body_text.strip()
    if len(body) < limits.body.min:
        label = "Content" if item.kind == "blog" else "Description"
        raise ValidationError(f"{label} is required")
    if len(body) > limits.body.max:
        raise ValidationError(f"Content must be at most {limits.body.max} characters")

    if len(item.tags) > limits.max_tags:
        raise ValidationError(f"At most {limits.max_tags} tags are allowed")

    if isinstance(item, Event):
        if not item.venue.strip():
            raise ValidationError("Venue is required")
        if item.duration_minutes <= 0:
            raise ValidationError("Duration must be positive")


# --- Lookups ---


def _get_or_404(repo: ContentRepoPort, ref: ContentRef) -> ContentItem:
    item = repo.get(ref)
    if item is None:
        raise NotFound(f"{ref.kind.capitalize()} not found")
    return item


def _get_event_or_404(repo: ContentRepoPort, event_id: Any) -> Event:
    item = _get_or_404(repo, ContentRef(kind="event", id=event_id))
    assert isinstance(item, Event)
    return item


def _drop_blob(blobs: BlobStorePort, url: str | None) -> None:
    """Remove a blob whose row is already gone; a failure leaves an orphan file."""
    if not url:
        return
    try:
        blobs.delete(url)
    except DependencyFailure:
        logger.warning("Orphaned blob left behind: %s", url)


# --- Component Entry Points ---


def run_create(
    inp: CreateContentInput,
    *,
    repo: ContentRepoPort,
    policy: PolicyEngine,
    rules: Rules,
    clock: ClockPort,
) -> ContentItem:
    """Create a PENDING item authored by ``inp.actor``."""
    if not policy.check_permission(inp.actor, "content:create"):
        raise Forbidden(f"You are not allowed to create a {inp.kind}")

    _check_fields(inp.kind, inp.fields)
    now = clock.now_utc()
    item = _build(
        inp.kind,
        {
            **_strip_strings(inp.fields),
            "author_id": inp.actor.id,
            "status": "PENDING",
            "created_at": now,
            "updated_at": now,
        },
    )
    validate_content(item, rules.content)

    saved = repo.add(item)
    logger.info("%s %s created by %s", item.kind, item.id, inp.actor.id)
    return saved


def run_update(
    inp: UpdateContentInput,
    *,
    repo: ContentRepoPort,
    policy: PolicyEngine,
    rules: Rules,
    clock: ClockPort,
) -> ContentItem:
    """Apply ``changes`` to editable fields. Moderation status is left as is."""
    item = _get_or_404(repo, inp.ref)
    if not policy.can_edit(inp.actor, item):
        raise Forbidden(f"You are not allowed to update this {item.kind}")

    _check_fields(item.kind, inp.changes)
    if not inp.changes:
        return item

    updated = _build(
        item.kind,
        {
            **item.model_dump(),
            **_strip_strings(inp.changes),
            "updated_at": clock.now_utc(),
        },
    )
    validate_content(updated, rules.content)
    return repo.update(updated)


def run_delete(
    inp: DeleteContentInput,
    *,
    repo: ContentRepoPort,
    policy: PolicyEngine,
    blobs: BlobStorePort,
) -> ContentItem:
    """Delete an item and its reactions. Returns the deleted item."""
    item = _get_or_404(repo, inp.ref)
    if not policy.can_delete(inp.actor, item):
        raise Forbidden(f"You are not allowed to delete this {item.kind}")

    if not repo.delete(item.ref):
        raise NotFound(f"{item.kind.capitalize()} not found")
    logger.info("%s %s deleted by %s", item.kind, item.id, inp.actor.id)

    if isinstance(item, Event):
        _drop_blob(blobs, item.image_url)
    return item


def run_join_event(
    inp: EventMembershipInput,
    *,
    repo: ContentRepoPort,
    policy: PolicyEngine,
    clock: ClockPort,
) -> Event:
    if not policy.check_permission(inp.actor, "event:join"):
        raise Forbidden("You are not allowed to join events")

    event = _get_event_or_404(repo, inp.event_id)
    if event.status != "APPROVED":
        raise ValidationError("Only approved events can be joined")

    if inp.actor.id not in event.participants:
        repo.add_participant(event.id, inp.actor.id, at=clock.now_utc())
    return _get_event_or_404(repo, event.id)


def run_leave_event(
    inp: EventMembershipInput,
    *,
    repo: ContentRepoPort,
    clock: ClockPort,
) -> Event:
    """A departing winner is no longer a participant, so the winner is cleared too."""
    event = _get_event_or_404(repo, inp.event_id)
    if inp.actor.id in event.participants:
        repo.remove_participant(event.id, inp.actor.id, at=clock.now_utc())
    return _get_event_or_404(repo, event.id)


def run_declare_winner(
    inp: DeclareWinnerInput,
    *,
    repo: ContentRepoPort,
    policy: PolicyEngine,
    clock: ClockPort,
) -> Event:
    """Admin only. The winner has to be one of the participants."""
    if not policy.is_admin(inp.actor):
        raise Forbidden("Only admins can declare a winner")

    event = _get_event_or_404(repo, inp.event_id)
    if inp.winner_id not in event.participants:
        raise ValidationError("Winner must be a participant of the event")

    repo.set_winner(event.id, inp.winner_id, at=clock.now_utc())
    logger.info("Winner %s declared for event %s", inp.winner_id, event.id)
    return _get_event_or_404(repo, event.id)


def run_set_event_image(
    inp: SetEventImageInput,
    *,
    repo: ContentRepoPort,
    policy: PolicyEngine,
    rules: Rules,
    blobs: BlobStorePort,
    clock: ClockPort,
) -> Event:
    """Upload a new image and replace the previous one."""
    event = _get_event_or_404(repo, inp.event_id)
    if not policy.can_edit(inp.actor, event):
        raise Forbidden("You are not allowed to update this event")

    validate_image_upload(inp.filename, inp.data, rules.uploads)
    url = blobs.upload(inp.filename, inp.data)
    repo.set_image(event.id, url, at=clock.now_utc())
    _drop_blob(blobs, event.image_url)
    return _get_event_or_404(repo, event.id)
