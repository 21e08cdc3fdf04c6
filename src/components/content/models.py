"""
Content component input models.

Every input carries the acting user; components never look identities up
on their own.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any
from uuid import UUID

from src.domain.entities import ContentKind, ContentRef, User


@dataclass(frozen=True)
class CreateContentInput:
    """Kind-specific fields go in ``fields`` (body, description, venue...)."""

    actor: User
    kind: ContentKind
    fields: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class UpdateContentInput:
    actor: User
    ref: ContentRef
    changes: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class DeleteContentInput:
    actor: User
    ref: ContentRef


@dataclass(frozen=True)
class EventMembershipInput:
    """Join or leave an event as ``actor``."""

    actor: User
    event_id: UUID


@dataclass(frozen=True)
class DeclareWinnerInput:
    actor: User
    event_id: UUID
    winner_id: UUID


@dataclass(frozen=True)
class SetEventImageInput:
    actor: User
    event_id: UUID
    filename: str
    data: bytes
