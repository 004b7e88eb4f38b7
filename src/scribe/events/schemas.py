"""Event schemas for Scribe.

A change event tells listeners that an entity of a given type was created,
updated, or deleted. Events are transient: they live for a single
``emit_change`` call and are never persisted.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any
from uuid import uuid4


class EntityType(str, Enum):
    """Entity types that emit change events."""

    POST = "post"
    COMMENT = "comment"


@dataclass(frozen=True, slots=True)
class ChangeEvent:
    """Notification that an entity changed.

    ``payload`` is the changed entity, or None when the emitter has no
    single entity to report.
    """

    entity_type: str
    payload: Any = None
    event_id: str = field(default_factory=lambda: str(uuid4()))
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))
