"""Guarded event publishing for request handlers.

Content mutations must not fail because a cache listener did. A stale page
cache is a degraded but safe state, so listener failures are logged and
the mutating request carries on.
"""

from __future__ import annotations

import logging

from scribe.events.bus import ChangeBus
from scribe.events.schemas import ChangeEvent, EntityType
from scribe.observability.metrics import record_change_event

logger = logging.getLogger(__name__)


def publish_change(
    bus: ChangeBus,
    entity_type: str | EntityType,
    payload: object = None,
) -> ChangeEvent | None:
    """Emit a change event, logging instead of raising on listener failure.

    Returns the emitted event, or None when a listener failed.
    """
    type_name = entity_type.value if isinstance(entity_type, EntityType) else entity_type
    record_change_event(type_name)
    try:
        return bus.emit_change(entity_type, payload)
    except Exception:
        logger.exception("Change listener failed for %s; cached pages may be stale", type_name)
        return None


def publish_post_change(bus: ChangeBus, post: object) -> ChangeEvent | None:
    """Emit a change event for a post."""
    return publish_change(bus, EntityType.POST, post)
