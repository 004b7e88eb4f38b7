"""Change event bus for Scribe.

Process-wide publish/subscribe keyed by entity type. Emission is
synchronous: every listener has run by the time ``emit_change`` returns,
so cache invalidation finishes inside the request that mutated content.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Callable

from scribe.events.schemas import ChangeEvent, EntityType

logger = logging.getLogger(__name__)


ChangeListener = Callable[[ChangeEvent], None]


def _type_key(entity_type: str | EntityType) -> str:
    if isinstance(entity_type, EntityType):
        return entity_type.value
    return entity_type


class ChangeBus:
    """Synchronous in-process event bus.

    Listeners for one entity type run in registration order. Listener
    exceptions are not caught here; they propagate to the caller of
    ``emit_change``. Listeners live for the lifetime of the bus.
    """

    def __init__(self) -> None:
        self._listeners: defaultdict[str, list[ChangeListener]] = defaultdict(list)

    def on_change(self, entity_type: str | EntityType, listener: ChangeListener) -> None:
        """Register a listener for changes to ``entity_type``."""
        key = _type_key(entity_type)
        self._listeners[key].append(listener)
        listener_name = getattr(listener, "__name__", listener.__class__.__name__)
        logger.debug("Registered change listener %s for %s", listener_name, key)

    def emit_change(self, entity_type: str | EntityType, payload: object = None) -> ChangeEvent:
        """Invoke every listener registered for ``entity_type``."""
        event = ChangeEvent(entity_type=_type_key(entity_type), payload=payload)
        for listener in list(self._listeners.get(event.entity_type, ())):
            listener(event)
        return event

    def listener_count(self, entity_type: str | EntityType) -> int:
        """Number of listeners registered for ``entity_type``."""
        return len(self._listeners.get(_type_key(entity_type), ()))
