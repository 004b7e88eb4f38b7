"""Event system for Scribe.

Content mutations emit change events on a synchronous bus:
- Listeners are keyed by entity type ("post", "comment")
- Emission runs every listener before returning
- Request handlers publish through a guarded helper that logs listener
  failures rather than failing the mutation
"""

from scribe.events.bus import ChangeBus, ChangeListener
from scribe.events.publisher import publish_change, publish_post_change
from scribe.events.schemas import ChangeEvent, EntityType

__all__ = [
    "ChangeBus",
    "ChangeEvent",
    "ChangeListener",
    "EntityType",
    "publish_change",
    "publish_post_change",
]
