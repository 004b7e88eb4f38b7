"""Tests for the synchronous change bus."""

from __future__ import annotations

import pytest

from scribe.events.bus import ChangeBus
from scribe.events.schemas import ChangeEvent, EntityType


class TestChangeBus:
    """Test listener registration and emission."""

    @pytest.fixture
    def bus(self) -> ChangeBus:
        """Create a fresh bus."""
        return ChangeBus()

    def test_emit_without_listeners(self, bus: ChangeBus) -> None:
        """Emitting to a type nobody listens to is a no-op."""
        event = bus.emit_change("post", {"id": 1})
        assert event.entity_type == "post"
        assert event.payload == {"id": 1}

    def test_listener_receives_event(self, bus: ChangeBus) -> None:
        """Listeners get the event with its type and payload."""
        received: list[ChangeEvent] = []
        bus.on_change("post", received.append)

        bus.emit_change("post", "payload")

        assert len(received) == 1
        assert received[0].entity_type == "post"
        assert received[0].payload == "payload"

    def test_listeners_run_in_registration_order(self, bus: ChangeBus) -> None:
        """Multiple listeners for one type run in the order registered."""
        calls: list[str] = []
        bus.on_change("post", lambda event: calls.append("first"))
        bus.on_change("post", lambda event: calls.append("second"))
        bus.on_change("post", lambda event: calls.append("third"))

        bus.emit_change("post")

        assert calls == ["first", "second", "third"]

    def test_emission_is_synchronous(self, bus: ChangeBus) -> None:
        """Every listener has run by the time emit returns."""
        done: list[bool] = []
        bus.on_change("post", lambda event: done.append(True))

        bus.emit_change("post")

        assert done == [True]

    def test_types_are_isolated(self, bus: ChangeBus) -> None:
        """Listeners only hear their own entity type."""
        posts: list[ChangeEvent] = []
        comments: list[ChangeEvent] = []
        bus.on_change("post", posts.append)
        bus.on_change("comment", comments.append)

        bus.emit_change("comment")

        assert posts == []
        assert len(comments) == 1

    def test_enum_and_string_types_match(self, bus: ChangeBus) -> None:
        """EntityType members and their string values are interchangeable."""
        received: list[ChangeEvent] = []
        bus.on_change(EntityType.POST, received.append)

        bus.emit_change("post")
        bus.emit_change(EntityType.POST)

        assert len(received) == 2
        assert bus.listener_count("post") == 1

    def test_listener_error_propagates(self, bus: ChangeBus) -> None:
        """The bus does not swallow listener failures."""

        def failing(event: ChangeEvent) -> None:
            raise RuntimeError("listener failed")

        bus.on_change("post", failing)

        with pytest.raises(RuntimeError, match="listener failed"):
            bus.emit_change("post")

    def test_listener_error_stops_later_listeners(self, bus: ChangeBus) -> None:
        """A failing listener aborts the rest of the emission."""
        calls: list[str] = []

        def failing(event: ChangeEvent) -> None:
            raise RuntimeError("boom")

        bus.on_change("post", failing)
        bus.on_change("post", lambda event: calls.append("after"))

        with pytest.raises(RuntimeError):
            bus.emit_change("post")
        assert calls == []

    def test_events_have_ids(self, bus: ChangeBus) -> None:
        first = bus.emit_change("post")
        second = bus.emit_change("post")
        assert first.event_id != second.event_id
