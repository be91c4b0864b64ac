"""Tests for the event bus system."""

import logging

import pytest

from flankline.enums import SquadPhase
from flankline.events import (
    EventBus,
    GameEvent,
    SquadDissolvedEvent,
    SquadPhaseChangedEvent,
    publish_event,
    reset_event_bus_for_testing,
    subscribe_to_event,
    unsubscribe_from_event,
)
from flankline.types import SquadId


class TestEventBus:
    def test_handler_exception_does_not_crash_event_bus(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        """A failing handler is logged and the remaining handlers still run."""
        bus = EventBus()
        calls: list[str] = []

        def failing_handler(event: GameEvent) -> None:
            calls.append("failing")
            raise ValueError("Handler failed!")

        def succeeding_handler(event: GameEvent) -> None:
            calls.append("succeeding")

        bus.subscribe(SquadDissolvedEvent, failing_handler)
        bus.subscribe(SquadDissolvedEvent, succeeding_handler)

        with caplog.at_level(logging.ERROR):
            bus.publish(SquadDissolvedEvent(squad_id=SquadId(1), reason="completed"))

        assert calls == ["failing", "succeeding"]
        assert "Handler failed for SquadDissolvedEvent" in caplog.text
        assert "ValueError" in caplog.text

    def test_base_class_subscribers_see_every_event(self) -> None:
        bus = EventBus()
        seen: list[GameEvent] = []
        bus.subscribe(GameEvent, seen.append)
        event = SquadPhaseChangedEvent(
            squad_id=SquadId(2),
            previous=SquadPhase.FORMING,
            current=SquadPhase.POSITIONING,
        )
        bus.publish(event)
        assert seen == [event]

    def test_unsubscribe_unknown_handler_is_ignored(self) -> None:
        bus = EventBus()
        bus.unsubscribe(SquadDissolvedEvent, print)
        bus.subscribe(SquadDissolvedEvent, print)
        bus.unsubscribe(SquadDissolvedEvent, print)
        bus.unsubscribe(SquadDissolvedEvent, print)
        assert bus.handler_count(SquadDissolvedEvent) == 0

    def test_handler_may_unsubscribe_during_dispatch(self) -> None:
        bus = EventBus()
        calls: list[int] = []

        def once(event: GameEvent) -> None:
            calls.append(1)
            bus.unsubscribe(SquadDissolvedEvent, once)

        bus.subscribe(SquadDissolvedEvent, once)
        event = SquadDissolvedEvent(squad_id=SquadId(1), reason="cleared")
        bus.publish(event)
        bus.publish(event)
        assert calls == [1]


def test_global_bus_round_trip() -> None:
    received: list[GameEvent] = []
    subscribe_to_event(SquadDissolvedEvent, received.append)
    publish_event(SquadDissolvedEvent(squad_id=SquadId(3), reason="attrition"))
    unsubscribe_from_event(SquadDissolvedEvent, received.append)
    publish_event(SquadDissolvedEvent(squad_id=SquadId(4), reason="attrition"))
    assert [e.squad_id for e in received] == [3]


def test_reset_drops_subscribers() -> None:
    received: list[GameEvent] = []
    subscribe_to_event(SquadDissolvedEvent, received.append)
    reset_event_bus_for_testing()
    publish_event(SquadDissolvedEvent(squad_id=SquadId(5), reason="cleared"))
    assert received == []
