"""Global event system for cross-system notifications from the AI core.

The squad coordinator and the planner publish events so that the host game
(barks, debug overlays, telemetry) can react without the core holding
references to those systems.

USE FOR:
- Squad lifecycle notifications (formed, phase changed, member lost, dissolved)
- Planning failures worth surfacing in debug tooling

DO NOT USE FOR:
- Commands to squad members (call the SquadAgent methods directly)
- Anything that needs a return value or confirmation

The event bus is fire-and-forget: publish an event without expecting return
values or confirmations. All handlers execute immediately (synchronously). A
handler that raises is logged and skipped; it never breaks the publisher.
"""

import logging
from collections.abc import Callable
from contextlib import suppress
from dataclasses import dataclass
from typing import Any

from flankline.enums import SquadPhase
from flankline.types import Facts, SquadId

logger = logging.getLogger(__name__)


@dataclass
class GameEvent:
    """Base class for all events."""

    pass


@dataclass
class SquadFormedEvent(GameEvent):
    """A new squad was created around its initiating agent."""

    squad_id: SquadId
    initiator: Any  # SquadAgent; Any avoids a circular import


@dataclass
class SquadPhaseChangedEvent(GameEvent):
    """A squad moved from one phase to the next."""

    squad_id: SquadId
    previous: SquadPhase
    current: SquadPhase


@dataclass
class SquadMemberLostEvent(GameEvent):
    """A member left the squad (death, disengage or explicit leave).

    Attributes:
        squad_id: The squad that lost the member.
        agent: The departed agent.
        remaining: Live member count after roles were reassigned.
    """

    squad_id: SquadId
    agent: Any
    remaining: int


@dataclass
class SquadDissolvedEvent(GameEvent):
    """A squad was removed from the arena.

    Attributes:
        squad_id: The dissolved squad.
        reason: "completed", "attrition", "sync_stalled" or "cleared".
    """

    squad_id: SquadId
    reason: str


@dataclass
class PlanFailedEvent(GameEvent):
    """An agent asked for a plan and none exists.

    Attributes:
        agent: The planning agent (may be None for anonymous planner calls).
        goal: The goal that could not be reached.
        bound_exceeded: True when the search bound cut planning short, False
            when the goal is simply unreachable with the current catalog.
    """

    agent: Any
    goal: Facts
    bound_exceeded: bool


class EventBus:
    """Synchronous publish/subscribe dispatcher.

    Handlers subscribe to an event class and also receive its subclasses,
    so subscribing to ``GameEvent`` sees every event (handy for debug logs).
    """

    def __init__(self) -> None:
        self._handlers: dict[type[GameEvent], list[Callable[[Any], None]]] = {}

    def subscribe(
        self, event_type: type[GameEvent], handler: Callable[[Any], None]
    ) -> None:
        self._handlers.setdefault(event_type, []).append(handler)

    def unsubscribe(
        self, event_type: type[GameEvent], handler: Callable[[Any], None]
    ) -> None:
        """Remove ``handler``. Unknown handlers are ignored."""
        with suppress(KeyError, ValueError):
            self._handlers[event_type].remove(handler)

    def handler_count(self, event_type: type[GameEvent]) -> int:
        return len(self._handlers.get(event_type, ()))

    def publish(self, event: GameEvent) -> None:
        # Snapshot first: handlers may (un)subscribe while being called.
        handlers = [
            handler
            for cls in type(event).__mro__
            for handler in tuple(self._handlers.get(cls, ()))
        ]
        for handler in handlers:
            try:
                handler(event)
            except Exception:
                logger.exception("Handler failed for %s", type(event).__name__)


_global_event_bus = EventBus()


def subscribe_to_event(
    event_type: type[GameEvent], handler: Callable[[Any], None]
) -> None:
    _global_event_bus.subscribe(event_type, handler)


def unsubscribe_from_event(
    event_type: type[GameEvent], handler: Callable[[Any], None]
) -> None:
    _global_event_bus.unsubscribe(event_type, handler)


def publish_event(event: GameEvent) -> None:
    """Publish on the process-wide bus."""
    _global_event_bus.publish(event)


def reset_event_bus_for_testing() -> None:
    """Replace the process-wide bus with an empty one. Tests only."""
    global _global_event_bus
    _global_event_bus = EventBus()
