from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from flankline.ai.planner import Planner
from flankline.ai.planning import Action
from flankline.enums import FlankDirection, TacticalRole
from flankline.events import GameEvent, subscribe_to_event
from flankline.types import Facts, WorldPos


@dataclass(eq=False)
class FakeAgent:
    """Scriptable stand-in for a game enemy body.

    Queries return whatever the test sets on the attributes; commands are
    recorded so tests can assert on what the squad manager told the body.
    Identity-hashed, like a real node reference.
    """

    name: str = "agent"
    position: WorldPos = (0.0, 0.0)
    state: str = "combat"
    alive: bool = True
    sees_player: bool = False
    at_sync: bool = False
    at_cover_back: bool = False

    # Recorded commands
    joins: list[tuple[WorldPos, TacticalRole, FlankDirection]] = field(
        default_factory=list
    )
    leaves: int = 0
    targets: list[WorldPos] = field(default_factory=list)
    role_updates: list[tuple[TacticalRole, FlankDirection]] = field(
        default_factory=list
    )
    flank_started: int = 0
    assault_started: int = 0

    # What the body currently believes its role is.
    role: TacticalRole = TacticalRole.NONE
    subgroup: FlankDirection = FlankDirection.LOWER

    @property
    def global_position(self) -> WorldPos:
        return self.position

    def get_current_state(self) -> str:
        return self.state

    def is_alive(self) -> bool:
        return self.alive

    def can_see_player(self) -> bool:
        return self.sees_player

    def is_at_sync_position(self) -> bool:
        return self.at_sync

    def is_at_cover_back(self) -> bool:
        return self.at_cover_back

    def join_flank_squad(
        self, cover: WorldPos, role: TacticalRole, subgroup: FlankDirection
    ) -> None:
        self.joins.append((cover, role, subgroup))
        self.role = role
        self.subgroup = subgroup

    def leave_flank_squad(self) -> None:
        self.leaves += 1
        self.role = TacticalRole.NONE
        self.subgroup = FlankDirection.LOWER

    def update_flank_target(self, pos: WorldPos) -> None:
        self.targets.append(pos)

    def update_squad_role(self, role: TacticalRole, subgroup: FlankDirection) -> None:
        self.role_updates.append((role, subgroup))
        self.role = role
        self.subgroup = subgroup

    def begin_synchronized_flank(self) -> None:
        self.flank_started += 1

    def begin_coordinated_assault(self) -> None:
        self.assault_started += 1

    @property
    def last_target(self) -> WorldPos | None:
        return self.targets[-1] if self.targets else None


def make_agents(*ys: float, x: float = 0.0) -> list[FakeAgent]:
    """One combat-engaged FakeAgent per Y coordinate, named a0, a1, ..."""
    return [FakeAgent(name=f"a{i}", position=(x, y)) for i, y in enumerate(ys)]


def make_action(
    name: str,
    preconditions: Facts,
    effects: Facts,
    cost: float = 1.0,
) -> Action:
    return Action(name, cost, preconditions, effects)


def make_planner(*actions: Action, **kwargs: Any) -> Planner:
    return Planner(actions, **kwargs)


def capture_events(event_type: type[GameEvent]) -> list[Any]:
    """Subscribe to ``event_type`` on the global bus and collect what arrives."""
    received: list[Any] = []
    handler: Callable[[Any], None] = received.append
    subscribe_to_event(event_type, handler)
    return received
