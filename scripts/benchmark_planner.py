#!/usr/bin/env python3
"""Benchmark the GOAP planner and the squad manager tick.

Times plan() on the default combat catalog across representative start
states, then on the same catalog padded with distractor actions, and finally
times SquadManager.update() with a full arena of four-member squads. Ends
with a few correctness checks and the live metric summaries.

Usage:
    uv run python scripts/benchmark_planner.py
"""

# ruff: noqa: E402  # Allow path setup before importing project modules

from __future__ import annotations

import sys
import timeit
from pathlib import Path

import numpy as np

# Add the project root to Python path so running as a script works.
project_root = Path(__file__).resolve().parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from flankline.ai.catalog import ENGAGE_GOAL, build_planner, default_catalog
from flankline.ai.planner import Planner, simulate
from flankline.ai.planning import Action
from flankline.ai.squad_manager import SquadManager, SyncPolicy
from flankline.enums import FlankDirection, TacticalRole
from flankline.types import Facts, WorldPos
from flankline.util.live_vars import live_variable_registry

FACT_NAMES = ("player_visible", "in_cover", "has_ammo", "under_fire")

# ---------------------------------------------------------------------------
# Scenarios
# ---------------------------------------------------------------------------


def _random_states(count: int, seed: int) -> list[dict[str, bool | int]]:
    """Random boolean combat states with 0-4 allies in combat.

    Every state also carries the cleared noise facts the distractor actions
    feed on, so padded catalogs really widen the search.
    """
    rng = np.random.default_rng(seed)
    flags = rng.random((count, len(FACT_NAMES))) > 0.5
    allies = rng.integers(0, 5, size=count)
    return [
        {
            **{name: bool(v) for name, v in zip(FACT_NAMES, row, strict=True)},
            "enemies_in_combat": int(n),
            **{f"noise_{k}": False for k in range(7)},
        }
        for row, n in zip(flags, allies, strict=True)
    ]


def _padded_planner(distractors: int) -> Planner:
    """Default catalog plus actions that shuffle irrelevant facts around."""
    actions: list[Action] = default_catalog()
    for i in range(distractors):
        actions.append(
            Action(
                f"distract_{i}",
                1.0 + (i % 5) * 0.25,
                {f"noise_{i % 7}": False},
                {f"noise_{i % 7}": True, f"noise_{(i + 1) % 7}": False},
            )
        )
    return Planner(actions)


class _BenchAgent:
    """Minimal SquadAgent for ticking the manager."""

    def __init__(self, position: WorldPos) -> None:
        self.global_position = position
        self.at_sync = False

    def get_current_state(self) -> str:
        return "combat"

    def is_alive(self) -> bool:
        return True

    def can_see_player(self) -> bool:
        return False

    def is_at_sync_position(self) -> bool:
        return self.at_sync

    def is_at_cover_back(self) -> bool:
        return False

    def join_flank_squad(
        self, cover: WorldPos, role: TacticalRole, subgroup: FlankDirection
    ) -> None:
        pass

    def leave_flank_squad(self) -> None:
        pass

    def update_flank_target(self, pos: WorldPos) -> None:
        pass

    def update_squad_role(self, role: TacticalRole, subgroup: FlankDirection) -> None:
        pass

    def begin_synchronized_flank(self) -> None:
        pass

    def begin_coordinated_assault(self) -> None:
        pass


def _full_arena(squads: int) -> SquadManager:
    # Timeout disabled so the squads stay parked at the sync barrier.
    manager = SquadManager(SyncPolicy(sync_timeout=None))
    for s in range(squads):
        cover = (s * 2000.0, 0.0)
        members = [_BenchAgent((cover[0], 100.0 * k)) for k in range(4)]
        manager.request_flank(members[0], cover, allies=members[1:])
        for member in members[1:]:
            manager.request_flank(member, cover)
    manager.update(0.016)
    return manager


def _bench(fn: object, *args: object) -> float:
    """Time *fn(*args)* and return average ms per call."""
    fn(*args)  # type: ignore[operator]
    timer = timeit.Timer(lambda: fn(*args))  # type: ignore[operator]
    number, total = timer.autorange()
    return (total / number) * 1000


def _plan_all(planner: Planner, states: list[dict[str, bool | int]]) -> None:
    for state in states:
        planner.plan(state, ENGAGE_GOAL)


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------


def main() -> None:
    states = _random_states(200, seed=42)
    scenarios: list[tuple[str, Planner]] = [
        ("Default catalog", build_planner()),
        ("+20 distractors", _padded_planner(20)),
        ("+60 distractors", _padded_planner(60)),
    ]

    print("GOAP planner benchmark (200 random start states per run)")
    print("=" * 60)
    print(f"{'Scenario':<28} {'per run':>12} {'per plan':>14}")
    print("-" * 60)
    for name, planner in scenarios:
        run_ms = _bench(_plan_all, planner, states)
        per_plan_us = run_ms * 1000 / len(states)
        print(f"{name:<28} {run_ms:>10.3f}ms {per_plan_us:>12.2f}us")
    print("-" * 60)
    print()

    print("SquadManager.update() with four-member squads at the barrier")
    print("-" * 60)
    for squads in (4, 16, 64):
        manager = _full_arena(squads)
        tick_ms = _bench(manager.update, 0.016)
        print(f"{squads:>3} squads {tick_ms:>37.4f}ms")
    print()

    # ------------------------------------------------------------------
    # Correctness checks
    # ------------------------------------------------------------------
    print("Correctness checks...")
    planner = build_planner()
    flank_state: Facts = {
        "player_visible": False,
        "in_cover": True,
        "has_ammo": True,
        "enemies_in_combat": 2,
    }
    first = planner.plan(flank_state, ENGAGE_GOAL)[0].action_name
    status = "OK!" if first == "coordinated_flank" else f"FAIL (got {first})"
    print(f"  Coordinated flank preferred with allies: {status}")

    failures = 0
    for state in states:
        plan = planner.plan(state, ENGAGE_GOAL)
        if plan and not simulate(state, plan).satisfies(ENGAGE_GOAL):
            failures += 1
    print(f"  Plans reaching goal when simulated: {len(states) - failures}/200")
    print()

    print("Live metrics")
    for name, summary in live_variable_registry.snapshot().items():
        print(f"  {name:<28} {summary}")


if __name__ == "__main__":
    main()
