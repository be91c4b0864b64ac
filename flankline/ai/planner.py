"""Goal-oriented action planner.

Given a starting WorldState and a goal (a partial set of facts), the planner
finds the cheapest ordered sequence of catalog actions whose effects, applied
in order, make every goal fact true.

Search is uniform-cost (Dijkstra) over an implicit graph: nodes are world
states, edges are applicable actions weighted by ``effective_cost``. The
frontier is a binary heap keyed by ``(cumulative_cost, insertion_counter)``.
The counter makes ties deterministic: between equal-cost plans, the one
discovered first wins, and discovery follows catalog registration order. That
makes registration order a deliberate tuning knob - register the action you
want to win ties first.

Absence of a plan is a normal outcome, never an exception. An empty plan
means either "already satisfied" or "no plan"; ``find_plan`` reports which
through ``PlanResult.status``, and ``plan`` callers can tell them apart by
checking the goal against the initial state first.

The planner holds no per-call state. ``plan`` may run concurrently for many
agents against the same catalog.
"""

from __future__ import annotations

import heapq
import itertools
import logging
from collections.abc import Collection, Iterable, Sequence
from dataclasses import dataclass, field

from flankline import config
from flankline.enums import PlanStatus
from flankline.types import FactValue, Facts
from flankline.util.live_vars import record_metric_value, record_time_live_variable

from .planning import Action, PlanningContext
from .telemetry import EXPANDED_NODES_METRIC, PLAN_TIME_METRIC, register_ai_metrics
from .world_state import WorldState, facts_equal

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class PlanResult:
    """Outcome of a single planning call.

    Attributes:
        actions: The plan, first action first. Empty unless status is FOUND.
        status: Why the plan looks the way it does.
        total_cost: Sum of effective costs along the plan.
        expanded: Frontier nodes expanded during the search.
    """

    actions: list[Action] = field(default_factory=list)
    status: PlanStatus = PlanStatus.UNREACHABLE
    total_cost: float = 0.0
    expanded: int = 0

    @property
    def first_action(self) -> Action | None:
        return self.actions[0] if self.actions else None

    @property
    def action_names(self) -> list[str]:
        return [action.action_name for action in self.actions]


def simulate(initial_state: Facts, actions: Iterable[Action]) -> WorldState:
    """Apply each action's effects in order, ignoring preconditions.

    Useful for checking that a plan actually reaches its goal.
    """
    state = WorldState.of(initial_state)
    for action in actions:
        state = action.apply(state)
    return state


class Planner:
    """Searches an action catalog for the cheapest plan to a goal.

    Args:
        actions: Initial catalog, registered in order.
        max_expansions: Frontier pops allowed per call before giving up.
        max_depth: Longest plan considered.
    """

    def __init__(
        self,
        actions: Iterable[Action] | None = None,
        *,
        max_expansions: int = config.PLANNER_MAX_EXPANSIONS,
        max_depth: int = config.PLANNER_MAX_DEPTH,
    ) -> None:
        self._actions: list[Action] = []
        self.max_expansions = max_expansions
        self.max_depth = max_depth
        for action in actions or ():
            self.add_action(action)
        register_ai_metrics()

    @property
    def actions(self) -> tuple[Action, ...]:
        """The catalog in registration order."""
        return tuple(self._actions)

    def add_action(self, action: Action) -> None:
        """Register ``action`` at the end of the catalog.

        Raises:
            ValueError: If an action with the same name is already registered.
        """
        if self.get_action(action.action_name) is not None:
            raise ValueError(f"Action '{action.action_name}' already registered")
        self._actions.append(action)

    def remove_action(self, action_name: str) -> bool:
        """Remove an action by name. Returns False if it was not registered."""
        for index, action in enumerate(self._actions):
            if action.action_name == action_name:
                del self._actions[index]
                return True
        return False

    def get_action(self, action_name: str) -> Action | None:
        for action in self._actions:
            if action.action_name == action_name:
                return action
        return None

    def plan(
        self,
        initial_state: Facts,
        goal: Facts,
        context: PlanningContext | None = None,
        *,
        exclude: Collection[str] = (),
    ) -> list[Action]:
        """Return the cheapest action sequence reaching ``goal``, or [].

        ``exclude`` names actions to leave out of this call only.
        """
        return self.find_plan(initial_state, goal, context, exclude=exclude).actions

    def find_plan(
        self,
        initial_state: Facts,
        goal: Facts,
        context: PlanningContext | None = None,
        *,
        exclude: Collection[str] = (),
    ) -> PlanResult:
        """Like ``plan`` but also reports status, cost and search effort."""
        start = WorldState.of(initial_state)
        with record_time_live_variable(PLAN_TIME_METRIC):
            result = self._search(start, goal, context, exclude)
        record_metric_value(EXPANDED_NODES_METRIC, result.expanded)

        if result.status is PlanStatus.FOUND:
            logger.debug(
                "Plan for %s: %s (cost %.2f, %d expanded)",
                dict(goal),
                " -> ".join(result.action_names),
                result.total_cost,
                result.expanded,
            )
        elif result.status.is_failure:
            logger.debug(
                "No plan for %s from %r: %s after %d expansions",
                dict(goal),
                start,
                result.status.name,
                result.expanded,
            )
        return result

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    def _search(
        self,
        start: WorldState,
        goal: Facts,
        context: PlanningContext | None,
        exclude: Collection[str],
    ) -> PlanResult:
        if start.satisfies(goal):
            return PlanResult(status=PlanStatus.SATISFIED)

        actions = self._reachable_actions(start, exclude)
        counter = itertools.count()
        frontier: list[tuple[float, int, WorldState, tuple[Action, ...]]] = [
            (0.0, next(counter), start, ())
        ]
        # Shallowest depth each state has been popped at. A costlier path only
        # matters if it arrives shallower, since it then has more steps left.
        closed: dict[WorldState, int] = {}
        expanded = 0
        depth_limited = False

        while frontier:
            cost, _, state, sequence = heapq.heappop(frontier)
            depth = len(sequence)
            if closed.get(state, self.max_depth + 1) <= depth:
                continue
            if state.satisfies(goal):
                return PlanResult(
                    actions=list(sequence),
                    status=PlanStatus.FOUND,
                    total_cost=cost,
                    expanded=expanded,
                )
            if expanded >= self.max_expansions:
                return PlanResult(status=PlanStatus.BOUND_EXCEEDED, expanded=expanded)

            closed[state] = depth
            expanded += 1
            if depth >= self.max_depth:
                depth_limited = True
                continue

            for action in actions:
                if not action.is_applicable(state):
                    continue
                successor = action.apply(state)
                if closed.get(successor, self.max_depth + 1) <= depth + 1:
                    continue
                step_cost = action.effective_cost(context, state)
                heapq.heappush(
                    frontier,
                    (cost + step_cost, next(counter), successor, (*sequence, action)),
                )

        status = PlanStatus.BOUND_EXCEEDED if depth_limited else PlanStatus.UNREACHABLE
        return PlanResult(status=status, expanded=expanded)

    def _reachable_actions(
        self, start: WorldState, exclude: Collection[str]
    ) -> Sequence[Action]:
        """Drop actions whose preconditions can never hold.

        A precondition can hold if the start state already has it or some
        surviving action produces it. Pruning repeats until stable, because
        removing an action can strand another that depended on its effects.
        """
        candidates = [a for a in self._actions if a.action_name not in exclude]
        while True:
            produced: dict[str, list[FactValue]] = {}
            for action in candidates:
                for name, value in action.effects.items():
                    produced.setdefault(name, []).append(value)

            def can_hold(name: str, value: FactValue) -> bool:
                if name in start and facts_equal(start[name], value):
                    return True
                return any(facts_equal(v, value) for v in produced.get(name, ()))

            survivors = [
                action
                for action in candidates
                if all(can_hold(k, v) for k, v in action.preconditions.items())
            ]
            if len(survivors) == len(candidates):
                return survivors
            candidates = survivors
