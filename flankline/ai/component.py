"""
GoapComponent: the per-agent planning driver.

Each enemy owns one. Every simulation frame the host game calls
``update(dt, world_state, context)`` with a fresh fact snapshot from its
perception layer. The component replans on a fixed interval, and when a
new plan comes in it executes the plan's first action; the agent body plays
that action out until the next decision.

If the first action refuses to start (a coordinated flank whose squad
request was turned down, a solo flank with both routes blocked), the
component immediately replans with that action excluded and tries the
fallback, so an agent never stalls a whole replan interval on a refusal.
"""

from __future__ import annotations

import logging

from flankline import config
from flankline.enums import PlanStatus
from flankline.events import PlanFailedEvent, publish_event
from flankline.types import Facts

from .catalog import ENGAGE_GOAL, build_planner
from .planner import Planner, PlanResult
from .planning import Action, PlanningContext
from .world_state import WorldState

logger = logging.getLogger(__name__)


class GoapComponent:
    """Owns an agent's goal, its current plan and the replan timer.

    Args:
        planner: Shared planner. Defaults to the standard combat catalog.
        goal: Facts to achieve. Defaults to engaging the player.
        replan_interval: Seconds between replans.
    """

    def __init__(
        self,
        planner: Planner | None = None,
        goal: Facts | None = None,
        *,
        replan_interval: float = config.REPLAN_INTERVAL,
    ) -> None:
        self.planner = planner or build_planner()
        self.goal = WorldState(goal if goal is not None else ENGAGE_GOAL)
        self.replan_interval = replan_interval

        self.current_plan: list[Action] = []
        self.last_status: PlanStatus | None = None
        # Debug: name of the action most recently started, and the
        # actions refused during the last decision.
        self.last_action_name: str | None = None
        self.last_refused: list[str] = []

        # Start "overdue" so the very first update plans.
        self._since_replan = float("inf")

    def set_goal(self, goal: Facts) -> None:
        """Switch goals and force a replan on the next update."""
        self.goal = WorldState(goal)
        self.invalidate()

    def invalidate(self) -> None:
        """Drop the current plan so the next update replans."""
        self.current_plan = []
        self._since_replan = float("inf")

    @property
    def current_action(self) -> Action | None:
        return self.current_plan[0] if self.current_plan else None

    def update(
        self,
        dt: float,
        world_state: Facts,
        context: PlanningContext | None = None,
    ) -> Action | None:
        """Advance the replan timer; replan and start an action when due.

        A replan is due when the interval has elapsed, or earlier when the
        current step is finished (its effects already hold) or can no longer
        run (its preconditions stopped holding).

        Returns the action started this frame, or None when nothing new was
        decided (not due yet, goal satisfied, or no plan).
        """
        if not config.GOAP_AI_ENABLED:
            return None

        state = WorldState.of(world_state)
        self._since_replan += dt
        if self._since_replan < self.replan_interval and not self._plan_invalid(state):
            return None

        self._since_replan = 0.0
        return self.decide(state, context or PlanningContext())

    def _plan_invalid(self, state: WorldState) -> bool:
        action = self.current_action
        if action is None:
            return False
        return state.satisfies(action.effects) or not action.is_applicable(state)

    def decide(self, state: WorldState, context: PlanningContext) -> Action | None:
        """Plan from ``state`` and start the first action that agrees to run."""
        excluded: list[str] = []
        while True:
            result = self.planner.find_plan(state, self.goal, context, exclude=excluded)
            self._adopt(result, context)
            action = result.first_action
            if action is None:
                self.last_refused = excluded
                return None
            if action.execute(context):
                self.last_action_name = action.action_name
                self.last_refused = excluded
                return action
            logger.debug(
                "'%s' refused to start; replanning without it", action.action_name
            )
            excluded.append(action.action_name)

    def _adopt(self, result: PlanResult, context: PlanningContext) -> None:
        self.current_plan = result.actions
        self.last_status = result.status
        if result.status.is_failure:
            publish_event(
                PlanFailedEvent(
                    agent=context.agent,
                    goal=self.goal,
                    bound_exceeded=result.status is PlanStatus.BOUND_EXCEEDED,
                )
            )
