"""Action model for goal-oriented planning.

An Action is a named, costed transformation over WorldState: it is applicable
when its preconditions hold, and applying it overwrites the state with its
effects. Preconditions and effects are static; only the cost may react to the
situation (via ``get_cost``), which is how coordination-aware actions make
themselves cheaper when allies are around without changing what they do.

Planning only ever calls the pure methods (``is_applicable``, ``apply``,
``effective_cost``). ``execute`` is the runtime hook used once a plan has been
chosen and the agent starts its first step.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, ClassVar

from flankline.enums import FlankSide
from flankline.types import Facts, WorldPos

from .world_state import WorldState, facts_match

if TYPE_CHECKING:
    from .agent import SquadAgent
    from .squad_manager import SquadManager

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class PlanningContext:
    """Dynamic signals available to action costs and execution.

    Everything here is optional: the planner works on facts alone, and a
    context only sharpens costs (ally counts, squad availability) and gives
    ``execute`` the collaborators it needs.

    Attributes:
        agent: The agent planning or executing.
        squad_manager: Coordinator consulted by squad-aware actions.
        allies: Nearby friendly agents, supplied by the host game's
            perception. Used to decide whether a new squad may form.
        target_cover: Cover position the flank converges on.
        enemies_in_combat: Fallback ally count when the world state omits
            the ``enemies_in_combat`` fact.
        left_flank_clear: Whether the left flank route is open.
        right_flank_clear: Whether the right flank route is open.
        flank_side: Written by a solo flank when it starts: the side the
            agent body should go round. None until then.
    """

    agent: SquadAgent | None = None
    squad_manager: SquadManager | None = None
    allies: Sequence[SquadAgent] = ()
    target_cover: WorldPos | None = None
    enemies_in_combat: int | None = None
    left_flank_clear: bool = True
    right_flank_clear: bool = True
    flank_side: FlankSide | None = None


class Action:
    """Base class for planner actions.

    Subclasses usually just declare ``ACTION_NAME``, ``COST``,
    ``PRECONDITIONS`` and ``EFFECTS``; the constructor arguments exist so a
    catalog can retune an action per enemy archetype (or a test can build
    an ad-hoc action) without subclassing.

    Raises:
        ValueError: If the action has no effects, or its static cost is
            negative or not finite. An action that changes nothing can never
            make progress, and a bad static cost would poison the planner's
            frontier ordering.
    """

    ACTION_NAME: ClassVar[str] = ""
    COST: ClassVar[float] = 1.0
    PRECONDITIONS: ClassVar[Facts] = {}
    EFFECTS: ClassVar[Facts] = {}

    def __init__(
        self,
        action_name: str | None = None,
        cost: float | None = None,
        preconditions: Facts | None = None,
        effects: Facts | None = None,
    ) -> None:
        self.action_name = action_name if action_name is not None else self.ACTION_NAME
        self.cost = float(cost if cost is not None else self.COST)
        self.preconditions = WorldState(
            preconditions if preconditions is not None else self.PRECONDITIONS
        )
        self.effects = WorldState(effects if effects is not None else self.EFFECTS)

        if not self.action_name:
            raise ValueError(f"{type(self).__name__} needs an action_name")
        if not self.effects:
            raise ValueError(f"Action '{self.action_name}' has no effects")
        if not math.isfinite(self.cost) or self.cost < 0:
            raise ValueError(
                f"Action '{self.action_name}' has invalid cost {self.cost!r}"
            )

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.action_name!r}, cost={self.cost})"

    def is_applicable(self, state: Facts) -> bool:
        """Return True when every precondition holds in ``state``.

        A precondition whose fact is missing from the state is not met.
        """
        return facts_match(state, self.preconditions)

    def apply(self, state: Facts) -> WorldState:
        """Return a new state with this action's effects unioned over ``state``."""
        return WorldState.of(state).with_facts(self.effects)

    def get_cost(self, context: PlanningContext | None, world_state: Facts) -> float:
        """Situational cost. Override to react to dynamic signals."""
        _ = context, world_state
        return self.cost

    def effective_cost(
        self, context: PlanningContext | None, world_state: Facts
    ) -> float:
        """Return the cost the planner should use for this action here.

        Dynamic costs that cannot be ordered (NaN, infinity, negative, not a
        number at all, or a failed computation such as dividing by a zero
        count) fall back to the static cost. A single incomparable value in the
        heap silently corrupts the frontier ordering, so it must never get that
        far.
        """
        try:
            cost = float(self.get_cost(context, world_state))
        except (ArithmeticError, TypeError, ValueError):
            logger.warning(
                "Cost computation failed for '%s'; using static cost %.2f",
                self.action_name,
                self.cost,
                exc_info=True,
            )
            return self.cost
        if not math.isfinite(cost) or cost < 0:
            logger.warning(
                "Unusable dynamic cost %r for '%s'; using static cost %.2f",
                cost,
                self.action_name,
                self.cost,
            )
            return self.cost
        return cost

    def execute(self, context: PlanningContext) -> bool:
        """Start this action for ``context.agent``.

        The agent body carries out ordinary actions on its own once told
        which one won, so the default issues nothing and reports success.
        Return False when the action cannot start, so the caller falls back.
        """
        _ = context
        return True
