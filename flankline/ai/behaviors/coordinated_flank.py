"""Coordinated flank: the bridge between planning and squad coordination.

To the planner, CoordinatedFlankAction is an ordinary action with the same
preconditions and effects as a solo flank. Its cost is what makes it
interesting: with allies in the fight it undercuts the solo flank, alone it
is priced well above it, so the planner picks coordination exactly when a
squad can actually form.

Execution is where it differs. Instead of letting the agent body play the
behavior out, it hands the agent to the SquadManager, which either joins it
to a nearby squad or starts a new one. If the manager refuses (squad full, no
backup, cooldown), execute() returns False and the caller replans without
coordination.
"""

from __future__ import annotations

import logging
from typing import ClassVar

from flankline.ai.planning import Action, PlanningContext
from flankline.constants.planner import PlannerConstants as Costs
from flankline.types import Facts

logger = logging.getLogger(__name__)


class CoordinatedFlankAction(Action):
    """Flank the player's cover together with nearby allies."""

    ACTION_NAME = "coordinated_flank"
    COST = Costs.COORDINATED_FLANK_COST
    PRECONDITIONS: ClassVar[Facts] = {"player_visible": False, "in_cover": True}
    EFFECTS: ClassVar[Facts] = {"player_engaged": True, "at_flank_position": True}

    def get_cost(self, context: PlanningContext | None, world_state: Facts) -> float:
        """1.5 with at least two enemies in combat, 4.0 otherwise.

        The count comes from the ``enemies_in_combat`` fact, falling back to
        the context when the state lacks it. An agent its squad manager has
        put on cooldown is always priced solo.
        """
        count = world_state.get("enemies_in_combat")
        if (count is None or isinstance(count, bool)) and context is not None:
            count = context.enemies_in_combat
        if count is None or isinstance(count, bool):
            return Costs.COORDINATED_FLANK_SOLO_COST

        if context is not None and context.agent is not None:
            manager = context.squad_manager
            if manager is not None and not manager.is_coordination_available(
                context.agent
            ):
                return Costs.COORDINATED_FLANK_SOLO_COST

        if count >= Costs.COORDINATED_FLANK_MIN_ALLIES:
            return Costs.COORDINATED_FLANK_SQUAD_COST
        return Costs.COORDINATED_FLANK_SOLO_COST

    def execute(self, context: PlanningContext) -> bool:
        """Request squad membership for the executing agent.

        Returns False when there is no agent, no manager, no target cover
        for a fresh squad, or the manager refuses membership.
        """
        agent = context.agent
        manager = context.squad_manager
        if agent is None or manager is None:
            return False
        if manager.is_in_squad(agent):
            return True
        if context.target_cover is None:
            logger.debug("Coordinated flank needs a target cover; none given")
            return False
        return manager.request_flank(agent, context.target_cover, context.allies)
