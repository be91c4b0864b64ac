"""Solo flank: FlankAction + flank side selection.

The solo flank is the uncoordinated baseline the coordinated flank is priced
against. Route clearance comes from the host game (line of sight and
navigation are not the planner's business) via PlanningContext.
"""

from __future__ import annotations

import logging
from typing import ClassVar

from flankline.ai.planning import Action, PlanningContext
from flankline.constants.planner import PlannerConstants as Costs
from flankline.enums import FlankSide
from flankline.types import Facts

logger = logging.getLogger(__name__)


def pick_flank_side(
    left_clear: bool,
    right_clear: bool,
    preferred: FlankSide = FlankSide.LEFT,
) -> FlankSide | None:
    """Choose which side to flank on.

    Returns ``preferred`` when it is clear, otherwise the other side when
    that one is clear, otherwise None: both routes are blocked and there is
    no flank to be had.
    """
    clear = {FlankSide.LEFT: left_clear, FlankSide.RIGHT: right_clear}
    if clear[preferred]:
        return preferred
    if clear[preferred.opposite]:
        return preferred.opposite
    return None


class FlankAction(Action):
    """Work around the player's cover alone.

    Same preconditions and effects as the coordinated flank; only the price
    and the execution differ.
    """

    ACTION_NAME = "flank"
    COST = Costs.FLANK_COST
    PRECONDITIONS: ClassVar[Facts] = {"player_visible": False, "in_cover": True}
    EFFECTS: ClassVar[Facts] = {"player_engaged": True, "at_flank_position": True}

    def choose_side(self, context: PlanningContext) -> FlankSide | None:
        return pick_flank_side(context.left_flank_clear, context.right_flank_clear)

    def execute(self, context: PlanningContext) -> bool:
        """Record the chosen side on the context for the agent body.

        Fails, leaving ``context.flank_side`` as None, when both flank routes
        are blocked.
        """
        side = self.choose_side(context)
        context.flank_side = side
        if side is None:
            logger.debug("Flank aborted: both sides blocked")
            return False
        return True
