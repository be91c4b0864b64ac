"""Simple combat actions for the planner catalog.

These are the peers the coordinated flank competes against. They carry
static costs only and need no runtime coordination: once one wins, the agent
body plays the behavior out. Squad-aware actions live in the behaviors/
subpackage.
"""

from __future__ import annotations

from typing import ClassVar

from flankline.constants.planner import PlannerConstants as Costs
from flankline.types import Facts

from .planning import Action


class EngagePlayerAction(Action):
    """Shoot at the player. Needs line of sight and ammunition."""

    ACTION_NAME = "engage_player"
    COST = Costs.ENGAGE_COST
    PRECONDITIONS: ClassVar[Facts] = {"player_visible": True, "has_ammo": True}
    EFFECTS: ClassVar[Facts] = {"player_engaged": True}


class SuppressPlayerAction(Action):
    """Lay down fire to pin the player in place."""

    ACTION_NAME = "suppress_player"
    COST = Costs.SUPPRESS_COST
    PRECONDITIONS: ClassVar[Facts] = {"player_visible": True, "has_ammo": True}
    EFFECTS: ClassVar[Facts] = {"player_suppressed": True}


class PursuePlayerAction(Action):
    """Move towards the player's last known position to reacquire them."""

    ACTION_NAME = "pursue_player"
    COST = Costs.PURSUE_COST
    PRECONDITIONS: ClassVar[Facts] = {"player_visible": False}
    EFFECTS: ClassVar[Facts] = {"player_visible": True}


class SeekCoverAction(Action):
    """Move to the nearest cover point."""

    ACTION_NAME = "seek_cover"
    COST = Costs.SEEK_COVER_COST
    PRECONDITIONS: ClassVar[Facts] = {"in_cover": False}
    EFFECTS: ClassVar[Facts] = {"in_cover": True}


class ReloadAction(Action):
    ACTION_NAME = "reload"
    COST = Costs.RELOAD_COST
    PRECONDITIONS: ClassVar[Facts] = {"has_ammo": False}
    EFFECTS: ClassVar[Facts] = {"has_ammo": True}


class RetreatAction(Action):
    """Fall back to cover away from incoming fire."""

    ACTION_NAME = "retreat"
    COST = Costs.RETREAT_COST
    PRECONDITIONS: ClassVar[Facts] = {"under_fire": True}
    EFFECTS: ClassVar[Facts] = {"in_cover": True, "under_fire": False}
