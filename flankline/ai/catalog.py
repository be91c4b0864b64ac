"""Default action catalog for combat enemies.

Registration order matters: the planner breaks cost ties in favor of the
action registered first. ``coordinated_flank`` is registered ahead of
``flank`` so that, at equal price, an agent prefers to bring its allies.
"""

from __future__ import annotations

from .actions import (
    EngagePlayerAction,
    PursuePlayerAction,
    ReloadAction,
    RetreatAction,
    SeekCoverAction,
    SuppressPlayerAction,
)
from .behaviors import CoordinatedFlankAction, FlankAction
from .planner import Planner
from .planning import Action

# Goal every combat enemy pursues by default.
ENGAGE_GOAL = {"player_engaged": True}


def default_catalog() -> list[Action]:
    """Return fresh instances of the standard combat actions, in tie-break order."""
    return [
        EngagePlayerAction(),
        CoordinatedFlankAction(),
        FlankAction(),
        SuppressPlayerAction(),
        SeekCoverAction(),
        ReloadAction(),
        RetreatAction(),
        PursuePlayerAction(),
    ]


def build_planner(**kwargs) -> Planner:
    """Return a Planner loaded with ``default_catalog()``.

    Keyword arguments are passed through to ``Planner`` (search bounds).
    """
    return Planner(default_catalog(), **kwargs)
