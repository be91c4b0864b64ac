"""Flank behaviors.

Each module pairs a planner action with the runtime logic it triggers when
executed.
"""

from .coordinated_flank import CoordinatedFlankAction
from .flank import FlankAction, pick_flank_side

__all__ = [
    "CoordinatedFlankAction",
    "FlankAction",
    "pick_flank_side",
]
