"""The narrow slice of an enemy body the AI core talks to.

The host game owns movement, animation, collision and perception. The core
only reads a handful of queries and fires commands back; commands are
fire-and-forget and their return values are ignored.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from flankline.enums import FlankDirection, TacticalRole
from flankline.types import WorldPos


@runtime_checkable
class SquadAgent(Protocol):
    """Interface every squad-capable enemy body provides."""

    @property
    def global_position(self) -> WorldPos: ...

    # --- Queries ---

    def get_current_state(self) -> str:
        """Name of the body's current behavior state (e.g. "combat")."""
        ...

    def is_alive(self) -> bool: ...

    def can_see_player(self) -> bool: ...

    def is_at_sync_position(self) -> bool:
        """True once the body has reached the rally point it was sent to."""
        ...

    def is_at_cover_back(self) -> bool:
        """True once the body is behind the player's cover (assault done)."""
        ...

    # --- Commands (called only by SquadManager) ---

    def join_flank_squad(
        self, cover: WorldPos, role: TacticalRole, subgroup: FlankDirection
    ) -> None: ...

    def leave_flank_squad(self) -> None: ...

    def update_flank_target(self, pos: WorldPos) -> None: ...

    def update_squad_role(
        self, role: TacticalRole, subgroup: FlankDirection
    ) -> None: ...

    def begin_synchronized_flank(self) -> None: ...

    def begin_coordinated_assault(self) -> None: ...
