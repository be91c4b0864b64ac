from __future__ import annotations

from collections.abc import Mapping
from typing import NewType, TypeAlias

# =============================================================================
# SPATIAL TYPES
# =============================================================================

# World coordinates are continuous (pixels/units), not tiles. Y grows
# "down-screen", so a numerically larger Y is further down.
WorldCoord: TypeAlias = float
WorldPos: TypeAlias = tuple[WorldCoord, WorldCoord]  # Example: (320.0, 480.0)

# =============================================================================
# PLANNING TYPES
# =============================================================================

# A single fact value. Booleans for flags, small ints for counts
# (e.g. enemies_in_combat).
FactValue: TypeAlias = bool | int

# Any read-only mapping of fact name to value. Goals, preconditions and
# effects are all expressed as Facts; WorldState is the hashable form.
Facts: TypeAlias = Mapping[str, FactValue]

# =============================================================================
# SQUAD TYPES
# =============================================================================

# Handle for a Squad record in the SquadManager arena. Assigned sequentially
# and never reused while the manager lives.
SquadId = NewType("SquadId", int)
