"""Constants for squad coordination geometry and membership."""


class SquadConstants:
    """Constants for squad coordination geometry and membership."""

    # --- Membership ---
    # Hard cap. A fifth candidate is refused and plans independently.
    MAX_SQUAD_SIZE = 4

    # Squads of this size or larger split into LOWER/UPPER subgroups and
    # must pass the sync barrier before flanking.
    SUBGROUP_SPLIT_SIZE = 3

    # How close (world units) an agent must be to a squad's target cover to
    # join it rather than start a new one. Also bounds which allies count as
    # "nearby" when deciding whether a new squad may form.
    JOIN_RADIUS = 400.0

    # --- Rally geometry (world units) ---
    # LOWER rallies at target_cover + (0, SYNC_DISTANCE),
    # UPPER at target_cover - (0, SYNC_DISTANCE).
    SYNC_DISTANCE = 100.0

    # Supporting roles trail their lead along the lead-to-target axis,
    # always further from the target than the lead.
    SUPPORTING_OFFSET = 40.0

    # --- Agent states ---
    # Values of get_current_state() that count as "idle, combat-engaged":
    # available to back up a new squad.
    ENGAGED_STATES = frozenset(
        {"combat", "in_cover", "seeking_cover", "suppressed", "pursuing"}
    )

    # Values of get_current_state() that mean a member has dropped out of
    # the fight. Such members are removed from their squad on the next tick.
    DISENGAGED_STATES = frozenset({"idle", "retreating", "fleeing"})
