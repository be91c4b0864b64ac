"""Constants for the default action catalog."""


class PlannerConstants:
    """Baseline costs and dynamic cost values for catalog actions."""

    # --- Static baseline costs ---
    ENGAGE_COST = 1.0
    SEEK_COVER_COST = 1.0
    RELOAD_COST = 1.0
    SUPPRESS_COST = 1.5
    FLANK_COST = 2.0
    RETREAT_COST = 2.5
    PURSUE_COST = 3.0

    # --- Coordinated flank ---
    # Static fallback; get_cost() always overrides it in practice.
    COORDINATED_FLANK_COST = 2.0
    # Enough allies in combat to form a squad: cheaper than a plain flank.
    COORDINATED_FLANK_SQUAD_COST = 1.5
    # Alone: priced above a plain flank so the solo variant wins.
    COORDINATED_FLANK_SOLO_COST = 4.0
    # enemies_in_combat at or above this counts as "squad available".
    COORDINATED_FLANK_MIN_ALLIES = 2
