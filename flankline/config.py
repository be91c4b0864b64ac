"""
Configuration constants.

Centralizes the tuning values used by the planner, the agent driver and the
squad coordinator. Tactical geometry (sync distances, squad cap) lives in
``flankline.constants`` alongside the other game-rule numbers.
"""

# =============================================================================
# GENERAL
# =============================================================================

# Master switch for GOAP-driven enemies. When False, GoapComponent.update()
# does nothing and agents fall back to whatever the host game does by default.
GOAP_AI_ENABLED = True

# =============================================================================
# PLANNER
# =============================================================================

# Hard cap on frontier pops per plan() call. Guarantees termination on
# cyclic or unreachable fact graphs.
PLANNER_MAX_EXPANSIONS = 2048

# Maximum plan length. Combat plans are short; anything longer is almost
# certainly a catalog that loops without converging.
PLANNER_MAX_DEPTH = 8

# =============================================================================
# AGENT DRIVER
# =============================================================================

# Seconds between replans while the current plan is still valid.
REPLAN_INTERVAL = 0.5

# =============================================================================
# SQUAD SYNC POLICY DEFAULTS
# =============================================================================

# How long a lone initiator waits for a second member before flanking solo.
SQUAD_FORMING_TIMEOUT = 1.5

# How long a squad may sit in positioning before the sync barrier is
# considered stalled. None disables stall handling entirely.
SQUAD_SYNC_TIMEOUT: float | None = 6.0

# Stalled sync barriers are retried this many times before the squad
# dissolves and its members plan independently.
SQUAD_MAX_SYNC_ATTEMPTS = 3

# After a dissolve-on-stall, members may not start or join a squad for
# this many seconds.
SQUAD_FAILURE_COOLDOWN = 10.0
