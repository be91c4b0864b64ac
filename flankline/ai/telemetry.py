"""Live metrics published by the AI core.

Registration is idempotent so the planner and the squad manager can both
call ``register_ai_metrics()`` from their constructors.
"""

from flankline.util.live_vars import MetricSpec, live_variable_registry

PLAN_TIME_METRIC = "ai.planner.plan_ms"
EXPANDED_NODES_METRIC = "ai.planner.expanded_nodes"
SQUAD_SIZE_METRIC = "ai.squads.size_at_flank"
SYNC_WAIT_METRIC = "ai.squads.sync_wait_s"

AI_METRICS: list[MetricSpec] = [
    MetricSpec(PLAN_TIME_METRIC, "Wall time per plan() call (ms)"),
    MetricSpec(EXPANDED_NODES_METRIC, "Frontier nodes expanded per plan() call"),
    MetricSpec(SQUAD_SIZE_METRIC, "Squad size when the flank starts"),
    MetricSpec(SYNC_WAIT_METRIC, "Seconds spent waiting at the sync barrier"),
]


def register_ai_metrics() -> None:
    live_variable_registry.register_metrics(AI_METRICS)
