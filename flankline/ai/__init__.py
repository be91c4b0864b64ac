"""
Goal-oriented planning and squad coordination for combat enemies.

Each enemy plans its next move with a GOAP planner over symbolic facts.
When the plan calls for a coordinated flank, execution hands the agent to
the SquadManager, which groups nearby enemies into squads and drives them
through a synchronized pincer.

Package structure:
    world_state   - WorldState: immutable, hashable fact snapshot.
    planning      - Action base class and PlanningContext.
    actions       - Simple catalog actions: engage, suppress, pursue, cover...
    behaviors/    - Flank actions: solo FlankAction, CoordinatedFlankAction.
    catalog       - Default catalog in tie-break order.
    planner       - Planner: uniform-cost search over world states.
    agent         - SquadAgent protocol the host game implements.
    squad         - Squad record, role table, rally geometry.
    squad_manager - SquadManager: membership, phases, sync barrier.
    component     - GoapComponent: per-agent replan/execute driver.
    telemetry     - Live metrics registered by the planner and manager.
"""

from .agent import SquadAgent
from .behaviors import CoordinatedFlankAction, FlankAction, pick_flank_side
from .catalog import ENGAGE_GOAL, build_planner, default_catalog
from .component import GoapComponent
from .planner import Planner, PlanResult, simulate
from .planning import Action, PlanningContext
from .squad import (
    RoleAssignment,
    Squad,
    assign_roles,
    supporting_position,
    sync_position,
)
from .squad_manager import SquadManager, SyncPolicy, evaluate_transition
from .world_state import WorldState

__all__ = [
    "ENGAGE_GOAL",
    "Action",
    "CoordinatedFlankAction",
    "FlankAction",
    "GoapComponent",
    "PlanResult",
    "Planner",
    "PlanningContext",
    "RoleAssignment",
    "Squad",
    "SquadAgent",
    "SquadManager",
    "SyncPolicy",
    "WorldState",
    "assign_roles",
    "build_planner",
    "default_catalog",
    "evaluate_transition",
    "pick_flank_side",
    "simulate",
    "supporting_position",
    "sync_position",
]
