from enum import Enum, auto


class TacticalRole(Enum):
    """Role a squad member plays in a coordinated flank.

    Integer values are stable and match what the host game stores on its
    agent bodies, so they can be passed through untranslated.
    """

    NONE = 0
    LEAD_ATTACKER = 1
    SUPPORTING = 2
    UPPER_LEAD_ATTACKER = 3
    UPPER_SUPPORTING = 4

    @property
    def is_lead(self) -> bool:
        return self in (TacticalRole.LEAD_ATTACKER, TacticalRole.UPPER_LEAD_ATTACKER)


class FlankDirection(Enum):
    """Which half of a squad a member belongs to.

    LOWER is the canonical reset value for agents outside any squad.
    """

    LOWER = 0
    UPPER = 1


class SquadPhase(Enum):
    """Lifecycle of a squad, in order. Dissolution is not a phase: the
    squad record is simply removed from the arena."""

    FORMING = auto()  # Initiator waiting for backup
    POSITIONING = auto()  # Members moving to their subgroup rally points
    FLANKING = auto()  # Sync barrier passed, squad advancing together
    ASSAULTING = auto()  # Player spotted, everyone commits


class FlankSide(Enum):
    """Side chosen for a solo flank. Absence of a side (None) means both
    sides are blocked."""

    LEFT = auto()
    RIGHT = auto()

    @property
    def opposite(self) -> "FlankSide":
        return FlankSide.RIGHT if self is FlankSide.LEFT else FlankSide.LEFT


class PlanStatus(Enum):
    """Why a plan() call produced the actions it did."""

    SATISFIED = auto()  # Goal already true, empty plan
    FOUND = auto()  # Non-empty plan reaches the goal
    UNREACHABLE = auto()  # Frontier exhausted, empty plan
    BOUND_EXCEEDED = auto()  # Expansion/depth cap hit, empty plan

    @property
    def is_failure(self) -> bool:
        return self in (PlanStatus.UNREACHABLE, PlanStatus.BOUND_EXCEEDED)
