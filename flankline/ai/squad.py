"""Squad records, role assignment and rally geometry.

A Squad is a plain record in the SquadManager's arena. Everything here is
either data or a pure function of data: the manager is the only writer, and
it holds ``squad.lock`` while it writes.

Role assignment is fully recomputed from current membership every time
membership changes. Roles are never inherited from a departed member, so a
4 -> 3 casualty always lands on the canonical 3-member table.
"""

from __future__ import annotations

import threading
from collections.abc import Sequence
from dataclasses import dataclass, field

import numpy as np

from flankline.constants.squad import SquadConstants as Squads
from flankline.enums import FlankDirection, SquadPhase, TacticalRole
from flankline.types import SquadId, WorldPos

from .agent import SquadAgent

# Size -> (role, subgroup) per slot, slot 0 being the member furthest
# down-screen (largest Y).
_ROLE_TABLE: dict[int, tuple[tuple[TacticalRole, FlankDirection], ...]] = {
    1: ((TacticalRole.LEAD_ATTACKER, FlankDirection.LOWER),),
    2: (
        (TacticalRole.LEAD_ATTACKER, FlankDirection.LOWER),
        (TacticalRole.SUPPORTING, FlankDirection.LOWER),
    ),
    3: (
        (TacticalRole.LEAD_ATTACKER, FlankDirection.LOWER),
        (TacticalRole.SUPPORTING, FlankDirection.LOWER),
        (TacticalRole.UPPER_LEAD_ATTACKER, FlankDirection.UPPER),
    ),
    4: (
        (TacticalRole.LEAD_ATTACKER, FlankDirection.LOWER),
        (TacticalRole.SUPPORTING, FlankDirection.LOWER),
        (TacticalRole.UPPER_SUPPORTING, FlankDirection.UPPER),
        (TacticalRole.UPPER_LEAD_ATTACKER, FlankDirection.UPPER),
    ),
}


@dataclass(frozen=True, slots=True)
class RoleAssignment:
    """One member's slot in a squad."""

    agent: SquadAgent
    role: TacticalRole
    subgroup: FlankDirection


def sort_by_depth(agents: Sequence[SquadAgent]) -> list[SquadAgent]:
    """Sort agents by Y descending (furthest down-screen first).

    The sort is stable, so agents at the same Y keep their membership order.
    """
    return sorted(agents, key=lambda agent: agent.global_position[1], reverse=True)


def assign_roles(agents: Sequence[SquadAgent]) -> list[RoleAssignment]:
    """Assign roles and subgroups to live squad members.

    Returns assignments in depth order (slot 0 first). An empty input yields
    an empty list.

    Raises:
        ValueError: If more than ``MAX_SQUAD_SIZE`` agents are passed. The
            manager enforces the cap before calling, so this is a bug guard.
    """
    if not agents:
        return []
    if len(agents) > Squads.MAX_SQUAD_SIZE:
        raise ValueError(
            f"Cannot assign roles to {len(agents)} agents "
            f"(cap is {Squads.MAX_SQUAD_SIZE})"
        )
    table = _ROLE_TABLE[len(agents)]
    return [
        RoleAssignment(agent=agent, role=role, subgroup=subgroup)
        for agent, (role, subgroup) in zip(sort_by_depth(agents), table, strict=True)
    ]


def sync_position(target_cover: WorldPos, subgroup: FlankDirection) -> WorldPos:
    """Rally point for a subgroup: SYNC_DISTANCE below (LOWER) or above
    (UPPER) the target cover."""
    sign = 1.0 if subgroup is FlankDirection.LOWER else -1.0
    pos = np.asarray(target_cover, dtype=float) + np.array(
        (0.0, sign * Squads.SYNC_DISTANCE)
    )
    return (float(pos[0]), float(pos[1]))


def supporting_position(
    lead_pos: WorldPos, target: WorldPos, subgroup: FlankDirection
) -> WorldPos:
    """Point SUPPORTING_OFFSET behind ``lead_pos`` on the lead-to-target axis.

    "Behind" means further from the target than the lead, never closer.
    When the lead already stands on the target the axis is undefined; the
    supporting member then trails along its subgroup's rally axis instead.
    """
    lead = np.asarray(lead_pos, dtype=float)
    axis = np.asarray(target, dtype=float) - lead
    length = float(np.linalg.norm(axis))
    if length == 0.0:
        sign = 1.0 if subgroup is FlankDirection.LOWER else -1.0
        away = np.array((0.0, sign))
    else:
        away = -axis / length
    pos = lead + away * Squads.SUPPORTING_OFFSET
    return (float(pos[0]), float(pos[1]))


@dataclass(eq=False)
class Squad:
    """Arena record for one coordinated flank.

    Attributes:
        squad_id: Arena handle.
        target_cover: Cover point the whole squad converges on.
        members: Live members in join order (1 to MAX_SQUAD_SIZE).
        roles: Current role per member.
        subgroups: Current subgroup per member.
        phase: Current lifecycle phase.
        sync_reached: Members that have reached their rally point since the
            last (re)assignment. Subgroup readiness derives from this.
        phase_elapsed: Seconds spent in the current phase.
        sync_attempts: Times the sync barrier has stalled and been retried.
        lock: Serializes every mutation of this record.
    """

    squad_id: SquadId
    target_cover: WorldPos
    members: list[SquadAgent] = field(default_factory=list)
    roles: dict[SquadAgent, TacticalRole] = field(default_factory=dict)
    subgroups: dict[SquadAgent, FlankDirection] = field(default_factory=dict)
    phase: SquadPhase = SquadPhase.FORMING
    sync_reached: set[SquadAgent] = field(default_factory=set)
    phase_elapsed: float = 0.0
    sync_attempts: int = 0
    lock: threading.RLock = field(default_factory=threading.RLock, repr=False)

    @property
    def size(self) -> int:
        return len(self.members)

    @property
    def is_full(self) -> bool:
        return self.size >= Squads.MAX_SQUAD_SIZE

    @property
    def needs_sync_barrier(self) -> bool:
        """Squads big enough to split must synchronize both subgroups."""
        return self.size >= Squads.SUBGROUP_SPLIT_SIZE

    def role_of(self, agent: SquadAgent) -> TacticalRole:
        return self.roles.get(agent, TacticalRole.NONE)

    def subgroup_of(self, agent: SquadAgent) -> FlankDirection:
        return self.subgroups.get(agent, FlankDirection.LOWER)

    def subgroup_members(self, subgroup: FlankDirection) -> list[SquadAgent]:
        return [m for m in self.members if self.subgroups.get(m) is subgroup]

    def is_subgroup_ready(self, subgroup: FlankDirection) -> bool:
        """A subgroup is ready when it has members and all of them are at
        their rally point."""
        members = self.subgroup_members(subgroup)
        return bool(members) and all(m in self.sync_reached for m in members)

    @property
    def subgroup_ready(self) -> dict[FlankDirection, bool]:
        return {d: self.is_subgroup_ready(d) for d in FlankDirection}

    @property
    def subgroups_synchronized(self) -> bool:
        """The sync barrier: LOWER and UPPER both ready. AND, never OR."""
        return all(self.is_subgroup_ready(d) for d in FlankDirection)

    def rally_position(self, agent: SquadAgent) -> WorldPos | None:
        """Where ``agent`` should stand while the squad is positioning.

        Leads go to their subgroup's sync point; supporting members trail
        their lead's sync point. Returns None for non-members.
        """
        role = self.roles.get(agent)
        if role is None:
            return None
        subgroup = self.subgroup_of(agent)
        rally = sync_position(self.target_cover, subgroup)
        if role.is_lead:
            return rally
        return supporting_position(rally, self.target_cover, subgroup)
