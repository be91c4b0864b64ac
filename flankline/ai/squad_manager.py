"""
SquadManager: owns every Squad and drives the coordinated-flank phases.

A squad forms when an agent executes a coordinated flank and backup is
around, then walks a fixed phase machine:

    FORMING -> POSITIONING -> FLANKING -> ASSAULTING -> (dissolved)

FORMING -> POSITIONING once a second member has joined (a lone initiator
    advances as a degenerate one-member squad after the forming timeout;
    an empty squad never advances).
POSITIONING -> FLANKING immediately for squads of 1-2. Squads of 3-4 split
    into LOWER and UPPER subgroups and advance only when both subgroups are
    at their rally points - the sync barrier. One subgroup idling at its
    rally point while the other is still moving breaks the timing of the
    pincer, so readiness is AND across subgroups, never OR.
FLANKING -> ASSAULTING as soon as any member can see the player.
ASSAULTING ends when every live member has reached the back of the
    player's cover.

Concurrency: the manager is the only writer of squad state. Every mutation
(join, leave, role reassignment, phase transition) runs under the arena lock
and then the squad's own lock, always in that order. Agents never write squad
state; they receive commands through the SquadAgent interface.

Removal is immediate: a member that dies or disengages is dropped and the
survivors' roles recomputed in the same call, at any phase.
"""

from __future__ import annotations

import itertools
import logging
import math
import threading
from collections.abc import Iterable
from dataclasses import dataclass

from flankline import config
from flankline.constants.squad import SquadConstants as Squads
from flankline.enums import FlankDirection, SquadPhase, TacticalRole
from flankline.events import (
    SquadDissolvedEvent,
    SquadFormedEvent,
    SquadMemberLostEvent,
    SquadPhaseChangedEvent,
    publish_event,
)
from flankline.types import SquadId, WorldPos
from flankline.util.live_vars import record_metric_value

from .agent import SquadAgent
from .squad import Squad, assign_roles, sync_position
from .telemetry import SQUAD_SIZE_METRIC, SYNC_WAIT_METRIC, register_ai_metrics

logger = logging.getLogger(__name__)

# Phases in which a squad still accepts new members.
_JOINABLE_PHASES = (SquadPhase.FORMING, SquadPhase.POSITIONING)


@dataclass(frozen=True, slots=True)
class SyncPolicy:
    """How long squads wait, and what happens when they wait too long.

    The sync barrier has no natural timeout: if one subgroup is pinned down
    it may never reach its rally point. Rather than deadlock, a squad retries
    the barrier a limited number of times (re-issuing rally targets) and then
    dissolves, putting its members on cooldown so they plan independently.

    Attributes:
        forming_timeout: Seconds a lone initiator waits before flanking solo.
        sync_timeout: Seconds per sync attempt. None waits forever and leaves
            escalation entirely to the caller.
        max_sync_attempts: Stalled attempts allowed before dissolving.
        cooldown: Seconds dissolved members are barred from squads.
    """

    forming_timeout: float = config.SQUAD_FORMING_TIMEOUT
    sync_timeout: float | None = config.SQUAD_SYNC_TIMEOUT
    max_sync_attempts: int = config.SQUAD_MAX_SYNC_ATTEMPTS
    cooldown: float = config.SQUAD_FAILURE_COOLDOWN


def evaluate_transition(squad: Squad, policy: SyncPolicy) -> SquadPhase | None:
    """Return the phase ``squad`` should move to now, or None to stay put.

    Pure: reads the squad record (including ``sync_reached``) and the
    members' can-see / cover-back queries, writes nothing.
    """
    if not squad.members:
        return None

    match squad.phase:
        case SquadPhase.FORMING:
            if squad.size >= 2 or squad.phase_elapsed >= policy.forming_timeout:
                return SquadPhase.POSITIONING
        case SquadPhase.POSITIONING:
            if not squad.needs_sync_barrier or squad.subgroups_synchronized:
                return SquadPhase.FLANKING
        case SquadPhase.FLANKING:
            if any(member.can_see_player() for member in squad.members):
                return SquadPhase.ASSAULTING
        case SquadPhase.ASSAULTING:
            pass
    return None


def _distance(a: WorldPos, b: WorldPos) -> float:
    return math.hypot(a[0] - b[0], a[1] - b[1])


class SquadManager:
    """Arena of squads plus the phase machine that advances them.

    Agents are referenced directly (they must be hashable); squads are
    referenced by ``SquadId`` handles.

    Args:
        policy: Sync stall handling. Defaults come from ``config``.
        join_radius: Max distance between target covers for an agent to
            join an existing squad, and between agents for an ally to count
            as backup.
    """

    def __init__(
        self,
        policy: SyncPolicy | None = None,
        *,
        join_radius: float = Squads.JOIN_RADIUS,
    ) -> None:
        self.policy = policy or SyncPolicy()
        self.join_radius = join_radius
        self._squads: dict[SquadId, Squad] = {}
        self._agent_squads: dict[SquadAgent, SquadId] = {}
        # Agent -> seconds remaining before it may join a squad again.
        self._cooldowns: dict[SquadAgent, float] = {}
        self._ids = itertools.count(1)
        self._lock = threading.RLock()
        register_ai_metrics()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def squads(self) -> tuple[Squad, ...]:
        with self._lock:
            return tuple(self._squads.values())

    @property
    def squad_count(self) -> int:
        return len(self._squads)

    def get_squad_by_id(self, squad_id: SquadId) -> Squad | None:
        return self._squads.get(squad_id)

    def get_squad(self, agent: SquadAgent) -> Squad | None:
        """Return the squad ``agent`` belongs to, if any."""
        with self._lock:
            squad_id = self._agent_squads.get(agent)
            return self._squads.get(squad_id) if squad_id is not None else None

    def is_in_squad(self, agent: SquadAgent) -> bool:
        return agent in self._agent_squads

    def get_role(self, agent: SquadAgent) -> TacticalRole:
        squad = self.get_squad(agent)
        if squad is None:
            return TacticalRole.NONE
        with squad.lock:
            return squad.role_of(agent)

    def get_subgroup(self, agent: SquadAgent) -> FlankDirection:
        squad = self.get_squad(agent)
        if squad is None:
            return FlankDirection.LOWER
        with squad.lock:
            return squad.subgroup_of(agent)

    def get_phase(self, squad_id: SquadId) -> SquadPhase | None:
        squad = self._squads.get(squad_id)
        return squad.phase if squad is not None else None

    def is_subgroup_ready(self, squad_id: SquadId, subgroup: FlankDirection) -> bool:
        squad = self._squads.get(squad_id)
        if squad is None:
            return False
        with squad.lock:
            return squad.is_subgroup_ready(subgroup)

    def are_subgroups_synchronized(self, squad_id: SquadId) -> bool:
        squad = self._squads.get(squad_id)
        if squad is None:
            return False
        with squad.lock:
            return squad.subgroups_synchronized

    def sync_position_for(self, agent: SquadAgent) -> WorldPos | None:
        """The rally point of ``agent``'s subgroup, or None outside a squad."""
        squad = self.get_squad(agent)
        if squad is None:
            return None
        with squad.lock:
            return sync_position(squad.target_cover, squad.subgroup_of(agent))

    def assigned_position_for(self, agent: SquadAgent) -> WorldPos | None:
        """Where ``agent`` itself should stand while its squad positions.

        Same as ``sync_position_for`` for leads; supporting members get the
        trailing point behind their lead.
        """
        squad = self.get_squad(agent)
        if squad is None:
            return None
        with squad.lock:
            return squad.rally_position(agent)

    def is_on_cooldown(self, agent: SquadAgent) -> bool:
        return self._cooldowns.get(agent, 0.0) > 0.0

    def is_coordination_available(self, agent: SquadAgent) -> bool:
        """Whether ``agent`` could take part in a coordinated flank right now."""
        return not self.is_on_cooldown(agent)

    # ------------------------------------------------------------------
    # Membership
    # ------------------------------------------------------------------

    def request_flank(
        self,
        agent: SquadAgent,
        target_cover: WorldPos,
        allies: Iterable[SquadAgent] = (),
    ) -> bool:
        """Put ``agent`` into a coordinated flank on ``target_cover``.

        Joins the nearest compatible squad (forming or positioning, below
        the cap, converging on a cover within ``join_radius``). Without one,
        starts a new squad if at least one ally is an idle, combat-engaged,
        squadless agent nearby.

        Returns:
            True if the agent is now in a squad. False when refused: the
            agent is dead or on cooldown, every nearby squad is full, or no
            backup is available. The caller should then plan without
            coordination.
        """
        with self._lock:
            if agent in self._agent_squads:
                return True
            if not agent.is_alive() or self.is_on_cooldown(agent):
                return False

            candidates = [
                squad
                for squad in self._squads.values()
                if squad.phase in _JOINABLE_PHASES
                and _distance(squad.target_cover, target_cover) <= self.join_radius
            ]
            # The dead do not hold slots, even between ticks.
            for squad in candidates:
                with squad.lock:
                    self._purge_dead(squad)
            nearby = [s for s in candidates if s.squad_id in self._squads]
            open_squads = [squad for squad in nearby if not squad.is_full]
            if open_squads:
                closest = min(
                    open_squads,
                    key=lambda s: _distance(s.target_cover, target_cover),
                )
                return self.join_squad(closest.squad_id, agent)
            if nearby:
                logger.debug(
                    "Flank request refused: %d nearby squad(s) already full",
                    len(nearby),
                )
                return False

            if not self._has_backup(agent, allies):
                logger.debug("Flank request refused: no idle engaged ally nearby")
                return False

            self._create_squad(agent, target_cover)
            return True

    def join_squad(self, squad_id: SquadId, agent: SquadAgent) -> bool:
        """Add ``agent`` to a specific squad.

        Returns False (and changes nothing) if the squad does not exist, is
        full, has already started flanking, or the agent is dead or in
        another squad. Joining the squad the agent is already in is a no-op
        that returns True.
        """
        with self._lock:
            squad = self._squads.get(squad_id)
            if squad is None:
                return False
            current = self._agent_squads.get(agent)
            if current is not None:
                return current == squad_id
            if not agent.is_alive():
                return False
            with squad.lock:
                self._purge_dead(squad)
                if squad.squad_id not in self._squads:
                    return False
                if squad.is_full:
                    logger.debug(
                        "Squad %d is full (%d); refusing new member",
                        squad_id,
                        squad.size,
                    )
                    return False
                if squad.phase not in _JOINABLE_PHASES:
                    return False
                squad.members.append(agent)
                self._agent_squads[agent] = squad_id
                self._reassign_roles(squad, new_member=agent)
                logger.debug("Agent joined squad %d (size %d)", squad_id, squad.size)
            return True

    def leave_squad(self, agent: SquadAgent, *, reason: str = "left") -> bool:
        """Remove ``agent`` from its squad.

        The agent gets ``leave_flank_squad()`` (role back to NONE, subgroup
        back to LOWER), and the survivors' roles are recomputed immediately.
        An emptied squad is dissolved. Calling this for an agent outside any
        squad is a no-op returning False.
        """
        with self._lock:
            squad_id = self._agent_squads.get(agent)
            if squad_id is None:
                return False
            squad = self._squads[squad_id]
            with squad.lock:
                self._detach(squad, agent)
                agent.leave_flank_squad()
                if squad.members:
                    self._reassign_roles(squad)
                logger.debug(
                    "Agent left squad %d (%s); %d remaining",
                    squad_id,
                    reason,
                    squad.size,
                )
                publish_event(
                    SquadMemberLostEvent(
                        squad_id=squad_id, agent=agent, remaining=squad.size
                    )
                )
                if not squad.members:
                    self._dissolve(squad, reason="attrition")
            return True

    def update_target(self, squad_id: SquadId, target_cover: WorldPos) -> bool:
        """Move a squad's target cover and re-issue everyone's destination.

        Rally points move with the cover, so arrivals recorded against the
        old rally points are discarded.
        """
        with self._lock:
            squad = self._squads.get(squad_id)
            if squad is None:
                return False
            with squad.lock:
                squad.target_cover = target_cover
                squad.sync_reached.clear()
                self._send_targets(squad, squad.members)
            return True

    def report_at_sync_position(self, agent: SquadAgent) -> bool:
        """Record that ``agent`` reached its rally point.

        Only meaningful while its squad is positioning. Reporting twice is a
        no-op. Returns True if the arrival is (now) recorded.
        """
        with self._lock:
            squad = self.get_squad(agent)
            if squad is None:
                return False
            with squad.lock:
                if squad.phase is not SquadPhase.POSITIONING:
                    return False
                squad.sync_reached.add(agent)
                return True

    def clear(self) -> None:
        """Dissolve every squad and forget all cooldowns."""
        with self._lock:
            for squad in list(self._squads.values()):
                with squad.lock:
                    self._dissolve(squad, reason="cleared")
            self._cooldowns.clear()

    # ------------------------------------------------------------------
    # Tick
    # ------------------------------------------------------------------

    def update(self, dt: float) -> None:
        """Advance cooldowns and every squad's phase machine by ``dt`` seconds."""
        with self._lock:
            for agent in list(self._cooldowns):
                remaining = self._cooldowns[agent] - dt
                if remaining <= 0.0:
                    del self._cooldowns[agent]
                else:
                    self._cooldowns[agent] = remaining

            for squad in list(self._squads.values()):
                with squad.lock:
                    self._update_squad(squad, dt)

    def _update_squad(self, squad: Squad, dt: float) -> None:
        squad.phase_elapsed += dt

        for member in list(squad.members):
            if not member.is_alive():
                self.leave_squad(member, reason="died")
            elif member.get_current_state() in Squads.DISENGAGED_STATES:
                self.leave_squad(member, reason="disengaged")
        if squad.squad_id not in self._squads:
            return

        if squad.phase is SquadPhase.POSITIONING:
            for member in squad.members:
                if member.is_at_sync_position():
                    squad.sync_reached.add(member)

        # Phases may cascade in one tick (a pair passes straight through
        # positioning), but never more than once per phase.
        for _ in range(len(SquadPhase)):
            next_phase = evaluate_transition(squad, self.policy)
            if next_phase is None:
                break
            self._enter_phase(squad, next_phase)

        match squad.phase:
            case SquadPhase.POSITIONING:
                self._check_sync_stall(squad)
            case SquadPhase.ASSAULTING:
                if all(member.is_at_cover_back() for member in squad.members):
                    self._dissolve(squad, reason="completed")

    def _check_sync_stall(self, squad: Squad) -> None:
        timeout = self.policy.sync_timeout
        if timeout is None or squad.phase_elapsed < timeout:
            return

        squad.sync_attempts += 1
        if squad.sync_attempts >= self.policy.max_sync_attempts:
            logger.warning(
                "Squad %d sync stalled %d times (ready: %s); dissolving",
                squad.squad_id,
                squad.sync_attempts,
                {d.name: ready for d, ready in squad.subgroup_ready.items()},
            )
            self._dissolve(squad, reason="sync_stalled", cooldown=True)
            return

        logger.warning(
            "Squad %d sync stalled (attempt %d/%d); re-issuing rally points",
            squad.squad_id,
            squad.sync_attempts,
            self.policy.max_sync_attempts,
        )
        squad.phase_elapsed = 0.0
        self._send_targets(squad, squad.members)

    # ------------------------------------------------------------------
    # Internals (callers hold the arena lock and squad.lock)
    # ------------------------------------------------------------------

    def _has_backup(self, agent: SquadAgent, allies: Iterable[SquadAgent]) -> bool:
        origin = agent.global_position
        for ally in allies:
            if ally is agent or ally in self._agent_squads:
                continue
            if not ally.is_alive() or self.is_on_cooldown(ally):
                continue
            if ally.get_current_state() not in Squads.ENGAGED_STATES:
                continue
            if _distance(origin, ally.global_position) <= self.join_radius:
                return True
        return False

    def _create_squad(self, agent: SquadAgent, target_cover: WorldPos) -> Squad:
        squad = Squad(squad_id=SquadId(next(self._ids)), target_cover=target_cover)
        with squad.lock:
            self._squads[squad.squad_id] = squad
            squad.members.append(agent)
            self._agent_squads[agent] = squad.squad_id
            self._reassign_roles(squad, new_member=agent)
        logger.info("Squad %d formed at cover %s", squad.squad_id, target_cover)
        publish_event(SquadFormedEvent(squad_id=squad.squad_id, initiator=agent))
        return squad

    def _purge_dead(self, squad: Squad) -> None:
        for member in [m for m in squad.members if not m.is_alive()]:
            self.leave_squad(member, reason="died")

    def _detach(self, squad: Squad, agent: SquadAgent) -> None:
        squad.members.remove(agent)
        squad.roles.pop(agent, None)
        squad.subgroups.pop(agent, None)
        squad.sync_reached.discard(agent)
        self._agent_squads.pop(agent, None)

    def _reassign_roles(
        self, squad: Squad, new_member: SquadAgent | None = None
    ) -> None:
        """Recompute every live member's role from scratch and tell whoever
        changed. Dead members awaiting removal get no slot."""
        previous = {
            m: (squad.roles.get(m), squad.subgroups.get(m)) for m in squad.members
        }
        squad.roles.clear()
        squad.subgroups.clear()

        moved: list[SquadAgent] = []
        live = [m for m in squad.members if m.is_alive()]
        for assignment in assign_roles(live):
            agent = assignment.agent
            squad.roles[agent] = assignment.role
            squad.subgroups[agent] = assignment.subgroup

            if agent is new_member:
                agent.join_flank_squad(
                    squad.target_cover, assignment.role, assignment.subgroup
                )
                moved.append(agent)
                continue

            if previous[agent] != (assignment.role, assignment.subgroup):
                # A new slot means a new rally point; the old arrival is stale.
                squad.sync_reached.discard(agent)
                agent.update_squad_role(assignment.role, assignment.subgroup)
                moved.append(agent)

        if squad.phase is SquadPhase.POSITIONING:
            self._send_targets(squad, moved)

    def _send_targets(self, squad: Squad, agents: Iterable[SquadAgent]) -> None:
        for agent in agents:
            if squad.phase is SquadPhase.POSITIONING:
                target = squad.rally_position(agent)
                if target is None:
                    continue
            else:
                target = squad.target_cover
            agent.update_flank_target(target)

    def _enter_phase(self, squad: Squad, phase: SquadPhase) -> None:
        previous = squad.phase
        waited = squad.phase_elapsed
        squad.phase = phase
        squad.phase_elapsed = 0.0
        logger.debug(
            "Squad %d: %s -> %s (size %d)",
            squad.squad_id,
            previous.name,
            phase.name,
            squad.size,
        )

        match phase:
            case SquadPhase.POSITIONING:
                squad.sync_reached.clear()
                squad.sync_attempts = 0
                self._send_targets(squad, squad.members)
            case SquadPhase.FLANKING:
                record_metric_value(SQUAD_SIZE_METRIC, squad.size)
                record_metric_value(SYNC_WAIT_METRIC, waited)
                for member in squad.members:
                    member.begin_synchronized_flank()
            case SquadPhase.ASSAULTING:
                for member in squad.members:
                    member.begin_coordinated_assault()

        publish_event(
            SquadPhaseChangedEvent(
                squad_id=squad.squad_id, previous=previous, current=phase
            )
        )

    def _dissolve(self, squad: Squad, reason: str, *, cooldown: bool = False) -> None:
        self._squads.pop(squad.squad_id, None)
        for member in list(squad.members):
            self._detach(squad, member)
            member.leave_flank_squad()
            if cooldown:
                self._cooldowns[member] = self.policy.cooldown
        logger.info("Squad %d dissolved (%s)", squad.squad_id, reason)
        publish_event(SquadDissolvedEvent(squad_id=squad.squad_id, reason=reason))
