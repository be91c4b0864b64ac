"""Tests for role assignment and rally geometry."""

import math

import pytest

from flankline.ai.squad import (
    Squad,
    assign_roles,
    sort_by_depth,
    supporting_position,
    sync_position,
)
from flankline.enums import FlankDirection, TacticalRole
from flankline.types import SquadId
from tests.helpers import make_agents

LOWER = FlankDirection.LOWER
UPPER = FlankDirection.UPPER


def _roles(agents) -> list[tuple[TacticalRole, FlankDirection]]:
    return [(a.role, a.subgroup) for a in assign_roles(agents)]


@pytest.mark.parametrize(
    ("size", "expected"),
    [
        (1, [(TacticalRole.LEAD_ATTACKER, LOWER)]),
        (
            2,
            [(TacticalRole.LEAD_ATTACKER, LOWER), (TacticalRole.SUPPORTING, LOWER)],
        ),
        (
            3,
            [
                (TacticalRole.LEAD_ATTACKER, LOWER),
                (TacticalRole.SUPPORTING, LOWER),
                (TacticalRole.UPPER_LEAD_ATTACKER, UPPER),
            ],
        ),
        (
            4,
            [
                (TacticalRole.LEAD_ATTACKER, LOWER),
                (TacticalRole.SUPPORTING, LOWER),
                (TacticalRole.UPPER_SUPPORTING, UPPER),
                (TacticalRole.UPPER_LEAD_ATTACKER, UPPER),
            ],
        ),
    ],
)
def test_role_table_by_size(size: int, expected: list) -> None:
    agents = make_agents(*[100.0 * (size - i) for i in range(size)])
    assert _roles(agents) == expected


def test_four_agent_example_by_depth() -> None:
    # Given out of order on purpose; assignment follows Y, not list order.
    a50, a300, a500, a150 = make_agents(50.0, 300.0, 500.0, 150.0)
    by_agent = {a.agent: a for a in assign_roles([a50, a300, a500, a150])}

    assert by_agent[a500].role is TacticalRole.LEAD_ATTACKER
    assert by_agent[a500].subgroup is LOWER
    assert by_agent[a300].role is TacticalRole.SUPPORTING
    assert by_agent[a300].subgroup is LOWER
    assert by_agent[a150].role is TacticalRole.UPPER_SUPPORTING
    assert by_agent[a150].subgroup is UPPER
    assert by_agent[a50].role is TacticalRole.UPPER_LEAD_ATTACKER
    assert by_agent[a50].subgroup is UPPER


def test_assignment_is_a_function_of_positions() -> None:
    agents = make_agents(50.0, 300.0, 500.0, 150.0)
    first = {a.agent: (a.role, a.subgroup) for a in assign_roles(agents)}
    again = {a.agent: (a.role, a.subgroup) for a in assign_roles(agents[::-1])}
    assert first == again


def test_equal_depth_keeps_membership_order() -> None:
    a, b = make_agents(200.0, 200.0)
    assert sort_by_depth([a, b]) == [a, b]
    assert sort_by_depth([b, a]) == [b, a]


def test_empty_and_oversized_inputs() -> None:
    assert assign_roles([]) == []
    with pytest.raises(ValueError, match="cap is 4"):
        assign_roles(make_agents(1.0, 2.0, 3.0, 4.0, 5.0))


def test_sync_positions_straddle_target() -> None:
    assert sync_position((300.0, 200.0), LOWER) == (300.0, 300.0)
    assert sync_position((300.0, 200.0), UPPER) == (300.0, 100.0)


def test_supporting_position_trails_lead_away_from_target() -> None:
    target = (0.0, 0.0)
    lead = (0.0, 100.0)
    support = supporting_position(lead, target, LOWER)
    assert support == pytest.approx((0.0, 140.0))
    assert math.dist(support, target) > math.dist(lead, target)
    assert math.dist(support, lead) == pytest.approx(40.0)


def test_supporting_position_with_lead_on_target() -> None:
    assert supporting_position((10.0, 10.0), (10.0, 10.0), LOWER) == (10.0, 50.0)
    assert supporting_position((10.0, 10.0), (10.0, 10.0), UPPER) == (10.0, -30.0)


class TestSquadRecord:
    def _squad(self, *ys: float) -> tuple[Squad, list]:
        agents = make_agents(*ys)
        squad = Squad(squad_id=SquadId(1), target_cover=(0.0, 0.0), members=agents)
        for assignment in assign_roles(agents):
            squad.roles[assignment.agent] = assignment.role
            squad.subgroups[assignment.agent] = assignment.subgroup
        return squad, agents

    def test_barrier_is_and_across_subgroups(self) -> None:
        squad, (a500, a300, a150, a50) = self._squad(500.0, 300.0, 150.0, 50.0)
        assert squad.needs_sync_barrier

        squad.sync_reached.update({a500, a300})
        assert squad.is_subgroup_ready(LOWER)
        assert not squad.is_subgroup_ready(UPPER)
        assert not squad.subgroups_synchronized

        squad.sync_reached.add(a150)
        assert not squad.subgroups_synchronized

        squad.sync_reached.add(a50)
        assert squad.subgroups_synchronized
        assert squad.subgroup_ready == {LOWER: True, UPPER: True}

    def test_empty_subgroup_is_not_ready(self) -> None:
        squad, agents = self._squad(200.0, 100.0)
        squad.sync_reached.update(agents)
        assert squad.is_subgroup_ready(LOWER)
        assert not squad.is_subgroup_ready(UPPER)
        assert not squad.needs_sync_barrier

    def test_rally_positions(self) -> None:
        squad, (a500, a300, a150, a50) = self._squad(500.0, 300.0, 150.0, 50.0)
        assert squad.rally_position(a500) == (0.0, 100.0)
        assert squad.rally_position(a50) == (0.0, -100.0)
        assert squad.rally_position(a300) == pytest.approx((0.0, 140.0))
        assert squad.rally_position(a150) == pytest.approx((0.0, -140.0))

    def test_queries_for_non_member(self) -> None:
        squad, _ = self._squad(100.0)
        (stranger,) = make_agents(0.0)
        assert squad.role_of(stranger) is TacticalRole.NONE
        assert squad.subgroup_of(stranger) is LOWER
        assert squad.rally_position(stranger) is None
