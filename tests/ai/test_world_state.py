"""Tests for WorldState and the Action model.

Validates:
- WorldState is hashable and order-insensitive, and never mutated by apply().
- Bools and ints are distinct fact values (True does not satisfy 1).
- Missing facts never satisfy a precondition.
- Action construction rejects empty effects and unusable static costs.
- effective_cost() falls back to the static cost for NaN/inf/negative/errors.
"""

import logging
import math

import pytest

from flankline.ai.planning import Action, PlanningContext
from flankline.ai.world_state import WorldState, facts_equal, facts_match
from tests.helpers import make_action, make_planner


class TestWorldState:
    def test_equal_states_hash_alike_regardless_of_order(self) -> None:
        a = WorldState({"in_cover": True, "has_ammo": False})
        b = WorldState(has_ammo=False, in_cover=True)
        assert a == b
        assert hash(a) == hash(b)
        assert len({a, b}) == 1

    def test_bool_and_int_are_distinct_facts(self) -> None:
        assert not facts_equal(True, 1)
        assert not facts_equal(0, False)
        assert facts_equal(2, 2)
        assert WorldState(count=1) != WorldState(count=True)

    def test_missing_fact_does_not_satisfy(self) -> None:
        state = WorldState(in_cover=True)
        assert not state.satisfies({"player_visible": False})
        assert state.unsatisfied({"player_visible": False, "in_cover": True}) == {
            "player_visible": False
        }

    def test_empty_goal_is_always_satisfied(self) -> None:
        assert WorldState().satisfies({})
        assert facts_match({}, {})

    def test_with_facts_returns_new_state(self) -> None:
        original = WorldState(has_ammo=False)
        updated = original.with_facts({"has_ammo": True, "in_cover": True})
        assert original["has_ammo"] is False
        assert "in_cover" not in original
        assert dict(updated) == {"has_ammo": True, "in_cover": True}

    def test_of_reuses_existing_instance(self) -> None:
        state = WorldState(x=True)
        assert WorldState.of(state) is state
        assert WorldState.of({"x": True}) == state

    def test_repr_is_sorted(self) -> None:
        assert repr(WorldState(b=True, a=2)) == "WorldState(a=2, b=True)"


class TestAction:
    def test_apply_overwrites_and_keeps_other_facts(self) -> None:
        reload = make_action("reload", {"has_ammo": False}, {"has_ammo": True})
        before = WorldState(has_ammo=False, in_cover=True)
        after = reload.apply(before)
        assert after == WorldState(has_ammo=True, in_cover=True)
        assert before["has_ammo"] is False

    def test_is_applicable_requires_every_precondition(self) -> None:
        engage = make_action(
            "engage", {"player_visible": True, "has_ammo": True}, {"engaged": True}
        )
        assert engage.is_applicable({"player_visible": True, "has_ammo": True})
        assert not engage.is_applicable({"player_visible": True})
        assert not engage.is_applicable({"player_visible": True, "has_ammo": False})

    def test_empty_effects_rejected(self) -> None:
        with pytest.raises(ValueError, match="no effects"):
            Action("noop", 1.0, {}, {})

    @pytest.mark.parametrize("cost", [-1.0, math.nan, math.inf])
    def test_bad_static_cost_rejected(self, cost: float) -> None:
        with pytest.raises(ValueError, match="invalid cost"):
            Action("bad", cost, {}, {"x": True})

    def test_missing_name_rejected(self) -> None:
        with pytest.raises(ValueError, match="action_name"):
            Action(None, 1.0, {}, {"x": True})

    def test_execute_defaults_to_success(self) -> None:
        action = make_action("a", {}, {"x": True})
        assert action.execute(PlanningContext()) is True


class _DynamicCost(Action):
    ACTION_NAME = "dynamic"
    COST = 2.0
    EFFECTS = {"done": True}

    def __init__(self, dynamic: float) -> None:
        super().__init__()
        self.dynamic = dynamic

    def get_cost(self, context, world_state) -> float:
        return self.dynamic


class _DividesByZero(Action):
    ACTION_NAME = "divides"
    COST = 3.0
    EFFECTS = {"done": True}

    def get_cost(self, context, world_state) -> float:
        return 1.0 / world_state.get("allies", 0)


class TestEffectiveCost:
    def test_valid_dynamic_cost_is_used(self) -> None:
        assert _DynamicCost(0.5).effective_cost(None, WorldState()) == 0.5

    @pytest.mark.parametrize("value", [math.nan, math.inf, -0.5])
    def test_unusable_dynamic_cost_falls_back(
        self, value: float, caplog: pytest.LogCaptureFixture
    ) -> None:
        action = _DynamicCost(value)
        with caplog.at_level(logging.WARNING):
            assert action.effective_cost(None, WorldState()) == 2.0
        assert "Unusable dynamic cost" in caplog.text

    def test_arithmetic_error_falls_back(self) -> None:
        assert _DividesByZero().effective_cost(None, WorldState()) == 3.0
        assert _DividesByZero().effective_cost(None, WorldState(allies=4)) == 0.25


    @pytest.mark.parametrize("value", [None, "cheap", (1.0,)])
    def test_non_numeric_cost_falls_back(
        self, value, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.WARNING):
            assert _DynamicCost(value).effective_cost(None, WorldState()) == 2.0
        assert "Cost computation failed for 'dynamic'" in caplog.text

    def test_non_numeric_cost_does_not_break_planning(self) -> None:
        planner = make_planner(
            _DynamicCost(None), make_action("slow", {}, {"done": True}, cost=5.0)
        )
        assert [a.action_name for a in planner.plan({}, {"done": True})] == [
            "dynamic"
        ]
