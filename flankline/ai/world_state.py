"""Symbolic world state the planner reasons over.

A WorldState is an immutable mapping of fact name to value. Immutability is
what lets the planner branch freely: applying an action returns a new state
and never touches the one it came from, so the same snapshot can be shared by
every node of a search and by every agent planning in the same frame.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping

from flankline.types import FactValue, Facts


def facts_equal(a: FactValue, b: FactValue) -> bool:
    """Compare two fact values without letting ``True`` stand in for ``1``.

    Python treats ``True == 1``; for planning that would let a boolean flag
    satisfy a count goal (or the reverse), so bools only match bools.
    """
    if isinstance(a, bool) != isinstance(b, bool):
        return False
    return a == b


def facts_match(state: Facts, required: Facts) -> bool:
    """Return True when every required fact exists in ``state`` with an equal value."""
    for name, value in required.items():
        if name not in state:
            return False
        if not facts_equal(state[name], value):
            return False
    return True


class WorldState(Mapping[str, FactValue]):
    """Immutable, hashable snapshot of facts.

    Construct from any mapping (``WorldState({"in_cover": True})``) or from
    keyword facts (``WorldState(in_cover=True)``). Fact order carries no
    meaning: two states with the same facts are equal and hash alike.
    """

    __slots__ = ("_facts", "_hash")

    def __init__(self, facts: Facts | None = None, /, **kwargs: FactValue) -> None:
        merged: dict[str, FactValue] = dict(facts) if facts is not None else {}
        merged.update(kwargs)
        self._facts = merged
        self._hash: int | None = None

    @classmethod
    def of(cls, facts: Facts) -> WorldState:
        """Return ``facts`` as a WorldState, reusing it when it already is one."""
        if isinstance(facts, WorldState):
            return facts
        return cls(facts)

    def __getitem__(self, name: str) -> FactValue:
        return self._facts[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._facts)

    def __len__(self) -> int:
        return len(self._facts)

    def __hash__(self) -> int:
        if self._hash is None:
            # Include the value type so True and 1 hash as different facts.
            self._hash = hash(
                frozenset(
                    (name, type(value), value) for name, value in self._facts.items()
                )
            )
        return self._hash

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Mapping):
            return NotImplemented
        if len(self) != len(other):
            return False
        return facts_match(self, other)

    def __repr__(self) -> str:
        inner = ", ".join(f"{k}={v!r}" for k, v in sorted(self._facts.items()))
        return f"WorldState({inner})"

    def satisfies(self, goal: Facts) -> bool:
        """Return True when every goal fact holds in this state."""
        return facts_match(self, goal)

    def unsatisfied(self, goal: Facts) -> dict[str, FactValue]:
        """Return the goal facts this state does not yet meet."""
        return {
            name: value
            for name, value in goal.items()
            if name not in self._facts or not facts_equal(self._facts[name], value)
        }

    def with_facts(self, effects: Facts) -> WorldState:
        """Return a new state with ``effects`` unioned over this one."""
        if not effects:
            return self
        merged = dict(self._facts)
        merged.update(effects)
        return WorldState(merged)
