"""Named live metrics for the planner and squad coordinator.

Subsystems register their metrics once (registration is idempotent through
``register_metrics``) and then record samples by name from hot paths. A
debug overlay or benchmark reads them back with ``snapshot()``.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from contextlib import contextmanager, nullcontext, suppress
from dataclasses import dataclass, field
from time import perf_counter
from typing import NamedTuple

from .metrics import MostRecentNVar, StatsVar


class MetricSpec(NamedTuple):
    """Declaration of a metric, registered in batch by its owner."""

    name: str
    description: str
    num_samples: int = 500


@dataclass
class LiveVariable:
    """A named metric and the rolling statistics behind it."""

    name: str
    description: str
    stats_var: StatsVar = field(repr=False)

    def record_value(self, value: float) -> None:
        self.stats_var.record(value)

    def get_value(self) -> str:
        if self.stats_var.sample_count == 0:
            return "No samples"
        return self.stats_var.summary()


class LiveVariableRegistry:
    """All metrics known to the process, keyed by dotted name.

    With ``strict`` set (the default) recording to an unknown name raises
    ``KeyError``, which catches typos in metric names early. Test fixtures
    that wipe the registry turn ``strict`` off so that planner timing does
    not fail unrelated tests.
    """

    def __init__(self) -> None:
        self._variables: dict[str, LiveVariable] = {}
        self.strict: bool = True

    def __contains__(self, name: str) -> bool:
        return name in self._variables

    def __iter__(self) -> Iterator[LiveVariable]:
        return iter(self.get_all_variables())

    def register_metric(
        self, name: str, description: str = "", num_samples: int = 500
    ) -> LiveVariable:
        """Create and return a metric.

        Raises:
            ValueError: If ``name`` is already registered.
        """
        if name in self._variables:
            raise ValueError(f"Live variable '{name}' already registered")
        var = LiveVariable(name, description, MostRecentNVar(num_samples))
        self._variables[name] = var
        return var

    def register_metrics(self, specs: Sequence[MetricSpec]) -> None:
        """Register every spec whose name is not taken yet."""
        for spec in specs:
            if spec.name not in self._variables:
                self.register_metric(spec.name, spec.description, spec.num_samples)

    def get_variable(self, name: str) -> LiveVariable | None:
        return self._variables.get(name)

    def get_all_variables(self) -> list[LiveVariable]:
        """Registered metrics sorted by name."""
        return sorted(self._variables.values(), key=lambda v: v.name)

    def record_metric(self, name: str, value: float) -> None:
        """Record one sample.

        Raises:
            KeyError: If no metric called ``name`` is registered.
        """
        var = self._variables.get(name)
        if var is None:
            raise KeyError(f"Metric '{name}' is not registered")
        var.record_value(value)

    def snapshot(self) -> dict[str, str]:
        """Name -> summary string for every metric."""
        return {var.name: var.get_value() for var in self.get_all_variables()}

    def clear(self) -> None:
        self._variables.clear()


# Process-wide registry
live_variable_registry = LiveVariableRegistry()


def record_metric_value(metric_name: str, value: float) -> None:
    """Record to the global registry, skipping unknown names when not strict."""
    guard = nullcontext() if live_variable_registry.strict else suppress(KeyError)
    with guard:
        live_variable_registry.record_metric(metric_name, value)


@contextmanager
def record_time_live_variable(metric_name: str) -> Iterator[None]:
    """Time the enclosed block and record the elapsed milliseconds.

    Usable as a context manager or a decorator::

        with record_time_live_variable("ai.planner.plan_ms"):
            ...
    """
    start = perf_counter()
    try:
        yield
    finally:
        record_metric_value(metric_name, (perf_counter() - start) * 1000.0)
