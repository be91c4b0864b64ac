"""Rolling sample statistics backing the AI's live metrics."""

import abc

import numpy as np

# Percentiles reported by summaries, in order.
DEFAULT_PERCENTILES = (50, 95, 99)


class StatsVar(abc.ABC):
    """A stream of float samples that can be summarized on demand."""

    @abc.abstractmethod
    def record(self, value: float) -> None: ...

    @property
    @abc.abstractmethod
    def sample_count(self) -> int: ...

    @abc.abstractmethod
    def samples_array(self) -> np.ndarray:
        """Retained samples, oldest first."""
        ...

    def percentiles(
        self, qs: tuple[float, ...] = DEFAULT_PERCENTILES
    ) -> tuple[float, ...]:
        """Return the requested percentiles; zeros when there are no samples."""
        data = self.samples_array()
        if data.size == 0:
            return tuple(0.0 for _ in qs)
        return tuple(float(v) for v in np.percentile(data, qs))

    @property
    def mean(self) -> float:
        data = self.samples_array()
        return float(data.mean()) if data.size else 0.0

    @property
    def peak(self) -> float:
        data = self.samples_array()
        return float(data.max()) if data.size else 0.0

    def summary(self) -> str:
        """One-line summary for debug overlays, e.g. ``p50=0.12 p95=...``."""
        parts = [
            f"p{q}={v:.2f}"
            for q, v in zip(DEFAULT_PERCENTILES, self.percentiles(), strict=True)
        ]
        parts.append(f"max={self.peak:.2f}")
        return " ".join(parts)


class MostRecentNVar(StatsVar):
    """Keep only the last ``num_samples`` values in a fixed numpy ring.

    Planner timings are bursty (every agent replans on the same frame after a
    perception change), so a window keeps the numbers representative of
    current load rather than the whole session.
    """

    def __init__(self, num_samples: int = 1000) -> None:
        if num_samples <= 0:
            raise ValueError("num_samples must be positive")
        self._ring = np.zeros(num_samples, dtype=np.float64)
        self._total = 0

    @property
    def capacity(self) -> int:
        return self._ring.size

    @property
    def total_recorded(self) -> int:
        """Samples ever recorded, including those that fell out of the window."""
        return self._total

    @property
    def sample_count(self) -> int:
        return min(self._total, self.capacity)

    def record(self, value: float) -> None:
        self._ring[self._total % self.capacity] = value
        self._total += 1

    def samples_array(self) -> np.ndarray:
        if self._total <= self.capacity:
            return self._ring[: self._total].copy()
        # Roll so the oldest retained sample comes first.
        return np.roll(self._ring, -(self._total % self.capacity))

    def reset(self) -> None:
        self._ring[:] = 0.0
        self._total = 0
