"""Nearest-rank percentile reduction of trial samples.

Each group of trial results is summarized by three order statistics: the
5th percentile, the median and the 95th percentile. The nearest-rank method
sorts the N samples ascending and takes index floor(N * q), so with the
usual N = 101 trials the bands land on samples 5, 50 and 95.
"""

from __future__ import annotations

import math
from collections.abc import Hashable, Mapping, Sequence
from dataclasses import dataclass
from typing import TypeVar

import numpy as np

K = TypeVar("K", bound=Hashable)

P5 = 0.05
MEDIAN = 0.50
P95 = 0.95


def nearest_rank(samples: Sequence[float] | np.ndarray, q: float, presorted: bool = False) -> float:
    """Value at quantile ``q`` by the nearest-rank method.

    Args:
        samples: Sample values.
        q: Quantile in [0, 1].
        presorted: Skip sorting when samples are already ascending.

    Raises:
        ValueError: If samples is empty, q is outside [0, 1] or the rank
            index floor(N * q) is not a valid index.
    """
    if not 0.0 <= q <= 1.0:
        raise ValueError(f"quantile must be in [0, 1], got {q}")

    values = np.asarray(samples, dtype=float)
    if values.size == 0:
        raise ValueError("cannot take a percentile of zero samples")

    index = math.floor(values.size * q)
    if index >= values.size:
        raise ValueError(
            f"percentile index {index} exceeds sample count {values.size} (q={q})"
        )

    if not presorted:
        values = np.sort(values)
    return float(values[index])


@dataclass(frozen=True, slots=True)
class PercentileBand:
    """The p5 / median / p95 summary of one group of trial samples."""

    p5: float
    median: float
    p95: float
    num_samples: int

    def brackets(self, value: float) -> bool:
        """True if value lies within [p5, p95]."""
        return self.p5 <= value <= self.p95


def percentile_band(samples: Sequence[float] | np.ndarray) -> PercentileBand:
    """Reduce one group of samples to its percentile band."""
    values = np.sort(np.asarray(samples, dtype=float))
    return PercentileBand(
        p5=nearest_rank(values, P5, presorted=True),
        median=nearest_rank(values, MEDIAN, presorted=True),
        p95=nearest_rank(values, P95, presorted=True),
        num_samples=int(values.size),
    )


def percentile_bands(groups: Mapping[K, Sequence[float]]) -> dict[K, PercentileBand]:
    """Percentile band per experimental parameter, ordered by parameter.

    Args:
        groups: Samples keyed by the fixed experimental parameter they were
            measured at (e.g. the real containment ratio).
    """
    return {key: percentile_band(groups[key]) for key in sorted(groups)}
