"""Uniqueness distribution: how many values are linked to how many identifiers.

The uniqueness level of a value is the number of distinct identifiers
associated with it. A value seen with a single identifier re-identifies that
identifier; the cumulative distribution over levels therefore measures
re-identification risk.

The estimate comes from a KHyperLogLog sketch: the retained values are a
uniform sample of all distinct values, each with a HyperLogLog estimate of its
uniqueness level. Counts per level are scaled up by the inverse of the value
sampling ratio, min(1, K / estimated number of distinct values).
"""

from __future__ import annotations

import logging
from collections import Counter, defaultdict
from collections.abc import Iterable, Iterator
from dataclasses import asdict, dataclass, field
from typing import Hashable

import pandas as pd

from khll.sketching.hashing import DEFAULT_HASH_SPACE, HashSpace, SeedType
from khll.sketching.hyperloglog import DEFAULT_PRECISION
from khll.sketching.khll import KHyperLogLog
from khll.sketching.kmv import DEFAULT_CAPACITY

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class UniquenessDistributionEntry:
    """One uniqueness level of the distribution.

    Attributes:
        uniqueness_level: Number of distinct identifiers linked to a value.
        estimated_value_count: Estimated number of values at this level.
        estimated_value_ratio: Fraction of retained values at this level.
        cumulative_value_count: Estimated number of values at this level or below.
        cumulative_value_ratio: Fraction of retained values at this level or below.
    """

    uniqueness_level: int
    estimated_value_count: float
    estimated_value_ratio: float
    cumulative_value_count: float
    cumulative_value_ratio: float


@dataclass(frozen=True)
class UniquenessDistribution:
    """Uniqueness levels in ascending order with their (cumulative) counts.

    Attributes:
        entries: One entry per observed uniqueness level, ascending.
        estimated_num_values: Estimated number of distinct values overall.
        value_sampling_ratio: Fraction of distinct values the counts were
            sampled from (1.0 when every value was retained).
    """

    entries: tuple[UniquenessDistributionEntry, ...] = field(default_factory=tuple)
    estimated_num_values: float = 0.0
    value_sampling_ratio: float = 1.0

    def __iter__(self) -> Iterator[UniquenessDistributionEntry]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    @property
    def levels(self) -> list[int]:
        return [entry.uniqueness_level for entry in self.entries]

    def cumulative_ratio_at(self, level: int) -> float:
        """Fraction of values linked to at most ``level`` identifiers."""
        ratio = 0.0
        for entry in self.entries:
            if entry.uniqueness_level > level:
                break
            ratio = entry.cumulative_value_ratio
        return ratio

    def to_dataframe(self) -> pd.DataFrame:
        """Distribution as a DataFrame with one row per uniqueness level."""
        columns = [
            "uniqueness_level",
            "estimated_value_count",
            "estimated_value_ratio",
            "cumulative_value_count",
            "cumulative_value_ratio",
        ]
        return pd.DataFrame([asdict(entry) for entry in self.entries], columns=columns)


def aggregate_uniqueness(
    levels: Iterable[int],
    estimated_num_values: float,
    capacity: int,
) -> UniquenessDistribution:
    """Group per-value uniqueness levels into a (cumulative) distribution.

    Args:
        levels: Uniqueness level of every retained value.
        estimated_num_values: Estimated distinct values in the whole input.
        capacity: Number of values the sketch could retain (K).

    Raises:
        ValueError: If capacity is not positive.
    """
    if capacity <= 0:
        raise ValueError(f"capacity must be positive, got {capacity}")

    counts = Counter(levels)
    retained = sum(counts.values())
    if retained == 0:
        return UniquenessDistribution(estimated_num_values=estimated_num_values)

    sampling_ratio = 1.0
    if estimated_num_values > 0:
        sampling_ratio = min(1.0, capacity / estimated_num_values)

    entries = []
    cumulative_count = 0.0
    cumulative_ratio = 0.0
    for level in sorted(counts):
        count = counts[level] / sampling_ratio
        ratio = counts[level] / retained
        cumulative_count += count
        cumulative_ratio += ratio
        entries.append(
            UniquenessDistributionEntry(
                uniqueness_level=level,
                estimated_value_count=count,
                estimated_value_ratio=ratio,
                cumulative_value_count=cumulative_count,
                cumulative_value_ratio=cumulative_ratio,
            )
        )

    return UniquenessDistribution(
        entries=tuple(entries),
        estimated_num_values=estimated_num_values,
        value_sampling_ratio=sampling_ratio,
    )


def khll_uniqueness_distribution(sketch: KHyperLogLog) -> UniquenessDistribution:
    """Uniqueness distribution of the values retained by a KHLL sketch."""
    return aggregate_uniqueness(
        sketch.uniqueness_levels(),
        sketch.value_cardinality(),
        sketch.capacity,
    )


def uniqueness_distribution(
    values_with_identifiers: Iterable[tuple[Hashable, Hashable]],
    capacity: int = DEFAULT_CAPACITY,
    precision: int = DEFAULT_PRECISION,
    hash_space: HashSpace = DEFAULT_HASH_SPACE,
    seed: SeedType = None,
) -> UniquenessDistribution:
    """Estimate the uniqueness distribution of a stream of (value, identifier) pairs.

    Example:
        dist = uniqueness_distribution(rows, capacity=2048, precision=10)
        print(f"{dist.cumulative_ratio_at(1):.1%} of values are linked to one user")
    """
    sketch = KHyperLogLog.from_pairs(
        values_with_identifiers,
        capacity=capacity,
        precision=precision,
        hash_space=hash_space,
        seed=seed,
    )
    distribution = khll_uniqueness_distribution(sketch)
    logger.info(
        "Uniqueness distribution over %d pairs: %d levels, ~%.0f distinct values",
        sketch.item_count,
        len(distribution),
        distribution.estimated_num_values,
    )
    return distribution


def exact_uniqueness_distribution(
    values_with_identifiers: Iterable[tuple[Hashable, Hashable]],
) -> UniquenessDistribution:
    """Exact uniqueness distribution, materializing every value's identifiers.

    Memory grows with the input; use only as a reference for accuracy checks.
    """
    identifiers: defaultdict[Hashable, set] = defaultdict(set)
    for value, identifier in values_with_identifiers:
        identifiers[value].add(identifier)

    levels = [len(ids) for ids in identifiers.values()]
    return aggregate_uniqueness(levels, float(len(levels)), max(len(levels), 1))
