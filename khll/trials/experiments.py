"""Reference accuracy experiments for the KMV estimators.

The experiments sketch contiguous integer intervals and compare estimates
against the exactly known truth:

- Containment at equal cardinalities: intervals of c values shifted by
  tenths of c against [1, c], so the real containment runs from 1.0 down
  to 0.0 in steps of 0.1.
- Containment at varying cardinalities: [1, c] against intervals starting
  at c/2 + 1 and growing to 20c values, so the reference is always half
  contained while the cardinality ratio grows from 0.5 to 20.
- Cardinality accuracy: ratio of estimated to true distinct count.

Interval sketches are built with a two-level reduce: one intermediary
sketch per fixed-size chunk of the data, merged into every interval that
covers the chunk. Chunks are hashed once per seed; no interval re-reads
raw data.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass

from khll.config import EstimatorConfig
from khll.estimation.containment import estimated_containment
from khll.sketching.hashing import DEFAULT_HASH_SPACE, HashSpace
from khll.sketching.kmv import DEFAULT_CAPACITY, KMVSketch, merge_all
from khll.trials.harness import TrialHarness, TrialResult

logger = logging.getLogger(__name__)

Interval = tuple[int, int]

EQUAL_CARDINALITY_STEPS = 10
DEFAULT_MAX_MULTIPLE = 20


@dataclass(frozen=True, slots=True)
class ContainmentSample:
    """One containment estimate measured in one trial.

    Attributes:
        seed: Seed of the trial.
        real_containment: Exact containment of the compared intervals.
        estimated_containment: Containment estimated from their sketches.
        cardinality_ratio: Size of the compared interval relative to the
            reference interval, for varying-cardinality runs.
    """

    seed: str
    real_containment: float
    estimated_containment: float
    cardinality_ratio: float | None = None


def _check_aligned(interval: Interval, chunk_size: int) -> None:
    start, finish = interval
    if finish < start:
        raise ValueError(f"interval {interval} is empty")
    if (start - 1) % chunk_size or finish % chunk_size:
        raise ValueError(f"interval {interval} is not aligned to chunks of {chunk_size}")


def build_interval_sketches(
    seed: str,
    intervals: Iterable[Interval],
    chunk_size: int,
    capacity: int = DEFAULT_CAPACITY,
    hash_space: HashSpace = DEFAULT_HASH_SPACE,
) -> dict[Interval, KMVSketch]:
    """Sketch the integers of every interval under one seed.

    Args:
        seed: Salt for hashing the integers.
        intervals: Inclusive (start, finish) ranges over 1..N, each a union
            of whole chunks.
        chunk_size: Number of consecutive integers per intermediary sketch.

    Raises:
        ValueError: If chunk_size is not positive or an interval does not
            start and end on chunk boundaries.
    """
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")

    intervals = list(intervals)
    for interval in intervals:
        _check_aligned(interval, chunk_size)
    max_value = max(finish for _, finish in intervals)

    chunks: dict[Interval, KMVSketch] = {}
    for chunk_start in range(1, max_value + 1, chunk_size):
        chunk_finish = chunk_start + chunk_size - 1
        chunks[(chunk_start, chunk_finish)] = KMVSketch.from_items(
            range(chunk_start, chunk_finish + 1),
            capacity=capacity,
            hash_space=hash_space,
            seed=seed,
        )

    sketches = {}
    for start, finish in intervals:
        covered = [
            sketch
            for (chunk_start, chunk_finish), sketch in chunks.items()
            if start <= chunk_start and chunk_finish <= finish
        ]
        sketches[(start, finish)] = merge_all(covered)

    logger.debug(
        "Seed %s: %d chunk sketches merged into %d interval sketches",
        seed,
        len(chunks),
        len(sketches),
    )
    return sketches


def equal_cardinality_containment(
    seed: str,
    cardinality: int,
    capacity: int = DEFAULT_CAPACITY,
    hash_space: HashSpace = DEFAULT_HASH_SPACE,
) -> list[ContainmentSample]:
    """Containment of [i*c/10 + 1, (10+i)*c/10] in [1, c] for i = 0..10.

    Raises:
        ValueError: If cardinality is not a positive multiple of 10.
    """
    if cardinality <= 0 or cardinality % EQUAL_CARDINALITY_STEPS:
        raise ValueError(
            f"cardinality must be a positive multiple of {EQUAL_CARDINALITY_STEPS}, "
            f"got {cardinality}"
        )

    chunk = cardinality // EQUAL_CARDINALITY_STEPS
    reference = (1, cardinality)
    intervals = [
        (i * chunk + 1, (EQUAL_CARDINALITY_STEPS + i) * chunk)
        for i in range(EQUAL_CARDINALITY_STEPS + 1)
    ]
    sketches = build_interval_sketches(seed, intervals, chunk, capacity, hash_space)

    samples = []
    for start, finish in intervals:
        samples.append(
            ContainmentSample(
                seed=seed,
                real_containment=(cardinality - (start - 1)) / cardinality,
                estimated_containment=estimated_containment(
                    sketches[(start, finish)], sketches[reference]
                ),
            )
        )
    return samples


def varying_cardinality_containment(
    seed: str,
    cardinality: int,
    capacity: int = DEFAULT_CAPACITY,
    max_multiple: int = DEFAULT_MAX_MULTIPLE,
    hash_space: HashSpace = DEFAULT_HASH_SPACE,
) -> list[ContainmentSample]:
    """Containment of [1, c] in [c/2 + 1, i*c/2] for i = 2, 4, .., 2*max_multiple.

    The real containment is always 0.5; the compared interval grows from
    c/2 to (max_multiple - 1/2) * c values.

    Raises:
        ValueError: If cardinality is not a positive even number or
            max_multiple < 1.
    """
    if cardinality <= 0 or cardinality % 2:
        raise ValueError(f"cardinality must be a positive even number, got {cardinality}")
    if max_multiple < 1:
        raise ValueError(f"max_multiple must be at least 1, got {max_multiple}")

    half = cardinality // 2
    reference = (1, cardinality)
    compared = [(half + 1, i * half) for i in range(2, 2 * max_multiple + 1, 2)]
    sketches = build_interval_sketches(seed, [reference, *compared], half, capacity, hash_space)

    samples = []
    for start, finish in compared:
        samples.append(
            ContainmentSample(
                seed=seed,
                real_containment=(cardinality - start + 1) / cardinality,
                estimated_containment=estimated_containment(
                    sketches[reference], sketches[(start, finish)]
                ),
                cardinality_ratio=(finish - start + 1) / cardinality,
            )
        )
    return samples


def cardinality_ratios(
    seed: str,
    cardinalities: Sequence[int],
    capacity: int = DEFAULT_CAPACITY,
    hash_space: HashSpace = DEFAULT_HASH_SPACE,
) -> Iterator[tuple[int, float]]:
    """Yield (n, estimated / n) for a sketch of the integers 1..n, per n."""
    for n in cardinalities:
        if n <= 0:
            raise ValueError(f"cardinality must be positive, got {n}")
        sketch = KMVSketch.from_items(
            range(1, n + 1), capacity=capacity, hash_space=hash_space, seed=seed
        )
        yield n, sketch.cardinality() / n


def run_equal_cardinality_experiment(
    cardinality: int,
    config: EstimatorConfig | None = None,
) -> TrialResult:
    """Estimated containment bands per real containment (0.0 .. 1.0)."""
    config = config or EstimatorConfig()
    logger.info(
        "Equal-cardinality containment: c=%d, K=%d, %d seeds",
        cardinality,
        config.capacity,
        config.num_seeds,
    )
    harness = TrialHarness.from_config(config)
    return harness.run(
        lambda seed: (
            (sample.real_containment, sample.estimated_containment)
            for sample in equal_cardinality_containment(seed, cardinality, config.capacity)
        )
    )


def run_varying_cardinality_experiment(
    cardinality: int,
    config: EstimatorConfig | None = None,
    max_multiple: int = DEFAULT_MAX_MULTIPLE,
) -> TrialResult:
    """Estimated containment bands per (real containment, cardinality ratio)."""
    config = config or EstimatorConfig()
    logger.info(
        "Varying-cardinality containment: c=%d, up to %dc, K=%d, %d seeds",
        cardinality,
        max_multiple,
        config.capacity,
        config.num_seeds,
    )
    harness = TrialHarness.from_config(config)
    return harness.run(
        lambda seed: (
            ((sample.real_containment, sample.cardinality_ratio), sample.estimated_containment)
            for sample in varying_cardinality_containment(
                seed, cardinality, config.capacity, max_multiple
            )
        )
    )


def run_cardinality_experiment(
    cardinalities: Sequence[int],
    config: EstimatorConfig | None = None,
) -> TrialResult:
    """Bands of estimated / true cardinality per true cardinality."""
    config = config or EstimatorConfig()
    harness = TrialHarness.from_config(config)
    return harness.run(lambda seed: cardinality_ratios(seed, cardinalities, config.capacity))
