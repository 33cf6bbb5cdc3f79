"""Trial harness for measuring estimator accuracy.

An estimation pipeline is run once per seed. Each run re-hashes and
re-sketches the same underlying data, so the runs behave like independent
samples of the estimator. Every run reports (parameter, value) pairs, where
the parameter is the fixed experimental setting the value was measured at
(for instance the real containment ratio); the harness groups values by
parameter and reduces each group to a p5 / median / p95 band.

Trials share no state and can run in any order; the harness runs them
sequentially and leaves any parallel scheduling to the caller.
"""

from __future__ import annotations

import logging
import time
from collections import defaultdict
from collections.abc import Callable, Hashable, Iterable, Sequence
from dataclasses import dataclass, field

import pandas as pd

from khll.config import DEFAULT_NUM_SEEDS, DEFAULT_SEED_PREFIX, EstimatorConfig
from khll.trials.percentiles import PercentileBand, percentile_bands

logger = logging.getLogger(__name__)

Pipeline = Callable[[str], Iterable[tuple[Hashable, float]]]


@dataclass
class TrialResult:
    """Samples collected by a harness run, grouped by experimental parameter.

    Attributes:
        seeds: Seeds the pipeline ran with, in order.
        samples: One list of per-trial values per parameter.
        wall_clock_seconds: Time spent running all trials.
    """

    seeds: list[str]
    samples: dict[Hashable, list[float]] = field(default_factory=dict)
    wall_clock_seconds: float = 0.0

    @property
    def parameters(self) -> list[Hashable]:
        return sorted(self.samples)

    def bands(self) -> dict[Hashable, PercentileBand]:
        """p5 / median / p95 per parameter, ordered by parameter."""
        return percentile_bands(self.samples)

    def to_dataframe(self, parameter_names: Sequence[str] = ("parameter",)) -> pd.DataFrame:
        """Percentile bands as a DataFrame, columns ``<parameter_names>, pc5, median, pc95``.

        Tuple parameters are spread over one column per name.
        """
        rows = []
        for parameter, band in self.bands().items():
            values = parameter if isinstance(parameter, tuple) else (parameter,)
            if len(values) != len(parameter_names):
                raise ValueError(
                    f"parameter {parameter!r} does not match columns {list(parameter_names)}"
                )
            row = dict(zip(parameter_names, values))
            row.update(pc5=band.p5, median=band.median, pc95=band.p95)
            rows.append(row)
        return pd.DataFrame(rows, columns=[*parameter_names, "pc5", "median", "pc95"])


class TrialHarness:
    """Runs a pipeline under many independent seeds.

    Args:
        num_seeds: Number of trials.
        seed_prefix: Seeds are ``"<prefix>1"`` .. ``"<prefix><num_seeds>"``.

    Example:
        harness = TrialHarness(num_seeds=101)
        result = harness.run(lambda seed: [(n, estimate(n, seed) / n) for n in sizes])
        for n, band in result.bands().items():
            print(n, band.p5, band.median, band.p95)
    """

    def __init__(self, num_seeds: int = DEFAULT_NUM_SEEDS, seed_prefix: str = DEFAULT_SEED_PREFIX):
        if num_seeds <= 0:
            raise ValueError(f"num_seeds must be positive, got {num_seeds}")
        self._num_seeds = num_seeds
        self._seed_prefix = seed_prefix

    @classmethod
    def from_config(cls, config: EstimatorConfig) -> TrialHarness:
        return cls(num_seeds=config.num_seeds, seed_prefix=config.seed_prefix)

    @property
    def num_seeds(self) -> int:
        return self._num_seeds

    def seeds(self) -> list[str]:
        return [f"{self._seed_prefix}{i}" for i in range(1, self._num_seeds + 1)]

    def run(self, pipeline: Pipeline) -> TrialResult:
        """Run the pipeline once per seed and collect its (parameter, value) pairs."""
        seeds = self.seeds()
        samples: defaultdict[Hashable, list[float]] = defaultdict(list)
        start = time.perf_counter()

        for i, seed in enumerate(seeds, start=1):
            for parameter, value in pipeline(seed):
                samples[parameter].append(float(value))
            logger.debug("Trial %d/%d (seed=%s) done", i, len(seeds), seed)

        elapsed = time.perf_counter() - start
        logger.info(
            "Completed %d trials over %d parameters in %.2fs",
            len(seeds),
            len(samples),
            elapsed,
        )
        return TrialResult(seeds=seeds, samples=dict(samples), wall_clock_seconds=elapsed)
