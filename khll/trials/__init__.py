"""Accuracy measurement: repeated independent trials reduced to percentile bands.

Quick Reference:
    TrialHarness: runs a per-seed pipeline under seeds "s-1" .. "s-N"
    percentile_bands: nearest-rank p5 / median / p95 per parameter
    run_*_experiment: the reference containment and cardinality experiments
"""

from khll.trials.experiments import (
    ContainmentSample,
    build_interval_sketches,
    cardinality_ratios,
    equal_cardinality_containment,
    run_cardinality_experiment,
    run_equal_cardinality_experiment,
    run_varying_cardinality_experiment,
    varying_cardinality_containment,
)
from khll.trials.harness import TrialHarness, TrialResult
from khll.trials.percentiles import PercentileBand, nearest_rank, percentile_band, percentile_bands

__all__ = [
    "ContainmentSample",
    "PercentileBand",
    "TrialHarness",
    "TrialResult",
    "build_interval_sketches",
    "cardinality_ratios",
    "equal_cardinality_containment",
    "nearest_rank",
    "percentile_band",
    "percentile_bands",
    "run_cardinality_experiment",
    "run_equal_cardinality_experiment",
    "run_varying_cardinality_experiment",
    "varying_cardinality_containment",
]
