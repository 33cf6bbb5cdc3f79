"""khll: bounded-memory uniqueness and containment estimation.

Sketches (KMV, HyperLogLog and their KHyperLogLog combination) summarize
unbounded multisets in fixed memory; estimators built on them answer two
questions:

- Uniqueness: for each value, how many distinct identifiers are linked to
  it, and how are values distributed over those levels?
- Containment: what fraction of one set's distinct elements also appear
  in another set?

Example:
    import khll

    dist = khll.uniqueness_distribution(rows, capacity=2048, precision=10)
    print(dist.to_dataframe())

    a = khll.KMVSketch.from_items(left_ids, seed="s-1")
    b = khll.KMVSketch.from_items(right_ids, seed="s-1")
    print(khll.estimated_containment(a, b))
"""

import logging

from khll.config import EstimatorConfig
from khll.estimation import (
    ContainmentEstimate,
    UniquenessDistribution,
    UniquenessDistributionEntry,
    estimate_containment,
    estimated_containment,
    exact_uniqueness_distribution,
    uniqueness_distribution,
)
from khll.logging_config import (
    configure_from_env,
    disable_logging,
    enable_console_logging,
    enable_file_logging,
    enable_json_logging,
    set_level,
    set_module_level,
)
from khll.sketching import (
    HashSpace,
    HyperLogLog,
    KHyperLogLog,
    KMVSketch,
    estimated_cardinality,
    merge,
    merge_all,
)
from khll.trials import PercentileBand, TrialHarness, TrialResult, percentile_bands

# Silent by default
logging.getLogger("khll").addHandler(logging.NullHandler())

__all__ = [
    "ContainmentEstimate",
    "EstimatorConfig",
    "HashSpace",
    "HyperLogLog",
    "KHyperLogLog",
    "KMVSketch",
    "PercentileBand",
    "TrialHarness",
    "TrialResult",
    "UniquenessDistribution",
    "UniquenessDistributionEntry",
    "configure_from_env",
    "disable_logging",
    "enable_console_logging",
    "enable_file_logging",
    "enable_json_logging",
    "estimate_containment",
    "estimated_cardinality",
    "estimated_containment",
    "exact_uniqueness_distribution",
    "merge",
    "merge_all",
    "percentile_bands",
    "set_level",
    "set_module_level",
    "uniqueness_distribution",
]
