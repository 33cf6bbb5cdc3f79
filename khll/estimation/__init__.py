"""Estimators built on the sketches: containment and uniqueness distribution."""

from khll.estimation.containment import (
    ContainmentEstimate,
    containment_from_cardinalities,
    estimate_containment,
    estimated_containment,
)
from khll.estimation.uniqueness import (
    UniquenessDistribution,
    UniquenessDistributionEntry,
    aggregate_uniqueness,
    exact_uniqueness_distribution,
    khll_uniqueness_distribution,
    uniqueness_distribution,
)

__all__ = [
    "ContainmentEstimate",
    "UniquenessDistribution",
    "UniquenessDistributionEntry",
    "aggregate_uniqueness",
    "containment_from_cardinalities",
    "estimate_containment",
    "estimated_containment",
    "exact_uniqueness_distribution",
    "khll_uniqueness_distribution",
    "uniqueness_distribution",
]
