"""Cardinality estimation from the K-th order statistic of a KMV sketch.

If n distinct values are hashed uniformly into a domain of size R starting
at L, the K-th smallest hash h_k sits on average about K/n of the way into
the domain. Inverting that spacing gives the unbiased estimator

    n ≈ (K - 1) * R / (h_k - L + 1)

Reference:
    Beyer, Haas, Reinwald, Sismanis, Gemulla. "On Synopses for Distinct-Value
    Estimation Under Multiset Operations" (2007)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from khll.sketching.hashing import DEFAULT_HASH_SPACE, HashSpace

if TYPE_CHECKING:
    from khll.sketching.kmv import KMVSketch


def estimate_cardinality(
    kth_value: int | None,
    retained: int,
    capacity: int,
    hash_space: HashSpace = DEFAULT_HASH_SPACE,
) -> float:
    """Estimate a distinct count from a sketch's order statistic.

    Args:
        kth_value: The K-th smallest retained hash, or None if the sketch
            holds fewer than ``capacity`` values.
        retained: Number of hashes the sketch holds.
        capacity: Sketch capacity K.
        hash_space: Domain the hashes were drawn from.

    Returns:
        ``retained`` exactly when the sketch is not full (every distinct
        value was captured), otherwise the order-statistic estimate.

    Raises:
        ValueError: If capacity is not positive.
    """
    if capacity <= 0:
        raise ValueError(f"capacity must be positive, got {capacity}")
    if kth_value is None or retained < capacity:
        return float(retained)

    # h_k == lower would give a zero offset; the smallest meaningful offset is 1
    offset = max(kth_value - hash_space.lower + 1, 1)
    return (capacity - 1) * hash_space.size / offset


def estimated_cardinality(sketch: KMVSketch) -> float:
    """Estimate the number of distinct values summarized by a KMV sketch."""
    return estimate_cardinality(
        sketch.kth_value(),
        len(sketch),
        sketch.capacity,
        sketch.hash_space,
    )
