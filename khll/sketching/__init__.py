"""Bounded-memory sketches for distinct counting.

All sketches share common properties:
- Bounded memory usage (configurable capacity or precision)
- Single-pass processing (add items one at a time)
- Mergeable (combine sketches built on separate partitions)
- Reproducible (a seed salts every hash; different seeds give
  independent sketches of the same data)

Quick Reference:
    HashSpace: Hash domain [lower, upper) and the value -> hash mapping
    KMVSketch: K smallest distinct hashes, order-statistic cardinality
    HyperLogLog: Register-based distinct counter
    KHyperLogLog: KMV over values with one HyperLogLog per retained value

Example:
    from khll.sketching import KMVSketch, merge_all

    shards = [KMVSketch.from_items(rows, seed="s-1") for rows in partitions]
    print(f"~{merge_all(shards).cardinality():.0f} distinct rows")
"""

from khll.sketching.base import CardinalitySketch, Sketch
from khll.sketching.cardinality import estimate_cardinality, estimated_cardinality
from khll.sketching.hashing import DEFAULT_HASH_SPACE, HashSpace, hash64
from khll.sketching.hyperloglog import HyperLogLog
from khll.sketching.khll import KHyperLogLog
from khll.sketching.kmv import KMVSketch, merge, merge_all

__all__ = [
    "CardinalitySketch",
    "DEFAULT_HASH_SPACE",
    "HashSpace",
    "HyperLogLog",
    "KHyperLogLog",
    "KMVSketch",
    "Sketch",
    "estimate_cardinality",
    "estimated_cardinality",
    "hash64",
    "merge",
    "merge_all",
]
