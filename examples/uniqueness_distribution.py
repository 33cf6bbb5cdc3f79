"""Uniqueness distribution of a synthetic column, estimated with KHyperLogLog.

A column of values (ZIP codes, say) is linked to user identifiers. The
uniqueness level of a value is the number of distinct users it appears
with; values with a low level can reidentify users. This example:

1. Generates values whose levels follow a long-tailed distribution
2. Estimates the distribution in bounded memory, splitting the input
   into shards and merging the per-shard sketches
3. Compares it with the exact distribution computed from all pairs

Memory is bounded by K register sketches of 2^p registers each, however
many values the column holds.
"""

from __future__ import annotations

import random

import khll
from khll.estimation import khll_uniqueness_distribution


def generate_pairs(num_values: int, seed: int) -> list[tuple[str, str]]:
    """(value, user) pairs with roughly geometric uniqueness levels."""
    rng = random.Random(seed)
    pairs = []
    for v in range(num_values):
        level = 1 + int(rng.expovariate(0.3))
        pairs.extend((f"zip-{v}", f"user-{rng.randrange(10 * num_values)}") for _ in range(level))
    rng.shuffle(pairs)
    return pairs


def sharded_distribution(
    pairs: list[tuple[str, str]], num_shards: int, config: khll.EstimatorConfig
) -> khll.UniquenessDistribution:
    shards = [pairs[i::num_shards] for i in range(num_shards)]
    sketch = khll.KHyperLogLog(capacity=config.capacity, precision=config.precision)
    for shard in shards:
        sketch.merge(
            khll.KHyperLogLog.from_pairs(shard, capacity=config.capacity, precision=config.precision)
        )
    return khll_uniqueness_distribution(sketch)


if __name__ == "__main__":
    import argparse

    defaults = khll.EstimatorConfig.from_env()

    parser = argparse.ArgumentParser(description="Estimate a uniqueness distribution with KHyperLogLog")
    parser.add_argument("--values", type=int, default=50_000, help="Number of distinct values")
    parser.add_argument("--shards", type=int, default=4, help="Number of input partitions")
    parser.add_argument("--capacity", type=int, default=defaults.capacity, help="KMV capacity K")
    parser.add_argument("--precision", type=int, default=defaults.precision, help="HyperLogLog precision p")
    parser.add_argument("--seed", type=int, default=42, help="Random seed for the synthetic data")
    args = parser.parse_args()

    khll.configure_from_env()
    config = khll.EstimatorConfig(capacity=args.capacity, precision=args.precision)

    pairs = generate_pairs(args.values, args.seed)
    print(f"Generated {len(pairs)} pairs over {args.values} values")

    estimated = sharded_distribution(pairs, args.shards, config)
    exact = khll.exact_uniqueness_distribution(pairs)

    print(f"  Estimated values: {estimated.estimated_num_values:.0f} (exact {exact.estimated_num_values:.0f})")
    print(f"  Sampling ratio: {estimated.value_sampling_ratio:.4f}")
    print(f"  Memory bound: {config.capacity} values x {config.num_registers} registers")
    print()
    print(f"{'level':>6} {'estimated':>10} {'exact':>10}")
    for level in estimated.levels[:15]:
        print(
            f"{level:>6} {estimated.cumulative_ratio_at(level):>10.3f} "
            f"{exact.cumulative_ratio_at(level):>10.3f}"
        )
