"""KHyperLogLog: KMV over values, one HyperLogLog per retained value.

KHLL answers "how many distinct identifiers are linked to each value?" for
a uniform sample of values in bounded memory. It keeps a KMV sketch over the
hashes of the values, and next to every retained value hash a HyperLogLog
counting the identifiers seen with that value.

The structure is built in one pass. The KMV threshold only ever decreases,
so a value that is retained at the end was retained from its first
occurrence and its HyperLogLog saw every identifier linked to it. A value
that is evicted can never re-enter, and its HyperLogLog is dropped.

Key properties:
- Space: O(K * M) (K retained values, M registers each)
- Update: O(log K) search plus a sorted-list insert for the KMV, O(1) for the register update
- Merge: KMV merge; register sketches of the same value are merged, and
  never across different values

Reference:
    Chia, Desfontaines, et al. "KHyperLogLog: Estimating Reidentifiability
    and Joinability of Large Data at Scale" (2019)
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterable, Iterator
from typing import Hashable

from khll.sketching.base import Sketch
from khll.sketching.hashing import DEFAULT_HASH_SPACE, HashSpace, SeedType
from khll.sketching.hyperloglog import DEFAULT_PRECISION, HyperLogLog
from khll.sketching.kmv import DEFAULT_CAPACITY, KMVSketch

logger = logging.getLogger(__name__)


class KHyperLogLog(Sketch):
    """Sketch of per-value uniqueness over a stream of (value, identifier) pairs.

    Args:
        capacity: Number of retained values (K). Default 2048.
        precision: Register bits of each per-value HyperLogLog. Default 10.
        hash_space: Domain value hashes are drawn from.
        seed: Salt for hashing both values and identifiers.

    Example:
        khll = KHyperLogLog(capacity=2048, precision=10)
        for zip_code, user_id in rows:
            khll.add_pair(zip_code, user_id)
        levels = khll.uniqueness_levels()
    """

    def __init__(
        self,
        capacity: int = DEFAULT_CAPACITY,
        precision: int = DEFAULT_PRECISION,
        hash_space: HashSpace = DEFAULT_HASH_SPACE,
        seed: SeedType = None,
    ):
        # Validate precision up front, before any value is retained
        HyperLogLog(precision=precision)

        self._kmv = KMVSketch(capacity=capacity, hash_space=hash_space, seed=seed)
        self._precision = precision
        self._registers: dict[int, HyperLogLog] = {}

    @classmethod
    def from_pairs(
        cls,
        pairs: Iterable[tuple[Hashable, Hashable]],
        capacity: int = DEFAULT_CAPACITY,
        precision: int = DEFAULT_PRECISION,
        hash_space: HashSpace = DEFAULT_HASH_SPACE,
        seed: SeedType = None,
    ) -> KHyperLogLog:
        sketch = cls(capacity=capacity, precision=precision, hash_space=hash_space, seed=seed)
        for value, identifier in pairs:
            sketch.add_pair(value, identifier)
        return sketch

    @property
    def capacity(self) -> int:
        return self._kmv.capacity

    @property
    def precision(self) -> int:
        return self._precision

    @property
    def seed(self) -> SeedType:
        return self._kmv.seed

    @property
    def value_sketch(self) -> KMVSketch:
        """The KMV sketch over value hashes."""
        return self._kmv

    def add(self, item: tuple[Hashable, Hashable], count: int = 1) -> None:
        """Add a (value, identifier) pair."""
        if count < 0:
            raise ValueError(f"count must be non-negative, got {count}")
        if count == 0:
            return
        value, identifier = item
        self.add_pair(value, identifier)

    def add_pair(self, value: Hashable, identifier: Hashable) -> None:
        """Record that ``identifier`` is linked to ``value``."""
        self.add_hashed(self._kmv.hash(value), identifier)

    def add_hashed(self, value_hash: int, identifier: Hashable) -> None:
        """Like add_pair, with the value already hashed into the sketch's space."""
        threshold = self._kmv.kth_value()
        if not self._kmv.add_hash(value_hash):
            return

        hll = self._registers.get(value_hash)
        if hll is None:
            hll = HyperLogLog(precision=self._precision, seed=self._kmv.seed)
            self._registers[value_hash] = hll
            # A new hash below the threshold pushes the old K-th value out
            if threshold is not None and threshold not in self._kmv:
                del self._registers[threshold]
        hll.add(identifier)

    def merge(self, other: KHyperLogLog) -> None:
        """Merge another KHLL into this one.

        Raises:
            TypeError: If other is not a KHyperLogLog.
            ValueError: If capacity, precision, hash space or seed differ.
        """
        if not isinstance(other, KHyperLogLog):
            raise TypeError(f"Can only merge with KHyperLogLog, got {type(other).__name__}")
        if other._precision != self._precision:
            raise ValueError(
                f"Cannot merge: precision differs ({self._precision} vs {other._precision})"
            )

        self._kmv.merge(other._kmv)
        for h, hll in other._registers.items():
            if h not in self._kmv:
                continue
            if h in self._registers:
                self._registers[h].merge(hll)
            else:
                self._registers[h] = hll.copy()

        evicted = [h for h in self._registers if h not in self._kmv]
        for h in evicted:
            del self._registers[h]
        logger.debug(
            "Merged KHLL: %d retained values, %d evicted", len(self._registers), len(evicted)
        )

    def uniqueness_levels(self) -> Iterator[int]:
        """Yield the estimated identifier count of every retained value, by value hash."""
        for h in self._kmv.members:
            yield self._registers[h].extract()

    def items(self) -> Iterator[tuple[int, HyperLogLog]]:
        """Yield (value hash, register sketch) pairs in ascending hash order."""
        for h in self._kmv.members:
            yield h, self._registers[h]

    def value_cardinality(self) -> float:
        """Estimated number of distinct values in the stream."""
        return self._kmv.cardinality()

    def value_sampling_ratio(self) -> float:
        """Estimated fraction of all distinct values that the sketch retained."""
        estimated = self.value_cardinality()
        if estimated <= 0:
            return 1.0
        return min(1.0, self.capacity / estimated)

    @property
    def memory_bytes(self) -> int:
        return (
            self._kmv.memory_bytes
            + sum(hll.memory_bytes for hll in self._registers.values())
            + sys.getsizeof(self._registers)
        )

    @property
    def item_count(self) -> int:
        """Number of pairs added."""
        return self._kmv.item_count

    def clear(self) -> None:
        self._kmv.clear()
        self._registers = {}

    def __len__(self) -> int:
        return len(self._kmv)

    def __repr__(self) -> str:
        return (
            f"KHyperLogLog(capacity={self.capacity}, precision={self._precision}, "
            f"retained={len(self)})"
        )
