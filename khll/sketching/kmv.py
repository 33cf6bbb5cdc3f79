"""K-Minimum-Values (KMV) sketch for mergeable distinct counting.

A KMV sketch keeps the K smallest distinct hash values it has seen. Once it
holds K values, its largest retained hash (the K-th order statistic) only
ever decreases as more input arrives, and its position in the hash domain
determines the cardinality estimate (see ``khll.sketching.cardinality``).

Key properties:
- Space: O(K) regardless of stream size
- Update: O(log K) search, O(K) worst-case insertion
- Merge: the K smallest distinct values of the union of both sketches;
  associative and commutative
- Error: ~1/sqrt(K - 2) relative standard error

Because merge is exact over the retained values, sketches can be built per
data partition and combined later without re-reading the data:

    sketches = [KMVSketch.from_items(part, seed="s-1") for part in partitions]
    total = merge_all(sketches)
    total.cardinality()
"""

from __future__ import annotations

import bisect
import logging
import sys
from collections.abc import Iterable
from typing import Hashable

from khll.sketching.base import CardinalitySketch
from khll.sketching.cardinality import estimate_cardinality
from khll.sketching.hashing import DEFAULT_HASH_SPACE, HashSpace, SeedType

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 2048


class KMVSketch(CardinalitySketch):
    """Bounded sketch retaining the K smallest distinct hash values.

    Args:
        capacity: Maximum number of retained hashes (K). Default 2048.
        hash_space: Domain hashes are drawn from. Default signed 64-bit.
        seed: Salt for hashing items added via add().

    Example:
        kmv = KMVSketch(capacity=2048, seed="s-1")
        for user_id in stream:
            kmv.add(user_id)
        print(f"~{kmv.cardinality():.0f} distinct users")
    """

    def __init__(
        self,
        capacity: int = DEFAULT_CAPACITY,
        hash_space: HashSpace = DEFAULT_HASH_SPACE,
        seed: SeedType = None,
    ):
        if capacity <= 0:
            raise ValueError(f"capacity must be positive, got {capacity}")

        self._capacity = capacity
        self._hash_space = hash_space
        self._seed = seed
        self._members: list[int] = []  # sorted ascending
        self._member_set: set[int] = set()
        self._total_count = 0

    @classmethod
    def from_hashes(
        cls,
        hashes: Iterable[int],
        capacity: int = DEFAULT_CAPACITY,
        hash_space: HashSpace = DEFAULT_HASH_SPACE,
        seed: SeedType = None,
    ) -> KMVSketch:
        """Build a sketch from precomputed hash values."""
        sketch = cls(capacity=capacity, hash_space=hash_space, seed=seed)
        for h in hashes:
            sketch.add_hash(h)
        return sketch

    @classmethod
    def from_items(
        cls,
        items: Iterable[Hashable],
        capacity: int = DEFAULT_CAPACITY,
        hash_space: HashSpace = DEFAULT_HASH_SPACE,
        seed: SeedType = None,
    ) -> KMVSketch:
        """Build a sketch by hashing every item with the given seed."""
        sketch = cls(capacity=capacity, hash_space=hash_space, seed=seed)
        for item in items:
            sketch.add(item)
        return sketch

    @property
    def capacity(self) -> int:
        """Maximum number of retained hashes (K)."""
        return self._capacity

    @property
    def hash_space(self) -> HashSpace:
        return self._hash_space

    @property
    def seed(self) -> SeedType:
        return self._seed

    @property
    def members(self) -> tuple[int, ...]:
        """Retained hashes in ascending order."""
        return tuple(self._members)

    @property
    def is_full(self) -> bool:
        """True once the sketch holds K hashes and its estimate is approximate."""
        return len(self._members) >= self._capacity

    def hash(self, item: Hashable) -> int:
        """Hash an item the way add() does."""
        return self._hash_space.hash(item, self._seed)

    def add(self, item: Hashable, count: int = 1) -> None:
        """Hash an item and offer it to the sketch.

        Args:
            item: The item to add.
            count: Only counts toward item_count; distinctness is all that
                matters for the estimate.
        """
        if count < 0:
            raise ValueError(f"count must be non-negative, got {count}")
        if count == 0:
            return

        self._total_count += count
        self._offer(self.hash(item))

    def add_hash(self, h: int) -> bool:
        """Offer a precomputed hash value.

        Returns:
            True if the hash is retained after the insertion.

        Raises:
            ValueError: If h is outside the sketch's hash space.
        """
        if h not in self._hash_space:
            raise ValueError(
                f"hash {h} outside hash space "
                f"[{self._hash_space.lower}, {self._hash_space.upper})"
            )
        self._total_count += 1
        return self._offer(h)

    def _offer(self, h: int) -> bool:
        if h in self._member_set:
            return True
        if self.is_full and h >= self._members[-1]:
            return False

        bisect.insort(self._members, h)
        self._member_set.add(h)
        if len(self._members) > self._capacity:
            self._member_set.discard(self._members.pop())
        return True

    def kth_value(self) -> int | None:
        """The K-th smallest hash seen, or None while the sketch is not full."""
        if not self.is_full:
            return None
        return self._members[-1]

    def cardinality(self) -> float:
        """Estimated number of distinct values (exact while not full)."""
        return estimate_cardinality(
            self.kth_value(), len(self._members), self._capacity, self._hash_space
        )

    def _check_compatible(self, other: object) -> None:
        if not isinstance(other, KMVSketch):
            raise TypeError(f"Can only merge with KMVSketch, got {type(other).__name__}")
        if other._capacity != self._capacity:
            raise ValueError(
                f"Cannot merge: capacity differs ({self._capacity} vs {other._capacity})"
            )
        if other._hash_space != self._hash_space:
            raise ValueError(
                f"Cannot merge: hash space differs ({self._hash_space} vs {other._hash_space})"
            )
        if other._seed != self._seed:
            raise ValueError(f"Cannot merge: seed differs ({self._seed!r} vs {other._seed!r})")

    def merge(self, other: KMVSketch) -> None:
        """Merge another KMV sketch into this one, keeping the K smallest of the union.

        Raises:
            TypeError: If other is not a KMVSketch.
            ValueError: If capacity, hash space or seed differ.
        """
        self._check_compatible(other)

        union = sorted(self._member_set.union(other._member_set))
        self._members = union[: self._capacity]
        self._member_set = set(self._members)
        self._total_count += other._total_count

    def copy(self) -> KMVSketch:
        clone = KMVSketch(self._capacity, self._hash_space, self._seed)
        clone._members = list(self._members)
        clone._member_set = set(self._member_set)
        clone._total_count = self._total_count
        return clone

    @property
    def memory_bytes(self) -> int:
        """Estimated memory usage in bytes (8 bytes per retained hash, list and set)."""
        return len(self._members) * 16 + sys.getsizeof(self)

    @property
    def item_count(self) -> int:
        """Total count of items offered (not distinct count)."""
        return self._total_count

    def clear(self) -> None:
        self._members = []
        self._member_set = set()
        self._total_count = 0

    def __len__(self) -> int:
        return len(self._members)

    def __contains__(self, h: object) -> bool:
        return h in self._member_set

    def __repr__(self) -> str:
        return (
            f"KMVSketch(capacity={self._capacity}, "
            f"retained={len(self._members)}, "
            f"cardinality≈{self.cardinality():.1f})"
        )


def merge(a: KMVSketch, b: KMVSketch) -> KMVSketch:
    """Return a new sketch holding the K smallest distinct hashes of a ∪ b.

    Neither input is modified.
    """
    merged = a.copy()
    merged.merge(b)
    return merged


def merge_all(sketches: Iterable[KMVSketch], fan_in: int = 2) -> KMVSketch:
    """Reduce many sketches into one with a tree of merges.

    Each level merges groups of ``fan_in`` sketches, which bounds the working
    set of a single merge step. Since merge is associative and commutative,
    the result is identical for every fan-in and input order.

    Raises:
        ValueError: If no sketches are given or fan_in < 2.
    """
    if fan_in < 2:
        raise ValueError(f"fan_in must be at least 2, got {fan_in}")

    level = list(sketches)
    if not level:
        raise ValueError("merge_all requires at least one sketch")
    if len(level) == 1:
        return level[0].copy()

    depth = 0
    while len(level) > 1:
        next_level = []
        for start in range(0, len(level), fan_in):
            group = level[start:start + fan_in]
            merged = group[0].copy()
            for sketch in group[1:]:
                merged.merge(sketch)
            next_level.append(merged)
        level = next_level
        depth += 1

    logger.debug("Merged sketches in %d levels (fan_in=%d)", depth, fan_in)
    return level[0]
