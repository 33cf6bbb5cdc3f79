"""HyperLogLog register sketch for per-value distinct counting.

In the uniqueness pipeline every retained value owns one HyperLogLog that
counts the distinct identifiers linked to that value. Each sketch is a
fixed array of M = 2^precision small registers; an identifier's 64-bit hash
picks a register with its low ``precision`` bits, and the register keeps the
longest run of leading zeros (plus one) seen in the remaining bits.

Key properties:
- Space: O(M) registers (M = 1024 by default)
- Update: O(1), idempotent (re-adding an identifier never changes a register)
- Query: O(M)
- Error: ~1.04/sqrt(M) standard error

Reference:
    Flajolet, Fusy, Gandouet, Meunier. "HyperLogLog: the analysis of a
    near-optimal cardinality estimation algorithm" (2007)
"""

from __future__ import annotations

import math
import sys
from typing import Generic, Hashable, TypeVar

from khll.sketching.base import CardinalitySketch
from khll.sketching.hashing import HASH_BITS, SeedType, hash64

T = TypeVar("T", bound=Hashable)

DEFAULT_PRECISION = 10
MIN_PRECISION = 4
MAX_PRECISION = 16

_HASH_RANGE = 1 << HASH_BITS


def _count_leading_zeros(value: int, width: int) -> int:
    """Count leading zeros of ``value`` viewed as a ``width``-bit number."""
    return width - value.bit_length()


class HyperLogLog(CardinalitySketch, Generic[T]):
    """HyperLogLog for streaming distinct-count estimation.

    Args:
        precision: Number of bits for register index (4-16).
            - precision=4: 16 registers, ~26% error
            - precision=10: 1024 registers, ~3.2% error
            - precision=14: 16384 registers, ~0.8% error
            Default is 10.
        seed: Salt appended to every item before hashing.

    Example:
        hll = HyperLogLog[str](precision=10)
        for user_id in ids_for_value:
            hll.add(user_id)
        uniqueness = hll.extract()
    """

    # Bias correction constants from the paper
    _ALPHA = {
        4: 0.673,
        5: 0.697,
        6: 0.709,
    }

    def __init__(self, precision: int = DEFAULT_PRECISION, seed: SeedType = None):
        if not MIN_PRECISION <= precision <= MAX_PRECISION:
            raise ValueError(
                f"precision must be in [{MIN_PRECISION}, {MAX_PRECISION}], got {precision}"
            )

        self._precision = precision
        self._num_registers = 1 << precision
        self._registers = bytearray(self._num_registers)
        self._seed = seed
        self._total_count = 0

    @classmethod
    def with_registers(cls, num_registers: int, seed: SeedType = None) -> HyperLogLog[T]:
        """Create a sketch from a register count M instead of its precision.

        Raises:
            ValueError: If M is not a power of two between 2^4 and 2^16.
        """
        if num_registers <= 0 or num_registers & (num_registers - 1):
            raise ValueError(f"register count must be a power of two, got {num_registers}")
        return cls(precision=num_registers.bit_length() - 1, seed=seed)

    @property
    def precision(self) -> int:
        """Number of bits used for register indexing."""
        return self._precision

    @property
    def num_registers(self) -> int:
        """Number of registers (2^precision)."""
        return self._num_registers

    @property
    def seed(self) -> SeedType:
        return self._seed

    @property
    def registers(self) -> tuple[int, ...]:
        return tuple(self._registers)

    def _alpha(self) -> float:
        if self._precision in self._ALPHA:
            return self._ALPHA[self._precision]
        m = self._num_registers
        return 0.7213 / (1 + 1.079 / m)

    def add(self, item: T, count: int = 1) -> None:
        """Add an item to the sketch.

        Only the presence of the item matters for the estimate; count is
        tracked in item_count.
        """
        if count < 0:
            raise ValueError(f"count must be non-negative, got {count}")
        if count == 0:
            return

        self._total_count += count
        self.add_hash(hash64(item, self._seed))

    def add_hash(self, hash_value: int) -> None:
        """Update the registers with a precomputed unsigned 64-bit hash."""
        register_idx = hash_value & (self._num_registers - 1)
        width = HASH_BITS - self._precision
        remaining_bits = hash_value >> self._precision
        run_length = _count_leading_zeros(remaining_bits, width) + 1

        if run_length > self._registers[register_idx]:
            self._registers[register_idx] = run_length

    def cardinality(self) -> int:
        """Estimate the number of distinct items.

        Linear counting is used while its estimate stays at or below 2.5 * M.
        Past that point the harmonic-mean estimate is floored at 2.5 * M, and
        the 64-bit saturation correction applies in the large range. Every
        branch grows with the registers, so the estimate never decreases as
        items are added or sketches merged.
        """
        m = self._num_registers
        small_range = 2.5 * m

        zeros = self._registers.count(0)
        if zeros > 0:
            linear_count = m * math.log(m / zeros)
            if linear_count <= small_range:
                return int(linear_count)

        indicator = sum(2.0 ** (-r) for r in self._registers)
        estimate = max(self._alpha() * m * m / indicator, small_range)
        if estimate > _HASH_RANGE / 30:
            estimate = -_HASH_RANGE * math.log(1 - estimate / _HASH_RANGE)

        return int(estimate)

    def extract(self) -> int:
        """Final distinct-count estimate; alias of cardinality()."""
        return self.cardinality()

    def standard_error(self) -> float:
        """Theoretical relative standard error, 1.04/sqrt(M)."""
        return 1.04 / math.sqrt(self._num_registers)

    def merge(self, other: HyperLogLog[T]) -> None:
        """Merge another HyperLogLog into this one (register-wise maximum).

        Raises:
            TypeError: If other is not a HyperLogLog.
            ValueError: If precision or seed differ.
        """
        if not isinstance(other, HyperLogLog):
            raise TypeError(f"Can only merge with HyperLogLog, got {type(other).__name__}")
        if other._precision != self._precision:
            raise ValueError(
                f"Cannot merge: precision differs ({self._precision} vs {other._precision})"
            )
        if other._seed != self._seed:
            raise ValueError(f"Cannot merge: seed differs ({self._seed!r} vs {other._seed!r})")

        for i, r in enumerate(other._registers):
            if r > self._registers[i]:
                self._registers[i] = r
        self._total_count += other._total_count

    def copy(self) -> HyperLogLog[T]:
        clone = HyperLogLog(self._precision, self._seed)
        clone._registers = bytearray(self._registers)
        clone._total_count = self._total_count
        return clone

    @property
    def memory_bytes(self) -> int:
        """Estimated memory usage in bytes (one byte per register)."""
        return self._num_registers + sys.getsizeof(self)

    @property
    def item_count(self) -> int:
        """Total count of items added (not distinct count)."""
        return self._total_count

    def clear(self) -> None:
        self._registers = bytearray(self._num_registers)
        self._total_count = 0

    def __repr__(self) -> str:
        return (
            f"HyperLogLog(precision={self._precision}, "
            f"registers={self._num_registers}, "
            f"cardinality≈{self.cardinality()})"
        )
