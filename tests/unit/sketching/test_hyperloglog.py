"""Tests for the HyperLogLog register sketch."""

import math

import pytest

from khll.sketching import HyperLogLog
from khll.sketching.hashing import hash64


class TestHyperLogLogCreation:
    """Tests for HyperLogLog creation and configuration."""

    def test_creates_with_default_precision(self):
        """Default precision is 10 (1024 registers)."""
        hll = HyperLogLog[int]()

        assert hll.precision == 10
        assert hll.num_registers == 1024

    def test_creates_with_custom_precision(self):
        hll = HyperLogLog[int](precision=14)

        assert hll.num_registers == 16384

    def test_rejects_precision_below_4(self):
        with pytest.raises(ValueError, match="must be in"):
            HyperLogLog[int](precision=3)

    def test_rejects_precision_above_16(self):
        with pytest.raises(ValueError, match="must be in"):
            HyperLogLog[int](precision=17)

    def test_with_registers(self):
        """A power-of-two register count maps to its precision."""
        assert HyperLogLog.with_registers(1024).precision == 10

    def test_with_registers_rejects_non_power_of_two(self):
        with pytest.raises(ValueError, match="power of two"):
            HyperLogLog.with_registers(1000)

    def test_with_registers_rejects_out_of_range(self):
        with pytest.raises(ValueError, match="must be in"):
            HyperLogLog.with_registers(8)


class TestHyperLogLogRegisters:
    """Tests for the register update rule."""

    def test_low_bits_select_register(self):
        """The low precision bits of the hash pick the register."""
        hll = HyperLogLog[int](precision=4)
        hll.add_hash(0b1011)

        assert hll.registers[0b1011] > 0
        assert sum(1 for r in hll.registers if r) == 1

    def test_run_length_is_leading_zeros_plus_one(self):
        """The register stores leading zeros of the remaining bits plus one."""
        hll = HyperLogLog[int](precision=4)
        # Remaining 60 bits: top bit set -> 0 leading zeros
        hll.add_hash((1 << 63) | 0b0001)
        # Remaining 60 bits: 1 at position 50 -> 9 leading zeros
        hll.add_hash((1 << (50 + 4)) | 0b0010)
        # Remaining bits all zero -> 60 leading zeros
        hll.add_hash(0b0011)

        assert hll.registers[1] == 1
        assert hll.registers[2] == 10
        assert hll.registers[3] == 61

    def test_registers_never_decrease(self):
        hll = HyperLogLog[int](precision=4)
        hll.add_hash(0b0101)
        before = hll.registers[5]
        hll.add_hash((1 << 63) | 0b0101)

        assert hll.registers[5] == before

    def test_add_hashes_with_seed(self):
        """add() uses the seeded 64-bit fingerprint."""
        hll = HyperLogLog[str](precision=10, seed="s-1")
        reference = HyperLogLog[str](precision=10)
        hll.add("alice")
        reference.add_hash(hash64("alice", "s-1"))

        assert hll.registers == reference.registers


class TestHyperLogLogCardinality:
    """Tests for distinct-count extraction."""

    def test_cardinality_empty(self):
        assert HyperLogLog[int]().extract() == 0

    def test_single_item(self):
        hll = HyperLogLog[int]()
        hll.add(42)

        assert hll.extract() == 1

    def test_small_counts_exact(self):
        """Linear counting recovers small distinct counts exactly."""
        for n in [2, 3, 5]:
            hll = HyperLogLog[str](precision=10, seed="s-1")
            for i in range(n):
                hll.add(f"user-{i}")
            assert hll.extract() == n

    def test_idempotent_insert(self):
        """Re-inserting an identifier never changes the estimate."""
        once = HyperLogLog[str]()
        many = HyperLogLog[str]()
        for i in range(300):
            once.add(f"id-{i}")
            for _ in range(3):
                many.add(f"id-{i}")

        assert once.extract() == many.extract()
        assert once.registers == many.registers
        assert many.item_count == 900

    @pytest.mark.parametrize("seed", [f"s-{s}" for s in range(20)])
    def test_monotone_across_small_range_switch(self, seed):
        """The estimate never decreases, checked after every insert up to 6M."""
        hll = HyperLogLog[str](precision=8, seed=seed)
        previous = 0
        for i in range(6 * hll.num_registers):
            hll.add(f"id-{i}")
            current = hll.extract()
            assert current >= previous, (i, previous, current)
            previous = current

    @pytest.mark.parametrize("seed", ["s-3", "s-4", "s-5", "s-18", "s-21"])
    def test_monotone_at_default_precision(self, seed):
        hll = HyperLogLog[str](precision=10, seed=seed)
        previous = 0
        for i in range(3000):
            hll.add(f"id-{i}")
            current = hll.extract()
            assert current >= previous, (i, previous, current)
            previous = current

    def test_monotone_under_merge(self):
        """Merging in more registers never lowers the estimate."""
        total = HyperLogLog[str](precision=6, seed="s-1")
        previous = 0
        for batch in range(40):
            part = HyperLogLog[str](precision=6, seed="s-1")
            for i in range(10):
                part.add(f"id-{batch}-{i}")
            total.merge(part)
            assert total.extract() >= previous
            previous = total.extract()

    def test_medium_set(self):
        n = 20_000
        hll = HyperLogLog[int](precision=10, seed="s-1")
        for i in range(n):
            hll.add(i)

        error = abs(hll.extract() - n) / n
        # ~3.2% standard error at precision 10
        assert error < 0.12, f"Expected ~{n}, got {hll.extract()}"

    def test_standard_error_matches_theory(self):
        for precision in [8, 10, 12, 14]:
            hll = HyperLogLog[int](precision=precision)
            expected = 1.04 / math.sqrt(2**precision)
            assert hll.standard_error() == pytest.approx(expected, rel=0.01)


class TestHyperLogLogMerge:
    """Tests for merging register sketches."""

    def test_merge_is_register_max(self):
        a = HyperLogLog[int](precision=6, seed="s-1")
        b = HyperLogLog[int](precision=6, seed="s-1")
        for i in range(100):
            a.add(i)
        for i in range(50, 300):
            b.add(i)
        expected = tuple(max(x, y) for x, y in zip(a.registers, b.registers))

        a.merge(b)

        assert a.registers == expected

    def test_merge_equals_union(self):
        a = HyperLogLog[int](precision=10, seed="s-1")
        b = HyperLogLog[int](precision=10, seed="s-1")
        union = HyperLogLog[int](precision=10, seed="s-1")
        for i in range(1000):
            (a if i % 2 else b).add(i)
            union.add(i)

        a.merge(b)

        assert a.extract() == union.extract()

    def test_merge_rejects_different_precision(self):
        with pytest.raises(ValueError, match="precision differs"):
            HyperLogLog[int](precision=10).merge(HyperLogLog[int](precision=12))

    def test_merge_rejects_different_seed(self):
        with pytest.raises(ValueError, match="seed differs"):
            HyperLogLog[int](seed="s-1").merge(HyperLogLog[int](seed="s-2"))

    def test_merge_rejects_wrong_type(self):
        with pytest.raises(TypeError, match="Can only merge"):
            HyperLogLog[int]().merge("not a hll")  # type: ignore


class TestHyperLogLogMisc:
    """Tests for copy, clear, memory and repr."""

    def test_copy_is_independent(self):
        hll = HyperLogLog[int]()
        hll.add(1)
        clone = hll.copy()
        for i in range(2, 50):
            clone.add(i)

        assert hll.extract() == 1
        assert clone.extract() > 1

    def test_clear_resets_state(self):
        hll = HyperLogLog[int]()
        for i in range(1000):
            hll.add(i)
        hll.clear()

        assert hll.extract() == 0
        assert hll.item_count == 0

    def test_memory_constant_with_items(self):
        hll = HyperLogLog[int](precision=10)
        initial_memory = hll.memory_bytes
        for i in range(10_000):
            hll.add(i)

        assert hll.memory_bytes == initial_memory

    def test_repr_includes_key_info(self):
        r = repr(HyperLogLog[int](precision=10))

        assert "precision=10" in r
        assert "registers=1024" in r
