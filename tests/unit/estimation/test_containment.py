"""Tests for containment estimation via inclusion-exclusion."""

import pytest

from khll.estimation import (
    ContainmentEstimate,
    containment_from_cardinalities,
    estimate_containment,
    estimated_containment,
)
from khll.sketching import HashSpace, KMVSketch, merge

TOY_SPACE = HashSpace(lower=0, upper=16)


class TestToyScenario:
    """K=4 over the hash domain [0, 16), checked against hand-computed values."""

    @pytest.fixture
    def sketches(self):
        a = KMVSketch.from_hashes([1, 2, 5, 9], capacity=4, hash_space=TOY_SPACE)
        b = KMVSketch.from_hashes([3, 4, 6, 8], capacity=4, hash_space=TOY_SPACE)
        return a, b

    def test_merged_members(self, sketches):
        a, b = sketches
        merged = merge(a, b)

        assert sorted(merged.members) == [1, 2, 3, 4]
        assert merged.kth_value() == 4

    def test_cardinalities(self, sketches):
        a, b = sketches
        estimate = estimate_containment(a, b)

        # (K - 1) * R / (h_k - L + 1) with K=4, R=16, L=0
        assert estimate.left_cardinality == pytest.approx(3 * 16 / 10)
        assert estimate.right_cardinality == pytest.approx(3 * 16 / 9)
        assert estimate.merged_cardinality == pytest.approx(3 * 16 / 5)

    def test_containment(self, sketches):
        a, b = sketches

        # (4.8 + 16/3 - 9.6) / 4.8 = 1/9
        assert estimated_containment(a, b) == pytest.approx(1 / 9)
        assert estimate_containment(a, b).intersection == pytest.approx(8 / 15)

    def test_reverse_containment(self, sketches):
        a, b = sketches

        # (8/15) / (16/3) = 1/10
        assert estimated_containment(b, a) == pytest.approx(1 / 10)
        assert estimate_containment(a, b).reverse_containment == pytest.approx(1 / 10)


class TestContainmentFromCardinalities:
    def test_inclusion_exclusion(self):
        assert containment_from_cardinalities(100, 200, 250) == pytest.approx(0.5)

    def test_negative_clamped_to_zero(self):
        """Noise pushing the intersection below zero gives 0, not a negative ratio."""
        assert containment_from_cardinalities(100, 100, 210) == 0.0

    def test_above_one_clamped(self):
        assert containment_from_cardinalities(100, 100, 90) == 1.0

    def test_rejects_empty_left(self):
        with pytest.raises(ValueError, match="undefined"):
            containment_from_cardinalities(0, 10, 10)


class TestEstimatedContainment:
    """Tests on real hashed data."""

    def test_self_containment_is_one(self):
        a = KMVSketch.from_items(range(10_000), capacity=256, seed="s-1")

        assert estimated_containment(a, a) == pytest.approx(1.0)

    def test_small_sets_exact(self):
        """Below capacity every cardinality is exact, so containment is too."""
        a = KMVSketch.from_items(range(0, 40), capacity=128, seed="s-1")
        b = KMVSketch.from_items(range(30, 100), capacity=128, seed="s-1")

        assert estimated_containment(a, b) == pytest.approx(10 / 40)
        assert estimated_containment(b, a) == pytest.approx(10 / 70)

    def test_disjoint_sets_near_zero(self):
        a = KMVSketch.from_items(range(0, 20_000), capacity=1024, seed="s-1")
        b = KMVSketch.from_items(range(20_000, 40_000), capacity=1024, seed="s-1")

        assert estimated_containment(a, b) < 0.3

    def test_half_overlap(self):
        a = KMVSketch.from_items(range(0, 20_000), capacity=1024, seed="s-1")
        b = KMVSketch.from_items(range(10_000, 30_000), capacity=1024, seed="s-1")

        assert estimated_containment(a, b) == pytest.approx(0.5, abs=0.2)

    def test_ratio_within_unit_interval(self):
        for shift in range(0, 12_000, 2000):
            a = KMVSketch.from_items(range(0, 10_000), capacity=128, seed="s-2")
            b = KMVSketch.from_items(range(shift, shift + 10_000), capacity=128, seed="s-2")
            assert 0.0 <= estimated_containment(a, b) <= 1.0

    def test_rejects_empty_left_sketch(self):
        with pytest.raises(ValueError, match="undefined"):
            estimated_containment(KMVSketch(), KMVSketch.from_items(range(5)))

    def test_rejects_incompatible_sketches(self):
        with pytest.raises(ValueError, match="seed differs"):
            estimated_containment(
                KMVSketch.from_items(range(5), seed="s-1"),
                KMVSketch.from_items(range(5), seed="s-2"),
            )

    def test_estimate_is_frozen(self):
        estimate = ContainmentEstimate(10.0, 10.0, 15.0)
        with pytest.raises(AttributeError):
            estimate.left_cardinality = 3.0  # type: ignore
