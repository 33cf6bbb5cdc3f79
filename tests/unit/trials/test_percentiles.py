"""Tests for nearest-rank percentile reduction."""

import random

import numpy as np
import pytest

from khll.trials import PercentileBand, nearest_rank, percentile_band, percentile_bands


class TestNearestRank:
    """Tests for the nearest-rank method."""

    def test_101_samples(self):
        """0.00 .. 1.00 in steps of 0.01 gives 0.05 / 0.50 / 0.95 exactly."""
        samples = [i / 100 for i in range(101)]

        assert nearest_rank(samples, 0.05) == 0.05
        assert nearest_rank(samples, 0.50) == 0.50
        assert nearest_rank(samples, 0.95) == 0.95

    def test_sorts_unordered_samples(self):
        samples = [i / 100 for i in range(101)]
        random.Random(1).shuffle(samples)

        assert nearest_rank(samples, 0.5) == 0.50

    def test_index_is_floor_of_n_times_q(self):
        samples = list(range(10))

        assert nearest_rank(samples, 0.05) == 0
        assert nearest_rank(samples, 0.5) == 5
        assert nearest_rank(samples, 0.95) == 9

    def test_accepts_numpy_arrays(self):
        assert nearest_rank(np.arange(20.0), 0.5) == 10.0

    def test_rejects_index_past_end(self):
        """q=1.0 would index one past the last sample."""
        with pytest.raises(ValueError, match="exceeds sample count"):
            nearest_rank([1.0, 2.0, 3.0], 1.0)

    def test_rejects_quantile_outside_unit_interval(self):
        with pytest.raises(ValueError, match="quantile"):
            nearest_rank([1.0], 1.5)
        with pytest.raises(ValueError, match="quantile"):
            nearest_rank([1.0], -0.1)

    def test_rejects_empty(self):
        with pytest.raises(ValueError, match="zero samples"):
            nearest_rank([], 0.5)


class TestPercentileBands:
    """Tests for grouping samples into bands."""

    def test_band(self):
        band = percentile_band([i / 100 for i in range(101)])

        assert band == PercentileBand(p5=0.05, median=0.5, p95=0.95, num_samples=101)

    def test_brackets(self):
        band = PercentileBand(p5=0.9, median=1.0, p95=1.1, num_samples=101)

        assert band.brackets(1.0)
        assert not band.brackets(1.2)

    def test_bands_per_parameter_sorted(self):
        groups = {
            0.5: [0.4, 0.5, 0.6],
            0.1: [0.0, 0.1, 0.2],
            1.0: [0.9, 1.0, 1.0],
        }

        bands = percentile_bands(groups)

        assert list(bands) == [0.1, 0.5, 1.0]
        assert bands[0.5].median == 0.5
        assert bands[0.1].p5 == 0.0
        assert bands[1.0].p95 == 1.0

    def test_tuple_parameters(self):
        bands = percentile_bands({(0.5, 2.0): [1.0, 2.0], (0.5, 1.0): [3.0, 4.0]})

        assert list(bands) == [(0.5, 1.0), (0.5, 2.0)]

    def test_empty_group_rejected(self):
        with pytest.raises(ValueError, match="zero samples"):
            percentile_bands({0.5: []})
