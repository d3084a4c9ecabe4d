"""
Tests for the built-in feature-set engines.

Each engine is checked on signals with known properties.
"""

import numpy as np
import pytest

from tsfeatkit.core import _stats
from tsfeatkit.core.features import complexity, distribution, memory, spectral, statistics, trend
from tsfeatkit.core.registry import get_registry

ENGINES = {
    "statistics": statistics,
    "distribution": distribution,
    "memory": memory,
    "complexity": complexity,
    "spectral": spectral,
    "trend": trend,
}


class TestDeclaredOutputs:
    """compute() returns exactly the outputs declared in the yaml."""

    @pytest.mark.parametrize("name", sorted(ENGINES))
    def test_keys_match_config(self, name):
        y = np.random.default_rng(0).normal(size=300)
        result = ENGINES[name].compute(y)
        assert list(result) == get_registry().get_outputs(name)


class TestStatistics:
    def test_known_moments(self):
        y = np.array([1.0, 2.0, 3.0, 4.0, 5.0])
        r = statistics.compute(y)

        assert r["mean"] == pytest.approx(3.0)
        assert r["median"] == pytest.approx(3.0)
        assert r["std"] == pytest.approx(np.std(y, ddof=1))
        assert r["iqr"] == pytest.approx(2.0)
        assert r["skewness"] == pytest.approx(0.0, abs=1e-12)

    def test_nan_samples_ignored(self):
        r = statistics.compute(np.array([1.0, np.nan, 3.0, np.inf, 5.0]))
        assert r["mean"] == pytest.approx(3.0)
        assert r["max"] == pytest.approx(5.0)


class TestMemory:
    def test_ar1_has_high_lag1(self):
        rng = np.random.default_rng(1)
        x = np.zeros(2000)
        for t in range(1, len(x)):
            x[t] = 0.9 * x[t - 1] + rng.normal()
        r = memory.compute(x)

        assert r["acf_lag1"] == pytest.approx(0.9, abs=0.05)
        assert r["acf_first_1e"] > 5

    def test_random_walk_more_persistent_than_noise(self):
        rng = np.random.default_rng(2)
        noise = rng.normal(size=1000)
        walk = np.cumsum(rng.normal(size=1000))

        assert memory.compute(walk)["dfa_alpha"] > memory.compute(noise)["dfa_alpha"] + 0.5
        assert memory.compute(walk)["hurst"] > memory.compute(noise)["hurst"]

    def test_constant_series_is_nan(self):
        r = memory.compute(np.ones(100))
        assert np.isnan(r["acf_lag1"])
        assert np.isnan(r["acf_first_zero"])
        assert np.isnan(r["hurst"])
        assert np.isnan(r["dfa_alpha"])


class TestSpectral:
    def test_dominant_frequency_of_sinusoid(self):
        t = np.arange(1024)
        r = spectral.compute(np.sin(2 * np.pi * 0.1 * t))

        assert r["dominant_freq"] == pytest.approx(0.1, abs=0.01)
        assert 0.0 <= r["spectral_entropy"] <= 1.0

    def test_random_walk_is_red(self):
        walk = np.cumsum(np.random.default_rng(3).normal(size=1024))
        r = spectral.compute(walk)

        assert r["spectral_slope"] < -1.0
        assert r["low_freq_power"] > 0.5

    def test_constant_series_is_zero(self):
        r = spectral.compute(np.full(64, 3.0))
        assert all(v == 0.0 for v in r.values())


class TestTrend:
    def test_linear_trend(self):
        y = 2.0 * np.arange(50) + 1.0
        r = trend.compute(y)

        assert r["trend_slope"] == pytest.approx(2.0)
        assert r["trend_r2"] == pytest.approx(1.0)
        assert r["detrend_std"] == pytest.approx(0.0, abs=1e-9)
        assert r["kendall_tau"] == pytest.approx(1.0)

    def test_level_shift_raises_stability(self):
        rng = np.random.default_rng(4)
        flat = rng.normal(size=200)
        shifted = flat + np.r_[np.zeros(100), np.full(100, 5.0)]

        assert trend.compute(shifted)["stability"] > trend.compute(flat)["stability"]


class TestComplexity:
    def test_monotonic_has_zero_permutation_entropy(self):
        r = complexity.compute(np.arange(100.0))
        assert r["permutation_entropy"] == pytest.approx(0.0)

    def test_noise_is_high_entropy(self):
        r = complexity.compute(np.random.default_rng(5).normal(size=500))
        assert r["permutation_entropy"] > 0.95
        assert r["sample_entropy"] > 1.5

    def test_sine_more_regular_than_noise(self):
        t = np.arange(500)
        sine = complexity.compute(np.sin(2 * np.pi * t / 50))
        noise = complexity.compute(np.random.default_rng(6).normal(size=500))
        assert sine["sample_entropy"] < noise["sample_entropy"]

    def test_time_reversibility_symmetric_process(self):
        y = np.sin(2 * np.pi * np.arange(400) / 40)
        assert complexity.time_reversibility(y) == pytest.approx(0.0, abs=1e-3)


class TestDistribution:
    def test_longest_stretch_above_mean(self):
        y = np.r_[np.zeros(30), np.ones(12), np.zeros(30)]
        assert distribution.compute(y)["stretch_above_mean"] == 12

    def test_outlier_timing_late_spikes(self):
        y = np.zeros(200)
        y[180:] = 10.0
        y += np.random.default_rng(7).normal(0, 0.01, 200)
        r = distribution.compute(y)
        assert r["outlier_timing_pos"] > 0.3

    def test_constant_outlier_timing_is_nan(self):
        r = distribution.compute(np.ones(50))
        assert np.isnan(r["outlier_timing_pos"])


class TestStatsHelpers:
    def test_zscore_centres_constant(self):
        assert np.all(_stats.zscore(np.full(5, 4.0)) == 0.0)

    def test_autocorrelation_lag0_is_one(self):
        acf = _stats.autocorrelation(np.random.default_rng(8).normal(size=100), max_lag=10)
        assert len(acf) == 11
        assert acf[0] == pytest.approx(1.0)

    def test_first_crossing_never(self):
        assert _stats.first_crossing(np.array([1.0, 0.9, 0.8]), 0.0) == 3.0

    def test_longest_run(self):
        assert _stats.longest_run(np.array([1, 1, 0, 1, 1, 1, 0], dtype=bool)) == 3
        assert _stats.longest_run(np.zeros(4, dtype=bool)) == 0


class TestLibraryPrimitives:
    """Scaling exponents and entropies come straight from pmtvs / antropy."""

    def test_memory_exponents(self):
        from antropy import detrended_fluctuation
        from pmtvs import hurst_exponent

        y = np.cumsum(np.random.default_rng(8).normal(size=400))
        r = memory.compute(y)

        assert r["hurst"] == pytest.approx(float(hurst_exponent(y)))
        assert r["dfa_alpha"] == pytest.approx(float(detrended_fluctuation(y)))

    def test_complexity_entropies(self):
        from antropy import perm_entropy, sample_entropy

        y = np.random.default_rng(9).normal(size=300)
        r = complexity.compute(y)

        assert r["sample_entropy"] == pytest.approx(float(sample_entropy(y, order=2)))
        assert r["permutation_entropy"] == pytest.approx(float(perm_entropy(y, order=3, normalize=True)))
