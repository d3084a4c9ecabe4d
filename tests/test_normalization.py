"""
Tests for the normalization engine.
"""

import numpy as np
import polars as pl
import pytest

from conftest import make_features
from tsfeatkit.core.normalization import (
    NormMethod,
    compute_mad,
    compute_robust_sigmoid,
    compute_zscore,
    normalise_features,
    normalize,
)


class TestVectorMethods:
    def test_zscore_moments(self):
        x = np.random.default_rng(0).normal(5, 3, 200)
        z, params = compute_zscore(x)
        assert np.mean(z) == pytest.approx(0.0, abs=1e-12)
        assert np.std(z, ddof=1) == pytest.approx(1.0)
        assert params["mean"] == pytest.approx(np.mean(x))

    def test_non_finite_ignored_and_nan(self):
        x = np.array([1.0, 2.0, np.nan, 3.0, np.inf])
        z, _ = compute_zscore(x)
        assert np.isnan(z[2]) and np.isnan(z[4])
        assert z[1] == pytest.approx(0.0)

    def test_constant_only_centred(self):
        z, _ = compute_zscore(np.full(5, 7.0))
        assert np.all(z == 0.0)

    def test_mad_scaled_like_std(self):
        x = np.random.default_rng(1).normal(0, 2, 20000)
        _, params = compute_mad(x)
        assert params["mad"] == pytest.approx(2.0, rel=0.05)

    def test_robust_sigmoid_outlier_squashed(self):
        x = np.r_[np.random.default_rng(2).normal(size=99), 1e6]
        y, _ = compute_robust_sigmoid(x)
        assert np.all((y >= 0) & (y <= 1))
        assert y[-1] == pytest.approx(1.0)
        assert 0.2 < np.median(y) < 0.8

    @pytest.mark.parametrize("method", [m.value for m in NormMethod])
    def test_every_method_keeps_shape(self, method):
        x = np.random.default_rng(3).normal(size=(30, 4))
        y, params = normalize(x, method=method)
        assert y.shape == x.shape
        assert params["method"] == method


class TestNormalize:
    def test_sigmoid_range(self):
        y, _ = normalize(np.random.default_rng(4).normal(size=100), method="sigmoid")
        assert np.all((y > 0) & (y < 1))

    def test_unit_interval(self):
        y, params = normalize(np.random.default_rng(5).normal(size=100), method="zscore", unit_interval=True)
        assert np.nanmin(y) == pytest.approx(0.0)
        assert np.nanmax(y) == pytest.approx(1.0)
        assert params["unit_interval"] is True

    def test_alternate_spellings(self):
        x = np.arange(10.0)
        a, _ = normalize(x, method="z-score")
        b, _ = normalize(x, method=NormMethod.ZSCORE)
        c, _ = normalize(x, method="Robust-Sigmoid")
        assert np.allclose(a, b)
        assert np.all((c > 0) & (c < 1))

    def test_unknown_method(self):
        with pytest.raises(KeyError):
            normalize(np.arange(5.0), method="softmax")

    def test_columns_independent(self):
        x = np.c_[np.arange(10.0), np.arange(10.0) * 1000]
        y, _ = normalize(x, method="minmax")
        assert np.allclose(y[:, 0], y[:, 1])


class TestNormaliseFeatures:
    def test_per_feature_and_row_order(self):
        features = make_features({"a": [1.0, 2.0, 3.0], "b": [100.0, 300.0, 200.0]})
        out = normalise_features(features, method="minmax")

        assert out.select(["id", "feature"]).equals(features.select(["id", "feature"]))
        b = out.filter(pl.col("feature") == "b")["value"].to_list()
        assert b == pytest.approx([0.0, 1.0, 0.5])

    def test_empty_passthrough(self):
        empty = make_features({"a": [1.0]}).head(0)
        assert normalise_features(empty).is_empty()
