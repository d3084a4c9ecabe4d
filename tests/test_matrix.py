"""
Tests for the wide feature matrix and hierarchical ordering.
"""

import numpy as np
import polars as pl
import pytest

from conftest import make_features
from tsfeatkit.core.matrix import (
    cluster_order,
    clustered_feature_matrix,
    feature_arrays,
    pivot_features,
)


class TestPivot:
    def test_wide_layout(self, separable_features):
        wide = pivot_features(separable_features)

        assert wide.columns == ["id", "group", "set_a_noise", "set_a_signal_1", "set_a_signal_2"]
        assert wide.height == 20

    def test_feature_arrays(self, separable_features):
        ids, groups, names, X = feature_arrays(pivot_features(separable_features))

        assert len(ids) == len(groups) == X.shape[0] == 20
        assert names == ["set_a_noise", "set_a_signal_1", "set_a_signal_2"]
        assert X.dtype == np.float64

    def test_no_group_column(self):
        ids, groups, names, X = feature_arrays(pivot_features(make_features({"f": [1.0, 2.0]})))
        assert groups is None
        assert X.shape == (2, 1)


class TestClusterOrder:
    def test_is_permutation(self):
        X = np.random.default_rng(0).normal(size=(12, 3))
        order = cluster_order(X)
        assert sorted(order.tolist()) == list(range(12))

    def test_groups_rows_together(self):
        X = np.r_[np.zeros((3, 2)), np.full((3, 2), 10.0), np.zeros((3, 2)) + 0.1]
        order = cluster_order(X).tolist()
        far = {3, 4, 5}
        positions = [order.index(i) for i in far]
        assert max(positions) - min(positions) == 2

    def test_single_row(self):
        assert cluster_order(np.ones((1, 4))).tolist() == [0]

    def test_unknown_method(self):
        with pytest.raises(KeyError):
            cluster_order(np.ones((3, 2)), method="kmeans")


class TestClusteredMatrix:
    def test_reordered_and_normalised(self, separable_features):
        matrix = clustered_feature_matrix(separable_features)

        assert matrix.values.shape == (20, 3)
        assert sorted(matrix.feature_names) == ["set_a_noise", "set_a_signal_1", "set_a_signal_2"]
        assert np.allclose(matrix.values.mean(axis=0), 0.0, atol=1e-9)
        assert matrix.norm_method == "zscore"

    def test_rows_follow_ids(self, separable_features):
        matrix = clustered_feature_matrix(separable_features, norm_method="none")
        wide = pivot_features(separable_features)

        first = matrix.ids[0]
        col = matrix.feature_names[0]
        expected = wide.filter(pl.col("id") == first)[col][0]
        assert matrix.values[0, 0] == pytest.approx(expected)

    def test_bad_features_dropped(self, separable_features):
        extra = make_features({"broken": [np.nan] * 20}, groups=["a"] * 10 + ["b"] * 10)
        matrix = clustered_feature_matrix(pl.concat([separable_features, extra]))
        assert "set_a_broken" not in matrix.feature_names

    def test_to_long(self, separable_features):
        long = clustered_feature_matrix(separable_features).to_long()
        assert len(long) == 60
        assert long["row"].max() == 19 and long["col"].max() == 2

    def test_nothing_usable(self):
        with pytest.raises(ValueError):
            clustered_feature_matrix(make_features({"flat": [1.0, 1.0, 1.0]}))
