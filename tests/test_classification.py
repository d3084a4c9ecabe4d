"""
Tests for multi-feature classification and permutation nulls.
"""

import logging

import numpy as np
import polars as pl
import pytest

from conftest import make_features
from tsfeatkit.core.classification import (
    ALL_FEATURES,
    compute_p_value,
    evaluate_accuracy,
    fit_multi_feature_classifier,
    labelled_matrix,
    make_classifier,
    model_free_null,
    null_model_fits,
    resolve_num_folds,
)


def _two_set_features(separable_features):
    other = separable_features.with_columns(pl.lit("set_b").alias("feature_set"))
    return pl.concat([separable_features, other])


class TestFitMultiFeature:
    def test_separable_groups(self, separable_features):
        result = fit_multi_feature_classifier(
            separable_features, use_empirical_null=True, num_permutations=50
        )
        row = result.test_statistics.row(0, named=True)

        assert row["model_name"] == ALL_FEATURES
        assert row["n_features"] == 3
        assert row["accuracy"] >= 0.9
        assert row["p_value"] == pytest.approx(1 / 51)
        assert 0.3 < row["null_mean"] < 0.7

    def test_raw_results_counts(self, separable_features):
        result = fit_multi_feature_classifier(
            separable_features, num_folds=5, use_empirical_null=True, num_permutations=20
        )
        raw = result.raw_results

        assert raw.filter(pl.col("kind") == "main").height == 5
        assert raw.filter(pl.col("kind") == "null").height == 20
        assert result.settings["num_folds"] == 5

    def test_no_null_no_p_value(self, separable_features):
        result = fit_multi_feature_classifier(separable_features)
        row = result.test_statistics.row(0, named=True)

        assert row["p_value"] is None
        assert row["null_mean"] is None
        assert result.raw_results.filter(pl.col("kind") == "null").is_empty()

    def test_by_set_models(self, separable_features):
        result = fit_multi_feature_classifier(_two_set_features(separable_features), by_set=True)
        names = result.test_statistics["model_name"].to_list()

        assert names == [ALL_FEATURES, "set_a", "set_b"]
        assert result.test_statistics["n_features"].to_list() == [6, 3, 3]

    def test_by_set_with_single_set(self, separable_features):
        result = fit_multi_feature_classifier(separable_features, by_set=True)
        assert result.test_statistics["model_name"].to_list() == ["set_a"]

    def test_in_sample(self, separable_features):
        result = fit_multi_feature_classifier(separable_features, use_k_fold=False)
        assert result.raw_results.height == 1
        assert result.settings["num_folds"] is None

    def test_null_model_fits_method(self, separable_features):
        result = fit_multi_feature_classifier(
            separable_features,
            num_folds=3,
            use_empirical_null=True,
            null_testing_method="null_model_fits",
            p_value_method="gaussian",
            num_permutations=8,
        )
        row = result.test_statistics.row(0, named=True)
        assert row["p_value"] < 0.05

    def test_fold_count_clamped(self, caplog):
        features = make_features({"f": [0, 1, 2, 10, 11, 12]}, groups=["a"] * 3 + ["b"] * 3)
        with caplog.at_level(logging.WARNING, logger="tsfeatkit.core.classification"):
            result = fit_multi_feature_classifier(features, num_folds=10)

        assert result.settings["num_folds"] == 3
        assert "smallest group size" in caplog.text

    def test_unknown_classifier(self, separable_features):
        with pytest.raises(KeyError):
            fit_multi_feature_classifier(separable_features, classifier="xgboost")

    def test_unknown_null_method(self, separable_features):
        with pytest.raises(KeyError):
            fit_multi_feature_classifier(separable_features, null_testing_method="bootstrap")

    def test_requires_groups(self):
        with pytest.raises(ValueError, match="group"):
            fit_multi_feature_classifier(make_features({"f": [1.0, 2.0, 3.0]}))

    def test_single_group(self):
        features = make_features({"f": [1.0, 2.0, 3.0]}, groups=["a", "a", "a"])
        with pytest.raises(ValueError, match="at least 2 groups"):
            fit_multi_feature_classifier(features)


class TestPValue:
    def test_empirical(self):
        null = np.array([0.4, 0.5, 0.6, 0.9])
        assert compute_p_value(0.8, null) == pytest.approx(2 / 5)
        assert compute_p_value(1.0, null) == pytest.approx(1 / 5)
        assert compute_p_value(0.1, null) == pytest.approx(1.0)

    def test_gaussian(self):
        null = np.array([0.4, 0.5, 0.6])
        assert compute_p_value(0.5, null, method="gaussian") == pytest.approx(0.5)
        assert compute_p_value(0.9, null, method="gaussian") < 0.01

    def test_gaussian_degenerate_null(self):
        null = np.full(10, 0.5)
        assert compute_p_value(0.7, null, method="gaussian") == 0.0
        assert compute_p_value(0.5, null, method="gaussian") == 1.0

    def test_empty_null(self):
        assert np.isnan(compute_p_value(0.7, np.array([])))

    def test_unknown_method(self):
        with pytest.raises(KeyError):
            compute_p_value(0.5, np.array([0.5]), method="bootstrap")


class TestNulls:
    def test_model_free_null_reproducible(self):
        y = np.array(["a"] * 10 + ["b"] * 10)
        a = model_free_null(y, 30, seed=4)
        b = model_free_null(y, 30, seed=4)

        assert len(a) == 30
        assert np.array_equal(a, b)
        assert np.all((a >= 0) & (a <= 1))

    def test_null_model_fits_near_chance(self, separable_features):
        _, y, _, X = labelled_matrix(separable_features)
        null = null_model_fits(X, y, 10, num_folds=3, seed=2)

        assert len(null) == 10
        assert 0.2 < null.mean() < 0.8


class TestHelpers:
    def test_every_classifier_builds(self):
        for name in ("linear_svm", "rbf_svm", "logistic", "random_forest", "gaussian_nb"):
            assert hasattr(make_classifier(name), "fit")

    def test_resolve_num_folds(self):
        y = np.array(["a"] * 5 + ["b"] * 8)
        assert resolve_num_folds(y, 3) == 3
        assert resolve_num_folds(y, 10) == 5

    def test_resolve_num_folds_tiny_group(self):
        with pytest.raises(ValueError):
            resolve_num_folds(np.array(["a", "b", "b"]), 2)

    def test_evaluate_accuracy_balanced(self, separable_features):
        _, y, _, X = labelled_matrix(separable_features)
        scores = evaluate_accuracy(X, y, "logistic", num_folds=4, use_balanced_accuracy=True)
        assert len(scores) == 4
        assert scores.mean() >= 0.9


class TestParallelNulls:
    """Permutation nulls do not depend on the worker count."""

    def test_null_model_fits_same_for_any_n_jobs(self, separable_features):
        _, y, _, X = labelled_matrix(separable_features)

        serial = null_model_fits(X, y, 6, num_folds=5, seed=3, n_jobs=1)
        parallel = null_model_fits(X, y, 6, num_folds=5, seed=3, n_jobs=2)

        assert np.array_equal(serial, parallel)

    def test_classifier_result_same_for_any_n_jobs(self, separable_features):
        kwargs = dict(
            num_folds=4,
            use_empirical_null=True,
            null_testing_method="null_model_fits",
            num_permutations=6,
            seed=5,
        )
        serial = fit_multi_feature_classifier(separable_features, n_jobs=1, **kwargs)
        parallel = fit_multi_feature_classifier(separable_features, n_jobs=2, **kwargs)

        assert serial.test_statistics.equals(parallel.test_statistics)
        assert serial.raw_results.equals(parallel.raw_results)
