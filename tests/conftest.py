"""
Shared fixtures: synthetic labelled observations and features.
"""

import matplotlib

matplotlib.use("Agg")

import numpy as np
import polars as pl
import pytest

from tsfeatkit.core.extraction import calculate_features
from tsfeatkit.core.registry import reset_registry
from tsfeatkit.datasets import simulate_observations


@pytest.fixture(autouse=True)
def _fresh_registry():
    """Each test sees the built-in feature sets only."""
    reset_registry()
    yield
    reset_registry()


@pytest.fixture(scope="session")
def observations():
    """Four process classes, 8 series each, 150 samples."""
    return simulate_observations(n_per_group=8, length=150, seed=7)


@pytest.fixture(scope="session")
def two_group_observations():
    """White noise vs random walk: separable on almost any feature."""
    return simulate_observations(
        n_per_group=12, length=150, seed=11, groups=["gaussian_noise", "random_walk"]
    )


@pytest.fixture(scope="session")
def two_group_features(two_group_observations):
    return calculate_features(two_group_observations, feature_sets=["statistics", "memory"])


@pytest.fixture(scope="session")
def four_group_features(observations):
    return calculate_features(observations, feature_sets=["statistics", "memory", "spectral"])


def make_features(values, feature_set="set_a", groups=None):
    """
    Long features table from {feature: [value per series]}.

    Series ids are s0, s1, ...; groups (optional) is one label per series.
    """
    rows = []
    for feature, vals in values.items():
        for i, v in enumerate(vals):
            row = {"id": f"s{i}", "feature_set": feature_set, "feature": feature, "value": float(v)}
            if groups is not None:
                row["group"] = groups[i]
            rows.append(row)
    df = pl.DataFrame(rows)
    cols = ["id", "group", "feature_set", "feature", "value"] if groups is not None else \
        ["id", "feature_set", "feature", "value"]
    return df.select(cols)


@pytest.fixture
def separable_features():
    """Two features that split two groups cleanly, one that is noise."""
    rng = np.random.default_rng(3)
    n = 20
    groups = ["a"] * (n // 2) + ["b"] * (n // 2)
    shift = np.r_[np.zeros(n // 2), np.full(n // 2, 5.0)]
    return make_features(
        {
            "signal_1": shift + rng.normal(0, 0.5, n),
            "signal_2": -shift + rng.normal(0, 0.5, n),
            "noise": rng.normal(0, 1, n),
        },
        groups=groups,
    )
