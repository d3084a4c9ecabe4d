"""
Tests for PCA / t-SNE projection.
"""

import numpy as np
import pytest

from conftest import make_features
from tsfeatkit.core.projection import reduce_dimensions


class TestPCA:
    def test_one_row_per_series(self, four_group_features):
        result = reduce_dimensions(four_group_features, method="pca")
        n_series = four_group_features["id"].n_unique()

        assert result.coordinates.height == n_series
        assert result.coordinates.columns == ["id", "group", "dim_1", "dim_2"]

    def test_variance_explained(self, four_group_features):
        result = reduce_dimensions(four_group_features, method="pca", n_components=3)
        v = result.variance_explained

        assert len(v) == 3
        assert v == sorted(v, reverse=True)
        assert sum(v) <= 1.0 + 1e-9
        assert result.axis_labels()[0].startswith("PC1 (")

    def test_separable_groups_split_on_pc1(self, separable_features):
        coords = reduce_dimensions(separable_features).coordinates
        a = coords.filter(coords["group"] == "a")["dim_1"].to_numpy()
        b = coords.filter(coords["group"] == "b")["dim_1"].to_numpy()
        assert (a.max() < b.min()) or (b.max() < a.min())


class TestTSNE:
    def test_runs_with_small_perplexity(self, four_group_features):
        result = reduce_dimensions(four_group_features, method="t-SNE", perplexity=5, seed=1)

        assert result.method == "tsne"
        assert result.variance_explained is None
        assert np.isfinite(result.coordinates["dim_1"].to_numpy()).all()
        assert result.axis_labels() == ["t-SNE 1", "t-SNE 2"]

    def test_perplexity_too_large(self, four_group_features):
        with pytest.raises(ValueError, match="perplexity"):
            reduce_dimensions(four_group_features, method="tsne", perplexity=500)


class TestErrors:
    def test_unknown_method(self, separable_features):
        with pytest.raises(KeyError):
            reduce_dimensions(separable_features, method="umap")

    def test_too_few_series(self):
        with pytest.raises(ValueError, match="at least 3"):
            reduce_dimensions(make_features({"f": [1.0, 2.0], "g": [3.0, 1.0]}))
