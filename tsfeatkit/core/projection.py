"""
Low-Dimensional Projection
==========================

Project the (series x feature) matrix to a few dimensions for
visualization: PCA (linear, with variance explained) or t-SNE (local
neighbourhood structure).
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

import numpy as np
import polars as pl
from sklearn.decomposition import PCA
from sklearn.manifold import TSNE

from tsfeatkit.core.matrix import feature_arrays, pivot_features
from tsfeatkit.core.normalization import normalise_features
from tsfeatkit.core.quality import drop_bad_features

logger = logging.getLogger(__name__)

PROJECTION_METHODS = ('pca', 'tsne')


@dataclass
class LowDimensionResult:
    """
    Projection of every series.

    Attributes:
        coordinates: id, [group], dim_1 .. dim_k
        method: 'pca' or 'tsne'
        variance_explained: Explained variance ratio per component (PCA only)
        feature_names: Features that entered the projection
    """
    coordinates: pl.DataFrame
    method: str
    variance_explained: Optional[List[float]] = None
    feature_names: List[str] = field(default_factory=list)

    def axis_labels(self) -> List[str]:
        """Axis titles, with % variance for PCA."""
        dims = [c for c in self.coordinates.columns if c.startswith('dim_')]
        if self.variance_explained is None:
            return [f"t-SNE {i + 1}" for i in range(len(dims))]
        return [
            f"PC{i + 1} ({100 * v:.1f}%)"
            for i, v in enumerate(self.variance_explained)
        ]


def _method_name(method: str) -> str:
    name = method.lower().replace('-', '')
    if name not in PROJECTION_METHODS:
        raise KeyError(
            f"Unknown projection method: '{method}'. Available: {', '.join(PROJECTION_METHODS)}"
        )
    return name


def reduce_dimensions(
    features: pl.DataFrame,
    method: str = 'pca',
    n_components: int = 2,
    perplexity: float = 30.0,
    norm_method: str = 'zscore',
    is_normalised: bool = False,
    seed: int = 123,
) -> LowDimensionResult:
    """
    Project series into a low-dimensional space.

    Args:
        features: Long features table
        method: 'pca' or 'tsne' ('t-SNE' accepted)
        n_components: Output dimensions
        perplexity: t-SNE perplexity (must be < number of series)
        norm_method: Normalization applied first (unless is_normalised)
        is_normalised: Values are already normalised
        seed: Random seed for reproducibility

    Returns:
        LowDimensionResult

    Raises:
        KeyError: Unknown method
        ValueError: Too few series or features, or perplexity too large
    """
    name = _method_name(method)

    cleaned = drop_bad_features(features)
    if cleaned.is_empty():
        raise ValueError("No features with all-finite, non-constant values to project")
    if not is_normalised:
        cleaned = normalise_features(cleaned, method=norm_method)

    wide = pivot_features(cleaned)
    ids, groups, names, X = feature_arrays(wide)
    n_series, n_features = X.shape

    if n_series < 3:
        raise ValueError(f"Need at least 3 series to project, got {n_series}")

    if n_series < 3 * n_features:
        logger.warning(
            "Limited samples (%d) for %d features. Recommended: %d+",
            n_series, n_features, 3 * n_features,
        )

    variance_explained = None
    if name == 'pca':
        k = min(n_components, n_series, n_features)
        pca = PCA(n_components=k, random_state=seed)
        embedding = pca.fit_transform(X)
        variance_explained = [float(v) for v in pca.explained_variance_ratio_]
    else:
        if perplexity >= n_series:
            raise ValueError(
                f"t-SNE perplexity ({perplexity}) must be less than the number of series ({n_series})"
            )
        tsne = TSNE(
            n_components=n_components,
            perplexity=perplexity,
            init='pca',
            random_state=seed,
        )
        embedding = tsne.fit_transform(X)

    columns = {'id': ids}
    if groups is not None:
        columns['group'] = groups
    for j in range(embedding.shape[1]):
        columns[f'dim_{j + 1}'] = embedding[:, j].astype(np.float64)

    return LowDimensionResult(
        coordinates=pl.DataFrame(columns),
        method=name,
        variance_explained=variance_explained,
        feature_names=names,
    )
