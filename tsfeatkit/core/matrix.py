"""
Feature Matrix
==============

Long <-> wide conversion and hierarchical ordering of the id x feature
matrix used by the heatmap, projection and classifiers.
"""

from dataclasses import dataclass
from typing import List, Optional, Tuple

import numpy as np
import polars as pl
from scipy.cluster.hierarchy import leaves_list, linkage

from tsfeatkit.core.normalization import normalise_features
from tsfeatkit.core.quality import drop_bad_features

META_COLUMNS = ('id', 'group')

LINKAGE_METHODS = ('single', 'complete', 'average', 'weighted', 'centroid', 'median', 'ward')


def qualified_names(features: pl.DataFrame) -> pl.DataFrame:
    """Add 'feature_name' = '<feature_set>_<feature>'."""
    return features.with_columns(
        pl.concat_str([pl.col('feature_set'), pl.col('feature')], separator='_').alias('feature_name')
    )


def pivot_features(features: pl.DataFrame) -> pl.DataFrame:
    """
    Long features table -> one row per id, one column per qualified feature.

    Returns:
        Wide DataFrame: id, [group], then feature columns sorted by name
    """
    index = [c for c in META_COLUMNS if c in features.columns]
    named = qualified_names(features)
    wide = named.pivot(
        on='feature_name',
        index=index,
        values='value',
        aggregate_function='first',
    )
    feature_cols = sorted(c for c in wide.columns if c not in index)
    return wide.select(index + feature_cols).sort('id')


def feature_arrays(
    wide: pl.DataFrame,
) -> Tuple[List, Optional[List], List[str], np.ndarray]:
    """
    Split a wide feature matrix into (ids, groups, feature_names, X).

    groups is None when the table has no group column.
    """
    names = [c for c in wide.columns if c not in META_COLUMNS]
    ids = wide['id'].to_list()
    groups = wide['group'].to_list() if 'group' in wide.columns else None
    if names:
        X = wide.select(names).cast(pl.Float64).to_numpy()
    else:
        X = np.empty((len(ids), 0))
    return ids, groups, names, X


def cluster_order(
    X: np.ndarray,
    method: str = 'average',
    metric: str = 'euclidean',
) -> np.ndarray:
    """
    Leaf order of an agglomerative clustering of the rows of X.

    Args:
        X: 2D array (rows are clustered)
        method: scipy linkage method
        metric: Distance metric

    Returns:
        Index array; identity order for fewer than two rows
    """
    if method not in LINKAGE_METHODS:
        raise KeyError(f"Unknown linkage method: '{method}'. Available: {', '.join(LINKAGE_METHODS)}")

    X = np.asarray(X, dtype=np.float64)
    if X.shape[0] < 2:
        return np.arange(X.shape[0])
    if method in ('centroid', 'median', 'ward'):
        metric = 'euclidean'
    return leaves_list(linkage(X, method=method, metric=metric))


@dataclass
class ClusteredMatrix:
    """Row- and column-ordered feature matrix ready for a heatmap."""
    ids: List
    groups: Optional[List]
    feature_names: List[str]
    values: np.ndarray
    norm_method: str
    clust_method: str

    def to_long(self) -> pl.DataFrame:
        """Long (id, feature_name, value, row, col) table in display order."""
        n_rows, n_cols = self.values.shape
        return pl.DataFrame({
            'id': [i for i in self.ids for _ in range(n_cols)],
            'feature_name': self.feature_names * n_rows,
            'value': self.values.ravel(),
            'row': np.repeat(np.arange(n_rows), n_cols),
            'col': np.tile(np.arange(n_cols), n_rows),
        })


def clustered_feature_matrix(
    features: pl.DataFrame,
    norm_method: str = 'zscore',
    is_normalised: bool = False,
    clust_method: str = 'average',
) -> ClusteredMatrix:
    """
    Normalise, clean and hierarchically order the feature matrix.

    Args:
        features: Long features table
        norm_method: Normalization method (ignored when is_normalised)
        is_normalised: Values are already normalised
        clust_method: Linkage method for both rows and columns

    Returns:
        ClusteredMatrix with rows (series) and columns (features) reordered

    Raises:
        ValueError: If no feature survives cleaning
    """
    cleaned = drop_bad_features(features)
    if cleaned.is_empty():
        raise ValueError("No features with all-finite, non-constant values to display")

    if not is_normalised:
        cleaned = normalise_features(cleaned, method=norm_method)

    ids, groups, names, X = feature_arrays(pivot_features(cleaned))

    row_order = cluster_order(X, method=clust_method)
    col_order = cluster_order(X.T, method=clust_method)

    return ClusteredMatrix(
        ids=[ids[i] for i in row_order],
        groups=[groups[i] for i in row_order] if groups is not None else None,
        feature_names=[names[j] for j in col_order],
        values=X[np.ix_(row_order, col_order)],
        norm_method='none' if is_normalised else norm_method,
        clust_method=clust_method,
    )
