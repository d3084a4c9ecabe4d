"""
tsfeatkit: feature-based time-series classification.

Public API:
    from tsfeatkit import read_mat_file, calculate_features, fit_multi_feature_classifier
    obs = read_mat_file('INP_test.mat')
    features = calculate_features(obs, feature_sets=['statistics', 'memory'])
    result = fit_multi_feature_classifier(features, by_set=True, use_empirical_null=True)

Two layers:
    tsfeatkit.stages     Runners: orchestrate I/O (read parquet, call engines, write parquet/figures)
    tsfeatkit.core       Engines: compute (DataFrames in, DataFrames out, no file I/O)

Also:
    tsfeatkit.io         Observation, output and manifest I/O (.mat, parquet, yaml)
    tsfeatkit.plotting   matplotlib / seaborn figures
    tsfeatkit.validation Input validation and stage prerequisites
    tsfeatkit.datasets   Synthetic labelled observations
"""

from tsfeatkit.core.classification import ClassificationResult, fit_multi_feature_classifier
from tsfeatkit.core.extraction import calculate_features
from tsfeatkit.core.matrix import clustered_feature_matrix, pivot_features
from tsfeatkit.core.normalization import normalise_features, normalize
from tsfeatkit.core.projection import LowDimensionResult, reduce_dimensions
from tsfeatkit.core.quality import drop_bad_features, quality_matrix, summarise_quality
from tsfeatkit.core.registry import get_registry
from tsfeatkit.core.top_features import TopFeaturesResult, compute_top_features
from tsfeatkit.datasets import simulate_observations
from tsfeatkit.io.matfile import read_mat_file
from tsfeatkit.run import run

__version__ = "0.1.0"

__all__ = [
    "run",
    "read_mat_file",
    "simulate_observations",
    "calculate_features",
    "get_registry",
    "summarise_quality",
    "quality_matrix",
    "drop_bad_features",
    "normalize",
    "normalise_features",
    "pivot_features",
    "clustered_feature_matrix",
    "reduce_dimensions",
    "LowDimensionResult",
    "fit_multi_feature_classifier",
    "ClassificationResult",
    "compute_top_features",
    "TopFeaturesResult",
]
