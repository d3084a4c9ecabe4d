"""
Figures for every analysis step. Each function returns a matplotlib Figure;
saving goes through tsfeatkit.io.writer.write_figure.
"""

from tsfeatkit.plotting.quality import plot_quality_matrix
from tsfeatkit.plotting.heatmap import plot_feature_matrix
from tsfeatkit.plotting.projection import plot_low_dimension, covariance_ellipse
from tsfeatkit.plotting.classification import plot_classification
from tsfeatkit.plotting.top_features import plot_feature_correlations, plot_top_feature_violins

__all__ = [
    'plot_quality_matrix',
    'plot_feature_matrix',
    'plot_low_dimension',
    'covariance_ellipse',
    'plot_classification',
    'plot_feature_correlations',
    'plot_top_feature_violins',
]
