"""
Stage 06: Top Features

Univariate test of every feature, the correlation structure of the best
ones, and their distributions by group.

Writes classification/top_features.parquet,
classification/feature_correlations.parquet,
figures/feature_correlations.png and figures/top_feature_violins.png.
"""

import polars as pl

from tsfeatkit.core.top_features import compute_top_features
from tsfeatkit.io.manifest import get_stage_config
from tsfeatkit.io.reader import load_output
from tsfeatkit.io.writer import write_figure, write_output
from tsfeatkit.plotting import plot_feature_correlations, plot_top_feature_violins
from tsfeatkit.validation import check_prerequisites


def run(output_dir: str, manifest: dict = None, verbose: bool = True) -> pl.DataFrame:
    """Rank features by how well each separates the groups."""
    check_prerequisites('top_features', output_dir)
    cfg = get_stage_config(manifest, 'top_features')

    features = load_output(output_dir, 'features')

    result = compute_top_features(features, **cfg)

    if verbose and result.results.height:
        best = result.results.row(0, named=True)
        print(f"  Best feature: {best['feature_name']} (statistic={best['statistic']:.3f})")

    write_output(result.results, output_dir, 'top_features', verbose=verbose)
    write_output(result.correlations, output_dir, 'feature_correlations', verbose=verbose)
    write_figure(plot_feature_correlations(result), output_dir, 'feature_correlations_plot', verbose=verbose)
    write_figure(plot_top_feature_violins(result), output_dir, 'top_feature_violins', verbose=verbose)
    return result.results
