"""
Stage 02: Quality

Per-feature quality summary and the quality-matrix figure.

Writes features/feature_quality.parquet and figures/quality_matrix.png.
"""

import polars as pl

from tsfeatkit.core.quality import summarise_quality
from tsfeatkit.io.reader import load_output
from tsfeatkit.io.writer import write_figure, write_output
from tsfeatkit.plotting import plot_quality_matrix
from tsfeatkit.validation import check_prerequisites


def run(output_dir: str, manifest: dict = None, verbose: bool = True) -> pl.DataFrame:
    """Summarise quality of every computed feature."""
    check_prerequisites('quality', output_dir)
    features = load_output(output_dir, 'features')

    summary = summarise_quality(features)
    write_output(summary, output_dir, 'feature_quality', verbose=verbose)

    if verbose:
        n_bad = summary.filter(pl.col('prop_good') < 1.0).height
        n_const = summary.filter(pl.col('is_constant')).height
        print(f"  {summary.height} features: {n_bad} with non-finite values, {n_const} constant")

    write_figure(plot_quality_matrix(features), output_dir, 'quality_matrix', verbose=verbose)
    return summary
