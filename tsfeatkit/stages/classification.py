"""
Stage 05: Classification

Multi-feature classification (all features, and per feature set) with an
empirical null.

Writes classification/classification_summary.parquet,
classification/classification_raw.parquet and figures/classification.png.
"""

import polars as pl

from tsfeatkit.core.classification import fit_multi_feature_classifier
from tsfeatkit.io.manifest import get_stage_config
from tsfeatkit.io.reader import load_output
from tsfeatkit.io.writer import write_figure, write_output
from tsfeatkit.plotting import plot_classification
from tsfeatkit.validation import check_prerequisites


def run(output_dir: str, manifest: dict = None, verbose: bool = True) -> pl.DataFrame:
    """Fit classifiers and test them against label permutations."""
    check_prerequisites('classification', output_dir)
    cfg = get_stage_config(manifest, 'classification')

    features = load_output(output_dir, 'features')

    result = fit_multi_feature_classifier(features, verbose=verbose, **cfg)

    write_output(result.test_statistics, output_dir, 'classification_summary', verbose=verbose)
    write_output(result.raw_results, output_dir, 'classification_raw', verbose=verbose)
    write_figure(plot_classification(result), output_dir, 'classification_plot', verbose=verbose)
    return result.test_statistics
