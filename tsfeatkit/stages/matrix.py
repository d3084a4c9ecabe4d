"""
Stage 03: Feature Matrix

Normalise features across series and draw the clustered heatmap.

Writes features/normalised_features.parquet and figures/feature_matrix.png.
"""

import polars as pl

from tsfeatkit.core.matrix import clustered_feature_matrix
from tsfeatkit.core.normalization import normalise_features
from tsfeatkit.core.quality import drop_bad_features
from tsfeatkit.io.manifest import get_stage_config
from tsfeatkit.io.reader import load_output
from tsfeatkit.io.writer import write_figure, write_output
from tsfeatkit.plotting import plot_feature_matrix
from tsfeatkit.validation import check_prerequisites


def run(output_dir: str, manifest: dict = None, verbose: bool = True) -> pl.DataFrame:
    """Normalise, cluster and plot the feature matrix."""
    check_prerequisites('feature_matrix', output_dir)
    norm_cfg = get_stage_config(manifest, 'normalise')
    cfg = get_stage_config(manifest, 'feature_matrix')

    features = load_output(output_dir, 'features')

    normalised = normalise_features(
        drop_bad_features(features),
        method=norm_cfg['method'],
        unit_interval=norm_cfg['unit_interval'],
    )
    write_output(normalised, output_dir, 'normalised_features', verbose=verbose)

    if normalised.is_empty():
        if verbose:
            print("  Skipped heatmap (no usable features)")
        return normalised

    matrix = clustered_feature_matrix(
        normalised, is_normalised=True, clust_method=cfg['clust_method'],
    )
    # Label the colourbar with the method actually applied
    matrix.norm_method = norm_cfg['method']
    write_figure(plot_feature_matrix(matrix), output_dir, 'feature_matrix', verbose=verbose)
    return normalised
