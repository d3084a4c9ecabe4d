"""
Stage 04: Low Dimension

PCA or t-SNE projection of the normalised feature matrix.

Writes projection/low_dimension.parquet and figures/low_dimension.png.
"""

import polars as pl

from tsfeatkit.core.projection import reduce_dimensions
from tsfeatkit.io.manifest import get_stage_config
from tsfeatkit.io.reader import load_output
from tsfeatkit.io.writer import write_figure, write_output
from tsfeatkit.plotting import plot_low_dimension
from tsfeatkit.validation import check_prerequisites


def run(output_dir: str, manifest: dict = None, verbose: bool = True) -> pl.DataFrame:
    """Project every series into two dimensions."""
    check_prerequisites('low_dimension', output_dir)
    norm_cfg = get_stage_config(manifest, 'normalise')
    cfg = get_stage_config(manifest, 'low_dimension')

    features = load_output(output_dir, 'features')

    result = reduce_dimensions(
        features,
        method=cfg['method'],
        perplexity=cfg['perplexity'],
        norm_method=norm_cfg['method'],
        seed=cfg['seed'],
    )

    if verbose and result.variance_explained is not None:
        shares = ', '.join(f"{100 * v:.1f}%" for v in result.variance_explained)
        print(f"  Variance explained: {shares}")

    write_output(result.coordinates, output_dir, 'low_dimension', verbose=verbose)

    if 'dim_2' not in result.coordinates.columns:
        if verbose:
            print(f"  Skipped scatter (only {len(result.feature_names)} usable feature)")
        return result.coordinates

    write_figure(plot_low_dimension(result), output_dir, 'low_dimension_plot', verbose=verbose)
    return result.coordinates
