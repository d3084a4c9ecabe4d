"""
Stage 01: Features

Load observations (.mat / .parquet / .csv), validate them, and compute the
configured feature sets for every series.

Writes features/features.parquet (long: id, group, feature_set, feature, value).
"""

import logging
from typing import Any, Dict, Optional

import polars as pl

from tsfeatkit.core.extraction import calculate_features
from tsfeatkit.io.manifest import get_columns, get_stage_config
from tsfeatkit.io.reader import load_observations
from tsfeatkit.io.writer import write_output
from tsfeatkit.validation import filter_constant_series, validate_observations

logger = logging.getLogger(__name__)


def run(
    observations_path: str,
    output_dir: str,
    manifest: Optional[Dict[str, Any]] = None,
    verbose: bool = True,
) -> pl.DataFrame:
    """
    Compute features for every series.

    Args:
        observations_path: Observations file or directory
        output_dir: Pipeline output directory
        manifest: Parsed manifest (defaults used when None)
        verbose: Print progress

    Returns:
        Long features DataFrame
    """
    columns = get_columns(manifest)
    load_cfg = get_stage_config(manifest, 'load')
    cfg = get_stage_config(manifest, 'features')

    observations = load_observations(
        observations_path,
        keyword_index=load_cfg['keyword_index'],
        **columns,
    )
    if verbose:
        print(f"  Loaded {len(observations):,} observations from {observations_path}")

    report = validate_observations(
        observations,
        min_length=load_cfg['min_length'],
        **columns,
    )
    for warning in report.warnings:
        logger.warning(warning)

    if load_cfg['drop_constant']:
        observations = filter_constant_series(
            observations, columns['id_var'], columns['value_var'], verbose=verbose
        )

    features = calculate_features(
        observations,
        feature_sets=cfg['sets'],
        z_score_series=cfg['z_score_series'],
        n_jobs=cfg['n_jobs'],
        verbose=verbose,
        **columns,
    )

    write_output(features, output_dir, 'features', verbose=verbose)
    return features
