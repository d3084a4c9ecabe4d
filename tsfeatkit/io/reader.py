"""
Reader: all table reads go through here.

No other module should call pl.read_parquet directly.
"""

import polars as pl
from pathlib import Path
from typing import Optional

from tsfeatkit.io.matfile import read_mat_file


# Output directory mapping (8 tables + 6 figures -> 4 directories)
STAGE_DIRS = {
    # features/ holds per-series feature values and their quality
    'features':                   'features',
    'feature_quality':            'features',
    'normalised_features':        'features',

    # projection/ holds low-dimensional coordinates
    'low_dimension':              'projection',

    # classification/ holds multi-feature and per-feature discrimination
    'classification_summary':     'classification',
    'classification_raw':         'classification',
    'top_features':               'classification',
    'feature_correlations':       'classification',

    # figures/
    'quality_matrix':             'figures',
    'feature_matrix':             'figures',
    'low_dimension_plot':         'figures',
    'classification_plot':        'figures',
    'feature_correlations_plot':  'figures',
    'top_feature_violins':        'figures',
}

# Internal names that map to different output filenames
# (figures share a stem with the table they draw)
STAGE_FILENAMES = {
    'low_dimension_plot':         'low_dimension.png',
    'classification_plot':        'classification.png',
    'feature_correlations_plot':  'feature_correlations.png',
    'quality_matrix':             'quality_matrix.png',
    'feature_matrix':             'feature_matrix.png',
    'top_feature_violins':        'top_feature_violins.png',
}


def load_observations(
    path: str,
    id_var: str = 'id',
    time_var: str = 'timepoint',
    value_var: str = 'value',
    group_var: Optional[str] = 'group',
    keyword_index: Optional[int] = None,
) -> pl.DataFrame:
    """
    Load a tidy observations table, sorted by id and time.

    Accepts a .mat (hctsa-style), .parquet or .csv file, or a directory
    holding one of observations.{mat,parquet,csv}.
    """
    p = Path(path)
    if p.is_dir():
        for suffix in ('.mat', '.parquet', '.csv'):
            if (p / f'observations{suffix}').exists():
                p = p / f'observations{suffix}'
                break
        else:
            raise FileNotFoundError(f"No observations.mat/.parquet/.csv in {path}")

    if not p.exists():
        raise FileNotFoundError(f"Observations file not found: {p}")

    if p.suffix == '.mat':
        df = read_mat_file(
            p, id_var=id_var, time_var=time_var, value_var=value_var,
            group_var=group_var or 'group', keyword_index=keyword_index,
        )
    elif p.suffix == '.parquet':
        df = pl.read_parquet(str(p))
    elif p.suffix == '.csv':
        df = pl.read_csv(str(p))
    else:
        raise ValueError(f"Unsupported observations format: '{p.suffix}' (use .mat, .parquet or .csv)")

    sort_cols = [c for c in (id_var, time_var) if c in df.columns]
    return df.sort(sort_cols) if sort_cols else df


def load_output(output_dir: str, name: str) -> Optional[pl.DataFrame]:
    """
    Load a stage output by name.

    Searches <output_dir>/<subdir>/<name>.parquet first,
    then <output_dir>/<name>.parquet (flat fallback).
    """
    root = Path(output_dir)
    filename = STAGE_FILENAMES.get(name, f"{name}.parquet")

    subdir = STAGE_DIRS.get(name, '')
    if subdir:
        path = root / subdir / filename
        if path.exists():
            return pl.read_parquet(str(path))

    path = root / filename
    if path.exists():
        return pl.read_parquet(str(path))

    return None


def output_path(output_dir: str, name: str) -> Path:
    """Get the output path for a stage output by name."""
    root = Path(output_dir)
    filename = STAGE_FILENAMES.get(name, f"{name}.parquet")
    subdir = STAGE_DIRS.get(name, '')
    if subdir:
        d = root / subdir
        d.mkdir(parents=True, exist_ok=True)
        return d / filename
    root.mkdir(parents=True, exist_ok=True)
    return root / filename
