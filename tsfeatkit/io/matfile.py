"""
MATLAB structured files (hctsa INP_*.mat style) -> tidy observations table.

Expected variables:
    timeSeriesData  cell array of numeric vectors, or a numeric matrix with
                    one series per row (required)
    labels          cell array of series identifiers (optional)
    keywords        cell array of comma-separated class keywords (optional)
"""

import logging
from pathlib import Path
from typing import List, Optional, Union

import numpy as np
import polars as pl
from scipy.io import loadmat

logger = logging.getLogger(__name__)


def _as_series_list(raw) -> List[np.ndarray]:
    """Normalise timeSeriesData (cell or matrix, possibly squeezed) to a list."""
    arr = np.asarray(raw)

    if arr.dtype == object:
        return [np.atleast_1d(np.asarray(item, dtype=np.float64)).ravel() for item in arr.ravel()]

    arr = arr.astype(np.float64)
    if arr.ndim <= 1:
        # A single series survives squeezing as a vector
        return [np.atleast_1d(arr)]
    return [row for row in arr]


def _as_string_list(raw) -> List[str]:
    if isinstance(raw, str):
        return [raw]
    return [str(item).strip() for item in np.asarray(raw, dtype=object).ravel()]


def _keyword_part(keyword: str, index: Optional[int]) -> str:
    if index is None:
        return keyword
    parts = [p.strip() for p in keyword.split(',')]
    if index >= len(parts):
        raise ValueError(f"keyword_index {index} out of range for keywords '{keyword}'")
    return parts[index]


def read_mat_file(
    path: Union[str, Path],
    id_var: str = 'id',
    time_var: str = 'timepoint',
    value_var: str = 'value',
    group_var: str = 'group',
    keyword_index: Optional[int] = None,
) -> pl.DataFrame:
    """
    Convert a MATLAB time-series file into a tidy observations table.

    Args:
        path: .mat file
        id_var: Name of the identifier column
        time_var: Name of the time column (1-based positions)
        value_var: Name of the value column
        group_var: Name of the class-label column (from keywords)
        keyword_index: Use only this comma-separated component of each keyword

    Returns:
        DataFrame with id, timepoint, value and, when keywords exist, group

    Raises:
        FileNotFoundError: If path does not exist
        KeyError: If the file has no timeSeriesData variable
        ValueError: If labels or keywords do not match the series count
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"MATLAB file not found: {path}")

    mat = loadmat(str(path), squeeze_me=True)

    if 'timeSeriesData' not in mat:
        variables = sorted(k for k in mat if not k.startswith('__'))
        raise KeyError(f"Expected 'timeSeriesData' in {path.name}; found: {variables}")

    series = _as_series_list(mat['timeSeriesData'])
    n = len(series)
    if n == 0:
        raise ValueError(f"timeSeriesData in {path.name} holds no series")

    if 'labels' in mat:
        ids = _as_string_list(mat['labels'])
        if len(ids) != n:
            raise ValueError(f"{len(ids)} labels for {n} series in {path.name}")
    else:
        ids = [f"series_{k}" for k in range(1, n + 1)]

    groups = None
    if 'keywords' in mat:
        keywords = _as_string_list(mat['keywords'])
        if len(keywords) != n:
            raise ValueError(f"{len(keywords)} keywords for {n} series in {path.name}")
        groups = [_keyword_part(k, keyword_index) for k in keywords]

    lengths = [len(s) for s in series]
    columns = {
        id_var: pl.Series(id_var, np.repeat(ids, lengths), dtype=pl.Utf8),
        time_var: pl.Series(time_var, np.concatenate([np.arange(1, m + 1) for m in lengths]), dtype=pl.Int64),
        value_var: pl.Series(value_var, np.concatenate(series), dtype=pl.Float64),
    }
    if groups is not None:
        columns[group_var] = pl.Series(group_var, np.repeat(groups, lengths), dtype=pl.Utf8)

    df = pl.DataFrame(columns)
    logger.info("Read %d series (%d observations) from %s", n, len(df), path.name)
    return df
