"""
Feature extraction.

Turns a tidy observations table (one row per id/timepoint) into a long
features table (one row per id/feature). Feature sets are resolved in the
calling process and handed to workers as plain callables, so user-registered
sets work under process parallelism too.
"""

import logging
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Union

import numpy as np
import polars as pl
from joblib import Parallel, delayed

from tsfeatkit.core._stats import zscore
from tsfeatkit.core.registry import FeatureSetRegistry, get_registry

logger = logging.getLogger(__name__)

FEATURE_COLUMNS = ['feature_set', 'feature', 'value']

# (feature_set, compute_func, outputs, min_length)
FeatureTask = Tuple[str, Callable, List[str], int]


def _prepare_tasks(
    registry: FeatureSetRegistry,
    feature_sets: List[str],
) -> List[FeatureTask]:
    return [
        (
            name,
            registry.get_compute_func(name),
            registry.get_outputs(name),
            registry.get_min_length(name),
        )
        for name in feature_sets
    ]


def _compute_single_series(
    series_id: Any,
    values: np.ndarray,
    tasks: List[FeatureTask],
    z_score_series: bool = False,
) -> List[Dict[str, Any]]:
    """
    Compute every feature set for one series.

    This function runs in a worker process.

    Args:
        series_id: Identifier of the series
        values: Series values sorted by time; NaN and infinite samples are
            dropped before the min_length check
        tasks: Resolved feature-set tasks
        z_score_series: Z-score the series before computing

    Returns:
        List of row dicts (id, feature_set, feature, value)
    """
    y = np.asarray(values, dtype=np.float64)
    # Infinite samples count as missing, like NaN
    y = y[np.isfinite(y)]
    if z_score_series:
        y = zscore(y)

    rows = []
    for set_name, compute_func, outputs, min_length in tasks:
        if len(y) < min_length:
            result = {name: np.nan for name in outputs}
        else:
            try:
                result = compute_func(y)
            except Exception as e:
                logger.warning(
                    "Feature set '%s' failed on series '%s': %s", set_name, series_id, e
                )
                result = {name: np.nan for name in outputs}

        # Declared outputs always appear, in declared order
        for name in outputs:
            value = result.get(name, np.nan)
            rows.append({
                'id': series_id,
                'feature_set': set_name,
                'feature': name,
                'value': float(value) if value is not None else np.nan,
            })

    return rows


def calculate_features(
    observations: pl.DataFrame,
    feature_sets: Optional[Union[str, Sequence[str]]] = None,
    id_var: str = 'id',
    time_var: str = 'timepoint',
    value_var: str = 'value',
    group_var: Optional[str] = 'group',
    z_score_series: bool = False,
    n_jobs: int = 1,
    registry: Optional[FeatureSetRegistry] = None,
    verbose: bool = False,
) -> pl.DataFrame:
    """
    Compute feature sets for every series in a tidy observations table.

    Args:
        observations: Tidy table with id, time, value (and optionally group) columns
        feature_sets: Feature-set name(s); None computes every registered set
        id_var: Series identifier column
        time_var: Time index column (series are sorted by it)
        value_var: Value column
        group_var: Class-label column, carried to the output if present
        z_score_series: Z-score each series before computing features
        n_jobs: joblib worker count (1 = in-process)
        registry: Feature-set registry (default: global registry)
        verbose: Print progress

    Returns:
        Long DataFrame with id, [group], feature_set, feature, value

    Raises:
        KeyError: If a feature set or a required column is unknown
    """
    registry = registry or get_registry()
    names = registry.resolve(feature_sets)

    for col in (id_var, time_var, value_var):
        if col not in observations.columns:
            raise KeyError(f"Column '{col}' not in observations: {observations.columns}")

    tasks = _prepare_tasks(registry, names)

    series = []
    for key, part in observations.sort([id_var, time_var]).group_by(id_var, maintain_order=True):
        series_id = key[0] if isinstance(key, tuple) else key
        series.append((series_id, part[value_var].cast(pl.Float64).to_numpy()))

    if verbose:
        n_outputs = sum(len(t[2]) for t in tasks)
        print(f"Computing {n_outputs} features ({', '.join(names)}) for {len(series)} series...")

    if n_jobs == 1 or len(series) <= 1:
        results = [
            _compute_single_series(series_id, values, tasks, z_score_series)
            for series_id, values in series
        ]
    else:
        results = Parallel(n_jobs=n_jobs, prefer="processes")(
            delayed(_compute_single_series)(series_id, values, tasks, z_score_series)
            for series_id, values in series
        )

    all_rows = [row for rows in results for row in rows]
    id_dtype = observations.schema[id_var]

    if not all_rows:
        features = pl.DataFrame(
            schema={'id': id_dtype, 'feature_set': pl.Utf8, 'feature': pl.Utf8, 'value': pl.Float64}
        )
    else:
        features = pl.DataFrame(
            all_rows,
            schema={'id': id_dtype, 'feature_set': pl.Utf8, 'feature': pl.Utf8, 'value': pl.Float64},
        )

    if group_var and group_var in observations.columns:
        groups = (
            observations
            .select([pl.col(id_var).alias('id'), pl.col(group_var).cast(pl.Utf8).alias('group')])
            .unique(subset=['id'], keep='first')
        )
        features = features.join(groups, on='id', how='left')
        features = features.select(['id', 'group'] + FEATURE_COLUMNS)

    features = features.sort(['id', 'feature_set', 'feature'])

    if verbose:
        print(f"  {len(features):,} feature values computed", flush=True)

    return features
