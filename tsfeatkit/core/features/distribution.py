"""
Distribution Feature Set
========================

Shape of the z-scored series beyond its moments.

Outputs:
    histogram_mode_5    - centre of the fullest bin, 5-bin histogram
    histogram_mode_10   - centre of the fullest bin, 10-bin histogram
    stretch_above_mean  - longest run of consecutive samples above the mean
    stretch_decrease    - longest run of consecutive decreasing steps
    outlier_timing_pos  - where large positive deviations sit in time, in [-0.5, 0.5]
    outlier_timing_neg  - same for large negative deviations

Outlier timing sweeps thresholds from 0 to the largest deviation. For each
threshold the median relative position of exceeding samples is taken; the
output is the median over thresholds, centred so 0 means deviations are
spread evenly through the series.
"""

import numpy as np
from typing import Dict

from tsfeatkit.core._stats import zscore, histogram_mode, longest_run


N_THRESHOLDS = 20


def _outlier_timing(z: np.ndarray, sign: float) -> float:
    x = sign * z
    top = np.max(x)
    if top < 1e-12:
        return np.nan

    n = len(x)
    positions = []
    for thr in np.linspace(0.0, top, N_THRESHOLDS, endpoint=False):
        idx = np.flatnonzero(x >= thr)
        if len(idx) == 0:
            continue
        positions.append(np.median(idx) / (n - 1))

    if not positions:
        return np.nan
    return float(np.median(positions) - 0.5)


def compute(y: np.ndarray) -> Dict[str, float]:
    """
    Compute distribution-shape features.

    Args:
        y: Series values

    Returns:
        dict with histogram modes, binary stretches and outlier timing
    """
    result = {
        'histogram_mode_5': np.nan,
        'histogram_mode_10': np.nan,
        'stretch_above_mean': np.nan,
        'stretch_decrease': np.nan,
        'outlier_timing_pos': np.nan,
        'outlier_timing_neg': np.nan,
    }

    z = zscore(y)
    if len(z) < 3:
        return result

    result['histogram_mode_5'] = histogram_mode(z, 5)
    result['histogram_mode_10'] = histogram_mode(z, 10)
    result['stretch_above_mean'] = float(longest_run(z > 0))
    result['stretch_decrease'] = float(longest_run(np.diff(z) < 0))
    result['outlier_timing_pos'] = _outlier_timing(z, 1.0)
    result['outlier_timing_neg'] = _outlier_timing(z, -1.0)

    return result
