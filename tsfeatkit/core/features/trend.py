"""
Trend Feature Set.

Linear trend, cumulative drift, and tiled stability/lumpiness
(variance of tile means / variance of tile variances).
"""

import numpy as np
from typing import Dict
from scipy.stats import linregress, kendalltau

from tsfeatkit.core._stats import clean

TILE_WIDTH = 10


def _tile_stats(y: np.ndarray, width: int):
    n_tiles = len(y) // width
    if n_tiles < 2:
        return np.nan, np.nan
    tiles = y[:n_tiles * width].reshape(n_tiles, width)
    return float(np.var(tiles.mean(axis=1), ddof=1)), float(np.var(tiles.var(axis=1, ddof=1), ddof=1))


def compute(y: np.ndarray, tile_width: int = TILE_WIDTH) -> Dict[str, float]:
    """
    Compute trend properties.

    Args:
        y: Series values
        tile_width: Samples per tile for stability and lumpiness

    Returns:
        dict with trend_slope, trend_r2, detrend_std, cusum_range,
        stability, lumpiness, kendall_tau
    """
    y = clean(y)

    if len(y) < 3:
        return {
            'trend_slope': np.nan,
            'trend_r2': np.nan,
            'detrend_std': np.nan,
            'cusum_range': np.nan,
            'stability': np.nan,
            'lumpiness': np.nan,
            'kendall_tau': np.nan,
        }

    x = np.arange(len(y), dtype=float)

    if np.std(y) < 1e-15:
        slope, r2, tau = 0.0, 0.0, np.nan
    else:
        fit = linregress(x, y)
        slope = float(fit.slope)
        r2 = float(fit.rvalue ** 2)
        tau = float(kendalltau(x, y)[0])

    detrended = y - (slope * x + (np.mean(y) - slope * np.mean(x)))
    cusum = np.cumsum(y - np.mean(y))
    stability, lumpiness = _tile_stats(y, tile_width)

    return {
        'trend_slope': slope,
        'trend_r2': r2,
        'detrend_std': float(np.std(detrended)),
        'cusum_range': float(np.max(cusum) - np.min(cusum)),
        'stability': stability,
        'lumpiness': lumpiness,
        'kendall_tau': tau,
    }
