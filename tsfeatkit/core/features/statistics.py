"""
Statistics Feature Set.

Location, spread and shape of the value distribution.
"""

import numpy as np
from typing import Dict
from tsfeatkit.core._stats import (
    clean,
    kurtosis,
    skewness,
    crest_factor,
    rms,
)


def compute(y: np.ndarray) -> Dict[str, float]:
    """
    Compute statistical properties of a series.

    Args:
        y: Series values

    Returns:
        dict with mean, std, median, iqr, min, max, skewness, kurtosis,
        rms, crest_factor
    """
    result = {
        'mean': np.nan,
        'std': np.nan,
        'median': np.nan,
        'iqr': np.nan,
        'min': np.nan,
        'max': np.nan,
        'skewness': np.nan,
        'kurtosis': np.nan,
        'rms': np.nan,
        'crest_factor': np.nan,
    }

    y = clean(y)
    if len(y) < 2:
        return result

    q1, q3 = np.percentile(y, [25, 75])

    result['mean'] = float(np.mean(y))
    result['std'] = float(np.std(y, ddof=1))
    result['median'] = float(np.median(y))
    result['iqr'] = float(q3 - q1)
    result['min'] = float(np.min(y))
    result['max'] = float(np.max(y))
    result['skewness'] = skewness(y)
    result['kurtosis'] = kurtosis(y, fisher=True)
    result['rms'] = rms(y)
    result['crest_factor'] = crest_factor(y)

    return result
