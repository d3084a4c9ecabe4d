"""
Memory Feature Set.

Computes linear and long-range dependence measures:
- Autocorrelation at fixed lags and its first crossings
- Hurst exponent (rescaled range, pmtvs)
- DFA scaling exponent (antropy)

Interpretation of hurst / dfa_alpha:
    < 0.5: anti-persistent (mean-reverting)
    = 0.5: uncorrelated
    > 0.5: persistent (trending)
"""

import numpy as np
from typing import Dict

from antropy import detrended_fluctuation
from pmtvs import hurst_exponent

from tsfeatkit.core._stats import (
    clean,
    autocorrelation,
    first_crossing,
    first_minimum,
)

MAX_LAG = 100


def compute(y: np.ndarray, max_lag: int = MAX_LAG) -> Dict[str, float]:
    """
    Compute memory/persistence measures.

    Args:
        y: Series values
        max_lag: Largest autocorrelation lag searched for crossings

    Returns:
        dict with acf_lag1, acf_lag10, acf_first_zero, acf_first_1e,
        acf_first_min, hurst, dfa_alpha
    """
    y = clean(y)
    n = len(y)

    acf = autocorrelation(y, max_lag=min(max_lag, n - 1))

    # Scaling exponents are undefined for a flat series
    flat = np.std(y) < 1e-15

    return {
        'acf_lag1': float(acf[1]) if len(acf) > 1 else np.nan,
        'acf_lag10': float(acf[10]) if len(acf) > 10 else np.nan,
        'acf_first_zero': first_crossing(acf, 0.0),
        'acf_first_1e': first_crossing(acf, 1.0 / np.e),
        'acf_first_min': first_minimum(acf),
        'hurst': np.nan if flat else float(hurst_exponent(y)),
        'dfa_alpha': np.nan if flat else float(detrended_fluctuation(y)),
    }
