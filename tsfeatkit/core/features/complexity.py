"""
Complexity Feature Set.

Entropy of the series at three grains (template matching, ordinal
patterns, amplitude histogram) plus a time-reversal asymmetry statistic.
Sample and permutation entropy come from antropy.
"""

import numpy as np
from typing import Dict

from antropy import perm_entropy, sample_entropy

from tsfeatkit.core._stats import clean, zscore, binned_entropy


def time_reversibility(y: np.ndarray, lag: int = 1) -> float:
    """Mean cubed lag-difference of the z-scored series (0 for reversible processes)."""
    z = zscore(y)
    if len(z) <= lag:
        return np.nan
    d = z[lag:] - z[:-lag]
    return float(np.mean(d ** 3))


def compute(
    y: np.ndarray,
    m: int = 2,
    order: int = 3,
) -> Dict[str, float]:
    """
    Compute complexity measures.

    Args:
        y: Series values
        m: Sample entropy template length (tolerance is 0.2 * std)
        order: Permutation entropy pattern order

    Returns:
        dict with sample_entropy, permutation_entropy, binned_entropy,
        time_reversibility
    """
    y = clean(y)
    flat = np.std(y) < 1e-15

    return {
        'sample_entropy': np.nan if flat else float(sample_entropy(y, order=m, metric='chebyshev')),
        'permutation_entropy': float(perm_entropy(y, order=order, delay=1, normalize=True)),
        'binned_entropy': binned_entropy(y),
        'time_reversibility': time_reversibility(y),
    }
