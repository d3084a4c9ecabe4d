"""
Spectral Feature Set.

Summaries of the Welch power spectral density (sample rate 1).
"""

import numpy as np
from typing import Dict
from scipy.signal import welch

from tsfeatkit.core._stats import clean


def compute(y: np.ndarray, sample_rate: float = 1.0) -> Dict[str, float]:
    """
    Compute spectral properties of a series.

    Args:
        y: Series values
        sample_rate: Sampling rate in Hz (default: 1.0)

    Returns:
        dict with dominant_freq, spectral_entropy, spectral_centroid,
        spectral_bandwidth, spectral_slope, low_freq_power
    """
    result = {
        'dominant_freq': np.nan,
        'spectral_entropy': np.nan,
        'spectral_centroid': np.nan,
        'spectral_bandwidth': np.nan,
        'spectral_slope': np.nan,
        'low_freq_power': np.nan,
    }

    y = clean(y)
    n = len(y)

    if n < 4:
        return result

    if np.std(y) < 1e-10:
        result['dominant_freq'] = 0.0
        result['spectral_entropy'] = 0.0
        result['spectral_centroid'] = 0.0
        result['spectral_bandwidth'] = 0.0
        result['spectral_slope'] = 0.0
        result['low_freq_power'] = 0.0
        return result

    freqs, power = welch(y, fs=sample_rate, nperseg=min(256, n))
    total = np.sum(power)
    if total <= 0:
        return result

    p = power / total
    nz = p[p > 0]
    centroid = float(np.sum(freqs * p))

    result['dominant_freq'] = float(freqs[np.argmax(power)])
    result['spectral_entropy'] = float(-np.sum(nz * np.log(nz)) / np.log(len(p))) if len(p) > 1 else 0.0
    result['spectral_centroid'] = centroid
    result['spectral_bandwidth'] = float(np.sqrt(np.sum((freqs - centroid) ** 2 * p)))

    # Power-law slope of the spectrum on log-log axes
    ok = (freqs > 0) & (power > 0)
    if np.count_nonzero(ok) >= 3:
        result['spectral_slope'] = float(np.polyfit(np.log(freqs[ok]), np.log(power[ok]), 1)[0])

    # Fraction of power in the lowest fifth of the frequency range
    n_low = max(1, len(freqs) // 5)
    result['low_freq_power'] = float(np.sum(p[:n_low]))

    return result
