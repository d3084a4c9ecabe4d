"""Inline numeric primitives shared by the feature-set engines.

Every function takes a 1D array-like, drops non-finite samples and returns a
Python float (or int). Too-short or degenerate input gives NaN, never an
exception.
"""

from scipy.stats import kurtosis as _scipy_kurtosis, skew as _scipy_skew
import numpy as np


def clean(y) -> np.ndarray:
    """Flatten to float64 and drop NaN/inf."""
    y = np.asarray(y, dtype=np.float64).ravel()
    return y[np.isfinite(y)]


def zscore(y) -> np.ndarray:
    """Z-score a series. Constant series are only centred."""
    y = clean(y)
    if len(y) == 0:
        return y
    sd = np.std(y)
    if sd < 1e-15:
        return y - np.mean(y)
    return (y - np.mean(y)) / sd


def kurtosis(y, fisher=True):
    """Kurtosis. fisher=True (default) returns excess kurtosis."""
    y = clean(y)
    if len(y) < 4 or np.std(y) < 1e-15:
        return np.nan
    return float(_scipy_kurtosis(y, fisher=fisher))


def skewness(y):
    """Sample skewness."""
    y = clean(y)
    if len(y) < 3 or np.std(y) < 1e-15:
        return np.nan
    return float(_scipy_skew(y))


def rms(y):
    """Root mean square."""
    y = clean(y)
    if len(y) == 0:
        return np.nan
    return float(np.sqrt(np.mean(y**2)))


def crest_factor(y):
    """Peak-to-RMS ratio."""
    y = clean(y)
    if len(y) == 0:
        return np.nan
    r = rms(y)
    if r < 1e-15:
        return np.nan
    return float(np.max(np.abs(y)) / r)


def autocorrelation(y, max_lag=None) -> np.ndarray:
    """
    Autocorrelation function via FFT.

    Args:
        y: Signal values
        max_lag: Largest lag to return (default: n - 1)

    Returns:
        Array of length max_lag + 1 with acf[0] == 1, or all-NaN for
        constant input.
    """
    y = clean(y)
    n = len(y)
    if max_lag is None or max_lag > n - 1:
        max_lag = max(n - 1, 0)
    if n < 2:
        return np.full(max_lag + 1, np.nan)

    centered = y - np.mean(y)
    var = np.sum(centered**2)
    if var < 1e-15:
        return np.full(max_lag + 1, np.nan)

    nfft = 1 << int(np.ceil(np.log2(2 * n - 1)))
    spectrum = np.fft.rfft(centered, nfft)
    acf = np.fft.irfft(spectrum * np.conj(spectrum), nfft)[:n] / var
    return acf[:max_lag + 1]


def first_crossing(acf: np.ndarray, threshold: float) -> float:
    """First lag at which acf drops below threshold (len(acf) if never)."""
    if len(acf) == 0 or not np.isfinite(acf[0]):
        return np.nan
    below = np.nonzero(acf[1:] < threshold)[0]
    if len(below) == 0:
        return float(len(acf))
    return float(below[0] + 1)


def first_minimum(acf: np.ndarray) -> float:
    """First lag at which acf has a local minimum."""
    if len(acf) < 3 or not np.isfinite(acf[0]):
        return np.nan
    for k in range(1, len(acf) - 1):
        if acf[k] < acf[k - 1] and acf[k] <= acf[k + 1]:
            return float(k)
    return float(len(acf))


def binned_entropy(y, n_bins: int = 10):
    """Shannon entropy of an equal-width histogram, normalised by log(n_bins)."""
    y = clean(y)
    if len(y) < 2:
        return np.nan
    if np.ptp(y) < 1e-15:
        return 0.0
    counts, _ = np.histogram(y, bins=n_bins)
    p = counts[counts > 0] / len(y)
    return float(-np.sum(p * np.log(p)) / np.log(n_bins))


def histogram_mode(y, n_bins: int):
    """Centre of the most populated bin of the z-scored series."""
    z = zscore(y)
    if len(z) == 0:
        return np.nan
    if np.ptp(z) < 1e-15:
        return 0.0
    counts, edges = np.histogram(z, bins=n_bins)
    centres = (edges[:-1] + edges[1:]) / 2
    return float(centres[np.argmax(counts)])


def longest_run(mask: np.ndarray) -> int:
    """Length of the longest run of True values."""
    mask = np.asarray(mask, dtype=bool)
    if not mask.any():
        return 0
    padded = np.concatenate([[False], mask, [False]])
    changes = np.flatnonzero(padded[1:] != padded[:-1])
    return int(np.max(changes[1::2] - changes[::2]))
