"""
Synthetic labelled time-series datasets.

simulate_observations() builds a tidy table of four process classes that
differ in distribution, memory and spectral content, so every feature set
has something to find:

    gaussian_noise   i.i.d. N(0, 1)
    ar1              x[t] = 0.8 x[t-1] + e[t]
    random_walk      cumulative sum of N(0, 1)
    noisy_sinusoid   sin(2 pi f t + phase) + 0.5 N(0, 1), f ~ U(0.02, 0.08)
"""

from typing import Callable, Dict, Optional, Sequence

import numpy as np
import polars as pl


def _gaussian_noise(rng: np.random.Generator, n: int) -> np.ndarray:
    return rng.standard_normal(n)


def _ar1(rng: np.random.Generator, n: int, phi: float = 0.8) -> np.ndarray:
    e = rng.standard_normal(n)
    x = np.empty(n)
    x[0] = e[0] / np.sqrt(1 - phi ** 2)
    for t in range(1, n):
        x[t] = phi * x[t - 1] + e[t]
    return x


def _random_walk(rng: np.random.Generator, n: int) -> np.ndarray:
    return np.cumsum(rng.standard_normal(n))


def _noisy_sinusoid(rng: np.random.Generator, n: int) -> np.ndarray:
    t = np.arange(n)
    freq = rng.uniform(0.02, 0.08)
    phase = rng.uniform(0, 2 * np.pi)
    return np.sin(2 * np.pi * freq * t + phase) + 0.5 * rng.standard_normal(n)


PROCESSES: Dict[str, Callable[[np.random.Generator, int], np.ndarray]] = {
    'gaussian_noise': _gaussian_noise,
    'ar1': _ar1,
    'random_walk': _random_walk,
    'noisy_sinusoid': _noisy_sinusoid,
}


def simulate_observations(
    n_per_group: int = 20,
    length: int = 200,
    seed: int = 123,
    groups: Optional[Sequence[str]] = None,
) -> pl.DataFrame:
    """
    Labelled tidy observations drawn from simple stochastic processes.

    Args:
        n_per_group: Series per class
        length: Samples per series
        seed: Random seed for reproducibility
        groups: Subset of PROCESSES to draw from (default: all four)

    Returns:
        DataFrame with id, group, timepoint (1-based), value
    """
    groups = list(groups) if groups is not None else list(PROCESSES)
    unknown = [g for g in groups if g not in PROCESSES]
    if unknown:
        raise KeyError(f"Unknown process(es): {unknown}. Available: {', '.join(PROCESSES)}")

    rng = np.random.default_rng(seed)

    ids, labels, values = [], [], []
    for group in groups:
        for k in range(1, n_per_group + 1):
            ids.append(f"{group}_{k:03d}")
            labels.append(group)
            values.append(PROCESSES[group](rng, length))

    n_series = len(ids)
    return pl.DataFrame({
        'id': np.repeat(ids, length),
        'group': np.repeat(labels, length),
        'timepoint': np.tile(np.arange(1, length + 1), n_series),
        'value': np.concatenate(values) if values else np.array([], dtype=np.float64),
    }, schema={'id': pl.Utf8, 'group': pl.Utf8, 'timepoint': pl.Int64, 'value': pl.Float64})
