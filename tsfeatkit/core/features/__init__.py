"""
Feature-set engines.

Each module computes ONE feature set: compute(y) -> {output: value}.
Requirements and output names live in the sibling <set>.yaml.
"""

from . import statistics    # mean, std, skewness, kurtosis, ...
from . import distribution  # histogram modes, stretches, outlier timing
from . import memory        # acf crossings, hurst, dfa
from . import complexity    # sample / permutation / binned entropy
from . import spectral      # welch spectrum summaries
from . import trend         # slope, r2, stability, lumpiness

__all__ = [
    'statistics',
    'distribution',
    'memory',
    'complexity',
    'spectral',
    'trend',
]
