"""
Shared plotting helpers.
"""

from typing import Dict, List, Optional, Sequence

import numpy as np
import pandas as pd
import polars as pl
import seaborn as sns


QUALITY_COLORS = {
    'good': '#54A24B',    # Green
    '-inf': '#4C78A8',    # Blue
    'inf': '#E45756',     # Red
    'nan': '#BAB0AC',     # Grey
}


def to_pandas(df: pl.DataFrame) -> pd.DataFrame:
    """polars -> pandas for seaborn, via numpy (no pyarrow dependency)."""
    return pd.DataFrame({col: df[col].to_numpy() for col in df.columns})


def group_palette(groups: Optional[Sequence]) -> Dict[str, tuple]:
    """Stable colour per group label, in sorted label order."""
    if groups is None:
        return {}
    labels: List[str] = sorted({str(g) for g in groups})
    colors = sns.color_palette('tab10' if len(labels) <= 10 else 'husl', len(labels))
    return dict(zip(labels, colors))


def tick_step(n: int, max_ticks: int = 40) -> int:
    """Label every k-th tick so at most max_ticks labels are drawn."""
    return max(1, int(np.ceil(n / max_ticks)))
