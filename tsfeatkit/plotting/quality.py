"""
Quality matrix: proportion of good / nan / inf / -inf values per feature.
"""

from typing import Optional

import numpy as np
import matplotlib.pyplot as plt
import polars as pl

from tsfeatkit.core.matrix import qualified_names
from tsfeatkit.core.quality import QUALITY_LEVELS, quality_matrix
from tsfeatkit.plotting._common import QUALITY_COLORS


def plot_quality_matrix(
    features: pl.DataFrame,
    only_bad: bool = False,
    ax=None,
    title: Optional[str] = 'Feature quality',
):
    """
    Stacked horizontal bars, one per feature, ordered by proportion good.

    Args:
        features: Long features table
        only_bad: Show only features with at least one non-good value
        ax: Existing axes to draw into
        title: Axes title

    Returns:
        matplotlib Figure
    """
    long = qualified_names(quality_matrix(features))
    wide = long.pivot(on='quality', index='feature_name', values='proportion', aggregate_function='first')
    for level in QUALITY_LEVELS:
        if level not in wide.columns:
            wide = wide.with_columns(pl.lit(0.0).alias(level))

    if only_bad:
        wide = wide.filter(pl.col('good') < 1.0)
    wide = wide.sort(['good', 'feature_name'], descending=[True, False])

    names = wide['feature_name'].to_list()
    n = len(names)

    if ax is None:
        fig, ax = plt.subplots(figsize=(8, max(3, 0.18 * n + 1)))
    else:
        fig = ax.figure

    left = np.zeros(n)
    y = np.arange(n)
    for level in QUALITY_LEVELS:
        widths = wide[level].fill_null(0.0).to_numpy()
        ax.barh(y, widths, left=left, color=QUALITY_COLORS[level], label=level, height=0.9)
        left += widths

    ax.set_yticks(y)
    ax.set_yticklabels(names, fontsize=6 if n > 40 else 8)
    ax.set_xlim(0, 1)
    ax.set_xlabel('Proportion of series')
    ax.invert_yaxis()
    ax.legend(title='Quality', loc='lower right', fontsize=8)
    if title:
        ax.set_title(title)

    fig.tight_layout()
    return fig
