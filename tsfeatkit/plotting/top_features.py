"""
Top-feature figures: correlation heatmap and per-group violins.
"""

from typing import Optional

import numpy as np
import matplotlib.pyplot as plt
import pandas as pd
import seaborn as sns

from tsfeatkit.core.top_features import TopFeaturesResult
from tsfeatkit.plotting._common import group_palette, tick_step, to_pandas


def plot_feature_correlations(result: TopFeaturesResult, cmap: str = 'viridis', title: Optional[str] = None):
    """
    Absolute correlation between top features, in clustered order.

    Returns:
        matplotlib Figure
    """
    order = result.feature_order
    n = len(order)
    values = result.correlations['correlation'].to_numpy().reshape(n, n)
    frame = pd.DataFrame(values, index=order, columns=order)

    size = min(16, 3 + 0.25 * n)
    fig, ax = plt.subplots(figsize=(size + 1, size))
    sns.heatmap(
        frame, ax=ax, cmap=cmap, vmin=0, vmax=1, square=True,
        xticklabels=tick_step(n), yticklabels=tick_step(n),
        cbar_kws={'label': f"|{result.settings.get('correlation_method', 'pearson')} correlation|"},
    )
    ax.tick_params(labelsize=6 if n > 20 else 8)
    ax.set_title(title or f'Top {n} features')

    fig.tight_layout()
    return fig


def plot_top_feature_violins(
    result: TopFeaturesResult,
    max_features: int = 12,
    n_cols: int = 4,
    title: Optional[str] = None,
):
    """
    Distribution of each top feature by group, best-ranked first.

    Args:
        result: Output of compute_top_features
        max_features: Panels to draw
        n_cols: Panels per row

    Returns:
        matplotlib Figure
    """
    ranked = result.results.head(max_features)
    names = ranked['feature_name'].to_list()
    n = len(names)
    n_cols = max(1, min(n_cols, n))
    n_rows = int(np.ceil(n / n_cols)) if n else 1

    fig, axes = plt.subplots(n_rows, n_cols, figsize=(3.2 * n_cols, 2.8 * n_rows), squeeze=False)
    frame = to_pandas(result.top_values)
    has_group = 'group' in frame.columns
    palette = group_palette(frame['group']) if has_group else None

    for k, ax in enumerate(axes.ravel()):
        if k >= n:
            ax.set_visible(False)
            continue
        name = names[k]
        part = frame[frame['feature_name'] == name]
        sns.violinplot(
            data=part, x='group' if has_group else None, y='value',
            hue='group' if has_group else None,
            order=list(palette) if has_group else None,
            hue_order=list(palette) if has_group else None,
            palette=palette, legend=False, cut=0, inner='point', ax=ax,
        )
        p = ranked['p_value'][k]
        subtitle = f"#{k + 1} {name}"
        if p is not None:
            subtitle += f"\np={p:.3g}"
        ax.set_title(subtitle, fontsize=8)
        ax.set_xlabel('')
        ax.set_ylabel('')
        ax.tick_params(axis='x', labelrotation=45, labelsize=7)

    fig.suptitle(title or f"Top features ({result.settings.get('test_method', '')})")
    fig.tight_layout()
    return fig
