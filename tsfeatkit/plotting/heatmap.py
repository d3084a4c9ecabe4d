"""
Clustered feature-matrix heatmap (series x features).
"""

from typing import Optional

import matplotlib.pyplot as plt
import pandas as pd
import seaborn as sns
from matplotlib.colors import ListedColormap

from tsfeatkit.core.matrix import ClusteredMatrix
from tsfeatkit.plotting._common import group_palette, tick_step


def plot_feature_matrix(
    matrix: ClusteredMatrix,
    cmap: str = 'RdBu_r',
    show_groups: bool = True,
    title: Optional[str] = None,
):
    """
    Heatmap of the clustered, normalised feature matrix.

    Rows are series and columns are features, both in clustered order. When
    groups are known a colour strip on the left marks each row's group.

    Args:
        matrix: Output of clustered_feature_matrix
        cmap: Diverging colormap
        show_groups: Draw the group colour strip
        title: Figure title (default names the normalisation)

    Returns:
        matplotlib Figure
    """
    n_rows, n_cols = matrix.values.shape
    with_strip = show_groups and matrix.groups is not None

    fig = plt.figure(figsize=(min(20, 4 + 0.15 * n_cols), min(16, 3 + 0.08 * n_rows)))
    if with_strip:
        grid = fig.add_gridspec(1, 2, width_ratios=[1, 30], wspace=0.02)
        strip_ax = fig.add_subplot(grid[0, 0])
        ax = fig.add_subplot(grid[0, 1])
    else:
        ax = fig.add_subplot(1, 1, 1)

    frame = pd.DataFrame(matrix.values, index=[str(i) for i in matrix.ids], columns=matrix.feature_names)
    center = 0.0 if matrix.norm_method in ('zscore', 'robust', 'mad', 'none') else None

    sns.heatmap(
        frame,
        ax=ax,
        cmap=cmap,
        center=center,
        xticklabels=tick_step(n_cols),
        yticklabels=False if with_strip else tick_step(n_rows),
        cbar_kws={'label': f'{matrix.norm_method} value'},
    )
    ax.set_xlabel('Feature')
    ax.set_ylabel('' if with_strip else 'Series')
    ax.tick_params(axis='x', labelsize=6)

    if with_strip:
        palette = group_palette(matrix.groups)
        labels = list(palette)
        codes = [[labels.index(str(g))] for g in matrix.groups]
        strip_ax.imshow(codes, aspect='auto', cmap=ListedColormap([palette[l] for l in labels]),
                        interpolation='nearest', vmin=0, vmax=max(len(labels) - 1, 1))
        strip_ax.set_xticks([])
        strip_ax.set_yticks([])
        strip_ax.set_ylabel('Series')
        handles = [plt.Rectangle((0, 0), 1, 1, color=palette[l]) for l in labels]
        fig.legend(handles, labels, title='Group', loc='upper left', fontsize=8)

    fig.suptitle(title or f'Feature matrix ({matrix.norm_method}, {matrix.clust_method} linkage)')
    return fig
