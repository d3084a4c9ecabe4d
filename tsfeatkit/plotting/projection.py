"""
Low-dimensional scatter with per-group covariance ellipses.
"""

from typing import Optional

import numpy as np
import matplotlib.pyplot as plt
import seaborn as sns
from matplotlib.patches import Ellipse

from tsfeatkit.core.projection import LowDimensionResult
from tsfeatkit.plotting._common import group_palette, to_pandas


def covariance_ellipse(points: np.ndarray, n_std: float = 2.0, **kwargs) -> Optional[Ellipse]:
    """
    Ellipse covering n_std standard deviations of a 2D point cloud.

    Returns None for fewer than 3 points or a degenerate covariance.
    """
    points = np.asarray(points, dtype=np.float64)
    if len(points) < 3:
        return None

    cov = np.cov(points, rowvar=False)
    if not np.all(np.isfinite(cov)):
        return None

    eigvals, eigvecs = np.linalg.eigh(cov)
    if eigvals.max() <= 0:
        return None
    eigvals = np.clip(eigvals, 0, None)

    # eigh sorts ascending; the major axis is the last eigenvector
    angle = np.degrees(np.arctan2(eigvecs[1, -1], eigvecs[0, -1]))
    width, height = 2 * n_std * np.sqrt(eigvals[::-1])

    return Ellipse(xy=points.mean(axis=0), width=width, height=height, angle=angle, **kwargs)


def plot_low_dimension(
    result: LowDimensionResult,
    show_ellipses: bool = True,
    n_std: float = 2.0,
    ax=None,
    title: Optional[str] = None,
):
    """
    Scatter of the first two projection dimensions, coloured by group.

    Args:
        result: Output of reduce_dimensions
        show_ellipses: Draw an n_std covariance ellipse per group
        n_std: Ellipse size in standard deviations
        ax: Existing axes to draw into
        title: Axes title

    Returns:
        matplotlib Figure
    """
    coords = result.coordinates
    if 'dim_2' not in coords.columns:
        raise ValueError("Need at least 2 projection dimensions to plot")

    if ax is None:
        fig, ax = plt.subplots(figsize=(7, 6))
    else:
        fig = ax.figure

    frame = to_pandas(coords)
    has_group = 'group' in frame.columns
    palette = group_palette(frame['group']) if has_group else None

    sns.scatterplot(
        data=frame, x='dim_1', y='dim_2',
        hue='group' if has_group else None,
        hue_order=list(palette) if has_group else None,
        palette=palette, ax=ax, s=30, edgecolor='none', alpha=0.85,
    )

    if show_ellipses and has_group:
        for group, color in palette.items():
            pts = frame.loc[frame['group'].astype(str) == group, ['dim_1', 'dim_2']].to_numpy()
            ellipse = covariance_ellipse(pts, n_std=n_std, facecolor=color, edgecolor=color,
                                         alpha=0.15, linewidth=1)
            if ellipse is not None:
                ax.add_patch(ellipse)

    labels = result.axis_labels()
    ax.set_xlabel(labels[0])
    ax.set_ylabel(labels[1])
    ax.set_title(title or ('PCA' if result.method == 'pca' else 't-SNE'))
    if has_group:
        ax.legend(title='Group', fontsize=8)

    fig.tight_layout()
    return fig
