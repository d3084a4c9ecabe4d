"""
Classification accuracy against the null distribution, per model.
"""

from typing import Optional

import matplotlib.pyplot as plt
import polars as pl
import seaborn as sns

from tsfeatkit.core.classification import ClassificationResult
from tsfeatkit.plotting._common import to_pandas


def plot_classification(result: ClassificationResult, ax=None, title: Optional[str] = None):
    """
    One row per model: the null accuracies as a violin (when built) and the
    observed mean accuracy as a point with its fold standard deviation.

    Returns:
        matplotlib Figure
    """
    stats = result.test_statistics
    models = stats['model_name'].to_list()

    if ax is None:
        fig, ax = plt.subplots(figsize=(8, max(2.5, 0.6 * len(models) + 1.5)))
    else:
        fig = ax.figure

    null = result.raw_results.filter(pl.col('kind') == 'null')
    if null.height > 0:
        sns.violinplot(
            data=to_pandas(null), x='accuracy', y='model_name', order=models,
            color='#BAB0AC', inner=None, cut=0, ax=ax,
        )

    accuracy = stats['accuracy'].to_numpy()
    spread = stats['accuracy_std'].fill_null(0.0).to_numpy()
    ax.errorbar(accuracy, range(len(models)), xerr=spread, fmt='o', color='#E45756',
                ecolor='#E45756', capsize=3, label='observed', zorder=3)

    for k, p in enumerate(stats['p_value'].to_list()):
        if p is not None:
            ax.annotate(f"p={p:.3g}", (accuracy[k], k), textcoords='offset points',
                        xytext=(6, 6), fontsize=8)

    ax.set_yticks(range(len(models)))
    ax.set_yticklabels(models)
    ax.set_xlim(0, 1.05)
    metric = 'Balanced accuracy' if result.settings.get('use_balanced_accuracy') else 'Accuracy'
    ax.set_xlabel(metric)
    ax.set_ylabel('')
    ax.set_title(title or f"{result.settings.get('classifier', '')} classification".strip())
    ax.legend(loc='lower right', fontsize=8)

    fig.tight_layout()
    return fig
