"""
Top Features
============

Univariate discrimination test for every feature, ranked, with the
correlation structure of the best ones.

Each feature is scored on its own, either by a single-feature classifier
(any name in CLASSIFIERS; statistic = mean accuracy) or by a classical
two-sample / k-sample test:

    t_test   Welch t-test, exactly 2 groups        statistic = |t|
    wilcox   Mann-Whitney U, exactly 2 groups      statistic = U
    anova    one-way F test, >= 2 groups           statistic = F

Classifier scores only carry p-values when an empirical null is built.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import numpy as np
import polars as pl
from scipy import stats

from tsfeatkit.core.classification import (
    CLASSIFIERS,
    NULL_TESTING_METHODS,
    P_VALUE_METHODS,
    build_null,
    compute_p_value,
    evaluate_accuracy,
    labelled_matrix,
    resolve_num_folds,
)
from tsfeatkit.core.matrix import cluster_order, qualified_names
from tsfeatkit.core.quality import drop_bad_features

logger = logging.getLogger(__name__)

STATISTICAL_TESTS = ('t_test', 'wilcox', 'anova')
CORRELATION_METHODS = ('pearson', 'spearman')

RESULT_SCHEMA = {
    'feature_set': pl.Utf8,
    'feature': pl.Utf8,
    'feature_name': pl.Utf8,
    'statistic': pl.Float64,
    'p_value': pl.Float64,
    'p_value_adj': pl.Float64,
}


@dataclass
class TopFeaturesResult:
    """
    Output of compute_top_features.

    Attributes:
        results: Ranked table (feature_set, feature, feature_name, statistic,
            p_value, p_value_adj, rank), at most num_features rows
        correlations: Long (feature_a, feature_b, correlation) absolute
            correlations between the top features, in feature_order
        feature_order: Top feature names in clustered order
        top_values: Long features table restricted to the top features
        settings: Arguments the result was computed with
    """
    results: pl.DataFrame
    correlations: pl.DataFrame
    feature_order: List[str] = field(default_factory=list)
    top_values: Optional[pl.DataFrame] = None
    settings: Dict[str, Any] = field(default_factory=dict)


def statistical_test(x: np.ndarray, y: np.ndarray, method: str) -> Tuple[float, float]:
    """
    Classical test of one feature across groups.

    Args:
        x: Feature values, one per series
        y: Group labels
        method: 't_test', 'wilcox' or 'anova'

    Returns:
        (statistic, p_value)

    Raises:
        ValueError: If the group count does not suit the test
    """
    labels = np.unique(y)
    samples = [x[y == g] for g in labels]

    if method in ('t_test', 'wilcox') and len(labels) != 2:
        raise ValueError(f"'{method}' needs exactly 2 groups, got {len(labels)}; use 'anova' instead")

    if method == 't_test':
        t, p = stats.ttest_ind(samples[0], samples[1], equal_var=False)
        return float(abs(t)), float(p)
    if method == 'wilcox':
        u, p = stats.mannwhitneyu(samples[0], samples[1], alternative='two-sided')
        return float(u), float(p)
    if method == 'anova':
        f, p = stats.f_oneway(*samples)
        return float(f), float(p)

    raise KeyError(f"Unknown statistical test: '{method}'. Available: {', '.join(STATISTICAL_TESTS)}")


def adjust_p_values(p_values: np.ndarray) -> np.ndarray:
    """Benjamini-Hochberg adjustment; NaN entries stay NaN."""
    p_values = np.asarray(p_values, dtype=np.float64)
    adjusted = np.full_like(p_values, np.nan)
    ok = np.isfinite(p_values)
    if ok.any():
        adjusted[ok] = stats.false_discovery_control(p_values[ok], method='bh')
    return adjusted


def correlation_matrix(X: np.ndarray, method: str = 'pearson') -> np.ndarray:
    """Absolute pairwise correlation between the columns of X."""
    if method not in CORRELATION_METHODS:
        raise KeyError(f"Unknown correlation method: '{method}'. Available: {', '.join(CORRELATION_METHODS)}")

    X = np.asarray(X, dtype=np.float64)
    if X.shape[1] == 1:
        return np.ones((1, 1))
    if method == 'spearman':
        X = np.apply_along_axis(stats.rankdata, 0, X)

    corr = np.abs(np.corrcoef(X, rowvar=False))
    corr[~np.isfinite(corr)] = 0.0
    np.fill_diagonal(corr, 1.0)
    return corr


def _rank(results: pl.DataFrame) -> pl.DataFrame:
    if results['p_value'].is_not_null().any():
        ordered = results.sort(['p_value', 'statistic'], descending=[False, True], nulls_last=True)
    else:
        ordered = results.sort('statistic', descending=True, nulls_last=True)
    return ordered.with_row_index('rank', offset=1).select(list(RESULT_SCHEMA) + ['rank'])


def compute_top_features(
    features: pl.DataFrame,
    num_features: int = 40,
    test_method: str = 'linear_svm',
    use_balanced_accuracy: bool = False,
    use_k_fold: bool = True,
    num_folds: int = 10,
    use_empirical_null: bool = False,
    null_testing_method: str = 'model_free_shuffles',
    p_value_method: str = 'empirical',
    num_permutations: int = 100,
    pool_empirical_null: bool = False,
    correlation_method: str = 'pearson',
    clust_method: str = 'average',
    seed: int = 123,
) -> TopFeaturesResult:
    """
    Rank features by how well each separates the groups on its own.

    Args:
        features: Long features table with a group column
        num_features: How many top features to keep
        test_method: Classifier name or 't_test' / 'wilcox' / 'anova'
        use_balanced_accuracy: Balanced accuracy for classifier tests
        use_k_fold: Stratified k-fold CV for classifier tests
        num_folds: Folds (clamped to the smallest group size)
        use_empirical_null: Build permutation nulls for classifier tests
        null_testing_method: 'model_free_shuffles' or 'null_model_fits'
        p_value_method: 'empirical' or 'gaussian'
        num_permutations: Null sample size per feature
        pool_empirical_null: Compare every feature against the pooled nulls
        correlation_method: 'pearson' or 'spearman'
        clust_method: Linkage method for ordering the correlation matrix
        seed: Random seed for reproducibility

    Returns:
        TopFeaturesResult

    Raises:
        KeyError: Unknown test, null, p-value or correlation method
        ValueError: Missing labels, wrong group count, or no usable features
    """
    is_classifier = test_method in CLASSIFIERS
    if not is_classifier and test_method not in STATISTICAL_TESTS:
        raise KeyError(
            f"Unknown test method: '{test_method}'. Available: "
            f"{', '.join(sorted(CLASSIFIERS) + list(STATISTICAL_TESTS))}"
        )
    if null_testing_method not in NULL_TESTING_METHODS:
        raise KeyError(f"Unknown null testing method: '{null_testing_method}'")
    if p_value_method not in P_VALUE_METHODS:
        raise KeyError(f"Unknown p-value method: '{p_value_method}'")
    if correlation_method not in CORRELATION_METHODS:
        raise KeyError(f"Unknown correlation method: '{correlation_method}'")

    cleaned = drop_bad_features(features)
    if cleaned.is_empty():
        raise ValueError("No features with all-finite, non-constant values to test")

    _, y, names, X = labelled_matrix(cleaned)

    lookup = {
        row['feature_name']: (row['feature_set'], row['feature'])
        for row in qualified_names(cleaned)
        .select(['feature_set', 'feature', 'feature_name'])
        .unique()
        .iter_rows(named=True)
    }

    statistic = np.full(len(names), np.nan)
    p_values = np.full(len(names), np.nan)

    if is_classifier:
        folds = resolve_num_folds(y, num_folds) if use_k_fold else num_folds
        nulls = []
        shared_null = None
        for j in range(len(names)):
            x = X[:, [j]]
            statistic[j] = float(np.mean(evaluate_accuracy(
                x, y, test_method, use_k_fold, folds, use_balanced_accuracy, seed
            )))
            if not use_empirical_null:
                continue
            # Label shuffles never see the feature, one null serves them all
            if null_testing_method == 'model_free_shuffles' and shared_null is not None:
                nulls.append(shared_null)
                continue
            null = build_null(
                x, y, null_testing_method, num_permutations, test_method,
                use_k_fold, folds, use_balanced_accuracy, seed,
            )
            if null_testing_method == 'model_free_shuffles':
                shared_null = null
            nulls.append(null)

        if use_empirical_null:
            pooled = np.concatenate(nulls) if pool_empirical_null else None
            for j, null in enumerate(nulls):
                reference = pooled if pooled is not None else null
                p_values[j] = compute_p_value(statistic[j], reference, p_value_method)
    else:
        for j in range(len(names)):
            statistic[j], p_values[j] = statistical_test(X[:, j], y, test_method)

    results = pl.DataFrame({
        'feature_set': [lookup[n][0] for n in names],
        'feature': [lookup[n][1] for n in names],
        'feature_name': names,
        'statistic': statistic,
        'p_value': p_values,
        'p_value_adj': adjust_p_values(p_values),
    }, schema=RESULT_SCHEMA).with_columns(
        pl.col('statistic').fill_nan(None),
        pl.col('p_value').fill_nan(None),
        pl.col('p_value_adj').fill_nan(None),
    )

    results = _rank(results).head(num_features)
    top_names = results['feature_name'].to_list()

    index = {n: j for j, n in enumerate(names)}
    corr = correlation_matrix(X[:, [index[n] for n in top_names]], correlation_method)
    order = cluster_order(corr, method=clust_method)
    feature_order = [top_names[i] for i in order]
    corr = corr[np.ix_(order, order)]

    correlations = pl.DataFrame({
        'feature_a': [a for a in feature_order for _ in feature_order],
        'feature_b': feature_order * len(feature_order),
        'correlation': corr.ravel(),
    })

    top_values = (
        qualified_names(cleaned)
        .join(results.select(['feature_name', 'rank']), on='feature_name', how='inner')
        .sort(['rank', 'id'])
    )

    logger.info(
        "Top features: %d of %d features kept (test=%s)", len(top_names), len(names), test_method
    )

    return TopFeaturesResult(
        results=results,
        correlations=correlations,
        feature_order=feature_order,
        top_values=top_values,
        settings={
            'num_features': num_features,
            'test_method': test_method,
            'use_balanced_accuracy': use_balanced_accuracy,
            'use_k_fold': use_k_fold,
            'num_folds': num_folds,
            'use_empirical_null': use_empirical_null,
            'null_testing_method': null_testing_method if use_empirical_null else None,
            'p_value_method': p_value_method if use_empirical_null else None,
            'num_permutations': num_permutations if use_empirical_null else 0,
            'pool_empirical_null': pool_empirical_null,
            'correlation_method': correlation_method,
            'clust_method': clust_method,
            'seed': seed,
        },
    )
