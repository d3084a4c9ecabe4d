"""
Multi-Feature Classification
============================

Tests whether a feature space separates the class labels. One model is fit
on all features (and, with by_set=True, one per feature set); accuracy comes
from stratified k-fold cross validation (or an in-sample fit), and
significance from an empirical null built by permuting labels.

Null testing methods:
    model_free_shuffles  - accuracy of a random relabelling against the true
                           labels; no model is fit (fast, chance baseline)
    null_model_fits      - the whole evaluation rerun on permuted labels
                           (slow, captures model optimism)

p-value methods:
    empirical  - (1 + #{null >= observed}) / (1 + n_null)
    gaussian   - upper tail of a normal fitted to the null

Usage:
    result = fit_multi_feature_classifier(features, by_set=True,
                                          use_empirical_null=True)
    result.test_statistics
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

import numpy as np
import polars as pl
from joblib import Parallel, delayed
from scipy.stats import norm
from sklearn.ensemble import RandomForestClassifier
from sklearn.linear_model import LogisticRegression
from sklearn.metrics import accuracy_score, balanced_accuracy_score
from sklearn.model_selection import StratifiedKFold
from sklearn.naive_bayes import GaussianNB
from sklearn.pipeline import make_pipeline
from sklearn.preprocessing import StandardScaler
from sklearn.svm import SVC

from tsfeatkit.core.matrix import feature_arrays, pivot_features
from tsfeatkit.core.quality import drop_bad_features

logger = logging.getLogger(__name__)


CLASSIFIERS: Dict[str, Callable[[int], Any]] = {
    'linear_svm': lambda seed: make_pipeline(StandardScaler(), SVC(kernel='linear')),
    'rbf_svm': lambda seed: make_pipeline(StandardScaler(), SVC(kernel='rbf', gamma='scale')),
    'logistic': lambda seed: make_pipeline(StandardScaler(), LogisticRegression(max_iter=1000)),
    'random_forest': lambda seed: make_pipeline(
        StandardScaler(), RandomForestClassifier(n_estimators=100, random_state=seed)
    ),
    'gaussian_nb': lambda seed: make_pipeline(StandardScaler(), GaussianNB()),
}

NULL_TESTING_METHODS = ('model_free_shuffles', 'null_model_fits')
P_VALUE_METHODS = ('empirical', 'gaussian')

ALL_FEATURES = 'all_features'


def make_classifier(name: str, seed: int = 123):
    """Build an unfitted scikit-learn pipeline by name."""
    if name not in CLASSIFIERS:
        raise KeyError(f"Unknown classifier: '{name}'. Available: {', '.join(sorted(CLASSIFIERS))}")
    return CLASSIFIERS[name](seed)


def _check_choice(value: str, choices: Tuple[str, ...], what: str) -> str:
    if value not in choices:
        raise KeyError(f"Unknown {what}: '{value}'. Available: {', '.join(choices)}")
    return value


def _score(y_true: np.ndarray, y_pred: np.ndarray, balanced: bool) -> float:
    if balanced:
        return float(balanced_accuracy_score(y_true, y_pred))
    return float(accuracy_score(y_true, y_pred))


def resolve_num_folds(y: np.ndarray, num_folds: int) -> int:
    """
    Clamp the fold count to what stratification allows.

    Raises:
        ValueError: If any class has fewer than two members
    """
    _, counts = np.unique(y, return_counts=True)
    smallest = int(counts.min())
    if smallest < 2:
        raise ValueError("Every group needs at least 2 series for k-fold cross validation")
    if num_folds > smallest:
        logger.warning(
            "num_folds=%d exceeds the smallest group size (%d); using %d folds",
            num_folds, smallest, smallest,
        )
        return smallest
    return max(2, int(num_folds))


def evaluate_accuracy(
    X: np.ndarray,
    y: np.ndarray,
    classifier: str = 'linear_svm',
    use_k_fold: bool = True,
    num_folds: int = 10,
    use_balanced_accuracy: bool = False,
    seed: int = 123,
) -> np.ndarray:
    """
    Accuracy of a classifier on (X, y).

    Args:
        X: (n_series, n_features) matrix
        y: Class labels
        classifier: Name in CLASSIFIERS
        use_k_fold: Stratified k-fold CV; False fits and scores in-sample
        num_folds: Number of folds (already resolved)
        use_balanced_accuracy: Balanced accuracy instead of accuracy
        seed: Fold shuffling / model seed

    Returns:
        Per-fold scores (length 1 when in-sample)
    """
    X = np.asarray(X, dtype=np.float64)
    y = np.asarray(y)

    if not use_k_fold:
        model = make_classifier(classifier, seed)
        model.fit(X, y)
        return np.array([_score(y, model.predict(X), use_balanced_accuracy)])

    cv = StratifiedKFold(n_splits=num_folds, shuffle=True, random_state=seed)
    scores = []
    for train, test in cv.split(X, y):
        model = make_classifier(classifier, seed)
        model.fit(X[train], y[train])
        scores.append(_score(y[test], model.predict(X[test]), use_balanced_accuracy))
    return np.asarray(scores)


def model_free_null(
    y: np.ndarray,
    num_permutations: int,
    use_balanced_accuracy: bool = False,
    seed: int = 123,
) -> np.ndarray:
    """Accuracy of random relabellings against the true labels."""
    y = np.asarray(y)
    rng = np.random.default_rng(seed)
    return np.array([
        _score(y, rng.permutation(y), use_balanced_accuracy)
        for _ in range(num_permutations)
    ])


def _null_fit(X, y, perm_seed, classifier, use_k_fold, num_folds, use_balanced_accuracy, seed):
    y_perm = np.random.default_rng(perm_seed).permutation(y)
    return float(np.mean(evaluate_accuracy(
        X, y_perm, classifier, use_k_fold, num_folds, use_balanced_accuracy, seed
    )))


def null_model_fits(
    X: np.ndarray,
    y: np.ndarray,
    num_permutations: int,
    classifier: str = 'linear_svm',
    use_k_fold: bool = True,
    num_folds: int = 10,
    use_balanced_accuracy: bool = False,
    seed: int = 123,
    n_jobs: int = 1,
) -> np.ndarray:
    """Mean accuracy of the full evaluation on permuted labels."""
    perm_seeds = np.random.default_rng(seed).integers(0, 2**31 - 1, size=num_permutations)

    if n_jobs == 1:
        null = [
            _null_fit(X, y, s, classifier, use_k_fold, num_folds, use_balanced_accuracy, seed)
            for s in perm_seeds
        ]
    else:
        null = Parallel(n_jobs=n_jobs, prefer="processes")(
            delayed(_null_fit)(X, y, s, classifier, use_k_fold, num_folds, use_balanced_accuracy, seed)
            for s in perm_seeds
        )
    return np.asarray(null, dtype=np.float64)


def compute_p_value(observed: float, null: np.ndarray, method: str = 'empirical') -> float:
    """
    Upper-tail p-value of an observed accuracy against a null sample.

    Args:
        observed: Observed accuracy
        null: Null accuracies
        method: 'empirical' or 'gaussian'

    Returns:
        p-value; empirical values lie in (0, 1], gaussian values in [0, 1]
        (0.0 when the null is degenerate and the observed accuracy exceeds it)
    """
    _check_choice(method, P_VALUE_METHODS, 'p-value method')
    null = np.asarray(null, dtype=np.float64)
    if len(null) == 0:
        return np.nan

    if method == 'empirical':
        return float((1 + np.sum(null >= observed)) / (1 + len(null)))

    mu = float(np.mean(null))
    sd = float(np.std(null, ddof=1)) if len(null) > 1 else 0.0
    if sd < 1e-12:
        return 0.0 if observed > mu else 1.0
    return float(norm.sf(observed, loc=mu, scale=sd))


def build_null(
    X: np.ndarray,
    y: np.ndarray,
    null_testing_method: str,
    num_permutations: int,
    classifier: str,
    use_k_fold: bool,
    num_folds: int,
    use_balanced_accuracy: bool,
    seed: int,
    n_jobs: int = 1,
) -> np.ndarray:
    """Dispatch to the requested null testing method."""
    if null_testing_method == 'model_free_shuffles':
        return model_free_null(y, num_permutations, use_balanced_accuracy, seed)
    return null_model_fits(
        X, y, num_permutations, classifier, use_k_fold, num_folds,
        use_balanced_accuracy, seed, n_jobs,
    )


def labelled_matrix(features: pl.DataFrame) -> Tuple[List, np.ndarray, List[str], np.ndarray]:
    """
    Wide (ids, y, feature_names, X) from a long features table.

    Raises:
        ValueError: If there is no group column or fewer than two groups
    """
    if 'group' not in features.columns:
        raise ValueError("Features table has no 'group' column; class labels are required")

    ids, groups, names, X = feature_arrays(pivot_features(features))
    y = np.asarray([str(g) for g in groups])
    if len(np.unique(y)) < 2:
        raise ValueError(f"Need at least 2 groups to classify, got {len(np.unique(y))}")
    return ids, y, names, X


@dataclass
class ClassificationResult:
    """
    Output of fit_multi_feature_classifier.

    Attributes:
        test_statistics: One row per model (model_name, n_features, accuracy,
            accuracy_std, null_mean, null_std, p_value)
        raw_results: Every score (model_name, kind, iteration, accuracy);
            kind is 'main' for folds and 'null' for permutations
        settings: Arguments the result was computed with
    """
    test_statistics: pl.DataFrame
    raw_results: pl.DataFrame
    settings: Dict[str, Any] = field(default_factory=dict)


def fit_multi_feature_classifier(
    features: pl.DataFrame,
    by_set: bool = False,
    classifier: str = 'linear_svm',
    use_balanced_accuracy: bool = False,
    use_k_fold: bool = True,
    num_folds: int = 10,
    use_empirical_null: bool = False,
    null_testing_method: str = 'model_free_shuffles',
    p_value_method: str = 'empirical',
    num_permutations: int = 100,
    seed: int = 123,
    n_jobs: int = 1,
    verbose: bool = False,
) -> ClassificationResult:
    """
    Fit and evaluate classifiers on the feature matrix.

    Args:
        features: Long features table with a group column
        by_set: Also fit one model per feature set
        classifier: Name in CLASSIFIERS
        use_balanced_accuracy: Balanced accuracy instead of accuracy
        use_k_fold: Stratified k-fold CV (False: in-sample)
        num_folds: Folds (clamped to the smallest group size)
        use_empirical_null: Build a permutation null and compute p-values
        null_testing_method: 'model_free_shuffles' or 'null_model_fits'
        p_value_method: 'empirical' or 'gaussian'
        num_permutations: Null sample size
        seed: Random seed for reproducibility
        n_jobs: joblib workers for null model fits
        verbose: Print one line per model

    Returns:
        ClassificationResult

    Raises:
        KeyError: Unknown classifier / null method / p-value method
        ValueError: Missing labels, < 2 groups, or no usable features
    """
    make_classifier(classifier, seed)
    _check_choice(null_testing_method, NULL_TESTING_METHODS, 'null testing method')
    _check_choice(p_value_method, P_VALUE_METHODS, 'p-value method')

    cleaned = drop_bad_features(features)
    if cleaned.is_empty():
        raise ValueError("No features with all-finite, non-constant values to classify")

    specs = [(ALL_FEATURES, cleaned)]
    if by_set:
        sets = sorted(cleaned['feature_set'].unique().to_list())
        per_set = [(s, cleaned.filter(pl.col('feature_set') == s)) for s in sets]
        specs = ([(ALL_FEATURES, cleaned)] if len(sets) > 1 else []) + per_set

    stat_rows, raw_rows = [], []
    folds = None

    for model_name, subset in specs:
        _, y, names, X = labelled_matrix(subset)
        if folds is None and use_k_fold:
            folds = resolve_num_folds(y, num_folds)

        scores = evaluate_accuracy(
            X, y, classifier, use_k_fold, folds or num_folds, use_balanced_accuracy, seed
        )
        accuracy = float(np.mean(scores))
        raw_rows.extend(
            {'model_name': model_name, 'kind': 'main', 'iteration': i, 'accuracy': float(s)}
            for i, s in enumerate(scores)
        )

        null_mean = null_std = p_value = None
        if use_empirical_null:
            null = build_null(
                X, y, null_testing_method, num_permutations, classifier,
                use_k_fold, folds or num_folds, use_balanced_accuracy, seed, n_jobs,
            )
            null_mean = float(np.mean(null))
            null_std = float(np.std(null, ddof=1)) if len(null) > 1 else 0.0
            p_value = compute_p_value(accuracy, null, p_value_method)
            raw_rows.extend(
                {'model_name': model_name, 'kind': 'null', 'iteration': i, 'accuracy': float(s)}
                for i, s in enumerate(null)
            )

        stat_rows.append({
            'model_name': model_name,
            'n_features': len(names),
            'accuracy': accuracy,
            'accuracy_std': float(np.std(scores, ddof=1)) if len(scores) > 1 else 0.0,
            'null_mean': null_mean,
            'null_std': null_std,
            'p_value': p_value,
        })

        if verbose:
            p_text = f", p={p_value:.4f}" if p_value is not None else ""
            print(f"  {model_name}: accuracy={accuracy:.3f} ({len(names)} features{p_text})")

    test_statistics = pl.DataFrame(stat_rows, schema={
        'model_name': pl.Utf8,
        'n_features': pl.Int64,
        'accuracy': pl.Float64,
        'accuracy_std': pl.Float64,
        'null_mean': pl.Float64,
        'null_std': pl.Float64,
        'p_value': pl.Float64,
    })
    raw_results = pl.DataFrame(raw_rows, schema={
        'model_name': pl.Utf8,
        'kind': pl.Utf8,
        'iteration': pl.Int64,
        'accuracy': pl.Float64,
    })

    settings = {
        'by_set': by_set,
        'classifier': classifier,
        'use_balanced_accuracy': use_balanced_accuracy,
        'use_k_fold': use_k_fold,
        'num_folds': folds if use_k_fold else None,
        'use_empirical_null': use_empirical_null,
        'null_testing_method': null_testing_method if use_empirical_null else None,
        'p_value_method': p_value_method if use_empirical_null else None,
        'num_permutations': num_permutations if use_empirical_null else 0,
        'seed': seed,
    }

    return ClassificationResult(
        test_statistics=test_statistics,
        raw_results=raw_results,
        settings=settings,
    )
