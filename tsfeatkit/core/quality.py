"""
Feature Quality
===============

Classifies every computed feature value as good / nan / inf / -inf and
summarises quality per feature. A feature is CONSTANT when fewer than two
distinct finite values exist across series: zero variance carries zero
information for any downstream comparison.
"""

from typing import List

import polars as pl

QUALITY_LEVELS: List[str] = ['good', 'nan', 'inf', '-inf']

FEATURE_KEYS = ['feature_set', 'feature']


def classify_quality(features: pl.DataFrame) -> pl.DataFrame:
    """
    Add a 'quality' column to a long features table.

    Args:
        features: Long table with a 'value' column

    Returns:
        Same table with quality in {'good', 'nan', 'inf', '-inf'}
    """
    value = pl.col('value')
    return features.with_columns(
        pl.when(value.is_null() | value.is_nan()).then(pl.lit('nan'))
        .when(value.is_infinite() & (value > 0)).then(pl.lit('inf'))
        .when(value.is_infinite()).then(pl.lit('-inf'))
        .otherwise(pl.lit('good'))
        .alias('quality')
    )


def summarise_quality(features: pl.DataFrame) -> pl.DataFrame:
    """
    Per-feature quality counts.

    Returns:
        DataFrame with feature_set, feature, n_good, n_nan, n_inf, n_neg_inf,
        n_total, prop_good, is_constant, sorted by prop_good ascending
    """
    labelled = classify_quality(features)
    good = pl.col('quality') == 'good'

    return (
        labelled
        .group_by(FEATURE_KEYS)
        .agg([
            good.sum().cast(pl.UInt32).alias('n_good'),
            (pl.col('quality') == 'nan').sum().cast(pl.UInt32).alias('n_nan'),
            (pl.col('quality') == 'inf').sum().cast(pl.UInt32).alias('n_inf'),
            (pl.col('quality') == '-inf').sum().cast(pl.UInt32).alias('n_neg_inf'),
            pl.len().cast(pl.UInt32).alias('n_total'),
            pl.col('value').filter(good).n_unique().alias('_n_distinct'),
        ])
        .with_columns([
            (pl.col('n_good') / pl.col('n_total')).alias('prop_good'),
            (pl.col('_n_distinct') < 2).alias('is_constant'),
        ])
        .drop('_n_distinct')
        .sort(['prop_good', 'feature_set', 'feature'])
    )


def quality_matrix(features: pl.DataFrame) -> pl.DataFrame:
    """
    Long proportion table for the quality-matrix plot.

    Returns:
        DataFrame with feature_set, feature, quality, proportion, one row
        per feature and quality level (zero proportions included)
    """
    labelled = classify_quality(features)
    counts = (
        labelled
        .group_by(FEATURE_KEYS + ['quality'])
        .agg(pl.len().alias('count'))
    )
    totals = labelled.group_by(FEATURE_KEYS).agg(pl.len().alias('n_total'))

    grid = totals.select(FEATURE_KEYS).join(
        pl.DataFrame({'quality': QUALITY_LEVELS}), how='cross'
    )

    return (
        grid
        .join(counts, on=FEATURE_KEYS + ['quality'], how='left')
        .join(totals, on=FEATURE_KEYS, how='left')
        .with_columns(
            (pl.col('count').fill_null(0) / pl.col('n_total')).alias('proportion')
        )
        .select(FEATURE_KEYS + ['quality', 'proportion'])
        .sort(FEATURE_KEYS + ['quality'])
    )


def drop_bad_features(features: pl.DataFrame, allow_constant: bool = False) -> pl.DataFrame:
    """
    Remove features with any non-finite value (and constant ones unless allowed).

    Args:
        features: Long features table
        allow_constant: Keep zero-variance features

    Returns:
        Filtered long features table
    """
    summary = summarise_quality(features)
    keep = pl.col('n_good') == pl.col('n_total')
    if not allow_constant:
        keep = keep & ~pl.col('is_constant')

    kept = summary.filter(keep).select(FEATURE_KEYS)
    return features.join(kept, on=FEATURE_KEYS, how='semi')
