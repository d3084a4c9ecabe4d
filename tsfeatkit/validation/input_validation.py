"""
Input Data Validation

Validates a tidy observations table before feature extraction.
Flags CONSTANT series, which carry no information for any feature.

PRINCIPLE: "CONSTANT series have zero variance = zero information"

Usage:
    from tsfeatkit.validation import validate_observations, filter_constant_series

    report = validate_observations(df, require_group=True)
    df = filter_constant_series(df)
"""

from dataclasses import dataclass, field
from typing import Dict, List, Any, Optional

import polars as pl


class ValidationError(Exception):
    """Raised when input validation fails."""

    def __init__(self, errors: List[str], warnings: List[str] = None):
        self.errors = errors
        self.warnings = warnings or []

        message = "Input validation failed:\n" + "\n".join(
            f"  ERROR: {e}" for e in errors
        )
        if warnings:
            message += "\n" + "\n".join(f"  WARNING: {w}" for w in warnings)

        super().__init__(message)


@dataclass
class InputValidationReport:
    """Report from input validation."""

    valid: bool = True
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    # Counts
    total_series: int = 0
    constant_series: int = 0
    short_series: int = 0
    total_observations: int = 0
    n_groups: int = 0

    # Series lists
    constant_series_ids: List[str] = field(default_factory=list)
    short_series_ids: List[str] = field(default_factory=list)
    group_sizes: Dict[str, int] = field(default_factory=dict)

    def summary(self) -> str:
        """Human-readable summary."""
        lines = [
            "=" * 60,
            "INPUT VALIDATION REPORT",
            "=" * 60,
            "",
            f"Total series: {self.total_series}",
            f"  CONSTANT: {self.constant_series}",
            f"  Short: {self.short_series}",
            f"Total observations: {self.total_observations:,}",
            f"Groups: {self.n_groups}",
        ]
        for group, size in sorted(self.group_sizes.items()):
            lines.append(f"  {group}: {size} series")
        lines.append("")

        if self.constant_series_ids:
            lines.append(f"CONSTANT series ({len(self.constant_series_ids)}):")
            for sid in self.constant_series_ids[:10]:
                lines.append(f"  - {sid}")
            if len(self.constant_series_ids) > 10:
                lines.append(f"  ... and {len(self.constant_series_ids) - 10} more")
            lines.append("")

        if self.errors:
            lines.append("ERRORS:")
            for e in self.errors:
                lines.append(f"  - {e}")
            lines.append("")

        if self.warnings:
            lines.append("WARNINGS:")
            for w in self.warnings:
                lines.append(f"  - {w}")
            lines.append("")

        status = "PASSED" if self.valid else "FAILED"
        lines.append(f"Status: {status}")
        lines.append("=" * 60)

        return "\n".join(lines)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to serializable dict."""
        return {
            'valid': self.valid,
            'errors': self.errors,
            'warnings': self.warnings,
            'total_series': self.total_series,
            'constant_series': self.constant_series,
            'short_series': self.short_series,
            'total_observations': self.total_observations,
            'n_groups': self.n_groups,
            'constant_series_ids': self.constant_series_ids,
            'short_series_ids': self.short_series_ids,
            'group_sizes': self.group_sizes,
        }


def get_constant_series(
    df: pl.DataFrame,
    id_var: str = 'id',
    value_var: str = 'value',
) -> List[str]:
    """
    IDs of series with fewer than two distinct finite values.

    Returns:
        Sorted list of series ids (as strings)
    """
    finite = pl.col(value_var).cast(pl.Float64)
    stats = (
        df
        .group_by(id_var)
        .agg(finite.filter(finite.is_finite()).n_unique().alias('_n_distinct'))
        .filter(pl.col('_n_distinct') < 2)
    )
    return sorted(str(v) for v in stats[id_var].to_list())


def filter_constant_series(
    df: pl.DataFrame,
    id_var: str = 'id',
    value_var: str = 'value',
    verbose: bool = False,
) -> pl.DataFrame:
    """
    Remove CONSTANT series from an observations table.

    CONSTANT series have zero variance and yield degenerate features
    everywhere; they are excluded before extraction.

    Args:
        df: Tidy observations table
        id_var: Series identifier column
        value_var: Value column
        verbose: Print filtered series

    Returns:
        Observations without CONSTANT series
    """
    constant_ids = get_constant_series(df, id_var, value_var)
    if not constant_ids:
        return df

    if verbose:
        for sid in constant_ids:
            print(f"  Filtered CONSTANT: {sid}")
        print(f"Filtered {len(constant_ids)} CONSTANT series")

    return df.filter(~pl.col(id_var).cast(pl.Utf8).is_in(constant_ids))


def validate_observations(
    df: pl.DataFrame,
    id_var: str = 'id',
    time_var: str = 'timepoint',
    value_var: str = 'value',
    group_var: Optional[str] = 'group',
    min_length: int = 4,
    require_group: bool = False,
    raise_on_error: bool = True,
    verbose: bool = False,
) -> InputValidationReport:
    """
    Validate a tidy observations table.

    Checks:
        1. Required columns exist and the value column is numeric
        2. No null ids, no duplicate (id, time) pairs
        3. Each id carries exactly one group label
        4. Identifies CONSTANT, short and NaN-bearing series (warnings)

    Args:
        df: Tidy observations table
        id_var: Series identifier column
        time_var: Time column
        value_var: Value column
        group_var: Class-label column
        min_length: Series shorter than this are reported
        require_group: The group column must be present
        raise_on_error: If True, raise ValidationError on failure
        verbose: If True, print the report

    Returns:
        InputValidationReport with validation results

    Raises:
        ValidationError: If validation fails and raise_on_error=True
    """
    report = InputValidationReport()
    report.total_observations = len(df)

    required = [id_var, time_var, value_var]
    if require_group and group_var:
        required.append(group_var)
    missing_cols = [c for c in required if c not in df.columns]
    if missing_cols:
        report.errors.append(f"Missing required columns: {missing_cols}")

    if value_var in df.columns and not df.schema[value_var].is_numeric():
        report.errors.append(f"Column '{value_var}' is {df.schema[value_var]}, expected numeric")

    if id_var in df.columns:
        report.total_series = df[id_var].n_unique()

        null_ids = df[id_var].null_count()
        if null_ids > 0:
            report.errors.append(f"{null_ids:,} null values in '{id_var}'")

        if time_var in df.columns:
            n_dupes = len(df) - df.select([id_var, time_var]).unique().height
            if n_dupes > 0:
                report.errors.append(f"{n_dupes:,} duplicate ({id_var}, {time_var}) rows")

        has_group = bool(group_var) and group_var in df.columns
        if has_group:
            per_id = df.group_by(id_var).agg(pl.col(group_var).n_unique().alias('_n'))
            multi = per_id.filter(pl.col('_n') > 1)
            if multi.height > 0:
                report.errors.append(f"{multi.height} series carry more than one '{group_var}' label")

            sizes = (
                df.select([id_var, group_var]).unique(subset=[id_var], keep='first')
                .group_by(group_var).agg(pl.len().alias('n'))
            )
            report.group_sizes = {str(g): int(n) for g, n in sizes.iter_rows()}
            report.n_groups = len(report.group_sizes)
            small = sorted(g for g, n in report.group_sizes.items() if n < 2)
            if small:
                report.warnings.append(f"Groups with fewer than 2 series: {small}")

        if value_var in df.columns and df.schema[value_var].is_numeric():
            value = pl.col(value_var).cast(pl.Float64)
            lengths = df.group_by(id_var).agg(
                value.filter(value.is_finite()).len().alias('_len')
            )
            short = lengths.filter(pl.col('_len') < min_length)
            report.short_series_ids = sorted(str(v) for v in short[id_var].to_list())
            report.short_series = len(report.short_series_ids)
            if report.short_series:
                report.warnings.append(
                    f"{report.short_series} series shorter than {min_length} finite values"
                )

            report.constant_series_ids = get_constant_series(df, id_var, value_var)
            report.constant_series = len(report.constant_series_ids)
            if report.constant_series:
                report.warnings.append(f"{report.constant_series} CONSTANT series")

            n_bad = df.filter(~value.is_finite() | value.is_null()).height
            if n_bad > 0:
                pct = 100.0 * n_bad / len(df)
                report.warnings.append(f"{n_bad:,} NaN/null/infinite values ({pct:.1f}%)")

    report.valid = not report.errors

    if verbose:
        print(report.summary())

    if not report.valid and raise_on_error:
        raise ValidationError(report.errors, report.warnings)

    return report
