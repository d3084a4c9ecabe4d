"""
Tests for observation validation and stage prerequisites.
"""

import numpy as np
import polars as pl
import pytest

from tsfeatkit.validation import (
    InputValidationReport,
    PrerequisiteError,
    ValidationError,
    check_prerequisites,
    filter_constant_series,
    get_constant_series,
    validate_observations,
)


def _obs(series, groups=None):
    rows = []
    for sid, values in series.items():
        for t, v in enumerate(values, start=1):
            row = {"id": sid, "timepoint": t, "value": float(v)}
            if groups is not None:
                row["group"] = groups[sid]
            rows.append(row)
    return pl.DataFrame(rows)


class TestValidateObservations:
    def test_clean_input_passes(self, observations):
        report = validate_observations(observations, require_group=True)

        assert report.valid
        assert report.errors == []
        assert report.total_series == 32
        assert report.n_groups == 4
        assert set(report.group_sizes.values()) == {8}

    def test_missing_columns(self):
        df = pl.DataFrame({"id": ["a"], "value": [1.0]})
        with pytest.raises(ValidationError, match="Missing required columns"):
            validate_observations(df)

    def test_missing_group_when_required(self):
        df = _obs({"a": [1, 2, 3, 4]})
        report = validate_observations(df, require_group=True, raise_on_error=False)
        assert not report.valid

    def test_non_numeric_values(self):
        df = pl.DataFrame({"id": ["a", "a"], "timepoint": [1, 2], "value": ["x", "y"]})
        report = validate_observations(df, raise_on_error=False)
        assert any("expected numeric" in e for e in report.errors)

    def test_duplicate_timepoints(self):
        df = pl.DataFrame({"id": ["a", "a"], "timepoint": [1, 1], "value": [1.0, 2.0]})
        with pytest.raises(ValidationError, match="duplicate"):
            validate_observations(df)

    def test_series_with_two_groups(self):
        df = pl.DataFrame({
            "id": ["a", "a"], "timepoint": [1, 2], "value": [1.0, 2.0], "group": ["x", "y"],
        })
        with pytest.raises(ValidationError, match="more than one"):
            validate_observations(df)

    def test_warnings_do_not_fail(self):
        df = _obs(
            {"flat": [3, 3, 3, 3, 3], "short": [1, 2], "gappy": [1, np.nan, 3, 4, 5]},
            groups={"flat": "g1", "short": "g1", "gappy": "g2"},
        )
        report = validate_observations(df)

        assert report.valid
        assert report.constant_series_ids == ["flat"]
        assert "short" in report.short_series_ids
        assert any("CONSTANT" in w for w in report.warnings)
        assert any("NaN" in w for w in report.warnings)
        assert any("fewer than 2 series" in w for w in report.warnings)

    def test_summary_and_dict(self):
        df = _obs({"a": [1, 1, 1, 1], "b": [1, 2, 3, 4]})
        report = validate_observations(df)

        text = report.summary()
        assert "INPUT VALIDATION REPORT" in text
        assert "Status: PASSED" in text
        assert report.to_dict()["constant_series_ids"] == ["a"]


class TestConstantSeries:
    def test_get_constant_series(self):
        df = _obs({"a": [2, 2, 2], "b": [1, 2, 3], "c": [np.nan, 5, 5]})
        assert get_constant_series(df) == ["a", "c"]

    def test_filter(self, capsys):
        df = _obs({"a": [2, 2, 2], "b": [1, 2, 3]})
        filtered = filter_constant_series(df, verbose=True)

        assert filtered["id"].unique().to_list() == ["b"]
        assert "Filtered CONSTANT: a" in capsys.readouterr().out

    def test_filter_noop(self):
        df = _obs({"b": [1, 2, 3]})
        assert filter_constant_series(df) is df


class TestPrerequisites:
    def test_missing_features(self, tmp_path):
        with pytest.raises(PrerequisiteError) as exc:
            check_prerequisites("classification", str(tmp_path))
        assert exc.value.missing_files == ["features/features.parquet"]

    def test_satisfied(self, tmp_path):
        (tmp_path / "features").mkdir()
        (tmp_path / "features" / "features.parquet").touch()

        result = check_prerequisites("top_features", str(tmp_path))
        assert result["satisfied"]
        assert result["present"] == ["features/features.parquet"]

    def test_no_raise(self, tmp_path):
        result = check_prerequisites("quality", str(tmp_path), raise_on_missing=False)
        assert not result["satisfied"]

    def test_features_stage_has_no_requirements(self, tmp_path):
        assert check_prerequisites("features", str(tmp_path))["satisfied"]

    def test_unknown_stage(self, tmp_path):
        with pytest.raises(ValueError):
            check_prerequisites("clustering", str(tmp_path))


def test_default_report_is_valid():
    assert InputValidationReport().valid
