"""
Tests for MATLAB time-series file loading.
"""

import numpy as np
import polars as pl
import pytest
from scipy.io import savemat

from tsfeatkit.io.matfile import read_mat_file
from tsfeatkit.io.reader import load_observations


def _cell(items):
    """1-D object array, saved by savemat as a MATLAB cell array."""
    cell = np.empty(len(items), dtype=object)
    for k, item in enumerate(items):
        cell[k] = item
    return cell


@pytest.fixture
def hctsa_file(tmp_path):
    path = tmp_path / "INP_test.mat"
    savemat(str(path), {
        "timeSeriesData": _cell([np.arange(5.0), np.arange(8.0) * 2, np.array([1.0, 4.0, 9.0])]),
        "labels": _cell(["ts_a", "ts_b", "ts_c"]),
        "keywords": _cell(["eyesOpen,healthy", "eyesClosed,healthy", "eyesOpen,seizure"]),
    })
    return path


class TestReadMatFile:
    """Cell-array and matrix layouts."""

    def test_cell_array_to_tidy(self, hctsa_file):
        df = read_mat_file(hctsa_file)

        assert df.columns == ["id", "timepoint", "value", "group"]
        assert len(df) == 5 + 8 + 3
        assert df["id"].unique().sort().to_list() == ["ts_a", "ts_b", "ts_c"]

    def test_timepoints_are_one_based(self, hctsa_file):
        df = read_mat_file(hctsa_file)
        b = df.filter(pl.col("id") == "ts_b")

        assert b["timepoint"].to_list() == list(range(1, 9))
        assert b["value"].to_list() == [2.0 * k for k in range(8)]

    def test_full_keyword_is_group(self, hctsa_file):
        df = read_mat_file(hctsa_file)
        groups = df.unique(subset=["id"]).sort("id")["group"].to_list()

        assert groups == ["eyesOpen,healthy", "eyesClosed,healthy", "eyesOpen,seizure"]

    def test_keyword_index_selects_component(self, hctsa_file):
        df = read_mat_file(hctsa_file, keyword_index=1)
        groups = df.unique(subset=["id"]).sort("id")["group"].to_list()

        assert groups == ["healthy", "healthy", "seizure"]

    def test_custom_column_names(self, hctsa_file):
        df = read_mat_file(hctsa_file, id_var="name", time_var="t", value_var="x", group_var="label")
        assert df.columns == ["name", "t", "x", "label"]

    def test_numeric_matrix_without_labels(self, tmp_path):
        path = tmp_path / "matrix.mat"
        savemat(str(path), {"timeSeriesData": np.random.default_rng(0).normal(size=(4, 10))})

        df = read_mat_file(path)

        assert "group" not in df.columns
        assert df["id"].unique().sort().to_list() == ["series_1", "series_2", "series_3", "series_4"]
        assert len(df) == 40

    def test_missing_time_series_data(self, tmp_path):
        path = tmp_path / "empty.mat"
        savemat(str(path), {"labels": _cell(["a"])})

        with pytest.raises(KeyError, match="timeSeriesData"):
            read_mat_file(path)

    def test_label_count_mismatch(self, tmp_path):
        path = tmp_path / "bad.mat"
        savemat(str(path), {
            "timeSeriesData": _cell([np.arange(5.0), np.arange(6.0)]),
            "labels": _cell(["only_one", "two", "three"]),
        })

        with pytest.raises(ValueError, match="labels"):
            read_mat_file(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            read_mat_file(tmp_path / "nope.mat")


class TestLoadObservations:
    """Suffix dispatch."""

    def test_mat_dispatch(self, hctsa_file):
        df = load_observations(str(hctsa_file), keyword_index=0)
        assert set(df["group"].unique().to_list()) == {"eyesOpen", "eyesClosed"}

    def test_parquet_and_csv_roundtrip(self, tmp_path, hctsa_file):
        df = read_mat_file(hctsa_file)
        df.write_parquet(str(tmp_path / "obs.parquet"))
        df.write_csv(str(tmp_path / "obs.csv"))

        from_parquet = load_observations(str(tmp_path / "obs.parquet"))
        from_csv = load_observations(str(tmp_path / "obs.csv"))

        assert from_parquet.shape == df.shape
        assert from_csv.shape == df.shape
        assert from_csv.sort(["id", "timepoint"])["value"].to_list() == \
            df.sort(["id", "timepoint"])["value"].to_list()

    def test_directory_lookup(self, tmp_path, hctsa_file):
        read_mat_file(hctsa_file).write_parquet(str(tmp_path / "observations.parquet"))
        df = load_observations(str(tmp_path))
        assert len(df) == 16

    def test_unsupported_suffix(self, tmp_path):
        path = tmp_path / "obs.json"
        path.write_text("{}")
        with pytest.raises(ValueError, match="Unsupported"):
            load_observations(str(path))
