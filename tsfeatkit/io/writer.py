"""
Writer: all parquet and figure writes go through here.

No other module should call df.write_parquet or fig.savefig directly.
"""

import polars as pl
from pathlib import Path

import matplotlib.pyplot as plt

from tsfeatkit.io.reader import output_path


def _safe_write(df: pl.DataFrame, path: Path, verbose: bool = True) -> bool:
    """
    Guard against writing invalid parquet files.

    Returns True if a file was written, False if skipped.
    """
    if df is None:
        return False

    if len(df.columns) == 0:
        if verbose:
            print(f"  !! Skipped {path} (empty schema, 0 columns)")
        return False

    if df.height == 0:
        # Schema-only parquet: downstream stages read an empty table
        df.head(0).write_parquet(str(path))
        return True

    df.write_parquet(str(path))
    return True


def write_output(
    df: pl.DataFrame,
    output_dir: str,
    name: str,
    verbose: bool = True,
) -> Path:
    """
    Write a stage output to the correct subdirectory.

    Args:
        df: DataFrame to write (None or empty-schema → skip)
        output_dir: Root output directory
        name: Output name (e.g., 'features', 'top_features')
        verbose: Print path on write

    Returns:
        Path to written file, or None if skipped
    """
    path = output_path(output_dir, name)

    if not _safe_write(df, path, verbose=verbose):
        return None

    if verbose:
        print(f"  -> {path} ({len(df)} rows)")

    return path


def write_figure(fig, output_dir: str, name: str, verbose: bool = True, dpi: int = 150) -> Path:
    """
    Save a matplotlib figure under figures/ and close it.

    Args:
        fig: matplotlib Figure (None → skip)
        output_dir: Root output directory
        name: Figure name (e.g., 'quality_matrix')
        verbose: Print path on write
        dpi: Resolution

    Returns:
        Path to written file, or None if skipped
    """
    if fig is None:
        return None

    path = output_path(output_dir, name)
    fig.savefig(str(path), dpi=dpi, bbox_inches='tight')
    plt.close(fig)

    if verbose:
        print(f"  -> {path} (figure)")

    return path
