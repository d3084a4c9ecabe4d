"""
Normalization Engine
====================

Pure computation engine for feature normalization.
Supports multiple methods with trade-offs for different distributions.

Methods:
- zscore: (x - mean) / std - assumes Gaussian, sensitive to outliers
- robust: (x - median) / IQR - robust to outliers
- mad: (x - median) / MAD - most robust, works for heavy-tailed distributions
- minmax: Scale to [0, 1] range - preserves distribution shape
- maxabs: x / max|x| - preserves sign and sparsity
- sigmoid: logistic of the z-score - squashes outliers into (0, 1)
- robust_sigmoid: logistic of (x - median) / (IQR / 1.35) - outlier-robust squashing

Non-finite inputs (NaN, +/-inf) are ignored when estimating parameters and
come out as NaN.
"""

import numpy as np
import polars as pl
from typing import Dict, Any, Optional, Tuple
from enum import Enum


class NormMethod(str, Enum):
    """Normalization methods."""
    ZSCORE = "zscore"
    ROBUST = "robust"
    MAD = "mad"
    MINMAX = "minmax"
    MAXABS = "maxabs"
    SIGMOID = "sigmoid"
    ROBUST_SIGMOID = "robust_sigmoid"
    NONE = "none"


# MAD scale factor for consistency with std (assuming Gaussian)
# For normal distribution: std ≈ 1.4826 * MAD
MAD_SCALE_FACTOR = 1.4826

# IQR of a standard normal ≈ 1.35
IQR_SCALE_FACTOR = 1.35


def _finite(data: np.ndarray) -> np.ndarray:
    data = np.asarray(data, dtype=np.float64)
    return np.where(np.isfinite(data), data, np.nan)


def _squeeze(param, axis):
    return np.squeeze(param) if axis is not None else param


def compute_zscore(
    data: np.ndarray,
    axis: Optional[int] = 0,
    ddof: int = 1
) -> Tuple[np.ndarray, Dict[str, np.ndarray]]:
    """
    Z-score normalization: (x - mean) / std

    Args:
        data: Input array (N x D for axis=0 normalizes each column)
        axis: Axis along which to compute statistics (0=columns, 1=rows, None=global)
        ddof: Degrees of freedom for std calculation

    Returns:
        Tuple of (normalized_data, params_dict)
        params_dict contains 'mean' and 'std' for inverse transform
    """
    data = _finite(data)

    mean = np.nanmean(data, axis=axis, keepdims=True)
    std = np.nanstd(data, axis=axis, ddof=ddof, keepdims=True)

    # Constant features are only centred
    std = np.where(~np.isfinite(std) | (std < 1e-10), 1.0, std)

    normalized = (data - mean) / std

    params = {
        'method': 'zscore',
        'mean': _squeeze(mean, axis),
        'std': _squeeze(std, axis),
    }

    return normalized, params


def compute_robust(
    data: np.ndarray,
    axis: Optional[int] = 0,
    quantile_range: Tuple[float, float] = (25.0, 75.0)
) -> Tuple[np.ndarray, Dict[str, np.ndarray]]:
    """
    Robust normalization: (x - median) / IQR

    Args:
        data: Input array
        axis: Axis along which to compute statistics
        quantile_range: Quantiles for IQR (default 25th-75th)

    Returns:
        Tuple of (normalized_data, params_dict)
    """
    data = _finite(data)

    median = np.nanmedian(data, axis=axis, keepdims=True)

    q_low, q_high = quantile_range
    q1 = np.nanpercentile(data, q_low, axis=axis, keepdims=True)
    q3 = np.nanpercentile(data, q_high, axis=axis, keepdims=True)
    iqr = q3 - q1

    iqr = np.where(~np.isfinite(iqr) | (iqr < 1e-10), 1.0, iqr)

    normalized = (data - median) / iqr

    params = {
        'method': 'robust',
        'median': _squeeze(median, axis),
        'iqr': _squeeze(iqr, axis),
    }

    return normalized, params


def compute_mad(
    data: np.ndarray,
    axis: Optional[int] = 0,
    scale: bool = True
) -> Tuple[np.ndarray, Dict[str, np.ndarray]]:
    """
    MAD normalization: (x - median) / MAD

    MAD = Median Absolute Deviation = median(|x - median(x)|)

    Args:
        data: Input array
        axis: Axis along which to compute statistics
        scale: If True, scale MAD to be consistent with std for Gaussian

    Returns:
        Tuple of (normalized_data, params_dict)
    """
    data = _finite(data)

    median = np.nanmedian(data, axis=axis, keepdims=True)
    mad = np.nanmedian(np.abs(data - median), axis=axis, keepdims=True)

    if scale:
        mad = mad * MAD_SCALE_FACTOR

    mad = np.where(~np.isfinite(mad) | (mad < 1e-10), 1.0, mad)

    normalized = (data - median) / mad

    params = {
        'method': 'mad',
        'median': _squeeze(median, axis),
        'mad': _squeeze(mad, axis),
        'scaled': scale,
    }

    return normalized, params


def compute_minmax(
    data: np.ndarray,
    axis: Optional[int] = 0,
    feature_range: Tuple[float, float] = (0.0, 1.0)
) -> Tuple[np.ndarray, Dict[str, np.ndarray]]:
    """
    Min-max normalization: scale to [min, max] range.

    Args:
        data: Input array
        axis: Axis along which to compute statistics
        feature_range: Output range (default [0, 1])

    Returns:
        Tuple of (normalized_data, params_dict)
    """
    data = _finite(data)
    new_min, new_max = feature_range

    data_min = np.nanmin(data, axis=axis, keepdims=True)
    data_max = np.nanmax(data, axis=axis, keepdims=True)
    data_range = data_max - data_min

    data_range = np.where(~np.isfinite(data_range) | (data_range < 1e-10), 1.0, data_range)

    normalized = (data - data_min) / data_range
    normalized = normalized * (new_max - new_min) + new_min

    params = {
        'method': 'minmax',
        'data_min': _squeeze(data_min, axis),
        'data_max': _squeeze(data_max, axis),
        'feature_range': feature_range,
    }

    return normalized, params


def compute_maxabs(
    data: np.ndarray,
    axis: Optional[int] = 0,
) -> Tuple[np.ndarray, Dict[str, np.ndarray]]:
    """
    Max-abs normalization: x / max|x|, output in [-1, 1].

    Args:
        data: Input array
        axis: Axis along which to compute statistics

    Returns:
        Tuple of (normalized_data, params_dict)
    """
    data = _finite(data)

    max_abs = np.nanmax(np.abs(data), axis=axis, keepdims=True)
    max_abs = np.where(~np.isfinite(max_abs) | (max_abs < 1e-10), 1.0, max_abs)

    params = {
        'method': 'maxabs',
        'max_abs': _squeeze(max_abs, axis),
    }

    return data / max_abs, params


def compute_sigmoid(
    data: np.ndarray,
    axis: Optional[int] = 0,
) -> Tuple[np.ndarray, Dict[str, np.ndarray]]:
    """
    Sigmoid normalization: 1 / (1 + exp(-(x - mean) / std)).

    Args:
        data: Input array
        axis: Axis along which to compute statistics

    Returns:
        Tuple of (normalized_data, params_dict)
    """
    z, params = compute_zscore(data, axis=axis)
    params['method'] = 'sigmoid'
    return 1.0 / (1.0 + np.exp(-z)), params


def compute_robust_sigmoid(
    data: np.ndarray,
    axis: Optional[int] = 0,
) -> Tuple[np.ndarray, Dict[str, np.ndarray]]:
    """
    Outlier-robust sigmoid: 1 / (1 + exp(-(x - median) / (IQR / 1.35))).

    Args:
        data: Input array
        axis: Axis along which to compute statistics

    Returns:
        Tuple of (normalized_data, params_dict)
    """
    data = _finite(data)

    median = np.nanmedian(data, axis=axis, keepdims=True)
    q1 = np.nanpercentile(data, 25.0, axis=axis, keepdims=True)
    q3 = np.nanpercentile(data, 75.0, axis=axis, keepdims=True)
    scale = (q3 - q1) / IQR_SCALE_FACTOR
    scale = np.where(~np.isfinite(scale) | (scale < 1e-10), 1.0, scale)

    params = {
        'method': 'robust_sigmoid',
        'median': _squeeze(median, axis),
        'scale': _squeeze(scale, axis),
    }

    return 1.0 / (1.0 + np.exp(-(data - median) / scale)), params


_METHODS = {
    NormMethod.ZSCORE.value: compute_zscore,
    NormMethod.ROBUST.value: compute_robust,
    NormMethod.MAD.value: compute_mad,
    NormMethod.MINMAX.value: compute_minmax,
    NormMethod.MAXABS.value: compute_maxabs,
    NormMethod.SIGMOID.value: compute_sigmoid,
    NormMethod.ROBUST_SIGMOID.value: compute_robust_sigmoid,
}


_ALIASES = {
    'z_score': NormMethod.ZSCORE.value,
    'min_max': NormMethod.MINMAX.value,
    'max_abs': NormMethod.MAXABS.value,
}


def _method_name(method) -> str:
    name = method.value if isinstance(method, NormMethod) else str(method)
    name = name.lower().replace('-', '_')
    return _ALIASES.get(name, name)


def normalize(
    data: np.ndarray,
    method: str = "zscore",
    axis: Optional[int] = 0,
    unit_interval: bool = False,
    **kwargs
) -> Tuple[np.ndarray, Dict[str, Any]]:
    """
    Unified normalization interface.

    Args:
        data: Input array
        method: One of NormMethod values ('z-score' style spellings accepted)
        axis: Axis along which to compute (0=columns, 1=rows, None=global)
        unit_interval: Rescale the result to [0, 1] along axis
        **kwargs: Method-specific parameters

    Returns:
        Tuple of (normalized_data, params_dict)

    Example:
        >>> data = np.array([[1, 2], [3, 100], [5, 6]])  # Note outlier in col 2
        >>> norm_z, _ = normalize(data, method='zscore')  # Outlier compresses scale
        >>> norm_rs, _ = normalize(data, method='robust_sigmoid')  # Outlier squashed
    """
    name = _method_name(method)

    if name == NormMethod.NONE.value:
        normalized, params = _finite(data).copy(), {'method': 'none'}
    elif name in _METHODS:
        normalized, params = _METHODS[name](data, axis=axis, **kwargs)
    else:
        raise KeyError(
            f"Unknown normalization method: {method}. "
            f"Use one of: {', '.join(m.value for m in NormMethod)}"
        )

    if unit_interval:
        normalized, _ = compute_minmax(normalized, axis=axis)
        params['unit_interval'] = True

    return normalized, params


def normalise_features(
    features: pl.DataFrame,
    method: str = "zscore",
    unit_interval: bool = False,
) -> pl.DataFrame:
    """
    Normalise a long features table per feature, across series.

    Args:
        features: Long table with feature_set, feature, value
        method: Normalization method
        unit_interval: Rescale each feature to [0, 1] afterwards

    Returns:
        Same table (same row order) with normalised 'value'
    """
    if features.is_empty():
        return features

    keyed = features.with_row_index('_row')
    parts = []
    for _, part in keyed.group_by(['feature_set', 'feature'], maintain_order=True):
        values, _ = normalize(
            part['value'].to_numpy(), method=method, axis=0, unit_interval=unit_interval
        )
        parts.append(part.with_columns(pl.Series('value', values, dtype=pl.Float64)))

    return pl.concat(parts).sort('_row').drop('_row')
