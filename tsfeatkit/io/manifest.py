"""
Manifest: parse manifest.yaml into stage config.
"""

import copy
import yaml
from pathlib import Path
from typing import Dict, Any, Optional


DEFAULT_CONFIG: Dict[str, Any] = {
    'paths': {
        'observations': 'observations.mat',
        'output_dir': 'output',
    },
    'columns': {
        'id': 'id',
        'time': 'timepoint',
        'value': 'value',
        'group': 'group',
    },
    'load': {
        'keyword_index': None,
        'min_length': 4,
        'drop_constant': False,
    },
    'features': {
        'sets': None,           # None = every registered feature set
        'z_score_series': False,
        'n_jobs': 1,
    },
    'normalise': {
        'method': 'zscore',
        'unit_interval': False,
    },
    'feature_matrix': {
        'clust_method': 'average',
    },
    'low_dimension': {
        'method': 'pca',
        'perplexity': 30,
        'seed': 123,
    },
    'classification': {
        'by_set': True,
        'classifier': 'linear_svm',
        'use_balanced_accuracy': False,
        'use_k_fold': True,
        'num_folds': 10,
        'use_empirical_null': True,
        'null_testing_method': 'model_free_shuffles',
        'p_value_method': 'empirical',
        'num_permutations': 100,
        'seed': 123,
        'n_jobs': 1,
    },
    'top_features': {
        'num_features': 40,
        'test_method': 'linear_svm',
        'use_balanced_accuracy': False,
        'use_k_fold': True,
        'num_folds': 10,
        'use_empirical_null': True,
        'null_testing_method': 'model_free_shuffles',
        'p_value_method': 'empirical',
        'num_permutations': 100,
        'pool_empirical_null': False,
        'correlation_method': 'pearson',
        'clust_method': 'average',
        'seed': 123,
    },
}


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in (override or {}).items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_manifest(data_path: str) -> Dict[str, Any]:
    """
    Load manifest.yaml from a data directory, merged over DEFAULT_CONFIG.

    Tries:
        1. data_path/manifest.yaml
        2. data_path itself (if it's a .yaml file)
    """
    p = Path(data_path)

    if p.is_file() and p.suffix in ('.yaml', '.yml'):
        manifest_path = p
    else:
        manifest_path = p / 'manifest.yaml'

    if not manifest_path.exists():
        raise FileNotFoundError(f"No manifest.yaml in {data_path}")

    with open(manifest_path) as f:
        raw = yaml.safe_load(f) or {}

    if not isinstance(raw, dict):
        raise ValueError(f"{manifest_path} must hold a mapping, got {type(raw).__name__}")

    manifest = _deep_merge(DEFAULT_CONFIG, raw)

    # Stash the manifest path for resolving relative paths
    manifest['_manifest_path'] = str(manifest_path)
    manifest['_data_dir'] = str(manifest_path.parent)

    return manifest


def get_stage_config(manifest: Optional[Dict[str, Any]], section: str) -> Dict[str, Any]:
    """Config for one section, with defaults filled in."""
    if section not in DEFAULT_CONFIG:
        raise KeyError(f"Unknown manifest section: '{section}'. Available: {', '.join(DEFAULT_CONFIG)}")
    return _deep_merge(DEFAULT_CONFIG[section], (manifest or {}).get(section) or {})


def get_columns(manifest: Optional[Dict[str, Any]]) -> Dict[str, Optional[str]]:
    """Column names as calculate_features keyword arguments."""
    cols = get_stage_config(manifest, 'columns')
    return {
        'id_var': cols['id'],
        'time_var': cols['time'],
        'value_var': cols['value'],
        'group_var': cols['group'],
    }


def get_observations_path(manifest: Dict[str, Any]) -> str:
    """Get absolute path to the observations file from manifest."""
    obs_rel = manifest.get('paths', {}).get('observations', DEFAULT_CONFIG['paths']['observations'])
    data_dir = Path(manifest.get('_data_dir', '.'))
    return str(data_dir / obs_rel)


def get_output_dir(manifest: Dict[str, Any]) -> str:
    """Get absolute path to output directory from manifest."""
    out_rel = manifest.get('paths', {}).get('output_dir', DEFAULT_CONFIG['paths']['output_dir'])
    data_dir = Path(manifest.get('_data_dir', '.'))
    out_path = data_dir / out_rel
    out_path.mkdir(parents=True, exist_ok=True)
    return str(out_path)


def write_manifest(manifest: Dict[str, Any], data_path: str) -> Path:
    """Write a manifest dict (private keys dropped) to data_path/manifest.yaml."""
    path = Path(data_path) / 'manifest.yaml'
    path.parent.mkdir(parents=True, exist_ok=True)
    clean = {k: v for k, v in manifest.items() if not k.startswith('_')}
    with open(path, 'w') as f:
        yaml.safe_dump(clean, f, sort_keys=False)
    return path
