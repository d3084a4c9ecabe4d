"""
Feature-set configuration.

Feature sets own their configuration (minimum series length, outputs,
description) in a YAML file that sits next to the engine module, so the
extraction layer never hardcodes per-set requirements.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Any
import yaml
import numpy as np


@dataclass
class FeatureSetConfig:
    """Full feature-set configuration loaded from <set>.yaml."""
    name: str
    version: str
    min_length: int
    outputs: List[str]
    description: str = ""
    metadata: Dict[str, Any] = field(default_factory=dict)

    def null_output(self) -> Dict[str, float]:
        """NaN for every declared output (series too short to compute)."""
        return {name: np.nan for name in self.outputs}


def load_feature_set_config(config_path: Path) -> FeatureSetConfig:
    """Load feature-set configuration from YAML file."""
    with open(config_path) as f:
        raw = yaml.safe_load(f)

    if not raw.get('outputs'):
        raise ValueError(f"{config_path.name} declares no outputs")

    return FeatureSetConfig(
        name=raw['feature_set'],
        version=str(raw.get('version', '1.0')),
        min_length=int(raw.get('requirements', {}).get('min_length', 4)),
        outputs=list(raw.get('outputs', [])),
        description=raw.get('description', ''),
        metadata=raw.get('metadata', {}),
    )
