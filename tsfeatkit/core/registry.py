"""
Feature-Set Registry - discovers and loads all available feature sets.

The registry provides:
1. Auto-discovery of feature sets with <set>.yaml files
2. Lazy loading of compute functions
3. Registration of user-supplied feature sets at runtime
"""

import importlib
import logging
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional

from .base import FeatureSetConfig, load_feature_set_config

logger = logging.getLogger(__name__)


class FeatureSetRegistry:
    """
    Registry of available feature sets.

    Discovers feature sets by scanning for .yaml files in the features
    directory. Compute functions are imported on first access.
    """

    def __init__(self, features_dir: Optional[Path] = None):
        if features_dir is None:
            features_dir = Path(__file__).parent / "features"

        self.features_dir = features_dir
        self._configs: Dict[str, FeatureSetConfig] = {}
        self._compute_funcs: Dict[str, Callable] = {}

        self._discover_feature_sets()

    def _discover_feature_sets(self):
        """Find all feature sets with yaml config files."""
        for config_path in sorted(self.features_dir.glob("*.yaml")):
            name = config_path.stem
            if name.startswith("_"):
                continue

            try:
                self._configs[name] = load_feature_set_config(config_path)
            except (OSError, KeyError, TypeError, ValueError) as e:
                logger.warning("Failed to load config for feature set %s: %s", name, e)

    def register(
        self,
        name: str,
        compute: Callable,
        outputs: Iterable[str],
        min_length: int = 1,
        description: str = "",
    ) -> FeatureSetConfig:
        """
        Register a user-supplied feature set.

        Args:
            name: Feature-set name (replaces an existing set of that name)
            compute: Callable taking a 1D numpy array, returning {output: value}
            outputs: Output names the callable returns
            min_length: Series shorter than this get NaN outputs
            description: Free text

        Returns:
            The stored FeatureSetConfig
        """
        outputs = list(outputs)
        if not outputs:
            raise ValueError(f"Feature set '{name}' must declare at least one output")

        config = FeatureSetConfig(
            name=name,
            version='user',
            min_length=int(min_length),
            outputs=outputs,
            description=description,
        )
        self._configs[name] = config
        self._compute_funcs[name] = compute
        return config

    def list_feature_sets(self) -> List[str]:
        """List all available feature-set names."""
        return sorted(self._configs.keys())

    def has_feature_set(self, name: str) -> bool:
        """Check if feature set exists in registry."""
        return name in self._configs

    def get_config(self, name: str) -> FeatureSetConfig:
        """Get configuration for a feature set."""
        if name not in self._configs:
            available = ", ".join(self.list_feature_sets())
            raise KeyError(
                f"Unknown feature set: '{name}'. Available: {available}"
            )
        return self._configs[name]

    def get_compute_func(self, name: str) -> Callable:
        """
        Get compute function for a feature set.

        Lazily imports the feature module on first access.
        """
        self.get_config(name)

        if name not in self._compute_funcs:
            try:
                module = importlib.import_module(
                    f"tsfeatkit.core.features.{name}"
                )
                self._compute_funcs[name] = module.compute
            except (ImportError, AttributeError) as e:
                raise ImportError(
                    f"Could not load compute function for '{name}': {e}"
                ) from e

        return self._compute_funcs[name]

    def get_min_length(self, name: str) -> int:
        """Get minimum series length required for a feature set."""
        return self.get_config(name).min_length

    def get_outputs(self, name: str) -> List[str]:
        """Get outputs for a specific feature set."""
        return self.get_config(name).outputs

    def null_output(self, name: str) -> Dict[str, float]:
        """NaN output for a feature set that cannot run."""
        return self.get_config(name).null_output()

    def resolve(self, feature_sets=None) -> List[str]:
        """
        Validate requested feature sets.

        Args:
            feature_sets: Name, list of names, or None for every registered set

        Returns:
            Ordered, de-duplicated list of names

        Raises:
            KeyError: If any name is unknown
        """
        if feature_sets is None:
            return self.list_feature_sets()
        if isinstance(feature_sets, str):
            feature_sets = [feature_sets]

        resolved = []
        for name in feature_sets:
            self.get_config(name)
            if name not in resolved:
                resolved.append(name)
        if not resolved:
            raise ValueError("No feature sets requested")
        return resolved


# Global registry instance (lazy initialized)
_registry: Optional[FeatureSetRegistry] = None


def get_registry() -> FeatureSetRegistry:
    """Get or create global feature-set registry."""
    global _registry
    if _registry is None:
        _registry = FeatureSetRegistry()
    return _registry


def reset_registry():
    """Reset the global registry (for testing)."""
    global _registry
    _registry = None
