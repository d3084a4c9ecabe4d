"""
Pipeline Stage Prerequisites

Validates that required outputs exist before running a pipeline stage.
Enforces the stage order: features -> quality / feature_matrix /
low_dimension / classification / top_features.

PRINCIPLE: "Check before compute, not after failure"

Usage:
    from tsfeatkit.validation import check_prerequisites, PrerequisiteError

    try:
        check_prerequisites('classification', output_dir='/path/to/output')
    except PrerequisiteError as e:
        print(f"Missing prerequisites: {e}")
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Dict, Any


class PrerequisiteError(Exception):
    """Raised when pipeline stage prerequisites are not met."""

    def __init__(
        self,
        stage: str,
        missing_files: List[str],
        message: Optional[str] = None,
    ):
        self.stage = stage
        self.missing_files = missing_files

        if message is None:
            message = (
                f"Cannot run '{stage}' stage. Missing required files:\n"
                + "\n".join(f"  - {f}" for f in missing_files)
                + "\n\nRun the prerequisite stages first (01 features)."
            )

        super().__init__(message)


@dataclass
class StagePrerequisites:
    """
    Definition of prerequisites for a pipeline stage.

    Attributes:
        stage_name: Name of this stage
        required_files: Files (relative to the output directory) that must exist
        produces: Files this stage produces
        depends_on: Stages that must complete before this one
        description: Human-readable description of what this stage does
    """
    stage_name: str
    required_files: List[str] = field(default_factory=list)
    produces: List[str] = field(default_factory=list)
    depends_on: List[str] = field(default_factory=list)
    description: str = ""

    def check(self, output_dir: Path) -> List[str]:
        """
        Check if all prerequisites exist.

        Returns:
            List of missing files (empty if all present)
        """
        return [f for f in self.required_files if not (output_dir / f).exists()]

    def is_satisfied(self, output_dir: Path) -> bool:
        """Check if prerequisites are satisfied."""
        return len(self.check(output_dir)) == 0


STAGE_PREREQUISITES: Dict[str, StagePrerequisites] = {
    'features': StagePrerequisites(
        stage_name='features',
        required_files=[],
        produces=['features/features.parquet'],
        description='Compute feature sets for every series',
    ),

    'quality': StagePrerequisites(
        stage_name='quality',
        required_files=['features/features.parquet'],
        produces=['features/feature_quality.parquet', 'figures/quality_matrix.png'],
        depends_on=['features'],
        description='Summarise feature quality and plot the quality matrix',
    ),

    'feature_matrix': StagePrerequisites(
        stage_name='feature_matrix',
        required_files=['features/features.parquet'],
        produces=['features/normalised_features.parquet', 'figures/feature_matrix.png'],
        depends_on=['features'],
        description='Normalise features and plot the clustered heatmap',
    ),

    'low_dimension': StagePrerequisites(
        stage_name='low_dimension',
        required_files=['features/features.parquet'],
        produces=['projection/low_dimension.parquet', 'figures/low_dimension.png'],
        depends_on=['features'],
        description='Project series into two dimensions (PCA / t-SNE)',
    ),

    'classification': StagePrerequisites(
        stage_name='classification',
        required_files=['features/features.parquet'],
        produces=[
            'classification/classification_summary.parquet',
            'classification/classification_raw.parquet',
            'figures/classification.png',
        ],
        depends_on=['features'],
        description='Multi-feature classification with null testing',
    ),

    'top_features': StagePrerequisites(
        stage_name='top_features',
        required_files=['features/features.parquet'],
        produces=[
            'classification/top_features.parquet',
            'classification/feature_correlations.parquet',
            'figures/feature_correlations.png',
            'figures/top_feature_violins.png',
        ],
        depends_on=['features'],
        description='Rank individual features by group discrimination',
    ),
}


def check_prerequisites(
    stage: str,
    output_dir: str,
    raise_on_missing: bool = True,
    verbose: bool = False,
) -> Dict[str, Any]:
    """
    Check that prerequisites are met for a pipeline stage.

    Args:
        stage: Name of the stage to check (e.g., 'classification')
        output_dir: Pipeline output directory
        raise_on_missing: If True, raise PrerequisiteError on missing files
        verbose: If True, print status

    Returns:
        Dict with:
            - satisfied: bool
            - missing: List[str] of missing files
            - present: List[str] of present files

    Raises:
        PrerequisiteError: If prerequisites not met and raise_on_missing=True
        ValueError: If stage is not recognized
    """
    if stage not in STAGE_PREREQUISITES:
        raise ValueError(
            f"Unknown stage: '{stage}'. "
            f"Valid stages: {list(STAGE_PREREQUISITES.keys())}"
        )

    prereqs = STAGE_PREREQUISITES[stage]
    out_path = Path(output_dir)

    missing = prereqs.check(out_path)
    present = [f for f in prereqs.required_files if f not in missing]
    satisfied = len(missing) == 0

    if verbose:
        print(f"Stage: {stage}")
        print(f"  Description: {prereqs.description}")
        print(f"  Output directory: {out_path}")
        print(f"  Required files:")
        for f in prereqs.required_files:
            status = "OK" if f in present else "MISSING"
            print(f"    [{status}] {f}")
        print(f"  Prerequisites satisfied: {satisfied}")

    if not satisfied and raise_on_missing:
        raise PrerequisiteError(stage, missing)

    return {
        'satisfied': satisfied,
        'missing': missing,
        'present': present,
        'stage': stage,
        'description': prereqs.description,
    }
