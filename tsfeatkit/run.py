"""
tsfeatkit Sequencer
===================

Runs the six analysis stages in dependency order.
Pure orchestration, no computation here.

Output: 8 parquet files and 6 figures in 4 directories
(features/, projection/, classification/, figures/).

Usage:
    python -m tsfeatkit data/bonn_eeg
    python -m tsfeatkit data/bonn_eeg --stages 01,05
    python -m tsfeatkit data/bonn_eeg --skip 04
    python -m tsfeatkit --simulate data/simulated
"""

import argparse
import importlib
import logging
import shutil
from pathlib import Path
from typing import Any, Dict, List, Optional

from tsfeatkit.io.manifest import (
    DEFAULT_CONFIG,
    get_observations_path,
    get_output_dir,
    load_manifest,
    write_manifest,
)
from tsfeatkit.io.reader import STAGE_DIRS

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════
# STAGE REGISTRY (6 stages)
# ═══════════════════════════════════════════════════════════════

# (module_path, stage_id); module_path is relative to tsfeatkit.stages
ALL_STAGES = [
    ('features',         '01'),
    ('quality',          '02'),
    ('matrix',           '03'),
    ('projection',       '04'),
    ('classification',   '05'),
    ('top_features',     '06'),
]


def _select_stages(
    stages: Optional[List[str]] = None,
    skip: Optional[List[str]] = None,
) -> List[tuple]:
    """Filter ALL_STAGES by stage id (order is always preserved)."""
    known = {sid for _, sid in ALL_STAGES}
    unknown = [s for s in (stages or []) + (skip or []) if s not in known]
    if unknown:
        raise ValueError(f"Unknown stage id(s): {unknown}. Valid: {sorted(known)}")

    run_stages = ALL_STAGES.copy()
    if stages:
        run_stages = [(mod, sid) for mod, sid in run_stages if sid in stages]
    if skip:
        run_stages = [(mod, sid) for mod, sid in run_stages if sid not in skip]
    return run_stages


def _dispatch(
    module,
    module_path: str,
    obs_path: str,
    output_dir: Path,
    manifest: Dict[str, Any],
    verbose: bool,
):
    """Call a stage's run() with the arguments it takes."""
    if module_path == 'features':
        return module.run(obs_path, str(output_dir), manifest=manifest, verbose=verbose)
    return module.run(str(output_dir), manifest=manifest, verbose=verbose)


def run(
    observations_path: str,
    manifest_path: str,
    output_dir: str,
    stages: Optional[List[str]] = None,
    skip: Optional[List[str]] = None,
    verbose: bool = True,
) -> None:
    """
    Run pipeline stages in dependency order.

    Running stage 01 starts from a clean output directory; later stages on
    their own reuse the outputs already there.

    Args:
        observations_path: Observations file (.mat, .parquet or .csv)
        manifest_path: Path to manifest.yaml
        output_dir: Where to write outputs
        stages: Specific stage identifiers to run (e.g., ['01', '05'])
        skip: Stage identifiers to skip
        verbose: Print progress
    """
    observations_path = Path(observations_path)
    manifest_path = Path(manifest_path)
    output_dir = Path(output_dir)

    if not observations_path.exists():
        raise FileNotFoundError(f"observations not found: {observations_path}")
    if not manifest_path.exists():
        raise FileNotFoundError(f"manifest not found: {manifest_path}")

    manifest = load_manifest(str(manifest_path))
    run_stages = _select_stages(stages, skip)

    # Safety: refuse to wipe if this looks like the data directory
    if output_dir.resolve() in (observations_path.resolve().parent, manifest_path.resolve().parent):
        raise ValueError(
            f"output_dir ({output_dir}) holds the input data. "
            f"Pass the output/ subdirectory, not the data directory."
        )

    # Fresh start when features are recomputed
    if any(sid == '01' for _, sid in run_stages) and output_dir.exists():
        shutil.rmtree(output_dir)

    for subdir in sorted(set(STAGE_DIRS.values())):
        (output_dir / subdir).mkdir(parents=True, exist_ok=True)

    if verbose:
        print("=" * 70)
        print("TSFEATKIT PIPELINE")
        print("=" * 70)
        print(f"Input:    {observations_path}")
        print(f"Manifest: {manifest_path}")
        print(f"Output:   {output_dir}")
        print(f"Stages:   {', '.join(sid for _, sid in run_stages)}")
        print()

    for module_path, stage_id in run_stages:
        stage_label = f"{stage_id} ({module_path})"
        if verbose:
            print(f"--- {stage_label} ---")

        try:
            module = importlib.import_module(f'tsfeatkit.stages.{module_path}')
            _dispatch(module, module_path, str(observations_path), output_dir, manifest, verbose)
        except Exception as e:
            logger.error("Stage %s failed: %s", stage_label, e)
            if verbose:
                print(f"  Error in {stage_label}: {e}")
            raise

        if verbose:
            print()

    if verbose:
        total = 0
        for subdir in sorted(set(STAGE_DIRS.values())):
            subdir_path = output_dir / subdir
            files = [f for f in subdir_path.glob('*') if f.suffix in ('.parquet', '.png')]
            total += len(files)
            print(f"  {subdir}/ ({len(files)} files)")
        print(f"\n  Total: {total} files")
        print()
        print("=" * 70)
        print("PIPELINE COMPLETE")
        print("=" * 70)


def simulate_data_dir(
    data_path: str,
    n_per_group: int = 20,
    length: int = 200,
    seed: int = 123,
) -> Path:
    """
    Write a synthetic data directory (observations.parquet + manifest.yaml).

    Returns:
        Path to the data directory
    """
    from tsfeatkit.datasets import simulate_observations

    data_dir = Path(data_path)
    data_dir.mkdir(parents=True, exist_ok=True)

    observations = simulate_observations(n_per_group=n_per_group, length=length, seed=seed)
    observations.write_parquet(str(data_dir / 'observations.parquet'))

    manifest = dict(DEFAULT_CONFIG)
    manifest['paths'] = {'observations': 'observations.parquet', 'output_dir': 'output'}
    write_manifest(manifest, str(data_dir))

    return data_dir


def main():
    """CLI entry point. Resolves data_path into explicit paths and calls run()."""
    parser = argparse.ArgumentParser(
        description="tsfeatkit pipeline",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Stages: 01 features, 02 quality, 03 feature_matrix, 04 low_dimension,
        05 classification, 06 top_features

Usage:
  python -m tsfeatkit ~/data/bonn_eeg
  python -m tsfeatkit ~/data/bonn_eeg --stages 01,02,03
  python -m tsfeatkit ~/data/bonn_eeg --skip 04
  python -m tsfeatkit --simulate ~/data/simulated
"""
    )
    parser.add_argument('data_path', nargs='?', help='Path to data directory (must contain manifest.yaml)')
    parser.add_argument('--stages', help='Comma-separated stage IDs to run')
    parser.add_argument('--skip', help='Comma-separated stage IDs to skip')
    parser.add_argument('--simulate', metavar='DIR', help='Write a synthetic data directory to DIR and run it')
    parser.add_argument('--log-level', default='WARNING',
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'], help='Logging level')
    parser.add_argument('-q', '--quiet', action='store_true', help='Suppress output')

    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )

    if args.simulate:
        data_path = simulate_data_dir(args.simulate)
        if not args.quiet:
            print(f"Simulated data written to {data_path}")
    elif args.data_path:
        data_path = Path(args.data_path)
    else:
        parser.error("data_path is required unless --simulate is given")

    manifest_path = data_path / 'manifest.yaml'
    if not manifest_path.exists():
        raise FileNotFoundError(f"No manifest.yaml in {data_path}")

    manifest = load_manifest(str(manifest_path))

    stages_list = args.stages.split(',') if args.stages else None
    skip_list = args.skip.split(',') if args.skip else None

    run(
        observations_path=get_observations_path(manifest),
        manifest_path=str(manifest_path),
        output_dir=get_output_dir(manifest),
        stages=stages_list,
        skip=skip_list,
        verbose=not args.quiet,
    )


if __name__ == '__main__':
    main()
