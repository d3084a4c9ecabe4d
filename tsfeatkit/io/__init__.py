"""Observation, stage-output and manifest I/O."""

from tsfeatkit.io.matfile import read_mat_file
from tsfeatkit.io.reader import load_observations, load_output, output_path, STAGE_DIRS
from tsfeatkit.io.writer import write_output, write_figure
from tsfeatkit.io.manifest import load_manifest, get_stage_config, DEFAULT_CONFIG

__all__ = [
    'read_mat_file',
    'load_observations',
    'load_output',
    'output_path',
    'STAGE_DIRS',
    'write_output',
    'write_figure',
    'load_manifest',
    'get_stage_config',
    'DEFAULT_CONFIG',
]
