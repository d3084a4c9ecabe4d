"""
Validation Module

Validates pipeline prerequisites and input data before compute stages.

Exports:
    - check_prerequisites: Validate that required outputs exist for a stage
    - validate_observations: Validate a tidy observations table
    - PrerequisiteError: Raised when prerequisites are not met
    - ValidationError: Raised when input validation fails
    - StagePrerequisites: Stage dependency definitions
"""

from .prerequisites import (
    check_prerequisites,
    PrerequisiteError,
    StagePrerequisites,
    STAGE_PREREQUISITES,
)

from .input_validation import (
    validate_observations,
    ValidationError,
    filter_constant_series,
    get_constant_series,
    InputValidationReport,
)

__all__ = [
    # Prerequisites
    'check_prerequisites',
    'PrerequisiteError',
    'StagePrerequisites',
    'STAGE_PREREQUISITES',
    # Input validation
    'validate_observations',
    'ValidationError',
    'filter_constant_series',
    'get_constant_series',
    'InputValidationReport',
]
