"""Step result model: metadata, base result and property coercion."""

from .metadata import TERMINAL_STATUSES, StepMetadata, StepStatus
from .step_result import StepResult, coerce, matches_type, zero_value

__all__ = [
    'StepMetadata',
    'StepResult',
    'StepStatus',
    'TERMINAL_STATUSES',
    'coerce',
    'matches_type',
    'zero_value',
]
