"""Given-When-Then scenario DSL for integration tests."""

from .context import CLIENT_PROVIDER_KEY, ScenarioContext
from .dsl import given
from .errors import (
    AssuredError,
    DuplicateStepError,
    InvalidStepNameError,
    MissingCapabilityError,
    NoCurrentStepError,
    ResultTypeMismatchError,
    ScenarioUsageError,
    SettingsError,
    StepAlreadyExecutedError,
    StepNotExecutedError,
    StepNotFoundError,
)
from .results import StepMetadata, StepResult, StepStatus
from .scenario import Scenario, block_on
from .steps import CallableStep, Step
from .storage import StepStorage
from .validation import ValidationBuilder

__version__ = '0.1.0'

__all__ = [
    'AssuredError',
    'CLIENT_PROVIDER_KEY',
    'CallableStep',
    'DuplicateStepError',
    'InvalidStepNameError',
    'MissingCapabilityError',
    'NoCurrentStepError',
    'ResultTypeMismatchError',
    'Scenario',
    'ScenarioContext',
    'ScenarioUsageError',
    'SettingsError',
    'Step',
    'StepAlreadyExecutedError',
    'StepMetadata',
    'StepNotExecutedError',
    'StepNotFoundError',
    'StepResult',
    'StepStatus',
    'StepStorage',
    'ValidationBuilder',
    'block_on',
    'given',
]
