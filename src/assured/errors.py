"""Error hierarchy for the scenario DSL.

Usage faults signal a mistake in the test itself (wrong chain order,
wrong result type) and are never caught or retried by the scenario
engine. Execution faults raised inside a step propagate unmodified.
Assertion faults are plain ``AssertionError`` instances raised by the
caller's predicates or by the validation builders.
"""

from __future__ import annotations


class AssuredError(Exception):
    """Base class for all errors raised by the scenario DSL."""


# ── Usage faults ───────────────────────────────────────────────────


class ScenarioUsageError(AssuredError, RuntimeError):
    """Raised when the fluent chain is used in an invalid order."""


class NoCurrentStepError(ScenarioUsageError):
    """Raised when an operation needs a current step and none is set."""

    def __init__(self, message: str = 'No step configured in the scenario.') -> None:
        super().__init__(message)


class StepNotExecutedError(ScenarioUsageError):
    """Raised when a step result is read before the step has run."""

    def __init__(
        self,
        message: str = 'Step has not been executed. Call execute() before validating.',
    ) -> None:
        super().__init__(message)


class StepAlreadyExecutedError(ScenarioUsageError):
    """Raised when a step that already holds a result is executed again."""


class ResultTypeMismatchError(ScenarioUsageError):
    """Raised when a step result cannot be narrowed to the requested type."""

    def __init__(self, expected: type, actual: type) -> None:
        self.expected = expected.__name__
        self.actual = actual.__name__
        super().__init__(
            f'Expected result type {self.expected} but got {self.actual}. '
            f'Ensure execute() is called with the result type of the step.'
        )


# ── Storage ────────────────────────────────────────────────────────


class InvalidStepNameError(AssuredError, ValueError):
    """Raised when a step name is empty or whitespace."""

    def __init__(self, message: str = 'Step name cannot be empty or whitespace.') -> None:
        super().__init__(message)


class StepNotFoundError(AssuredError, KeyError):
    """Raised when a named step is not present in storage."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Step with name '{name}' was not found in storage.")

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the message readable.
        return self.args[0]


class DuplicateStepError(AssuredError, KeyError):
    """Raised by ``save_if_absent`` when the name is already taken."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"A step named '{name}' is already stored.")

    def __str__(self) -> str:
        return self.args[0]


# ── Context and configuration ──────────────────────────────────────


class MissingCapabilityError(AssuredError, LookupError):
    """Raised when a required context property is absent or mistyped."""

    def __init__(self, key: str, expected: type, actual: object = None) -> None:
        self.key = key
        self.expected = getattr(expected, '__name__', repr(expected))
        if actual is None:
            detail = 'is not set'
        else:
            detail = f'holds {type(actual).__name__}'
        super().__init__(
            f"Context property '{key}' {detail}; expected {self.expected}."
        )


class SettingsError(AssuredError, ValueError):
    """Raised when settings are missing or invalid."""
