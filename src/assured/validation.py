"""Lazily-resolving assertion facade over one executed step's result."""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any, Generic, Self, TypeVar

from .errors import NoCurrentStepError, ResultTypeMismatchError, StepNotExecutedError
from .results import StepResult

if TYPE_CHECKING:
    from .scenario import Scenario
    from .steps import Step

TResult = TypeVar('TResult', bound=StepResult)


class ValidationBuilder(Generic[TResult]):
    """Fluent assertions against the current step's result.

    The typed result is resolved on first use and cached. Every chain
    method returns ``self``, typed as the concrete builder class, so
    subclasses keep their extra assertions available through the chain.

    Assertion failures raise ``AssertionError``. Predicates passed to
    ``validate``, ``assert_errors`` and ``assert_property`` decide pass or
    fail on their own; whatever they raise propagates unchanged.
    """

    result_type: type[StepResult] = StepResult

    def __init__(
        self,
        scenario: Scenario,
        result_type: type[TResult] | None = None,
    ) -> None:
        if scenario is None:
            raise TypeError('scenario must not be None')
        self._scenario = scenario
        self._result_type = result_type or type(self).result_type
        self._result: TResult | None = None
        self._step: Step | None = None

    @property
    def result(self) -> TResult:
        """The current step's result, narrowed to the builder's type.

        Raises:
            NoCurrentStepError: If the scenario has no current step.
            StepNotExecutedError: If the step has not run yet.
            ResultTypeMismatchError: If the result is of another type.
        """
        if self._result is None:
            step = self._scenario.current_step
            if step is None:
                raise NoCurrentStepError(
                    'No step to validate. Ensure a step has been configured '
                    'in the scenario.'
                )
            result = step.result
            if result is None:
                raise StepNotExecutedError()
            if not isinstance(result, self._result_type):
                raise ResultTypeMismatchError(self._result_type, type(result))
            self._step = step
            self._result = result
        return self._result

    def then(self) -> Self:
        return self

    def and_(self) -> Self:
        return self

    def assert_success(self) -> Self:
        result = self.result
        if not result.success:
            errors = ', '.join(result.errors) or '(no errors recorded)'
            raise AssertionError(
                f'Expected step to succeed but it failed with errors: {errors}'
            )
        return self

    def assert_failure(self) -> Self:
        if self.result.success:
            raise AssertionError('Expected step to fail but it succeeded')
        return self

    def assert_errors(self, predicate: Callable[[TResult], Any]) -> Self:
        """Hand the result to ``predicate`` for assertions on its errors."""
        if predicate is None:
            raise TypeError('predicate must not be None')
        predicate(self.result)
        return self

    def assert_property(
        self,
        key: str,
        predicate: Callable[[Any], Any],
        type_: type | None = None,
    ) -> Self:
        """Hand property ``key`` (coerced to ``type_``) to ``predicate``.

        A missing property is passed as the zero value of ``type_``; the
        predicate's own assertion reports it.
        """
        if not key or not key.strip():
            raise ValueError('Property key cannot be empty')
        if predicate is None:
            raise TypeError('predicate must not be None')
        predicate(self.result.get_property(key, type_))
        return self

    def validate(self, predicate: Callable[[TResult], Any]) -> Self:
        """Run custom validation and record the step's validity."""
        if predicate is None:
            raise TypeError('predicate must not be None')
        result = self.result
        self._step.validate(lambda _: predicate(result))
        return self

    def get_result(self) -> TResult:
        return self.result

    def __repr__(self) -> str:
        return f'<{type(self).__name__}[{self._result_type.__name__}]>'
