"""Step contract: a unit of deferred work producing exactly one result."""

from __future__ import annotations

import abc
import inspect
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any

from .errors import StepAlreadyExecutedError, StepNotExecutedError
from .results import StepResult

if TYPE_CHECKING:
    from .context import ScenarioContext


class Step(abc.ABC):
    """Base class for every step a scenario can execute.

    Subclasses implement :meth:`_execute`. The public :meth:`execute`
    guarantees the result moves from absent to present exactly once.

    Attributes:
        name: Display name, stamped when the step is saved.
        step_type: Technology discriminator (``'http'``, ``'fake'``, ...).
    """

    step_type: str = 'generic'

    def __init__(self, name: str | None = None) -> None:
        self.name = name
        self._result: StepResult | None = None
        self._valid = False

    @property
    def result(self) -> StepResult | None:
        return self._result

    @property
    def is_executed(self) -> bool:
        return self._result is not None

    @property
    def is_valid(self) -> bool:
        return self._valid

    async def execute(self, context: ScenarioContext) -> StepResult:
        """Run the step once and store its result.

        Raises:
            StepAlreadyExecutedError: If the step already holds a result.
        """
        if self._result is not None:
            raise StepAlreadyExecutedError(
                f'{self!r} has already been executed.'
            )
        result = await self._execute(context)
        if not isinstance(result, StepResult):
            raise TypeError(
                f'{type(self).__name__}._execute() must return a StepResult, '
                f'got {type(result).__name__}'
            )
        self._result = result
        return result

    @abc.abstractmethod
    async def _execute(self, context: ScenarioContext) -> StepResult:
        """Perform the work. Called at most once per step."""

    def validate(self, predicate: Callable[[StepResult], Any]) -> None:
        """Run ``predicate`` against the result and record validity."""
        if predicate is None:
            raise TypeError('predicate must not be None')
        if self._result is None:
            raise StepNotExecutedError(
                'Step must be executed before validation.'
            )
        try:
            predicate(self._result)
        except BaseException:
            self._valid = False
            raise
        self._valid = True

    def __repr__(self) -> str:
        label = f' {self.name!r}' if self.name else ''
        state = 'executed' if self.is_executed else 'pending'
        return f'<{type(self).__name__}{label} [{self.step_type}] {state}>'


StepFunction = Callable[['ScenarioContext'], 'StepResult | Awaitable[StepResult]']


class CallableStep(Step):
    """Adapt a plain or ``async`` function into a step.

    Usage::

        async def fetch(context):
            return StepResult.success_result(data=42)

        given().with_step(CallableStep(fetch)).execute().assert_success()
    """

    step_type = 'callable'

    def __init__(
        self,
        fn: StepFunction,
        *,
        name: str | None = None,
        step_type: str | None = None,
    ) -> None:
        super().__init__(name)
        self._fn = fn
        if step_type:
            self.step_type = step_type

    async def _execute(self, context: ScenarioContext) -> StepResult:
        outcome = self._fn(context)
        if inspect.isawaitable(outcome):
            outcome = await outcome
        return outcome
