"""Fluent Given-When-Then scenario and its execution state machine.

A scenario holds one *current step*. Step builders (technology
collaborators) replace it with :meth:`Scenario.set_current_step`; the
scenario itself never constructs steps. Chain methods that advance the
chain (``and_``, ``on``, ``save_step``, ``execute``) first run the
current step to completion, so steps always execute in the written
order and never concurrently.

Every execution-triggering method has an ``async`` twin. The synchronous
forms go through :func:`block_on`, the only place that blocks on a
coroutine.
"""

from __future__ import annotations

import asyncio
import time
import uuid
from collections.abc import Coroutine
from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING, Any, Self, TypeVar, overload

from structlog.contextvars import bound_contextvars

from .context import ScenarioContext
from .errors import InvalidStepNameError, NoCurrentStepError
from .observability.logging import get_logger
from .results import StepResult

if TYPE_CHECKING:
    from .steps import Step
    from .validation import ValidationBuilder

T = TypeVar('T')
TResult = TypeVar('TResult', bound=StepResult)

logger = get_logger(__name__)


def block_on(awaitable: Coroutine[Any, Any, T]) -> T:
    """Run ``awaitable`` to completion and return its result.

    With no event loop running in the calling thread this is
    ``asyncio.run``. Inside a running loop (an async test, a notebook)
    the coroutine runs on a private loop in a worker thread while the
    caller blocks. Exceptions propagate unchanged either way.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(awaitable)
    with ThreadPoolExecutor(
        max_workers=1, thread_name_prefix='assured-bridge',
    ) as pool:
        return pool.submit(asyncio.run, awaitable).result()


def _new_scenario_id() -> str:
    return f'scn-{uuid.uuid4().hex[:12]}'


class Scenario:
    """One Given...Then chain.

    Args:
        context: Shared context. A fresh context with empty step storage
            is created when omitted.
    """

    def __init__(self, context: ScenarioContext | None = None) -> None:
        self.context = context if context is not None else ScenarioContext()
        self.scenario_id = _new_scenario_id()
        self._current_step: Step | None = None

    @property
    def current_step(self) -> Step | None:
        return self._current_step

    def set_current_step(self, step: Step) -> None:
        """Replace the current step.

        The previous step is dropped unless it was saved into the
        context's step storage.
        """
        if step is None:
            raise TypeError('step must not be None')
        self._current_step = step

    def with_step(self, step: Step) -> Self:
        """Attach ``step`` as the current step and continue the chain."""
        self.set_current_step(step)
        return self

    # ── BDD connectives ────────────────────────────────────────────

    def and_(self) -> Self:
        """Execute the current step, then continue the chain."""
        self.execute_current_step()
        return self

    def on(self) -> Self:
        """Execute the current step, then continue the chain."""
        self.execute_current_step()
        return self

    def when(self) -> Self:
        return self

    def then(self) -> Self:
        return self

    async def and_async(self) -> Self:
        await self.execute_current_step_async()
        return self

    async def on_async(self) -> Self:
        await self.execute_current_step_async()
        return self

    # ── Execution ──────────────────────────────────────────────────

    def execute_current_step(self) -> None:
        """Blocking form of :meth:`execute_current_step_async`."""
        block_on(self.execute_current_step_async())

    async def execute_current_step_async(self) -> None:
        """Run the current step unless there is none or it already ran."""
        step = self._current_step
        if step is None or step.is_executed:
            return

        fields = {'step_type': step.step_type, 'step_name': step.name}
        with bound_contextvars(scenario_id=self.scenario_id):
            logger.debug('step_executing', **fields)
            start = time.monotonic()
            result = await step.execute(self.context)
            logger.info(
                'step_executed',
                **fields,
                success=result.success,
                status=result.metadata.status.value,
                duration_ms=round((time.monotonic() - start) * 1000, 2),
            )

    # ── Named steps ────────────────────────────────────────────────

    def save_step(self, name: str, *, overwrite: bool = True) -> Self:
        """Execute the current step and store it under ``name``.

        Args:
            name: Case-insensitive name for later ``context.steps[name]``.
            overwrite: When False, an existing step with the same name
                raises :class:`~assured.errors.DuplicateStepError`.
        """
        block_on(self.save_step_async(name, overwrite=overwrite))
        return self

    async def save_step_async(self, name: str, *, overwrite: bool = True) -> Self:
        if not name or not name.strip():
            raise InvalidStepNameError()
        step = self._current_step
        if step is None:
            raise NoCurrentStepError('No current step to save. Create a step first.')

        await self.execute_current_step_async()

        if overwrite:
            self.context.steps.save(name, step)
        else:
            self.context.steps.save_if_absent(name, step)
        step.name = name.strip()
        logger.debug(
            'step_saved',
            scenario_id=self.scenario_id,
            step_name=step.name,
            step_type=step.step_type,
        )
        return self

    # ── Validation ─────────────────────────────────────────────────

    @overload
    def execute(self) -> ValidationBuilder[StepResult]: ...

    @overload
    def execute(self, result_type: type[TResult]) -> ValidationBuilder[TResult]: ...

    def execute(self, result_type=None):
        """Execute the current step and return a validation builder.

        Args:
            result_type: Result class the builder narrows to; defaults to
                :class:`StepResult`. A mismatch is reported on first
                access to the result.
        """
        self.execute_current_step()
        return self._validation_builder(result_type)

    async def execute_async(self, result_type=None):
        await self.execute_current_step_async()
        return self._validation_builder(result_type)

    def _validation_builder(self, result_type: type | None) -> ValidationBuilder:
        from .validation import ValidationBuilder

        return ValidationBuilder(self, result_type or StepResult)

    # ── Diagnostics ────────────────────────────────────────────────

    def summary(self) -> dict[str, Any]:
        """Return per-step outcomes for every saved step."""
        steps: dict[str, Any] = {}
        for name, step in self.context.steps.items():
            steps[name] = step.result.to_dict() if step.result else None
        return {'scenario_id': self.scenario_id, 'steps': steps}

    def __repr__(self) -> str:
        return f'<{type(self).__name__} {self.scenario_id} current={self._current_step!r}>'
