"""Scenario with HTTP request builders."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Self

import httpx

from assured.dsl import start_scenario
from assured.errors import NoCurrentStepError, ResultTypeMismatchError, ScenarioUsageError
from assured.scenario import Scenario
from assured.validation import ValidationBuilder

from .auth import ApiKeyAuth, ApiKeyLocation, BearerAuth
from .result import HttpStepResult
from .step import HttpRequestStep
from .validation import HttpValidationBuilder


class HttpScenario(Scenario):
    """Scenario whose chain can build HTTP request steps.

    ``api_resource`` attaches a new GET step; the method and option
    builders replace it with an updated copy until it is executed.
    """

    def api_resource(self, url: str) -> Self:
        self.set_current_step(HttpRequestStep(url))
        return self

    def get(self) -> Self:
        return self._rebuild(method='GET', body=None)

    def post(self, body: Any = None) -> Self:
        return self._rebuild(method='POST', body=body)

    def put(self, body: Any = None) -> Self:
        return self._rebuild(method='PUT', body=body)

    def patch(self, body: Any = None) -> Self:
        return self._rebuild(method='PATCH', body=body)

    def delete(self) -> Self:
        return self._rebuild(method='DELETE', body=None)

    def head(self) -> Self:
        return self._rebuild(method='HEAD', body=None)

    def options(self) -> Self:
        return self._rebuild(method='OPTIONS', body=None)

    def with_header(self, name: str, value: str) -> Self:
        step = self._pending_http_step()
        return self._rebuild(headers={**step.headers, name: value})

    def with_headers(self, headers: dict[str, str]) -> Self:
        step = self._pending_http_step()
        return self._rebuild(headers={**step.headers, **headers})

    def with_query_param(self, name: str, value: Any) -> Self:
        step = self._pending_http_step()
        return self._rebuild(query_params={**step.query_params, name: value})

    def with_timeout(self, seconds: float) -> Self:
        if seconds <= 0:
            raise ValueError(f'timeout must be positive, got {seconds}')
        return self._rebuild(timeout_seconds=seconds)

    # ── Authentication ─────────────────────────────────────────────

    def with_basic_auth(self, username: str, password: str) -> Self:
        return self._rebuild(auth=httpx.BasicAuth(username, password))

    def with_bearer_token(self, token: str, prefix: str = 'Bearer') -> Self:
        return self._rebuild(auth=BearerAuth(token, prefix))

    def with_api_key(
        self,
        name: str,
        value: str,
        location: ApiKeyLocation | str = ApiKeyLocation.HEADER,
    ) -> Self:
        """Send an API key in a header (default) or the query string."""
        return self._rebuild(auth=ApiKeyAuth(name, value, location))

    def with_no_auth(self) -> Self:
        return self._rebuild(auth=None)

    # ── Inline validation ──────────────────────────────────────────

    def validate(self, check: Callable[[HttpStepResult], Any]) -> Self:
        """Execute the current step and hand its result to ``check``.

        The step's ``is_valid`` flag records whether ``check`` passed;
        whatever ``check`` raises propagates.

        Raises:
            NoCurrentStepError: If there is no step to validate.
            ResultTypeMismatchError: If the result is not an HTTP result.
        """
        if check is None:
            raise TypeError('check must not be None')
        self.execute_current_step()
        step = self.current_step
        if step is None:
            raise NoCurrentStepError('No step to validate. Create a step first.')
        if not isinstance(step.result, HttpStepResult):
            raise ResultTypeMismatchError(HttpStepResult, type(step.result))
        step.validate(check)
        return self

    def _validation_builder(self, result_type: type | None) -> ValidationBuilder:
        if result_type is None or result_type is HttpStepResult:
            return HttpValidationBuilder(self)
        return super()._validation_builder(result_type)

    def _pending_http_step(self) -> HttpRequestStep:
        step = self.current_step
        if not isinstance(step, HttpRequestStep):
            raise ScenarioUsageError(
                'Current step is not an HTTP step. Call api_resource() first.'
            )
        if step.is_executed:
            raise ScenarioUsageError(
                'Current HTTP step has already been executed. '
                'Call api_resource() to start a new request.'
            )
        return step

    def _rebuild(self, **changes: Any) -> Self:
        self.set_current_step(self._pending_http_step().replace(**changes))
        return self


def given(source: Any = None) -> HttpScenario:
    """Start an HTTP scenario.

    ``source`` may be omitted, a :class:`~assured.context.ScenarioContext`
    to share, or an :class:`~assured.http.step.HttpClientProvider`.
    """
    return start_scenario(HttpScenario, source)
