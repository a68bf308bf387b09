"""HTTP request step backed by httpx."""

from __future__ import annotations

import time
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

import httpx
from pydantic import BaseModel

from assured.config import AssuredSettings, load_settings
from assured.context import CLIENT_PROVIDER_KEY
from assured.observability.logging import get_logger
from assured.results.metadata import utc_now
from assured.steps import Step

from .result import HttpStepResult

if TYPE_CHECKING:
    from assured.context import ScenarioContext

logger = get_logger(__name__)

SUPPORTED_METHODS = ('GET', 'POST', 'PUT', 'PATCH', 'DELETE', 'HEAD', 'OPTIONS')


@runtime_checkable
class HttpClientProvider(Protocol):
    """Supplies clients for HTTP steps (e.g. a fixture wrapping an ASGI app).

    Each call must return a new client; the step closes it after use.
    """

    def create_client(self) -> httpx.AsyncClient: ...


class HttpRequestStep(Step):
    """Send one HTTP request and capture the response.

    Args:
        url: Absolute URL, or a path resolved against the client's (or
            the configured) base URL.
        method: HTTP method name.
        body: JSON-serializable payload, a pydantic model, or raw
            ``str``/``bytes`` content.
        headers: Request headers.
        query_params: Query string parameters.
        timeout_seconds: Per-request timeout; defaults to the settings.
        auth: An ``httpx.Auth`` applied to this request only.
        settings: Explicit settings; loaded from the environment if omitted.
    """

    step_type = 'http'

    def __init__(
        self,
        url: str,
        *,
        method: str = 'GET',
        body: Any = None,
        headers: Mapping[str, str] | None = None,
        query_params: Mapping[str, Any] | None = None,
        timeout_seconds: float | None = None,
        auth: httpx.Auth | None = None,
        settings: AssuredSettings | None = None,
        name: str | None = None,
    ) -> None:
        super().__init__(name)
        method = method.upper()
        if method not in SUPPORTED_METHODS:
            raise ValueError(f"HTTP method '{method}' is not supported.")
        self.url = url
        self.method = method
        self.body = body
        self.headers: dict[str, str] = dict(headers or {})
        self.query_params: dict[str, Any] = dict(query_params or {})
        self.timeout_seconds = timeout_seconds
        self.auth = auth
        self._settings = settings

    def replace(self, **changes: Any) -> HttpRequestStep:
        """Return an unexecuted copy with ``changes`` applied."""
        fields: dict[str, Any] = {
            'url': self.url,
            'method': self.method,
            'body': self.body,
            'headers': self.headers,
            'query_params': self.query_params,
            'timeout_seconds': self.timeout_seconds,
            'auth': self.auth,
            'settings': self._settings,
            'name': self.name,
        }
        fields.update(changes)
        return HttpRequestStep(fields.pop('url'), **fields)

    @property
    def settings(self) -> AssuredSettings:
        if self._settings is None:
            self._settings = load_settings()
        return self._settings

    async def _execute(self, context: ScenarioContext) -> HttpStepResult:
        client = self._client_for(context)
        timeout = self.timeout_seconds or self.settings.timeout_seconds
        started_at = utc_now()
        start = time.monotonic()
        try:
            response = await client.request(
                self.method,
                self.url,
                params=self.query_params or None,
                headers=self.headers or None,
                timeout=timeout,
                **self._request_kwargs(),
            )
        except httpx.HTTPError as exc:
            logger.warning(
                'http_request_failed',
                method=self.method,
                url=self.url,
                error=f'{type(exc).__name__}: {exc}',
            )
            return HttpStepResult.from_exception(
                exc, method=self.method, url=self.url, started_at=started_at,
            )
        finally:
            await client.aclose()

        logger.info(
            'http_request_completed',
            method=self.method,
            url=str(response.request.url),
            status=response.status_code,
            duration_ms=round((time.monotonic() - start) * 1000, 2),
            request_id=response.headers.get('x-request-id', ''),
        )
        return HttpStepResult.from_response(response, started_at=started_at)

    def _client_for(self, context: ScenarioContext) -> httpx.AsyncClient:
        """Use the scenario's client provider if one was registered."""
        if context.has_property(CLIENT_PROVIDER_KEY):
            provider = context.require_property(CLIENT_PROVIDER_KEY, HttpClientProvider)
            return provider.create_client()
        return httpx.AsyncClient(
            base_url=self.settings.base_url,
            follow_redirects=False,
        )

    def _request_kwargs(self) -> dict[str, Any]:
        kwargs: dict[str, Any] = {}
        if self.auth is not None:
            kwargs['auth'] = self.auth
        body = self.body
        if body is None or self.method in ('GET', 'HEAD', 'OPTIONS', 'DELETE'):
            return kwargs
        if isinstance(body, (str, bytes)):
            kwargs['content'] = body
        elif isinstance(body, BaseModel):
            kwargs['json'] = body.model_dump(mode='json')
        else:
            kwargs['json'] = body
        return kwargs

    def __repr__(self) -> str:
        label = f' {self.name!r}' if self.name else ''
        state = 'executed' if self.is_executed else 'pending'
        return f'<HttpRequestStep{label} {self.method} {self.url} {state}>'
