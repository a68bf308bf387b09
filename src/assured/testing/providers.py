"""Client providers backed by ``httpx.MockTransport``."""
from __future__ import annotations

from collections.abc import Callable

import httpx

Handler = Callable[[httpx.Request], httpx.Response]


class MockTransportProvider:
    """HttpClientProvider that answers requests with ``handler``.

    Every request is kept in :attr:`requests` for later inspection.

    Usage::

        provider = MockTransportProvider(lambda req: httpx.Response(200, json={}))
        given(provider).api_resource('/items').get().execute().assert_status_code(200)
    """

    def __init__(
        self,
        handler: Handler,
        *,
        base_url: str = 'http://testserver',
    ) -> None:
        self._handler = handler
        self.base_url = base_url
        self.requests: list[httpx.Request] = []
        self.clients_created = 0

    def _record(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self._handler(request)

    def create_client(self) -> httpx.AsyncClient:
        self.clients_created += 1
        return httpx.AsyncClient(
            transport=httpx.MockTransport(self._record),
            base_url=self.base_url,
        )

    @property
    def last_request(self) -> httpx.Request | None:
        return self.requests[-1] if self.requests else None
