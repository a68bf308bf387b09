"""Request authentication schemes as ``httpx.Auth`` flows.

Basic auth uses :class:`httpx.BasicAuth` directly; the classes here cover
the header and query-string schemes httpx does not ship.
"""

from __future__ import annotations

from collections.abc import Generator
from enum import Enum

import httpx


class ApiKeyLocation(str, Enum):
    """Where an API key travels."""

    HEADER = 'header'
    QUERY = 'query'


class BearerAuth(httpx.Auth):
    """Send ``Authorization: <prefix> <token>``."""

    def __init__(self, token: str, prefix: str = 'Bearer') -> None:
        if not token:
            raise ValueError('token must not be empty')
        self.token = token
        self.prefix = prefix

    def auth_flow(self, request: httpx.Request) -> Generator[httpx.Request, httpx.Response, None]:
        value = f'{self.prefix} {self.token}' if self.prefix else self.token
        request.headers['Authorization'] = value
        yield request


class ApiKeyAuth(httpx.Auth):
    """Send an API key as a header or a query parameter."""

    def __init__(
        self,
        name: str,
        value: str,
        location: ApiKeyLocation | str = ApiKeyLocation.HEADER,
    ) -> None:
        if not name or not name.strip():
            raise ValueError('API key name must not be blank')
        self.name = name
        self.value = value
        self.location = ApiKeyLocation(location.lower())

    def auth_flow(self, request: httpx.Request) -> Generator[httpx.Request, httpx.Response, None]:
        if self.location is ApiKeyLocation.HEADER:
            request.headers[self.name] = self.value
        else:
            request.url = request.url.copy_merge_params({self.name: self.value})
        yield request
