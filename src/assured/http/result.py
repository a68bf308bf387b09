"""HTTP-specific step result."""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from http import HTTPStatus
from types import MappingProxyType
from typing import Any, TypeVar

import httpx
from pydantic import TypeAdapter

from assured.results import StepMetadata, StepResult, StepStatus, coerce

from .jsonpath import extract

T = TypeVar('T')

# Property keys populated by HttpStepResult constructors.
STATUS_CODE = 'status_code'
HEADERS = 'headers'
CONTENT_TYPE = 'content_type'
REASON_PHRASE = 'reason_phrase'
METHOD = 'method'
URL = 'url'

_MISSING = object()
_NO_HEADERS: Mapping[str, str] = MappingProxyType({})


@dataclass(frozen=True, slots=True)
class HttpStepResult(StepResult):
    """Result of one HTTP request.

    ``data`` holds the response text. ``success`` is True for 2xx
    responses; a transport error yields ``status_code == 0``.
    """

    @property
    def status_code(self) -> int:
        return self.get_property(STATUS_CODE, int)

    @property
    def headers(self) -> Mapping[str, str]:
        return self.get_property(HEADERS, Mapping) or _NO_HEADERS

    def header(self, name: str) -> str | None:
        """Case-insensitive header lookup."""
        return self.headers.get(name.lower())

    @property
    def content_type(self) -> str | None:
        return self.get_property(CONTENT_TYPE, str)

    @property
    def reason_phrase(self) -> str | None:
        return self.get_property(REASON_PHRASE, str)

    @property
    def response_body(self) -> str | None:
        return self.data

    @property
    def is_success_status_code(self) -> bool:
        return 200 <= self.status_code <= 299

    @property
    def is_redirect(self) -> bool:
        return 300 <= self.status_code <= 399

    @property
    def is_client_error(self) -> bool:
        return 400 <= self.status_code <= 499

    @property
    def is_server_error(self) -> bool:
        return 500 <= self.status_code <= 599

    def json(self) -> Any:
        """Decode the response body as JSON.

        Raises:
            ValueError: If the body is empty or not valid JSON.
        """
        if not self.data:
            raise ValueError('Response body is empty')
        return json.loads(self.data)

    def json_path(self, path: str, type_: type[T] | None = None) -> Any:
        """Extract ``path`` from the JSON body, optionally converting it.

        Raises:
            JsonPathError: If the path does not exist.
            ValueError: If the body is not JSON or the value cannot be
                converted to ``type_``.
        """
        value = extract(self.json(), path)
        if type_ is None or value is None:
            return value
        converted = coerce(value, type_, default=_MISSING)
        if converted is _MISSING:
            raise ValueError(
                f'Value at {path} is {type(value).__name__}, '
                f'not convertible to {type_.__name__}'
            )
        return converted

    def get_response_body(self, type_: Any = None) -> Any:
        """Return the body decoded into ``type_``.

        ``None`` decodes plain JSON, ``str`` returns the raw text and any
        other type (pydantic models, dataclasses, typed containers) is
        validated with pydantic.
        """
        if type_ is None:
            return self.json()
        if type_ is str:
            return self.data
        return TypeAdapter(type_).validate_json(self.data or '')

    # ── Construction helpers ───────────────────────────────────────

    @classmethod
    def from_response(
        cls,
        response: httpx.Response,
        *,
        started_at: datetime | None = None,
    ) -> HttpStepResult:
        """Build a result from a completed response."""
        code = response.status_code
        success = 200 <= code <= 299
        errors: tuple[str, ...] = ()
        if not success:
            errors = (f'HTTP {code} {response.reason_phrase}'.rstrip(),)
        return cls(
            metadata=StepMetadata.completed(
                StepStatus.SUCCEEDED if success else StepStatus.FAILED,
                started_at=started_at,
            ),
            success=success,
            errors=errors,
            data=response.text,
            data_type=str,
            properties={
                STATUS_CODE: code,
                HEADERS: MappingProxyType(
                    {k.lower(): v for k, v in response.headers.items()}
                ),
                CONTENT_TYPE: response.headers.get('content-type'),
                REASON_PHRASE: response.reason_phrase or _phrase(code),
                METHOD: response.request.method,
                URL: str(response.request.url),
            },
        )

    @classmethod
    def from_exception(
        cls,
        exc: BaseException,
        *,
        method: str | None = None,
        url: str | None = None,
        started_at: datetime | None = None,
    ) -> HttpStepResult:
        """Build a failed result for a request that got no response."""
        return cls(
            metadata=StepMetadata.completed(StepStatus.FAILED, started_at=started_at),
            success=False,
            errors=(f'{type(exc).__name__}: {exc}',),
            properties={
                STATUS_CODE: 0,
                METHOD: method,
                URL: url,
            },
        )


def _phrase(code: int) -> str:
    try:
        return HTTPStatus(code).phrase
    except ValueError:
        return ''
