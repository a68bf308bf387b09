"""HTTP assertions on top of the generic validation builder."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Self

from pydantic import TypeAdapter, ValidationError

from assured.validation import ValidationBuilder

from .result import HttpStepResult


class HttpValidationBuilder(ValidationBuilder[HttpStepResult]):
    """Fluent assertions for HTTP responses.

    Usage::

        (given(app)
            .api_resource('/api/products/1').get()
        .when()
            .execute()
        .then()
            .assert_status_code(200)
            .assert_json_path('$.name', lambda name: name == 'Widget')
            .validate_contract(Product))
    """

    result_type = HttpStepResult

    def assert_status_code(self, expected: int) -> Self:
        actual = self.result.status_code
        if actual != expected:
            raise AssertionError(
                f'Expected HTTP status code {expected} but got {actual}'
                + _error_suffix(self.result)
            )
        return self

    def assert_header(
        self,
        name: str,
        predicate: Callable[[str | None], Any] | None = None,
    ) -> Self:
        """Assert a response header exists, optionally checking its value."""
        value = self.result.header(name)
        if predicate is None:
            if value is None:
                raise AssertionError(f"Expected response header '{name}' to be present")
            return self
        if predicate(value) is False:
            raise AssertionError(f"Header '{name}' failed validation (value: {value!r})")
        return self

    def assert_json_path(
        self,
        path: str,
        predicate: Callable[[Any], Any],
        type_: type | None = None,
        message: str | None = None,
    ) -> Self:
        """Hand the value at ``path`` to ``predicate``.

        The predicate may assert on its own or return a bool; an explicit
        ``False`` fails with ``message`` (or a default naming the value).
        """
        if predicate is None:
            raise TypeError('predicate must not be None')
        value = self.json_path(path, type_)
        if predicate(value) is False:
            raise AssertionError(
                message or f'JSON path {path} failed validation (value: {value!r})'
            )
        return self

    def validate_contract(self, model: Any) -> Self:
        """Assert the JSON body validates against ``model`` with pydantic."""
        body = self.result.data
        if not body:
            raise AssertionError('Cannot validate contract: response body is empty')
        try:
            TypeAdapter(model).validate_json(body)
        except ValidationError as exc:
            problems = '; '.join(
                f"{'.'.join(str(p) for p in err['loc']) or '$'}: {err['msg']}"
                for err in exc.errors()
            )
            name = getattr(model, '__name__', repr(model))
            raise AssertionError(
                f'Response does not match contract {name}: {problems}'
            ) from exc
        return self

    def json_path(self, path: str, type_: type | None = None) -> Any:
        return self.result.json_path(path, type_)


def _error_suffix(result: HttpStepResult) -> str:
    if result.status_code == 0 and result.errors:
        return f' ({", ".join(result.errors)})'
    return ''
