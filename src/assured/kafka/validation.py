"""Kafka assertions on top of the generic validation builder."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Self

from pydantic import ValidationError

from assured.validation import ValidationBuilder

from .result import KafkaStepResult


class KafkaValidationBuilder(ValidationBuilder[KafkaStepResult]):
    """Fluent assertions for produced and consumed messages.

    Usage::

        (given(broker)
            .topic('orders').consume()
        .when()
            .execute()
        .then()
            .assert_success()
            .assert_key('order-1')
            .assert_json_path('$.total', lambda total: total > 0))
    """

    result_type = KafkaStepResult

    def assert_topic(self, expected: str) -> Self:
        actual = self.result.topic
        if actual != expected:
            raise AssertionError(f"Expected topic '{expected}' but got '{actual}'")
        return self

    def assert_partition(self, expected: int) -> Self:
        actual = self.result.partition
        if actual != expected:
            raise AssertionError(f'Expected partition {expected} but got {actual}')
        return self

    def assert_offset(self, predicate: Callable[[int | None], Any]) -> Self:
        offset = self.result.offset
        if predicate(offset) is False:
            raise AssertionError(f'Offset failed validation (value: {offset!r})')
        return self

    def assert_key(self, expected: Any) -> Self:
        actual = self.result.key
        if actual != expected:
            raise AssertionError(f'Expected message key {expected!r} but got {actual!r}')
        return self

    def assert_message(
        self,
        predicate: Callable[[Any], Any],
        type_: Any = None,
    ) -> Self:
        """Hand the message (decoded into ``type_`` if given) to ``predicate``."""
        if predicate is None:
            raise TypeError('predicate must not be None')
        message = self.result.get_message(type_)
        if predicate(message) is False:
            raise AssertionError(f'Message failed validation (value: {message!r})')
        return self

    def assert_header(
        self,
        name: str,
        expected: str | bytes | None = None,
    ) -> Self:
        """Assert a message header exists, optionally with a given value."""
        value = self.result.header(name)
        if value is None:
            raise AssertionError(f"Expected message header '{name}' to be present")
        if isinstance(expected, str):
            expected = expected.encode('utf-8')
        if expected is not None and value != expected:
            raise AssertionError(
                f"Expected header '{name}' to be {expected!r} but got {value!r}"
            )
        return self

    def assert_json_path(
        self,
        path: str,
        predicate: Callable[[Any], Any],
        type_: type | None = None,
        message: str | None = None,
    ) -> Self:
        if predicate is None:
            raise TypeError('predicate must not be None')
        value = self.result.json_path(path, type_)
        if predicate(value) is False:
            raise AssertionError(
                message or f'JSON path {path} failed validation (value: {value!r})'
            )
        return self

    def validate_contract(self, model: Any) -> Self:
        """Assert the message validates against ``model`` with pydantic."""
        if self.result.data is None or self.result.data in ('', b''):
            raise AssertionError('Cannot validate contract: message is empty')
        try:
            self.result.get_message(model)
        except ValidationError as exc:
            problems = '; '.join(
                f"{'.'.join(str(p) for p in err['loc']) or '$'}: {err['msg']}"
                for err in exc.errors()
            )
            name = getattr(model, '__name__', repr(model))
            raise AssertionError(
                f'Message does not match contract {name}: {problems}'
            ) from exc
        return self
