"""Message-queue step result."""

from __future__ import annotations

import json
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any, TypeVar

from pydantic import BaseModel, TypeAdapter

from assured.http.jsonpath import extract
from assured.results import StepMetadata, StepResult, StepStatus, coerce, matches_type

T = TypeVar('T')

# Property keys populated by KafkaStepResult constructors.
TOPIC = 'topic'
PARTITION = 'partition'
OFFSET = 'offset'
TIMESTAMP = 'timestamp'
KEY = 'key'
HEADERS = 'headers'
EXCEPTION_TYPE = 'exception_type'

_MISSING = object()
_NO_HEADERS: Mapping[str, bytes] = MappingProxyType({})


def decode(raw: bytes | None) -> str | bytes | None:
    """UTF-8 text when ``raw`` decodes cleanly, the raw bytes otherwise."""
    if raw is None:
        return None
    try:
        return raw.decode('utf-8')
    except UnicodeDecodeError:
        return raw


def _timestamp(millis: int | None) -> datetime | None:
    if millis is None or millis < 0:
        return None
    return datetime.fromtimestamp(millis / 1000, tz=timezone.utc)


@dataclass(frozen=True, slots=True)
class KafkaStepResult(StepResult):
    """Result of producing or consuming one message.

    ``data`` holds the message value: the value that was sent for a
    produce step, the decoded payload for a consume step.
    """

    @property
    def message(self) -> Any:
        return self.data

    @property
    def topic(self) -> str | None:
        return self.get_property(TOPIC, str)

    @property
    def partition(self) -> int | None:
        value = self.properties.get(PARTITION)
        return value if isinstance(value, int) else None

    @property
    def offset(self) -> int | None:
        value = self.properties.get(OFFSET)
        return value if isinstance(value, int) else None

    @property
    def timestamp(self) -> datetime | None:
        return self.get_property(TIMESTAMP, datetime)

    @property
    def key(self) -> Any:
        return self.properties.get(KEY)

    @property
    def headers(self) -> Mapping[str, bytes]:
        return self.get_property(HEADERS, Mapping) or _NO_HEADERS

    def header(self, name: str) -> bytes | None:
        return self.headers.get(name)

    def json(self) -> Any:
        """The message as decoded JSON.

        Raises:
            ValueError: If the message is empty or not valid JSON.
        """
        message = self.data
        if isinstance(message, BaseModel):
            return message.model_dump(mode='json')
        if isinstance(message, (str, bytes)):
            if not message:
                raise ValueError('Message is empty')
            return json.loads(message)
        if message is None:
            raise ValueError('Message is empty')
        return message

    def json_path(self, path: str, type_: type[T] | None = None) -> Any:
        """Extract ``path`` from the JSON message, optionally converting it.

        Raises:
            JsonPathError: If the path does not exist.
            ValueError: If the value cannot be converted to ``type_``.
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

    def get_message(self, type_: Any = None) -> Any:
        """Return the message decoded into ``type_`` with pydantic."""
        message = self.data
        if type_ is None or isinstance(message, BaseModel) and matches_type(message, type_):
            return message
        if type_ is str and isinstance(message, (str, bytes)):
            return decode(message) if isinstance(message, bytes) else message
        adapter = TypeAdapter(type_)
        if isinstance(message, (str, bytes)):
            return adapter.validate_json(message)
        return adapter.validate_python(message)

    # ── Construction helpers ───────────────────────────────────────

    @classmethod
    def from_delivery(
        cls,
        delivery: Any,
        *,
        key: Any = None,
        value: Any = None,
        started_at: datetime | None = None,
    ) -> KafkaStepResult:
        """Build a result from the broker's acknowledgement of a send."""
        return cls(
            metadata=StepMetadata.completed(StepStatus.SUCCEEDED, started_at=started_at),
            success=True,
            data=value,
            properties={
                TOPIC: delivery.topic,
                PARTITION: delivery.partition,
                OFFSET: delivery.offset,
                TIMESTAMP: _timestamp(delivery.timestamp),
                KEY: key,
            },
        )

    @classmethod
    def from_record(
        cls,
        record: Any,
        *,
        started_at: datetime | None = None,
    ) -> KafkaStepResult:
        """Build a result from a consumed record."""
        headers: Sequence[tuple[str, bytes]] = record.headers or ()
        return cls(
            metadata=StepMetadata.completed(StepStatus.SUCCEEDED, started_at=started_at),
            success=True,
            data=decode(record.value),
            properties={
                TOPIC: record.topic,
                PARTITION: record.partition,
                OFFSET: record.offset,
                TIMESTAMP: _timestamp(record.timestamp),
                KEY: decode(record.key),
                HEADERS: MappingProxyType(dict(headers)),
            },
        )

    @classmethod
    def from_exception(
        cls,
        exc: BaseException,
        *,
        topic: str,
        started_at: datetime | None = None,
    ) -> KafkaStepResult:
        """Build a failed result for a send or receive that raised."""
        return cls(
            metadata=StepMetadata.completed(StepStatus.FAILED, started_at=started_at),
            success=False,
            errors=(f'{type(exc).__name__}: {exc}',),
            properties={TOPIC: topic, EXCEPTION_TYPE: type(exc).__name__},
        )

    @classmethod
    def timed_out(
        cls,
        *,
        topic: str,
        timeout_seconds: float,
        started_at: datetime | None = None,
    ) -> KafkaStepResult:
        """Build a failed result for a receive that saw no message in time."""
        return cls(
            metadata=StepMetadata.completed(StepStatus.FAILED, started_at=started_at),
            success=False,
            errors=(
                f"No message received from topic '{topic}' "
                f'within {timeout_seconds:g}s',
            ),
            properties={TOPIC: topic, EXCEPTION_TYPE: 'TimeoutError'},
        )
