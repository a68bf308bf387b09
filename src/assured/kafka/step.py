"""Kafka produce and consume steps backed by aiokafka."""

from __future__ import annotations

import asyncio
import json
import time
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from aiokafka import AIOKafkaConsumer, AIOKafkaProducer
from aiokafka.errors import KafkaError
from pydantic import BaseModel

from assured.config import AssuredSettings, load_settings
from assured.context import CLIENT_PROVIDER_KEY
from assured.observability.logging import get_logger
from assured.results.metadata import utc_now
from assured.steps import Step

from .result import KafkaStepResult

if TYPE_CHECKING:
    from datetime import datetime

    from assured.context import ScenarioContext

logger = get_logger(__name__)

DEFAULT_GROUP_ID = 'assured-consumer'


@runtime_checkable
class KafkaClientProvider(Protocol):
    """Supplies unstarted producers and consumers for Kafka steps.

    Each call must return a new client; the step starts and stops it.
    """

    def create_producer(self) -> AIOKafkaProducer: ...

    def create_consumer(self, topic: str, group_id: str) -> AIOKafkaConsumer: ...


def encode(value: Any) -> bytes | None:
    """Serialize a key or message value for the wire."""
    if value is None or isinstance(value, bytes):
        return value
    if isinstance(value, str):
        return value.encode('utf-8')
    if isinstance(value, BaseModel):
        return value.model_dump_json().encode('utf-8')
    return json.dumps(value).encode('utf-8')


class _KafkaStep(Step):
    step_type = 'kafka'

    def __init__(
        self,
        topic: str,
        *,
        timeout_seconds: float | None,
        settings: AssuredSettings | None,
        name: str | None,
    ) -> None:
        super().__init__(name)
        if not topic or not topic.strip():
            raise ValueError('topic must not be blank')
        self.topic = topic
        self.timeout_seconds = timeout_seconds
        self._settings = settings

    @property
    def settings(self) -> AssuredSettings:
        if self._settings is None:
            self._settings = load_settings()
        return self._settings

    @property
    def timeout(self) -> float:
        return self.timeout_seconds or self.settings.timeout_seconds

    def _provider_for(self, context: ScenarioContext) -> KafkaClientProvider | None:
        """The scenario's client provider, if one was registered."""
        if context.has_property(CLIENT_PROVIDER_KEY):
            return context.require_property(CLIENT_PROVIDER_KEY, KafkaClientProvider)
        return None

    def _failed(self, exc: BaseException, started_at: datetime) -> KafkaStepResult:
        logger.warning(
            'kafka_operation_failed',
            topic=self.topic,
            error=f'{type(exc).__name__}: {exc}',
        )
        return KafkaStepResult.from_exception(exc, topic=self.topic, started_at=started_at)


class KafkaProduceStep(_KafkaStep):
    """Send one message and capture where the broker stored it.

    Args:
        topic: Destination topic.
        value: ``bytes`` and ``str`` are sent as-is (UTF-8 for text);
            pydantic models and other values are sent as JSON.
        key: Message key, serialized like ``value``.
        headers: Message headers; ``str`` values are UTF-8 encoded.
        partition: Explicit partition; the partitioner picks one if omitted.
        timeout_seconds: Delivery timeout; defaults to the settings.
        settings: Explicit settings; loaded from the environment if omitted.
    """

    def __init__(
        self,
        topic: str,
        value: Any = None,
        *,
        key: Any = None,
        headers: Mapping[str, str | bytes] | None = None,
        partition: int | None = None,
        timeout_seconds: float | None = None,
        settings: AssuredSettings | None = None,
        name: str | None = None,
    ) -> None:
        super().__init__(topic, timeout_seconds=timeout_seconds, settings=settings, name=name)
        if partition is not None and partition < 0:
            raise ValueError(f'partition must not be negative, got {partition}')
        self.value = value
        self.key = key
        self.headers: dict[str, str | bytes] = dict(headers or {})
        self.partition = partition

    def replace(self, **changes: Any) -> KafkaProduceStep:
        """Return an unexecuted copy with ``changes`` applied."""
        fields: dict[str, Any] = {
            'topic': self.topic,
            'value': self.value,
            'key': self.key,
            'headers': self.headers,
            'partition': self.partition,
            'timeout_seconds': self.timeout_seconds,
            'settings': self._settings,
            'name': self.name,
        }
        fields.update(changes)
        return KafkaProduceStep(fields.pop('topic'), **fields)

    async def _execute(self, context: ScenarioContext) -> KafkaStepResult:
        producer = self._producer_for(context)
        started_at = utc_now()
        start = time.monotonic()
        try:
            await producer.start()
            delivery = await asyncio.wait_for(
                producer.send_and_wait(
                    self.topic,
                    value=encode(self.value),
                    key=encode(self.key),
                    partition=self.partition,
                    headers=self._encoded_headers(),
                ),
                timeout=self.timeout,
            )
        except (KafkaError, TimeoutError) as exc:
            return self._failed(exc, started_at)
        finally:
            await producer.stop()

        logger.info(
            'kafka_message_produced',
            topic=delivery.topic,
            partition=delivery.partition,
            offset=delivery.offset,
            duration_ms=round((time.monotonic() - start) * 1000, 2),
        )
        return KafkaStepResult.from_delivery(
            delivery, key=self.key, value=self.value, started_at=started_at,
        )

    def _producer_for(self, context: ScenarioContext) -> AIOKafkaProducer:
        provider = self._provider_for(context)
        if provider is not None:
            return provider.create_producer()
        return AIOKafkaProducer(bootstrap_servers=self.settings.kafka_bootstrap_servers)

    def _encoded_headers(self) -> list[tuple[str, bytes]] | None:
        if not self.headers:
            return None
        return [
            (name, value if isinstance(value, bytes) else value.encode('utf-8'))
            for name, value in self.headers.items()
        ]

    def __repr__(self) -> str:
        label = f' {self.name!r}' if self.name else ''
        state = 'executed' if self.is_executed else 'pending'
        return f'<KafkaProduceStep{label} {self.topic} {state}>'


class KafkaConsumeStep(_KafkaStep):
    """Receive the next message from a topic.

    A receive that sees no message within the timeout yields a failed
    result rather than raising.

    Args:
        topic: Source topic.
        group_id: Consumer group; a new group starts from the earliest offset.
        timeout_seconds: Receive timeout; defaults to the settings.
        settings: Explicit settings; loaded from the environment if omitted.
    """

    def __init__(
        self,
        topic: str,
        *,
        group_id: str = DEFAULT_GROUP_ID,
        timeout_seconds: float | None = None,
        settings: AssuredSettings | None = None,
        name: str | None = None,
    ) -> None:
        super().__init__(topic, timeout_seconds=timeout_seconds, settings=settings, name=name)
        if not group_id or not group_id.strip():
            raise ValueError('group_id must not be blank')
        self.group_id = group_id

    def replace(self, **changes: Any) -> KafkaConsumeStep:
        """Return an unexecuted copy with ``changes`` applied."""
        fields: dict[str, Any] = {
            'topic': self.topic,
            'group_id': self.group_id,
            'timeout_seconds': self.timeout_seconds,
            'settings': self._settings,
            'name': self.name,
        }
        fields.update(changes)
        return KafkaConsumeStep(fields.pop('topic'), **fields)

    async def _execute(self, context: ScenarioContext) -> KafkaStepResult:
        consumer = self._consumer_for(context)
        started_at = utc_now()
        start = time.monotonic()
        try:
            await consumer.start()
            record = await asyncio.wait_for(consumer.getone(), timeout=self.timeout)
        except TimeoutError:
            logger.warning('kafka_consume_timed_out', topic=self.topic, timeout=self.timeout)
            return KafkaStepResult.timed_out(
                topic=self.topic, timeout_seconds=self.timeout, started_at=started_at,
            )
        except KafkaError as exc:
            return self._failed(exc, started_at)
        finally:
            await consumer.stop()

        logger.info(
            'kafka_message_consumed',
            topic=record.topic,
            partition=record.partition,
            offset=record.offset,
            group_id=self.group_id,
            duration_ms=round((time.monotonic() - start) * 1000, 2),
        )
        return KafkaStepResult.from_record(record, started_at=started_at)

    def _consumer_for(self, context: ScenarioContext) -> AIOKafkaConsumer:
        provider = self._provider_for(context)
        if provider is not None:
            return provider.create_consumer(self.topic, self.group_id)
        return AIOKafkaConsumer(
            self.topic,
            bootstrap_servers=self.settings.kafka_bootstrap_servers,
            group_id=self.group_id,
            auto_offset_reset='earliest',
            enable_auto_commit=False,
        )

    def __repr__(self) -> str:
        label = f' {self.name!r}' if self.name else ''
        state = 'executed' if self.is_executed else 'pending'
        return f'<KafkaConsumeStep{label} {self.topic} {state}>'
