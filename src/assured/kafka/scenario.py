"""Scenario with Kafka produce and consume builders."""

from __future__ import annotations

from typing import Any, Self

from assured.dsl import start_scenario
from assured.errors import ScenarioUsageError
from assured.scenario import Scenario
from assured.validation import ValidationBuilder

from .result import KafkaStepResult
from .step import DEFAULT_GROUP_ID, KafkaConsumeStep, KafkaProduceStep
from .validation import KafkaValidationBuilder


class KafkaScenario(Scenario):
    """Scenario whose chain can build Kafka steps.

    ``topic`` attaches a consume step for that topic; ``produce`` turns
    the pending step into a send, ``consume`` turns it back into a
    receive. Option builders replace the pending step with an updated
    copy until it is executed.
    """

    def topic(self, name: str) -> Self:
        self.set_current_step(KafkaConsumeStep(name))
        return self

    def consume(self, group_id: str | None = None) -> Self:
        step = self._pending_kafka_step()
        self.set_current_step(KafkaConsumeStep(
            step.topic,
            group_id=group_id or getattr(step, 'group_id', DEFAULT_GROUP_ID),
            timeout_seconds=step.timeout_seconds,
            settings=step._settings,
            name=step.name,
        ))
        return self

    def produce(self, value: Any, key: Any = None) -> Self:
        step = self._pending_kafka_step()
        if isinstance(step, KafkaProduceStep):
            self.set_current_step(step.replace(value=value, key=key))
            return self
        self.set_current_step(KafkaProduceStep(
            step.topic,
            value,
            key=key,
            timeout_seconds=step.timeout_seconds,
            settings=step._settings,
            name=step.name,
        ))
        return self

    def with_key(self, key: Any) -> Self:
        step = self._pending_produce_step('with_key')
        self.set_current_step(step.replace(key=key))
        return self

    def with_header(self, name: str, value: str | bytes) -> Self:
        step = self._pending_produce_step('with_header')
        self.set_current_step(step.replace(headers={**step.headers, name: value}))
        return self

    def with_partition(self, partition: int) -> Self:
        step = self._pending_produce_step('with_partition')
        self.set_current_step(step.replace(partition=partition))
        return self

    def with_group_id(self, group_id: str) -> Self:
        step = self._pending_kafka_step()
        if not isinstance(step, KafkaConsumeStep):
            raise ScenarioUsageError(
                'with_group_id() applies to consume steps. Call consume() first.'
            )
        self.set_current_step(step.replace(group_id=group_id))
        return self

    def with_timeout(self, seconds: float) -> Self:
        if seconds <= 0:
            raise ValueError(f'timeout must be positive, got {seconds}')
        step = self._pending_kafka_step()
        self.set_current_step(step.replace(timeout_seconds=seconds))
        return self

    def _validation_builder(self, result_type: type | None) -> ValidationBuilder:
        if result_type is None or result_type is KafkaStepResult:
            return KafkaValidationBuilder(self)
        return super()._validation_builder(result_type)

    def _pending_kafka_step(self) -> KafkaConsumeStep | KafkaProduceStep:
        step = self.current_step
        if not isinstance(step, (KafkaConsumeStep, KafkaProduceStep)):
            raise ScenarioUsageError(
                'Current step is not a Kafka step. Call topic() first.'
            )
        if step.is_executed:
            raise ScenarioUsageError(
                'Current Kafka step has already been executed. '
                'Call topic() to start a new one.'
            )
        return step

    def _pending_produce_step(self, builder: str) -> KafkaProduceStep:
        step = self._pending_kafka_step()
        if not isinstance(step, KafkaProduceStep):
            raise ScenarioUsageError(
                f'{builder}() applies to produce steps. Call produce() first.'
            )
        return step


def given(source: Any = None) -> KafkaScenario:
    """Start a Kafka scenario.

    ``source`` may be omitted, a :class:`~assured.context.ScenarioContext`
    to share, or a :class:`~assured.kafka.step.KafkaClientProvider`.
    """
    return start_scenario(KafkaScenario, source)
