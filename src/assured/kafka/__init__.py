"""Kafka steps, results and assertions built on aiokafka."""

from .result import KafkaStepResult
from .scenario import KafkaScenario, given
from .step import KafkaClientProvider, KafkaConsumeStep, KafkaProduceStep
from .validation import KafkaValidationBuilder

__all__ = [
    'KafkaClientProvider',
    'KafkaConsumeStep',
    'KafkaProduceStep',
    'KafkaScenario',
    'KafkaStepResult',
    'KafkaValidationBuilder',
    'given',
]
