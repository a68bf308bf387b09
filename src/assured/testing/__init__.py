"""Test doubles for scenario, HTTP and Kafka step tests."""
from .kafka import InMemoryBroker
from .providers import MockTransportProvider
from .stubs import (
    ContextWritingStep,
    CountingStep,
    EchoStep,
    FailingStep,
    InvocationRecorder,
    RaisingStep,
)

__all__ = [
    'ContextWritingStep',
    'CountingStep',
    'EchoStep',
    'FailingStep',
    'InMemoryBroker',
    'InvocationRecorder',
    'MockTransportProvider',
    'RaisingStep',
]
