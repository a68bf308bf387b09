"""Tests for KafkaProduceStep, KafkaConsumeStep and KafkaStepResult.

Validates:
  - Produced messages land on the broker with key, headers and partition
  - Delivery results carry topic, partition and offset
  - Consumed records decode into the result with headers and timestamp
  - Consumer groups keep their position; a new group starts from the beginning
  - A receive that times out, or an unreachable broker, yields a failed result
  - Clients obtained by the step are always stopped
  - KafkaStepResult accessors: JSON path, typed messages
"""

from __future__ import annotations

import json
from datetime import datetime

import pytest
from pydantic import BaseModel

from assured import CLIENT_PROVIDER_KEY, MissingCapabilityError, ScenarioContext, block_on
from assured.config import AssuredSettings
from assured.http import JsonPathError
from assured.kafka import KafkaConsumeStep, KafkaProduceStep, KafkaStepResult
from assured.kafka.step import encode
from assured.results import StepStatus
from assured.testing import InMemoryBroker, MockTransportProvider


class Order(BaseModel):
    id: int
    total: float


SETTINGS = AssuredSettings(timeout_seconds=1.0)


def _context(provider) -> ScenarioContext:
    ctx = ScenarioContext()
    ctx.set_property(CLIENT_PROVIDER_KEY, provider)
    return ctx


def _run(step, provider) -> KafkaStepResult:
    return block_on(step.execute(_context(provider)))


# =====================================================================
# 1. Producing
# =====================================================================


class TestProduce:

    def test_delivery_result(self):
        broker = InMemoryBroker()
        result = _run(KafkaProduceStep('orders', {'id': 1}, settings=SETTINGS), broker)
        assert result.success is True
        assert result.status is StepStatus.SUCCEEDED
        assert result.topic == 'orders'
        assert result.partition == 0
        assert result.offset == 0
        assert isinstance(result.timestamp, datetime)
        assert result.message == {'id': 1}

    def test_offsets_advance(self):
        broker = InMemoryBroker()
        _run(KafkaProduceStep('orders', 'first', settings=SETTINGS), broker)
        result = _run(KafkaProduceStep('orders', 'second', settings=SETTINGS), broker)
        assert result.offset == 1
        assert [r.value for r in broker.records('orders')] == [b'first', b'second']

    def test_key_headers_and_partition(self):
        broker = InMemoryBroker(partitions=3)
        step = KafkaProduceStep(
            'orders',
            Order(id=7, total=12.5),
            key='order-7',
            headers={'trace': 't-1', 'raw': b'\x00'},
            partition=2,
            settings=SETTINGS,
        )
        result = _run(step, broker)
        assert result.partition == 2
        assert result.key == 'order-7'
        stored = broker.records('orders')[0]
        assert stored.key == b'order-7'
        assert json.loads(stored.value) == {'id': 7, 'total': 12.5}
        assert dict(stored.headers) == {'trace': b't-1', 'raw': b'\x00'}

    def test_unreachable_broker_is_failed_result(self):
        broker = InMemoryBroker(unavailable=True)
        result = _run(KafkaProduceStep('orders', 'x', settings=SETTINGS), broker)
        assert result.success is False
        assert result.status is StepStatus.FAILED
        assert result.topic == 'orders'
        assert result.get_property('exception_type') == 'KafkaConnectionError'
        assert 'KafkaConnectionError' in result.errors[0]

    def test_producer_stopped(self):
        broker = InMemoryBroker()
        _run(KafkaProduceStep('orders', 'x', settings=SETTINGS), broker)
        assert broker.clients_started == broker.clients_stopped == 1

    @pytest.mark.parametrize('kwargs, match', [
        ({'topic': ' '}, 'topic'),
        ({'topic': 'orders', 'partition': -1}, 'partition'),
    ])
    def test_invalid_arguments(self, kwargs, match):
        with pytest.raises(ValueError, match=match):
            KafkaProduceStep(**kwargs)

    def test_replace_keeps_fields(self):
        step = KafkaProduceStep('orders', 'x', key='k', headers={'h': 'v'}, settings=SETTINGS)
        copy = step.replace(partition=1)
        assert (copy.topic, copy.value, copy.key, copy.headers, copy.partition) == (
            'orders', 'x', 'k', {'h': 'v'}, 1,
        )
        assert copy is not step


class TestEncode:

    @pytest.mark.parametrize('value, expected', [
        (None, None),
        (b'\x01', b'\x01'),
        ('héllo', 'héllo'.encode()),
        ({'a': [1, 2]}, b'{"a": [1, 2]}'),
        (42, b'42'),
    ])
    def test_encode(self, value, expected):
        assert encode(value) == expected

    def test_model(self):
        assert json.loads(encode(Order(id=1, total=2.0))) == {'id': 1, 'total': 2.0}


# =====================================================================
# 2. Consuming
# =====================================================================


class TestConsume:

    def test_receives_record(self):
        broker = InMemoryBroker()
        broker.append('orders', b'{"id": 1}', key=b'order-1', headers=[('trace', b't-9')])
        result = _run(KafkaConsumeStep('orders', settings=SETTINGS), broker)
        assert result.success is True
        assert result.message == '{"id": 1}'
        assert result.key == 'order-1'
        assert result.offset == 0
        assert result.header('trace') == b't-9'
        assert result.header('missing') is None

    def test_group_keeps_position(self):
        broker = InMemoryBroker()
        broker.append('orders', b'one')
        broker.append('orders', b'two')
        first = _run(KafkaConsumeStep('orders', group_id='g', settings=SETTINGS), broker)
        second = _run(KafkaConsumeStep('orders', group_id='g', settings=SETTINGS), broker)
        other = _run(KafkaConsumeStep('orders', group_id='h', settings=SETTINGS), broker)
        assert (first.message, second.message, other.message) == ('one', 'two', 'one')

    def test_binary_value_kept_as_bytes(self):
        broker = InMemoryBroker()
        broker.append('blobs', b'\xff\xfe')
        result = _run(KafkaConsumeStep('blobs', settings=SETTINGS), broker)
        assert result.message == b'\xff\xfe'

    def test_timeout_is_failed_result(self):
        broker = InMemoryBroker()
        result = _run(KafkaConsumeStep('empty', timeout_seconds=0.05, settings=SETTINGS), broker)
        assert result.success is False
        assert result.status is StepStatus.FAILED
        assert "No message received from topic 'empty'" in result.errors[0]
        assert broker.clients_started == broker.clients_stopped == 1

    def test_unreachable_broker_is_failed_result(self):
        broker = InMemoryBroker(unavailable=True)
        result = _run(KafkaConsumeStep('orders', settings=SETTINGS), broker)
        assert result.success is False
        assert result.get_property('exception_type') == 'KafkaConnectionError'

    def test_blank_group_id_rejected(self):
        with pytest.raises(ValueError, match='group_id'):
            KafkaConsumeStep('orders', group_id='')

    def test_wrong_provider_fails_fast(self):
        provider = MockTransportProvider(lambda req: None)
        with pytest.raises(MissingCapabilityError):
            _run(KafkaConsumeStep('orders', settings=SETTINGS), provider)


# =====================================================================
# 3. Result accessors
# =====================================================================


class TestKafkaStepResult:

    def _consumed(self, payload: bytes) -> KafkaStepResult:
        broker = InMemoryBroker()
        broker.append('orders', payload)
        return _run(KafkaConsumeStep('orders', settings=SETTINGS), broker)

    def test_json_path(self):
        result = self._consumed(b'{"id": 3, "items": [{"sku": "A"}]}')
        assert result.json_path('$.items[0].sku') == 'A'
        assert result.json_path('$.id', float) == 3.0

    def test_json_path_missing(self):
        result = self._consumed(b'{"id": 3}')
        with pytest.raises(JsonPathError):
            result.json_path('$.total')

    def test_json_path_on_produced_model(self):
        broker = InMemoryBroker()
        result = _run(KafkaProduceStep('orders', Order(id=4, total=1.5), settings=SETTINGS), broker)
        assert result.json_path('$.total') == 1.5

    def test_get_message_typed(self):
        result = self._consumed(b'{"id": 5, "total": "9.5"}')
        order = result.get_message(Order)
        assert order == Order(id=5, total=9.5)
        assert result.get_message(dict[str, object])['id'] == 5
        assert result.get_message(str) == '{"id": 5, "total": "9.5"}'

    def test_empty_message_json(self):
        result = self._consumed(b'')
        with pytest.raises(ValueError, match='empty'):
            result.json()

    def test_headers_read_only(self):
        broker = InMemoryBroker()
        broker.append('orders', b'x', headers=[('h', b'v')])
        result = _run(KafkaConsumeStep('orders', settings=SETTINGS), broker)
        with pytest.raises(TypeError):
            result.headers['h'] = b'other'

    def test_failed_result_has_no_position(self):
        result = KafkaStepResult.timed_out(topic='orders', timeout_seconds=1)
        assert result.partition is None
        assert result.offset is None
        assert result.headers == {}
