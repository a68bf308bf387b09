"""Tests for StepResult construction and permissive typed access.

Validates:
  - success_result / failure_result stamp metadata and payload
  - Immutability of the result and its property mapping
  - get_property / get_data: instance match, scalar conversion, zero
    values, explicit defaults, never raising
"""

from __future__ import annotations

import dataclasses
from decimal import Decimal
from typing import Any, Literal

import pytest

from assured.results import StepResult, StepStatus, coerce, zero_value


# =====================================================================
# 1. Construction helpers
# =====================================================================


class TestSuccessResult:

    def test_success_fields(self):
        result = StepResult.success_result('payload', {'count': 3})
        assert result.success is True
        assert result.errors == ()
        assert result.data == 'payload'
        assert result.data_type is str
        assert result.properties['count'] == 3

    def test_metadata_stamped(self):
        result = StepResult.success_result()
        assert result.metadata.status == StepStatus.SUCCEEDED
        assert result.metadata.completed_at is not None
        assert result.metadata.completed_at >= result.metadata.started_at

    def test_no_payload(self):
        result = StepResult.success_result()
        assert result.data is None
        assert result.data_type is None
        assert dict(result.properties) == {}


class TestFailureResult:

    def test_from_messages(self):
        result = StepResult.failure_result('boom', 'bang')
        assert result.success is False
        assert result.errors == ('boom', 'bang')
        assert result.metadata.status == StepStatus.FAILED
        assert result.metadata.completed_at is not None

    def test_from_exception(self):
        result = StepResult.failure_result(RuntimeError('disk full'))
        assert result.errors == ('disk full',)

    def test_from_exception_without_message(self):
        result = StepResult.failure_result(TimeoutError())
        assert result.errors == ('TimeoutError',)

    def test_requires_an_error(self):
        with pytest.raises(TypeError, match='at least one error'):
            StepResult.failure_result()


class TestImmutability:

    def test_fields_frozen(self):
        result = StepResult.success_result('x')
        with pytest.raises(dataclasses.FrozenInstanceError):
            result.success = False

    def test_properties_read_only(self):
        result = StepResult.success_result(properties={'a': 1})
        with pytest.raises(TypeError):
            result.properties['a'] = 2

    def test_source_mapping_not_shared(self):
        props = {'a': 1}
        result = StepResult.success_result(properties=props)
        props['a'] = 99
        assert result.properties['a'] == 1

    def test_errors_stored_as_tuple(self):
        result = StepResult(errors=['x'])
        assert result.errors == ('x',)


# =====================================================================
# 2. get_property
# =====================================================================


class TestGetProperty:

    @pytest.fixture
    def result(self) -> StepResult:
        return StepResult.success_result(properties={
            'status_code': 200,
            'status_text': '201',
            'ratio': 0.5,
            'price': '19.99',
            'enabled': 'true',
            'headers': {'x-id': 'abc'},
            'nothing': None,
        })

    def test_exact_type(self, result):
        assert result.get_property('status_code', int) == 200

    def test_supertype_match(self, result):
        assert result.get_property('headers', object) == {'x-id': 'abc'}

    def test_untyped_returns_raw(self, result):
        assert result.get_property('headers') == {'x-id': 'abc'}

    def test_int_to_str(self, result):
        assert result.get_property('status_code', str) == '200'

    def test_str_to_int(self, result):
        assert result.get_property('status_text', int) == 201

    def test_int_to_float(self, result):
        assert result.get_property('status_code', float) == 200.0

    def test_str_to_decimal(self, result):
        assert result.get_property('price', Decimal) == Decimal('19.99')

    def test_str_to_bool(self, result):
        assert result.get_property('enabled', bool) is True

    def test_missing_key_zero_value(self, result):
        assert result.get_property('missing', int) == 0
        assert result.get_property('missing', str) is None
        assert result.get_property('missing', bool) is False

    def test_blank_key_zero_value(self, result):
        assert result.get_property('', int) == 0
        assert result.get_property('   ', float) == 0.0

    def test_none_value_zero_value(self, result):
        assert result.get_property('nothing', int) == 0

    def test_unconvertible_zero_value(self, result):
        assert result.get_property('headers', int) == 0
        assert result.get_property('price', int) == 0

    def test_non_scalar_mismatch_is_none(self, result):
        assert result.get_property('status_code', dict) is None

    def test_parameterized_generic_never_raises(self, result):
        assert result.get_property('headers', dict[str, str]) == {'x-id': 'abc'}
        assert result.get_property('headers', list[int]) is None
        assert result.get_property('missing', dict[str, Any]) is None

    def test_typing_construct_never_raises(self, result):
        assert result.get_property('status_code', Literal[200]) is None

    def test_explicit_default(self, result):
        assert result.get_property('missing', int, default=-1) == -1


# =====================================================================
# 3. get_data and coerce
# =====================================================================


class TestGetData:

    def test_exact(self):
        assert StepResult.success_result('X').get_data(str) == 'X'

    def test_conversion(self):
        assert StepResult.success_result('42').get_data(int) == 42

    def test_absent_payload(self):
        assert StepResult.success_result().get_data(int) == 0
        assert StepResult.success_result().get_data(str) is None

    def test_mismatch_never_raises(self):
        assert StepResult.success_result(['a']).get_data(int) == 0

    def test_untyped(self):
        assert StepResult.success_result({'k': 1}).get_data() == {'k': 1}

    def test_parameterized_generic(self):
        result = StepResult.success_result([1, 2])
        assert result.get_data(list[int]) == [1, 2]
        assert result.get_data(dict[str, int]) is None


class TestCoerce:

    def test_zero_values(self):
        assert zero_value(int) == 0
        assert zero_value(Decimal) == Decimal(0)
        assert zero_value(list) is None
        assert zero_value(None) is None

    def test_bool_not_returned_for_int_request(self):
        assert coerce(True, int) == 1
        assert type(coerce(True, int)) is int

    def test_non_integral_float_rejected_for_int(self):
        assert coerce(2.5, int) == 0
        assert coerce(2.0, int) == 2

    def test_bytes_to_str(self):
        assert coerce(b'hi', str) == 'hi'

    def test_bad_bool_string(self):
        assert coerce('maybe', bool) is False


class TestToDict:

    def test_summary_without_data(self):
        result = StepResult.success_result('secret', {'b': 1, 'a': 2})
        out = result.to_dict()
        assert out['type'] == 'StepResult'
        assert out['success'] is True
        assert out['data_type'] == 'str'
        assert out['properties'] == ['a', 'b']
        assert 'data' not in out

    def test_include_data(self):
        assert StepResult.success_result('x').to_dict(include_data=True)['data'] == 'x'
