"""Tests for StepMetadata and StepStatus.

Validates:
  - Defaults: NotStarted status, attempt count 1, no completion time
  - Duration derived from completed_at - started_at
  - with_status stamps completed_at only for terminal statuses
  - with_incremented_attempt is copy-on-write
  - Constructor invariants and dict serialization
"""

from __future__ import annotations

import dataclasses
from datetime import datetime, timedelta, timezone

import pytest

from assured.results import TERMINAL_STATUSES, StepMetadata, StepStatus


T0 = datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


# =====================================================================
# 1. Defaults and duration
# =====================================================================


class TestDefaults:

    def test_new_metadata_is_not_started(self):
        meta = StepMetadata()
        assert meta.status == StepStatus.NOT_STARTED
        assert meta.completed_at is None
        assert meta.attempt_count == 1
        assert meta.tags == ()

    def test_started_at_is_utc(self):
        assert StepMetadata().started_at.tzinfo is not None

    def test_duration_zero_until_completed(self):
        assert StepMetadata(started_at=T0).duration == timedelta(0)

    def test_duration_from_timestamps(self):
        meta = StepMetadata(
            started_at=T0,
            completed_at=T0 + timedelta(milliseconds=250),
            status=StepStatus.SUCCEEDED,
        )
        assert meta.duration == timedelta(milliseconds=250)

    def test_tags_stored_as_tuple(self):
        meta = StepMetadata(tags=['critical', 'smoke'])
        assert meta.tags == ('critical', 'smoke')

    def test_immutability(self):
        meta = StepMetadata()
        with pytest.raises(dataclasses.FrozenInstanceError):
            meta.status = StepStatus.RUNNING


class TestInvariants:

    def test_attempt_count_must_be_positive(self):
        with pytest.raises(ValueError, match='attempt_count'):
            StepMetadata(attempt_count=0)

    def test_completed_at_cannot_precede_started_at(self):
        with pytest.raises(ValueError, match='precedes'):
            StepMetadata(
                started_at=T0,
                completed_at=T0 - timedelta(seconds=1),
                status=StepStatus.FAILED,
            )

    def test_non_terminal_with_completed_at_allowed(self):
        meta = StepMetadata(
            started_at=T0,
            completed_at=T0 + timedelta(seconds=1),
            status=StepStatus.RUNNING,
        )
        assert meta.duration == timedelta(seconds=1)

    def test_terminal_set(self):
        assert TERMINAL_STATUSES == {
            StepStatus.SUCCEEDED,
            StepStatus.FAILED,
            StepStatus.SKIPPED,
            StepStatus.CANCELLED,
        }
        assert not StepStatus.RUNNING.is_terminal
        assert not StepStatus.NOT_STARTED.is_terminal


# =====================================================================
# 2. with_status
# =====================================================================


class TestWithStatus:

    @pytest.mark.parametrize('status', sorted(TERMINAL_STATUSES, key=lambda s: s.value))
    def test_terminal_status_stamps_completed_at(self, status):
        meta = StepMetadata(started_at=T0)
        updated = meta.with_status(status)
        assert updated.status == status
        assert updated.completed_at is not None
        assert updated.completed_at >= updated.started_at

    def test_non_terminal_keeps_missing_completed_at(self):
        meta = StepMetadata(started_at=T0)
        updated = meta.with_status(StepStatus.RUNNING)
        assert updated.status == StepStatus.RUNNING
        assert updated.completed_at is None

    def test_non_terminal_preserves_existing_completed_at(self):
        done = StepMetadata(
            started_at=T0,
            completed_at=T0 + timedelta(seconds=1),
            status=StepStatus.FAILED,
        )
        rerun = done.with_status(StepStatus.RUNNING)
        assert rerun.status == StepStatus.RUNNING
        assert rerun.completed_at == done.completed_at

    def test_retry_sequence(self):
        failed = StepMetadata(
            started_at=T0,
            completed_at=T0 + timedelta(seconds=1),
            status=StepStatus.FAILED,
            tags=('flaky',),
        )
        retry = failed.with_status(StepStatus.RUNNING).with_incremented_attempt()
        assert retry.status == StepStatus.RUNNING
        assert retry.attempt_count == 2
        assert retry.completed_at == failed.completed_at
        assert retry.started_at == T0
        assert retry.tags == ('flaky',)

        done = retry.with_status(StepStatus.SUCCEEDED)
        assert done.attempt_count == 2
        assert done.completed_at > failed.completed_at

    def test_original_unchanged(self):
        meta = StepMetadata(started_at=T0)
        meta.with_status(StepStatus.SUCCEEDED)
        assert meta.status == StepStatus.NOT_STARTED
        assert meta.completed_at is None

    def test_other_fields_carried_over(self):
        meta = StepMetadata(started_at=T0, attempt_count=3, tags=('a',))
        updated = meta.with_status(StepStatus.SKIPPED)
        assert updated.started_at == T0
        assert updated.attempt_count == 3
        assert updated.tags == ('a',)


# =====================================================================
# 3. with_incremented_attempt and serialization
# =====================================================================


class TestWithIncrementedAttempt:

    def test_increments(self):
        meta = StepMetadata(started_at=T0)
        assert meta.with_incremented_attempt().attempt_count == 2
        assert meta.attempt_count == 1

    def test_carries_everything_else(self):
        done = StepMetadata(
            started_at=T0,
            completed_at=T0 + timedelta(seconds=2),
            status=StepStatus.FAILED,
            tags=('retry',),
        )
        again = done.with_incremented_attempt()
        assert again.started_at == done.started_at
        assert again.completed_at == done.completed_at
        assert again.status == StepStatus.FAILED
        assert again.tags == ('retry',)


class TestToDict:

    def test_serializes_timestamps_and_duration(self):
        meta = StepMetadata(
            started_at=T0,
            completed_at=T0 + timedelta(milliseconds=1500),
            status=StepStatus.SUCCEEDED,
            tags=('x',),
        )
        out = meta.to_dict()
        assert out['status'] == 'succeeded'
        assert out['started_at'] == T0.isoformat()
        assert out['duration_ms'] == 1500.0
        assert out['attempt_count'] == 1
        assert out['tags'] == ['x']

    def test_incomplete_has_no_completed_at(self):
        assert StepMetadata().to_dict()['completed_at'] is None
