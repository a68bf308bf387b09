"""Execution metadata shared by every step result."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any


class StepStatus(str, Enum):
    """Lifecycle status of a step."""

    NOT_STARTED = 'not_started'
    RUNNING = 'running'
    SUCCEEDED = 'succeeded'
    FAILED = 'failed'
    SKIPPED = 'skipped'
    CANCELLED = 'cancelled'

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset({
    StepStatus.SUCCEEDED,
    StepStatus.FAILED,
    StepStatus.SKIPPED,
    StepStatus.CANCELLED,
})


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True, slots=True)
class StepMetadata:
    """Timing and status information about one step execution.

    Instances are immutable; ``with_status`` and ``with_incremented_attempt``
    return updated copies so timing data already handed to a caller never
    changes underneath it.

    Attributes:
        started_at: When execution started (UTC).
        completed_at: When execution last reached a terminal status. A
            retry that moves the status back keeps the previous value.
        status: Current lifecycle status.
        attempt_count: Number of execution attempts, starting at 1.
        tags: Free-form labels for filtering or reporting.
    """

    started_at: datetime = field(default_factory=utc_now)
    completed_at: datetime | None = None
    status: StepStatus = StepStatus.NOT_STARTED
    attempt_count: int = 1
    tags: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if self.attempt_count < 1:
            raise ValueError(
                f'attempt_count must be >= 1, got {self.attempt_count}'
            )
        if self.completed_at is not None and self.completed_at < self.started_at:
            raise ValueError(
                f'completed_at ({self.completed_at.isoformat()}) precedes '
                f'started_at ({self.started_at.isoformat()})'
            )
        # Accept any iterable of tags but store an immutable tuple.
        object.__setattr__(self, 'tags', tuple(self.tags))

    @property
    def duration(self) -> timedelta:
        """Elapsed time, or zero while the step has not completed."""
        if self.completed_at is None:
            return timedelta(0)
        return self.completed_at - self.started_at

    @classmethod
    def completed(
        cls,
        status: StepStatus,
        *,
        started_at: datetime | None = None,
        tags: tuple[str, ...] = (),
    ) -> StepMetadata:
        """Metadata for a step that finished with ``status`` just now."""
        now = utc_now()
        return cls(
            started_at=started_at or now,
            completed_at=now,
            status=status,
            tags=tags,
        )

    def with_status(self, new_status: StepStatus) -> StepMetadata:
        """Return a copy with ``new_status``.

        ``completed_at`` is stamped with the current time when the new
        status is terminal and carried over unchanged otherwise.
        """
        if new_status.is_terminal:
            return replace(
                self,
                status=new_status,
                completed_at=max(utc_now(), self.started_at),
            )
        return replace(self, status=new_status)

    def with_incremented_attempt(self) -> StepMetadata:
        """Return a copy with ``attempt_count`` increased by one."""
        return replace(self, attempt_count=self.attempt_count + 1)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dict."""
        return {
            'status': self.status.value,
            'started_at': self.started_at.isoformat(),
            'completed_at': (
                self.completed_at.isoformat() if self.completed_at else None
            ),
            'duration_ms': round(self.duration.total_seconds() * 1000, 2),
            'attempt_count': self.attempt_count,
            'tags': list(self.tags),
        }
