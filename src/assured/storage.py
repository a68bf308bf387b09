"""Case-insensitive registry of named steps."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .errors import DuplicateStepError, InvalidStepNameError, StepNotFoundError

if TYPE_CHECKING:
    from .steps import Step


def _normalize(name: str) -> str:
    return name.strip().casefold()


def _is_blank(name: str | None) -> bool:
    return name is None or not name.strip()


class StepStorage:
    """Name-keyed step storage scoped to one scenario context.

    Names compare case-insensitively; the spelling used on the most
    recent save is the one reported by :meth:`get_step_names`.
    ``save`` overwrites silently; ``save_if_absent`` refuses to.
    """

    def __init__(self) -> None:
        # normalized name -> (display name, step)
        self._steps: dict[str, tuple[str, Step]] = {}

    def save(self, name: str, step: Step) -> None:
        """Store ``step`` under ``name``, replacing any previous step."""
        self._check(name, step)
        self._steps[_normalize(name)] = (name.strip(), step)

    def save_if_absent(self, name: str, step: Step) -> None:
        """Store ``step`` unless ``name`` is already taken.

        Raises:
            DuplicateStepError: If a step is already stored under ``name``.
        """
        self._check(name, step)
        key = _normalize(name)
        if key in self._steps:
            raise DuplicateStepError(name)
        self._steps[key] = (name.strip(), step)

    def __getitem__(self, name: str) -> Step:
        if _is_blank(name):
            raise InvalidStepNameError()
        entry = self._steps.get(_normalize(name))
        if entry is None:
            raise StepNotFoundError(name)
        return entry[1]

    def get(self, name: str) -> Step:
        """Same as ``storage[name]``."""
        return self[name]

    def try_get(self, name: str | None) -> Step | None:
        """Return the step stored under ``name`` or ``None``."""
        if _is_blank(name):
            return None
        entry = self._steps.get(_normalize(name))
        return entry[1] if entry else None

    def contains(self, name: str | None) -> bool:
        if _is_blank(name):
            return False
        return _normalize(name) in self._steps

    __contains__ = contains

    def get_step_names(self) -> tuple[str, ...]:
        """Snapshot of stored names."""
        return tuple(display for display, _ in self._steps.values())

    def items(self) -> list[tuple[str, Step]]:
        return list(self._steps.values())

    def clear(self) -> None:
        self._steps.clear()

    def __len__(self) -> int:
        return len(self._steps)

    @staticmethod
    def _check(name: str, step: Step) -> None:
        if _is_blank(name):
            raise InvalidStepNameError()
        if step is None:
            raise TypeError('step must not be None')
