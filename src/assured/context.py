"""Per-scenario state: a property bag plus named step storage."""

from __future__ import annotations

from typing import Any, TypeVar, overload

from .errors import MissingCapabilityError
from .results import coerce, matches_type
from .storage import StepStorage

T = TypeVar('T')

# Key under which ``given(provider)`` stashes an external collaborator.
CLIENT_PROVIDER_KEY = 'client_provider'


class ScenarioContext:
    """Shared state for one scenario (or several, when passed explicitly).

    ``get_property`` is deliberately permissive: collaborators from
    different technologies share this bag without knowing each other's
    value shapes. Use ``require_property`` where a missing value is a bug.
    """

    def __init__(self, steps: StepStorage | None = None) -> None:
        self.steps = steps if steps is not None else StepStorage()
        self.properties: dict[str, Any] = {}

    @overload
    def get_property(self, key: str) -> Any: ...

    @overload
    def get_property(self, key: str, type_: type[T], default: T | None = None) -> T: ...

    def get_property(self, key, type_=None, default=None):
        """Return ``key`` if it is an instance of ``type_``.

        Absent or blank keys and values of another type yield ``default``
        or the zero value of ``type_``. Never raises.
        """
        if not key or not key.strip():
            return coerce(None, type_, default)
        value = self.properties.get(key)
        if type_ is None or value is None:
            return coerce(value, type_, default)
        if matches_type(value, type_):
            return value
        return coerce(None, type_, default)

    def set_property(self, key: str, value: Any) -> None:
        """Store ``value`` under ``key``; blank keys are ignored."""
        if not key or not key.strip():
            return
        self.properties[key] = value

    def require_property(self, key: str, type_: type[T]) -> T:
        """Return ``key`` as ``type_`` or fail fast.

        Raises:
            MissingCapabilityError: If the key is absent or holds a value
                that is not an instance of ``type_``.
        """
        value = self.properties.get(key)
        if value is None:
            raise MissingCapabilityError(key, type_)
        if not matches_type(value, type_):
            raise MissingCapabilityError(key, type_, value)
        return value

    def has_property(self, key: str) -> bool:
        return key in self.properties

    def __repr__(self) -> str:
        return (
            f'ScenarioContext(properties={sorted(self.properties)}, '
            f'steps={list(self.steps.get_step_names())})'
        )
