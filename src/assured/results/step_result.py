"""Canonical outcome of one executed step."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from types import MappingProxyType
from typing import Any, TypeVar, get_origin, overload

from .metadata import StepMetadata, StepStatus

T = TypeVar('T')

# Types with a non-None zero value, and the scalar types a stored value
# may be converted into.
_ZERO_VALUES: dict[type, Any] = {
    bool: False,
    int: 0,
    float: 0.0,
    complex: 0j,
    Decimal: Decimal(0),
}
_CONVERTIBLE = (bool, int, float, complex, Decimal, str)
_TRUE_STRINGS = frozenset({'true', '1', 'yes', 'on'})
_FALSE_STRINGS = frozenset({'false', '0', 'no', 'off'})


def zero_value(type_: type | None) -> Any:
    """Return the zero value for ``type_`` (``None`` for non-scalars)."""
    if type_ is None:
        return None
    try:
        return _ZERO_VALUES.get(type_)
    except TypeError:
        return None


def _convert(value: Any, type_: type) -> Any:
    """Convert ``value`` into one of the scalar types; may raise."""
    if type_ is str:
        if isinstance(value, bytes):
            return value.decode('utf-8')
        return str(value)
    if type_ is bool:
        if isinstance(value, str):
            lowered = value.strip().lower()
            if lowered in _TRUE_STRINGS:
                return True
            if lowered in _FALSE_STRINGS:
                return False
            raise ValueError(f'not a boolean: {value!r}')
        if isinstance(value, (int, float, Decimal)):
            return bool(value)
        raise TypeError(type(value).__name__)
    if type_ is int and isinstance(value, str):
        return int(value.strip())
    if type_ is int and isinstance(value, float) and not value.is_integer():
        raise ValueError(f'not an integer: {value!r}')
    if type_ is Decimal and isinstance(value, float):
        return Decimal(str(value))
    if isinstance(value, (Mapping, list, tuple, set, bytes)):
        raise TypeError(type(value).__name__)
    return type_(value)


def matches_type(value: Any, type_: Any) -> bool:
    """Instance check that tolerates parameterized generics.

    ``list[int]`` is checked against ``list`` only; typing constructs
    with no runtime class never match. A ``bool`` does not satisfy an
    ``int`` request.
    """
    if type_ is int and isinstance(value, bool):
        return False
    try:
        return isinstance(value, type_)
    except TypeError:
        origin = get_origin(type_)
        return isinstance(origin, type) and isinstance(value, origin)


def coerce(value: Any, type_: type[T] | None, default: Any = None) -> Any:
    """Narrow ``value`` to ``type_`` without ever raising.

    Tried in order: an instance check (exact type or subclass), then a
    scalar conversion when ``type_`` is a number, bool, Decimal or str.
    Falls back to ``default`` or the zero value of ``type_``.
    """
    fallback = zero_value(type_) if default is None else default
    if value is None:
        return fallback
    if type_ is None or type_ is Any or type_ is object:
        return value
    if matches_type(value, type_):
        return value
    if type_ in _CONVERTIBLE:
        try:
            return _convert(value, type_)
        except (ValueError, TypeError, ArithmeticError, InvalidOperation,
                UnicodeDecodeError):
            return fallback
    return fallback


@dataclass(frozen=True, slots=True)
class StepResult:
    """Immutable outcome of a step execution.

    Technology collaborators subclass this to add typed accessors over
    ``properties`` (HTTP status, headers, queue offsets, ...).

    Attributes:
        metadata: Timing and status of the execution.
        success: Whether the step achieved what it was asked to do.
        errors: Error messages; empty on success.
        data: Primary payload, if any.
        data_type: Type of ``data`` for safe narrowing.
        properties: Technology-specific values keyed by name.
    """

    metadata: StepMetadata = field(default_factory=StepMetadata)
    success: bool = False
    errors: tuple[str, ...] = ()
    data: Any = None
    data_type: type | None = None
    properties: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, 'errors', tuple(self.errors))
        object.__setattr__(
            self, 'properties', MappingProxyType(dict(self.properties)),
        )
        if self.data_type is None and self.data is not None:
            object.__setattr__(self, 'data_type', type(self.data))

    # ── Construction helpers ───────────────────────────────────────

    @classmethod
    def success_result(
        cls,
        data: Any = None,
        properties: Mapping[str, Any] | None = None,
        *,
        tags: Iterable[str] = (),
    ):
        """Build a succeeded result stamped with the current time."""
        return cls(
            metadata=StepMetadata.completed(StepStatus.SUCCEEDED, tags=tuple(tags)),
            success=True,
            data=data,
            properties=properties or {},
        )

    @classmethod
    def failure_result(
        cls,
        *errors: str | BaseException,
        properties: Mapping[str, Any] | None = None,
    ):
        """Build a failed result from error messages or one exception.

        Raises:
            TypeError: If no error is given.
        """
        if not errors:
            raise TypeError('failure_result() requires at least one error')
        messages = tuple(
            (str(e) or type(e).__name__) if isinstance(e, BaseException) else e
            for e in errors
        )
        return cls(
            metadata=StepMetadata.completed(StepStatus.FAILED),
            success=False,
            errors=messages,
            properties=properties or {},
        )

    # ── Typed access ───────────────────────────────────────────────

    @overload
    def get_property(self, key: str) -> Any: ...

    @overload
    def get_property(self, key: str, type_: type[T], default: T | None = None) -> T: ...

    def get_property(self, key, type_=None, default=None):
        """Return property ``key`` narrowed to ``type_``.

        Never raises: a blank or unknown key, or a value that cannot be
        converted, yields ``default`` or the zero value of ``type_``.
        """
        if not key or not key.strip():
            return coerce(None, type_, default)
        return coerce(self.properties.get(key), type_, default)

    @overload
    def get_data(self) -> Any: ...

    @overload
    def get_data(self, type_: type[T], default: T | None = None) -> T: ...

    def get_data(self, type_=None, default=None):
        """Return ``data`` narrowed to ``type_`` (never raises)."""
        return coerce(self.data, type_, default)

    # ── Diagnostics ────────────────────────────────────────────────

    def to_dict(self, *, include_data: bool = False) -> dict[str, Any]:
        """Serialize to a JSON-compatible dict for logs and reports."""
        out: dict[str, Any] = {
            'type': type(self).__name__,
            'success': self.success,
            'errors': list(self.errors),
            'metadata': self.metadata.to_dict(),
            'data_type': self.data_type.__name__ if self.data_type else None,
            'properties': sorted(self.properties),
        }
        if include_data:
            out['data'] = self.data
        return out
