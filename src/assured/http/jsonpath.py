"""Simplified JSON path navigation.

Supported forms: ``$``, ``$.name``, ``$.a.b``, ``$.items[0].price``,
``$[1]``, ``$.items[-1]`` and ``$['key with spaces']``.
"""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from typing import Any

_SEGMENT = re.compile(
    r"""\.(?P<name>[^.\[\]]+)
      | \[(?P<index>-?\d+)\]
      | \[(?P<quote>['"])(?P<key>.*?)(?P=quote)\]""",
    re.VERBOSE,
)


class JsonPathError(KeyError):
    """Raised when a path is malformed or does not exist in the document."""

    def __str__(self) -> str:
        return self.args[0]


def parse_path(path: str) -> list[str | int]:
    """Split ``path`` into object keys and list indices."""
    text = path.strip()
    if not text.startswith('$'):
        raise JsonPathError(f"JSON path must start with '$': {path!r}")
    segments: list[str | int] = []
    pos = 1
    while pos < len(text):
        match = _SEGMENT.match(text, pos)
        if match is None:
            raise JsonPathError(f'Invalid JSON path {path!r} at offset {pos}')
        if match.group('index') is not None:
            segments.append(int(match.group('index')))
        elif match.group('name') is not None:
            segments.append(match.group('name'))
        else:
            segments.append(match.group('key'))
        pos = match.end()
    return segments


def extract(document: Any, path: str) -> Any:
    """Return the value at ``path`` in a decoded JSON ``document``."""
    current = document
    walked = '$'
    for segment in parse_path(path):
        if isinstance(segment, int):
            if not isinstance(current, Sequence) or isinstance(current, (str, bytes)):
                raise JsonPathError(f'{walked} is not an array (at {path!r})')
            try:
                current = current[segment]
            except IndexError:
                raise JsonPathError(
                    f'Index {segment} out of range at {walked} (at {path!r})'
                ) from None
            walked += f'[{segment}]'
        else:
            if not isinstance(current, Mapping):
                raise JsonPathError(f'{walked} is not an object (at {path!r})')
            if segment not in current:
                raise JsonPathError(f'Property {segment!r} not found at {walked} (at {path!r})')
            current = current[segment]
            walked += f'.{segment}'
    return current
