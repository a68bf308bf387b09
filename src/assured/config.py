"""Runtime settings for scenario execution.

Configuration sources (in order):
  1. Explicit keyword arguments (tests, programmatic setup).
  2. Environment variables.
  3. Defaults.

Environment variables:
  - ``ASSURED_BASE_URL``: Base URL prepended to relative request paths.
  - ``ASSURED_TIMEOUT_SECONDS``: Default per-request timeout.
  - ``ASSURED_LOG_LEVEL``: DEBUG, INFO, WARNING or ERROR.
  - ``ASSURED_LOG_FORMAT``: ``json`` or ``console``.
  - ``ASSURED_KAFKA_BOOTSTRAP_SERVERS``: Comma-separated broker addresses.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Literal

from .errors import SettingsError

LogFormat = Literal['json', 'console']

_LOG_LEVELS = ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')
_LOG_FORMATS: tuple[LogFormat, ...] = ('json', 'console')

DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_KAFKA_BOOTSTRAP_SERVERS = 'localhost:9092'


@dataclass(frozen=True, slots=True)
class AssuredSettings:
    """Immutable runtime settings.

    Attributes:
        base_url: Base URL for relative request paths (no trailing slash).
        timeout_seconds: Default request timeout.
        log_level: Root log level name.
        log_format: Log renderer.
        kafka_bootstrap_servers: Brokers for message-queue steps.
    """

    base_url: str = ''
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    log_level: str = 'INFO'
    log_format: LogFormat = 'json'
    kafka_bootstrap_servers: str = DEFAULT_KAFKA_BOOTSTRAP_SERVERS


def load_settings(
    *,
    base_url: str | None = None,
    timeout_seconds: float | None = None,
    log_level: str | None = None,
    log_format: str | None = None,
    kafka_bootstrap_servers: str | None = None,
) -> AssuredSettings:
    """Load settings from env vars with optional overrides.

    Raises:
        SettingsError: If a value is present but invalid.
    """
    url = base_url if base_url is not None else os.environ.get('ASSURED_BASE_URL', '')
    url = url.strip().rstrip('/')
    if url and not url.startswith(('http://', 'https://')):
        raise SettingsError(
            f'ASSURED_BASE_URL must start with http:// or https://, got {url!r}'
        )

    timeout = timeout_seconds
    if timeout is None:
        raw = os.environ.get('ASSURED_TIMEOUT_SECONDS', '').strip()
        if raw:
            try:
                timeout = float(raw)
            except ValueError:
                raise SettingsError(
                    f'ASSURED_TIMEOUT_SECONDS must be a number, got {raw!r}'
                ) from None
        else:
            timeout = DEFAULT_TIMEOUT_SECONDS
    if timeout <= 0:
        raise SettingsError(f'timeout_seconds must be positive, got {timeout}')

    level = (log_level or os.environ.get('ASSURED_LOG_LEVEL', 'INFO')).strip().upper()
    if level not in _LOG_LEVELS:
        raise SettingsError(
            f'ASSURED_LOG_LEVEL must be one of {", ".join(_LOG_LEVELS)}, got {level!r}'
        )

    fmt = (log_format or os.environ.get('ASSURED_LOG_FORMAT', 'json')).strip().lower()
    if fmt not in _LOG_FORMATS:
        raise SettingsError(
            f'ASSURED_LOG_FORMAT must be json or console, got {fmt!r}'
        )

    brokers = (
        kafka_bootstrap_servers
        or os.environ.get('ASSURED_KAFKA_BOOTSTRAP_SERVERS', '')
    ).strip() or DEFAULT_KAFKA_BOOTSTRAP_SERVERS

    return AssuredSettings(
        base_url=url,
        timeout_seconds=timeout,
        log_level=level,
        log_format=fmt,  # type: ignore[arg-type]
        kafka_bootstrap_servers=brokers,
    )
