"""structlog setup for scenario runs.

The library logs through :func:`get_logger`. A test suite that wants
structured output routed through stdlib logging opts in once::

    # conftest.py
    from assured.observability.logging import configure_logging

    configure_logging(level='DEBUG', json_output=False)

Output goes to a handler on the ``assured`` logger, so the host
application's root logger and handlers are left alone. The scenario id
is bound with :func:`structlog.contextvars.bound_contextvars` while a
step runs and appears on every entry emitted inside it.
"""

from __future__ import annotations

import logging
import sys
from typing import IO

import structlog

LOGGER_NAMESPACE = 'assured'
_HANDLER_NAME = 'assured-structlog'


def configure_logging(
    *,
    level: str | None = None,
    json_output: bool | None = None,
    stream: IO[str] | None = None,
) -> logging.Handler:
    """Route ``assured`` log entries to ``stream`` through structlog.

    Calling it again returns the handler installed by the first call.

    Args:
        level: Level name for the ``assured`` logger. Defaults to the
            ``ASSURED_LOG_LEVEL`` setting.
        json_output: JSON lines if True, console rendering if False.
            Defaults to the ``ASSURED_LOG_FORMAT`` setting.
        stream: Destination; standard output when omitted.

    Returns:
        The handler attached to the ``assured`` logger.
    """
    package_logger = logging.getLogger(LOGGER_NAMESPACE)
    for existing in package_logger.handlers:
        if existing.get_name() == _HANDLER_NAME:
            return existing

    if level is None or json_output is None:
        from assured.config import load_settings

        settings = load_settings()
        level = level or settings.log_level
        if json_output is None:
            json_output = settings.log_format == 'json'

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt='iso'),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
    )

    renderer = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer(colors=False)
    )
    handler = logging.StreamHandler(stream or sys.stdout)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    ))

    package_logger.addHandler(handler)
    package_logger.setLevel(level.upper())
    package_logger.propagate = False
    return handler


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger bound to the given name."""
    return structlog.get_logger(name)
