"""Logging for scenario execution."""

from .logging import LOGGER_NAMESPACE, configure_logging, get_logger

__all__ = ['LOGGER_NAMESPACE', 'configure_logging', 'get_logger']
