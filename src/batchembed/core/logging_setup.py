"""Logging setup for the batchembed logger hierarchy."""

import logging
import sys
from typing import Optional, TextIO

from batchembed.core.config import LoggingConfig

PACKAGE_LOGGER = "batchembed"
TRACE_LOGGER = "batchembed.trace"


class _StdoutHandler(logging.StreamHandler):
    """Writes to whatever ``sys.stdout`` is at emit time."""

    def __init__(self) -> None:
        super().__init__()
        self.setFormatter(logging.Formatter("[trace] %(message)s"))

    @property
    def stream(self):
        return sys.stdout

    @stream.setter
    def stream(self, value) -> None:
        pass


def ensure_trace_output() -> None:
    """
    Make enabled trace lines visible without any logging setup.

    Attaches a stdout handler to the trace logger unless it already has
    handlers (for example from ``configure_logging``), and lowers an unset
    level to INFO.
    """
    trace_logger = logging.getLogger(TRACE_LOGGER)
    if not trace_logger.handlers:
        trace_logger.addHandler(_StdoutHandler())
    if trace_logger.level == logging.NOTSET:
        trace_logger.setLevel(logging.INFO)


def configure_logging(
    config: Optional[LoggingConfig] = None,
    stream: Optional[TextIO] = None,
    trace_stream: Optional[TextIO] = None,
) -> None:
    """
    Attach handlers to the package loggers.

    Args:
        config: Level and format for package diagnostics
        stream: Destination of package diagnostics (stderr by default)
        trace_stream: If given, trace lines are written there as bare
            messages and not propagated to the package handler
    """
    config = config or LoggingConfig()

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.handlers.clear()
    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(logging.Formatter(config.format))
    package_logger.addHandler(handler)
    package_logger.setLevel(config.level.upper())

    trace_logger = logging.getLogger(TRACE_LOGGER)
    trace_logger.handlers.clear()
    if trace_stream is not None:
        trace_handler = logging.StreamHandler(trace_stream)
        trace_handler.setFormatter(logging.Formatter("[trace] %(message)s"))
        trace_logger.addHandler(trace_handler)
        trace_logger.setLevel(logging.INFO)
        trace_logger.propagate = False
    else:
        trace_logger.setLevel(logging.NOTSET)
        trace_logger.propagate = True
