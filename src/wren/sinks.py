"""Collaborator sinks for metrics and log lines.

Middleware never reaches for a global logger or metrics client. The
sink is passed in explicitly, so tests inject a recording sink and
production injects whatever backend it has. Both protocols are one
method wide; the defaults here forward to stdlib ``logging``.
"""

import logging
from typing import Protocol, runtime_checkable


@runtime_checkable
class MetricsSink(Protocol):
    """Accepts ``(label, duration_seconds)`` pairs.

    Called fire-and-forget. Implementations may raise; callers log the
    failure and carry on.
    """

    def report(self, label: str, duration: float) -> None: ...


@runtime_checkable
class LogSink(Protocol):
    """Accepts free-text lines, one per event."""

    def line(self, text: str) -> None: ...


class LoggerSink:
    """``LogSink`` that forwards lines to a stdlib logger."""

    __slots__ = ("level", "logger")

    def __init__(self, logger: logging.Logger | None = None, level: int = logging.INFO) -> None:
        self.logger = logger or logging.getLogger("wren.access")
        self.level = level

    def line(self, text: str) -> None:
        self.logger.log(self.level, "%s", text)


class LoggingMetricsSink:
    """``MetricsSink`` that writes each report as a debug log line.

    A stand-in for deployments without a metrics backend.
    """

    __slots__ = ("logger",)

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self.logger = logger or logging.getLogger("wren.metrics")

    def report(self, label: str, duration: float) -> None:
        self.logger.debug("%s %.6f", label, duration)
