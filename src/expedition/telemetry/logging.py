"""Contract for runtime telemetry and structured logging sinks."""

from __future__ import annotations

import logging
from typing import Protocol

from rich.logging import RichHandler


class Telemetry(Protocol):
    """Reports discovery, generation, and travel events."""

    def emit(self, event_name: str, payload: dict) -> None:
        """Publish telemetry event to the configured sink."""


class LoggingTelemetry:
    """Forwards events to a standard library logger as structured records."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger or logging.getLogger("expedition.telemetry")

    def emit(self, event_name: str, payload: dict) -> None:
        self._logger.info(event_name, extra={"event": event_name, "payload": payload})


class NullTelemetry:
    """Discards every event."""

    def emit(self, event_name: str, payload: dict) -> None:
        return None


def build_telemetry(enabled: bool) -> Telemetry:
    return LoggingTelemetry() if enabled else NullTelemetry()


def configure_logging(level: str = "INFO") -> None:
    """Install a rich console handler on the ``expedition`` logger tree."""
    root = logging.getLogger("expedition")
    root.setLevel(level.upper())
    if any(isinstance(handler, RichHandler) for handler in root.handlers):
        return
    root.addHandler(RichHandler(show_path=False, markup=False))
