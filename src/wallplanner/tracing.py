"""Trace hooks for the geometry engine.

Algorithms accept a ``trace`` callable and report intermediate decisions
through it. The default hook discards everything.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol


class TraceHook(Protocol):
    """Callable receiving an event name and structured fields."""

    def __call__(self, event: str, **fields: Any) -> None:
        ...


def _null_trace(event: str, **fields: Any) -> None:
    return None


NULL_TRACE: TraceHook = _null_trace


class LoggingTrace:
    """Forward trace events to a standard library logger at DEBUG level."""

    def __init__(self, logger: logging.Logger | None = None, level: int = logging.DEBUG):
        self.logger = logger or logging.getLogger("wallplanner")
        self.level = level

    def __call__(self, event: str, **fields: Any) -> None:
        if not self.logger.isEnabledFor(self.level):
            return
        details = " ".join(f"{key}={value}" for key, value in fields.items())
        self.logger.log(self.level, "%s %s", event, details, extra={"trace_fields": fields})


class RecordingTrace:
    """Collect trace events in memory; handy for inspecting a single call."""

    def __init__(self) -> None:
        self.events: list[tuple[str, dict[str, Any]]] = []

    def __call__(self, event: str, **fields: Any) -> None:
        self.events.append((event, fields))

    def names(self) -> list[str]:
        return [event for event, _ in self.events]
