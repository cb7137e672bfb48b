"""Structured studio event logging.

Responsibilities:
- Emit concise, deterministic single-line events for story and provider activity.
- Route every line through `loguru` so sinks and levels are configured in one place.
"""

from __future__ import annotations

import sys
from typing import TextIO

from loguru import logger as _loguru_logger


def _sanitize_context_value(value: object) -> str:
    """Convert context values into stable, shell-safe tokens."""

    raw = str(value).strip()
    if not raw:
        return "none"
    return "".join(
        character if character.isalnum() or character in {"-", "_", ".", ":", "/"} else "_"
        for character in raw
    )


def _format_context(context: dict[str, object]) -> str:
    """Serialize context key/value pairs in deterministic key order."""

    if not context:
        return ""
    tokens = [
        f"{key}={_sanitize_context_value(context[key])}"
        for key in sorted(context.keys())
    ]
    return " " + " ".join(tokens)


class StudioLogger:
    """Emit deterministic event lines for graph, navigation and provider activity."""

    def __init__(self, sink: TextIO | None = None, level: str = "INFO") -> None:
        """Initialize the loguru sink used for studio event lines."""

        self._sink = sink or sys.stderr
        _loguru_logger.remove()
        _loguru_logger.add(self._sink, format="{message}", level=level, colorize=False)

    def _emit(self, level: str, area: str, event: str, **context: object) -> None:
        """Emit one structured studio log line."""

        line = f"[studio] level={level} area={area} event={event}{_format_context(context)}"
        _loguru_logger.log(level, line)

    def log_mutation(self, operation: str, segment_id: str | None, **context: object) -> None:
        """Emit a story mutation event."""

        self._emit("DEBUG", "graph", operation, segment=segment_id, **context)

    def log_navigation(self, event: str, **context: object) -> None:
        """Emit a navigation event such as a branch jump or linear step."""

        self._emit("INFO", "navigation", event, **context)

    def log_provider_start(self, operation: str, segment_id: str) -> None:
        """Emit an external boundary call start event."""

        self._emit("INFO", operation, "start", segment=segment_id)

    def log_provider_complete(self, operation: str, segment_id: str, **context: object) -> None:
        """Emit an external boundary call completion event."""

        self._emit("INFO", operation, "complete", segment=segment_id, **context)

    def log_provider_failure(self, operation: str, segment_id: str, failure_kind: str) -> None:
        """Emit a provider failure event without payload or credential details."""

        self._emit("ERROR", operation, "failure", segment=segment_id, failure_kind=failure_kind)

    def log_skip(self, operation: str, segment_id: str, reason: str) -> None:
        """Emit an event for an operation that finished without calling the boundary."""

        self._emit("INFO", operation, "skip", segment=segment_id, reason=reason)

    def log_warning(self, area: str, event: str, **context: object) -> None:
        """Emit a warning event."""

        self._emit("WARNING", area, event, **context)

    def log_persistence(self, event: str, **context: object) -> None:
        """Emit a persistence event such as a snapshot or a seeded load."""

        self._emit("DEBUG", "persistence", event, **context)
