"""Domain exceptions for story operations and CLI diagnostics."""

from __future__ import annotations


class StudioCommandError(RuntimeError):
    """Raised when a CLI-facing operation fails at a named stage."""

    def __init__(
        self,
        *,
        stage: str,
        detail: str,
        hint: str | None = None,
    ) -> None:
        """Initialize a stage-scoped command error."""

        super().__init__(detail)
        self.stage = stage
        self.detail = detail
        self.hint = hint


class SegmentNotFoundError(KeyError):
    """Raised when an operation requires a segment id that is not in the story."""

    def __init__(self, segment_id: str) -> None:
        super().__init__(segment_id)
        self.segment_id = segment_id

    def __str__(self) -> str:
        return f"Unknown segment `{self.segment_id}`."


class SegmentOrderError(IndexError):
    """Raised when a display-order index is outside the current order."""

    def __init__(self, index: int, length: int) -> None:
        super().__init__(f"Display-order index {index} is out of range for {length} segment(s).")
        self.index = index
        self.length = length


class SegmentBusyError(RuntimeError):
    """Raised when another operation already holds the segment lease."""

    def __init__(self, segment_id: str, held_by: str) -> None:
        super().__init__(f"Segment `{segment_id}` is busy with `{held_by}`.")
        self.segment_id = segment_id
        self.held_by = held_by


class StateFormatError(ValueError):
    """Raised when a persisted studio record cannot be mapped to the data model."""


class ConditionSyntaxError(ValueError):
    """Raised when a branch condition expression cannot be parsed."""
