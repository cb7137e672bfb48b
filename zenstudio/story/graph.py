"""Segment graph store: segment identities, content and display order.

Responsibilities:
- Own the `Story` aggregate and the active segment selection.
- Apply create/update/delete/reorder mutations while keeping the display order
  a permutation of the segment ids.
- Notify listeners after every mutation so callers can persist snapshots.

Key types:
- `SegmentGraph`: constructible story state passed to navigation and pipelines.
"""

from __future__ import annotations

import math
import uuid
from dataclasses import replace
from typing import Callable, Iterator, Optional

from ..errors import SegmentNotFoundError, SegmentOrderError
from ..models.datatypes import (
    DEFAULT_DURATION,
    DEFAULT_MOOD,
    Branch,
    Segment,
    SegmentAssets,
    SegmentKind,
    SegmentUpdate,
    SourceMeta,
    Story,
    VariableValue,
)
from ..parsing import is_variable_value
from ..telemetry.logger import StudioLogger

WORDS_PER_SECOND = 2.5

MutationListener = Callable[[str, Optional[str]], None]


def word_count(text: str) -> int:
    """Count whitespace-separated words."""

    return len(text.split())


def estimate_duration(text: str) -> str:
    """Return the display duration for narration text, e.g. `4s`."""

    return f"{math.ceil(word_count(text) / WORDS_PER_SECOND)}s"


class SegmentGraph:
    """Mutable holder of the story graph and the active selection."""

    def __init__(
        self,
        story: Story | None = None,
        active_segment_id: str | None = None,
        *,
        id_factory: Callable[[], str] | None = None,
        blank_image_uri: str | None = None,
        logger: StudioLogger | None = None,
    ) -> None:
        """Initialize the graph from an optional existing story."""

        self._story = story if story is not None else Story()
        self._active_segment_id = active_segment_id
        self._id_factory = id_factory or (lambda: str(uuid.uuid4()))
        self._blank_image_uri = blank_image_uri
        self._logger = logger
        self._listeners: list[MutationListener] = []

    @property
    def story(self) -> Story:
        """Current story snapshot."""

        return self._story

    @property
    def display_order(self) -> tuple[str, ...]:
        return self._story.display_order

    @property
    def active_segment_id(self) -> str | None:
        return self._active_segment_id

    @property
    def active_segment(self) -> Segment | None:
        if self._active_segment_id is None:
            return None
        return self._story.segments.get(self._active_segment_id)

    def __contains__(self, segment_id: object) -> bool:
        return segment_id in self._story.segments

    def __len__(self) -> int:
        return len(self._story.display_order)

    def get(self, segment_id: str) -> Segment | None:
        """Return a segment by id, or `None` when absent."""

        return self._story.segments.get(segment_id)

    def require(self, segment_id: str) -> Segment:
        """Return a segment by id or raise `SegmentNotFoundError`."""

        segment = self._story.segments.get(segment_id)
        if segment is None:
            raise SegmentNotFoundError(segment_id)
        return segment

    def ordered_segments(self) -> Iterator[Segment]:
        """Yield segments in display order."""

        for segment_id in self._story.display_order:
            yield self._story.segments[segment_id]

    def add_listener(self, listener: MutationListener) -> None:
        """Register a callback invoked as `listener(operation, segment_id)` after mutations."""

        self._listeners.append(listener)

    def create(
        self,
        *,
        kind: SegmentKind = SegmentKind.NARRATION,
        text: str = "",
        assets: SegmentAssets | None = None,
        source_meta: SourceMeta | None = None,
        branches: tuple[Branch, ...] = (),
    ) -> str:
        """Insert a new segment at the end of the display order and select it."""

        segment_id = self._allocate_id()
        segment = Segment(
            id=segment_id,
            kind=kind,
            text=text,
            assets=assets if assets is not None else SegmentAssets(),
            source_meta=(
                source_meta
                if source_meta is not None
                else SourceMeta(mood=DEFAULT_MOOD, estimated_duration=DEFAULT_DURATION)
            ),
            branches=tuple(branches),
        )
        segments = dict(self._story.segments)
        segments[segment_id] = segment
        self._story = self._story.with_segments(
            segments, self._story.display_order + (segment_id,)
        )
        self._active_segment_id = segment_id
        self._notify("create", segment_id)
        return segment_id

    def create_blank(self) -> str:
        """Create an empty narration segment, the editor's "add" action."""

        return self.create(assets=SegmentAssets(image=self._blank_image_uri))

    def create_from_ingested(self, text: str, mood: str, image_uri: str | None) -> str:
        """Create a segment from an ingested page, deriving its display duration once."""

        return self.create(
            text=text,
            assets=SegmentAssets(image=image_uri or None),
            source_meta=SourceMeta(mood=mood, estimated_duration=estimate_duration(text)),
        )

    def update(self, segment_id: str, update: SegmentUpdate) -> bool:
        """Merge a partial update into a segment; absent ids are a silent no-op."""

        current = self._story.segments.get(segment_id)
        if current is None:
            return False
        segments = dict(self._story.segments)
        segments[segment_id] = current.merged(update)
        self._story = self._story.with_segments(segments, self._story.display_order)
        self._notify("update", segment_id)
        return True

    def delete(self, segment_id: str) -> bool:
        """Remove a segment and reassign the selection when it was active."""

        if segment_id not in self._story.segments:
            return False
        segments = dict(self._story.segments)
        del segments[segment_id]
        order = tuple(item for item in self._story.display_order if item != segment_id)
        self._story = self._story.with_segments(segments, order)
        if self._active_segment_id == segment_id:
            self._active_segment_id = order[0] if order else None
        self._notify("delete", segment_id)
        return True

    def reorder(self, from_index: int, to_index: int) -> None:
        """Move the id at `from_index` so that it ends up at `to_index`.

        Raises:
            SegmentOrderError: If either index is outside the current order.
                Negative indices are rejected rather than counted from the end.
        """

        order = list(self._story.display_order)
        for index in (from_index, to_index):
            if not 0 <= index < len(order):
                raise SegmentOrderError(index, len(order))
        moved = order.pop(from_index)
        order.insert(to_index, moved)
        self._story = self._story.with_segments(self._story.segments, tuple(order))
        self._notify("reorder", moved)

    def select(self, segment_id: str | None) -> None:
        """Set the active selection; `None` clears it."""

        if segment_id is not None and segment_id not in self._story.segments:
            raise SegmentNotFoundError(segment_id)
        self._active_segment_id = segment_id
        self._notify("select", segment_id)

    def add_branch(self, source_id: str, target_id: str, condition: str | None = None) -> None:
        """Append a branch edge to a segment.

        The target is not required to exist; dangling targets are skipped by
        navigation.
        """

        source = self.require(source_id)
        self.update(
            source_id,
            SegmentUpdate(branches=source.branches + (Branch(target_id, condition),)),
        )

    def remove_branch(self, source_id: str, index: int) -> Branch:
        """Remove and return the branch edge at `index` of a segment."""

        source = self.require(source_id)
        if not 0 <= index < len(source.branches):
            raise IndexError(f"Segment `{source_id}` has no branch at index {index}.")
        removed = source.branches[index]
        remaining = source.branches[:index] + source.branches[index + 1 :]
        self.update(source_id, SegmentUpdate(branches=remaining))
        return removed

    def set_variable(self, name: str, value: VariableValue) -> None:
        """Set a story variable consulted by branch conditions."""

        if not name.strip():
            raise ValueError("Variable name must be a non-empty string.")
        if not is_variable_value(value):
            raise TypeError(f"Variable `{name}` must be a bool, number or string.")
        variables = dict(self._story.variables)
        variables[name.strip()] = value
        self._story = replace(self._story, variables=variables)
        self._notify("set-variable", None)

    def remove_variable(self, name: str) -> bool:
        """Remove a story variable and report whether it existed."""

        if name not in self._story.variables:
            return False
        variables = dict(self._story.variables)
        del variables[name]
        self._story = replace(self._story, variables=variables)
        self._notify("remove-variable", None)
        return True

    def check_consistency(self) -> list[str]:
        """Return human-readable violations of the display-order invariant."""

        problems: list[str] = []
        order = self._story.display_order
        keys = set(self._story.segments)
        if len(order) != len(set(order)):
            problems.append("display order contains duplicate ids")
        dangling = sorted(set(order) - keys)
        if dangling:
            problems.append(f"display order references unknown ids: {', '.join(dangling)}")
        missing = sorted(keys - set(order))
        if missing:
            problems.append(f"segments missing from display order: {', '.join(missing)}")
        for segment_id, segment in self._story.segments.items():
            if segment.id != segment_id:
                problems.append(f"segment key `{segment_id}` holds id `{segment.id}`")
        if self._active_segment_id is not None and self._active_segment_id not in keys:
            problems.append(f"active selection `{self._active_segment_id}` is not a segment")
        return problems

    def _allocate_id(self) -> str:
        """Return a fresh id that does not collide with an existing segment."""

        while True:
            candidate = self._id_factory()
            if candidate not in self._story.segments:
                return candidate

    def _notify(self, operation: str, segment_id: str | None) -> None:
        if self._logger is not None:
            self._logger.log_mutation(operation, segment_id, total=len(self._story.display_order))
        for listener in self._listeners:
            listener(operation, segment_id)
