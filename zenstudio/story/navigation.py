"""Navigation over the segment graph.

Forward navigation is branch-first: the first branch whose condition holds is
followed when its target exists, otherwise the display order is used.
Backward navigation always retraces the display order, even after a branch
jump.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..errors import ConditionSyntaxError
from ..models.datatypes import Branch, Segment
from ..telemetry.logger import StudioLogger
from .conditions import evaluate_condition
from .graph import SegmentGraph

STEP_BRANCH = "branch"
STEP_LINEAR = "linear"


@dataclass(frozen=True, slots=True)
class NavigationStep:
    """Resolved navigation move.

    Attributes:
        source_id: Segment that was active before the move.
        target_id: Segment that becomes active.
        kind: `branch` for a branch jump, `linear` for a display-order step.
    """

    source_id: str
    target_id: str
    kind: str


class NavigationEngine:
    """Resolve next/previous segments from the graph's active selection."""

    def __init__(self, graph: SegmentGraph, logger: StudioLogger | None = None) -> None:
        self.graph = graph
        self._logger = logger

    @property
    def current_index(self) -> int | None:
        """Position of the active segment in display order, or `None`."""

        active_id = self.graph.active_segment_id
        if active_id is None:
            return None
        try:
            return self.graph.display_order.index(active_id)
        except ValueError:
            return None

    @property
    def total(self) -> int:
        return len(self.graph.display_order)

    def peek_next(self) -> NavigationStep | None:
        """Resolve the forward move without changing the selection."""

        active = self.graph.active_segment
        if active is None:
            return None

        branch = self._first_open_branch(active)
        if branch is not None:
            if branch.target in self.graph:
                return NavigationStep(active.id, branch.target, STEP_BRANCH)
            if self._logger is not None:
                self._logger.log_warning(
                    "navigation",
                    "dangling-branch",
                    segment=active.id,
                    target=branch.target,
                )

        index = self.current_index
        if index is not None and index < self.total - 1:
            return NavigationStep(active.id, self.graph.display_order[index + 1], STEP_LINEAR)
        return None

    def peek_previous(self) -> NavigationStep | None:
        """Resolve the backward move without changing the selection."""

        index = self.current_index
        if index is None or index == 0:
            return None
        order = self.graph.display_order
        return NavigationStep(order[index], order[index - 1], STEP_LINEAR)

    def next(self) -> NavigationStep | None:
        """Move forward and return the step taken, or `None` at the end of the story."""

        step = self.peek_next()
        return self._apply(step, "next")

    def previous(self) -> NavigationStep | None:
        """Move backward in display order and return the step taken."""

        step = self.peek_previous()
        return self._apply(step, "previous")

    def can_go_next(self) -> bool:
        """Whether a forward move is available; a dangling branch alone does not count."""

        return self.peek_next() is not None

    def can_go_previous(self) -> bool:
        return self.peek_previous() is not None

    def _first_open_branch(self, segment: Segment) -> Branch | None:
        """Return the first branch whose condition holds, if any."""

        variables = self.graph.story.variables
        for branch in segment.branches:
            if branch.condition is None or not branch.condition.strip():
                return branch
            try:
                if evaluate_condition(branch.condition, variables):
                    return branch
            except ConditionSyntaxError as exc:
                if self._logger is not None:
                    self._logger.log_warning(
                        "navigation",
                        "invalid-condition",
                        segment=segment.id,
                        target=branch.target,
                        error=type(exc).__name__,
                    )
        return None

    def _apply(self, step: NavigationStep | None, direction: str) -> NavigationStep | None:
        if step is None:
            if self._logger is not None:
                self._logger.log_navigation(
                    "boundary", direction=direction, segment=self.graph.active_segment_id
                )
            return None
        self.graph.select(step.target_id)
        if self._logger is not None:
            event = "branch-jump" if step.kind == STEP_BRANCH else "linear-step"
            self._logger.log_navigation(
                event, direction=direction, source=step.source_id, target=step.target_id
            )
        return step
