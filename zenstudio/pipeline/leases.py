"""Per-segment operation leases.

At most one generation or rewrite operation may run against a segment at a
time; a second request is rejected instead of racing the first one's update.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Iterator

from ..errors import SegmentBusyError


class SegmentLeaseRegistry:
    """Process-local registry of segments with an in-flight operation."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._held: dict[str, str] = {}

    def holder(self, segment_id: str) -> str | None:
        """Return the operation holding a segment lease, if any."""

        with self._lock:
            return self._held.get(segment_id)

    def snapshot(self) -> dict[str, str]:
        """Return a copy of all held leases keyed by segment id."""

        with self._lock:
            return dict(self._held)

    @contextmanager
    def acquire(self, segment_id: str, operation: str) -> Iterator[None]:
        """Hold the segment lease for the duration of the block.

        Raises:
            SegmentBusyError: If another operation already holds the lease.
        """

        with self._lock:
            held_by = self._held.get(segment_id)
            if held_by is not None:
                raise SegmentBusyError(segment_id, held_by)
            self._held[segment_id] = operation
        try:
            yield
        finally:
            with self._lock:
                self._held.pop(segment_id, None)
