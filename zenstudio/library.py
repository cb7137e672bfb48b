"""Ingestion library bookkeeping.

Responsibilities:
- Track uploaded pages with their processing status and extracted content.
- Promote analyzed pages into story segments through `SegmentGraph.create_from_ingested`.
"""

from __future__ import annotations

from dataclasses import replace

from .models.datatypes import DEFAULT_MOOD, IngestedPage, LibraryFile, LibraryFileStatus
from .story.graph import SegmentGraph
from .telemetry.logger import StudioLogger

PLACEHOLDER_PAGE_TEXT = "Mock text content for this page (No real OCR data available in mock)."

_UNSET = object()


class IngestionLibrary:
    """Ordered collection of library files, newest first."""

    def __init__(
        self,
        files: tuple[LibraryFile, ...] = (),
        logger: StudioLogger | None = None,
    ) -> None:
        self._files: list[LibraryFile] = list(files)
        self._logger = logger

    @property
    def files(self) -> tuple[LibraryFile, ...]:
        return tuple(self._files)

    def __len__(self) -> int:
        return len(self._files)

    def get(self, file_id: str) -> LibraryFile | None:
        """Return a library file by id, or `None` when absent."""

        for item in self._files:
            if item.id == file_id:
                return item
        return None

    def add(self, item: LibraryFile) -> None:
        """Insert a file at the front of the library."""

        if self.get(item.id) is not None:
            raise ValueError(f"Library already contains a file with id `{item.id}`.")
        self._files.insert(0, item)

    def update(
        self,
        file_id: str,
        *,
        status: LibraryFileStatus | None = None,
        stage_message: object = _UNSET,
        thumbnail: object = _UNSET,
        extracted: object = _UNSET,
    ) -> bool:
        """Apply a partial update to a library file; absent ids are a no-op.

        `stage_message`, `thumbnail` and `extracted` accept `None` to clear the
        field; omit them to leave it unchanged.
        """

        for index, item in enumerate(self._files):
            if item.id != file_id:
                continue
            changes: dict[str, object] = {}
            if status is not None:
                changes["status"] = status
            if stage_message is not _UNSET:
                changes["stage_message"] = stage_message
            if thumbnail is not _UNSET:
                changes["thumbnail"] = thumbnail
            if extracted is not _UNSET:
                changes["extracted"] = extracted
            self._files[index] = replace(item, **changes)
            return True
        return False

    def mark_analyzed(self, file_id: str, page: IngestedPage) -> bool:
        """Record extracted content and flag the file as analyzed."""

        return self.update(
            file_id,
            status=LibraryFileStatus.ANALYZED,
            stage_message="Complete",
            extracted=page,
        )

    def mark_failed(self, file_id: str, message: str) -> bool:
        """Flag the file as failed with an error stage message."""

        return self.update(file_id, status=LibraryFileStatus.ERROR, stage_message=f"Error: {message}")

    def remove(self, file_id: str) -> bool:
        """Remove a library file and report whether it existed."""

        before = len(self._files)
        self._files = [item for item in self._files if item.id != file_id]
        return len(self._files) != before

    def promote(self, file_id: str, graph: SegmentGraph) -> str | None:
        """Create a story segment from an analyzed library file.

        Files without extracted data fall back to placeholder text and the
        neutral mood. Returns the new segment id, or `None` when the file is
        missing or not analyzed.
        """

        item = self.get(file_id)
        if item is None or item.status is not LibraryFileStatus.ANALYZED:
            if self._logger is not None:
                self._logger.log_skip("library", file_id, "not-analyzed")
            return None

        extracted = item.extracted
        text = extracted.text if extracted is not None and extracted.text else PLACEHOLDER_PAGE_TEXT
        mood = extracted.mood if extracted is not None and extracted.mood else DEFAULT_MOOD
        image_uri = item.thumbnail or (extracted.image_uri if extracted is not None else "")
        return graph.create_from_ingested(text, mood, image_uri)
