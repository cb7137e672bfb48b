"""Persistence of the studio record as a JSON key-value blob.

Responsibilities:
- Map `StudioState` to and from the persisted record layout.
- Store snapshots under a fixed storage key in a filesystem blob store.
- Reject records that violate the display-order invariant instead of repairing them.

Key types:
- `JsonStateStore`: filesystem blob store addressed by storage key.
- `PersistenceAdapter`: load-or-seed and snapshot operations for one key.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable, Mapping

from .errors import StateFormatError
from .models.datatypes import (
    DEFAULT_MOOD,
    Branch,
    GlobalConfig,
    IngestedPage,
    LibraryFile,
    LibraryFileStatus,
    Segment,
    SegmentAssets,
    SegmentKind,
    SourceMeta,
    Story,
    StudioState,
    Theme,
)
from .parsing import is_variable_value
from .telemetry.logger import StudioLogger

DEFAULT_STORAGE_KEY = "zen-studio-storage-v5"


def _segment_to_payload(segment: Segment) -> dict[str, object]:
    return {
        "id": segment.id,
        "type": segment.kind.value,
        "text_content": segment.text,
        "assets": {
            "audio": segment.assets.audio,
            "image": segment.assets.image,
            "subs": segment.assets.subtitles,
        },
        "source_data": {
            "mood": segment.source_meta.mood,
            "image_prompt": segment.source_meta.image_prompt,
            "estimated_duration": segment.source_meta.estimated_duration,
        },
        "next": [
            {"target": branch.target, "condition": branch.condition}
            for branch in segment.branches
        ],
    }


def _library_file_to_payload(item: LibraryFile) -> dict[str, object]:
    extracted: dict[str, object] | None = None
    if item.extracted is not None:
        extracted = {
            "text": item.extracted.text,
            "mood": item.extracted.mood,
            "image": item.extracted.image_uri,
        }
    return {
        "id": item.id,
        "name": item.name,
        "status": item.status.value,
        "thumbnail": item.thumbnail,
        "stageMessage": item.stage_message,
        "extractedData": extracted,
    }


def state_to_payload(state: StudioState) -> dict[str, object]:
    """Serialize a studio state into the persisted record layout."""

    story = state.story
    return {
        "story": {
            "engine_version": story.version,
            "global_config": {
                "normalization_lufs": story.global_config.normalization_level,
                "idle_timeout_sec": story.global_config.idle_timeout_seconds,
            },
            "variables": dict(story.variables),
            "segments": {
                segment_id: _segment_to_payload(segment)
                for segment_id, segment in story.segments.items()
            },
            "ui_segment_order": list(story.display_order),
        },
        "library": [_library_file_to_payload(item) for item in state.library],
        "activeSegmentId": state.active_segment_id,
        "theme": state.theme.value,
        "apiKey": state.credential,
    }


def _require_mapping(value: object, field_name: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise StateFormatError(f"`{field_name}` must be an object.")
    return value


def _optional_string(value: object, field_name: str) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise StateFormatError(f"`{field_name}` must be a string or null.")
    return value


def _required_string(value: object, field_name: str) -> str:
    if not isinstance(value, str):
        raise StateFormatError(f"`{field_name}` must be a string.")
    return value


def _segment_from_payload(segment_id: str, raw: object) -> Segment:
    prefix = f"story.segments.{segment_id}"
    payload = _require_mapping(raw, prefix)

    stored_id = _required_string(payload.get("id"), f"{prefix}.id")
    if stored_id != segment_id:
        raise StateFormatError(f"Segment keyed `{segment_id}` carries id `{stored_id}`.")

    try:
        kind = SegmentKind(payload.get("type", SegmentKind.NARRATION.value))
    except ValueError as exc:
        raise StateFormatError(f"`{prefix}.type` has unknown value `{payload.get('type')}`.") from exc

    assets_raw = _require_mapping(payload.get("assets") or {}, f"{prefix}.assets")
    source_raw = _require_mapping(payload.get("source_data") or {}, f"{prefix}.source_data")
    branches_raw = payload.get("next") or []
    if not isinstance(branches_raw, list):
        raise StateFormatError(f"`{prefix}.next` must be a list.")

    branches: list[Branch] = []
    for index, branch_raw in enumerate(branches_raw):
        branch = _require_mapping(branch_raw, f"{prefix}.next[{index}]")
        branches.append(
            Branch(
                target=_required_string(branch.get("target"), f"{prefix}.next[{index}].target"),
                condition=_optional_string(
                    branch.get("condition"), f"{prefix}.next[{index}].condition"
                ),
            )
        )

    return Segment(
        id=stored_id,
        kind=kind,
        text=_required_string(payload.get("text_content", ""), f"{prefix}.text_content"),
        assets=SegmentAssets(
            audio=_optional_string(assets_raw.get("audio"), f"{prefix}.assets.audio"),
            image=_optional_string(assets_raw.get("image"), f"{prefix}.assets.image"),
            subtitles=_optional_string(assets_raw.get("subs"), f"{prefix}.assets.subs"),
        ),
        source_meta=SourceMeta(
            mood=_required_string(
                source_raw.get("mood", DEFAULT_MOOD), f"{prefix}.source_data.mood"
            ),
            estimated_duration=_optional_string(
                source_raw.get("estimated_duration"), f"{prefix}.source_data.estimated_duration"
            ),
            image_prompt=_optional_string(
                source_raw.get("image_prompt"), f"{prefix}.source_data.image_prompt"
            ),
        ),
        branches=tuple(branches),
    )


def _story_from_payload(raw: object) -> Story:
    payload = _require_mapping(raw, "story")
    config_raw = _require_mapping(payload.get("global_config") or {}, "story.global_config")
    defaults = GlobalConfig()
    try:
        global_config = GlobalConfig(
            normalization_level=float(
                config_raw.get("normalization_lufs", defaults.normalization_level)
            ),
            idle_timeout_seconds=int(
                config_raw.get("idle_timeout_sec", defaults.idle_timeout_seconds)
            ),
        )
    except (TypeError, ValueError) as exc:
        raise StateFormatError("`story.global_config` holds non-numeric values.") from exc

    variables = dict(_require_mapping(payload.get("variables") or {}, "story.variables"))
    for name, value in variables.items():
        if not is_variable_value(value):
            raise StateFormatError(f"Variable `{name}` must be a bool, number or string.")

    segments_raw = _require_mapping(payload.get("segments") or {}, "story.segments")
    segments = {
        str(segment_id): _segment_from_payload(str(segment_id), segment_raw)
        for segment_id, segment_raw in segments_raw.items()
    }

    order_raw = payload.get("ui_segment_order") or []
    if not isinstance(order_raw, list) or not all(isinstance(item, str) for item in order_raw):
        raise StateFormatError("`story.ui_segment_order` must be a list of segment ids.")
    if len(order_raw) != len(set(order_raw)) or set(order_raw) != set(segments):
        raise StateFormatError(
            "`story.ui_segment_order` must list every segment id exactly once."
        )

    return Story(
        version=str(payload.get("engine_version", Story().version)),
        global_config=global_config,
        variables=variables,
        segments=segments,
        display_order=tuple(order_raw),
    )


def _library_from_payload(raw: object) -> tuple[LibraryFile, ...]:
    if raw is None:
        return ()
    if not isinstance(raw, list):
        raise StateFormatError("`library` must be a list.")

    items: list[LibraryFile] = []
    for index, item_raw in enumerate(raw):
        prefix = f"library[{index}]"
        item = _require_mapping(item_raw, prefix)
        try:
            status = LibraryFileStatus(item.get("status", LibraryFileStatus.PROCESSING.value))
        except ValueError as exc:
            raise StateFormatError(f"`{prefix}.status` has unknown value.") from exc
        extracted = None
        extracted_raw = item.get("extractedData")
        if extracted_raw is not None:
            extracted_map = _require_mapping(extracted_raw, f"{prefix}.extractedData")
            extracted = IngestedPage(
                text=_required_string(extracted_map.get("text", ""), f"{prefix}.extractedData.text"),
                mood=_required_string(
                    extracted_map.get("mood", DEFAULT_MOOD), f"{prefix}.extractedData.mood"
                ),
                image_uri=_required_string(
                    extracted_map.get("image", item.get("thumbnail") or ""),
                    f"{prefix}.extractedData.image",
                ),
            )
        items.append(
            LibraryFile(
                id=_required_string(item.get("id"), f"{prefix}.id"),
                name=_required_string(item.get("name", ""), f"{prefix}.name"),
                status=status,
                thumbnail=_optional_string(item.get("thumbnail"), f"{prefix}.thumbnail"),
                stage_message=_optional_string(item.get("stageMessage"), f"{prefix}.stageMessage"),
                extracted=extracted,
            )
        )
    return tuple(items)


def state_from_payload(payload: object) -> StudioState:
    """Parse a persisted record into a studio state.

    Raises:
        StateFormatError: If the record is malformed or its display order is not
            a permutation of the segment ids.
    """

    record = _require_mapping(payload, "record")
    story = _story_from_payload(record.get("story"))

    active_segment_id = _optional_string(record.get("activeSegmentId"), "activeSegmentId")
    if active_segment_id is not None and active_segment_id not in story.segments:
        raise StateFormatError(f"`activeSegmentId` references unknown segment `{active_segment_id}`.")

    try:
        theme = Theme(record.get("theme", Theme.DARK.value))
    except ValueError as exc:
        raise StateFormatError(f"`theme` has unknown value `{record.get('theme')}`.") from exc

    return StudioState(
        story=story,
        library=_library_from_payload(record.get("library")),
        active_segment_id=active_segment_id,
        theme=theme,
        credential=_optional_string(record.get("apiKey"), "apiKey") or "",
    )


class JsonStateStore:
    """Filesystem-backed key-value store of JSON records."""

    def __init__(self, root: Path) -> None:
        """Initialize the store with a root state directory."""

        self.root = root

    def path_for(self, key: str) -> Path:
        return self.root / f"{key}.json"

    def exists(self, key: str) -> bool:
        """Return whether a record exists for the key."""

        return self.path_for(key).exists()

    def load(self, key: str) -> dict[str, object] | None:
        """Load the JSON record for a key, or `None` when absent."""

        path = self.path_for(key)
        if not path.exists():
            return None
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise StateFormatError(f"Stored record `{path}` is not valid JSON: {exc.msg}.") from exc
        if not isinstance(payload, dict):
            raise StateFormatError(f"Stored record `{path}` must be a JSON object.")
        return payload

    def save(self, key: str, payload: dict[str, object]) -> Path:
        """Save a JSON record, replacing any previous one, and return its path."""

        path = self.path_for(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        staging = path.with_suffix(".json.tmp")
        staging.write_text(
            json.dumps(payload, ensure_ascii=False, indent=2, sort_keys=True),
            encoding="utf-8",
        )
        staging.replace(path)
        return path


class PersistenceAdapter:
    """Load and snapshot the studio record under one storage key."""

    def __init__(
        self,
        store: JsonStateStore,
        key: str = DEFAULT_STORAGE_KEY,
        logger: StudioLogger | None = None,
    ) -> None:
        self.store = store
        self.key = key
        self._logger = logger

    def load(self) -> StudioState | None:
        """Return the persisted state, or `None` when nothing was stored yet."""

        payload = self.store.load(self.key)
        if payload is None:
            return None
        return state_from_payload(payload)

    def load_or_default(self, seed: Callable[[], StudioState]) -> StudioState:
        """Return the persisted state, falling back to `seed()` when absent.

        A stored but malformed record raises `StateFormatError` rather than
        being replaced by the seed.
        """

        state = self.load()
        if state is not None:
            return state
        if self._logger is not None:
            self._logger.log_persistence("seeded", key=self.key)
        return seed()

    def snapshot(self, state: StudioState) -> Path:
        """Persist the full studio record."""

        path = self.store.save(self.key, state_to_payload(state))
        if self._logger is not None:
            self._logger.log_persistence(
                "snapshot", key=self.key, segments=len(state.story.segments)
            )
        return path
