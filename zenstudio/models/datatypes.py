"""Core datatypes shared across Zen Studio modules.

Responsibilities:
- Represent the story graph (segments, branches, display order) as immutable records.
- Provide explicit field-by-field merge helpers for partial segment updates.
- Describe the persisted studio record and ingestion library entries.

Key types:
- `Segment`, `SegmentAssets`, `SourceMeta`, `Branch`, `Story`,
  `SegmentUpdate`, `LibraryFile`, `IngestedPage`, and `StudioState`.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Mapping, Union

VariableValue = Union[bool, int, float, str]

STORY_FORMAT_VERSION = "4.2"
DEFAULT_MOOD = "Neutral"
DEFAULT_DURATION = "0s"


class SegmentKind(str, Enum):
    """Informational segment role; never constrains navigation."""

    BEGINNING = "beginning"
    NARRATION = "narration"
    CHOICE = "choice"
    ENDING = "ending"


class Theme(str, Enum):
    """Editor theme preference carried through persistence untouched."""

    DARK = "dark"
    LIGHT = "light"


class LibraryFileStatus(str, Enum):
    """Ingestion status of one scanned page in the library."""

    PROCESSING = "processing"
    ANALYZED = "analyzed"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class AssetsUpdate:
    """Partial asset update; `None` fields are left unchanged."""

    audio: str | None = None
    image: str | None = None
    subtitles: str | None = None


@dataclass(frozen=True, slots=True)
class SegmentAssets:
    """Asset references attached to one segment.

    Attributes:
        audio: URI of a generated audio container, absent until synthesis succeeds.
        image: URI of the page illustration, set at creation.
        subtitles: Optional subtitle resource URI.
    """

    audio: str | None = None
    image: str | None = None
    subtitles: str | None = None

    def merged(self, update: AssetsUpdate) -> SegmentAssets:
        """Return assets with each provided update field applied."""

        return SegmentAssets(
            audio=update.audio if update.audio is not None else self.audio,
            image=update.image if update.image is not None else self.image,
            subtitles=update.subtitles if update.subtitles is not None else self.subtitles,
        )


@dataclass(frozen=True, slots=True)
class SourceMetaUpdate:
    """Partial source metadata update; `None` fields are left unchanged."""

    mood: str | None = None
    estimated_duration: str | None = None
    image_prompt: str | None = None


@dataclass(frozen=True, slots=True)
class SourceMeta:
    """Generation context for a segment.

    Attributes:
        mood: Free-form emotional label used for display, rewrite and synthesis.
        estimated_duration: Display-only duration string derived at creation.
        image_prompt: Optional prompt describing the illustration.
    """

    mood: str = DEFAULT_MOOD
    estimated_duration: str | None = None
    image_prompt: str | None = None

    def merged(self, update: SourceMetaUpdate) -> SourceMeta:
        """Return source metadata with each provided update field applied."""

        return SourceMeta(
            mood=update.mood if update.mood is not None else self.mood,
            estimated_duration=(
                update.estimated_duration
                if update.estimated_duration is not None
                else self.estimated_duration
            ),
            image_prompt=(
                update.image_prompt if update.image_prompt is not None else self.image_prompt
            ),
        )


@dataclass(frozen=True, slots=True)
class Branch:
    """Directed edge to another segment, optionally guarded by a condition."""

    target: str
    condition: str | None = None


@dataclass(frozen=True, slots=True)
class Segment:
    """One narrative unit of the story graph.

    Attributes:
        id: Write-once unique identifier.
        kind: Informational segment role.
        text: Narration text, possibly empty.
        assets: Audio, image and subtitle references.
        source_meta: Mood and display duration.
        branches: Ordered outgoing branch edges.
    """

    id: str
    kind: SegmentKind = SegmentKind.NARRATION
    text: str = ""
    assets: SegmentAssets = field(default_factory=SegmentAssets)
    source_meta: SourceMeta = field(default_factory=SourceMeta)
    branches: tuple[Branch, ...] = field(default_factory=tuple)

    def merged(self, update: SegmentUpdate) -> Segment:
        """Return a copy with the update applied; the identifier is never touched."""

        return Segment(
            id=self.id,
            kind=update.kind if update.kind is not None else self.kind,
            text=update.text if update.text is not None else self.text,
            assets=self.assets.merged(update.assets) if update.assets is not None else self.assets,
            source_meta=(
                self.source_meta.merged(update.source_meta)
                if update.source_meta is not None
                else self.source_meta
            ),
            branches=update.branches if update.branches is not None else self.branches,
        )


@dataclass(frozen=True, slots=True)
class SegmentUpdate:
    """Partial segment update merged by `SegmentGraph.update`.

    Segment identifiers are write-once and have no update field.
    """

    kind: SegmentKind | None = None
    text: str | None = None
    assets: AssetsUpdate | None = None
    source_meta: SourceMetaUpdate | None = None
    branches: tuple[Branch, ...] | None = None


@dataclass(frozen=True, slots=True)
class GlobalConfig:
    """Story-wide passthrough playback settings."""

    normalization_level: float = -16
    idle_timeout_seconds: int = 300


@dataclass(frozen=True, slots=True)
class Story:
    """Aggregate story record.

    Attributes:
        version: Story format tag.
        global_config: Passthrough playback settings.
        variables: Named values consulted by branch conditions.
        segments: Mapping of segment id to segment.
        display_order: Default presentation order of segment ids.
    """

    version: str = STORY_FORMAT_VERSION
    global_config: GlobalConfig = field(default_factory=GlobalConfig)
    variables: Mapping[str, VariableValue] = field(default_factory=dict)
    segments: Mapping[str, Segment] = field(default_factory=dict)
    display_order: tuple[str, ...] = field(default_factory=tuple)

    def with_segments(
        self, segments: Mapping[str, Segment], display_order: tuple[str, ...]
    ) -> Story:
        """Return a copy with replaced segments and display order."""

        return replace(self, segments=dict(segments), display_order=tuple(display_order))


@dataclass(frozen=True, slots=True)
class IngestedPage:
    """Content extracted from one scanned page by the ingestion collaborator."""

    text: str
    mood: str
    image_uri: str


@dataclass(frozen=True, slots=True)
class LibraryFile:
    """Ingestion bookkeeping entry for one uploaded page."""

    id: str
    name: str
    status: LibraryFileStatus = LibraryFileStatus.PROCESSING
    thumbnail: str | None = None
    stage_message: str | None = None
    extracted: IngestedPage | None = None


@dataclass(frozen=True, slots=True)
class StudioState:
    """Persisted studio record.

    `library`, `theme` and `credential` are opaque to the story core and are
    carried through persistence unchanged.
    """

    story: Story
    library: tuple[LibraryFile, ...] = field(default_factory=tuple)
    active_segment_id: str | None = None
    theme: Theme = Theme.DARK
    credential: str = ""
