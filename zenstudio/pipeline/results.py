"""Tagged results returned by the asset pipeline and rewrite orchestrator."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

STORAGE_FAILURE = "storage_failure"


class AudioOutcome(str, Enum):
    """Outcome of one `ensure_audio` invocation."""

    CACHED = "cached"
    GENERATED = "generated"
    FALLBACK_REQUIRED = "fallback_required"
    BUSY = "busy"
    UNAVAILABLE = "unavailable"


class RewriteOutcome(str, Enum):
    """Outcome of one `rewrite` invocation."""

    REWRITTEN = "rewritten"
    FAILED = "failed"
    BUSY = "busy"
    UNAVAILABLE = "unavailable"


@dataclass(frozen=True, slots=True)
class AudioResult:
    """Result of ensuring a segment has playable audio.

    Attributes:
        outcome: Tagged outcome.
        segment_id: Segment the request targeted.
        audio_uri: Audio URI for `cached` and `generated` outcomes.
        fallback_text: Untouched segment text the caller should speak on-device
            when the outcome is `fallback_required`.
        failure_kind: Boundary failure kind, or `storage_failure` when the
            container could not be written, for `fallback_required`.
        detail: Short human-readable diagnostic.
    """

    outcome: AudioOutcome
    segment_id: str
    audio_uri: str | None = None
    fallback_text: str | None = None
    failure_kind: str | None = None
    detail: str | None = None

    @property
    def succeeded(self) -> bool:
        """Boolean contract: `True` when the segment has playable generated audio."""

        return self.outcome in {AudioOutcome.CACHED, AudioOutcome.GENERATED}

    @property
    def needs_fallback(self) -> bool:
        return self.outcome is AudioOutcome.FALLBACK_REQUIRED


@dataclass(frozen=True, slots=True)
class RewriteResult:
    """Result of a mood-driven segment rewrite."""

    outcome: RewriteOutcome
    segment_id: str
    text: str | None = None
    failure_kind: str | None = None
    detail: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.outcome is RewriteOutcome.REWRITTEN
