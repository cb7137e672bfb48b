"""Asset generation and rewrite orchestration over the segment graph."""

from .assets import AssetPipeline, gemini_synthesizer_factory
from .leases import SegmentLeaseRegistry
from .results import AudioOutcome, AudioResult, RewriteOutcome, RewriteResult
from .rewrite import GeminiMoodRewriter, RewriteOrchestrator, gemini_rewriter_factory

__all__ = [
    "AssetPipeline",
    "AudioOutcome",
    "AudioResult",
    "GeminiMoodRewriter",
    "RewriteOrchestrator",
    "RewriteOutcome",
    "RewriteResult",
    "SegmentLeaseRegistry",
    "gemini_rewriter_factory",
    "gemini_synthesizer_factory",
]
