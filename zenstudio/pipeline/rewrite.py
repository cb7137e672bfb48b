"""Mood-driven segment rewrite orchestration.

Responsibilities:
- Send segment text and mood to the rewrite boundary once, with no retry.
- Overwrite the segment text only on a non-empty response.
"""

from __future__ import annotations

import asyncio
from typing import Callable, Optional, Protocol

from ..errors import SegmentBusyError
from ..models.datatypes import SegmentUpdate
from ..providers.gemini_client import (
    DEFAULT_BASE_URL,
    MISSING_CREDENTIAL,
    GeminiTextClient,
    ProviderError,
)
from ..providers.prompts import PromptLibrary
from ..story.graph import SegmentGraph
from ..telemetry.logger import StudioLogger
from .leases import SegmentLeaseRegistry
from .results import RewriteOutcome, RewriteResult

_OPERATION = "rewrite"


class Rewriter(Protocol):
    """Protocol for rewrite boundary implementations."""

    def rewrite_for_mood(self, text: str, mood: str) -> str:
        """Return rewritten narration text."""


class GeminiMoodRewriter:
    """Gemini-backed rewriter that intensifies a segment's mood."""

    def __init__(
        self,
        model: str = "gemini-2.5-flash",
        api_key: str | None = None,
        client: GeminiTextClient | None = None,
    ) -> None:
        """Initialize Gemini-backed rewrite settings."""

        self.model = model
        self.client = client if client is not None else GeminiTextClient(api_key=api_key)
        self.prompts = PromptLibrary()

    def rewrite_for_mood(self, text: str, mood: str) -> str:
        """Rewrite text with the mood-intensifying prompt."""

        return self.client.generate_text(
            model=self.model,
            prompt=self.prompts.rewrite_for_mood_prompt(text=text, mood=mood),
        )


RewriterFactory = Callable[[str], Rewriter]


def gemini_rewriter_factory(
    model: str,
    base_url: str = DEFAULT_BASE_URL,
    timeout_seconds: float = 60.0,
) -> RewriterFactory:
    """Return a factory building Gemini rewriters for a credential."""

    def _build(api_key: str) -> Rewriter:
        return GeminiMoodRewriter(
            model=model,
            client=GeminiTextClient(
                api_key=api_key, base_url=base_url, timeout_seconds=timeout_seconds
            ),
        )

    return _build


class RewriteOrchestrator:
    """Regenerate segment text to match its mood label."""

    def __init__(
        self,
        graph: SegmentGraph,
        rewriter_factory: RewriterFactory,
        credential: Callable[[], Optional[str]],
        leases: SegmentLeaseRegistry | None = None,
        logger: StudioLogger | None = None,
    ) -> None:
        self.graph = graph
        self.rewriter_factory = rewriter_factory
        self.credential = credential
        self.leases = leases if leases is not None else SegmentLeaseRegistry()
        self._logger = logger

    async def rewrite(self, segment_id: str) -> RewriteResult:
        """Rewrite a segment's text for its mood; failures leave the text untouched."""

        segment = self.graph.get(segment_id)
        if segment is None:
            return RewriteResult(
                RewriteOutcome.UNAVAILABLE, segment_id, detail="Segment does not exist."
            )

        api_key = (self.credential() or "").strip()
        if not api_key:
            self._log_failure(segment_id, MISSING_CREDENTIAL)
            return RewriteResult(
                RewriteOutcome.FAILED,
                segment_id,
                failure_kind=MISSING_CREDENTIAL,
                detail="No credential is configured for the rewrite boundary.",
            )

        try:
            with self.leases.acquire(segment_id, _OPERATION):
                return await self._rewrite(segment_id, segment.text, segment.source_meta.mood, api_key)
        except SegmentBusyError as exc:
            if self._logger is not None:
                self._logger.log_warning(
                    _OPERATION, "busy", segment=segment_id, held_by=exc.held_by
                )
            return RewriteResult(RewriteOutcome.BUSY, segment_id, detail=str(exc))

    async def _rewrite(self, segment_id: str, text: str, mood: str, api_key: str) -> RewriteResult:
        rewriter = self.rewriter_factory(api_key)
        if self._logger is not None:
            self._logger.log_provider_start(_OPERATION, segment_id)
        try:
            rewritten = await asyncio.to_thread(rewriter.rewrite_for_mood, text, mood)
        except ProviderError as exc:
            self._log_failure(segment_id, exc.failure_kind)
            return RewriteResult(
                RewriteOutcome.FAILED,
                segment_id,
                failure_kind=exc.failure_kind,
                detail=str(exc),
            )

        normalized = rewritten.strip()
        if not normalized:
            self._log_failure(segment_id, "empty_response")
            return RewriteResult(
                RewriteOutcome.FAILED,
                segment_id,
                failure_kind="empty_response",
                detail="Rewrite boundary returned no text.",
            )
        if not self.graph.update(segment_id, SegmentUpdate(text=normalized)):
            return RewriteResult(
                RewriteOutcome.UNAVAILABLE,
                segment_id,
                detail="Segment was deleted while the rewrite was running.",
            )
        if self._logger is not None:
            self._logger.log_provider_complete(_OPERATION, segment_id, chars=len(normalized))
        return RewriteResult(RewriteOutcome.REWRITTEN, segment_id, text=normalized)

    def _log_failure(self, segment_id: str, failure_kind: str) -> None:
        if self._logger is not None:
            self._logger.log_provider_failure(_OPERATION, segment_id, failure_kind)
