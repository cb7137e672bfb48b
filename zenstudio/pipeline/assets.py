"""Asset pipeline: ensure a segment has playable generated audio.

Responsibilities:
- Short-circuit on missing text, missing credential, or an existing cached container.
- Call the speech boundary once, wrap its PCM in a WAV container, store it and
  record the URI on the segment.
- Report boundary and storage failures as a fallback request carrying the
  untouched text.

Key types:
- `AssetPipeline`: async `ensure_audio` orchestration over a `SegmentGraph`.
"""

from __future__ import annotations

import asyncio
from typing import Callable, Optional

from ..audio.store import AudioAssetStore
from ..audio.wav import encode_wav, pcm_duration_seconds
from ..errors import SegmentBusyError
from ..models.datatypes import AssetsUpdate, SegmentUpdate
from ..providers.gemini_client import (
    DEFAULT_BASE_URL,
    MISSING_CREDENTIAL,
    GeminiSpeechClient,
    ProviderError,
)
from ..story.graph import SegmentGraph
from ..telemetry.logger import StudioLogger
from ..tts.synthesizer import GeminiSpeechSynthesizer, SpeechSynthesizer
from ..tts.voices import VoiceProfile
from .leases import SegmentLeaseRegistry
from .results import STORAGE_FAILURE, AudioOutcome, AudioResult

_OPERATION = "audio"

SynthesizerFactory = Callable[[str], SpeechSynthesizer]
CredentialSource = Callable[[], Optional[str]]


def gemini_synthesizer_factory(
    model: str,
    voice_id: str,
    base_url: str = DEFAULT_BASE_URL,
    timeout_seconds: float = 60.0,
) -> SynthesizerFactory:
    """Return a factory building Gemini synthesizers for a credential."""

    def _build(api_key: str) -> SpeechSynthesizer:
        return GeminiSpeechSynthesizer(
            model=model,
            voice=VoiceProfile(provider_voice_id=voice_id),
            client=GeminiSpeechClient(
                api_key=api_key, base_url=base_url, timeout_seconds=timeout_seconds
            ),
        )

    return _build


class AssetPipeline:
    """Produce and cache WAV audio for story segments."""

    def __init__(
        self,
        graph: SegmentGraph,
        store: AudioAssetStore,
        synthesizer_factory: SynthesizerFactory,
        credential: CredentialSource,
        leases: SegmentLeaseRegistry | None = None,
        logger: StudioLogger | None = None,
    ) -> None:
        """Initialize the pipeline over a graph, audio store and speech boundary."""

        self.graph = graph
        self.store = store
        self.synthesizer_factory = synthesizer_factory
        self.credential = credential
        self.leases = leases if leases is not None else SegmentLeaseRegistry()
        self._logger = logger

    async def ensure_audio(self, segment_id: str) -> AudioResult:
        """Ensure a segment has generated audio, returning a tagged result.

        No retry is attempted; a boundary failure leaves `assets.audio`
        untouched and asks the caller to synthesize `fallback_text` locally.
        """

        segment = self.graph.get(segment_id)
        if segment is None or not segment.text.strip():
            self._log_skip(segment_id, "no-text")
            return AudioResult(
                AudioOutcome.UNAVAILABLE,
                segment_id,
                detail="Segment is missing or has no text.",
            )

        api_key = (self.credential() or "").strip()
        if not api_key:
            self._log_failure(segment_id, MISSING_CREDENTIAL)
            return AudioResult(
                AudioOutcome.FALLBACK_REQUIRED,
                segment_id,
                fallback_text=segment.text,
                failure_kind=MISSING_CREDENTIAL,
                detail="No credential is configured for the speech boundary.",
            )

        if self.store.is_generated(segment.assets.audio):
            self._log_skip(segment_id, "cached")
            return AudioResult(AudioOutcome.CACHED, segment_id, audio_uri=segment.assets.audio)

        try:
            with self.leases.acquire(segment_id, _OPERATION):
                return await self._generate(segment_id, segment.text, api_key)
        except SegmentBusyError as exc:
            if self._logger is not None:
                self._logger.log_warning(
                    _OPERATION, "busy", segment=segment_id, held_by=exc.held_by
                )
            return AudioResult(AudioOutcome.BUSY, segment_id, detail=str(exc))

    async def _generate(self, segment_id: str, text: str, api_key: str) -> AudioResult:
        synthesizer = self.synthesizer_factory(api_key)
        if self._logger is not None:
            self._logger.log_provider_start(_OPERATION, segment_id)
        try:
            pcm = await asyncio.to_thread(synthesizer.synthesize_pcm, text)
        except ProviderError as exc:
            self._log_failure(segment_id, exc.failure_kind)
            return AudioResult(
                AudioOutcome.FALLBACK_REQUIRED,
                segment_id,
                fallback_text=text,
                failure_kind=exc.failure_kind,
                detail=str(exc),
            )

        voice = synthesizer.voice
        container = encode_wav(
            pcm,
            sample_rate=voice.sample_rate,
            channels=voice.channels,
            bits_per_sample=voice.bits_per_sample,
        )
        try:
            uri = self.store.save_wav(segment_id, container)
        except OSError as exc:
            self._log_failure(segment_id, STORAGE_FAILURE)
            return AudioResult(
                AudioOutcome.FALLBACK_REQUIRED,
                segment_id,
                fallback_text=text,
                failure_kind=STORAGE_FAILURE,
                detail=f"Could not write the audio container: {exc}",
            )
        if not self.graph.update(segment_id, SegmentUpdate(assets=AssetsUpdate(audio=uri))):
            self._log_skip(segment_id, "deleted-during-generation")
            return AudioResult(
                AudioOutcome.UNAVAILABLE,
                segment_id,
                detail="Segment was deleted while audio was being generated.",
            )
        if self._logger is not None:
            seconds = pcm_duration_seconds(
                len(pcm), voice.sample_rate, voice.channels, voice.bits_per_sample
            )
            self._logger.log_provider_complete(
                _OPERATION, segment_id, bytes=len(container), seconds=f"{seconds:.2f}"
            )
        return AudioResult(AudioOutcome.GENERATED, segment_id, audio_uri=uri)

    def _log_skip(self, segment_id: str, reason: str) -> None:
        if self._logger is not None:
            self._logger.log_skip(_OPERATION, segment_id, reason)

    def _log_failure(self, segment_id: str, failure_kind: str) -> None:
        if self._logger is not None:
            self._logger.log_provider_failure(_OPERATION, segment_id, failure_kind)
