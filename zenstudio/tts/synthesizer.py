"""Speech synthesizer interfaces and Gemini-backed implementation.

Responsibilities:
- Define the protocol for segment-level speech synthesis returning raw PCM.
- Decode and validate the base64 PCM payload returned by the speech boundary.
"""

from __future__ import annotations

import base64
import binascii
from typing import Protocol

from ..providers.gemini_client import DECODE_FAILURE, GeminiSpeechClient, ProviderError
from .voices import VoiceProfile


class SpeechSynthesizer(Protocol):
    """Protocol for speech boundary implementations."""

    voice: VoiceProfile

    def synthesize_pcm(self, text: str) -> bytes:
        """Return raw PCM bytes for narration text in `voice` format."""


def decode_pcm_payload(payload: str, voice: VoiceProfile) -> bytes:
    """Decode a base64 PCM payload and validate it holds whole frames.

    Raises:
        ProviderError: With `decode_failure` kind for invalid base64, empty PCM,
            or a byte count that is not a multiple of the frame size.
    """

    try:
        pcm = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ProviderError(
            "Speech payload is not valid base64.",
            failure_kind=DECODE_FAILURE,
        ) from exc
    if not pcm:
        raise ProviderError("Speech payload decoded to no PCM data.", failure_kind=DECODE_FAILURE)
    if len(pcm) % voice.block_align:
        raise ProviderError(
            f"Speech payload size {len(pcm)} is not a multiple of the "
            f"{voice.block_align}-byte PCM frame.",
            failure_kind=DECODE_FAILURE,
        )
    return pcm


class GeminiSpeechSynthesizer:
    """Gemini-backed synthesizer returning 24 kHz 16-bit mono PCM."""

    def __init__(
        self,
        model: str = "gemini-2.5-flash-preview-tts",
        voice: VoiceProfile | None = None,
        api_key: str | None = None,
        client: GeminiSpeechClient | None = None,
    ) -> None:
        """Initialize Gemini-backed speech synthesizer settings."""

        self.model = model
        self.voice = voice if voice is not None else VoiceProfile()
        self.client = client if client is not None else GeminiSpeechClient(api_key=api_key)

    def synthesize_pcm(self, text: str) -> bytes:
        """Synthesize narration text and return validated raw PCM bytes."""

        payload = self.client.synthesize_speech(
            model=self.model,
            voice=self.voice.provider_voice_id,
            text=text,
        )
        return decode_pcm_payload(payload, self.voice)
