"""Voice profile models for synthesis configuration.

Responsibilities:
- Represent the provider voice identity and the PCM format it returns.
- Decouple the asset pipeline from provider-specific naming.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..audio.wav import DEFAULT_BITS_PER_SAMPLE, DEFAULT_CHANNELS, DEFAULT_SAMPLE_RATE


@dataclass(frozen=True, slots=True)
class VoiceProfile:
    """Declarative voice profile used by the speech boundary.

    Attributes:
        provider_voice_id: Provider-native prebuilt voice name.
        sample_rate: PCM sample rate returned by the provider.
        channels: PCM channel count returned by the provider.
        bits_per_sample: PCM sample width returned by the provider.
    """

    provider_voice_id: str = "Kore"
    sample_rate: int = DEFAULT_SAMPLE_RATE
    channels: int = DEFAULT_CHANNELS
    bits_per_sample: int = DEFAULT_BITS_PER_SAMPLE

    @property
    def block_align(self) -> int:
        """Bytes per PCM frame across all channels."""

        return self.channels * self.bits_per_sample // 8
