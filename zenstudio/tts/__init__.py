"""Text-to-speech boundary abstractions.

This package contains the voice profile type and the synthesizer interface used
by the asset pipeline.
"""

from .synthesizer import GeminiSpeechSynthesizer, SpeechSynthesizer, decode_pcm_payload
from .voices import VoiceProfile

__all__ = ["GeminiSpeechSynthesizer", "SpeechSynthesizer", "VoiceProfile", "decode_pcm_payload"]
