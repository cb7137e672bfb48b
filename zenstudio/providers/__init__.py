"""External generation boundaries (rewrite and speech synthesis)."""

from .gemini_client import GeminiSpeechClient, GeminiTextClient, ProviderError
from .prompts import PromptLibrary

__all__ = ["GeminiSpeechClient", "GeminiTextClient", "PromptLibrary", "ProviderError"]
