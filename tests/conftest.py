"""Shared pytest fixtures for the full Zen Studio test suite."""

from __future__ import annotations

import pytest

_STUDIO_ENV_KEYS = (
    "GEMINI_API_KEY",
    "ZENSTUDIO_STATE_DIR",
    "ZENSTUDIO_AUDIO_DIR",
    "ZENSTUDIO_STORAGE_KEY",
    "ZENSTUDIO_MODEL_TTS",
    "ZENSTUDIO_MODEL_REWRITE",
    "ZENSTUDIO_TTS_VOICE",
    "ZENSTUDIO_BASE_URL",
    "ZENSTUDIO_TIMEOUT_SECONDS",
)


@pytest.fixture(autouse=True)
def _isolate_studio_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Drop studio environment variables so config resolution is deterministic."""

    for key in _STUDIO_ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
