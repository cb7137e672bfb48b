"""Integration-test fixtures for deterministic boundary and credential behavior."""

from __future__ import annotations

import base64

import pytest
from keyring.errors import PasswordDeleteError

from zenstudio.credentials import KeyringCredentialStore
from zenstudio.providers.gemini_client import GeminiSpeechClient, GeminiTextClient


class MemoryKeyringBackend:
    """Keyring backend keeping passwords in a dict for the duration of one test."""

    def __init__(self) -> None:
        self.passwords: dict[tuple[str, str], str] = {}

    def get_password(self, service: str, username: str) -> str | None:
        return self.passwords.get((service, username))

    def set_password(self, service: str, username: str, password: str) -> None:
        self.passwords[(service, username)] = password

    def delete_password(self, service: str, username: str) -> None:
        if self.passwords.pop((service, username), None) is None:
            raise PasswordDeleteError("Password not found.")


@pytest.fixture(autouse=True)
def _mock_gemini_calls(monkeypatch: pytest.MonkeyPatch) -> None:
    """Mock Gemini boundary calls in integration tests to avoid network/key requirements."""

    def _mock_generate_text(self, **kwargs: object) -> str:
        """Return deterministic placeholder text for the rewrite boundary."""

        _ = self
        _ = kwargs
        return "integration-mocked-rewrite"

    def _mock_synthesize_speech(self, **kwargs: object) -> str:
        """Return 0.1 seconds of silent 24 kHz mono PCM as base64."""

        _ = self
        _ = kwargs
        return base64.b64encode(b"\x00\x00" * 2400).decode("ascii")

    monkeypatch.setattr(GeminiTextClient, "generate_text", _mock_generate_text)
    monkeypatch.setattr(GeminiSpeechClient, "synthesize_speech", _mock_synthesize_speech)


@pytest.fixture(autouse=True)
def credential_store(monkeypatch: pytest.MonkeyPatch) -> KeyringCredentialStore:
    """Point the CLI at a keyring store backed by one in-memory backend per test."""

    store = KeyringCredentialStore(backend=MemoryKeyringBackend())
    monkeypatch.setattr("zenstudio.cli.create_credential_store", lambda: store)
    return store
