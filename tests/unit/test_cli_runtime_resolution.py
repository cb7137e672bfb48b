"""Unit tests for assembling runtime sources from command flags."""

from __future__ import annotations

import pytest
from keyring.errors import KeyringError

from zenstudio.cli_runtime import collect_runtime_sources
from zenstudio.config import StudioConfig
from zenstudio.credentials import KEYRING_ACCOUNT, KEYRING_SERVICE, KeyringCredentialStore
from zenstudio.errors import StudioCommandError


class _DictBackend:
    def __init__(self, stored: str | None = None) -> None:
        self.passwords: dict[tuple[str, str], str] = {}
        if stored is not None:
            self.passwords[(KEYRING_SERVICE, KEYRING_ACCOUNT)] = stored

    def get_password(self, service: str, username: str) -> str | None:
        return self.passwords.get((service, username))

    def set_password(self, service: str, username: str, password: str) -> None:
        self.passwords[(service, username)] = password


class _ReadOnlyBackend(_DictBackend):
    def set_password(self, service: str, username: str, password: str) -> None:
        raise KeyringError("read-only vault")


def _keyring(stored: str | None = None) -> KeyringCredentialStore:
    return KeyringCredentialStore(backend=_DictBackend(stored))


def _no_prompt(*args: object, **kwargs: object) -> str:
    raise AssertionError("the API key prompt must not be shown")


def test_overrides_drop_blanks_and_keyring_fills_secure_layer() -> None:
    store = _keyring(stored="keyring-key")

    sources = collect_runtime_sources(
        {"model_tts": " tts-preview ", "tts_voice": "   ", "model_rewrite": None},
        credential_store_factory=lambda: store,
        env={"GEMINI_API_KEY": "env-key"},
    )

    assert dict(sources.cli) == {"model_tts": "tts-preview"}
    assert dict(sources.secure) == {"api_key": "keyring-key"}
    assert dict(sources.env) == {"GEMINI_API_KEY": "env-key"}


def test_unknown_override_keys_are_rejected() -> None:
    with pytest.raises(ValueError, match="voice_speed"):
        collect_runtime_sources({"voice_speed": "2"}, credential_store_factory=_keyring)


@pytest.mark.parametrize(
    ("api_key", "stored", "env", "config_key", "expected_key", "expected_source"),
    [
        ("flag-key", "keyring-key", "env-key", "config-key", "flag-key", "cli"),
        (None, "keyring-key", "env-key", "config-key", "keyring-key", "keyring"),
        (None, None, "env-key", "config-key", "env-key", "env"),
        (None, None, None, "config-key", "config-key", "config"),
        (None, None, None, None, None, None),
    ],
)
def test_collected_sources_resolve_the_studio_key_order(
    api_key: str | None,
    stored: str | None,
    env: str | None,
    config_key: str | None,
    expected_key: str | None,
    expected_source: str | None,
) -> None:
    sources = collect_runtime_sources(
        {},
        api_key=api_key,
        credential_store_factory=lambda: _keyring(stored),
        env={"GEMINI_API_KEY": env} if env is not None else {},
    )

    runtime = StudioConfig(api_key=config_key).resolved_provider_runtime(sources)

    assert runtime.api_key == expected_key
    assert runtime.api_key_source == expected_source


def test_prompt_is_used_only_without_explicit_key(monkeypatch: pytest.MonkeyPatch) -> None:
    prompts: list[dict[str, object]] = []

    def _prompt(*args: object, **kwargs: object) -> str:
        prompts.append(kwargs)
        return " typed-key "

    monkeypatch.setattr("zenstudio.cli_runtime.typer.prompt", _prompt)

    prompted = collect_runtime_sources(
        {}, prompt_api_key=True, credential_store_factory=_keyring, env={}
    )
    explicit = collect_runtime_sources(
        {}, api_key="flag-key", prompt_api_key=True, credential_store_factory=_keyring, env={}
    )

    assert prompted.cli["api_key"] == "typed-key"
    assert explicit.cli["api_key"] == "flag-key"
    assert len(prompts) == 1
    assert prompts[0]["hide_input"] is True


def test_blank_prompt_answer_adds_nothing_and_stores_nothing(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setattr("zenstudio.cli_runtime.typer.prompt", lambda *a, **k: "   ")
    backend = _DictBackend()

    sources = collect_runtime_sources(
        {},
        prompt_api_key=True,
        store_api_key=True,
        credential_store_factory=lambda: KeyringCredentialStore(backend=backend),
        env={},
    )

    assert "api_key" not in sources.cli
    assert backend.passwords == {}


def test_store_api_key_writes_entered_key_to_keyring(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("zenstudio.cli_runtime.typer.prompt", _no_prompt)
    backend = _DictBackend(stored="old-key")

    sources = collect_runtime_sources(
        {},
        api_key=" new-key ",
        store_api_key=True,
        credential_store_factory=lambda: KeyringCredentialStore(backend=backend),
        env={},
    )

    assert backend.passwords[(KEYRING_SERVICE, KEYRING_ACCOUNT)] == "new-key"
    assert dict(sources.secure) == {"api_key": "new-key"}


def test_keyring_key_is_not_rewritten_without_an_entered_key() -> None:
    backend = _DictBackend(stored="keyring-key")

    collect_runtime_sources(
        {},
        store_api_key=True,
        credential_store_factory=lambda: KeyringCredentialStore(backend=backend),
        env={},
    )

    assert backend.passwords == {(KEYRING_SERVICE, KEYRING_ACCOUNT): "keyring-key"}


def test_keyring_write_failure_maps_to_credentials_stage() -> None:
    with pytest.raises(StudioCommandError) as exc_info:
        collect_runtime_sources(
            {},
            api_key="flag-key",
            store_api_key=True,
            credential_store_factory=lambda: KeyringCredentialStore(backend=_ReadOnlyBackend()),
            env={},
        )

    assert exc_info.value.stage == "credentials"
    assert "read-only vault" in exc_info.value.detail
    assert "--store-api-key" in (exc_info.value.hint or "")
