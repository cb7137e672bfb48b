"""Unit tests for API key layers and their precedence."""

from __future__ import annotations

import pytest
from keyring.backends import fail
from keyring.errors import KeyringError, PasswordDeleteError

from zenstudio.credentials import (
    CREDENTIAL_PRECEDENCE,
    KEYRING_ACCOUNT,
    KEYRING_SERVICE,
    CredentialStorageError,
    KeyringCredentialStore,
    RecordCredentialStore,
    ResolvedCredential,
    create_credential_store,
    resolve_credential,
)


class _DictBackend:
    def __init__(self, passwords: dict[tuple[str, str], str] | None = None) -> None:
        self.passwords = dict(passwords or {})

    def get_password(self, service: str, username: str) -> str | None:
        return self.passwords.get((service, username))

    def set_password(self, service: str, username: str, password: str) -> None:
        self.passwords[(service, username)] = password

    def delete_password(self, service: str, username: str) -> None:
        if self.passwords.pop((service, username), None) is None:
            raise PasswordDeleteError("missing")


class _LockedBackend(_DictBackend):
    """Backend whose vault is locked: every operation fails."""

    def get_password(self, service: str, username: str) -> str | None:
        raise KeyringError("vault locked")

    def set_password(self, service: str, username: str, password: str) -> None:
        raise KeyringError("vault locked")


def test_precedence_is_cli_keyring_env_config_record() -> None:
    assert CREDENTIAL_PRECEDENCE == ("cli", "keyring", "env", "config", "record")


@pytest.mark.parametrize(
    ("candidates", "expected_source"),
    [
        ({"cli": "a", "keyring": "b", "env": "c", "config": "d", "record": "e"}, "cli"),
        ({"cli": "  ", "keyring": "b", "env": "c", "config": "d", "record": "e"}, "keyring"),
        ({"keyring": None, "env": "c", "config": "d", "record": "e"}, "env"),
        ({"env": "", "config": "d", "record": "e"}, "config"),
        ({"record": " e "}, "record"),
    ],
)
def test_resolve_credential_picks_strongest_non_blank_layer(
    candidates: dict[str, str | None], expected_source: str
) -> None:
    resolved = resolve_credential(candidates)

    assert resolved is not None
    assert resolved.source == expected_source
    assert resolved.value == candidates[expected_source].strip()  # type: ignore[union-attr]


def test_resolve_credential_returns_none_when_every_layer_is_blank() -> None:
    assert resolve_credential({"cli": None, "record": "   "}) is None
    assert resolve_credential({}) is None


def test_resolve_credential_rejects_unknown_layers() -> None:
    with pytest.raises(ValueError, match="vault"):
        resolve_credential({"vault": "key"})


def test_resolved_credential_repr_hides_the_key() -> None:
    assert "s3cret" not in repr(ResolvedCredential(value="s3cret", source="env"))


def test_keyring_store_set_get_clear_under_zenstudio_entry() -> None:
    backend = _DictBackend()
    store = KeyringCredentialStore(backend=backend)

    assert store.is_available() is True
    assert store.get_api_key() is None

    store.set_api_key("  abc123  ")

    assert backend.passwords == {(KEYRING_SERVICE, KEYRING_ACCOUNT): "abc123"}
    assert store.get_api_key() == "abc123"
    assert store.clear_api_key() is True
    assert store.clear_api_key() is False
    assert backend.passwords == {}


def test_keyring_store_treats_blank_stored_value_as_absent() -> None:
    store = KeyringCredentialStore(
        backend=_DictBackend({(KEYRING_SERVICE, KEYRING_ACCOUNT): "   "})
    )

    assert store.get_api_key() is None
    assert store.clear_api_key() is False


def test_keyring_store_rejects_blank_api_key() -> None:
    with pytest.raises(ValueError, match="non-empty"):
        KeyringCredentialStore(backend=_DictBackend()).set_api_key("   ")


def test_locked_keyring_reads_as_absent_and_refuses_writes() -> None:
    store = KeyringCredentialStore(backend=_LockedBackend())

    assert store.get_api_key() is None
    with pytest.raises(CredentialStorageError, match="vault locked"):
        store.set_api_key("abc")


def test_fail_backend_reports_unavailable() -> None:
    store = KeyringCredentialStore(backend=fail.Keyring())

    assert store.is_available() is False
    assert store.get_api_key() is None
    with pytest.raises(CredentialStorageError):
        store.set_api_key("abc")


def test_record_store_reads_and_writes_through_callbacks() -> None:
    record = {"apiKey": ""}
    writes: list[str] = []

    def _write(value: str) -> None:
        writes.append(value)
        record["apiKey"] = value

    store = RecordCredentialStore(read=lambda: record["apiKey"], write=_write)

    assert store.get_api_key() is None
    assert store.clear_api_key() is False
    store.set_api_key(" record-key ")
    assert store.get_api_key() == "record-key"
    assert store.clear_api_key() is True
    assert writes == ["record-key", ""]
    with pytest.raises(ValueError):
        store.set_api_key("")


def test_create_credential_store_targets_zenstudio_keyring_entry() -> None:
    store = create_credential_store()

    assert isinstance(store, KeyringCredentialStore)
    assert store.source == "keyring"
    assert (store.service_name, store.account_name) == ("zenstudio", "gemini_api_key")
