"""Gemini API key sources and the precedence that picks between them.

A key may come from five places. From strongest to weakest: the `--api-key`
flag or its hidden prompt, the OS keyring, the `GEMINI_API_KEY` environment
variable, the YAML config and the `apiKey` field of the studio record. The
keyring and the record are writable through `CredentialStore`; the other
layers are read-only inputs.

Key types:
- `ResolvedCredential`: the winning key and the layer it came from.
- `KeyringCredentialStore`: keyring-backed layer.
- `RecordCredentialStore`: studio-record layer, saved by the owning session.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Mapping

import keyring
from keyring.backend import KeyringBackend
from keyring.backends import fail
from keyring.errors import KeyringError, PasswordDeleteError

from .parsing import normalize_optional_string

SOURCE_CLI = "cli"
SOURCE_KEYRING = "keyring"
SOURCE_ENV = "env"
SOURCE_CONFIG = "config"
SOURCE_RECORD = "record"

CREDENTIAL_PRECEDENCE = (SOURCE_CLI, SOURCE_KEYRING, SOURCE_ENV, SOURCE_CONFIG, SOURCE_RECORD)

KEYRING_SERVICE = "zenstudio"
KEYRING_ACCOUNT = "gemini_api_key"


class CredentialStorageError(RuntimeError):
    """Raised when a writable credential layer refuses a change."""


@dataclass(frozen=True, slots=True)
class ResolvedCredential:
    """API key chosen for a session.

    Attributes:
        value: The key itself; excluded from `repr`.
        source: Layer name from `CREDENTIAL_PRECEDENCE`.
    """

    value: str = field(repr=False)
    source: str


def resolve_credential(candidates: Mapping[str, str | None]) -> ResolvedCredential | None:
    """Return the strongest non-blank key among `candidates`, keyed by layer name."""

    unknown = sorted(set(candidates) - set(CREDENTIAL_PRECEDENCE))
    if unknown:
        raise ValueError(f"Unknown credential source(s): {', '.join(unknown)}.")
    for source in CREDENTIAL_PRECEDENCE:
        value = normalize_optional_string(candidates.get(source))
        if value is not None:
            return ResolvedCredential(value=value, source=source)
    return None


class CredentialStore:
    """A credential layer that can be written as well as read."""

    source = ""

    def is_available(self) -> bool:
        return True

    def get_api_key(self) -> str | None:
        raise NotImplementedError

    def set_api_key(self, api_key: str) -> None:
        raise NotImplementedError

    def clear_api_key(self) -> bool:
        """Delete the stored key and return whether one existed."""

        raise NotImplementedError

    @staticmethod
    def _require_key(api_key: str) -> str:
        normalized = normalize_optional_string(api_key)
        if normalized is None:
            raise ValueError("API key must be a non-empty string.")
        return normalized


class KeyringCredentialStore(CredentialStore):
    """Keyring layer; reads degrade to "no key" when no usable backend exists."""

    source = SOURCE_KEYRING

    def __init__(
        self,
        backend: KeyringBackend | None = None,
        service_name: str = KEYRING_SERVICE,
        account_name: str = KEYRING_ACCOUNT,
    ) -> None:
        self._backend = backend
        self.service_name = service_name
        self.account_name = account_name

    @property
    def backend(self) -> KeyringBackend:
        if self._backend is None:
            self._backend = keyring.get_keyring()
        return self._backend

    def is_available(self) -> bool:
        return not isinstance(self.backend, fail.Keyring)

    def get_api_key(self) -> str | None:
        try:
            value = self.backend.get_password(self.service_name, self.account_name)
        except KeyringError:
            return None
        return normalize_optional_string(value)

    def set_api_key(self, api_key: str) -> None:
        normalized = self._require_key(api_key)
        try:
            self.backend.set_password(self.service_name, self.account_name, normalized)
        except KeyringError as exc:
            raise CredentialStorageError(
                f"Keyring backend `{type(self.backend).__name__}` rejected the API key: {exc}"
            ) from exc

    def clear_api_key(self) -> bool:
        if self.get_api_key() is None:
            return False
        try:
            self.backend.delete_password(self.service_name, self.account_name)
        except PasswordDeleteError:
            return False
        except KeyringError as exc:
            raise CredentialStorageError(
                f"Keyring backend `{type(self.backend).__name__}` could not delete the API key: {exc}"
            ) from exc
        return True


class RecordCredentialStore(CredentialStore):
    """The record's `apiKey` field, read and written through session callbacks.

    `write` is expected to persist the record, so every change here is saved
    together with the rest of the studio state.
    """

    source = SOURCE_RECORD

    def __init__(self, read: Callable[[], str], write: Callable[[str], None]) -> None:
        self._read = read
        self._write = write

    def get_api_key(self) -> str | None:
        return normalize_optional_string(self._read())

    def set_api_key(self, api_key: str) -> None:
        self._write(self._require_key(api_key))

    def clear_api_key(self) -> bool:
        if self.get_api_key() is None:
            return False
        self._write("")
        return True


def create_credential_store() -> CredentialStore:
    """Create the keyring layer for the running user."""

    return KeyringCredentialStore()
