"""Runtime source assembly for boundary-calling commands.

Responsibilities:
- Turn `--model-*`, `--tts-voice` and API key flags into `RuntimeConfigSources`.
- Read the keyring layer and, on `--store-api-key`, write a key entered this run to it.
"""

from __future__ import annotations

import os
from typing import Callable, Mapping

import typer

from .config import RuntimeConfigSources
from .credentials import CredentialStore, create_credential_store
from .errors import StudioCommandError
from .parsing import normalize_optional_string

RUNTIME_OVERRIDE_KEYS = frozenset({"model_tts", "model_rewrite", "tts_voice"})


def _prompt_for_api_key() -> str | None:
    return normalize_optional_string(
        typer.prompt(
            "Gemini API key (hidden; leave blank to skip)",
            default="",
            hide_input=True,
            show_default=False,
        )
    )


def collect_runtime_sources(
    overrides: Mapping[str, str | None],
    *,
    api_key: str | None = None,
    prompt_api_key: bool = False,
    store_api_key: bool = False,
    credential_store_factory: Callable[[], CredentialStore] = create_credential_store,
    env: Mapping[str, str] | None = None,
) -> RuntimeConfigSources:
    """Build the runtime sources for one command invocation.

    Blank overrides are dropped. The prompt is only shown when no `--api-key`
    was given, and only a key entered in this run is ever written to the
    keyring.
    """

    unknown = sorted(set(overrides) - RUNTIME_OVERRIDE_KEYS)
    if unknown:
        raise ValueError(f"Unsupported runtime override(s): {', '.join(unknown)}.")

    cli_values = {
        key: normalized
        for key, normalized in (
            (key, normalize_optional_string(value)) for key, value in overrides.items()
        )
        if normalized is not None
    }
    entered_key = normalize_optional_string(api_key)
    if entered_key is None and prompt_api_key:
        entered_key = _prompt_for_api_key()
    if entered_key is not None:
        cli_values["api_key"] = entered_key

    keyring_store = credential_store_factory()
    if entered_key is not None and store_api_key:
        try:
            keyring_store.set_api_key(entered_key)
        except Exception as exc:
            raise StudioCommandError(
                stage="credentials",
                detail=f"Failed to store API key securely: {exc}",
                hint=(
                    "Install and configure a keyring backend, or rerun without "
                    "`--store-api-key` for one-off usage."
                ),
            ) from exc
        typer.echo("Stored API key in secure credential storage.")

    stored_key = keyring_store.get_api_key()
    return RuntimeConfigSources(
        cli=cli_values,
        secure={"api_key": stored_key} if stored_key is not None else {},
        env=os.environ if env is None else env,
    )
