"""Configuration model and loaders for Zen Studio.

Responsibilities:
- Define studio configuration as a typed dataclass.
- Provide deterministic precedence resolution for runtime model/voice/credential settings.
- Provide loader entry points for file- and environment-based configuration.

Key types:
- `StudioConfig`: normalized settings for one studio session.
- `ProviderRuntimeConfig`: resolved model, voice and credential values.
- `RuntimeConfigSources`: optional value sources for precedence resolution.
- `ConfigLoader`: static construction helpers for `StudioConfig`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import os
from pathlib import Path
from typing import Any, Mapping

import yaml

from .credentials import SOURCE_CLI, SOURCE_CONFIG, SOURCE_ENV, SOURCE_KEYRING, resolve_credential
from .parsing import normalize_optional_string
from .persistence import DEFAULT_STORAGE_KEY
from .providers.gemini_client import DEFAULT_BASE_URL


_DEFAULT_STATE_DIR = Path(".zenstudio")
_DEFAULT_TTS_MODEL = "gemini-2.5-flash-preview-tts"
_DEFAULT_REWRITE_MODEL = "gemini-2.5-flash"
_DEFAULT_TTS_VOICE = "Kore"
_DEFAULT_TIMEOUT_SECONDS = 60.0


@dataclass(frozen=True, slots=True)
class RuntimeConfigSources:
    """Source mappings used for deterministic runtime value precedence.

    Attributes:
        cli: Values explicitly provided by CLI arguments.
        secure: Values loaded from secure local credential storage.
        env: Values loaded from environment variables.
    """

    cli: Mapping[str, str] = field(default_factory=dict)
    secure: Mapping[str, str] = field(default_factory=dict)
    env: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class ProviderRuntimeConfig:
    """Resolved runtime model identifiers and credential for one session.

    Attributes:
        tts_model: Model identifier for the speech boundary.
        rewrite_model: Model identifier for the rewrite boundary.
        tts_voice: Prebuilt voice identifier for the speech boundary.
        api_key: Optional credential (resolved but never logged).
        api_key_source: Layer that supplied `api_key`, when one did.
    """

    tts_model: str
    rewrite_model: str
    tts_voice: str
    api_key: str | None = None
    api_key_source: str | None = None

    def as_display_metadata(self) -> dict[str, str]:
        """Return non-secret runtime metadata safe to print."""

        return {
            "model_tts": self.tts_model,
            "model_rewrite": self.rewrite_model,
            "tts_voice": self.tts_voice,
            "api_key": "present" if self.api_key else "not set",
            "api_key_source": self.api_key_source or "none",
        }


@dataclass(slots=True)
class StudioConfig:
    """Settings for one studio session.

    Attributes:
        state_dir: Directory holding the persisted studio record.
        audio_dir: Directory for generated WAV containers; defaults to
            `<state_dir>/audio`.
        storage_key: Key of the persisted studio record.
        model_tts: Speech model identifier.
        model_rewrite: Rewrite model identifier.
        tts_voice: Prebuilt speech voice identifier.
        api_key: Optional credential for both boundaries.
        base_url: Generative API base URL.
        timeout_seconds: Per-request timeout for boundary calls.
        runtime_sources: Optional runtime source overrides injected by CLI.
        extra: Additional metadata for future extensions.
    """

    state_dir: Path = _DEFAULT_STATE_DIR
    audio_dir: Path | None = None
    storage_key: str = DEFAULT_STORAGE_KEY
    model_tts: str = _DEFAULT_TTS_MODEL
    model_rewrite: str = _DEFAULT_REWRITE_MODEL
    tts_voice: str = _DEFAULT_TTS_VOICE
    api_key: str | None = None
    base_url: str = DEFAULT_BASE_URL
    timeout_seconds: float = _DEFAULT_TIMEOUT_SECONDS
    runtime_sources: RuntimeConfigSources = field(default_factory=RuntimeConfigSources)
    extra: dict[str, str] = field(default_factory=dict)

    @property
    def resolved_audio_dir(self) -> Path:
        """Audio directory, falling back to `<state_dir>/audio`."""

        if self.audio_dir is not None:
            return self.audio_dir
        return self.state_dir / "audio"

    def validate(self) -> None:
        """Validate configuration values before a session is opened."""

        self._require_non_empty(self.storage_key, "storage_key")
        self._require_non_empty(self.model_tts, "model_tts")
        self._require_non_empty(self.model_rewrite, "model_rewrite")
        self._require_non_empty(self.tts_voice, "tts_voice")
        self._require_non_empty(self.base_url, "base_url")
        if any(separator in self.storage_key for separator in ("/", "\\")):
            raise ValueError("`storage_key` must not contain path separators.")
        if self.timeout_seconds <= 0:
            raise ValueError("`timeout_seconds` must be a positive number.")

    def resolved_provider_runtime(
        self, sources: RuntimeConfigSources | None = None
    ) -> ProviderRuntimeConfig:
        """Resolve model, voice and credential settings with deterministic precedence.

        Precedence for each key is:
        `cli` > `secure` > `env` > config field default.
        """

        resolved_sources = sources if sources is not None else self.runtime_sources
        credential = resolve_credential(
            {
                SOURCE_CLI: self._normalized_lookup(resolved_sources.cli, "api_key"),
                SOURCE_KEYRING: self._normalized_lookup(resolved_sources.secure, "api_key"),
                SOURCE_ENV: self._normalized_lookup(resolved_sources.env, "GEMINI_API_KEY"),
                SOURCE_CONFIG: self.api_key,
            }
        )

        resolved = ProviderRuntimeConfig(
            tts_model=self._resolve_runtime_value(
                key="model_tts",
                env_key="ZENSTUDIO_MODEL_TTS",
                default_value=self.model_tts,
                sources=resolved_sources,
            ),
            rewrite_model=self._resolve_runtime_value(
                key="model_rewrite",
                env_key="ZENSTUDIO_MODEL_REWRITE",
                default_value=self.model_rewrite,
                sources=resolved_sources,
            ),
            tts_voice=self._resolve_runtime_value(
                key="tts_voice",
                env_key="ZENSTUDIO_TTS_VOICE",
                default_value=self.tts_voice,
                sources=resolved_sources,
            ),
            api_key=credential.value if credential is not None else None,
            api_key_source=credential.source if credential is not None else None,
        )
        self._require_non_empty(resolved.tts_model, "model_tts")
        self._require_non_empty(resolved.rewrite_model, "model_rewrite")
        self._require_non_empty(resolved.tts_voice, "tts_voice")
        return resolved

    def _resolve_runtime_value(
        self,
        key: str,
        env_key: str,
        default_value: str | None,
        sources: RuntimeConfigSources,
    ) -> str:
        """Resolve a required runtime value from sources in precedence order."""

        value = self._resolve_optional_runtime_value(key, env_key, default_value, sources)
        if value is None:
            raise ValueError(
                f"`{key}` could not be resolved from CLI, secure storage, env, or defaults."
            )
        return value

    def _resolve_optional_runtime_value(
        self,
        key: str,
        env_key: str,
        default_value: str | None,
        sources: RuntimeConfigSources,
    ) -> str | None:
        """Resolve an optional runtime value from sources in precedence order."""

        cli_value = self._normalized_lookup(sources.cli, key)
        if cli_value is not None:
            return cli_value

        secure_value = self._normalized_lookup(sources.secure, key)
        if secure_value is not None:
            return secure_value

        env_value = self._normalized_lookup(sources.env, env_key)
        if env_value is not None:
            return env_value

        return normalize_optional_string(default_value)

    @staticmethod
    def _normalized_lookup(mapping: Mapping[str, str], key: str) -> str | None:
        """Return a stripped mapping value for a key or `None` when missing/blank."""

        if key not in mapping:
            return None
        return normalize_optional_string(mapping.get(key))

    @staticmethod
    def _require_non_empty(value: str, field_name: str) -> None:
        if not isinstance(value, str) or not value.strip():
            raise ValueError(f"`{field_name}` must be a non-empty string.")


class ConfigLoader:
    """Factory methods for creating `StudioConfig` from external sources."""

    _SUPPORTED_YAML_KEYS = frozenset(
        {
            "state_dir",
            "audio_dir",
            "storage_key",
            "model_tts",
            "model_rewrite",
            "tts_voice",
            "api_key",
            "base_url",
            "timeout_seconds",
            "extra",
        }
    )
    _RUNTIME_ENV_KEYS = frozenset(
        {
            "ZENSTUDIO_MODEL_TTS",
            "ZENSTUDIO_MODEL_REWRITE",
            "ZENSTUDIO_TTS_VOICE",
            "GEMINI_API_KEY",
        }
    )

    @staticmethod
    def from_yaml(path: Path) -> StudioConfig:
        """Create a validated config from a YAML file."""

        payload = ConfigLoader._parse_yaml_payload(path.read_text(encoding="utf-8"), path)
        return ConfigLoader._build_config_from_mapping(payload, source_label=f"YAML `{path}`")

    @staticmethod
    def from_env(env: Mapping[str, str] | None = None) -> StudioConfig:
        """Create a validated config from environment variables."""

        env_map: Mapping[str, str] = os.environ if env is None else env

        state_dir = ConfigLoader._optional_env_path(env_map, "ZENSTUDIO_STATE_DIR")
        audio_dir = ConfigLoader._optional_env_path(env_map, "ZENSTUDIO_AUDIO_DIR")
        storage_key = (
            ConfigLoader._optional_env_string(env_map, "ZENSTUDIO_STORAGE_KEY")
            or DEFAULT_STORAGE_KEY
        )
        model_tts = (
            ConfigLoader._optional_env_string(env_map, "ZENSTUDIO_MODEL_TTS")
            or _DEFAULT_TTS_MODEL
        )
        model_rewrite = (
            ConfigLoader._optional_env_string(env_map, "ZENSTUDIO_MODEL_REWRITE")
            or _DEFAULT_REWRITE_MODEL
        )
        tts_voice = (
            ConfigLoader._optional_env_string(env_map, "ZENSTUDIO_TTS_VOICE")
            or _DEFAULT_TTS_VOICE
        )
        base_url = (
            ConfigLoader._optional_env_string(env_map, "ZENSTUDIO_BASE_URL") or DEFAULT_BASE_URL
        )
        timeout_seconds = ConfigLoader._optional_env_positive_float(
            env_map, "ZENSTUDIO_TIMEOUT_SECONDS"
        ) or _DEFAULT_TIMEOUT_SECONDS
        api_key = ConfigLoader._optional_env_string(env_map, "GEMINI_API_KEY")

        runtime_env = {
            key: value
            for key, value in env_map.items()
            if key in ConfigLoader._RUNTIME_ENV_KEYS
            and normalize_optional_string(value) is not None
        }

        config = StudioConfig(
            state_dir=state_dir or _DEFAULT_STATE_DIR,
            audio_dir=audio_dir,
            storage_key=storage_key,
            model_tts=model_tts,
            model_rewrite=model_rewrite,
            tts_voice=tts_voice,
            api_key=api_key,
            base_url=base_url,
            timeout_seconds=timeout_seconds,
            runtime_sources=RuntimeConfigSources(env=runtime_env),
        )
        config.validate()
        return config

    @staticmethod
    def _parse_yaml_payload(raw_text: str, path: Path) -> Mapping[str, Any]:
        """Parse YAML text and enforce a mapping root payload."""

        try:
            payload = yaml.safe_load(raw_text)
        except yaml.YAMLError as exc:
            raise ValueError(f"YAML config `{path}` could not be parsed: {exc}") from exc

        if payload is None:
            payload = {}
        if not isinstance(payload, Mapping):
            raise ValueError(f"YAML config `{path}` must contain a top-level mapping/object.")
        return payload

    @staticmethod
    def _build_config_from_mapping(payload: Mapping[str, Any], source_label: str) -> StudioConfig:
        """Build a validated config from a normalized mapping payload."""

        ConfigLoader._validate_yaml_keys(payload, source_label)

        state_dir = ConfigLoader._optional_non_empty_string(payload, "state_dir")
        audio_dir = ConfigLoader._optional_non_empty_string(payload, "audio_dir")
        config = StudioConfig(
            state_dir=Path(state_dir) if state_dir is not None else _DEFAULT_STATE_DIR,
            audio_dir=Path(audio_dir) if audio_dir is not None else None,
            storage_key=(
                ConfigLoader._optional_non_empty_string(payload, "storage_key")
                or DEFAULT_STORAGE_KEY
            ),
            model_tts=(
                ConfigLoader._optional_non_empty_string(payload, "model_tts")
                or _DEFAULT_TTS_MODEL
            ),
            model_rewrite=(
                ConfigLoader._optional_non_empty_string(payload, "model_rewrite")
                or _DEFAULT_REWRITE_MODEL
            ),
            tts_voice=(
                ConfigLoader._optional_non_empty_string(payload, "tts_voice")
                or _DEFAULT_TTS_VOICE
            ),
            api_key=ConfigLoader._optional_non_empty_string(payload, "api_key"),
            base_url=(
                ConfigLoader._optional_non_empty_string(payload, "base_url") or DEFAULT_BASE_URL
            ),
            timeout_seconds=ConfigLoader._optional_positive_float(
                payload,
                "timeout_seconds",
                source_label,
                default=_DEFAULT_TIMEOUT_SECONDS,
            ),
            extra=ConfigLoader._optional_string_map(payload, "extra", source_label),
        )
        config.validate()
        return config

    @staticmethod
    def _validate_yaml_keys(payload: Mapping[str, Any], source_label: str) -> None:
        """Reject keys outside the supported YAML schema."""

        unknown = sorted(str(key) for key in set(payload).difference(ConfigLoader._SUPPORTED_YAML_KEYS))
        if unknown:
            key_list = ", ".join(unknown)
            raise ValueError(f"{source_label} includes unsupported key(s): {key_list}.")

    @staticmethod
    def _optional_non_empty_string(payload: Mapping[str, Any], key: str) -> str | None:
        """Read an optional string field and normalize blank values to `None`."""

        if key not in payload:
            return None
        return normalize_optional_string(payload[key])

    @staticmethod
    def _optional_positive_float(
        payload: Mapping[str, Any], key: str, source_label: str, default: float
    ) -> float:
        """Read and validate a positive number payload field."""

        if key not in payload:
            return default

        raw_value = payload[key]
        if isinstance(raw_value, bool):
            raise ValueError(f"{source_label} field `{key}` must be a positive number.")
        if isinstance(raw_value, (int, float)):
            parsed = float(raw_value)
        else:
            normalized = normalize_optional_string(raw_value)
            if normalized is None:
                return default
            try:
                parsed = float(normalized)
            except ValueError as exc:
                raise ValueError(
                    f"{source_label} field `{key}` must be a positive number."
                ) from exc

        if parsed <= 0:
            raise ValueError(f"{source_label} field `{key}` must be a positive number.")
        return parsed

    @staticmethod
    def _optional_string_map(
        payload: Mapping[str, Any], key: str, source_label: str
    ) -> dict[str, str]:
        """Read an optional mapping with non-empty string keys and values."""

        if key not in payload:
            return {}

        raw = payload[key]
        if raw is None:
            return {}
        if not isinstance(raw, Mapping):
            raise ValueError(f"{source_label} field `{key}` must be a mapping/object.")

        normalized: dict[str, str] = {}
        for raw_key, raw_value in raw.items():
            key_value = normalize_optional_string(raw_key)
            value_value = normalize_optional_string(raw_value)
            if key_value is None:
                raise ValueError(f"{source_label} field `{key}` contains a blank key.")
            if value_value is None:
                raise ValueError(
                    f"{source_label} field `{key}` contains blank value for `{key_value}`."
                )
            normalized[key_value] = value_value
        return normalized

    @staticmethod
    def _optional_env_path(env: Mapping[str, str], key: str) -> Path | None:
        """Read an optional path value from environment mapping."""

        value = ConfigLoader._optional_env_string(env, key)
        if value is None:
            return None
        return Path(value)

    @staticmethod
    def _optional_env_string(env: Mapping[str, str], key: str) -> str | None:
        """Read and normalize optional string environment variable values."""

        if key not in env:
            return None
        return normalize_optional_string(env.get(key))

    @staticmethod
    def _optional_env_positive_float(env: Mapping[str, str], key: str) -> float | None:
        """Read an optional positive number from environment mapping."""

        raw_value = ConfigLoader._optional_env_string(env, key)
        if raw_value is None:
            return None
        try:
            parsed = float(raw_value)
        except ValueError as exc:
            raise ValueError(f"Environment variable `{key}` must be a positive number.") from exc
        if parsed <= 0:
            raise ValueError(f"Environment variable `{key}` must be a positive number.")
        return parsed
