"""Gemini HTTP client utilities for the rewrite and speech boundaries.

Responsibilities:
- Send minimal `generateContent` requests to the Gemini REST API.
- Extract text parts and inline audio parts from candidate payloads.
- Raise `ProviderError` carrying one of the boundary failure kinds.
"""

from __future__ import annotations

import json
import re
import socket
from typing import Any

import requests

MISSING_CREDENTIAL = "missing_credential"
NETWORK_FAILURE = "network_failure"
EMPTY_RESPONSE = "empty_response"
DECODE_FAILURE = "decode_failure"

DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"


class ProviderError(RuntimeError):
    """Raised when a boundary request fails or returns an unusable payload."""

    def __init__(
        self,
        message: str,
        *,
        failure_kind: str = NETWORK_FAILURE,
        reason: str | None = None,
        status_code: int | None = None,
        provider_code: str | None = None,
    ) -> None:
        """Initialize provider error metadata for operation-level diagnostics."""

        super().__init__(message)
        self.failure_kind = failure_kind
        self.reason = reason
        self.status_code = status_code
        self.provider_code = provider_code


class _GeminiBaseClient:
    """Shared Gemini HTTP settings and helpers used by boundary-specific clients."""

    _MAX_PROVIDER_MESSAGE_CHARS = 180

    def __init__(
        self,
        *,
        api_key: str | None,
        base_url: str = DEFAULT_BASE_URL,
        timeout_seconds: float = 60.0,
    ) -> None:
        """Initialize Gemini HTTP client settings."""

        self.api_key = api_key.strip() if isinstance(api_key, str) else ""
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds

    def _require_api_key(self) -> None:
        """Require a credential before issuing any request."""

        if not self.api_key:
            raise ProviderError(
                "Missing Gemini API key. Set `GEMINI_API_KEY`, use `--api-key`, or store "
                "one with `zenstudio credentials --set-api-key`.",
                failure_kind=MISSING_CREDENTIAL,
            )

    def _generate_content(self, *, model: str, payload: dict[str, Any]) -> dict[str, Any]:
        """POST a `generateContent` request and return the decoded JSON body."""

        self._require_api_key()

        endpoint = f"{self.base_url}/models/{model}:generateContent"
        headers = {
            "x-goog-api-key": self.api_key,
            "Content-Type": "application/json",
        }
        try:
            response = requests.post(
                endpoint,
                headers=headers,
                json=payload,
                timeout=self.timeout_seconds,
            )
            response.raise_for_status()
            response_bytes = bytes(response.content)
        except requests.HTTPError as exc:
            raise self._http_error_to_provider_error(exc) from exc
        except requests.RequestException as exc:
            reason = self._classify_transport_failure(exc)
            if reason == "timeout":
                detail = "Gemini request timed out."
            else:
                detail = f"Gemini request transport error: {self._short_message(str(exc))}"
            raise ProviderError(detail, failure_kind=NETWORK_FAILURE, reason=reason) from exc
        except TimeoutError as exc:
            raise ProviderError(
                "Gemini request timed out.",
                failure_kind=NETWORK_FAILURE,
                reason="timeout",
            ) from exc

        if not response_bytes:
            raise ProviderError("Gemini response is empty.", failure_kind=EMPTY_RESPONSE)
        try:
            body = json.loads(response_bytes.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise ProviderError(
                "Gemini returned invalid JSON payload.",
                failure_kind=EMPTY_RESPONSE,
            ) from exc
        if not isinstance(body, dict):
            raise ProviderError(
                "Gemini response root is not an object.",
                failure_kind=EMPTY_RESPONSE,
            )
        return body

    @staticmethod
    def _first_parts(body: dict[str, Any]) -> list[Any]:
        """Return `candidates[0].content.parts` or raise an empty-response error."""

        candidates = body.get("candidates")
        if not isinstance(candidates, list) or not candidates:
            raise ProviderError(
                "Gemini response missing non-empty `candidates` list.",
                failure_kind=EMPTY_RESPONSE,
            )
        first = candidates[0]
        content = first.get("content") if isinstance(first, dict) else None
        parts = content.get("parts") if isinstance(content, dict) else None
        if not isinstance(parts, list) or not parts:
            raise ProviderError(
                "Gemini response missing `candidates[0].content.parts`.",
                failure_kind=EMPTY_RESPONSE,
            )
        return parts

    @staticmethod
    def _decode_error_body(exc: requests.HTTPError) -> str:
        """Decode an HTTP error body into a best-effort UTF-8 payload string."""

        response = exc.response
        if response is None:
            return ""
        try:
            return bytes(response.content).decode("utf-8", errors="replace").strip()
        except (TypeError, AttributeError):
            return ""

    @classmethod
    def _redact_sensitive_tokens(cls, text: str) -> str:
        """Redact API-key-like tokens from provider error content."""

        redacted = re.sub(r"\bAIza[0-9A-Za-z_-]{20,}\b", "[redacted-key]", text)
        redacted = re.sub(r"(?i)key=[A-Za-z0-9._-]{12,}", "key=[redacted-key]", redacted)
        return redacted

    @classmethod
    def _short_message(cls, text: str) -> str:
        """Normalize and cap user-facing provider message length."""

        compact = " ".join(cls._redact_sensitive_tokens(text).split())
        if len(compact) <= cls._MAX_PROVIDER_MESSAGE_CHARS:
            return compact
        return f"{compact[: cls._MAX_PROVIDER_MESSAGE_CHARS - 1]}..."

    @classmethod
    def _extract_provider_message(cls, body: str) -> tuple[str, str | None]:
        """Extract a concise provider-facing message and optional provider status code."""

        if not body:
            return "", None

        try:
            payload = json.loads(body)
        except json.JSONDecodeError:
            return cls._short_message(body), None

        provider_code: str | None = None
        message: str | None = None
        if isinstance(payload, dict):
            error_payload = payload.get("error")
            if isinstance(error_payload, dict):
                status_value = error_payload.get("status")
                if isinstance(status_value, str) and status_value.strip():
                    provider_code = status_value.strip()
                message_value = error_payload.get("message")
                if isinstance(message_value, str) and message_value.strip():
                    message = message_value.strip()

        if message is None:
            message = body

        return cls._short_message(message), provider_code

    @staticmethod
    def _classify_http_failure(
        status_code: int,
        provider_message: str,
        provider_code: str | None,
    ) -> str:
        """Classify Gemini HTTP errors into diagnostic reasons."""

        message_lower = provider_message.lower()
        normalized_code = provider_code.upper() if provider_code is not None else ""

        if status_code in {401, 403} or "api key" in message_lower:
            return "invalid_api_key"
        if status_code == 429 or normalized_code == "RESOURCE_EXHAUSTED":
            return "quota"
        if status_code == 404 or normalized_code == "NOT_FOUND":
            return "invalid_model"
        if status_code in {408, 504} or normalized_code == "DEADLINE_EXCEEDED":
            return "timeout"
        return "http_error"

    @staticmethod
    def _classify_transport_failure(reason: object) -> str:
        """Classify network-layer failures into diagnostic reasons."""

        if isinstance(reason, (TimeoutError, socket.timeout, requests.Timeout)):
            return "timeout"
        return "transport"

    @classmethod
    def _http_error_to_provider_error(cls, exc: requests.HTTPError) -> ProviderError:
        """Convert HTTP errors into normalized provider exceptions with metadata."""

        status_code = exc.response.status_code if exc.response is not None else 0
        body = cls._decode_error_body(exc)
        provider_message, provider_code = cls._extract_provider_message(body)
        reason = cls._classify_http_failure(status_code, provider_message, provider_code)

        headline = {
            "invalid_api_key": "Gemini authentication failed",
            "quota": "Gemini quota is exhausted for this request",
            "invalid_model": "Gemini rejected the selected model",
            "timeout": "Gemini request timed out",
        }.get(reason, "Gemini request failed")

        if provider_message:
            detail = f"{headline} (HTTP {status_code}): {provider_message}"
        else:
            detail = f"{headline} (HTTP {status_code})."

        return ProviderError(
            detail,
            failure_kind=NETWORK_FAILURE,
            reason=reason,
            status_code=status_code,
            provider_code=provider_code,
        )


class GeminiTextClient(_GeminiBaseClient):
    """Minimal requests-based client returning generated text."""

    def generate_text(self, *, model: str, prompt: str, temperature: float | None = None) -> str:
        """Return the concatenated text parts of the first candidate."""

        payload: dict[str, Any] = {"contents": [{"parts": [{"text": prompt}]}]}
        if temperature is not None:
            payload["generationConfig"] = {"temperature": temperature}
        body = self._generate_content(model=model, payload=payload)
        parts = self._first_parts(body)
        text = "".join(
            part["text"]
            for part in parts
            if isinstance(part, dict) and isinstance(part.get("text"), str)
        )
        normalized = text.strip()
        if not normalized:
            raise ProviderError(
                "Gemini response text content is empty.",
                failure_kind=EMPTY_RESPONSE,
            )
        return normalized


class GeminiSpeechClient(_GeminiBaseClient):
    """Minimal requests-based client for the audio-modality speech boundary."""

    def synthesize_speech(self, *, model: str, voice: str, text: str) -> str:
        """Return the base64 PCM payload of the first inline audio part."""

        payload = {
            "contents": [{"parts": [{"text": text}]}],
            "generationConfig": {
                "responseModalities": ["AUDIO"],
                "speechConfig": {
                    "voiceConfig": {"prebuiltVoiceConfig": {"voiceName": voice}},
                },
            },
        }
        body = self._generate_content(model=model, payload=payload)
        for part in self._first_parts(body):
            if not isinstance(part, dict):
                continue
            inline = part.get("inlineData") or part.get("inline_data")
            if isinstance(inline, dict):
                data = inline.get("data")
                if isinstance(data, str) and data.strip():
                    return data
        raise ProviderError(
            "Gemini speech response carried no audio data.",
            failure_kind=EMPTY_RESPONSE,
        )
