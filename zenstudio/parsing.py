"""Shared parsing helpers for config values, CLI input and story variables."""

from __future__ import annotations

from .models.datatypes import VariableValue


def normalize_optional_string(value: object) -> str | None:
    """Normalize an optional value to a stripped non-empty string.

    Args:
        value: Arbitrary input value.

    Returns:
        Stripped string value, or `None` when the value is empty after trimming.
    """

    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    return text


def parse_variable_literal(raw: str) -> VariableValue:
    """Parse a CLI variable token into a bool, int, float or string value.

    Only `true`/`false` are booleans here; `1`/`0` stay integers so that
    numeric comparisons in branch conditions keep working.
    """

    token = raw.strip()
    lowered = token.lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    try:
        return int(token)
    except ValueError:
        pass
    try:
        return float(token)
    except ValueError:
        return token


def is_variable_value(value: object) -> bool:
    """Return whether a value is an allowed story variable value."""

    return isinstance(value, (bool, int, float, str))
