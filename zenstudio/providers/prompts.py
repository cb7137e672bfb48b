"""Prompt template library for the rewrite boundary.

Responsibilities:
- Centralize prompt construction for mood-driven segment rewrites.
- Keep prompts deterministic for identical segment text and mood.
"""

from __future__ import annotations


class PromptLibrary:
    """Build prompt strings for supported generation tasks."""

    def rewrite_for_mood_prompt(self, text: str, mood: str) -> str:
        """Return the prompt asking for a mood-intensified rewrite of similar length."""

        return (
            f'Rewrite the following story segment to strongly reflect a "{mood}" mood.\n'
            "Requirements:\n"
            "- Keep it concise, approximately the same length as the input.\n"
            "- Keep the same language, characters and events.\n"
            "- Do not add titles, notes or commentary.\n"
            "Return only the rewritten text.\n\n"
            f'Text: "{text}"'
        )
