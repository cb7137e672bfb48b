"""CLI output and error rendering helpers.

This module centralizes user-facing CLI presentation for command diagnostics,
story listings, navigation moves and pipeline results.
"""

from __future__ import annotations

from typing import NoReturn

import typer

from .errors import StudioCommandError
from .models.datatypes import LibraryFile, Segment
from .pipeline.results import AudioResult, RewriteResult
from .story.navigation import NavigationStep

_PREVIEW_CHARS = 60


def exit_with_command_error(command_name: str, exc: Exception) -> NoReturn:
    """Print concise diagnostics for command failures and exit with code 1."""

    if isinstance(exc, StudioCommandError):
        typer.secho(
            f"{command_name} failed at stage `{exc.stage}`: {exc.detail}",
            fg=typer.colors.RED,
            err=True,
        )
        if exc.hint:
            typer.secho(f"Hint: {exc.hint}", fg=typer.colors.YELLOW, err=True)
    else:
        typer.secho(f"{command_name} failed: {exc}", fg=typer.colors.RED, err=True)
    raise typer.Exit(code=1) from exc


def preview_text(text: str, limit: int = _PREVIEW_CHARS) -> str:
    """Collapse whitespace and truncate text for one-line listings."""

    collapsed = " ".join(text.split())
    if len(collapsed) <= limit:
        return collapsed
    return collapsed[: limit - 3].rstrip() + "..."


def echo_segment_row(position: int, segment: Segment, active: bool) -> None:
    """Print one display-order row for a segment."""

    marker = "*" if active else " "
    duration = segment.source_meta.estimated_duration or "-"
    audio = "audio" if segment.assets.audio else "no-audio"
    typer.echo(
        f"{marker} {position}. {segment.id} [{segment.kind.value}] "
        f"{segment.source_meta.mood} {duration} {audio} | {preview_text(segment.text)}"
    )
    for index, branch in enumerate(segment.branches):
        condition = f" if {branch.condition}" if branch.condition else ""
        typer.echo(f"      -> [{index}] {branch.target}{condition}")


def echo_variables(variables: dict[str, object]) -> None:
    """Print story variables in deterministic name order."""

    if not variables:
        typer.echo("Variables: (none)")
        return
    rendered = ", ".join(f"{name}={variables[name]!r}" for name in sorted(variables))
    typer.echo(f"Variables: {rendered}")


def echo_navigation_step(step: NavigationStep | None, direction: str) -> None:
    """Print the result of a navigation move."""

    if step is None:
        boundary = "end" if direction == "next" else "start"
        typer.echo(f"Already at the {boundary} of the story.")
        return
    typer.echo(f"Moved to {step.target_id} ({step.kind}) from {step.source_id}.")


def echo_audio_result(result: AudioResult) -> None:
    """Print the tagged outcome of an audio request."""

    typer.echo(f"Audio outcome: {result.outcome.value}")
    if result.audio_uri:
        typer.echo(f"Audio URI: {result.audio_uri}")
    if result.failure_kind:
        typer.echo(f"Failure kind: {result.failure_kind}")
    if result.needs_fallback and result.fallback_text is not None:
        typer.echo(f"Fallback text: {result.fallback_text}")
    if result.detail and not result.succeeded:
        typer.echo(f"Detail: {result.detail}")


def echo_rewrite_result(result: RewriteResult) -> None:
    """Print the tagged outcome of a rewrite request."""

    typer.echo(f"Rewrite outcome: {result.outcome.value}")
    if result.text is not None:
        typer.echo(f"Text: {result.text}")
    if result.failure_kind:
        typer.echo(f"Failure kind: {result.failure_kind}")
    if result.detail and not result.succeeded:
        typer.echo(f"Detail: {result.detail}")


def echo_library_row(item: LibraryFile) -> None:
    """Print one library entry."""

    stage = f" ({item.stage_message})" if item.stage_message else ""
    typer.echo(f"{item.id} {item.name} [{item.status.value}]{stage}")
