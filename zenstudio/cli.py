"""Command-line interface for Zen Studio.

Responsibilities:
- Expose user-facing commands over the persisted studio record.
- Convert CLI arguments into `StudioConfig` and runtime source overrides.

Key public functions:
- `app`: Typer application instance.
- `main`: invoke the Typer application.
"""

from __future__ import annotations

import asyncio
import json
import os
import uuid
from pathlib import Path
from typing import Annotated

import typer

from .cli_rendering import (
    echo_audio_result,
    echo_library_row,
    echo_navigation_step,
    echo_rewrite_result,
    echo_segment_row,
    echo_variables,
    exit_with_command_error,
)
from .cli_runtime import collect_runtime_sources
from .config import ConfigLoader, RuntimeConfigSources, StudioConfig
from .credentials import create_credential_store
from .errors import SegmentNotFoundError, SegmentOrderError, StateFormatError, StudioCommandError
from .models.datatypes import (
    AssetsUpdate,
    IngestedPage,
    LibraryFile,
    LibraryFileStatus,
    SegmentKind,
    SegmentUpdate,
    SourceMetaUpdate,
    Theme,
)
from .parsing import normalize_optional_string, parse_variable_literal
from .persistence import state_to_payload
from .pipeline.results import AudioOutcome, RewriteOutcome
from .studio import Studio
from .telemetry.logger import StudioLogger

app = typer.Typer(
    name="zenstudio",
    no_args_is_help=True,
    help="Zen Studio story CLI.",
)
library_app = typer.Typer(no_args_is_help=True, help="Manage the ingestion library.")
app.add_typer(library_app, name="library")

ConfigOption = Annotated[
    Path | None,
    typer.Option("--config", help="Optional YAML config file."),
]
StateDirOption = Annotated[
    Path | None,
    typer.Option("--state-dir", help="Studio state directory (overrides config file value)."),
]
VerboseOption = Annotated[
    bool,
    typer.Option("--verbose", help="Emit debug event lines, including mutations."),
]


def _load_yaml_config(config_path: Path | None) -> StudioConfig | None:
    """Load a YAML config file when requested and map failures to stage errors."""

    if config_path is None:
        return None

    try:
        return ConfigLoader.from_yaml(config_path)
    except FileNotFoundError as exc:
        raise StudioCommandError(
            stage="config",
            detail=f"Config file not found: `{config_path}`.",
            hint="Provide an existing path via `--config <path.yaml>`.",
        ) from exc
    except ValueError as exc:
        raise StudioCommandError(
            stage="config",
            detail=f"Invalid config file `{config_path}`: {exc}",
            hint="Fix config schema/values and rerun.",
        ) from exc


def _resolve_command_config(config_file: Path | None, state_dir: Path | None) -> StudioConfig:
    """Resolve effective command config from YAML or environment defaults and CLI overrides."""

    loaded = _load_yaml_config(config_file)
    if loaded is None:
        try:
            loaded = ConfigLoader.from_env()
        except ValueError as exc:
            raise StudioCommandError(
                stage="config",
                detail=f"Invalid environment configuration: {exc}",
                hint="Fix the `ZENSTUDIO_*` environment variables and rerun.",
            ) from exc
    if state_dir is not None:
        loaded.state_dir = state_dir
    return loaded


def _open_studio(
    config_file: Path | None,
    state_dir: Path | None,
    verbose: bool = False,
    sources: RuntimeConfigSources | None = None,
) -> Studio:
    """Open the studio session for a command, mapping load failures to stage errors."""

    config = _resolve_command_config(config_file, state_dir)
    if sources is None:
        sources = RuntimeConfigSources(env=os.environ)
    logger = StudioLogger(level="DEBUG" if verbose else "INFO")
    try:
        return Studio.open(config, sources=sources, logger=logger)
    except StateFormatError as exc:
        raise StudioCommandError(
            stage="persistence",
            detail=f"Stored studio record is invalid: {exc}",
            hint=f"Inspect or remove `{config.state_dir}` and rerun.",
        ) from exc
    except ValueError as exc:
        raise StudioCommandError(
            stage="config",
            detail=str(exc),
            hint="Check model, voice and storage settings.",
        ) from exc


def _target_segment_id(studio: Studio, segment_id: str | None) -> str:
    """Return the explicit segment id, or the active selection when omitted."""

    resolved = segment_id or studio.graph.active_segment_id
    if resolved is None:
        raise StudioCommandError(
            stage="selection",
            detail="No segment id was given and nothing is selected.",
            hint="Pass a segment id or run `zenstudio select <id>` first.",
        )
    studio.graph.require(resolved)
    return resolved


@app.command("show")
def show_command(
    config_file: ConfigOption = None,
    state_dir: StateDirOption = None,
) -> None:
    """Print segments in display order with the active selection marked."""

    try:
        studio = _open_studio(config_file, state_dir)
    except Exception as exc:
        exit_with_command_error("show", exc)

    graph = studio.graph
    typer.echo(f"Story version: {graph.story.version}")
    typer.echo(f"Segments: {len(graph)}")
    for position, segment in enumerate(graph.ordered_segments(), start=1):
        echo_segment_row(position, segment, segment.id == graph.active_segment_id)
    echo_variables(dict(graph.story.variables))
    typer.echo(f"Theme: {studio.theme.value}")
    for problem in graph.check_consistency():
        typer.secho(f"Warning: {problem}", fg=typer.colors.YELLOW, err=True)


@app.command("add")
def add_command(
    config_file: ConfigOption = None,
    state_dir: StateDirOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Append a blank narration segment and select it."""

    try:
        studio = _open_studio(config_file, state_dir, verbose)
        segment_id = studio.graph.create_blank()
    except Exception as exc:
        exit_with_command_error("add", exc)
    typer.echo(f"Created segment: {segment_id}")


@app.command("ingest")
def ingest_command(
    text: Annotated[str, typer.Argument(help="Extracted page text.")],
    mood: Annotated[str, typer.Option("--mood", help="Detected mood label.")] = "Neutral",
    image: Annotated[
        str | None, typer.Option("--image", help="Illustration URI for the page.")
    ] = None,
    config_file: ConfigOption = None,
    state_dir: StateDirOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Create a segment from ingested page content, deriving its display duration."""

    try:
        studio = _open_studio(config_file, state_dir, verbose)
        segment_id = studio.graph.create_from_ingested(text, mood, image)
        segment = studio.graph.require(segment_id)
    except Exception as exc:
        exit_with_command_error("ingest", exc)
    typer.echo(f"Created segment: {segment_id}")
    typer.echo(f"Estimated duration: {segment.source_meta.estimated_duration}")


@app.command("edit")
def edit_command(
    segment_id: Annotated[str, typer.Argument(help="Segment id to edit.")],
    text: Annotated[str | None, typer.Option("--text", help="Replacement text.")] = None,
    mood: Annotated[str | None, typer.Option("--mood", help="Replacement mood.")] = None,
    kind: Annotated[
        SegmentKind | None, typer.Option("--kind", help="Replacement segment kind.")
    ] = None,
    image: Annotated[str | None, typer.Option("--image", help="Replacement image URI.")] = None,
    config_file: ConfigOption = None,
    state_dir: StateDirOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Apply a partial update to a segment."""

    update = SegmentUpdate(
        kind=kind,
        text=text,
        assets=AssetsUpdate(image=image) if image is not None else None,
        source_meta=SourceMetaUpdate(mood=mood) if mood is not None else None,
    )
    try:
        studio = _open_studio(config_file, state_dir, verbose)
        if not studio.graph.update(segment_id, update):
            raise SegmentNotFoundError(segment_id)
    except Exception as exc:
        exit_with_command_error("edit", exc)
    typer.echo(f"Updated segment: {segment_id}")


@app.command("delete")
def delete_command(
    segment_id: Annotated[str, typer.Argument(help="Segment id to delete.")],
    config_file: ConfigOption = None,
    state_dir: StateDirOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Delete a segment; deleting an unknown id is a no-op."""

    try:
        studio = _open_studio(config_file, state_dir, verbose)
        removed = studio.graph.delete(segment_id)
    except Exception as exc:
        exit_with_command_error("delete", exc)
    if removed:
        typer.echo(f"Deleted segment: {segment_id}")
    else:
        typer.echo(f"No segment with id {segment_id}; nothing deleted.")
    typer.echo(f"Active segment: {studio.graph.active_segment_id or '(none)'}")


@app.command("move")
def move_command(
    from_position: Annotated[int, typer.Argument(help="1-based current position.")],
    to_position: Annotated[int, typer.Argument(help="1-based destination position.")],
    config_file: ConfigOption = None,
    state_dir: StateDirOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Move a segment within the display order."""

    try:
        studio = _open_studio(config_file, state_dir, verbose)
        studio.graph.reorder(from_position - 1, to_position - 1)
    except SegmentOrderError as exc:
        exit_with_command_error(
            "move",
            StudioCommandError(
                stage="reorder",
                detail=f"Position out of range; the story has {exc.length} segment(s).",
                hint="Use positions shown by `zenstudio show`.",
            ),
        )
    except Exception as exc:
        exit_with_command_error("move", exc)
    typer.echo(f"Display order: {', '.join(studio.graph.display_order)}")


@app.command("select")
def select_command(
    segment_id: Annotated[str | None, typer.Argument(help="Segment id to select.")] = None,
    clear: Annotated[bool, typer.Option("--clear", help="Clear the active selection.")] = False,
    config_file: ConfigOption = None,
    state_dir: StateDirOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Set or clear the active segment."""

    if clear == (segment_id is not None):
        exit_with_command_error(
            "select",
            StudioCommandError(
                stage="arguments",
                detail="Pass exactly one of a segment id or `--clear`.",
            ),
        )
    try:
        studio = _open_studio(config_file, state_dir, verbose)
        studio.graph.select(None if clear else segment_id)
    except Exception as exc:
        exit_with_command_error("select", exc)
    typer.echo(f"Active segment: {studio.graph.active_segment_id or '(none)'}")


@app.command("next")
def next_command(
    config_file: ConfigOption = None,
    state_dir: StateDirOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Advance the selection, following the first open branch when one exists."""

    try:
        studio = _open_studio(config_file, state_dir, verbose)
        step = studio.navigation.next()
    except Exception as exc:
        exit_with_command_error("next", exc)
    echo_navigation_step(step, "next")


@app.command("prev")
def prev_command(
    config_file: ConfigOption = None,
    state_dir: StateDirOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Move the selection back one position in display order."""

    try:
        studio = _open_studio(config_file, state_dir, verbose)
        step = studio.navigation.previous()
    except Exception as exc:
        exit_with_command_error("prev", exc)
    echo_navigation_step(step, "prev")


@app.command("link")
def link_command(
    source_id: Annotated[str, typer.Argument(help="Segment the branch leaves from.")],
    target_id: Annotated[str, typer.Argument(help="Segment the branch points to.")],
    condition: Annotated[
        str | None,
        typer.Option("--condition", help="Guard expression over story variables."),
    ] = None,
    config_file: ConfigOption = None,
    state_dir: StateDirOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Append a branch from one segment to another."""

    try:
        studio = _open_studio(config_file, state_dir, verbose)
        studio.graph.add_branch(source_id, target_id, normalize_optional_string(condition))
    except Exception as exc:
        exit_with_command_error("link", exc)
    if target_id not in studio.graph:
        typer.secho(
            f"Warning: target `{target_id}` does not exist yet; navigation will skip it.",
            fg=typer.colors.YELLOW,
            err=True,
        )
    typer.echo(f"Linked {source_id} -> {target_id}")


@app.command("unlink")
def unlink_command(
    source_id: Annotated[str, typer.Argument(help="Segment holding the branch.")],
    index: Annotated[int, typer.Argument(help="0-based branch index shown by `show`.")],
    config_file: ConfigOption = None,
    state_dir: StateDirOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Remove one branch from a segment."""

    try:
        studio = _open_studio(config_file, state_dir, verbose)
        removed = studio.graph.remove_branch(source_id, index)
    except Exception as exc:
        exit_with_command_error("unlink", exc)
    typer.echo(f"Removed branch {source_id} -> {removed.target}")


@app.command("set-var")
def set_var_command(
    name: Annotated[str, typer.Argument(help="Variable name.")],
    value: Annotated[
        str | None,
        typer.Argument(help="Value: true/false, a number, or text."),
    ] = None,
    remove: Annotated[bool, typer.Option("--remove", help="Remove the variable.")] = False,
    config_file: ConfigOption = None,
    state_dir: StateDirOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Set or remove a story variable consulted by branch conditions."""

    if remove == (value is not None):
        exit_with_command_error(
            "set-var",
            StudioCommandError(
                stage="arguments",
                detail="Pass exactly one of a value or `--remove`.",
            ),
        )
    try:
        studio = _open_studio(config_file, state_dir, verbose)
        if remove:
            existed = studio.graph.remove_variable(name)
        else:
            studio.graph.set_variable(name, parse_variable_literal(value or ""))
            existed = True
    except Exception as exc:
        exit_with_command_error("set-var", exc)
    if remove and not existed:
        typer.echo(f"No variable named {name}.")
    echo_variables(dict(studio.graph.story.variables))


@app.command("audio")
def audio_command(
    segment_id: Annotated[
        str | None, typer.Argument(help="Segment id; defaults to the active segment.")
    ] = None,
    model_tts: Annotated[str | None, typer.Option("--model-tts", help="TTS model override.")] = None,
    tts_voice: Annotated[str | None, typer.Option("--tts-voice", help="TTS voice override.")] = None,
    api_key: Annotated[
        str | None, typer.Option("--api-key", help="Gemini API key for this run.")
    ] = None,
    prompt_api_key: Annotated[
        bool,
        typer.Option("--prompt-api-key", help="Prompt for the API key with hidden input."),
    ] = False,
    store_api_key: Annotated[
        bool,
        typer.Option("--store-api-key", help="Persist an entered API key in secure storage."),
    ] = False,
    config_file: ConfigOption = None,
    state_dir: StateDirOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Ensure a segment has generated audio, or report the text needing fallback speech."""

    try:
        sources = collect_runtime_sources(
            {"model_tts": model_tts, "tts_voice": tts_voice},
            api_key=api_key,
            prompt_api_key=prompt_api_key,
            store_api_key=store_api_key,
            credential_store_factory=create_credential_store,
        )
        studio = _open_studio(config_file, state_dir, verbose, sources)
        target = _target_segment_id(studio, segment_id)
        result = asyncio.run(studio.ensure_audio(target))
    except Exception as exc:
        exit_with_command_error("audio", exc)

    echo_audio_result(result)
    if result.outcome in {AudioOutcome.BUSY, AudioOutcome.UNAVAILABLE}:
        raise typer.Exit(code=1)


@app.command("rewrite")
def rewrite_command(
    segment_id: Annotated[
        str | None, typer.Argument(help="Segment id; defaults to the active segment.")
    ] = None,
    model_rewrite: Annotated[
        str | None, typer.Option("--model-rewrite", help="Rewrite model override.")
    ] = None,
    api_key: Annotated[
        str | None, typer.Option("--api-key", help="Gemini API key for this run.")
    ] = None,
    prompt_api_key: Annotated[
        bool,
        typer.Option("--prompt-api-key", help="Prompt for the API key with hidden input."),
    ] = False,
    store_api_key: Annotated[
        bool,
        typer.Option("--store-api-key", help="Persist an entered API key in secure storage."),
    ] = False,
    config_file: ConfigOption = None,
    state_dir: StateDirOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Rewrite a segment's text to strengthen its mood."""

    try:
        sources = collect_runtime_sources(
            {"model_rewrite": model_rewrite},
            api_key=api_key,
            prompt_api_key=prompt_api_key,
            store_api_key=store_api_key,
            credential_store_factory=create_credential_store,
        )
        studio = _open_studio(config_file, state_dir, verbose, sources)
        target = _target_segment_id(studio, segment_id)
        result = asyncio.run(studio.rewrite(target))
    except Exception as exc:
        exit_with_command_error("rewrite", exc)

    echo_rewrite_result(result)
    if result.outcome is not RewriteOutcome.REWRITTEN:
        raise typer.Exit(code=1)


@app.command("theme")
def theme_command(
    value: Annotated[
        Theme | None, typer.Argument(help="Theme to set; toggles when omitted.")
    ] = None,
    config_file: ConfigOption = None,
    state_dir: StateDirOption = None,
) -> None:
    """Toggle or set the editor theme stored in the studio record."""

    try:
        studio = _open_studio(config_file, state_dir)
        if value is None or value is not studio.theme:
            studio.toggle_theme()
    except Exception as exc:
        exit_with_command_error("theme", exc)
    typer.echo(f"Theme: {studio.theme.value}")


@app.command("settings")
def settings_command(
    api_key: Annotated[
        str | None,
        typer.Option("--api-key", help="Store the API key in the studio record."),
    ] = None,
    clear_api_key: Annotated[
        bool, typer.Option("--clear-api-key", help="Clear the API key in the studio record.")
    ] = False,
    config_file: ConfigOption = None,
    state_dir: StateDirOption = None,
) -> None:
    """Show or change settings kept in the studio record."""

    try:
        studio = _open_studio(config_file, state_dir)
        if clear_api_key:
            studio.record_credentials.clear_api_key()
        elif api_key is not None:
            studio.record_credentials.set_api_key(api_key)
        resolved = studio.resolved_credential()
    except Exception as exc:
        exit_with_command_error("settings", exc)

    typer.echo(f"Theme: {studio.theme.value}")
    record_key = studio.record_credentials.get_api_key()
    typer.echo(f"Record API key: {'present' if record_key else 'not set'}")
    typer.echo(f"Active API key source: {resolved.source if resolved is not None else 'none'}")
    if studio.runtime is not None:
        for key, item in sorted(studio.runtime.as_display_metadata().items()):
            typer.echo(f"Runtime {key}: {item}")


@app.command("credentials")
def credentials_command(
    set_api_key: Annotated[
        bool,
        typer.Option(
            "--set-api-key",
            help="Prompt for API key with hidden input and store it securely.",
        ),
    ] = False,
    clear_api_key: Annotated[
        bool,
        typer.Option(
            "--clear-api-key",
            help="Clear stored API key from secure credential storage.",
        ),
    ] = False,
) -> None:
    """Manage securely stored CLI credentials."""

    if set_api_key and clear_api_key:
        exit_with_command_error(
            "credentials",
            StudioCommandError(
                stage="credentials",
                detail="`--set-api-key` and `--clear-api-key` cannot be used together.",
                hint="Run one credentials action per command invocation.",
            ),
        )

    credential_store = create_credential_store()
    if set_api_key:
        prompted_api_key = normalize_optional_string(
            typer.prompt(
                "Gemini API key (hidden input)",
                default="",
                hide_input=True,
                show_default=False,
            )
        )
        if prompted_api_key is None:
            exit_with_command_error(
                "credentials",
                StudioCommandError(
                    stage="credentials",
                    detail="No API key entered.",
                    hint="Provide a non-empty API key when using `--set-api-key`.",
                ),
            )
        try:
            credential_store.set_api_key(prompted_api_key)
        except Exception as exc:
            exit_with_command_error(
                "credentials",
                StudioCommandError(
                    stage="credentials",
                    detail=f"Failed to store API key securely: {exc}",
                    hint="Install and configure a keyring backend and retry.",
                ),
            )
        typer.echo("API key stored in secure credential storage.")
        return

    if clear_api_key:
        if credential_store.clear_api_key():
            typer.echo("Stored API key cleared from secure credential storage.")
        else:
            typer.echo("No stored API key found in secure credential storage.")
        return

    availability = "available" if credential_store.is_available() else "unavailable"
    status = "present" if credential_store.get_api_key() is not None else "not set"
    typer.echo(f"Secure credential storage: {availability}")
    typer.echo(f"Stored Gemini API key: {status}")


@app.command("export")
def export_command(
    out: Annotated[
        Path | None, typer.Option("--out", help="Write the record here instead of stdout.")
    ] = None,
    include_credential: Annotated[
        bool,
        typer.Option("--include-credential", help="Keep the record API key in the export."),
    ] = False,
    config_file: ConfigOption = None,
    state_dir: StateDirOption = None,
) -> None:
    """Export the studio record as JSON."""

    try:
        studio = _open_studio(config_file, state_dir)
        payload = state_to_payload(studio.state())
        if not include_credential:
            payload["apiKey"] = ""
        rendered = json.dumps(payload, ensure_ascii=False, indent=2, sort_keys=True)
        if out is not None:
            out.parent.mkdir(parents=True, exist_ok=True)
            out.write_text(rendered + "\n", encoding="utf-8")
    except Exception as exc:
        exit_with_command_error("export", exc)

    if out is None:
        typer.echo(rendered)
    else:
        typer.echo(f"Exported studio record: {out}")


@library_app.command("list")
def library_list_command(
    config_file: ConfigOption = None,
    state_dir: StateDirOption = None,
) -> None:
    """List library files, newest first."""

    try:
        studio = _open_studio(config_file, state_dir)
    except Exception as exc:
        exit_with_command_error("library list", exc)
    if not len(studio.library):
        typer.echo("Library is empty.")
        return
    for item in studio.library.files:
        echo_library_row(item)


@library_app.command("add")
def library_add_command(
    name: Annotated[str, typer.Argument(help="Display name of the scanned page.")],
    text: Annotated[
        str | None, typer.Option("--text", help="Extracted text; marks the file analyzed.")
    ] = None,
    mood: Annotated[str, typer.Option("--mood", help="Extracted mood label.")] = "Neutral",
    thumbnail: Annotated[
        str | None, typer.Option("--thumbnail", help="Thumbnail/illustration URI.")
    ] = None,
    file_id: Annotated[str | None, typer.Option("--id", help="Explicit library file id.")] = None,
    config_file: ConfigOption = None,
    state_dir: StateDirOption = None,
) -> None:
    """Add a scanned page to the library."""

    try:
        studio = _open_studio(config_file, state_dir)
        resolved_id = file_id or str(uuid.uuid4())
        extracted = None
        status = LibraryFileStatus.PROCESSING
        if text is not None:
            extracted = IngestedPage(text=text, mood=mood, image_uri=thumbnail or "")
            status = LibraryFileStatus.ANALYZED
        studio.add_library_file(
            LibraryFile(
                id=resolved_id,
                name=name,
                status=status,
                thumbnail=thumbnail,
                stage_message="Complete" if extracted is not None else "Preparing upload...",
                extracted=extracted,
            )
        )
    except Exception as exc:
        exit_with_command_error("library add", exc)
    typer.echo(f"Added library file: {resolved_id}")


@library_app.command("remove")
def library_remove_command(
    file_id: Annotated[str, typer.Argument(help="Library file id.")],
    config_file: ConfigOption = None,
    state_dir: StateDirOption = None,
) -> None:
    """Remove a file from the library."""

    try:
        studio = _open_studio(config_file, state_dir)
        removed = studio.remove_library_file(file_id)
    except Exception as exc:
        exit_with_command_error("library remove", exc)
    if removed:
        typer.echo(f"Removed library file: {file_id}")
    else:
        typer.echo(f"No library file with id {file_id}.")


@library_app.command("analyze")
def library_analyze_command(
    file_id: Annotated[str, typer.Argument(help="Library file id.")],
    text: Annotated[str, typer.Option("--text", help="Extracted page text.")],
    mood: Annotated[str, typer.Option("--mood", help="Extracted mood label.")] = "Neutral",
    image: Annotated[
        str, typer.Option("--image", help="Illustration URI extracted from the page.")
    ] = "",
    config_file: ConfigOption = None,
    state_dir: StateDirOption = None,
) -> None:
    """Attach extracted content to a library file and mark it analyzed."""

    try:
        studio = _open_studio(config_file, state_dir)
        changed = studio.mark_library_analyzed(
            file_id, IngestedPage(text=text, mood=mood, image_uri=image)
        )
    except Exception as exc:
        exit_with_command_error("library analyze", exc)
    if not changed:
        typer.echo(f"No library file with id {file_id}.")
        raise typer.Exit(code=1)
    typer.echo(f"Analyzed library file: {file_id}")


@library_app.command("fail")
def library_fail_command(
    file_id: Annotated[str, typer.Argument(help="Library file id.")],
    message: Annotated[str, typer.Argument(help="Reason the page could not be analyzed.")],
    config_file: ConfigOption = None,
    state_dir: StateDirOption = None,
) -> None:
    """Mark a library file as failed."""

    try:
        studio = _open_studio(config_file, state_dir)
        changed = studio.mark_library_failed(file_id, message)
    except Exception as exc:
        exit_with_command_error("library fail", exc)
    if not changed:
        typer.echo(f"No library file with id {file_id}.")
        raise typer.Exit(code=1)
    typer.echo(f"Marked library file failed: {file_id}")


@library_app.command("promote")
def library_promote_command(
    file_id: Annotated[str, typer.Argument(help="Analyzed library file id.")],
    config_file: ConfigOption = None,
    state_dir: StateDirOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Create a story segment from an analyzed library file."""

    try:
        studio = _open_studio(config_file, state_dir, verbose)
        segment_id = studio.promote_library_file(file_id)
        if segment_id is None:
            raise StudioCommandError(
                stage="library",
                detail=f"Library file `{file_id}` is missing or not analyzed.",
                hint="Run `zenstudio library list` to see analyzed files.",
            )
    except Exception as exc:
        exit_with_command_error("library promote", exc)
    typer.echo(f"Created segment: {segment_id}")


def main() -> None:
    """CLI entrypoint for console scripts."""
    app()


if __name__ == "__main__":
    main()
