"""Unit tests for studio session composition and snapshot persistence."""

from __future__ import annotations

import asyncio
import itertools
from pathlib import Path

from zenstudio.audio.store import AudioAssetStore
from zenstudio.config import ProviderRuntimeConfig, RuntimeConfigSources, StudioConfig
from zenstudio.models.datatypes import (
    IngestedPage,
    LibraryFile,
    LibraryFileStatus,
    SegmentUpdate,
    Theme,
)
from zenstudio.persistence import JsonStateStore, PersistenceAdapter
from zenstudio.pipeline.results import AudioOutcome, RewriteOutcome
from zenstudio.studio import Studio, demo_state
from zenstudio.tts.voices import VoiceProfile


class _StaticSynthesizer:
    voice = VoiceProfile()

    def synthesize_pcm(self, text: str) -> bytes:
        return b"\x00\x00" * 240


class _EchoRewriter:
    def rewrite_for_mood(self, text: str, mood: str) -> str:
        return f"[{mood}] {text}"


def _open(tmp_path: Path, **kwargs) -> Studio:  # type: ignore[no-untyped-def]
    counter = itertools.count(1)
    return Studio.open(
        StudioConfig(state_dir=tmp_path),
        sources=kwargs.pop("sources", RuntimeConfigSources()),
        id_factory=lambda: f"n{next(counter)}",
        **kwargs,
    )


def _session(tmp_path: Path, runtime: ProviderRuntimeConfig | None = None) -> Studio:
    return Studio(
        demo_state(),
        audio_store=AudioAssetStore(tmp_path / "audio"),
        synthesizer_factory=lambda api_key: _StaticSynthesizer(),
        rewriter_factory=lambda api_key: _EchoRewriter(),
        persistence=PersistenceAdapter(JsonStateStore(tmp_path)),
        runtime=runtime,
    )


def test_open_seeds_demo_story_without_writing(tmp_path: Path) -> None:
    studio = _open(tmp_path)

    assert studio.state() == demo_state()
    assert studio.graph.display_order == ("s1", "s2", "s3")
    assert studio.graph.active_segment_id == "s1"
    assert len(studio.library) == 2
    assert not list(tmp_path.glob("*.json"))


def test_graph_mutation_is_persisted_and_visible_after_reopen(tmp_path: Path) -> None:
    studio = _open(tmp_path)

    new_id = studio.graph.create(text="A new clearing.")
    studio.graph.reorder(3, 0)

    reopened = _open(tmp_path)
    assert new_id == "n1"
    assert reopened.graph.display_order == ("n1", "s1", "s2", "s3")
    assert reopened.graph.active_segment_id == "n1"
    assert reopened.graph.require("n1").text == "A new clearing."


def test_theme_credential_and_library_changes_are_persisted(tmp_path: Path) -> None:
    studio = _open(tmp_path)

    assert studio.toggle_theme() is Theme.LIGHT
    studio.set_credential("  record-key ")
    studio.add_library_file(LibraryFile("3", "scan_06.jpg", LibraryFileStatus.ANALYZED))
    assert studio.remove_library_file("1") is True
    assert studio.remove_library_file("1") is False

    reopened = _open(tmp_path)
    assert reopened.theme is Theme.LIGHT
    assert reopened.credential == "record-key"
    assert [item.id for item in reopened.library.files] == ["3", "2"]


def test_promote_library_file_creates_persisted_segment(tmp_path: Path) -> None:
    studio = _open(tmp_path)

    segment_id = studio.promote_library_file("2")

    reopened = _open(tmp_path)
    assert segment_id == "n1"
    segment = reopened.graph.require("n1")
    assert segment.assets.image == "https://picsum.photos/id/237/100/100"
    assert reopened.graph.display_order[-1] == "n1"


def test_effective_credential_prefers_runtime_then_record(tmp_path: Path) -> None:
    runtime = ProviderRuntimeConfig("tts", "rewrite", "Kore", api_key="runtime-key")

    with_runtime = _session(tmp_path, runtime=runtime)
    with_runtime.set_credential("record-key")
    assert with_runtime.effective_credential() == "runtime-key"

    without_runtime = _session(tmp_path / "other")
    assert without_runtime.effective_credential() is None
    without_runtime.set_credential("record-key")
    assert without_runtime.effective_credential() == "record-key"


def test_open_resolves_runtime_credential_from_sources(tmp_path: Path) -> None:
    studio = _open(tmp_path, sources=RuntimeConfigSources(env={"GEMINI_API_KEY": "env-key"}))

    assert studio.effective_credential() == "env-key"


def test_ensure_audio_and_rewrite_update_persisted_segment(tmp_path: Path) -> None:
    studio = _session(tmp_path)
    studio.set_credential("record-key")

    audio = asyncio.run(studio.ensure_audio("s2"))
    rewrite = asyncio.run(studio.rewrite("s2"))

    assert audio.outcome is AudioOutcome.GENERATED
    assert rewrite.outcome is RewriteOutcome.REWRITTEN
    stored = PersistenceAdapter(JsonStateStore(tmp_path)).load()
    assert stored is not None
    segment = stored.story.segments["s2"]
    assert segment.assets.audio == audio.audio_uri
    assert segment.text.startswith("[Dark] Suddenly, a shadow moved")


def test_audio_without_any_credential_requests_fallback(tmp_path: Path) -> None:
    studio = _session(tmp_path)

    result = asyncio.run(studio.ensure_audio("s1"))

    assert result.outcome is AudioOutcome.FALLBACK_REQUIRED
    assert result.fallback_text == studio.graph.require("s1").text


def test_updates_notify_persistence_once_per_mutation(tmp_path: Path) -> None:
    studio = _session(tmp_path)
    snapshots: list[int] = []
    original_snapshot = studio.persistence.snapshot  # type: ignore[union-attr]

    def _counting_snapshot(state):  # type: ignore[no-untyped-def]
        snapshots.append(len(state.story.segments))
        return original_snapshot(state)

    studio.persistence.snapshot = _counting_snapshot  # type: ignore[union-attr, method-assign]

    studio.graph.update("s1", SegmentUpdate(text="Edited."))
    studio.graph.delete("s3")
    studio.graph.update("missing", SegmentUpdate(text="ignored"))

    assert snapshots == [3, 2]


def test_resolved_credential_reports_the_layer_in_use(tmp_path: Path) -> None:
    keyring_runtime = ProviderRuntimeConfig(
        "tts", "rewrite", "Kore", api_key="keyring-key", api_key_source="keyring"
    )
    studio = _session(tmp_path, runtime=keyring_runtime)
    studio.record_credentials.set_api_key("record-key")

    resolved = studio.resolved_credential()

    assert resolved is not None
    assert (resolved.value, resolved.source) == ("keyring-key", "keyring")
    assert _session(tmp_path / "bare").resolved_credential() is None


def test_record_credentials_are_saved_and_back_the_session_key(tmp_path: Path) -> None:
    studio = _open(tmp_path)

    studio.record_credentials.set_api_key(" record-key ")
    reopened = _open(tmp_path)
    resolved = reopened.resolved_credential()

    assert resolved is not None
    assert (resolved.value, resolved.source) == ("record-key", "record")
    assert reopened.record_credentials.clear_api_key() is True
    assert _open(tmp_path).effective_credential() is None


def test_library_status_changes_are_persisted(tmp_path: Path) -> None:
    studio = _open(tmp_path)
    studio.add_library_file(LibraryFile(id="p6", name="scan_page_06.jpg"))
    studio.add_library_file(LibraryFile(id="p7", name="scan_page_07.jpg"))

    analyzed = studio.mark_library_analyzed(
        "p6", IngestedPage(text="Grandma waited.", mood="Warm", image_uri="https://img/p6.jpg")
    )
    failed = studio.mark_library_failed("p7", "blurry scan")
    missing = studio.mark_library_failed("ghost", "never uploaded")

    reopened = _open(tmp_path)
    p6 = reopened.library.get("p6")
    p7 = reopened.library.get("p7")
    assert (analyzed, failed, missing) == (True, True, False)
    assert p6 is not None and p6.status is LibraryFileStatus.ANALYZED
    assert p6.extracted == IngestedPage("Grandma waited.", "Warm", "https://img/p6.jpg")
    assert p7 is not None and p7.status is LibraryFileStatus.ERROR
    assert p7.stage_message == "Error: blurry scan"


def test_library_progress_updates_are_persisted(tmp_path: Path) -> None:
    studio = _open(tmp_path)
    studio.add_library_file(LibraryFile(id="p8", name="scan_page_08.jpg"))

    updated = studio.update_library_file(
        "p8", status=LibraryFileStatus.PROCESSING, stage_message="Extracting text"
    )
    missing = studio.update_library_file("ghost", stage_message="never uploaded")

    stored = _open(tmp_path).library.get("p8")
    assert (updated, missing) == (True, False)
    assert stored is not None
    assert stored.status is LibraryFileStatus.PROCESSING
    assert stored.stage_message == "Extracting text"
