"""Studio session composition.

Responsibilities:
- Compose the segment graph, navigation, ingestion library, pipelines and persistence.
- Snapshot the full studio record after every graph or library mutation.
- Seed the demo story when no record has been persisted yet.

Key types:
- `Studio`: one editing session over a persisted studio record.
"""

from __future__ import annotations

from typing import Callable

from .audio.store import AudioAssetStore
from .config import ProviderRuntimeConfig, RuntimeConfigSources, StudioConfig
from .credentials import (
    SOURCE_CONFIG,
    SOURCE_RECORD,
    RecordCredentialStore,
    ResolvedCredential,
    resolve_credential,
)
from .library import IngestionLibrary
from .models.datatypes import (
    GlobalConfig,
    IngestedPage,
    LibraryFile,
    LibraryFileStatus,
    Segment,
    SegmentAssets,
    SegmentKind,
    SourceMeta,
    Story,
    StudioState,
    Theme,
)
from .persistence import JsonStateStore, PersistenceAdapter
from .pipeline.assets import AssetPipeline, SynthesizerFactory, gemini_synthesizer_factory
from .pipeline.leases import SegmentLeaseRegistry
from .pipeline.results import AudioResult, RewriteResult
from .pipeline.rewrite import RewriteOrchestrator, RewriterFactory, gemini_rewriter_factory
from .story.graph import SegmentGraph
from .story.navigation import NavigationEngine
from .telemetry.logger import StudioLogger


def demo_story() -> Story:
    """Return the three-segment demo story seeded into a fresh studio."""

    segments = (
        Segment(
            id="s1",
            kind=SegmentKind.BEGINNING,
            text=(
                "Little Red Riding Hood walked through the deep, dark woods. The trees "
                "whispered in the wind, but she wasn't afraid. She held her basket tightly."
            ),
            assets=SegmentAssets(
                image="https://images.unsplash.com/photo-1441974231531-c6227db76b6e?w=800&q=80"
            ),
            source_meta=SourceMeta(mood="Mysterious", estimated_duration="10s"),
        ),
        Segment(
            id="s2",
            kind=SegmentKind.NARRATION,
            text=(
                "Suddenly, a shadow moved behind the great oak tree. A Wolf stepped out! "
                "'Where are you going, little girl?' he asked in a low, gruff voice."
            ),
            assets=SegmentAssets(image="https://picsum.photos/seed/wolf/800/600"),
            source_meta=SourceMeta(mood="Dark", estimated_duration="12s"),
        ),
        Segment(
            id="s3",
            kind=SegmentKind.CHOICE,
            text=(
                "She hesitated. Should she tell him about Grandma's house, or keep "
                "walking silently?"
            ),
            assets=SegmentAssets(
                image="https://images.unsplash.com/photo-1475924156734-496f6cac6ec1?w=800&q=80"
            ),
            source_meta=SourceMeta(mood="Action", estimated_duration="08s"),
        ),
    )
    return Story(
        global_config=GlobalConfig(normalization_level=-16, idle_timeout_seconds=300),
        variables={"has_basket": True, "met_wolf": False},
        segments={segment.id: segment for segment in segments},
        display_order=tuple(segment.id for segment in segments),
    )


def demo_library() -> tuple[LibraryFile, ...]:
    """Return the demo library entries seeded into a fresh studio."""

    return (
        LibraryFile(
            id="1",
            name="scan_page_04_forest.jpg",
            status=LibraryFileStatus.ANALYZED,
            thumbnail="https://picsum.photos/id/10/100/100",
        ),
        LibraryFile(
            id="2",
            name="scan_page_05_wolf.jpg",
            status=LibraryFileStatus.ANALYZED,
            thumbnail="https://picsum.photos/id/237/100/100",
        ),
    )


def demo_state() -> StudioState:
    """Return the studio record used when nothing has been persisted yet."""

    return StudioState(
        story=demo_story(),
        library=demo_library(),
        active_segment_id="s1",
        theme=Theme.DARK,
        credential="",
    )


class Studio:
    """One editing session over a studio record."""

    def __init__(
        self,
        state: StudioState,
        *,
        audio_store: AudioAssetStore,
        synthesizer_factory: SynthesizerFactory,
        rewriter_factory: RewriterFactory,
        persistence: PersistenceAdapter | None = None,
        runtime: ProviderRuntimeConfig | None = None,
        id_factory: Callable[[], str] | None = None,
        logger: StudioLogger | None = None,
    ) -> None:
        """Build a session from a studio record and its collaborators."""

        self.graph = SegmentGraph(
            state.story,
            state.active_segment_id,
            id_factory=id_factory,
            logger=logger,
        )
        self.navigation = NavigationEngine(self.graph, logger=logger)
        self.library = IngestionLibrary(state.library, logger=logger)
        self.theme = state.theme
        self.credential = state.credential
        self.record_credentials = RecordCredentialStore(
            read=lambda: self.credential, write=self.set_credential
        )
        self.runtime = runtime
        self.persistence = persistence
        self.leases = SegmentLeaseRegistry()
        self.assets = AssetPipeline(
            self.graph,
            audio_store,
            synthesizer_factory,
            credential=self.effective_credential,
            leases=self.leases,
            logger=logger,
        )
        self.rewriter = RewriteOrchestrator(
            self.graph,
            rewriter_factory,
            credential=self.effective_credential,
            leases=self.leases,
            logger=logger,
        )
        self.graph.add_listener(self._on_graph_mutation)

    @classmethod
    def open(
        cls,
        config: StudioConfig,
        *,
        sources: RuntimeConfigSources | None = None,
        id_factory: Callable[[], str] | None = None,
        logger: StudioLogger | None = None,
    ) -> Studio:
        """Load the persisted record for `config`, seeding the demo story when absent."""

        config.validate()
        runtime = config.resolved_provider_runtime(sources)
        persistence = PersistenceAdapter(
            JsonStateStore(config.state_dir), config.storage_key, logger=logger
        )
        state = persistence.load_or_default(demo_state)
        return cls(
            state,
            audio_store=AudioAssetStore(config.resolved_audio_dir),
            synthesizer_factory=gemini_synthesizer_factory(
                runtime.tts_model,
                runtime.tts_voice,
                base_url=config.base_url,
                timeout_seconds=config.timeout_seconds,
            ),
            rewriter_factory=gemini_rewriter_factory(
                runtime.rewrite_model,
                base_url=config.base_url,
                timeout_seconds=config.timeout_seconds,
            ),
            persistence=persistence,
            runtime=runtime,
            id_factory=id_factory,
            logger=logger,
        )

    def state(self) -> StudioState:
        """Return the current studio record."""

        return StudioState(
            story=self.graph.story,
            library=self.library.files,
            active_segment_id=self.graph.active_segment_id,
            theme=self.theme,
            credential=self.credential,
        )

    def save(self) -> None:
        """Snapshot the current record when persistence is attached."""

        if self.persistence is not None:
            self.persistence.snapshot(self.state())

    def resolved_credential(self) -> ResolvedCredential | None:
        """Return the session key and its layer; the record is the weakest layer."""

        candidates: dict[str, str | None] = {SOURCE_RECORD: self.credential}
        if self.runtime is not None and self.runtime.api_key:
            candidates[self.runtime.api_key_source or SOURCE_CONFIG] = self.runtime.api_key
        return resolve_credential(candidates)

    def effective_credential(self) -> str | None:
        resolved = self.resolved_credential()
        return resolved.value if resolved is not None else None

    def set_credential(self, value: str) -> None:
        """Store the settings credential in the studio record."""

        self.credential = value.strip()
        self.save()

    def toggle_theme(self) -> Theme:
        """Flip between dark and light themes and return the new theme."""

        self.theme = Theme.LIGHT if self.theme is Theme.DARK else Theme.DARK
        self.save()
        return self.theme

    def add_library_file(self, item: LibraryFile) -> None:
        self.library.add(item)
        self.save()

    def update_library_file(self, file_id: str, **changes: object) -> bool:
        """Apply a partial `IngestionLibrary.update` and save when the file exists."""

        return self._saved(self.library.update(file_id, **changes))  # type: ignore[arg-type]

    def remove_library_file(self, file_id: str) -> bool:
        return self._saved(self.library.remove(file_id))

    def mark_library_analyzed(self, file_id: str, page: IngestedPage) -> bool:
        return self._saved(self.library.mark_analyzed(file_id, page))

    def mark_library_failed(self, file_id: str, message: str) -> bool:
        return self._saved(self.library.mark_failed(file_id, message))

    def _saved(self, changed: bool) -> bool:
        if changed:
            self.save()
        return changed

    def promote_library_file(self, file_id: str) -> str | None:
        """Create a segment from an analyzed library file; the graph listener persists it."""

        return self.library.promote(file_id, self.graph)

    async def ensure_audio(self, segment_id: str) -> AudioResult:
        return await self.assets.ensure_audio(segment_id)

    async def rewrite(self, segment_id: str) -> RewriteResult:
        return await self.rewriter.rewrite(segment_id)

    def _on_graph_mutation(self, operation: str, segment_id: str | None) -> None:
        self.save()
