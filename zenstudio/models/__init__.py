"""Shared typed data models for Zen Studio.

This package contains dataclasses used across story, pipeline and persistence
modules to avoid cross-module coupling and circular imports.
"""

from .datatypes import (
    AssetsUpdate,
    Branch,
    GlobalConfig,
    IngestedPage,
    LibraryFile,
    LibraryFileStatus,
    Segment,
    SegmentAssets,
    SegmentKind,
    SegmentUpdate,
    SourceMeta,
    SourceMetaUpdate,
    Story,
    StudioState,
    Theme,
)

__all__ = [
    "AssetsUpdate",
    "Branch",
    "GlobalConfig",
    "IngestedPage",
    "LibraryFile",
    "LibraryFileStatus",
    "Segment",
    "SegmentAssets",
    "SegmentKind",
    "SegmentUpdate",
    "SourceMeta",
    "SourceMetaUpdate",
    "Story",
    "StudioState",
    "Theme",
]
