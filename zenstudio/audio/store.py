"""Filesystem storage for generated audio containers.

Responsibilities:
- Persist WAV blobs under a deterministic audio directory.
- Address stored blobs by `file://` URI and recognize URIs it produced.
"""

from __future__ import annotations

from hashlib import sha256
from pathlib import Path
from urllib.parse import unquote, urlparse


class AudioAssetStore:
    """Filesystem-backed store for generated segment audio."""

    def __init__(self, root: Path) -> None:
        """Initialize the store with its audio directory."""

        self.root = root

    def save_wav(self, segment_id: str, data: bytes) -> str:
        """Save a WAV container for a segment and return its URI."""

        digest = sha256(data).hexdigest()[:12]
        path = self.root / f"{segment_id}-{digest}.wav"
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        return path.resolve().as_uri()

    def path_for(self, uri: str) -> Path | None:
        """Resolve a URI produced by this store to its file path."""

        parsed = urlparse(uri)
        if parsed.scheme != "file":
            return None
        path = Path(unquote(parsed.path))
        try:
            path.relative_to(self.root.resolve())
        except ValueError:
            return None
        return path

    def is_generated(self, uri: str | None) -> bool:
        """Return whether `uri` points at an existing container written by this store."""

        if not uri:
            return False
        path = self.path_for(uri)
        return path is not None and path.is_file()

    def load_wav(self, uri: str) -> bytes:
        """Load the container bytes behind a generated URI."""

        path = self.path_for(uri)
        if path is None:
            raise FileNotFoundError(f"Audio URI `{uri}` is not managed by this store.")
        return path.read_bytes()
