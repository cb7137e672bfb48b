"""Audio container encoding and storage."""

from .store import AudioAssetStore
from .wav import WAV_HEADER_SIZE, encode_wav

__all__ = ["AudioAssetStore", "WAV_HEADER_SIZE", "encode_wav"]
