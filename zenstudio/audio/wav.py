"""Minimal RIFF/WAVE container encoding for raw linear PCM.

The header layout is fixed: a 44-byte little-endian canonical PCM header
followed directly by the sample bytes, with no padding byte for odd payloads.
"""

from __future__ import annotations

import struct

DEFAULT_SAMPLE_RATE = 24000
DEFAULT_CHANNELS = 1
DEFAULT_BITS_PER_SAMPLE = 16
WAV_HEADER_SIZE = 44

_PCM_FORMAT_TAG = 1
_FMT_CHUNK_SIZE = 16
_HEADER_STRUCT = struct.Struct("<4sI4s4sIHHIIHH4sI")


def encode_wav(
    pcm: bytes,
    sample_rate: int = DEFAULT_SAMPLE_RATE,
    channels: int = DEFAULT_CHANNELS,
    bits_per_sample: int = DEFAULT_BITS_PER_SAMPLE,
) -> bytes:
    """Wrap raw PCM bytes in a canonical 44-byte WAV header.

    Args:
        pcm: Raw interleaved little-endian PCM samples.
        sample_rate: Samples per second per channel.
        channels: Number of interleaved channels.
        bits_per_sample: Sample width in bits.

    Returns:
        Header bytes immediately followed by `pcm`.

    Raises:
        ValueError: If a format parameter is not positive or the sample width
            is not a whole number of bytes.
    """

    if sample_rate <= 0 or channels <= 0 or bits_per_sample <= 0:
        raise ValueError("WAV sample rate, channels and bits per sample must be positive.")
    if bits_per_sample % 8:
        raise ValueError("WAV bits per sample must be a multiple of 8.")

    block_align = channels * bits_per_sample // 8
    byte_rate = sample_rate * block_align
    data_size = len(pcm)
    header = _HEADER_STRUCT.pack(
        b"RIFF",
        36 + data_size,
        b"WAVE",
        b"fmt ",
        _FMT_CHUNK_SIZE,
        _PCM_FORMAT_TAG,
        channels,
        sample_rate,
        byte_rate,
        block_align,
        bits_per_sample,
        b"data",
        data_size,
    )
    return header + bytes(pcm)


def pcm_duration_seconds(
    pcm_size: int,
    sample_rate: int = DEFAULT_SAMPLE_RATE,
    channels: int = DEFAULT_CHANNELS,
    bits_per_sample: int = DEFAULT_BITS_PER_SAMPLE,
) -> float:
    """Return playback duration for a PCM payload size."""

    block_align = channels * bits_per_sample // 8
    return pcm_size / float(sample_rate * block_align)
