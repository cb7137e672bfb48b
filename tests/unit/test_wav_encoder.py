"""Unit tests for WAV container encoding."""

from __future__ import annotations

import io
import struct
import wave

import pytest

from zenstudio.audio.wav import WAV_HEADER_SIZE, encode_wav, pcm_duration_seconds


def test_encode_wav_header_layout_for_two_seconds_of_mono_pcm() -> None:
    """96000 PCM bytes at 24 kHz mono 16-bit should produce the exact canonical header."""

    pcm = b"\x01\x02" * 48000

    container = encode_wav(pcm, sample_rate=24000, channels=1, bits_per_sample=16)

    assert len(container) == 96044
    assert container[0:4] == b"RIFF"
    assert container[4:8] == (96036).to_bytes(4, "little")
    assert container[8:12] == b"WAVE"
    assert container[12:16] == b"fmt "
    assert struct.unpack("<I", container[16:20]) == (16,)
    assert struct.unpack("<HH", container[20:24]) == (1, 1)
    assert struct.unpack("<I", container[24:28]) == (24000,)
    assert struct.unpack("<I", container[28:32]) == (48000,)
    assert struct.unpack("<HH", container[32:36]) == (2, 16)
    assert container[36:40] == b"data"
    assert container[40:44] == (96000).to_bytes(4, "little")
    assert container[WAV_HEADER_SIZE:] == pcm


def test_encode_wav_output_is_readable_by_wave_module() -> None:
    """Encoded containers should round-trip through the standard WAV reader."""

    pcm = b"\x00\x00\xff\x7f" * 1200

    container = encode_wav(pcm, sample_rate=22050, channels=2, bits_per_sample=16)

    with wave.open(io.BytesIO(container), "rb") as wav_file:
        assert wav_file.getnchannels() == 2
        assert wav_file.getsampwidth() == 2
        assert wav_file.getframerate() == 22050
        assert wav_file.getnframes() == 1200
        assert wav_file.readframes(1200) == pcm


def test_encode_wav_keeps_odd_length_payload_without_padding() -> None:
    """Odd-length PCM should be copied verbatim with no RIFF pad byte."""

    container = encode_wav(b"\x01\x02\x03", bits_per_sample=8)

    assert len(container) == WAV_HEADER_SIZE + 3
    assert container[40:44] == (3).to_bytes(4, "little")
    assert container[4:8] == (39).to_bytes(4, "little")


def test_encode_wav_accepts_empty_payload() -> None:
    container = encode_wav(b"")

    assert len(container) == WAV_HEADER_SIZE
    assert container[40:44] == b"\x00\x00\x00\x00"


@pytest.mark.parametrize(
    ("sample_rate", "channels", "bits_per_sample"),
    [(0, 1, 16), (24000, 0, 16), (24000, 1, 0), (24000, 1, 12)],
)
def test_encode_wav_rejects_invalid_format_parameters(
    sample_rate: int, channels: int, bits_per_sample: int
) -> None:
    """Non-positive parameters and fractional-byte sample widths should be rejected."""

    with pytest.raises(ValueError):
        encode_wav(b"\x00\x00", sample_rate, channels, bits_per_sample)


def test_pcm_duration_seconds_uses_frame_size() -> None:
    assert pcm_duration_seconds(96000) == pytest.approx(2.0)
    assert pcm_duration_seconds(96000, sample_rate=24000, channels=2) == pytest.approx(1.0)
