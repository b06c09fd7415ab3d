from __future__ import annotations

import struct
import wave
from pathlib import Path

import numpy as np


def repo_root() -> Path:
    """
    Find the repository root by walking upward until we find pyproject.toml.
    This is robust regardless of where tests live.
    """
    start = Path(__file__).resolve()
    for p in [start] + list(start.parents):
        if (p / "pyproject.toml").exists():
            return p
    raise RuntimeError("repo_root(): could not find pyproject.toml walking upward")


# ----------------------------
# RIFF/WAVE byte builders
# ----------------------------

def chunk(tag: bytes, payload: bytes, *, declared_size: int | None = None) -> bytes:
    size = len(payload) if declared_size is None else declared_size
    return tag + struct.pack("<I", size) + payload


def riff(*chunks: bytes, outer_size: int | None = None) -> bytes:
    body = b"WAVE" + b"".join(chunks)
    size = len(body) if outer_size is None else outer_size
    return b"RIFF" + struct.pack("<I", size) + body


def fmt_canonical(
    *,
    channels: int = 1,
    sample_rate: int = 44100,
    bits: int = 16,
    code: int = 1,
    extra: bytes = b"",
) -> bytes:
    block_align = channels * ((bits + 7) // 8)
    byte_rate = sample_rate * block_align
    payload = struct.pack("<HHIIHH", code, channels, sample_rate, byte_rate, block_align, bits) + extra
    return chunk(b"fmt ", payload)


def fmt_extended(
    *,
    channels: int = 2,
    sample_rate: int = 48000,
    bits: int = 24,
    sub_format: int = 1,
) -> bytes:
    block_align = channels * ((bits + 7) // 8)
    byte_rate = sample_rate * block_align
    payload = struct.pack("<HHIIHH", 65534, channels, sample_rate, byte_rate, block_align, bits)
    # cb_size, valid bits, channel mask, then the 16-byte sub-format GUID
    payload += struct.pack("<HHI", 22, bits, 0x3)
    payload += struct.pack("<H", sub_format) + b"\x00\x00\x00\x00\x10\x00\x80\x00\x00\xaa\x00\x38\x9b\x71"
    return chunk(b"fmt ", payload)


def write_pcm16_wav(path: Path, pcm_i16: np.ndarray, sample_rate: int, channels: int = 1) -> Path:
    """Write int16 frames with the standard library writer."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with wave.open(str(path), "wb") as wf:
        wf.setnchannels(channels)
        wf.setsampwidth(2)
        wf.setframerate(int(sample_rate))
        wf.writeframes(np.asarray(pcm_i16, dtype="<i2").tobytes())
    return path
