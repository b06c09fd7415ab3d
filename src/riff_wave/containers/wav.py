from __future__ import annotations

import logging
import struct
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Iterator, Optional, Tuple, Union

import numpy as np

from riff_wave.protocol.chunks import (
    DATA_TAG,
    FMT_TAG,
    read_exact,
    seek_forward,
    skip_until_subchunk,
    tell_position,
    validate_is_riff_file,
    validate_is_wave_file,
)
from riff_wave.protocol.errors import ReadError
from riff_wave.protocol.formats import (
    FMT_MIN_SIZE_CANONICAL,
    FMT_MIN_SIZE_EXTENDED,
    Format,
    validate_fmt_header_is_large_enough,
    validate_pcm_format,
    validate_pcm_subformat,
)

from .config import Config

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

# fmt payload, after the 2-byte format code:
#   channels:u16, sample_rate:u32, byte_rate:u32, block_align:u16, bits_per_sample:u16
_FMT_CANONICAL_STRUCT = struct.Struct("<HIIHH")
# extended tail: cb_size:u16, valid_bits:u16, channel_mask:u32, sub_format:u16 (first 2 GUID bytes)
_FMT_EXTENDED_STRUCT = struct.Struct("<HHIH")
_GUID_REST_LEN = 14

_U16 = struct.Struct("<H")
_I16 = struct.Struct("<h")
_I32 = struct.Struct("<i")


@dataclass(frozen=True)
class PcmFormat:
    num_channels: int
    sample_rate: int
    byte_rate: int
    block_align: int
    bits_per_sample: int

    @property
    def bytes_per_sample(self) -> int:
        return (self.bits_per_sample + 7) // 8


class WaveReader:
    """
    Reads the header of an uncompressed PCM wave file from a seekable stream,
    then hands out samples from its "data" chunk.

    The stream is not owned: closing it is the caller's job, unless the
    reader came from WaveReader.open().

    After construction:
      pcm_format  - PcmFormat from the fmt chunk
      data_size   - declared size of the data chunk in bytes
      data_offset - absolute stream position of the first sample byte
    """

    def __init__(self, stream: BinaryIO):
        self._stream = stream

        validate_is_riff_file(stream)
        validate_is_wave_file(stream)

        self.format, self.pcm_format = self._read_fmt_chunk()
        self.data_size = skip_until_subchunk(stream, DATA_TAG)
        self.data_offset = tell_position(stream)
        self._data_remaining = self.data_size

        logger.debug(
            "wave header ok: %s %s, data_size=%d at offset %d",
            self.format.name, self.pcm_format, self.data_size, self.data_offset,
        )

    @classmethod
    @contextmanager
    def open(cls, path: PathLike) -> Iterator["WaveReader"]:
        with open(Path(path), "rb") as f:
            yield cls(f)

    # ----------------------------
    # Header
    # ----------------------------

    def _read(self, n: int) -> bytes:
        return read_exact(self._stream, n, "fmt chunk")

    def _read_fmt_chunk(self) -> Tuple[Format, PcmFormat]:
        fmt_size = skip_until_subchunk(self._stream, FMT_TAG)
        validate_fmt_header_is_large_enough(fmt_size, FMT_MIN_SIZE_CANONICAL)

        (code,) = _U16.unpack(self._read(_U16.size))
        fmt = validate_pcm_format(code)

        num_channels, sample_rate, byte_rate, block_align, bits_per_sample = _FMT_CANONICAL_STRUCT.unpack(
            self._read(_FMT_CANONICAL_STRUCT.size)
        )
        consumed = FMT_MIN_SIZE_CANONICAL

        if fmt is Format.EXTENDED:
            validate_fmt_header_is_large_enough(fmt_size, FMT_MIN_SIZE_EXTENDED)
            _cb_size, _valid_bits, _channel_mask, sub_format = _FMT_EXTENDED_STRUCT.unpack(
                self._read(_FMT_EXTENDED_STRUCT.size)
            )
            validate_pcm_subformat(sub_format)
            self._read(_GUID_REST_LEN)
            consumed = FMT_MIN_SIZE_EXTENDED

        # Skip whatever else the fmt chunk declares
        if fmt_size > consumed:
            seek_forward(self._stream, fmt_size - consumed)

        pcm = PcmFormat(
            num_channels=num_channels,
            sample_rate=sample_rate,
            byte_rate=byte_rate,
            block_align=block_align,
            bits_per_sample=bits_per_sample,
        )
        return fmt, pcm

    # ----------------------------
    # Samples
    # ----------------------------

    @property
    def num_frames(self) -> int:
        if self.pcm_format.block_align == 0:
            return 0
        return self.data_size // self.pcm_format.block_align

    def _read_data(self, n: int) -> bytes:
        if n > self._data_remaining:
            err = EOFError(f"read of {n} bytes past end of data chunk ({self._data_remaining} left)")
            raise ReadError.io(err) from err
        b = read_exact(self._stream, n, "sample data")
        self._data_remaining -= n
        return b

    def _check_width(self, bits: int) -> None:
        if self.pcm_format.bits_per_sample != bits:
            raise ValueError(
                f"read_sample: file has {self.pcm_format.bits_per_sample}-bit samples, not {bits}-bit"
            )

    def read_sample_u8(self) -> int:
        self._check_width(8)
        return self._read_data(1)[0]

    def read_sample_i16(self) -> int:
        self._check_width(16)
        return _I16.unpack(self._read_data(2))[0]

    def read_sample_i24(self) -> int:
        self._check_width(24)
        return int.from_bytes(self._read_data(3), "little", signed=True)

    def read_sample_i32(self) -> int:
        self._check_width(32)
        return _I32.unpack(self._read_data(4))[0]

    def read_frames(self, n_frames: Optional[int] = None) -> np.ndarray:
        """
        Read up to n_frames frames (all remaining if None) as an integer
        array shaped (frames, channels).
        8-bit -> uint8, 16-bit -> int16, 24/32-bit -> int32.
        """
        pcm = self.pcm_format
        if pcm.num_channels < 1:
            raise ValueError(f"read_frames: bad channel count {pcm.num_channels}")
        if pcm.bits_per_sample not in (8, 16, 24, 32):
            raise ValueError(f"read_frames: unsupported bits_per_sample={pcm.bits_per_sample}")
        frame_len = pcm.bytes_per_sample * pcm.num_channels

        available = self._data_remaining // frame_len
        n = available if n_frames is None else min(int(n_frames), available)
        if n < 0:
            raise ValueError("read_frames: n_frames must be >= 0")

        raw = self._read_data(n * frame_len)
        bits = pcm.bits_per_sample
        if bits == 8:
            x = np.frombuffer(raw, dtype=np.uint8).copy()
        elif bits == 16:
            x = np.frombuffer(raw, dtype="<i2").astype(np.int16)
        elif bits == 24:
            b = np.frombuffer(raw, dtype=np.uint8).reshape(-1, 3).astype(np.int32)
            x = b[:, 0] | (b[:, 1] << 8) | (b[:, 2] << 16)
            x = np.where(x & 0x800000, x - 0x1000000, x).astype(np.int32)
        else:
            x = np.frombuffer(raw, dtype="<i4").astype(np.int32)

        return x.reshape(n, pcm.num_channels)


def to_float32(frames: np.ndarray, bits_per_sample: int) -> np.ndarray:
    """Scale integer samples from read_frames() to float32 in [-1, 1]."""
    if bits_per_sample == 8:
        return ((frames.astype(np.float32) - 128.0) / 128.0).astype(np.float32)
    scale = float(1 << (bits_per_sample - 1))
    return (frames.astype(np.float64) / scale).astype(np.float32)


def read_wav(path: PathLike, cfg: Optional[Config] = None) -> Tuple[np.ndarray, PcmFormat]:
    """
    Read a PCM wave file into float32 samples in [-1, 1] shaped
    (frames, channels), return (samples, pcm_format).
    """
    with WaveReader.open(path) as reader:
        if cfg is not None:
            cfg.check(reader.pcm_format)
        frames = reader.read_frames()
    return to_float32(frames, reader.pcm_format.bits_per_sample), reader.pcm_format
