# protocol/formats.py
from __future__ import annotations

from enum import Enum

from .errors import FormatErrorKind, ReadError

FORMAT_UNCOMPRESSED_PCM = 1
FORMAT_EXTENDED = 65534  # WAVE_FORMAT_EXTENSIBLE

# fmt payload sizes we need before the fields can be read:
#   canonical: code(2) channels(2) rate(4) byte_rate(4) block_align(2) bits(2)   => 16
#   extended:  canonical + cb_size(2) valid_bits(2) channel_mask(4) guid(16)      => 40
FMT_MIN_SIZE_CANONICAL = 16
FMT_MIN_SIZE_EXTENDED = 40


class Format(Enum):
    UNCOMPRESSED_PCM = FORMAT_UNCOMPRESSED_PCM
    EXTENDED = FORMAT_EXTENDED


def validate_pcm_format(code: int) -> Format:
    """
    Classify the top-level format code of a fmt chunk.
    EXTENDED means the real format is in the sub-format code further in.
    """
    if code == FORMAT_UNCOMPRESSED_PCM:
        return Format.UNCOMPRESSED_PCM
    if code == FORMAT_EXTENDED:
        return Format.EXTENDED
    raise ReadError.format(FormatErrorKind.NOT_AN_UNCOMPRESSED_PCM_WAVE_FILE, code)


def validate_pcm_subformat(code: int) -> None:
    # The sub-format of an extended file may not itself be "extended".
    if code != FORMAT_UNCOMPRESSED_PCM:
        raise ReadError.format(FormatErrorKind.NOT_AN_UNCOMPRESSED_PCM_WAVE_FILE, code)


def validate_fmt_header_is_large_enough(size: int, min_size: int) -> None:
    if size < min_size:
        raise ReadError.format(FormatErrorKind.FMT_CHUNK_TOO_SHORT)
