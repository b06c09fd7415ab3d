# protocol/chunks.py
from __future__ import annotations

import io
import logging
import struct
from typing import BinaryIO, Iterator, Tuple

from .errors import FormatErrorKind, ReadError

logger = logging.getLogger(__name__)

RIFF_TAG = b"RIFF"
WAVE_TAG = b"WAVE"
FMT_TAG = b"fmt "
DATA_TAG = b"data"

TAG_LEN = 4
# Little-endian u32, follows every chunk tag
_CHUNK_SIZE_STRUCT = struct.Struct("<I")
CHUNK_HEADER_LEN = TAG_LEN + _CHUNK_SIZE_STRUCT.size  # 8


# ============================
# Primitive reads
# ============================
#
# All functions here work on any binary stream with read() and seek().
# The only state is the stream cursor; nothing is buffered between calls.

def read_exact(stream: BinaryIO, n: int, what: str) -> bytes:
    try:
        b = stream.read(n)
    except (OSError, ValueError) as err:
        raise ReadError.io(err) from err
    if b is None or len(b) != n:
        got = 0 if b is None else len(b)
        err = EOFError(f"unexpected end of stream reading {what}: got {got} of {n} bytes")
        raise ReadError.io(err) from err
    return bytes(b)


def read_tag(stream: BinaryIO) -> bytes:
    return read_exact(stream, TAG_LEN, "chunk tag")


def read_chunk_size(stream: BinaryIO) -> int:
    (size,) = _CHUNK_SIZE_STRUCT.unpack(read_exact(stream, _CHUNK_SIZE_STRUCT.size, "chunk size"))
    return size


def seek_forward(stream: BinaryIO, n: int) -> None:
    try:
        stream.seek(n, io.SEEK_CUR)
    except (OSError, ValueError) as err:
        raise ReadError.io(err) from err


def tell_position(stream: BinaryIO) -> int:
    try:
        return stream.tell()
    except (OSError, ValueError) as err:
        raise ReadError.io(err) from err


def _at_end(stream: BinaryIO) -> bool:
    # Peek one byte and step back over it.
    try:
        b = stream.read(1)
    except (OSError, ValueError) as err:
        raise ReadError.io(err) from err
    if not b:
        return True
    seek_forward(stream, -len(b))
    return False


# ============================
# Envelope
# ============================

def validate_tag(stream: BinaryIO, expected: bytes, format_kind: FormatErrorKind) -> None:
    tag = read_tag(stream)
    if tag != expected:
        raise ReadError.format(format_kind)


def validate_is_riff_file(stream: BinaryIO) -> None:
    """
    Check the "RIFF" tag and step over the outer chunk size.

    The outer size is read but never checked against the stream length,
    so files with a wrong top-level size still parse.
    """
    validate_tag(stream, RIFF_TAG, FormatErrorKind.NOT_A_RIFF_FILE)
    read_chunk_size(stream)


def validate_is_wave_file(stream: BinaryIO) -> None:
    # Form type, not a chunk header: no size follows.
    validate_tag(stream, WAVE_TAG, FormatErrorKind.NOT_A_WAVE_FILE)


# ============================
# Subchunk scanning
# ============================

def skip_until_subchunk(stream: BinaryIO, tag: bytes) -> int:
    """
    Advance to the subchunk named `tag` and return its declared size.

    The cursor is left right after the matching 8-byte header, at the start
    of the payload. Non-matching subchunks are skipped by their declared size
    (no pad byte handling).

    Forward-only: a subchunk that lies before the current cursor position is
    never found. The scan then runs until the stream ends and raises an IO
    ReadError.
    """
    if len(tag) != TAG_LEN:
        raise ValueError(f"tag must be exactly {TAG_LEN} bytes, got {tag!r}")

    while True:
        found = read_tag(stream)
        size = read_chunk_size(stream)

        if found == tag:
            return size

        logger.debug("skipping subchunk %r (%d bytes) looking for %r", found, size, tag)
        seek_forward(stream, size)


def iter_chunks(stream: BinaryIO) -> Iterator[Tuple[bytes, int, int]]:
    """
    Yield (tag, size, offset) for each subchunk from the current position.

    offset is the absolute position of the subchunk header. Stops cleanly at
    end of stream; a header cut short part-way raises an IO ReadError.
    """
    while True:
        offset = tell_position(stream)
        if _at_end(stream):
            return

        tag = read_tag(stream)
        size = read_chunk_size(stream)
        yield tag, size, offset
        seek_forward(stream, size)
