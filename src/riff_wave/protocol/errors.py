# protocol/errors.py
from __future__ import annotations

from enum import Enum
from typing import Optional


class ReadErrorKind(Enum):
    FORMAT = "format"
    IO = "io"


class FormatErrorKind(Enum):
    """Why a stream was rejected as a PCM wave file."""
    NOT_A_RIFF_FILE = "not a RIFF file"
    NOT_A_WAVE_FILE = "not a WAVE file"
    NOT_AN_UNCOMPRESSED_PCM_WAVE_FILE = "not an uncompressed wave file"
    FMT_CHUNK_TOO_SHORT = "fmt_ chunk is too short"


class ReadError(Exception):
    """
    Error raised while reading a wave file.

    Closed set of variants, selected by `kind`:
      - FORMAT: bytes were read fine but violate RIFF/WAVE/PCM expectations.
                `format_kind` says which; `code` holds the offending format
                code for NOT_AN_UNCOMPRESSED_PCM_WAVE_FILE.
      - IO:     the underlying read/seek failed (short reads and end of
                stream included). `cause` holds the original error.

    Build with ReadError.format(...) / ReadError.io(...).
    """

    def __init__(
        self,
        kind: ReadErrorKind,
        *,
        format_kind: Optional[FormatErrorKind] = None,
        code: Optional[int] = None,
        cause: Optional[BaseException] = None,
    ):
        if kind is ReadErrorKind.FORMAT and format_kind is None:
            raise ValueError("format errors need a format_kind")
        if kind is ReadErrorKind.IO and format_kind is not None:
            raise ValueError("io errors cannot carry a format_kind")
        self.kind = kind
        self.format_kind = format_kind
        self.code = code
        self.cause = cause
        super().__init__(str(self))

    @classmethod
    def format(cls, format_kind: FormatErrorKind, code: Optional[int] = None) -> "ReadError":
        return cls(ReadErrorKind.FORMAT, format_kind=format_kind, code=code)

    @classmethod
    def io(cls, cause: BaseException) -> "ReadError":
        return cls(ReadErrorKind.IO, cause=cause)

    @property
    def is_format(self) -> bool:
        return self.kind is ReadErrorKind.FORMAT

    @property
    def is_io(self) -> bool:
        return self.kind is ReadErrorKind.IO

    def __str__(self) -> str:
        if self.kind is ReadErrorKind.FORMAT:
            msg = self.format_kind.value
            if self.code is not None:
                msg = f"{msg} (format code {self.code})"
            return f"Format error: {msg}"
        return f"IO error: {self.cause}"

    def __repr__(self) -> str:
        if self.kind is ReadErrorKind.FORMAT:
            return f"ReadError.format({self.format_kind}, code={self.code!r})"
        return f"ReadError.io({self.cause!r})"
