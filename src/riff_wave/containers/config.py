from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .wav import PcmFormat


@dataclass(frozen=True)
class Config:
    """
    Expectations checked by read_wav() after the header is parsed.

    Any field left as None is not checked. A mismatch raises ValueError,
    since the file itself is a valid PCM wave file, just not the one wanted.
    """
    expected_channels: Optional[int] = None
    expected_sample_rate: Optional[int] = None
    expected_bits_per_sample: Optional[int] = None

    def check(self, pcm_format: PcmFormat) -> None:
        pairs = (
            ("expected_channels", pcm_format.num_channels),
            ("expected_sample_rate", pcm_format.sample_rate),
            ("expected_bits_per_sample", pcm_format.bits_per_sample),
        )
        for name, actual in pairs:
            want = getattr(self, name)
            if want is None:
                continue
            if isinstance(want, bool) or not isinstance(want, int):
                raise TypeError(f"cfg.{name} must be int or None")
            if int(actual) != want:
                raise ValueError(f"read_wav: WAV {name[len('expected_'):]}={actual} does not match cfg.{name}={want}")
