import logging
import sys
from typing import List, Tuple

from riff_wave.containers.wav import WaveReader
from riff_wave.protocol.chunks import iter_chunks, validate_is_riff_file, validate_is_wave_file
from riff_wave.protocol.errors import ReadError


def list_chunks(path: str) -> List[Tuple[bytes, int, int]]:
    with open(path, "rb") as f:
        validate_is_riff_file(f)
        validate_is_wave_file(f)
        return list(iter_chunks(f))


if __name__ == "__main__":
    logging.basicConfig(level=logging.DEBUG if "-v" in sys.argv else logging.WARNING)
    paths = [a for a in sys.argv[1:] if a != "-v"]
    if not paths:
        print("usage: 00_inspect_wav.py [-v] FILE.wav ...")
        sys.exit(2)

    status = 0
    for path in paths:
        try:
            chunks = list_chunks(path)
            with WaveReader.open(path) as reader:
                fmt = reader.pcm_format
                print(f"{path}: {reader.format.name}")
                print(f"  channels={fmt.num_channels} sample_rate={fmt.sample_rate} bits={fmt.bits_per_sample}")
                print(f"  frames={reader.num_frames} data_offset={reader.data_offset}")
        except ReadError as err:
            print(f"{path}: {err}")
            status = 1
            continue

        for tag, size, offset in chunks:
            print(f"  @{offset:<8d} {tag!r:10s} {size} bytes")

    sys.exit(status)
