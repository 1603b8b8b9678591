"""
Byte trigram extraction for indexed file contents.
"""

from typing import Optional


class TextRejected(Exception):
    """Raised when content is not suitable for a trigram index."""
    pass


def extract_trigrams(
    data: bytes,
    max_line_length: int,
    max_trigrams: int,
) -> set[int]:
    """
    Collect the distinct byte trigrams of data as 24-bit integers.

    Raises:
        TextRejected: If data is not UTF-8 text, has an overlong line,
            or has too many distinct trigrams
    """
    try:
        data.decode("utf-8")
    except UnicodeDecodeError as e:
        raise TextRejected("invalid UTF-8") from e

    if b"\x00" in data:
        raise TextRejected("binary file")

    trigrams: set[int] = set()
    line_length = 0
    tv = 0
    for i, c in enumerate(data):
        tv = ((tv << 8) & 0xFFFFFF) | c
        if i >= 2:
            trigrams.add(tv)
        if c == 0x0A:
            line_length = 0
            continue
        line_length += 1
        if line_length > max_line_length:
            raise TextRejected("very long lines")

    if len(trigrams) > max_trigrams:
        raise TextRejected(f"too many trigrams ({len(trigrams)} > {max_trigrams})")
    return trigrams


def pack_trigrams(trigrams: set[int]) -> bytes:
    """Pack trigrams as sorted big-endian 3-byte values."""
    return b"".join(t.to_bytes(3, "big") for t in sorted(trigrams))


def unpack_trigrams(blob: Optional[bytes]) -> set[int]:
    """Inverse of pack_trigrams."""
    if not blob:
        return set()
    return {int.from_bytes(blob[i:i + 3], "big") for i in range(0, len(blob), 3)}
