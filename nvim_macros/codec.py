"""
Binary-safe text codec for macro payloads.

Recorded registers can hold NUL, ESC, the 0x80 special-key prefix and
arbitrary non-UTF-8 bytes, none of which survive a trip through a JSON
string or an external pretty-printer. Payloads are therefore stored as
standard base64 (A-Z a-z 0-9 + /, '=' padding), and decoding is strict:
anything that is not a canonical-length, correctly padded base64 string
is rejected instead of being silently truncated.
"""

import base64
import binascii
import re

from nvim_macros.errors import CodecError

__all__ = ["encode", "decode", "is_encoded"]

_ALPHABET_RE = re.compile(r"[A-Za-z0-9+/=]*")
_STRICT_RE = re.compile(r"[A-Za-z0-9+/]*={0,2}")


def encode(data: bytes) -> str:
    """
    Encode arbitrary bytes as base64 text.

    Args:
        data: Byte sequence to encode (may be empty)

    Returns:
        ASCII string whose length is a multiple of 4. Empty input gives "".
    """
    if not isinstance(data, (bytes, bytearray, memoryview)):
        raise TypeError(f"encode() expects bytes, got {type(data).__name__}")
    return base64.b64encode(bytes(data)).decode("ascii")


def decode(text: str) -> bytes:
    """
    Decode base64 text produced by encode().

    Args:
        text: Encoded string

    Returns:
        The original bytes

    Raises:
        CodecError: Wrong length, a character outside the alphabet,
            or '=' anywhere but the final one or two positions.
    """
    if not isinstance(text, str):
        raise CodecError(f"Expected encoded text, got {type(text).__name__}")
    if len(text) % 4:
        raise CodecError(f"Encoded length {len(text)} is not a multiple of 4")
    if not _ALPHABET_RE.fullmatch(text):
        bad = next(ch for ch in text if not _ALPHABET_RE.fullmatch(ch))
        raise CodecError(f"Invalid character {bad!r} in encoded text")
    if not _STRICT_RE.fullmatch(text):
        raise CodecError("Padding '=' may only appear in the last two positions")

    try:
        return base64.b64decode(text, validate=True)
    except binascii.Error as exc:
        raise CodecError(f"Malformed encoded text: {exc}") from exc


def is_encoded(text: str) -> bool:
    """Return True if *text* decodes cleanly."""
    try:
        decode(text)
    except CodecError:
        return False
    return True
