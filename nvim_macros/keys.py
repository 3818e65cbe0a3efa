"""
Key notation for recorded macros.

Converts between the raw bytes Neovim stores in a register and the
printable <Esc>/<C-x> notation used for the human-readable `content`
field of a macro record.
"""

import re
from typing import Dict

__all__ = [
    "CAPTURE_MARKER",
    "K_SPECIAL",
    "strip_capture_marker",
    "keytrans",
    "replace_termcodes",
]

# Neovim appends this sequence to registers filled by `q` recording.
CAPTURE_MARKER = b"\x80\xfda"

K_SPECIAL = 0x80

# Control bytes with a dedicated name; the rest render as <C-x>.
_CONTROL_NAMES: Dict[int, str] = {
    0x00: "Nul",
    0x09: "Tab",
    0x0A: "NL",
    0x0D: "CR",
    0x1B: "Esc",
    0x20: "Space",
    0x3C: "lt",
    0x7F: "C-?",
}

# Two-byte termcap codes that follow K_SPECIAL.
_SPECIAL_KEYS: Dict[bytes, str] = {
    b"kb": "BS",
    b"kD": "Del",
    b"ku": "Up",
    b"kd": "Down",
    b"kl": "Left",
    b"kr": "Right",
    b"kh": "Home",
    b"@7": "End",
    b"kP": "PageUp",
    b"kN": "PageDown",
    b"kI": "Insert",
    b"k1": "F1",
    b"k2": "F2",
    b"k3": "F3",
    b"k4": "F4",
    b"k5": "F5",
    b"k6": "F6",
    b"k7": "F7",
    b"k8": "F8",
    b"k9": "F9",
    b"k;": "F10",
    b"F1": "F11",
    b"F2": "F12",
}

_CTRL_PUNCT = {"@": 0x00, "[": 0x1B, "\\": 0x1C, "]": 0x1D, "^": 0x1E, "_": 0x1F, "?": 0x7F}

_NAME_TO_BYTES: Dict[str, bytes] = {name.lower(): bytes([b]) for b, name in _CONTROL_NAMES.items()}
_NAME_TO_BYTES.update(
    {name.lower(): bytes([K_SPECIAL]) + code for code, name in _SPECIAL_KEYS.items()}
)
_NAME_TO_BYTES.update({
    "return": b"\r",
    "enter": b"\r",
    "bar": b"|",
    "bslash": b"\\",
})

_NOTATION_RE = re.compile(r"<([^<>\s]{1,12})>")


def strip_capture_marker(data: bytes) -> bytes:
    """Remove every recording marker from a register's contents."""
    return data.replace(CAPTURE_MARKER, b"")


def _control_name(byte: int) -> str:
    if byte in _CONTROL_NAMES:
        return _CONTROL_NAMES[byte]
    return f"C-{chr(byte + 0x40)}"


def _utf8_length(lead: int) -> int:
    if lead >> 5 == 0b110:
        return 2
    if lead >> 4 == 0b1110:
        return 3
    if lead >> 3 == 0b11110:
        return 4
    return 0


def keytrans(data: bytes) -> str:
    """
    Render register bytes in printable key notation.

    Args:
        data: Raw register contents

    Returns:
        Notation string, e.g. b"ihello\\x1b" -> "ihello<Esc>"
    """
    data = bytes(data)
    out = []
    i = 0
    while i < len(data):
        byte = data[i]

        if byte == K_SPECIAL and data[i + 1:i + 3] in _SPECIAL_KEYS:
            out.append(f"<{_SPECIAL_KEYS[data[i + 1:i + 3]]}>")
            i += 3
            continue

        if byte < 0x21 or byte in (0x3C, 0x7F):
            out.append(f"<{_control_name(byte)}>")
            i += 1
            continue

        if byte < 0x80:
            out.append(chr(byte))
            i += 1
            continue

        length = _utf8_length(byte)
        if length:
            try:
                out.append(data[i:i + length].decode("utf-8"))
                i += length
                continue
            except UnicodeDecodeError:
                pass
        out.append(f"<0x{byte:02x}>")
        i += 1

    return "".join(out)


def _notation_to_bytes(name: str):
    key = name.lower()
    if key in _NAME_TO_BYTES:
        return _NAME_TO_BYTES[key]

    if key.startswith("c-") and len(name) == 3:
        ch = name[2]
        if ch.isalpha() and ch.isascii():
            return bytes([ord(ch.upper()) - 0x40])
        if ch in _CTRL_PUNCT:
            return bytes([_CTRL_PUNCT[ch]])

    if key.startswith("0x") and len(key) == 4:
        try:
            return bytes([int(key[2:], 16)])
        except ValueError:
            return None

    return None


def replace_termcodes(text: str) -> bytes:
    """
    Parse key notation back into register bytes.

    Unknown <...> groups are kept literally.

    Args:
        text: Notation string such as "ihello<Esc>"

    Returns:
        Bytes suitable for writing into a register
    """
    out = bytearray()
    pos = 0
    for match in _NOTATION_RE.finditer(text):
        out += text[pos:match.start()].encode("utf-8")
        converted = _notation_to_bytes(match.group(1))
        if converted is None:
            out += match.group(0).encode("utf-8")
        else:
            out += converted
        pos = match.end()
    out += text[pos:].encode("utf-8")
    return bytes(out)
