from __future__ import annotations

import base64
import binascii
from types import MappingProxyType
from typing import List, Mapping

from .errors import FormatError

BOARD_PREFIX = "[stgy:a"
BOARD_SUFFIX = "]"

# Character substitution applied by the in-game editor before the rotating
# offset. Characters outside the table are left untouched.
SUBSTITUTION_TABLE: Mapping[str, str] = MappingProxyType(
    {
        "+": "N", "-": "P", "0": "x", "1": "g", "2": "0", "3": "K", "4": "8", "5": "S",
        "6": "J", "7": "2", "8": "s", "9": "Z", "A": "D", "B": "F", "C": "t", "D": "T",
        "E": "6", "F": "E", "G": "a", "H": "V", "I": "c", "J": "p", "K": "L", "L": "M",
        "M": "m", "N": "e", "O": "j", "P": "9", "Q": "X", "R": "B", "S": "4", "T": "R",
        "U": "Y", "V": "7", "W": "_", "X": "n", "Y": "O", "Z": "b", "a": "i", "b": "-",
        "c": "v", "d": "H", "e": "C", "f": "A", "g": "r", "h": "W", "i": "o", "j": "d",
        "k": "I", "l": "q", "m": "h", "n": "U", "o": "l", "p": "k", "q": "3", "r": "f",
        "s": "y", "t": "5", "u": "G", "v": "w", "w": "1", "x": "u", "y": "z", "z": "Q",
    }
)


def substitute(ch: str) -> str:
    return SUBSTITUTION_TABLE.get(ch, ch)


def map_in(ch: str) -> int:
    """Map a base64 alphabet character (either flavour) to its 6-bit value."""

    if "A" <= ch <= "Z":
        return ord(ch) - 65
    if "a" <= ch <= "z":
        return ord(ch) - 71
    if "0" <= ch <= "9":
        return ord(ch) + 4
    if ch in "->":
        return 62
    if ch in "_?":
        return 63
    return 0


def map_out(value: int) -> str:
    """Inverse of :func:`map_in`, producing the URL-safe alphabet."""

    if value < 26:
        return chr(value + 65)
    if value < 52:
        return chr(value + 71)
    if value < 62:
        return chr(value - 4)
    if value == 62:
        return "-"
    return "_"


def strip_envelope(code: str) -> str:
    minimum = len(BOARD_PREFIX) + len(BOARD_SUFFIX) + 1
    if len(code) < minimum or not code.startswith(BOARD_PREFIX) or not code.endswith(BOARD_SUFFIX):
        raise FormatError("share code must look like [stgy:a...]")
    return code[len(BOARD_PREFIX) : len(code) - len(BOARD_SUFFIX)]


def unrotate(payload: str) -> str:
    """
    Undo the position-dependent offset. The first character only carries the
    seed, so the result is one character shorter than ``payload``.
    """

    seed = map_in(substitute(payload[0]))
    out: List[str] = []
    for idx, ch in enumerate(payload[1:]):
        value = (map_in(substitute(ch)) - seed - idx) & 0x3F
        out.append(map_out(value))
    return "".join(out)


def reverse_cipher(code: str) -> bytes:
    """Turn a ``[stgy:a...]`` share code into the base64-decoded container bytes."""

    text = unrotate(strip_envelope(code))
    try:
        encoded = text.encode("cp1252")
    except UnicodeEncodeError as exc:
        raise FormatError(f"character outside the Windows-1252 code page at index {exc.start}") from exc
    padded = encoded + b"=" * (-len(encoded) % 4)
    try:
        return base64.b64decode(padded, altchars=b"-_", validate=True)
    except binascii.Error as exc:
        raise FormatError(f"invalid base64 payload: {exc}") from exc
