from __future__ import annotations

import zlib

from .cipher import reverse_cipher
from .errors import FormatError

# Leading bytes of the base64-decoded container; not interpreted.
CONTAINER_HEADER_SIZE = 6


def unwrap(blob: bytes) -> bytes:
    """
    Drop the fixed container header and inflate the zlib stream behind it.
    zlib's own adler32 check is the only integrity check the format carries,
    so a stream that stops before its end marker is rejected as truncated.
    """

    obj = zlib.decompressobj()
    try:
        payload = obj.decompress(blob[CONTAINER_HEADER_SIZE:])
        payload += obj.flush()
    except zlib.error as exc:
        raise FormatError(f"corrupt board payload: {exc}") from exc
    if not obj.eof:
        raise FormatError("board payload is truncated")
    return payload


def unpack_board(code: str) -> bytes:
    return unwrap(reverse_cipher(code))
