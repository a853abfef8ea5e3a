"""
Shared fixtures: a buffer builder that lays sections out the way the game
does, a share-code encoder (inverse of the decoder, test use only), and an
in-memory imagery provider.
"""

from __future__ import annotations

import base64
import os
import struct
import sys
import zlib
from dataclasses import dataclass
from typing import Dict, Iterable, Sequence, Tuple

import pytest
from PIL import Image, ImageFont

# Ensure the project root is on the path so the package and scripts resolve.
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from stratboard.assets import ImageryProvider, Sprite  # noqa: E402
from stratboard.cipher import BOARD_PREFIX, BOARD_SUFFIX, SUBSTITUTION_TABLE, map_in, map_out, substitute  # noqa: E402
from stratboard.entities import BoardObject, Color  # noqa: E402
from stratboard.errors import AssetError  # noqa: E402
from stratboard.geometry import CANVAS_HEIGHT, CANVAS_WIDTH  # noqa: E402

# Share code exported from the in-game editor.
KNOWN_SHARE_CODE = (
    "[stgy:aAOewrSt9KJHb0X75sgGGEXUm9KNCRrzbowlYQJfLqIxC71yae9nmWBiWgA866HAHo6dY6mImz1x-JcFQOJCL-jzHFL+L4lY9HYyleFjKjR8"
    "jsxP50c-sUo2K2NFTKl+rkgO8BBquoA5uxzu91nbmlMlXPrYRdMpaP0okpMXM9m6vN7pFPydttBMT4mq-bqDqP6GTGQtZGY4UlOrrTr6o7H0jmMiBN"
    "2vCoccRJXxcPqCm]"
)


# ---------------------------------------------------------------------------
# Raw buffer builder
# ---------------------------------------------------------------------------

@dataclass
class RawObject:
    type_id: int = 1
    text: str = ""
    flags: int = 1
    raw_x: int = 2560
    raw_y: int = 1920
    angle: int = 0
    scale: int = 100
    rgb: Tuple[int, int, int] = (255, 255, 255)
    transparency: int = 0
    params: Tuple[int, int, int] = (0, 0, 0)


def _string(value: str) -> bytes:
    raw = value.encode("utf-8")
    return struct.pack("<H", len(raw)) + raw


def pack_board(
    objects: Sequence[RawObject] = (),
    *,
    name: str = "Board",
    background_id: int = 0,
    header: bytes = bytes(24),
    section_tags: Dict[object, int] | None = None,
    section_counts: Dict[int, int] | None = None,
) -> bytes:
    """Lay out a decoded board buffer. Overrides corrupt individual sections."""

    tags = section_tags or {}
    counts = section_counts or {}
    count = len(objects)

    def section(tag: int) -> bytes:
        return struct.pack("<HHH", tags.get(tag, tag), 0, counts.get(tag, count))

    out = bytearray(header)
    out += struct.pack("<H", tags.get(1, 1)) + _string(name)
    for obj in objects:
        out += struct.pack("<HH", 2, obj.type_id)
        if obj.type_id == 100:
            out += struct.pack("<H", tags.get("text", 3)) + _string(obj.text)

    out += section(4) + b"".join(struct.pack("<H", obj.flags) for obj in objects)
    out += section(5) + b"".join(struct.pack("<HH", obj.raw_x, obj.raw_y) for obj in objects)
    out += section(6) + b"".join(struct.pack("<h", obj.angle) for obj in objects)
    out += section(7) + bytes(obj.scale for obj in objects) + bytes(count % 2)
    out += section(8) + b"".join(bytes((*obj.rgb, obj.transparency)) for obj in objects)
    for idx, tag in enumerate((10, 11, 12)):
        out += section(tag) + b"".join(struct.pack("<h", obj.params[idx]) for obj in objects)
    out += struct.pack("<HIH", tags.get("background", 3), 0, background_id)
    return bytes(out)


def encode_share_code(buffer: bytes, *, seed_char: str = "A", header: bytes = bytes(6)) -> str:
    container = header + zlib.compress(buffer)
    text = base64.urlsafe_b64encode(container).rstrip(b"=").decode("ascii")
    inverse = {value: key for key, value in SUBSTITUTION_TABLE.items()}
    seed = map_in(substitute(seed_char))
    chars = [seed_char]
    for idx, ch in enumerate(text):
        rotated = map_out((map_in(ch) + seed + idx) & 0x3F)
        chars.append(inverse.get(rotated, rotated))
    return BOARD_PREFIX + "".join(chars) + BOARD_SUFFIX


def make_object(**overrides) -> BoardObject:
    values = dict(
        type_id=1,
        text="",
        visible=True,
        flip_horizontal=False,
        flip_vertical=False,
        x=CANVAS_WIDTH // 2,
        y=CANVAS_HEIGHT // 2,
        angle=0,
        color=Color(255, 255, 255, 255),
        scale=100,
        params=(0, 0, 0),
    )
    values.update(overrides)
    return BoardObject(**values)


# ---------------------------------------------------------------------------
# In-memory imagery
# ---------------------------------------------------------------------------

def solid(size: Tuple[int, int], rgba: Iterable[int]) -> Image.Image:
    return Image.new("RGBA", size, tuple(rgba))


class MemoryImagery(ImageryProvider):
    def __init__(
        self,
        sprites: Dict[int, Sprite] | None = None,
        *,
        background: Image.Image | None = None,
        masks: Dict[int, Image.Image] | None = None,
    ) -> None:
        self.sprites = sprites or {}
        self.background = background if background is not None else solid((CANVAS_WIDTH, CANVAS_HEIGHT), (255, 255, 255, 255))
        self.masks = masks or {}
        self.background_requests: list[int] = []

    def sprite_for(self, type_id: int) -> Sprite:
        if type_id not in self.sprites:
            raise AssetError(f"no sprite for {type_id}")
        return self.sprites[type_id]

    def background_for(self, background_id: int) -> Image.Image:
        self.background_requests.append(background_id)
        return self.background

    def arc_mask_for(self, type_id: int) -> Image.Image | None:
        return self.masks.get(type_id)

    def font_face(self) -> ImageFont.FreeTypeFont:
        return ImageFont.load_default(size=30)


@pytest.fixture
def board_buffer():
    return pack_board


@pytest.fixture
def share_code():
    return encode_share_code


@pytest.fixture
def board_object():
    return make_object


@pytest.fixture
def imagery():
    return MemoryImagery()


@pytest.fixture
def raw_object():
    return RawObject


@pytest.fixture
def memory_imagery():
    return MemoryImagery


@pytest.fixture
def solid_image():
    return solid


@pytest.fixture
def known_share_code():
    return KNOWN_SHARE_CODE
