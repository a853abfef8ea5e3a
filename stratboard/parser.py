"""
Structural parser for decoded strategy board buffers.

After the fixed 24-byte header the buffer is a run of tagged sections
(little endian):

    uint16 1            board name: uint16 length + bytes
    uint16 2 ...        one entry per object: uint16 type id, and for labels
                        uint16 3 + uint16 length + bytes
    uint16 tag          per-object columns 4..8, 10..12, each introduced by
    uint16 (unused)     the section tag, a field we skip, and the object
    uint16 count        count, followed by one value per object
    uint16 3            trailer: 4 unused bytes, then the background id

Columns are 2-byte aligned, so the one-byte scale column is padded when the
object count is odd.
"""

from __future__ import annotations

import struct
from typing import List, Tuple

from .deflate_io import unpack_board
from .entities import Board, BoardObject, Color
from .errors import FormatError, ObjectCountError, SectionError
from .geometry import LABEL_TYPE_ID, round_half_away, to_canvas_x, to_canvas_y
from .logging import SectionTraceLogger

HEADER_SIZE = 24

SECTION_NAME = 1
SECTION_OBJECT = 2
SECTION_TEXT = 3
SECTION_FLAGS = 4
SECTION_POSITION = 5
SECTION_ANGLE = 6
SECTION_SCALE = 7
SECTION_COLOR = 8
PARAM_SECTIONS = (10, 11, 12)
SECTION_BACKGROUND = 3

FLAG_VISIBLE = 1 << 0
FLAG_FLIP_HORIZONTAL = 1 << 1
FLAG_FLIP_VERTICAL = 1 << 2
FLAG_LOCKED = 1 << 3


class BoardReader:
    """Bounds-checked little-endian cursor over a decoded board buffer."""

    def __init__(self, data: bytes, offset: int = 0) -> None:
        self.data = data
        self.offset = offset

    def _unpack(self, fmt: str, size: int) -> int:
        if self.offset < 0 or self.offset + size > len(self.data):
            raise FormatError(
                f"read of {size} byte(s) at offset 0x{self.offset:04X} runs past the end of the "
                f"{len(self.data)}-byte buffer"
            )
        (value,) = struct.unpack_from(fmt, self.data, self.offset)
        self.offset += size
        return value

    def u8(self) -> int:
        return self._unpack("<B", 1)

    def u16(self) -> int:
        return self._unpack("<H", 2)

    def i16(self) -> int:
        return self._unpack("<h", 2)

    def string(self) -> str:
        length = self.u16()
        end = self.offset + length
        if end > len(self.data):
            raise FormatError(f"string of {length} byte(s) at offset 0x{self.offset:04X} is truncated")
        raw = self.data[self.offset : end]
        self.offset = end
        return raw.decode("utf-8", errors="replace")

    def skip(self, count: int) -> None:
        if self.offset + count > len(self.data):
            raise FormatError(f"cannot skip {count} byte(s) at offset 0x{self.offset:04X}")
        self.offset += count

    def rewind(self, count: int) -> None:
        self.offset -= count


def _expect_tag(reader: BoardReader, expected: int) -> int:
    offset = reader.offset
    tag = reader.u16()
    if tag != expected:
        raise SectionError(expected, tag, offset)
    return offset


def _read_section_header(
    reader: BoardReader,
    section: int,
    object_count: int,
    trace: SectionTraceLogger | None,
) -> None:
    offset = _expect_tag(reader, section)
    reader.skip(2)
    count = reader.u16()
    if count != object_count:
        raise ObjectCountError(section, object_count, count)
    if trace:
        trace.record(offset=offset, tag=section, count=count)


def _read_objects(reader: BoardReader, trace: SectionTraceLogger | None) -> List[Tuple[int, str]]:
    entries: List[Tuple[int, str]] = []
    while True:
        offset = reader.offset
        if reader.u16() != SECTION_OBJECT:
            reader.rewind(2)
            return entries
        type_id = reader.u16()
        text = ""
        if type_id == LABEL_TYPE_ID:
            _expect_tag(reader, SECTION_TEXT)
            text = reader.string()
        if trace:
            trace.record(offset=offset, tag=SECTION_OBJECT, note=f"type={type_id}" + (f" text={text!r}" if text else ""))
        entries.append((type_id, text))


def _alpha_from_transparency(transparency: int) -> int:
    return max(0, min(255, round_half_away(255.0 * (1.0 - transparency / 100.0))))


def parse_board(data: bytes, *, trace: SectionTraceLogger | None = None) -> Board:
    reader = BoardReader(data, HEADER_SIZE)

    offset = _expect_tag(reader, SECTION_NAME)
    name = reader.string()
    if trace:
        trace.record(offset=offset, tag=SECTION_NAME, note=f"name={name!r}")

    entries = _read_objects(reader, trace)
    count = len(entries)

    _read_section_header(reader, SECTION_FLAGS, count, trace)
    flags = [reader.u16() for _ in range(count)]

    _read_section_header(reader, SECTION_POSITION, count, trace)
    positions: List[Tuple[int, int]] = []
    for _ in range(count):
        raw_x = reader.u16()
        raw_y = reader.u16()
        positions.append((to_canvas_x(raw_x), to_canvas_y(raw_y)))

    _read_section_header(reader, SECTION_ANGLE, count, trace)
    angles = [reader.i16() for _ in range(count)]

    _read_section_header(reader, SECTION_SCALE, count, trace)
    scales = [reader.u8() for _ in range(count)]
    reader.skip(count % 2)

    _read_section_header(reader, SECTION_COLOR, count, trace)
    colors: List[Color] = []
    for _ in range(count):
        r, g, b, transparency = reader.u8(), reader.u8(), reader.u8(), reader.u8()
        colors.append(Color(r, g, b, _alpha_from_transparency(transparency)))

    params: List[List[int]] = [[] for _ in range(count)]
    for section in PARAM_SECTIONS:
        _read_section_header(reader, section, count, trace)
        for values in params:
            values.append(reader.i16())

    offset = _expect_tag(reader, SECTION_BACKGROUND)
    reader.skip(4)
    background_id = reader.u16()
    if trace:
        trace.record(offset=offset, tag=SECTION_BACKGROUND, note=f"background={background_id}")

    objects = tuple(
        BoardObject(
            type_id=type_id,
            text=text,
            visible=bool(flags[idx] & FLAG_VISIBLE),
            flip_horizontal=bool(flags[idx] & FLAG_FLIP_HORIZONTAL),
            flip_vertical=bool(flags[idx] & FLAG_FLIP_VERTICAL),
            x=positions[idx][0],
            y=positions[idx][1],
            angle=angles[idx],
            color=colors[idx],
            scale=scales[idx],
            params=(params[idx][0], params[idx][1], params[idx][2]),
        )
        for idx, (type_id, text) in enumerate(entries)
    )
    return Board(name=name, background_id=background_id, objects=objects)


def load_board(code: str, *, trace: SectionTraceLogger | None = None) -> Board:
    """Decode a ``[stgy:a...]`` share code all the way to a :class:`Board`."""

    return parse_board(unpack_board(code), trace=trace)
