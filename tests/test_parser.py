from __future__ import annotations

import pytest

from stratboard.entities import Color
from stratboard.errors import FormatError, ObjectCountError, SectionError
from stratboard.logging import SectionTraceLogger
from stratboard.parser import BoardReader, load_board, parse_board

COLUMN_SECTIONS = (4, 5, 6, 7, 8, 10, 11, 12)


def test_label_board_end_to_end(board_buffer, share_code, raw_object):
    label = raw_object(type_id=100, text="Tank", raw_x=2560, raw_y=1920, angle=0, rgb=(255, 0, 0), transparency=0)
    board = load_board(share_code(board_buffer([label], name="Pull plan")))

    assert board.name == "Pull plan"
    assert len(board.objects) == 1
    obj = board.objects[0]
    assert obj.type_id == 100
    assert obj.text == "Tank"
    assert (obj.x, obj.y) == (512, 384)
    assert obj.angle == 0
    assert obj.color == (255, 0, 0, 255)
    assert obj.visible


def test_objects_keep_source_order(board_buffer, raw_object):
    objects = [raw_object(type_id=type_id) for type_id in (47, 12, 100, 3)]
    board = parse_board(board_buffer(objects))
    assert [obj.type_id for obj in board.objects] == [47, 12, 100, 3]
    assert all(obj.text == "" for obj in board.objects)


def test_board_without_objects(board_buffer):
    board = parse_board(board_buffer([], name="Empty", background_id=2))
    assert board.objects == ()
    assert board.background_id == 2


@pytest.mark.parametrize("count", [1, 2, 3, 4])
def test_scale_column_padding(board_buffer, raw_object, count):
    objects = [raw_object(scale=10 + idx, params=(idx, -idx, 7)) for idx in range(count)]
    board = parse_board(board_buffer(objects, background_id=5))
    assert [obj.scale for obj in board.objects] == [10 + idx for idx in range(count)]
    assert [obj.params for obj in board.objects] == [(idx, -idx, 7) for idx in range(count)]
    assert board.background_id == 5


def test_params_come_from_sections_10_11_12(board_buffer, raw_object):
    board = parse_board(board_buffer([raw_object(params=(-5, 300, 32767))]))
    assert board.objects[0].params == (-5, 300, 32767)
    assert len(board.objects[0].params) == 3


@pytest.mark.parametrize(
    "flags, visible, flip_h, flip_v",
    [
        (0b0000, False, False, False),
        (0b0001, True, False, False),
        (0b0010, False, True, False),
        (0b0100, False, False, True),
        (0b1001, True, False, False),
        (0b1111, True, True, True),
    ],
)
def test_flag_bits(board_buffer, raw_object, flags, visible, flip_h, flip_v):
    obj = parse_board(board_buffer([raw_object(flags=flags)])).objects[0]
    assert (obj.visible, obj.flip_horizontal, obj.flip_vertical) == (visible, flip_h, flip_v)


@pytest.mark.parametrize(
    "raw, expected",
    [((5120, 3840), (1024, 768)), ((0, 0), (0, 0)), ((2560, 1920), (512, 384)), ((13, 12), (3, 2))],
)
def test_coordinates_are_rescaled(board_buffer, raw_object, raw, expected):
    obj = parse_board(board_buffer([raw_object(raw_x=raw[0], raw_y=raw[1])])).objects[0]
    assert (obj.x, obj.y) == expected


@pytest.mark.parametrize("transparency, alpha", [(0, 255), (100, 0), (50, 128), (25, 191), (200, 0)])
def test_alpha_is_derived_from_transparency(board_buffer, raw_object, transparency, alpha):
    obj = parse_board(board_buffer([raw_object(rgb=(1, 2, 3), transparency=transparency)])).objects[0]
    assert obj.color == Color(1, 2, 3, alpha)


def test_signed_angle(board_buffer, raw_object):
    obj = parse_board(board_buffer([raw_object(angle=-135)])).objects[0]
    assert obj.angle == -135


def test_label_text_is_utf8(board_buffer, raw_object):
    obj = parse_board(board_buffer([raw_object(type_id=100, text="Tänk ✓")])).objects[0]
    assert obj.text == "Tänk ✓"


@pytest.mark.parametrize("tag", [1, "text", *COLUMN_SECTIONS, "background"])
def test_corrupt_section_tag_raises_section_error(board_buffer, raw_object, tag):
    objects = [raw_object(type_id=100, text="Healer"), raw_object()]
    with pytest.raises(SectionError):
        parse_board(board_buffer(objects, section_tags={tag: 99}))


@pytest.mark.parametrize("section", COLUMN_SECTIONS)
def test_count_mismatch_raises_object_count_error(board_buffer, raw_object, section):
    objects = [raw_object(), raw_object()]
    with pytest.raises(ObjectCountError) as excinfo:
        parse_board(board_buffer(objects, section_counts={section: 3}))
    assert excinfo.value.section == section
    assert excinfo.value.expected == 2
    assert excinfo.value.found == 3


@pytest.mark.parametrize("cut", [1, 2, 5, 40])
def test_truncated_buffer_is_a_format_error(board_buffer, raw_object, cut):
    data = board_buffer([raw_object(type_id=100, text="Melee"), raw_object()])
    with pytest.raises(FormatError) as excinfo:
        parse_board(data[:-cut])
    assert not isinstance(excinfo.value, (SectionError, ObjectCountError))


def test_buffer_shorter_than_header():
    with pytest.raises(FormatError):
        parse_board(bytes(10))


def test_reader_bounds():
    reader = BoardReader(b"\x01\x00\xff\xff\x03")
    assert reader.u16() == 1
    assert reader.i16() == -1
    assert reader.u8() == 3
    with pytest.raises(FormatError):
        reader.u8()
    reader.rewind(2)
    assert reader.u8() == 0xFF


def test_reader_truncated_string():
    reader = BoardReader(b"\x05\x00abc")
    with pytest.raises(FormatError):
        reader.string()


def test_section_trace(tmp_path, board_buffer, raw_object):
    destination = tmp_path / "trace" / "sections.txt"
    trace = SectionTraceLogger(destination)
    parse_board(board_buffer([raw_object(type_id=100, text="Tank")], name="Traced"), trace=trace)
    trace.flush()

    lines = destination.read_text(encoding="utf-8").splitlines()
    assert lines == trace.lines
    assert lines[0].startswith("off=0x0018 section=1")
    assert "name='Traced'" in lines[0]
    assert "text='Tank'" in lines[1]
    assert sum("count=1" in line for line in lines) == len(COLUMN_SECTIONS)
    assert "background=0" in lines[-1]


def test_empty_trace_writes_nothing(tmp_path):
    destination = tmp_path / "sections.txt"
    SectionTraceLogger(destination).flush()
    assert not destination.exists()


def test_known_share_code_parses(known_share_code):
    board = load_board(known_share_code)
    assert board.name == "Test"
    assert board.background_id == 1
    assert [obj.type_id for obj in board.objects] == [17, 12, 17, 10, 10, 10, 66, 65]

    line = board.objects[1]
    assert (line.type_id, line.x, line.y, line.angle) == (12, 664, 417, -125)
    assert line.color == Color(128, 128, 255, 255)
    assert line.params == (2031, 247, 10)

    donut = board.objects[0]
    assert (donut.x, donut.y, donut.angle, donut.color.a) == (160, 161, 60, 110)
    assert donut.params == (160, 60, 0)
