from __future__ import annotations


class BoardError(Exception):
    """Base class for every failure raised while decoding or drawing a board."""


class FormatError(BoardError, ValueError):
    """The share code or its decoded payload is malformed."""


class SectionError(FormatError):
    def __init__(self, expected: int, found: int, offset: int) -> None:
        super().__init__(f"expected section {expected} at offset 0x{offset:04X}, found {found}")
        self.expected = expected
        self.found = found
        self.offset = offset


class ObjectCountError(FormatError):
    def __init__(self, section: int, expected: int, found: int) -> None:
        super().__init__(f"section {section} declares {found} object(s), object list has {expected}")
        self.section = section
        self.expected = expected
        self.found = found


class AssetError(BoardError, LookupError):
    """A sprite, background, mask or font could not be resolved."""


class UnsupportedObjectError(BoardError):
    def __init__(self, type_id: int, routine: str) -> None:
        super().__init__(f"{routine} cannot draw object type {type_id}")
        self.type_id = type_id
        self.routine = routine
