from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List

from .entities import Board


def describe_board(board: Board) -> List[str]:
    lines = [
        f"name={board.name!r} background={board.background_id} objects={len(board.objects)}"
    ]
    for idx, obj in enumerate(board.objects):
        flags = "".join(
            flag if enabled else "-"
            for flag, enabled in (("V", obj.visible), ("H", obj.flip_horizontal), ("F", obj.flip_vertical))
        )
        line = (
            f"#{idx:03d} type={obj.type_id:<4} {flags} pos=({obj.x},{obj.y}) angle={obj.angle} "
            f"scale={obj.scale} rgba=({obj.color.r},{obj.color.g},{obj.color.b},{obj.color.a}) "
            f"params={list(obj.params)}"
        )
        if obj.text:
            line += f" text={obj.text!r}"
        lines.append(line)
    return lines


@dataclass
class SectionTraceLogger:
    """Collects where each section of a board buffer was found."""

    destination: Path

    def __post_init__(self) -> None:
        self._lines: List[str] = []

    def record(self, *, offset: int, tag: int, count: int | None = None, note: str | None = None) -> None:
        line = f"off=0x{offset:04X} section={tag:<3}"
        if count is not None:
            line += f" count={count}"
        if note:
            line += f" | {note}"
        self._lines.append(line)

    @property
    def lines(self) -> List[str]:
        return list(self._lines)

    def flush(self) -> None:
        if not self._lines:
            return
        self.destination.parent.mkdir(parents=True, exist_ok=True)
        text = "\n".join(self._lines) + "\n"
        self.destination.write_text(text, encoding="utf-8")
