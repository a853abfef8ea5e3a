from __future__ import annotations

from dataclasses import dataclass
from typing import NamedTuple, Tuple


class Color(NamedTuple):
    r: int
    g: int
    b: int
    a: int


@dataclass(frozen=True)
class BoardObject:
    type_id: int
    text: str
    visible: bool
    flip_horizontal: bool
    flip_vertical: bool
    x: int
    y: int
    angle: int
    color: Color
    scale: int
    params: Tuple[int, int, int]

    def scale_factor(self, factor: float) -> Tuple[float, float]:
        """Scale multiplied by ``factor``, negated on each flipped axis."""

        scale = self.scale * factor
        sx = -scale if self.flip_horizontal else scale
        sy = -scale if self.flip_vertical else scale
        return sx, sy

    def to_dict(self) -> dict:
        return {
            "type_id": self.type_id,
            "text": self.text,
            "visible": self.visible,
            "flip_horizontal": self.flip_horizontal,
            "flip_vertical": self.flip_vertical,
            "x": self.x,
            "y": self.y,
            "angle": self.angle,
            "color": self.color._asdict(),
            "scale": self.scale,
            "params": list(self.params),
        }


@dataclass(frozen=True)
class Board:
    name: str
    background_id: int
    objects: Tuple[BoardObject, ...]

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "background_id": self.background_id,
            "objects": [obj.to_dict() for obj in self.objects],
        }
