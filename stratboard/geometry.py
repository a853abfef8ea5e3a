from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Sequence, Tuple, Union

from .entities import BoardObject

CANVAS_WIDTH = 1024
CANVAS_HEIGHT = 768
# Coordinate space used by the in-game editor.
SOURCE_WIDTH = 5120
SOURCE_HEIGHT = 3840

ARC_TYPE_ID = 10
LINE_AOE_TYPE_ID = 11
LINE_TYPE_ID = 12
DONUT_TYPE_ID = 17
LABEL_TYPE_ID = 100

ARC_OUTER_RADIUS = {ARC_TYPE_ID: 256.0, DONUT_TYPE_ID: 250.0}
ARC_START_ANGLE = -math.pi / 2.0
ARC_SCALE_FACTOR = 0.02
ARC_MASK_SCALE_FACTOR = 0.01

Point = Tuple[float, float]


def round_half_away(value: float) -> int:
    """Round to the nearest integer, halves away from zero (2.5 -> 3)."""

    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def to_canvas_x(raw: float) -> int:
    return round_half_away(raw / SOURCE_WIDTH * CANVAS_WIDTH)


def to_canvas_y(raw: float) -> int:
    return round_half_away(raw / SOURCE_HEIGHT * CANVAS_HEIGHT)


@dataclass(frozen=True)
class Affine:
    """
    2x3 affine matrix mapping ``(x, y)`` to
    ``(a*x + b*y + c, d*x + e*y + f)``. ``m1 @ m2`` applies ``m2`` first, so a
    chain reads in the same order as the drawing operations it replaces.
    """

    a: float = 1.0
    b: float = 0.0
    c: float = 0.0
    d: float = 0.0
    e: float = 1.0
    f: float = 0.0

    @classmethod
    def translation(cls, tx: float, ty: float) -> "Affine":
        return cls(c=tx, f=ty)

    @classmethod
    def rotation(cls, radians: float) -> "Affine":
        cos_t = math.cos(radians)
        sin_t = math.sin(radians)
        return cls(a=cos_t, b=-sin_t, d=sin_t, e=cos_t)

    @classmethod
    def scaling(cls, sx: float, sy: float) -> "Affine":
        return cls(a=sx, e=sy)

    def about(self, px: float, py: float) -> "Affine":
        """The same transform with ``(px, py)`` as its fixed point."""

        return Affine.translation(px, py) @ self @ Affine.translation(-px, -py)

    def __matmul__(self, other: "Affine") -> "Affine":
        return Affine(
            a=self.a * other.a + self.b * other.d,
            b=self.a * other.b + self.b * other.e,
            c=self.a * other.c + self.b * other.f + self.c,
            d=self.d * other.a + self.e * other.d,
            e=self.d * other.b + self.e * other.e,
            f=self.d * other.c + self.e * other.f + self.f,
        )

    @property
    def determinant(self) -> float:
        return self.a * self.e - self.b * self.d

    @property
    def is_degenerate(self) -> bool:
        return abs(self.determinant) < 1e-12

    def apply(self, x: float, y: float) -> Point:
        return (self.a * x + self.b * y + self.c, self.d * x + self.e * y + self.f)

    def apply_all(self, points: Sequence[Point]) -> List[Point]:
        return [self.apply(x, y) for x, y in points]

    def inverse(self) -> "Affine":
        det = self.determinant
        if abs(det) < 1e-12:
            raise ZeroDivisionError("affine transform is not invertible")
        ia = self.e / det
        ib = -self.b / det
        id_ = -self.d / det
        ie = self.a / det
        return Affine(
            a=ia,
            b=ib,
            c=-(ia * self.c + ib * self.f),
            d=id_,
            e=ie,
            f=-(id_ * self.c + ie * self.f),
        )

    def pillow_data(self) -> Tuple[float, float, float, float, float, float]:
        # Image.transform(AFFINE) wants the output -> input mapping.
        inv = self.inverse()
        return (inv.a, inv.b, inv.c, inv.d, inv.e, inv.f)


@dataclass(frozen=True)
class ArcShape:
    outer_radius: float


@dataclass(frozen=True)
class RectangleShape:
    pass


@dataclass(frozen=True)
class LineShape:
    pass


@dataclass(frozen=True)
class LabelShape:
    pass


@dataclass(frozen=True)
class SpriteShape:
    asset_id: int


Shape = Union[ArcShape, RectangleShape, LineShape, LabelShape, SpriteShape]


def classify(obj: BoardObject) -> Shape:
    if obj.type_id in ARC_OUTER_RADIUS:
        return ArcShape(outer_radius=ARC_OUTER_RADIUS[obj.type_id])
    if obj.type_id == LINE_AOE_TYPE_ID:
        return RectangleShape()
    if obj.type_id == LINE_TYPE_ID:
        return LineShape()
    if obj.type_id == LABEL_TYPE_ID:
        return LabelShape()
    return SpriteShape(asset_id=obj.type_id)


def arc_pivot_offset(sweep: float, inner_radius: float, outer_radius: float) -> Point:
    """
    Offset between the arc centre and the object's anchor. The editor anchors
    fans on the middle of their bounding box, whose extents change as the
    sweep crosses pi/2, pi and 3pi/2.
    """

    left = right = bottom = 0.0
    if math.pi <= sweep < math.pi * 1.5:
        left = (1 + math.sin(sweep)) * outer_radius
    elif sweep < math.pi:
        left = outer_radius
    if sweep < math.pi:
        if sweep >= math.pi * 0.5:
            bottom = (1 + math.cos(sweep)) * outer_radius
        else:
            bottom = outer_radius + math.cos(sweep) * inner_radius
    if sweep < math.pi * 0.5:
        right = (1 - math.sin(sweep)) * outer_radius
    return -(left - right) / 2.0, bottom / 2.0


def sample_arc(radius: float, start: float, end: float) -> List[Point]:
    segments = max(16, int(abs(end - start) / (math.pi / 64)))
    points: List[Point] = []
    for step in range(segments + 1):
        angle = start + (end - start) * step / segments
        points.append((radius * math.cos(angle), radius * math.sin(angle)))
    return points


def arc_outline(sweep: float, inner_radius: float, outer_radius: float) -> List[Point]:
    """Closed outline of the partial annulus, centred on the origin."""

    end = ARC_START_ANGLE + sweep
    outline = sample_arc(outer_radius, ARC_START_ANGLE, end)
    outline.extend(sample_arc(inner_radius, end, ARC_START_ANGLE))
    return outline


def arc_transform(obj: BoardObject, offset: Point) -> Affine:
    ox, oy = offset
    sx, sy = obj.scale_factor(ARC_SCALE_FACTOR)
    rotate = Affine.rotation(math.radians(obj.angle)).about(-ox, -oy)
    scale = Affine.scaling(sx, sy).about(-ox, -oy)
    return Affine.translation(obj.x + ox, obj.y + oy) @ rotate @ scale


def arc_mask_transform(obj: BoardObject, offset: Point, size: Tuple[int, int]) -> Affine:
    """Placement of a mask image inside an arc's frame, anchored on the pivot offset."""

    ox, oy = offset
    width, height = size
    s = obj.scale * ARC_MASK_SCALE_FACTOR
    anchor = Affine.translation(int(ox) - int(0.5 * width), int(oy) - int(0.5 * height))
    return arc_transform(obj, offset) @ Affine.scaling(s, s).about(-ox, -oy) @ anchor


def sprite_transform(obj: BoardObject, asset_scale: float, size: Tuple[int, int]) -> Affine:
    width, height = size
    sx, sy = obj.scale_factor(asset_scale)
    return (
        Affine.translation(obj.x, obj.y)
        @ Affine.scaling(sx, sy)
        @ Affine.rotation(math.radians(obj.angle))
        @ Affine.translation(-int(0.5 * width), -int(0.5 * height))
    )


def rectangle_corners(obj: BoardObject) -> List[Point]:
    w, h = float(obj.params[0]), float(obj.params[1])
    transform = Affine.translation(obj.x, obj.y) @ Affine.rotation(math.radians(obj.angle))
    return transform.apply_all([(-w, -h), (w, -h), (w, h), (-w, h)])


def line_endpoint(obj: BoardObject) -> Point:
    return float(to_canvas_x(obj.params[0])), float(to_canvas_y(obj.params[1]))
