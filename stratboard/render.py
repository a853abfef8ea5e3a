"""
Rasterise a decoded board onto the editor's 1024x768 canvas with Pillow.

Objects are drawn from the end of the list towards the start, matching the
in-game editor. Each object is painted on its own transparent layer and
composited, so transforms never carry over from one object to the next.
Sprites are composited as-is; the object's alpha is not applied to them.
"""

from __future__ import annotations

import io
import math
from typing import Iterable, Tuple

from PIL import Image, ImageChops, ImageDraw

from .assets import FontProvider, ImageryProvider
from .entities import Board, BoardObject
from .errors import UnsupportedObjectError
from .geometry import (
    ARC_OUTER_RADIUS,
    CANVAS_HEIGHT,
    CANVAS_WIDTH,
    LABEL_TYPE_ID,
    LINE_AOE_TYPE_ID,
    LINE_TYPE_ID,
    Affine,
    ArcShape,
    LabelShape,
    LineShape,
    RectangleShape,
    SpriteShape,
    arc_mask_transform,
    arc_outline,
    arc_pivot_offset,
    arc_transform,
    classify,
    line_endpoint,
    rectangle_corners,
    sprite_transform,
)

ARC_FILL_RGB = (254, 161, 49)
LINE_POINT_RGB = (255, 255, 255)
LABEL_SHADOW_RGB = (0, 0, 0)
LABEL_SHADOW_OFFSET = 2
IMAGE_FORMATS = {"png": "PNG", "jpeg": "JPEG", "jpg": "JPEG"}


def _new_layer(canvas: Image.Image) -> Tuple[Image.Image, ImageDraw.ImageDraw]:
    layer = Image.new("RGBA", canvas.size, (0, 0, 0, 0))
    return layer, ImageDraw.Draw(layer)


def _require_type(obj: BoardObject, accepted: Iterable[int], routine: str) -> None:
    if obj.type_id not in accepted:
        raise UnsupportedObjectError(obj.type_id, routine)


def _place(image: Image.Image, transform: Affine, size: Tuple[int, int]) -> Image.Image:
    return image.transform(
        size,
        Image.Transform.AFFINE,
        transform.pillow_data(),
        resample=Image.Resampling.BILINEAR,
    )


def draw_background(canvas: Image.Image, background: Image.Image) -> None:
    layer = background.convert("RGBA").crop((0, 0, canvas.width, canvas.height))
    canvas.alpha_composite(layer)


def draw_arc(canvas: Image.Image, obj: BoardObject, outer_radius: float, imagery: ImageryProvider) -> None:
    _require_type(obj, ARC_OUTER_RADIUS, "arc")
    sweep = obj.params[0] / 180.0 * math.pi
    inner_radius = float(obj.params[1])
    offset = arc_pivot_offset(sweep, inner_radius, outer_radius)
    transform = arc_transform(obj, offset)
    if transform.is_degenerate:
        return
    outline = transform.apply_all(arc_outline(sweep, inner_radius, outer_radius))

    mask = imagery.arc_mask_for(obj.type_id)
    if mask is None:
        layer, draw = _new_layer(canvas)
        draw.polygon(outline, fill=(*ARC_FILL_RGB, obj.color.a))
    else:
        clip = Image.new("L", canvas.size, 0)
        ImageDraw.Draw(clip).polygon(outline, fill=255)
        placement = arc_mask_transform(obj, offset, mask.size)
        layer = _place(mask.convert("RGBA"), placement, canvas.size)
        layer.putalpha(ImageChops.multiply(layer.getchannel("A"), clip))
    canvas.alpha_composite(layer)


def draw_rectangle(canvas: Image.Image, obj: BoardObject) -> None:
    _require_type(obj, (LINE_AOE_TYPE_ID,), "rectangle")
    layer, draw = _new_layer(canvas)
    draw.polygon(rectangle_corners(obj), fill=tuple(obj.color))
    canvas.alpha_composite(layer)


def draw_line(canvas: Image.Image, obj: BoardObject) -> None:
    _require_type(obj, (LINE_TYPE_ID,), "line")
    radius = obj.params[2]
    # Zero or negative radius: nothing to draw.
    if radius <= 0:
        return
    start = (float(obj.x), float(obj.y))
    end = line_endpoint(obj)

    layer, draw = _new_layer(canvas)
    draw.line([start, end], fill=tuple(obj.color), width=radius * 2)
    canvas.alpha_composite(layer)

    for px, py in (start, end):
        layer, draw = _new_layer(canvas)
        draw.ellipse(
            [px - radius, py - radius, px + radius, py + radius],
            fill=(*LINE_POINT_RGB, obj.color.a),
        )
        canvas.alpha_composite(layer)


def draw_label(canvas: Image.Image, obj: BoardObject, fonts: FontProvider) -> None:
    _require_type(obj, (LABEL_TYPE_ID,), "label")
    if not obj.text:
        return
    font = fonts.font_face()
    passes = (
        ((obj.x, obj.y), (*LABEL_SHADOW_RGB, obj.color.a)),
        ((obj.x - LABEL_SHADOW_OFFSET, obj.y - LABEL_SHADOW_OFFSET), tuple(obj.color)),
    )
    for position, fill in passes:
        layer, draw = _new_layer(canvas)
        draw.text(position, obj.text, font=font, fill=fill, anchor="mm")
        canvas.alpha_composite(layer)


def draw_sprite(canvas: Image.Image, obj: BoardObject, asset_id: int, imagery: ImageryProvider) -> None:
    sprite = imagery.sprite_for(asset_id)
    transform = sprite_transform(obj, sprite.scale, sprite.image.size)
    if transform.is_degenerate:
        return
    canvas.alpha_composite(_place(sprite.image.convert("RGBA"), transform, canvas.size))


def draw_object(
    canvas: Image.Image,
    obj: BoardObject,
    imagery: ImageryProvider,
    fonts: FontProvider,
) -> None:
    shape = classify(obj)
    if isinstance(shape, ArcShape):
        draw_arc(canvas, obj, shape.outer_radius, imagery)
    elif isinstance(shape, RectangleShape):
        draw_rectangle(canvas, obj)
    elif isinstance(shape, LineShape):
        draw_line(canvas, obj)
    elif isinstance(shape, LabelShape):
        draw_label(canvas, obj, fonts)
    elif isinstance(shape, SpriteShape):
        draw_sprite(canvas, obj, shape.asset_id, imagery)
    else:
        raise UnsupportedObjectError(obj.type_id, "renderer")


def render_board(
    board: Board,
    imagery: ImageryProvider,
    fonts: FontProvider | None = None,
) -> Image.Image:
    """Draw ``board`` and return the RGBA canvas. ``fonts`` defaults to ``imagery``."""

    fonts = fonts or imagery
    canvas = Image.new("RGBA", (CANVAS_WIDTH, CANVAS_HEIGHT), (0, 0, 0, 0))
    draw_background(canvas, imagery.background_for(board.background_id))
    for obj in reversed(board.objects):
        if not obj.visible:
            continue
        draw_object(canvas, obj, imagery, fonts)
    return canvas


def encode_image(image: Image.Image, fmt: str = "png") -> bytes:
    pil_format = IMAGE_FORMATS.get(fmt.lower())
    if pil_format is None:
        raise ValueError(f"unsupported image format: {fmt}")
    if pil_format == "JPEG":
        image = image.convert("RGB")
    buffer = io.BytesIO()
    image.save(buffer, format=pil_format)
    return buffer.getvalue()
