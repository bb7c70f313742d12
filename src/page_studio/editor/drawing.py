"""
Module: editor.drawing

Purpose:
    Rasterize scene objects onto an RGBA canvas. Each object is drawn on
    its own small layer (its bounding rect plus stroke padding), faded by
    its opacity and alpha-composited at its position.

Key Functions:
    - draw_object(): Composite one object onto a canvas
    - composite_at(): Alpha-composite a layer at a possibly negative offset
    - rotate_clockwise(): Quarter-turn rotation of a raster

Dependencies:
    - PIL: ImageDraw for shapes/text, Image for compositing
    - utils.fonts: Text rendering

Used By:
    - editor.surface: Scene rendering and region capture
"""

from __future__ import annotations

import logging
import math
from typing import Sequence, Tuple

from PIL import Image, ImageDraw

from page_studio.core.models.objects import (
    ARROW_BOX,
    ARROW_SEGMENTS,
    Arrow,
    FilledRect,
    ImageObject,
    MosaicRegion,
    OutlinedRect,
    SceneObject,
    Text,
)
from page_studio.utils.fonts import load_font, text_bbox

logger = logging.getLogger(__name__)

# Mosaic editing outline: 2px, 6 on / 4 off
OUTLINE_WIDTH = 2
OUTLINE_DASH = (6, 4)

_TRANSPOSE_CLOCKWISE = {
    90: Image.Transpose.ROTATE_270,
    180: Image.Transpose.ROTATE_180,
    270: Image.Transpose.ROTATE_90,
}


def rotate_clockwise(image: Image.Image, rotation: int) -> Image.Image:
    """
    Rotate an image clockwise by a quarter-turn multiple.

    Args:
        image: Source image
        rotation: One of 0, 90, 180, 270

    Returns:
        Rotated copy (the original when rotation is 0)
    """
    rotation %= 360
    if rotation == 0:
        return image
    return image.transpose(_TRANSPOSE_CLOCKWISE[rotation])


def composite_at(canvas: Image.Image, layer: Image.Image, left: int, top: int) -> None:
    """
    Alpha-composite layer onto canvas with its top-left at (left, top).

    Negative offsets are handled by clipping the layer; parts falling
    outside the canvas are dropped.
    """
    src_x = max(0, -left)
    src_y = max(0, -top)
    if src_x >= layer.width or src_y >= layer.height:
        return
    if left >= canvas.width or top >= canvas.height:
        return
    canvas.alpha_composite(layer, dest=(max(0, left), max(0, top)), source=(src_x, src_y))


def draw_object(
    canvas: Image.Image,
    obj: SceneObject,
    *,
    offset: Tuple[int, int] = (0, 0),
    decorations: bool = False,
) -> None:
    """
    Draw one scene object onto an RGBA canvas.

    Args:
        canvas: Destination (mode RGBA), modified in place
        obj: Object to draw
        offset: Added to page coordinates to get canvas coordinates
        decorations: Draw editing-only marks (mosaic outline)
    """
    rect = obj.rect
    if rect.is_empty:
        return

    pad = _padding(obj)
    layer = Image.new("RGBA", (rect.width + 2 * pad, rect.height + 2 * pad), (0, 0, 0, 0))
    draw = ImageDraw.Draw(layer)

    if isinstance(obj, FilledRect):
        draw.rectangle((pad, pad, pad + rect.width - 1, pad + rect.height - 1), fill=obj.fill)
    elif isinstance(obj, OutlinedRect):
        _draw_outlined_rect(draw, obj, rect.width, rect.height, pad)
    elif isinstance(obj, Arrow):
        _draw_arrow(draw, obj, rect.width, rect.height, pad)
    elif isinstance(obj, Text):
        _draw_text(draw, obj, pad)
    elif isinstance(obj, ImageObject):
        source = obj.image.resize((rect.width, rect.height), Image.Resampling.LANCZOS)
        layer.paste(source, (pad, pad), source)
    elif isinstance(obj, MosaicRegion):
        if obj.baked is not None:
            baked = obj.baked
            if baked.size != (rect.width, rect.height):
                # Geometry changed since the last bake; stretch until re-baked
                baked = baked.resize((rect.width, rect.height), Image.Resampling.NEAREST)
            layer.paste(baked, (pad, pad))
        if decorations and obj.outline:
            _draw_dashed_rect(
                draw,
                (pad, pad, pad + rect.width - 1, pad + rect.height - 1),
                obj.outline,
            )

    if obj.opacity < 1.0:
        _fade(layer, obj.opacity)

    composite_at(canvas, layer, rect.left - pad + offset[0], rect.top - pad + offset[1])


def _padding(obj: SceneObject) -> int:
    """Extra pixels around the rect needed for strokes that straddle it."""
    if isinstance(obj, (OutlinedRect, Arrow)):
        return int(math.ceil(obj.stroke_width)) + 1
    if isinstance(obj, MosaicRegion):
        return OUTLINE_WIDTH
    return 0


def _fade(layer: Image.Image, opacity: float) -> None:
    """Multiply a layer's alpha by opacity."""
    alpha = layer.getchannel("A").point(lambda a: int(round(a * opacity)))
    layer.putalpha(alpha)


def _draw_outlined_rect(
    draw: ImageDraw.ImageDraw,
    obj: OutlinedRect,
    width: int,
    height: int,
    pad: int,
) -> None:
    """Stroke centered on the rect edge."""
    stroke = max(1, int(round(obj.stroke_width)))
    half = stroke / 2
    box = (
        int(round(pad - half)),
        int(round(pad - half)),
        int(round(pad + width - 1 + half)),
        int(round(pad + height - 1 + half)),
    )
    draw.rectangle(box, outline=obj.stroke, width=stroke)


def _draw_arrow(
    draw: ImageDraw.ImageDraw,
    obj: Arrow,
    width: int,
    height: int,
    pad: int,
) -> None:
    """Scale the unit-box arrow outline to the object's size."""
    stroke = max(1, int(round(obj.stroke_width)))
    sx = width / ARROW_BOX
    sy = height / ARROW_BOX
    for segment in ARROW_SEGMENTS:
        points = [(pad + px * sx, pad + py * sy) for px, py in segment]
        draw.line(points, fill=obj.stroke, width=stroke, joint="curve")


def _draw_text(draw: ImageDraw.ImageDraw, obj: Text, pad: int) -> None:
    """Draw text with its ink box at the layer origin."""
    left, top, _, _ = text_bbox(obj.text, obj.font_size)
    font = load_font(int(round(obj.font_size)))
    draw.text((pad - left, pad - top), obj.text, fill=obj.fill, font=font)


def _draw_dashed_rect(
    draw: ImageDraw.ImageDraw,
    box: Sequence[int],
    color: str,
) -> None:
    """Dashed rectangle outline (editing decoration)."""
    x0, y0, x1, y1 = box
    edges = (
        ((x0, y0), (x1, y0)),
        ((x1, y0), (x1, y1)),
        ((x1, y1), (x0, y1)),
        ((x0, y1), (x0, y0)),
    )
    on, off = OUTLINE_DASH
    for (ax, ay), (bx, by) in edges:
        length = math.hypot(bx - ax, by - ay)
        if length == 0:
            continue
        ux, uy = (bx - ax) / length, (by - ay) / length
        pos = 0.0
        while pos < length:
            end = min(pos + on, length)
            draw.line(
                [(ax + ux * pos, ay + uy * pos), (ax + ux * end, ay + uy * end)],
                fill=color,
                width=OUTLINE_WIDTH,
            )
            pos = end + off
