"""
Module: utils.fonts

Purpose:
    Font loading and text measurement for text annotations.

Key Functions:
    - load_font(): Load a TrueType font at a size, with fallbacks
    - measure_text(): Ink size of a text string at a font size

Dependencies:
    - PIL: ImageFont / ImageDraw

Used By:
    - core.models.scene: Sizing new text objects
    - editor.drawing: Rendering text objects
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Tuple

from PIL import Image, ImageDraw, ImageFont

logger = logging.getLogger(__name__)

FONT_OPTIONS = (
    "arial.ttf",        # Arial (Windows)
    "Arial.ttf",        # Arial (Mac)
    "DejaVuSans.ttf",   # DejaVu Sans (most Linux distributions)
    "LiberationSans-Regular.ttf",
)


@lru_cache(maxsize=32)
def load_font(size: int) -> ImageFont.FreeTypeFont:
    """
    Load a font for text rendering.

    Args:
        size: Font size in pixels

    Returns:
        Font object (Pillow's bundled font if no TrueType font is found)
    """
    size = max(1, int(round(size)))
    for font_name in FONT_OPTIONS:
        try:
            return ImageFont.truetype(font_name, size)
        except (IOError, OSError):
            continue

    logger.warning("Could not load TrueType font, using default")
    return ImageFont.load_default(size=size)


def text_bbox(text: str, font_size: float) -> Tuple[int, int, int, int]:
    """Ink bounding box of text drawn at the origin."""
    draw = ImageDraw.Draw(Image.new("L", (1, 1)))
    return draw.textbbox((0, 0), text or " ", font=load_font(int(round(font_size))))


def measure_text(text: str, font_size: float) -> Tuple[int, int]:
    """
    Get the (width, height) a text string occupies.

    Example:
        >>> w, h = measure_text("Text", 40)
        >>> w > 0 and h > 0
        True
    """
    left, top, right, bottom = text_bbox(text, font_size)
    return max(1, right - left), max(1, bottom - top)
