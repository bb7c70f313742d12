"""
Module: geometry

Purpose:
    Rotation-aware dimension math shared by the editing surface and the
    export compositor, plus the PixelRect dataclass used to address
    integer regions of a raster.

Key Functions:
    - effective_dimensions(): Swap width/height for quarter-turn rotations
    - fit_scale(): Contain-fit scale with a safe fallback
    - cover_scale(): Cover-fit scale for a rotated background
    - normalize_rotation(): Map an angle onto {0, 90, 180, 270}
    - clamp_zoom() / zoom_from_wheel(): Workspace zoom helpers

Key Classes:
    - PixelRect: Axis-aligned integer rectangle

Dependencies:
    - math (std)
    - dataclasses (std)

Used By:
    - editor.surface: Background placement and capture regions
    - editor.session: Surface sizing and zoom
    - output.compositor: Overlay sizing
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Tuple

VALID_ROTATIONS = (0, 90, 180, 270)


def normalize_rotation(angle: int) -> int:
    """
    Map any multiple of 90 degrees onto {0, 90, 180, 270}.

    Args:
        angle: Angle in degrees (may be negative or above 360)

    Returns:
        Equivalent angle in VALID_ROTATIONS

    Raises:
        ValueError: If angle is not a multiple of 90

    Example:
        >>> normalize_rotation(-90)
        270
    """
    if angle % 90 != 0:
        raise ValueError(f"rotation must be a multiple of 90: {angle}")
    return angle % 360


def is_quarter_turn(rotation: int) -> bool:
    """True when rotation swaps the visible width and height."""
    return rotation % 180 != 0


def effective_dimensions(width: int, height: int, rotation: int) -> Tuple[int, int]:
    """
    Get the visible (width, height) of a page shown at a rotation.

    Args:
        width: Unrotated width
        height: Unrotated height
        rotation: One of 0, 90, 180, 270

    Returns:
        (height, width) for 90/270, otherwise (width, height)

    Example:
        >>> effective_dimensions(1240, 1754, 90)
        (1754, 1240)
    """
    if is_quarter_turn(rotation):
        return height, width
    return width, height


def fit_scale(
    content_w: float,
    content_h: float,
    bound_w: float,
    bound_h: float,
    max_scale: float,
    fallback: float = 0.5,
) -> float:
    """
    Scale that fits content inside a bound, never above max_scale.

    Degenerate content (zero size) or a degenerate bound yields a
    non-finite or non-positive scale; fallback is returned instead.

    Args:
        content_w: Content width
        content_h: Content height
        bound_w: Available width
        bound_h: Available height
        max_scale: Upper limit for the result
        fallback: Scale returned when the computation degenerates

    Returns:
        min(bound_w/content_w, bound_h/content_h, max_scale) or fallback
    """
    try:
        scale = min(bound_w / content_w, bound_h / content_h, max_scale)
    except ZeroDivisionError:
        return fallback
    if not math.isfinite(scale) or scale <= 0:
        return fallback
    return scale


def cover_scale(
    image_w: float,
    image_h: float,
    target_w: float,
    target_h: float,
    rotation: int = 0,
) -> float:
    """
    Scale that makes an image drawn at rotation fully cover a target.

    The image is compared against the target after its own rotation, so a
    quarter-turn swaps which image side is matched to which target side.
    Overflow is expected and clipped by the caller.

    Args:
        image_w: Unrotated image width
        image_h: Unrotated image height
        target_w: Target area width
        target_h: Target area height
        rotation: Rotation applied to the image

    Returns:
        Cover-fit scale factor (1.0 for a degenerate image)
    """
    rotated_w, rotated_h = effective_dimensions(image_w, image_h, rotation)
    if rotated_w <= 0 or rotated_h <= 0:
        return 1.0
    return max(target_w / rotated_w, target_h / rotated_h)


def clamp_zoom(value: float, minimum: float = 0.1, maximum: float = 5.0) -> float:
    """Clamp a zoom level into [minimum, maximum]."""
    return min(max(minimum, value), maximum)


def zoom_from_wheel(
    current: float,
    delta_y: float,
    minimum: float = 0.1,
    maximum: float = 5.0,
) -> float:
    """
    Apply a mouse-wheel delta to a zoom level.

    Scrolling down (positive delta) zooms out.

    Example:
        >>> zoom_from_wheel(1.0, 100)
        0.9
    """
    return clamp_zoom(current - delta_y * 0.001, minimum, maximum)


@dataclass(frozen=True, slots=True)
class PixelRect:
    """
    Axis-aligned rectangle in integer pixels.

    Attributes:
        left: X of the left edge (inclusive)
        top: Y of the top edge (inclusive)
        width: Width in pixels (may be <= 0 for degenerate rects)
        height: Height in pixels (may be <= 0 for degenerate rects)

    Example:
        >>> rect = PixelRect.from_center(100, 100, 200, 120)
        >>> rect.as_box()
        (0, 40, 200, 160)
    """

    left: int
    top: int
    width: int
    height: int

    @classmethod
    def from_center(cls, x: float, y: float, width: float, height: float) -> PixelRect:
        """Build the rect of an object centered at (x, y)."""
        w = int(round(width))
        h = int(round(height))
        return cls(
            left=int(round(x - width / 2)),
            top=int(round(y - height / 2)),
            width=w,
            height=h,
        )

    @property
    def right(self) -> int:
        """X of the right edge (exclusive)."""
        return self.left + self.width

    @property
    def bottom(self) -> int:
        """Y of the bottom edge (exclusive)."""
        return self.top + self.height

    @property
    def is_empty(self) -> bool:
        """True when the rect covers no pixels."""
        return self.width <= 0 or self.height <= 0

    def as_box(self) -> Tuple[int, int, int, int]:
        """Get as (left, top, right, bottom) tuple for PIL."""
        return (self.left, self.top, self.right, self.bottom)
