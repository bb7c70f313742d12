"""
Module: output.placement

Purpose:
    Where to draw a page's overlay so it lands on the page content once
    the page is rotated. The overlay is rasterized in the page's visible
    orientation, so it is drawn rotated by the same angle with its origin
    moved to the corner the rotation pivots around.

Key Functions:
    - overlay_placement(): Rotation -> draw position, size and angle

Key Classes:
    - Placement: Draw parameters in PDF user space

Used By:
    - output.compositor: Embedding overlays
"""

from __future__ import annotations

from dataclasses import dataclass

from page_studio.core.models.geometry import normalize_rotation


@dataclass(frozen=True)
class Placement:
    """
    Image draw parameters in PDF user space.

    Coordinates have a bottom-left origin; the image is rotated
    counter-clockwise by ``rotate`` about (x, y).

    Attributes:
        x: Origin x in points
        y: Origin y in points
        width: Drawn width before rotation
        height: Drawn height before rotation
        rotate: Counter-clockwise angle in degrees
    """

    x: float
    y: float
    width: float
    height: float
    rotate: int = 0


def overlay_placement(rotation: int, page_w: float, page_h: float) -> Placement:
    """
    Placement of an overlay on a page rotated by rotation.

    Args:
        rotation: Page rotation (0, 90, 180, 270)
        page_w: Unrotated page width in points
        page_h: Unrotated page height in points

    Returns:
        Placement whose rotated rectangle covers exactly
        [0, page_w] x [0, page_h]

    Raises:
        ValueError: If rotation is not a quarter-turn multiple

    Example:
        >>> overlay_placement(90, 595, 842)
        Placement(x=595, y=0, width=842, height=595, rotate=90)
    """
    rotation = normalize_rotation(rotation)
    if rotation == 90:
        return Placement(page_w, 0, page_h, page_w, 90)
    if rotation == 180:
        return Placement(page_w, page_h, page_w, page_h, 180)
    if rotation == 270:
        return Placement(0, page_h, page_h, page_w, 270)
    return Placement(0, 0, page_w, page_h, 0)

