"""
Module: editor.mosaic

Purpose:
    Mosaic (pixelation) bake. A MosaicRegion's pixels are derived from
    what lies beneath it: the region is isolated, captured at 1:1 from
    the surface, averaged down to one pixel per block and scaled back up
    with nearest-neighbour so each block is a flat color.

Key Functions:
    - pixelate(): Pure downsample/upsample of an image
    - bake(): Capture a region from a surface and store its pixelation

Dependencies:
    - PIL.Image: Resampling (BOX area-average, NEAREST)
    - editor.surface: Region capture

Used By:
    - editor.bake_queue: Sequenced bakes on the live surface
    - output.compositor: Static bakes during export
"""

from __future__ import annotations

import logging

from PIL import Image

from page_studio.core.models.objects import MosaicRegion

from .surface import RenderSurface

logger = logging.getLogger(__name__)


def pixelate(image: Image.Image, block_size: int) -> Image.Image:
    """
    Pixelate an image into flat blocks of block_size pixels.

    The image is area-averaged down to (max(1, w // b), max(1, h // b))
    and scaled back to its own size with nearest-neighbour, so the result
    never has more than ceil(w / b) * ceil(h / b) distinct blocks.

    Args:
        image: Source image (any mode, converted to RGBA)
        block_size: Block edge in pixels (values below 1 count as 1)

    Returns:
        New RGBA image the size of image

    Example:
        >>> out = pixelate(Image.new("RGB", (200, 120), "red"), 10)
        >>> out.size
        (200, 120)
    """
    b = max(1, int(block_size))
    rgba = image.convert("RGBA")
    width, height = rgba.size
    small = rgba.resize((max(1, width // b), max(1, height // b)), Image.Resampling.BOX)
    return small.resize((width, height), Image.Resampling.NEAREST)


def bake(surface: RenderSurface, region: MosaicRegion) -> bool:
    """
    Bake a mosaic region against a surface.

    Renders the surface background plus every object beneath region in
    z-order (region itself hidden) inside region's bounding rect, at 1:1
    scale, then pixelates the capture into ``region.baked``. Geometry,
    opacity and outline are not touched.

    A zero-area rect is skipped.

    Args:
        surface: Surface the region is bound to
        region: Region to bake (must be in surface.scene)

    Returns:
        True if the region was baked, False if skipped
    """
    rect = region.rect
    if rect.is_empty:
        logger.debug(f"Skipping bake of {region.id}: empty rect {rect}")
        return False

    capture = surface.render(region=rect, below=region)
    region.baked = pixelate(capture, region.block_size)
    region.needs_bake = False
    logger.debug(
        f"Baked mosaic {region.id}: {rect.width}x{rect.height} "
        f"at ({rect.left},{rect.top}) block={region.block_size}"
    )
    return True
