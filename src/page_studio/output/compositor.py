"""
Module: output.compositor

Purpose:
    Export the page list as one merged PDF. For each page, in order:

        target page (copied source page or new blank page)
        → compose rotation with the page's existing /Rotate
        → rasterize the annotation overlay on a fresh static surface
        → embed the overlay with the rotation-aware placement

    Overlays are built from the stored scenes only, never from the live
    editing surface. Mosaic regions are re-baked against each static
    surface's own background, then the background is dropped so only the
    annotations (with baked mosaic pixels) are embedded.

Key Functions:
    - export_document(): Pages -> PDF bytes
    - export_to_file(): Pages -> PDF file
    - render_overlay(): One page's transparent annotation layer

Key Classes:
    - ExportError: Exception for failed exports

Dependencies:
    - PIL: Overlay rasters
    - numpy: Blank overlay detection
    - editor.surface / editor.mosaic: Static rendering and bakes
    - output.writer: PDF assembly
    - output.placement: Rotation-aware draw rectangles

Used By:
    - cli: Batch export
    - GUI front ends
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Callable, Iterable, Optional

import numpy as np
from PIL import Image

from page_studio.config import EditorConfig
from page_studio.core.models.geometry import effective_dimensions, normalize_rotation
from page_studio.core.models.objects import MosaicRegion
from page_studio.core.models.page import Page
from page_studio.core.utils.serialization import deserialize_scene
from page_studio.editor.mosaic import bake
from page_studio.editor.surface import RenderSurface

from .placement import overlay_placement
from .writer import PdfWriter

logger = logging.getLogger(__name__)


class ExportError(Exception):
    """Error during export. No output is produced."""
    pass


def render_overlay(page: Page) -> Optional[Image.Image]:
    """
    Rasterize a page's stored scene as a transparent overlay.

    The overlay has the page's visible size (effective_dimensions) and
    carries no editing decorations.

    Args:
        page: Page to render (not modified)

    Returns:
        RGBA overlay, or None when it would be fully transparent
    """
    if not page.scene or not page.scene.get("objects"):
        return None

    width, height = effective_dimensions(page.width, page.height, page.rotation)
    surface = RenderSurface(width, height, decorations=False, background_color=None)
    surface.set_background(page.base_raster, page.rotation)
    surface.bind_scene(deserialize_scene(page.scene))

    for obj in surface.scene:
        if isinstance(obj, MosaicRegion):
            bake(surface, obj)

    surface.clear_background()
    overlay = surface.render()
    if not np.asarray(overlay.getchannel("A")).any():
        return None
    return overlay


def export_document(
    pages: Iterable[Page],
    *,
    writer_factory: Callable[[], PdfWriter] = PdfWriter,
) -> bytes:
    """
    Export pages as one merged PDF.

    Pages are read, never modified. Any failure aborts the whole export.

    Args:
        pages: Pages in output order (a PageStore works too)
        writer_factory: Creates the document writer

    Returns:
        PDF bytes

    Raises:
        ExportError: If there is nothing to export or any step fails

    Example:
        >>> data = export_document(store)
        >>> data[:5]
        b'%PDF-'
    """
    pages = list(pages)
    if not pages:
        raise ExportError("No pages to export")

    start = time.perf_counter()
    embedded = 0
    try:
        writer = writer_factory()
        try:
            for number, page in enumerate(pages, start=1):
                if _export_page(writer, page):
                    embedded += 1
                logger.debug(f"Exported page {number}/{len(pages)} ({page.id})")
            data = writer.save()
        finally:
            writer.close()
    except ExportError:
        raise
    except Exception as e:
        raise ExportError(f"Export failed: {e}") from e

    elapsed = time.perf_counter() - start
    logger.info(
        f"Exported {len(pages)} page(s), {embedded} with annotations, "
        f"{len(data)} bytes in {elapsed:.2f}s"
    )
    return data


def _export_page(writer: PdfWriter, page: Page) -> bool:
    """Add one page to writer. Returns True if an overlay was embedded."""
    if page.is_blank:
        target = writer.new_page(page.width, page.height)
    else:
        target = writer.copy_page(page.source, page.source_page_number)

    total = normalize_rotation(writer.get_rotation(target) + page.rotation)
    writer.set_rotation(target, total)

    overlay = render_overlay(page)
    if overlay is None:
        return False

    page_w, page_h = writer.get_size(target)
    # The raster already shows the page's own /Rotate, so the overlay
    # sits at the composed rotation
    placement = overlay_placement(total, page_w, page_h)
    writer.draw_image(
        target,
        overlay,
        placement.x,
        placement.y,
        placement.width,
        placement.height,
        placement.rotate,
    )
    return True


def export_to_file(
    pages: Iterable[Page],
    path: Optional[Path] = None,
    *,
    config: Optional[EditorConfig] = None,
) -> Path:
    """
    Export pages to a PDF file.

    The file is only written after the whole export succeeded.

    Args:
        pages: Pages in output order
        path: Output file (default: config.output_filename in the cwd)
        config: Editor configuration

    Returns:
        Path written

    Raises:
        ExportError: If export or writing fails
    """
    config = config or EditorConfig()
    path = Path(path) if path is not None else Path(config.output_filename)
    data = export_document(pages)
    try:
        path.write_bytes(data)
    except OSError as e:
        raise ExportError(f"Cannot write {path}: {e}") from e
    logger.info(f"Wrote {path}")
    return path
