"""
Module: output.writer

Purpose:
    Assemble the output PDF with PyMuPDF. Pages are addressed by their
    index in the output document. Image placement uses PDF user space
    (bottom-left origin, counter-clockwise rotation about the origin
    point) and is converted to PyMuPDF's top-left page coordinates here,
    with the page's own /Rotate taken out of the picture while drawing.

Key Classes:
    - PdfWriter: Output document under construction

Dependencies:
    - fitz (PyMuPDF): PDF assembly
    - PIL: Overlay images

Used By:
    - output.compositor: Export
"""

from __future__ import annotations

import io
import logging
import math
from typing import Dict, Tuple

import fitz
from PIL import Image

from page_studio.core.models.geometry import normalize_rotation
from page_studio.core.models.page import SourceDocument

logger = logging.getLogger(__name__)

_TRANSPOSE_COUNTER_CLOCKWISE = {
    90: Image.Transpose.ROTATE_90,
    180: Image.Transpose.ROTATE_180,
    270: Image.Transpose.ROTATE_270,
}


class PdfWriter:
    """
    Output PDF under construction.

    Source documents are opened once per SourceDocument and kept open
    until the writer is closed.

    Example:
        >>> with PdfWriter() as writer:
        ...     page = writer.new_page(595, 842)
        ...     data = writer.save()
    """

    def __init__(self) -> None:
        self._doc = fitz.open()
        self._sources: Dict[SourceDocument, fitz.Document] = {}

    def __enter__(self) -> PdfWriter:
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    @property
    def page_count(self) -> int:
        return self._doc.page_count

    def _open_source(self, source: SourceDocument) -> fitz.Document:
        doc = self._sources.get(source)
        if doc is None:
            doc = fitz.open(stream=source.data, filetype="pdf")
            self._sources[source] = doc
            logger.debug(f"Opened source {source.name} ({doc.page_count} pages)")
        return doc

    # ─────────────────────────────────────────────────────────────────────────
    # Pages
    # ─────────────────────────────────────────────────────────────────────────

    def copy_page(self, source: SourceDocument, page_number: int) -> int:
        """
        Append a copy of a source page.

        Args:
            source: Uploaded document
            page_number: 1-based page in source

        Returns:
            Index of the new page

        Raises:
            IndexError: If page_number is out of range
        """
        src = self._open_source(source)
        if not 1 <= page_number <= src.page_count:
            raise IndexError(f"{source.name} has no page {page_number}")
        self._doc.insert_pdf(src, from_page=page_number - 1, to_page=page_number - 1)
        return self._doc.page_count - 1

    def new_page(self, width: float, height: float) -> int:
        """Append a blank page of width x height points. Returns its index."""
        self._doc.new_page(width=width, height=height)
        return self._doc.page_count - 1

    def get_rotation(self, index: int) -> int:
        return self._doc[index].rotation

    def set_rotation(self, index: int, angle: int) -> None:
        self._doc[index].set_rotation(normalize_rotation(angle))

    def get_size(self, index: int) -> Tuple[float, float]:
        """Unrotated (mediabox) width and height in points."""
        box = self._doc[index].mediabox
        return box.width, box.height

    # ─────────────────────────────────────────────────────────────────────────
    # Drawing
    # ─────────────────────────────────────────────────────────────────────────

    def draw_image(
        self,
        index: int,
        image: Image.Image,
        x: float,
        y: float,
        width: float,
        height: float,
        rotate: int = 0,
    ) -> None:
        """
        Draw an image in PDF user space.

        The image is stretched to width x height with its bottom-left
        corner at (x, y), then rotated counter-clockwise by rotate about
        (x, y). Coordinates are relative to the mediabox.

        Args:
            index: Output page index
            image: Image to embed (alpha is kept)
            x: Origin x in points
            y: Origin y in points
            width: Width before rotation
            height: Height before rotation
            rotate: Quarter-turn counter-clockwise angle
        """
        rotate = normalize_rotation(rotate)
        x0, y0, x1, y1 = _rotated_bounds(x, y, width, height, rotate)

        if rotate:
            image = image.transpose(_TRANSPOSE_COUNTER_CLOCKWISE[rotate])
        buf = io.BytesIO()
        image.save(buf, format="PNG")

        page = self._doc[index]
        page_h = page.mediabox.height
        rect = fitz.Rect(x0, page_h - y1, x1, page_h - y0)

        page_rotation = page.rotation
        if page_rotation:
            page.set_rotation(0)
        try:
            page.insert_image(rect, stream=buf.getvalue(), keep_proportion=False)
        finally:
            if page_rotation:
                page.set_rotation(page_rotation)

    # ─────────────────────────────────────────────────────────────────────────
    # Output
    # ─────────────────────────────────────────────────────────────────────────

    def save(self) -> bytes:
        """Serialize the output document."""
        return self._doc.tobytes(garbage=3, deflate=True)

    def close(self) -> None:
        for doc in self._sources.values():
            doc.close()
        self._sources.clear()
        if not self._doc.is_closed:
            self._doc.close()


def _rotated_bounds(
    x: float,
    y: float,
    width: float,
    height: float,
    rotate: int,
) -> Tuple[float, float, float, float]:
    """Bounding box of a width x height rect at (x, y) turned CCW about (x, y)."""
    cos = round(math.cos(math.radians(rotate)))
    sin = round(math.sin(math.radians(rotate)))
    xs, ys = [], []
    for dx, dy in ((0, 0), (width, 0), (0, height), (width, height)):
        xs.append(x + dx * cos - dy * sin)
        ys.append(y + dx * sin + dy * cos)
    return min(xs), min(ys), max(xs), max(ys)
