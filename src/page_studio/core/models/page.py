"""
Module: page

Purpose:
    Page and SourceDocument models. A Page is one unit of the output
    document: either a page of an uploaded PDF or a blank page. Pages
    keep their scene only in serialized form while they are not the
    active page.

Key Classes:
    - SourceDocument: Uploaded PDF bytes, shared by identity
    - Page: Ordered unit of the output document

Dependencies:
    - PIL.Image: Base raster
    - .geometry: Rotation helpers

Used By:
    - editor.page_store: Ordered page list
    - loading.decoder: Creates source pages
    - output.compositor: Export
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from PIL import Image

from .geometry import VALID_ROTATIONS, effective_dimensions

SceneDocument = Dict[str, Any]


def new_page_id() -> str:
    """Generate a globally unique page id."""
    return uuid.uuid4().hex


@dataclass(eq=False)
class SourceDocument:
    """
    Raw bytes of one uploaded PDF.

    Every page decoded from the same upload references the same
    SourceDocument, so caches keyed on it (identity hash) open each
    upload once.

    Attributes:
        name: Display name (usually the file name)
        data: PDF bytes
    """

    name: str
    data: bytes = field(repr=False)


@dataclass(eq=False)
class Page:
    """
    One page of the document being assembled.

    Attributes:
        base_raster: Background image (source render or blank fill)
        width: Pixel width in unrotated space
        height: Pixel height in unrotated space
        source: Uploaded document this page comes from (None for blank)
        source_page_number: 1-based page in source, 0 for blank pages
        scene: Serialized SceneDocument, or None when never annotated
        rotation: One of 0, 90, 180, 270
        id: Opaque id, stable across reorder and rotate

    Example:
        >>> page = Page(Image.new("RGB", (1240, 1754), "white"), 1240, 1754)
        >>> page.is_blank
        True
    """

    base_raster: Image.Image = field(repr=False)
    width: int
    height: int
    source: Optional[SourceDocument] = None
    source_page_number: int = 0
    scene: Optional[SceneDocument] = field(default=None, repr=False)
    rotation: int = 0
    id: str = field(default_factory=new_page_id)

    def __post_init__(self) -> None:
        """Validate page on construction."""
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"page size must be positive: {self.width}x{self.height}")
        if self.rotation not in VALID_ROTATIONS:
            raise ValueError(f"rotation must be one of {VALID_ROTATIONS}: {self.rotation}")
        if self.source is None and self.source_page_number != 0:
            raise ValueError("blank pages must have source_page_number 0")
        if self.source is not None and self.source_page_number < 1:
            raise ValueError(f"source_page_number must be >= 1: {self.source_page_number}")

    @property
    def is_blank(self) -> bool:
        """True for pages not derived from an uploaded document."""
        return self.source is None

    @property
    def effective_size(self) -> Tuple[int, int]:
        """(width, height) as displayed at the current rotation."""
        return effective_dimensions(self.width, self.height, self.rotation)
