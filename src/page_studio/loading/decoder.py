"""
Module: loading.decoder

Purpose:
    Turn uploaded PDF files into Pages. Each page is rasterized with
    PyMuPDF at a fixed upscale factor; the raster becomes the page's
    background and thumbnail. A file that cannot be decoded fails on its
    own: the other files of the same import still load.

Key Functions:
    - decode_source(): Rasterize every page of one SourceDocument
    - pages_from_source(): Build Pages for one SourceDocument
    - import_files(): Decode several files, collecting per-file errors

Key Classes:
    - DecodedPage: One rendered page
    - ImportResult: Pages plus collected DecodeErrors
    - DecodeError: Exception for unreadable sources

Dependencies:
    - fitz (PyMuPDF): PDF rasterization
    - PIL: Raster images

Used By:
    - editor.session: import_pages() input
    - loading.project: Project file loading
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Tuple, Union

import fitz
from PIL import Image

from page_studio.config import EditorConfig
from page_studio.core.models.page import Page, SourceDocument

logger = logging.getLogger(__name__)

FileInput = Union[str, Path, Tuple[str, bytes], SourceDocument]


class DecodeError(Exception):
    """Error decoding one source document."""

    def __init__(self, message: str, name: str = ""):
        super().__init__(message)
        self.name = name


@dataclass(frozen=True)
class DecodedPage:
    """
    One page rendered by the decoder.

    Attributes:
        page_number: 1-based page index in the source
        image: RGB raster at the render scale
        width: Raster width in pixels
        height: Raster height in pixels
    """

    page_number: int
    image: Image.Image = field(repr=False)
    width: int
    height: int


@dataclass
class ImportResult:
    """
    Outcome of importing several files.

    Attributes:
        pages: Pages decoded successfully, in file then page order
        sources: One SourceDocument per successfully decoded file
        errors: One DecodeError per file that failed
    """

    pages: List[Page] = field(default_factory=list)
    sources: List[SourceDocument] = field(default_factory=list)
    errors: List[DecodeError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


def read_source(item: FileInput) -> SourceDocument:
    """
    Normalize a file input into a SourceDocument.

    Args:
        item: Path, (name, bytes) pair, or an existing SourceDocument

    Raises:
        DecodeError: If a path cannot be read
    """
    if isinstance(item, SourceDocument):
        return item
    if isinstance(item, tuple):
        name, data = item
        return SourceDocument(name, bytes(data))
    path = Path(item)
    try:
        return SourceDocument(path.name, path.read_bytes())
    except OSError as e:
        raise DecodeError(f"Cannot read {path}: {e}", name=path.name) from e


def decode_source(source: SourceDocument, *, scale: float = 2.0) -> List[DecodedPage]:
    """
    Rasterize every page of a source document.

    Args:
        source: PDF bytes to decode
        scale: Upscale factor relative to PDF points

    Returns:
        One DecodedPage per page, in page order

    Raises:
        DecodeError: If the bytes are not a readable PDF or it has no pages

    Example:
        >>> pages = decode_source(SourceDocument("a.pdf", data))
        >>> pages[0].page_number
        1
    """
    matrix = fitz.Matrix(scale, scale)
    decoded: List[DecodedPage] = []
    try:
        with fitz.open(stream=source.data, filetype="pdf") as doc:
            if doc.page_count == 0:
                raise DecodeError(f"{source.name} has no pages", name=source.name)
            for index, page in enumerate(doc):
                pix = page.get_pixmap(matrix=matrix, alpha=False, colorspace=fitz.csRGB)
                image = Image.frombytes("RGB", (pix.width, pix.height), pix.samples)
                decoded.append(DecodedPage(index + 1, image, pix.width, pix.height))
    except DecodeError:
        raise
    except Exception as e:
        raise DecodeError(f"Failed to decode {source.name}: {e}", name=source.name) from e
    return decoded


def pages_from_source(source: SourceDocument, *, scale: float = 2.0) -> List[Page]:
    """Decode a source and wrap each page as a Page sharing that source."""
    return [
        Page(
            base_raster=item.image,
            width=item.width,
            height=item.height,
            source=source,
            source_page_number=item.page_number,
        )
        for item in decode_source(source, scale=scale)
    ]


def import_files(files: Iterable[FileInput], *, config: EditorConfig | None = None) -> ImportResult:
    """
    Decode several files into Pages.

    A file that fails is logged and recorded in ``errors``; the rest
    still load.

    Args:
        files: Paths, (name, bytes) pairs or SourceDocuments
        config: Supplies the render scale

    Returns:
        ImportResult with pages in file order
    """
    config = config or EditorConfig()
    result = ImportResult()
    start = time.perf_counter()

    for item in files:
        try:
            source = read_source(item)
            pages = pages_from_source(source, scale=config.render_scale)
        except DecodeError as e:
            logger.error(f"Import failed: {e}")
            result.errors.append(e)
            continue
        result.sources.append(source)
        result.pages.extend(pages)
        logger.debug(f"Decoded {len(pages)} page(s) from {source.name}")

    elapsed = time.perf_counter() - start
    logger.info(
        f"Imported {len(result.pages)} page(s) from {len(result.sources)} file(s) "
        f"in {elapsed:.2f}s ({len(result.errors)} failed)"
    )
    return result
