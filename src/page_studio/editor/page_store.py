"""
Module: editor.page_store

Purpose:
    Ordered list of Pages. The only data that survives page switches:
    every inactive page's scene lives here as a SceneDocument. All
    mutation goes through the CanvasSession so its guarded-write rule
    holds.

Key Classes:
    - PageStore: Ordered pages keyed by stable id
    - PageNotFoundError: Unknown page id

Key Functions:
    - create_blank_page(): White blank Page from configuration

Dependencies:
    - PIL.Image: Blank base rasters
    - core.models: Page, SceneDocument
    - core.utils.serialization: Structural scene equality

Used By:
    - editor.session: Active page binding
    - output.compositor: Export reads pages from here
    - loading.project: Builds a store from a project file
"""

from __future__ import annotations

import logging
from typing import Iterable, Iterator, List, Optional, Tuple

from PIL import Image

from page_studio.config import EditorConfig
from page_studio.core.models.geometry import normalize_rotation
from page_studio.core.models.page import Page, SceneDocument
from page_studio.core.utils.serialization import scene_documents_equal

logger = logging.getLogger(__name__)


class PageNotFoundError(KeyError):
    """Raised when a page id is not in the store."""

    def __init__(self, page_id: str):
        super().__init__(page_id)
        self.page_id = page_id

    def __str__(self) -> str:
        return f"No page with id {self.page_id}"


def create_blank_page(
    config: Optional[EditorConfig] = None,
    width: Optional[int] = None,
    height: Optional[int] = None,
) -> Page:
    """
    Create a blank page with a solid base raster.

    Args:
        config: Supplies default size and color (default EditorConfig())
        width: Override width in pixels
        height: Override height in pixels

    Returns:
        New blank Page
    """
    config = config or EditorConfig()
    width = width or config.blank_width
    height = height or config.blank_height
    raster = Image.new("RGB", (width, height), config.blank_color)
    return Page(raster, width, height)


class PageStore:
    """
    Ordered pages of the document being assembled.

    Page ids are unique and survive reorder and rotate.

    Example:
        >>> store = PageStore()
        >>> store.insert_pages([create_blank_page()])
        >>> len(store)
        1
    """

    def __init__(self, pages: Optional[Iterable[Page]] = None) -> None:
        self._pages: List[Page] = []
        if pages:
            self.insert_pages(pages)

    # ─────────────────────────────────────────────────────────────────────────
    # Queries
    # ─────────────────────────────────────────────────────────────────────────

    @property
    def pages(self) -> Tuple[Page, ...]:
        """Snapshot of the page order."""
        return tuple(self._pages)

    def __len__(self) -> int:
        return len(self._pages)

    def __iter__(self) -> Iterator[Page]:
        return iter(tuple(self._pages))

    def __getitem__(self, index: int) -> Page:
        return self._pages[index]

    def get(self, page_id: str) -> Page:
        """
        Get a page by id.

        Raises:
            PageNotFoundError: If no page has that id
        """
        return self._pages[self.index_of(page_id)]

    def index_of(self, page_id: str) -> int:
        """
        Position of a page in the current order.

        Raises:
            PageNotFoundError: If no page has that id
        """
        for i, page in enumerate(self._pages):
            if page.id == page_id:
                return i
        raise PageNotFoundError(page_id)

    def __contains__(self, page_id: object) -> bool:
        return any(page.id == page_id for page in self._pages)

    # ─────────────────────────────────────────────────────────────────────────
    # Mutation
    # ─────────────────────────────────────────────────────────────────────────

    def insert_pages(self, pages: Iterable[Page], at_end: bool = True) -> None:
        """
        Insert pages at the end (default) or the front, keeping their order.

        Raises:
            ValueError: If a page id is already in the store
        """
        new_pages = list(pages)
        seen = {page.id for page in self._pages}
        for page in new_pages:
            if page.id in seen:
                raise ValueError(f"duplicate page id: {page.id}")
            seen.add(page.id)

        if at_end:
            self._pages.extend(new_pages)
        else:
            self._pages[:0] = new_pages
        logger.debug(f"Inserted {len(new_pages)} page(s) at {'end' if at_end else 'front'}")

    def remove_page(self, page_id: str) -> Page:
        """
        Remove a page.

        Returns:
            The removed page

        Raises:
            PageNotFoundError: If no page has that id
        """
        return self._pages.pop(self.index_of(page_id))

    def reorder_page(self, from_index: int, to_index: int) -> None:
        """
        Move the page at from_index so it ends up at to_index.

        Example:
            [A, B, C] with reorder_page(0, 2) gives [B, C, A].

        Raises:
            IndexError: If either index is out of range
        """
        count = len(self._pages)
        if not 0 <= from_index < count or not 0 <= to_index < count:
            raise IndexError(f"reorder {from_index} -> {to_index} out of range for {count} pages")
        if from_index == to_index:
            return
        self._pages.insert(to_index, self._pages.pop(from_index))

    def set_rotation(self, page_id: str, delta: int) -> int:
        """
        Rotate a page by a quarter turn. The stored scene is untouched.

        Args:
            page_id: Page to rotate
            delta: +90 (clockwise) or -90

        Returns:
            New rotation

        Raises:
            ValueError: If delta is not +90 or -90
            PageNotFoundError: If no page has that id
        """
        if delta not in (90, -90):
            raise ValueError(f"rotation delta must be +90 or -90: {delta}")
        page = self.get(page_id)
        page.rotation = normalize_rotation(page.rotation + delta)
        return page.rotation

    def update_scene(self, page_id: str, scene: Optional[SceneDocument]) -> bool:
        """
        Store a page's scene unless it is structurally unchanged.

        Returns:
            True if the stored scene was replaced

        Raises:
            PageNotFoundError: If no page has that id
        """
        page = self.get(page_id)
        if scene_documents_equal(page.scene, scene):
            return False
        page.scene = scene
        return True
