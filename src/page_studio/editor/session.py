"""
Module: editor.session

Purpose:
    Canvas session controller. Binds exactly one page's scene to the
    single live RenderSurface and moves scenes between the surface and
    the PageStore. Checkout (load) and checkin (flush) are the only paths
    that touch stored scenes, driven by an explicit state machine:

        IDLE ──set_active_index──▶ LOADING ──background + scene──▶ READY

    Flushes are suppressed while LOADING so a half-loaded surface can
    never overwrite a stored scene.

Key Classes:
    - CanvasSession: QObject owning the surface, bake queue and page store
    - SessionState: IDLE / LOADING / READY
    - SessionStateError: Edit attempted outside READY

Dependencies:
    - PySide6.QtCore: QObject / Signal for change notification
    - editor.surface, editor.bake_queue, editor.page_store
    - core.utils.serialization: Scene checkin/checkout

Used By:
    - GUI front ends and tests
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, List, Optional, Sequence

from PIL import Image
from PySide6.QtCore import QObject, Signal

from page_studio.config import EditorConfig
from page_studio.core.models.geometry import (
    clamp_zoom,
    effective_dimensions,
    fit_scale,
    zoom_from_wheel,
)
from page_studio.core.models.objects import (
    Direction,
    ImageObject,
    MosaicRegion,
    ObjectKind,
    Properties,
    SceneObject,
    StyleKey,
    Text,
    clamp_opacity,
)
from page_studio.core.models.page import Page
from page_studio.core.models.scene import Scene, create_image_object, create_object
from page_studio.core.utils.serialization import deserialize_scene, serialize_scene
from page_studio.utils.fonts import measure_text

from .bake_queue import BakeQueue
from .page_store import PageStore, create_blank_page
from .surface import RenderSurface

logger = logging.getLogger(__name__)

# Attributes modify_object() will not touch
_PROTECTED_ATTRIBUTES = frozenset({"id", "kind", "baked", "needs_bake"})


class SessionState(str, Enum):
    """Lifecycle of the live surface."""
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"

    def __str__(self) -> str:
        return self.value


class SessionStateError(RuntimeError):
    """Raised when an edit is attempted while the session is not READY."""
    pass


class CanvasSession(QObject):
    """
    Controller for the live editing surface.

    Signals:
        stateChanged(str): New SessionState value
        activeIndexChanged(int): Active page index (-1 when none)
        sceneSaved(str): Id of a page whose stored scene was replaced
        propertiesChanged(object): New tool Properties

    Example:
        >>> session = CanvasSession()
        >>> session.add_blank_page()
        >>> session.state
        <SessionState.READY: 'ready'>
        >>> rect = session.add_shape(ObjectKind.FILLED_RECT)
    """

    stateChanged = Signal(str)
    activeIndexChanged = Signal(int)
    sceneSaved = Signal(str)
    propertiesChanged = Signal(object)

    def __init__(
        self,
        store: Optional[PageStore] = None,
        config: Optional[EditorConfig] = None,
        parent: Optional[QObject] = None,
    ) -> None:
        super().__init__(parent)
        self.config = config or EditorConfig()
        self.store = store if store is not None else PageStore()
        self.surface = RenderSurface()
        self.bake_queue = BakeQueue(self.surface)
        self._properties = Properties()
        self._state = SessionState.IDLE
        self._active_index = -1
        self._active_page_id: Optional[str] = None
        self._zoom = 1.0

    # ─────────────────────────────────────────────────────────────────────────
    # State
    # ─────────────────────────────────────────────────────────────────────────

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def active_index(self) -> int:
        return self._active_index

    @property
    def active_page(self) -> Optional[Page]:
        if self._active_page_id is None:
            return None
        return self.store.get(self._active_page_id)

    @property
    def scene(self) -> Scene:
        """The checked-out scene (empty when no page is active)."""
        return self.surface.scene

    @property
    def selection(self) -> List[SceneObject]:
        return self.surface.scene.selection

    @property
    def properties(self) -> Properties:
        return self._properties

    @property
    def zoom(self) -> float:
        return self._zoom

    def _set_state(self, state: SessionState) -> None:
        if state is self._state:
            return
        self._state = state
        self.stateChanged.emit(state.value)

    def _set_active(self, index: int, page_id: Optional[str]) -> None:
        changed = index != self._active_index
        self._active_index = index
        self._active_page_id = page_id
        if changed:
            self.activeIndexChanged.emit(index)

    def _set_properties(self, properties: Properties) -> None:
        self._properties = properties
        self.propertiesChanged.emit(properties)

    def _require_ready(self, action: str) -> None:
        if self._state is not SessionState.READY:
            raise SessionStateError(f"cannot {action} while session is {self._state.value}")

    # ─────────────────────────────────────────────────────────────────────────
    # Checkout / checkin
    # ─────────────────────────────────────────────────────────────────────────

    def flush(self) -> bool:
        """
        Write the live scene back to the active page.

        Suppressed while LOADING and when no page is active. A scene that
        is structurally unchanged is not written.

        Returns:
            True if the stored scene was replaced
        """
        if self._state is SessionState.LOADING:
            logger.debug("Flush suppressed: page load in flight")
            return False
        if self._active_page_id is None or self._active_page_id not in self.store:
            return False

        page = self.store.get(self._active_page_id)
        if page.scene is None and len(self.surface.scene) == 0:
            return False

        document = serialize_scene(self.surface.scene)
        if not self.store.update_scene(page.id, document):
            return False
        logger.debug(f"Saved scene of page {page.id} ({len(document['objects'])} object(s))")
        self.sceneSaved.emit(page.id)
        return True

    def set_active_index(self, index: int) -> None:
        """
        Make the page at index the active page.

        The previously active page is flushed first, then the page is
        loaded onto the surface and its mosaic regions are re-baked.

        Raises:
            IndexError: If index is out of range
            ValidationError: If the stored scene is malformed
        """
        if not 0 <= index < len(self.store):
            raise IndexError(f"page index {index} out of range for {len(self.store)} pages")
        self.flush()
        page = self.store[index]
        self._load(page)
        self._set_active(index, page.id)

    def _load(self, page: Page) -> None:
        """Check a page out onto the surface (LOADING -> READY)."""
        self._set_state(SessionState.LOADING)
        self.bake_queue.clear()
        try:
            width, height = effective_dimensions(page.width, page.height, page.rotation)
            self.surface.set_dimensions(width, height)
            self.surface.set_background(page.base_raster, page.rotation)
            scene = deserialize_scene(page.scene) if page.scene else Scene()
            self.surface.bind_scene(scene)
            scheduled = self.bake_queue.schedule_all()
        except Exception:
            self._active_page_id = None
            self._set_state(SessionState.IDLE)
            raise

        self._set_state(SessionState.READY)
        baked = self.bake_queue.drain()
        logger.debug(
            f"Loaded page {page.id} at {width}x{height} rot={page.rotation}: "
            f"{len(scene)} object(s), {baked}/{scheduled} mosaic(s) baked"
        )

    def _unload(self) -> None:
        """Leave no page checked out."""
        self.bake_queue.clear()
        self.surface.clear()
        self._set_active(-1, None)
        self._set_state(SessionState.IDLE)

    # ─────────────────────────────────────────────────────────────────────────
    # Object edits
    # ─────────────────────────────────────────────────────────────────────────

    def _rebake(self, regions: Sequence[MosaicRegion]) -> None:
        for region in regions:
            self.bake_queue.schedule(region)
        if regions:
            self.bake_queue.drain()

    def add_object(self, obj: SceneObject) -> SceneObject:
        """Add obj on top of the scene, select it and save."""
        self._require_ready("add an object")
        self.surface.scene.add_object(obj)
        if isinstance(obj, MosaicRegion):
            self._rebake([obj])
        self.flush()
        return obj

    def add_shape(self, kind: ObjectKind) -> SceneObject:
        """Create an object of kind at the surface center from the tool Properties."""
        self._require_ready("add a shape")
        obj = create_object(
            kind,
            self._properties,
            self.surface.center,
            shape_size=self.config.shape_size,
            mosaic_size=self.config.mosaic_size,
            text=self.config.default_text,
            mosaic_outline=self.config.mosaic_outline,
        )
        return self.add_object(obj)

    def insert_images(self, images: Sequence[Image.Image]) -> List[ImageObject]:
        """
        Insert images around the surface center, staggered, and save once.

        Returns:
            The new ImageObjects in insertion order
        """
        self._require_ready("insert images")
        inserted = []
        for index, image in enumerate(images):
            obj = create_image_object(
                image,
                self.surface.size,
                self.surface.center,
                index=index,
                fraction=self.config.image_fraction,
                offset=self.config.image_offset,
            )
            self.surface.scene.add_object(obj)
            inserted.append(obj)
        if inserted:
            self.flush()
        return inserted

    def modify_object(self, obj: SceneObject, **changes: Any) -> None:
        """
        Apply the result of a move/resize/edit gesture and save.

        Opacity is clamped into [0.1, 1]. A text object whose font size or
        content changed is refit to its new ink size.

        Args:
            obj: Object on the surface
            **changes: Attribute values, e.g. x=..., width=..., block_size=...

        Raises:
            ValueError: If obj is not on the surface or a size is out of range
            AttributeError: If a change names an unknown or protected attribute
        """
        self._require_ready("modify an object")
        if obj not in self.surface.scene:
            raise ValueError(f"object {obj.id} is not on the surface")

        bad = [name for name in changes if name in _PROTECTED_ATTRIBUTES or not hasattr(obj, name)]
        if bad:
            raise AttributeError(f"cannot modify {', '.join(sorted(bad))} on {obj.kind}")
        _check_changes(changes)

        if "opacity" in changes:
            changes["opacity"] = clamp_opacity(changes["opacity"])
        position = (changes.pop("x", obj.x), changes.pop("y", obj.y))
        size = (changes.pop("width", obj.width), changes.pop("height", obj.height))
        if position != (obj.x, obj.y):
            obj.move_to(*position)
        if size != (obj.width, obj.height):
            obj.resize(*size)
        if isinstance(obj, MosaicRegion) and "block_size" in changes:
            obj.set_block_size(changes.pop("block_size"))
        for name, value in changes.items():
            setattr(obj, name, value)
        if isinstance(obj, Text) and ("font_size" in changes or "text" in changes):
            obj.resize(*measure_text(obj.text, obj.font_size))

        if isinstance(obj, MosaicRegion) and obj.needs_bake:
            self._rebake([obj])
        self.flush()

    def edit_text(self, obj: Text, text: str) -> None:
        """Finish a text edit: replace the content, refit the box and save."""
        self._require_ready("edit text")
        if not isinstance(obj, Text):
            raise TypeError(f"expected a text object, got {obj.kind}")
        if obj not in self.surface.scene:
            raise ValueError(f"object {obj.id} is not on the surface")
        obj.text = text
        obj.resize(*measure_text(text, obj.font_size))
        self.flush()

    def remove_object(self, obj: SceneObject) -> None:
        """Remove obj from the surface and save."""
        self._require_ready("remove an object")
        self.surface.scene.remove_object(obj)
        self.bake_queue.discard(obj.id)
        self.flush()

    def remove_selection(self) -> int:
        """Remove every selected object with one save. Returns the count."""
        self._require_ready("remove objects")
        targets = self.surface.scene.selection
        for obj in targets:
            self.surface.scene.remove_object(obj)
            self.bake_queue.discard(obj.id)
        if targets:
            self.flush()
        return len(targets)

    def move_layer(self, direction: Direction) -> Optional[int]:
        """
        Move the first selected object in z-order and save.

        A moved mosaic region is re-baked since what lies beneath it
        changed.

        Returns:
            New z-index, or None when nothing is selected
        """
        self._require_ready("move a layer")
        selection = self.surface.scene.selection
        if not selection:
            return None
        obj = selection[0]
        before = self.surface.scene.index_of(obj)
        index = self.surface.scene.reorder(obj, direction)
        if index != before:
            if isinstance(obj, MosaicRegion):
                self._rebake([obj])
            self.flush()
        return index

    def select(self, objects: Sequence[SceneObject]) -> None:
        """
        Replace the selection and sync tool Properties from its first object.
        """
        self._require_ready("select")
        self.surface.scene.select(objects)
        selection = self.surface.scene.selection
        if selection:
            self._set_properties(Properties.from_object(selection[0], self._properties))

    def apply_style(self, key: StyleKey, value: Any) -> List[MosaicRegion]:
        """
        Update one tool property and push it onto the whole selection.

        Every selected object is restyled before the single save.

        Returns:
            Mosaic regions re-baked because their block size changed
        """
        self._set_properties(self._properties.updated(key, value))
        selection = self.surface.scene.selection
        if not selection:
            return []

        self._require_ready("apply a style")
        rebake = self.surface.scene.apply_style(selection, key, value)
        self._rebake(rebake)
        self.flush()
        return rebake

    # ─────────────────────────────────────────────────────────────────────────
    # Page actions
    # ─────────────────────────────────────────────────────────────────────────

    def import_pages(self, pages: Sequence[Page], at_end: bool = True) -> int:
        """
        Add pages to the store. The first import activates page 0.

        Returns:
            Number of pages added
        """
        pages = list(pages)
        self.store.insert_pages(pages, at_end=at_end)
        if self._active_page_id is None:
            if len(self.store):
                self.set_active_index(0)
        else:
            self._set_active(self.store.index_of(self._active_page_id), self._active_page_id)
        logger.info(f"Imported {len(pages)} page(s); document has {len(self.store)}")
        return len(pages)

    def add_blank_page(self) -> Page:
        """Append a blank page sized from the configuration."""
        page = create_blank_page(self.config)
        self.import_pages([page])
        return page

    def remove_page(self, page_id: str) -> Page:
        """
        Remove a page. The active index follows the active page.

        Removing the active page activates the page that takes its place
        (or the new last page); removing the last page leaves the
        session IDLE.
        """
        index = self.store.index_of(page_id)
        if page_id != self._active_page_id:
            page = self.store.remove_page(page_id)
            if self._active_page_id is not None:
                self._set_active(self.store.index_of(self._active_page_id), self._active_page_id)
            return page

        self.bake_queue.clear()
        page = self.store.remove_page(page_id)
        self._active_page_id = None
        if len(self.store) == 0:
            self._unload()
        else:
            target = min(index, len(self.store) - 1)
            target_page = self.store[target]
            self._load(target_page)
            # Force the signal: the index may be unchanged while the page differs
            self._active_index = -1
            self._set_active(target, target_page.id)
        return page

    def move_page(self, from_index: int, to_index: int) -> None:
        """
        Move a page. The active index follows the active page.

        Moving the active page makes to_index active; a page passed over
        shifts by one toward the vacated slot.
        """
        self.flush()
        self.store.reorder_page(from_index, to_index)
        if self._active_page_id is not None:
            self._set_active(self.store.index_of(self._active_page_id), self._active_page_id)

    def rotate_page(self, page_id: str, delta: int = 90) -> int:
        """
        Rotate a page by +90 or -90 degrees.

        The active page is flushed and reloaded at its new orientation.

        Returns:
            New rotation
        """
        is_active = page_id == self._active_page_id
        if is_active:
            self.flush()
        rotation = self.store.set_rotation(page_id, delta)
        if is_active:
            self._load(self.store.get(page_id))
        return rotation

    # ─────────────────────────────────────────────────────────────────────────
    # Zoom
    # ─────────────────────────────────────────────────────────────────────────

    def fit_zoom(self, container_w: float, container_h: float) -> float:
        """Fit the surface inside a viewport, leaving the workspace margin."""
        scale = fit_scale(
            self.surface.width,
            self.surface.height,
            container_w - self.config.workspace_margin,
            container_h - self.config.workspace_margin,
            self.config.fit_max_scale,
            self.config.fit_fallback_scale,
        )
        self._zoom = scale
        return scale

    def set_zoom(self, value: float) -> float:
        self._zoom = clamp_zoom(value, self.config.min_zoom, self.config.max_zoom)
        return self._zoom

    def wheel_zoom(self, delta_y: float) -> float:
        """Apply a mouse-wheel delta to the zoom level."""
        self._zoom = zoom_from_wheel(self._zoom, delta_y, self.config.min_zoom, self.config.max_zoom)
        return self._zoom


def _check_changes(changes: dict) -> None:
    """Reject sizes a stored scene could not hold."""
    for name in ("width", "height", "stroke_width"):
        if name in changes and changes[name] < 0:
            raise ValueError(f"{name} must not be negative: {changes[name]}")
    if "font_size" in changes and changes["font_size"] <= 0:
        raise ValueError(f"font_size must be positive: {changes['font_size']}")
