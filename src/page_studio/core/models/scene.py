"""
Module: scene

Purpose:
    The Scene: an ordered list of SceneObjects where list order is
    z-order (index 0 is the back), plus the current selection. Provides
    add/remove, layer moves and multi-object style application, and the
    object factories that build new objects from tool Properties.

Key Classes:
    - Scene: Live, mutable object list bound to one page

Key Functions:
    - create_object(): Build a new object of a kind from Properties
    - create_image_object(): Build an inserted image scaled to a surface

Dependencies:
    - PIL.Image: Inserted images
    - .objects: Variant types, Properties, StyleKey, Direction

Used By:
    - core.utils.serialization: Scene <-> SceneDocument
    - editor.session: Live editing
    - output.compositor: Static replay during export
"""

from __future__ import annotations

import logging
from typing import Iterable, Iterator, List, Optional, Sequence, Tuple

from PIL import Image

from page_studio.utils.fonts import measure_text

from .objects import (
    ARROW_BOX,
    DEFAULT_MOSAIC_OUTLINE,
    TEXT_SIZE_FACTOR,
    Arrow,
    Direction,
    FilledRect,
    ImageObject,
    MosaicRegion,
    ObjectKind,
    OutlinedRect,
    Properties,
    SceneObject,
    StyleKey,
    Text,
    clamp_opacity,
)

logger = logging.getLogger(__name__)


class Scene:
    """
    Ordered annotation objects of one page.

    Index 0 is drawn first (back), the last object is drawn on top.

    Example:
        >>> scene = Scene()
        >>> rect = FilledRect(100, 100, 50, 50)
        >>> scene.add_object(rect)
        >>> scene.selection == [rect]
        True
    """

    def __init__(self, objects: Optional[Iterable[SceneObject]] = None) -> None:
        self._objects: List[SceneObject] = list(objects or [])
        self._selection: List[SceneObject] = []

    # ─────────────────────────────────────────────────────────────────────────
    # Queries
    # ─────────────────────────────────────────────────────────────────────────

    @property
    def objects(self) -> Tuple[SceneObject, ...]:
        """Objects in z-order (back to front)."""
        return tuple(self._objects)

    @property
    def selection(self) -> List[SceneObject]:
        """Currently selected objects; the first one is authoritative."""
        return list(self._selection)

    def __len__(self) -> int:
        return len(self._objects)

    def __iter__(self) -> Iterator[SceneObject]:
        return iter(list(self._objects))

    def __contains__(self, obj: object) -> bool:
        return any(o is obj for o in self._objects)

    def index_of(self, obj: SceneObject) -> int:
        """
        Get the z-index of an object.

        Raises:
            ValueError: If obj is not in the scene
        """
        for i, candidate in enumerate(self._objects):
            if candidate is obj:
                return i
        raise ValueError(f"object {obj.id} is not in the scene")

    def find(self, object_id: str) -> Optional[SceneObject]:
        """Find an object by id, or None."""
        for obj in self._objects:
            if obj.id == object_id:
                return obj
        return None

    def objects_of_kind(self, kind: ObjectKind) -> List[SceneObject]:
        """Objects of one variant, in z-order."""
        return [obj for obj in self._objects if obj.kind is kind]

    def objects_below(self, obj: SceneObject) -> List[SceneObject]:
        """Objects drawn beneath obj, in z-order."""
        return self._objects[: self.index_of(obj)]

    # ─────────────────────────────────────────────────────────────────────────
    # Mutation
    # ─────────────────────────────────────────────────────────────────────────

    def add_object(self, obj: SceneObject) -> None:
        """Append obj at the top of the z-order and select it."""
        self._objects.append(obj)
        self._selection = [obj]

    def remove_object(self, obj: SceneObject) -> None:
        """
        Remove obj from the scene and the selection.

        Raises:
            ValueError: If obj is not in the scene
        """
        del self._objects[self.index_of(obj)]
        self._selection = [o for o in self._selection if o is not obj]

    def clear(self) -> None:
        """Remove every object."""
        self._objects.clear()
        self._selection.clear()

    def select(self, objects: Sequence[SceneObject]) -> None:
        """Replace the selection. Objects not in the scene are ignored."""
        self._selection = [obj for obj in objects if obj in self]

    def clear_selection(self) -> None:
        self._selection = []

    def reorder(self, obj: SceneObject, direction: Direction) -> int:
        """
        Move obj within the z-order.

        FRONT moves to the top, BACK to index 0, FORWARD/BACKWARD by one
        step. Moves are clamped to the list bounds.

        Args:
            obj: Object to move
            direction: Where to move it

        Returns:
            The object's new index
        """
        direction = Direction(direction)
        current = self.index_of(obj)
        last = len(self._objects) - 1

        if direction is Direction.FRONT:
            target = last
        elif direction is Direction.BACK:
            target = 0
        elif direction is Direction.FORWARD:
            target = current + 1
        else:
            target = current - 1
        target = min(max(0, target), last)

        if target != current:
            self._objects.insert(target, self._objects.pop(current))
            logger.debug(f"Moved {obj.kind} {obj.id} from z={current} to z={target}")
        return target

    def apply_style(
        self,
        targets: Sequence[SceneObject],
        key: StyleKey,
        value,
    ) -> List[MosaicRegion]:
        """
        Apply one style property to every target object.

        All targets are updated before returning, so the caller persists a
        single snapshot for the whole selection.

        Args:
            targets: Objects to restyle
            key: COLOR, OPACITY or SIZE
            value: New value (color string, opacity, or integer size)

        Returns:
            Mosaic regions whose block size changed and need re-bake
        """
        key = StyleKey(key)
        rebake: List[MosaicRegion] = []

        for obj in targets:
            if key is StyleKey.COLOR:
                _apply_color(obj, str(value))
            elif key is StyleKey.OPACITY:
                obj.opacity = clamp_opacity(value)
            else:
                if _apply_size(obj, int(value)):
                    rebake.append(obj)  # type: ignore[arg-type]

        logger.debug(f"Applied {key.value}={value!r} to {len(targets)} object(s)")
        return rebake


def _apply_color(obj: SceneObject, color: str) -> None:
    """Set fill on solid objects and stroke where a stroke exists."""
    if isinstance(obj, (FilledRect, Text)):
        obj.fill = color
    elif isinstance(obj, (OutlinedRect, Arrow)):
        obj.stroke = color
    elif isinstance(obj, MosaicRegion) and obj.outline is not None:
        obj.outline = color


def _apply_size(obj: SceneObject, size: int) -> bool:
    """Apply the size property. Returns True when a re-bake is needed."""
    if isinstance(obj, MosaicRegion):
        obj.set_block_size(size)
        return True
    if isinstance(obj, Text):
        obj.font_size = max(1, size) * TEXT_SIZE_FACTOR
        obj.resize(*measure_text(obj.text, obj.font_size))
    elif isinstance(obj, (OutlinedRect, Arrow)):
        obj.stroke_width = size
    return False


# ─────────────────────────────────────────────────────────────────────────────
# Factories
# ─────────────────────────────────────────────────────────────────────────────

def create_object(
    kind: ObjectKind,
    properties: Properties,
    center: Tuple[float, float],
    *,
    shape_size: int = 200,
    mosaic_size: Tuple[int, int] = (200, 120),
    text: str = "Text",
    mosaic_outline: str = DEFAULT_MOSAIC_OUTLINE,
) -> SceneObject:
    """
    Create a new object of kind styled from tool Properties.

    Args:
        kind: Variant to create (not IMAGE; see create_image_object)
        properties: Current tool style
        center: (x, y) center in page space
        shape_size: Width/height of rects and the arrow box
        mosaic_size: (width, height) of a mosaic region
        text: Initial text content
        mosaic_outline: Editing outline color of mosaic regions

    Returns:
        New SceneObject, not yet added to any scene

    Raises:
        ValueError: For ObjectKind.IMAGE
    """
    kind = ObjectKind(kind)
    x, y = center
    opacity = properties.opacity

    if kind is ObjectKind.FILLED_RECT:
        return FilledRect(x, y, shape_size, shape_size, fill=properties.color, opacity=opacity)
    if kind is ObjectKind.OUTLINED_RECT:
        return OutlinedRect(
            x, y, shape_size, shape_size,
            stroke=properties.color, stroke_width=properties.size, opacity=opacity,
        )
    if kind is ObjectKind.ARROW:
        box = shape_size if shape_size else ARROW_BOX
        return Arrow(
            x, y, box, box,
            stroke=properties.color, stroke_width=properties.size, opacity=opacity,
        )
    if kind is ObjectKind.TEXT:
        font_size = properties.size * TEXT_SIZE_FACTOR
        width, height = measure_text(text, font_size)
        return Text(x, y, width, height, text=text, fill=properties.color,
                    font_size=font_size, opacity=opacity)
    if kind is ObjectKind.MOSAIC:
        width, height = mosaic_size
        return MosaicRegion(x, y, width, height, block_size=properties.size,
                            outline=mosaic_outline, opacity=opacity)
    raise ValueError("image objects are created with create_image_object()")


def create_image_object(
    image: Image.Image,
    surface_size: Tuple[int, int],
    center: Tuple[float, float],
    *,
    index: int = 0,
    fraction: float = 0.4,
    offset: int = 20,
) -> ImageObject:
    """
    Create an inserted image scaled to fit a share of the surface.

    The scale is min(fraction * surface_w / img_w, fraction * surface_h /
    img_h, 1), so images are never enlarged. Images inserted together are
    staggered by ``offset * index``.

    Args:
        image: Pixel source
        surface_size: (width, height) of the editing surface
        center: Surface center in page space
        index: Position of this image within one insert batch
        fraction: Largest share of the surface the image may cover
        offset: Stagger step

    Returns:
        New ImageObject
    """
    surface_w, surface_h = surface_size
    img_w, img_h = image.size
    scale = min(fraction * surface_w / img_w, fraction * surface_h / img_h, 1)
    shift = index * offset
    return ImageObject(
        center[0] + shift,
        center[1] + shift,
        img_w * scale,
        img_h * scale,
        image=image,
    )
