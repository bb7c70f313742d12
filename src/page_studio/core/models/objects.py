"""
Module: objects

Purpose:
    Tagged variant types for the annotation primitives that live on a
    page: filled and outlined rectangles, arrows, text, inserted images
    and mosaic (pixelation) regions. Also holds the Properties tool
    state applied to new objects and pushed onto selections.

Key Classes:
    - ObjectKind: Variant tag used in serialized scenes
    - SceneObject: Common base (center position, size, opacity, id)
    - FilledRect, OutlinedRect, Arrow, Text, ImageObject, MosaicRegion
    - Properties: Last-used {color, opacity, size}
    - StyleKey / Direction: Style and layer operation selectors

Dependencies:
    - PIL.Image: Pixel sources and baked mosaic content
    - .geometry.PixelRect

Used By:
    - core.models.scene: Scene operations
    - core.utils.serialization: SceneDocument records
    - editor.drawing: Per-variant rasterization
    - editor.mosaic: Bake target
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, Optional, Tuple

from PIL import Image

from .geometry import PixelRect

MIN_OPACITY = 0.1
MAX_OPACITY = 1.0
MIN_BLOCK_SIZE = 1
MAX_BLOCK_SIZE = 100
DEFAULT_BLOCK_SIZE = 10
TEXT_SIZE_FACTOR = 4
DEFAULT_MOSAIC_OUTLINE = "#3b82f6"

# Arrow outline in a 200x200 unit box: shaft plus two head strokes
ARROW_SEGMENTS: Tuple[Tuple[Tuple[int, int], ...], ...] = (
    ((0, 0), (200, 200)),
    ((160, 185), (200, 200), (185, 160)),
)
ARROW_BOX = 200


class ObjectKind(str, Enum):
    """Variant tag of a scene object."""
    FILLED_RECT = "filled_rect"
    OUTLINED_RECT = "outlined_rect"
    ARROW = "arrow"
    TEXT = "text"
    IMAGE = "image"
    MOSAIC = "mosaic"

    def __str__(self) -> str:
        return self.value


class StyleKey(str, Enum):
    """Property a style edit targets."""
    COLOR = "color"
    OPACITY = "opacity"
    SIZE = "size"


class Direction(str, Enum):
    """Layer move direction."""
    FRONT = "front"
    BACK = "back"
    FORWARD = "forward"
    BACKWARD = "backward"


def new_object_id() -> str:
    """Generate an opaque object id."""
    return uuid.uuid4().hex


def clamp_opacity(value: float) -> float:
    """Clamp opacity into [0.1, 1]."""
    return min(max(MIN_OPACITY, float(value)), MAX_OPACITY)


def clamp_block_size(value: int) -> int:
    """Clamp a mosaic block size into [1, 100]."""
    return min(max(MIN_BLOCK_SIZE, int(value)), MAX_BLOCK_SIZE)


class SceneObject:
    """
    Base of all annotation primitives.

    Subclasses are dataclasses declaring x, y (center in page space),
    width, height, opacity and id. Equality is identity: two objects with
    the same geometry are still distinct items in a scene.
    """

    kind: ClassVar[ObjectKind]
    x: float
    y: float
    width: float
    height: float
    opacity: float
    id: str

    @property
    def rect(self) -> PixelRect:
        """Axis-aligned bounding rectangle in absolute page pixels."""
        return PixelRect.from_center(self.x, self.y, self.width, self.height)

    @property
    def has_stroke(self) -> bool:
        """True when the object draws an outline color."""
        return False

    def move_to(self, x: float, y: float) -> None:
        """Move the object's center."""
        self.x = float(x)
        self.y = float(y)

    def resize(self, width: float, height: float) -> None:
        """Change the object's size, keeping its center."""
        self.width = float(width)
        self.height = float(height)


@dataclass(eq=False)
class FilledRect(SceneObject):
    """Solid rectangle."""

    kind: ClassVar[ObjectKind] = ObjectKind.FILLED_RECT

    x: float
    y: float
    width: float
    height: float
    fill: str = "#ef4444"
    opacity: float = 1.0
    id: str = field(default_factory=new_object_id)

    def __post_init__(self) -> None:
        self.opacity = clamp_opacity(self.opacity)


@dataclass(eq=False)
class OutlinedRect(SceneObject):
    """Hollow rectangle with a uniform stroke."""

    kind: ClassVar[ObjectKind] = ObjectKind.OUTLINED_RECT

    x: float
    y: float
    width: float
    height: float
    stroke: str = "#ef4444"
    stroke_width: float = 5
    opacity: float = 1.0
    id: str = field(default_factory=new_object_id)

    def __post_init__(self) -> None:
        self.opacity = clamp_opacity(self.opacity)

    @property
    def has_stroke(self) -> bool:
        return True


@dataclass(eq=False)
class Arrow(SceneObject):
    """
    Arrow from the top-left to the bottom-right corner of its box.

    The outline is ARROW_SEGMENTS scaled from the 200x200 unit box to the
    object's width and height.
    """

    kind: ClassVar[ObjectKind] = ObjectKind.ARROW

    x: float
    y: float
    width: float
    height: float
    stroke: str = "#ef4444"
    stroke_width: float = 5
    opacity: float = 1.0
    id: str = field(default_factory=new_object_id)

    def __post_init__(self) -> None:
        self.opacity = clamp_opacity(self.opacity)

    @property
    def has_stroke(self) -> bool:
        return True


@dataclass(eq=False)
class Text(SceneObject):
    """Single-line text label. font_size is four times the tool size."""

    kind: ClassVar[ObjectKind] = ObjectKind.TEXT

    x: float
    y: float
    width: float
    height: float
    text: str = "Text"
    fill: str = "#ef4444"
    font_size: float = 40
    opacity: float = 1.0
    id: str = field(default_factory=new_object_id)

    def __post_init__(self) -> None:
        self.opacity = clamp_opacity(self.opacity)


@dataclass(eq=False)
class ImageObject(SceneObject):
    """Inserted raster image, stretched to the object's size."""

    kind: ClassVar[ObjectKind] = ObjectKind.IMAGE

    x: float
    y: float
    width: float
    height: float
    image: Image.Image = field(repr=False, default=None)  # type: ignore[assignment]
    opacity: float = 1.0
    id: str = field(default_factory=new_object_id)

    def __post_init__(self) -> None:
        if self.image is None:
            raise ValueError("ImageObject requires a pixel source")
        self.opacity = clamp_opacity(self.opacity)
        if self.image.mode != "RGBA":
            self.image = self.image.convert("RGBA")


@dataclass(eq=False)
class MosaicRegion(SceneObject):
    """
    Pixelation region.

    Its visible pixels (``baked``) are derived from whatever lies beneath
    it and are never persisted. ``needs_bake`` is the "not yet baked"
    marker: it starts True, is set again whenever geometry or block size
    change, and is cleared by a successful bake.

    ``outline`` is the dashed editing outline. It is stored with the scene
    but is not part of the exported overlay.
    """

    kind: ClassVar[ObjectKind] = ObjectKind.MOSAIC

    x: float
    y: float
    width: float
    height: float
    block_size: int = DEFAULT_BLOCK_SIZE
    outline: Optional[str] = DEFAULT_MOSAIC_OUTLINE
    opacity: float = 1.0
    id: str = field(default_factory=new_object_id)
    baked: Optional[Image.Image] = field(default=None, repr=False)
    needs_bake: bool = True

    def __post_init__(self) -> None:
        self.opacity = clamp_opacity(self.opacity)
        self.block_size = clamp_block_size(self.block_size)

    @property
    def has_stroke(self) -> bool:
        return self.outline is not None

    def move_to(self, x: float, y: float) -> None:
        super().move_to(x, y)
        self.needs_bake = True

    def resize(self, width: float, height: float) -> None:
        super().resize(width, height)
        self.needs_bake = True

    def set_block_size(self, value: int) -> None:
        """Change the block size and mark the region for re-bake."""
        self.block_size = clamp_block_size(value)
        self.needs_bake = True


@dataclass
class Properties:
    """
    Last-used tool style.

    Applied to newly created objects and pushed onto the selection when
    edited. Not part of any persisted page data.

    Attributes:
        color: Hex color string
        opacity: Opacity in [0.1, 1]
        size: Stroke width, text size (font_size / 4) or mosaic block size
    """

    color: str = "#ef4444"
    opacity: float = 1.0
    size: int = 5

    def updated(self, key: StyleKey, value) -> Properties:
        """Return a copy with one property replaced."""
        key = StyleKey(key)
        if key is StyleKey.COLOR:
            return Properties(str(value), self.opacity, self.size)
        if key is StyleKey.OPACITY:
            return Properties(self.color, clamp_opacity(value), self.size)
        return Properties(self.color, self.opacity, int(value))

    @classmethod
    def from_object(cls, obj: SceneObject, fallback: Optional[Properties] = None) -> Properties:
        """
        Derive tool state from a selected object.

        Args:
            obj: Selected object
            fallback: Properties whose color is kept when obj has none

        Returns:
            Properties reflecting obj's color, opacity and size
        """
        fallback = fallback or cls()
        if isinstance(obj, MosaicRegion):
            size = obj.block_size or DEFAULT_BLOCK_SIZE
        elif isinstance(obj, Text):
            size = int(round((obj.font_size or 40) / TEXT_SIZE_FACTOR))
        elif isinstance(obj, (OutlinedRect, Arrow)) and obj.stroke_width:
            size = int(obj.stroke_width)
        else:
            size = 5

        if isinstance(obj, (FilledRect, Text)):
            color = obj.fill
        elif isinstance(obj, (OutlinedRect, Arrow)):
            color = obj.stroke
        elif isinstance(obj, MosaicRegion) and obj.outline:
            color = obj.outline
        else:
            color = fallback.color

        return cls(color=color, opacity=obj.opacity or 1.0, size=size)
