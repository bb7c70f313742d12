"""
Module: editor.surface

Purpose:
    Headless raster editing surface. Holds one bound Scene, a background
    (a page's base raster rotated and cover-fit to the surface) and
    renders both with Pillow. The same class backs the live editing
    surface and the static surfaces built during export.

Key Classes:
    - RenderSurface: Sized RGBA surface with background and scene

Dependencies:
    - PIL: Compositing
    - core.models: Scene, PixelRect, geometry helpers
    - editor.drawing: Per-object rasterization

Used By:
    - editor.session: The single live editing surface
    - editor.mosaic: Region capture for bakes
    - output.compositor: Per-page static overlay surfaces
"""

from __future__ import annotations

import logging
from typing import Optional

from PIL import Image

from page_studio.core.models.geometry import PixelRect, cover_scale
from page_studio.core.models.objects import SceneObject
from page_studio.core.models.scene import Scene

from .drawing import composite_at, draw_object, rotate_clockwise

logger = logging.getLogger(__name__)


class RenderSurface:
    """
    Sized RGBA drawing surface.

    ``generation`` increases every time the surface is resized or
    rebound, so work scheduled against an earlier page can detect that it
    is stale. ``background_ready`` is the readiness signal mosaic bakes
    wait for.

    Attributes:
        decorations: Draw editing-only marks such as mosaic outlines
        background_color: Fill used when no background image is set
            (None leaves the surface transparent)

    Example:
        >>> surface = RenderSurface(800, 600)
        >>> surface.render().size
        (800, 600)
    """

    def __init__(
        self,
        width: int = 800,
        height: int = 600,
        *,
        decorations: bool = True,
        background_color: Optional[str] = "#ffffff",
    ) -> None:
        self.decorations = decorations
        self.background_color = background_color
        self._width = int(width)
        self._height = int(height)
        self._scene = Scene()
        self._background: Optional[Image.Image] = None
        self._background_ready = False
        self._generation = 0

    # ─────────────────────────────────────────────────────────────────────────
    # Properties
    # ─────────────────────────────────────────────────────────────────────────

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def size(self) -> tuple[int, int]:
        return self._width, self._height

    @property
    def bounds(self) -> PixelRect:
        """The whole surface as a rect."""
        return PixelRect(0, 0, self._width, self._height)

    @property
    def center(self) -> tuple[float, float]:
        """Center point in page space (where new objects are placed)."""
        return self._width / 2, self._height / 2

    @property
    def scene(self) -> Scene:
        return self._scene

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def background_ready(self) -> bool:
        return self._background_ready

    @property
    def has_background(self) -> bool:
        return self._background is not None

    # ─────────────────────────────────────────────────────────────────────────
    # Binding
    # ─────────────────────────────────────────────────────────────────────────

    def set_dimensions(self, width: int, height: int) -> None:
        """
        Resize the surface and clear it.

        Drops the background and every object, and starts a new
        generation.
        """
        self._width = int(width)
        self._height = int(height)
        self.clear()

    def clear(self) -> None:
        """Drop background and objects; start a new generation."""
        self._scene = Scene()
        self._background = None
        self._background_ready = False
        self._generation += 1

    def bind_scene(self, scene: Scene) -> None:
        """Make scene the surface's live object list."""
        self._scene = scene

    def set_background(self, raster: Optional[Image.Image], rotation: int = 0) -> None:
        """
        Set the background from a base raster.

        The raster is rotated clockwise by rotation, scaled to cover the
        whole surface (overflow cropped, centered) and marked ready. A None
        raster leaves the plain background color and is ready at once.

        Args:
            raster: Page base raster in unrotated space, or None
            rotation: Page rotation in degrees
        """
        if raster is None:
            self._background = None
            self._background_ready = True
            return

        scale = cover_scale(raster.width, raster.height, self._width, self._height, rotation)
        rotated = rotate_clockwise(raster.convert("RGBA"), rotation)
        scaled_w = max(1, int(round(rotated.width * scale)))
        scaled_h = max(1, int(round(rotated.height * scale)))
        if (scaled_w, scaled_h) != rotated.size:
            rotated = rotated.resize((scaled_w, scaled_h), Image.Resampling.BILINEAR)

        background = Image.new("RGBA", self.size, (0, 0, 0, 0))
        composite_at(
            background,
            rotated,
            (self._width - scaled_w) // 2,
            (self._height - scaled_h) // 2,
        )
        self._background = background
        self._background_ready = True
        logger.debug(
            f"Background set: raster {raster.size} rot={rotation} scale={scale:.3f} "
            f"on surface {self.size}"
        )

    def clear_background(self) -> None:
        """Remove the background (surface becomes transparent there)."""
        self._background = None
        self.background_color = None

    # ─────────────────────────────────────────────────────────────────────────
    # Rendering
    # ─────────────────────────────────────────────────────────────────────────

    def render(
        self,
        *,
        region: Optional[PixelRect] = None,
        below: Optional[SceneObject] = None,
        include_background: bool = True,
    ) -> Image.Image:
        """
        Render the surface (or a region of it) at 1:1 pixel scale.

        Args:
            region: Area to render in page coordinates (default: whole surface).
                Pixels outside the surface come back transparent.
            below: Only render objects beneath this one in z-order; the
                object itself is hidden
            include_background: Whether to draw the background

        Returns:
            RGBA image the size of region
        """
        region = region or self.bounds
        canvas = Image.new("RGBA", (region.width, region.height), (0, 0, 0, 0))
        offset = (-region.left, -region.top)

        if include_background:
            if self._background is not None:
                composite_at(canvas, self._background, *offset)
            elif self.background_color is not None:
                fill = Image.new("RGBA", self.size, self.background_color)
                composite_at(canvas, fill, *offset)

        objects = self._scene.objects if below is None else self._scene.objects_below(below)
        for obj in objects:
            draw_object(canvas, obj, offset=offset, decorations=self.decorations)

        return self._clip_to_surface(canvas, region)

    def _clip_to_surface(self, canvas: Image.Image, region: PixelRect) -> Image.Image:
        """Make pixels of region lying outside the surface transparent."""
        inside = (
            max(0, -region.left),
            max(0, -region.top),
            min(region.width, self._width - region.left),
            min(region.height, self._height - region.top),
        )
        if inside == (0, 0, region.width, region.height):
            return canvas
        clipped = Image.new("RGBA", canvas.size, (0, 0, 0, 0))
        if inside[2] > inside[0] and inside[3] > inside[1]:
            clipped.paste(canvas.crop(inside), inside[:2])
        return clipped
