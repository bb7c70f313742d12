"""
Module: config

Purpose:
    Configuration dataclass for the editor and export pipeline. Immutable
    configuration with validation on construction. Holds the defaults the
    editing surface, object factories and compositor share.

Key Classes:
    - EditorConfig: Main configuration for editing and exporting

Dependencies:
    - dataclasses (std)

Used By:
    - editor.session: Surface sizing, zoom and object defaults
    - editor.page_store: Blank page creation
    - loading.decoder: Render scale for source pages
    - output.compositor: Output filename
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Tuple


@dataclass(frozen=True)
class EditorConfig:
    """
    Configuration for editing and exporting documents (immutable).

    Attributes:
        render_scale: Upscale factor used when rasterizing source pages
        blank_width: Pixel width of a newly added blank page
        blank_height: Pixel height of a newly added blank page
        blank_color: Fill of a blank page's base raster
        fit_max_scale: Largest zoom ``fit_zoom`` will pick
        fit_fallback_scale: Zoom used when the fit computation degenerates
        workspace_margin: Pixels reserved around the surface when fitting
        min_zoom: Lower zoom bound
        max_zoom: Upper zoom bound
        shape_size: Width/height of new rectangles and arrows
        mosaic_size: (width, height) of a new mosaic region
        image_fraction: Largest share of the surface a new image may cover
        image_offset: Step between images inserted together
        mosaic_outline: Editing-only outline color of mosaic regions
        default_text: Content of a new text object
        preset_colors: Swatches offered for the color property
        output_filename: Default name for exported documents

    Example:
        >>> config = EditorConfig(render_scale=1.5)
        >>> config.blank_width
        1240
    """

    # Source rendering
    render_scale: float = 2.0

    # Blank pages
    blank_width: int = 1240
    blank_height: int = 1754
    blank_color: str = "white"

    # Zoom
    fit_max_scale: float = 0.9
    fit_fallback_scale: float = 0.5
    workspace_margin: int = 60
    min_zoom: float = 0.1
    max_zoom: float = 5.0

    # Object defaults
    shape_size: int = 200
    mosaic_size: Tuple[int, int] = (200, 120)
    image_fraction: float = 0.4
    image_offset: int = 20
    mosaic_outline: str = "#3b82f6"
    default_text: str = "Text"
    preset_colors: Tuple[str, ...] = field(
        default=("#ef4444", "#3b82f6", "#22c55e", "#000000", "#ffffff", "#eab308", "#64748b")
    )

    # Output
    output_filename: str = "edited_merged.pdf"

    def __post_init__(self) -> None:
        """Validate configuration on construction."""
        if self.render_scale <= 0:
            raise ValueError(f"render_scale must be positive: {self.render_scale}")
        if self.blank_width <= 0 or self.blank_height <= 0:
            raise ValueError(
                f"blank page size must be positive: {self.blank_width}x{self.blank_height}"
            )
        if not 0 < self.min_zoom <= self.max_zoom:
            raise ValueError(f"invalid zoom range: {self.min_zoom}..{self.max_zoom}")
        if not 0 < self.image_fraction <= 1:
            raise ValueError(f"image_fraction must be in (0, 1]: {self.image_fraction}")
        if self.fit_fallback_scale <= 0:
            raise ValueError(f"fit_fallback_scale must be positive: {self.fit_fallback_scale}")
