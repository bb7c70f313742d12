"""
Core Models Package

Page, scene and annotation object models.

Scene objects are mutable: they live on the editing surface and are
moved, resized and restyled in place. Pages hold their scene only as a
serialized SceneDocument while inactive, which is what keeps the page
list the single source of truth across page switches.
"""

from .geometry import PixelRect, effective_dimensions, fit_scale, cover_scale
from .objects import (
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
)
from .scene import Scene, create_object, create_image_object
from .page import Page, SceneDocument, SourceDocument

__all__ = [
    "PixelRect",
    "effective_dimensions",
    "fit_scale",
    "cover_scale",
    "Arrow",
    "Direction",
    "FilledRect",
    "ImageObject",
    "MosaicRegion",
    "ObjectKind",
    "OutlinedRect",
    "Properties",
    "SceneObject",
    "StyleKey",
    "Text",
    "Scene",
    "create_object",
    "create_image_object",
    "Page",
    "SceneDocument",
    "SourceDocument",
]
