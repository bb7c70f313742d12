"""
Page Studio Core Package

Shared data models, serialization and schema validation.

1. **Scenes are live, pages are data**
   - The active page's scene exists as mutable SceneObjects
   - Every other page keeps a serialized SceneDocument only

2. **Derived pixels are never stored**
   - Mosaic regions persist their descriptor, not their baked image
   - Deserialized mosaics always come back marked for re-bake

3. **One rotation rule**
   - effective_dimensions() is the only width/height swap, used by both
     the editing surface and the export compositor
"""

from .models import Page, Scene, SceneDocument, SourceDocument
from .utils import serialize_scene, deserialize_scene

__all__ = [
    "Page",
    "Scene",
    "SceneDocument",
    "SourceDocument",
    "serialize_scene",
    "deserialize_scene",
]
