"""
Serialization Utilities

Converts live Scenes to SceneDocuments and back.

A SceneDocument is a JSON-compatible dict:

    {"version": 1, "objects": [{"type": "filled_rect", "id": ..., ...}, ...]}

Objects appear in z-order (index 0 is the back). Only descriptive fields
are written: baked mosaic pixels are transient and are never included,
which is why every deserialized MosaicRegion comes back marked for
re-bake. Inserted images are embedded as PNG data URLs.
"""

from __future__ import annotations

import base64
import io
import json
from typing import Any, Callable, Dict

from PIL import Image

from ..models.objects import (
    DEFAULT_MOSAIC_OUTLINE,
    Arrow,
    FilledRect,
    ImageObject,
    MosaicRegion,
    ObjectKind,
    OutlinedRect,
    SceneObject,
    Text,
)
from ..models.page import SceneDocument
from ..models.scene import Scene
from ..schemas.validator import SCENE_SCHEMA_VERSION, validate_scene

PNG_DATA_URL_PREFIX = "data:image/png;base64,"


# ─────────────────────────────────────────────────────────────────────────────
# Image Encoding
# ─────────────────────────────────────────────────────────────────────────────

def image_to_data_url(image: Image.Image) -> str:
    """Encode an image as a PNG data URL."""
    buf = io.BytesIO()
    image.save(buf, format="PNG")
    return PNG_DATA_URL_PREFIX + base64.b64encode(buf.getvalue()).decode("ascii")


def image_from_data_url(src: str) -> Image.Image:
    """
    Decode a PNG data URL into an RGBA image.

    Raises:
        ValueError: If src is not a PNG data URL
    """
    if not src.startswith(PNG_DATA_URL_PREFIX):
        raise ValueError("expected a PNG data URL")
    raw = base64.b64decode(src[len(PNG_DATA_URL_PREFIX):])
    with Image.open(io.BytesIO(raw)) as img:
        return img.convert("RGBA")


# ─────────────────────────────────────────────────────────────────────────────
# Scene Serialization
# ─────────────────────────────────────────────────────────────────────────────

def serialize_object(obj: SceneObject) -> Dict[str, Any]:
    """
    Serialize one object to a tagged record.

    Args:
        obj: Scene object

    Returns:
        Dict with "type", the common fields and the variant fields
    """
    record: Dict[str, Any] = {
        "type": obj.kind.value,
        "id": obj.id,
        "x": obj.x,
        "y": obj.y,
        "width": obj.width,
        "height": obj.height,
        "opacity": obj.opacity,
    }
    if isinstance(obj, FilledRect):
        record["fill"] = obj.fill
    elif isinstance(obj, (OutlinedRect, Arrow)):
        record["stroke"] = obj.stroke
        record["stroke_width"] = obj.stroke_width
    elif isinstance(obj, Text):
        record["text"] = obj.text
        record["fill"] = obj.fill
        record["font_size"] = obj.font_size
    elif isinstance(obj, ImageObject):
        record["src"] = image_to_data_url(obj.image)
    elif isinstance(obj, MosaicRegion):
        record["block_size"] = obj.block_size
        record["outline"] = obj.outline
    return record


def serialize_scene(scene: Scene) -> SceneDocument:
    """
    Serialize a Scene to a SceneDocument.

    Args:
        scene: Live scene

    Returns:
        SceneDocument with objects in z-order
    """
    return {
        "version": SCENE_SCHEMA_VERSION,
        "objects": [serialize_object(obj) for obj in scene],
    }


def _common(record: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "x": record["x"],
        "y": record["y"],
        "width": record["width"],
        "height": record["height"],
        "opacity": record["opacity"],
        "id": record["id"],
    }


_BUILDERS: Dict[ObjectKind, Callable[[Dict[str, Any]], SceneObject]] = {
    ObjectKind.FILLED_RECT: lambda r: FilledRect(fill=r["fill"], **_common(r)),
    ObjectKind.OUTLINED_RECT: lambda r: OutlinedRect(
        stroke=r["stroke"], stroke_width=r["stroke_width"], **_common(r)
    ),
    ObjectKind.ARROW: lambda r: Arrow(
        stroke=r["stroke"], stroke_width=r["stroke_width"], **_common(r)
    ),
    ObjectKind.TEXT: lambda r: Text(
        text=r["text"], fill=r["fill"], font_size=r["font_size"], **_common(r)
    ),
    ObjectKind.IMAGE: lambda r: ImageObject(image=image_from_data_url(r["src"]), **_common(r)),
    ObjectKind.MOSAIC: lambda r: MosaicRegion(
        block_size=r["block_size"], outline=r.get("outline", DEFAULT_MOSAIC_OUTLINE), **_common(r)
    ),
}


def deserialize_object(record: Dict[str, Any]) -> SceneObject:
    """Rebuild one object from its tagged record."""
    return _BUILDERS[ObjectKind(record["type"])](record)


def deserialize_scene(data: SceneDocument, *, validate: bool = True) -> Scene:
    """
    Rebuild a Scene from a SceneDocument.

    Objects keep their order (z-order). Every MosaicRegion is returned
    with ``needs_bake`` set and no baked pixels.

    Args:
        data: SceneDocument
        validate: Whether to validate the document first

    Returns:
        New Scene with nothing selected

    Raises:
        ValidationError: If validate=True and data is invalid
    """
    if validate:
        validate_scene(data, strict=True)
    return Scene(deserialize_object(record) for record in data["objects"])


def scene_documents_equal(a: SceneDocument | None, b: SceneDocument | None) -> bool:
    """
    Structural equality of two SceneDocuments.

    Compares the canonical JSON encoding, so key order is irrelevant while
    object order is significant.
    """
    if a is None or b is None:
        return a is b
    return json.dumps(a, sort_keys=True) == json.dumps(b, sort_keys=True)
