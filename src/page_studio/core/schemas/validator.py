"""
Schema Validation Utilities

Validates SceneDocument data before it is turned back into live objects,
and project files before a batch export.

- Basic structural checks always run (fast, precise error paths)
- `strict=True` additionally validates against scene.schema.json with
  jsonschema
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import jsonschema


SCENE_SCHEMA_VERSION = 1

OBJECT_TYPES = ("filled_rect", "outlined_rect", "arrow", "text", "image", "mosaic")

_SCHEMAS: dict[str, dict] = {}


def _load_schema(name: str) -> dict:
    """Load a schema from the schemas directory."""
    if name not in _SCHEMAS:
        schema_path = Path(__file__).parent / f"{name}.schema.json"
        if not schema_path.exists():
            raise FileNotFoundError(f"Schema not found: {schema_path}")
        with open(schema_path, "r", encoding="utf-8") as f:
            _SCHEMAS[name] = json.load(f)
    return _SCHEMAS[name]


class ValidationError(Exception):
    """Raised when data fails schema validation."""

    def __init__(self, message: str, path: str = "", errors: list[str] | None = None):
        super().__init__(message)
        self.path = path
        self.errors = errors or []


def validate_scene(data: Any, *, strict: bool = False) -> None:
    """
    Validate a SceneDocument.

    Args:
        data: Decoded SceneDocument
        strict: If True, also validate against the JSON schema

    Raises:
        ValidationError: If data is invalid
    """
    if not isinstance(data, dict):
        raise ValidationError(f"SceneDocument must be a dict, got {type(data).__name__}")

    missing = [f for f in ("version", "objects") if f not in data]
    if missing:
        raise ValidationError(
            f"Missing required fields: {missing}",
            errors=[f"Missing field: {f}" for f in missing],
        )

    version = data.get("version")
    if version != SCENE_SCHEMA_VERSION:
        raise ValidationError(
            f"Unsupported scene version: {version} (expected {SCENE_SCHEMA_VERSION})",
            path="version",
        )

    objects = data.get("objects")
    if not isinstance(objects, list):
        raise ValidationError("objects must be a list", path="objects")

    for i, record in enumerate(objects):
        _validate_object(record, f"objects[{i}]")

    if strict:
        try:
            jsonschema.validate(data, _load_schema("scene"))
        except jsonschema.ValidationError as e:
            raise ValidationError(
                f"Schema validation failed: {e.message}",
                path=".".join(str(p) for p in e.absolute_path),
                errors=[e.message],
            ) from e


def _validate_object(record: Any, path: str) -> None:
    """Validate one object record."""
    if not isinstance(record, dict):
        raise ValidationError("object record must be a dict", path=path)

    required = ["type", "id", "x", "y", "width", "height", "opacity"]
    missing = [f for f in required if f not in record]
    if missing:
        raise ValidationError(
            f"Object missing required fields: {missing}",
            path=path,
            errors=[f"Missing field: {f}" for f in missing],
        )

    kind = record["type"]
    if kind not in OBJECT_TYPES:
        raise ValidationError(f"Invalid object type: {kind!r}", path=f"{path}.type")

    for key in ("x", "y", "width", "height", "opacity"):
        value = record[key]
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValidationError(f"{key} must be a number: {value!r}", path=f"{path}.{key}")

    if kind == "mosaic":
        block = record.get("block_size")
        if isinstance(block, bool) or not isinstance(block, int) or not 1 <= block <= 100:
            raise ValidationError(
                f"Invalid block_size: {block!r} (must be integer 1-100)",
                path=f"{path}.block_size",
            )
    elif kind == "image":
        src = record.get("src")
        if not isinstance(src, str) or not src.startswith("data:image/png;base64,"):
            raise ValidationError("image src must be a PNG data URL", path=f"{path}.src")


def validate_project(data: Any) -> None:
    """
    Validate a project file against project.schema.json.

    Scenes embedded in the project are validated separately when loaded.

    Raises:
        ValidationError: If data is invalid
    """
    try:
        jsonschema.validate(data, _load_schema("project"))
    except jsonschema.ValidationError as e:
        raise ValidationError(
            f"Project validation failed: {e.message}",
            path=".".join(str(p) for p in e.absolute_path),
            errors=[e.message],
        ) from e
