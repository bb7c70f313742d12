"""
Schemas Package

JSON schema definitions and validation for SceneDocuments and project files.
"""

from .validator import (
    validate_scene,
    validate_project,
    ValidationError,
    SCENE_SCHEMA_VERSION,
)

__all__ = [
    "validate_scene",
    "validate_project",
    "ValidationError",
    "SCENE_SCHEMA_VERSION",
]
