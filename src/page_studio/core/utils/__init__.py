"""
Utils Package

Scene serialization functions.
"""

from .serialization import (
    serialize_scene,
    deserialize_scene,
    serialize_object,
    deserialize_object,
    scene_documents_equal,
    image_to_data_url,
    image_from_data_url,
)

__all__ = [
    "serialize_scene",
    "deserialize_scene",
    "serialize_object",
    "deserialize_object",
    "scene_documents_equal",
    "image_to_data_url",
    "image_from_data_url",
]
