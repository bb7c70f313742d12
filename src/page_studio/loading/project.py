"""
Module: loading.project

Purpose:
    Load a project file (JSON page list) into a PageStore for batch
    export. Source paths are resolved relative to the project file and
    each source file is decoded once, however many of its pages are used.

    {"pages": [
        {"source": "a.pdf", "page": 1, "rotation": 90, "scene": {...}},
        {"blank": true, "width": 1240, "height": 1754}
    ]}

Key Functions:
    - load_project(): Project file -> PageStore

Key Classes:
    - ProjectError: Exception for unusable project files

Dependencies:
    - loading.decoder: Source rasterization
    - core.schemas: Project and scene validation

Used By:
    - cli: Batch export command
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from page_studio.config import EditorConfig
from page_studio.core.models.page import Page, SourceDocument
from page_studio.core.schemas.validator import ValidationError, validate_project, validate_scene
from page_studio.editor.page_store import PageStore, create_blank_page

from .decoder import DecodedPage, DecodeError, decode_source, read_source

logger = logging.getLogger(__name__)


class ProjectError(Exception):
    """Error loading a project file."""
    pass


def load_project(path: Path, *, config: Optional[EditorConfig] = None) -> PageStore:
    """
    Load a project file into a PageStore.

    Args:
        path: Project JSON file
        config: Render scale and blank page defaults

    Returns:
        PageStore with pages in project order

    Raises:
        ProjectError: If the file, a source or a scene is unusable
    """
    config = config or EditorConfig()
    path = Path(path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise ProjectError(f"Cannot read project {path}: {e}") from e

    try:
        validate_project(data)
    except ValidationError as e:
        raise ProjectError(f"Invalid project {path.name} at '{e.path}': {e}") from e

    decoded: Dict[Path, Tuple[SourceDocument, List[DecodedPage]]] = {}
    pages: List[Page] = []
    for i, entry in enumerate(data["pages"]):
        if entry.get("blank"):
            page = create_blank_page(config, entry.get("width"), entry.get("height"))
        else:
            page = _source_page(path.parent, entry, decoded, config)
        page.rotation = entry.get("rotation", 0)
        page.scene = _entry_scene(entry, i)
        pages.append(page)

    logger.info(f"Loaded project {path.name}: {len(pages)} page(s), {len(decoded)} source(s)")
    return PageStore(pages)


def _source_page(
    base: Path,
    entry: Dict[str, Any],
    decoded: Dict[Path, Tuple[SourceDocument, List[DecodedPage]]],
    config: EditorConfig,
) -> Page:
    source_path = (base / entry["source"]).resolve()
    if source_path not in decoded:
        try:
            source = read_source(source_path)
            decoded[source_path] = (source, decode_source(source, scale=config.render_scale))
        except DecodeError as e:
            raise ProjectError(str(e)) from e

    source, rendered = decoded[source_path]
    number = entry["page"]
    if number > len(rendered):
        raise ProjectError(f"{source.name} has {len(rendered)} page(s), project asks for page {number}")

    item = rendered[number - 1]
    return Page(item.image, item.width, item.height, source=source, source_page_number=number)


def _entry_scene(entry: Dict[str, Any], index: int) -> Optional[Dict[str, Any]]:
    scene = entry.get("scene")
    if scene is None:
        return None
    try:
        validate_scene(scene, strict=True)
    except ValidationError as e:
        raise ProjectError(f"Invalid scene on page {index + 1} at '{e.path}': {e}") from e
    return scene
