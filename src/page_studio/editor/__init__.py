"""
Editor Package

Live editing: the raster surface, mosaic baking, the page store and the
session controller that moves scenes between them.
"""

from .surface import RenderSurface
from .mosaic import bake, pixelate
from .bake_queue import BakeQueue
from .page_store import PageStore, PageNotFoundError, create_blank_page
from .session import CanvasSession, SessionState, SessionStateError

__all__ = [
    "RenderSurface",
    "bake",
    "pixelate",
    "BakeQueue",
    "PageStore",
    "PageNotFoundError",
    "create_blank_page",
    "CanvasSession",
    "SessionState",
    "SessionStateError",
]
