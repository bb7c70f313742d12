"""
Output Package

Merged PDF export: overlay compositing, placement and the PyMuPDF writer.
"""

from .compositor import ExportError, export_document, export_to_file, render_overlay
from .placement import Placement, overlay_placement
from .writer import PdfWriter

__all__ = [
    "ExportError",
    "export_document",
    "export_to_file",
    "render_overlay",
    "Placement",
    "overlay_placement",
    "PdfWriter",
]
