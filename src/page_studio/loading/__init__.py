"""
Loading Package

PDF decoding into Pages and project file loading.
"""

from .decoder import (
    DecodedPage,
    DecodeError,
    ImportResult,
    decode_source,
    import_files,
    pages_from_source,
    read_source,
)
from .project import ProjectError, load_project

__all__ = [
    "DecodedPage",
    "DecodeError",
    "ImportResult",
    "decode_source",
    "import_files",
    "pages_from_source",
    "read_source",
    "ProjectError",
    "load_project",
]
