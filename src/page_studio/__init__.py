"""Top-level package for Page Studio.

Provides subpackages:
- page_studio.core – page/scene models, serialization and schema validation
- page_studio.editor – raster surface, mosaic engine, page store and session controller
- page_studio.loading – PDF source decoding and project files
- page_studio.output – rotation-aware export compositor and PDF writer
"""

def _get_version() -> str:
    """Get version from pyproject.toml (dev) or importlib.metadata (installed)."""
    from pathlib import Path

    pyproject = Path(__file__).resolve().parent.parent.parent / "pyproject.toml"
    if pyproject.exists():
        try:
            content = pyproject.read_text()
            for line in content.splitlines():
                if line.strip().startswith("version"):
                    # Parse: version = "0.3.0"
                    return line.split("=")[1].strip().strip('"').strip("'")
        except OSError:
            pass

    # Fallback to importlib.metadata for installed package
    from importlib.metadata import PackageNotFoundError, version as pkg_version
    try:
        return pkg_version("page-studio")
    except PackageNotFoundError:
        return "0.0.0"

__version__ = _get_version()
__copyright__ = "Copyright 2026 Page Studio contributors. Licensed under the MIT License"
__all__: list[str] = ["__version__"]
