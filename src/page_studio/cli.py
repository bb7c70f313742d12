"""
Module: cli

Purpose:
    Command-line entry point.

        page-studio export project.json -o merged.pdf
        page-studio inspect a.pdf b.pdf

Key Functions:
    - main(): Parse arguments and run a command; returns the exit code

Dependencies:
    - argparse (std)
    - loading.project / loading.decoder: Inputs
    - output.compositor: Export

Used By:
    - page-studio console script
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import List, Optional

from page_studio import __version__
from page_studio.config import EditorConfig
from page_studio.loading import ProjectError, import_files, load_project
from page_studio.output import ExportError, export_to_file
from page_studio.utils.logging_utils import configure_logging

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="page-studio",
        description="Assemble, annotate and export merged PDF documents.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--verbose", "-v", action="store_true", help="Log debug detail")
    parser.add_argument(
        "--scale", type=float, default=2.0, help="Render scale for source pages (default 2.0)"
    )
    commands = parser.add_subparsers(dest="command", required=True)

    export = commands.add_parser("export", help="Export a project file as one merged PDF")
    export.add_argument("project", type=Path, help="Project JSON file")
    export.add_argument("--output", "-o", type=Path, help="Output PDF (default edited_merged.pdf)")

    inspect = commands.add_parser("inspect", help="Decode PDFs and list their pages")
    inspect.add_argument("files", type=Path, nargs="+", help="PDF files")
    return parser


def _export(args: argparse.Namespace, config: EditorConfig) -> int:
    try:
        store = load_project(args.project, config=config)
        path = export_to_file(store, args.output, config=config)
    except (ProjectError, ExportError) as e:
        logger.error(str(e))
        return 1
    print(f"Wrote {len(store)} page(s) to {path}")
    return 0


def _inspect(args: argparse.Namespace, config: EditorConfig) -> int:
    result = import_files(args.files, config=config)
    for page in result.pages:
        print(f"{page.source.name} p{page.source_page_number}: {page.width}x{page.height}px")
    for error in result.errors:
        print(f"{error.name}: FAILED ({error})")
    return 0 if result.ok else 1


def main(argv: Optional[List[str]] = None) -> int:
    args = _build_parser().parse_args(argv)
    configure_logging(args.verbose)
    try:
        config = EditorConfig(render_scale=args.scale)
    except ValueError as e:
        logger.error(str(e))
        return 2

    if args.command == "export":
        return _export(args, config)
    return _inspect(args, config)


if __name__ == "__main__":
    raise SystemExit(main())
