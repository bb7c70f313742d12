"""
Logging setup for the command line.
"""
from __future__ import annotations

import logging
import sys

LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


def configure_logging(verbose: bool = False) -> None:
    """
    Configure the root logger for command-line use.

    Args:
        verbose: Log DEBUG detail instead of INFO
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=LOG_FORMAT,
        datefmt="%H:%M:%S",
        stream=sys.stderr,
        force=True,
    )
    # Pillow's PNG plugin is chatty at DEBUG
    logging.getLogger("PIL").setLevel(logging.INFO)
