# src/wg_sync/log.py
from __future__ import annotations

import logging


def setup_logging(level: str = "WARNING") -> logging.Logger:
    """
    Configure the root logger once for a command line run. Diagnostics go to
    stderr; command output stays on stdout.
    """
    numeric_level = getattr(logging, level.upper(), None)
    if not isinstance(numeric_level, int):
        raise ValueError(f"Invalid log level: {level}")

    logging.basicConfig(
        level=numeric_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    return logging.getLogger("wg_sync")
