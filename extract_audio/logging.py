"""
extract_audio.logging - The "extract_audio" logger and its setup.

Every skipped row, failed write, fallback name and collision rename is logged
at DEBUG, and so is the cause of an aborted run. `extract --debug` switches the
logger to DEBUG to list them one by one; otherwise only warnings get through
and the CLI summary table carries the counts.
"""

from __future__ import annotations

import logging

logger = logging.getLogger("extract_audio")


def configure_logging(verbose: bool = False) -> None:
    """Set up root handlers and the package logger level for one CLI run.

    Args:
        verbose: True for `--debug`, listing every per-row diagnostic
    """
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s",
    )
    logger.setLevel(level)
