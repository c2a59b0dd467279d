# Author: PB
# Maintainer: PB
# Original date: 2026.10.17
# License: (c) HRDAG, 2026, GPL-2 or newer
#
# ------
# src/snaptrail/logging/setup.py

"""loguru configuration for the CLI."""

import sys
from typing import Optional

from loguru import logger


def setup_logging(verbose: bool = False, log_file: Optional[str] = None):
    """Replace loguru's default sink.

    Logs go to stderr so that command output on stdout stays parseable.
    """
    logger.remove()
    log_level = "DEBUG" if verbose else "INFO"

    if verbose:
        # Verbose mode: include module and line number
        logger.add(
            sys.stderr,
            level=log_level,
            format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | {name}:{line} | <level>{message}</level>"
        )
    else:
        logger.add(
            sys.stderr,
            level=log_level,
            format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <level>{message}</level>"
        )

    if log_file:
        logger.add(
            log_file,
            level="DEBUG",
            format="{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{line} | {message}",
            rotation="10 MB",
            retention=5,
        )
