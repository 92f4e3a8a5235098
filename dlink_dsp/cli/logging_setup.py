"""
Logging Configuration Module

This module provides logging setup for the D-Link DSP CLI application.
"""

import logging
import sys

_logging_configured = False


def setup_logging(debug: bool = False, quiet: bool = False) -> None:
    """
    Configure logging for the CLI application.

    Args:
        debug: If True, enable debug-level logging
        quiet: If True, only show warnings and errors
    """
    global _logging_configured

    # Only configure logging once
    if _logging_configured:
        return

    _logging_configured = True

    if debug:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    else:
        level = logging.INFO

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)

    if debug:
        formatter = logging.Formatter(
            "%(asctime)s - %(levelname)s - %(name)s - %(funcName)s:%(lineno)d - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    else:
        formatter = logging.Formatter(
            "%(asctime)s - %(levelname)s - %(name)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    console_handler.setFormatter(formatter)

    logging.basicConfig(level=level, handlers=[console_handler], force=True)

    # HTTP libraries stay quiet unless debugging
    if not debug:
        logging.getLogger("urllib3").setLevel(logging.WARNING)
        logging.getLogger("requests").setLevel(logging.WARNING)
        logging.getLogger("urllib3.connectionpool").setLevel(logging.ERROR)
    else:
        logging.getLogger("urllib3").setLevel(logging.DEBUG)
        logging.getLogger("requests").setLevel(logging.DEBUG)
        logging.getLogger("dlink-dsp").setLevel(logging.DEBUG)

    logger = logging.getLogger(__name__)
    logger.debug(f"Logging configured: level={logging.getLevelName(level)}, debug={debug}")
