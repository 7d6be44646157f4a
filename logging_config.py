"""
Logging Configuration

Centralized logging setup for the orbit footprint project.

Library modules under ``orbit_footprint`` only create loggers with
``logging.getLogger(__name__)`` and never install handlers. Entry points such
as ``demo.py`` call ``configure_logging`` once. Per-instant messages from the
propagator and sampler (skipped instants, failure reasons) are logged at
DEBUG under the ``orbit_footprint`` logger, so a sampling sweep stays quiet
unless that logger is turned up separately.

Usage:
    from logging_config import configure_logging, get_logger

    configure_logging(package_level=logging.DEBUG)
    logger = get_logger(__name__)
    logger.info("Sampled 360 trajectory points")
    logger.warning("No valid samples; the object may have decayed")
    logger.error("Could not load element set")
"""

import logging
import sys
from typing import List, Optional

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
PACKAGE_LOGGER = "orbit_footprint"


def configure_logging(level: int = logging.INFO,
                      log_file: Optional[str] = None,
                      package_level: Optional[int] = None) -> None:
    """
    Install console (and optional file) handlers on the root logger.

    Calling again replaces the previous handlers.

    Parameters
    ----------
    level : int
        Root logging level
    log_file : str, optional
        Also write records to this file
    package_level : int, optional
        Separate level for the ``orbit_footprint`` package loggers; defaults
        to ``level``
    """
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
        handlers=handlers,
        force=True,
    )
    logging.getLogger(PACKAGE_LOGGER).setLevel(level if package_level is None else package_level)


def get_logger(name: str) -> logging.Logger:
    """Named logger; pass ``__name__``."""
    return logging.getLogger(name)
