"""Lightweight logging setup for applications embedding TopSecret."""

import logging
import sys
from typing import Optional, TextIO


def configure_logging(level: int = logging.INFO, stream: Optional[TextIO] = None) -> logging.Logger:
    # Configure root logger once; keep output simple for terminals.
    logging.basicConfig(
        level=level,
        format="[%(asctime)s] %(levelname)s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
        stream=stream or sys.stderr,
    )
    package_logger = logging.getLogger("topsecret")
    package_logger.setLevel(level)
    return package_logger
