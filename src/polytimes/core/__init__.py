"""Core utilities: logging, exceptions, dependencies."""

from polytimes.core.exceptions import PolyTimesError
from polytimes.core.logging import get_logger, setup_logging

__all__ = [
    "PolyTimesError",
    "get_logger",
    "setup_logging",
]
