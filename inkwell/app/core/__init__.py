"""Core utilities for the blog service."""

from inkwell.app.core.config import settings
from inkwell.app.core.logging import get_logger, setup_logging

__all__ = [
    "settings",
    "get_logger",
    "setup_logging",
]
