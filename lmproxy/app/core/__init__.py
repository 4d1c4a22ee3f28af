"""Core utilities for the proxy application."""

from lmproxy.app.core.config import settings
from lmproxy.app.core.logging import get_logger, setup_logging

__all__ = [
    "settings",
    "get_logger",
    "setup_logging",
]
