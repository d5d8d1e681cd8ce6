"""
Utility modules for the premium gift backend.

This package contains shared utilities used across the application:
- logging_config: Named structured loggers
- clock: UTC time helpers and the injectable clock type
"""

from premium_backend.utils.clock import Clock, from_iso, to_iso, utcnow
from premium_backend.utils.logging_config import get_logger, init_logging

__all__ = [
    "Clock",
    "from_iso",
    "to_iso",
    "utcnow",
    "get_logger",
    "init_logging",
]
