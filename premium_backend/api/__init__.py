"""
API routers.

All routers are mounted under ``/api`` by ``premium_backend.main``.
"""

from premium_backend.api import gifts, notifications, trials

__all__ = ["gifts", "notifications", "trials"]
