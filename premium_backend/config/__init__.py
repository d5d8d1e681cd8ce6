"""
Configuration module for the premium gift backend.

Provides centralized configuration loaded from the environment
(pydantic-settings) and the admin identity used by the default gate.
"""

from premium_backend.config.settings import AppSettings, get_settings

__all__ = [
    "AppSettings",
    "get_settings",
]
