"""
Premium gift backend.

Issues premium access codes and trial gifts for the Discord bot and keeps the
developer notification feed.
"""

__version__ = "1.0.0"
