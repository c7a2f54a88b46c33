"""
Command-line interface for TripNav
"""

from .app import app

__all__ = ["app"]
