"""
Command-line interface for the BGG collection package.

This module provides CLI commands for:
- Importing a BGG user's collection
- Listing and editing games by hand
- Tier placement and statistics
"""

from .main import main

__all__ = [
    "main",
]
