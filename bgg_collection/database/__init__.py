"""
Database module for the local game collection.

This module handles:
- Database schema creation and upgrades
- The record store the importer reconciles into
- Manual collection management (add, rename, played, tiers)
"""

from .models import create_database
from .operations import GameStore
from ..models import CollectionEntry

__all__ = [
    "CollectionEntry",
    "GameStore",
    "create_database",
]
