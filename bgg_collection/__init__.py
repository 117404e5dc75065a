"""
BGG Collection Package - import a BoardGameGeek collection into a local store.

This package provides:
1. A paced, retrying client for the BGG XML API
2. Reconciliation of imported games with games entered by hand
3. A small SQLite-backed collection with played flags and tiers
"""

__version__ = "0.1.0"

# Main package imports for convenience
from .database import GameStore
from .importer import CollectionImporter, Reconciler
from .models import ImportedRecord, CollectionEntry, ImportResult, ImportSummary
from .logging_config import setup_logging

__all__ = [
    "GameStore",
    "CollectionImporter",
    "Reconciler",
    "ImportedRecord",
    "CollectionEntry",
    "ImportResult",
    "ImportSummary",
    "setup_logging",
]
