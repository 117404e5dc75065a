"""
Importing BGG collections into the local store.
"""

from .reconcile import Reconciler
from .orchestrator import CollectionImporter

__all__ = [
    "Reconciler",
    "CollectionImporter",
]
