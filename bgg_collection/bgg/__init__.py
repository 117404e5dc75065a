"""
BGG XML API client.

This module handles:
- Paced, retrying HTTP transport
- Polling for a user's owned collection
- Batched game detail fetching
- Normalization of XML responses
"""

from .cancellation import CancelToken
from .transport import PacedTransport, Throttle, default_throttle, create_session
from .collection import CollectionPoller
from .things import BatchDetailFetcher, chunk
from .parser import normalize_item, parse_things, parse_collection

__all__ = [
    "CancelToken",
    "PacedTransport",
    "Throttle",
    "default_throttle",
    "create_session",
    "CollectionPoller",
    "BatchDetailFetcher",
    "chunk",
    "normalize_item",
    "parse_things",
    "parse_collection",
]
