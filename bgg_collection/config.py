"""
Configuration settings for the BGG collection importer.
"""

import os
from pathlib import Path

# Project paths
PROJECT_ROOT = Path(__file__).parent.parent  # Go up one level to workspace root
DATABASE_PATH = Path(os.environ.get("BGG_COLLECTION_DB", PROJECT_ROOT / "bgg_collection.db"))
# Logs directory for per-run logs
LOGS_DIR = PROJECT_ROOT / "bgg_collection_cache" / "logs"

# BGG XML API 2
BGG_BASE_URL = os.environ.get("BGG_BASE_URL", "https://boardgamegeek.com/xmlapi2")
# BGG requires a registered application token for XML API access
BGG_API_TOKEN = os.environ.get("BGG_API_TOKEN")
USER_AGENT = os.environ.get("BGG_USER_AGENT", "bgg-collection/0.1 (+https://boardgamegeek.com)")
REQUEST_TIMEOUT = 30  # seconds per HTTP request

# Pacing: minimum seconds between any two requests to BGG, process-wide
MIN_REQUEST_INTERVAL = float(os.environ.get("BGG_MIN_REQUEST_INTERVAL", "5.0"))

# Retry policy for transient server errors
TRANSIENT_STATUS_CODES = frozenset({500, 503})
MAX_RETRIES = 5  # additional attempts after the first
RETRY_INITIAL_BACKOFF = 1.0  # seconds, doubled each attempt

# Collection polling (BGG answers 202 while it prepares the collection)
POLL_MAX_ATTEMPTS = 8
POLL_INITIAL_DELAY = 1.5  # seconds, doubled each attempt
POLL_MAX_DELAY = 12.0

# Detail fetching
DETAIL_BATCH_SIZE = 20
BATCH_DELAY = 5.0  # extra seconds between consecutive detail batches

# Tier board
TIERS = ("S", "A", "B", "C", "D")
