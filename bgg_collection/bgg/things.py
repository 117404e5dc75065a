"""
Batched fetching of game details from the BGG ``/thing`` endpoint.
"""

import logging
import time
import xml.etree.ElementTree as ET
from typing import Callable, List, Optional, Sequence, TypeVar

from ..config import BATCH_DELAY, BGG_BASE_URL, DETAIL_BATCH_SIZE
from ..error_handling import DetailFetchFailed, ServiceUnavailable
from ..models import ImportedRecord
from .cancellation import CancelToken
from .parser import parse_things
from .transport import PacedTransport

logger = logging.getLogger(__name__)

T = TypeVar('T')


def chunk(items: Sequence[T], size: int) -> List[List[T]]:
    """Split items into consecutive groups of at most ``size``."""
    if size < 1:
        raise ValueError("Batch size must be positive")
    return [list(items[i:i + size]) for i in range(0, len(items), size)]


class BatchDetailFetcher:
    """
    Fetches game details in fixed-size batches, one request at a time.

    Batches are never sent in parallel; on top of the transport's own
    throttle an extra delay separates consecutive batches.
    """

    def __init__(self, transport: PacedTransport,
                 batch_size: int = DETAIL_BATCH_SIZE,
                 batch_delay: float = BATCH_DELAY,
                 sleep: Callable[[float], None] = time.sleep,
                 cancel_token: Optional[CancelToken] = None,
                 base_url: str = BGG_BASE_URL):
        self.transport = transport
        self.batch_size = batch_size
        self.batch_delay = batch_delay
        self.base_url = base_url
        self.cancel_token = cancel_token
        self.sleep = sleep

    @property
    def _sleep(self) -> Callable[[float], None]:
        return self.cancel_token.sleep if self.cancel_token else self.sleep

    def fetch_details(self, ids: Sequence[int],
                      on_batch: Optional[Callable[[int, int], None]] = None) -> List[ImportedRecord]:
        """
        Fetch and normalize details for every id.

        Args:
            ids: BGG ids to fetch
            on_batch: Called with (batch number, total batches) before each request

        Raises:
            DetailFetchFailed: a batch returned a non-success status or bad XML;
                records from earlier batches are attached to the error
        """
        if not ids:
            return []

        batches = chunk(ids, self.batch_size)
        records: List[ImportedRecord] = []

        for index, batch in enumerate(batches):
            if on_batch:
                on_batch(index + 1, len(batches))
            logger.info(f"Fetching game details (batch {index + 1} of {len(batches)}, {len(batch)} ids)")

            records.extend(self._fetch_batch(batch, index, records))

            if index < len(batches) - 1:
                self._sleep(self.batch_delay)

        logger.info(f"Fetched details for {len(records)} games in {len(batches)} batches")
        return records

    def _fetch_batch(self, batch: List[int], index: int,
                     fetched: List[ImportedRecord]) -> List[ImportedRecord]:
        url = f"{self.base_url}/thing"
        params = {'id': ",".join(str(i) for i in batch), 'stats': 1}
        try:
            response = self.transport.send(url, params=params)
        except ServiceUnavailable as e:
            raise DetailFetchFailed(f"Batch {index + 1} failed: {e}",
                                    partial_records=fetched, batch_index=index) from e

        if not response.ok:
            raise DetailFetchFailed(f"Batch {index + 1} returned {response.status_code}",
                                    partial_records=fetched, batch_index=index)
        try:
            return parse_things(response.content)
        except ET.ParseError as e:
            raise DetailFetchFailed(f"Batch {index + 1} returned malformed XML: {e}",
                                    partial_records=fetched, batch_index=index) from e
