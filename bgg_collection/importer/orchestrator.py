"""
Import orchestrator: BGG username in, reconciled collection out.

Sequence for one username: poll the owned collection, fetch details in
paced batches, then reconcile every fetched record into the store at once.
If a later batch fails, the records from the batches before it are still
reconciled before the failure is raised.
"""

import logging
import time
from typing import Callable, Optional

from ..bgg import BatchDetailFetcher, CancelToken, CollectionPoller, PacedTransport, chunk
from ..error_handling import CollectionImportError, DetailFetchFailed, InvalidInput, StoreError, describe_failure
from ..models import ImportResult, ImportSummary
from .reconcile import Reconciler

logger = logging.getLogger(__name__)


class CollectionImporter:
    """Imports one BGG user's owned board games into a GameStore."""

    def __init__(self, store, poller: Optional[CollectionPoller] = None,
                 fetcher: Optional[BatchDetailFetcher] = None,
                 cancel_token: Optional[CancelToken] = None):
        """
        Args:
            store: Record store (``list_all``, ``create``, ``update``)
            poller: Collection poller; built on a default transport when omitted
            fetcher: Detail fetcher; built on the same transport when omitted
            cancel_token: Lets another thread abort the import. It is also
                handed to a supplied poller, fetcher and their transports
                when they have no token of their own.
        """
        self.store = store
        self.cancel_token = cancel_token
        if poller is None or fetcher is None:
            transport = PacedTransport(cancel_token=cancel_token)
            poller = poller or CollectionPoller(transport, cancel_token=cancel_token)
            fetcher = fetcher or BatchDetailFetcher(transport, cancel_token=cancel_token)
        self.poller = poller
        self.fetcher = fetcher
        self.reconciler = Reconciler(store)

        if cancel_token:
            components = (poller, fetcher, getattr(poller, 'transport', None), getattr(fetcher, 'transport', None))
            for component in components:
                if component is not None and getattr(component, 'cancel_token', None) is None:
                    component.cancel_token = cancel_token

    def import_collection(self, username: str,
                          on_batch: Optional[Callable[[int, int], None]] = None) -> ImportSummary:
        """
        Import the collection of ``username``.

        Raises:
            CollectionImportError: one of its subclasses, describing the failure
        """
        username = (username or "").strip()
        if not username:
            raise InvalidInput("Blank username")

        logger.info(f"Starting BGG import for {username}")
        ids = self.poller.fetch_owned_ids(username)
        if not ids:
            logger.info(f"{username} owns no board games on BGG; nothing to import")
            return ImportSummary()

        batch_count = len(chunk(ids, self.fetcher.batch_size))
        try:
            records = self.fetcher.fetch_details(ids, on_batch=on_batch)
        except DetailFetchFailed as e:
            if e.partial_records:
                result = self.reconciler.reconcile(self.store.list_all(), e.partial_records)
                logger.warning(f"Detail fetch failed for {username}; kept {len(e.partial_records)} "
                               f"records from earlier batches ({result.created} created, "
                               f"{result.updated} updated)")
            raise

        if self.cancel_token:
            self.cancel_token.check()
        result = self.reconciler.reconcile(self.store.list_all(), records)

        summary = ImportSummary(created=result.created, updated=result.updated, batch_count=batch_count)
        logger.info(f"Import for {username} finished: {summary.created} created, "
                    f"{summary.updated} updated, {summary.batch_count} batches")
        return summary

    def run(self, username: str,
            on_batch: Optional[Callable[[int, int], None]] = None) -> ImportResult:
        """
        Import and report the outcome as an ImportResult instead of raising.

        Failures become a single user-facing ``error_message``; nothing
        already written to the store is rolled back.
        """
        start = time.time()
        username = (username or "").strip()
        try:
            summary = self.import_collection(username, on_batch=on_batch)
        except (CollectionImportError, StoreError) as e:
            logger.error(f"Import for {username or '<blank>'} failed: {e}")
            return ImportResult(
                username=username,
                success=False,
                error_message=describe_failure(e),
                processing_time=time.time() - start,
            )

        return ImportResult(
            username=username,
            success=True,
            created=summary.created,
            updated=summary.updated,
            batch_count=summary.batch_count,
            processing_time=time.time() - start,
        )
