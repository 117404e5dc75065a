"""
Cooperative cancellation for long-running imports.
"""

import logging
import threading

from ..error_handling import ImportCancelled

logger = logging.getLogger(__name__)


class CancelToken:
    """
    Lets a caller abort an import mid-poll or mid-batch.

    Every delay in the pipeline goes through ``sleep`` so that cancelling
    wakes the waiting thread immediately instead of letting a delayed send
    fire later.
    """

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        logger.info("Import cancellation requested")
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def check(self) -> None:
        if self._event.is_set():
            raise ImportCancelled()

    def sleep(self, seconds: float) -> None:
        if self._event.wait(timeout=max(seconds, 0)):
            raise ImportCancelled()
