"""
Paced HTTP transport for the BGG XML API.

BGG enforces an unwritten minimum interval between requests and answers
with intermittent 500/503 errors under load. Every request made by this
package goes through a Throttle, and transient failures are retried with
exponential backoff.
"""

import logging
import threading
import time
from typing import Callable, Optional, Dict, Any

import requests

from ..config import (
    BGG_API_TOKEN,
    MAX_RETRIES,
    MIN_REQUEST_INTERVAL,
    REQUEST_TIMEOUT,
    RETRY_INITIAL_BACKOFF,
    TRANSIENT_STATUS_CODES,
    USER_AGENT,
)
from ..error_handling import ServiceUnavailable
from .cancellation import CancelToken

logger = logging.getLogger(__name__)


class Throttle:
    """
    Owns the last-sent timestamp and enforces the minimum request interval.

    The lock is held across the wait, so two threads sharing one throttle
    can never both observe a stale timestamp and send together.
    """

    def __init__(self, min_interval: float = MIN_REQUEST_INTERVAL,
                 clock: Callable[[], float] = time.monotonic,
                 sleep: Callable[[float], None] = time.sleep):
        self.min_interval = min_interval
        self._clock = clock
        self._sleep = sleep
        self._lock = threading.Lock()
        self._last_sent_at: Optional[float] = None

    def wait(self, sleep: Optional[Callable[[float], None]] = None) -> float:
        """
        Block until a request may be sent and record the send time.

        Args:
            sleep: Optional override for the sleep function (e.g. a cancel token's)

        Returns:
            Seconds spent waiting
        """
        sleep = sleep or self._sleep
        with self._lock:
            waited = 0.0
            if self._last_sent_at is not None:
                waited = self.min_interval - (self._clock() - self._last_sent_at)
                if waited > 0:
                    logger.debug(f"Throttling: waiting {waited:.2f}s before next BGG request")
                    sleep(waited)
                else:
                    waited = 0.0
            self._last_sent_at = self._clock()
            return waited


_default_throttle: Optional[Throttle] = None
_default_throttle_lock = threading.Lock()


def default_throttle() -> Throttle:
    """Process-wide throttle shared by transports that are not given one."""
    global _default_throttle
    with _default_throttle_lock:
        if _default_throttle is None:
            _default_throttle = Throttle()
        return _default_throttle


def create_session(api_token: Optional[str] = BGG_API_TOKEN) -> requests.Session:
    """Build a requests session with the headers BGG expects."""
    session = requests.Session()
    session.headers.update({'User-Agent': USER_AGENT})
    if api_token:
        session.headers['Authorization'] = f"Bearer {api_token}"
    return session


class PacedTransport:
    """Sends GET requests through the throttle, retrying transient server errors."""

    def __init__(self, throttle: Optional[Throttle] = None,
                 session: Optional[requests.Session] = None,
                 max_retries: int = MAX_RETRIES,
                 initial_backoff: float = RETRY_INITIAL_BACKOFF,
                 sleep: Callable[[float], None] = time.sleep,
                 cancel_token: Optional[CancelToken] = None,
                 timeout: float = REQUEST_TIMEOUT):
        self.throttle = throttle or default_throttle()
        self.session = session or create_session()
        self.max_retries = max_retries
        self.initial_backoff = initial_backoff
        self.cancel_token = cancel_token
        self.timeout = timeout
        self.sleep = sleep

    @property
    def _sleep(self) -> Callable[[float], None]:
        return self.cancel_token.sleep if self.cancel_token else self.sleep

    @property
    def _throttle_sleep(self) -> Optional[Callable[[float], None]]:
        # None lets the throttle use its own sleep
        return self.cancel_token.sleep if self.cancel_token else None

    def send(self, url: str, params: Optional[Dict[str, Any]] = None) -> requests.Response:
        """
        Send a paced GET request.

        Transient statuses are retried up to ``max_retries`` times; when the
        budget runs out the last response is returned unchanged and the
        caller decides what it means. The body is never inspected here.

        Raises:
            ServiceUnavailable: if the connection itself keeps failing
            ImportCancelled: if the cancel token fires while waiting
        """
        backoff = self.initial_backoff
        attempt = 0

        while True:
            if self.cancel_token:
                self.cancel_token.check()
            self.throttle.wait(sleep=self._throttle_sleep)

            try:
                response = self.session.get(url, params=params, timeout=self.timeout)
            except requests.RequestException as e:
                if attempt >= self.max_retries:
                    logger.error(f"Giving up on {url} after {attempt + 1} attempts: {e}")
                    raise ServiceUnavailable(f"Request to {url} failed: {e}") from e
                logger.warning(f"Request error for {url} (attempt {attempt + 1}): {e}; "
                               f"retrying in {backoff:.1f}s")
            else:
                if response.status_code not in TRANSIENT_STATUS_CODES:
                    return response
                if attempt >= self.max_retries:
                    logger.warning(f"BGG still returning {response.status_code} for {url} "
                                   f"after {attempt + 1} attempts")
                    return response
                logger.warning(f"BGG returned {response.status_code} for {url} "
                               f"(attempt {attempt + 1}); retrying in {backoff:.1f}s")

            self._sleep(backoff)
            backoff *= 2
            attempt += 1
