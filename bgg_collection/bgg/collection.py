"""
Polling for a user's owned collection.

BGG builds collection exports asynchronously: the first requests for a
user usually come back as ``202 Accepted`` with no body, and the caller has
to keep asking until the data is ready.
"""

import logging
import time
import xml.etree.ElementTree as ET
from typing import Callable, List, Optional

from ..config import BGG_BASE_URL, POLL_INITIAL_DELAY, POLL_MAX_ATTEMPTS, POLL_MAX_DELAY
from ..error_handling import CollectionTimeout, InvalidInput, ServiceUnavailable, UserNotFound
from .cancellation import CancelToken
from .parser import get_error_messages, parse_collection, parse_xml
from .transport import PacedTransport

logger = logging.getLogger(__name__)

STATUS_PROCESSING = 202


class CollectionPoller:
    """Fetches the ids of the board games a BGG user owns."""

    def __init__(self, transport: PacedTransport,
                 max_attempts: int = POLL_MAX_ATTEMPTS,
                 initial_delay: float = POLL_INITIAL_DELAY,
                 max_delay: float = POLL_MAX_DELAY,
                 sleep: Callable[[float], None] = time.sleep,
                 cancel_token: Optional[CancelToken] = None,
                 base_url: str = BGG_BASE_URL):
        self.transport = transport
        self.max_attempts = max_attempts
        self.initial_delay = initial_delay
        self.max_delay = max_delay
        self.base_url = base_url
        self.cancel_token = cancel_token
        self.sleep = sleep

    @property
    def _sleep(self) -> Callable[[float], None]:
        return self.cancel_token.sleep if self.cancel_token else self.sleep

    def fetch_owned_ids(self, username: str) -> List[int]:
        """
        Get the deduplicated ids of the board games ``username`` owns.

        Raises:
            UserNotFound: BGG does not know the username
            CollectionTimeout: BGG never finished preparing the collection
            ServiceUnavailable: any other persistent failure
        """
        username = username.strip()
        if not username:
            raise InvalidInput("Empty username")

        url = f"{self.base_url}/collection"
        params = {'username': username, 'own': 1, 'subtype': 'boardgame'}
        delay = self.initial_delay

        for attempt in range(1, self.max_attempts + 1):
            response = self.transport.send(url, params=params)

            if response.status_code == STATUS_PROCESSING:
                logger.info(f"BGG is preparing the collection for {username} "
                            f"(attempt {attempt}/{self.max_attempts})")
                if attempt < self.max_attempts:
                    self._sleep(delay)
                    delay = min(delay * 2, self.max_delay)
                continue

            if response.status_code == 404:
                raise UserNotFound(f"BGG returned 404 for user {username}")
            if not response.ok:
                raise ServiceUnavailable(f"BGG returned {response.status_code} for user {username}")

            return self._parse(response.content, username)

        raise CollectionTimeout(f"Collection for {username} not ready after {self.max_attempts} attempts")

    def _parse(self, content: bytes, username: str) -> List[int]:
        try:
            root = parse_xml(content)
        except ET.ParseError as e:
            raise ServiceUnavailable(f"Malformed collection XML for {username}: {e}") from e

        errors = get_error_messages(root)
        if errors:
            if any('invalid username' in message.lower() for message in errors):
                raise UserNotFound(errors[0])
            raise ServiceUnavailable("; ".join(errors))

        ids = parse_collection(content)
        logger.info(f"Found {len(ids)} owned board games for {username}")
        return ids
