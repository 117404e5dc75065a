from pathlib import Path
from typing import Dict, List, Optional, Tuple, Any

import pytest
import requests

from bgg_collection.bgg import PacedTransport, Throttle
from bgg_collection.database import GameStore


def make_response(status: int, body: str = "") -> requests.Response:
    response = requests.Response()
    response.status_code = status
    response._content = body.encode("utf-8")
    return response


class FakeSession:
    """Stands in for requests.Session, replaying scripted responses in order."""

    def __init__(self, responses: Optional[List[Any]] = None):
        self.responses = list(responses or [])
        self.calls: List[Tuple[str, Dict[str, Any]]] = []

    def queue(self, *responses: Any) -> None:
        self.responses.extend(responses)

    def get(self, url, params=None, timeout=None):
        self.calls.append((url, dict(params or {})))
        if not self.responses:
            raise AssertionError(f"Unexpected request to {url}")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


class FakeClock:
    """Monotonic clock that only moves when something sleeps on it."""

    def __init__(self, start: float = 1000.0):
        self.now = start
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


def collection_xml(*items: Tuple[Any, str]) -> str:
    rows = "".join(
        f'<item objecttype="thing" objectid="{object_id}" subtype="{subtype}">'
        f'<name sortindex="1">Game {object_id}</name></item>'
        for object_id, subtype in items
    )
    return f'<?xml version="1.0" encoding="utf-8"?><items totalitems="{len(items)}">{rows}</items>'


def thing_item(game_id: Any, name: Optional[str] = None, year: Any = 2000,
               thumbnail: Optional[str] = None) -> str:
    name_xml = f'<name type="primary" sortindex="1" value="{name}"/>' if name else ""
    thumb_xml = f"<thumbnail>{thumbnail}</thumbnail>" if thumbnail else ""
    return (
        f'<item type="boardgame" id="{game_id}">{thumb_xml}{name_xml}'
        f'<yearpublished value="{year}"/><minplayers value="2"/>'
        f'<maxplayers value="4"/><playingtime value="60"/></item>'
    )


def things_xml(*items: str) -> str:
    return f'<?xml version="1.0" encoding="utf-8"?><items>{"".join(items)}</items>'


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def transport(session: FakeSession, clock: FakeClock) -> PacedTransport:
    throttle = Throttle(min_interval=5.0, clock=clock, sleep=clock.sleep)
    return PacedTransport(throttle=throttle, session=session, sleep=clock.sleep)


@pytest.fixture
def store(tmp_path: Path) -> GameStore:
    return GameStore(tmp_path / "games.db")
