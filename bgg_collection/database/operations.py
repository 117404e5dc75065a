"""
Database operations for the local game collection.

GameStore is the record store the importer writes to: a flat ``games``
table keyed by a store-assigned local id. It also carries the everyday
collection management used by the CLI (adding games by hand, marking them
played, placing them on the tier board).
"""

import logging
import random
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import List, Optional, Dict, Any, Iterable, Tuple, Union

from pydantic import ValidationError

from ..config import TIERS
from ..error_handling import DuplicateGame, EntryNotFound, InvalidTier, StoreError, handle_errors
from ..models import CollectionEntry, TierUpdate
from .models import create_database

logger = logging.getLogger(__name__)

# Column names the store accepts in create/update field mappings,
# keyed by CollectionEntry attribute
COLUMNS = {
    'name': 'name',
    'external_id': 'bgg_id',
    'year_published': 'year_published',
    'min_players': 'min_players',
    'max_players': 'max_players',
    'playing_time': 'playing_time',
    'thumbnail_url': 'thumbnail_url',
    'played': 'played',
    'tier': 'tier',
    'tier_rank': 'tier_rank',
}

SELECT_ENTRY = """
    SELECT id, name, bgg_id, year_published, min_players, max_players,
           playing_time, thumbnail_url, played, tier, tier_rank, created_at
    FROM games
"""


def _row_to_entry(row: sqlite3.Row) -> CollectionEntry:
    return CollectionEntry(
        local_id=row['id'],
        name=row['name'],
        external_id=row['bgg_id'],
        year_published=row['year_published'],
        min_players=row['min_players'],
        max_players=row['max_players'],
        playing_time=row['playing_time'],
        thumbnail_url=row['thumbnail_url'],
        played=bool(row['played']),
        tier=row['tier'],
        tier_rank=row['tier_rank'],
        created_at=row['created_at'],
    )


def _to_columns(fields: Dict[str, Any]) -> Dict[str, Any]:
    unknown = set(fields) - set(COLUMNS)
    if unknown:
        raise StoreError(f"Unknown game fields: {', '.join(sorted(unknown))}")
    return {COLUMNS[key]: (int(value) if key == 'played' else value) for key, value in fields.items()}


class GameStore:
    """
    SQLite-backed store for the game collection.
    """

    def __init__(self, db_path: Union[Path, str]):
        """
        Initialize the store, creating the database if needed.

        Args:
            db_path: Path to the collection database
        """
        self.db_path = Path(db_path)
        create_database(str(self.db_path))

    @contextmanager
    def _connect(self):
        """
        Open a connection that commits on success and rolls back on error.

        SQLite failures other than constraint violations (which callers
        report themselves) are raised as StoreError.
        """
        try:
            conn = sqlite3.connect(str(self.db_path))
        except sqlite3.Error as e:
            raise StoreError(f"Could not open {self.db_path}: {e}") from e
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except sqlite3.IntegrityError:
            conn.rollback()
            raise
        except sqlite3.Error as e:
            conn.rollback()
            raise StoreError(f"Database error on {self.db_path}: {e}") from e
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    # Record store interface used by the importer

    def list_all(self) -> List[CollectionEntry]:
        """All games, oldest first."""
        with self._connect() as conn:
            rows = conn.execute(SELECT_ENTRY + " ORDER BY id ASC").fetchall()
        return [_row_to_entry(row) for row in rows]

    def get(self, local_id: int) -> CollectionEntry:
        with self._connect() as conn:
            row = conn.execute(SELECT_ENTRY + " WHERE id = ?", (local_id,)).fetchone()
        if row is None:
            raise EntryNotFound(local_id)
        return _row_to_entry(row)

    def create(self, fields: Dict[str, Any]) -> int:
        """
        Insert a game and return its local id.

        Args:
            fields: CollectionEntry attribute names mapped to values; ``name`` is required
        """
        if not fields.get('name'):
            raise StoreError("A game needs a name")
        columns = _to_columns(fields)
        names = ", ".join(columns)
        placeholders = ", ".join("?" for _ in columns)
        try:
            with self._connect() as conn:
                cursor = conn.execute(
                    f"INSERT INTO games ({names}) VALUES ({placeholders})",
                    list(columns.values()),
                )
                local_id = cursor.lastrowid
        except sqlite3.IntegrityError as e:
            raise StoreError(f"Could not create game {fields.get('name')!r}: {e}") from e
        logger.debug(f"Created game {local_id}: {fields.get('name')}")
        return local_id

    def update(self, local_id: int, fields: Dict[str, Any]) -> None:
        """
        Update some fields of one game.

        Raises:
            EntryNotFound: if no game has ``local_id``
        """
        if not fields:
            return
        columns = _to_columns(fields)
        assignments = ", ".join(f"{column} = ?" for column in columns)
        try:
            with self._connect() as conn:
                cursor = conn.execute(
                    f"UPDATE games SET {assignments}, last_updated = datetime('now') WHERE id = ?",
                    list(columns.values()) + [local_id],
                )
                if cursor.rowcount == 0:
                    raise EntryNotFound(local_id)
        except sqlite3.IntegrityError as e:
            raise StoreError(f"Could not update game {local_id}: {e}") from e

    def delete(self, local_id: int) -> None:
        with self._connect() as conn:
            cursor = conn.execute("DELETE FROM games WHERE id = ?", (local_id,))
            if cursor.rowcount == 0:
                raise EntryNotFound(local_id)
        logger.info(f"Deleted game {local_id}")

    # Collection management

    def _find_by_name(self, conn: sqlite3.Connection, name: str,
                      exclude_id: Optional[int] = None) -> Optional[sqlite3.Row]:
        query = "SELECT id FROM games WHERE lower(name) = lower(?)"
        params: List[Any] = [name]
        if exclude_id is not None:
            query += " AND id != ?"
            params.append(exclude_id)
        return conn.execute(query, params).fetchone()

    def add_game(self, name: str) -> int:
        """
        Add a game by hand. It stays unlinked until an import claims it by name.

        Raises:
            StoreError: if the name is blank
            DuplicateGame: if a game with the same name (any case) exists
        """
        name = name.strip()
        if not name:
            raise StoreError("Game name cannot be empty.")
        with self._connect() as conn:
            if self._find_by_name(conn, name):
                raise DuplicateGame(name)
            cursor = conn.execute("INSERT INTO games (name) VALUES (?)", (name,))
            local_id = cursor.lastrowid
        logger.info(f"Added game {local_id}: {name}")
        return local_id

    def rename_game(self, local_id: int, name: str) -> None:
        name = name.strip()
        if not name:
            raise StoreError("Game name cannot be empty.")
        with self._connect() as conn:
            if self._find_by_name(conn, name, exclude_id=local_id):
                raise DuplicateGame(name)
        self.update(local_id, {'name': name})

    def set_played(self, local_id: int, played: bool) -> None:
        self.update(local_id, {'played': played})

    def pick_random_game(self, prefer_unplayed: bool = False) -> Tuple[Optional[CollectionEntry], bool]:
        """
        Pick a random game to play.

        Args:
            prefer_unplayed: Pick among unplayed games when there are any

        Returns:
            Tuple of (picked game or None for an empty collection, whether the
            pick fell back to all games because none were unplayed)
        """
        games = self.list_all()
        if not games:
            return None, False

        unplayed = [game for game in games if not game.played]
        used_fallback = prefer_unplayed and not unplayed
        pool = unplayed if prefer_unplayed and unplayed else games
        return random.choice(pool), used_fallback

    def set_tier(self, local_id: int, tier: Optional[str]) -> None:
        """Place a game in a tier, or take it off the board with ``None``."""
        if tier is not None and tier not in TIERS:
            raise InvalidTier(f"Invalid tier {tier!r}; expected one of {', '.join(TIERS)}")
        self.update(local_id, {'tier': tier})

    def reorder_tiers(self, updates: Iterable[Dict[str, Any]]) -> int:
        """
        Apply a tier board arrangement in one transaction.

        Args:
            updates: Items with ``id``, ``tier`` and ``tier_rank``

        Returns:
            Number of games updated
        """
        try:
            validated = [TierUpdate.model_validate(update) for update in updates]
        except ValidationError as e:
            raise InvalidTier(str(e)) from e

        with self._connect() as conn:
            for update in validated:
                cursor = conn.execute(
                    "UPDATE games SET tier = ?, tier_rank = ?, last_updated = datetime('now') WHERE id = ?",
                    (update.tier, update.tier_rank, update.id),
                )
                if cursor.rowcount == 0:
                    raise EntryNotFound(update.id)
        logger.info(f"Reordered {len(validated)} games on the tier board")
        return len(validated)

    @handle_errors(default_return={})
    def get_statistics(self) -> dict:
        """
        Get statistics about the collection.

        Returns:
            Dictionary with statistics, or an empty dict on error
        """
        with self._connect() as conn:
            totals = conn.execute("""
                SELECT COUNT(*) AS total,
                       COALESCE(SUM(bgg_id IS NOT NULL), 0) AS linked,
                       COALESCE(SUM(played), 0) AS played
                FROM games
            """).fetchone()
            tier_rows = conn.execute(
                "SELECT tier, COUNT(*) AS count FROM games WHERE tier IS NOT NULL GROUP BY tier"
            ).fetchall()

        tiers = {tier: 0 for tier in TIERS}
        tiers.update({row['tier']: row['count'] for row in tier_rows})
        return {
            'total_games': totals['total'],
            'linked_to_bgg': totals['linked'],
            'manual_only': totals['total'] - totals['linked'],
            'played': totals['played'],
            'tiers': tiers,
        }
