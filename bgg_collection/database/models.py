import logging
import os
import sqlite3

logger = logging.getLogger(__name__)


def create_database(db_path="bgg_collection.db"):
    """Create the database and tables for the game collection."""

    # Ensure database directory exists (only if path contains directory)
    db_dir = os.path.dirname(str(db_path))
    if db_dir:
        os.makedirs(db_dir, exist_ok=True)

    conn = sqlite3.connect(str(db_path))
    try:
        cursor = conn.cursor()

        # bgg_id is NULL for games entered by hand until an import links them
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS games (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                bgg_id INTEGER UNIQUE,
                name TEXT NOT NULL,
                year_published INTEGER,
                min_players INTEGER,
                max_players INTEGER,
                playing_time INTEGER,
                thumbnail_url TEXT,
                played INTEGER NOT NULL DEFAULT 0,
                tier TEXT,       -- S, A, B, C, D or NULL when unranked
                tier_rank INTEGER,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                last_updated TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

        # Add missing columns to existing databases if they don't exist
        columns_to_add = [
            ("thumbnail_url", "TEXT"),
            ("tier", "TEXT"),
            ("tier_rank", "INTEGER"),
            ("last_updated", "TIMESTAMP"),
        ]
        cursor.execute("PRAGMA table_info(games)")
        existing_columns = {row[1] for row in cursor.fetchall()}
        for column_name, column_def in columns_to_add:
            if column_name not in existing_columns:
                cursor.execute(f"ALTER TABLE games ADD COLUMN {column_name} {column_def}")
                logger.info(f"Added {column_name} column to existing database")

        conn.commit()
    finally:
        conn.close()
    logger.info(f"Database ready at {db_path}")


if __name__ == "__main__":
    create_database()
