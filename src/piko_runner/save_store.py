"""
save_store.py: Persistence layer for high scores, achievements and settings.
Everything lives as one JSON blob under a single key.
"""

import json
import logging
import sqlite3

from .constants import DB_FILE, SAVE_KEY
from .data_models import SaveData

logger = logging.getLogger(__name__)


class SaveStore:
    """Handles all interaction with the SQLite key-value table."""
    def __init__(self, db_file: str = DB_FILE, key: str = SAVE_KEY):
        self.key = key
        self.conn = sqlite3.connect(db_file)
        self.setup()

    def setup(self):
        """Creates the table if it doesn't exist."""
        with self.conn:
            self.conn.execute("""
                CREATE TABLE IF NOT EXISTS KeyValue (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                )
            """)

    def read_raw(self):
        """Fetches the stored blob text, or None when nothing was saved yet."""
        row = self.conn.execute(
            "SELECT value FROM KeyValue WHERE key=?", (self.key,)).fetchone()
        return row[0] if row else None

    def write_raw(self, value: str):
        with self.conn:
            self.conn.execute(
                "INSERT OR REPLACE INTO KeyValue (key, value) VALUES (?, ?)", (self.key, value))

    def load(self) -> SaveData:
        """Returns the saved state. Missing or corrupt data yields defaults."""
        try:
            raw = self.read_raw()
            if raw is None:
                return SaveData()
            data = json.loads(raw)
            if not isinstance(data, dict):
                raise ValueError("save blob is not an object")
            return SaveData.from_dict(data)
        except (sqlite3.Error, ValueError, KeyError, TypeError, AttributeError, OverflowError) as e:
            logger.error("Error loading saved data, using defaults: %s", e)
            return SaveData()

    def save(self, data: SaveData) -> bool:
        """Writes the whole blob in one transaction. Failures are logged, not raised."""
        try:
            self.write_raw(json.dumps(data.to_dict(), ensure_ascii=False))
            return True
        except (sqlite3.Error, TypeError, ValueError) as e:
            logger.error("Error saving data: %s", e)
            return False

    def clear(self) -> bool:
        """Removes the stored blob."""
        try:
            with self.conn:
                self.conn.execute("DELETE FROM KeyValue WHERE key=?", (self.key,))
            return True
        except sqlite3.Error as e:
            logger.error("Error clearing saved data: %s", e)
            return False

    def close(self):
        self.conn.close()
