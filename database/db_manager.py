import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterator, List, Union

from core.entries import Entry, format_stored_secret, parse_stored_secret
from core.errors import StorageError
from database.setup_database import setup_database

logger = logging.getLogger(__name__)


class EntryDatabase:
    """
    SQLite persistence for entry metadata.

    Secrets are stored in their persisted string form (inline Base32 or a
    "SecretStorage:<name>" reference); the database never talks to secure
    storage itself. Every sqlite3 error is raised as core.errors.StorageError.
    """

    def __init__(self, database_path: Union[str, Path]):
        self.database_path = Path(database_path)

    def get_db_connection(self) -> sqlite3.Connection:
        """Connect to the database, creating it on first use"""
        if not self.database_path.exists():
            setup_database(self.database_path)
        conn = sqlite3.connect(self.database_path)
        conn.row_factory = sqlite3.Row  # rows behave like dictionaries
        return conn

    @contextmanager
    def _session(self) -> Iterator[sqlite3.Connection]:
        conn = None
        try:
            conn = self.get_db_connection()
            yield conn
        except sqlite3.Error as e:
            logger.error("Database error in %s: %s", self.database_path, e)
            raise StorageError(str(self.database_path), str(e)) from e
        finally:
            if conn is not None:
                conn.close()

    @staticmethod
    def _row_to_entry(row: sqlite3.Row) -> Entry:
        return Entry(
            id=row['id'],
            name=row['name'],
            secret=parse_stored_secret(row['secret']),
            digits=row['digits'],
            period=row['period'],
        )

    def load_all(self) -> List[Entry]:
        """Every entry, in ascending id order"""
        with self._session() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT id, name, secret, digits, period FROM entries ORDER BY id")
            return [self._row_to_entry(row) for row in cursor.fetchall()]

    def insert(self, entry: Entry) -> int:
        """Insert a new row; entry.id is ignored. Returns the assigned id."""
        with self._session() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """INSERT INTO entries (name, secret, digits, period)
                   VALUES (?, ?, ?, ?)""",
                (entry.name, format_stored_secret(entry.secret), entry.digits, entry.period)
            )
            conn.commit()
            new_id = cursor.lastrowid
        logger.debug("Inserted entry %d (%s)", new_id, entry.name)
        return new_id

    def update(self, entry: Entry) -> bool:
        """Replace every field of the row with entry.id. False if no such row."""
        with self._session() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """UPDATE entries
                   SET name = ?, secret = ?, digits = ?, period = ?, updated_at = ?
                   WHERE id = ?""",
                (
                    entry.name,
                    format_stored_secret(entry.secret),
                    entry.digits,
                    entry.period,
                    datetime.now().strftime('%Y-%m-%d %H:%M:%S'),
                    entry.id,
                )
            )
            conn.commit()
            return cursor.rowcount > 0

    def delete(self, entry_id: int) -> bool:
        """Delete one row by id. False if no such row."""
        with self._session() as conn:
            cursor = conn.cursor()
            cursor.execute("DELETE FROM entries WHERE id = ?", (entry_id,))
            conn.commit()
            return cursor.rowcount > 0

    def remove_file(self) -> bool:
        """Delete the database file itself (used by wipe)."""
        if self.database_path.exists():
            self.database_path.unlink()
            logger.info("Removed database file %s", self.database_path)
            return True
        return False
