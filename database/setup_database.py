import logging
import sqlite3
from pathlib import Path
from typing import Union

logger = logging.getLogger(__name__)


def setup_database(database_path: Union[str, Path]) -> None:
    """Create the database file and the entries table if they do not exist yet."""
    path = Path(database_path)

    # Make sure the directory exists
    path.parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(path)
    cursor = conn.cursor()

    # AUTOINCREMENT: ids of deleted entries are never handed out again
    cursor.execute('''
    CREATE TABLE IF NOT EXISTS entries (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL,
        secret TEXT NOT NULL,
        digits INTEGER NOT NULL DEFAULT 6,
        period INTEGER NOT NULL DEFAULT 30,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMP
    )
    ''')

    conn.commit()
    conn.close()
    logger.debug("Database ready at %s", path)


if __name__ == "__main__":
    from core.config import load_config

    setup_database(load_config().database_path)
    print("Database setup completed successfully!")
