# Core: Central SQLite Connection Helper
#
# Local durable storage goes through `connect()` instead of raw
# `sqlite3.connect()` so every connection gets the same PRAGMAs:
#
#   - WAL journal mode (readers do not block the writer)
#   - busy_timeout to avoid SQLITE_BUSY under contention

import sqlite3
from pathlib import Path
from typing import Union


def connect(
    db_path: Union[str, Path],
    *,
    row_factory: bool = False,
) -> sqlite3.Connection:
    """Open a SQLite connection with WAL mode and a busy timeout.

    Args:
        db_path: Path to the database file.
        row_factory: If True, set conn.row_factory = sqlite3.Row.

    Returns:
        sqlite3.Connection ready for use.
    """
    conn = sqlite3.connect(str(db_path))
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA busy_timeout=5000")
    if row_factory:
        conn.row_factory = sqlite3.Row
    return conn
