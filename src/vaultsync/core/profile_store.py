# Core: Durable Profile Store
# SQLite key/value store for what survives a restart: the bearer token and
# the cached user profile (id, email, salt). Follows the core.db connect
# helper pattern.
#
# The derived session key and the master password are never written here;
# after a restart the key is re-derived from the cached salt.

import json
import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from .db import connect as db_connect

logger = logging.getLogger(__name__)

# Well-known keys
KEY_TOKEN = "token"
KEY_USER = "user"
KEY_CANARY = "key_check"  # sealed known value, opens only under the right key


class ProfileStore:
    """SQLite key/value store for the session token and user profile.

    Args:
        db_path: Path to SQLite file. Defaults to data/profile.db.
    """

    def __init__(self, db_path: Optional[str] = None):
        self.db_path = Path(db_path) if db_path else Path("data/profile.db")
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_database()

    @contextmanager
    def _connect(self):
        """Open a connection; commits on success, always closes."""
        conn = db_connect(self.db_path, row_factory=True)
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _init_database(self):
        with self._connect() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS profile (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """)
    # ── Raw key/value ────────────────────────────────────────────────

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        """Get a value by key. Returns default if not found."""
        with self._connect() as conn:
            row = conn.execute(
                "SELECT value FROM profile WHERE key = ?", (key,)
            ).fetchone()
        if row is None:
            return default
        return row["value"]

    def set(self, key: str, value: str) -> None:
        """Set a value (upsert)."""
        self.set_many({key: value})

    def set_many(self, values: Dict[str, str]) -> None:
        """Upsert several values in one transaction."""
        now = datetime.now(timezone.utc).isoformat()
        with self._connect() as conn:
            conn.executemany(
                """INSERT INTO profile (key, value, updated_at)
                   VALUES (?, ?, ?)
                   ON CONFLICT(key) DO UPDATE SET
                       value = excluded.value,
                       updated_at = excluded.updated_at""",
                [(key, value, now) for key, value in values.items()],
            )

    def delete(self, key: str) -> bool:
        """Delete a key. Returns True if it existed."""
        with self._connect() as conn:
            cur = conn.execute("DELETE FROM profile WHERE key = ?", (key,))
            return cur.rowcount > 0

    # ── Token and profile ────────────────────────────────────────────

    def get_token(self) -> Optional[str]:
        return self.get(KEY_TOKEN)

    def save_token(self, token: Optional[str]) -> None:
        """Store the bearer token; None removes it."""
        if token:
            self.set(KEY_TOKEN, token)
        else:
            self.delete(KEY_TOKEN)

    def get_profile(self) -> Optional[Dict[str, Any]]:
        """Return the cached profile fields (id, email, salt), or None."""
        raw = self.get(KEY_USER)
        if raw is None:
            return None
        try:
            profile = json.loads(raw)
        except ValueError:
            profile = None
        if not isinstance(profile, dict) or "salt" not in profile:
            logger.warning("Discarding unreadable cached profile")
            self.delete(KEY_USER)
            return None
        return profile

    def save_profile(self, profile: Dict[str, Any]) -> None:
        self.set(KEY_USER, json.dumps(profile))

    def get_key_check(self) -> Optional[str]:
        return self.get(KEY_CANARY)

    def save_key_check(self, sealed: str) -> None:
        self.set(KEY_CANARY, sealed)

    def save_session(self, token: str, profile: Dict[str, Any], key_check: str) -> None:
        """Write token, profile and key check together.

        A crash can never leave a profile on record without its key check.
        """
        self.set_many({
            KEY_TOKEN: token,
            KEY_USER: json.dumps(profile),
            KEY_CANARY: key_check,
        })

    def clear(self) -> None:
        """Remove token, profile and key check (logout / account deletion)."""
        with self._connect() as conn:
            conn.execute(
                "DELETE FROM profile WHERE key IN (?, ?, ?)",
                (KEY_TOKEN, KEY_USER, KEY_CANARY),
            )
