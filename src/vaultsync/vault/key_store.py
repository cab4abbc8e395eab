# Vault: Session Key Store
#
# Holds the derived session key in process memory for one authenticated
# session. Nothing here touches disk, the network, or a log line.
#
# Lifecycle:
#   set()    - after login/registration/unlock (key re-derived each time)
#   touch()  - on user activity; restarts the inactivity timer
#   clear()  - on logout, account deletion, or inactivity (auto-lock)
#
# Single writer (login/logout/timer), any number of readers.

import logging
import threading
from typing import Callable, List, Optional

from ..core.errors import SessionLockedError
from .encryption import SessionKey

logger = logging.getLogger(__name__)

# Reasons passed to clear listeners
CLEAR_LOGOUT = "logout"
CLEAR_ACCOUNT_DELETED = "account_deleted"
CLEAR_AUTO_LOCK = "auto_lock"
CLEAR_MANUAL = "manual"


class SessionKeyStore:
    """Volatile holder of the current SessionKey.

    Args:
        auto_lock_seconds: Inactivity timeout before the key is cleared.
            0 disables auto-lock.

    Usage::

        store = SessionKeyStore(auto_lock_seconds=300)
        store.set(derive_key(master_password, user.salt))
        key = store.require()        # raises SessionLockedError if absent
        store.clear(CLEAR_LOGOUT)
    """

    def __init__(self, auto_lock_seconds: int = 0):
        self.auto_lock_seconds = auto_lock_seconds
        self._key: Optional[SessionKey] = None
        self._lock = threading.Lock()
        self._timer: Optional[threading.Timer] = None
        self._generation = 0  # bumped whenever the timer is restarted or cancelled
        self._listeners: List[Callable[[str], None]] = []

    # ── Key access ───────────────────────────────────────────────────

    def set(self, key: SessionKey) -> None:
        """Install a freshly derived key and start the inactivity timer."""
        if not isinstance(key, SessionKey):
            raise TypeError("SessionKeyStore only holds SessionKey instances")
        with self._lock:
            self._key = key
            self._restart_timer()
        logger.debug("Session key installed")

    def get(self) -> Optional[SessionKey]:
        """Return the current key, or None when locked."""
        with self._lock:
            return self._key

    def require(self) -> SessionKey:
        """Return the current key or raise SessionLockedError."""
        key = self.get()
        if key is None:
            raise SessionLockedError()
        return key

    @property
    def is_locked(self) -> bool:
        return self.get() is None

    def clear(self, reason: str = CLEAR_MANUAL) -> bool:
        """Drop the key. Returns True if a key was held.

        Listeners run after the key is gone, outside the store lock.
        """
        with self._lock:
            had_key = self._key is not None
            self._key = None
            self._cancel_timer()

        if had_key:
            logger.debug("Session key cleared (%s)", reason)
            self._notify(reason)
        return had_key

    def _notify(self, reason: str) -> None:
        for listener in list(self._listeners):
            try:
                listener(reason)
            except Exception:
                logger.exception("Key store clear listener failed")

    # ── Auto-lock ────────────────────────────────────────────────────

    def touch(self) -> None:
        """Record user activity, pushing the auto-lock deadline back."""
        with self._lock:
            if self._key is not None:
                self._restart_timer()

    def add_clear_listener(self, callback: Callable[[str], None]) -> None:
        """Register ``callback(reason)`` to run whenever the key is cleared."""
        self._listeners.append(callback)

    def _restart_timer(self) -> None:
        # Caller holds self._lock
        self._cancel_timer()
        if self.auto_lock_seconds > 0:
            self._timer = threading.Timer(
                self.auto_lock_seconds, self._auto_lock, args=(self._generation,)
            )
            self._timer.daemon = True
            self._timer.start()

    def _cancel_timer(self) -> None:
        # Caller holds self._lock
        self._generation += 1
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _auto_lock(self, generation: int) -> None:
        # A timer that fired while touch() or set() held the lock is stale
        with self._lock:
            if generation != self._generation or self._key is None:
                return
            self._key = None
            self._cancel_timer()

        logger.info("Auto-locking after %ss of inactivity", self.auto_lock_seconds)
        self._notify(CLEAR_AUTO_LOCK)
