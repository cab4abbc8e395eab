# Vault: Session and Encrypted Record Lifecycle
#
# Ties the pieces together for one user session:
#
#   register/login -> auth service returns token + salt
#                  -> derive_key(master password, salt) -> SessionKeyStore
#   list/search    -> fetch encrypted records -> decrypt each independently
#   create/update  -> seal password -> send -> open the echoed record
#   delete         -> identifier only, no crypto
#   logout         -> drop key, token and cached profile
#
# Every record operation takes the key from the store before any request
# is made, so nothing is sent while the session is locked.
#
# Security:
#   - Master password only used for derivation and the auth call
#   - Plaintext passwords never leave this process
#   - A sealed canary in the profile store lets unlock() reject a wrong
#     master password offline, with backoff on repeated failures

from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from ..api.client import VaultApiClient
from ..core.audit_log import EventSeverity, EventType, get_audit_logger
from ..core.config import Settings, get_settings
from ..core.errors import AuthError, DecryptionError, ValidationError
from ..core.profile_store import ProfileStore
from . import strength
from .encryption import SessionKey, derive_key, open_sealed, seal
from .key_store import (
    CLEAR_ACCOUNT_DELETED,
    CLEAR_AUTO_LOCK,
    CLEAR_LOGOUT,
    CLEAR_MANUAL,
    SessionKeyStore,
)
from .models import EntryDraft, PasswordEntry, UserProfile
from .records import RecordResult, decrypt_all, from_wire, to_wire

MIN_MASTER_PASSWORD_LENGTH = 8

# Wire keys for fields that pass through an update unchanged
_PASSTHROUGH_FIELDS = {
    "title": "title",
    "username": "username",
    "url": "url",
    "notes": "notes",
    "category": "category",
}


class VaultSession:
    """
    One user's client-side vault session.

    Owns the SessionKeyStore and hands the key to the record cipher on
    every call; nothing else in the process holds the key.

    Usage::

        session = VaultSession.from_settings()
        await session.login("me@example.com", master_password)
        results = await session.list_entries()
        entry = await session.create_entry(EntryDraft("Example", "u", "hunter2"))
        session.logout()
    """

    CANARY_PLAINTEXT = "VAULTSYNC_KEY_OK"

    def __init__(
        self,
        api: VaultApiClient,
        key_store: SessionKeyStore,
        profile_store: ProfileStore,
        kdf_iterations: Optional[int] = None,
    ):
        self.api = api
        self.key_store = key_store
        self.profile_store = profile_store
        self.kdf_iterations = kdf_iterations or get_settings().kdf_iterations
        self.user: Optional[UserProfile] = None

        # Rate limiting for offline unlock attempts
        self.failed_attempts = 0
        self.lockout_until: Optional[datetime] = None

        self.logger = get_audit_logger()
        self.key_store.add_clear_listener(self._on_key_cleared)

    @classmethod
    def from_settings(
        cls, settings: Optional[Settings] = None, transport=None
    ) -> "VaultSession":
        """Build a session wired to the configured backend and data dir."""
        settings = settings or get_settings()
        profile_store = ProfileStore(db_path=settings.profile_db_path)
        api = VaultApiClient(
            settings.api_url,
            token=profile_store.get_token(),
            timeout=settings.timeout,
            transport=transport,
        )
        return cls(
            api=api,
            key_store=SessionKeyStore(auto_lock_seconds=settings.auto_lock_seconds),
            profile_store=profile_store,
            kdf_iterations=settings.kdf_iterations,
        )

    async def aclose(self) -> None:
        await self.api.aclose()

    # ── State ────────────────────────────────────────────────────────

    @property
    def is_authenticated(self) -> bool:
        return self.api.is_authenticated

    @property
    def is_unlocked(self) -> bool:
        return not self.key_store.is_locked

    def restore(self) -> bool:
        """Reload token and profile from durable storage.

        Returns True when a previous login is on record; the key is still
        absent and must be re-derived with unlock().
        """
        token = self.profile_store.get_token()
        profile = self.profile_store.get_profile()
        if not token or profile is None:
            return False
        self.api.set_token(token)
        self.user = UserProfile.from_api(profile)
        return True

    # ── Authentication ───────────────────────────────────────────────

    async def register(
        self, email: str, master_password: str, confirm_password: str
    ) -> UserProfile:
        """Create an account and open a session for it.

        Raises:
            ValidationError: empty email, short master password, or mismatch
            AuthError: the backend rejected the registration
            NetworkError: the backend could not be reached
        """
        self._validate_email(email)
        if len(master_password) < MIN_MASTER_PASSWORD_LENGTH:
            raise ValidationError(
                f"Master password must be at least {MIN_MASTER_PASSWORD_LENGTH} characters",
                field="master_password",
            )
        if master_password != confirm_password:
            raise ValidationError("Passwords do not match", field="confirm_password")

        auth = await self.api.register(email, master_password)
        self._open_session(auth.token, auth.user, master_password)

        self.logger.log_event(
            event_type=EventType.SESSION_REGISTERED,
            severity=EventSeverity.INFO,
            message="Account registered",
            user_context=self._user_context(),
        )
        return auth.user

    async def login(self, email: str, master_password: str) -> UserProfile:
        """Authenticate and derive the session key from the account salt."""
        self._validate_email(email)
        if not master_password:
            raise ValidationError("Master password is required", field="master_password")

        try:
            auth = await self.api.login(email, master_password)
        except AuthError as exc:
            self.logger.log_event(
                event_type=EventType.SESSION_LOGIN_FAILED,
                severity=EventSeverity.ALERT,
                message=f"Login rejected: {exc.message}",
                details={"email": email},
            )
            raise

        self._open_session(auth.token, auth.user, master_password)

        self.logger.log_event(
            event_type=EventType.SESSION_LOGIN,
            severity=EventSeverity.INFO,
            message="Logged in",
            user_context=self._user_context(),
        )
        return auth.user

    def unlock(self, master_password: str) -> UserProfile:
        """
        Re-derive the key from the cached salt without a network call.

        Used after a restart or an auto-lock while the token is still on
        record. A wrong master password is caught by the sealed canary.

        Security: exponential backoff on failures
        - 1st failed attempt: no delay
        - 2nd: 2 seconds, 3rd: 4 seconds, 4th: 8 seconds, 5th+: 16 seconds

        Raises:
            AuthError: no complete login on record, wrong master password,
                or still inside a lockout window
        """
        if self.lockout_until and datetime.now() < self.lockout_until:
            remaining = (self.lockout_until - datetime.now()).seconds + 1
            raise AuthError(f"Too many failed attempts. Please wait {remaining} seconds.")

        if self.user is None and not self.restore():
            raise AuthError("No saved session. Log in with your email and master password.")

        canary = self.profile_store.get_key_check()
        if canary is None:
            # No key check on record: the password cannot be verified offline
            self._teardown(CLEAR_MANUAL)
            raise AuthError("Saved session is incomplete. Please log in again.")

        candidate = derive_key(master_password, self.user.salt, self.kdf_iterations)
        try:
            if open_sealed(canary, candidate) != self.CANARY_PLAINTEXT:
                raise DecryptionError("Canary mismatch")
        except DecryptionError:
            self._handle_failed_unlock()

        self.failed_attempts = 0
        self.lockout_until = None
        self.key_store.set(candidate)

        self.logger.log_event(
            event_type=EventType.SESSION_UNLOCKED,
            severity=EventSeverity.INFO,
            message="Session unlocked",
            user_context=self._user_context(),
        )
        return self.user

    def _handle_failed_unlock(self) -> None:
        """Record a wrong master password and raise with the backoff notice."""
        self.failed_attempts += 1
        delay_seconds = min(2 ** (self.failed_attempts - 1), 16)
        if self.failed_attempts > 1:
            self.lockout_until = datetime.now() + timedelta(seconds=delay_seconds)

        self.logger.log_event(
            event_type=EventType.SESSION_LOGIN_FAILED,
            severity=EventSeverity.ALERT,
            message=f"Unlock failed: incorrect master password (attempt {self.failed_attempts})",
            user_context=self._user_context(),
        )

        if self.failed_attempts == 1:
            raise AuthError("Incorrect master password")
        raise AuthError(
            f"Incorrect master password. Please wait {delay_seconds} seconds "
            "before trying again."
        )

    def logout(self) -> None:
        """End the session locally: key, token and cached profile are dropped."""
        context = self._user_context()
        self._teardown(CLEAR_LOGOUT)
        self.logger.log_event(
            event_type=EventType.SESSION_LOGOUT,
            severity=EventSeverity.INFO,
            message="Logged out",
            user_context=context,
        )

    async def delete_account(self) -> None:
        """Delete the account (and all entries server-side), then log out."""
        self.key_store.touch()
        context = self._user_context()
        await self.api.delete_account()
        self._teardown(CLEAR_ACCOUNT_DELETED)
        self.logger.log_event(
            event_type=EventType.ACCOUNT_DELETED,
            severity=EventSeverity.ALERT,
            message="Account and all entries deleted",
            user_context=context,
        )

    # ── Entries ──────────────────────────────────────────────────────

    async def list_entries(self) -> List[RecordResult]:
        """Fetch and decrypt every entry; failures are isolated per record."""
        key = self._require_key()
        wires = await self.api.list_passwords()
        results = self._decrypt_results(wires, key)

        self.logger.log_event(
            event_type=EventType.ENTRY_LISTED,
            severity=EventSeverity.INFO,
            message=f"Listed {len(results)} entries",
            details={"count": len(results), "degraded": sum(r.degraded for r in results)},
            user_context=self._user_context(),
        )
        return results

    async def search_entries(self, query: str) -> List[RecordResult]:
        """Server-side search on title/username/url; decrypted like list_entries()."""
        key = self._require_key()
        wires = await self.api.search_passwords(query)
        return self._decrypt_results(wires, key)

    async def create_entry(self, draft: EntryDraft) -> PasswordEntry:
        """Seal the draft's password, create it, and return the stored entry."""
        key = self._require_key()
        entry = PasswordEntry(
            id="",
            title=draft.title,
            username=draft.username,
            password=draft.password,
            url=draft.url,
            notes=draft.notes,
            category=draft.category,
        )
        stored = await self.api.create_password(to_wire(entry, key))
        created = from_wire(stored, key)

        self.logger.log_event(
            event_type=EventType.ENTRY_CREATED,
            severity=EventSeverity.INFO,
            message=f"Entry created: {created.title}",
            details={"entry_id": created.id, "category": created.category.value},
            user_context=self._user_context(),
        )
        return created

    async def update_entry(self, entry_id: str, **changes: Any) -> PasswordEntry:
        """
        Apply a partial update.

        Only a supplied ``password`` is re-sealed; title, username, url,
        notes and category are sent as given.

        Raises:
            ValidationError: unknown field name
        """
        key = self._require_key()

        payload: Dict[str, Any] = {}
        for name, value in changes.items():
            if name == "password":
                payload["encryptedPassword"] = seal(value, key)
            elif name in _PASSTHROUGH_FIELDS:
                if name == "category" and value is not None:
                    value = getattr(value, "value", value)
                payload[_PASSTHROUGH_FIELDS[name]] = value
            else:
                raise ValidationError(f"Unknown entry field: {name}", field=name)

        stored = await self.api.update_password(entry_id, payload)
        updated = from_wire(stored, key)

        self.logger.log_event(
            event_type=EventType.ENTRY_UPDATED,
            severity=EventSeverity.INFO,
            message=f"Entry updated: {updated.title}",
            details={
                "entry_id": entry_id,
                "fields": sorted(changes),
            },
            user_context=self._user_context(),
        )
        return updated

    async def delete_entry(self, entry_id: str) -> None:
        """Remove an entry by id."""
        self._require_key()
        await self.api.delete_password(entry_id)

        self.logger.log_event(
            event_type=EventType.ENTRY_DELETED,
            severity=EventSeverity.INFO,
            message="Entry deleted",
            details={"entry_id": entry_id},
            user_context=self._user_context(),
        )

    # ── Advisory ─────────────────────────────────────────────────────

    @staticmethod
    def assess_password(password: str) -> strength.StrengthReport:
        """Strength score and label for display; never blocks a save."""
        return strength.assess(password)

    # ── Internals ────────────────────────────────────────────────────

    @staticmethod
    def _validate_email(email: str) -> None:
        if not email or not email.strip():
            raise ValidationError("Email is required", field="email")

    def _open_session(self, token: str, user: UserProfile, master_password: str) -> None:
        key = derive_key(master_password, user.salt, self.kdf_iterations)
        self.user = user
        self.key_store.set(key)
        self.profile_store.save_session(
            token, user.to_dict(), seal(self.CANARY_PLAINTEXT, key)
        )
        self.failed_attempts = 0
        self.lockout_until = None

    def _require_key(self) -> SessionKey:
        key = self.key_store.require()
        self.key_store.touch()
        return key

    def _decrypt_results(self, wires, key: SessionKey) -> List[RecordResult]:
        results = list(decrypt_all(wires, key))
        for result in results:
            if result.degraded:
                self.logger.log_event(
                    event_type=EventType.ENTRY_DECRYPT_FAILED,
                    severity=EventSeverity.WARNING,
                    message=f"Entry could not be decrypted: {result.entry.title}",
                    details={"entry_id": result.entry.id, "reason": result.error.reason},
                    user_context=self._user_context(),
                )
        return results

    def _teardown(self, reason: str) -> None:
        self.key_store.clear(reason)
        self.api.logout()
        self.profile_store.clear()
        self.user = None

    def _on_key_cleared(self, reason: str) -> None:
        if reason == CLEAR_AUTO_LOCK:
            self.logger.log_event(
                event_type=EventType.SESSION_LOCKED,
                severity=EventSeverity.INFO,
                message="Session auto-locked after inactivity",
                user_context=self._user_context(),
            )

    def _user_context(self) -> Optional[Dict[str, Any]]:
        if self.user is None:
            return None
        return {"user_id": self.user.id, "email": self.user.email}
