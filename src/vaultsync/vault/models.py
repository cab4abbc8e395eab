# Vault: Data Models
#
#   UserProfile            - account identity + salt as issued by the auth service
#   PasswordEntry          - decrypted, client-only form of a stored credential
#   EncryptedPasswordEntry - wire/storage form; the only form the backend sees
#   EntryDraft             - plaintext fields supplied when creating an entry
#
# Wire payloads use the backend's camelCase keys (encryptedPassword,
# createdAt, ...) and Mongo-style ``_id``; conversion lives on each model.

import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class Category(str, Enum):
    """Entry categories understood by the backend."""

    SOCIAL = "social"
    WORK = "work"
    FINANCE = "finance"
    SHOPPING = "shopping"
    OTHER = "other"

    @property
    def label(self) -> str:
        return _CATEGORY_LABELS[self]

    @classmethod
    def parse(cls, value: Any) -> "Category":
        """Map a wire value to a Category; unknown, missing or non-string values become OTHER."""
        if isinstance(value, Category):
            return value
        if not isinstance(value, str):
            return cls.OTHER
        try:
            return cls(value.lower())
        except ValueError:
            return cls.OTHER


_CATEGORY_LABELS = {
    Category.SOCIAL: "Social Media",
    Category.WORK: "Work",
    Category.FINANCE: "Finance",
    Category.SHOPPING: "Shopping",
    Category.OTHER: "Other",
}


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO 8601 timestamp from the wire.

    Missing or unreadable values become None so one bad record cannot
    break a listing.
    """
    if not value:
        return None
    if isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (ValueError, TypeError, AttributeError):
        logger.warning("Ignoring unreadable timestamp: %r", value)
        return None


@dataclass
class UserProfile:
    """Account identity returned by /auth/register and /auth/login.

    The salt is fixed for the lifetime of the account; re-deriving the key
    with any other salt cannot open existing records.
    """

    id: str
    email: str
    salt: str

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "UserProfile":
        return cls(
            id=str(data.get("id") or data.get("_id") or ""),
            email=data.get("email", ""),
            salt=data["salt"],
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class AuthResult:
    """Bearer token plus the authenticated user's profile."""

    token: str
    user: UserProfile

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "AuthResult":
        return cls(token=data["token"], user=UserProfile.from_api(data["user"]))


@dataclass
class EntryDraft:
    """Plaintext fields for a new entry (no id or timestamps yet)."""

    title: str
    username: str
    password: str
    url: Optional[str] = None
    notes: Optional[str] = None
    category: Category = Category.OTHER

    def __post_init__(self):
        self.category = Category.parse(self.category)

    def __repr__(self) -> str:
        return (
            f"EntryDraft(title={self.title!r}, username={self.username!r}, "
            f"password='***', category={self.category.value!r})"
        )


@dataclass
class PasswordEntry:
    """Decrypted credential. Lives only in client memory."""

    id: str
    title: str
    username: str
    password: str
    url: Optional[str] = None
    notes: Optional[str] = None
    category: Category = Category.OTHER
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    user_id: Optional[str] = None

    def __post_init__(self):
        self.category = Category.parse(self.category)

    def __repr__(self) -> str:
        return (
            f"PasswordEntry(id={self.id!r}, title={self.title!r}, "
            f"username={self.username!r}, password='***', "
            f"category={self.category.value!r})"
        )


@dataclass
class EncryptedPasswordEntry:
    """Wire form: ``password`` replaced by the sealed ``encrypted_password``."""

    id: str
    title: str
    username: str
    encrypted_password: str
    url: Optional[str] = None
    notes: Optional[str] = None
    category: Category = Category.OTHER
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    user_id: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict, repr=False)

    def __post_init__(self):
        self.category = Category.parse(self.category)

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "EncryptedPasswordEntry":
        """Build from a backend JSON record."""
        known = {
            "_id", "id", "userId", "title", "username", "encryptedPassword",
            "url", "notes", "category", "createdAt", "updatedAt",
        }
        return cls(
            id=str(data.get("_id") or data.get("id") or ""),
            title=data.get("title", ""),
            username=data.get("username", ""),
            encrypted_password=data.get("encryptedPassword", ""),
            url=data.get("url") or None,
            notes=data.get("notes") or None,
            category=data.get("category"),
            created_at=parse_timestamp(data.get("createdAt")),
            updated_at=parse_timestamp(data.get("updatedAt")),
            user_id=data.get("userId"),
            extra={k: v for k, v in data.items() if k not in known},
        )

    def to_create_payload(self) -> Dict[str, Any]:
        """Body for POST /passwords. Optional fields are omitted when empty."""
        payload: Dict[str, Any] = {
            "title": self.title,
            "username": self.username,
            "encryptedPassword": self.encrypted_password,
            "category": self.category.value,
        }
        if self.url:
            payload["url"] = self.url
        if self.notes:
            payload["notes"] = self.notes
        return payload
