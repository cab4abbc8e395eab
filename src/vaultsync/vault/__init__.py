# Vault Module - Client-side Encryption
#
# PBKDF2 key derivation, AES-256-GCM record sealing, session key custody,
# password generation and strength scoring, and the encrypted record
# lifecycle that ties them to the backend.

from .encryption import EncryptionService, SessionKey, derive_key, open_sealed, seal
from .generator import PasswordOptions, generate_password
from .key_store import SessionKeyStore
from .models import (
    Category,
    EncryptedPasswordEntry,
    EntryDraft,
    PasswordEntry,
    UserProfile,
)
from .records import RecordResult, decrypt_all, from_wire, to_wire
from .session import VaultSession
from .strength import assess, calculate_strength, strength_label

__all__ = [
    "EncryptionService",
    "SessionKey",
    "derive_key",
    "seal",
    "open_sealed",
    "PasswordOptions",
    "generate_password",
    "SessionKeyStore",
    "Category",
    "EncryptedPasswordEntry",
    "EntryDraft",
    "PasswordEntry",
    "UserProfile",
    "RecordResult",
    "decrypt_all",
    "from_wire",
    "to_wire",
    "VaultSession",
    "assess",
    "calculate_strength",
    "strength_label",
]
