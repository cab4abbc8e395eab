# vaultsync: zero-knowledge password manager client
#
# Derives a per-user key from the master password, seals every stored
# password on the client, and syncs only ciphertext with the backend.

__version__ = "0.1.0"
__description__ = "Client-side encryption and sync for a zero-knowledge password manager"

from .core import (
    ApiError,
    AuthError,
    DecryptionError,
    NetworkError,
    SessionLockedError,
    ValidationError,
    VaultSyncError,
)
from .vault import (
    EntryDraft,
    PasswordEntry,
    PasswordOptions,
    SessionKeyStore,
    VaultSession,
    calculate_strength,
    derive_key,
    generate_password,
    open_sealed,
    seal,
    strength_label,
)

__all__ = [
    "__version__",
    # Errors
    "VaultSyncError",
    "AuthError",
    "NetworkError",
    "DecryptionError",
    "ValidationError",
    "ApiError",
    "SessionLockedError",
    # Vault
    "VaultSession",
    "SessionKeyStore",
    "EntryDraft",
    "PasswordEntry",
    "PasswordOptions",
    "derive_key",
    "seal",
    "open_sealed",
    "generate_password",
    "calculate_strength",
    "strength_label",
]
