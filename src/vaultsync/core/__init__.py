# Core Module - Shared Utilities
#
# - Error taxonomy
# - Configuration (environment / .env)
# - Audit logging
# - Durable profile storage

from .audit_log import (
    AuditLogger,
    EventSeverity,
    EventType,
    get_audit_logger,
)
from .config import Settings, get_settings, set_settings
from .errors import (
    ApiError,
    AuthError,
    DecryptionError,
    NetworkError,
    NotFoundError,
    SessionLockedError,
    ValidationError,
    VaultSyncError,
)
from .profile_store import ProfileStore

__all__ = [
    # Errors
    "VaultSyncError",
    "AuthError",
    "NetworkError",
    "DecryptionError",
    "ValidationError",
    "ApiError",
    "NotFoundError",
    "SessionLockedError",
    # Configuration
    "Settings",
    "get_settings",
    "set_settings",
    # Audit Logging
    "AuditLogger",
    "EventType",
    "EventSeverity",
    "get_audit_logger",
    # Storage
    "ProfileStore",
]
