# Core: Error Taxonomy
#
# Every failure surfaced by vaultsync derives from VaultSyncError and carries
# a human-readable ``message`` suitable for a form-level or field-level notice.
#
#   AuthError          - bad credentials, duplicate registration, expired token
#   NetworkError       - connectivity failure (caller may retry manually)
#   DecryptionError    - malformed or unauthenticated ciphertext (per record)
#   ValidationError    - local input problem, raised before any I/O or crypto
#   ApiError           - any other non-2xx response from the backend
#   SessionLockedError - record operation while no session key is held

from typing import Optional

NETWORK_ERROR_MESSAGE = "Network error. Please check your connection."
DEFAULT_ERROR_MESSAGE = "An error occurred"


class VaultSyncError(Exception):
    """Base class for all vaultsync errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class AuthError(VaultSyncError):
    """Invalid credentials, duplicate registration, or a rejected token."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class NetworkError(VaultSyncError):
    """The backend could not be reached."""

    def __init__(self, message: str = NETWORK_ERROR_MESSAGE):
        super().__init__(message)


class DecryptionError(VaultSyncError):
    """
    A sealed value could not be opened.

    ``reason`` is ``"malformed"`` when the failure is detectable from the
    token format alone (bad base64, truncated, unknown version, bad UTF-8)
    and ``"authentication"`` when the AES-GCM tag does not verify, which
    covers both tampering and a wrong key.
    """

    MALFORMED = "malformed"
    AUTHENTICATION = "authentication"

    def __init__(self, message: str, reason: str = MALFORMED):
        super().__init__(message)
        self.reason = reason


class ValidationError(VaultSyncError):
    """Local input rejected before any network or crypto call."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class ApiError(VaultSyncError):
    """Non-2xx backend response that is not an authentication failure."""

    def __init__(self, message: str, status_code: int):
        super().__init__(message)
        self.status_code = status_code


class NotFoundError(ApiError):
    """The requested record does not exist (or belongs to another user)."""


class SessionLockedError(VaultSyncError):
    """No session key is held; the user must log in or unlock again."""

    def __init__(self, message: str = "Vault is locked. Log in again to continue."):
        super().__init__(message)
