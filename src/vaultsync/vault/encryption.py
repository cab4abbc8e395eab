# Vault: Encryption Service
#
# Master password + account salt -> session key (PBKDF2-HMAC-SHA256)
# Per-field sealing of stored passwords (AES-256-GCM)
#
# Sealed token layout (standard base64 of):
#
#   version (1 byte, 0x01) | nonce (12 bytes) | ciphertext | GCM tag (16 bytes)
#
# The nonce travels inside the token so callers never manage IVs.

import base64
import binascii
import hmac
import os

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from ..core.config import DEFAULT_KDF_ITERATIONS
from ..core.errors import DecryptionError


class SessionKey:
    """
    256-bit key derived from the master password.

    Wraps the raw bytes so they never show up in a repr, a log line or
    a traceback. Compare with ``==`` (constant time).
    """

    __slots__ = ("_material",)

    def __init__(self, material: bytes):
        if len(material) != EncryptionService.KEY_LENGTH:
            raise ValueError(
                f"Session key must be {EncryptionService.KEY_LENGTH} bytes, "
                f"got {len(material)}"
            )
        self._material = bytes(material)

    @property
    def material(self) -> bytes:
        return self._material

    def __eq__(self, other) -> bool:
        if not isinstance(other, SessionKey):
            return NotImplemented
        return hmac.compare_digest(self._material, other._material)

    def __hash__(self) -> int:
        return hash(self._material)

    def __repr__(self) -> str:
        return "SessionKey(<redacted>)"

    __str__ = __repr__


class EncryptionService:
    """
    Key derivation and record sealing for stored passwords.

    Flow:
    1. Auth service returns the account salt at login/registration
    2. PBKDF2 derives a 256-bit key from master password + salt
    3. AES-256-GCM seals each password with its own random nonce
    4. Tag verification on open rejects tampered or foreign ciphertext
    """

    KEY_LENGTH = 32  # 256 bits for AES-256
    SALT_LENGTH = 16  # 128-bit salt
    NONCE_LENGTH = 12  # 96-bit nonce for GCM (recommended)
    TAG_LENGTH = 16
    TOKEN_VERSION = 1

    @staticmethod
    def derive_key(
        master_password: str,
        salt: str,
        iterations: int = DEFAULT_KDF_ITERATIONS,
    ) -> SessionKey:
        """
        Derive the session key from master password and account salt.

        Deterministic: the same (password, salt, iterations) always yields
        the same key, so nothing but the salt needs to be stored. Both
        inputs are treated as opaque strings; length rules belong to the
        caller.

        Args:
            master_password: User's master password
            salt: Per-account salt issued by the auth service

        Returns:
            256-bit SessionKey
        """
        kdf = PBKDF2HMAC(
            algorithm=hashes.SHA256(),
            length=EncryptionService.KEY_LENGTH,
            salt=salt.encode('utf-8'),
            iterations=iterations,
        )
        return SessionKey(kdf.derive(master_password.encode('utf-8')))

    @staticmethod
    def generate_salt() -> str:
        """Generate a cryptographically random, hex-encoded salt."""
        return os.urandom(EncryptionService.SALT_LENGTH).hex()

    @staticmethod
    def seal(plaintext: str, key: SessionKey) -> str:
        """
        Encrypt plaintext using AES-256-GCM.

        Args:
            plaintext: Password or secret to encrypt
            key: SessionKey (from derive_key)

        Returns:
            Opaque base64 token carrying version, nonce, ciphertext and tag
        """
        # Must be unique per encryption under the same key
        nonce = os.urandom(EncryptionService.NONCE_LENGTH)

        aesgcm = AESGCM(key.material)
        ciphertext = aesgcm.encrypt(nonce, plaintext.encode('utf-8'), None)

        blob = bytes([EncryptionService.TOKEN_VERSION]) + nonce + ciphertext
        return base64.b64encode(blob).decode('ascii')

    @staticmethod
    def open_sealed(token: str, key: SessionKey) -> str:
        """
        Decrypt a token produced by seal().

        Args:
            token: Base64 token from seal()
            key: SessionKey (same as encryption)

        Returns:
            Decrypted plaintext

        Raises:
            DecryptionError: reason "malformed" if the token cannot be parsed,
                reason "authentication" if the GCM tag does not verify
                (tampered ciphertext or wrong key)
        """
        try:
            blob = base64.b64decode(token.encode('ascii'), validate=True)
        except (binascii.Error, UnicodeEncodeError, AttributeError):
            raise DecryptionError("Ciphertext is not valid base64")

        header = 1 + EncryptionService.NONCE_LENGTH
        if len(blob) < header + EncryptionService.TAG_LENGTH:
            raise DecryptionError("Ciphertext is truncated")

        if blob[0] != EncryptionService.TOKEN_VERSION:
            raise DecryptionError(f"Unsupported ciphertext version {blob[0]}")

        nonce = blob[1:header]
        ciphertext = blob[header:]

        aesgcm = AESGCM(key.material)
        try:
            plaintext_bytes = aesgcm.decrypt(nonce, ciphertext, None)
        except InvalidTag:
            raise DecryptionError(
                "Ciphertext failed authentication (tampered or wrong key)",
                reason=DecryptionError.AUTHENTICATION,
            )

        try:
            return plaintext_bytes.decode('utf-8')
        except UnicodeDecodeError:
            raise DecryptionError("Decrypted value is not valid UTF-8")


# Module-level aliases for the common call sites
derive_key = EncryptionService.derive_key
generate_salt = EncryptionService.generate_salt
seal = EncryptionService.seal
open_sealed = EncryptionService.open_sealed
