# Vault: Encrypted Record Conversion
#
# Translates between the decrypted PasswordEntry held in memory and the
# EncryptedPasswordEntry the backend stores. Only ``password`` is sealed;
# every other field passes through unchanged.
#
# Bulk decryption yields one RecordResult per record so a single corrupt
# ciphertext degrades that entry instead of aborting the whole list.

import logging
from dataclasses import dataclass
from typing import Iterable, Iterator, Optional

from ..core.errors import DecryptionError
from .encryption import SessionKey, open_sealed, seal
from .models import EncryptedPasswordEntry, PasswordEntry

logger = logging.getLogger(__name__)


def to_wire(entry: PasswordEntry, key: SessionKey) -> EncryptedPasswordEntry:
    """Seal ``entry.password`` and return the wire form."""
    return EncryptedPasswordEntry(
        id=entry.id,
        title=entry.title,
        username=entry.username,
        encrypted_password=seal(entry.password, key),
        url=entry.url,
        notes=entry.notes,
        category=entry.category,
        created_at=entry.created_at,
        updated_at=entry.updated_at,
        user_id=entry.user_id,
    )


def from_wire(wire: EncryptedPasswordEntry, key: SessionKey) -> PasswordEntry:
    """Open ``wire.encrypted_password``.

    Raises:
        DecryptionError: If the ciphertext is malformed or fails authentication
    """
    return PasswordEntry(
        id=wire.id,
        title=wire.title,
        username=wire.username,
        password=open_sealed(wire.encrypted_password, key),
        url=wire.url,
        notes=wire.notes,
        category=wire.category,
        created_at=wire.created_at,
        updated_at=wire.updated_at,
        user_id=wire.user_id,
    )


@dataclass
class RecordResult:
    """Outcome of decrypting one wire record.

    ``entry`` is always present so lists can still render the record; when
    ``error`` is set the entry carries an empty password and ``degraded``
    is True.
    """

    entry: PasswordEntry
    error: Optional[DecryptionError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def degraded(self) -> bool:
        return self.error is not None


def _degraded_entry(wire: EncryptedPasswordEntry) -> PasswordEntry:
    return PasswordEntry(
        id=wire.id,
        title=wire.title,
        username=wire.username,
        password="",
        url=wire.url,
        notes=wire.notes,
        category=wire.category,
        created_at=wire.created_at,
        updated_at=wire.updated_at,
        user_id=wire.user_id,
    )


def decrypt_one(wire: EncryptedPasswordEntry, key: SessionKey) -> RecordResult:
    """Decrypt a single record, converting DecryptionError into a degraded result."""
    try:
        return RecordResult(entry=from_wire(wire, key))
    except DecryptionError as exc:
        logger.warning(
            "Entry %s could not be decrypted (%s)", wire.id, exc.reason
        )
        return RecordResult(entry=_degraded_entry(wire), error=exc)


def decrypt_all(
    wires: Iterable[EncryptedPasswordEntry], key: SessionKey
) -> Iterator[RecordResult]:
    """Lazily decrypt each record independently."""
    for wire in wires:
        yield decrypt_one(wire, key)
