"""
Vault — Authenticated Encryption
AES-256-GCM encryption of any JSON-serializable value.

Blob format (no header, implicitly v1):
    base64( nonce[12] || ciphertext || tag[16] )

The Vault object is the caller-held key context: it owns the one active
session key and the nonce generator. Nothing here is process-global; the
application shell creates one Vault and passes it to whoever encrypts.

Decryption failures are undifferentiated: a bad tag, broken base64, a
truncated blob, and an undecodable payload all surface as the same
DecryptionFailed with no chained cause.
"""

import base64
import binascii
import json
import os
from pathlib import Path
from typing import Any

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from ledgercloak.exceptions import DecryptionFailed, KeyUnavailable
from ledgercloak.kdf import KEY_SIZE
from ledgercloak.logging_setup import get_logger
from ledgercloak.nonce import NONCE_SIZE, NonceGenerator, default_nonce_generator

TAG_SIZE = 16

log = get_logger(__name__)


def _serialize(value: Any) -> bytes:
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def encrypt_data(value: Any, key: bytes, nonces: NonceGenerator) -> str:
    """
    Encrypt a value with AES-256-GCM.

    Args:
        value: Any JSON-serializable value.
        key: 32-byte key.
        nonces: Source of unique nonces.

    Returns:
        Base64 blob of nonce + ciphertext + tag.

    Raises:
        NonceExhausted: If the generator cannot produce a unique nonce.
    """
    plaintext = _serialize(value)
    nonce = nonces.next_nonce()
    ciphertext = AESGCM(key).encrypt(nonce, plaintext, None)
    return base64.b64encode(nonce + ciphertext).decode("ascii")


def decrypt_data(blob: str, key: bytes) -> Any:
    """
    Decrypt a blob produced by encrypt_data().

    Raises:
        DecryptionFailed: On any tag, format, or deserialization failure.
    """
    try:
        combined = base64.b64decode(blob, validate=True)
        if len(combined) < NONCE_SIZE + TAG_SIZE:
            raise ValueError("blob too short")
        nonce, ciphertext = combined[:NONCE_SIZE], combined[NONCE_SIZE:]
        plaintext = AESGCM(key).decrypt(nonce, ciphertext, None)
        return json.loads(plaintext.decode("utf-8"))
    except (InvalidTag, binascii.Error, ValueError, TypeError):
        # UnicodeDecodeError and JSONDecodeError are ValueErrors
        log.warning("decryption_failed")
        raise DecryptionFailed() from None


def generate_key() -> bytes:
    """Generate a random AES-256 key."""
    return AESGCM.generate_key(bit_length=256)


def export_key(key: bytes) -> str:
    """Serialize a key to its portable form (base64 of the raw bytes)."""
    return base64.b64encode(key).decode("ascii")


def import_key(serialized: str) -> bytes:
    """
    Re-import a key exported by export_key().

    Raises:
        ValueError: If the input is not base64 of exactly KEY_SIZE bytes.
    """
    try:
        raw = base64.b64decode(serialized, validate=True)
    except (binascii.Error, TypeError) as e:
        raise ValueError("Serialized key is not valid base64") from e
    if len(raw) != KEY_SIZE:
        raise ValueError(f"Serialized key must decode to {KEY_SIZE} bytes")
    return raw


def clear_persisted_key(path: str | Path) -> None:
    """Remove a persisted session key, if any."""
    Path(path).unlink(missing_ok=True)


class Vault:
    """
    Caller-held key context for encryption.

    Holds at most one active session key. encrypt() and decrypt() use it
    whenever no explicit key is passed. There is no implicit initialization:
    a key must be set (or passed) before use.

    Args:
        nonces: Nonce generator shared by every encryption through this
            vault. Defaults to default_nonce_generator(), whose counter
            is persisted under the configured data dir.
    """

    def __init__(self, nonces: NonceGenerator | None = None):
        self.nonces = nonces if nonces is not None else default_nonce_generator()
        self._key: bytes | None = None

    def set_key(self, key: bytes) -> None:
        if len(key) != KEY_SIZE:
            raise ValueError(f"Key must be {KEY_SIZE} bytes")
        self._key = key
        log.debug("session_key_set")

    def clear_key(self) -> None:
        self._key = None
        log.debug("session_key_cleared")

    def has_key(self) -> bool:
        return self._key is not None

    def get_key(self) -> bytes | None:
        return self._key

    def _resolve(self, key: bytes | None) -> bytes:
        key_to_use = key if key is not None else self._key
        if key_to_use is None:
            raise KeyUnavailable()
        return key_to_use

    def encrypt(self, value: Any, key: bytes | None = None) -> str:
        """
        Encrypt a value under the given key, or the session key.

        Raises:
            KeyUnavailable: If no key is passed and none is set.
        """
        return encrypt_data(value, self._resolve(key), self.nonces)

    def decrypt(self, blob: str, key: bytes | None = None) -> Any:
        """
        Decrypt a blob under the given key, or the session key.

        Raises:
            KeyUnavailable: If no key is passed and none is set.
            DecryptionFailed: If the blob does not authenticate or decode.
        """
        return decrypt_data(blob, self._resolve(key))

    def persist_key(self, path: str | Path) -> None:
        """
        Write the session key to disk so a restarted process can restore it.

        The file is left with owner-only permissions, including when it
        already existed with a looser mode.

        Raises:
            KeyUnavailable: If no session key is set.
        """
        key = self._resolve(None)
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w") as f:
            # O_CREAT only applies the mode to new files
            os.chmod(path, 0o600)
            f.write(export_key(key))
        log.debug("session_key_persisted")

    def restore_key(self, path: str | Path) -> bool:
        """
        Load a persisted session key into this vault.

        Returns:
            True if a key was restored. False if none was stored, or if the
            stored value was unusable (in which case the file is removed).
        """
        path = Path(path)
        if not path.exists():
            return False
        try:
            key = import_key(path.read_text().strip())
        except (OSError, ValueError):
            log.warning("session_key_restore_failed")
            if path.is_file():
                clear_persisted_key(path)
            return False
        self.set_key(key)
        return True
