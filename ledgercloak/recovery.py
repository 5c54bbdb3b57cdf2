"""
Key Wrapping — Recovery
Protect the session key under a key derived from the recovery phrase.

Password → session key (via PBKDF2)
Phrase   → phrase key  (via BIP-39 seed + PBKDF2)
wrap(session key, phrase key) → blob that can be stored anywhere

If the password is lost, the phrase re-derives the phrase key, which
unwraps the original session key. The password itself is never stored.

A wrong phrase is an expected, user-facing condition, so unwrap_key()
reports it as None rather than raising.
"""

from ledgercloak.exceptions import DecryptionFailed
from ledgercloak.kdf import derive_key_from_phrase
from ledgercloak.logging_setup import get_logger
from ledgercloak.nonce import NonceGenerator
from ledgercloak.vault import decrypt_data, encrypt_data, export_key, import_key

log = get_logger(__name__)


def derive_recovery_key(phrase: str, salt: str) -> bytes:
    return derive_key_from_phrase(phrase, salt)


def wrap_key(key: bytes, phrase_key: bytes, nonces: NonceGenerator) -> str:
    """
    Encrypt a key's portable serialization under the phrase key.

    Returns:
        A standard encrypted blob whose plaintext is the exported key.
    """
    return encrypt_data(export_key(key), phrase_key, nonces)


def unwrap_key(wrapped: str, phrase_key: bytes) -> bytes | None:
    """
    Recover a wrapped key.

    Returns:
        The original key, or None if the phrase key is wrong or the wrapped
        data is corrupted.
    """
    try:
        serialized = decrypt_data(wrapped, phrase_key)
    except DecryptionFailed:
        log.info("key_unwrap_rejected")
        return None

    if not isinstance(serialized, str) or not serialized:
        log.info("key_unwrap_rejected")
        return None

    try:
        return import_key(serialized)
    except ValueError:
        log.info("key_unwrap_rejected")
        return None
