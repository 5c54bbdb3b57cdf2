"""
Key Derivation
PBKDF2-HMAC-SHA256 key stretching for passwords and recovery phrases.

The iteration count, hash, and key length are part of the compatibility
contract: a key derived today must be re-derivable on any other install
to decrypt existing data or a wrapped recovery key. They are not tunable
per call.
"""

import os

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from ledgercloak.exceptions import InvalidSalt, InvalidSecret
from ledgercloak.phrase import phrase_to_seed, validate_recovery_phrase

PBKDF2_ITERATIONS = 100_000
SALT_SIZE = 16
KEY_SIZE = 32    # 256 bits


def generate_salt() -> str:
    """Generate a random 16-byte salt, hex-encoded."""
    return os.urandom(SALT_SIZE).hex()


def _salt_bytes(salt: str) -> bytes:
    if not salt or not isinstance(salt, str):
        raise InvalidSalt()
    try:
        return bytes.fromhex(salt)
    except ValueError:
        raise InvalidSalt() from None


def _stretch(secret: bytes, salt: bytes) -> bytes:
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=KEY_SIZE,
        salt=salt,
        iterations=PBKDF2_ITERATIONS,
    )
    return kdf.derive(secret)


def derive_key(password: str | bytes, salt: str) -> bytes:
    """
    Derive an AES-256 key from a password.

    Args:
        password: The user's password (str is encoded as UTF-8).
        salt: Hex-encoded salt from generate_salt().

    Returns:
        32-byte key.

    Raises:
        InvalidSalt: If the salt is empty or not hex.
    """
    salt_bytes = _salt_bytes(salt)
    if isinstance(password, str):
        password = password.encode("utf-8")
    return _stretch(password, salt_bytes)


def derive_key_from_phrase(phrase: str, salt: str) -> bytes:
    """
    Derive an AES-256 key from a recovery phrase.

    The phrase is validated, expanded to its BIP-39 seed, and the seed is
    stretched with the same PBKDF2 parameters as a password.

    Raises:
        InvalidSecret: If the phrase fails mnemonic validation.
        InvalidSalt: If the salt is empty or not hex.
    """
    if not validate_recovery_phrase(phrase):
        raise InvalidSecret()
    salt_bytes = _salt_bytes(salt)
    return _stretch(phrase_to_seed(phrase), salt_bytes)
