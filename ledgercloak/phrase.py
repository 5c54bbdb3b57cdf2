"""
Recovery Phrases
BIP-39 mnemonic helpers backed by the reference `mnemonic` implementation.

The word list and checksum mechanics belong to the library. This module
only exposes the handful of operations the key-management layer needs.
"""

import hashlib
import secrets

from mnemonic import Mnemonic

PHRASE_STRENGTH = 128  # bits of entropy -> 12 words
PHRASE_WORDS = 12

_mnemo = Mnemonic("english")


def generate_recovery_phrase() -> str:
    """Generate a fresh 12-word recovery phrase."""
    return _mnemo.generate(strength=PHRASE_STRENGTH)


def validate_recovery_phrase(phrase: str) -> bool:
    """Check word list membership, word count, and checksum."""
    if not phrase or not isinstance(phrase, str):
        return False
    try:
        return _mnemo.check(phrase)
    except (ValueError, LookupError):
        return False


def phrase_to_seed(phrase: str) -> bytes:
    """BIP-39 seed (64 bytes) for a phrase, with an empty passphrase."""
    return Mnemonic.to_seed(phrase, passphrase="")


def hash_recovery_phrase(phrase: str) -> str:
    """SHA-256 hex digest of the phrase, for storing a verification hash."""
    return hashlib.sha256(phrase.encode("utf-8")).hexdigest()


def phrase_to_words(phrase: str) -> list[str]:
    return phrase.strip().lower().split()


def words_to_phrase(words: list[str]) -> str:
    return " ".join(words)


def get_verification_indices(count: int = 3, word_count: int = PHRASE_WORDS) -> list[int]:
    """
    Pick distinct word positions the user must re-enter to confirm the phrase.

    Returns:
        Sorted list of `count` distinct indices in [0, word_count).
    """
    if count > word_count:
        raise ValueError("count cannot exceed word_count")
    indices: set[int] = set()
    while len(indices) < count:
        indices.add(secrets.randbelow(word_count))
    return sorted(indices)
