"""
Vault — Encryption Tests
Key derivation, the encrypted blob format, the key context, and recovery wrapping.
"""

import base64
import hashlib
import os
import stat
import sys
from pathlib import Path

import pytest
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from mnemonic import Mnemonic

sys.path.insert(0, str(Path(__file__).parent.parent))

from ledgercloak.exceptions import DecryptionFailed, InvalidSalt, InvalidSecret, KeyUnavailable
from ledgercloak.kdf import PBKDF2_ITERATIONS, derive_key, derive_key_from_phrase, generate_salt
from ledgercloak.nonce import FileCounterStore, MemoryCounterStore, NonceGenerator
from ledgercloak.phrase import (
    generate_recovery_phrase,
    get_verification_indices,
    hash_recovery_phrase,
    phrase_to_words,
    validate_recovery_phrase,
    words_to_phrase,
)
from ledgercloak.recovery import derive_recovery_key, unwrap_key, wrap_key
from ledgercloak.vault import (
    Vault,
    clear_persisted_key,
    decrypt_data,
    encrypt_data,
    export_key,
    generate_key,
    import_key,
)

TEST_PASSWORD = "test-password-do-not-use-in-production"
TEST_PHRASE = (
    "abandon abandon abandon abandon abandon abandon "
    "abandon abandon abandon abandon abandon about"
)
BAD_CHECKSUM_PHRASE = " ".join(["abandon"] * 12)
TEST_SALT = "00112233445566778899aabbccddeeff"


@pytest.fixture
def nonces():
    return NonceGenerator(MemoryCounterStore())


# =============================================================================
# KEY DERIVATION
# =============================================================================

def test_generate_salt():
    salt = generate_salt()
    assert len(salt) == 32
    assert bytes.fromhex(salt)
    assert generate_salt() != salt


def test_password_key_is_deterministic_pbkdf2_sha256():
    """Same password + salt always yields the same PBKDF2-SHA256 key."""
    key = derive_key(TEST_PASSWORD, TEST_SALT)
    assert len(key) == 32
    assert derive_key(TEST_PASSWORD, TEST_SALT) == key
    assert derive_key(TEST_PASSWORD.encode("utf-8"), TEST_SALT) == key

    expected = hashlib.pbkdf2_hmac(
        "sha256", TEST_PASSWORD.encode("utf-8"), bytes.fromhex(TEST_SALT), 100_000, 32,
    )
    assert PBKDF2_ITERATIONS == 100_000
    assert key == expected


def test_password_key_depends_on_salt():
    assert derive_key(TEST_PASSWORD, TEST_SALT) != derive_key(TEST_PASSWORD, generate_salt())


@pytest.mark.parametrize("salt", ["", "zz", "abc", "not-hex-at-all"])
def test_invalid_salt_rejected(salt):
    with pytest.raises(InvalidSalt):
        derive_key(TEST_PASSWORD, salt)


def test_phrase_key_matches_seed_stretch():
    """Phrase keys stretch the BIP-39 seed with the same PBKDF2 parameters."""
    key = derive_key_from_phrase(TEST_PHRASE, TEST_SALT)
    seed = Mnemonic.to_seed(TEST_PHRASE, passphrase="")
    expected = hashlib.pbkdf2_hmac("sha256", seed, bytes.fromhex(TEST_SALT), 100_000, 32)
    assert key == expected
    assert derive_recovery_key(TEST_PHRASE, TEST_SALT) == key


def test_invalid_phrase_rejected():
    with pytest.raises(InvalidSecret):
        derive_key_from_phrase(BAD_CHECKSUM_PHRASE, TEST_SALT)
    with pytest.raises(InvalidSecret):
        derive_key_from_phrase("not a real phrase", TEST_SALT)


def test_phrase_checked_before_salt():
    with pytest.raises(InvalidSecret):
        derive_key_from_phrase(BAD_CHECKSUM_PHRASE, "zz")


# =============================================================================
# RECOVERY PHRASES
# =============================================================================

def test_generated_phrase_is_valid():
    phrase = generate_recovery_phrase()
    assert len(phrase_to_words(phrase)) == 12
    assert validate_recovery_phrase(phrase)
    assert not validate_recovery_phrase(BAD_CHECKSUM_PHRASE)
    assert not validate_recovery_phrase("")
    assert not validate_recovery_phrase("zzz " * 12)


def test_phrase_word_helpers():
    words = phrase_to_words("  Abandon   ABOUT\n")
    assert words == ["abandon", "about"]
    assert words_to_phrase(words) == "abandon about"


def test_hash_recovery_phrase():
    digest = hash_recovery_phrase(TEST_PHRASE)
    assert digest == hashlib.sha256(TEST_PHRASE.encode("utf-8")).hexdigest()
    assert len(digest) == 64


def test_verification_indices():
    for _ in range(50):
        indices = get_verification_indices()
        assert len(indices) == 3
        assert indices == sorted(set(indices))
        assert all(0 <= i < 12 for i in indices)
    with pytest.raises(ValueError):
        get_verification_indices(count=13)


# =============================================================================
# ENCRYPTION
# =============================================================================

@pytest.mark.parametrize("value", [
    {"transactions": [{"amount": 12.5, "category": "food"}], "ok": True},
    ["a", 1, None, 2.5],
    "plain string with ünïcode ✓",
    42,
    None,
])
def test_round_trip(value, nonces):
    key = generate_key()
    blob = encrypt_data(value, key, nonces)
    assert decrypt_data(blob, key) == value


def test_blob_format(nonces):
    """base64(nonce[12] || ciphertext || tag[16]), compact JSON plaintext."""
    key = generate_key()
    blob = encrypt_data({"a": 1}, key, nonces)
    raw = base64.b64decode(blob)
    plaintext = b'{"a":1}'
    assert len(raw) == 12 + len(plaintext) + 16

    # Independently decryptable with plain AES-GCM
    assert AESGCM(key).decrypt(raw[:12], raw[12:], None) == plaintext


def test_same_value_encrypts_differently(nonces):
    key = generate_key()
    assert encrypt_data("x", key, nonces) != encrypt_data("x", key, nonces)


def test_wrong_key_fails(nonces):
    blob = encrypt_data({"secret": "data"}, generate_key(), nonces)
    with pytest.raises(DecryptionFailed):
        decrypt_data(blob, generate_key())


def test_failures_are_undifferentiated(nonces):
    """Tampering, bad base64, truncation, and bad payloads look identical."""
    key = generate_key()
    blob = encrypt_data({"secret": "data"}, key, nonces)

    raw = bytearray(base64.b64decode(blob))
    raw[-1] ^= 0x01
    tampered = base64.b64encode(bytes(raw)).decode()

    nonce = os.urandom(12)
    not_json = base64.b64encode(nonce + AESGCM(key).encrypt(nonce, b"\xff\xfe{", None)).decode()

    messages = set()
    for bad in [tampered, "not base64!!", base64.b64encode(b"short").decode(), not_json, ""]:
        with pytest.raises(DecryptionFailed) as exc:
            decrypt_data(bad, key)
        assert exc.value.__cause__ is None
        assert exc.value.__suppress_context__
        messages.add(str(exc.value))

    assert messages == {"Invalid key or corrupted data"}


def test_export_import_key():
    key = generate_key()
    assert import_key(export_key(key)) == key
    with pytest.raises(ValueError):
        import_key(base64.b64encode(b"too short").decode())
    with pytest.raises(ValueError):
        import_key("@@@@")


# =============================================================================
# KEY CONTEXT
# =============================================================================

def test_vault_requires_a_key():
    vault = Vault()
    assert not vault.has_key()
    assert vault.get_key() is None
    with pytest.raises(KeyUnavailable):
        vault.encrypt({"a": 1})
    with pytest.raises(KeyUnavailable):
        vault.decrypt("AAAA")


def test_vault_session_key_lifecycle(nonces):
    vault = Vault(nonces)
    key = derive_key(TEST_PASSWORD, TEST_SALT)
    vault.set_key(key)
    assert vault.has_key()
    assert vault.get_key() == key

    blob = vault.encrypt({"balance": 100})
    assert vault.decrypt(blob) == {"balance": 100}

    vault.clear_key()
    assert not vault.has_key()
    with pytest.raises(KeyUnavailable):
        vault.decrypt(blob)
    # Explicit key still works after logout
    assert vault.decrypt(blob, key) == {"balance": 100}


def test_explicit_key_overrides_session_key(nonces):
    vault = Vault(nonces)
    vault.set_key(generate_key())
    other = generate_key()
    blob = vault.encrypt("payload", other)
    assert decrypt_data(blob, other) == "payload"
    with pytest.raises(DecryptionFailed):
        vault.decrypt(blob)


def test_set_key_rejects_wrong_size():
    with pytest.raises(ValueError):
        Vault().set_key(b"x" * 16)


def test_persist_and_restore_key(tmp_path, nonces):
    """A restarted process restores the session key and reads old data."""
    path = tmp_path / "session.key"
    vault = Vault(nonces)
    vault.set_key(derive_key(TEST_PASSWORD, TEST_SALT))
    blob = vault.encrypt({"budget": "food"})
    vault.persist_key(path)

    if os.name == "posix":
        assert stat.S_IMODE(path.stat().st_mode) == 0o600

    restarted = Vault()
    assert restarted.restore_key(path)
    assert restarted.decrypt(blob) == {"budget": "food"}

    clear_persisted_key(path)
    assert not path.exists()
    assert not Vault().restore_key(path)


def test_restore_discards_corrupt_key(tmp_path):
    path = tmp_path / "session.key"
    path.write_text("garbage")
    vault = Vault()
    assert not vault.restore_key(path)
    assert not vault.has_key()
    assert not path.exists()


def test_persist_without_key_fails(tmp_path):
    with pytest.raises(KeyUnavailable):
        Vault().persist_key(tmp_path / "session.key")


@pytest.mark.skipif(os.name != "posix", reason="POSIX permission bits")
def test_persist_tightens_existing_file_mode(tmp_path, nonces):
    """A pre-existing world-readable file is locked down before the key lands in it."""
    path = tmp_path / "session.key"
    path.write_text("stale")
    os.chmod(path, 0o644)

    vault = Vault(nonces)
    vault.set_key(generate_key())
    vault.persist_key(path)

    assert stat.S_IMODE(path.stat().st_mode) == 0o600
    assert import_key(path.read_text()) == vault.get_key()


def test_restore_from_directory_reports_false(tmp_path):
    path = tmp_path / "session.key"
    path.mkdir()
    vault = Vault()
    assert not vault.restore_key(path)
    assert not vault.has_key()
    assert path.is_dir()


def test_default_vault_persists_its_counter(isolated_data_dir):
    """Without an explicit generator the counter survives a restart."""
    vault = Vault()
    assert isinstance(vault.nonces.store, FileCounterStore)
    assert vault.nonces.store.path == isolated_data_dir / "nonce-counter.json"

    vault.encrypt({"a": 1}, generate_key())
    assert Vault().nonces.counter == vault.nonces.counter


# =============================================================================
# KEY WRAPPING
# =============================================================================

def test_wrap_unwrap_round_trip(nonces):
    session_key = derive_key(TEST_PASSWORD, TEST_SALT)
    phrase_key = derive_recovery_key(TEST_PHRASE, TEST_SALT)
    wrapped = wrap_key(session_key, phrase_key, nonces)
    assert unwrap_key(wrapped, phrase_key) == session_key


def test_recovery_restores_access(nonces):
    """Data encrypted under the password key is readable after phrase recovery."""
    salt = generate_salt()
    phrase = generate_recovery_phrase()
    session_key = derive_key(TEST_PASSWORD, salt)
    vault = Vault(nonces)
    vault.set_key(session_key)
    blob = vault.encrypt({"goals": 3})
    wrapped = wrap_key(session_key, derive_recovery_key(phrase, salt), nonces)

    # Password forgotten: start over from the phrase alone
    recovered = unwrap_key(wrapped, derive_recovery_key(phrase, salt))
    fresh = Vault()
    fresh.set_key(recovered)
    assert fresh.decrypt(blob) == {"goals": 3}


def test_unwrap_with_wrong_key_returns_none(nonces):
    wrapped = wrap_key(generate_key(), generate_key(), nonces)
    assert unwrap_key(wrapped, generate_key()) is None


def test_unwrap_corrupted_returns_none(nonces):
    phrase_key = generate_key()
    assert unwrap_key("definitely not a blob", phrase_key) is None
    # Decrypts fine, but the payload is not a serialized key
    assert unwrap_key(encrypt_data({"k": 1}, phrase_key, nonces), phrase_key) is None
    assert unwrap_key(encrypt_data("short", phrase_key, nonces), phrase_key) is None
    assert unwrap_key(encrypt_data("", phrase_key, nonces), phrase_key) is None
