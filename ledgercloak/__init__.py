"""
ledgercloak — Financial Data Protection
Client-side encryption and AI-safe sanitization for personal finance data.

ledgercloak provides two complementary layers:
1. Vault: AES-256-GCM encryption under a password-derived key, with a
   recovery path through a BIP-39 phrase (the lock)
2. Cloak: sanitization of records into rounded, bucketed aggregates plus
   a mandatory forbidden-field gate before anything reaches an AI (the cloak)

Usage:
    from ledgercloak import Vault, derive_key, generate_salt, prepare_prompt
    vault = Vault()
    vault.set_key(derive_key("my-password", generate_salt()))
    blob = vault.encrypt({"transactions": [...]})
    text = prepare_prompt(transactions, budgets, goals, debts)
"""

from ledgercloak.cloak import FORBIDDEN_FIELDS, build_ai_context, prepare_prompt, validate_sanitized_data
from ledgercloak.exceptions import (
    DecryptionFailed,
    InvalidSalt,
    InvalidSecret,
    KeyUnavailable,
    LedgerCloakError,
    NonceExhausted,
    SanitizationBreach,
)
from ledgercloak.kdf import derive_key, derive_key_from_phrase, generate_salt
from ledgercloak.nonce import FileCounterStore, MemoryCounterStore, NonceGenerator, default_nonce_generator
from ledgercloak.prompt import format_context_for_prompt
from ledgercloak.recovery import unwrap_key, wrap_key
from ledgercloak.sanitize import round_amount, sanitize_prompt_context
from ledgercloak.vault import Vault, decrypt_data, encrypt_data, export_key, import_key

__version__ = "0.1.0"
__all__ = [
    "Vault",
    "encrypt_data",
    "decrypt_data",
    "export_key",
    "import_key",
    "NonceGenerator",
    "MemoryCounterStore",
    "FileCounterStore",
    "default_nonce_generator",
    "derive_key",
    "derive_key_from_phrase",
    "generate_salt",
    "wrap_key",
    "unwrap_key",
    "round_amount",
    "sanitize_prompt_context",
    "build_ai_context",
    "prepare_prompt",
    "validate_sanitized_data",
    "format_context_for_prompt",
    "FORBIDDEN_FIELDS",
    "LedgerCloakError",
    "KeyUnavailable",
    "DecryptionFailed",
    "InvalidSecret",
    "InvalidSalt",
    "NonceExhausted",
    "SanitizationBreach",
]
