"""
ledgercloak — Basic Usage Example

Demonstrates encrypting a personal finance store under a password, setting
up phrase-based recovery, and releasing an AI-safe summary of the data.
"""

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))

from ledgercloak import Vault, default_nonce_generator, derive_key, generate_salt, prepare_prompt
from ledgercloak.config import get_settings
from ledgercloak.logging_setup import configure_logging
from ledgercloak.phrase import generate_recovery_phrase
from ledgercloak.recovery import derive_recovery_key, unwrap_key, wrap_key


def main():
    configure_logging()
    settings = get_settings()

    # Your password, the everyday key to your data
    password = "my-secret-password-change-this"
    salt = generate_salt()

    print("=" * 50)
    print("  ledgercloak — Encrypted + Sanitized Finances")
    print("=" * 50)

    nonces = default_nonce_generator()
    vault = Vault(nonces)
    vault.set_key(derive_key(password, salt))

    my_data = {
        "transactions": [
            {"id": "t-1", "type": "income", "amount": 5200, "category": "salary",
             "date": "2026-10-01", "description": "ACME Corp payroll"},
            {"id": "t-2", "type": "expense", "amount": 1480, "category": "rent",
             "date": "2026-10-02", "notes": "Flat 4B"},
            {"id": "t-3", "type": "expense", "amount": 63.20, "category": "groceries",
             "date": "2026-10-09", "merchantName": "Corner Market"},
        ],
        "budgets": [
            {"category": "groceries", "limit": 400, "period": "monthly"},
            {"category": "rent", "limit": 1500, "period": "monthly"},
        ],
        "goals": [
            {"name": "Emergency fund", "targetAmount": 10000, "currentAmount": 3200,
             "targetDate": "2027-12-31"},
        ],
        "debts": [
            {"type": "credit-card", "balance": 2310.75, "interestRate": 21.9,
             "minimumPayment": 55, "accountName": "Visa ****4321"},
        ],
    }

    # 1. Encrypt the whole store
    blob = vault.encrypt(my_data)
    print(f"\nEncrypted store: {len(blob)} bytes of base64")
    assert vault.decrypt(blob) == my_data

    # 2. Recovery: wrap the session key under a phrase-derived key
    phrase = generate_recovery_phrase()
    wrapped = wrap_key(vault.get_key(), derive_recovery_key(phrase, salt), nonces)
    print(f"Recovery phrase (write this down): {phrase}")

    recovered = unwrap_key(wrapped, derive_recovery_key(phrase, salt))
    assert recovered == vault.get_key()
    print("Recovery phrase unwraps the session key: OK")

    # 3. Release an AI-safe summary; ids, notes, and names never leave
    print("\nPrompt context for the assistant:\n")
    print(prepare_prompt(
        my_data["transactions"],
        my_data["budgets"],
        my_data["goals"],
        my_data["debts"],
        settings.currency_symbol,
    ))

    vault.clear_key()


if __name__ == "__main__":
    main()
