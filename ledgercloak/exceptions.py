"""
Errors
Every failure the cloak can raise, rooted at one base class.

Cryptographic errors carry generic messages only. Nothing raised here
ever contains key material, plaintext, or which internal check failed.
"""


class LedgerCloakError(Exception):
    """Base class for all ledgercloak errors."""


class KeyUnavailable(LedgerCloakError):
    """No key was supplied and none is set on the vault."""

    def __init__(self, message: str = "Key unavailable"):
        super().__init__(message)


class DecryptionFailed(LedgerCloakError):
    """
    A blob could not be decrypted.

    Raised for a bad tag, malformed base64, a truncated blob, or a payload
    that does not deserialize. The cause is never exposed.
    """

    def __init__(self, message: str = "Invalid key or corrupted data"):
        super().__init__(message)


class InvalidSecret(LedgerCloakError, ValueError):
    """The recovery phrase failed mnemonic validation."""

    def __init__(self, message: str = "Invalid phrase"):
        super().__init__(message)


class InvalidSalt(LedgerCloakError, ValueError):
    """The salt is empty or not valid hex."""

    def __init__(self, message: str = "Invalid salt"):
        super().__init__(message)


class NonceExhausted(LedgerCloakError, RuntimeError):
    """A unique nonce could not be produced within the retry bound."""

    def __init__(self, message: str = "Unable to generate unique nonce"):
        super().__init__(message)


class SanitizationBreach(LedgerCloakError):
    """
    A forbidden field survived sanitization.

    Attributes:
        field: The offending key.
        path: Dotted location of the key inside the checked value.
    """

    def __init__(self, field: str, path: str = ""):
        self.field = field
        self.path = path
        location = f" at {path}" if path else ""
        super().__init__(f'Sanitization breach: Forbidden field "{field}" detected{location}')
