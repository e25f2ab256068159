"""
Exceptions raised by the vault subsystem.

Callers distinguish VaultLockedError (prompt for the master password) from
every other failure (show it to the user).
"""


class SkladError(Exception):
    """Base class for all Sklad errors."""


class WrongPasswordError(SkladError):
    """The master password did not match the stored hash."""


class VaultLockedError(SkladError):
    """The operation needs an unlocked vault."""

    def __init__(self, message: str = "Vault is locked"):
        super().__init__(message)


class InconsistentSecurityStateError(SkladError):
    """Master password protection is enabled but the settings carry no usable hash or salt."""


class MalformedEncryptedValueError(SkladError):
    """An encrypted value does not have the nonce:ciphertext hex layout."""


class DecryptionFailedError(SkladError):
    """Authentication failed, or the plaintext is not valid UTF-8."""


class EntryNotFoundError(SkladError):
    """No node with the requested id exists in the tree."""

    def __init__(self, entry_id: str):
        super().__init__(f"Snippet not found: {entry_id}")
        self.entry_id = entry_id


class EmptyValueError(SkladError):
    """The revealed value is empty, so there is nothing to copy."""


class StorageError(SkladError):
    """A data or settings file could not be read, parsed or written."""
