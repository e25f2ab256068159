"""
Cryptographic primitives for the snippet vault.

Password verification hashes and vault keys both come from Argon2id; snippet
values are sealed with AES-256-GCM. Nothing in here keeps state between calls.
"""

import os
from typing import Tuple

from argon2 import PasswordHasher, Type
from argon2.exceptions import InvalidHashError, VerificationError
from argon2.low_level import hash_secret_raw
from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from . import config
from .errors import DecryptionFailedError, MalformedEncryptedValueError


class CryptoManager:
    """Handles all cryptographic operations for the vault."""

    def __init__(self, time_cost: int = config.ARGON2_TIME_COST,
                 memory_cost: int = config.ARGON2_MEMORY_COST,
                 parallelism: int = config.ARGON2_PARALLELISM):
        """
        Initialize the crypto manager.

        Args:
            time_cost: Argon2id iterations
            memory_cost: Argon2id memory in KiB
            parallelism: Argon2id lanes
        """
        self.time_cost = time_cost
        self.memory_cost = memory_cost
        self.parallelism = parallelism
        self.ph = PasswordHasher(
            time_cost=time_cost,
            memory_cost=memory_cost,
            parallelism=parallelism,
            hash_len=config.KEY_SIZE,
            type=Type.ID
        )

    def hash_password(self, password: str) -> str:
        """
        Hash a master password for later verification.

        The result is a self-describing PHC string ($argon2id$...) carrying its
        own random salt and cost parameters.
        """
        return self.ph.hash(password)

    def verify_password(self, password: str, password_hash: str) -> bool:
        """Check a password against a stored hash. Never raises."""
        try:
            return self.ph.verify(password_hash, password)
        except (VerificationError, InvalidHashError, UnicodeEncodeError):
            return False

    def generate_salt(self) -> str:
        """Generate a random key-derivation salt, hex encoded."""
        return os.urandom(config.SALT_SIZE).hex()

    def derive_key(self, password: str, salt: str) -> bytearray:
        """
        Derive the vault key from a password using Argon2id in raw mode.

        Args:
            password: The master password
            salt: Stored derivation salt; its UTF-8 bytes are fed to Argon2

        Returns:
            32-byte key, as a bytearray so the caller can zero it
        """
        salt_bytes = salt.encode('utf-8')
        if len(salt_bytes) < 8:
            raise ValueError("Derivation salt must be at least 8 bytes")
        key = hash_secret_raw(
            secret=password.encode('utf-8'),
            salt=salt_bytes,
            time_cost=self.time_cost,
            memory_cost=self.memory_cost,
            parallelism=self.parallelism,
            hash_len=config.KEY_SIZE,
            type=Type.ID
        )
        return bytearray(key)

    def encrypt(self, plaintext: str, key: bytes) -> Tuple[str, str]:
        """
        Encrypt a string using AES-256-GCM.

        Args:
            plaintext: Text to encrypt
            key: 32-byte vault key

        Returns:
            Tuple of (ciphertext_hex, nonce_hex); the ciphertext carries the tag
        """
        nonce = os.urandom(config.NONCE_SIZE)
        ciphertext = self._cipher(key).encrypt(nonce, plaintext.encode('utf-8'), None)
        return ciphertext.hex(), nonce.hex()

    def decrypt(self, ciphertext_hex: str, nonce_hex: str, key: bytes) -> str:
        """
        Decrypt a string sealed by encrypt().

        Raises:
            MalformedEncryptedValueError: If either component is not valid hex
            DecryptionFailedError: If authentication fails or the plaintext is not UTF-8
        """
        try:
            ciphertext = bytes.fromhex(ciphertext_hex)
            nonce = bytes.fromhex(nonce_hex)
        except ValueError:
            raise MalformedEncryptedValueError("Invalid hex in encrypted value") from None

        cipher = self._cipher(key)
        try:
            plaintext = cipher.decrypt(nonce, ciphertext, None)
        except (InvalidTag, ValueError):
            # ValueError covers nonces outside the lengths GCM accepts
            raise DecryptionFailedError("Decryption failed") from None

        try:
            return plaintext.decode('utf-8')
        except UnicodeDecodeError:
            raise DecryptionFailedError("Decrypted value is not valid UTF-8") from None

    def clear_bytes(self, data: bytearray) -> None:
        """Overwrite sensitive bytes in place."""
        for i in range(len(data)):
            data[i] = 0

    def _cipher(self, key: bytes) -> AESGCM:
        if len(key) != config.KEY_SIZE:
            raise ValueError(f"Vault key must be {config.KEY_SIZE} bytes, got {len(key)}")
        return AESGCM(bytes(key))
