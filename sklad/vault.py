"""
Lock/unlock state of the vault.

A VaultManager holds at most one derived key. It starts locked on every
process start; the key lives only in memory and is zeroed on lock.
"""

import logging
import threading
from typing import Optional, Tuple

from . import config
from .crypto import CryptoManager
from .errors import InconsistentSecurityStateError, VaultLockedError

logger = logging.getLogger(__name__)


class VaultManager:
    """
    Owns the vault key and the id of the last revealed snippet.

    The internal lock is held only while reading or swapping state. Callers
    that walk a whole tree take a copy of the key with key() and work on that.
    """

    def __init__(self, crypto: Optional[CryptoManager] = None):
        self.crypto = crypto or CryptoManager()
        self._lock = threading.Lock()
        self._key: Optional[bytearray] = None
        self._last_used_id: Optional[str] = None

    def initialize(self, master_password: str) -> Tuple[str, str]:
        """
        Set a master password for the first time and unlock the vault.

        Args:
            master_password: The new master password

        Returns:
            (password_hash, derivation_salt) for the caller to persist
        """
        password_hash, salt, key = self.prepare_key(master_password)
        self._swap_key(key)
        logger.info("Vault initialized with a new master password")
        return password_hash, salt

    def prepare_key(self, master_password: str) -> Tuple[str, str, bytearray]:
        """
        Hash a new master password and derive its key under a fresh salt.

        The vault state is not touched; hand the key to adopt_key once the
        data sealed with it is safely on disk.

        Returns:
            (password_hash, derivation_salt, key)
        """
        password_hash = self.crypto.hash_password(master_password)
        salt = self.crypto.generate_salt()
        key = self.crypto.derive_key(master_password, salt)
        return password_hash, salt, key

    def adopt_key(self, key: bytearray) -> None:
        """Replace the current key with one from prepare_key; the old key is zeroed."""
        self._swap_key(key)
        logger.info("Vault re-keyed")

    def unlock(self, master_password: str, password_hash: Optional[str],
               derivation_salt: Optional[str], master_password_enabled: bool = True) -> bool:
        """
        Unlock the vault.

        Args:
            master_password: The password entered by the user
            password_hash: Stored verification hash, if any
            derivation_salt: Stored key-derivation salt, if any
            master_password_enabled: Whether settings require a password

        Returns:
            True if unlocked, False on a wrong password (vault stays locked)

        Raises:
            InconsistentSecurityStateError: If protection is enabled but no hash
                is on record, or a hash exists without its salt
        """
        if password_hash:
            if not self.crypto.verify_password(master_password, password_hash):
                logger.warning("Unlock: master password verification failed")
                return False
            if not derivation_salt:
                raise InconsistentSecurityStateError(
                    "Password hash found without a derivation salt. Please reset vault.")
        elif master_password_enabled:
            raise InconsistentSecurityStateError(
                "Security enabled but no password hash found. Please reset vault.")

        if not derivation_salt:
            logger.warning("Unlock: no derivation salt on record, using the legacy default salt")
            derivation_salt = config.LEGACY_DEFAULT_SALT

        key = self.crypto.derive_key(master_password, derivation_salt)
        self._swap_key(key)
        logger.info("Vault unlocked")
        return True

    def lock(self) -> None:
        """Lock the vault and zero the key."""
        self._swap_key(None)
        logger.info("Vault locked")

    def disable_master_password(self) -> None:
        """Force the locked state after password protection is turned off."""
        self._swap_key(None)
        logger.info("Master password disabled, vault locked")

    def is_unlocked(self) -> bool:
        """Check if vault is unlocked."""
        with self._lock:
            return self._key is not None

    def key(self) -> bytearray:
        """
        Return a copy of the vault key.

        The caller should zero the copy with CryptoManager.clear_bytes when done.

        Raises:
            VaultLockedError: If the vault is locked
        """
        with self._lock:
            if self._key is None:
                raise VaultLockedError()
            return bytearray(self._key)

    @property
    def last_used_id(self) -> Optional[str]:
        with self._lock:
            return self._last_used_id

    @last_used_id.setter
    def last_used_id(self, entry_id: Optional[str]) -> None:
        with self._lock:
            self._last_used_id = entry_id

    def _swap_key(self, key: Optional[bytearray]) -> None:
        with self._lock:
            old, self._key = self._key, key
        if old is not None:
            self.crypto.clear_bytes(old)
