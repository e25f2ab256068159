"""
Commands invoked by the tray and other front ends.

Sklad ties the data files, the vault state, the tree crypto engine and the
gateway together. Front ends never touch keys or ciphertext themselves.
"""

import logging
from typing import Callable, List, Optional, Tuple

from . import tree
from .crypto import CryptoManager
from .errors import (
    EntryNotFoundError, InconsistentSecurityStateError, StorageError, VaultLockedError, WrongPasswordError
)
from .gateway import reveal, reveal_last_used
from .models import AppSettings, Node
from .storage import DataManager
from .tree_crypto import (decrypt_secrets, drop_stale_ciphertexts, encrypt_secrets,
                          find_node, has_unencrypted_secrets, iter_nodes, remove_secrets)
from .vault import VaultManager

logger = logging.getLogger(__name__)


class Sklad:
    """Command facade over one data directory and one vault."""

    def __init__(self, storage: Optional[DataManager] = None,
                 vault: Optional[VaultManager] = None):
        self.storage = storage or DataManager()
        self.vault = vault or VaultManager()

    @property
    def crypto(self) -> CryptoManager:
        return self.vault.crypto

    def get_data(self) -> List[Node]:
        """Load the tree, with secret values filled in when the vault is unlocked."""
        nodes = self.storage.load_tree()
        try:
            key = self.vault.key()
        except VaultLockedError:
            return nodes
        try:
            decrypt_secrets(self.crypto, nodes, key)
        finally:
            self.crypto.clear_bytes(key)
        return nodes

    def save_data(self, nodes: List[Node]) -> List[Node]:
        """
        Seal and persist a tree.

        Returns:
            The tree as written

        Raises:
            VaultLockedError: If the tree holds plaintext secrets and the vault is locked
        """
        nodes = drop_stale_ciphertexts(nodes)
        if has_unencrypted_secrets(nodes):
            key = self.vault.key()
            try:
                nodes = encrypt_secrets(self.crypto, nodes, key)
            finally:
                self.crypto.clear_bytes(key)
        self.storage.save_tree(nodes)
        return nodes

    def can_set_master_password(self) -> bool:
        """
        True when a first master password may be chosen.

        That is the case only while no hash is on record and the data file
        holds no ciphertext that a new key would orphan.
        """
        if self.storage.load_settings().security.password_hash:
            return False
        return not any(node.encrypted_value for node in iter_nodes(self.storage.load_tree()))

    def init_vault(self, master_password: str) -> None:
        """
        Set the first master password, unlock, and record hash and salt in the settings.

        Raises:
            InconsistentSecurityStateError: If a master password is already set
                or stored secrets would be orphaned by a new key
        """
        if not self.can_set_master_password():
            raise InconsistentSecurityStateError(
                "A master password is already set or encrypted snippets exist. "
                "Change the password or reset the vault instead.")
        password_hash, salt, key = self.vault.prepare_key(master_password)
        settings = self.storage.load_settings()
        settings.security.master_password_enabled = True
        settings.security.password_hash = password_hash
        settings.security.derivation_salt = salt
        try:
            self.storage.save_settings(settings)
        except StorageError:
            self.crypto.clear_bytes(key)
            raise
        self.vault.adopt_key(key)
        logger.info("Master password set")

    def unlock_vault(self, master_password: str) -> bool:
        """
        Unlock with the master password.

        Returns:
            True if unlocked, False on a wrong password

        Raises:
            InconsistentSecurityStateError: If the settings are unusable
        """
        security = self.storage.load_settings().security
        unlocked = self.vault.unlock(
            master_password,
            security.password_hash,
            security.derivation_salt,
            security.master_password_enabled,
        )
        if unlocked:
            self.seal_stored_secrets()
        return unlocked

    def lock_vault(self) -> None:
        self.vault.lock()

    def is_vault_unlocked(self) -> bool:
        return self.vault.is_unlocked()

    def change_master_password(self, old_password: str, new_password: str) -> None:
        """
        Re-key the vault under a new master password.

        Every secret is decrypted with the old key and sealed again with the
        new one. Secrets that cannot be decrypted with the old key stay as
        they are and will not open under the new key.

        The data file is written before the settings. If the settings write
        fails the previous data file is put back, and the vault keeps the old
        key until both writes succeed.

        Raises:
            WrongPasswordError: If old_password does not unlock the vault
            StorageError: If either file cannot be written; the old password
                still works afterwards
        """
        if not self.unlock_vault(old_password):
            raise WrongPasswordError("Current master password is incorrect")

        previous_tree = self.storage.load_tree()
        nodes = self.get_data()
        unreadable = [n.id for n in iter_nodes(nodes)
                      if n.secret and n.encrypted_value is not None and n.value is None]
        if unreadable:
            logger.warning(f"Change password: {len(unreadable)} secret(s) could not be decrypted "
                           f"and will not be re-encrypted: {unreadable}")
        for node in iter_nodes(nodes):
            if node.secret and node.value is not None:
                node.encrypted_value = None

        password_hash, salt, new_key = self.vault.prepare_key(new_password)
        try:
            sealed = encrypt_secrets(self.crypto, drop_stale_ciphertexts(nodes), new_key)
            self.storage.save_tree(sealed)

            settings = self.storage.load_settings()
            settings.security.master_password_enabled = True
            settings.security.password_hash = password_hash
            settings.security.derivation_salt = salt
            try:
                self.storage.save_settings(settings)
            except StorageError:
                logger.error("Change password: settings not saved, restoring the previous data file")
                self.storage.save_tree(previous_tree)
                raise
        except Exception:
            self.crypto.clear_bytes(new_key)
            raise

        self.vault.adopt_key(new_key)
        logger.info("Master password changed")

    def add_node(self, node: Node, parent_id: Optional[str] = None,
                 before_id: Optional[str] = None) -> Node:
        """
        Add a folder or snippet and save the tree.

        Raises:
            EntryNotFoundError: If the parent does not exist
            VaultLockedError: If the node is a secret with a value and the vault is locked
        """
        nodes = tree.add_node(self.get_data(), node, parent_id, before_id)
        self.save_data(nodes)
        logger.info(f"Added {node.type.value} {node.id}")
        return find_node(nodes, node.id)

    def update_node(self, entry_id: str, label: Optional[str] = None,
                    value: Optional[str] = None, is_secret: Optional[bool] = None) -> Node:
        """
        Edit a node and save the tree. None leaves a field unchanged.

        Raises:
            EntryNotFoundError: If there is no such node
            VaultLockedError: If a secret value would have to be sealed or
                opened while the vault is locked
        """
        nodes = self.get_data()
        current = find_node(nodes, entry_id)
        if current is None:
            raise EntryNotFoundError(entry_id)
        if current.secret and is_secret is False and current.value is None:
            # Un-flagging needs the plaintext
            if not self.vault.is_unlocked():
                raise VaultLockedError()

        nodes = tree.update_node(nodes, entry_id, label, value, is_secret)
        self.save_data(nodes)
        logger.info(f"Updated node {entry_id}")
        return find_node(nodes, entry_id)

    def delete_node(self, entry_id: str) -> None:
        """
        Delete a node, with everything inside it, and save the tree.

        Raises:
            EntryNotFoundError: If there is no such node
        """
        nodes = tree.remove_node(self.get_data(), entry_id)
        self.save_data(nodes)
        if self.vault.last_used_id is not None and find_node(nodes, self.vault.last_used_id) is None:
            self.vault.last_used_id = None
        logger.info(f"Deleted node {entry_id}")

    def move_node(self, entry_id: str, parent_id: Optional[str] = None,
                  before_id: Optional[str] = None) -> None:
        """
        Move a node to another folder or position and save the tree.

        Raises:
            EntryNotFoundError: If the node or the target folder does not exist
            ValueError: If a folder would be moved into itself
        """
        nodes = tree.move_node(self.get_data(), entry_id, parent_id, before_id)
        self.save_data(nodes)
        logger.info(f"Moved node {entry_id} to {parent_id or 'top level'}")

    def seal_stored_secrets(self) -> bool:
        """
        Encrypt secret snippets that sit in the data file as plaintext.

        Such values appear when the file is edited by hand. Needs the vault
        unlocked; when locked nothing is done.

        Returns:
            True if the data file was rewritten
        """
        if not self.vault.is_unlocked():
            return False
        nodes = self.storage.load_tree()
        if not has_unencrypted_secrets(nodes):
            return False
        for node in iter_nodes(nodes):
            if node.secret and node.value is not None:
                node.encrypted_value = None
        self.save_data(nodes)
        logger.info("Sealed plaintext secret snippets found in the data file")
        return True

    def copy_snippet(self, entry_id: str, write_clipboard: Callable[[str], None]) -> Node:
        """
        Reveal one snippet and hand its value to the clipboard.

        Returns:
            The node that was copied, for notifications

        Raises:
            Any error of gateway.reveal, unchanged
        """
        self.seal_stored_secrets()
        nodes = self.storage.load_tree()
        value = reveal(self.vault, nodes, entry_id)
        write_clipboard(value)
        return find_node(nodes, entry_id)

    def copy_last_used(self, write_clipboard: Callable[[str], None]) -> Node:
        """Copy the snippet copied most recently again."""
        nodes = self.storage.load_tree()
        value = reveal_last_used(self.vault, nodes)
        write_clipboard(value)
        return find_node(nodes, self.vault.last_used_id)

    def get_settings(self) -> AppSettings:
        return self.storage.load_settings()

    def save_settings(self, settings: AppSettings) -> None:
        """Persist settings; turning off the master password locks the vault."""
        if not settings.security.master_password_enabled:
            self.vault.disable_master_password()
        self.storage.save_settings(settings)

    def reset_vault(self) -> Tuple[List[Node], AppSettings]:
        """
        Forget the master password and delete every secret snippet.

        This is the way out of an inconsistent security state.
        """
        nodes = remove_secrets(self.storage.load_tree())
        settings = self.storage.load_settings()
        settings.security.master_password_enabled = False
        settings.security.password_hash = None
        settings.security.derivation_salt = None

        self.vault.lock()
        self.vault.last_used_id = None
        self.storage.save_tree(nodes)
        self.storage.save_settings(settings)
        logger.warning("Vault reset: secret snippets removed and master password cleared")
        return nodes, settings

    def get_snippets_path(self) -> str:
        return self.storage.file_path
