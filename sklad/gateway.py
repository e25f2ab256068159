"""
Secret-access gateway: the one read path that reveals a single snippet.
"""

import logging
from typing import List

from .errors import DecryptionFailedError, EmptyValueError, EntryNotFoundError
from .models import Node
from .tree_crypto import decrypt_value, find_node
from .vault import VaultManager

logger = logging.getLogger(__name__)


def reveal(vault: VaultManager, nodes: List[Node], entry_id: str) -> str:
    """
    Return the plaintext of one snippet and remember it as last used.

    Args:
        vault: Vault state; must be unlocked for secret snippets
        nodes: Tree as stored (secret values encrypted)
        entry_id: Id of the snippet to reveal

    Returns:
        The snippet value

    Raises:
        EntryNotFoundError: If no node has this id
        VaultLockedError: If the snippet is secret and the vault is locked
        MalformedEncryptedValueError: If the stored value is not nonce:ciphertext
        DecryptionFailedError: If the stored value cannot be opened with the vault key
        EmptyValueError: If there is nothing to copy
    """
    node = find_node(nodes, entry_id)
    if node is None:
        raise EntryNotFoundError(entry_id)

    if node.secret:
        key = vault.key()
        try:
            if node.encrypted_value is None:
                raise DecryptionFailedError("No encrypted value")
            value = decrypt_value(vault.crypto, node.encrypted_value, key)
        finally:
            vault.crypto.clear_bytes(key)
    else:
        value = node.value or ""

    if not value.strip():
        raise EmptyValueError(f"Snippet {entry_id} has an empty value")

    vault.last_used_id = entry_id
    logger.debug(f"Revealed snippet {entry_id}")
    return value


def reveal_last_used(vault: VaultManager, nodes: List[Node]) -> str:
    """
    Reveal the snippet revealed most recently.

    Raises:
        EntryNotFoundError: If nothing was revealed yet, or the entry is gone
    """
    entry_id = vault.last_used_id
    if entry_id is None:
        raise EntryNotFoundError("<last used>")
    return reveal(vault, nodes, entry_id)
