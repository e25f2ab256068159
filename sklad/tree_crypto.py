"""
Tree crypto engine.

Walks a snippet tree and seals newly entered secret values or opens stored
ones. Folders and non-secret snippets are passed through untouched.
"""

import copy
import logging
from typing import Iterator, List, Optional, Tuple

from . import config
from .crypto import CryptoManager
from .errors import MalformedEncryptedValueError, SkladError
from .models import Node, NodeType

logger = logging.getLogger(__name__)


def encode_encrypted_value(nonce_hex: str, ciphertext_hex: str) -> str:
    """Join nonce and ciphertext into the stored form nonce:ciphertext."""
    return f"{nonce_hex}{config.ENCRYPTED_VALUE_SEPARATOR}{ciphertext_hex}"


def split_encrypted_value(encrypted: str) -> Tuple[str, str]:
    """
    Split a stored value into (nonce_hex, ciphertext_hex).

    Raises:
        MalformedEncryptedValueError: If the value does not have exactly two parts
    """
    parts = encrypted.split(config.ENCRYPTED_VALUE_SEPARATOR)
    if len(parts) != 2:
        raise MalformedEncryptedValueError(
            f"Encrypted value has {len(parts)} part(s), expected 2")
    return parts[0], parts[1]


def decrypt_value(crypto: CryptoManager, encrypted: str, key: bytes) -> str:
    """Open one stored nonce:ciphertext value."""
    nonce_hex, ciphertext_hex = split_encrypted_value(encrypted)
    return crypto.decrypt(ciphertext_hex, nonce_hex, key)


def iter_nodes(nodes: List[Node]) -> Iterator[Node]:
    """Yield every node of the tree in pre-order."""
    for node in nodes:
        if node.type not in (NodeType.FOLDER, NodeType.SNIPPET):
            raise ValueError(f"Unknown node type: {node.type!r}")
        yield node
        if node.type is NodeType.FOLDER and node.children:
            yield from iter_nodes(node.children)


def find_node(nodes: List[Node], entry_id: str) -> Optional[Node]:
    """Depth-first search for a node by id."""
    for node in iter_nodes(nodes):
        if node.id == entry_id:
            return node
    return None


def has_unencrypted_secrets(nodes: List[Node]) -> bool:
    """True if any secret snippet in the tree still holds a plaintext value."""
    return any(node.secret and node.value is not None for node in iter_nodes(nodes))


def encrypt_secrets(crypto: CryptoManager, nodes: List[Node], key: bytes) -> List[Node]:
    """
    Encrypt every secret snippet that holds a non-empty plaintext value.

    Works on a deep copy, so a failure part-way through leaves the caller's
    tree as it was and nothing half-encrypted can reach storage.

    Args:
        crypto: Crypto manager performing the encryption
        nodes: Tree to encrypt
        key: Vault key

    Returns:
        The encrypted copy of the tree
    """
    result = copy.deepcopy(nodes)
    count = 0
    for node in iter_nodes(result):
        if not node.secret or not node.value:
            continue
        ciphertext_hex, nonce_hex = crypto.encrypt(node.value, key)
        node.encrypted_value = encode_encrypted_value(nonce_hex, ciphertext_hex)
        node.value = None
        count += 1
    if count:
        logger.debug(f"Encrypted {count} secret snippet(s)")
    return result


def decrypt_secrets(crypto: CryptoManager, nodes: List[Node], key: bytes) -> List[Node]:
    """
    Fill in the plaintext of every secret snippet that can be decrypted.

    The encrypted value is kept; the plaintext is an in-memory projection for
    display. A node that fails to decrypt keeps its value absent and does not
    stop the walk.

    Returns:
        The same list, modified in place
    """
    for node in iter_nodes(nodes):
        if not node.secret or node.encrypted_value is None:
            continue
        try:
            node.value = decrypt_value(crypto, node.encrypted_value, key)
        except SkladError as e:
            logger.debug(f"Could not decrypt snippet {node.id}: {e}")
    return nodes


def drop_stale_ciphertexts(nodes: List[Node]) -> List[Node]:
    """
    Return a copy of the tree where non-secret nodes carry no encrypted value.

    A snippet that was un-flagged as secret while its plaintext is known keeps
    the plaintext and loses the ciphertext. Without a plaintext the ciphertext
    is left alone so nothing is lost while the vault is locked.
    """
    result = copy.deepcopy(nodes)
    for node in iter_nodes(result):
        if node.secret or node.encrypted_value is None:
            continue
        if node.type is NodeType.FOLDER or node.value is not None:
            node.encrypted_value = None
        else:
            logger.warning(f"Non-secret snippet {node.id} only has an encrypted value; keeping it")
    return result


def remove_secrets(nodes: List[Node]) -> List[Node]:
    """Return a copy of the tree with every secret snippet dropped."""
    result = []
    for node in nodes:
        if node.secret:
            continue
        node = copy.copy(node)
        if node.type is NodeType.FOLDER and node.children is not None:
            node.children = remove_secrets(node.children)
        result.append(node)
    return result
