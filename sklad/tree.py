"""
Editing operations on the snippet tree.

Each function works on a copy and returns the new tree, so a failed edit
never leaves the caller with a half-changed tree. parent_id is kept in step
with where a node actually sits.
"""

import copy
from typing import List, Optional

from .errors import EntryNotFoundError
from .models import Node, NodeType
from .tree_crypto import find_node, iter_nodes


def _siblings_of(nodes: List[Node], entry_id: str) -> Optional[List[Node]]:
    """The list that directly holds entry_id, or None."""
    if any(node.id == entry_id for node in nodes):
        return nodes
    for node in nodes:
        if node.children:
            found = _siblings_of(node.children, entry_id)
            if found is not None:
                return found
    return None


def _insert(siblings: List[Node], node: Node, before_id: Optional[str]) -> None:
    # Unknown before_id appends
    index = len(siblings)
    if before_id is not None:
        for i, sibling in enumerate(siblings):
            if sibling.id == before_id:
                index = i
                break
    siblings.insert(index, node)


def add_node(nodes: List[Node], node: Node, parent_id: Optional[str] = None,
             before_id: Optional[str] = None) -> List[Node]:
    """
    Add a node under a folder, or at the top level when parent_id is None.

    Args:
        nodes: Current tree
        node: Node to add
        parent_id: Id of the target folder
        before_id: Sibling to insert in front of; appended when None or unknown

    Returns:
        The new tree

    Raises:
        EntryNotFoundError: If the parent does not exist
        ValueError: If the parent is not a folder or the id is already taken
    """
    result = copy.deepcopy(nodes)
    if find_node(result, node.id) is not None:
        raise ValueError(f"Duplicate node id: {node.id}")

    if parent_id is None:
        siblings = result
    else:
        parent = find_node(result, parent_id)
        if parent is None:
            raise EntryNotFoundError(parent_id)
        if parent.type is not NodeType.FOLDER:
            raise ValueError(f"Not a folder: {parent_id}")
        if parent.children is None:
            parent.children = []
        siblings = parent.children

    node = copy.deepcopy(node)
    node.parent_id = parent_id
    _insert(siblings, node, before_id)
    return result


def update_node(nodes: List[Node], entry_id: str, label: Optional[str] = None,
                value: Optional[str] = None, is_secret: Optional[bool] = None) -> List[Node]:
    """
    Change the label, value or secret flag of a node. None leaves a field as is.

    A new value on a snippet replaces its stored ciphertext; the next save
    seals it again if the snippet is secret.

    Raises:
        EntryNotFoundError: If there is no such node
        ValueError: If a value or secret flag is given for a folder
    """
    result = copy.deepcopy(nodes)
    node = find_node(result, entry_id)
    if node is None:
        raise EntryNotFoundError(entry_id)
    if node.type is NodeType.FOLDER and (value is not None or is_secret is not None):
        raise ValueError(f"Folders have no value: {entry_id}")

    if label is not None:
        node.label = label
    if value is not None:
        node.value = value
        node.encrypted_value = None
    if is_secret is not None:
        node.is_secret = is_secret
    return result


def remove_node(nodes: List[Node], entry_id: str) -> List[Node]:
    """
    Remove a node, and with a folder everything inside it.

    Raises:
        EntryNotFoundError: If there is no such node
    """
    result = copy.deepcopy(nodes)
    siblings = _siblings_of(result, entry_id)
    if siblings is None:
        raise EntryNotFoundError(entry_id)
    siblings[:] = [node for node in siblings if node.id != entry_id]
    return result


def is_descendant_of(nodes: List[Node], entry_id: str, ancestor_id: str) -> bool:
    """True if entry_id is ancestor_id itself or sits anywhere below it."""
    ancestor = find_node(nodes, ancestor_id)
    if ancestor is None:
        return False
    return any(node.id == entry_id for node in iter_nodes([ancestor]))


def move_node(nodes: List[Node], entry_id: str, parent_id: Optional[str] = None,
              before_id: Optional[str] = None) -> List[Node]:
    """
    Move a node to another folder or position.

    Raises:
        EntryNotFoundError: If the node or the target folder does not exist
        ValueError: If a folder would be moved into itself
    """
    node = find_node(nodes, entry_id)
    if node is None:
        raise EntryNotFoundError(entry_id)
    if parent_id is not None and is_descendant_of(nodes, parent_id, entry_id):
        raise ValueError(f"Cannot move {entry_id} into itself")
    return add_node(remove_node(nodes, entry_id), node, parent_id, before_id)
