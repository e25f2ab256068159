"""
Menu model for the tray: labels and ids only, never snippet values.
"""

from dataclasses import dataclass
from typing import List, Optional

from . import config
from .models import Node, NodeType


@dataclass
class MenuEntry:
    """One tray menu row. Entries with children render as submenus."""
    label: str
    id: Optional[str] = None
    children: Optional[List['MenuEntry']] = None
    secret: bool = False

    @property
    def is_submenu(self) -> bool:
        return self.children is not None


def snippet_label(node: Node) -> str:
    if node.secret:
        return f"{config.LOCK_GLYPH} {node.label}"
    return node.label


def build_menu(nodes: List[Node]) -> List[MenuEntry]:
    """Turn a tree into menu entries, one per folder or snippet."""
    entries = []
    for node in nodes:
        if node.type is NodeType.FOLDER:
            entries.append(MenuEntry(label=node.label, children=build_menu(node.children or [])))
        elif node.type is NodeType.SNIPPET:
            entries.append(MenuEntry(label=snippet_label(node), id=node.id, secret=node.secret))
        else:
            raise ValueError(f"Unknown node type: {node.type!r}")
    return entries
