"""
Data model for the snippet tree and the application settings.

Both serialize to the camelCase JSON layout of the data files. Optional node
fields are omitted from the JSON when absent.
"""

import time
import uuid
from enum import Enum
from typing import Any, Dict, List, Optional
from dataclasses import dataclass, field

from . import config


class NodeType(str, Enum):
    """Kind of a tree node. Every walker branches on it exhaustively."""
    FOLDER = "folder"
    SNIPPET = "snippet"


@dataclass
class Node:
    """A folder or a snippet in the tree."""
    id: str
    type: NodeType
    label: str
    parent_id: Optional[str] = None
    created_at: int = 0

    # Folder
    children: Optional[List['Node']] = None

    # Snippet
    value: Optional[str] = None
    encrypted_value: Optional[str] = None
    is_secret: Optional[bool] = None

    @classmethod
    def folder(cls, id: str, label: str, children: Optional[List['Node']] = None,
               parent_id: Optional[str] = None) -> 'Node':
        """Create a folder node."""
        return cls(id=id, type=NodeType.FOLDER, label=label, parent_id=parent_id,
                   created_at=_now_ms(), children=list(children or []))

    @classmethod
    def snippet(cls, id: str, label: str, value: str = "", secret: bool = False,
                parent_id: Optional[str] = None) -> 'Node':
        """Create a snippet node holding a plaintext value."""
        return cls(id=id, type=NodeType.SNIPPET, label=label, parent_id=parent_id,
                   created_at=_now_ms(), value=value, is_secret=secret)

    @property
    def secret(self) -> bool:
        """True for snippets flagged secret."""
        return self.type is NodeType.SNIPPET and bool(self.is_secret)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        data: Dict[str, Any] = {
            'id': self.id,
            'type': self.type.value,
            'label': self.label,
            'parentId': self.parent_id,
            'createdAt': self.created_at,
        }
        if self.children is not None:
            data['children'] = [child.to_dict() for child in self.children]
        if self.value is not None:
            data['value'] = self.value
        if self.encrypted_value is not None:
            data['encryptedValue'] = self.encrypted_value
        if self.is_secret is not None:
            data['isSecret'] = self.is_secret
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Node':
        """
        Create from dictionary.

        Raises:
            KeyError: If a required key is missing
            ValueError: If the node type is unknown
        """
        node_type = NodeType(data['type'])
        children = data.get('children')
        return cls(
            id=str(data['id']),
            type=node_type,
            label=data.get('label', ''),
            parent_id=data.get('parentId'),
            created_at=int(data.get('createdAt') or 0),
            children=[cls.from_dict(c) for c in children] if children is not None else None,
            value=data.get('value'),
            encrypted_value=data.get('encryptedValue'),
            is_secret=data.get('isSecret'),
        )


def new_node_id() -> str:
    return str(uuid.uuid4())


def nodes_to_list(nodes: List[Node]) -> List[Dict[str, Any]]:
    return [node.to_dict() for node in nodes]


def nodes_from_list(data: List[Dict[str, Any]]) -> List[Node]:
    return [Node.from_dict(item) for item in data]


@dataclass
class SecuritySettings:
    """Security section of the settings file."""
    lock_timeout: int = config.LOCK_TIMEOUT_DEFAULT_MINUTES
    clear_clipboard: bool = False
    master_password_enabled: bool = True
    password_hash: Optional[str] = None
    derivation_salt: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'lockTimeout': self.lock_timeout,
            'clearClipboard': self.clear_clipboard,
            'masterPasswordEnabled': self.master_password_enabled,
            'passwordHash': self.password_hash,
            'derivationSalt': self.derivation_salt,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SecuritySettings':
        defaults = cls()
        lock_timeout = int(data.get('lockTimeout', defaults.lock_timeout))
        return cls(
            lock_timeout=max(0, min(lock_timeout, config.LOCK_TIMEOUT_MAX_MINUTES)),
            clear_clipboard=bool(data.get('clearClipboard', defaults.clear_clipboard)),
            master_password_enabled=bool(data.get('masterPasswordEnabled', defaults.master_password_enabled)),
            password_hash=data.get('passwordHash'),
            derivation_salt=data.get('derivationSalt'),
        )


@dataclass
class AppSettings:
    """Whole settings file."""
    theme: str = "system"
    security: SecuritySettings = field(default_factory=SecuritySettings)
    notifications_enabled: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            'theme': self.theme,
            'security': self.security.to_dict(),
            'notificationsEnabled': self.notifications_enabled,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'AppSettings':
        theme = data.get('theme', 'system')
        return cls(
            theme=theme if theme in config.THEMES else 'system',
            security=SecuritySettings.from_dict(data.get('security') or {}),
            notifications_enabled=bool(data.get('notificationsEnabled', True)),
        )


def _now_ms() -> int:
    return int(time.time() * 1000)
