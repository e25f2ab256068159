"""
Storage of the snippet tree and the settings as JSON files.

The tree arrives here already sealed: secret snippets carry only their
encrypted value. This module never looks at vault keys.
"""

import os
import json
import stat
import shutil
import logging
import platform
import threading
from typing import Any, List, Optional

from . import config
from .errors import StorageError
from .models import AppSettings, Node, NodeType, nodes_from_list, nodes_to_list

logger = logging.getLogger(__name__)


class DataManager:
    """Reads and writes the data and settings files of one data directory."""

    def __init__(self, data_dir: Optional[str] = None):
        """
        Initialize the data manager.

        Args:
            data_dir: Directory holding the files; defaults to ~/.sklad
        """
        self.data_dir = data_dir or config.default_data_dir()
        os.makedirs(self.data_dir, exist_ok=True)
        self.file_path = os.path.join(self.data_dir, config.DATA_FILE)
        self.settings_path = os.path.join(self.data_dir, config.SETTINGS_FILE)
        self._lock = threading.Lock()

    def load_tree(self) -> List[Node]:
        """
        Load the snippet tree.

        A missing data file is created with a welcome snippet so the file
        exists for "open data file".

        Raises:
            StorageError: If the file exists but cannot be read or parsed
        """
        if not os.path.exists(self.file_path):
            defaults = self.default_nodes()
            self.save_tree(defaults)
            return defaults

        with self._lock:
            try:
                with open(self.file_path, 'r', encoding='utf-8') as f:
                    data = json.load(f)
                if not isinstance(data, list):
                    raise ValueError("top-level JSON value is not a list")
                return nodes_from_list(data)
            except (OSError, ValueError, KeyError, TypeError) as e:
                logger.error(f"Error loading data file {self.file_path}: {e}", exc_info=True)
                raise StorageError(f"Cannot load {self.file_path}: {e}") from e

    def save_tree(self, nodes: List[Node]) -> None:
        """Write the snippet tree. The caller must have sealed secrets already."""
        self._write_json(self.file_path, nodes_to_list(nodes))

    def load_settings(self) -> AppSettings:
        """Load settings, falling back to defaults if the file is missing or unreadable."""
        if not os.path.exists(self.settings_path):
            return AppSettings()

        with self._lock:
            try:
                with open(self.settings_path, 'r', encoding='utf-8') as f:
                    data = json.load(f)
                return AppSettings.from_dict(data)
            except (OSError, ValueError, TypeError, AttributeError) as e:
                logger.warning(f"Settings file {self.settings_path} unreadable, using defaults: {e}")
                return AppSettings()

    def save_settings(self, settings: AppSettings) -> None:
        """Write the settings file."""
        self._write_json(self.settings_path, settings.to_dict())

    @staticmethod
    def default_nodes() -> List[Node]:
        return [Node(
            id=config.WELCOME_NODE_ID,
            type=NodeType.SNIPPET,
            label=config.WELCOME_NODE_LABEL,
            value=config.WELCOME_NODE_VALUE,
            is_secret=False,
        )]

    def _write_json(self, path: str, data: Any) -> None:
        tmp_path = path + '.tmp'
        with self._lock:
            try:
                with open(tmp_path, 'w', encoding='utf-8') as f:
                    json.dump(data, f, indent=2, ensure_ascii=False)

                # Atomic replace using shutil.move
                shutil.move(tmp_path, path)

                self._set_file_permissions(path)
            except OSError as e:
                logger.error(f"Error saving file {path}: {e}", exc_info=True)
                if os.path.exists(tmp_path):
                    os.remove(tmp_path)
                raise StorageError(f"Cannot save {path}: {e}") from e

    def _set_file_permissions(self, filepath: str) -> None:
        """Set file to be readable/writable by owner only."""
        if platform.system() == 'Windows':
            logger.debug(f"Leaving default Windows permissions on {filepath}")
        else:
            os.chmod(filepath, stat.S_IRUSR | stat.S_IWUSR)  # 600
