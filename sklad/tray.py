"""
System tray front end.

Left click copies the last used snippet again; the context menu lists the
whole tree. A locked vault triggers a master password prompt.
"""

import logging
from typing import List, Optional

from PyQt5.QtCore import QTimer, QUrl
from PyQt5.QtGui import QDesktopServices, QIcon
from PyQt5.QtWidgets import (
    QApplication, QInputDialog, QLineEdit, QMenu, QMessageBox, QStyle, QSystemTrayIcon
)

from . import config
from .commands import Sklad
from .errors import InconsistentSecurityStateError, SkladError, VaultLockedError
from .menu import MenuEntry, build_menu
from .models import Node, new_node_id

logger = logging.getLogger(__name__)


class SkladTray:
    """Tray icon, its menu, and the timers for clipboard clearing and auto-lock."""

    def __init__(self, app: QApplication, sklad: Sklad):
        self.app = app
        self.sklad = sklad

        icon = QIcon.fromTheme("dialog-password")
        if icon.isNull():
            icon = app.style().standardIcon(QStyle.SP_DriveHDIcon)
        self.tray = QSystemTrayIcon(icon, app)
        self.tray.setToolTip(config.APP_TITLE_PREFIX)

        self.menu = QMenu()
        self.menu.aboutToShow.connect(self.rebuild_menu)
        self.tray.setContextMenu(self.menu)
        self.tray.activated.connect(self._on_activated)

        self.clipboard_timer = QTimer()
        self.clipboard_timer.setSingleShot(True)
        self.clipboard_timer.timeout.connect(self.clear_clipboard)
        self.auto_lock_timer = QTimer()
        self.auto_lock_timer.setSingleShot(True)
        self.auto_lock_timer.timeout.connect(self.auto_lock)

        self.rebuild_menu()

    def show(self):
        self.tray.show()

    def rebuild_menu(self):
        """Rebuild the context menu from the data file."""
        self.menu.clear()
        self.menu.addAction("Quit Sklad").triggered.connect(self.app.quit)
        if self.sklad.is_vault_unlocked():
            self.menu.addAction("Lock Vault").triggered.connect(self.toggle_lock)
        elif self._offer_setup():
            self.menu.addAction("Set Master Password...").triggered.connect(self.set_master_password)
        else:
            self.menu.addAction("Unlock Vault...").triggered.connect(self.toggle_lock)
        self.menu.addAction("New Snippet...").triggered.connect(self.new_snippet)
        self.menu.addAction("Open Data File").triggered.connect(self.open_data_file)
        self.menu.addSeparator()

        try:
            entries = build_menu(self.sklad.storage.load_tree())
        except SkladError as e:
            logger.error(f"Cannot build tray menu: {e}")
            self.menu.addAction(f"Error: {e}").setEnabled(False)
            return
        self._add_entries(self.menu, entries)

    def _offer_setup(self) -> bool:
        try:
            return self.sklad.can_set_master_password()
        except SkladError as e:
            logger.error(f"Cannot read the vault state: {e}")
            return False

    def _add_entries(self, menu: QMenu, entries: List[MenuEntry]):
        for entry in entries:
            if entry.is_submenu:
                self._add_entries(menu.addMenu(entry.label), entry.children)
            else:
                action = menu.addAction(entry.label)
                action.triggered.connect(lambda checked=False, entry_id=entry.id: self.copy(entry_id))

    def copy(self, entry_id: Optional[str] = None, retry: bool = True):
        """Copy a snippet, or the last used one when entry_id is None."""
        write = QApplication.clipboard().setText
        try:
            if entry_id is None:
                node = self.sklad.copy_last_used(write)
            else:
                node = self.sklad.copy_snippet(entry_id, write)
        except VaultLockedError:
            logger.info("Copy requested while the vault is locked, asking for the master password")
            if retry and self.prompt_unlock():
                self.copy(entry_id, retry=False)
            return
        except SkladError as e:
            logger.warning(f"Failed to copy: {e}")
            self.tray.showMessage(f"{config.APP_NAME}: Copy Error", f"Failed to copy: {e}",
                                  QSystemTrayIcon.Warning, config.NOTIFICATION_TIMEOUT_MS)
            return

        settings = self.sklad.get_settings()
        if settings.notifications_enabled:
            self.tray.showMessage(config.APP_NAME, f"Copied: {node.label}",
                                  QSystemTrayIcon.Information, config.NOTIFICATION_TIMEOUT_MS)
        if settings.security.clear_clipboard:
            self.clipboard_timer.start(config.CLIPBOARD_CLEAR_TIMEOUT_SECONDS * 1000)
        self.start_auto_lock_timer()

    def prompt_unlock(self) -> bool:
        """
        Ask for the master password and unlock the vault.

        Settings that cannot be used to unlock lead to the reset offer;
        a new master password is only ever chosen through set_master_password.
        """
        password, ok = QInputDialog.getText(
            None, config.APP_TITLE_PREFIX, "Master password:", QLineEdit.Password)
        if not ok:
            return False
        try:
            unlocked = self.sklad.unlock_vault(password)
        except InconsistentSecurityStateError as e:
            logger.error(f"Unlock failed: {e}")
            reply = QMessageBox.question(
                None, "Vault Error",
                f"{e}\n\nReset the vault? All secret snippets will be deleted.",
                QMessageBox.Yes | QMessageBox.No, QMessageBox.No
            )
            if reply == QMessageBox.Yes:
                self.sklad.reset_vault()
            return False

        if not unlocked:
            QMessageBox.warning(None, "Unlock Failed", "Invalid master password.")
            return False
        self.start_auto_lock_timer()
        return True

    def set_master_password(self) -> bool:
        """Choose the first master password, asking twice."""
        password, ok = QInputDialog.getText(
            None, config.APP_TITLE_PREFIX, "Choose a master password:", QLineEdit.Password)
        if not ok or not password:
            return False
        confirm, ok = QInputDialog.getText(
            None, config.APP_TITLE_PREFIX, "Repeat the master password:", QLineEdit.Password)
        if not ok:
            return False
        if confirm != password:
            QMessageBox.warning(None, config.APP_TITLE_PREFIX, "Passwords do not match.")
            return False
        try:
            self.sklad.init_vault(password)
        except SkladError as e:
            logger.error(f"Could not set the master password: {e}")
            QMessageBox.warning(None, config.APP_TITLE_PREFIX, str(e))
            return False
        self.start_auto_lock_timer()
        return True

    def new_snippet(self) -> Optional[Node]:
        """Ask for label and value of a new top-level snippet and save it."""
        label, ok = QInputDialog.getText(None, config.APP_TITLE_PREFIX, "Snippet label:")
        if not ok or not label.strip():
            return None
        value, ok = QInputDialog.getMultiLineText(None, config.APP_TITLE_PREFIX, "Snippet value:")
        if not ok:
            return None
        secret = QMessageBox.question(
            None, config.APP_TITLE_PREFIX, "Store this snippet as a secret?",
            QMessageBox.Yes | QMessageBox.No, QMessageBox.No
        ) == QMessageBox.Yes

        if secret:
            if not self.sklad.get_settings().security.password_hash:
                QMessageBox.warning(None, config.APP_TITLE_PREFIX,
                                    "Set a master password before adding secret snippets.")
                return None
            if not self.sklad.is_vault_unlocked() and not self.prompt_unlock():
                return None

        node = Node.snippet(new_node_id(), label.strip(), value, secret=secret)
        try:
            return self.sklad.add_node(node)
        except SkladError as e:
            logger.warning(f"Failed to add snippet: {e}")
            QMessageBox.warning(None, config.APP_TITLE_PREFIX, f"Failed to add snippet: {e}")
            return None

    def toggle_lock(self):
        if self.sklad.is_vault_unlocked():
            self.sklad.lock_vault()
            self.auto_lock_timer.stop()
        else:
            self.prompt_unlock()

    def start_auto_lock_timer(self):
        """Start or restart the auto-lock timer."""
        self.auto_lock_timer.stop()
        minutes = self.sklad.get_settings().security.lock_timeout
        if minutes > 0:
            self.auto_lock_timer.start(minutes * 60 * 1000)

    def auto_lock(self):
        """Lock the vault due to inactivity."""
        logger.info("Auto-lock timeout reached")
        self.sklad.lock_vault()

    def clear_clipboard(self):
        """Clear the clipboard."""
        QApplication.clipboard().clear()

    def open_data_file(self):
        QDesktopServices.openUrl(QUrl.fromLocalFile(self.sklad.get_snippets_path()))

    def _on_activated(self, reason):
        if reason == QSystemTrayIcon.Trigger and self.sklad.vault.last_used_id is not None:
            self.copy()
