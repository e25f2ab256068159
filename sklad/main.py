"""
Main entry point for the Sklad tray application.
"""

import sys
import signal
import logging
from typing import Optional

from PyQt5.QtWidgets import QApplication, QSystemTrayIcon

from . import config
from .commands import Sklad
from .storage import DataManager
from .tray import SkladTray

logger = logging.getLogger(__name__)


class SkladApp:
    """Main application class for the tray."""

    def __init__(self, data_dir: Optional[str] = None):
        self.app = QApplication(sys.argv)
        self.app.setApplicationName(config.APP_NAME)
        self.app.setOrganizationName(config.APP_NAME)
        self.app.setQuitOnLastWindowClosed(False)

        self.sklad = Sklad(DataManager(data_dir))
        self.tray: Optional[SkladTray] = None

        # Handle Ctrl+C gracefully
        signal.signal(signal.SIGINT, signal.SIG_DFL)

    def run(self) -> int:
        """Run the application."""
        if not QSystemTrayIcon.isSystemTrayAvailable():
            logger.error("No system tray available")
            return 1
        self.tray = SkladTray(self.app, self.sklad)
        self.tray.show()
        logger.info(f"{config.APP_TITLE_PREFIX} started, data file {self.sklad.get_snippets_path()}")
        return self.app.exec_()

    def cleanup(self):
        """Clean up resources."""
        if self.sklad.is_vault_unlocked():
            self.sklad.lock_vault()


def main():
    """Main entry point."""
    logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(name)s - %(message)s')

    app = SkladApp()
    try:
        return app.run()
    finally:
        app.cleanup()


if __name__ == "__main__":
    sys.exit(main())
