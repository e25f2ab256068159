"""
Configuration constants for the Sklad snippet vault.
"""

import os

# Application Metadata
APP_VERSION = "0.4"  # Use: Current version of the application. Type: str. Range: Semantic versioning string (e.g., "1.0.0")
APP_NAME = "Sklad"  # Use: Name of the application, used for tray tooltips and notifications. Type: str. Range: Any valid string.
APP_TITLE_PREFIX = f"{APP_NAME} v{APP_VERSION}"  # Use: Prefix for window and dialog titles, combining name and version. Type: str (f-string). Range: Derived from APP_NAME and APP_VERSION.

# Security Settings
SALT_SIZE = 16  # Use: Size in bytes of the random key-derivation salt generated at vault initialization. Stored hex-encoded. Type: int. Range: At least 8 (Argon2 minimum); 16 bytes (128 bits) recommended.
KEY_SIZE = 32  # Use: Size of the vault key in bytes. Corresponds to AES-256. Type: int. Range: 32 only; the vault always uses AES-256-GCM.
NONCE_SIZE = 12  # Use: Size of the Nonce (Number used once) in bytes for AES-GCM. Type: int. Range: 12 bytes (96 bits) is the recommended size for GCM.
TAG_SIZE = 16  # Use: Size of the authentication tag in bytes appended to each AES-GCM ciphertext. Type: int. Range: 16 bytes (128 bits).
ARGON2_TIME_COST = 2  # Use: Argon2id time cost parameter. Controls the number of iterations. Type: int. Range: Typically 1 to 10. Higher values increase security but also computation time.
ARGON2_MEMORY_COST = 65536  # Use: Argon2id memory cost parameter. Controls the memory usage in KiB. Type: int. Range: Recommended to be at least 65536 (64 MB). Higher values increase security but also memory usage.
ARGON2_PARALLELISM = 4  # Use: Argon2id parallelism parameter. Controls the number of threads/lanes. Type: int. Range: Typically 1 to 8, often set to the number of CPU cores.
ENCRYPTED_VALUE_SEPARATOR = ":"  # Use: Separator between the hex nonce and the hex ciphertext in a stored encrypted value. Type: str. Range: A single character that never occurs in hex output.
LEGACY_DEFAULT_SALT = "default-salt"  # Use: Key-derivation salt used only by legacy data that was never given a salt (no password hash on record, protection disabled). Type: str. Range: At least 8 characters.

# UI Settings
LOCK_GLYPH = "\U0001F512"  # Use: Glyph prefixed to the label of secret snippets in the tray menu. Type: str. Range: Any short string.
LOCK_TIMEOUT_DEFAULT_MINUTES = 0  # Use: Default inactivity timeout in minutes before the tray locks the vault. Type: int. Range: 0 (disabled) to LOCK_TIMEOUT_MAX_MINUTES.
LOCK_TIMEOUT_MAX_MINUTES = 240  # Use: Maximum configurable auto-lock timeout in minutes. Type: int. Range: Positive integer.
CLIPBOARD_CLEAR_TIMEOUT_SECONDS = 30  # Use: Delay in seconds after which a copied snippet is cleared from the clipboard when clearClipboard is enabled. Type: int. Range: Positive integer.
NOTIFICATION_TIMEOUT_MS = 2000  # Use: Duration in milliseconds of the tray balloon shown after a copy. Type: int. Range: Positive integer.
THEMES = ("dark", "light", "system")  # Use: Accepted values of the theme setting. Type: tuple[str]. Range: Fixed set.

# Tray Menu Ids
MENU_ID_QUIT = "quit"  # Use: Menu id of the quit entry. Type: str. Range: Must not collide with a snippet id.
MENU_ID_LOCK = "lock"  # Use: Menu id of the lock/unlock entry. Type: str. Range: Must not collide with a snippet id.
MENU_ID_OPEN_FILE = "open"  # Use: Menu id of the entry that opens the data file. Type: str. Range: Must not collide with a snippet id.

# File and Directory Names
CONFIG_DIR_NAME = ".sklad"  # Use: Name of the hidden directory within the user's home directory where Sklad stores its data files. Type: str. Range: Any valid directory name.
DATA_FILE = "sklad.json"  # Use: Filename of the snippet tree. Type: str. Range: Any valid filename.
SETTINGS_FILE = "settings.json"  # Use: Filename of the application settings, stored next to DATA_FILE. Type: str. Range: Any valid filename.
DATA_DIR_ENV = "SKLAD_DATA_DIR"  # Use: Environment variable that overrides the data directory. Type: str. Range: Any valid environment variable name.

# Default Tree
WELCOME_NODE_ID = "welcome-1"  # Use: Id of the snippet written to a fresh data file. Type: str. Range: Any unique string.
WELCOME_NODE_LABEL = "Welcome to Sklad"  # Use: Label of the snippet written to a fresh data file. Type: str. Range: Any string.
WELCOME_NODE_VALUE = "This is your first snippet."  # Use: Value of the snippet written to a fresh data file. Type: str. Range: Any string.


def default_data_dir() -> str:
    """Directory holding the data and settings files."""
    override = os.environ.get(DATA_DIR_ENV)
    if override:
        return os.path.expanduser(override)
    return os.path.join(os.path.expanduser("~"), CONFIG_DIR_NAME)
