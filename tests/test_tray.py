"""Tests for the tray unlock, setup and snippet dialogs with Qt running offscreen."""

import os

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")
QtWidgets = pytest.importorskip("PyQt5.QtWidgets")

from sklad.models import Node  # noqa: E402
from sklad.tray import SkladTray  # noqa: E402
from sklad.tree_crypto import find_node  # noqa: E402

QMessageBox = QtWidgets.QMessageBox


@pytest.fixture(scope="module")
def qapp():
    return QtWidgets.QApplication.instance() or QtWidgets.QApplication([])


class Dialogs:
    """Scripted answers for the modal dialogs the tray opens."""

    def __init__(self, texts=(), reset=QMessageBox.No, secret=QMessageBox.No):
        self.texts = list(texts)
        self.reset = reset
        self.secret = secret
        self.prompts = []
        self.questions = []
        self.warnings = []

    def get_text(self, parent, title, label, *args, **kwargs):
        self.prompts.append(label)
        if not self.texts:
            return "", False
        return self.texts.pop(0), True

    def question(self, parent, title, text, *args, **kwargs):
        self.questions.append(text)
        return self.secret if "as a secret" in text else self.reset

    def warning(self, parent, title, text, *args, **kwargs):
        self.warnings.append(text)
        return QMessageBox.Ok


@pytest.fixture
def dialogs(monkeypatch):
    scripted = Dialogs()
    monkeypatch.setattr(QtWidgets.QInputDialog, "getText", scripted.get_text)
    monkeypatch.setattr(QtWidgets.QInputDialog, "getMultiLineText", scripted.get_text)
    monkeypatch.setattr(QMessageBox, "question", scripted.question)
    monkeypatch.setattr(QMessageBox, "warning", scripted.warning)
    return scripted


@pytest.fixture
def tray(qapp, sklad):
    return SkladTray(qapp, sklad)


@pytest.fixture
def sealed(sklad):
    sklad.init_vault("master")
    sklad.save_data([Node.snippet("a", "API key", "sk-123", secret=True)])
    sklad.lock_vault()
    return sklad


def _menu_texts(tray):
    tray.rebuild_menu()
    return [action.text() for action in tray.menu.actions()]


def _read(path):
    with open(path, encoding="utf-8") as f:
        return f.read()


class TestUnlockPrompt:

    def test_unusable_settings_never_create_a_new_key(self, sealed, storage, tray, dialogs):
        with open(storage.settings_path, "w", encoding="utf-8") as f:
            f.write("{not json")
        tree_before = _read(storage.file_path)
        dialogs.texts = ["whatever"]

        tray.copy("a")

        assert sealed.is_vault_unlocked() is False
        assert dialogs.prompts == ["Master password:"]
        assert len(dialogs.questions) == 1
        assert "Reset the vault?" in dialogs.questions[0]
        assert _read(storage.settings_path) == "{not json"
        assert _read(storage.file_path) == tree_before

    def test_fresh_settings_with_protection_on_go_to_reset_offer(self, sklad, storage, tray, dialogs):
        dialogs.texts = ["whatever"]
        assert tray.prompt_unlock() is False
        assert sklad.is_vault_unlocked() is False
        assert sklad.get_settings().security.password_hash is None
        assert len(dialogs.questions) == 1

    def test_accepting_reset_removes_secrets(self, sealed, storage, tray, dialogs):
        with open(storage.settings_path, "w", encoding="utf-8") as f:
            f.write("{not json")
        dialogs.texts = ["whatever"]
        dialogs.reset = QMessageBox.Yes

        tray.copy("a")

        assert find_node(storage.load_tree(), "a") is None
        security = sealed.get_settings().security
        assert security.master_password_enabled is False
        assert security.password_hash is None
        assert "Set Master Password..." in _menu_texts(tray)

    def test_wrong_password(self, sealed, tray, dialogs):
        dialogs.texts = ["wrong"]
        assert tray.prompt_unlock() is False
        assert dialogs.warnings == ["Invalid master password."]
        assert sealed.is_vault_unlocked() is False

    def test_copy_after_unlock(self, sealed, qapp, tray, dialogs):
        dialogs.texts = ["master"]
        tray.copy("a")
        assert sealed.is_vault_unlocked() is True
        assert qapp.clipboard().text() == "sk-123"
        assert sealed.vault.last_used_id == "a"


class TestMasterPasswordSetup:

    def test_menu_offers_setup_only_without_stored_secrets(self, sklad, sealed, tray):
        texts = _menu_texts(tray)
        assert "Unlock Vault..." in texts
        assert "Set Master Password..." not in texts

    def test_menu_on_fresh_data(self, tray):
        texts = _menu_texts(tray)
        assert "Set Master Password..." in texts
        assert "Unlock Vault..." not in texts

    def test_set_master_password(self, sklad, tray, dialogs):
        dialogs.texts = ["master", "master"]
        assert tray.set_master_password() is True
        assert sklad.is_vault_unlocked() is True
        assert sklad.get_settings().security.password_hash.startswith("$argon2id$")
        assert "Lock Vault" in _menu_texts(tray)

    def test_mismatched_confirmation(self, sklad, tray, dialogs):
        dialogs.texts = ["master", "masterr"]
        assert tray.set_master_password() is False
        assert dialogs.warnings == ["Passwords do not match."]
        assert sklad.get_settings().security.password_hash is None

    def test_refused_when_secrets_are_stored(self, sealed, storage, tray, dialogs):
        with open(storage.settings_path, "w", encoding="utf-8") as f:
            f.write("{not json")
        dialogs.texts = ["other", "other"]
        assert tray.set_master_password() is False
        assert len(dialogs.warnings) == 1
        assert sealed.is_vault_unlocked() is False
        assert _read(storage.settings_path) == "{not json"


class TestNewSnippet:

    def test_plain_snippet(self, sklad, storage, tray, dialogs):
        dialogs.texts = ["Greeting", "hello"]
        node = tray.new_snippet()
        stored = find_node(storage.load_tree(), node.id)
        assert stored.label == "Greeting"
        assert stored.value == "hello"
        assert stored.secret is False

    def test_secret_snippet_unlocks_first(self, sealed, storage, tray, dialogs):
        dialogs.texts = ["Token", "t-1", "master"]
        dialogs.secret = QMessageBox.Yes
        node = tray.new_snippet()
        stored = find_node(storage.load_tree(), node.id)
        assert stored.value is None
        assert stored.encrypted_value is not None
        assert "t-1" not in _read(storage.file_path)

    def test_secret_needs_master_password(self, sklad, storage, tray, dialogs):
        dialogs.texts = ["Token", "t-1"]
        dialogs.secret = QMessageBox.Yes
        assert tray.new_snippet() is None
        assert dialogs.warnings == ["Set a master password before adding secret snippets."]
        assert "t-1" not in _read(storage.file_path)

    def test_cancelled(self, sklad, storage, tray, dialogs):
        before = _read(storage.file_path)
        assert tray.new_snippet() is None
        assert _read(storage.file_path) == before
