"""Tests for the lock/unlock state machine."""

import threading

import pytest

from sklad import config
from sklad.errors import InconsistentSecurityStateError, VaultLockedError
from sklad.vault import VaultManager


class TestInitialState:

    def test_starts_locked(self, vault):
        assert vault.is_unlocked() is False
        assert vault.last_used_id is None

    def test_key_requires_unlock(self, vault):
        with pytest.raises(VaultLockedError):
            vault.key()

    def test_instances_are_independent(self, crypto):
        first = VaultManager(crypto)
        second = VaultManager(crypto)
        first.initialize("pw-one")
        first.last_used_id = "a"
        assert second.is_unlocked() is False
        assert second.last_used_id is None


class TestInitialize:

    def test_returns_hash_and_salt_and_unlocks(self, vault):
        password_hash, salt = vault.initialize("master")
        assert password_hash.startswith("$argon2id$")
        assert len(salt) == 2 * config.SALT_SIZE
        assert vault.is_unlocked() is True

    def test_key_matches_derivation(self, vault, crypto):
        _, salt = vault.initialize("master")
        assert vault.key() == crypto.derive_key("master", salt)

    def test_reinitialize_rekeys(self, vault):
        vault.initialize("first")
        first_key = vault.key()
        vault.initialize("second")
        assert vault.key() != first_key


class TestUnlock:

    def test_correct_password_unlocks_with_same_key(self, crypto):
        setup = VaultManager(crypto)
        password_hash, salt = setup.initialize("master")
        expected = setup.key()

        vault = VaultManager(crypto)
        assert vault.unlock("master", password_hash, salt) is True
        assert vault.is_unlocked() is True
        assert vault.key() == expected

    def test_wrong_password_stays_locked(self, vault, crypto):
        password_hash = crypto.hash_password("master")
        assert vault.unlock("nope", password_hash, crypto.generate_salt()) is False
        assert vault.is_unlocked() is False

    def test_wrong_password_keeps_previous_key(self, vault, crypto):
        password_hash, salt = vault.initialize("master")
        before = vault.key()
        assert vault.unlock("nope", password_hash, salt) is False
        assert vault.key() == before

    def test_enabled_without_hash_is_inconsistent(self, vault):
        with pytest.raises(InconsistentSecurityStateError):
            vault.unlock("master", None, None, master_password_enabled=True)
        assert vault.is_unlocked() is False

    def test_hash_without_salt_is_inconsistent(self, vault, crypto):
        password_hash = crypto.hash_password("master")
        with pytest.raises(InconsistentSecurityStateError):
            vault.unlock("master", password_hash, None)
        assert vault.is_unlocked() is False

    def test_disabled_without_hash_uses_legacy_salt(self, vault, crypto):
        assert vault.unlock("anything", None, None, master_password_enabled=False) is True
        assert vault.key() == crypto.derive_key("anything", config.LEGACY_DEFAULT_SALT)


class TestLock:

    def test_lock_discards_key(self, vault):
        vault.initialize("master")
        vault.lock()
        assert vault.is_unlocked() is False
        with pytest.raises(VaultLockedError):
            vault.key()

    def test_lock_zeroes_key_material(self, vault):
        vault.initialize("master")
        held = vault._key
        vault.lock()
        assert held == bytearray(config.KEY_SIZE)

    def test_lock_when_locked_is_fine(self, vault):
        vault.lock()
        assert vault.is_unlocked() is False

    def test_key_returns_independent_copy(self, vault, crypto):
        vault.initialize("master")
        copy = vault.key()
        crypto.clear_bytes(copy)
        assert vault.key() != copy

    def test_disable_master_password_locks(self, vault):
        vault.initialize("master")
        vault.disable_master_password()
        assert vault.is_unlocked() is False


class TestConcurrency:

    def test_parallel_lock_and_reads(self, vault):
        vault.initialize("master")
        errors = []

        def worker(n):
            try:
                for i in range(200):
                    vault.last_used_id = f"{n}-{i}"
                    vault.is_unlocked()
                    if i == 100:
                        vault.lock()
            except Exception as e:  # pragma: no cover
                errors.append(e)

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        assert vault.is_unlocked() is False
        assert vault.last_used_id.endswith("-199")
