"""
Shared pytest fixtures.

Argon2 runs with minimal cost parameters here so the suite stays fast; the
algorithms and formats are the same as in production.
"""

import os

import pytest

from sklad.commands import Sklad
from sklad.crypto import CryptoManager
from sklad.storage import DataManager
from sklad.vault import VaultManager


@pytest.fixture
def crypto():
    return CryptoManager(time_cost=1, memory_cost=64, parallelism=1)


@pytest.fixture
def key():
    return os.urandom(32)


@pytest.fixture
def other_key():
    return os.urandom(32)


@pytest.fixture
def vault(crypto):
    return VaultManager(crypto)


@pytest.fixture
def storage(tmp_path):
    return DataManager(str(tmp_path / "data"))


@pytest.fixture
def sklad(storage, vault):
    return Sklad(storage, vault)
