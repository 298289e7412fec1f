"""
Shared fixtures: a throwaway database per test and an in-memory stand-in
for the system keyring.
"""

import pytest

from core.config import AuthConfig
from database.entry_store import SecretBackedEntryStore
from database.secret_storage import SecretStorage

RFC_SECRET = "GEZDGNBVGY3TQOJQGEZDGNBVGY3TQOJQ"  # ASCII "12345678901234567890"
DEMO_SECRET = "JBSWY3DPEHPK3PXP"


class FakeSecretStorage(SecretStorage):
    """Dict-backed secret storage whose failure modes can be switched on."""

    def __init__(self):
        self.secrets = {}
        self.up = True
        self.fail_store = False
        self.fail_delete = False
        self.calls = []

    def available(self) -> bool:
        self.calls.append(("available",))
        return self.up

    def store(self, name, secret):
        self.calls.append(("store", name))
        if self.fail_store:
            return False
        self.secrets[name] = secret
        return True

    def retrieve(self, name):
        self.calls.append(("retrieve", name))
        return self.secrets.get(name)

    def delete_by_name(self, name):
        self.calls.append(("delete", name))
        if self.fail_delete:
            return False
        return self.secrets.pop(name, None) is not None


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "auth" / "auth.db"


@pytest.fixture
def fake_storage():
    return FakeSecretStorage()


@pytest.fixture
def store(db_path):
    """Store with secrets kept inline (no secure storage)."""
    return SecretBackedEntryStore.open(db_path)


@pytest.fixture
def backed_store(db_path, fake_storage):
    """Store whose secrets go to the fake secure storage."""
    return SecretBackedEntryStore.open(db_path, fake_storage)


@pytest.fixture
def auth_config(db_path):
    return AuthConfig(database_path=db_path, use_secret_storage=False)
