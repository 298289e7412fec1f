"""KeyringSecretStorage against a patched keyring module (no OS keychain needed)."""

import keyring
import pytest
from keyring.backends import fail
from keyring.errors import KeyringError, PasswordDeleteError

from database.secret_storage import KeyringSecretStorage


@pytest.fixture
def vault(monkeypatch):
    secrets = {}

    def set_password(service, name, secret):
        secrets[(service, name)] = secret

    def get_password(service, name):
        return secrets.get((service, name))

    def delete_password(service, name):
        if (service, name) not in secrets:
            raise PasswordDeleteError("not found")
        del secrets[(service, name)]

    monkeypatch.setattr(keyring, "set_password", set_password)
    monkeypatch.setattr(keyring, "get_password", get_password)
    monkeypatch.setattr(keyring, "delete_password", delete_password)
    return secrets


def test_store_retrieve_delete(vault):
    storage = KeyringSecretStorage("auth-test")
    assert storage.store("github", "JBSWY3DPEHPK3PXP")
    assert vault == {("auth-test", "github"): "JBSWY3DPEHPK3PXP"}
    assert storage.retrieve("github") == "JBSWY3DPEHPK3PXP"
    assert storage.delete_by_name("github")
    assert storage.retrieve("github") is None


def test_delete_missing_returns_false(vault):
    assert KeyringSecretStorage().delete_by_name("nope") is False


def test_keyring_errors_become_false_or_none(monkeypatch):
    def broken(*args):
        raise KeyringError("locked")

    monkeypatch.setattr(keyring, "set_password", broken)
    monkeypatch.setattr(keyring, "get_password", broken)
    monkeypatch.setattr(keyring, "delete_password", broken)
    storage = KeyringSecretStorage()
    assert storage.store("a", "secret") is False
    assert storage.retrieve("a") is None
    assert storage.delete_by_name("a") is False


def test_fail_backend_is_unavailable(monkeypatch):
    monkeypatch.setattr(keyring, "get_keyring", lambda: fail.Keyring())
    assert KeyringSecretStorage().available() is False


def test_real_backend_is_available(monkeypatch):
    monkeypatch.setattr(keyring, "get_keyring", lambda: object())
    assert KeyringSecretStorage().available() is True
