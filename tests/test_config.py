from pathlib import Path

from core.config import DEFAULT_KEYRING_SERVICE, AuthConfig, default_database_path, load_config


def test_defaults_with_empty_environment():
    config = load_config({})
    assert config == AuthConfig()
    assert config.database_path == default_database_path()
    assert config.keyring_service == DEFAULT_KEYRING_SERVICE
    assert config.use_secret_storage is True
    assert (config.default_digits, config.default_period) == (6, 30)


def test_database_dir(tmp_path):
    config = load_config({"AUTH_DATABASE_DIR": str(tmp_path)})
    assert config.database_path == Path(tmp_path) / "auth.db"


def test_keyring_service():
    assert load_config({"AUTH_KEYRING_SERVICE": "work"}).keyring_service == "work"


def test_disable_secret_storage_flag():
    for value in ("1", "true", "YES", " yes "):
        assert load_config({"AUTH_DISABLE_SECRET_STORAGE": value}).use_secret_storage is False
    for value in ("", "0", "no", "off"):
        assert load_config({"AUTH_DISABLE_SECRET_STORAGE": value}).use_secret_storage is True


def test_reads_os_environ_by_default(monkeypatch, tmp_path):
    monkeypatch.setenv("AUTH_DATABASE_DIR", str(tmp_path))
    monkeypatch.delenv("AUTH_DISABLE_SECRET_STORAGE", raising=False)
    assert load_config().database_path == tmp_path / "auth.db"
