"""
config.py — Explicit configuration for the CLI and the web backend.

Nothing below core/ or database/ reads the environment; entry points call
load_config() once and pass the values down.

Environment:
    AUTH_DATABASE_DIR             directory holding auth.db
                                  (default: ~/.local/share/auth)
    AUTH_KEYRING_SERVICE          keyring service name (default: "auth")
    AUTH_DISABLE_SECRET_STORAGE   1/true/yes -> keep secrets inline
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional

from core.otp_core import DEFAULT_DIGITS, DEFAULT_PERIOD

DATABASE_FILENAME = "auth.db"
DEFAULT_KEYRING_SERVICE = "auth"


def default_database_path() -> Path:
    return Path.home() / ".local" / "share" / "auth" / DATABASE_FILENAME


@dataclass(frozen=True)
class AuthConfig:
    """Settings shared by every entry point."""

    database_path: Path = field(default_factory=default_database_path)
    keyring_service: str = DEFAULT_KEYRING_SERVICE
    use_secret_storage: bool = True
    default_digits: int = DEFAULT_DIGITS
    default_period: int = DEFAULT_PERIOD


def _env_flag(value: Optional[str]) -> bool:
    return (value or "").strip().lower() in ("1", "true", "yes")


def load_config(environ: Optional[Mapping[str, str]] = None) -> AuthConfig:
    """Build an AuthConfig from environment variables (os.environ by default)."""
    env = os.environ if environ is None else environ

    db_dir = env.get("AUTH_DATABASE_DIR")
    database_path = Path(db_dir) / DATABASE_FILENAME if db_dir else default_database_path()

    return AuthConfig(
        database_path=database_path,
        keyring_service=env.get("AUTH_KEYRING_SERVICE", DEFAULT_KEYRING_SERVICE),
        use_secret_storage=not _env_flag(env.get("AUTH_DISABLE_SECRET_STORAGE")),
    )
