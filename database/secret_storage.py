"""
secret_storage.py — Secure storage for raw secrets (OS keychain via `keyring`).

The entry store only relies on the four methods of SecretStorage. Calls may
fail but are never retried here: a failure is reported to the caller as
False / None and logged.
"""

import logging
from typing import Optional

import keyring
from keyring.backends import fail
from keyring.errors import KeyringError, PasswordDeleteError

from core.config import DEFAULT_KEYRING_SERVICE

logger = logging.getLogger(__name__)


class SecretStorage:
    """Interface every secure-secret backend implements."""

    def available(self) -> bool:
        raise NotImplementedError

    def store(self, name: str, secret: str) -> bool:
        raise NotImplementedError

    def retrieve(self, name: str) -> Optional[str]:
        """The secret stored under `name`, or None if it is not there."""
        raise NotImplementedError

    def delete_by_name(self, name: str) -> bool:
        raise NotImplementedError


class KeyringSecretStorage(SecretStorage):
    """Secrets kept in the system keyring, one password per entry name."""

    def __init__(self, service: str = DEFAULT_KEYRING_SERVICE):
        self.service = service

    def available(self) -> bool:
        try:
            backend = keyring.get_keyring()
        except KeyringError as e:
            logger.warning("Keyring unavailable: %s", e)
            return False
        # keyring falls back to fail.Keyring when no usable backend exists
        return not isinstance(backend, fail.Keyring)

    def store(self, name: str, secret: str) -> bool:
        try:
            keyring.set_password(self.service, name, secret)
            return True
        except KeyringError as e:
            logger.warning("Keyring store failed for '%s': %s", name, e)
            return False

    def retrieve(self, name: str) -> Optional[str]:
        try:
            return keyring.get_password(self.service, name)
        except KeyringError as e:
            logger.warning("Keyring lookup failed for '%s': %s", name, e)
            return None

    def delete_by_name(self, name: str) -> bool:
        try:
            keyring.delete_password(self.service, name)
            return True
        except PasswordDeleteError:
            logger.debug("No keyring secret stored for '%s'", name)
            return False
        except KeyringError as e:
            logger.warning("Keyring delete failed for '%s': %s", name, e)
            return False
