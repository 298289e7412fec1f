"""
errors.py — Error taxonomy for the credential engine.

None of these is fatal to the process. Library code raises them and the
surfaces (CLI, Flask API) turn them into a message / status code.
"""

from typing import Iterable


class AuthError(Exception):
    """Base class for every error raised by core / database."""


class ValidationError(AuthError, ValueError):
    """Digits, period or secret rejected before anything is written."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class EntryNotFound(AuthError, LookupError):
    """A token resolved to no entry."""

    def __init__(self, token: str, message: str = None):
        super().__init__(message or f"Entry not found: {token}")
        self.token = token


class SecretUnavailable(AuthError):
    """The entry exists but its secret cannot be produced right now."""

    def __init__(self, entry_name: str, message: str = None):
        super().__init__(message or f"Failed to retrieve secret for entry '{entry_name}'")
        self.entry_name = entry_name


class SecretStorageFailed(SecretUnavailable):
    """
    One or more secrets could not be loaded from secure storage when the
    store was opened. Read operations refuse to run at all in this state.
    """

    def __init__(self, entry_names: Iterable[str]):
        self.entry_names = sorted(entry_names)
        super().__init__(
            ", ".join(self.entry_names),
            "Secret storage failed for: " + ", ".join(self.entry_names),
        )


class BackendFailure(AuthError):
    """A secure-storage write or delete failed. Recorded as a warning only."""

    def __init__(self, operation: str, name: str, detail: str = ""):
        message = f"Secret storage {operation} failed for '{name}'"
        if detail:
            message += f": {detail}"
        super().__init__(message)
        self.operation = operation
        self.name = name


class StorageError(AuthError):
    """The entry database could not be read or written (corrupt file, I/O error)."""

    def __init__(self, database_path: str, detail: str):
        super().__init__(f"Database error in {database_path}: {detail}")
        self.database_path = database_path
        self.detail = detail
