"""
Database package: SQLite entry metadata, secure secret storage and the
store that combines them.
"""

from database.db_manager import EntryDatabase
from database.entry_store import SecretBackedEntryStore
from database.secret_storage import KeyringSecretStorage, SecretStorage

__all__ = ['EntryDatabase', 'SecretBackedEntryStore', 'KeyringSecretStorage', 'SecretStorage']
