"""
entry_store.py — Entry metadata + optional secure secret storage as one unit.

The store is opened once per process: every row is loaded into memory and
each "SecretStorage:<name>" reference is resolved against the backend.

- resolved              -> InlineSecret (the metadata still holds the reference)
- no backend configured -> stays BackendRef; codes cannot be generated for it
- backend unreachable,
  lookup failed         -> BackendFailed; every read operation then fails as
                           a whole (SecretStorageFailed) instead of showing a
                           partial listing

Backend writes and deletes are best effort: they never block or roll back
the metadata operation. Failures are logged and returned as warnings on
the SaveResult / RemoveResult / WipeResult of the call that hit them.
"""

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Union

from core.entries import (
    BackendFailed,
    BackendRef,
    Entry,
    InlineSecret,
    Secret,
    resolve_entry,
    sort_by_id,
)
from core.errors import BackendFailure, EntryNotFound, SecretStorageFailed, SecretUnavailable
from core.otp_core import DEFAULT_DIGITS, DEFAULT_PERIOD, seconds_remaining, totp
from core.validation import ensure_valid
from database.db_manager import EntryDatabase
from database.secret_storage import SecretStorage

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CodeRow:
    ordinal: int
    entry: Entry
    code: str
    remaining: int


@dataclass(frozen=True)
class EntryInfo:
    entry: Entry
    secret: str
    code: str
    remaining: int


@dataclass
class SaveResult:
    entry: Entry
    warnings: List[BackendFailure] = field(default_factory=list)


@dataclass
class RemoveResult:
    entry: Entry
    removed: bool
    warnings: List[BackendFailure] = field(default_factory=list)


@dataclass
class WipeResult:
    removed_count: int
    warnings: List[BackendFailure] = field(default_factory=list)


class SecretBackedEntryStore:
    def __init__(self, database: EntryDatabase, secret_storage: Optional[SecretStorage] = None):
        self.database = database
        self.secret_storage = secret_storage
        self._entries: Dict[int, Entry] = {}
        # secret variant as written in the database, per entry id
        self._persisted: Dict[int, Secret] = {}

    @classmethod
    def open(
        cls,
        database_path: Union[str, Path],
        secret_storage: Optional[SecretStorage] = None,
    ) -> "SecretBackedEntryStore":
        store = cls(EntryDatabase(database_path), secret_storage)
        store.load()
        return store

    # --- Loading ----------------------------------------------------------
    def load(self) -> None:
        """(Re)load every entry and resolve secret references."""
        self._entries.clear()
        self._persisted.clear()

        backend_up = None  # checked lazily, once per load
        for entry in self.database.load_all():
            self._persisted[entry.id] = entry.secret
            secret = entry.secret
            if isinstance(secret, BackendRef) and self.secret_storage is not None:
                if backend_up is None:
                    backend_up = self._backend_available()
                secret = self._resolve_reference(secret.name, backend_up)
            self._entries[entry.id] = entry.with_changes(secret=secret)

        failed = self.failed_entries()
        if failed:
            logger.warning(
                "Loaded %d entries, %d with unavailable secrets: %s",
                len(self._entries), len(failed), ", ".join(e.name for e in failed),
            )
        else:
            logger.debug("Loaded %d entries from %s", len(self._entries), self.database.database_path)

    def _resolve_reference(self, name: str, backend_up: bool) -> Secret:
        if not backend_up:
            return BackendFailed(name)
        try:
            value = self.secret_storage.retrieve(name)
        except Exception as e:
            logger.warning("Secret storage lookup for '%s' raised: %s", name, e)
            return BackendFailed(name)
        if value is None:
            logger.warning("Secret '%s' missing from secret storage", name)
            return BackendFailed(name)
        return InlineSecret(value)

    def _backend_available(self) -> bool:
        if self.secret_storage is None:
            return False
        try:
            return self.secret_storage.available()
        except Exception as e:
            logger.warning("Secret storage availability check raised: %s", e)
            return False

    # --- Read side --------------------------------------------------------
    @property
    def entries(self) -> List[Entry]:
        """All entries in id order, without the failure check."""
        return sort_by_id(self._entries.values())

    def failed_entries(self) -> List[Entry]:
        return [e for e in self.entries if e.is_failed]

    def ensure_healthy(self) -> None:
        """
        Raises:
            SecretStorageFailed: if any entry failed to load its secret
        """
        failed = self.failed_entries()
        if failed:
            raise SecretStorageFailed(e.name for e in failed)

    def resolve(self, token: str) -> Entry:
        """Resolve a token (id, listing position or name) without the failure check."""
        entry = resolve_entry(self.entries, token)
        if entry is None:
            raise EntryNotFound(token)
        return entry

    def find(self, token: str) -> Entry:
        self.ensure_healthy()
        return self.resolve(token)

    def list_entries(self) -> List[Entry]:
        self.ensure_healthy()
        return self.entries

    @staticmethod
    def secret_for(entry: Entry) -> str:
        """The usable Base32 secret of an entry."""
        secret = entry.secret
        if isinstance(secret, InlineSecret):
            return secret.value
        if isinstance(secret, BackendFailed):
            raise SecretStorageFailed([entry.name])
        if isinstance(secret, BackendRef):
            raise SecretUnavailable(entry.name)
        raise TypeError(f"Unknown secret variant: {secret!r}")

    def generate(self, token: str, timestamp: Optional[float] = None) -> str:
        """Current code for the entry `token` refers to."""
        entry = self.find(token)
        return totp(self.secret_for(entry), entry.digits, entry.period, timestamp)

    def list_codes(self, timestamp: Optional[float] = None) -> List[CodeRow]:
        """Every entry with its current code, numbered the way resolve() counts."""
        entries = self.list_entries()
        if timestamp is None:
            timestamp = time.time()
        rows = []
        for ordinal, entry in enumerate(entries, start=1):
            secret = self.secret_for(entry)
            rows.append(CodeRow(
                ordinal=ordinal,
                entry=entry,
                code=totp(secret, entry.digits, entry.period, timestamp),
                remaining=seconds_remaining(entry.period, timestamp),
            ))
        return rows

    def info(self, token: str, timestamp: Optional[float] = None) -> EntryInfo:
        entry = self.find(token)
        if timestamp is None:
            timestamp = time.time()
        secret = self.secret_for(entry)
        return EntryInfo(
            entry=entry,
            secret=secret,
            code=totp(secret, entry.digits, entry.period, timestamp),
            remaining=seconds_remaining(entry.period, timestamp),
        )

    # --- Write side -------------------------------------------------------
    @staticmethod
    def _warn(warning: BackendFailure) -> BackendFailure:
        logger.warning("%s", warning)
        return warning

    def _backend_key_in_use(self, key: str, exclude_id: Optional[int] = None) -> bool:
        for entry_id, persisted in self._persisted.items():
            if entry_id == exclude_id:
                continue
            if isinstance(persisted, (BackendRef, BackendFailed)) and persisted.name == key:
                return True
        return False

    def _place_secret(
        self,
        name: str,
        value: str,
        warnings: List[BackendFailure],
        entry_id: Optional[int] = None,
    ) -> Secret:
        """
        Decide how a secret is persisted: a reference if secure storage took
        it, inline otherwise.
        """
        if self.secret_storage is None or not self._backend_available():
            return InlineSecret(value)
        if self._backend_key_in_use(name, exclude_id=entry_id):
            logger.info("Secret storage key '%s' already used by another entry; storing inline", name)
            return InlineSecret(value)
        try:
            stored = self.secret_storage.store(name, value)
        except Exception as e:
            warnings.append(self._warn(BackendFailure("store", name, str(e))))
            return InlineSecret(value)
        if not stored:
            warnings.append(self._warn(BackendFailure("store", name)))
            return InlineSecret(value)
        return BackendRef(name)

    def _delete_backend_secret(self, name: str, expected: bool) -> Optional[BackendFailure]:
        """Best-effort delete; a warning only if the entry was known to use the backend."""
        if self.secret_storage is None or not self._backend_available():
            return None
        if self._backend_key_in_use(name):
            logger.debug("Secret storage key '%s' still referenced; not deleting", name)
            return None
        try:
            deleted = self.secret_storage.delete_by_name(name)
            detail = ""
        except Exception as e:
            deleted, detail = False, str(e)
        if deleted:
            logger.debug("Deleted secret storage key '%s'", name)
            return None
        if expected:
            return self._warn(BackendFailure("delete", name, detail))
        logger.debug("No secret storage key removed for '%s'", name)
        return None

    def add(
        self,
        name: str,
        secret: str,
        digits: int = DEFAULT_DIGITS,
        period: int = DEFAULT_PERIOD,
    ) -> SaveResult:
        """
        Validate and store a new entry. The id is assigned by the database.

        Raises:
            ValidationError: digits / period / secret rejected
        """
        ensure_valid(secret=secret, digits=digits, period=period)

        warnings: List[BackendFailure] = []
        persisted = self._place_secret(name, secret, warnings)
        draft = Entry(id=0, name=name, secret=persisted, digits=digits, period=period)
        new_id = self.database.insert(draft)

        self._persisted[new_id] = persisted
        entry = draft.with_changes(id=new_id, secret=InlineSecret(secret))
        self._entries[new_id] = entry
        logger.info("Added entry %d (%s)", new_id, name)
        return SaveResult(entry=entry, warnings=warnings)

    def edit(
        self,
        token: str,
        name: Optional[str] = None,
        secret: Optional[str] = None,
        digits: Optional[int] = None,
        period: Optional[int] = None,
    ) -> SaveResult:
        """
        Replace the given fields of an entry; None / "" keeps the current value.

        Without a new secret this is a read of the current one, so it fails
        like any read when secrets are unavailable.

        Raises:
            EntryNotFound, ValidationError, SecretUnavailable, SecretStorageFailed
        """
        name = name or None
        secret = secret or None

        if secret is None:
            self.ensure_healthy()
        entry = self.resolve(token)
        if secret is None and not entry.has_inline_secret:
            raise SecretUnavailable(entry.name, "Cannot edit entry with unavailable secret")

        ensure_valid(secret=secret, digits=digits, period=period)

        new_name = name if name is not None else entry.name
        new_value = secret if secret is not None else entry.secret.value
        old_persisted = self._persisted[entry.id]
        was_backend = isinstance(old_persisted, (BackendRef, BackendFailed))

        warnings: List[BackendFailure] = []
        if was_backend and secret is None and new_name == entry.name:
            persisted = old_persisted
        else:
            persisted = self._place_secret(new_name, new_value, warnings, entry_id=entry.id)

        updated = entry.with_changes(
            name=new_name,
            secret=persisted,
            digits=digits if digits is not None else entry.digits,
            period=period if period is not None else entry.period,
        )
        if not self.database.update(updated):
            raise EntryNotFound(token)

        self._persisted[entry.id] = persisted
        updated = updated.with_changes(secret=InlineSecret(new_value))
        self._entries[entry.id] = updated

        if was_backend and persisted != old_persisted:
            warning = self._delete_backend_secret(old_persisted.name, expected=True)
            if warning:
                warnings.append(warning)

        logger.info("Updated entry %d (%s)", entry.id, entry.name)
        return SaveResult(entry=updated, warnings=warnings)

    def remove(self, token: str) -> RemoveResult:
        """
        Delete an entry's metadata, then best-effort delete any secure-storage
        secret under its name. Works even when other secrets failed to load.

        Raises:
            EntryNotFound
        """
        entry = self.resolve(token)
        persisted = self._persisted.get(entry.id)

        removed = self.database.delete(entry.id)
        if removed:
            self._entries.pop(entry.id, None)
            self._persisted.pop(entry.id, None)
            logger.info("Removed entry %d (%s)", entry.id, entry.name)

        expected = isinstance(persisted, (BackendRef, BackendFailed))
        warning = self._delete_backend_secret(entry.name, expected=expected)
        return RemoveResult(entry=entry, removed=removed, warnings=[warning] if warning else [])

    def wipe(self) -> WipeResult:
        """
        Remove every entry and its secure-storage secret, then the database file.

        Raises:
            EntryNotFound: the store is already empty
        """
        entries = self.entries
        if not entries:
            raise EntryNotFound("*", "No entries to wipe")

        result = WipeResult(removed_count=0)
        for entry in entries:
            removal = self.remove(str(entry.id))
            result.warnings.extend(removal.warnings)
            if removal.removed:
                result.removed_count += 1

        self.database.remove_file()
        return result
