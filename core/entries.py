"""
entries.py — Entry record, secret variants and token resolution.

An entry's secret is one of three variants:

    InlineSecret(value)   the Base32 secret itself
    BackendRef(name)      the secret lives in secure storage under `name`
    BackendFailed(name)   secure storage was expected to have it, but the
                          lookup failed when the store was opened

In the database the variant is stored as a single string; parse_stored_secret
and format_stored_secret convert between the two forms.
"""

from dataclasses import dataclass, replace
from typing import Iterable, List, Optional, Sequence, Union

from core.otp_core import DEFAULT_DIGITS, DEFAULT_PERIOD

SECRET_STORAGE_PREFIX = "SecretStorage:"
SECRET_STORAGE_FAILED_PREFIX = "$$SECRET_STORAGE_FAILED$$"


@dataclass(frozen=True)
class InlineSecret:
    value: str


@dataclass(frozen=True)
class BackendRef:
    name: str


@dataclass(frozen=True)
class BackendFailed:
    name: str


Secret = Union[InlineSecret, BackendRef, BackendFailed]


@dataclass(frozen=True)
class Entry:
    """
    A credential record.

    `id` is assigned by the store and never reused. `name` is a display
    string and may repeat across entries.
    """

    id: int
    name: str
    secret: Secret
    digits: int = DEFAULT_DIGITS
    period: int = DEFAULT_PERIOD

    @property
    def has_inline_secret(self) -> bool:
        return isinstance(self.secret, InlineSecret)

    @property
    def is_failed(self) -> bool:
        return isinstance(self.secret, BackendFailed)

    def with_changes(self, **changes) -> "Entry":
        return replace(self, **changes)


@dataclass(frozen=True)
class NewEntry:
    """Fields of an entry that has not been given an id yet."""

    name: str
    secret: str
    digits: int = DEFAULT_DIGITS
    period: int = DEFAULT_PERIOD


# --- Stored form ----------------------------------------------------------
def parse_stored_secret(stored: str) -> Secret:
    """Turn the persisted string into a secret variant."""
    if stored.startswith(SECRET_STORAGE_FAILED_PREFIX):
        return BackendFailed(stored[len(SECRET_STORAGE_FAILED_PREFIX):])
    if stored.startswith(SECRET_STORAGE_PREFIX):
        return BackendRef(stored[len(SECRET_STORAGE_PREFIX):])
    return InlineSecret(stored)


def format_stored_secret(secret: Secret) -> str:
    """
    Inverse of parse_stored_secret.

    BackendFailed is an in-memory state only; it is written back as the
    plain reference so a later load can retry the lookup.
    """
    if isinstance(secret, InlineSecret):
        return secret.value
    if isinstance(secret, (BackendRef, BackendFailed)):
        return SECRET_STORAGE_PREFIX + secret.name
    raise TypeError(f"Unknown secret variant: {secret!r}")


# --- Resolution -----------------------------------------------------------
def sort_by_id(entries: Iterable[Entry]) -> List[Entry]:
    """Copy of `entries` in ascending id order (the listing order)."""
    return sorted(entries, key=lambda e: e.id)


def _parse_number(token: str) -> Optional[int]:
    # ASCII digits only: no sign, whitespace or underscores
    if token.isascii() and token.isdigit():
        return int(token)
    return None


def resolve_entry(entries: Sequence[Entry], token: str) -> Optional[Entry]:
    """
    Find the one entry a user token refers to.

    Order (first match wins):
    1. token is a number and some entry has that id
    2. token is a number in [1, len(entries)] -> 1-based position in the
       id-sorted listing
    3. an entry whose name equals token exactly (case-sensitive)

    Returns None when nothing matches; never raises.
    """
    number = _parse_number(token)
    if number is not None:
        for entry in entries:
            if entry.id == number:
                return entry
        if 1 <= number <= len(entries):
            return sort_by_id(entries)[number - 1]

    for entry in entries:
        if entry.name == token:
            return entry
    return None
