"""
core package
============

Credential engine for the `auth` TOTP authenticator: RFC 4226 / RFC 6238
code generation plus the entry model, validation and lookup rules shared
by the CLI (core.otp_cli) and the web backend (backend/).

──────────────────────────────────────────────
Core algorithm
──────────────────────────────────────────────
- Base32 decode (permissive):
  spaces / dashes stripped, uppercased, unknown characters skipped.

- HOTP (RFC 4226):
  code = Truncate(HMAC-SHA1(key=secret, msg=counter)) mod 10^digits

- TOTP (RFC 6238):
  HOTP with counter = floor(unix_time / period)

- Dynamic truncation:
  4 bytes of the digest at offset (last byte & 0x0F), sign bit cleared.

──────────────────────────────────────────────
Addressing entries
──────────────────────────────────────────────
A user token is resolved in this order: entry id, then position in the
id-sorted listing (1-based), then exact name.

──────────────────────────────────────────────
Quick example
──────────────────────────────────────────────
>>> from core import totp
>>> totp("GEZDGNBVGY3TQOJQGEZDGNBVGY3TQOJQ", digits=8, period=30, timestamp=59)
'94287082'
"""

__version__ = "1.2.0"

from core.entries import BackendFailed, BackendRef, Entry, InlineSecret, resolve_entry
from core.errors import (
    AuthError,
    BackendFailure,
    EntryNotFound,
    SecretStorageFailed,
    SecretUnavailable,
    StorageError,
    ValidationError,
)
from core.otp_core import decode_base32, hotp, seconds_remaining, totp
from core.validation import ensure_valid, validate_digits, validate_period, validate_secret
