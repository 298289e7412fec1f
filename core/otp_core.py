"""
otp_core.py — Base32 decoding and TOTP / HOTP code generation.

Goals:
- Pure functions only: no file, database or secret-storage access here.
- HMAC-SHA1 only, per RFC 4226 / RFC 6238 (what authenticator apps use).
- Secrets are decoded permissively, so a secret pasted with spaces, dashes,
  lowercase letters or '=' padding still works.

Callers are expected to validate secrets (core.validation) before storing
them; the engine itself never rejects a secret.
"""

import hashlib
import hmac
import struct
import time
from typing import Optional

# --- Config / constants ----------------------------------------------------
DEFAULT_DIGITS = 6          # standard: 6 digits
DEFAULT_PERIOD = 30         # TOTP step (seconds)
BASE32_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ234567"

# lowercase ASCII maps too; other characters are never case-folded
_BASE32_INDEX = {char: value for value, char in enumerate(BASE32_ALPHABET)}
_BASE32_INDEX.update({char.lower(): value for char, value in list(_BASE32_INDEX.items()) if char.isalpha()})


# --- Base32 ----------------------------------------------------------------
def decode_base32(secret: str) -> bytes:
    """
    Decode a human-typed Base32 secret into raw key bytes.

    - Spaces and hyphens are stripped; ASCII letters match in either case.
    - Characters outside the RFC 4648 alphabet (including '=') are skipped.
    - 5-bit groups are packed MSB-first; leftover bits that do not make a
      full byte are dropped.

    Never raises: malformed input decodes to whatever bytes can be built.

    Example: decode_base32("mzxq ====") -> b"fo"
    """
    cleaned = secret.replace(" ", "").replace("-", "")

    out = bytearray()
    buffer = 0
    bits_left = 0
    for char in cleaned:
        value = _BASE32_INDEX.get(char)
        if value is None:
            continue
        buffer = ((buffer << 5) | value) & 0xFFFF
        bits_left += 5
        if bits_left >= 8:
            bits_left -= 8
            out.append((buffer >> bits_left) & 0xFF)
    return bytes(out)


# --- RFC helpers -----------------------------------------------------------
def int_to_bytes(i: int) -> bytes:
    """
    Encode the counter as the 8-byte big-endian value RFC 4226 requires.

    Example: int_to_bytes(1) -> b'\\x00\\x00\\x00\\x00\\x00\\x00\\x00\\x01'
    """
    return struct.pack(">Q", i)


def dynamic_truncate(hmac_digest: bytes) -> int:
    """
    RFC 4226 dynamic truncation.

    - offset = last byte & 0x0F
    - take 4 bytes from offset as a big-endian integer, clear the sign bit

    Arguments:
        hmac_digest: HMAC-SHA1 digest (20 bytes)
    """
    offset = hmac_digest[-1] & 0x0F
    code = (
        ((hmac_digest[offset] & 0x7F) << 24)
        | ((hmac_digest[offset + 1] & 0xFF) << 16)
        | ((hmac_digest[offset + 2] & 0xFF) << 8)
        | (hmac_digest[offset + 3] & 0xFF)
    )
    return code


def hotp(key: bytes, counter: int, digits: int = DEFAULT_DIGITS) -> str:
    """
    HOTP code (RFC 4226) for already-decoded key bytes.

    Steps:
    1. message = 8-byte counter (big-endian)
    2. HMAC-SHA1(key, message)
    3. dynamic truncation -> 31-bit value
    4. value mod 10^digits, zero-padded to exactly `digits` characters

    An empty key is accepted (HMAC is defined for it).
    """
    digest = hmac.new(key, int_to_bytes(counter), hashlib.sha1).digest()
    otp_val = dynamic_truncate(digest) % (10 ** digits)
    return str(otp_val).zfill(digits)


def time_counter(timestamp: float, period: int = DEFAULT_PERIOD) -> int:
    """floor(unix_time / period)"""
    return int(timestamp) // period


def totp(
    secret_b32: str,
    digits: int = DEFAULT_DIGITS,
    period: int = DEFAULT_PERIOD,
    timestamp: Optional[float] = None,
) -> str:
    """
    TOTP code (RFC 6238): HOTP with counter = floor(time / period).

    Arguments:
        secret_b32: Base32 secret as typed by the user
        digits: code length (6-8)
        period: window length in seconds (> 0)
        timestamp: unix seconds; None -> time.time()

    Returns:
        str: the code, exactly `digits` characters

    Deterministic for fixed inputs; no side effects.
    """
    if timestamp is None:
        timestamp = time.time()
    key = decode_base32(secret_b32)
    return hotp(key, time_counter(timestamp, period), digits)


def seconds_remaining(period: int = DEFAULT_PERIOD, timestamp: Optional[float] = None) -> int:
    """Seconds left before the current code rolls over: period - (now mod period)."""
    if timestamp is None:
        timestamp = time.time()
    return period - (int(timestamp) % period)
