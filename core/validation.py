"""
validation.py — Checks run on every add / edit before anything is stored.

Each validator returns (ok, reason); reason is "" when ok. They never touch
state. ensure_valid() bundles them for the mutation paths and raises
ValidationError on the first failure.
"""

from typing import Optional, Tuple

from core.errors import ValidationError

MIN_DIGITS = 6
MAX_DIGITS = 8


def validate_digits(digits: int) -> Tuple[bool, str]:
    if digits < MIN_DIGITS or digits > MAX_DIGITS:
        return False, f"Digits must be between {MIN_DIGITS} and {MAX_DIGITS}"
    return True, ""


def validate_period(period: int) -> Tuple[bool, str]:
    if period == 0:
        return False, "Period cannot be 0"
    if period < 0:
        return False, "Period must be positive"
    return True, ""


def validate_secret(secret: str) -> Tuple[bool, str]:
    """Only letters, digits, spaces and hyphens are allowed; blank is rejected."""
    if not secret.replace(" ", "").replace("-", ""):
        return False, "Secret cannot be empty"
    for char in secret:
        if char in (" ", "-"):
            continue
        if not (char.isascii() and char.isalnum()):
            return False, "Secret contains invalid characters"
    return True, ""


def ensure_valid(
    secret: Optional[str] = None,
    digits: Optional[int] = None,
    period: Optional[int] = None,
) -> None:
    """
    Run the validators for every field that is not None.

    Raises:
        ValidationError: with the reason of the first failing check
    """
    checks = []
    if digits is not None:
        checks.append(validate_digits(digits))
    if period is not None:
        checks.append(validate_period(period))
    if secret is not None:
        checks.append(validate_secret(secret))

    for ok, reason in checks:
        if not ok:
            raise ValidationError(reason)
