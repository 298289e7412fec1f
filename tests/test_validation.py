"""Tests for the field validators."""

import pytest

from core.errors import ValidationError
from core.validation import ensure_valid, validate_digits, validate_period, validate_secret


class TestValidateDigits:
    @pytest.mark.parametrize("digits", [6, 7, 8])
    def test_in_range(self, digits):
        assert validate_digits(digits) == (True, "")

    @pytest.mark.parametrize("digits", [0, 5, 9, 10])
    def test_out_of_range(self, digits):
        ok, reason = validate_digits(digits)
        assert not ok
        assert reason == "Digits must be between 6 and 8"


class TestValidatePeriod:
    def test_zero(self):
        assert validate_period(0) == (False, "Period cannot be 0")

    @pytest.mark.parametrize("period", [1, 30, 60, 86400])
    def test_positive(self, period):
        assert validate_period(period)[0]

    def test_negative(self):
        assert not validate_period(-30)[0]


class TestValidateSecret:
    @pytest.mark.parametrize("secret", ["JBSWY3DPEHPK3PXP", "jbsw y3dp-ehpk 3pxp", "abc123"])
    def test_allowed(self, secret):
        assert validate_secret(secret) == (True, "")

    @pytest.mark.parametrize("secret", ["JBSW=", "abc!", "SecretStorage:x", "ab_cd", "äbc"])
    def test_invalid_characters(self, secret):
        assert validate_secret(secret) == (False, "Secret contains invalid characters")

    @pytest.mark.parametrize("secret", ["", "   ", " - "])
    def test_blank(self, secret):
        assert not validate_secret(secret)[0]


class TestEnsureValid:
    def test_passes(self):
        ensure_valid(secret="JBSWY3DPEHPK3PXP", digits=6, period=30)

    def test_none_fields_skipped(self):
        ensure_valid()
        ensure_valid(digits=8)

    def test_raises_with_reason(self):
        with pytest.raises(ValidationError, match="Period cannot be 0") as exc:
            ensure_valid(secret="ABC", digits=6, period=0)
        assert exc.value.reason == "Period cannot be 0"

    def test_validation_error_is_value_error(self):
        with pytest.raises(ValueError):
            ensure_valid(digits=9)
