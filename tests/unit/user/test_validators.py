"""Tests for user validators."""

import pytest

from schoolportal.core.modules.user.validators import validate_password, validate_username
from schoolportal.errors import ValidationError


class TestValidatePassword:
    """Tests for password validation."""

    def test_valid_password_accepted(self):
        """Test that a long enough password without whitespace is accepted."""
        validate_password("s3cret-pass")

    def test_short_password_rejected(self):
        """Test that passwords under 8 characters are rejected."""
        with pytest.raises(ValidationError, match="at least 8"):
            validate_password("short")

    def test_whitespace_rejected(self):
        """Test that passwords containing whitespace are rejected."""
        with pytest.raises(ValidationError, match="whitespace"):
            validate_password("has space inside")


class TestValidateUsername:
    """Tests for username validation."""

    @pytest.mark.parametrize("username", ["abc", "jane.doe", "teacher_01", "a-b-c"])
    def test_valid_usernames(self, username):
        """Test that usernames of allowed characters are accepted."""
        validate_username(username)

    @pytest.mark.parametrize("username", ["ab", "x" * 21, "with space", "bad!char"])
    def test_invalid_usernames(self, username):
        """Test that short, long, or oddly-charactered usernames are rejected."""
        with pytest.raises(ValidationError):
            validate_username(username)
