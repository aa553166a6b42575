import re

from schoolportal.errors import ValidationError

USERNAME_RE = re.compile(r"^[A-Za-z0-9_.-]{3,20}$")


def validate_username(username: str) -> None:
    """Validate username: 3-20 characters of letters, digits, '_', '.', '-'."""
    if not USERNAME_RE.fullmatch(username):
        raise ValidationError("Username must be 3-20 characters: letters, digits, '_', '.' or '-'")


def validate_password(password: str) -> None:
    """Validate password meets requirements.

    Requirements:
    - No whitespace characters
    - Minimum length of 8 characters

    Raises:
        ValidationError: If password doesn't meet requirements
    """
    if len(password) < 8:
        raise ValidationError("Password must be at least 8 characters long")

    if any(char.isspace() for char in password):
        raise ValidationError("Password cannot contain whitespace characters")


EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def validate_email(email: str) -> None:
    if not EMAIL_RE.fullmatch(email):
        raise ValidationError("Invalid email format")
