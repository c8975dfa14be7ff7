"""
Registration field validation helpers.

Passwords are 8 to 72 characters (the bcrypt input limit) and mix letters
with digits.
"""

import re
from dataclasses import dataclass
from typing import List

USERNAME_PATTERN = re.compile(r"^[a-zA-Z0-9._-]+$")
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


@dataclass
class PasswordRequirements:
    """Password complexity requirements configuration."""

    min_length: int = 8
    max_length: int = 72
    require_letter: bool = True
    require_digit: bool = True


DEFAULT_REQUIREMENTS = PasswordRequirements()


def validate_password_complexity(
    password: str,
    requirements: PasswordRequirements = DEFAULT_REQUIREMENTS,
) -> tuple[bool, List[str]]:
    """
    Validate password against complexity requirements.

    Args:
        password: Password to validate
        requirements: Password requirements configuration

    Returns:
        Tuple of (is_valid, list of error messages)
    """
    errors: List[str] = []

    if len(password) < requirements.min_length:
        errors.append(
            f"Password must be at least {requirements.min_length} characters long"
        )
    if len(password) > requirements.max_length:
        errors.append(
            f"Password must be at most {requirements.max_length} characters long"
        )
    if requirements.require_letter and not re.search(r"[A-Za-z]", password):
        errors.append("Password must contain at least one letter")
    if requirements.require_digit and not re.search(r"\d", password):
        errors.append("Password must contain at least one digit")

    return len(errors) == 0, errors


def is_valid_username(username: str) -> bool:
    """3 to 30 characters from letters, digits, dot, underscore and hyphen."""
    return 3 <= len(username) <= 30 and bool(USERNAME_PATTERN.match(username))


def is_valid_email(email: str) -> bool:
    return len(email) <= 254 and bool(EMAIL_PATTERN.match(email))
