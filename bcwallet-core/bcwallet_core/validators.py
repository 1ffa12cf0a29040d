"""
Input Validators
================
Syntactic checks applied before any request leaves the client.
"""

import re
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from .exceptions import ValidationError

EMAIL_PATTERN = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')
CNIC_PATTERN = re.compile(r'^\d{5}-\d{7}-\d$')


def is_valid_email(email: str) -> bool:
    """
    Check that an email address is syntactically plausible.

    Args:
        email: Address as typed by the user

    Returns:
        True if it has a local part, an "@" and a dotted domain
    """
    return bool(email) and bool(EMAIL_PATTERN.match(email))


def is_valid_cnic(cnic: str) -> bool:
    """Check the national ID format, e.g. ``12345-1234567-1``."""
    return bool(cnic) and bool(CNIC_PATTERN.match(cnic))


def is_valid_code(code: str, length: int = 6) -> bool:
    return bool(code) and len(code) == length and code.isdigit()


def validate_email(email: str) -> str:
    if not email:
        raise ValidationError("Please enter your email address")
    email = email.strip()
    if not is_valid_email(email):
        raise ValidationError("Please enter a valid email address")
    return email


def validate_password(password: str) -> None:
    """
    Enforce the password policy used at registration.

    Rules:
    - At least 6 characters
    - At least one letter and one digit
    """
    if not password or len(password) < 6:
        raise ValidationError("Password must be at least 6 characters")
    if len(password) > 100:
        raise ValidationError("Password must be at most 100 characters")
    has_letter = re.search(r'[a-zA-Z]', password) is not None
    has_digit = re.search(r'[0-9]', password) is not None
    if not (has_letter and has_digit):
        raise ValidationError("Password must contain at least one letter and one number")


def validate_full_name(full_name: str) -> str:
    name = (full_name or "").strip()
    if not 3 <= len(name) <= 100:
        raise ValidationError("Full name must be between 3 and 100 characters")
    return name


def validate_cnic(cnic: str) -> str:
    cnic = (cnic or "").strip()
    if not is_valid_cnic(cnic):
        raise ValidationError("Invalid CNIC format. Expected: 12345-1234567-1")
    return cnic


def parse_amount(value: Any) -> Optional[Decimal]:
    """
    Parse user input into a Decimal amount.

    Floats go through ``str`` so 0.1 stays 0.1.

    Returns:
        The amount, or None for empty or unparseable input
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        amount = value
    else:
        text = str(value).strip()
        if not text:
            return None
        try:
            amount = Decimal(text)
        except InvalidOperation:
            return None
    if not amount.is_finite():
        return None
    return amount
