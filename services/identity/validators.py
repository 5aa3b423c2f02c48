"""
Local form validation for the auth and account-settings forms.

Every check here runs before any call to the hosted auth service; failures
raise ValidationFailed with the message shown to the user.
"""

import re
from typing import Optional

from common.constants import EMAIL_PATTERN, MIN_PASSWORD_LENGTH, PHONE_PATTERN
from common.errors import ValidationFailed

EMAIL_RE = re.compile(EMAIL_PATTERN)
PHONE_RE = re.compile(PHONE_PATTERN)


def validate_email(email: str) -> None:
    if not EMAIL_RE.fullmatch(email or ""):
        raise ValidationFailed("Please enter a valid email address")


def validate_phone(contact_number: Optional[str]) -> None:
    if contact_number and not PHONE_RE.fullmatch(contact_number):
        raise ValidationFailed("Please enter a valid phone number")


def validate_password_length(password: str, message: str) -> None:
    if len(password or "") < MIN_PASSWORD_LENGTH:
        raise ValidationFailed(message)


def validate_signup(
    email: str,
    password: str,
    confirm_password: str,
    contact_number: Optional[str] = None,
) -> None:
    """Same order as the sign-up form: email, phone, match, length."""
    validate_email(email)
    validate_phone(contact_number)
    if password != confirm_password:
        raise ValidationFailed("Passwords do not match")
    validate_password_length(
        password, f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"
    )


def validate_new_email(email: Optional[str]) -> None:
    if not email:
        raise ValidationFailed("Please enter a new email address")


def validate_new_password(password: Optional[str], confirm_password: Optional[str]) -> None:
    if not password or not confirm_password:
        raise ValidationFailed("Please fill in all password fields")
    if password != confirm_password:
        raise ValidationFailed("Passwords do not match")
    validate_password_length(
        password, f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
    )


def validate_admin_account(email: Optional[str], password: Optional[str]) -> None:
    if not email or not password:
        raise ValidationFailed("Please fill in all fields")
    validate_password_length(
        password, f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
    )
