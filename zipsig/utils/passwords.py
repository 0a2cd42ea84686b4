"""
ZipSig Password Utility
Validation of encryption passwords and secure password generation.
"""
import secrets
from typing import Optional

from ..config import config
from ..errors import ValidationError

PASSWORD_CHARSET = (
    'ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789'
    '!@#$%^&*()_+-=[]{}|;:,.<>?'
)


def validate_encryption_password(
    password: Optional[str],
    confirm: Optional[str],
    min_length: int = None
) -> None:
    """
    Raise ValidationError unless the password is usable for encryption.

    Args:
        password: the password as entered
        confirm: the confirmation entry, must equal password
        min_length: minimum length (defaults to config)
    """
    min_length = min_length or config.min_password_length
    if not password:
        raise ValidationError("Password is required")
    if len(password) < min_length:
        raise ValidationError(f"Password must be at least {min_length} characters")
    if password != confirm:
        raise ValidationError("Passwords do not match")


def generate_secure_password(length: int = None) -> str:
    length = length or config.generated_password_length
    return ''.join(secrets.choice(PASSWORD_CHARSET) for _ in range(length))


__all__ = ["validate_encryption_password", "generate_secure_password", "PASSWORD_CHARSET"]
