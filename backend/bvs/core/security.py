"""
Security utilities for password hashing and sensitive data handling.

This module provides:
- Password hashing and verification with bcrypt
- Secure random token generation
- SHA-256 digests for checksums and ETags
- Masking helpers for logging personal data
"""

import base64
import hashlib
import secrets
from functools import lru_cache
from typing import Optional

from passlib.context import CryptContext

from bvs.core.config import get_settings
from bvs.core.exceptions import BVSError
from bvs.core.logging import get_logger

logger = get_logger(__name__)


class SecurityError(BVSError):
    """Raised when a cryptographic operation fails."""

    status_code = 500
    title = "Security Error"


@lru_cache
def get_password_context() -> CryptContext:
    """
    Build the bcrypt password context from settings.

    Returns:
        CryptContext configured with the configured cost factor
    """
    return CryptContext(
        schemes=["bcrypt"],
        deprecated="auto",
        bcrypt__rounds=get_settings().password_hash_rounds,
        bcrypt__ident="2b",
    )


def hash_password(password: str) -> str:
    """
    Hash a password using bcrypt.

    Args:
        password: Plain text password to hash

    Returns:
        Hashed password string

    Raises:
        SecurityError: If password is empty or hashing fails

    Example:
        >>> hashed = hash_password("SecurePass123!")
        >>> verify_password("SecurePass123!", hashed)
        True
    """
    if not password:
        logger.error("Attempted to hash empty password")
        raise SecurityError("Password cannot be empty", code="EMPTY_PASSWORD")

    try:
        return get_password_context().hash(password)
    except Exception as e:
        logger.error(
            "Password hashing failed",
            error=str(e),
            error_type=type(e).__name__,
        )
        raise SecurityError("Failed to hash password", code="HASH_FAILED") from e


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a plain password against a hashed password.

    Returns:
        True if password matches, False otherwise (including empty input
        and malformed hashes)
    """
    if not plain_password or not hashed_password:
        logger.warning(
            "Password verification attempted with empty values",
            has_plain=bool(plain_password),
            has_hashed=bool(hashed_password),
        )
        return False

    try:
        return get_password_context().verify(plain_password, hashed_password)
    except (ValueError, TypeError) as e:
        logger.warning(
            "Password hash could not be verified",
            error=str(e),
            error_type=type(e).__name__,
        )
        return False


def needs_rehash(hashed_password: str) -> bool:
    """
    Check if a hashed password should be rehashed with current parameters.

    Example:
        >>> needs_rehash(hash_password("SecurePass123!"))
        False
    """
    try:
        return get_password_context().needs_update(hashed_password)
    except (ValueError, TypeError) as e:
        logger.warning("Failed to check if password needs rehash", error=str(e))
        return False


def generate_secure_token(length: int = 32) -> str:
    """
    Generate a URL-safe random token without padding.

    Args:
        length: Number of random bytes

    Raises:
        ValueError: If length is not positive
    """
    if length <= 0:
        raise ValueError("Token length must be positive")
    return base64.urlsafe_b64encode(secrets.token_bytes(length)).rstrip(b"=").decode("ascii")


def sha256_hex(data: str | bytes) -> str:
    """Hex-encoded SHA-256 digest of text (UTF-8) or bytes."""
    if isinstance(data, str):
        data = data.encode("utf-8")
    return hashlib.sha256(data).hexdigest()


def mask(data: Optional[str], visible_chars: int) -> Optional[str]:
    """
    Mask all but the first ``visible_chars`` characters.

    Example:
        >>> mask("secret-value", 3)
        'sec*********'
    """
    if data is None or len(data) <= visible_chars:
        return data
    return data[:visible_chars] + "*" * (len(data) - visible_chars)


def mask_email(email: Optional[str]) -> Optional[str]:
    """
    Mask the local part of an email, keeping two characters and the domain.

    Example:
        >>> mask_email("john.doe@example.com")
        'jo***@example.com'
    """
    if email is None or "@" not in email:
        return email

    local, _, domain = email.partition("@")
    if len(local) <= 2:
        return f"{local}@{domain}"
    return f"{local[:2]}***@{domain}"
