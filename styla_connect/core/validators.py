"""Input validation helpers for connection data."""
from __future__ import annotations
from urllib.parse import urlparse

from .exceptions import ConfigurationError


def validate_email(email: str) -> str:
    """Validate email address.

    Args:
        email: Email address to validate

    Returns:
        Normalized email address

    Raises:
        ValueError: If email is invalid
    """
    email = (email or "").strip().lower()
    if not email or "@" not in email:
        raise ValueError("Invalid email format")

    local, domain = email.rsplit("@", 1)
    if not local or not domain or "." not in domain:
        raise ValueError("Invalid email format")
    if len(email) > 254:
        raise ValueError("Email exceeds maximum length")

    return email


def validate_password(password: str) -> str:
    """Require a non-empty password; it is forwarded to Styla untouched."""
    if not password:
        raise ValueError("Password is required")
    if len(password) > 256:
        raise ValueError("Password exceeds maximum length")
    return password


def validate_connection_url(url: str) -> str:
    """Basic syntax check for an admin-supplied connection URL.

    Raises:
        ConfigurationError: If the URL is not absolute or contains whitespace
    """
    candidate = (url or "").strip()
    if not candidate or any(char.isspace() for char in candidate):
        raise ConfigurationError("The Connection URL you provided is invalid.")

    parsed = urlparse(candidate)
    if not parsed.scheme or not parsed.netloc:
        raise ConfigurationError("The Connection URL you provided is invalid.")
    if not parsed.scheme.isascii() or not parsed.scheme[0].isalpha():
        raise ConfigurationError("The Connection URL you provided is invalid.")
    try:
        parsed.port
    except ValueError:
        raise ConfigurationError("The Connection URL you provided is invalid.")

    return candidate
