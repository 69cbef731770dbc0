"""
Short code generation and validation.
"""

import re
import secrets
import string
from urllib.parse import urlsplit

from linksprint.config import settings
from linksprint.exceptions import InvalidInputError

# 26 lowercase + 26 uppercase + 10 digits
ALPHABET = string.ascii_lowercase + string.ascii_uppercase + string.digits
CUSTOM_CODE_PATTERN = re.compile(r"[A-Za-z0-9-]+")


def generate_short_code(length: int = 6) -> str:
    """
    Generate a random short code from the Base62 alphabet.

    Each byte from the CSPRNG is reduced modulo 62 with no rejection, so
    the first 8 symbols are very slightly more likely (256 % 62 == 8).
    That bias is accepted.
    """
    return "".join(ALPHABET[byte % len(ALPHABET)] for byte in secrets.token_bytes(length))


def validate_custom_code(short_code: str) -> str:
    """Return the code unchanged, or raise InvalidInputError."""
    min_length = settings.custom_code_min_length
    max_length = settings.custom_code_max_length
    if not min_length <= len(short_code) <= max_length:
        raise InvalidInputError(
            f"Short code must be between {min_length} and {max_length} characters"
        )
    if not CUSTOM_CODE_PATTERN.fullmatch(short_code):
        raise InvalidInputError("Short code can only contain letters, numbers, and hyphens")
    return short_code


def validate_original_url(original_url: str) -> str:
    """Require an absolute URL with a scheme and a host."""
    try:
        parts = urlsplit(original_url)
        host = parts.hostname
    except ValueError as e:
        raise InvalidInputError("Invalid URL format") from e
    if not parts.scheme or not host:
        raise InvalidInputError("URL must have scheme and host")
    return original_url
