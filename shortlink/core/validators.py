"""
Input Validators

Validation helpers shared by the engine and the HTTP layer.

Security Considerations:
- Only http/https targets are accepted (no javascript:, data:, file: ...)
- Shortcodes are restricted to [0-9a-zA-Z], which keeps them safe in paths
- Length limits prevent oversized payloads
"""

import re
from typing import Optional
from urllib.parse import urlparse

SHORTCODE_PATTERN = re.compile(r"[A-Za-z0-9]{4,20}")

MAX_URL_LENGTH = 2048
ALLOWED_SCHEMES = {'http', 'https'}


def is_valid_url(url: str) -> bool:
    """
    Validate that a URL is a well-formed http:// or https:// URL.

    Args:
        url: The URL string to validate

    Returns:
        True if valid, False otherwise
    """
    if not url or not isinstance(url, str):
        return False

    if len(url) > MAX_URL_LENGTH:
        return False

    if any(char.isspace() for char in url):
        return False

    try:
        result = urlparse(url)
        # Accessing .port raises ValueError on a malformed port
        result.port
    except ValueError:
        return False

    if result.scheme.lower() not in ALLOWED_SCHEMES:
        return False

    if not result.hostname:
        return False

    return True


def is_valid_shortcode(shortcode: Optional[str]) -> bool:
    """Return True if shortcode is 4-20 alphanumeric characters."""
    if not shortcode or not isinstance(shortcode, str):
        return False
    return SHORTCODE_PATTERN.fullmatch(shortcode) is not None


def validate_validity(validity: int, maximum: int) -> bool:
    """Return True if a validity window in minutes lies within 1..maximum."""
    return isinstance(validity, int) and not isinstance(validity, bool) and 1 <= validity <= maximum
