"""
Custom Exceptions

This module defines the error taxonomy of the shortening service.

Endpoints map these onto HTTP status codes:
- InvalidRequestError subclasses -> 400
- ConflictError -> 409
- NotFoundOrExpiredError -> 404
- everything else -> 500 with a generic message
"""

from typing import Optional


class ShortenerError(Exception):
    """Base exception for the shortening service."""
    pass


class InvalidRequestError(ShortenerError):
    """Raised when caller input fails validation."""
    pass


class InvalidUrlError(InvalidRequestError):
    """Raised when URL validation fails."""

    def __init__(self, url: str, reason: str = "Invalid URL format"):
        self.url = url
        self.reason = reason
        super().__init__(f"{reason}: {url}")


class InvalidShortcodeFormatError(InvalidRequestError):
    """Raised when a shortcode is not 4-20 alphanumeric characters."""

    def __init__(self, shortcode: str):
        self.shortcode = shortcode
        super().__init__(
            f"Invalid shortcode format: '{shortcode}'. "
            "Shortcodes must be 4-20 alphanumeric characters"
        )


class InvalidValidityError(InvalidRequestError):
    """Raised when the validity window is outside the accepted range."""

    def __init__(self, validity: int, maximum: int):
        self.validity = validity
        self.maximum = maximum
        super().__init__(f"Validity must be between 1 and {maximum} minutes, got {validity}")


class ConflictError(ShortenerError):
    """Raised when a shortcode is already taken."""

    def __init__(self, shortcode: str):
        self.shortcode = shortcode
        super().__init__(f"Shortcode '{shortcode}' already exists")


class GenerationExhaustedError(ShortenerError):
    """Raised when no free random shortcode was found in bounded attempts."""

    def __init__(self, attempts: int):
        self.attempts = attempts
        super().__init__(f"Failed to generate a unique shortcode after {attempts} attempts")


class NotFoundOrExpiredError(ShortenerError):
    """Raised when a shortcode does not exist or its validity window has passed."""

    def __init__(self, shortcode: str):
        self.shortcode = shortcode
        super().__init__(f"Short URL '{shortcode}' not found or has expired")


class InternalError(ShortenerError):
    """Raised when the store or another dependency fails."""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        self.original_error = original_error
        super().__init__(f"Internal error: {message}")
