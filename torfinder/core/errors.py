"""
Error taxonomy
Every failure that reaches the web boundary is one of these.
"""
from typing import Optional


class FinderError(Exception):
    """Base error carrying the HTTP status it maps to."""

    status_code = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(FinderError):
    """Bad or missing query parameters / body fields."""

    status_code = 400


class AuthError(FinderError):
    """Credential missing on a call that forwards one upstream."""

    status_code = 401


class UpstreamError(FinderError):
    """Non-2xx, unreachable or malformed external service."""

    status_code = 500

    def __init__(self, message: str, status_code: Optional[int] = None, body: str = ""):
        super().__init__(message, status_code)
        self.body = body


class ProviderError(UpstreamError):
    """A search provider failed as a whole (not a single scraped row)."""

    def __init__(self, provider: str, message: str, status_code: Optional[int] = None, body: str = ""):
        super().__init__(message, status_code, body)
        self.provider = provider
