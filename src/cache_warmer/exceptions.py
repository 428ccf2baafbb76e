"""Exception hierarchy for the cache warmer.

Per-URL and per-sitemap errors are caught close to where they are raised and
turned into log lines and failed outcomes. Only FatalStartupError is allowed
to reach the process boundary.
"""

from typing import Optional


class CacheWarmerError(Exception):
    """Base class for all cache warmer errors."""


class FetchError(CacheWarmerError):
    """Raised when a sitemap document cannot be downloaded."""

    def __init__(self, message: str, url: str, status_code: Optional[int] = None):
        self.message = message
        self.url = url
        self.status_code = status_code
        super().__init__(message)


class ParseError(CacheWarmerError):
    """Raised when a sitemap body is not well-formed XML."""

    def __init__(self, message: str, url: str):
        self.message = message
        self.url = url
        super().__init__(message)


class NavigationError(CacheWarmerError):
    """Raised when a page failed to load, after the retry."""

    def __init__(self, message: str, url: str, attempts: int = 1):
        self.message = message
        self.url = url
        self.attempts = attempts
        super().__init__(message)


class HttpStatusError(CacheWarmerError):
    """Raised when the warming request answered outside 2xx/3xx."""

    def __init__(self, url: str, status_code: int):
        self.url = url
        self.status_code = status_code
        super().__init__(f"HTTP {status_code} for {url}")


class ProbeError(CacheWarmerError):
    """Raised when the cache marker probe could not be evaluated in the page."""


class LockHeldError(CacheWarmerError):
    """Raised when another invocation holds a fresh run lock."""

    def __init__(self, path: str, age_seconds: float):
        self.path = path
        self.age_seconds = age_seconds
        super().__init__(
            f"Lock file {path} is held ({age_seconds / 3600:.2f} h old)"
        )


class FatalStartupError(CacheWarmerError):
    """Raised when logging or lock infrastructure cannot be initialized."""
