"""Exception types raised by the wbstock scraper."""

from __future__ import annotations


class ScraperError(RuntimeError):
    """Base class for scraper failures that are reported to the caller."""


class ConfigError(ScraperError):
    """Raised when configuration values are missing or malformed."""


class ResponseParseError(ScraperError):
    """Raised when the matched stock response cannot be decoded."""

    def __init__(self, message: str, *, url: str | None = None) -> None:
        super().__init__(message)
        self.url = url


class ResponseTimeoutError(ScraperError):
    """Raised when no matching response arrives before the deadline."""

    def __init__(self, timeout: float, pattern: str) -> None:
        super().__init__(f"No response matching {pattern!r} within {timeout:g}s")
        self.timeout = timeout
        self.pattern = pattern
