"""Exception types raised while talking to package registries and storage."""

from __future__ import annotations


class VerificationError(Exception):
    """Base class for verification failures that escape a verifier."""


class RateLimitError(VerificationError):
    """Registry asked us to slow down (HTTP 429 or an exhausted quota)."""

    def __init__(self, message: str, retry_after: int | None = None) -> None:
        super().__init__(message)
        self.retry_after = retry_after


class NetworkError(VerificationError):
    """Transport-level failure: DNS, refused connection, dropped socket, timeout."""


class ServerError(VerificationError):
    """Registry answered with a 5xx status."""

    def __init__(self, message: str, status: int) -> None:
        super().__init__(message)
        self.status = status


class StorageError(VerificationError):
    """Result store is missing or unusable."""


__all__ = [
    "NetworkError",
    "RateLimitError",
    "ServerError",
    "StorageError",
    "VerificationError",
]
