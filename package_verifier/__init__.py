"""Package verification: checks that catalog packages exist in their registries."""

from .errors import (
    NetworkError,
    RateLimitError,
    ServerError,
    StorageError,
    VerificationError,
)
from .models import VerificationResult, VerificationSummary
from .retry import execute_with_retry, is_retryable_error
from .service import VerificationService
from .storage import VerificationStorage

__all__ = [
    "NetworkError",
    "RateLimitError",
    "ServerError",
    "StorageError",
    "VerificationError",
    "VerificationResult",
    "VerificationService",
    "VerificationStorage",
    "VerificationSummary",
    "execute_with_retry",
    "is_retryable_error",
]
