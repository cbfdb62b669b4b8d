"""
Exception types for the scan pipeline.

Internal failures are raised as these exceptions and translated by the
ScanOrchestrator into exactly one FailureReason on the returned outcome.
"""

from typing import Optional


class ScanError(Exception):
    """Base class for all scan pipeline errors."""

    def __init__(self, message: str, *, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.message = message
        self.cause = cause


class InvalidInputError(ScanError):
    """Malformed location key or undecodable image. Caller must fix the input."""


class VisionAnalysisError(ScanError):
    """A vision service call did not produce a response."""

    retryable = False


class VisionTransportError(VisionAnalysisError):
    """Network, auth, rate-limit or server error from the vision service."""

    retryable = True


class VisionTimeoutError(VisionAnalysisError):
    """The vision call exceeded its deadline."""

    retryable = True


class InvalidImageError(VisionAnalysisError):
    """The image failed pre-validation or was rejected by the service."""


class PersistenceError(ScanError):
    """A ledger read or write failed; no partial state was kept."""
