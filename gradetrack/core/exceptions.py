"""
Custom exceptions for the GradeTrack service.
"""

from typing import Optional, Any, Dict


class GradeTrackException(Exception):
    """Base exception for all GradeTrack errors."""

    def __init__(self, message: str, error_code: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}


class ValidationError(GradeTrackException):
    """Raised when data validation fails."""
    pass


class AuthenticationError(GradeTrackException):
    """Raised when a write is attempted without an identity."""
    pass


class ResourceNotFoundError(GradeTrackException):
    """Raised when a requested resource is not found or not owned by the caller."""
    pass


class ConcurrencyError(GradeTrackException):
    """Raised when concurrency control fails."""
    pass


class PersistenceError(GradeTrackException):
    """Raised when persistence operations fail."""
    pass


class ConfigurationError(GradeTrackException):
    """Raised when configuration is invalid."""
    pass
