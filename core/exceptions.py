"""
Custom exceptions for better error handling.

Every error raised by the service is one of a closed set of variants,
each tagged with an ``ErrorKind`` and carrying structured context.
"""
from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(str, Enum):
    """Tag identifying the error variant."""
    VALIDATION = "validation"
    CLASSIFICATION = "classification"
    LEDGER = "ledger"
    INVALID_OPERATION = "invalid_operation"
    UNKNOWN_CATEGORY = "unknown_category"
    TIMEOUT = "timeout"
    CONFIGURATION = "configuration"


class CategorizerError(Exception):
    """Base exception for all categorizer errors."""

    kind: ErrorKind

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        status_code: Optional[int] = None
    ):
        """
        Initialize exception.

        Args:
            message: Error message
            details: Additional error details
            status_code: Upstream status code, if the error came from a remote call
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.status_code = status_code

    def to_dict(self) -> Dict[str, Any]:
        """Structured representation used in logs and API responses."""
        return {
            "kind": self.kind.value,
            "message": self.message,
            "status_code": self.status_code,
            "details": self.details,
        }


class ValidationError(CategorizerError):
    """Raised when an inbound webhook is malformed or not eligible."""
    kind = ErrorKind.VALIDATION

    def __init__(self, message: str, rule: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details={"rule": rule, **(details or {})})
        self.rule = rule


class ClassificationError(CategorizerError):
    """Raised when the classification API call fails."""
    kind = ErrorKind.CLASSIFICATION


class LedgerError(CategorizerError):
    """Raised when the ledger API call fails."""
    kind = ErrorKind.LEDGER


class InvalidOperationError(CategorizerError):
    """Raised when an operation is not allowed in the job's current state."""
    kind = ErrorKind.INVALID_OPERATION


class UnknownCategoryError(CategorizerError):
    """Raised when a category is not part of the ledger catalog."""
    kind = ErrorKind.UNKNOWN_CATEGORY


class JobTimeoutError(CategorizerError):
    """Raised when a queued task exceeds its time bound."""
    kind = ErrorKind.TIMEOUT


class ConfigurationError(CategorizerError):
    """Raised when configuration is invalid."""
    kind = ErrorKind.CONFIGURATION
