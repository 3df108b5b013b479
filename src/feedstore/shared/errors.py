"""FeedStore Error Handling Module

This module defines the error handling system for FeedStore, providing
structured error classes with context information.

The error hierarchy follows these principles:
- One Source of Truth: All error codes are defined in ErrorCode enum
- Structured Context: ErrorContext provides additional information
- Proper Exception Chaining: Original exceptions are preserved
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import Any, Union

# Type alias for primitive context values (str, int, float, bool only)
PrimitiveContextValue = Union[str, int, float, bool]


class ErrorCode(str, Enum):
    """Error codes for FeedStore.

    This enum serves as the single source of truth for all error codes
    used throughout the package.
    """

    # Initialization Errors
    MODEL_NOT_FOUND = "MODEL_NOT_FOUND"
    STORE_OPEN_FAILED = "STORE_OPEN_FAILED"

    # Cache Errors
    CACHE_READ_FAILED = "CACHE_READ_FAILED"
    CACHE_WRITE_FAILED = "CACHE_WRITE_FAILED"
    CACHE_DELETE_FAILED = "CACHE_DELETE_FAILED"
    STORE_CLOSED = "STORE_CLOSED"

    # Validation Errors
    VALIDATION_ERROR = "VALIDATION_ERROR"

    # Configuration Errors
    CONFIG_ERROR = "CONFIG_ERROR"


def _coerce_primitives(value: Any | None) -> dict[str, PrimitiveContextValue] | None:
    """Coerce additional_data values to primitives.

    Converts Path, Enum, Decimal to primitive types.

    Args:
        value: Input dictionary or None

    Returns:
        Dictionary with primitive values only, or None

    Raises:
        TypeError: If value is not a dict or contains unconvertible types
    """
    if value is None:
        return None

    if not isinstance(value, dict):
        error_msg = f"additional_data must be dict, got {type(value).__name__}"
        raise TypeError(error_msg)

    coerced: dict[str, PrimitiveContextValue] = {}
    for key, val in value.items():
        if isinstance(val, (str, int, float, bool)):
            coerced[key] = val
        elif isinstance(val, Path):
            coerced[key] = str(val)
        elif isinstance(val, Enum):
            coerced[key] = val.value
        elif isinstance(val, Decimal):
            coerced[key] = float(val)
        else:
            error_msg = (
                f"Cannot coerce {type(val).__name__} to primitive type. "
                f"Only str, int, float, bool, Path, Enum, Decimal are allowed."
            )
            raise TypeError(error_msg)

    return coerced


@dataclass(frozen=True)
class ErrorContext:
    """Context information for errors.

    Only primitive types (str, int, float, bool) are allowed in
    additional_data so contexts can always be serialized into log records.

    Attributes:
        operation: Optional operation name that caused the error
        location: Optional storage location involved in the error
        additional_data: Optional dict with primitive values only
    """

    operation: str | None = None
    location: str | None = None
    additional_data: dict[str, PrimitiveContextValue] | None = None

    def __post_init__(self) -> None:
        """Post-initialization validation and coercion."""
        if self.additional_data is not None:
            coerced = _coerce_primitives(self.additional_data)
            object.__setattr__(self, "additional_data", coerced)

    def safe_dict(self) -> dict[str, Any]:
        """Export context as a dict that always carries ``additional_data``.

        Example:
            >>> ErrorContext(operation="retrieve").safe_dict()
            {'operation': 'retrieve', 'additional_data': {}}
        """
        data: dict[str, Any] = {}
        if self.operation is not None:
            data["operation"] = self.operation
        if self.location is not None:
            data["location"] = self.location
        data["additional_data"] = dict(self.additional_data or {})
        return data


class FeedStoreError(Exception):
    """Base exception class for all FeedStore errors."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        context: ErrorContext | None = None,
        original_error: BaseException | None = None,
    ) -> None:
        """Initialize FeedStoreError.

        Args:
            code: Error code from ErrorCode enum
            message: Human-readable error message
            context: Additional context information
            original_error: Original exception that caused this error
        """
        self.code = code
        self.message = message
        self.context = context or ErrorContext()
        self.original_error = original_error
        super().__init__(f"{code.value}: {message}")
        if original_error is not None:
            self.__cause__ = original_error

    def __str__(self) -> str:
        """Return string representation of the error."""
        return f"{self.code.value}: {self.message}"

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging.

        Returns:
            Dictionary representation of the error with code, message,
            context, and original_error (if present)
        """
        return {
            "code": self.code.value,
            "message": self.message,
            "context": self.context.safe_dict(),
            "original_error": str(self.original_error) if self.original_error else None,
        }


class DomainError(FeedStoreError):
    """Domain-specific errors.

    Raised when a value handed to the store violates a domain rule,
    e.g. a feed image without an identifier.
    """


class InfrastructureError(FeedStoreError):
    """Infrastructure-related errors.

    These errors occur when interacting with the backing engine or the
    file system.
    """


class ApplicationError(FeedStoreError):
    """Application-level errors such as invalid configuration."""


class StoreInitializationError(InfrastructureError):
    """The store could not be constructed.

    ``code`` tells which step failed: ``MODEL_NOT_FOUND`` or
    ``STORE_OPEN_FAILED``.
    """


class ModelNotFoundError(StoreInitializationError):
    """The requested schema model is not registered."""


class StoreOpenError(StoreInitializationError):
    """The backing engine failed to open the storage location."""


class RetrievalError(InfrastructureError):
    """Reading the cached feed failed."""


class InsertionError(InfrastructureError):
    """Replacing the cached feed failed; the transaction was rolled back."""


class DeletionError(InfrastructureError):
    """Deleting the cached feed failed; the transaction was rolled back."""


class StoreClosedError(ApplicationError):
    """An operation was submitted to a store that has been closed."""


def create_validation_error(
    message: str,
    field: str | None = None,
    operation: str | None = None,
    original_error: Exception | None = None,
) -> DomainError:
    """Create a validation error with context."""
    additional_data: dict[str, PrimitiveContextValue] | None = (
        {"field": field} if field else None
    )
    context = ErrorContext(
        operation=operation,
        additional_data=additional_data,
    )
    return DomainError(
        ErrorCode.VALIDATION_ERROR,
        message,
        context,
        original_error,
    )


def create_config_error(
    message: str,
    config_key: str | None = None,
    operation: str | None = None,
    original_error: Exception | None = None,
) -> ApplicationError:
    """Create a configuration error with context."""
    additional_data: dict[str, PrimitiveContextValue] | None = (
        {"config_key": config_key} if config_key else None
    )
    context = ErrorContext(
        operation=operation,
        additional_data=additional_data,
    )
    return ApplicationError(
        ErrorCode.CONFIG_ERROR,
        message,
        context,
        original_error,
    )
