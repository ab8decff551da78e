"""
Structured error types for the audit-spine validation engine.

Every failure the engine surfaces to a caller is an ``AuditSpineError``
subclass carrying a category, a retry flag, structured context and an
optional chained cause. Ordinary validation outcomes (a manual rule or a
threshold comparison returning ``False``) are NOT errors; they are booleans.

Manifesto:
    - **Typed taxonomy:** InvalidArgument, Unregistered, Unsupported, Storage
    - **Fail fast:** Bad input raises immediately, never silently defaults
    - **Rich context:** Errors carry entity type / id for logging
    - **Error chaining:** Backend exceptions are preserved as ``cause``

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────┐
        │                      AuditSpineError                         │
        │        (category, retryable, context, cause)                │
        ├─────────────────────────────────────────────────────────────┤
        │  InvalidArgumentError   UnregisteredError   UnsupportedError │
        │  (VALIDATION, param)    (CONFIG)            (VALIDATION)     │
        │                                                              │
        │  AuditStoreError                                             │
        │  (STORAGE)                                                   │
        └─────────────────────────────────────────────────────────────┘

Examples:
    >>> err = InvalidArgumentError("threshold must be non-negative", param="threshold_value")
    >>> err.param
    'threshold_value'
    >>> err.to_dict()["category"]
    'VALIDATION'

Tags:
    error-handling, exception-hierarchy, validation, audit-spine

Doc-Types:
    - API Reference
    - Error Handling Guide
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, TypeVar

T = TypeVar("T")


class ErrorCategory(str, Enum):
    """Error categories for classification and routing."""

    VALIDATION = "VALIDATION"  # Null, negative or malformed input
    CONFIG = "CONFIG"  # Missing plan / selector registration
    STORAGE = "STORAGE"  # Audit store backend failures
    INTERNAL = "INTERNAL"  # Bugs, unexpected state


@dataclass
class ErrorContext:
    """
    Structured metadata attached to an error.

    Attributes:
        entity_type: Logical entity type name involved in the failure
        entity_id: Resolved entity identity, if known
        application_name: Application that issued the validation
        metadata: Additional key-value pairs
    """

    entity_type: str | None = None
    entity_id: str | None = None
    application_name: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["entity_type", "entity_id", "application_name"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class AuditSpineError(Exception):
    """
    Base exception for all audit-spine errors.

    Subclasses set ``default_category`` and ``default_retryable`` so callers
    can route and retry on type alone.
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> AuditSpineError:
        """
        Add context to this error (fluent API).

        Usage:
            raise UnregisteredError("Order").with_context(application_name="billing")
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# ARGUMENT / CONFIGURATION ERRORS
# =============================================================================


class InvalidArgumentError(AuditSpineError, ValueError):
    """
    Null, negative or malformed input.

    Never retryable - the caller must fix the argument.
    """

    default_category = ErrorCategory.VALIDATION
    default_retryable = False

    def __init__(self, message: str, *, param: str | None = None, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.param = param

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.param:
            result["param"] = self.param
        return result


class UnregisteredError(AuditSpineError, LookupError):
    """No configuration registered for a type where one is required."""

    default_category = ErrorCategory.CONFIG
    default_retryable = False

    def __init__(self, type_name: str, message: str | None = None, **kwargs: Any):
        super().__init__(message or f"No registration found for type: {type_name}", **kwargs)
        self.type_name = type_name
        self.context.entity_type = type_name


class UnsupportedError(AuditSpineError, NotImplementedError):
    """Unknown threshold kind passed to the strict comparator."""

    default_category = ErrorCategory.VALIDATION
    default_retryable = False


# =============================================================================
# STORAGE ERRORS
# =============================================================================


class AuditStoreError(AuditSpineError):
    """Audit store backend failure (read or write)."""

    default_category = ErrorCategory.STORAGE
    default_retryable = True


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================


def require(value: T | None, name: str) -> T:
    """Return *value*, raising :class:`InvalidArgumentError` when it is ``None``."""
    if value is None:
        raise InvalidArgumentError(f"{name} must not be None", param=name)
    return value


def is_retryable(error: Exception) -> bool:
    """Check if an error is retryable."""
    if isinstance(error, AuditSpineError):
        return error.retryable
    return isinstance(error, (ConnectionError, OSError))


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "AuditSpineError",
    "InvalidArgumentError",
    "UnregisteredError",
    "UnsupportedError",
    "AuditStoreError",
    "require",
    "is_retryable",
]
