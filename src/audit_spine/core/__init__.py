"""
audit-spine core primitives: errors, logging, settings, schema, timestamps.
"""

from audit_spine.core.errors import (
    AuditSpineError,
    AuditStoreError,
    ErrorCategory,
    ErrorContext,
    InvalidArgumentError,
    UnregisteredError,
    UnsupportedError,
)
from audit_spine.core.logging import LogContext, configure_from_settings, configure_logging, get_logger
from audit_spine.core.settings import AuditBackend, AuditSpineSettings, get_settings

__all__ = [
    "AuditSpineError",
    "AuditStoreError",
    "ErrorCategory",
    "ErrorContext",
    "InvalidArgumentError",
    "UnregisteredError",
    "UnsupportedError",
    "LogContext",
    "configure_logging",
    "configure_from_settings",
    "get_logger",
    "AuditBackend",
    "AuditSpineSettings",
    "get_settings",
]
