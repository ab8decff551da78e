"""
Tests for audit_spine.core.errors module.

Tests cover:
- Category and retry defaults per error type
- Standard-library base classes (ValueError, LookupError, ...)
- Context enrichment via with_context
- to_dict serialization
- require / is_retryable helpers
"""

import pytest

from audit_spine.core.errors import (
    AuditSpineError,
    AuditStoreError,
    ErrorCategory,
    ErrorContext,
    InvalidArgumentError,
    UnregisteredError,
    UnsupportedError,
    is_retryable,
    require,
)


# =============================================================================
# Hierarchy
# =============================================================================


class TestHierarchy:
    def test_invalid_argument_is_value_error(self):
        err = InvalidArgumentError("bad", param="threshold_value")
        assert isinstance(err, AuditSpineError)
        assert isinstance(err, ValueError)
        assert err.param == "threshold_value"
        assert err.category == ErrorCategory.VALIDATION
        assert err.retryable is False

    def test_unregistered_is_lookup_error(self):
        err = UnregisteredError("Order")
        assert isinstance(err, LookupError)
        assert err.type_name == "Order"
        assert err.context.entity_type == "Order"
        assert err.category == ErrorCategory.CONFIG
        assert "Order" in str(err)

    def test_unregistered_custom_message(self):
        err = UnregisteredError("Order", "no selector")
        assert str(err) == "no selector"

    def test_unsupported_is_not_implemented(self):
        err = UnsupportedError("Unsupported threshold type: 'Ratio'")
        assert isinstance(err, NotImplementedError)
        assert err.category == ErrorCategory.VALIDATION

    def test_store_error_is_retryable(self):
        err = AuditStoreError("disk full")
        assert err.category == ErrorCategory.STORAGE
        assert err.retryable is True

    def test_overrides(self):
        err = AuditStoreError("x", retryable=False, category=ErrorCategory.INTERNAL)
        assert err.retryable is False
        assert err.category == ErrorCategory.INTERNAL


# =============================================================================
# Context and serialization
# =============================================================================


class TestContext:
    def test_with_context_sets_known_fields(self):
        err = AuditStoreError("x").with_context(entity_type="Order", entity_id="A-1")
        assert err.context.entity_type == "Order"
        assert err.context.entity_id == "A-1"

    def test_with_context_unknown_goes_to_metadata(self):
        err = AuditStoreError("x").with_context(table="core_save_audits")
        assert err.context.metadata == {"table": "core_save_audits"}

    def test_context_to_dict_skips_none(self):
        ctx = ErrorContext(entity_type="Order", metadata={"k": 1})
        assert ctx.to_dict() == {"entity_type": "Order", "k": 1}

    def test_to_dict(self):
        cause = RuntimeError("boom")
        err = InvalidArgumentError("bad", param="plan", cause=cause)
        d = err.to_dict()
        assert d["error_type"] == "InvalidArgumentError"
        assert d["category"] == "VALIDATION"
        assert d["param"] == "plan"
        assert d["cause"] == "boom"
        assert err.__cause__ is cause

    def test_repr(self):
        assert repr(UnsupportedError("nope")) == "UnsupportedError('nope', category=VALIDATION)"


# =============================================================================
# Helpers
# =============================================================================


class TestHelpers:
    def test_require_returns_value(self):
        assert require(0, "x") == 0

    def test_require_raises_on_none(self):
        with pytest.raises(InvalidArgumentError) as exc_info:
            require(None, "audit_store")
        assert exc_info.value.param == "audit_store"

    def test_is_retryable(self):
        assert is_retryable(AuditStoreError("x"))
        assert not is_retryable(InvalidArgumentError("x"))
        assert is_retryable(ConnectionError())
        assert not is_retryable(KeyError())
