"""Tests for audit_spine.core.settings."""

from decimal import Decimal
from pathlib import Path

import pytest
from pydantic import ValidationError

from audit_spine.core.settings import (
    AuditBackend,
    AuditSpineSettings,
    clear_settings_cache,
    get_settings,
)


class TestAuditSpineSettings:
    def test_defaults(self):
        s = AuditSpineSettings(_env_file=None)
        assert s.application_name == "audit-spine"
        assert s.audit_backend is AuditBackend.MEMORY
        assert s.database_path == Path("data/audit_spine.db")
        assert s.log_level == "INFO"
        assert s.log_json is None
        assert s.batch_size_tolerance == Decimal("0.1")

    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("AUDIT_SPINE_APPLICATION_NAME", "billing")
        monkeypatch.setenv("AUDIT_SPINE_AUDIT_BACKEND", "sqlite")
        monkeypatch.setenv("AUDIT_SPINE_BATCH_SIZE_TOLERANCE", "0.25")
        s = AuditSpineSettings(_env_file=None)
        assert s.application_name == "billing"
        assert s.audit_backend is AuditBackend.SQLITE
        assert s.batch_size_tolerance == Decimal("0.25")

    def test_log_level_uppercased(self):
        assert AuditSpineSettings(_env_file=None, log_level="debug").log_level == "DEBUG"

    def test_unknown_log_level_rejected(self):
        with pytest.raises(ValidationError):
            AuditSpineSettings(_env_file=None, log_level="chatty")

    def test_negative_tolerance_rejected(self):
        with pytest.raises(ValidationError):
            AuditSpineSettings(_env_file=None, batch_size_tolerance=Decimal("-0.1"))

    def test_empty_application_name_rejected(self):
        with pytest.raises(ValidationError):
            AuditSpineSettings(_env_file=None, application_name="")


class TestGetSettings:
    def test_cached(self):
        assert get_settings() is get_settings()

    def test_clear_cache_rereads_env(self, monkeypatch):
        first = get_settings()
        monkeypatch.setenv("AUDIT_SPINE_APPLICATION_NAME", "reporting")
        clear_settings_cache()
        second = get_settings()
        assert second is not first
        assert second.application_name == "reporting"
