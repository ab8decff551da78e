"""Settings for the audit-spine validation engine.

Manifesto:
    Configuration should be explicit, validated, and environment-driven.
    The engine needs very little at process start: which application it is
    auditing for, where audit records live, and how chatty to be.

    - **Pydantic validation:** Type-checked at startup, not runtime
    - **Environment-driven:** ``AUDIT_SPINE_*`` env vars and ``.env`` files
    - **Sensible defaults:** In-memory audit store works out of the box

Examples:
    >>> from audit_spine.core.settings import AuditSpineSettings
    >>> settings = AuditSpineSettings(application_name="billing")
    >>> settings.audit_backend
    <AuditBackend.MEMORY: 'memory'>

Tags:
    settings, configuration, pydantic, environment, audit-spine
"""

from __future__ import annotations

from decimal import Decimal
from enum import Enum
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AuditBackend(str, Enum):
    """Where audit records are kept."""

    MEMORY = "memory"
    SQLITE = "sqlite"


class AuditSpineSettings(BaseSettings):
    """Process-wide audit-spine configuration.

    Fields
    ──────
    application_name     : Written to every audit record; filters audit lookups
    audit_backend        : memory | sqlite
    database_path        : SQLite file used by the sqlite backend
    log_level            : Structlog log level
    log_json             : JSON logs (None = auto-detect from tty)
    batch_size_tolerance : Allowed fractional drift of batch sizes (0.1 = 10%)
    """

    model_config = SettingsConfigDict(
        env_prefix="AUDIT_SPINE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Identity ─────────────────────────────────────────────────
    application_name: str = Field(default="audit-spine", min_length=1)

    # ── Storage ──────────────────────────────────────────────────
    audit_backend: AuditBackend = Field(default=AuditBackend.MEMORY)
    database_path: Path = Field(
        default=Path("data/audit_spine.db"),
        description="SQLite audit database (sqlite backend only)",
    )

    # ── Observability ────────────────────────────────────────────
    log_level: str = "INFO"
    log_json: bool | None = None

    # ── Batch validation ─────────────────────────────────────────
    batch_size_tolerance: Decimal = Field(default=Decimal("0.1"), ge=0)

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level


@lru_cache(maxsize=1)
def get_settings() -> AuditSpineSettings:
    """Return the cached process settings."""
    return AuditSpineSettings()


def clear_settings_cache() -> None:
    """Drop the cached settings (tests, env changes)."""
    get_settings.cache_clear()


__all__ = [
    "AuditBackend",
    "AuditSpineSettings",
    "get_settings",
    "clear_settings_cache",
]
