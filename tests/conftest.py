"""
Shared pytest fixtures for audit-spine tests.

This module provides:
- Small entity dataclasses used across the validation tests
- In-memory and SQLite audit stores
- A registry pre-loaded with an ``Order`` summarisation plan
- Settings cache isolation

Usage:
    Fixtures are auto-discovered by pytest; request them by argument name.

    async def test_something(memory_store, order_registry):
        runner = ValidationRunner(memory_store, order_registry)
"""

import sqlite3
from collections.abc import Generator
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from decimal import Decimal

import pytest
import structlog

from audit_spine.core.settings import clear_settings_cache
from audit_spine.validation.audit import AuditRecord, InMemoryAuditStore, SqliteAuditStore
from audit_spine.validation.plans import SummarisationPlan
from audit_spine.validation.registry import ValidationRegistry
from audit_spine.validation.threshold import ThresholdType


# =============================================================================
# Sample entities
# =============================================================================


@dataclass
class Order:
    Code: str
    amount: Decimal
    Name: str = ""


@dataclass
class Reading:
    sensor: str
    value: int


@dataclass
class Invoice:
    number: str
    total: Decimal


@dataclass
class Widget:
    Name: str | None = None
    Code: str | None = None
    Key: int | None = None


# =============================================================================
# Helpers
# =============================================================================

BASE_TIME = datetime(2026, 1, 1, 12, 0, tzinfo=UTC)


def make_audit(
    entity_id: str = "A-1",
    metric: str | int = "10",
    *,
    entity_type: str = "Order",
    application_name: str = "",
    batch_size: int = 1,
    validated: bool = True,
    minutes: int = 0,
) -> AuditRecord:
    """Build an AuditRecord at BASE_TIME + *minutes*."""
    return AuditRecord(
        entity_type=entity_type,
        entity_id=entity_id,
        metric_value=Decimal(metric),
        application_name=application_name,
        batch_size=batch_size,
        validated=validated,
        timestamp=BASE_TIME + timedelta(minutes=minutes),
    )


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def memory_store() -> InMemoryAuditStore:
    return InMemoryAuditStore()


@pytest.fixture
def sqlite_conn() -> Generator[sqlite3.Connection, None, None]:
    conn = sqlite3.connect(":memory:", check_same_thread=False)
    yield conn
    conn.close()


@pytest.fixture
def sqlite_store(sqlite_conn: sqlite3.Connection) -> Generator[SqliteAuditStore, None, None]:
    store = SqliteAuditStore(sqlite_conn)
    yield store
    store.close()


@pytest.fixture
def raw_plan() -> SummarisationPlan:
    """RawDifference plan allowing a change of 5 in ``amount``."""
    return SummarisationPlan(lambda o: o.amount, ThresholdType.RAW_DIFFERENCE, Decimal(5))


@pytest.fixture
def order_registry(raw_plan: SummarisationPlan) -> ValidationRegistry:
    return ValidationRegistry().add_summarisation_plan(Order, raw_plan)


@pytest.fixture(autouse=True)
def _isolate_settings(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Drop cached settings and AUDIT_SPINE_* env vars around each test."""
    import os

    for key in list(os.environ):
        if key.startswith("AUDIT_SPINE_"):
            monkeypatch.delenv(key, raising=False)
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture(autouse=True)
def _reset_structlog() -> Generator[None, None, None]:
    yield
    structlog.reset_defaults()
