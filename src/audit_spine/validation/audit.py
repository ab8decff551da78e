"""
Audit trail: records and stores.

Every validation decision produces exactly one :class:`AuditRecord`. The
record is immutable; stores are append-only in spirit. Only the most recent
record (by ``timestamp``) for an ``(entity_type, entity_id)`` key is consulted
by future comparisons, older ones are history.

Manifesto:
    Validation compares "now" against "last time". Without a durable
    last-time the engine has nothing to compare against, so the audit
    store is the single piece of mutable shared state in the system:

    - **Append-only:** Records are never mutated after creation
    - **Latest wins:** ``get_last`` returns the newest record by timestamp
    - **Batch-safe:** Batch audits live under a reserved entity id
    - **Backend-agnostic:** In-memory (tests) or SQLite (durable)

Architecture:
    ::

        ┌──────────────────────────────────────────────────────────┐
        │                   AuditStore (Protocol)                   │
        │  get_last(type, id, app?)  add(record)                    │
        │  get_last_batch(type, app?)  add_batch(record)            │
        └──────────────────────────────────────────────────────────┘
                  │                               │
        ┌─────────────────────┐       ┌──────────────────────────┐
        │ InMemoryAuditStore  │       │ SqliteAuditStore         │
        │ dict[key, [records]]│       │ core_save_audits table   │
        └─────────────────────┘       └──────────────────────────┘

    Same-key concurrent writers are not serialized; "newest timestamp
    wins" is the only ordering guarantee.

Examples:
    >>> store = InMemoryAuditStore()
    >>> await store.add(AuditRecord("Order", "A-1", Decimal("10")))
    >>> (await store.get_last("Order", "A-1")).metric_value
    Decimal('10')

Tags:
    audit-trail, storage, append-only, sqlite, audit-spine
"""

from __future__ import annotations

import asyncio
import sqlite3
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from decimal import Decimal
from typing import Protocol, TypeVar, runtime_checkable

from audit_spine.core.errors import AuditStoreError, InvalidArgumentError
from audit_spine.core.logging import get_logger
from audit_spine.core.protocols import Connection
from audit_spine.core.schema import CORE_TABLES, create_core_tables
from audit_spine.core.settings import AuditBackend, AuditSpineSettings
from audit_spine.core.timestamps import from_iso8601, utc_now

logger = get_logger(__name__)

T = TypeVar("T")

# Reserved entity id for batch-level audits. Identity resolution never
# produces it for a real entity.
BATCH_ENTITY_ID = "__batch__"


# ---------------------------------------------------------------------------
# Value object
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class AuditRecord:
    """One validation decision.

    Attributes:
        entity_type: Logical type name (the entity class name).
        entity_id: Resolved identity, or ``BATCH_ENTITY_ID`` for batch audits.
        metric_value: Summarised metric at save time.
        application_name: Logical application that wrote the record.
        batch_size: Items in the producing batch (1 for single saves).
        validated: Outcome recorded at write time.
        timestamp: UTC instant of the decision.
    """

    entity_type: str
    entity_id: str
    metric_value: Decimal
    application_name: str = ""
    batch_size: int = 1
    validated: bool = False
    timestamp: datetime = field(default_factory=utc_now)


def _utc(ts: datetime) -> datetime:
    return ts.replace(tzinfo=UTC) if ts.tzinfo is None else ts.astimezone(UTC)


# ---------------------------------------------------------------------------
# Store protocol
# ---------------------------------------------------------------------------


@runtime_checkable
class AuditStore(Protocol):
    """Keyed storage of the most recent audit record per entity."""

    async def get_last(
        self, entity_type: str, entity_id: str, application_name: str | None = None
    ) -> AuditRecord | None:
        """Most recent record for the key (optionally for one application)."""
        ...

    async def add(self, record: AuditRecord) -> None:
        """Persist a new record."""
        ...

    async def add_batch(self, record: AuditRecord) -> None:
        """Persist a batch-level record under the reserved batch key."""
        ...

    async def get_last_batch(
        self, entity_type: str, application_name: str | None = None
    ) -> AuditRecord | None:
        """Most recent batch-level record for the entity type."""
        ...


class _BatchKeyMixin:
    """Batch audits are ordinary audits stored under ``BATCH_ENTITY_ID``."""

    async def add_batch(self, record: AuditRecord) -> None:
        if record is None:
            raise InvalidArgumentError("record must not be None", param="record")
        await self.add(replace(record, entity_id=BATCH_ENTITY_ID))

    async def get_last_batch(
        self, entity_type: str, application_name: str | None = None
    ) -> AuditRecord | None:
        return await self.get_last(entity_type, BATCH_ENTITY_ID, application_name)


# ---------------------------------------------------------------------------
# In-memory backend
# ---------------------------------------------------------------------------


class InMemoryAuditStore(_BatchKeyMixin):
    """Append-only in-memory audit store.

    Keeps full history per key; ``get_last`` picks the newest timestamp,
    and among equal timestamps the record added last.
    """

    def __init__(self) -> None:
        self._mem: dict[tuple[str, str], list[AuditRecord]] = {}

    async def get_last(
        self, entity_type: str, entity_id: str, application_name: str | None = None
    ) -> AuditRecord | None:
        latest: AuditRecord | None = None
        for record in reversed(self._mem.get((entity_type, entity_id), ())):
            if application_name is not None and record.application_name != application_name:
                continue
            if latest is None or _utc(record.timestamp) > _utc(latest.timestamp):
                latest = record
        return latest

    async def add(self, record: AuditRecord) -> None:
        if record is None:
            raise InvalidArgumentError("record must not be None", param="record")
        self._mem.setdefault((record.entity_type, record.entity_id), []).append(record)

    def history(self, entity_type: str, entity_id: str) -> list[AuditRecord]:
        """All records for a key in insertion order."""
        return list(self._mem.get((entity_type, entity_id), ()))

    def records(self) -> list[AuditRecord]:
        """Every stored record across all keys."""
        return [r for records in self._mem.values() for r in records]

    def __len__(self) -> int:
        return sum(len(records) for records in self._mem.values())


# ---------------------------------------------------------------------------
# SQLite backend
# ---------------------------------------------------------------------------


class SqliteAuditStore(_BatchKeyMixin):
    """Append-only audit store on the ``core_save_audits`` table.

    Statements run on a single worker thread so the event loop never blocks
    on disk I/O and the connection is never used by two threads at once.
    A ``sqlite3.Connection`` must therefore be opened with
    ``check_same_thread=False``.

    Args:
        conn: Any object exposing ``.execute()`` and ``.commit()``
            (``sqlite3.Connection`` natively).
        create_schema: Create the table on construction.
        owns_connection: Close *conn* in :meth:`close`.
    """

    def __init__(
        self,
        conn: Connection,
        *,
        create_schema: bool = True,
        owns_connection: bool = False,
    ) -> None:
        if conn is None:
            raise InvalidArgumentError("conn must not be None", param="conn")
        self._conn = conn
        self._table = CORE_TABLES["save_audits"]
        self._owns_connection = owns_connection
        self._pool = ThreadPoolExecutor(max_workers=1, thread_name_prefix="audit-sqlite")
        if create_schema:
            create_core_tables(conn)

    async def _run(self, fn: Callable[[], T]) -> T:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._pool, fn)

    async def get_last(
        self, entity_type: str, entity_id: str, application_name: str | None = None
    ) -> AuditRecord | None:
        sql = (
            "SELECT entity_type, entity_id, application_name, metric_value, "
            f"batch_size, validated, timestamp FROM {self._table} "
            "WHERE entity_type = ? AND entity_id = ?"
        )
        params: tuple = (entity_type, entity_id)
        if application_name is not None:
            sql += " AND application_name = ?"
            params += (application_name,)
        sql += " ORDER BY timestamp DESC, id DESC LIMIT 1"

        try:
            row = await self._run(lambda: self._conn.execute(sql, params).fetchone())
        except sqlite3.Error as e:
            raise AuditStoreError(
                f"Failed to read last audit: {e}", cause=e
            ).with_context(entity_type=entity_type, entity_id=entity_id) from e

        if row is None:
            return None
        return AuditRecord(
            entity_type=row[0],
            entity_id=row[1],
            application_name=row[2],
            metric_value=Decimal(row[3]),
            batch_size=row[4],
            validated=bool(row[5]),
            timestamp=from_iso8601(row[6]),
        )

    async def add(self, record: AuditRecord) -> None:
        if record is None:
            raise InvalidArgumentError("record must not be None", param="record")
        params = (
            record.entity_type,
            record.entity_id,
            record.application_name,
            str(record.metric_value),
            record.batch_size,
            int(record.validated),
            _utc(record.timestamp).isoformat(timespec="microseconds"),
        )

        def insert() -> None:
            self._conn.execute(
                f"INSERT INTO {self._table} "
                "(entity_type, entity_id, application_name, metric_value, "
                "batch_size, validated, timestamp) VALUES (?, ?, ?, ?, ?, ?, ?)",
                params,
            )
            self._conn.commit()

        try:
            await self._run(insert)
        except sqlite3.Error as e:
            raise AuditStoreError(
                f"Failed to write audit: {e}", cause=e
            ).with_context(entity_type=record.entity_type, entity_id=record.entity_id) from e

    def close(self) -> None:
        """Stop the worker thread; close the connection if this store owns it."""
        self._pool.shutdown(wait=True)
        if self._owns_connection:
            close = getattr(self._conn, "close", None)
            if close is not None:
                close()

    async def __aenter__(self) -> SqliteAuditStore:
        return self

    async def __aexit__(self, *args) -> None:
        self.close()


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


def create_audit_store(
    settings: AuditSpineSettings | None = None,
    conn: Connection | None = None,
) -> AuditStore:
    """Build the audit store selected by *settings*.

    An explicit *conn* always selects the SQLite backend and stays owned by
    the caller. A connection opened here from ``database_path`` is owned by
    the returned store and closed by :meth:`SqliteAuditStore.close`.
    """
    settings = settings or AuditSpineSettings()
    if conn is None and settings.audit_backend is AuditBackend.MEMORY:
        logger.debug("audit_store_created", backend="memory")
        return InMemoryAuditStore()

    owns_connection = conn is None
    if conn is None:
        settings.database_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(settings.database_path, check_same_thread=False)
    logger.debug("audit_store_created", backend="sqlite", owns_connection=owns_connection)
    return SqliteAuditStore(conn, owns_connection=owns_connection)


__all__ = [
    "BATCH_ENTITY_ID",
    "AuditRecord",
    "AuditStore",
    "InMemoryAuditStore",
    "SqliteAuditStore",
    "create_audit_store",
]
