"""
Structural protocols shared across audit-spine.

Stores depend on the *shape* of a database connection, not on a driver.
``sqlite3.Connection`` satisfies :class:`Connection` natively; any DB-API
style adapter with ``execute``/``commit`` works the same way.

Tags:
    protocol, connection, database, audit-spine
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class Connection(Protocol):
    """Minimal SYNCHRONOUS connection interface used by the SQL audit store."""

    def execute(self, sql: str, params: tuple = ()) -> Any:
        """Execute SQL statement with optional parameters. Returns a cursor."""
        ...

    def commit(self) -> None:
        """Commit current transaction."""
        ...


__all__ = ["Connection"]
