"""
Audit-trail schema.

The persisted audit-record layout is the only structured data audit-spine
exposes outside the process. The table is append-only: every validation
decision inserts one row and nothing is updated in place. "Last audit for a
key" is answered by ordering on ``timestamp``.

Tables:
    - **core_save_audits:** One row per validation decision

Batch-level audits share the table and use the reserved entity id
``__batch__`` so they never collide with per-entity rows.

Examples:
    >>> from audit_spine.core.schema import CORE_TABLES, create_core_tables
    >>> CORE_TABLES["save_audits"]
    'core_save_audits'
    >>> create_core_tables(conn)
"""

from .protocols import Connection

# =============================================================================
# TABLE NAMES
# =============================================================================

CORE_TABLES = {
    "save_audits": "core_save_audits",
}


# =============================================================================
# DDL STATEMENTS
# =============================================================================

CORE_DDL = {
    # metric_value is TEXT so Decimal values round-trip exactly.
    "save_audits": """
        CREATE TABLE IF NOT EXISTS core_save_audits (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            entity_type TEXT NOT NULL,
            entity_id TEXT NOT NULL,
            application_name TEXT NOT NULL DEFAULT '',
            metric_value TEXT NOT NULL,
            batch_size INTEGER NOT NULL DEFAULT 1,
            validated INTEGER NOT NULL,
            timestamp TEXT NOT NULL
        )
    """,
    "save_audits_idx_key": """
        CREATE INDEX IF NOT EXISTS idx_save_audits_key
        ON core_save_audits(entity_type, entity_id, timestamp)
    """,
}


def create_core_tables(conn: Connection) -> None:
    """
    Create the audit tables.

    Safe to call multiple times (CREATE IF NOT EXISTS).
    """
    for _name, ddl in CORE_DDL.items():
        conn.execute(ddl)
    conn.commit()
