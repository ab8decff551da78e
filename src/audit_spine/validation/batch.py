"""
Batch-size validation.

Guards bulk saves against a batch that is suspiciously larger or smaller
than the previous accepted batch of the same entity type. The previous size
comes from the batch-level audit (reserved ``__batch__`` key); an accepted
batch records a new batch audit, a rejected one records nothing.

::

    previous = get_last_batch("Order")
    valid = previous is None
         or previous.batch_size == 0
         or |size - previous.batch_size| <= previous.batch_size * tolerance
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from audit_spine.core.errors import InvalidArgumentError, require
from audit_spine.core.logging import get_logger
from audit_spine.core.settings import AuditSpineSettings, get_settings
from audit_spine.core.timestamps import utc_now
from audit_spine.validation.audit import BATCH_ENTITY_ID, AuditRecord, AuditStore
from audit_spine.validation.threshold import to_decimal

logger = get_logger(__name__)


class BatchSizeValidator:
    """Compares batch sizes with the last accepted batch of the same type.

    Args:
        audit_store: Store holding batch-level audits.
        tolerance: Allowed fractional drift (0.1 = 10%).
        application_name: Written to batch audits and used to filter lookups.
    """

    def __init__(
        self,
        audit_store: AuditStore,
        tolerance: Any = Decimal("0.1"),
        application_name: str = "",
    ) -> None:
        self.audit_store = require(audit_store, "audit_store")
        self.tolerance = to_decimal(tolerance, "tolerance")
        if self.tolerance < 0:
            raise InvalidArgumentError(
                f"tolerance must be non-negative, got {self.tolerance}", param="tolerance"
            )
        self.application_name = application_name

    @classmethod
    def from_settings(
        cls, audit_store: AuditStore, settings: AuditSpineSettings | None = None
    ) -> BatchSizeValidator:
        """Tolerance and application name taken from settings."""
        settings = settings or get_settings()
        return cls(audit_store, settings.batch_size_tolerance, settings.application_name)

    async def validate_and_audit(self, cls: type, batch_size: int) -> bool:
        if cls is None:
            raise InvalidArgumentError("cls must not be None", param="cls")
        if batch_size is None or batch_size < 0:
            raise InvalidArgumentError(
                f"batch_size must be non-negative, got {batch_size}", param="batch_size"
            )

        entity_type = cls.__name__
        previous = await self.audit_store.get_last_batch(entity_type, self.application_name or None)
        valid = (
            previous is None
            or previous.batch_size == 0
            or abs(batch_size - previous.batch_size) <= previous.batch_size * self.tolerance
        )
        logger.info(
            "batch_size_validated",
            entity_type=entity_type,
            batch_size=batch_size,
            previous_batch_size=previous.batch_size if previous else None,
            valid=valid,
        )
        if valid:
            await self.audit_store.add_batch(
                AuditRecord(
                    entity_type=entity_type,
                    entity_id=BATCH_ENTITY_ID,
                    metric_value=Decimal(0),
                    application_name=self.application_name,
                    batch_size=batch_size,
                    validated=True,
                    timestamp=utc_now(),
                )
            )
        return valid


__all__ = ["BatchSizeValidator"]
