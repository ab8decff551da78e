"""
Validation runner: the save gate.

Upstream repository / unit-of-work code asks "is this save valid?" and gets
a boolean back. Whether to persist is the caller's decision; the runner only
decides and records the decision in the audit trail.

Architecture:
    ::

        validate(entity)
          │
          ├─ 1. manual rules        all predicates for type(entity)
          │                         (failure skips step 2)
          ├─ 2. sequence            only with a ValidationPlan; fail-open
          │                         |metric - last audit| <= plan.threshold
          └─ 3. summarisation       always runs; compares with last audit
                                    and appends a new AuditRecord
          result = 1 and 2 and 3

        validate_many(entities)
          ├─ manual rules per entity  → first failure: False, no audit writes
          ├─ one sequence pass per entity type over the whole batch
          │                           → failure: False, no audit writes
          └─ summarisation per entity (every entity, one audit each)

Guardrails:
    ❌ DON'T: Treat a False result as an exception
    ✅ DO: Use the boolean to decide whether to persist

    ❌ DON'T: Assume concurrent validations of the same identity serialize
    ✅ DO: Layer a per-identity lock outside the runner if you need one

Concurrency:
    No engine-owned locks. Suspension points are the audit store calls.
    Once an audit write is issued it is shielded from task cancellation.

Tags:
    runner, orchestration, save-gate, audit-trail, audit-spine
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable
from typing import Any

from audit_spine.core.errors import require
from audit_spine.core.logging import LogContext, get_logger
from audit_spine.core.protocols import Connection
from audit_spine.core.settings import AuditSpineSettings, get_settings
from audit_spine.core.timestamps import utc_now
from audit_spine.validation.audit import AuditRecord, AuditStore, create_audit_store
from audit_spine.validation.identity import EntityIdentityResolver, FieldIdentityResolver
from audit_spine.validation.registry import ValidationRegistry
from audit_spine.validation.sequence import raise_if_cancelled, validate_with_plan
from audit_spine.validation.summarisation import SummarisationComparator

logger = get_logger(__name__)


class ValidationRunner:
    """Runs manual, sequence and summarisation validation for entities.

    Args:
        audit_store: Where decisions are recorded and looked up.
        registry: Plans, rules and identity resolution for this process.
        application_name: Written to every audit record; filters sequence lookups.
    """

    def __init__(
        self,
        audit_store: AuditStore,
        registry: ValidationRegistry | None = None,
        application_name: str = "audit-spine",
    ) -> None:
        self.audit_store = require(audit_store, "audit_store")
        self.registry = registry or ValidationRegistry()
        self.application_name = application_name
        self.comparator = SummarisationComparator()

    @classmethod
    def from_settings(
        cls,
        registry: ValidationRegistry | None = None,
        settings: AuditSpineSettings | None = None,
        conn: Connection | None = None,
    ) -> ValidationRunner:
        """Build a runner whose store and application name come from settings."""
        settings = settings or get_settings()
        return cls(
            create_audit_store(settings, conn),
            registry,
            application_name=settings.application_name,
        )

    @property
    def identity(self) -> EntityIdentityResolver:
        if self.registry.identity_resolver is None:
            self.registry.identity_resolver = FieldIdentityResolver()
        return self.registry.identity_resolver

    # -- public API ----------------------------------------------------------

    async def validate(self, entity: Any, cancel_event: asyncio.Event | None = None) -> bool:
        """Validate one entity and record the decision."""
        require(entity, "entity")
        async with LogContext(entity_type=type(entity).__name__):
            manual_ok = self.registry.rules.validate(entity)
            sequence_ok = manual_ok and await self._sequence_step(
                type(entity), [entity], cancel_event
            )
            summary_ok = await self._summarise(entity, 1, cancel_event)
        return manual_ok and sequence_ok and summary_ok

    async def validate_many(
        self, entities: Iterable[Any], cancel_event: asyncio.Event | None = None
    ) -> bool:
        """Validate a batch; no audit is written unless the cheap checks pass."""
        batch = list(require(entities, "entities"))
        if not batch:
            return True

        for index, entity in enumerate(batch):
            raise_if_cancelled(cancel_event)
            if not self.registry.rules.validate(require(entity, "entity")):
                logger.info(
                    "batch_manual_validation_failed",
                    entity_type=type(entity).__name__,
                    index=index,
                    batch_size=len(batch),
                )
                return False

        by_type: dict[type, list[Any]] = {}
        for entity in batch:
            by_type.setdefault(type(entity), []).append(entity)
        for cls, group in by_type.items():
            if not await self._sequence_step(cls, group, cancel_event):
                return False

        results = [await self._summarise(entity, len(batch), cancel_event) for entity in batch]
        return all(results)

    async def summarise(self, entity: Any, cancel_event: asyncio.Event | None = None) -> bool:
        """Run only the summarisation step (compare + audit write)."""
        require(entity, "entity")
        return await self._summarise(entity, 1, cancel_event)

    # -- steps ---------------------------------------------------------------

    async def _sequence_step(
        self, cls: type, entities: list[Any], cancel_event: asyncio.Event | None
    ) -> bool:
        # Fail-open: missing configuration or a failing collaborator never
        # blocks a save. Cancellation is not an Exception and propagates.
        try:
            plan = self.registry.validation_plans.get_plan(cls)
            if plan is None:
                return True
            summary_plan = self.registry.summarisation_plans.get_plan(cls)
            if summary_plan is None:
                logger.debug(
                    "sequence_validation_skipped",
                    entity_type=cls.__name__,
                    reason="no_summarisation_plan",
                )
                return True
            valid = await validate_with_plan(
                entities,
                self.identity,
                self.audit_store,
                plan,
                summary_plan.metric,
                application_name=self.application_name,
                cancel_event=cancel_event,
            )
        except Exception as e:
            logger.warning(
                "sequence_validation_failed_open",
                entity_type=cls.__name__,
                error_type=type(e).__name__,
                error=str(e),
            )
            return True

        if not valid:
            logger.info("sequence_validation_failed", entity_type=cls.__name__, count=len(entities))
        return valid

    async def _summarise(
        self, entity: Any, batch_size: int, cancel_event: asyncio.Event | None
    ) -> bool:
        cls = type(entity)
        plan = self.registry.summarisation_plans.require_plan(cls)
        entity_id = self.identity.resolve(entity)

        raise_if_cancelled(cancel_event)
        previous = await self.audit_store.get_last(cls.__name__, entity_id)
        valid = self.comparator.validate(entity, previous, plan)
        logger.debug("summarisation_validated", entity_id=entity_id, valid=valid)

        record = AuditRecord(
            entity_type=cls.__name__,
            entity_id=entity_id,
            metric_value=plan.metric(entity),
            application_name=self.application_name,
            batch_size=batch_size,
            validated=valid,
            timestamp=utc_now(),
        )
        await asyncio.shield(self.audit_store.add(record))

        logger.info(
            "audit_recorded",
            entity_type=record.entity_type,
            entity_id=entity_id,
            metric_value=str(record.metric_value),
            previous_metric=str(previous.metric_value) if previous else None,
            batch_size=batch_size,
            validated=valid,
        )
        return valid


__all__ = ["ValidationRunner"]
