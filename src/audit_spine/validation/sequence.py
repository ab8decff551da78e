"""
Sequence validation.

Two independent capabilities:

**In-memory ordered sequences.** Walk items once, keeping full history. Each
item is compared with the nearest *earlier* item whose discriminator key
differs from its own; if there is none the item passes. The walk stops at
the first failure.

::

    key:    A    A    B    B    A
    value:  10   11   12   30   31
                      │    │    │
                      ▼    ▼    ▼
    compared with:   11   11   30      (nearest prior with a different key)

**Audit-backed collections.** Resolve each entity's identity, fetch its last
audit record (optionally for one application) and compare. Entities without
history pass. Every entity is checked; the result is the AND.

Examples:
    >>> validate_sequence(readings, lambda r: r.sensor, lambda r: r.value,
    ...                   lambda cur, prev: abs(cur - prev) <= 5)
    True

    >>> await validate_with_plan(orders, resolver, store, plan, lambda o: o.amount)
    False

Tags:
    sequence, history, audit-backed, validation, audit-spine
"""

from __future__ import annotations

import asyncio
import operator
from collections.abc import Callable, Iterable
from decimal import Decimal
from typing import Any, Generic, TypeVar

from audit_spine.core.errors import InvalidArgumentError, require
from audit_spine.core.logging import get_logger
from audit_spine.validation.audit import AuditRecord, AuditStore
from audit_spine.validation.identity import EntityIdentityResolver
from audit_spine.validation.plans import SummarisationPlan, ValidationPlan
from audit_spine.validation.threshold import is_within_threshold, to_decimal

logger = get_logger(__name__)

T = TypeVar("T")
K = TypeVar("K")
V = TypeVar("V")

Comparison = Callable[[Any, Any], bool]


def raise_if_cancelled(cancel_event: asyncio.Event | None) -> None:
    """Raise :class:`asyncio.CancelledError` once *cancel_event* is set."""
    if cancel_event is not None and cancel_event.is_set():
        raise asyncio.CancelledError("validation cancelled")


# ---------------------------------------------------------------------------
# In-memory sequences
# ---------------------------------------------------------------------------


class SequenceValidator(Generic[T, K, V]):
    """Stateful validator fed one instance at a time.

    Args:
        key_selector: Discriminator key for an instance.
        value_selector: Value compared between instances.
        rule: ``rule(current_value, prior_value) -> bool``.
    """

    def __init__(
        self,
        key_selector: Callable[[T], K],
        value_selector: Callable[[T], V],
        rule: Callable[[V, V], bool],
    ) -> None:
        self._key_selector = require(key_selector, "key_selector")
        self._value_selector = require(value_selector, "value_selector")
        self._rule = require(rule, "rule")
        self._history: list[tuple[K, V]] = []

    def validate(self, instance: T) -> bool:
        """Check *instance* against the nearest prior instance with a different key."""
        require(instance, "instance")
        key = self._key_selector(instance)
        value = self._value_selector(instance)

        valid = True
        for prior_key, prior_value in reversed(self._history):
            if prior_key != key:
                valid = bool(self._rule(value, prior_value))
                break

        self._history.append((key, value))
        return valid

    def reset(self) -> None:
        """Clear history for reuse."""
        self._history.clear()

    def __len__(self) -> int:
        return len(self._history)


def validate_sequence(
    items: Iterable[T],
    key_selector: Callable[[T], K],
    value_selector: Callable[[T], V],
    comparison: Callable[[V, V], bool] = operator.eq,
) -> bool:
    """Validate an ordered sequence; equality is the default comparison."""
    require(items, "items")
    validator = SequenceValidator(key_selector, value_selector, require(comparison, "comparison"))
    return all(validator.validate(item) for item in items)


def validate_sequence_with_plan(
    items: Iterable[T],
    key_selector: Callable[[T], K],
    plan: SummarisationPlan[T],
) -> bool:
    """Validate a sequence using a plan's metric and (strict) threshold policy."""
    require(plan, "plan")

    def within(current: Decimal, prior: Decimal) -> bool:
        return is_within_threshold(current, prior, plan.threshold_type, plan.threshold_value)

    return validate_sequence(items, key_selector, plan.metric, within)


# ---------------------------------------------------------------------------
# Audit-backed collections
# ---------------------------------------------------------------------------


async def validate_against_audits(
    entities: Iterable[T],
    identity_resolver: EntityIdentityResolver,
    audit_store: AuditStore,
    value_selector: Callable[[T], V],
    audit_value_selector: Callable[[AuditRecord], V],
    comparison: Comparison,
    *,
    application_name: str | None = None,
    cancel_event: asyncio.Event | None = None,
) -> bool:
    """Compare each entity with its last audit record.

    Args:
        entities: Entities to check.
        identity_resolver: Resolves the audit key for an entity.
        audit_store: Source of last audit records.
        value_selector: Value taken from the entity.
        audit_value_selector: Value taken from the audit record.
        comparison: ``comparison(entity_value, audit_value) -> bool``.
        application_name: Only consider audits written by this application.
        cancel_event: Cooperative cancellation, checked before each lookup.

    Returns:
        True when every entity passes (entities with no audit pass).
    """
    require(entities, "entities")
    require(identity_resolver, "identity_resolver")
    require(audit_store, "audit_store")
    require(value_selector, "value_selector")
    require(audit_value_selector, "audit_value_selector")
    require(comparison, "comparison")

    all_valid = True
    for entity in entities:
        raise_if_cancelled(cancel_event)
        entity_type = type(entity).__name__
        entity_id = identity_resolver.resolve(entity)
        last = await audit_store.get_last(entity_type, entity_id, application_name)
        if last is None:
            continue
        if not comparison(value_selector(entity), audit_value_selector(last)):
            logger.debug(
                "sequence_entity_rejected",
                entity_type=entity_type,
                entity_id=entity_id,
                audit_metric=str(last.metric_value),
            )
            all_valid = False
    return all_valid


async def validate_with_plan(
    entities: Iterable[T],
    identity_resolver: EntityIdentityResolver,
    audit_store: AuditStore,
    plan: ValidationPlan,
    value_selector: Callable[[T], Any],
    *,
    application_name: str | None = None,
    cancel_event: asyncio.Event | None = None,
) -> bool:
    """Audit-backed validation with ``|value - audit.metric_value| <= plan.threshold``."""
    require(plan, "plan")
    if value_selector is None:
        raise InvalidArgumentError("value_selector must not be None", param="value_selector")
    threshold = to_decimal(plan.threshold, "threshold")

    def within(new_value: Any, audit_value: Decimal) -> bool:
        return abs(to_decimal(new_value, "value") - audit_value) <= threshold

    return await validate_against_audits(
        entities,
        identity_resolver,
        audit_store,
        value_selector,
        lambda audit: audit.metric_value,
        within,
        application_name=application_name,
        cancel_event=cancel_event,
    )


__all__ = [
    "raise_if_cancelled",
    "SequenceValidator",
    "validate_sequence",
    "validate_sequence_with_plan",
    "validate_against_audits",
    "validate_with_plan",
]
