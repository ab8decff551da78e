"""
Plan-driven summarisation comparison.

Compares an entity's metric with the metric recorded in its last audit,
using the entity type's :class:`~audit_spine.validation.plans.SummarisationPlan`.

Unlike :func:`~audit_spine.validation.threshold.is_within_threshold`, this
comparator is lenient about configuration: an unknown threshold kind on the
plan means "no constraint configured" and passes. Input errors (negative
threshold, non-numeric metric) still raise.
"""

from __future__ import annotations

from typing import Any

from audit_spine.core.errors import require
from audit_spine.validation.audit import AuditRecord
from audit_spine.validation.plans import SummarisationPlan
from audit_spine.validation.threshold import coerce_threshold_type, is_within_threshold


class SummarisationComparator:
    """Validates an entity against its previous audit record."""

    def validate(
        self,
        entity: Any,
        previous: AuditRecord | None,
        plan: SummarisationPlan[Any],
    ) -> bool:
        require(plan, "plan")
        require(entity, "entity")

        current = plan.metric(entity)

        # First save for this identity: nothing to compare against.
        if previous is None:
            return True

        threshold_type = coerce_threshold_type(plan.threshold_type)
        if threshold_type is None:
            return True

        return is_within_threshold(
            current,
            previous.metric_value,
            threshold_type,
            plan.threshold_value,
            already_validated=False,
        )


__all__ = ["SummarisationComparator"]
