"""
Per-entity-type validation plans and their stores.

Two kinds of plan are configured once at process start and read-only
afterwards:

- :class:`SummarisationPlan`: how to extract a numeric metric from an
  entity and which threshold policy its change must respect between saves.
- :class:`ValidationPlan`: the absolute-difference bound used by audit-backed
  sequence validation.

Each store holds one plan per entity class; registering again replaces the
previous plan (last registration wins).

Examples:
    >>> plans = SummarisationPlanStore()
    >>> plans.add_plan(Order, SummarisationPlan(lambda o: o.amount, ThresholdType.RAW_DIFFERENCE, 5))
    >>> plans.get_plan(Order).threshold_value
    Decimal('5')

Tags:
    plan, configuration, threshold, audit-spine
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, Generic, TypeVar

from audit_spine.core.errors import InvalidArgumentError, UnregisteredError
from audit_spine.core.logging import get_logger
from audit_spine.validation.threshold import ThresholdType, coerce_threshold_type, to_decimal

logger = get_logger(__name__)

T = TypeVar("T")


class ValidationStrategy(str, Enum):
    """How a sequence metric is aggregated. Informational."""

    COUNT = "Count"
    SUM = "Sum"
    AVERAGE = "Average"
    VARIANCE = "Variance"


@dataclass(frozen=True)
class SummarisationPlan(Generic[T]):
    """Metric extraction plus threshold policy for one entity type.

    Attributes:
        metric_selector: Pure function entity -> numeric metric.
        threshold_type: RAW_DIFFERENCE or PERCENT_CHANGE. Unknown kinds are
            kept as given; the plan-driven comparator treats them as "no
            constraint".
        threshold_value: Allowed change (a percentage for PERCENT_CHANGE).
    """

    metric_selector: Callable[[T], Any]
    threshold_type: ThresholdType | str
    threshold_value: Decimal

    def __post_init__(self) -> None:
        if self.metric_selector is None:
            raise InvalidArgumentError("metric_selector must not be None", param="metric_selector")
        threshold = to_decimal(self.threshold_value, "threshold_value")
        # Unknown kinds are left to the lenient comparator.
        if coerce_threshold_type(self.threshold_type) is not None and threshold < 0:
            raise InvalidArgumentError(
                f"threshold_value must be non-negative, got {threshold}", param="threshold_value"
            )
        object.__setattr__(self, "threshold_value", threshold)

    def metric(self, entity: T) -> Decimal:
        """Apply the metric selector, as a Decimal."""
        return to_decimal(self.metric_selector(entity), "metric")


@dataclass(frozen=True)
class ValidationPlan:
    """Sequence-validation bound for one entity type.

    Attributes:
        entity_type: The entity class the plan applies to.
        threshold: Maximum allowed absolute difference from the last audit.
        strategy: Aggregation strategy (informational).
    """

    entity_type: type
    threshold: float = 0.0
    strategy: ValidationStrategy = ValidationStrategy.COUNT

    def __post_init__(self) -> None:
        if self.entity_type is None:
            raise InvalidArgumentError("entity_type must not be None", param="entity_type")
        if to_decimal(self.threshold, "threshold") < 0:
            raise InvalidArgumentError(
                f"threshold must be non-negative, got {self.threshold}", param="threshold"
            )


class SummarisationPlanStore:
    """One :class:`SummarisationPlan` per entity class."""

    def __init__(self) -> None:
        self._plans: dict[type, SummarisationPlan[Any]] = {}

    def add_plan(self, cls: type[T], plan: SummarisationPlan[T]) -> None:
        if cls is None:
            raise InvalidArgumentError("cls must not be None", param="cls")
        if plan is None:
            raise InvalidArgumentError("plan must not be None", param="plan")
        self._plans[cls] = plan
        logger.debug(
            "plan_registered",
            kind="summarisation",
            entity_type=cls.__name__,
            threshold_type=str(getattr(plan.threshold_type, "value", plan.threshold_type)),
        )

    def get_plan(self, cls: type[T]) -> SummarisationPlan[T] | None:
        return self._plans.get(cls)

    def require_plan(self, cls: type[T]) -> SummarisationPlan[T]:
        plan = self._plans.get(cls)
        if plan is None:
            raise UnregisteredError(
                cls.__name__, f"No SummarisationPlan registered for type {cls.__name__}"
            )
        return plan

    def has_plan(self, cls: type) -> bool:
        return cls in self._plans


class ValidationPlanStore:
    """One :class:`ValidationPlan` per entity class."""

    def __init__(self) -> None:
        self._plans: dict[type, ValidationPlan] = {}

    def add_plan(self, plan: ValidationPlan) -> None:
        if plan is None:
            raise InvalidArgumentError("plan must not be None", param="plan")
        self._plans[plan.entity_type] = plan
        logger.debug(
            "plan_registered",
            kind="validation",
            entity_type=plan.entity_type.__name__,
            threshold=plan.threshold,
        )

    def get_plan(self, cls: type) -> ValidationPlan | None:
        return self._plans.get(cls)

    def has_plan(self, cls: type) -> bool:
        return cls in self._plans

    def remove_plan(self, cls: type) -> None:
        self._plans.pop(cls, None)

    def clear(self) -> None:
        self._plans.clear()


__all__ = [
    "ValidationStrategy",
    "SummarisationPlan",
    "ValidationPlan",
    "SummarisationPlanStore",
    "ValidationPlanStore",
]
