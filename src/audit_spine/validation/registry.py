"""
Per-process validation configuration.

A :class:`ValidationRegistry` is built once at startup and handed to the
:class:`~audit_spine.validation.runner.ValidationRunner`. It replaces
module-level dictionaries keyed by type: two runners with two registries
never see each other's plans or rules.

Examples:
    >>> registry = (
    ...     ValidationRegistry()
    ...     .add_summarisation_plan(Order, SummarisationPlan(lambda o: o.amount, "RawDifference", 5))
    ...     .add_validation_plan(ValidationPlan(Order, threshold=50))
    ...     .add_rule(Order, lambda o: o.amount >= 0)
    ...     .with_identity(FieldIdentityResolver(["Code"]))
    ... )
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TypeVar

from audit_spine.validation.identity import EntityIdentityResolver
from audit_spine.validation.plans import (
    SummarisationPlan,
    SummarisationPlanStore,
    ValidationPlan,
    ValidationPlanStore,
)
from audit_spine.validation.rules import ManualRuleRegistry

T = TypeVar("T")


class ValidationRegistry:
    """Plans, rules and identity resolution for one process."""

    def __init__(
        self,
        summarisation_plans: SummarisationPlanStore | None = None,
        validation_plans: ValidationPlanStore | None = None,
        rules: ManualRuleRegistry | None = None,
        identity_resolver: EntityIdentityResolver | None = None,
    ) -> None:
        self.summarisation_plans = summarisation_plans or SummarisationPlanStore()
        self.validation_plans = validation_plans or ValidationPlanStore()
        self.rules = rules or ManualRuleRegistry()
        self.identity_resolver = identity_resolver

    def add_summarisation_plan(self, cls: type[T], plan: SummarisationPlan[T]) -> ValidationRegistry:
        self.summarisation_plans.add_plan(cls, plan)
        return self

    def add_validation_plan(self, plan: ValidationPlan) -> ValidationRegistry:
        self.validation_plans.add_plan(plan)
        return self

    def add_rule(self, cls: type[T], predicate: Callable[[T], bool]) -> ValidationRegistry:
        self.rules.add_rule(cls, predicate)
        return self

    def with_identity(self, resolver: EntityIdentityResolver) -> ValidationRegistry:
        self.identity_resolver = resolver
        return self


__all__ = ["ValidationRegistry"]
