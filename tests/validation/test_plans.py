"""
Tests for audit_spine.validation.plans and audit_spine.validation.registry.

Tests cover:
- SummarisationPlan metric extraction and Decimal coercion
- ValidationPlan argument checks
- Plan stores: register, replace, lookup, require, remove
- ValidationRegistry fluent configuration and isolation
"""

from decimal import Decimal

import pytest

from audit_spine.core.errors import InvalidArgumentError, UnregisteredError
from audit_spine.validation.identity import FieldIdentityResolver
from audit_spine.validation.plans import (
    SummarisationPlan,
    SummarisationPlanStore,
    ValidationPlan,
    ValidationPlanStore,
    ValidationStrategy,
)
from audit_spine.validation.registry import ValidationRegistry
from audit_spine.validation.threshold import ThresholdType
from conftest import Order, Reading


# =============================================================================
# Plan value objects
# =============================================================================


class TestSummarisationPlan:
    def test_metric_is_decimal(self):
        plan = SummarisationPlan(lambda r: r.value, ThresholdType.RAW_DIFFERENCE, 1)
        assert plan.metric(Reading("s", 7)) == Decimal(7)
        assert plan.threshold_value == Decimal(1)

    def test_float_threshold_coerced_exactly(self):
        plan = SummarisationPlan(lambda r: r.value, ThresholdType.PERCENT_CHANGE, 0.1)
        assert plan.threshold_value == Decimal("0.1")

    def test_none_selector_rejected(self):
        with pytest.raises(InvalidArgumentError) as exc_info:
            SummarisationPlan(None, ThresholdType.RAW_DIFFERENCE, 1)
        assert exc_info.value.param == "metric_selector"

    @pytest.mark.parametrize("kind", [ThresholdType.RAW_DIFFERENCE, ThresholdType.PERCENT_CHANGE, "RawDifference"])
    def test_negative_threshold_rejected_for_known_kinds(self, kind):
        with pytest.raises(InvalidArgumentError) as exc_info:
            SummarisationPlan(lambda r: r.value, kind, -1)
        assert exc_info.value.param == "threshold_value"

    def test_negative_threshold_allowed_for_unknown_kind(self):
        assert SummarisationPlan(lambda r: r.value, "Ratio", -1).threshold_value == Decimal(-1)

    def test_non_finite_threshold_rejected(self):
        with pytest.raises(InvalidArgumentError):
            SummarisationPlan(lambda r: r.value, ThresholdType.RAW_DIFFERENCE, float("inf"))

    def test_unknown_kind_kept(self):
        plan = SummarisationPlan(lambda r: r.value, "Ratio", 1)
        assert plan.threshold_type == "Ratio"


class TestValidationPlan:
    def test_defaults(self):
        plan = ValidationPlan(Order)
        assert plan.threshold == 0.0
        assert plan.strategy is ValidationStrategy.COUNT

    def test_negative_threshold_rejected(self):
        with pytest.raises(InvalidArgumentError):
            ValidationPlan(Order, threshold=-1)

    @pytest.mark.parametrize("threshold", [float("nan"), float("inf"), None])
    def test_non_finite_threshold_rejected(self, threshold):
        with pytest.raises(InvalidArgumentError) as exc_info:
            ValidationPlan(Order, threshold=threshold)
        assert exc_info.value.param == "threshold"

    def test_none_type_rejected(self):
        with pytest.raises(InvalidArgumentError):
            ValidationPlan(None)

    def test_strategies(self):
        assert [s.value for s in ValidationStrategy] == ["Count", "Sum", "Average", "Variance"]


# =============================================================================
# Stores
# =============================================================================


class TestSummarisationPlanStore:
    def test_add_and_get(self, raw_plan):
        store = SummarisationPlanStore()
        store.add_plan(Order, raw_plan)
        assert store.get_plan(Order) is raw_plan
        assert store.has_plan(Order)
        assert store.get_plan(Reading) is None

    def test_last_registration_wins(self, raw_plan):
        store = SummarisationPlanStore()
        replacement = SummarisationPlan(lambda o: o.amount, ThresholdType.PERCENT_CHANGE, 1)
        store.add_plan(Order, raw_plan)
        store.add_plan(Order, replacement)
        assert store.require_plan(Order) is replacement

    def test_require_plan_raises_unregistered(self):
        with pytest.raises(UnregisteredError) as exc_info:
            SummarisationPlanStore().require_plan(Reading)
        assert exc_info.value.type_name == "Reading"

    def test_null_arguments(self, raw_plan):
        store = SummarisationPlanStore()
        with pytest.raises(InvalidArgumentError):
            store.add_plan(None, raw_plan)
        with pytest.raises(InvalidArgumentError):
            store.add_plan(Order, None)


class TestValidationPlanStore:
    def test_lifecycle(self):
        store = ValidationPlanStore()
        plan = ValidationPlan(Order, threshold=5)
        store.add_plan(plan)
        assert store.get_plan(Order) is plan
        assert store.has_plan(Order)
        store.remove_plan(Order)
        assert not store.has_plan(Order)
        store.remove_plan(Order)

    def test_clear(self):
        store = ValidationPlanStore()
        store.add_plan(ValidationPlan(Order))
        store.add_plan(ValidationPlan(Reading))
        store.clear()
        assert store.get_plan(Order) is None
        assert store.get_plan(Reading) is None

    def test_add_none_rejected(self):
        with pytest.raises(InvalidArgumentError):
            ValidationPlanStore().add_plan(None)


# =============================================================================
# Registry
# =============================================================================


class TestValidationRegistry:
    def test_fluent_configuration(self, raw_plan):
        resolver = FieldIdentityResolver(["Code"])
        registry = (
            ValidationRegistry()
            .add_summarisation_plan(Order, raw_plan)
            .add_validation_plan(ValidationPlan(Order, threshold=50))
            .add_rule(Order, lambda o: o.amount >= 0)
            .with_identity(resolver)
        )
        assert registry.summarisation_plans.get_plan(Order) is raw_plan
        assert registry.validation_plans.get_plan(Order).threshold == 50
        assert len(registry.rules.rules_for(Order)) == 1
        assert registry.identity_resolver is resolver

    def test_registries_are_isolated(self, raw_plan):
        first = ValidationRegistry().add_summarisation_plan(Order, raw_plan)
        second = ValidationRegistry()
        assert first.summarisation_plans.has_plan(Order)
        assert not second.summarisation_plans.has_plan(Order)

    def test_no_identity_by_default(self):
        assert ValidationRegistry().identity_resolver is None
