"""Tests for audit_spine.validation.rules."""

from decimal import Decimal

import pytest
from structlog.testing import capture_logs

from audit_spine.core.errors import InvalidArgumentError
from audit_spine.validation.rules import ManualRuleRegistry
from conftest import Order, Reading


def has_code(order):
    return bool(order.Code.strip())


class TestManualRuleRegistry:
    def test_no_rules_passes(self):
        assert ManualRuleRegistry().validate(Order("", Decimal(-1)))

    def test_all_rules_must_pass(self):
        rules = ManualRuleRegistry().add_rule(Order, has_code).add_rule(Order, lambda o: o.amount >= 0)
        assert rules.validate(Order("A-1", Decimal(1)))
        assert not rules.validate(Order("A-1", Decimal(-1)))
        assert not rules.validate(Order(" ", Decimal(1)))

    def test_registration_is_additive(self):
        rules = ManualRuleRegistry()
        rules.add_rule(Order, has_code)
        rules.add_rule(Order, has_code)
        assert len(rules.rules_for(Order)) == 2

    def test_rules_are_per_type(self):
        rules = ManualRuleRegistry().add_rule(Order, lambda o: False)
        assert rules.validate(Reading("a", 1))

    def test_stops_at_first_failure(self):
        calls = []
        rules = (
            ManualRuleRegistry()
            .add_rule(Order, lambda o: calls.append("first") or False)
            .add_rule(Order, lambda o: calls.append("second") or True)
        )
        assert not rules.validate(Order("A-1", Decimal(1)))
        assert calls == ["first"]

    def test_failure_is_logged(self):
        rules = ManualRuleRegistry().add_rule(Order, has_code)
        with capture_logs() as logs:
            rules.validate(Order("", Decimal(1)))
        assert logs[0]["event"] == "manual_rule_failed"
        assert logs[0]["rule"] == "has_code"
        assert logs[0]["rule_index"] == 0

    def test_null_arguments(self):
        rules = ManualRuleRegistry()
        with pytest.raises(InvalidArgumentError):
            rules.add_rule(None, has_code)
        with pytest.raises(InvalidArgumentError):
            rules.add_rule(Order, None)
        with pytest.raises(InvalidArgumentError):
            rules.validate(None)
