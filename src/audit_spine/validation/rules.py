"""
Manual predicate rules.

Rules are plain ``entity -> bool`` predicates registered against a concrete
entity class at setup time. Registration is additive: later rules for the
same class are appended, never replace earlier ones. An entity passes when
every rule for its exact class passes; a class with no rules always passes.

Examples:
    >>> rules = ManualRuleRegistry()
    >>> rules.add_rule(Order, lambda o: bool(o.name.strip()))
    >>> rules.validate(Order(name=""))
    False
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, TypeVar

from audit_spine.core.errors import InvalidArgumentError, require
from audit_spine.core.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

Predicate = Callable[[Any], bool]


class ManualRuleRegistry:
    """Ordered predicate lists keyed by entity class."""

    def __init__(self) -> None:
        self._rules: dict[type, list[Predicate]] = {}

    def add_rule(self, cls: type[T], predicate: Callable[[T], bool]) -> ManualRuleRegistry:
        """Append *predicate* to the rules for *cls*. Returns self for chaining."""
        if cls is None:
            raise InvalidArgumentError("cls must not be None", param="cls")
        if predicate is None:
            raise InvalidArgumentError("predicate must not be None", param="predicate")
        self._rules.setdefault(cls, []).append(predicate)
        return self

    def rules_for(self, cls: type) -> list[Predicate]:
        return list(self._rules.get(cls, ()))

    def validate(self, entity: Any) -> bool:
        require(entity, "entity")
        for index, rule in enumerate(self._rules.get(type(entity), ())):
            if not rule(entity):
                logger.info(
                    "manual_rule_failed",
                    entity_type=type(entity).__name__,
                    rule=getattr(rule, "__name__", repr(rule)),
                    rule_index=index,
                )
                return False
        return True


__all__ = ["ManualRuleRegistry"]
