"""Pydantic models for declarative validation plans in YAML.

Lets operators configure summarisation plans, sequence plans and identity
fields without writing Python. Entity names in the file are resolved against
a caller-supplied ``{name: class}`` map, so the file never imports code.

Usage::

    from audit_spine.validation.plan_yaml import PlanFileSpec

    spec = PlanFileSpec.from_yaml_file("config/plans.yaml")
    spec.apply(registry, {"Order": Order, "Invoice": Invoice})

Example YAML::

    apiVersion: audit-spine/v1
    kind: ValidationPlans
    plans:
      - entity: Order
        metric: amount
        threshold_type: PercentChange
        threshold_value: 10
        sequence:
          threshold: 5
          strategy: Sum
        identity: [Code, Name]

Tags:
    yaml, declarative, config-driven, plan, audit-spine
"""

from __future__ import annotations

import operator
from collections.abc import Mapping
from decimal import Decimal
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

from audit_spine.core.errors import UnregisteredError, UnsupportedError, require
from audit_spine.core.logging import get_logger
from audit_spine.validation.identity import FieldIdentityResolver, SelectorIdentityResolver
from audit_spine.validation.plans import SummarisationPlan, ValidationPlan, ValidationStrategy
from audit_spine.validation.registry import ValidationRegistry
from audit_spine.validation.threshold import ThresholdType

logger = get_logger(__name__)


def _register_identity(registry: ValidationRegistry, cls: type, fields: list[str]) -> None:
    """Add field-priority identity for *cls* to the registry's resolver.

    An existing resolver is extended, never replaced: a selector resolver
    gets a selector for *cls*, a field resolver gets accessors.
    """
    resolver = registry.identity_resolver
    if resolver is None:
        resolver = FieldIdentityResolver()
        registry.with_identity(resolver)
    if isinstance(resolver, SelectorIdentityResolver):
        resolver.register_selector(cls, FieldIdentityResolver(fields).resolve)
    else:
        resolver.register_accessors(
            cls, *((lambda e, _n=name: getattr(e, _n, None)) for name in fields)
        )


class SequencePlanSpec(BaseModel):
    """Optional audit-backed sequence bound for an entity."""

    model_config = ConfigDict(extra="forbid")

    threshold: float = Field(default=0.0, ge=0, allow_inf_nan=False, description="Max absolute difference from last audit")
    strategy: ValidationStrategy = Field(default=ValidationStrategy.COUNT)


class PlanSpec(BaseModel):
    """One entity's plan entry."""

    model_config = ConfigDict(extra="forbid")

    entity: str = Field(..., min_length=1, description="Entity class name")
    metric: str = Field(..., min_length=1, description="Attribute (dotted path allowed) read as the metric")
    threshold_type: ThresholdType
    threshold_value: Decimal = Field(..., ge=0, allow_inf_nan=False)
    sequence: SequencePlanSpec | None = None
    identity: list[str] = Field(default_factory=list, description="Identity field priority")

    def to_summarisation_plan(self) -> SummarisationPlan:
        return SummarisationPlan(
            operator.attrgetter(self.metric), self.threshold_type, self.threshold_value
        )


class PlanFileSpec(BaseModel):
    """Root model of a plan file."""

    model_config = ConfigDict(extra="forbid")

    apiVersion: Literal["audit-spine/v1"] = Field(default="audit-spine/v1")
    kind: Literal["ValidationPlans"] = Field(default="ValidationPlans")
    plans: list[PlanSpec] = Field(default_factory=list)

    @field_validator("plans")
    @classmethod
    def validate_unique_entities(cls, v: list[PlanSpec]) -> list[PlanSpec]:
        """Ensure each entity appears once."""
        names = [plan.entity for plan in v]
        if len(names) != len(set(names)):
            duplicates = {n for n in names if names.count(n) > 1}
            raise ValueError(f"Duplicate entity plans: {duplicates}")
        return v

    def apply(
        self, registry: ValidationRegistry, entity_types: Mapping[str, type]
    ) -> ValidationRegistry:
        """Register every plan on *registry*.

        Raises:
            UnregisteredError: An entity name is missing from *entity_types*.
            UnsupportedError: The file sets identity fields and the registry's
                resolver is neither a field nor a selector resolver.
        """
        require(registry, "registry")
        require(entity_types, "entity_types")

        # Resolve all names first so a bad file registers nothing.
        resolved: list[tuple[type, PlanSpec]] = []
        for plan in self.plans:
            cls = entity_types.get(plan.entity)
            if cls is None:
                raise UnregisteredError(plan.entity, f"Unknown entity type in plan file: {plan.entity}")
            resolved.append((cls, plan))

        resolver = registry.identity_resolver
        if any(plan.identity for _, plan in resolved) and not (
            resolver is None or isinstance(resolver, (FieldIdentityResolver, SelectorIdentityResolver))
        ):
            raise UnsupportedError(
                f"Cannot register identity fields on {type(resolver).__name__}"
            )

        for cls, plan in resolved:
            registry.add_summarisation_plan(cls, plan.to_summarisation_plan())
            if plan.sequence is not None:
                registry.add_validation_plan(
                    ValidationPlan(cls, plan.sequence.threshold, plan.sequence.strategy)
                )
            if plan.identity:
                _register_identity(registry, cls, plan.identity)

        logger.info("plan_file_applied", plans=len(resolved))
        return registry

    @classmethod
    def from_yaml(cls, yaml_content: str) -> PlanFileSpec:
        """Parse and validate YAML content.

        Raises:
            ValueError: Invalid YAML or schema mismatch.
        """
        try:
            data = yaml.safe_load(yaml_content)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML: {e}") from e
        return cls.model_validate(data or {})

    @classmethod
    def from_yaml_file(cls, path: str | Path) -> PlanFileSpec:
        content = Path(path).read_text(encoding="utf-8")
        return cls.from_yaml(content)


__all__ = ["SequencePlanSpec", "PlanSpec", "PlanFileSpec"]
