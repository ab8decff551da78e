"""
Validation pipeline: thresholds, plans, identity, sequences, audit stores
and the runner that ties them together.
"""

from audit_spine.validation.audit import (
    BATCH_ENTITY_ID,
    AuditRecord,
    AuditStore,
    InMemoryAuditStore,
    SqliteAuditStore,
    create_audit_store,
)
from audit_spine.validation.batch import BatchSizeValidator
from audit_spine.validation.identity import (
    DEFAULT_IDENTITY_FIELDS,
    EntityIdentityResolver,
    FieldIdentityResolver,
    SelectorIdentityResolver,
)
from audit_spine.validation.plan_yaml import PlanFileSpec, PlanSpec, SequencePlanSpec
from audit_spine.validation.plans import (
    SummarisationPlan,
    SummarisationPlanStore,
    ValidationPlan,
    ValidationPlanStore,
    ValidationStrategy,
)
from audit_spine.validation.registry import ValidationRegistry
from audit_spine.validation.rules import ManualRuleRegistry
from audit_spine.validation.runner import ValidationRunner
from audit_spine.validation.sequence import (
    SequenceValidator,
    validate_against_audits,
    validate_sequence,
    validate_sequence_with_plan,
    validate_with_plan,
)
from audit_spine.validation.summarisation import SummarisationComparator
from audit_spine.validation.threshold import ThresholdType, is_within_threshold

__all__ = [
    "BATCH_ENTITY_ID",
    "AuditRecord",
    "AuditStore",
    "InMemoryAuditStore",
    "SqliteAuditStore",
    "create_audit_store",
    "BatchSizeValidator",
    "DEFAULT_IDENTITY_FIELDS",
    "EntityIdentityResolver",
    "FieldIdentityResolver",
    "SelectorIdentityResolver",
    "PlanFileSpec",
    "PlanSpec",
    "SequencePlanSpec",
    "SummarisationPlan",
    "SummarisationPlanStore",
    "ValidationPlan",
    "ValidationPlanStore",
    "ValidationStrategy",
    "ValidationRegistry",
    "ManualRuleRegistry",
    "ValidationRunner",
    "SequenceValidator",
    "validate_against_audits",
    "validate_sequence",
    "validate_sequence_with_plan",
    "validate_with_plan",
    "SummarisationComparator",
    "ThresholdType",
    "is_within_threshold",
]
