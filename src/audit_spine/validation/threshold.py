"""
Threshold comparison for metric changes.

A single pure function decides whether a metric moved "too far" between two
saves. It is strict: negative thresholds and unknown threshold
kinds raise instead of defaulting. The plan-driven comparator in
:mod:`audit_spine.validation.summarisation` layers lenient defaults on top.

Threshold kinds:
    ::

        RAW_DIFFERENCE   |current - previous|                 <= threshold
        PERCENT_CHANGE   |current - previous| / |previous|*100 <= threshold
                         (threshold is a percentage: 25 means 25%)

    When ``previous == 0`` a percent change is only defined for
    ``current == 0`` (change of 0). Any other current value fails, however
    large the threshold.

Examples:
    >>> is_within_threshold(Decimal("12"), Decimal("10"), ThresholdType.RAW_DIFFERENCE, Decimal("5"))
    True
    >>> is_within_threshold(106, 100, ThresholdType.PERCENT_CHANGE, 10)
    True
    >>> is_within_threshold(200, 106, "PercentChange", 10)
    False

Tags:
    threshold, comparison, validation, audit-spine
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any

from audit_spine.core.errors import InvalidArgumentError, UnsupportedError

_HUNDRED = Decimal(100)


class ThresholdType(str, Enum):
    """How a metric change is measured against its threshold."""

    PERCENT_CHANGE = "PercentChange"
    RAW_DIFFERENCE = "RawDifference"


def to_decimal(value: Any, name: str) -> Decimal:
    """Coerce a numeric value to :class:`Decimal` without float noise."""
    if value is None:
        raise InvalidArgumentError(f"{name} must not be None", param=name)
    if isinstance(value, bool):
        raise InvalidArgumentError(f"{name} must be numeric, got bool", param=name)
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            # str() keeps 0.1 as 0.1 rather than its binary expansion
            result = Decimal(str(value)) if isinstance(value, float) else Decimal(value)
        except (InvalidOperation, TypeError, ValueError) as e:
            raise InvalidArgumentError(f"{name} is not numeric: {value!r}", param=name, cause=e) from e
    if not result.is_finite():
        raise InvalidArgumentError(f"{name} must be finite, got {value!r}", param=name)
    return result


def coerce_threshold_type(kind: Any) -> ThresholdType | None:
    """Return the matching :class:`ThresholdType`, or ``None`` if unknown."""
    if isinstance(kind, ThresholdType):
        return kind
    try:
        return ThresholdType(kind)
    except ValueError:
        return None


def percent_change(current: Decimal, previous: Decimal) -> Decimal | None:
    """Absolute percent change from *previous* to *current*.

    Returns ``None`` when the change is undefined (previous is zero and
    current is not).
    """
    if previous == 0:
        return Decimal(0) if current == 0 else None
    return abs(current - previous) / abs(previous) * _HUNDRED


def is_within_threshold(
    current: Any,
    previous: Any,
    kind: ThresholdType | str,
    threshold_value: Any,
    already_validated: bool = False,
) -> bool:
    """
    Check whether the change from *previous* to *current* is within threshold.

    Args:
        current: Current metric value
        previous: Previously recorded metric value
        kind: RAW_DIFFERENCE or PERCENT_CHANGE
        threshold_value: Non-negative bound (a percentage for PERCENT_CHANGE)
        already_validated: Escape hatch; re-validating accepted data always passes

    Raises:
        InvalidArgumentError: threshold_value is negative or a value is not numeric
        UnsupportedError: kind is not a known ThresholdType
    """
    if already_validated:
        return True

    threshold = to_decimal(threshold_value, "threshold_value")
    if threshold < 0:
        raise InvalidArgumentError(
            f"threshold_value must be non-negative, got {threshold}",
            param="threshold_value",
        )

    threshold_type = coerce_threshold_type(kind)
    if threshold_type is None:
        raise UnsupportedError(f"Unsupported threshold type: {kind!r}")

    cur = to_decimal(current, "current")
    prev = to_decimal(previous, "previous")

    if threshold_type is ThresholdType.RAW_DIFFERENCE:
        return abs(cur - prev) <= threshold

    change = percent_change(cur, prev)
    if change is None:
        return False
    return change <= threshold


__all__ = [
    "ThresholdType",
    "to_decimal",
    "coerce_threshold_type",
    "percent_change",
    "is_within_threshold",
]
