"""
PermGate Condition Evaluator

Evaluates permission conditions against the caller-supplied context.

Field lookup is dynamic (dot paths over nested mappings), but every
operator is a plain function over a resolved value and the condition's
value. Conditions are AND-ed; a missing field fails closed.
"""

from __future__ import annotations
from typing import Any, Callable, Dict, Mapping, Optional, Sequence
from dataclasses import dataclass
import logging

from ..errors import InvalidCondition
from ..schemas.roles import Condition, ConditionOperator


logger = logging.getLogger(__name__)


class _Missing:
    """Marker for a dot path that does not resolve."""

    def __repr__(self) -> str:
        return "MISSING"


MISSING = _Missing()

_COLLECTIONS = (list, tuple, set, frozenset)


def resolve_field(context: Any, path: str) -> Any:
    """Resolve a dot path like ``user.role``; MISSING on the first absent segment."""
    current = context
    for segment in path.split("."):
        if isinstance(current, Mapping):
            if segment not in current:
                return MISSING
            current = current[segment]
        elif isinstance(current, (list, tuple)) and segment.isdigit():
            index = int(segment)
            if index >= len(current):
                return MISSING
            current = current[index]
        else:
            return MISSING
    return current


# =============================================================================
# Operators
# =============================================================================

def _strict_equals(left: Any, right: Any) -> bool:
    # True == 1 in Python; a flag never equals a number here.
    if isinstance(left, bool) != isinstance(right, bool):
        return False
    # Catalog lists are stored as tuples; compare sequences by items.
    if isinstance(left, (list, tuple)) and isinstance(right, (list, tuple)):
        return len(left) == len(right) and all(
            _strict_equals(a, b) for a, b in zip(left, right)
        )
    return left == right


def _to_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    return str(value)


def _to_number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return float(value)
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if number != number:  # NaN never compares
        return None
    return number


def _equals(actual: Any, expected: Any) -> bool:
    return _strict_equals(actual, expected)


def _contains(actual: Any, expected: Any) -> bool:
    if isinstance(actual, _COLLECTIONS):
        return any(_strict_equals(item, expected) for item in actual)
    return _to_text(expected) in _to_text(actual)


def _in(actual: Any, expected: Any) -> bool:
    if not isinstance(expected, _COLLECTIONS):
        raise InvalidCondition(
            f"'in' needs a list value, got {type(expected).__name__}"
        )
    return any(_strict_equals(actual, item) for item in expected)


def _compare(actual: Any, expected: Any, op: Callable[[float, float], bool], name: str) -> bool:
    limit = _to_number(expected)
    if limit is None:
        raise InvalidCondition(f"'{name}' needs a numeric value, got {expected!r}")
    number = _to_number(actual)
    if number is None:
        return False
    return op(number, limit)


def _greater_than(actual: Any, expected: Any) -> bool:
    return _compare(actual, expected, lambda a, b: a > b, "greater_than")


def _less_than(actual: Any, expected: Any) -> bool:
    return _compare(actual, expected, lambda a, b: a < b, "less_than")


def _starts_with(actual: Any, expected: Any) -> bool:
    return _to_text(actual).startswith(_to_text(expected))


def _ends_with(actual: Any, expected: Any) -> bool:
    return _to_text(actual).endswith(_to_text(expected))


OPERATORS: Dict[ConditionOperator, Callable[[Any, Any], bool]] = {
    ConditionOperator.EQUALS: _equals,
    ConditionOperator.CONTAINS: _contains,
    ConditionOperator.IN: _in,
    ConditionOperator.GREATER_THAN: _greater_than,
    ConditionOperator.LESS_THAN: _less_than,
    ConditionOperator.STARTS_WITH: _starts_with,
    ConditionOperator.ENDS_WITH: _ends_with,
}


# =============================================================================
# Evaluator
# =============================================================================

@dataclass
class ConditionOutcome:
    """Result of evaluating a condition list."""
    passed: bool
    reason: Optional[str] = None
    invalid: bool = False


class ConditionEvaluator:
    """
    Evaluates condition lists.

    Usage:
        evaluator = ConditionEvaluator()
        evaluator.evaluate(permission.conditions, {"user": {"role": "user"}})
    """

    def evaluate(
        self,
        conditions: Optional[Sequence[Condition]],
        context: Optional[Mapping[str, Any]],
    ) -> bool:
        return self.assess(conditions, context).passed

    def assess(
        self,
        conditions: Optional[Sequence[Condition]],
        context: Optional[Mapping[str, Any]],
    ) -> ConditionOutcome:
        """Evaluate conditions, keeping the reason for the first failure."""
        if not conditions:
            return ConditionOutcome(passed=True)

        if context is None:
            return ConditionOutcome(passed=False, reason="conditions require a context")

        for condition in conditions:
            try:
                passed = self.evaluate_condition(condition, context)
            except InvalidCondition as e:
                logger.warning(f"Invalid condition on {condition.field}: {e}")
                return ConditionOutcome(
                    passed=False,
                    reason=f"invalid condition on {condition.field}: {e}",
                    invalid=True,
                )
            if not passed:
                return ConditionOutcome(
                    passed=False,
                    reason=_describe_failure(condition),
                )

        return ConditionOutcome(passed=True)

    def evaluate_condition(self, condition: Condition, context: Mapping[str, Any]) -> bool:
        """Evaluate one condition; raises InvalidCondition when it is malformed."""
        operator = OPERATORS.get(condition.operator)
        if operator is None:
            raise InvalidCondition(f"unknown operator {condition.operator!r}")

        actual = resolve_field(context, condition.field)
        if actual is MISSING:
            return False

        return operator(actual, condition.value)


def _describe_failure(condition: Condition) -> str:
    if condition.description:
        return f"condition not met: {condition.description}"
    operator = getattr(condition.operator, "value", condition.operator)
    return f"condition not met: {condition.field} {operator} {condition.value!r}"
