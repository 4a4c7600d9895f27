"""
PermGate Condition Evaluator Tests

Operator semantics, dot-path lookup, and fail-closed behavior for
missing fields and malformed conditions.
"""

import logging

import pytest

from permgate.errors import InvalidCondition
from permgate.permissions.conditions import (
    MISSING,
    ConditionEvaluator,
    resolve_field,
)
from permgate.schemas.roles import Condition


def cond(field, operator, value, description=None):
    return Condition(field=field, operator=operator, value=value, description=description)


class TestResolveField:
    """Test dot-path lookup."""

    def test_nested(self):
        assert resolve_field({"user": {"role": "admin"}}, "user.role") == "admin"

    def test_missing_segment(self):
        assert resolve_field({"user": {}}, "user.role") is MISSING
        assert resolve_field({}, "user.role") is MISSING

    def test_through_scalar(self):
        assert resolve_field({"user": "bob"}, "user.role") is MISSING

    def test_list_index(self):
        context = {"teams": [{"id": "a"}, {"id": "b"}]}
        assert resolve_field(context, "teams.1.id") == "b"
        assert resolve_field(context, "teams.5.id") is MISSING

    def test_none_is_a_value(self):
        assert resolve_field({"user": {"manager": None}}, "user.manager") is None


class TestOperators:
    """Test each operator."""

    @pytest.fixture
    def evaluator(self):
        return ConditionEvaluator()

    def check(self, evaluator, condition, context):
        return evaluator.evaluate([condition], context)

    def test_equals(self, evaluator):
        assert self.check(evaluator, cond("user.personalData", "equals", False), {"user": {"personalData": False}})
        assert not self.check(evaluator, cond("user.tier", "equals", "gold"), {"user": {"tier": "silver"}})

    def test_equals_is_strict(self, evaluator):
        assert not self.check(evaluator, cond("flag", "equals", True), {"flag": 1})
        assert not self.check(evaluator, cond("count", "equals", 0), {"count": False})
        assert not self.check(evaluator, cond("count", "equals", "1"), {"count": 1})
        assert self.check(evaluator, cond("count", "equals", 1), {"count": 1.0})

    def test_equals_list_value(self, evaluator):
        condition = cond("user.groups", "equals", ["billing", "support"])
        assert condition.value == ("billing", "support")
        assert self.check(evaluator, condition, {"user": {"groups": ["billing", "support"]}})
        assert not self.check(evaluator, condition, {"user": {"groups": ["billing"]}})
        assert not self.check(evaluator, cond("flags", "equals", [True]), {"flags": [1]})

    def test_contains_sequence(self, evaluator):
        context = {"user": {"groups": ["billing", "support"]}}
        assert self.check(evaluator, cond("user.groups", "contains", "billing"), context)
        assert not self.check(evaluator, cond("user.groups", "contains", "bill"), context)

    def test_contains_substring(self, evaluator):
        context = {"user": {"email": "ana@example.com"}}
        assert self.check(evaluator, cond("user.email", "contains", "@example"), context)
        assert self.check(evaluator, cond("build", "contains", 12), {"build": "v12.1"})

    def test_in(self, evaluator):
        condition = cond("user.role", "in", ["user", "trial"])
        assert self.check(evaluator, condition, {"user": {"role": "trial"}})
        assert not self.check(evaluator, condition, {"user": {"role": "admin"}})

    def test_greater_and_less_than(self, evaluator):
        assert self.check(evaluator, cond("amount", "greater_than", 100), {"amount": 150})
        assert self.check(evaluator, cond("amount", "greater_than", "100"), {"amount": "150.5"})
        assert not self.check(evaluator, cond("amount", "greater_than", 100), {"amount": 100})
        assert self.check(evaluator, cond("amount", "less_than", 10), {"amount": 9.99})
        assert not self.check(evaluator, cond("amount", "less_than", 10), {"amount": "lots"})

    def test_starts_and_ends_with(self, evaluator):
        context = {"path": "billing/invoices/42"}
        assert self.check(evaluator, cond("path", "starts_with", "billing/"), context)
        assert not self.check(evaluator, cond("path", "starts_with", "users/"), context)
        assert self.check(evaluator, cond("path", "ends_with", "/42"), context)


class TestEvaluate:
    """Test condition lists and failure handling."""

    @pytest.fixture
    def evaluator(self):
        return ConditionEvaluator()

    def test_empty_list_passes(self, evaluator):
        assert evaluator.evaluate([], None)
        assert evaluator.evaluate(None, {"anything": 1})

    def test_conditions_without_context_fail(self, evaluator):
        assert not evaluator.evaluate([cond("user.role", "equals", "user")], None)

    def test_all_conditions_must_hold(self, evaluator):
        conditions = [
            cond("user.role", "in", ["user", "trial"]),
            cond("user.verified", "equals", True),
        ]
        assert evaluator.evaluate(conditions, {"user": {"role": "user", "verified": True}})
        assert not evaluator.evaluate(conditions, {"user": {"role": "user", "verified": False}})

    def test_missing_field_fails_closed(self, evaluator):
        outcome = evaluator.assess([cond("user.role", "equals", "user")], {"session": {}})
        assert not outcome.passed
        assert not outcome.invalid

    def test_failure_reason_uses_description(self, evaluator):
        outcome = evaluator.assess(
            [cond("user.role", "in", ["user"], description="Can only view regular users")],
            {"user": {"role": "admin"}},
        )
        assert outcome.reason == "condition not met: Can only view regular users"

    def test_in_with_scalar_value_is_invalid(self, evaluator, caplog):
        with caplog.at_level(logging.WARNING, logger="permgate.permissions.conditions"):
            outcome = evaluator.assess([cond("user.role", "in", "user")], {"user": {"role": "user"}})

        assert not outcome.passed
        assert outcome.invalid
        assert "invalid condition on user.role" in outcome.reason
        assert "Invalid condition" in caplog.text

    def test_non_numeric_comparison_value_is_invalid(self, evaluator):
        outcome = evaluator.assess([cond("amount", "greater_than", "many")], {"amount": 3})
        assert outcome.invalid

    def test_unknown_operator_is_invalid(self, evaluator):
        bogus = Condition.model_construct(field="user.role", operator="regex", value=".*")
        outcome = evaluator.assess([bogus], {"user": {"role": "user"}})
        assert not outcome.passed
        assert outcome.invalid

    def test_evaluate_condition_raises_for_malformed(self, evaluator):
        with pytest.raises(InvalidCondition):
            evaluator.evaluate_condition(cond("x", "in", 5), {"x": 5})
