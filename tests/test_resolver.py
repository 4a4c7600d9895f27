"""
PermGate Permission Resolver Tests

Inheritance resolution: identity, monotonicity and the merge rule
(actions unioned, conditions concatenated own-first).
"""

import pytest

from permgate.permissions.registry import RoleRegistry
from permgate.permissions.resolver import PermissionResolver, merge_permissions
from permgate.schemas.roles import Action, Condition, ResourcePermission


EDITOR = {
    "id": "editor",
    "name": "Editor",
    "permissions": [
        {"resource": "content", "actions": ["read", "update"]},
        {"resource": "media", "actions": ["read"]},
    ],
}

TEAM_LEAD = {
    "id": "teamLead",
    "name": "Team Lead",
    "inherits_from": ["editor"],
    "permissions": [
        {"resource": "content", "actions": ["publish"]},
    ],
}


def by_resource(permissions):
    return {p.resource: p for p in permissions}


class TestEffectivePermissions:
    """Test inheritance-resolved permission sets."""

    @pytest.fixture
    def resolver(self):
        return PermissionResolver(RoleRegistry([EDITOR, TEAM_LEAD]))

    def test_identity_without_parents(self, resolver):
        """A role with no parents resolves to exactly what it declares."""
        editor = resolver.registry.require("editor")
        assert resolver.effective_permissions("editor") == list(editor.permissions)

    def test_inherited_actions_are_unioned(self, resolver):
        content = by_resource(resolver.effective_permissions("teamLead"))["content"]
        assert set(content.actions) == {Action.READ, Action.UPDATE, Action.PUBLISH}

    def test_own_actions_come_first(self, resolver):
        content = by_resource(resolver.effective_permissions("teamLead"))["content"]
        assert content.actions[0] == Action.PUBLISH

    def test_monotonicity(self, resolver):
        """Everything a parent grants on a resource the child does not redeclare is kept."""
        lead = by_resource(resolver.effective_permissions("teamLead"))
        assert lead["media"] == by_resource(resolver.effective_permissions("editor"))["media"]

    def test_own_patterns_ordered_before_inherited(self, resolver):
        resources = [p.resource for p in resolver.effective_permissions("teamLead")]
        assert resources == ["content", "media"]

    def test_unknown_role(self, resolver):
        assert resolver.effective_permissions("ghost") == []

    def test_memoized(self, resolver):
        first = resolver.effective_permissions("teamLead")
        second = resolver.effective_permissions("teamLead")
        assert first == second
        assert first is not second  # callers get their own list

    def test_clear(self, resolver):
        resolver.effective_permissions("teamLead")
        resolver.clear()
        assert resolver.effective_permissions("teamLead")


class TestConditionMerge:
    """Test that inherited conditions are AND-ed after the role's own."""

    @pytest.fixture
    def registry(self):
        return RoleRegistry([
            {
                "id": "base",
                "name": "Base",
                "permissions": [{
                    "resource": "users",
                    "actions": ["read"],
                    "conditions": [{"field": "tenant.active", "operator": "equals", "value": True}],
                }],
            },
            {
                "id": "left",
                "name": "Left",
                "inherits_from": ["base"],
                "permissions": [{
                    "resource": "users",
                    "actions": ["update"],
                    "conditions": [{"field": "user.role", "operator": "in", "value": ["user"]}],
                }],
            },
            {"id": "right", "name": "Right", "inherits_from": ["base"]},
            {"id": "top", "name": "Top", "inherits_from": ["left", "right"]},
        ])

    def test_conditions_concatenated(self, registry):
        users = by_resource(PermissionResolver(registry).effective_permissions("left"))["users"]
        assert [c.field for c in users.conditions] == ["user.role", "tenant.active"]

    def test_diamond_does_not_duplicate(self, registry):
        users = by_resource(PermissionResolver(registry).effective_permissions("top"))["users"]
        assert [c.field for c in users.conditions] == ["user.role", "tenant.active"]
        assert set(users.actions) == {Action.READ, Action.UPDATE}


class TestMergePermissions:
    """Test the merge helper directly."""

    def test_aliases_unioned(self):
        own = [ResourcePermission(resource="analytics", actions=["read"], aliases=["stats"])]
        inherited = [ResourcePermission(resource="analytics", actions=["export"], aliases=["stats", "kpi"])]

        merged = merge_permissions(own, inherited)

        assert len(merged) == 1
        assert merged[0].aliases == ("stats", "kpi")
        assert merged[0].actions == (Action.READ, Action.EXPORT)

    def test_inputs_not_mutated(self):
        condition = Condition(field="a", operator="equals", value=1)
        own = [ResourcePermission(resource="x", actions=["read"])]
        inherited = [ResourcePermission(resource="x", actions=["update"], conditions=[condition])]

        merge_permissions(own, inherited)

        assert own[0].actions == (Action.READ,)
        assert own[0].conditions == ()
