"""
PermGate Role Catalog Schema

Role definitions, resource permissions and conditions.
Validated once when the catalog is loaded and read-only afterwards.
"""

from __future__ import annotations
from typing import Any, Optional, Tuple
from enum import Enum

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


# =============================================================================
# Actions
# =============================================================================

class Action(str, Enum):
    """Operation verbs that a permission can grant."""
    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"
    APPROVE = "approve"
    PUBLISH = "publish"
    EXPORT = "export"


# =============================================================================
# Conditions
# =============================================================================

class ConditionOperator(str, Enum):
    """Comparison operators available to conditions."""
    EQUALS = "equals"
    CONTAINS = "contains"
    IN = "in"
    GREATER_THAN = "greater_than"
    LESS_THAN = "less_than"
    STARTS_WITH = "starts_with"
    ENDS_WITH = "ends_with"


class Condition(BaseModel):
    """A predicate over the request context narrowing when a permission applies."""
    model_config = ConfigDict(frozen=True)

    field: str = Field(..., min_length=1)
    operator: ConditionOperator
    value: Any = None
    description: Optional[str] = None

    @field_validator("field")
    @classmethod
    def validate_field(cls, v: str) -> str:
        if any(not segment for segment in v.split(".")):
            raise ValueError(f"Condition field has an empty path segment: {v!r}")
        return v

    @field_validator("value")
    @classmethod
    def freeze_value(cls, v: Any) -> Any:
        if isinstance(v, list):
            return tuple(v)
        if isinstance(v, set):
            return frozenset(v)
        return v


# =============================================================================
# Resource Permission
# =============================================================================

class ResourcePermission(BaseModel):
    """
    Actions granted on a resource pattern.

    A pattern ending in ``*`` is a wildcard matched by prefix. Aliases are
    additional resource names the entry also covers.
    """
    model_config = ConfigDict(frozen=True)

    resource: str = Field(..., min_length=1)
    actions: Tuple[Action, ...] = ()
    conditions: Tuple[Condition, ...] = ()
    aliases: Tuple[str, ...] = Field(
        default=(),
        validation_alias=AliasChoices("aliases", "inherit"),
    )

    @field_validator("actions", "aliases")
    @classmethod
    def dedupe(cls, v: Tuple[Any, ...]) -> Tuple[Any, ...]:
        return tuple(dict.fromkeys(v))

    @property
    def is_wildcard(self) -> bool:
        return self.resource.endswith("*")

    @property
    def prefix(self) -> str:
        """Literal prefix of a wildcard pattern (the pattern itself otherwise)."""
        return self.resource[:-1] if self.is_wildcard else self.resource

    def allows(self, action: Action) -> bool:
        return action in self.actions


# =============================================================================
# Role Definition
# =============================================================================

class RoleDefinition(BaseModel):
    """
    A named bundle of resource permissions.

    Roles may inherit from other roles by id. A role flagged ``bypass_all``
    is granted every action on every resource without evaluation.
    """
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, max_length=1000)
    permissions: Tuple[ResourcePermission, ...] = ()
    inherits_from: Tuple[str, ...] = Field(
        default=(),
        validation_alias=AliasChoices("inherits_from", "inheritsFrom"),
    )
    bypass_all: bool = Field(
        default=False,
        validation_alias=AliasChoices("bypass_all", "bypassAll"),
    )

    @field_validator("permissions")
    @classmethod
    def validate_unique_resources(cls, v: Tuple[ResourcePermission, ...]) -> Tuple[ResourcePermission, ...]:
        seen = set()
        for permission in v:
            if permission.resource in seen:
                raise ValueError(f"Resource declared twice: {permission.resource!r}")
            seen.add(permission.resource)
        return v

    @field_validator("inherits_from")
    @classmethod
    def dedupe_parents(cls, v: Tuple[str, ...]) -> Tuple[str, ...]:
        return tuple(dict.fromkeys(v))

    def get_permission(self, resource: str) -> Optional[ResourcePermission]:
        """Get the entry declared for an exact resource pattern."""
        for permission in self.permissions:
            if permission.resource == resource:
                return permission
        return None


# Short alias used throughout catalog code.
Role = RoleDefinition
