"""PermGate Schemas Package - Role catalog and decision types."""

from .roles import (
    Action,
    Condition,
    ConditionOperator,
    ResourcePermission,
    RoleDefinition,
    Role,
)
from .decisions import (
    AuditRecord,
    ContextValue,
    PermissionCheck,
    PermissionContext,
    PermissionDecision,
    PermissionResult,
    User,
)

__all__ = [
    # Catalog
    "Action",
    "Condition",
    "ConditionOperator",
    "ResourcePermission",
    "RoleDefinition",
    "Role",
    # Decisions
    "AuditRecord",
    "ContextValue",
    "PermissionCheck",
    "PermissionContext",
    "PermissionDecision",
    "PermissionResult",
    "User",
]
