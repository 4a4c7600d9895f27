"""PermGate Permissions Module - Role resolution and access checks."""

from .registry import RoleRegistry, default_registry, DEFAULT_ROLES
from .resolver import PermissionResolver, merge_permissions
from .matcher import ResourceMatcher
from .conditions import ConditionEvaluator, ConditionOutcome, resolve_field, MISSING
from .engine import PermissionEngine, create_engine

__all__ = [
    "RoleRegistry",
    "default_registry",
    "DEFAULT_ROLES",
    "PermissionResolver",
    "merge_permissions",
    "ResourceMatcher",
    "ConditionEvaluator",
    "ConditionOutcome",
    "resolve_field",
    "MISSING",
    "PermissionEngine",
    "create_engine",
]
