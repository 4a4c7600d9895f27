"""
PermGate - Role-Based Permission Evaluation Engine

PermGate is an in-process library whose ONLY responsibility is:
- Resolving role inheritance
- Matching resources against permission patterns
- Evaluating conditions against request context
- Caching decisions and keeping an audit trail

PermGate does NOT:
- Issue or validate credentials
- Serve decisions over a network
- Render access-gated UI
- Ship audit records to durable storage
"""

__version__ = "0.1.0"

from .errors import (
    PermGateError,
    ConfigError,
    CyclicInheritance,
    UnknownRole,
    InvalidCondition,
    PermissionDenied,
)
from .schemas.roles import Action, Condition, ConditionOperator, ResourcePermission, RoleDefinition, Role
from .schemas.decisions import AuditRecord, PermissionCheck, User
from .permissions.registry import RoleRegistry, default_registry
from .permissions.resolver import PermissionResolver
from .permissions.matcher import ResourceMatcher
from .permissions.conditions import ConditionEvaluator
from .permissions.engine import PermissionEngine, create_engine
from .core.cache import PermissionCache
from .core.audit_trail import AuditTrail

__all__ = [
    # Engine
    "PermissionEngine",
    "create_engine",
    # Components
    "RoleRegistry",
    "default_registry",
    "PermissionResolver",
    "ResourceMatcher",
    "ConditionEvaluator",
    "PermissionCache",
    "AuditTrail",
    # Schemas
    "Action",
    "Condition",
    "ConditionOperator",
    "ResourcePermission",
    "RoleDefinition",
    "Role",
    "AuditRecord",
    "PermissionCheck",
    "User",
    # Errors
    "PermGateError",
    "ConfigError",
    "CyclicInheritance",
    "UnknownRole",
    "InvalidCondition",
    "PermissionDenied",
]
