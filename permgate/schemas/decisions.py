"""
PermGate Decision Schemas

Runtime types that flow through a permission check: the caller,
the per-call context, the internal decision and the audit record.
"""

from __future__ import annotations
from typing import Any, Dict, Mapping, NamedTuple, Optional, Sequence, Union
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum


# Context values are plain JSON-like data; lookups stay dynamic.
ContextValue = Union[str, int, float, bool, None, Sequence[Any], Mapping[str, Any]]
PermissionContext = Mapping[str, ContextValue]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# Caller
# =============================================================================

@dataclass(frozen=True)
class User:
    """The authenticated caller. Only ``id`` and ``role`` are read."""
    id: str
    role: str
    email: Optional[str] = None


class PermissionCheck(NamedTuple):
    """One (resource, action, context) query for the batch helpers."""
    resource: str
    action: str
    context: Optional[PermissionContext] = None


# =============================================================================
# Decisions
# =============================================================================

class PermissionDecision(str, Enum):
    """Permission decision types."""
    ALLOW = "allow"
    DENY = "deny"


@dataclass
class PermissionResult:
    """Result of evaluating one check against the catalog."""
    decision: PermissionDecision
    reason: Optional[str] = None
    resource_pattern: Optional[str] = None

    @property
    def is_allowed(self) -> bool:
        return self.decision == PermissionDecision.ALLOW

    @classmethod
    def allow(cls, resource_pattern: Optional[str] = None) -> "PermissionResult":
        return cls(decision=PermissionDecision.ALLOW, resource_pattern=resource_pattern)

    @classmethod
    def deny(cls, reason: str = "Access denied", resource_pattern: Optional[str] = None) -> "PermissionResult":
        return cls(decision=PermissionDecision.DENY, reason=reason, resource_pattern=resource_pattern)


# =============================================================================
# Audit Record
# =============================================================================

@dataclass(frozen=True)
class AuditRecord:
    """Immutable log entry for a single permission decision."""
    user_id: str
    resource: str
    action: str
    granted: bool
    role_id: Optional[str] = None
    context: Dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=utcnow)
    reason: Optional[str] = None
    cache_hit: bool = False

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "user_id": self.user_id,
            "role_id": self.role_id,
            "resource": self.resource,
            "action": self.action,
            "granted": self.granted,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
            "reason": self.reason,
            "cache_hit": self.cache_hit,
        }
