"""PermGate Core Module - Shared mutable state: decision cache and audit trail."""

from .cache import PermissionCache, CacheEntry
from .audit_trail import AuditTrail

__all__ = [
    "PermissionCache",
    "CacheEntry",
    "AuditTrail",
]
