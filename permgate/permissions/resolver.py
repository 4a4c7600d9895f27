"""
PermGate Permission Resolver

Computes a role's effective permissions by folding in everything its
ancestors grant.
"""

from __future__ import annotations
from typing import Dict, List, Sequence
import logging
import threading

from ..schemas.roles import ResourcePermission
from .registry import RoleRegistry


logger = logging.getLogger(__name__)


def merge_permissions(
    own: Sequence[ResourcePermission],
    inherited: Sequence[ResourcePermission],
) -> List[ResourcePermission]:
    """
    Merge inherited entries into a role's own entries, keyed by pattern.

    Actions and aliases are unioned. Conditions are concatenated, own
    first, so that parent and child conditions must all hold.
    """
    merged: Dict[str, ResourcePermission] = {p.resource: p for p in own}

    for permission in inherited:
        existing = merged.get(permission.resource)
        if existing is None:
            merged[permission.resource] = permission
            continue

        conditions = list(existing.conditions)
        for condition in permission.conditions:
            if condition not in conditions:
                conditions.append(condition)

        merged[permission.resource] = existing.model_copy(update={
            "actions": tuple(dict.fromkeys(existing.actions + permission.actions)),
            "conditions": tuple(conditions),
            "aliases": tuple(dict.fromkeys(existing.aliases + permission.aliases)),
        })

    return list(merged.values())


class PermissionResolver:
    """
    Resolves inheritance over a RoleRegistry.

    Results are memoized per role id; the catalog never changes in place,
    so the memo is valid for the registry's lifetime.
    """

    def __init__(self, registry: RoleRegistry):
        self.registry = registry
        self._resolved: Dict[str, List[ResourcePermission]] = {}
        self._lock = threading.Lock()

    def effective_permissions(self, role_id: str) -> List[ResourcePermission]:
        """Get the inheritance-resolved permissions of a role (empty if unknown)."""
        if role_id not in self.registry:
            logger.debug(f"No permissions for unknown role {role_id!r}")
            return []
        return list(self._resolve(role_id))

    def _resolve(self, role_id: str) -> List[ResourcePermission]:
        # The registry rejects cycles at load time, so plain recursion terminates.
        with self._lock:
            cached = self._resolved.get(role_id)
        if cached is not None:
            return cached

        role = self.registry.require(role_id)
        permissions = list(role.permissions)

        for parent_id in role.inherits_from:
            permissions = merge_permissions(permissions, self._resolve(parent_id))

        with self._lock:
            return self._resolved.setdefault(role_id, permissions)

    def clear(self) -> None:
        """Drop memoized results."""
        with self._lock:
            self._resolved.clear()
