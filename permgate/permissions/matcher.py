"""
PermGate Resource Matcher

Finds the permission entry that applies to a queried resource.
"""

from __future__ import annotations
from typing import Iterable, Optional

from ..schemas.roles import ResourcePermission


class ResourceMatcher:
    """
    Matches a resource string against effective permissions.

    Precedence (first tier with a hit wins):
    1. Exact pattern match
    2. Wildcard prefix match, longest prefix first
    3. Alias match
    """

    def find(
        self,
        permissions: Iterable[ResourcePermission],
        resource: str,
    ) -> Optional[ResourcePermission]:
        permissions = list(permissions)

        for permission in permissions:
            if permission.resource == resource:
                return permission

        best: Optional[ResourcePermission] = None
        for permission in permissions:
            if not permission.is_wildcard or not resource.startswith(permission.prefix):
                continue
            # Strictly longer only, so equal prefixes keep catalog order.
            if best is None or len(permission.prefix) > len(best.prefix):
                best = permission
        if best is not None:
            return best

        for permission in permissions:
            if resource in permission.aliases:
                return permission

        return None
