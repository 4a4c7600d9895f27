"""
PermGate Role Registry

Process-wide catalog of role definitions, validated eagerly at load time.
Any problem with the catalog raises ConfigError here so that it fails
startup instead of surfacing in the middle of a request.
"""

from __future__ import annotations
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Union
from pathlib import Path
import json
import logging

from pydantic import ValidationError

from ..errors import ConfigError, CyclicInheritance, UnknownRole
from ..schemas.roles import Action, RoleDefinition


logger = logging.getLogger(__name__)


RoleSource = Union[RoleDefinition, Mapping[str, Any]]


# =============================================================================
# Role Registry
# =============================================================================

class RoleRegistry:
    """
    Immutable catalog of roles keyed by id.

    Usage:
        registry = RoleRegistry([{"id": "editor", "name": "Editor", ...}])
        role = registry.get_definition("editor")
    """

    def __init__(self, roles: Iterable[RoleSource]):
        roles_by_id: Dict[str, RoleDefinition] = {}

        for source in roles:
            role = self._coerce(source)
            if role.id in roles_by_id:
                raise ConfigError(f"Role already defined: {role.id}")
            roles_by_id[role.id] = role

        self._roles = roles_by_id
        self._check_parents()
        self._check_acyclic()
        logger.info(f"Loaded role catalog with {len(self._roles)} roles")

    @staticmethod
    def _coerce(source: RoleSource) -> RoleDefinition:
        if isinstance(source, RoleDefinition):
            return source
        try:
            return RoleDefinition.model_validate(source)
        except ValidationError as e:
            role_id = source.get("id") if isinstance(source, Mapping) else None
            raise ConfigError(f"Invalid role definition {role_id!r}: {e}") from e

    def _check_parents(self) -> None:
        for role in self._roles.values():
            for parent in role.inherits_from:
                if parent not in self._roles:
                    raise ConfigError(
                        f"Role {role.id} inherits from undefined role {parent}"
                    )

    def _check_acyclic(self) -> None:
        """Depth-first search with an explicit path; a back edge is a cycle."""
        done = set()

        for root in self._roles:
            if root in done:
                continue
            path: List[str] = [root]
            on_path = {root}
            stack = [iter(self._roles[root].inherits_from)]

            while stack:
                parent = next(stack[-1], None)
                if parent is None:
                    stack.pop()
                    finished = path.pop()
                    on_path.discard(finished)
                    done.add(finished)
                    continue
                if parent in on_path:
                    cycle = path[path.index(parent):] + [parent]
                    raise CyclicInheritance(cycle)
                if parent in done:
                    continue
                path.append(parent)
                on_path.add(parent)
                stack.append(iter(self._roles[parent].inherits_from))

    # =========================================================================
    # Loading
    # =========================================================================

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "RoleRegistry":
        """
        Load a JSON catalog.

        The document is either a list of roles or an object with a
        ``roles`` list.
        """
        try:
            with open(path, "r", encoding="utf-8") as f:
                document = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigError(f"Cannot read role catalog {path}: {e}") from e

        if isinstance(document, Mapping):
            document = document.get("roles")
        if not isinstance(document, list):
            raise ConfigError(f"Role catalog {path} must contain a list of roles")

        return cls(document)

    # =========================================================================
    # Lookup
    # =========================================================================

    def get_definition(self, role_id: Optional[str]) -> Optional[RoleDefinition]:
        """Get a role by id (None when not found)."""
        if role_id is None:
            return None
        return self._roles.get(role_id)

    def require(self, role_id: Optional[str]) -> RoleDefinition:
        """Get a role by id, raising UnknownRole when not found."""
        role = self.get_definition(role_id)
        if role is None:
            raise UnknownRole(role_id)
        return role

    def role_ids(self) -> List[str]:
        return list(self._roles)

    def __contains__(self, role_id: object) -> bool:
        return role_id in self._roles

    def __len__(self) -> int:
        return len(self._roles)

    def __iter__(self) -> Iterator[RoleDefinition]:
        return iter(self._roles.values())


# =============================================================================
# Built-in Catalog
# =============================================================================

_CONTENT_CRUD = [Action.CREATE, Action.READ, Action.UPDATE, Action.DELETE]

DEFAULT_ROLES: List[Dict[str, Any]] = [
    {
        "id": "super_admin",
        "name": "Super Administrator",
        "description": "Complete system access with all permissions",
        "bypass_all": True,
        "permissions": [
            {"resource": "*", "actions": list(Action)},
        ],
    },
    {
        "id": "content_admin",
        "name": "Content Administrator",
        "description": "Full content management and publishing permissions",
        "permissions": [
            {"resource": "content", "actions": _CONTENT_CRUD + [Action.PUBLISH]},
            {"resource": "content.chapters", "actions": _CONTENT_CRUD + [Action.PUBLISH]},
            {"resource": "content.templates", "actions": _CONTENT_CRUD},
            {"resource": "media", "actions": _CONTENT_CRUD},
            {
                "resource": "users",
                "actions": [Action.READ],
                "conditions": [
                    {
                        "field": "user.role",
                        "operator": "in",
                        "value": ["user", "subscriber"],
                        "description": "Can only view regular users",
                    },
                ],
            },
        ],
    },
    {
        "id": "support_admin",
        "name": "Support Administrator",
        "description": "Customer support and user management permissions",
        "permissions": [
            {"resource": "users", "actions": [Action.READ, Action.UPDATE]},
            {"resource": "users.subscriptions", "actions": [Action.READ, Action.UPDATE]},
            {"resource": "support.tickets", "actions": [Action.CREATE, Action.READ, Action.UPDATE]},
            {
                "resource": "payments",
                "actions": [Action.READ],
                "conditions": [
                    {
                        "field": "payment.assigned_to_current_user",
                        "operator": "equals",
                        "value": True,
                        "description": "Can only view payments for assigned users",
                    },
                ],
            },
            {"resource": "content", "actions": [Action.READ]},
        ],
    },
    {
        "id": "analytics_admin",
        "name": "Analytics Administrator",
        "description": "Business intelligence and analytics access",
        "permissions": [
            {
                "resource": "analytics",
                "actions": [Action.READ, Action.EXPORT],
                "aliases": ["analytics.revenue", "analytics.users", "analytics.content"],
            },
            {"resource": "reports", "actions": [Action.CREATE, Action.READ, Action.EXPORT]},
            {
                "resource": "users",
                "actions": [Action.READ],
                "conditions": [
                    {
                        "field": "user.personalData",
                        "operator": "equals",
                        "value": False,
                        "description": "Can only view anonymized user data",
                    },
                ],
            },
        ],
    },
]


def default_registry() -> RoleRegistry:
    """Registry holding the built-in admin console roles."""
    return RoleRegistry(DEFAULT_ROLES)
