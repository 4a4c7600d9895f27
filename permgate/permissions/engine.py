"""
PermGate Permission Engine

The facade clients call. Orchestrates the registry, resolver, matcher,
condition evaluator, decision cache and audit trail.

A check never raises: every fault at request time becomes a denial
whose reason is kept in the audit trail.
"""

from __future__ import annotations
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Tuple, Union
import copy
import logging

from ..config import PermGateConfig, get_config
from ..core.audit_trail import AuditTrail
from ..core.cache import PermissionCache
from ..errors import PermissionDenied, UnknownRole
from ..schemas.decisions import (
    AuditRecord,
    PermissionCheck,
    PermissionResult,
)
from ..schemas.roles import Action, ResourcePermission, RoleDefinition
from .conditions import ConditionEvaluator
from .matcher import ResourceMatcher
from .registry import RoleRegistry, default_registry
from .resolver import PermissionResolver


logger = logging.getLogger(__name__)


ANONYMOUS_USER_ID = "anonymous"
BYPASS_REASON = "bypass-all role"

CheckSpec = Union[PermissionCheck, Tuple[Any, ...]]


def _action_value(action: Any) -> str:
    return action.value if isinstance(action, Action) else str(action)


def _user_id(user: Any) -> str:
    if user is None:
        return ANONYMOUS_USER_ID
    try:
        return str(user.id)
    except Exception:
        return ANONYMOUS_USER_ID


def _snapshot(context: Optional[Mapping[str, Any]]) -> dict:
    if not context:
        return {}
    try:
        return copy.deepcopy(dict(context))
    except Exception:
        return {"unserializable_context": repr(context)}


class PermissionEngine:
    """
    Role-based permission evaluation.

    Usage:
        engine = PermissionEngine(RoleRegistry(roles))
        if engine.check(user, "content", "update", {"user": {...}}):
            # Allow the operation
    """

    def __init__(
        self,
        registry: Optional[RoleRegistry] = None,
        cache: Optional[PermissionCache] = None,
        audit: Optional[AuditTrail] = None,
        config: Optional[PermGateConfig] = None,
    ):
        config = config or get_config()

        if registry is None:
            registry = default_registry()
        if cache is None:
            cache = PermissionCache(
                ttl_seconds=config.cache.ttl_seconds,
                enabled=config.cache.enabled,
            )
        if audit is None:
            audit = AuditTrail(capacity=config.audit.capacity)

        self.registry = registry
        self.resolver = PermissionResolver(registry)
        self.matcher = ResourceMatcher()
        self.evaluator = ConditionEvaluator()
        self.cache = cache
        self.audit = audit

    # =========================================================================
    # Single Checks
    # =========================================================================

    def check(
        self,
        user: Any,
        resource: str,
        action: Union[Action, str],
        context: Optional[Mapping[str, Any]] = None,
    ) -> bool:
        """
        Check if a user may perform an action on a resource.

        Args:
            user: Caller exposing ``id`` and ``role`` (None if unauthenticated)
            resource: Resource identifier, e.g. "billing.invoices"
            action: Action verb
            context: Request context the role's conditions are evaluated against

        Returns:
            True if allowed. Always returns; never raises.
        """
        user_id = ANONYMOUS_USER_ID
        role_id = None
        granted = False
        reason: Optional[str] = None
        cache_hit = False

        try:
            if user is None:
                reason = "user not authenticated"
            else:
                user_id = str(user.id)
                role_id = user.role
                role = self.registry.get_definition(role_id)

                if role is not None and role.bypass_all:
                    granted, reason = True, BYPASS_REASON
                else:
                    key = self.cache.make_key(role_id, resource, action, context)
                    cached = self.cache.get(key)
                    if cached is not None:
                        granted, cache_hit = cached, True
                    else:
                        result = self._evaluate(role_id, resource, action, context)
                        granted, reason = result.is_allowed, result.reason
                        self.cache.put(key, granted)
        except Exception as e:
            logger.exception(f"Permission check failed for {resource}:{action}")
            granted, reason = False, f"evaluation error: {e}"

        if not granted:
            logger.debug(f"Denied {user_id} {action} on {resource}: {reason}")

        self._record(user_id, role_id, resource, action, granted, context, reason, cache_hit)
        return granted

    def _evaluate(
        self,
        role_id: Optional[str],
        resource: str,
        action: Union[Action, str],
        context: Optional[Mapping[str, Any]],
    ) -> PermissionResult:
        """Evaluate a check against the catalog, bypassing the cache."""
        try:
            self.registry.require(role_id)
        except UnknownRole as e:
            return PermissionResult.deny(str(e))

        try:
            wanted = Action(action)
        except ValueError:
            return PermissionResult.deny(f"unknown action {action!r}")

        permissions = self.resolver.effective_permissions(role_id)
        matched = self.matcher.find(permissions, resource)
        if matched is None:
            return PermissionResult.deny(f"no permission matches {resource!r}")

        if not matched.allows(wanted):
            return PermissionResult.deny(
                f"action {wanted.value} not granted on {matched.resource!r}",
                resource_pattern=matched.resource,
            )

        outcome = self.evaluator.assess(matched.conditions, context)
        if not outcome.passed:
            return PermissionResult.deny(outcome.reason, resource_pattern=matched.resource)

        return PermissionResult.allow(resource_pattern=matched.resource)

    def _record(
        self,
        user_id: str,
        role_id: Optional[str],
        resource: str,
        action: Any,
        granted: bool,
        context: Optional[Mapping[str, Any]],
        reason: Optional[str],
        cache_hit: bool = False,
    ) -> None:
        try:
            self.audit.record(AuditRecord(
                user_id=user_id,
                role_id=role_id,
                resource=resource,
                action=_action_value(action),
                granted=granted,
                context=_snapshot(context),
                reason=reason,
                cache_hit=cache_hit,
            ))
        except Exception as e:
            logger.error(f"Failed to audit {resource}:{action}: {e}")

    def require(
        self,
        user: Any,
        resource: str,
        action: Union[Action, str],
        context: Optional[Mapping[str, Any]] = None,
    ) -> None:
        """Require a permission, raising PermissionDenied if not met."""
        if not self.check(user, resource, action, context):
            raise PermissionDenied()

    # =========================================================================
    # Batch Operations
    # =========================================================================

    def check_all(self, user: Any, checks: Iterable[CheckSpec]) -> List[bool]:
        """
        Check several (resource, action, context) queries; results are parallel.

        Like check(), never raises: a malformed query is denied and audited.
        """
        try:
            bypass = self._bypasses(user)
        except Exception:
            logger.exception("Could not resolve bypass for batch check")
            bypass = False

        results = []
        for spec in checks:
            try:
                c = PermissionCheck(*spec)
            except Exception as e:
                logger.error(f"Malformed permission check {spec!r}: {e}")
                self._record(
                    _user_id(user), getattr(user, "role", None), repr(spec), "",
                    False, None, f"malformed check: {e}",
                )
                results.append(False)
                continue

            if bypass:
                self._record(_user_id(user), user.role, c.resource, c.action, True, c.context, BYPASS_REASON)
                results.append(True)
            else:
                results.append(self.check(user, c.resource, c.action, c.context))
        return results

    def check_any(self, user: Any, checks: Iterable[CheckSpec]) -> bool:
        """True if at least one query is allowed."""
        return any(self.check_all(user, checks))

    def check_every(self, user: Any, checks: Iterable[CheckSpec]) -> bool:
        """True if every query is allowed."""
        return all(self.check_all(user, checks))

    def available_actions(
        self,
        user: Any,
        resource: str,
        context: Optional[Mapping[str, Any]] = None,
    ) -> List[Action]:
        """Get the actions a user may perform on a resource in this context."""
        try:
            if user is None:
                return []
            if self._bypasses(user):
                return list(Action)

            permissions = self.resolver.effective_permissions(user.role)
            matched = self.matcher.find(permissions, resource)
            if matched is None or not self.evaluator.evaluate(matched.conditions, context):
                return []
            return list(matched.actions)
        except Exception:
            logger.exception(f"Could not list actions for {resource}")
            return []

    # =========================================================================
    # Roles
    # =========================================================================

    def require_any_role(self, user: Any, role_ids: Sequence[str]) -> bool:
        """True if the user holds one of the roles (any role when none are listed)."""
        if user is None:
            return False
        if not role_ids:
            return True
        return user.role in role_ids

    def effective_permissions(self, role_id: str) -> List[ResourcePermission]:
        return self.resolver.effective_permissions(role_id)

    def _bypasses(self, user: Any) -> bool:
        if user is None:
            return False
        role: Optional[RoleDefinition] = self.registry.get_definition(getattr(user, "role", None))
        return role is not None and role.bypass_all

    # =========================================================================
    # Catalog Lifecycle
    # =========================================================================

    def invalidate_all(self) -> None:
        """Drop every cached decision."""
        self.cache.invalidate_all()

    def use_registry(self, registry: RoleRegistry) -> None:
        """Swap in a rebuilt catalog and invalidate everything derived from the old one."""
        self.registry = registry
        self.resolver = PermissionResolver(registry)
        self.cache.invalidate_all()
        logger.info(f"Role catalog replaced ({len(registry)} roles)")


def create_engine(config: Optional[PermGateConfig] = None) -> PermissionEngine:
    """
    Build an engine from configuration.

    Loads PERMGATE_CATALOG_PATH when set, the built-in roles otherwise.
    Raises ConfigError if the catalog is invalid.
    """
    config = config or get_config()
    if config.catalog_path:
        registry = RoleRegistry.from_file(config.catalog_path)
    else:
        registry = default_registry()
    return PermissionEngine(registry=registry, config=config)
