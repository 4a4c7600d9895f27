"""
PermGate Errors

Only ConfigError is fatal; everything raised while answering a check is
turned into a denial by the engine.
"""

from typing import List, Optional


class PermGateError(Exception):
    """Base exception for permission engine errors."""


class ConfigError(PermGateError):
    """Raised when the role catalog cannot be loaded (fails startup)."""


class UnknownRole(PermGateError):
    """Raised when a role id is not present in the catalog."""

    def __init__(self, role_id: Optional[str]):
        self.role_id = role_id
        super().__init__(f"Unknown role: {role_id!r}")


class InvalidCondition(PermGateError):
    """Raised when a condition has an unusable operator or value."""


class CyclicInheritance(ConfigError):
    """Raised when inherits_from references form a cycle."""

    def __init__(self, path: List[str]):
        self.path = path
        super().__init__(f"Cyclic role inheritance: {' -> '.join(path)}")


class PermissionDenied(PermissionError):
    """Raised by PermissionEngine.require; carries no decision detail."""

    def __init__(self, message: str = "not authorized"):
        super().__init__(message)
