"""
PermGate Configuration Module

Centralized configuration from environment variables.
"""

import math
import os
import logging
from dataclasses import dataclass, field
from typing import Optional


logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


@dataclass
class CacheConfig:
    """Decision cache configuration."""
    enabled: bool = True
    ttl_seconds: float = 300.0  # 5 minutes


@dataclass
class AuditConfig:
    """Audit trail configuration."""
    capacity: int = 1000


@dataclass
class PermGateConfig:
    """Main configuration container."""
    cache: CacheConfig = field(default_factory=CacheConfig)
    audit: AuditConfig = field(default_factory=AuditConfig)
    catalog_path: Optional[str] = None
    debug: bool = False
    log_level: str = "INFO"


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.lower() in ("true", "1", "yes")


def _env_number(name: str, default, cast, minimum):
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = cast(raw)
    except ValueError:
        logger.warning(f"Invalid value for {name}: {raw!r}, using {default}")
        return default
    if not math.isfinite(value) or value < minimum:
        logger.warning(f"{name} must be a finite number >= {minimum}, using {default}")
        return default
    return value


def load_config() -> PermGateConfig:
    """
    Load configuration from environment variables.

    Environment Variables:
        PERMGATE_CACHE_ENABLED: Memoize decisions (default: true)
        PERMGATE_CACHE_TTL: Cache entry lifetime in seconds (default: 300)
        PERMGATE_AUDIT_CAPACITY: Audit records kept in memory (default: 1000)
        PERMGATE_CATALOG_PATH: JSON role catalog (default: built-in roles)
        PERMGATE_DEBUG: Enable debug mode (default: false)
        PERMGATE_LOG_LEVEL: Log level (default: INFO)
    """
    cache = CacheConfig(
        enabled=_env_bool("PERMGATE_CACHE_ENABLED", True),
        ttl_seconds=_env_number("PERMGATE_CACHE_TTL", 300.0, float, 0),
    )
    audit = AuditConfig(
        capacity=_env_number("PERMGATE_AUDIT_CAPACITY", 1000, int, 1),
    )

    return PermGateConfig(
        cache=cache,
        audit=audit,
        catalog_path=os.getenv("PERMGATE_CATALOG_PATH") or None,
        debug=_env_bool("PERMGATE_DEBUG", False),
        log_level=os.getenv("PERMGATE_LOG_LEVEL", "INFO").upper(),
    )


def configure_logging(config: Optional[PermGateConfig] = None) -> None:
    """Configure root logging for applications embedding the engine."""
    config = config or get_config()
    level = logging.DEBUG if config.debug else config.log_level
    logging.basicConfig(level=level, format=LOG_FORMAT)


# Singleton config instance
_config: Optional[PermGateConfig] = None


def get_config() -> PermGateConfig:
    """Get the global configuration (lazy-loaded singleton)."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reset_config() -> None:
    """Reset configuration (useful for testing)."""
    global _config
    _config = None
