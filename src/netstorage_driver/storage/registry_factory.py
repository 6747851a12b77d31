"""
Storage driver factory registry.

Maps driver names to factory callables so a configuration can name the
local driver the hybrid driver delegates to (``localDriver: {name: {...}}``)
without this package importing it. Local driver packages register
themselves on import; the NetStorage driver registers itself as
"netstorage".
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Mapping, Optional

from .base import StorageDriver
from .errors import ConfigurationError

__all__ = ["DriverFactory", "register_driver", "unregister_driver", "make_driver", "registered_drivers"]

logger = logging.getLogger(__name__)

DriverFactory = Callable[[Optional[Mapping[str, Any]]], StorageDriver]

_factories: Dict[str, DriverFactory] = {}


def register_driver(name: str, factory: DriverFactory) -> None:
    """
    Register a driver factory under ``name``.

    Raises:
        ValueError: If name is empty or already registered
    """
    if not name:
        raise ValueError("driver name must not be empty")
    if name in _factories:
        raise ValueError(f"Storage driver already registered: {name}")
    _factories[name] = factory
    logger.debug(f"Registered storage driver {name}")


def unregister_driver(name: str) -> None:
    """Remove a registration (no-op for unknown names)."""
    _factories.pop(name, None)


def registered_drivers() -> List[str]:
    return sorted(_factories)


def make_driver(name: str, parameters: Optional[Mapping[str, Any]] = None) -> StorageDriver:
    """
    Create a storage driver by registered name.

    Args:
        name: Registered driver name
        parameters: Driver-specific parameters (may be None)

    Returns:
        Storage driver instance

    Raises:
        ConfigurationError: If no driver is registered under ``name``
    """
    try:
        factory = _factories[name]
    except KeyError:
        raise ConfigurationError(
            f"Unknown storage driver: {name}. Registered drivers: {', '.join(registered_drivers()) or 'none'}"
        ) from None
    return factory(parameters)
