"""
Settings and configuration for the NetStorage driver.

Centralizes configuration values and provides validation with fail-fast
behavior. Settings come either from a driver parameter bag (the mapping a
storage configuration file hands to the driver factory) or from
environment variables (the CLI).
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

from .storage.errors import ConfigurationError
from .storage.signing import Credentials

__all__ = ["Settings", "create_settings_from_env", "parse_bool"]

_TRUE = {"1", "t", "T", "TRUE", "true", "True"}
_FALSE = {"0", "f", "F", "FALSE", "false", "False"}


def parse_bool(value: Any, name: str) -> bool:
    """
    Parse a boolean parameter.

    Accepts real booleans and the strings 1/t/true/TRUE/True and
    0/f/false/FALSE/False.

    Raises:
        ConfigurationError: For anything else
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        if value in _TRUE:
            return True
        if value in _FALSE:
            return False
    raise ConfigurationError(f"invalid {name} value {value!r}")


@dataclass(frozen=True)
class Settings:
    """
    Configuration settings for the NetStorage driver.

    Credentials:
        hostname: NetStorage upload host, e.g. "example-nsu.akamaihd.net"
        keyname: Upload account key name
        key: Upload account key (secret; excluded from repr)
        ssl: Use https instead of http

    Driver:
        tmp_dir: Directory for staging files (platform default if None)
        http_timeout_s: HTTP read/write timeout in seconds
        local_driver: Registered name of the local storage driver, if any
        local_driver_options: Parameters for the local storage driver
    """
    hostname: str
    keyname: str
    key: str = field(repr=False)
    ssl: bool = False
    tmp_dir: Optional[str] = None
    http_timeout_s: float = 30.0
    local_driver: Optional[str] = None
    local_driver_options: Optional[Dict[str, Any]] = None

    def __post_init__(self):
        """Validate settings on construction."""
        if not self.hostname:
            raise ConfigurationError("hostname required")
        if not self.keyname:
            raise ConfigurationError("keyname required")
        if not self.key:
            raise ConfigurationError("key required")

        if "://" in self.hostname or "/" in self.hostname:
            raise ConfigurationError(f"hostname must be a bare host name, got {self.hostname}")

        if self.http_timeout_s <= 0:
            raise ConfigurationError(f"http_timeout_s must be positive, got {self.http_timeout_s}")

        if self.local_driver_options is not None and self.local_driver is None:
            raise ConfigurationError("local_driver_options given without local_driver")

    @property
    def credentials(self) -> Credentials:
        return Credentials(hostname=self.hostname, keyname=self.keyname, key=self.key, ssl=self.ssl)

    @classmethod
    def from_parameters(cls, parameters: Optional[Mapping[str, Any]]) -> Settings:
        """
        Build settings from a driver parameter bag.

        Recognized parameters:
            hostname: string (required)
            keyname: string (required)
            key: string (required)
            ssl: bool or bool string
            tmp: string, staging directory
            timeout: number, HTTP timeout in seconds
            localDriver: mapping with exactly one entry
                <driver name>: <driver parameters mapping, or None>

        Raises:
            ConfigurationError: If a required parameter is missing or a value is invalid
        """
        params = parameters or {}

        values: Dict[str, Any] = {}
        for name in ("hostname", "keyname", "key"):
            if params.get(name) is None:
                raise ConfigurationError(f"{name} required")
            values[name] = str(params[name])

        if "ssl" in params:
            values["ssl"] = parse_bool(params["ssl"], "ssl")

        if params.get("tmp") is not None:
            values["tmp_dir"] = str(params["tmp"])

        if params.get("timeout") is not None:
            try:
                values["http_timeout_s"] = float(params["timeout"])
            except (TypeError, ValueError) as e:
                raise ConfigurationError(f"invalid timeout value {params['timeout']!r}") from e

        block = params.get("localDriver")
        if block is not None:
            if not isinstance(block, Mapping):
                raise ConfigurationError("localDriver must be a mapping of driver name to options")
            if len(block) != 1:
                raise ConfigurationError("There can be only one local driver")
            driver_name, driver_options = next(iter(block.items()))
            if driver_options is not None and not isinstance(driver_options, Mapping):
                raise ConfigurationError(f"Invalid local driver options for {driver_name}")
            values["local_driver"] = str(driver_name)
            values["local_driver_options"] = dict(driver_options) if driver_options is not None else None

        return cls(**values)


def create_settings_from_env() -> Settings:
    """
    Load settings from environment variables.

    Environment Variables:
        - NETSTORAGE_HOSTNAME (required)
        - NETSTORAGE_KEYNAME (required)
        - NETSTORAGE_KEY (required)
        - NETSTORAGE_SSL (default: true)
        - NETSTORAGE_TMP (optional)
        - NETSTORAGE_HTTP_TIMEOUT (default: 30.0)

    Returns:
        Settings object with validated configuration

    Raises:
        ConfigurationError: If configuration is invalid or required values missing

    Note:
        Creates a fresh Settings instance every time (no caching).
    """
    hostname = os.getenv("NETSTORAGE_HOSTNAME")
    keyname = os.getenv("NETSTORAGE_KEYNAME")
    key = os.getenv("NETSTORAGE_KEY")

    if not hostname:
        raise ConfigurationError("NETSTORAGE_HOSTNAME environment variable is required")
    if not keyname:
        raise ConfigurationError("NETSTORAGE_KEYNAME environment variable is required")
    if not key:
        raise ConfigurationError("NETSTORAGE_KEY environment variable is required")

    timeout = os.getenv("NETSTORAGE_HTTP_TIMEOUT")
    try:
        http_timeout_s = float(timeout) if timeout else 30.0
    except ValueError as e:
        raise ConfigurationError(f"invalid NETSTORAGE_HTTP_TIMEOUT value {timeout!r}") from e

    return Settings(
        hostname=hostname,
        keyname=keyname,
        key=key,
        ssl=parse_bool(os.getenv("NETSTORAGE_SSL", "true"), "NETSTORAGE_SSL"),
        tmp_dir=os.getenv("NETSTORAGE_TMP") or None,
        http_timeout_s=http_timeout_s,
    )
