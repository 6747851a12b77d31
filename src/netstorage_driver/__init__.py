"""
NetStorage hybrid storage driver.

A file-like storage interface (read, write, stat, list, move, delete,
URL resolution) over a local storage driver and Akamai NetStorage.
"""
__version__ = "0.1.0"

from .driver import DRIVER_NAME, DriverOptions, HybridDriver, Local, Remote, create_driver
from .settings import Settings, create_settings_from_env
from .storage.netstorage import NetStorageClient
from .storage.signing import Credentials

__all__ = [
    "__version__",
    "DRIVER_NAME",
    "Credentials",
    "DriverOptions",
    "HybridDriver",
    "Local",
    "NetStorageClient",
    "Remote",
    "Settings",
    "create_driver",
    "create_settings_from_env",
]
