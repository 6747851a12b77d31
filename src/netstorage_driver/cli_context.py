"""
CLI Context for managing application dependencies.

Provides a clean way to manage CLI-level dependencies like settings and the
NetStorage client, avoiding global state and enabling proper dependency
injection.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .settings import Settings, create_settings_from_env
from .storage.netstorage import NetStorageClient


@dataclass
class CLIContext:
    """
    Shared context for CLI commands.

    Settings are loaded once per command; the client is created on first
    use and reused for the rest of the command.
    """
    settings: Settings
    _client: Optional[NetStorageClient] = None

    @classmethod
    def from_env(cls) -> CLIContext:
        """
        Create CLI context from environment variables.

        Returns:
            CLIContext with settings loaded from environment
        """
        settings = create_settings_from_env()
        return cls(settings=settings)

    @property
    def client(self) -> NetStorageClient:
        """Get or create the NetStorage client (lazy initialization)."""
        if self._client is None:
            self._client = NetStorageClient(self.settings.credentials,
                                            timeout_s=self.settings.http_timeout_s)
        return self._client

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None
