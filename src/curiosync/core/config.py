"""Shared configuration classes for curiosync.

This module defines the remote store connection settings used by the
remote adapter, the sync orchestrator and the CLI.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_BUCKET = "curio-assets"


@dataclass
class RemoteConfig:
    """Configuration for connecting to the Supabase-style cloud backend.

    Attributes:
        url: Base URL of the project (e.g., "https://abc.supabase.co").
        api_key: Publishable (anon) key of the project.
        access_token: Access token of the signed-in user, if any. Falls back
            to the api key for the Authorization header.
        bucket: Storage bucket holding item photos.
        timeout: Request timeout in seconds.
    """

    url: str
    api_key: str
    access_token: str | None = None
    bucket: str = DEFAULT_BUCKET
    timeout: float = 12.0

    def __post_init__(self) -> None:
        """Normalize project URL."""
        self.url = self.url.strip().rstrip("/")

    @classmethod
    def from_env(cls) -> RemoteConfig | None:
        """Build a config from CURIO_* environment variables.

        Returns:
            RemoteConfig, or None when no URL is set.
        """
        url = os.environ.get("CURIO_SUPABASE_URL", "")
        if not url:
            return None
        return cls(
            url=url,
            api_key=os.environ.get("CURIO_SUPABASE_KEY", ""),
            access_token=os.environ.get("CURIO_SUPABASE_TOKEN") or None,
            bucket=os.environ.get("CURIO_ASSET_BUCKET", DEFAULT_BUCKET),
        )

    @property
    def is_configured(self) -> bool:
        """Check if the backend can be reached at all.

        Returns:
            True if a key is present and the URL is an http(s) URL.
        """
        return bool(self.api_key) and self.url.startswith("http")

    @property
    def rest_url(self) -> str:
        """PostgREST endpoint."""
        return f"{self.url}/rest/v1"

    @property
    def storage_url(self) -> str:
        """Storage endpoint."""
        return f"{self.url}/storage/v1"
