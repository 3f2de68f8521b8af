"""Configuration utilities for the curio CLI.

This module provides shared configuration functions used across CLI commands.
"""

from __future__ import annotations

import json
import logging
import os
import sys
from pathlib import Path
from typing import Any

from curiosync.core.config import DEFAULT_BUCKET, RemoteConfig


def get_config_dir() -> Path:
    """Get the configuration directory.

    Returns:
        Path to $CURIO_HOME, or ~/.curio by default.
    """
    home = os.environ.get("CURIO_HOME")
    if home:
        return Path(home).expanduser()
    return Path.home() / ".curio"


def get_config_file() -> Path:
    """Get the path to the config file."""
    return get_config_dir() / "config.json"


def get_store_path() -> Path:
    """Get the path to the local store database."""
    return get_config_dir() / "curio.db"


def load_config() -> dict[str, Any]:
    """Load configuration from config file."""
    config_file = get_config_file()
    if config_file.exists():
        return dict(json.loads(config_file.read_text()))
    return {}


def save_config(config: dict[str, Any]) -> None:
    """Save configuration to config file."""
    config_file = get_config_file()
    config_file.parent.mkdir(parents=True, exist_ok=True)
    config_file.write_text(json.dumps(config, indent=2))


def get_remote_config(config: dict[str, Any] | None = None) -> RemoteConfig | None:
    """Build the remote store settings.

    Environment variables take precedence over the config file.

    Returns:
        RemoteConfig, or None when no backend URL is known.
    """
    from_env = RemoteConfig.from_env()
    if from_env is not None:
        return from_env

    config = load_config() if config is None else config
    if not config.get("supabase_url"):
        return None
    return RemoteConfig(
        url=config["supabase_url"],
        api_key=config.get("api_key", ""),
        access_token=config.get("access_token") or None,
        bucket=config.get("bucket", DEFAULT_BUCKET),
    )


def setup_logging(verbose: bool = False) -> None:
    """Configure logging for the curiosync logger hierarchy.

    Args:
        verbose: Log debug messages instead of warnings only.
    """
    log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    root_logger = logging.getLogger("curiosync")
    root_logger.setLevel(logging.DEBUG if verbose else logging.WARNING)

    # Avoid stacking handlers when invoked repeatedly (tests)
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setFormatter(logging.Formatter(log_format))
    root_logger.addHandler(stderr_handler)
