"""Command-line interface for curio.

This module provides the main CLI entry point and assembles all commands.

Commands:
- configure: Store backend settings and the signed-in identity
- sync: Fetch, merge and persist collections
- list: Show local collections
- export: Dump the local store as JSON
- import: Load collections from a JSON file
- push: Upload local-only collections
- cleanup: Remove orphaned photo blobs
- status: Show local sync state
"""

from __future__ import annotations

import click

from curiosync.client.cli.collections import (
    cleanup,
    export,
    import_collections,
    list_collections,
    push,
    status,
)
from curiosync.client.cli.config import (
    get_config_dir,
    get_config_file,
    get_remote_config,
    get_store_path,
    load_config,
    save_config,
    setup_logging,
)
from curiosync.client.cli.sync import configure, sync


@click.group()
@click.version_option()
@click.option("--verbose", "-v", is_flag=True, help="Show debug logs.")
def cli(verbose: bool) -> None:
    """curio - offline-first collection tracker."""
    setup_logging(verbose)


# Sync commands
cli.add_command(configure)
cli.add_command(sync)
cli.add_command(push)

# Local store commands
cli.add_command(list_collections)
cli.add_command(export)
cli.add_command(import_collections)
cli.add_command(cleanup)
cli.add_command(status)


def main() -> None:
    """Entry point for the CLI."""
    cli()


__all__ = [
    # Main entry points
    "cli",
    "main",
    # Config utilities
    "get_config_dir",
    "get_config_file",
    "get_remote_config",
    "get_store_path",
    "load_config",
    "save_config",
    "setup_logging",
]
