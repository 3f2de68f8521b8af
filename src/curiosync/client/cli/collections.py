"""Local collection commands for the curio CLI.

Commands:
- list: Show collections held in the local store
- export: Dump the local store as JSON
- import: Load collections from a JSON file into the local store
- push: Upload local-only collections to the cloud
- cleanup: Remove photo blobs no item refers to
- status: Show seed version, last sync time and pending writes
"""

from __future__ import annotations

import json
import sys
from datetime import datetime
from pathlib import Path

import click

from curiosync.client.cli.config import get_remote_config, get_store_path, load_config
from curiosync.client.state import LocalStore
from curiosync.core.models import Collection
from curiosync.core.types import CurioError


def _open_store() -> LocalStore:
    return LocalStore(get_store_path())


@click.command(name="list")
def list_collections() -> None:
    """Show collections held in the local store."""
    with _open_store() as store:
        collections = store.get_local_collections()

    if not collections:
        click.echo("No collections.")
        return
    for collection in collections:
        marker = "" if collection.owner_id else " (local only)"
        click.echo(
            f"{collection.icon} {collection.name} [{collection.id}] "
            f"- {len(collection.items)} items{marker}"
        )


@click.command()
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Write to a file instead of stdout.",
)
def export(output: Path | None) -> None:
    """Dump the local store as JSON."""
    with _open_store() as store:
        collections = store.get_local_collections()

    text = json.dumps([c.to_dict() for c in collections], indent=2, ensure_ascii=False)
    if output is None:
        click.echo(text)
    else:
        output.write_text(text, encoding="utf-8")
        click.echo(f"Exported {len(collections)} collections to {output}")


@click.command(name="import")
@click.argument("source", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def import_collections(source: Path) -> None:
    """Load collections from a JSON file into the local store."""
    try:
        data = json.loads(source.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        click.echo(f"Error: {source} is not valid JSON: {e}", err=True)
        sys.exit(1)
    if not isinstance(data, list):
        click.echo("Error: expected a JSON list of collections.", err=True)
        sys.exit(1)

    imported = 0
    with _open_store() as store:
        for entry in data:
            try:
                store.save_collection(Collection.from_dict(entry))
            except CurioError as e:
                click.echo(f"Skipped entry: {e}", err=True)
                continue
            imported += 1
    click.echo(f"Imported {imported} collections.")


@click.command()
def push() -> None:
    """Upload local-only collections to the cloud."""
    from curiosync.client.api import RemoteStore
    from curiosync.client.cli.sync import report_status
    from curiosync.client.sync import Identity, SyncContext, SyncOrchestrator, is_local_only

    config = load_config()
    remote_config = get_remote_config(config)
    if remote_config is None or not remote_config.is_configured or not config.get("user_id"):
        click.echo("Error: cloud backend or signed-in user not configured.", err=True)
        sys.exit(1)

    identity = Identity(config["user_id"], is_admin=bool(config.get("is_admin")))
    with _open_store() as store, RemoteStore(remote_config) as remote:
        orchestrator = SyncOrchestrator(
            SyncContext(local=store, remote=remote), on_status=report_status
        )
        pending = [c for c in store.get_local_collections() if is_local_only(c)]
        for collection in pending:
            orchestrator.save_collection(collection, identity)
        remaining = sum(1 for c in store.get_local_collections() if is_local_only(c))

    click.echo(f"Pushed {len(pending) - remaining} of {len(pending)} local-only collections.")


@click.command()
def cleanup() -> None:
    """Remove photo blobs that no item refers to."""
    with _open_store() as store:
        removed = store.cleanup_orphaned_assets(store.get_local_collections())
    click.echo(f"Removed {removed} orphaned assets.")


@click.command()
def status() -> None:
    """Show seed version, last sync time and pending writes."""
    with _open_store() as store:
        collections = store.get_local_collections()
        seed_version = store.get_seed_version()
        last_sync = store.get_last_sync_at()
        pending = store.list_pending()
        pending_uploads = store.list_pending_assets()
        local_only = store.has_local_only_data()

    click.echo(f"Collections:   {len(collections)}")
    click.echo(f"Local-only:    {'yes' if local_only else 'no'}")
    click.echo(f"Seed version:  {seed_version}")
    if last_sync:
        click.echo(f"Last sync:     {datetime.fromtimestamp(last_sync).isoformat(timespec='seconds')}")
    else:
        click.echo("Last sync:     never")
    click.echo(f"Pending:       {len(pending)}")
    click.echo(f"Uploads:       {len(pending_uploads)}")
