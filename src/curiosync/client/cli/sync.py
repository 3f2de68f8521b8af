"""Sync and configure commands for the curio CLI.

Commands:
- configure: Store backend settings and the signed-in identity
- sync: Run one load cycle (fetch, merge, persist) and flush pending writes
"""

from __future__ import annotations

import sys

import click

from curiosync.client.cli.config import (
    get_remote_config,
    get_store_path,
    load_config,
    save_config,
)
from curiosync.core.types import CurioError, StatusKey, StatusTone

STATUS_MESSAGES = {
    StatusKey.SYNCED: "Collections synced.",
    StatusKey.SYNC_PAUSED: "Sync paused: working from the local copy.",
    StatusKey.SYNC_ERROR: "Cloud save failed; the change is kept locally and queued.",
    StatusKey.UPLOAD_FAILED: "Photo upload failed; the photo is kept locally.",
    StatusKey.PENDING_SYNCED: "Queued changes synced.",
}


def report_status(key: StatusKey, tone: StatusTone) -> None:
    """Print a status notice from the orchestrator."""
    message = STATUS_MESSAGES.get(key, str(key))
    click.echo(f"[{tone.value}] {message}", err=tone == StatusTone.ERROR)


@click.command()
@click.option("--url", help="Cloud backend URL (e.g. https://abc.supabase.co).")
@click.option("--key", "api_key", help="Publishable (anon) key.")
@click.option("--token", "access_token", help="Access token of the signed-in user.")
@click.option("--user-id", help="Identifier of the signed-in user.")
@click.option("--admin/--no-admin", default=None, help="Whether the user owns the seed data.")
@click.option("--sign-out", is_flag=True, help="Forget the signed-in user.")
def configure(
    url: str | None,
    api_key: str | None,
    access_token: str | None,
    user_id: str | None,
    admin: bool | None,
    sign_out: bool,
) -> None:
    """Store backend settings and the signed-in identity."""
    config = load_config()
    updates = {
        "supabase_url": url,
        "api_key": api_key,
        "access_token": access_token,
        "user_id": user_id,
        "is_admin": admin,
    }
    config.update({k: v for k, v in updates.items() if v is not None})
    if sign_out:
        for key in ("user_id", "access_token", "is_admin"):
            config.pop(key, None)
    save_config(config)
    click.echo("Configuration saved.")


@click.command()
@click.option("--offline", is_flag=True, help="Skip the cloud and read the local store only.")
@click.option(
    "--flush-pending/--no-flush-pending",
    default=True,
    help="Retry queued cloud writes before loading.",
)
def sync(offline: bool, flush_pending: bool) -> None:
    """Fetch cloud collections, merge them with the local store and persist."""
    from curiosync.client.api import RemoteStore
    from curiosync.client.seed import initial_collections
    from curiosync.client.state import LocalStore
    from curiosync.client.sync import Identity, SyncContext, SyncOrchestrator
    from curiosync.core.types import LoadState

    config = load_config()
    remote_config = None if offline else get_remote_config(config)
    remote = None
    if remote_config is not None and remote_config.is_configured:
        remote = RemoteStore(remote_config)
    elif remote_config is not None:
        click.echo("Warning: cloud backend is not fully configured, staying offline.", err=True)

    identity = None
    if config.get("user_id"):
        identity = Identity(config["user_id"], is_admin=bool(config.get("is_admin")))

    local = LocalStore(get_store_path())
    orchestrator = SyncOrchestrator(SyncContext(local=local, remote=remote), on_status=report_status)

    try:
        if flush_pending:
            orchestrator.sync_pending(identity)
        fallback = initial_collections() if identity is None else []
        result = orchestrator.load(identity, fallback=fallback)
    except CurioError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    finally:
        local.close()
        if remote is not None:
            remote.close()

    item_count = sum(len(c.items) for c in result.collections)
    click.echo(f"{len(result.collections)} collections, {item_count} items ({result.state.value})")
    if result.has_local_import:
        click.echo("Local-only collections found; they will be uploaded when saved.")
    if result.state == LoadState.DEGRADED:
        click.echo(f"Note: {result.load_error}", err=True)
