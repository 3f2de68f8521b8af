"""Merge of local and remote snapshots.

Implements "Newest Wins, Local Preserved":
1. Entities present on both sides: the one with the strictly greater
   ``updated_at`` wins as a whole record. On equal timestamps the remote
   entity wins.
2. Entities present only remotely are taken as-is.
3. Entities present only locally are always kept.

Result order is remote order first, then local-only entities in local order.
The functions here are pure: no I/O, inputs are never mutated.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from datetime import UTC, datetime
from typing import Protocol, TypeVar

from curiosync.core.models import Collection, Item

EPOCH = datetime(1970, 1, 1, tzinfo=UTC)

# "2024" and "2024-01" are accepted as the first instant of that year/month
_PARTIAL_DATE = re.compile(r"^(\d{4})(?:-(\d{2}))?$")


class Timestamped(Protocol):
    """Anything the merge can reconcile."""

    id: str
    updated_at: str | None


T = TypeVar("T", bound=Timestamped)


def _try_parse(value: object) -> datetime | None:
    """Parse an ISO-8601 timestamp, returning None when it is not one."""
    if not isinstance(value, str):
        return None
    text = value.strip()
    if not text:
        return None

    partial = _PARTIAL_DATE.match(text)
    if partial:
        year, month = partial.groups()
        try:
            return datetime(int(year), int(month or 1), 1, tzinfo=UTC)
        except ValueError:
            return None

    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def parse_timestamp(value: str | None) -> datetime:
    """Parse a timestamp into a comparable instant.

    Missing, blank or malformed values are treated as the epoch so that
    they always lose against a real timestamp. Naive values are read as UTC.

    Args:
        value: ISO-8601 string or None.

    Returns:
        Timezone-aware datetime.
    """
    parsed = _try_parse(value)
    return parsed if parsed is not None else EPOCH


def compare_timestamps(a: str | None, b: str | None) -> int:
    """Compare two timestamps.

    Returns:
        1 if ``a`` is newer, -1 if ``b`` is newer, 0 if they are the same instant.
    """
    left = parse_timestamp(a)
    right = parse_timestamp(b)
    if left > right:
        return 1
    if left < right:
        return -1
    return 0


def find_malformed_timestamps(entities: Iterable[Timestamped]) -> list[str]:
    """List ids of entities whose ``updated_at`` is set but unparseable.

    Missing or blank timestamps are not reported; they are a normal state
    for legacy records. Non-string values (e.g. epoch numbers from an
    imported file) are reported.
    """
    return [
        entity.id
        for entity in entities
        if _is_set(entity.updated_at) and _try_parse(entity.updated_at) is None
    ]


def _is_set(value: object) -> bool:
    if isinstance(value, str):
        return bool(value.strip())
    return value is not None


def _merge(local: Sequence[T], remote: Sequence[T]) -> list[T]:
    local_by_id = {entity.id: entity for entity in local}
    merged: dict[str, T] = {}

    for remote_entity in remote:
        local_entity = local_by_id.get(remote_entity.id)
        if (
            local_entity is not None
            and compare_timestamps(local_entity.updated_at, remote_entity.updated_at) > 0
        ):
            merged[remote_entity.id] = local_entity
        else:
            merged[remote_entity.id] = remote_entity

    remote_ids = set(merged)
    for local_entity in local:
        if local_entity.id not in remote_ids:
            merged[local_entity.id] = local_by_id[local_entity.id]

    return list(merged.values())


def merge_collections(
    local: Sequence[Collection],
    remote: Sequence[Collection],
) -> list[Collection]:
    """Merge local and remote collection snapshots.

    The winning collection replaces the other one entirely, including its
    items; item lists are not merged per item.

    Args:
        local: Collections read from the local store.
        remote: Collections fetched from the remote store.

    Returns:
        Merged collections, remote order first, then local-only ones.
    """
    return _merge(local, remote)


def merge_items(local: Sequence[Item], remote: Sequence[Item]) -> list[Item]:
    """Merge local and remote item snapshots.

    Items are reconciled independently of whether their collection exists
    on either side.
    """
    return _merge(local, remote)


def is_local_only(collection: Collection) -> bool:
    """Check if a collection has never been synced (no owner recorded)."""
    return not collection.owner_id


def has_local_only_data(
    local: Sequence[Collection],
    remote: Sequence[Collection] | None = None,
) -> bool:
    """Check if the local snapshot holds data the remote store has never seen.

    Args:
        local: Local collections.
        remote: Remote collections, if a fetch succeeded. A local-only
            collection that somehow already appears remotely is not counted.

    Returns:
        True if at least one local collection is local-only.
    """
    if remote is None:
        return any(is_local_only(c) for c in local)
    remote_ids = {c.id for c in remote}
    return any(is_local_only(c) and c.id not in remote_ids for c in local)


def apply_remote_deletions(
    local: Sequence[Collection],
    remote: Sequence[Collection],
) -> list[Collection]:
    """Drop previously-synced local collections that are gone remotely.

    Optional caller-side policy for "remote deletion wins"; apply it before
    ``merge_collections``. Local-only collections are never dropped.
    """
    remote_ids = {c.id for c in remote}
    return [c for c in local if is_local_only(c) or c.id in remote_ids]
