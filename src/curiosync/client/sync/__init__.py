"""Offline-first sync engine.

Architecture:
    LocalStore + RemoteStore -> merge -> SyncOrchestrator

Components:
- **merge**: Pure reconciliation of local and remote snapshots
- **retry**: Bounded retry with backoff for asset uploads
- **SyncOrchestrator**: Load cycles, first-run seeding and dual writes

All public symbols are re-exported here.
"""

from curiosync.client.sync.merge import (
    EPOCH,
    apply_remote_deletions,
    compare_timestamps,
    find_malformed_timestamps,
    has_local_only_data,
    is_local_only,
    merge_collections,
    merge_items,
    parse_timestamp,
)
from curiosync.client.sync.orchestrator import (
    SYNC_PAUSED_MESSAGE,
    Identity,
    LoadResult,
    StatusCallback,
    SyncContext,
    SyncOrchestrator,
)
from curiosync.client.sync.retry import (
    DEFAULT_BACKOFF_MULTIPLIER,
    DEFAULT_INITIAL_BACKOFF,
    DEFAULT_MAX_BACKOFF,
    DEFAULT_MAX_RETRIES,
    RetryPolicy,
    retry_with_backoff,
    upload_with_retry,
)

__all__ = [
    # Merge
    "EPOCH",
    "apply_remote_deletions",
    "compare_timestamps",
    "find_malformed_timestamps",
    "has_local_only_data",
    "is_local_only",
    "merge_collections",
    "merge_items",
    "parse_timestamp",
    # Orchestrator
    "SYNC_PAUSED_MESSAGE",
    "Identity",
    "LoadResult",
    "StatusCallback",
    "SyncContext",
    "SyncOrchestrator",
    # Retry
    "DEFAULT_BACKOFF_MULTIPLIER",
    "DEFAULT_INITIAL_BACKOFF",
    "DEFAULT_MAX_BACKOFF",
    "DEFAULT_MAX_RETRIES",
    "RetryPolicy",
    "retry_with_backoff",
    "upload_with_retry",
]
