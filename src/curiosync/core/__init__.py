"""Core module - Shared data model, configuration and types."""

from curiosync.core.config import DEFAULT_BUCKET, RemoteConfig
from curiosync.core.models import (
    FIELD_TYPES,
    Collection,
    CollectionSettings,
    FieldDefinition,
    Item,
    utc_now_iso,
)
from curiosync.core.templates import TEMPLATES, CollectionTemplate, get_template
from curiosync.core.types import (
    APIError,
    AuthenticationError,
    CurioError,
    LoadState,
    LocalStoreError,
    RemoteError,
    RemoteUnavailableError,
    RemoteWriteError,
    StatusKey,
    StatusTone,
    TransientUploadError,
    ValidationError,
)

__all__ = [
    # Config
    "DEFAULT_BUCKET",
    "RemoteConfig",
    # Models
    "FIELD_TYPES",
    "Collection",
    "CollectionSettings",
    "FieldDefinition",
    "Item",
    "utc_now_iso",
    # Templates
    "TEMPLATES",
    "CollectionTemplate",
    "get_template",
    # Types
    "APIError",
    "AuthenticationError",
    "CurioError",
    "LoadState",
    "LocalStoreError",
    "RemoteError",
    "RemoteUnavailableError",
    "RemoteWriteError",
    "StatusKey",
    "StatusTone",
    "TransientUploadError",
    "ValidationError",
]
