"""HTTP client for the cloud backend (Supabase REST + Storage).

This module provides:
- RemoteStore: HTTP client for reading and upserting collections and items,
  and uploading photo assets
- Wire translation between the internal model and the remote row shape
- Storage path derivation and normalization

Errors are never swallowed here: transport failures raise
RemoteUnavailableError, error responses raise APIError/AuthenticationError.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any
from urllib.parse import unquote

import httpx

from curiosync.core.config import RemoteConfig
from curiosync.core.models import Collection, CollectionSettings, FieldDefinition, Item
from curiosync.core.types import APIError, AuthenticationError, RemoteUnavailableError

logger = logging.getLogger(__name__)

COLLECTIONS_TABLE = "collections"
ITEMS_TABLE = "items"

_EXTERNAL_PREFIXES = ("http://", "https://", "data:", "blob:", "/")
_STORAGE_URL = re.compile(r"/storage/v1/object/(?:public/|sign/)?[^/]+/([^?#]+)")
_VARIANT = re.compile(r"([/_])(original|display|master|thumb)(\.[A-Za-z0-9]+)$", re.IGNORECASE)


# === Storage paths ===


def asset_path(owner_id: str, collection_id: str, item_id: str, kind: str) -> str:
    """Derive the storage path of one resolution of an item photo.

    Args:
        owner_id: Authenticated owner identifier.
        collection_id: Collection the item belongs to.
        item_id: Item identifier.
        kind: "original" or "display".

    Returns:
        ``{owner}/collections/{collection}/{item}/{kind}.jpg``
    """
    if kind not in ("original", "display"):
        raise ValueError(f"Unknown asset kind: {kind}")
    return f"{owner_id}/collections/{collection_id}/{item_id}/{kind}.jpg"


@dataclass(frozen=True)
class PhotoPaths:
    """Storage paths of both resolutions of a photo."""

    original_path: str
    display_path: str


def normalize_photo_paths(path: str | None) -> PhotoPaths:
    """Derive the original/display path pair from any stored photo reference.

    Handles:
    - Storage object URLs (public, signed or plain), reduced to the object path
    - ``original``/``display`` file names, with ``/`` or ``_`` separators
    - Legacy ``master``/``thumb`` file names
    - External, data and blob URLs and unknown formats, returned unchanged
    """
    if not path:
        return PhotoPaths("", "")

    storage_match = _STORAGE_URL.search(path)
    if storage_match:
        raw = storage_match.group(1)
        try:
            path = unquote(raw, errors="strict")
        except UnicodeDecodeError:
            path = raw
    elif path.startswith(_EXTERNAL_PREFIXES):
        return PhotoPaths(path, path)

    match = _VARIANT.search(path)
    if match is None:
        return PhotoPaths(path, path)

    sep, variant, ext = match.groups()
    prefix = path[: match.start()]
    original = f"{prefix}{sep}original{ext}"
    display = f"{prefix}{sep}display{ext}"
    variant = variant.lower()
    if variant == "display":
        return PhotoPaths(original, path)
    if variant == "original":
        return PhotoPaths(path, display)
    return PhotoPaths(original, display)


# === Wire translation ===


def item_to_row(item: Item, owner_id: str) -> dict[str, Any]:
    """Convert an item to its remote row shape."""
    original_path: str | None = None
    display_path: str | None = None
    if item.photo_url:
        if item.photo_url.startswith(_EXTERNAL_PREFIXES):
            paths = normalize_photo_paths(item.photo_url)
            original_path, display_path = paths.original_path, paths.display_path
        else:
            original_path = asset_path(owner_id, item.collection_id, item.id, "original")
            display_path = asset_path(owner_id, item.collection_id, item.id, "display")
    return {
        "id": item.id,
        "user_id": owner_id,
        "collection_id": item.collection_id,
        "title": item.title,
        "notes": item.notes,
        "rating": item.rating,
        "data": dict(item.data),
        "photo_original_path": original_path,
        "photo_display_path": display_path,
        "seed_key": item.seed_key,
        "created_at": item.created_at or None,
        "updated_at": item.updated_at or item.created_at or None,
    }


def collection_to_row(collection: Collection, owner_id: str) -> dict[str, Any]:
    """Convert a collection to its remote row shape (items excluded)."""
    return {
        "id": collection.id,
        "user_id": owner_id,
        "template_id": collection.template_id,
        "name": collection.name,
        "icon": collection.icon,
        "custom_fields": [f.to_dict() for f in collection.custom_fields],
        "settings": collection.settings.to_dict(),
        "is_public": collection.is_public,
        "seed_key": collection.seed_key,
        "updated_at": collection.updated_at,
    }


def item_from_row(row: dict[str, Any]) -> Item:
    """Create an item from a remote row."""
    return Item(
        id=row["id"],
        collection_id=row["collection_id"],
        title=row.get("title") or "",
        notes=row.get("notes") or "",
        rating=int(row.get("rating") or 0),
        data=dict(row.get("data") or {}),
        photo_url=row.get("photo_display_path") or row.get("photo_path") or "",
        created_at=row.get("created_at") or "",
        updated_at=row.get("updated_at"),
        seed_key=row.get("seed_key"),
    )


def collection_from_row(row: dict[str, Any]) -> Collection:
    """Create a collection (with embedded items, if selected) from a remote row."""
    return Collection(
        id=row["id"],
        template_id=row.get("template_id") or "general",
        name=row.get("name") or "",
        icon=row.get("icon") or "",
        custom_fields=[FieldDefinition.from_dict(f) for f in row.get("custom_fields") or []],
        items=[item_from_row(i) for i in row.get("items") or []],
        settings=CollectionSettings.from_dict(row.get("settings")),
        updated_at=row.get("updated_at"),
        owner_id=row.get("user_id"),
        is_public=bool(row.get("is_public", False)),
        seed_key=row.get("seed_key"),
    )


# === Client ===


class RemoteStore:
    """HTTP client for the cloud backend."""

    def __init__(self, config: RemoteConfig) -> None:
        """Initialize the remote store client.

        Args:
            config: Connection settings.
        """
        self._config = config
        self._client = httpx.Client(
            timeout=config.timeout,
            headers={
                "apikey": config.api_key,
                "Authorization": f"Bearer {config.access_token or config.api_key}",
            },
        )

    @property
    def config(self) -> RemoteConfig:
        """Connection settings."""
        return self._config

    def close(self) -> None:
        """Close the HTTP client."""
        self._client.close()

    def __enter__(self) -> RemoteStore:
        """Context manager entry."""
        return self

    def __exit__(self, *args: object) -> None:
        """Context manager exit."""
        self.close()

    def _handle_response(self, response: httpx.Response) -> httpx.Response:
        """Handle API response and raise appropriate exceptions."""
        if response.status_code in (401, 403):
            raise AuthenticationError("Invalid or expired token")
        if response.status_code >= 400:
            try:
                body = response.json()
            except ValueError:
                body = None
            if isinstance(body, dict):
                detail = body.get("message") or body.get("error") or "Unknown error"
            else:
                detail = response.text or "Unknown error"
            raise APIError(detail, response.status_code)
        return response

    def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """Send a request, turning transport failures into RemoteUnavailableError."""
        try:
            response = self._client.request(method, url, **kwargs)
        except httpx.RequestError as e:
            raise RemoteUnavailableError(f"Cloud backend unreachable: {e}") from e
        return self._handle_response(response)

    # === Health check ===

    def health_check(self) -> bool:
        """Check if the backend is reachable.

        Returns:
            True if the REST endpoint answers.
        """
        try:
            response = self._client.get(f"{self._config.rest_url}/")
            return response.status_code == 200
        except httpx.RequestError:
            return False

    # === Reads ===

    def fetch_cloud_collections(
        self,
        user_id: str | None = None,
        include_public: bool = True,
    ) -> list[Collection]:
        """Fetch the collections visible to a user, items embedded.

        Args:
            user_id: Owner whose collections to fetch.
            include_public: Also fetch public collections of any owner.

        Returns:
            Collections from the remote store.

        Raises:
            RemoteUnavailableError: Network or authentication failure.
            APIError: The backend rejected the query.
        """
        params = {"select": "*,items(*)", "order": "created_at.asc"}
        if user_id and include_public:
            params["or"] = f"(user_id.eq.{user_id},is_public.eq.true)"
        elif user_id:
            params["user_id"] = f"eq.{user_id}"
        elif include_public:
            params["is_public"] = "eq.true"
        else:
            return []

        response = self._request(
            "GET", f"{self._config.rest_url}/{COLLECTIONS_TABLE}", params=params
        )
        rows = response.json()
        logger.debug(f"Fetched {len(rows)} collections from cloud")
        return [collection_from_row(row) for row in rows]

    # === Writes ===

    def _upsert(self, table: str, payload: dict[str, Any] | list[dict[str, Any]]) -> None:
        self._request(
            "POST",
            f"{self._config.rest_url}/{table}",
            json=payload,
            headers={"Prefer": "resolution=merge-duplicates,return=minimal"},
        )

    def upsert_collection(self, payload: dict[str, Any]) -> None:
        """Insert or update one collection row."""
        self._upsert(COLLECTIONS_TABLE, payload)

    def upsert_items(self, payloads: list[dict[str, Any]]) -> None:
        """Insert or update item rows. An empty list sends nothing."""
        if not payloads:
            return
        self._upsert(ITEMS_TABLE, payloads)

    def push_collection(self, collection: Collection, owner_id: str) -> None:
        """Upsert a collection and all its items under ``owner_id``."""
        self.upsert_collection(collection_to_row(collection, owner_id))
        self.upsert_items([item_to_row(item, owner_id) for item in collection.items])

    def upload_asset(
        self,
        path: str,
        blob: bytes,
        content_type: str = "image/jpeg",
    ) -> dict[str, str]:
        """Upload (or overwrite) a binary object.

        Args:
            path: Object path inside the bucket.
            blob: Object content.
            content_type: MIME type of the content.

        Returns:
            ``{"path": path}``
        """
        self._request(
            "POST",
            f"{self._config.storage_url}/object/{self._config.bucket}/{path}",
            content=blob,
            headers={"Content-Type": content_type, "x-upsert": "true"},
        )
        return {"path": path}
