"""Data model for collections and items.

This module provides:
- FieldDefinition: A custom field declared by a collection
- CollectionSettings: Which fields show in list and badge views
- Item: One catalogued object
- Collection: A named grouping of items

All entities serialize to the camelCase JSON shape kept in the local store
(``to_dict``/``from_dict``). The ``data`` payload of an item is an opaque
mapping keyed by field id; nothing in the sync engine inspects it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

FIELD_TYPES = ("text", "long_text", "number", "date", "boolean", "rating", "select")


def utc_now_iso() -> str:
    """Current time as an ISO-8601 string with millisecond precision."""
    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass
class FieldDefinition:
    """Custom field declared by a collection template or by the user."""

    id: str
    label: str
    type: str = "text"
    options: list[str] | None = None
    required: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FieldDefinition:
        """Create from a JSON dictionary."""
        return cls(
            id=data["id"],
            label=data.get("label", data["id"]),
            type=data.get("type", "text"),
            options=list(data["options"]) if data.get("options") else None,
            required=bool(data.get("required", False)),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON dictionary."""
        result: dict[str, Any] = {"id": self.id, "label": self.label, "type": self.type}
        if self.options is not None:
            result["options"] = list(self.options)
        if self.required:
            result["required"] = True
        return result


@dataclass
class CollectionSettings:
    """Display settings of a collection."""

    display_fields: list[str] = field(default_factory=list)
    badge_fields: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> CollectionSettings:
        """Create from a JSON dictionary (missing keys default to empty)."""
        data = data or {}
        return cls(
            display_fields=list(data.get("displayFields", [])),
            badge_fields=list(data.get("badgeFields", [])),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON dictionary."""
        return {
            "displayFields": list(self.display_fields),
            "badgeFields": list(self.badge_fields),
        }


@dataclass
class Item:
    """An item catalogued in exactly one collection.

    Attributes:
        id: Unique identifier.
        collection_id: Identifier of the owning collection.
        title: Display title.
        notes: Free-text notes.
        rating: Numeric rating (0-5).
        data: Custom field values keyed by field id.
        photo_url: Reference to the stored photo asset.
        created_at: Creation timestamp (ISO-8601).
        updated_at: Last-modified timestamp (ISO-8601), if known.
        seed_key: Stable key of a seeded item.
    """

    id: str
    collection_id: str
    title: str = ""
    notes: str = ""
    rating: int = 0
    data: dict[str, Any] = field(default_factory=dict)
    photo_url: str = ""
    created_at: str = ""
    updated_at: str | None = None
    seed_key: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Item:
        """Create from a JSON dictionary."""
        return cls(
            id=data.get("id") or "",
            collection_id=data.get("collectionId") or "",
            title=data.get("title") or "",
            notes=data.get("notes") or "",
            rating=int(data.get("rating") or 0),
            data=dict(data.get("data") or {}),
            photo_url=data.get("photoUrl") or "",
            created_at=data.get("createdAt") or "",
            updated_at=data.get("updatedAt"),
            seed_key=data.get("seedKey"),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON dictionary."""
        result: dict[str, Any] = {
            "id": self.id,
            "collectionId": self.collection_id,
            "title": self.title,
            "notes": self.notes,
            "rating": self.rating,
            "data": dict(self.data),
            "photoUrl": self.photo_url,
            "createdAt": self.created_at,
        }
        if self.updated_at is not None:
            result["updatedAt"] = self.updated_at
        if self.seed_key is not None:
            result["seedKey"] = self.seed_key
        return result


@dataclass
class Collection:
    """A named grouping of items.

    A collection without ``owner_id`` has never been written to the remote
    store (it is local-only).
    """

    id: str
    template_id: str
    name: str
    icon: str = ""
    custom_fields: list[FieldDefinition] = field(default_factory=list)
    items: list[Item] = field(default_factory=list)
    settings: CollectionSettings = field(default_factory=CollectionSettings)
    updated_at: str | None = None
    owner_id: str | None = None
    is_public: bool = False
    is_locked: bool = False
    seed_key: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Collection:
        """Create from a JSON dictionary."""
        return cls(
            id=data.get("id") or "",
            template_id=data.get("templateId") or "general",
            name=data.get("name") or "",
            icon=data.get("icon") or "",
            custom_fields=[FieldDefinition.from_dict(f) for f in data.get("customFields") or []],
            items=[Item.from_dict(i) for i in data.get("items") or []],
            settings=CollectionSettings.from_dict(data.get("settings")),
            updated_at=data.get("updatedAt"),
            owner_id=data.get("ownerId"),
            is_public=bool(data.get("isPublic", False)),
            is_locked=bool(data.get("isLocked", False)),
            seed_key=data.get("seedKey"),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON dictionary."""
        result: dict[str, Any] = {
            "id": self.id,
            "templateId": self.template_id,
            "name": self.name,
            "icon": self.icon,
            "customFields": [f.to_dict() for f in self.custom_fields],
            "items": [i.to_dict() for i in self.items],
            "settings": self.settings.to_dict(),
            "isPublic": self.is_public,
        }
        if self.updated_at is not None:
            result["updatedAt"] = self.updated_at
        if self.owner_id is not None:
            result["ownerId"] = self.owner_id
        if self.is_locked:
            result["isLocked"] = True
        if self.seed_key is not None:
            result["seedKey"] = self.seed_key
        return result
