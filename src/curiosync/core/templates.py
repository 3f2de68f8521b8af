"""Built-in collection templates.

A template is the category type of a collection: it provides the default
custom fields and which of them show on cards and badges.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from curiosync.core.models import CollectionSettings, FieldDefinition


@dataclass(frozen=True)
class CollectionTemplate:
    """Category type a collection is created from."""

    id: str
    name: str
    icon: str
    description: str
    accent_color: str
    fields: tuple[FieldDefinition, ...] = field(default_factory=tuple)
    display_fields: tuple[str, ...] = ()
    badge_fields: tuple[str, ...] = ()

    def default_fields(self) -> list[FieldDefinition]:
        """Fresh copies of the template fields for a new collection."""
        return [FieldDefinition.from_dict(f.to_dict()) for f in self.fields]

    def default_settings(self) -> CollectionSettings:
        """Display settings for a new collection."""
        return CollectionSettings(
            display_fields=list(self.display_fields),
            badge_fields=list(self.badge_fields),
        )


def _f(id: str, label: str, type: str = "text", options: list[str] | None = None) -> FieldDefinition:
    return FieldDefinition(id=id, label=label, type=type, options=options)


TEMPLATES: tuple[CollectionTemplate, ...] = (
    CollectionTemplate(
        id="general",
        name="General / Mixed",
        icon="✨",
        description="For anything: tickets, receipts, stamps, etc.",
        accent_color="stone",
        fields=(
            _f("brand", "Brand/Issuer"),
            _f("category", "Category"),
            _f("date", "Date", "date"),
            _f("location", "Location"),
        ),
        display_fields=("brand", "date"),
        badge_fields=("category",),
    ),
    CollectionTemplate(
        id="chocolate",
        name="Chocolate",
        icon="🍫",
        description="Bars, truffles, and cacao finds.",
        accent_color="orange",
        fields=(
            _f("brand", "Maker"),
            _f("cocoa_percent", "Cocoa %", "number"),
            _f("origin", "Bean Origin"),
            _f("flavor_notes", "Flavor Notes"),
            _f("type", "Type", "select", ["Dark", "Milk", "White", "Inclusion"]),
        ),
        display_fields=("brand", "cocoa_percent"),
        badge_fields=("type", "origin"),
    ),
    CollectionTemplate(
        id="vinyl",
        name="Vinyl Records",
        icon="🎵",
        description="LPs, EPs, and singles.",
        accent_color="indigo",
        fields=(
            _f("artist", "Artist"),
            _f("label", "Record Label"),
            _f("year", "Release Year", "number"),
            _f("genre", "Genre"),
            _f("condition", "Condition", "select", ["Mint", "Near Mint", "Very Good", "Good", "Fair"]),
        ),
        display_fields=("artist", "year"),
        badge_fields=("genre", "condition"),
    ),
    CollectionTemplate(
        id="perfume",
        name="Fragrances",
        icon="✨",
        description="Perfumes, colognes, and scents.",
        accent_color="rose",
        fields=(
            _f("house", "House"),
            _f("concentration", "Concentration", "select", ["Parfum", "EDP", "EDT", "Cologne"]),
            _f("main_accords", "Main Accords"),
            _f("nose", "Perfumer"),
        ),
        display_fields=("house", "concentration"),
        badge_fields=("main_accords",),
    ),
    CollectionTemplate(
        id="sneakers",
        name="Sneakers",
        icon="👟",
        description="Kicks, grails, and beaters.",
        accent_color="emerald",
        fields=(
            _f("brand", "Brand"),
            _f("model", "Model"),
            _f("colorway", "Colorway"),
            _f("size", "Size", "number"),
        ),
        display_fields=("model", "size"),
        badge_fields=("brand",),
    ),
)


def get_template(template_id: str) -> CollectionTemplate:
    """Look up a template by id.

    Unknown ids fall back to the general template.
    """
    for template in TEMPLATES:
        if template.id == template_id:
            return template
    return TEMPLATES[0]
