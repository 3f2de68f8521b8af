"""First-run sample data written for the owner account.

Bump CURRENT_SEED_VERSION whenever INITIAL_COLLECTIONS changes; stores
holding an older seed version are seeded again on their next empty load.
"""

from __future__ import annotations

from curiosync.core.models import Collection, Item, utc_now_iso
from curiosync.core.templates import get_template

CURRENT_SEED_VERSION = 3
SEED_IMAGE_PATH = "assets/sample-vinyl.jpg"

_VINYL = [
    (
        "seed-vinyl-1",
        "kind_of_blue_seed",
        "Kind of Blue",
        5,
        {"artist": "Miles Davis", "label": "Columbia", "year": 1959,
         "genre": "Modal Jazz", "speed": "33 1/3 RPM", "condition": "Mint (M)"},
        "The definitive statement of modal jazz. This 180g pressing keeps the "
        "cymbals airy and the bass warm, with space around every phrase.",
    ),
    (
        "seed-vinyl-2",
        "a_love_supreme_seed",
        "A Love Supreme",
        5,
        {"artist": "John Coltrane", "label": "Impulse!", "year": 1965,
         "genre": "Spiritual Jazz", "speed": "33 1/3 RPM", "condition": "Near Mint (NM)"},
        "Coltrane's four-part suite is both devotional and urgent. Keep it in a "
        "poly-lined sleeve; the quiet passages reward careful handling.",
    ),
    (
        "seed-vinyl-3",
        "whats_going_on_seed",
        "What's Going On",
        5,
        {"artist": "Marvin Gaye", "label": "Tamla", "year": 1971,
         "genre": "Soul", "speed": "33 1/3 RPM", "condition": "Very Good Plus (VG+)"},
        "A lush, cinematic mix of protest and prayer. The original gatefold is "
        "worth preserving.",
    ),
    (
        "seed-vinyl-4",
        "rumours_seed",
        "Rumours",
        4,
        {"artist": "Fleetwood Mac", "label": "Warner Bros.", "year": 1977,
         "genre": "Soft Rock", "speed": "33 1/3 RPM", "condition": "Near Mint (NM)"},
        "An immaculate pop-rock masterclass with a wide, punchy stereo image.",
    ),
    (
        "seed-vinyl-5",
        "discovery_seed",
        "Discovery",
        4,
        {"artist": "Daft Punk", "label": "Virgin", "year": 2001,
         "genre": "French House", "speed": "33 1/3 RPM", "condition": "Very Good Plus (VG+)"},
        "A shimmering, forward-looking press with crisp transients.",
    ),
]


def initial_collections(timestamp: str | None = None) -> list[Collection]:
    """Build the seed collections.

    Args:
        timestamp: Creation/update time stamped on every seeded entity
            (defaults to now).

    Returns:
        Fresh Collection objects, safe to modify.
    """
    stamp = timestamp or utc_now_iso()
    vinyl = get_template("vinyl")
    items = [
        Item(
            id=item_id,
            collection_id="sample-vinyl",
            title=title,
            notes=notes,
            rating=rating,
            data=dict(data),
            photo_url=SEED_IMAGE_PATH,
            created_at=stamp,
            updated_at=stamp,
            seed_key=seed_key,
        )
        for item_id, seed_key, title, rating, data, notes in _VINYL
    ]
    return [
        Collection(
            id="sample-vinyl",
            template_id=vinyl.id,
            name="The Vinyl Vault",
            icon="🎷",
            custom_fields=vinyl.default_fields(),
            items=items,
            settings=vinyl.default_settings(),
            updated_at=stamp,
            seed_key="master_vinyl_seed",
        )
    ]
