"""Tests for first-run sample data."""

from curiosync.client.seed import CURRENT_SEED_VERSION, SEED_IMAGE_PATH, initial_collections


class TestInitialCollections:
    """Tests for initial_collections."""

    def test_seed_version_is_positive(self) -> None:
        assert CURRENT_SEED_VERSION >= 1

    def test_entities_have_ids_and_timestamps(self) -> None:
        collections = initial_collections("2024-01-01T00:00:00.000Z")

        assert collections
        for collection in collections:
            assert collection.id
            assert collection.updated_at == "2024-01-01T00:00:00.000Z"
            assert collection.owner_id is None
            for item in collection.items:
                assert item.id
                assert item.collection_id == collection.id
                assert item.updated_at == "2024-01-01T00:00:00.000Z"
                assert item.photo_url == SEED_IMAGE_PATH

    def test_seed_keys_are_unique(self) -> None:
        items = [i for c in initial_collections() for i in c.items]
        keys = [i.seed_key for i in items]

        assert all(keys)
        assert len(keys) == len(set(keys))

    def test_returns_fresh_objects(self) -> None:
        first = initial_collections()
        first[0].items[0].title = "Changed"

        assert initial_collections()[0].items[0].title != "Changed"
