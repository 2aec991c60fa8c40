"""
Tests for the MongoDB-backed stores (collections mocked).
"""
from unittest.mock import MagicMock, patch

import pytest
from pymongo.errors import ServerSelectionTimeoutError

from stylist_service.core.errors import PersistenceError
from stylist_service.core.models import GeneratedOutfit, ItemAnalysis, Recommendation
from stylist_service.db import mongo, outfits, profiles, wardrobe
from stylist_service.db.store import MongoStore


def _collection(documents=None):
    collection = MagicMock()
    cursor = collection.find.return_value
    cursor.sort.return_value = cursor
    cursor.limit.return_value = cursor
    cursor.__iter__.return_value = iter(documents or [])
    return collection


@pytest.fixture
def sample_outfit():
    return GeneratedOutfit(
        name="Office Classic",
        description="Crisp and simple",
        items=(1, 2),
        occasion="work",
        reasoning="Navy grounds the white shirt",
    )


class TestWardrobeStore:
    """Inventory reads and analysis writes."""

    def test_documents_become_items(self):
        collection = _collection([
            {"item_id": 1, "name": "White Oxford Shirt", "category": "Top", "color": "white"},
            {"item_id": 2, "name": "Navy Chinos", "category": "bottoms"},
        ])

        with patch("stylist_service.db.mongo.get_collection", return_value=collection):
            items = wardrobe.get_wardrobe("user-1")

        assert [item.id for item in items] == [1, 2]
        assert items[0].category == "tops"
        query = collection.find.call_args.args[0]
        assert query == {"owner_user_id": "user-1", "active": {"$ne": False}}

    def test_invalid_and_duplicate_documents_skipped(self):
        collection = _collection([
            {"item_id": 1, "name": "Shirt", "category": "tops"},
            {"name": "No id", "category": "tops"},
            {"item_id": 3, "name": "Cape", "category": "capes"},
            {"item_id": 1, "name": "Shirt again", "category": "tops"},
        ])

        with patch("stylist_service.db.mongo.get_collection", return_value=collection):
            items = wardrobe.get_wardrobe("user-1")

        assert [(item.id, item.name) for item in items] == [(1, "Shirt")]

    def test_unavailable_store_is_empty_wardrobe(self):
        with patch("stylist_service.db.mongo.get_collection", return_value=None):
            assert wardrobe.get_wardrobe("user-1") == []

    def test_stored_analysis_loaded(self):
        collection = _collection([{
            "item_id": 4, "name": "Loafers", "category": "shoes",
            "ai_analysis": {"style_alignment": 70, "color_match": 60, "recommendation": "Keep"},
        }])

        with patch("stylist_service.db.mongo.get_collection", return_value=collection):
            item = wardrobe.get_wardrobe("user-1")[0]

        assert item.ai_analysis.recommendation == "keep"

    def test_attach_analysis(self):
        collection = MagicMock()
        collection.update_one.return_value.matched_count = 1
        analysis = ItemAnalysis(80, 75, "good", "keep", "Versatile")

        with patch("stylist_service.db.mongo.get_collection", return_value=collection):
            assert wardrobe.attach_item_analysis("user-1", 4, analysis) is True

        selector, update = collection.update_one.call_args.args
        assert selector == {"item_id": 4, "owner_user_id": "user-1"}
        assert update["$set"]["ai_analysis"]["recommendation"] == "keep"

    def test_attach_analysis_store_error(self):
        collection = MagicMock()
        collection.update_one.side_effect = ServerSelectionTimeoutError("no servers")
        analysis = ItemAnalysis(80, 75, "good", "keep", "Versatile")

        with patch("stylist_service.db.mongo.get_collection", return_value=collection):
            with pytest.raises(PersistenceError):
                wardrobe.attach_item_analysis("user-1", 4, analysis)


class TestProfileStore:
    """Style profile reads."""

    def test_missing_profile_is_none(self):
        collection = MagicMock()
        collection.find_one.return_value = None

        with patch("stylist_service.db.mongo.get_collection", return_value=collection):
            assert profiles.get_profile("user-1") is None

    def test_profile_lists_coerced(self):
        collection = MagicMock()
        collection.find_one.return_value = {
            "user_id": "user-1", "body_type": "pear", "color_preferences": "olive", "goals": ["comfort", ""],
        }

        with patch("stylist_service.db.mongo.get_collection", return_value=collection):
            profile = profiles.get_profile("user-1")

        assert profile.body_type == "pear"
        assert profile.color_preferences == ("olive",)
        assert profile.goals == ("comfort",)


class TestOutfitStore:
    """Outfit and recommendation writes."""

    def test_each_save_is_a_new_record(self, sample_outfit):
        collection = MagicMock()

        with patch("stylist_service.db.mongo.get_collection", return_value=collection):
            first = outfits.save_outfit("user-1", sample_outfit)
            second = outfits.save_outfit("user-1", sample_outfit)

        assert first.outfit_id != second.outfit_id
        assert collection.insert_one.call_count == 2
        document = collection.insert_one.call_args.args[0]
        assert document["items"] == [1, 2]
        assert document["user_id"] == "user-1"

    def test_save_without_store_raises(self, sample_outfit):
        with patch("stylist_service.db.mongo.get_collection", return_value=None):
            with pytest.raises(PersistenceError):
                outfits.save_outfit("user-1", sample_outfit)

    def test_save_recommendations(self):
        collection = MagicMock()
        recs = [Recommendation("color", "Add camel", "Warm neutral", "high", ("color",), "Fills a gap")]

        with patch("stylist_service.db.mongo.get_collection", return_value=collection):
            assert outfits.save_recommendations("user-1", recs) == 1

        document = collection.insert_many.call_args.args[0][0]
        assert document["tags"] == ["color"]
        assert document["user_id"] == "user-1"

    def test_empty_recommendations_skip_store(self):
        with patch("stylist_service.db.mongo.get_collection") as get_collection:
            assert outfits.save_recommendations("user-1", []) == 0

        get_collection.assert_not_called()

    def test_history_oldest_first(self):
        collection = _collection([{"name": "Newest"}, {"name": "Oldest"}])

        with patch("stylist_service.db.mongo.get_collection", return_value=collection):
            history = outfits.get_outfit_history("user-1", limit=2)

        assert [h["name"] for h in history] == ["Oldest", "Newest"]
        collection.find.return_value.limit.assert_called_once_with(2)


class TestMongoStore:
    """Facade used by the routes."""

    def test_delegates_to_modules(self):
        collection = _collection([{"item_id": 1, "name": "Shirt", "category": "tops"}])

        with patch("stylist_service.db.mongo.get_collection", return_value=collection):
            items = MongoStore().get_wardrobe("user-1")

        assert items[0].name == "Shirt"


class TestConnection:
    """Shared client lifecycle."""

    def test_failed_ping_closes_client(self):
        client = MagicMock()
        client.admin.command.side_effect = ServerSelectionTimeoutError("no servers")

        mongo.reset_connection()
        with patch.object(mongo, "MongoClient", return_value=client):
            assert mongo.connect() is False

        client.close.assert_called_once()
        assert mongo._client is None

    def test_successful_connect_keeps_client(self):
        client = MagicMock()

        mongo.reset_connection()
        try:
            with patch.object(mongo, "MongoClient", return_value=client):
                assert mongo.connect() is True

            client.close.assert_not_called()
            assert mongo._client is client
        finally:
            mongo.reset_connection()
