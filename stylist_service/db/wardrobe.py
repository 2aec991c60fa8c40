"""
Wardrobe Store Module (v2.3.0)
Reads a user's wardrobe inventory and records per-item AI analysis.
"""
import logging
from typing import List

from pymongo.errors import PyMongoError

from stylist_service.core.errors import PersistenceError
from stylist_service.core.models import ItemAnalysis, WardrobeItem
from stylist_service.db import mongo

logger = logging.getLogger(__name__)

WARDROBE_COLLECTION = "wardrobe_items"


def get_wardrobe(user_id: str) -> List[WardrobeItem]:
    """
    Get a user's active wardrobe items, ordered by item id.

    Documents that cannot be turned into a WardrobeItem (missing id, unknown
    category) are skipped and logged. A repeated id keeps its first document.

    Returns:
        List of items; empty for users without items or when MongoDB is down
    """
    try:
        collection = mongo.get_collection(WARDROBE_COLLECTION)
        if collection is None:
            logger.warning(f"MongoDB unavailable, empty wardrobe for user {user_id}")
            return []

        cursor = collection.find(
            {"owner_user_id": user_id, "active": {"$ne": False}},
            {"_id": 0}
        ).sort("item_id", 1)
        documents = list(cursor)

    except PyMongoError as e:
        logger.error(f"Failed to get wardrobe for user {user_id}: {e}")
        return []

    items = []
    seen = set()
    for doc in documents:
        try:
            item = WardrobeItem.from_document(doc)
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Skipping wardrobe document {doc.get('item_id')!r}: {e}")
            continue

        if item.id in seen:
            logger.warning(f"Duplicate wardrobe item id {item.id} for user {user_id}")
            continue

        seen.add(item.id)
        items.append(item)

    return items


def attach_item_analysis(user_id: str, item_id: int, analysis: ItemAnalysis) -> bool:
    """
    Store an AI analysis on a wardrobe item.

    Returns:
        True if an item was updated, False if no such item exists

    Raises:
        PersistenceError: If MongoDB is unavailable
    """
    try:
        collection = mongo.get_collection(WARDROBE_COLLECTION)
        if collection is None:
            raise PersistenceError()

        result = collection.update_one(
            {"item_id": item_id, "owner_user_id": user_id},
            {"$set": {"ai_analysis": analysis.to_dict()}}
        )
        return result.matched_count > 0

    except PyMongoError as e:
        logger.error(f"Failed to attach analysis to item {item_id}: {e}")
        raise PersistenceError()
