"""
Outfit Store Module (v2.1.0)
Persists generated outfits and recommendations; reads outfit history.
"""
import secrets
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Sequence

from pymongo.errors import PyMongoError

from stylist_service.core.errors import PersistenceError
from stylist_service.core.models import GeneratedOutfit, Recommendation, SavedOutfit
from stylist_service.db import mongo

logger = logging.getLogger(__name__)

OUTFIT_COLLECTION = "outfits"
RECOMMENDATION_COLLECTION = "style_recommendations"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def save_outfit(user_id: str, outfit: GeneratedOutfit) -> SavedOutfit:
    """
    Persist one validated outfit as a new record.

    Regenerating never edits an existing record; every call inserts.

    Raises:
        PersistenceError: If MongoDB is unavailable
    """
    saved = SavedOutfit(
        outfit_id=secrets.token_hex(8),
        user_id=user_id,
        created_at=_now(),
        outfit=outfit,
    )

    try:
        collection = mongo.get_collection(OUTFIT_COLLECTION)
        if collection is None:
            raise PersistenceError()

        collection.insert_one(saved.to_dict())
        logger.info(f"Outfit saved: {saved.outfit_id} ({outfit.occasion})")
        return saved

    except PyMongoError as e:
        logger.error(f"Failed to save outfit for user {user_id}: {e}")
        raise PersistenceError()


def save_recommendations(user_id: str, recommendations: Sequence[Recommendation]) -> int:
    """
    Persist recommendations for a user.

    Returns:
        Number of records inserted

    Raises:
        PersistenceError: If MongoDB is unavailable
    """
    if not recommendations:
        return 0

    created_at = _now()
    documents = []
    for rec in recommendations:
        doc = rec.to_dict()
        doc.update({
            "recommendation_id": secrets.token_hex(8),
            "user_id": user_id,
            "created_at": created_at,
        })
        documents.append(doc)

    try:
        collection = mongo.get_collection(RECOMMENDATION_COLLECTION)
        if collection is None:
            raise PersistenceError()

        collection.insert_many(documents)
        return len(documents)

    except PyMongoError as e:
        logger.error(f"Failed to save recommendations for user {user_id}: {e}")
        raise PersistenceError()


def get_outfit_history(user_id: str, limit: int = 20) -> List[Dict[str, Any]]:
    """
    Get a user's most recent outfits, oldest first.

    Returns:
        List of outfit summaries (empty when MongoDB is unavailable)
    """
    try:
        collection = mongo.get_collection(OUTFIT_COLLECTION)
        if collection is None:
            return []

        cursor = collection.find(
            {"user_id": user_id},
            {"_id": 0, "name": 1, "occasion": 1, "items": 1, "created_at": 1}
        ).sort("created_at", -1).limit(limit)

        return list(reversed(list(cursor)))

    except PyMongoError as e:
        logger.error(f"Failed to get outfit history for user {user_id}: {e}")
        return []
