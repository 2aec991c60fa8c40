"""
Style Profile Store (v1.0.0)
Reads the style diagnosis for a user.
"""
import logging
from typing import Optional

from pymongo.errors import PyMongoError

from stylist_service.core.models import StyleProfile
from stylist_service.db import mongo

logger = logging.getLogger(__name__)

PROFILE_COLLECTION = "style_profiles"


def get_profile(user_id: str) -> Optional[StyleProfile]:
    """
    Get a user's style profile.

    Returns:
        StyleProfile, or None when the user has no diagnosis yet or the
        store is unavailable (generation continues with neutral defaults)
    """
    try:
        collection = mongo.get_collection(PROFILE_COLLECTION)
        if collection is None:
            return None

        doc = collection.find_one({"user_id": user_id}, {"_id": 0})

    except PyMongoError as e:
        logger.error(f"Failed to get style profile for user {user_id}: {e}")
        return None

    if not doc:
        return None

    return StyleProfile.from_document(doc)
