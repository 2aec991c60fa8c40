"""
Store Interfaces (v1.0.0)
Protocols for the readers and writers the routes depend on, plus the
MongoDB-backed implementation.
"""
from typing import Any, Dict, List, Optional, Protocol, Sequence

from stylist_service.core.models import (
    GeneratedOutfit,
    ItemAnalysis,
    Recommendation,
    SavedOutfit,
    StyleProfile,
    WardrobeItem,
)
from stylist_service.db import outfits, profiles, wardrobe


class InventoryReader(Protocol):
    def get_wardrobe(self, user_id: str) -> List[WardrobeItem]:
        ...


class ProfileReader(Protocol):
    def get_profile(self, user_id: str) -> Optional[StyleProfile]:
        ...


class HistoryReader(Protocol):
    def get_outfit_history(self, user_id: str, limit: int = 20) -> List[Dict[str, Any]]:
        ...


class PersistenceWriter(Protocol):
    def save_outfit(self, user_id: str, outfit: GeneratedOutfit) -> SavedOutfit:
        ...

    def save_recommendations(self, user_id: str, recommendations: Sequence[Recommendation]) -> int:
        ...

    def attach_item_analysis(self, user_id: str, item_id: int, analysis: ItemAnalysis) -> bool:
        ...


class StylistStore(InventoryReader, ProfileReader, HistoryReader, PersistenceWriter, Protocol):
    """Everything the HTTP layer reads or writes."""


class MongoStore:
    """StylistStore backed by the module-level MongoDB functions."""

    def get_wardrobe(self, user_id: str) -> List[WardrobeItem]:
        return wardrobe.get_wardrobe(user_id)

    def get_profile(self, user_id: str) -> Optional[StyleProfile]:
        return profiles.get_profile(user_id)

    def get_outfit_history(self, user_id: str, limit: int = 20) -> List[Dict[str, Any]]:
        return outfits.get_outfit_history(user_id, limit)

    def save_outfit(self, user_id: str, outfit: GeneratedOutfit) -> SavedOutfit:
        return outfits.save_outfit(user_id, outfit)

    def save_recommendations(self, user_id: str, recommendations: Sequence[Recommendation]) -> int:
        return outfits.save_recommendations(user_id, recommendations)

    def attach_item_analysis(self, user_id: str, item_id: int, analysis: ItemAnalysis) -> bool:
        return wardrobe.attach_item_analysis(user_id, item_id, analysis)
