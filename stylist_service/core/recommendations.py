"""
Recommendation Service (v2.0.0)
Advisory style recommendations and declutter guidance.

Failures come back as ``Result.failure(...)``; there is no hardcoded
fallback list. Callers decide what to show.
"""
import logging
from typing import Any, Dict, List, Optional, Sequence

from stylist_service.core.errors import EmptyInventoryError, StylistError
from stylist_service.core.models import Recommendation, Result, StyleProfile, WardrobeItem
from stylist_service.core.prompts import build_declutter_prompt, build_recommendation_prompt
from stylist_service.core.validation import normalize_recommendations
from stylist_service.llm.invoker import GenerationInvoker

logger = logging.getLogger(__name__)

DECLUTTER_TYPE = "wardrobe-declutter"
DECLUTTER_TAGS = ("declutter", "wardrobe")


class RecommendationService:
    """Wraps the advisor model for recommendation-style prompts."""

    def __init__(self, invoker: GenerationInvoker):
        self.invoker = invoker

    async def generate(
        self,
        profile: Optional[StyleProfile],
        items: Sequence[WardrobeItem],
        outfit_history: Optional[Sequence[Dict[str, Any]]] = None
    ) -> Result[List[Recommendation]]:
        """
        Comprehensive personalized recommendations.

        An empty wardrobe is allowed here; the advice then focuses on
        building one.
        """
        prompt = build_recommendation_prompt(profile, tuple(items), outfit_history)

        try:
            raw = await self.invoker.invoke(prompt)
            recommendations = normalize_recommendations(raw)
        except StylistError as e:
            logger.error(f"Recommendation generation failed: {e.kind}: {e.message}")
            return Result.failure(e)

        logger.info(f"Generated {len(recommendations)} recommendation(s)")
        return Result.success(recommendations)

    async def declutter(
        self,
        profile: Optional[StyleProfile],
        items: Sequence[WardrobeItem]
    ) -> Result[List[Recommendation]]:
        """Declutter advice; fails without a provider call when the wardrobe is empty."""
        snapshot = tuple(items)
        if not snapshot:
            return Result.failure(EmptyInventoryError())

        prompt = build_declutter_prompt(profile, snapshot)

        try:
            raw = await self.invoker.invoke(prompt)
            recommendations = normalize_recommendations(raw)
        except StylistError as e:
            logger.error(f"Declutter recommendations failed: {e.kind}: {e.message}")
            return Result.failure(e)

        return Result.success([_as_declutter(rec) for rec in recommendations])


def _as_declutter(rec: Recommendation) -> Recommendation:
    tags = list(rec.tags)
    for tag in DECLUTTER_TAGS:
        if tag not in tags:
            tags.append(tag)
    return Recommendation(
        type=DECLUTTER_TYPE,
        title=rec.title,
        description=rec.description,
        priority=rec.priority,
        tags=tuple(tags),
        reasoning=rec.reasoning,
    )
