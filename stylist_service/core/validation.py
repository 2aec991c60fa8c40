"""
Response Validation Module (v2.0.0)
Schema and closed-vocabulary checks on raw provider output.

Nothing leaves this module as a trusted ``GeneratedOutfit`` unless every item
id it references exists in the inventory snapshot the prompt was built from.
"""
import json
import logging
from enum import Enum
from dataclasses import dataclass, field
from typing import Any, Dict, List, Sequence

from pydantic import ValidationError

from stylist_service.core.errors import (
    ClosedVocabularyViolation,
    MalformedResponseError,
    NoValidOutfitsError,
)
from stylist_service.core.models import (
    ITEM_RECOMMENDATIONS,
    GeneratedOutfit,
    GenerationRequest,
    ItemAnalysis,
    Recommendation,
    StyleAnalysis,
    WardrobeAnalysis,
    WardrobeItem,
)
from stylist_service.core.schemas import (
    ItemAnalysisPayload,
    OutfitPayload,
    RecommendationPayload,
    StyleProfileAnalysisPayload,
    WardrobeOverviewPayload,
    WardrobeRecommendationsPayload,
)

logger = logging.getLogger(__name__)

RAW_SUMMARY_CHARS = 500


class VocabularyPolicy(Enum):
    """What to do with an outfit that references unknown item ids."""
    STRICT = "strict"  # Fail the whole call
    DROP = "drop"      # Drop the outfit, record the violation, keep the rest


@dataclass
class ValidationReport:
    """Validated outfits plus everything that was dropped on the way."""
    outfits: List[GeneratedOutfit] = field(default_factory=list)
    violations: List[ClosedVocabularyViolation] = field(default_factory=list)
    malformed: List[str] = field(default_factory=list)

    @property
    def dropped(self) -> int:
        return len(self.violations) + len(self.malformed)


def summarize(raw: Any, limit: int = RAW_SUMMARY_CHARS) -> str:
    """Short, log-safe rendering of a raw response."""
    try:
        text = json.dumps(raw, default=str)
    except (TypeError, ValueError):
        text = repr(raw)
    return text if len(text) <= limit else text[:limit] + "..."


def _top_level_list(raw: Any, key: str) -> list:
    if not isinstance(raw, dict):
        raise MalformedResponseError(
            f"Expected an object with '{key}', got {type(raw).__name__}", summarize(raw)
        )
    entries = raw.get(key)
    if not isinstance(entries, list):
        raise MalformedResponseError(f"Missing '{key}' list", summarize(raw))
    return entries


def _dedupe(ids: Sequence[int]) -> tuple:
    seen = set()
    ordered = []
    for item_id in ids:
        if item_id not in seen:
            seen.add(item_id)
            ordered.append(item_id)
    return tuple(ordered)


# ==================== OUTFITS ====================

def validate_outfits(
    raw: Any,
    inventory: Sequence[WardrobeItem],
    request: GenerationRequest,
    policy: VocabularyPolicy = VocabularyPolicy.STRICT
) -> ValidationReport:
    """
    Turn a raw provider response into trusted outfits.

    Checks run in order: top-level shape, per-entry fields and types,
    closed vocabulary.

    Args:
        raw: Parsed provider output
        inventory: The snapshot the prompt was built from
        request: Request the prompt was built from (supplies defaults)
        policy: STRICT fails on the first bad entry, DROP skips it

    Returns:
        ValidationReport with at least one outfit

    Raises:
        MalformedResponseError: Bad top-level shape, or bad entry under STRICT
        ClosedVocabularyViolation: Unknown item id under STRICT
        NoValidOutfitsError: Nothing usable left
    """
    entries = _top_level_list(raw, "outfits")
    known_ids = {item.id for item in inventory}
    report = ValidationReport()

    for index, entry in enumerate(entries):
        try:
            payload = OutfitPayload.model_validate(entry)
        except ValidationError as e:
            detail = f"outfit[{index}] failed schema check: {e.error_count()} error(s)"
            logger.warning(
                f"Malformed outfit for occasion '{request.occasion}': {detail} | raw={summarize(entry)}"
            )
            if policy == VocabularyPolicy.STRICT:
                raise MalformedResponseError(detail, summarize(raw))
            report.malformed.append(detail)
            continue

        unknown = [item_id for item_id in payload.items if item_id not in known_ids]
        if unknown:
            violation = ClosedVocabularyViolation(
                outfit_name=payload.name,
                unknown_ids=unknown,
                occasion=request.occasion,
            )
            logger.warning(
                f"Closed-vocabulary violation for occasion '{request.occasion}': "
                f"outfit '{payload.name}' references unknown ids {unknown} | raw={summarize(entry)}"
            )
            if policy == VocabularyPolicy.STRICT:
                raise violation
            report.violations.append(violation)
            continue

        report.outfits.append(GeneratedOutfit(
            name=payload.name,
            description=payload.description,
            items=_dedupe(payload.items),
            occasion=payload.occasion or request.occasion,
            reasoning=payload.reasoning,
            season=payload.season or request.season,
            mood=payload.mood or request.mood,
            weather_conditions=payload.weather_conditions,
            tags=tuple(payload.tags or ()),
        ))

    if len(report.outfits) > request.count:
        logger.info(f"Provider returned {len(report.outfits)} outfits, keeping {request.count}")
        report.outfits = report.outfits[:request.count]

    if not report.outfits:
        logger.warning(
            f"No valid outfits for occasion '{request.occasion}' "
            f"({len(entries)} returned, {report.dropped} dropped)"
        )
        raise NoValidOutfitsError(violations=report.violations)

    return report


# ==================== RECOMMENDATIONS ====================

def normalize_recommendations(raw: Any) -> List[Recommendation]:
    """
    Normalize advisory entries instead of rejecting them.

    Unknown priorities become "medium", blank text fields get defaults and
    tags are coerced to a list of strings. Entries that are not objects
    are skipped.

    Raises:
        MalformedResponseError: Missing top-level 'recommendations' list
    """
    entries = _top_level_list(raw, "recommendations")
    recommendations = []

    for index, entry in enumerate(entries):
        if not isinstance(entry, dict):
            logger.warning(f"Skipping recommendation[{index}]: not an object")
            continue
        try:
            payload = RecommendationPayload.model_validate(entry)
        except ValidationError as e:
            logger.warning(f"Skipping recommendation[{index}]: {e.error_count()} error(s)")
            continue

        recommendations.append(Recommendation(
            type=payload.type,
            title=payload.title,
            description=payload.description,
            priority=payload.priority,
            tags=tuple(payload.tags),
            reasoning=payload.reasoning,
        ))

    return recommendations


# ==================== WARDROBE ANALYSIS ====================

def validate_wardrobe_analysis(raw: Any, inventory: Sequence[WardrobeItem]) -> WardrobeAnalysis:
    """
    Validate a per-item wardrobe analysis.

    Entries for ids outside the inventory are dropped and listed in
    ``dropped_ids``; so are entries with an unknown keep/alter/donate tag.
    The first entry wins when an id repeats.

    Raises:
        MalformedResponseError: Missing top-level 'item_analysis' list
    """
    entries = _top_level_list(raw, "item_analysis")
    known_ids = {item.id for item in inventory}
    analysis = WardrobeAnalysis()

    for index, entry in enumerate(entries):
        try:
            payload = ItemAnalysisPayload.model_validate(entry)
        except ValidationError as e:
            logger.warning(f"Skipping item_analysis[{index}]: {e.error_count()} error(s)")
            continue

        if payload.id not in known_ids or payload.recommendation not in ITEM_RECOMMENDATIONS:
            logger.warning(
                f"Dropping analysis for item {payload.id} "
                f"(known={payload.id in known_ids}, recommendation={payload.recommendation!r})"
            )
            analysis.dropped_ids.append(payload.id)
            continue

        if payload.id in analysis.item_analyses:
            continue

        analysis.item_analyses[payload.id] = ItemAnalysis(
            style_alignment=payload.style_alignment,
            color_match=payload.color_match,
            fit_assessment=payload.fit_assessment,
            recommendation=payload.recommendation,
            reason=payload.reason,
            versatility=payload.versatility,
            quality=payload.quality,
            improvement_suggestions=tuple(payload.improvement_suggestions),
            outfit_pairings=tuple(payload.outfit_pairings),
        )

    overview_raw = raw.get("wardrobe_overview")
    if isinstance(overview_raw, dict):
        try:
            overview = WardrobeOverviewPayload.model_validate(overview_raw)
            analysis.gap_analysis = list(overview.gap_analysis)
            analysis.priority_purchases = list(overview.priority_purchases)
            analysis.overall_score = overview.overall_score
            analysis.style_consistency = overview.style_consistency
        except ValidationError as e:
            logger.warning(f"Ignoring wardrobe_overview: {e.error_count()} error(s)")

    actions_raw = raw.get("recommendations")
    if isinstance(actions_raw, dict):
        actions = WardrobeRecommendationsPayload.model_validate(actions_raw)
        analysis.declutter_plan = list(actions.declutter_plan)
        analysis.organization_tips = list(actions.organization_tips)
        analysis.seasonal_rotation = list(actions.seasonal_rotation)
        analysis.budget_optimization = list(actions.budget_optimization)

    return analysis


# ==================== STYLE PROFILE ANALYSIS ====================

def validate_style_analysis(raw: Any, profile_on_file: bool = True) -> StyleAnalysis:
    """
    Validate a Style DNA response.

    The five core sections and the overall recommendation are required;
    text lists inside them are coerced rather than rejected, and the
    confidence score is clamped to 0.0-1.0.

    Raises:
        MalformedResponseError: A required section is missing or unusable
    """
    if not isinstance(raw, dict):
        raise MalformedResponseError(
            f"Expected a style analysis object, got {type(raw).__name__}", summarize(raw)
        )

    try:
        payload = StyleProfileAnalysisPayload.model_validate(raw)
    except ValidationError as e:
        fields = sorted({".".join(str(part) for part in err["loc"]) for err in e.errors()})
        raise MalformedResponseError(f"Invalid style analysis: {', '.join(fields)}", summarize(raw))

    data = payload.model_dump()
    return StyleAnalysis(
        style_dna=data["style_dna"],
        color_palette=data["color_palette"],
        body_analysis=data["body_analysis"],
        personalized_tips=data["personalized_tips"],
        confidence_boost=data["confidence_boost"],
        overall_recommendation=payload.overall_recommendation,
        goal_alignment=data["goal_alignment"],
        budget_optimization=data["budget_optimization"],
        profile_on_file=profile_on_file,
    )
