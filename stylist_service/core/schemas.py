"""Pydantic schemas for structured provider responses.

Each schema does two jobs: its JSON schema is sent to the provider as the
response contract, and it shape-checks whatever the provider returns.
"""

from __future__ import annotations

from typing import Annotated, Any, Dict, List, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, field_validator

from stylist_service.core.models import PRIORITIES


def _str_list(value: Any) -> List[str]:
    if not isinstance(value, (list, tuple)):
        return []
    return [str(entry) for entry in value if entry is not None and str(entry).strip()]


def _clamp(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        raise ValueError("score must be a number")
    return max(0, min(100, int(round(float(value)))))


# Advisory text lists: non-lists become [], blanks are dropped
StrList = Annotated[List[str], BeforeValidator(_str_list)]


# ==================== OUTFITS ====================

class OutfitPayload(BaseModel):
    """One outfit as returned by the provider."""

    model_config = ConfigDict(strict=True, extra="ignore")

    name: str = Field(min_length=1)
    description: str
    items: List[int] = Field(min_length=1, description="Wardrobe item ids from the inventory only")
    occasion: Optional[str] = None
    season: Optional[str] = None
    mood: Optional[str] = None
    weather_conditions: Optional[Dict[str, Any]] = None
    tags: Optional[List[str]] = None
    reasoning: str


class OutfitListPayload(BaseModel):
    """Top-level outfit response."""

    outfits: List[OutfitPayload]


# ==================== RECOMMENDATIONS ====================

class RecommendationPayload(BaseModel):
    """Advisory entry; normalized instead of rejected."""

    model_config = ConfigDict(extra="ignore")

    type: str = "general"
    title: str = "Style Recommendation"
    description: str = "Personalized style advice"
    priority: str = "medium"
    tags: List[str] = Field(default_factory=list)
    reasoning: str = "Based on your style profile analysis"

    @field_validator("type", "title", "description", "reasoning", mode="before")
    @classmethod
    def _blank_to_default(cls, value: Any, info) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            return cls.model_fields[info.field_name].default
        return str(value)

    @field_validator("priority", mode="before")
    @classmethod
    def _normalize_priority(cls, value: Any) -> str:
        normalized = str(value).strip().lower() if value is not None else ""
        return normalized if normalized in PRIORITIES else "medium"

    @field_validator("tags", mode="before")
    @classmethod
    def _coerce_tags(cls, value: Any) -> List[str]:
        if not isinstance(value, (list, tuple)):
            return []
        return [str(tag) for tag in value if tag is not None and str(tag).strip()]


class RecommendationListPayload(BaseModel):
    """Top-level recommendation response (schema only)."""

    recommendations: List[RecommendationPayload]




# ==================== WARDROBE ANALYSIS ====================

class ItemAnalysisPayload(BaseModel):
    """Per-item keep/alter/donate assessment."""

    model_config = ConfigDict(extra="ignore")

    id: int
    style_alignment: int = Field(description="0-100")
    color_match: int = Field(description="0-100")
    versatility: Optional[int] = Field(None, description="0-100")
    quality: Optional[int] = Field(None, description="0-100")
    fit_assessment: str = ""
    recommendation: str = Field(description="keep | alter | donate")
    reason: str = ""
    improvement_suggestions: StrList = Field(default_factory=list)
    outfit_pairings: StrList = Field(default_factory=list)

    @field_validator("style_alignment", "color_match", mode="before")
    @classmethod
    def _clamp_score(cls, value: Any) -> int:
        return _clamp(value)

    @field_validator("versatility", "quality", mode="before")
    @classmethod
    def _clamp_optional_score(cls, value: Any) -> Optional[int]:
        return None if value is None else _clamp(value)

    @field_validator("recommendation", mode="before")
    @classmethod
    def _lower(cls, value: Any) -> str:
        return str(value).strip().lower()


class WardrobeOverviewPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    gap_analysis: StrList = Field(default_factory=list)
    priority_purchases: StrList = Field(default_factory=list)
    overall_score: Optional[int] = None
    style_consistency: Optional[int] = None


class WardrobeRecommendationsPayload(BaseModel):
    """Wardrobe-level action lists."""

    model_config = ConfigDict(extra="ignore")

    declutter_plan: StrList = Field(default_factory=list)
    organization_tips: StrList = Field(default_factory=list)
    seasonal_rotation: StrList = Field(default_factory=list)
    budget_optimization: StrList = Field(default_factory=list)


class WardrobeAnalysisPayload(BaseModel):
    """Top-level wardrobe analysis response (schema only)."""

    item_analysis: List[ItemAnalysisPayload]
    wardrobe_overview: WardrobeOverviewPayload = Field(default_factory=WardrobeOverviewPayload)
    recommendations: WardrobeRecommendationsPayload = Field(default_factory=WardrobeRecommendationsPayload)


# ==================== STYLE PROFILE ANALYSIS ====================

class _Section(BaseModel):
    model_config = ConfigDict(extra="ignore")


class StyleDNAPayload(_Section):
    primary_style: str = Field(min_length=1)
    secondary_style: str = ""
    style_description: str = ""
    confidence_score: float = Field(0.0, description="0.0-1.0")

    @field_validator("confidence_score", mode="before")
    @classmethod
    def _unit_interval(cls, value: Any) -> float:
        if isinstance(value, bool) or not isinstance(value, (int, float, str)):
            return 0.0
        try:
            score = float(value)
        except ValueError:
            return 0.0
        # Some answers come back as a percentage
        if score > 1:
            score = score / 100
        return max(0.0, min(1.0, score))


class ColorPalettePayload(_Section):
    seasonal_type: str = Field(min_length=1, description="12-season classification")
    best_colors: StrList = Field(default_factory=list, description="Hex codes")
    colors_to_avoid: StrList = Field(default_factory=list)
    neutrals: StrList = Field(default_factory=list, description="Hex codes")
    accents: StrList = Field(default_factory=list, description="Hex codes")
    color_explanation: Optional[str] = None


class BodyAnalysisPayload(_Section):
    body_type_confirmation: str = ""
    best_silhouettes: StrList = Field(default_factory=list)
    proportion_tips: StrList = Field(default_factory=list)
    fit_guidance: StrList = Field(default_factory=list)
    fabric_recommendations: StrList = Field(default_factory=list)
    height_considerations: Optional[str] = None


class PersonalizedTipsPayload(_Section):
    shopping_guide: StrList = Field(default_factory=list)
    styling_tips: StrList = Field(default_factory=list)
    wardrobe_essentials: StrList = Field(default_factory=list)
    occasion_specific: Dict[str, StrList] = Field(default_factory=dict)
    brand_recommendations: StrList = Field(default_factory=list)
    seasonal_strategy: Optional[str] = None

    @field_validator("occasion_specific", mode="before")
    @classmethod
    def _occasion_map(cls, value: Any) -> Dict[str, Any]:
        if not isinstance(value, dict):
            return {}
        return {str(key).strip().lower(): pieces for key, pieces in value.items() if str(key).strip()}


class ConfidenceBoostPayload(_Section):
    strength_areas: StrList = Field(default_factory=list)
    improvement_areas: StrList = Field(default_factory=list)
    action_plan: StrList = Field(default_factory=list)
    psychology_tips: StrList = Field(default_factory=list)
    quick_wins: StrList = Field(default_factory=list)


class BudgetOptimizationPayload(_Section):
    priority_purchases: StrList = Field(default_factory=list)
    cost_per_wear: StrList = Field(default_factory=list)
    saving_strategies: StrList = Field(default_factory=list)


class StyleProfileAnalysisPayload(_Section):
    """Top-level Style DNA response."""

    style_dna: StyleDNAPayload
    color_palette: ColorPalettePayload
    body_analysis: BodyAnalysisPayload
    personalized_tips: PersonalizedTipsPayload
    confidence_boost: ConfidenceBoostPayload
    goal_alignment: Dict[str, str] = Field(default_factory=dict)
    budget_optimization: Optional[BudgetOptimizationPayload] = None
    overall_recommendation: str = Field(min_length=1)

    @field_validator("goal_alignment", mode="before")
    @classmethod
    def _goal_map(cls, value: Any) -> Dict[str, str]:
        if not isinstance(value, dict):
            return {}
        return {str(goal): str(advice) for goal, advice in value.items() if advice is not None}


def response_schema(model: type[BaseModel]) -> Dict[str, Any]:
    """JSON schema handed to the provider for ``model``."""

    return model.model_json_schema()


__all__ = [
    "StrList",
    "OutfitPayload",
    "OutfitListPayload",
    "RecommendationPayload",
    "RecommendationListPayload",
    "ItemAnalysisPayload",
    "WardrobeOverviewPayload",
    "WardrobeRecommendationsPayload",
    "WardrobeAnalysisPayload",
    "StyleDNAPayload",
    "ColorPalettePayload",
    "BodyAnalysisPayload",
    "PersonalizedTipsPayload",
    "ConfidenceBoostPayload",
    "BudgetOptimizationPayload",
    "StyleProfileAnalysisPayload",
    "response_schema",
]
