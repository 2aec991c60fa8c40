"""
Domain Models (v1.2.0)
Wardrobe items, style profiles, generation requests and their results.
"""
import logging
from dataclasses import dataclass, field, asdict, replace
from typing import Any, Dict, Generic, List, Optional, Tuple, TypeVar

logger = logging.getLogger(__name__)


CATEGORIES = ("tops", "bottoms", "dresses", "outerwear", "shoes", "accessories")
ITEM_RECOMMENDATIONS = ("keep", "alter", "donate")
PRIORITIES = ("high", "medium", "low")
DEFAULT_OUTFIT_COUNT = 3

# Singular / loose spellings seen in stored documents
_CATEGORY_ALIASES = {
    "top": "tops",
    "bottom": "bottoms",
    "dress": "dresses",
    "shoe": "shoes",
    "accessory": "accessories",
    "jacket": "outerwear",
    "coat": "outerwear",
}


def normalize_category(value: str) -> str:
    """
    Map a category string onto the recognized set.

    Raises:
        ValueError: If the category is not recognized
    """
    key = (value or "").strip().lower()
    key = _CATEGORY_ALIASES.get(key, key)
    if key not in CATEGORIES:
        raise ValueError(f"category must be one of: {', '.join(CATEGORIES)} (got {value!r})")
    return key


def _as_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, (list, tuple, set)):
        return [str(v) for v in value if v is not None and str(v).strip()]
    return [str(value)] if str(value).strip() else []


# ==================== WARDROBE ====================

@dataclass(frozen=True)
class ItemAnalysis:
    """Prior AI assessment attached to a wardrobe item."""
    style_alignment: int
    color_match: int
    fit_assessment: str
    recommendation: str
    reason: str
    versatility: Optional[int] = None
    quality: Optional[int] = None
    improvement_suggestions: Tuple[str, ...] = ()
    outfit_pairings: Tuple[str, ...] = ()

    def to_dict(self) -> dict:
        data = asdict(self)
        data["improvement_suggestions"] = list(self.improvement_suggestions)
        data["outfit_pairings"] = list(self.outfit_pairings)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Optional["ItemAnalysis"]:
        """Build from a stored document; returns None when unusable."""

        def optional_score(key: str) -> Optional[int]:
            value = data.get(key)
            return int(value) if value is not None else None

        try:
            recommendation = str(data.get("recommendation", "")).lower()
            if recommendation not in ITEM_RECOMMENDATIONS:
                return None
            return cls(
                style_alignment=int(data.get("style_alignment", 0)),
                color_match=int(data.get("color_match", 0)),
                fit_assessment=str(data.get("fit_assessment", "")),
                recommendation=recommendation,
                reason=str(data.get("reason", "")),
                versatility=optional_score("versatility"),
                quality=optional_score("quality"),
                improvement_suggestions=tuple(_as_list(data.get("improvement_suggestions"))),
                outfit_pairings=tuple(_as_list(data.get("outfit_pairings"))),
            )
        except (TypeError, ValueError):
            return None


@dataclass(frozen=True)
class WardrobeItem:
    """One physical garment owned by a user."""
    id: int
    name: str
    category: str
    color: Optional[str] = None
    pattern: Optional[str] = None
    material: Optional[str] = None
    brand: Optional[str] = None
    season: Optional[str] = None
    condition: Optional[str] = None
    ai_analysis: Optional[ItemAnalysis] = None

    def __post_init__(self):
        object.__setattr__(self, "category", normalize_category(self.category))

    def to_prompt_dict(self) -> Dict[str, Any]:
        """Descriptive attributes exposed to the model."""
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "color": self.color or "Not specified",
            "pattern": self.pattern or "Not specified",
            "material": self.material or "Not specified",
            "brand": self.brand or "Not specified",
            "ai_analysis": self.ai_analysis.to_dict() if self.ai_analysis else "Not analyzed",
        }

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["ai_analysis"] = self.ai_analysis.to_dict() if self.ai_analysis else None
        return data

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "WardrobeItem":
        """
        Build from a stored wardrobe document.

        Raises:
            ValueError: If id or category are missing/invalid
        """
        analysis = doc.get("ai_analysis")
        return cls(
            id=int(doc["item_id"]),
            name=str(doc.get("name") or doc.get("item_name") or "Unnamed item"),
            category=str(doc.get("category", "")),
            color=doc.get("color"),
            pattern=doc.get("pattern"),
            material=doc.get("material"),
            brand=doc.get("brand"),
            season=doc.get("season"),
            condition=doc.get("condition"),
            ai_analysis=ItemAnalysis.from_dict(analysis) if isinstance(analysis, dict) else None,
        )


# ==================== STYLE PROFILE ====================

@dataclass(frozen=True)
class StyleProfile:
    """A user's style diagnosis. Every field may be missing."""
    gender: Optional[str] = None
    body_type: Optional[str] = None
    height: Optional[str] = None
    age: Optional[str] = None
    daily_activity: Optional[str] = None
    comfort_level: Optional[str] = None
    lifestyle: Optional[str] = None
    occasions: Tuple[str, ...] = ()
    style_inspiration: Optional[str] = None
    budget: Optional[str] = None
    color_preferences: Tuple[str, ...] = ()
    color_avoidances: Tuple[str, ...] = ()
    goals: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        for key in ("occasions", "color_preferences", "color_avoidances", "goals"):
            data[key] = list(data[key])
        return data

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "StyleProfile":
        def text(key: str) -> Optional[str]:
            value = doc.get(key)
            return str(value) if value not in (None, "") else None

        return cls(
            gender=text("gender"),
            body_type=text("body_type"),
            height=text("height"),
            age=text("age"),
            daily_activity=text("daily_activity"),
            comfort_level=text("comfort_level"),
            lifestyle=text("lifestyle"),
            occasions=tuple(_as_list(doc.get("occasions"))),
            style_inspiration=text("style_inspiration"),
            budget=text("budget"),
            color_preferences=tuple(_as_list(doc.get("color_preferences"))),
            color_avoidances=tuple(_as_list(doc.get("color_avoidances"))),
            goals=tuple(_as_list(doc.get("goals"))),
        )


# ==================== GENERATION ====================

@dataclass(frozen=True)
class GenerationRequest:
    """Ephemeral description of what to generate."""
    occasion: str
    weather: Optional[str] = None
    season: Optional[str] = None
    mood: Optional[str] = None
    preferences: Optional[str] = None
    count: int = DEFAULT_OUTFIT_COUNT

    def __post_init__(self):
        occasion = (self.occasion or "").strip()
        if not occasion:
            raise ValueError("occasion must be a non-empty string")
        object.__setattr__(self, "occasion", occasion)
        if isinstance(self.count, bool) or not isinstance(self.count, int) or self.count < 1:
            raise ValueError(f"count must be a positive integer (got {self.count!r})")

    def capped(self, max_count: int) -> "GenerationRequest":
        """Clamp the requested count to ``max_count``."""
        if self.count <= max_count:
            return self
        logger.info(f"Outfit count {self.count} capped to {max_count}")
        return replace(self, count=max_count)


@dataclass(frozen=True)
class GeneratedOutfit:
    """A validated outfit; every id in ``items`` exists in the source inventory."""
    name: str
    description: str
    items: Tuple[int, ...]
    occasion: str
    reasoning: str
    season: Optional[str] = None
    mood: Optional[str] = None
    weather_conditions: Optional[Dict[str, Any]] = None
    tags: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "items": list(self.items),
            "occasion": self.occasion,
            "season": self.season,
            "mood": self.mood,
            "weather_conditions": self.weather_conditions,
            "tags": list(self.tags),
            "reasoning": self.reasoning,
        }


@dataclass(frozen=True)
class SavedOutfit:
    """A persisted outfit record."""
    outfit_id: str
    user_id: str
    created_at: str
    outfit: GeneratedOutfit

    def to_dict(self) -> Dict[str, Any]:
        data = self.outfit.to_dict()
        data.update({
            "outfit_id": self.outfit_id,
            "user_id": self.user_id,
            "created_at": self.created_at,
        })
        return data


# ==================== RECOMMENDATIONS ====================

@dataclass(frozen=True)
class Recommendation:
    """Free-form typed advice, independent of any outfit."""
    type: str
    title: str
    description: str
    priority: str
    tags: Tuple[str, ...]
    reasoning: str

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["tags"] = list(self.tags)
        return data


@dataclass
class WardrobeAnalysis:
    """Per-item assessments plus a wardrobe-level overview."""
    item_analyses: Dict[int, ItemAnalysis] = field(default_factory=dict)
    gap_analysis: List[str] = field(default_factory=list)
    priority_purchases: List[str] = field(default_factory=list)
    overall_score: Optional[int] = None
    style_consistency: Optional[int] = None
    declutter_plan: List[str] = field(default_factory=list)
    organization_tips: List[str] = field(default_factory=list)
    seasonal_rotation: List[str] = field(default_factory=list)
    budget_optimization: List[str] = field(default_factory=list)
    dropped_ids: List[int] = field(default_factory=list)

    @property
    def counts(self) -> Dict[str, int]:
        counts = {tag: 0 for tag in ITEM_RECOMMENDATIONS}
        for analysis in self.item_analyses.values():
            counts[analysis.recommendation] += 1
        return counts

    def to_dict(self) -> Dict[str, Any]:
        counts = self.counts
        return {
            "item_analyses": {str(k): v.to_dict() for k, v in self.item_analyses.items()},
            "overview": {
                "total_items": len(self.item_analyses),
                "keep_items": counts["keep"],
                "alter_items": counts["alter"],
                "donate_items": counts["donate"],
                "gap_analysis": self.gap_analysis,
                "priority_purchases": self.priority_purchases,
                "overall_score": self.overall_score,
                "style_consistency": self.style_consistency,
            },
            "recommendations": {
                "declutter_plan": self.declutter_plan,
                "organization_tips": self.organization_tips,
                "seasonal_rotation": self.seasonal_rotation,
                "budget_optimization": self.budget_optimization,
            },
        }


# ==================== STYLE ANALYSIS ====================

@dataclass(frozen=True)
class StyleAnalysis:
    """
    Style DNA for one profile: style identity, seasonal palette, body
    guidance, personalized tips and a confidence plan.

    Sections are plain dicts of already-validated provider output.
    """
    style_dna: Dict[str, Any]
    color_palette: Dict[str, Any]
    body_analysis: Dict[str, Any]
    personalized_tips: Dict[str, Any]
    confidence_boost: Dict[str, Any]
    overall_recommendation: str
    goal_alignment: Dict[str, str] = field(default_factory=dict)
    budget_optimization: Optional[Dict[str, Any]] = None
    profile_on_file: bool = True

    @property
    def primary_style(self) -> str:
        return self.style_dna["primary_style"]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# ==================== RESULT ====================

T = TypeVar("T")


@dataclass
class Result(Generic[T]):
    """
    Explicit success-or-failure value.

    Callers decide what to show on failure; nothing is substituted here.
    """
    value: Optional[T] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: Exception) -> "Result[T]":
        return cls(error=error)

    def unwrap(self) -> T:
        """Return the value or raise the stored error."""
        if self.error is not None:
            raise self.error
        return self.value
