"""
Prompt Builder (v1.2.0)
Deterministic prompt + response-schema construction for every generation kind.

All builders are pure: same inputs, same prompt. The response schema for a
kind never depends on the inputs.
"""
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from stylist_service.core.errors import EmptyInventoryError
from stylist_service.core.models import GenerationRequest, StyleProfile, WardrobeItem
from stylist_service.core.schemas import (
    OutfitListPayload,
    RecommendationListPayload,
    StyleProfileAnalysisPayload,
    WardrobeAnalysisPayload,
    response_schema,
)

logger = logging.getLogger(__name__)


# Neutral stand-ins when the user has not completed a diagnosis
PROFILE_DEFAULTS = {
    "gender": "unspecified",
    "body_type": "unspecified",
    "height": "unspecified",
    "age": "unspecified",
    "daily_activity": "unspecified",
    "comfort_level": "balanced",
    "lifestyle": "unspecified",
    "style_inspiration": "none given",
    "budget": "unspecified",
    "occasions": "none given",
    "color_preferences": "no color constraint",
    "color_avoidances": "none",
    "goals": "none given",
}

OUTFIT_SYSTEM_PROMPT = """You are AURAA's expert AI stylist with 15+ years of professional styling experience.
Your expertise includes color theory, body proportions, fashion psychology, and strategic wardrobe planning.
You create outfit combinations using ONLY the provided wardrobe items, ensuring each suggestion is:
- Appropriate for the specified occasion and conditions
- Aligned with the user's style profile and body type
- Practically wearable and well-coordinated
- Confident and empowering for the user

Always respond with valid JSON matching the response schema."""

RECOMMENDATION_SYSTEM_PROMPT = """You are AURAA's Expert Personal Stylist AI.
Provide comprehensive, personalized fashion recommendations based on user data.
Always respond with valid JSON matching the response schema."""

DECLUTTER_SYSTEM_PROMPT = """You are a wardrobe decluttering expert.
Provide specific, actionable advice for optimizing clothing collections.
Always respond with valid JSON matching the response schema."""

ANALYSIS_SYSTEM_PROMPT = """You are an expert wardrobe consultant and personal stylist.
Provide detailed, actionable analysis focused on style optimization and practical recommendations.
Always respond with valid JSON matching the response schema."""

STYLE_PROFILE_SYSTEM_PROMPT = """You are an expert fashion stylist and personal style consultant with deep knowledge of
color theory, body types, and style psychology.
Provide detailed, personalized analysis that helps users feel confident and stylish.
Always respond with valid JSON matching the response schema."""


@dataclass(frozen=True)
class Prompt:
    """A complete instruction for one structured completion."""
    system: str
    user: str
    schema_name: str
    response_schema: Dict[str, Any] = field(hash=False, compare=False)

    def to_messages(self) -> List[Dict[str, str]]:
        return [
            {"role": "system", "content": self.system},
            {"role": "user", "content": self.user},
        ]


# Computed once; identical for every call
OUTFIT_RESPONSE_SCHEMA = response_schema(OutfitListPayload)
RECOMMENDATION_RESPONSE_SCHEMA = response_schema(RecommendationListPayload)
ANALYSIS_RESPONSE_SCHEMA = response_schema(WardrobeAnalysisPayload)
STYLE_PROFILE_RESPONSE_SCHEMA = response_schema(StyleProfileAnalysisPayload)


# ==================== SECTIONS ====================

def _join(values: Sequence[str], default: str) -> str:
    return ", ".join(values) if values else default


def _profile_value(profile: Optional[StyleProfile], key: str) -> str:
    default = PROFILE_DEFAULTS[key]
    if profile is None:
        return default
    value = getattr(profile, key)
    if isinstance(value, tuple):
        return _join(value, default)
    return value or default


def build_profile_section(profile: Optional[StyleProfile]) -> str:
    """
    Render the style profile, substituting neutral defaults for gaps.

    The section is always present, even when ``profile`` is None.
    """
    lines = ["## USER PROFILE & STYLE DNA"]
    if profile is None:
        lines.append("(No style diagnosis on file - use neutral, broadly flattering choices.)")

    lines.extend([
        f"Gender: {_profile_value(profile, 'gender')}",
        f"Body Type: {_profile_value(profile, 'body_type')}",
        f"Height: {_profile_value(profile, 'height')}",
        f"Age: {_profile_value(profile, 'age')}",
        f"Daily Activity: {_profile_value(profile, 'daily_activity')}",
        f"Comfort Level: {_profile_value(profile, 'comfort_level')}",
        f"Lifestyle: {_profile_value(profile, 'lifestyle')}",
        f"Occasions: {_profile_value(profile, 'occasions')}",
        f"Style Inspiration: {_profile_value(profile, 'style_inspiration')}",
        f"Budget: {_profile_value(profile, 'budget')}",
        f"Color Preferences: {_profile_value(profile, 'color_preferences')}",
        f"Color Avoidances: {_profile_value(profile, 'color_avoidances')}",
        f"Goals: {_profile_value(profile, 'goals')}",
    ])
    return "\n".join(lines)


def build_inventory_section(items: Sequence[WardrobeItem]) -> str:
    """Enumerate every item with its id; order follows the snapshot."""
    lines = [f"## WARDROBE INVENTORY ({len(items)} items)"]
    for item in items:
        data = item.to_prompt_dict()
        analysis = data["ai_analysis"]
        lines.extend([
            f"- ID: {data['id']}",
            f"  Name: {data['name']}",
            f"  Category: {data['category']}",
            f"  Color: {data['color']}",
            f"  Pattern: {data['pattern']}",
            f"  Material: {data['material']}",
            f"  Brand: {data['brand']}",
            f"  AI Analysis: {json.dumps(analysis, sort_keys=True) if isinstance(analysis, dict) else analysis}",
        ])
    return "\n".join(lines)


def allowed_ids_line(items: Sequence[WardrobeItem]) -> str:
    ids = ", ".join(str(item.id) for item in items)
    return f"ALLOWED ITEM IDS: [{ids}]"


def _require_items(items: Sequence[WardrobeItem]) -> None:
    if not items:
        raise EmptyInventoryError()


# ==================== OUTFITS ====================

def build_outfit_prompt(
    items: Sequence[WardrobeItem],
    profile: Optional[StyleProfile],
    request: GenerationRequest
) -> Prompt:
    """
    Build the outfit-generation prompt.

    Args:
        items: Inventory snapshot (must be non-empty)
        profile: Style profile, or None for neutral defaults
        request: Occasion and optional context

    Returns:
        Prompt with the fixed outfit response schema

    Raises:
        EmptyInventoryError: If ``items`` is empty
    """
    _require_items(items)

    prompt_parts = [
        f"Generate {request.count} outfit combinations using ONLY the provided wardrobe items.",
        "",
        build_profile_section(profile),
        "",
        build_inventory_section(items),
        "",
        "## OUTFIT REQUEST",
        f"Occasion: {request.occasion}",
        f"Weather: {request.weather or 'Not specified'}",
        f"Mood: {request.mood or 'Not specified'}",
        f"Season: {request.season or 'Not specified'}",
        f"Additional Preferences: {request.preferences or 'None'}",
        "",
        "## INSTRUCTIONS",
        "1. Create outfit combinations using ONLY the item IDs from the wardrobe inventory above",
        "2. Ensure each outfit is appropriate for the specified occasion and conditions",
        "3. Consider the user's style profile, body type, and color preferences",
        "4. Each outfit should be practical and achievable with the available items",
        "5. Provide styling reasoning for each combination",
        "6. Include relevant tags for easy categorization",
        "",
        allowed_ids_line(items),
        "CRITICAL: Every value in an outfit's \"items\" list MUST be one of the allowed item ids.",
        "Never invent ids, never reference items that are not listed above.",
        "",
        f"Set \"occasion\" to \"{request.occasion}\" on every outfit.",
        "",
        "Respond with a JSON object matching this schema:",
        json.dumps(OUTFIT_RESPONSE_SCHEMA, sort_keys=True),
    ]

    return Prompt(
        system=OUTFIT_SYSTEM_PROMPT,
        user="\n".join(prompt_parts),
        schema_name="outfit_list",
        response_schema=OUTFIT_RESPONSE_SCHEMA,
    )


# ==================== RECOMMENDATIONS ====================

def _wardrobe_summary(items: Sequence[WardrobeItem]) -> Dict[str, Any]:
    categories: Dict[str, int] = {}
    for item in items:
        categories[item.category] = categories.get(item.category, 0) + 1
    return {
        "total_items": len(items),
        "categories": dict(sorted(categories.items())),
        "items": [{"name": item.name, "category": item.category} for item in items],
    }


def build_recommendation_prompt(
    profile: Optional[StyleProfile],
    items: Sequence[WardrobeItem],
    outfit_history: Optional[Sequence[Dict[str, Any]]] = None
) -> Prompt:
    """Build the comprehensive style-recommendation prompt."""
    history = list(outfit_history or [])
    context = {
        "wardrobe": _wardrobe_summary(items),
        "outfit_history": {
            "total_outfits": len(history),
            "occasions": [h.get("occasion") for h in history],
            "recent_outfits": [
                {
                    "name": h.get("name"),
                    "occasion": h.get("occasion"),
                    "items_count": len(h.get("items") or []),
                }
                for h in history[-5:]
            ],
        },
    }

    prompt_parts = [
        "Analyze this user's complete style profile and provide comprehensive personalized recommendations.",
        "",
        build_profile_section(profile),
        "",
        "## USER ANALYSIS",
        json.dumps(context, indent=2, sort_keys=True),
        "",
        "TASK: Generate 8-12 personalized recommendations covering:",
        "1. STYLE DNA OPTIMIZATION (2-3): color palette refinements, style personality, body type strategies",
        "2. WARDROBE ANALYSIS & DECLUTTERING (2-3): gaps, what to remove and why, investment priorities",
        "3. OUTFIT GENERATION INSIGHTS (2-3): styling formulas, occasion strategies, mix-and-match",
        "4. PERSONALIZED SHOPPING GUIDANCE (2-3): specific items, brands within budget, seasonal priorities",
        "",
        "REQUIREMENTS:",
        "- Each recommendation must be specific to this user's data",
        "- Assign priority: \"high\" (immediate action), \"medium\" (next 3 months), \"low\" (future consideration)",
        "- description: 100-150 words; reasoning: 50-75 words",
        "",
        "Respond with a JSON object matching this schema:",
        json.dumps(RECOMMENDATION_RESPONSE_SCHEMA, sort_keys=True),
    ]

    return Prompt(
        system=RECOMMENDATION_SYSTEM_PROMPT,
        user="\n".join(prompt_parts),
        schema_name="recommendation_list",
        response_schema=RECOMMENDATION_RESPONSE_SCHEMA,
    )


def build_declutter_prompt(
    profile: Optional[StyleProfile],
    items: Sequence[WardrobeItem]
) -> Prompt:
    """
    Build the declutter prompt.

    Raises:
        EmptyInventoryError: If ``items`` is empty
    """
    _require_items(items)

    prompt_parts = [
        "As AURAA's Wardrobe Optimization Expert, analyze this user's wardrobe for decluttering opportunities.",
        "",
        build_profile_section(profile),
        "",
        f"## WARDROBE INVENTORY ({len(items)} items)",
        "\n".join(f"- {item.name} ({item.category})" for item in items),
        "",
        "TASK: Generate 3-5 specific decluttering recommendations covering:",
        "1. Items to remove and why",
        "2. Categories that are over/under-represented",
        "3. Quality vs. quantity optimization",
        "4. Seasonal organization strategies",
        "5. Investment piece priorities",
        "",
        "Respond with a JSON object matching this schema:",
        json.dumps(RECOMMENDATION_RESPONSE_SCHEMA, sort_keys=True),
    ]

    return Prompt(
        system=DECLUTTER_SYSTEM_PROMPT,
        user="\n".join(prompt_parts),
        schema_name="recommendation_list",
        response_schema=RECOMMENDATION_RESPONSE_SCHEMA,
    )


# ==================== WARDROBE ANALYSIS ====================

def build_analysis_prompt(
    items: Sequence[WardrobeItem],
    profile: Optional[StyleProfile]
) -> Prompt:
    """
    Build the per-item wardrobe analysis prompt.

    Raises:
        EmptyInventoryError: If ``items`` is empty
    """
    _require_items(items)

    prompt_parts = [
        "Analyze this wardrobe for style optimization and decluttering guidance.",
        "",
        build_profile_section(profile),
        "",
        build_inventory_section(items),
        "",
        "ANALYSIS INSTRUCTIONS:",
        "1. Score each item 0-100 on style alignment, color match, versatility and quality",
        "2. Give a keep/alter/donate recommendation with clear reasoning",
        "3. Assess fit as excellent/good/needs_alteration/poor",
        "4. Suggest improvements and outfit pairings for each item",
        "5. Identify wardrobe gaps and priority purchases",
        "6. Provide declutter, organization, seasonal rotation and budget strategies",
        "",
        allowed_ids_line(items),
        "Return exactly one entry per allowed id; do not add ids that are not listed.",
        "",
        "Respond with a JSON object matching this schema:",
        json.dumps(ANALYSIS_RESPONSE_SCHEMA, sort_keys=True),
    ]

    return Prompt(
        system=ANALYSIS_SYSTEM_PROMPT,
        user="\n".join(prompt_parts),
        schema_name="wardrobe_analysis",
        response_schema=ANALYSIS_RESPONSE_SCHEMA,
    )


# ==================== STYLE PROFILE ANALYSIS ====================

DEFAULT_ANALYSIS_OCCASIONS = ("everyday",)


def style_profile_occasions(profile: Optional[StyleProfile]) -> List[str]:
    """Lower-cased occasion keys expected under ``occasion_specific``."""
    occasions = profile.occasions if profile is not None and profile.occasions else DEFAULT_ANALYSIS_OCCASIONS
    keys = []
    for occasion in occasions:
        key = occasion.strip().lower()
        if key and key not in keys:
            keys.append(key)
    return keys


def build_style_profile_prompt(profile: Optional[StyleProfile]) -> Prompt:
    """
    Build the Style DNA prompt for one profile.

    Works without a wardrobe. A missing profile is rendered with neutral
    defaults and the model is told to keep its advice broadly applicable.
    """
    occasion_keys = style_profile_occasions(profile)

    prompt_parts = [
        "Analyze this style profile for precise, actionable style recommendations.",
        "",
        "KEY FOCUS:",
        "- Goal achievement over preferences",
        "- Scientific color and body analysis",
        "- Budget-conscious recommendations",
        "- Confidence-building strategies",
        "",
        build_profile_section(profile),
        "",
        "ANALYSIS REQUIREMENTS:",
        "1. style_dna: primary and secondary style, a 2-3 sentence description, confidence_score between 0.0 and 1.0",
        "2. color_palette: 12-season classification, 5 best colors, 3 colors to avoid, 3 neutrals, 2 accents "
        "(colors as hex codes like #2C3E50)",
        "3. body_analysis: body type confirmation, 4 flattering silhouettes, 3 proportion tips, 3 fit guidelines",
        "4. personalized_tips: 5 shopping priorities, 5 styling techniques, 8 wardrobe essentials, "
        "and 2 key pieces per occasion",
        "5. confidence_boost: 2 strengths, 2 gentle improvements, 3 immediate action steps",
        "6. goal_alignment: one sentence per stated goal on how the advice serves it",
        "7. overall_recommendation: a 2 sentence summary with encouragement",
        "",
        f"Use exactly these keys under personalized_tips.occasion_specific: {', '.join(occasion_keys)}",
        "",
        "GOAL-ORIENTED ANALYSIS:",
        "- If a goal conflicts with a stated preference, recommend what serves the goal and explain why",
        "- Keep suggestions within the stated budget",
        "- Use a warm, encouraging and conversational tone",
    ]
    if profile is None:
        prompt_parts.extend([
            "",
            "No style diagnosis is on file. Keep every recommendation broadly flattering and say so in",
            "overall_recommendation; use a low confidence_score.",
        ])
    prompt_parts.extend([
        "",
        "Respond with a JSON object matching this schema:",
        json.dumps(STYLE_PROFILE_RESPONSE_SCHEMA, sort_keys=True),
    ])

    return Prompt(
        system=STYLE_PROFILE_SYSTEM_PROMPT,
        user="\n".join(prompt_parts),
        schema_name="style_profile_analysis",
        response_schema=STYLE_PROFILE_RESPONSE_SCHEMA,
    )
