"""
Shared fixtures for the Aura Stylist Service test suite.
Provider stubs, an in-memory store and sample wardrobes.
"""
import re
import sys
import json
import asyncio
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from stylist_service.config import reload_settings, reset_llm_config
from stylist_service.config.llm_config import ActiveLLMConfig, LLMProvider, LLMRole
from stylist_service.core.errors import PersistenceError
from stylist_service.core.models import (
    GeneratedOutfit,
    ItemAnalysis,
    SavedOutfit,
    StyleProfile,
    WardrobeItem,
)
from stylist_service.core.rate_limit import rate_limiter
from stylist_service.llm.invoker import GenerationInvoker
from stylist_service.observability import reset_metrics
from stylist_service.observability.logger import reset_request_logger

TEST_MODEL = "gpt-4o-2024-08-06"


# ==================== PROVIDER STUB ====================

def occasion_of(prompt) -> Optional[str]:
    """Occasion named in an outfit prompt."""
    match = re.search(r"^Occasion: (.+)$", prompt.user, re.MULTILINE)
    return match.group(1) if match else None


def outfit(items, name="Look", **extra) -> Dict[str, Any]:
    """A provider-shaped outfit entry."""
    entry = {
        "name": name,
        "description": f"{name} description",
        "items": list(items),
        "reasoning": "Balanced colors and proportions",
    }
    entry.update(extra)
    return entry


def style_analysis(**overrides) -> Dict[str, Any]:
    """A provider-shaped Style DNA response."""
    payload = {
        "style_dna": {
            "primary_style": "Classic",
            "secondary_style": "Minimalist",
            "style_description": "Clean lines and tailored basics.",
            "confidence_score": 0.85,
        },
        "color_palette": {
            "seasonal_type": "Soft Autumn",
            "best_colors": ["#2C3E50", "#C19A6B", "#556B2F"],
            "colors_to_avoid": ["neon yellow"],
            "neutrals": ["#F5F5DC"],
            "accents": ["#800020"],
        },
        "body_analysis": {
            "body_type_confirmation": "Balanced hourglass proportions",
            "best_silhouettes": ["wrap", "belted"],
            "proportion_tips": ["Define the waist"],
            "fit_guidance": ["Tailor the shoulders"],
        },
        "personalized_tips": {
            "shopping_guide": ["Invest in a navy blazer"],
            "styling_tips": ["Tuck and belt"],
            "wardrobe_essentials": ["White shirt", "Camel coat"],
            "occasion_specific": {"work": ["Blazer", "Loafers"]},
        },
        "confidence_boost": {
            "strength_areas": ["Strong color sense"],
            "improvement_areas": ["Try more texture"],
            "action_plan": ["Audit your tops this week"],
        },
        "overall_recommendation": "You already have a strong base. Build on the navy and camel.",
    }
    payload.update(overrides)
    return payload


class StubProvider:
    """
    Provider double.

    ``handler(prompt)`` returns a dict (sent back as JSON), a raw string, or
    raises. Coroutine handlers are awaited, so tests can block or sleep.
    """

    name = "stub"

    def __init__(self, handler: Callable):
        self.handler = handler
        self.prompts: List[Any] = []
        self.model_ids: List[str] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.cancelled = 0

    @property
    def call_count(self) -> int:
        return len(self.prompts)

    async def complete(self, prompt, response_schema, model_id, timeout):
        self.prompts.append(prompt)
        self.model_ids.append(model_id)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            result = self.handler(prompt)
            if asyncio.iscoroutine(result):
                result = await result
        except asyncio.CancelledError:
            self.cancelled += 1
            raise
        finally:
            self.in_flight -= 1

        return result if isinstance(result, str) else json.dumps(result)


def make_invoker(provider, timeout: float = 5.0, role: LLMRole = LLMRole.PLANNER) -> GenerationInvoker:
    config = ActiveLLMConfig(
        role=role,
        provider=LLMProvider.OPENAI,
        model=TEST_MODEL,
        api_key="test-key",
        timeout_seconds=timeout,
    )
    return GenerationInvoker(config, provider=provider)


# ==================== FAKE STORE ====================

class FakeStore:
    """In-memory StylistStore."""

    def __init__(self, items=None, profile=None, history=None):
        self.items: List[WardrobeItem] = list(items or [])
        self.profile: Optional[StyleProfile] = profile
        self.history = list(history or [])
        self.saved: List[SavedOutfit] = []
        self.recommendations = []
        self.analyses: Dict[int, ItemAnalysis] = {}
        self.fail_writes = False

    def get_wardrobe(self, user_id):
        return list(self.items)

    def get_profile(self, user_id):
        return self.profile

    def get_outfit_history(self, user_id, limit=20):
        return self.history[-limit:]

    def save_outfit(self, user_id, outfit: GeneratedOutfit) -> SavedOutfit:
        if self.fail_writes:
            raise PersistenceError()
        saved = SavedOutfit(
            outfit_id=f"outfit-{len(self.saved) + 1}",
            user_id=user_id,
            created_at="2026-01-01T00:00:00+00:00",
            outfit=outfit,
        )
        self.saved.append(saved)
        return saved

    def save_recommendations(self, user_id, recommendations):
        if self.fail_writes:
            raise PersistenceError()
        self.recommendations.extend(recommendations)
        return len(recommendations)

    def attach_item_analysis(self, user_id, item_id, analysis):
        if self.fail_writes:
            raise PersistenceError()
        self.analyses[item_id] = analysis
        return True


# ==================== FIXTURES ====================

@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch, tmp_path):
    """Fresh settings, metrics and rate limits; no request log on disk."""
    monkeypatch.setenv("AURA_LOGGING_ENABLED", "false")
    monkeypatch.setenv("AURA_LOG_DIR", str(tmp_path / "logs"))
    monkeypatch.delenv("AURA_LLM_PROVIDER", raising=False)
    for name in ("AURA_ADVISOR_PROVIDER", "AURA_LLM_MODEL", "AURA_ADVISOR_MODEL", "AURA_LLM_TEMPERATURE"):
        monkeypatch.delenv(name, raising=False)
    reload_settings()
    reset_llm_config()
    reset_metrics()
    rate_limiter.reset()
    yield
    reset_llm_config()
    reset_request_logger()


@pytest.fixture
def inventory():
    """Two-item wardrobe: white top, navy bottoms."""
    return [
        WardrobeItem(id=1, name="White Oxford Shirt", category="tops", color="white"),
        WardrobeItem(id=2, name="Navy Chinos", category="bottoms", color="navy"),
    ]


@pytest.fixture
def wardrobe():
    """Five-item wardrobe."""
    return [
        WardrobeItem(id=1, name="White Oxford Shirt", category="tops", color="white"),
        WardrobeItem(id=2, name="Navy Chinos", category="bottoms", color="navy"),
        WardrobeItem(id=3, name="Camel Coat", category="outerwear", color="camel", material="wool"),
        WardrobeItem(id=4, name="Brown Loafers", category="shoes", color="brown", brand="Aldo"),
        WardrobeItem(id=5, name="Silk Scarf", category="accessories", color="burgundy", pattern="paisley"),
    ]


@pytest.fixture
def profile():
    return StyleProfile(
        body_type="hourglass",
        comfort_level="balanced",
        color_preferences=("navy", "camel"),
        color_avoidances=("neon",),
        goals=("build a capsule wardrobe",),
    )
