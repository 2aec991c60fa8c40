"""
API Routes for Aura Stylist Service v1.0.0
Outfit generation, weekly/seasonal planning, recommendations, wardrobe and style analysis.
"""
import time
import uuid
import asyncio
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field, field_validator

from stylist_service import __version__
from stylist_service.config import (
    get_advisor_config,
    get_all_configs_dict,
    get_planner_config,
    get_provider_status,
    get_settings,
    validate_provider_config,
)
from stylist_service.core.analysis import StyleAnalyzer, WardrobeAnalyzer
from stylist_service.core.auth import get_current_user_id
from stylist_service.core.errors import ProviderUnavailableError, StylistError
from stylist_service.core.models import DEFAULT_OUTFIT_COUNT, GenerationRequest
from stylist_service.core.orchestrator import BatchResult, OutfitOrchestrator
from stylist_service.core.rate_limit import check_rate_limit
from stylist_service.core.recommendations import RecommendationService
from stylist_service.db import mongo
from stylist_service.db.store import MongoStore, StylistStore
from stylist_service.llm.invoker import GenerationInvoker
from stylist_service.observability import (
    get_metrics,
    increment_request,
    is_logging_enabled,
    log_request,
)

logger = logging.getLogger(__name__)

router = APIRouter()

DISCONNECT_POLL_SECONDS = 0.5
MAX_WEEKLY_OCCASIONS = 7


# ==================== REQUEST BODIES ====================

def _non_blank(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


class GenerateOutfitsBody(BaseModel):
    occasion: str = Field(min_length=1)
    weather: Optional[str] = None
    mood: Optional[str] = None
    season: Optional[str] = None
    preferences: Optional[str] = None
    count: int = Field(DEFAULT_OUTFIT_COUNT, ge=1)

    @field_validator("occasion")
    @classmethod
    def _occasion_required(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("occasion must not be blank")
        return value.strip()

    @field_validator("weather", "mood", "season", "preferences")
    @classmethod
    def _blank_to_none(cls, value: Optional[str]) -> Optional[str]:
        return _non_blank(value)

    def to_request(self) -> GenerationRequest:
        return GenerationRequest(
            occasion=self.occasion,
            weather=self.weather,
            season=self.season,
            mood=self.mood,
            preferences=self.preferences,
            count=self.count,
        )


class WeeklyPlanBody(BaseModel):
    occasions: List[str] = Field(min_length=1, max_length=MAX_WEEKLY_OCCASIONS)

    @field_validator("occasions")
    @classmethod
    def _occasions_required(cls, value: List[str]) -> List[str]:
        cleaned = [occasion.strip() for occasion in value]
        if any(not occasion for occasion in cleaned):
            raise ValueError("occasions must not contain blank entries")
        return cleaned


class SeasonalPlanBody(BaseModel):
    season: str = Field(min_length=1)

    @field_validator("season")
    @classmethod
    def _season_required(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("season must not be blank")
        return value.strip()


# ==================== DEPENDENCIES ====================

_store: Optional[StylistStore] = None


def get_store() -> StylistStore:
    """MongoDB-backed store (overridden in tests)."""
    global _store
    if _store is None:
        _store = MongoStore()
    return _store


def _require_llm():
    if not get_settings().llm_enabled:
        raise ProviderUnavailableError("LLM disabled by AURA_LLM_ENABLED")


def get_planner_invoker() -> GenerationInvoker:
    _require_llm()
    return GenerationInvoker(get_planner_config())


def get_advisor_invoker() -> GenerationInvoker:
    _require_llm()
    return GenerationInvoker(get_advisor_config())


def get_orchestrator(invoker: GenerationInvoker = Depends(get_planner_invoker)) -> OutfitOrchestrator:
    return OutfitOrchestrator(invoker)


def get_recommendation_service(
    invoker: GenerationInvoker = Depends(get_advisor_invoker)
) -> RecommendationService:
    return RecommendationService(invoker)


def get_wardrobe_analyzer(invoker: GenerationInvoker = Depends(get_advisor_invoker)) -> WardrobeAnalyzer:
    return WardrobeAnalyzer(invoker)


def get_style_analyzer(invoker: GenerationInvoker = Depends(get_advisor_invoker)) -> StyleAnalyzer:
    return StyleAnalyzer(invoker)


# ==================== HELPERS ====================

def _track_request(
    call_id: str,
    kind: str,
    provider: str,
    start: float,
    status: str,
    occasion: Optional[str] = None,
    outfits: int = 0,
    failures: int = 0,
    error: Optional[str] = None
):
    """Update metrics and the structured request log."""
    latency_ms = int((time.time() - start) * 1000)
    increment_request(error_kind=error)
    log_request(
        call_id=call_id,
        kind=kind,
        provider_used=provider,
        latency_ms=latency_ms,
        status=status,
        occasion=occasion,
        outfits=outfits,
        failures=failures,
        error=error,
    )


async def _load_inputs(store: StylistStore, user_id: str):
    """Fetch inventory and profile concurrently (pymongo is blocking)."""
    return await asyncio.gather(
        asyncio.to_thread(store.get_wardrobe, user_id),
        asyncio.to_thread(store.get_profile, user_id),
    )


async def _watch_disconnect(request: Request, cancel_event: asyncio.Event):
    """Set ``cancel_event`` once the client goes away."""
    while not cancel_event.is_set():
        if await request.is_disconnected():
            logger.warning(f"Client disconnected from {request.url.path}, cancelling batch")
            cancel_event.set()
            return
        await asyncio.sleep(DISCONNECT_POLL_SECONDS)


async def _run_batch_endpoint(
    request: Request,
    kind: str,
    user_id: str,
    store: StylistStore,
    orchestrator: OutfitOrchestrator,
    run
) -> dict:
    """
    Shared body for the weekly and seasonal planners.

    ``run(items, profile, cancel_event)`` starts the batch. Outfits that
    validated before a disconnect are still persisted.
    """
    call_id = uuid.uuid4().hex[:12]
    start = time.time()
    provider = orchestrator.invoker.provider_name

    try:
        items, profile = await _load_inputs(store, user_id)

        cancel_event = asyncio.Event()
        watcher = asyncio.create_task(_watch_disconnect(request, cancel_event))
        try:
            result: BatchResult = await run(items, profile, cancel_event)
        finally:
            watcher.cancel()

        saved = [
            await asyncio.to_thread(store.save_outfit, user_id, outfit)
            for outfit in result.outfits
        ]
    except StylistError as e:
        _track_request(call_id, kind, provider, start, "fail", error=e.kind)
        raise

    _track_request(
        call_id, kind, provider, start,
        "partial" if result.partial else "success",
        outfits=len(saved),
        failures=len(result.failures),
    )

    body = result.to_dict()
    body["outfits"] = [record.to_dict() for record in saved]
    return body


# ==================== PUBLIC ENDPOINTS ====================

@router.get("/health")
async def health_check():
    """Health check with observability info."""
    metrics = get_metrics()

    return {
        "status": "ok",
        "version": __version__,
        "llm": get_provider_status(),
        "llm_config": get_all_configs_dict(),
        "warnings": validate_provider_config(),
        "mongo": await asyncio.to_thread(mongo.health_check),
        "observability": {
            "logging_enabled": is_logging_enabled(),
            "total_requests": metrics["total_requests"],
            "vocabulary_violations": metrics["vocabulary_violations"],
            "total_cost_usd": metrics["total_cost_usd"],
        },
        "features": [
            "outfit_generation", "weekly_planner", "seasonal_planner",
            "recommendations", "declutter", "wardrobe_analysis", "style_analysis",
            "closed_vocabulary", "rate_limiting", "observability",
        ],
    }


@router.get("/metrics")
async def get_metrics_endpoint():
    """Get detailed metrics for monitoring."""
    return JSONResponse(content=get_metrics())


# ==================== OUTFITS ====================

@router.post("/outfits/generate", dependencies=[Depends(check_rate_limit)])
async def generate_outfits(
    body: GenerateOutfitsBody,
    user_id: str = Depends(get_current_user_id),
    store: StylistStore = Depends(get_store),
    orchestrator: OutfitOrchestrator = Depends(get_orchestrator),
):
    """
    Generate outfits for one occasion from the caller's wardrobe.

    Any reference to an item outside the wardrobe fails the whole call.
    """
    call_id = uuid.uuid4().hex[:12]
    start = time.time()
    provider = orchestrator.invoker.provider_name

    try:
        items, profile = await _load_inputs(store, user_id)
        outfits = await orchestrator.generate(items, profile, body.to_request())
        saved = [await asyncio.to_thread(store.save_outfit, user_id, outfit) for outfit in outfits]
    except StylistError as e:
        _track_request(call_id, "outfits", provider, start, "fail", occasion=body.occasion, error=e.kind)
        raise

    _track_request(call_id, "outfits", provider, start, "success", occasion=body.occasion, outfits=len(saved))
    return {"outfits": [record.to_dict() for record in saved]}


@router.post("/outfits/weekly", dependencies=[Depends(check_rate_limit)])
async def plan_weekly(
    body: WeeklyPlanBody,
    request: Request,
    user_id: str = Depends(get_current_user_id),
    store: StylistStore = Depends(get_store),
    orchestrator: OutfitOrchestrator = Depends(get_orchestrator),
):
    """One generation per day-occasion; partial success is reported, not raised."""

    async def run(items, profile, cancel_event):
        return await orchestrator.generate_weekly(items, profile, body.occasions, cancel_event)

    return await _run_batch_endpoint(request, "weekly", user_id, store, orchestrator, run)


@router.post("/outfits/seasonal", dependencies=[Depends(check_rate_limit)])
async def plan_seasonal(
    body: SeasonalPlanBody,
    request: Request,
    user_id: str = Depends(get_current_user_id),
    store: StylistStore = Depends(get_store),
    orchestrator: OutfitOrchestrator = Depends(get_orchestrator),
):
    """One outfit per fixed seasonal occasion."""

    async def run(items, profile, cancel_event):
        return await orchestrator.generate_seasonal(items, profile, body.season, cancel_event)

    return await _run_batch_endpoint(request, "seasonal", user_id, store, orchestrator, run)


# ==================== RECOMMENDATIONS ====================

@router.post("/recommendations", dependencies=[Depends(check_rate_limit)])
async def generate_recommendations(
    user_id: str = Depends(get_current_user_id),
    store: StylistStore = Depends(get_store),
    service: RecommendationService = Depends(get_recommendation_service),
):
    """Personalized style recommendations."""
    call_id = uuid.uuid4().hex[:12]
    start = time.time()
    provider = service.invoker.provider_name

    try:
        items, profile = await _load_inputs(store, user_id)
        history = await asyncio.to_thread(store.get_outfit_history, user_id)
        recommendations = (await service.generate(profile, items, history)).unwrap()
        await asyncio.to_thread(store.save_recommendations, user_id, recommendations)
    except StylistError as e:
        _track_request(call_id, "recommendations", provider, start, "fail", error=e.kind)
        raise

    _track_request(call_id, "recommendations", provider, start, "success")
    return {"recommendations": [rec.to_dict() for rec in recommendations]}


@router.post("/recommendations/declutter", dependencies=[Depends(check_rate_limit)])
async def generate_declutter(
    user_id: str = Depends(get_current_user_id),
    store: StylistStore = Depends(get_store),
    service: RecommendationService = Depends(get_recommendation_service),
):
    """Declutter recommendations for the caller's wardrobe."""
    call_id = uuid.uuid4().hex[:12]
    start = time.time()
    provider = service.invoker.provider_name

    try:
        items, profile = await _load_inputs(store, user_id)
        recommendations = (await service.declutter(profile, items)).unwrap()
        await asyncio.to_thread(store.save_recommendations, user_id, recommendations)
    except StylistError as e:
        _track_request(call_id, "declutter", provider, start, "fail", error=e.kind)
        raise

    _track_request(call_id, "declutter", provider, start, "success")
    return {"recommendations": [rec.to_dict() for rec in recommendations]}


# ==================== WARDROBE ANALYSIS ====================

@router.post("/wardrobe/analysis", dependencies=[Depends(check_rate_limit)])
async def analyze_wardrobe(
    user_id: str = Depends(get_current_user_id),
    store: StylistStore = Depends(get_store),
    analyzer: WardrobeAnalyzer = Depends(get_wardrobe_analyzer),
):
    """Analyze every wardrobe item and store the result on each item."""
    call_id = uuid.uuid4().hex[:12]
    start = time.time()
    provider = analyzer.invoker.provider_name

    try:
        items, profile = await _load_inputs(store, user_id)
        analysis = await analyzer.analyze(items, profile)
        for item_id, item_analysis in analysis.item_analyses.items():
            await asyncio.to_thread(store.attach_item_analysis, user_id, item_id, item_analysis)
    except StylistError as e:
        _track_request(call_id, "wardrobe_analysis", provider, start, "fail", error=e.kind)
        raise

    _track_request(call_id, "wardrobe_analysis", provider, start, "success")
    return analysis.to_dict()


# ==================== STYLE PROFILE ANALYSIS ====================

@router.post("/profile/analysis", dependencies=[Depends(check_rate_limit)])
async def analyze_style_profile(
    user_id: str = Depends(get_current_user_id),
    store: StylistStore = Depends(get_store),
    analyzer: StyleAnalyzer = Depends(get_style_analyzer),
):
    """Style DNA for the caller's profile; neutral defaults when none is on file."""
    call_id = uuid.uuid4().hex[:12]
    start = time.time()
    provider = analyzer.invoker.provider_name

    try:
        profile = await asyncio.to_thread(store.get_profile, user_id)
        analysis = await analyzer.analyze(profile)
    except StylistError as e:
        _track_request(call_id, "style_analysis", provider, start, "fail", error=e.kind)
        raise

    _track_request(call_id, "style_analysis", provider, start, "success")
    return analysis.to_dict()
