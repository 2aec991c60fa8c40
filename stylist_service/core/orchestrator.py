"""
Pipeline Orchestrator (v3.0.0)
Single-occasion outfit pipeline and the weekly/seasonal batch planners.

One generation call runs Prompt Builder -> Generation Invoker -> Validator.
Batches fan out one call per occasion against a frozen inventory snapshot.
"""
import uuid
import asyncio
import logging
from enum import Enum
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from stylist_service.config.settings import get_settings
from stylist_service.core.errors import (
    BatchGenerationError,
    ClosedVocabularyViolation,
    EmptyInventoryError,
    NoValidOutfitsError,
    StylistError,
)
from stylist_service.core.models import (
    GeneratedOutfit,
    GenerationRequest,
    StyleProfile,
    WardrobeItem,
)
from stylist_service.core.prompts import build_outfit_prompt
from stylist_service.core.validation import ValidationReport, VocabularyPolicy, validate_outfits
from stylist_service.llm.invoker import GenerationInvoker
from stylist_service.observability import metrics

logger = logging.getLogger(__name__)


SEASONAL_OCCASIONS = ("Work", "Casual", "Date night", "Weekend")
SEASONAL_OUTFITS_PER_OCCASION = 1


# ==================== CALL STATE ====================

class CallState(Enum):
    """Lifecycle of one generation call."""
    PENDING = "pending"
    PROMPT_BUILT = "prompt_built"
    INVOKED = "invoked"
    VALIDATED = "validated"
    REJECTED = "rejected"


# Forward-only; any non-terminal state may be rejected
_TRANSITIONS = {
    CallState.PENDING: {CallState.PROMPT_BUILT, CallState.REJECTED},
    CallState.PROMPT_BUILT: {CallState.INVOKED, CallState.REJECTED},
    CallState.INVOKED: {CallState.VALIDATED, CallState.REJECTED},
    CallState.VALIDATED: set(),
    CallState.REJECTED: set(),
}


@dataclass
class GenerationCall:
    """
    Tracks one trip through the pipeline.

    A rejected call is never resumed; ``retry()`` starts a new one.
    """
    occasion: str
    call_id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
    attempt: int = 1
    state: CallState = CallState.PENDING
    error: Optional[StylistError] = None
    cancelled: bool = False

    @property
    def finished(self) -> bool:
        return self.state in (CallState.VALIDATED, CallState.REJECTED)

    def advance(self, new_state: CallState):
        if new_state not in _TRANSITIONS[self.state]:
            raise RuntimeError(f"Invalid transition {self.state.value} -> {new_state.value}")
        logger.debug(f"[{self.call_id}] {self.state.value} -> {new_state.value}")
        self.state = new_state

    def reject(self, error: Optional[StylistError] = None, cancelled: bool = False):
        self.advance(CallState.REJECTED)
        self.error = error
        self.cancelled = cancelled

    def retry(self) -> "GenerationCall":
        if not self.finished:
            raise RuntimeError(f"Call {self.call_id} is still {self.state.value}")
        return GenerationCall(occasion=self.occasion, attempt=self.attempt + 1)


async def run_generation(
    invoker: GenerationInvoker,
    items: Sequence[WardrobeItem],
    profile: Optional[StyleProfile],
    request: GenerationRequest,
    policy: VocabularyPolicy,
    call: Optional[GenerationCall] = None
) -> ValidationReport:
    """
    Run one pipeline pass for one occasion.

    Args:
        invoker: Configured generation invoker
        items: Inventory snapshot
        profile: Style profile or None
        request: What to generate
        policy: Closed-vocabulary policy for validation
        call: State tracker (a fresh one is created if omitted)

    Raises:
        EmptyInventoryError: Before any provider call
        ProviderUnavailableError, MalformedResponseError,
        ClosedVocabularyViolation, NoValidOutfitsError
    """
    call = call or GenerationCall(occasion=request.occasion)

    if not items:
        error = EmptyInventoryError()
        call.reject(error)
        raise error

    prompt = build_outfit_prompt(items, profile, request)
    call.advance(CallState.PROMPT_BUILT)

    try:
        raw = await invoker.invoke(prompt)
    except StylistError as e:
        call.reject(e)
        raise
    except asyncio.CancelledError:
        call.reject(cancelled=True)
        raise
    call.advance(CallState.INVOKED)

    try:
        report = validate_outfits(raw, items, request, policy)
    except StylistError as e:
        call.reject(e)
        raise
    call.advance(CallState.VALIDATED)

    logger.info(
        f"[{call.call_id}] '{request.occasion}': {len(report.outfits)} outfit(s), "
        f"{report.dropped} dropped"
    )
    return report


# ==================== BATCH RESULT ====================

@dataclass(frozen=True)
class OccasionFailure:
    """Why one occasion of a batch produced nothing."""
    occasion: str
    kind: str
    message: str

    def to_dict(self) -> Dict[str, str]:
        return {"occasion": self.occasion, "kind": self.kind, "message": self.message}


@dataclass
class BatchResult:
    """
    Aggregated batch outcome.

    ``partial`` is the annotated-success case: some outfits plus recorded
    failures. A batch where everything failed is raised, never returned.
    """
    outfits: List[GeneratedOutfit] = field(default_factory=list)
    failures: List[OccasionFailure] = field(default_factory=list)
    violations: List[ClosedVocabularyViolation] = field(default_factory=list)
    calls: List[GenerationCall] = field(default_factory=list)
    cancelled: bool = False

    @property
    def partial(self) -> bool:
        return bool(self.outfits) and bool(self.failures)

    @property
    def succeeded(self) -> bool:
        return bool(self.outfits) and not self.failures

    def to_dict(self) -> Dict[str, Any]:
        return {
            "outfits": [outfit.to_dict() for outfit in self.outfits],
            "failures": [failure.to_dict() for failure in self.failures],
            "partial": self.partial,
            "cancelled": self.cancelled,
        }


# ==================== ORCHESTRATOR ====================

class OutfitOrchestrator:
    """
    Entry point for outfit generation.

    Usage:
        orchestrator = OutfitOrchestrator(GenerationInvoker(get_planner_config()))
        outfits = await orchestrator.generate(items, profile, request)
        batch = await orchestrator.generate_weekly(items, profile, ["Work", "Gym"])
    """

    def __init__(
        self,
        invoker: GenerationInvoker,
        max_concurrency: Optional[int] = None,
        max_outfit_count: Optional[int] = None,
        weekly_outfits_per_occasion: Optional[int] = None
    ):
        settings = get_settings()
        self.invoker = invoker
        self.max_concurrency = max(1, max_concurrency or settings.max_concurrency)
        self.max_outfit_count = max(1, max_outfit_count or settings.max_outfit_count)
        self.weekly_outfits_per_occasion = max(
            1, weekly_outfits_per_occasion or settings.weekly_outfits_per_occasion
        )

    async def generate(
        self,
        items: Sequence[WardrobeItem],
        profile: Optional[StyleProfile],
        request: GenerationRequest
    ) -> List[GeneratedOutfit]:
        """
        Single-occasion generation; any closed-vocabulary violation fails the call.

        Returns:
            Non-empty list of validated outfits
        """
        snapshot = tuple(items)
        request = request.capped(self.max_outfit_count)

        report = await run_generation(
            self.invoker, snapshot, profile, request, VocabularyPolicy.STRICT
        )
        metrics.record_outfits(len(report.outfits))
        return report.outfits

    async def generate_weekly(
        self,
        items: Sequence[WardrobeItem],
        profile: Optional[StyleProfile],
        occasions: Sequence[str],
        cancel_event: Optional[asyncio.Event] = None
    ) -> BatchResult:
        """
        One call per day-occasion, ``weekly_outfits_per_occasion`` outfits each.

        Raises:
            ValueError: No occasions given
            EmptyInventoryError: Empty wardrobe (before any provider call)
            BatchGenerationError: Every occasion failed
        """
        if not occasions:
            raise ValueError("occasions must contain at least one entry")

        requests = [
            GenerationRequest(occasion=occasion, count=self.weekly_outfits_per_occasion)
            for occasion in occasions
        ]
        return await self.run_batch(items, profile, requests, cancel_event)

    async def generate_seasonal(
        self,
        items: Sequence[WardrobeItem],
        profile: Optional[StyleProfile],
        season: str,
        cancel_event: Optional[asyncio.Event] = None
    ) -> BatchResult:
        """One outfit for each of the fixed seasonal occasions."""
        season = (season or "").strip()
        if not season:
            raise ValueError("season must be a non-empty string")

        requests = [
            GenerationRequest(occasion=occasion, season=season, count=SEASONAL_OUTFITS_PER_OCCASION)
            for occasion in SEASONAL_OCCASIONS
        ]
        return await self.run_batch(items, profile, requests, cancel_event)

    async def run_batch(
        self,
        items: Sequence[WardrobeItem],
        profile: Optional[StyleProfile],
        requests: Sequence[GenerationRequest],
        cancel_event: Optional[asyncio.Event] = None
    ) -> BatchResult:
        """
        Run independent per-occasion calls with bounded concurrency.

        The inventory is frozen into a tuple before the first call, so later
        changes to ``items`` are never seen by this batch. Setting
        ``cancel_event`` cancels whatever is still in flight; outfits that
        already validated are kept.
        """
        snapshot = tuple(items)
        if not snapshot:
            raise EmptyInventoryError()

        semaphore = asyncio.Semaphore(self.max_concurrency)
        result = BatchResult()

        async def run_one(request: GenerationRequest, call: GenerationCall) -> ValidationReport:
            async with semaphore:
                return await run_generation(
                    self.invoker, snapshot, profile, request, VocabularyPolicy.DROP, call
                )

        tasks = []
        for request in requests:
            call = GenerationCall(occasion=request.occasion)
            result.calls.append(call)
            tasks.append(asyncio.ensure_future(run_one(request.capped(self.max_outfit_count), call)))

        logger.info(
            f"Batch started: {len(tasks)} occasion(s), {len(snapshot)} items, "
            f"concurrency={self.max_concurrency}"
        )

        waiter = asyncio.ensure_future(cancel_event.wait()) if cancel_event is not None else None
        pending = set(tasks)

        try:
            while pending:
                watch = pending | {waiter} if waiter is not None else pending
                done, _ = await asyncio.wait(watch, return_when=asyncio.FIRST_COMPLETED)
                if waiter is not None and waiter in done:
                    logger.warning(f"Batch cancelled with {len(pending)} call(s) in flight")
                    result.cancelled = True
                    await _cancel_all(pending)
                    break
                pending -= done
        except asyncio.CancelledError:
            await _cancel_all(pending)
            raise
        finally:
            if waiter is not None:
                waiter.cancel()

        for request, call, task in zip(requests, result.calls, tasks):
            _collect(result, request, call, task)

        metrics.record_outfits(len(result.outfits), len(result.violations))

        if not result.outfits:
            logger.error(f"Batch failed: all {len(requests)} occasion(s) failed")
            raise BatchGenerationError(failures=result.failures)

        if result.partial:
            metrics.record_partial_batch()
            logger.warning(
                f"Batch partially succeeded: {len(result.outfits)} outfit(s), "
                f"failed occasions: {[f.occasion for f in result.failures]}"
            )

        return result


async def _cancel_all(tasks):
    for task in tasks:
        task.cancel()
    await asyncio.gather(*tasks, return_exceptions=True)


def _collect(result: BatchResult, request: GenerationRequest, call: GenerationCall, task: asyncio.Future):
    if task.cancelled():
        if not call.finished:
            call.reject(cancelled=True)
        result.failures.append(OccasionFailure(request.occasion, "cancelled", "Generation cancelled"))
        return

    error = task.exception()
    if error is None:
        report = task.result()
        result.outfits.extend(report.outfits)
        result.violations.extend(report.violations)
        return

    if isinstance(error, NoValidOutfitsError):
        result.violations.extend(error.violations)

    if isinstance(error, StylistError):
        result.failures.append(OccasionFailure(request.occasion, error.kind, error.message))
    else:
        logger.error(f"Unexpected error for occasion '{request.occasion}': {error!r}", exc_info=error)
        result.failures.append(OccasionFailure(request.occasion, "error", "Generation failed, try again"))
