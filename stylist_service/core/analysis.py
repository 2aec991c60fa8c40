"""
Analyzers (v1.2.0)
Per-item keep/alter/donate wardrobe assessment, and the Style DNA
analysis of a user's profile.
"""
import logging
from typing import Optional, Sequence

from stylist_service.core.errors import EmptyInventoryError
from stylist_service.core.models import StyleAnalysis, StyleProfile, WardrobeAnalysis, WardrobeItem
from stylist_service.core.prompts import build_analysis_prompt, build_style_profile_prompt
from stylist_service.core.validation import validate_style_analysis, validate_wardrobe_analysis
from stylist_service.llm.invoker import GenerationInvoker

logger = logging.getLogger(__name__)


class WardrobeAnalyzer:
    """Runs the analysis prompt against the advisor model."""

    def __init__(self, invoker: GenerationInvoker):
        self.invoker = invoker

    async def analyze(
        self,
        items: Sequence[WardrobeItem],
        profile: Optional[StyleProfile]
    ) -> WardrobeAnalysis:
        """
        Analyze every item in the wardrobe.

        Args:
            items: Inventory snapshot
            profile: Style profile or None

        Returns:
            WardrobeAnalysis keyed by item id (unknown ids dropped)

        Raises:
            EmptyInventoryError: Before any provider call
            ProviderUnavailableError, MalformedResponseError
        """
        snapshot = tuple(items)
        if not snapshot:
            raise EmptyInventoryError()

        raw = await self.invoker.invoke(build_analysis_prompt(snapshot, profile))
        analysis = validate_wardrobe_analysis(raw, snapshot)

        missing = [item.id for item in snapshot if item.id not in analysis.item_analyses]
        if missing:
            logger.info(f"No analysis returned for item(s) {missing}")

        counts = analysis.counts
        logger.info(
            f"Wardrobe analyzed: {len(analysis.item_analyses)}/{len(snapshot)} items "
            f"(keep={counts['keep']}, alter={counts['alter']}, donate={counts['donate']})"
        )
        return analysis


class StyleAnalyzer:
    """Runs the Style DNA prompt against the advisor model."""

    def __init__(self, invoker: GenerationInvoker):
        self.invoker = invoker

    async def analyze(self, profile: Optional[StyleProfile]) -> StyleAnalysis:
        """
        Analyze a style profile.

        A missing profile is still analyzed, against neutral defaults, and
        the result is flagged with ``profile_on_file=False``.

        Raises:
            ProviderUnavailableError, MalformedResponseError
        """
        if profile is None:
            logger.info("No style profile on file, analyzing neutral defaults")

        raw = await self.invoker.invoke(build_style_profile_prompt(profile))
        analysis = validate_style_analysis(raw, profile_on_file=profile is not None)

        logger.info(
            f"Style analyzed: {analysis.primary_style} / "
            f"{analysis.color_palette['seasonal_type']} "
            f"(confidence={analysis.style_dna['confidence_score']:.2f})"
        )
        return analysis
