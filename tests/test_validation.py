"""
Tests for response validation: outfit shape, closed vocabulary, normalization.
"""
import pytest

from conftest import outfit, style_analysis

from stylist_service.core.errors import (
    ClosedVocabularyViolation,
    MalformedResponseError,
    NoValidOutfitsError,
)
from stylist_service.core.models import GenerationRequest
from stylist_service.core.validation import (
    VocabularyPolicy,
    normalize_recommendations,
    validate_outfits,
    validate_style_analysis,
    validate_wardrobe_analysis,
)


@pytest.fixture
def work_request():
    return GenerationRequest(occasion="work")


# ==================== CLOSED VOCABULARY ====================

class TestClosedVocabulary:
    """Outfits may only reference ids from the inventory snapshot."""

    def test_known_ids_pass(self, inventory, work_request):
        """Items [1, 2] against inventory {1, 2} validate to one outfit."""
        raw = {"outfits": [outfit([1, 2], name="Office Classic")]}

        report = validate_outfits(raw, inventory, work_request)

        assert len(report.outfits) == 1
        assert report.outfits[0].items == (1, 2)
        assert report.outfits[0].occasion == "work"

    def test_unknown_id_fails_single_mode(self, inventory, work_request):
        """An out-of-range id fails the whole call under STRICT."""
        raw = {"outfits": [outfit([1, 2, 99], name="Invented")]}

        with pytest.raises(ClosedVocabularyViolation) as exc_info:
            validate_outfits(raw, inventory, work_request, VocabularyPolicy.STRICT)

        assert exc_info.value.unknown_ids == [99]
        assert exc_info.value.outfit_name == "Invented"
        assert exc_info.value.occasion == "work"

    def test_unknown_id_fails_even_with_valid_siblings(self, inventory):
        """STRICT never keeps the good outfits when one is bad."""
        request = GenerationRequest(occasion="work", count=2)
        raw = {"outfits": [outfit([1, 2]), outfit([2, 42])]}

        with pytest.raises(ClosedVocabularyViolation):
            validate_outfits(raw, inventory, request, VocabularyPolicy.STRICT)

    def test_unknown_id_dropped_in_batch_mode(self, inventory):
        """DROP removes the offending outfit and records the violation."""
        request = GenerationRequest(occasion="work", count=2)
        raw = {"outfits": [outfit([1, 2], name="Good"), outfit([2, 99], name="Bad")]}

        report = validate_outfits(raw, inventory, request, VocabularyPolicy.DROP)

        assert [o.name for o in report.outfits] == ["Good"]
        assert len(report.violations) == 1
        assert report.violations[0].unknown_ids == [99]

    def test_all_dropped_raises_no_valid_outfits(self, inventory, work_request):
        """Zero outfits left after dropping is itself an error."""
        raw = {"outfits": [outfit([7]), outfit([8, 9])]}

        with pytest.raises(NoValidOutfitsError):
            validate_outfits(raw, inventory, work_request, VocabularyPolicy.DROP)


# ==================== SHAPE ====================

class TestOutfitShape:
    """Structural checks before the vocabulary check."""

    @pytest.mark.parametrize("raw", [
        [],
        "outfits",
        {"looks": []},
        {"outfits": {"name": "x"}},
    ])
    def test_bad_top_level_is_malformed(self, inventory, work_request, raw):
        with pytest.raises(MalformedResponseError):
            validate_outfits(raw, inventory, work_request)

    def test_empty_outfit_list_is_no_valid_outfits(self, inventory, work_request):
        with pytest.raises(NoValidOutfitsError):
            validate_outfits({"outfits": []}, inventory, work_request)

    def test_missing_required_field_is_malformed(self, inventory, work_request):
        entry = outfit([1, 2])
        del entry["reasoning"]

        with pytest.raises(MalformedResponseError):
            validate_outfits({"outfits": [entry]}, inventory, work_request)

    def test_string_ids_are_not_coerced(self, inventory, work_request):
        """Item ids must be integers, not numeric strings."""
        with pytest.raises(MalformedResponseError):
            validate_outfits({"outfits": [outfit(["1", "2"])]}, inventory, work_request)

    def test_empty_items_is_malformed(self, inventory, work_request):
        with pytest.raises(MalformedResponseError):
            validate_outfits({"outfits": [outfit([])]}, inventory, work_request)

    def test_malformed_entry_dropped_in_batch_mode(self, inventory):
        request = GenerationRequest(occasion="work", count=2)
        raw = {"outfits": [{"name": "broken"}, outfit([1])]}

        report = validate_outfits(raw, inventory, request, VocabularyPolicy.DROP)

        assert len(report.outfits) == 1
        assert len(report.malformed) == 1
        assert report.dropped == 1


# ==================== NORMALIZATION ====================

class TestOutfitNormalization:
    """Optional fields and defaults."""

    def test_missing_tags_become_empty(self, inventory, work_request):
        report = validate_outfits({"outfits": [outfit([1, 2])]}, inventory, work_request)
        assert report.outfits[0].tags == ()

    def test_season_and_mood_default_to_request(self, inventory):
        request = GenerationRequest(occasion="work", season="autumn", mood="confident")
        report = validate_outfits({"outfits": [outfit([1, 2])]}, inventory, request)

        assert report.outfits[0].season == "autumn"
        assert report.outfits[0].mood == "confident"

    def test_season_and_mood_omitted_without_request_values(self, inventory, work_request):
        report = validate_outfits({"outfits": [outfit([1, 2])]}, inventory, work_request)

        assert report.outfits[0].season is None
        assert report.outfits[0].mood is None

    def test_provider_values_win_over_request(self, inventory):
        request = GenerationRequest(occasion="work", season="autumn")
        raw = {"outfits": [outfit([1, 2], season="winter", tags=["layered"])]}

        report = validate_outfits(raw, inventory, request)

        assert report.outfits[0].season == "winter"
        assert report.outfits[0].tags == ("layered",)

    def test_duplicate_ids_collapsed_in_order(self, inventory, work_request):
        report = validate_outfits({"outfits": [outfit([2, 1, 2])]}, inventory, work_request)
        assert report.outfits[0].items == (2, 1)

    def test_extra_outfits_trimmed_to_count(self, inventory):
        request = GenerationRequest(occasion="work", count=1)
        raw = {"outfits": [outfit([1], name="A"), outfit([2], name="B")]}

        report = validate_outfits(raw, inventory, request)

        assert [o.name for o in report.outfits] == ["A"]


# ==================== RECOMMENDATIONS ====================

class TestRecommendationNormalization:
    """Advisory entries are normalized, never rejected."""

    def test_unknown_priority_becomes_medium(self):
        raw = {"recommendations": [{"title": "Add a blazer", "priority": "urgent"}]}

        recs = normalize_recommendations(raw)

        assert len(recs) == 1
        assert recs[0].priority == "medium"

    @pytest.mark.parametrize("priority", ["high", "HIGH", " low "])
    def test_known_priority_kept(self, priority):
        recs = normalize_recommendations({"recommendations": [{"priority": priority}]})
        assert recs[0].priority == priority.strip().lower()

    def test_missing_fields_get_defaults(self):
        recs = normalize_recommendations({"recommendations": [{"title": "  "}]})

        assert recs[0].type == "general"
        assert recs[0].title == "Style Recommendation"
        assert recs[0].tags == ()

    def test_tags_coerced_to_strings(self):
        recs = normalize_recommendations({"recommendations": [{"tags": ["color", 3, None, ""]}]})
        assert recs[0].tags == ("color", "3")

    def test_non_object_entries_skipped(self):
        recs = normalize_recommendations({"recommendations": ["just text", {"title": "Real"}]})
        assert [r.title for r in recs] == ["Real"]

    def test_missing_list_is_malformed(self):
        with pytest.raises(MalformedResponseError):
            normalize_recommendations({"advice": []})


# ==================== WARDROBE ANALYSIS ====================

class TestWardrobeAnalysisValidation:
    """Per-item analysis is restricted to known items."""

    def test_unknown_ids_dropped(self, inventory):
        raw = {"item_analysis": [
            {"id": 1, "style_alignment": 80, "color_match": 70, "recommendation": "keep"},
            {"id": 77, "style_alignment": 50, "color_match": 50, "recommendation": "donate"},
        ]}

        analysis = validate_wardrobe_analysis(raw, inventory)

        assert list(analysis.item_analyses) == [1]
        assert analysis.dropped_ids == [77]

    def test_scores_clamped(self, inventory):
        raw = {"item_analysis": [
            {"id": 1, "style_alignment": 140, "color_match": -5, "recommendation": "Keep"},
        ]}

        result = validate_wardrobe_analysis(raw, inventory).item_analyses[1]

        assert result.style_alignment == 100
        assert result.color_match == 0
        assert result.recommendation == "keep"

    def test_invalid_recommendation_dropped(self, inventory):
        raw = {"item_analysis": [
            {"id": 2, "style_alignment": 60, "color_match": 60, "recommendation": "burn"},
        ]}

        analysis = validate_wardrobe_analysis(raw, inventory)

        assert analysis.item_analyses == {}
        assert analysis.dropped_ids == [2]

    def test_overview_parsed(self, inventory):
        raw = {
            "item_analysis": [],
            "wardrobe_overview": {"gap_analysis": ["No outerwear"], "overall_score": 72},
        }

        analysis = validate_wardrobe_analysis(raw, inventory)

        assert analysis.gap_analysis == ["No outerwear"]
        assert analysis.overall_score == 72
        assert analysis.to_dict()["overview"]["total_items"] == 0

    def test_item_extras_carried(self, inventory):
        raw = {"item_analysis": [{
            "id": 2, "style_alignment": 60, "color_match": 70, "versatility": 130, "quality": "55",
            "recommendation": "alter", "improvement_suggestions": ["Hem to ankle length", ""],
            "outfit_pairings": "not a list",
        }]}

        result = validate_wardrobe_analysis(raw, inventory).item_analyses[2]

        assert result.versatility == 100
        assert result.quality == 55
        assert result.improvement_suggestions == ("Hem to ankle length",)
        assert result.outfit_pairings == ()

    def test_optional_scores_may_be_missing(self, inventory):
        raw = {"item_analysis": [{"id": 1, "style_alignment": 80, "color_match": 70, "recommendation": "keep"}]}

        result = validate_wardrobe_analysis(raw, inventory).item_analyses[1]

        assert result.versatility is None
        assert result.quality is None

    def test_recommendations_block_parsed(self, inventory):
        raw = {
            "item_analysis": [],
            "wardrobe_overview": {"style_consistency": 64},
            "recommendations": {
                "declutter_plan": ["Donate worn tees"],
                "organization_tips": ["Group by color"],
                "budget_optimization": None,
            },
        }

        data = validate_wardrobe_analysis(raw, inventory).to_dict()

        assert data["overview"]["style_consistency"] == 64
        assert data["recommendations"]["declutter_plan"] == ["Donate worn tees"]
        assert data["recommendations"]["organization_tips"] == ["Group by color"]
        assert data["recommendations"]["seasonal_rotation"] == []
        assert data["recommendations"]["budget_optimization"] == []


# ==================== STYLE PROFILE ANALYSIS ====================

class TestStyleAnalysisValidation:
    """Style DNA sections are required; their text lists are coerced."""

    def test_valid_analysis(self):
        analysis = validate_style_analysis(style_analysis())

        assert analysis.primary_style == "Classic"
        assert analysis.color_palette["seasonal_type"] == "Soft Autumn"
        assert analysis.personalized_tips["occasion_specific"] == {"work": ["Blazer", "Loafers"]}
        assert analysis.budget_optimization is None
        assert analysis.profile_on_file is True

    @pytest.mark.parametrize("section", [
        "style_dna", "color_palette", "body_analysis", "personalized_tips",
        "confidence_boost", "overall_recommendation",
    ])
    def test_missing_section_is_malformed(self, section):
        raw = style_analysis()
        del raw[section]

        with pytest.raises(MalformedResponseError) as exc_info:
            validate_style_analysis(raw)

        assert section in exc_info.value.detail

    def test_blank_primary_style_is_malformed(self):
        raw = style_analysis(style_dna={"primary_style": "", "confidence_score": 0.5})

        with pytest.raises(MalformedResponseError):
            validate_style_analysis(raw)

    @pytest.mark.parametrize("score,expected", [(0.7, 0.7), (85, 0.85), (-1, 0.0), ("high", 0.0)])
    def test_confidence_score_clamped(self, score, expected):
        raw = style_analysis(style_dna={"primary_style": "Classic", "confidence_score": score})

        assert validate_style_analysis(raw).style_dna["confidence_score"] == pytest.approx(expected)

    def test_lists_and_maps_coerced(self):
        raw = style_analysis(
            personalized_tips={
                "shopping_guide": "buy less",
                "occasion_specific": {"Work ": ["Blazer", None], "": ["ignored"]},
            },
            goal_alignment={"look professional": "Navy reads as authority", "other": None},
            budget_optimization={"priority_purchases": ["Blazer"]},
        )

        analysis = validate_style_analysis(raw, profile_on_file=False)

        assert analysis.personalized_tips["shopping_guide"] == []
        assert analysis.personalized_tips["occasion_specific"] == {"work": ["Blazer"]}
        assert analysis.goal_alignment == {"look professional": "Navy reads as authority"}
        assert analysis.budget_optimization["priority_purchases"] == ["Blazer"]
        assert analysis.to_dict()["profile_on_file"] is False

    def test_non_object_is_malformed(self):
        with pytest.raises(MalformedResponseError):
            validate_style_analysis(["Classic"])
