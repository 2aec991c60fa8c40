"""
Tests for the prompt builder.
"""
import json

import pytest

from stylist_service.core.errors import EmptyInventoryError
from stylist_service.core.models import GenerationRequest, StyleProfile
from stylist_service.core.prompts import (
    OUTFIT_RESPONSE_SCHEMA,
    PROFILE_DEFAULTS,
    build_analysis_prompt,
    build_declutter_prompt,
    build_outfit_prompt,
    build_profile_section,
    build_recommendation_prompt,
    build_style_profile_prompt,
    style_profile_occasions,
)


class TestOutfitPrompt:
    """Outfit prompt content and schema."""

    def test_enumerates_every_item_id(self, wardrobe, profile):
        prompt = build_outfit_prompt(wardrobe, profile, GenerationRequest(occasion="work"))

        for item in wardrobe:
            assert f"- ID: {item.id}" in prompt.user
        assert "ALLOWED ITEM IDS: [1, 2, 3, 4, 5]" in prompt.user

    def test_states_closed_vocabulary_rule(self, inventory):
        prompt = build_outfit_prompt(inventory, None, GenerationRequest(occasion="work"))

        assert "CRITICAL" in prompt.user
        assert "ONLY" in prompt.user

    def test_includes_request_context(self, inventory):
        request = GenerationRequest(
            occasion="wedding", weather="rainy", mood="romantic", season="spring",
            preferences="no heels", count=2,
        )

        prompt = build_outfit_prompt(inventory, None, request)

        assert "Occasion: wedding" in prompt.user
        assert "Weather: rainy" in prompt.user
        assert "Mood: romantic" in prompt.user
        assert "Season: spring" in prompt.user
        assert "no heels" in prompt.user
        assert "Generate 2 outfit combinations" in prompt.user

    def test_item_attributes_fall_back_to_not_specified(self, inventory):
        prompt = build_outfit_prompt(inventory, None, GenerationRequest(occasion="work"))

        assert "Material: Not specified" in prompt.user
        assert "AI Analysis: Not analyzed" in prompt.user

    def test_schema_is_identical_across_inputs(self, inventory, wardrobe, profile):
        first = build_outfit_prompt(inventory, None, GenerationRequest(occasion="work"))
        second = build_outfit_prompt(wardrobe, profile, GenerationRequest(occasion="gala", count=5))

        assert first.response_schema == second.response_schema == OUTFIT_RESPONSE_SCHEMA
        assert first.schema_name == second.schema_name == "outfit_list"
        assert "outfits" in first.response_schema["properties"]

    def test_deterministic(self, wardrobe, profile):
        request = GenerationRequest(occasion="work")

        assert build_outfit_prompt(wardrobe, profile, request) == build_outfit_prompt(wardrobe, profile, request)

    def test_empty_inventory_refused(self):
        with pytest.raises(EmptyInventoryError):
            build_outfit_prompt([], None, GenerationRequest(occasion="work"))

    def test_messages_shape(self, inventory):
        prompt = build_outfit_prompt(inventory, None, GenerationRequest(occasion="work"))
        messages = prompt.to_messages()

        assert [m["role"] for m in messages] == ["system", "user"]


class TestProfileSection:
    """Missing profile data degrades to neutral defaults."""

    def test_missing_profile_uses_neutral_defaults(self):
        section = build_profile_section(None)

        assert "Body Type: unspecified" in section
        assert f"Color Preferences: {PROFILE_DEFAULTS['color_preferences']}" in section

    def test_partial_profile_fills_gaps(self):
        section = build_profile_section(StyleProfile(body_type="athletic"))

        assert "Body Type: athletic" in section
        assert "Color Preferences: no color constraint" in section

    def test_list_fields_joined(self, profile):
        section = build_profile_section(profile)

        assert "Color Preferences: navy, camel" in section
        assert "Goals: build a capsule wardrobe" in section


class TestAdvisorPrompts:
    """Recommendation, declutter and analysis prompts."""

    def test_recommendation_prompt_allows_empty_wardrobe(self):
        prompt = build_recommendation_prompt(None, [])

        assert prompt.schema_name == "recommendation_list"
        assert '"total_items": 0' in prompt.user

    def test_recommendation_prompt_summarizes_history(self, inventory):
        history = [{"name": "Monday look", "occasion": "work", "items": [1, 2]}]

        prompt = build_recommendation_prompt(None, inventory, history)

        assert "Monday look" in prompt.user
        assert '"total_outfits": 1' in prompt.user

    def test_declutter_prompt_requires_items(self):
        with pytest.raises(EmptyInventoryError):
            build_declutter_prompt(None, [])

    def test_declutter_prompt_lists_items(self, inventory):
        prompt = build_declutter_prompt(None, inventory)

        assert "- White Oxford Shirt (tops)" in prompt.user
        assert prompt.response_schema == build_recommendation_prompt(None, []).response_schema

    def test_analysis_prompt_lists_ids(self, inventory):
        prompt = build_analysis_prompt(inventory, None)

        assert prompt.schema_name == "wardrobe_analysis"
        assert "ALLOWED ITEM IDS: [1, 2]" in prompt.user

    def test_analysis_prompt_asks_for_action_lists(self, inventory):
        prompt = build_analysis_prompt(inventory, None)

        assert "versatility and quality" in prompt.user
        assert "declutter_plan" in json.dumps(prompt.response_schema)


class TestStyleProfilePrompt:
    """Style DNA prompt."""

    def test_profile_rendered_with_gender(self):
        profile = StyleProfile(gender="female", body_type="pear", occasions=("Work", "Date Night"))

        prompt = build_style_profile_prompt(profile)

        assert prompt.schema_name == "style_profile_analysis"
        assert "Gender: female" in prompt.user
        assert "Body Type: pear" in prompt.user
        assert "occasion_specific: work, date night" in prompt.user
        assert "No style diagnosis is on file" not in prompt.user

    def test_missing_profile_uses_defaults(self):
        prompt = build_style_profile_prompt(None)

        assert f"Gender: {PROFILE_DEFAULTS['gender']}" in prompt.user
        assert "occasion_specific: everyday" in prompt.user
        assert "No style diagnosis is on file" in prompt.user

    def test_duplicate_occasions_collapsed(self):
        assert style_profile_occasions(StyleProfile(occasions=("Work", " work", "Gym"))) == ["work", "gym"]

    def test_schema_fixed_and_deterministic(self, profile):
        first = build_style_profile_prompt(profile)

        assert first == build_style_profile_prompt(profile)
        assert first.response_schema == build_style_profile_prompt(None).response_schema
        assert set(first.response_schema["required"]) >= {
            "style_dna", "color_palette", "body_analysis",
            "personalized_tips", "confidence_boost", "overall_recommendation",
        }
