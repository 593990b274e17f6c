"""Tests for territory, video, and campaign prompt enhancement."""
import pydantic
import pytest

from creative_studio.schemas.common import AnimationType, CampaignType, ChannelFormat, MediaType
from creative_studio.schemas.generation import BrandGuidelines, ImageToVideoRequest
from creative_studio.services.exceptions import ValidationError
from creative_studio.services.prompt_enhancer import (
    brand_consistency_elements,
    build_negative_prompt,
    enhance_prompt_for_template,
    enhance_prompt_for_territory,
    enhance_video_prompt,
    extract_style_keywords,
)


class TestExtractStyleKeywords:
    def test_matches_substring(self):
        assert extract_style_keywords("Bold and adventurous") == ["dynamic", "striking", "powerful", "confident"]

    def test_first_match_in_table_order_wins(self):
        # "professional" precedes "playful" in the table
        assert extract_style_keywords("playful yet professional")[0] == "clean"

    def test_default_keywords(self):
        assert extract_style_keywords("whimsical") == ["professional", "high-quality", "polished"]


class TestBrandElements:
    def test_full_guidelines(self, brand_guidelines):
        elements = brand_consistency_elements(brand_guidelines)
        assert elements[0] == "primary color #FF5500"
        assert "secondary colors #003366" in elements
        assert "Montserrat font family" in elements
        assert "natural light" in elements
        assert elements[-1] == "warm or film filter style"

    def test_empty_groups_omitted(self):
        elements = brand_consistency_elements(BrandGuidelines())
        assert not any(e.startswith("accent colors") for e in elements)
        assert not any(e.endswith("filter style") for e in elements)

    def test_negative_prompt_includes_prohibited(self, brand_guidelines):
        negative = build_negative_prompt(brand_guidelines)
        assert negative.startswith("low quality, blurry, pixelated, amateur, unprofessional")
        assert negative.endswith("alcohol, competitor logos")


class TestEnhancePromptForTerritory:
    def test_product_template(self, territory, brand_guidelines):
        result = enhance_prompt_for_territory("a canvas backpack", territory, brand_guidelines, "product", "australian")
        assert result.enhanced_prompt.startswith("Create a stunning product photography image for a canvas backpack.")
        assert "Territory positioning: the freedom of an unplanned weekend" in result.enhanced_prompt
        assert "coastal vibes" in result.enhanced_prompt
        assert "#FF5500, #003366, #FFD700" in result.enhanced_prompt
        assert "Avoid: low quality" in result.enhanced_prompt
        assert result.style_keywords == ["dynamic", "striking", "powerful", "confident"]
        assert len(result.cultural_adaptations) == 7
        assert result.original_prompt == "a canvas backpack"

    def test_deterministic(self, territory, brand_guidelines):
        first = enhance_prompt_for_territory("chair", territory, brand_guidelines, "hero", "global")
        second = enhance_prompt_for_territory("chair", territory, brand_guidelines, "hero", "global")
        assert first.enhanced_prompt == second.enhanced_prompt
        assert first == second

    @pytest.mark.parametrize("image_type, opening", [
        ("lifestyle", "Create an authentic lifestyle image"),
        ("background", "Design a beautiful background image"),
        ("hero", "Create a powerful hero image"),
        ("icon", "Create a stunning product photography image"),
    ])
    def test_template_per_image_type(self, territory, brand_guidelines, image_type, opening):
        result = enhance_prompt_for_territory("chair", territory, brand_guidelines, image_type, "global")
        assert result.enhanced_prompt.startswith(opening)

    def test_reasoning(self, territory, brand_guidelines):
        result = enhance_prompt_for_territory("chair", territory, brand_guidelines, "product", "regional")
        assert result.reasoning == (
            "Enhanced prompt for product image with Bold and adventurous tone, "
            "regional cultural context, and brand consistency elements."
        )

    def test_braces_in_prompt_are_literal(self, territory, brand_guidelines):
        result = enhance_prompt_for_territory("logo {brand}", territory, brand_guidelines, "product", "global")
        assert "logo {brand}" in result.enhanced_prompt

    def test_unknown_image_type(self, territory, brand_guidelines):
        with pytest.raises(ValidationError, match="Unsupported image type"):
            enhance_prompt_for_territory("chair", territory, brand_guidelines, "panorama", "global")

    def test_empty_prompt(self, territory, brand_guidelines):
        with pytest.raises(ValidationError):
            enhance_prompt_for_territory("  ", territory, brand_guidelines, "product", "global")


class TestEnhanceVideoPrompt:
    def test_uses_animation_template(self, territory):
        request = ImageToVideoRequest(source_image_url="https://x/s.png", animation_type=AnimationType.PARALLAX, duration=8)
        prompt = enhance_video_prompt(request, territory)
        assert prompt.startswith("Create a sophisticated parallax depth animation.")
        assert "Duration: 8 seconds" in prompt
        assert "Mood: Bold and adventurous" in prompt

    def test_default_tone_without_territory(self):
        prompt = enhance_video_prompt(ImageToVideoRequest(source_image_url="https://x/s.png"))
        assert "Mood: professional" in prompt

    def test_custom_prompt_wins(self, territory):
        request = ImageToVideoRequest(source_image_url="https://x/s.png", custom_prompt="Orbit the product")
        assert enhance_video_prompt(request, territory) == "Orbit the product"


class TestEnhancePromptForTemplate:
    def test_launch_image(self, territory, brand_guidelines):
        result = enhance_prompt_for_template(
            "smart bottle", CampaignType.LAUNCH, territory, brand_guidelines, ChannelFormat.LINKEDIN_POST,
        )
        assert result.enhanced_prompt.startswith("Create a launch campaign image for smart bottle.")
        assert result.quality_modifiers == [
            "high-resolution", "professional quality", "brand-consistent",
            "cutting-edge", "innovative", "dynamic",
            "Professional", "business-appropriate", "LinkedIn-optimized",
        ]
        assert "outdated, boring, unclear messaging" in result.negative_prompt
        assert "alcohol" in result.negative_prompt

    def test_video_variant_mentions_duration(self, territory, brand_guidelines):
        result = enhance_prompt_for_template(
            "smart bottle", "retention_loyalty", territory, brand_guidelines, "email", MediaType.VIDEO,
        )
        assert "campaign video" in result.enhanced_prompt
        assert "Duration: 15 seconds" in result.enhanced_prompt
        assert "Email-safe design" in result.enhanced_prompt
        assert "platform-optimized" in result.quality_modifiers

    def test_unknown_campaign_type(self, territory, brand_guidelines):
        with pytest.raises(ValidationError):
            enhance_prompt_for_template("x", "flash_sale", territory, brand_guidelines)


def test_territory_is_immutable(territory):
    with pytest.raises(pydantic.ValidationError):
        territory.tone = "calm"
