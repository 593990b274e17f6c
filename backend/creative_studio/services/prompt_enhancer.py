"""Prompt enhancement: territory tone, brand guidelines, and cultural context.

Everything here is pure string assembly over the tables in
``creative_studio.utils.prompts``; the same inputs always produce the same
prompt, byte for byte.
"""
from __future__ import annotations

import logging

from creative_studio.schemas.common import (
    AnimationType,
    CampaignType,
    ChannelFormat,
    CulturalContext,
    ImageType,
    MediaType,
)
from creative_studio.schemas.generation import (
    BrandGuidelines,
    ImageToVideoRequest,
    PromptEnhancement,
    Territory,
)
from creative_studio.services.exceptions import ValidationError
from creative_studio.utils.prompts import (
    BASE_NEGATIVE_PROMPTS,
    CAMPAIGN_BASE_NEGATIVES,
    CAMPAIGN_BASE_QUALITY_MODIFIERS,
    CAMPAIGN_FRAMINGS,
    CAMPAIGN_IMAGE_TEMPLATE,
    CAMPAIGN_VIDEO_DURATION,
    CAMPAIGN_VIDEO_TEMPLATE,
    CHANNEL_MODIFIERS,
    CHANNEL_OPTIMIZATIONS,
    CULTURAL_ADAPTATIONS,
    DEFAULT_ANIMATION_TONE,
    DEFAULT_CHANNEL_MODIFIERS,
    DEFAULT_STYLE_KEYWORDS,
    IMAGE_QUALITY_MODIFIERS,
    TONE_STYLE_KEYWORDS,
    build_animation_prompt,
    build_image_prompt,
)

logger = logging.getLogger(__name__)


# ── Vocabulary helpers ─────────────────────────────────────────────────

def extract_style_keywords(tone: str) -> list[str]:
    """Map a free-text territory tone to style keywords (first match wins)."""
    lower_tone = tone.lower()
    for key, keywords in TONE_STYLE_KEYWORDS.items():
        if key in lower_tone:
            return list(keywords)
    return list(DEFAULT_STYLE_KEYWORDS)


def brand_consistency_elements(brand: BrandGuidelines) -> list[str]:
    """Colour, typography and imagery descriptors for the brand.

    Empty palette groups and filter lists are left out instead of producing
    dangling labels like ``"accent colors "``.
    """
    colors = brand.colors
    elements = [f"primary color {colors.primary}"]
    if colors.secondary:
        elements.append(f"secondary colors {', '.join(colors.secondary)}")
    if colors.accent:
        elements.append(f"accent colors {', '.join(colors.accent)}")
    if colors.neutral:
        elements.append(f"neutral palette {', '.join(colors.neutral)}")

    elements += [f"{brand.fonts.primary} font family", "clean typography", "readable text hierarchy"]

    elements += brand.imagery.style
    if brand.imagery.filters:
        elements.append(f"{' or '.join(brand.imagery.filters)} filter style")
    return elements


def build_negative_prompt(brand: BrandGuidelines) -> str:
    return ", ".join(BASE_NEGATIVE_PROMPTS + brand.compliance.prohibited_elements)


def color_palette(brand: BrandGuidelines) -> str:
    return ", ".join([brand.colors.primary, *brand.colors.secondary, *brand.colors.accent])


def _coerce(enum_cls, value, label: str):
    try:
        return enum_cls(value)
    except ValueError as e:
        raise ValidationError(f"Unsupported {label}: {value}") from e


# ── Territory-driven image prompts ─────────────────────────────────────

def enhance_prompt_for_territory(
    prompt: str,
    territory: Territory,
    brand_guidelines: BrandGuidelines,
    image_type: ImageType | str,
    cultural_context: CulturalContext | str,
) -> PromptEnhancement:
    """Wrap *prompt* in the image-type template enriched with territory,
    brand and cultural cues.

    Raises
    ------
    ValidationError : empty prompt, unknown image type or cultural context
    """
    if not prompt or not prompt.strip():
        raise ValidationError("Prompt is required")
    image_type = _coerce(ImageType, image_type, "image type")
    cultural_context = _coerce(CulturalContext, cultural_context, "cultural context")

    style_keywords = extract_style_keywords(territory.tone)
    quality_modifiers = list(IMAGE_QUALITY_MODIFIERS)
    cultural_adaptations = list(CULTURAL_ADAPTATIONS[cultural_context])
    brand_elements = brand_consistency_elements(brand_guidelines)
    negative_prompt = build_negative_prompt(brand_guidelines)

    enhanced = build_image_prompt(
        image_type,
        product_description=prompt,
        territory_positioning=territory.positioning,
        tone=territory.tone,
        style_keywords=", ".join(style_keywords),
        cultural_context=", ".join(cultural_adaptations),
        brand_elements=", ".join(brand_elements),
        color_palette=color_palette(brand_guidelines),
        quality_modifiers=", ".join(quality_modifiers),
        negative_prompts=negative_prompt,
    )
    logger.debug("Enhanced %s prompt (%d → %d chars)", image_type.value, len(prompt), len(enhanced))

    return PromptEnhancement(
        original_prompt=prompt,
        enhanced_prompt=enhanced,
        style_keywords=style_keywords,
        quality_modifiers=quality_modifiers,
        cultural_adaptations=cultural_adaptations,
        brand_consistency_elements=brand_elements,
        negative_prompt=negative_prompt,
        reasoning=(
            f"Enhanced prompt for {image_type.value} image with {territory.tone} tone, "
            f"{cultural_context.value} cultural context, and brand consistency elements."
        ),
    )


# ── Image-to-video prompts ─────────────────────────────────────────────

def enhance_video_prompt(request: ImageToVideoRequest, territory: Territory | None = None) -> str:
    """Motion prompt for *request*; an explicit ``custom_prompt`` is used verbatim."""
    if request.custom_prompt:
        return request.custom_prompt
    animation_type = _coerce(AnimationType, request.animation_type, "animation type")
    territory = territory or request.territory
    tone = territory.tone if territory else DEFAULT_ANIMATION_TONE
    return build_animation_prompt(animation_type, request.duration, tone)


# ── Campaign framing ───────────────────────────────────────────────────

def enhance_prompt_for_template(
    prompt: str,
    campaign_type: CampaignType | str,
    territory: Territory,
    brand_guidelines: BrandGuidelines,
    channel: ChannelFormat | str = ChannelFormat.INSTAGRAM_POST,
    media_type: MediaType | str = MediaType.IMAGE,
) -> PromptEnhancement:
    """Frame *prompt* for a campaign type and delivery channel."""
    if not prompt or not prompt.strip():
        raise ValidationError("Prompt is required")
    campaign_type = _coerce(CampaignType, campaign_type, "campaign type")
    channel = _coerce(ChannelFormat, channel, "channel")
    media_type = _coerce(MediaType, media_type, "media type")

    framing = CAMPAIGN_FRAMINGS[campaign_type]
    style_keywords = list(framing["style_modifiers"])
    quality_modifiers = (
        CAMPAIGN_BASE_QUALITY_MODIFIERS
        + style_keywords[:3]
        + CHANNEL_MODIFIERS.get(channel, DEFAULT_CHANNEL_MODIFIERS)
    )
    negatives = CAMPAIGN_BASE_NEGATIVES + framing["negatives"] + brand_guidelines.compliance.prohibited_elements
    negative_prompt = ", ".join(negatives)
    campaign_label = campaign_type.value.replace("_", " ")

    template = CAMPAIGN_IMAGE_TEMPLATE if media_type == MediaType.IMAGE else CAMPAIGN_VIDEO_TEMPLATE
    enhanced = template.format(
        campaign_label=campaign_label,
        product_description=prompt,
        objective=framing["objective"],
        strategy=framing["strategy"],
        brand_positioning=territory.positioning,
        tone=territory.tone,
        color_palette=color_palette(brand_guidelines),
        channel_optimization=CHANNEL_OPTIMIZATIONS.get(channel, "Multi-platform optimization"),
        duration=CAMPAIGN_VIDEO_DURATION,
        quality_modifiers=", ".join(quality_modifiers),
        negative_prompts=negative_prompt,
    )

    return PromptEnhancement(
        original_prompt=prompt,
        enhanced_prompt=enhanced,
        style_keywords=style_keywords,
        quality_modifiers=quality_modifiers,
        cultural_adaptations=[],
        brand_consistency_elements=brand_consistency_elements(brand_guidelines),
        negative_prompt=negative_prompt,
        reasoning=f"Template-optimized for {campaign_label} campaign on {channel.value}",
    )
