"""Prompt template library for territory-driven image and video generation.

Three template families:
  - IMAGE_PROMPT_TEMPLATES: one template per image type, filled from the
    territory, brand guidelines and cultural context
  - ANIMATION_PROMPT_TEMPLATES: image-to-video motion descriptions
  - CAMPAIGN_FRAMINGS: short campaign-objective framing with the style
    modifiers and negatives each campaign type adds

Templates use ``str.format`` placeholders. Values substituted in are plain
text and are never re-parsed, so braces inside a user prompt are safe.
"""
from creative_studio.schemas.common import (
    AnimationType,
    CampaignType,
    ChannelFormat,
    CulturalContext,
    ImageType,
    Platform,
)


IMAGE_PROMPT_TEMPLATES: dict[ImageType, str] = {
    ImageType.PRODUCT: """Create a stunning product photography image for {product_description}.
Style: {style_keywords}
Brand elements: {brand_elements}
Cultural context: {cultural_context}
Territory positioning: {territory_positioning}
Tone: {tone}

Technical requirements:
- Professional product photography lighting
- Clean, modern composition
- High-resolution detail
- Brand-consistent color palette: {color_palette}
- {quality_modifiers}

Avoid: {negative_prompts}""",

    ImageType.LIFESTYLE: """Create an authentic lifestyle image that embodies {territory_positioning}.
Subject: {product_description}
Mood: {tone}
Style: {style_keywords}
Cultural setting: {cultural_context}
Brand personality: {brand_elements}

Visual elements:
- Natural, candid moments
- Emotional connection
- Brand-appropriate environment
- Color harmony: {color_palette}
- {quality_modifiers}

Avoid: {negative_prompts}""",

    ImageType.BACKGROUND: """Design a beautiful background image for {territory_positioning}.
Subject: {product_description}
Aesthetic: {style_keywords}
Mood: {tone}
Cultural elements: {cultural_context}
Brand alignment: {brand_elements}

Composition:
- Subtle, non-distracting patterns
- Brand color integration: {color_palette}
- Scalable design elements
- {quality_modifiers}

Avoid: {negative_prompts}""",

    ImageType.HERO: """Create a powerful hero image for {territory_positioning}.
Subject: {product_description}
Impact: {tone}
Style: {style_keywords}
Cultural resonance: {cultural_context}
Brand presence: {brand_elements}

Design focus:
- Bold, attention-grabbing composition
- Emotional storytelling
- Brand color prominence: {color_palette}
- Premium quality feel
- {quality_modifiers}

Avoid: {negative_prompts}""",
}

# Icons and patterns are rendered as product shots
IMAGE_TYPE_TEMPLATE_ALIASES: dict[ImageType, ImageType] = {
    ImageType.ICON: ImageType.PRODUCT,
    ImageType.PATTERN: ImageType.PRODUCT,
}


# ── Tone, quality and culture vocabularies ─────────────────────────────

# Checked in order; the first key contained in the territory tone wins.
TONE_STYLE_KEYWORDS: dict[str, list[str]] = {
    "professional": ["clean", "minimal", "sophisticated", "corporate"],
    "friendly": ["warm", "approachable", "inviting", "casual"],
    "bold": ["dynamic", "striking", "powerful", "confident"],
    "elegant": ["refined", "luxurious", "graceful", "premium"],
    "playful": ["vibrant", "energetic", "fun", "creative"],
    "serious": ["formal", "authoritative", "trustworthy", "reliable"],
    "innovative": ["modern", "cutting-edge", "futuristic", "tech-forward"],
    "authentic": ["genuine", "natural", "honest", "real"],
}
DEFAULT_STYLE_KEYWORDS: list[str] = ["professional", "high-quality", "polished"]

IMAGE_QUALITY_MODIFIERS: list[str] = [
    "ultra-high resolution",
    "professional photography quality",
    "crisp details",
    "perfect lighting",
    "commercial grade",
]

BASE_NEGATIVE_PROMPTS: list[str] = ["low quality", "blurry", "pixelated", "amateur", "unprofessional"]

CULTURAL_ADAPTATIONS: dict[CulturalContext, list[str]] = {
    CulturalContext.AUSTRALIAN: [
        "Australian landscape",
        "natural outdoor setting",
        "relaxed atmosphere",
        "authentic Australian lifestyle",
        "coastal vibes",
        "bush setting",
        "urban Australian environment",
    ],
    CulturalContext.GLOBAL: [
        "universal appeal",
        "internationally recognizable",
        "diverse representation",
        "global aesthetic",
        "cross-cultural relevance",
    ],
    CulturalContext.REGIONAL: [
        "local cultural elements",
        "regional characteristics",
        "community-focused",
        "local landmarks",
        "regional lifestyle",
    ],
}


# ── Animation ──────────────────────────────────────────────────────────

DEFAULT_ANIMATION_TONE = "professional"

ANIMATION_PROMPT_TEMPLATES: dict[AnimationType, str] = {
    AnimationType.SUBTLE_FLOAT: """Create a gentle, ethereal floating animation for the image.
Movement: Soft, organic floating motion with subtle up and down movement
Duration: {duration} seconds
Style: Minimal, elegant, peaceful
Mood: {tone}

Animation characteristics:
- Smooth, natural floating motion
- Subtle depth perception and parallax
- Seamless loop for continuous playback
- Brand-appropriate pacing""",

    AnimationType.GENTLE_ROTATION: """Generate a slow, graceful rotation animation.
Movement: Gentle 360-degree rotation around center axis
Duration: {duration} seconds
Style: Smooth, hypnotic, sophisticated
Mood: {tone}

Animation features:
- Consistent, steady rotation speed
- Perfect center-point rotation
- Seamless loop transition
- Brand-consistent timing""",

    AnimationType.PARALLAX: """Create a sophisticated parallax depth animation.
Movement: Multi-layer depth animation with foreground/background separation
Duration: {duration} seconds
Style: Modern, dynamic, cinematic
Mood: {tone}

Technical specifications:
- Layered depth movement simulation
- Smooth camera-like motion
- Engaging depth perception""",

    AnimationType.ZOOM: """Generate a smooth zoom animation effect.
Movement: Gradual zoom in/out with smooth scaling
Duration: {duration} seconds
Style: Cinematic, dramatic, engaging
Mood: {tone}

Animation details:
- Smooth scaling transformation
- Maintained image quality throughout
- Seamless loop capability""",

    AnimationType.FADE: """Create an elegant fade transition animation.
Movement: Smooth opacity transitions with subtle effects
Duration: {duration} seconds
Style: Elegant, sophisticated, subtle
Mood: {tone}

Fade characteristics:
- Smooth opacity transitions
- Elegant timing curves
- Seamless loop capability""",

    AnimationType.SLIDE: """Generate a smooth sliding animation effect.
Movement: Gentle sliding motion with smooth transitions
Duration: {duration} seconds
Style: Modern, clean, professional
Mood: {tone}

Slide features:
- Smooth directional movement
- Professional timing and easing
- Seamless loop transition""",
}

# Platform limits for image-to-video output
PLATFORM_MAX_DURATION: dict[Platform, int] = {
    Platform.INSTAGRAM: 60,
    Platform.FACEBOOK: 240,
    Platform.TIKTOK: 180,
    Platform.YOUTUBE: 43200,
    Platform.LINKEDIN: 600,
    Platform.TWITTER: 140,
}
PLATFORM_RECOMMENDED_FPS: dict[Platform, int] = {Platform.YOUTUBE: 60}
DEFAULT_FPS = 30


# ── Campaign framing ───────────────────────────────────────────────────

CAMPAIGN_FRAMINGS: dict[CampaignType, dict] = {
    CampaignType.LAUNCH: {
        "objective": "Generate awareness and trial for a new offering",
        "strategy": "Innovation-focused, excitement-driven, future-forward",
        "style_modifiers": ["cutting-edge", "innovative", "dynamic", "bold", "modern"],
        "negatives": ["outdated", "boring", "unclear messaging"],
    },
    CampaignType.PROMOTIONAL: {
        "objective": "Drive immediate sales and conversions",
        "strategy": "Urgency-driven, value-focused, action-oriented",
        "style_modifiers": ["high-energy", "urgent", "bold", "attention-grabbing", "value-focused"],
        "negatives": ["subtle", "weak call-to-action", "low contrast"],
    },
    CampaignType.BRAND_BUILDING: {
        "objective": "Build brand awareness and emotional connection",
        "strategy": "Values-driven, aspirational, authentic, premium",
        "style_modifiers": ["premium", "authentic", "aspirational", "sophisticated", "timeless"],
        "negatives": ["commercial", "pushy", "inauthentic"],
    },
    CampaignType.RETENTION_LOYALTY: {
        "objective": "Increase customer retention and lifetime value",
        "strategy": "Appreciation-focused, exclusive, community-oriented",
        "style_modifiers": ["warm", "exclusive", "personal", "appreciative", "community-focused"],
        "negatives": ["cold", "impersonal", "generic"],
    },
}

CAMPAIGN_BASE_QUALITY_MODIFIERS: list[str] = ["high-resolution", "professional quality", "brand-consistent"]
CAMPAIGN_BASE_NEGATIVES: list[str] = ["low quality", "blurry", "distorted", "unprofessional"]

CHANNEL_MODIFIERS: dict[ChannelFormat, list[str]] = {
    ChannelFormat.INSTAGRAM_POST: ["Instagram-optimized", "mobile-first", "social-friendly"],
    ChannelFormat.FACEBOOK_POST: ["Facebook-optimized", "engagement-focused", "shareable"],
    ChannelFormat.LINKEDIN_POST: ["Professional", "business-appropriate", "LinkedIn-optimized"],
    ChannelFormat.TWITTER_POST: ["Concise", "Twitter-optimized", "conversation-starter"],
    ChannelFormat.YOUTUBE_THUMBNAIL: ["Click-worthy", "YouTube-optimized", "thumbnail-effective"],
}
DEFAULT_CHANNEL_MODIFIERS: list[str] = ["platform-optimized"]

CHANNEL_OPTIMIZATIONS: dict[ChannelFormat, str] = {
    ChannelFormat.INSTAGRAM_POST: "Instagram square format, mobile-optimized, high engagement",
    ChannelFormat.FACEBOOK_POST: "Facebook feed optimization, social sharing friendly",
    ChannelFormat.LINKEDIN_POST: "Professional LinkedIn format, business-appropriate",
    ChannelFormat.TWITTER_POST: "Twitter card optimization, concise messaging",
    ChannelFormat.YOUTUBE_THUMBNAIL: "YouTube thumbnail format, click-worthy design",
    ChannelFormat.EMAIL: "Email-safe design, responsive layout",
    ChannelFormat.DISPLAY_AD: "Display advertising format, attention-grabbing",
}

CAMPAIGN_IMAGE_TEMPLATE = """Create a {campaign_label} campaign image for {product_description}.
Campaign objective: {objective}
Visual strategy: {strategy}
Brand positioning: {brand_positioning}
Tone: {tone}
Brand colors: {color_palette}
Channel: {channel_optimization}
- {quality_modifiers}

Avoid: {negative_prompts}"""

CAMPAIGN_VIDEO_TEMPLATE = """Create a {campaign_label} campaign video for {product_description}.
Campaign objective: {objective}
Visual narrative: {strategy}
Brand positioning: {brand_positioning}
Tone: {tone}
Duration: {duration} seconds
Platform optimization: {channel_optimization}
- {quality_modifiers}

Avoid: {negative_prompts}"""

CAMPAIGN_VIDEO_DURATION = 15


def build_image_prompt(image_type: ImageType, **fields: str) -> str:
    """Fill the template for *image_type* (icon/pattern use the product template).

    Raises KeyError for an image type with no template.
    """
    key = IMAGE_TYPE_TEMPLATE_ALIASES.get(image_type, image_type)
    return IMAGE_PROMPT_TEMPLATES[key].format(**fields)


def build_animation_prompt(animation_type: AnimationType, duration: int, tone: str) -> str:
    return ANIMATION_PROMPT_TEMPLATES[animation_type].format(duration=duration, tone=tone)
