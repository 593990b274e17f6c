"""Generation request, asset, and queue schemas."""
from datetime import datetime
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field

from creative_studio.schemas.common import (
    AIProvider,
    AnimationType,
    CampaignType,
    ChannelFormat,
    CulturalContext,
    ImageStyle,
    ImageType,
    MediaType,
    Platform,
    Priority,
    QualityTier,
    QueueStatus,
    VideoFormat,
)


# ── Brief inputs ───────────────────────────────────────────────────────

class Territory(BaseModel):
    """Creative territory produced from a campaign brief."""
    id: str = ""
    title: str = ""
    positioning: str
    tone: str

    model_config = {"frozen": True}


class ColorPalette(BaseModel):
    primary: str = "#000000"
    secondary: list[str] = []
    accent: list[str] = []
    neutral: list[str] = []
    background: str = "#FFFFFF"
    text: str = "#000000"

    model_config = {"frozen": True}


class BrandFonts(BaseModel):
    primary: str = "Helvetica"
    secondary: str = "Arial"
    fallbacks: list[str] = []

    model_config = {"frozen": True}


class BrandImagery(BaseModel):
    style: list[str] = []
    filters: list[str] = []
    overlay_opacity: float = 0.0

    model_config = {"frozen": True}


class BrandCompliance(BaseModel):
    required_elements: list[str] = []
    prohibited_elements: list[str] = []
    legal_text: list[str] = []

    model_config = {"frozen": True}


class BrandGuidelines(BaseModel):
    """Subset of the brand book that influences generated imagery."""
    colors: ColorPalette = ColorPalette()
    fonts: BrandFonts = BrandFonts()
    imagery: BrandImagery = BrandImagery()
    compliance: BrandCompliance = BrandCompliance()

    model_config = {"frozen": True}


class Dimensions(BaseModel):
    width: int
    height: int

    model_config = {"frozen": True}

    def as_size(self) -> str:
        return f"{self.width}x{self.height}"


# ── Generation requests ────────────────────────────────────────────────

class TextToImageRequest(BaseModel):
    """Immutable request for a single generated image."""
    kind: Literal["image"] = "image"
    prompt: str = ""
    negative_prompt: str | None = None
    territory: Territory | None = None
    brand_guidelines: BrandGuidelines = BrandGuidelines()
    image_type: ImageType = ImageType.PRODUCT
    cultural_context: CulturalContext = CulturalContext.GLOBAL
    quality: QualityTier = QualityTier.STANDARD
    provider: AIProvider | None = None
    dimensions: Dimensions | None = None
    style: ImageStyle = ImageStyle.NATURAL
    style_consistency: bool = True

    model_config = {"frozen": True}


class ImageToVideoRequest(BaseModel):
    """Immutable request to animate a previously generated image."""
    kind: Literal["video"] = "video"
    source_image_id: str = ""
    source_image_url: str = ""
    animation_type: AnimationType = AnimationType.SUBTLE_FLOAT
    duration: int = 5
    output_format: VideoFormat = VideoFormat.MP4
    platform_optimization: Platform = Platform.INSTAGRAM
    provider: AIProvider | None = None
    quality: QualityTier = QualityTier.STANDARD
    fps: int | None = None
    custom_prompt: str | None = None
    territory: Territory | None = None

    model_config = {"frozen": True}


GenerationRequest = Annotated[
    Union[TextToImageRequest, ImageToVideoRequest],
    Field(discriminator="kind"),
]


# ── Outputs ────────────────────────────────────────────────────────────

class AssetMetadata(BaseModel):
    original_prompt: str
    enhanced_prompt: str
    territory: Territory | None = None
    dimensions: Dimensions
    file_size: int
    format: str
    model: str
    duration: int | None = None
    fps: int | None = None
    parameters: dict[str, Any] = {}

    model_config = {"frozen": True, "protected_namespaces": ()}


class GeneratedAsset(BaseModel):
    """Output of one successful provider call; never mutated afterwards."""
    id: str
    type: MediaType
    url: str
    thumbnail_url: str | None = None
    metadata: AssetMetadata
    provider: AIProvider
    generation_time: float  # seconds
    quality: QualityTier
    cost: float
    created_at: datetime

    model_config = {"frozen": True}


class PromptEnhancement(BaseModel):
    original_prompt: str
    enhanced_prompt: str
    style_keywords: list[str]
    quality_modifiers: list[str]
    cultural_adaptations: list[str]
    brand_consistency_elements: list[str]
    negative_prompt: str
    reasoning: str


# ── Queue ──────────────────────────────────────────────────────────────

class QueueItem(BaseModel):
    """Lifecycle record of a queued generation, owned by ``GenerationQueue``."""
    id: str
    type: MediaType
    status: QueueStatus = QueueStatus.QUEUED
    progress: int = 0
    estimated_completion: datetime
    request: GenerationRequest
    retry_count: int = 0
    max_retries: int = 3
    manual_retry_count: int = 0
    priority: Priority = Priority.NORMAL
    batch_id: str | None = None
    not_before: datetime | None = None  # batch staggering; not dispatched earlier
    result: GeneratedAsset | None = None
    error: str | None = None
    last_error: str | None = None
    created_at: datetime
    updated_at: datetime
    started_at: datetime | None = None
    completed_at: datetime | None = None


class QueueStats(BaseModel):
    total_queued: int
    total_processing: int
    total_complete: int
    total_error: int
    total_cancelled: int
    max_concurrent: int
    queue_health: Literal["healthy", "busy", "overloaded"]


# ── API payloads ───────────────────────────────────────────────────────

class EnhancePromptRequest(BaseModel):
    prompt: str
    territory: Territory
    brand_guidelines: BrandGuidelines = BrandGuidelines()
    image_type: ImageType = ImageType.PRODUCT
    cultural_context: CulturalContext = CulturalContext.GLOBAL


class TemplatePromptRequest(BaseModel):
    prompt: str
    campaign_type: CampaignType
    territory: Territory
    brand_guidelines: BrandGuidelines = BrandGuidelines()
    channel: ChannelFormat = ChannelFormat.INSTAGRAM_POST
    media_type: MediaType = MediaType.IMAGE


class GenerationQueuedResponse(BaseModel):
    queue_id: str
    status: QueueStatus
    estimated_completion: datetime


class BatchGenerationRequest(BaseModel):
    requests: list[GenerationRequest] = Field(min_length=1)
    priority: Priority = Priority.NORMAL


class BatchQueuedResponse(BaseModel):
    batch_id: str
    queue_ids: list[str]


class BatchStatusResponse(BaseModel):
    batch_id: str
    total: int
    complete: int
    failed: int
    cancelled: int
    pending: int
    items: list[QueueItem]
