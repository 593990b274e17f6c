"""Shared / common schemas: enums and base responses."""
from datetime import datetime
from enum import Enum

from pydantic import BaseModel


# ── Enums ──────────────────────────────────────────────────────────────

class MediaType(str, Enum):
    IMAGE = "image"
    VIDEO = "video"


class AIProvider(str, Enum):
    OPENAI = "openai"
    MIDJOURNEY = "midjourney"
    STABLE_DIFFUSION = "stable-diffusion"
    RUNWAY = "runway"
    STABLE_VIDEO = "stable-video"


IMAGE_PROVIDERS: tuple[AIProvider, ...] = (
    AIProvider.OPENAI,
    AIProvider.MIDJOURNEY,
    AIProvider.STABLE_DIFFUSION,
)
VIDEO_PROVIDERS: tuple[AIProvider, ...] = (AIProvider.RUNWAY, AIProvider.STABLE_VIDEO)


class QueueStatus(str, Enum):
    QUEUED = "queued"
    PROCESSING = "processing"
    COMPLETE = "complete"
    ERROR = "error"
    CANCELLED = "cancelled"


class Priority(str, Enum):
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"


PRIORITY_ORDER: dict[Priority, int] = {Priority.HIGH: 3, Priority.NORMAL: 2, Priority.LOW: 1}


class QualityTier(str, Enum):
    STANDARD = "standard"
    HD = "hd"
    ULTRA = "ultra"


QUALITY_MULTIPLIERS: dict[QualityTier, float] = {
    QualityTier.STANDARD: 1.0,
    QualityTier.HD: 1.5,
    QualityTier.ULTRA: 2.0,
}


class ImageType(str, Enum):
    PRODUCT = "product"
    LIFESTYLE = "lifestyle"
    BACKGROUND = "background"
    HERO = "hero"
    ICON = "icon"
    PATTERN = "pattern"


class ImageStyle(str, Enum):
    NATURAL = "natural"
    VIVID = "vivid"


class CulturalContext(str, Enum):
    AUSTRALIAN = "australian"
    GLOBAL = "global"
    REGIONAL = "regional"


class AnimationType(str, Enum):
    SUBTLE_FLOAT = "subtle_float"
    GENTLE_ROTATION = "gentle_rotation"
    PARALLAX = "parallax"
    ZOOM = "zoom"
    FADE = "fade"
    SLIDE = "slide"


class VideoFormat(str, Enum):
    MP4 = "mp4"
    MOV = "mov"
    WEBM = "webm"
    GIF = "gif"


class Platform(str, Enum):
    INSTAGRAM = "instagram"
    FACEBOOK = "facebook"
    TIKTOK = "tiktok"
    YOUTUBE = "youtube"
    LINKEDIN = "linkedin"
    TWITTER = "twitter"


class CampaignType(str, Enum):
    LAUNCH = "launch"
    PROMOTIONAL = "promotional"
    BRAND_BUILDING = "brand_building"
    RETENTION_LOYALTY = "retention_loyalty"


class ChannelFormat(str, Enum):
    INSTAGRAM_POST = "instagram_post"
    FACEBOOK_POST = "facebook_post"
    LINKEDIN_POST = "linkedin_post"
    TWITTER_POST = "twitter_post"
    YOUTUBE_THUMBNAIL = "youtube_thumbnail"
    EMAIL = "email"
    DISPLAY_AD = "display_ad"


# ── Common Responses ───────────────────────────────────────────────────

class MessageResponse(BaseModel):
    message: str
    detail: str | None = None


class HealthResponse(BaseModel):
    status: str
    version: str
    timestamp: datetime
