"""Provider and orchestration configuration schemas."""
from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

from creative_studio.schemas.common import AIProvider, QualityTier
from creative_studio.schemas.generation import Dimensions

if TYPE_CHECKING:
    from creative_studio.config import Settings


class RateLimitConfig(BaseModel):
    requests_per_minute: int = Field(ge=0)
    requests_per_hour: int = Field(ge=0)

    model_config = {"frozen": True}


class ProviderConfig(BaseModel):
    """Static descriptor of one provider; read-only once loaded."""
    provider: AIProvider
    model: str
    max_retries: int = Field(default=3, ge=0)
    timeout: float = 120.0  # seconds per call
    rate_limit: RateLimitConfig
    cost_per_generation: float = 0.0
    supported_formats: list[str] = []
    max_dimensions: Dimensions = Dimensions(width=1024, height=1024)

    model_config = {"frozen": True, "protected_namespaces": ()}


class ProviderConfigOverride(BaseModel):
    """User-supplied partial config; unset fields keep the provider default."""
    provider: AIProvider
    model: str | None = None
    max_retries: int | None = Field(default=None, ge=0)
    timeout: float | None = None
    rate_limit: RateLimitConfig | None = None
    cost_per_generation: float | None = None
    supported_formats: list[str] | None = None
    max_dimensions: Dimensions | None = None

    model_config = {"protected_namespaces": ()}


class QualitySetting(BaseModel):
    resolution: str
    quality: str


class BatchProcessingConfig(BaseModel):
    max_concurrent: int = Field(default=3, ge=1)
    batch_size: int = Field(default=5, ge=1)
    delay_between_batches: float = 2.0  # seconds


DEFAULT_QUALITY_SETTINGS: dict[QualityTier, QualitySetting] = {
    QualityTier.STANDARD: QualitySetting(resolution="1024x1024", quality="standard"),
    QualityTier.HD: QualitySetting(resolution="1792x1024", quality="hd"),
    QualityTier.ULTRA: QualitySetting(resolution="2048x2048", quality="ultra"),
}


class MultimediaGenerationConfig(BaseModel):
    """Orchestration config shared by the provider service and the queue."""
    providers: list[ProviderConfigOverride] = []
    default_provider: AIProvider = AIProvider.OPENAI
    default_video_provider: AIProvider = AIProvider.RUNWAY
    fallback_providers: list[AIProvider] = [AIProvider.STABLE_DIFFUSION]
    quality_settings: dict[QualityTier, QualitySetting] = DEFAULT_QUALITY_SETTINGS
    batch_processing: BatchProcessingConfig = BatchProcessingConfig()
    max_retries: int = Field(default=3, ge=0)

    @classmethod
    def from_settings(cls, settings: Settings) -> MultimediaGenerationConfig:
        return cls(
            default_provider=AIProvider(settings.DEFAULT_IMAGE_PROVIDER),
            default_video_provider=AIProvider(settings.DEFAULT_VIDEO_PROVIDER),
            fallback_providers=[AIProvider(p) for p in settings.fallback_providers_list],
            quality_settings={
                **DEFAULT_QUALITY_SETTINGS,
                **{
                    QualityTier(tier): QualitySetting(**value)
                    for tier, value in settings.quality_resolutions.items()
                },
            },
            batch_processing=BatchProcessingConfig(
                max_concurrent=settings.BATCH_MAX_CONCURRENT,
                batch_size=settings.BATCH_SIZE,
                delay_between_batches=settings.BATCH_DELAY_SECONDS,
            ),
            max_retries=settings.QUEUE_MAX_RETRIES,
        )


class ProviderStats(BaseModel):
    provider: AIProvider
    requests: int = 0
    successes: int = 0
    failures: int = 0
    rate_limited: int = 0
    total_cost: float = 0.0

    @property
    def success_rate(self) -> float:
        return self.successes / self.requests if self.requests else 0.0


class ProviderStatsResponse(BaseModel):
    provider: AIProvider
    requests: int
    successes: int
    failures: int
    rate_limited: int
    total_cost: float
    success_rate: float
