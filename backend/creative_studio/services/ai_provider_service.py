"""Provider orchestration: fallback chains, rate limiting and timeouts.

``AIProviderService`` tries the providers of one media type in order and
returns the first success as a ``GeneratedAsset``:

  preferred (or default) → configured fallbacks → every other provider

A provider whose rate-limit window is full is skipped without counting as
a failure. A provider that errors or exceeds ``ProviderConfig.timeout``
advances the chain. Once the chain is exhausted the service raises
``AllProvidersFailedError``; it never returns ``None``.
"""
from __future__ import annotations

import asyncio
import logging
import time
import uuid
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable

from creative_studio.config import Settings
from creative_studio.schemas.common import (
    IMAGE_PROVIDERS,
    VIDEO_PROVIDERS,
    AIProvider,
    MediaType,
)
from creative_studio.schemas.generation import (
    AssetMetadata,
    Dimensions,
    GeneratedAsset,
    ImageToVideoRequest,
    TextToImageRequest,
)
from creative_studio.schemas.provider import (
    MultimediaGenerationConfig,
    ProviderConfig,
    ProviderStats,
    ProviderStatsResponse,
    RateLimitConfig,
)
from creative_studio.services.exceptions import (
    AllProvidersFailedError,
    GenerationTimeoutError,
    ProviderAttempt,
    ProviderError,
    RateLimitedError,
)
from creative_studio.services.image_providers import (
    MidjourneyAdapter,
    OpenAIImageAdapter,
    StableDiffusionAdapter,
)
from creative_studio.services.prompt_enhancer import enhance_video_prompt
from creative_studio.services.provider_adapters import (
    ImageGenerationResult,
    ImageProviderAdapter,
    ProgressCallback,
    VideoGenerationResult,
    VideoProviderAdapter,
)
from creative_studio.services.rate_limiter import RateLimiter
from creative_studio.services.video_providers import RunwayVideoAdapter, StableVideoAdapter
from creative_studio.utils.prompts import DEFAULT_FPS, PLATFORM_RECOMMENDED_FPS

logger = logging.getLogger(__name__)


# ── Static provider defaults ───────────────────────────────────────────

PROVIDER_CONFIGS: dict[AIProvider, ProviderConfig] = {
    AIProvider.OPENAI: ProviderConfig(
        provider=AIProvider.OPENAI,
        model="dall-e-3",
        max_retries=3,
        timeout=120.0,
        rate_limit=RateLimitConfig(requests_per_minute=50, requests_per_hour=1000),
        cost_per_generation=0.04,
        supported_formats=["png", "jpg"],
        max_dimensions=Dimensions(width=2048, height=2048),
    ),
    AIProvider.MIDJOURNEY: ProviderConfig(
        provider=AIProvider.MIDJOURNEY,
        model="midjourney-v6",
        max_retries=2,
        timeout=300.0,
        rate_limit=RateLimitConfig(requests_per_minute=20, requests_per_hour=200),
        cost_per_generation=0.08,
        supported_formats=["png", "jpg", "webp"],
        max_dimensions=Dimensions(width=4096, height=4096),
    ),
    AIProvider.STABLE_DIFFUSION: ProviderConfig(
        provider=AIProvider.STABLE_DIFFUSION,
        model="stable-diffusion-xl-1024-v1-0",
        max_retries=3,
        timeout=180.0,
        rate_limit=RateLimitConfig(requests_per_minute=30, requests_per_hour=500),
        cost_per_generation=0.02,
        supported_formats=["png", "jpg"],
        max_dimensions=Dimensions(width=2048, height=2048),
    ),
    AIProvider.RUNWAY: ProviderConfig(
        provider=AIProvider.RUNWAY,
        model="gen4_turbo",
        max_retries=2,
        timeout=600.0,
        rate_limit=RateLimitConfig(requests_per_minute=10, requests_per_hour=100),
        cost_per_generation=0.50,
        supported_formats=["mp4", "mov"],
        max_dimensions=Dimensions(width=1920, height=1080),
    ),
    AIProvider.STABLE_VIDEO: ProviderConfig(
        provider=AIProvider.STABLE_VIDEO,
        model="stable-video-diffusion",
        max_retries=2,
        timeout=480.0,
        rate_limit=RateLimitConfig(requests_per_minute=15, requests_per_hour=150),
        cost_per_generation=0.30,
        supported_formats=["mp4", "webm"],
        max_dimensions=Dimensions(width=1920, height=1080),
    ),
}

# Used when the provider does not report a size
IMAGE_SIZE_ESTIMATE_BYTES = 2 * 1024 * 1024
VIDEO_BYTES_PER_SECOND: dict[AIProvider, int] = {
    AIProvider.RUNWAY: 5 * 1024 * 1024,
    AIProvider.STABLE_VIDEO: 4 * 1024 * 1024,
}
DEFAULT_VIDEO_DIMENSIONS = Dimensions(width=1280, height=720)

MEDIA_PROVIDERS: dict[MediaType, tuple[AIProvider, ...]] = {
    MediaType.IMAGE: IMAGE_PROVIDERS,
    MediaType.VIDEO: VIDEO_PROVIDERS,
}


def build_default_adapters(
    settings: Settings,
) -> tuple[dict[AIProvider, ImageProviderAdapter], dict[AIProvider, VideoProviderAdapter]]:
    """Instantiate adapters for every provider that has credentials configured."""
    poll = settings.PROVIDER_POLL_INTERVAL
    candidates_image = [
        OpenAIImageAdapter(api_key=settings.OPENAI_API_KEY),
        StableDiffusionAdapter(api_key=settings.STABILITY_API_KEY),
        MidjourneyAdapter(
            base_url=settings.MIDJOURNEY_API_URL,
            api_key=settings.MIDJOURNEY_API_KEY,
            poll_interval=poll,
        ),
    ]
    candidates_video = [
        RunwayVideoAdapter(api_key=settings.RUNWAY_API_KEY, poll_interval=poll),
        StableVideoAdapter(api_key=settings.stable_video_key, poll_interval=poll),
    ]
    image_adapters = {a.provider: a for a in candidates_image if a.is_configured}
    video_adapters = {a.provider: a for a in candidates_video if a.is_configured}

    configured = [p.value for p in (*image_adapters, *video_adapters)]
    if configured:
        logger.info("Configured generation providers: %s", ", ".join(configured))
    else:
        logger.warning("No generation provider credentials configured; every request will fail")
    return image_adapters, video_adapters


class AIProviderService:
    """Routes image and video requests through the provider fallback chain."""

    def __init__(
        self,
        config: MultimediaGenerationConfig,
        image_adapters: dict[AIProvider, ImageProviderAdapter] | None = None,
        video_adapters: dict[AIProvider, VideoProviderAdapter] | None = None,
        rate_limiter: RateLimiter | None = None,
    ):
        self.config = config
        self.image_adapters = dict(image_adapters or {})
        self.video_adapters = dict(video_adapters or {})
        self.rate_limiter = rate_limiter or RateLimiter()
        self._overrides = {o.provider: o for o in config.providers}
        self._stats = {p: ProviderStats(provider=p) for p in AIProvider}

    # ── Configuration ──────────────────────────────────────────────────

    def get_provider_config(self, provider: AIProvider) -> ProviderConfig:
        """Static defaults for *provider* with any configured override applied."""
        base = PROVIDER_CONFIGS[provider]
        override = self._overrides.get(provider)
        if override is None:
            return base
        return ProviderConfig.model_validate({
            **base.model_dump(),
            **override.model_dump(exclude_none=True, exclude={"provider"}),
        })

    def get_retry_limit(self, media_type: MediaType, preferred: AIProvider | None = None) -> int:
        """Automatic retry budget for a queue item, taken from the provider
        that heads its chain and capped by the configured queue limit."""
        chain = self.build_fallback_chain(media_type, preferred)
        if not chain:
            return self.config.max_retries
        return min(self.config.max_retries, self.get_provider_config(chain[0]).max_retries)

    def build_fallback_chain(
        self, media_type: MediaType, preferred: AIProvider | None = None,
    ) -> list[AIProvider]:
        valid = MEDIA_PROVIDERS[media_type]
        adapters = self.image_adapters if media_type == MediaType.IMAGE else self.video_adapters
        default = (
            self.config.default_provider
            if media_type == MediaType.IMAGE
            else self.config.default_video_provider
        )

        # A valid preferred provider takes the default's place at the head.
        ordered: list[AIProvider] = []
        if preferred in valid:
            ordered.append(preferred)
        else:
            if preferred is not None:
                logger.warning("Provider %s cannot produce %s; using defaults", preferred.value, media_type.value)
            ordered.append(default)
        ordered.extend(p for p in self.config.fallback_providers if p in valid)
        ordered.extend(valid)

        chain: list[AIProvider] = []
        for provider in ordered:
            if provider in valid and provider in adapters and provider not in chain:
                chain.append(provider)
        return chain

    # ── Generation ─────────────────────────────────────────────────────

    async def generate_image(
        self,
        request: TextToImageRequest,
        progress_callback: ProgressCallback | None = None,
    ) -> GeneratedAsset:
        """Generate one image, trying providers in fallback order.

        Raises
        ------
        AllProvidersFailedError : every provider was rate limited or failed
        """
        chain = self.build_fallback_chain(MediaType.IMAGE, request.provider)

        async def invoke(provider: AIProvider, config: ProviderConfig) -> ImageGenerationResult:
            return await self.image_adapters[provider].generate_image(request, config, progress_callback)

        provider, config, raw, elapsed = await self._run_chain(MediaType.IMAGE, chain, invoke)
        return GeneratedAsset(
            id=f"img_{uuid.uuid4().hex}",
            type=MediaType.IMAGE,
            url=raw.url,
            metadata=AssetMetadata(
                original_prompt=request.prompt,
                enhanced_prompt=raw.revised_prompt or request.prompt,
                territory=request.territory,
                dimensions=raw.dimensions,
                file_size=raw.file_size or IMAGE_SIZE_ESTIMATE_BYTES,
                format=raw.format,
                model=config.model,
                parameters={
                    "image_type": request.image_type.value,
                    "cultural_context": request.cultural_context.value,
                    "style": request.style.value,
                    "negative_prompt": request.negative_prompt,
                    "tier_resolution": self.config.quality_settings[request.quality].resolution,
                },
            ),
            provider=provider,
            generation_time=elapsed,
            quality=request.quality,
            cost=config.cost_per_generation,
            created_at=datetime.now(timezone.utc),
        )

    async def generate_video(
        self,
        request: ImageToVideoRequest,
        progress_callback: ProgressCallback | None = None,
    ) -> GeneratedAsset:
        """Animate ``request.source_image_url``, trying video providers in order."""
        prompt = enhance_video_prompt(request)
        chain = self.build_fallback_chain(MediaType.VIDEO, request.provider)

        async def invoke(provider: AIProvider, config: ProviderConfig) -> VideoGenerationResult:
            return await self.video_adapters[provider].generate_video(
                request, prompt, config, progress_callback,
            )

        provider, config, raw, elapsed = await self._run_chain(MediaType.VIDEO, chain, invoke)
        fps = request.fps or PLATFORM_RECOMMENDED_FPS.get(request.platform_optimization, DEFAULT_FPS)
        file_size = raw.file_size or request.duration * VIDEO_BYTES_PER_SECOND.get(provider, 4 * 1024 * 1024)
        return GeneratedAsset(
            id=f"vid_{uuid.uuid4().hex}",
            type=MediaType.VIDEO,
            url=raw.url,
            thumbnail_url=raw.thumbnail_url,
            metadata=AssetMetadata(
                original_prompt=request.custom_prompt or request.animation_type.value,
                enhanced_prompt=prompt,
                territory=request.territory,
                dimensions=raw.dimensions or DEFAULT_VIDEO_DIMENSIONS,
                file_size=file_size,
                format=request.output_format.value,
                model=config.model,
                duration=request.duration,
                fps=fps,
                parameters={
                    "animation_type": request.animation_type.value,
                    "platform": request.platform_optimization.value,
                    "source_image_id": request.source_image_id,
                },
            ),
            provider=provider,
            generation_time=raw.generation_time or elapsed,
            quality=request.quality,
            cost=config.cost_per_generation,
            created_at=datetime.now(timezone.utc),
        )

    async def _run_chain(
        self,
        media_type: MediaType,
        chain: list[AIProvider],
        invoke: Callable[[AIProvider, ProviderConfig], Awaitable[Any]],
    ) -> tuple[AIProvider, ProviderConfig, Any, float]:
        attempts: list[ProviderAttempt] = []
        last_error: Exception | None = None

        for provider in chain:
            config = self.get_provider_config(provider)
            stats = self._stats[provider]

            if not self.rate_limiter.try_acquire(provider.value, config):
                retry_at = self.rate_limiter.get_next_available_time(provider.value, config)
                skipped = RateLimitedError(provider.value, retry_at.timestamp())
                logger.warning("%s, next slot at %s; trying next provider", skipped, retry_at.isoformat())
                stats.rate_limited += 1
                attempts.append(ProviderAttempt(provider.value, "rate_limited"))
                continue

            stats.requests += 1
            started = time.monotonic()
            try:
                raw = await asyncio.wait_for(invoke(provider, config), timeout=config.timeout)
            except asyncio.TimeoutError:
                last_error = GenerationTimeoutError(provider.value, config.timeout)
            except ProviderError as e:
                last_error = e
            else:
                stats.successes += 1
                stats.total_cost += config.cost_per_generation
                logger.info("%s generated by %s in %.1fs", media_type.value, provider.value, time.monotonic() - started)
                return provider, config, raw, time.monotonic() - started

            stats.failures += 1
            attempts.append(ProviderAttempt(provider.value, "failed", str(last_error)))
            logger.warning("%s generation failed on %s: %s", media_type.value, provider.value, last_error)

        error = AllProvidersFailedError(media_type.value, attempts)
        logger.error("%s", error)
        raise error from last_error

    # ── Stats ──────────────────────────────────────────────────────────

    def get_provider_stats(self) -> list[ProviderStatsResponse]:
        return [
            ProviderStatsResponse(
                provider=s.provider,
                requests=s.requests,
                successes=s.successes,
                failures=s.failures,
                rate_limited=s.rate_limited,
                total_cost=round(s.total_cost, 4),
                success_rate=s.success_rate,
            )
            for s in self._stats.values()
        ]
