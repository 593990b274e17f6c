"""Test configuration and fixtures."""
from __future__ import annotations

import asyncio

import pytest

from creative_studio.schemas.common import AIProvider
from creative_studio.schemas.generation import (
    BrandCompliance,
    BrandFonts,
    BrandGuidelines,
    BrandImagery,
    ColorPalette,
    Dimensions,
    Territory,
)
from creative_studio.schemas.provider import BatchProcessingConfig, MultimediaGenerationConfig
from creative_studio.services.ai_provider_service import AIProviderService
from creative_studio.services.multimedia_generation_service import MultimediaGenerationService
from creative_studio.services.provider_adapters import ImageGenerationResult, VideoGenerationResult
from creative_studio.services.rate_limiter import RateLimiter


class FakeClock:
    """Manually advanced replacement for ``time.time``."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class MockImageAdapter:
    """Scripted image adapter.

    ``outcomes`` is consumed one entry per call: an exception instance is
    raised, anything else is ignored and the default result returned. Once
    exhausted every call succeeds. ``gate`` (an asyncio.Event) holds calls
    until it is set.
    """

    def __init__(self, provider: AIProvider, url: str = "https://cdn.example.com/image.png",
                 outcomes=None, always_fail: Exception | None = None, delay: float = 0.0,
                 progress: list[int] | None = None):
        self.provider = provider
        self.url = url
        self.outcomes = list(outcomes or [])
        self.always_fail = always_fail
        self.delay = delay
        self.progress = progress or []
        self.gate: asyncio.Event | None = None
        self.calls = []

    async def generate_image(self, request, config, progress_callback=None):
        self.calls.append(request)
        for pct in self.progress:
            if progress_callback:
                progress_callback(pct)
        if self.gate is not None:
            await self.gate.wait()
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.always_fail is not None:
            raise self.always_fail
        if self.outcomes:
            outcome = self.outcomes.pop(0)
            if isinstance(outcome, Exception):
                raise outcome
        return ImageGenerationResult(url=self.url, dimensions=Dimensions(width=1024, height=1024))


class MockVideoAdapter:
    def __init__(self, provider: AIProvider, url: str = "https://cdn.example.com/clip.mp4",
                 always_fail: Exception | None = None):
        self.provider = provider
        self.url = url
        self.always_fail = always_fail
        self.calls = []

    async def generate_video(self, request, prompt, config, progress_callback=None):
        self.calls.append((request, prompt))
        if self.always_fail is not None:
            raise self.always_fail
        return VideoGenerationResult(
            url=self.url,
            thumbnail_url=request.source_image_url,
            generation_time=12.5,
            dimensions=Dimensions(width=1280, height=720),
        )


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def territory():
    return Territory(
        id="t1",
        title="Weekend Escape",
        positioning="the freedom of an unplanned weekend",
        tone="Bold and adventurous",
    )


@pytest.fixture
def brand_guidelines():
    return BrandGuidelines(
        colors=ColorPalette(primary="#FF5500", secondary=["#003366"], accent=["#FFD700"], neutral=["#F5F5F5"]),
        fonts=BrandFonts(primary="Montserrat"),
        imagery=BrandImagery(style=["natural light", "candid"], filters=["warm", "film"]),
        compliance=BrandCompliance(prohibited_elements=["alcohol", "competitor logos"]),
    )


@pytest.fixture
def generation_config():
    return MultimediaGenerationConfig(
        default_provider=AIProvider.OPENAI,
        default_video_provider=AIProvider.RUNWAY,
        fallback_providers=[AIProvider.STABLE_DIFFUSION],
        batch_processing=BatchProcessingConfig(max_concurrent=3, batch_size=5, delay_between_batches=0),
        max_retries=3,
    )


@pytest.fixture
def image_adapters():
    return {
        AIProvider.OPENAI: MockImageAdapter(AIProvider.OPENAI, url="https://x/openai.png"),
        AIProvider.STABLE_DIFFUSION: MockImageAdapter(AIProvider.STABLE_DIFFUSION, url="https://x/sd.png"),
        AIProvider.MIDJOURNEY: MockImageAdapter(AIProvider.MIDJOURNEY, url="https://x/mj.png"),
    }


@pytest.fixture
def video_adapters():
    return {
        AIProvider.RUNWAY: MockVideoAdapter(AIProvider.RUNWAY),
        AIProvider.STABLE_VIDEO: MockVideoAdapter(AIProvider.STABLE_VIDEO, url="https://x/svd.mp4"),
    }


@pytest.fixture
def provider_service(generation_config, image_adapters, video_adapters, fake_clock):
    return AIProviderService(
        generation_config, image_adapters, video_adapters, rate_limiter=RateLimiter(clock=fake_clock),
    )


@pytest.fixture
def generation_service(generation_config, provider_service):
    return MultimediaGenerationService(generation_config, provider_service)


@pytest.fixture
def mock_image_adapter():
    """The adapter class, for tests that script their own providers."""
    return MockImageAdapter


@pytest.fixture
def make_provider_service(fake_clock):
    def _make(config, image_adapters=None, video_adapters=None):
        return AIProviderService(
            config, image_adapters or {}, video_adapters or {}, rate_limiter=RateLimiter(clock=fake_clock),
        )
    return _make
