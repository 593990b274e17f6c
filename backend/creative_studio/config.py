"""Application configuration using Pydantic Settings."""
import json
from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables / .env file."""

    # Application
    APP_NAME: str = "Creative Studio Multimedia Generator"
    APP_VERSION: str = "1.0.0"
    LOG_LEVEL: str = "INFO"

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5173"

    # Provider credentials
    OPENAI_API_KEY: str = ""
    STABILITY_API_KEY: str = ""
    MIDJOURNEY_API_URL: str = ""      # self-hosted Midjourney proxy, no official API
    MIDJOURNEY_API_KEY: str = ""
    RUNWAY_API_KEY: str = ""
    STABLE_VIDEO_API_KEY: str = ""    # falls back to STABILITY_API_KEY when empty

    # Provider selection
    DEFAULT_IMAGE_PROVIDER: str = "openai"
    DEFAULT_VIDEO_PROVIDER: str = "runway"
    FALLBACK_PROVIDERS: str = "stable-diffusion"

    # Quality tier → {"resolution": "WxH", "quality": tier} as JSON
    QUALITY_RESOLUTIONS: str = (
        '{"standard": {"resolution": "1024x1024", "quality": "standard"},'
        ' "hd": {"resolution": "1792x1024", "quality": "hd"},'
        ' "ultra": {"resolution": "2048x2048", "quality": "ultra"}}'
    )

    # Queue / batch processing
    BATCH_MAX_CONCURRENT: int = 3
    BATCH_SIZE: int = 5
    BATCH_DELAY_SECONDS: float = 2.0
    QUEUE_MAX_RETRIES: int = 3

    # Seconds between status polls for providers with async jobs (Runway, Stability video)
    PROVIDER_POLL_INTERVAL: float = 5.0

    @property
    def cors_origins_list(self) -> list[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    @property
    def fallback_providers_list(self) -> list[str]:
        return [p.strip() for p in self.FALLBACK_PROVIDERS.split(",") if p.strip()]

    @property
    def quality_resolutions(self) -> dict[str, dict[str, str]]:
        return json.loads(self.QUALITY_RESOLUTIONS)

    @property
    def stable_video_key(self) -> str:
        return self.STABLE_VIDEO_API_KEY or self.STABILITY_API_KEY

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
