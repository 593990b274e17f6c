"""Image generation adapters: OpenAI DALL·E, Stability SDXL, Midjourney proxy."""
from __future__ import annotations

import asyncio
import logging

import httpx

from creative_studio.schemas.common import AIProvider, ImageType, QualityTier
from creative_studio.schemas.generation import Dimensions, TextToImageRequest
from creative_studio.schemas.provider import ProviderConfig
from creative_studio.services.exceptions import ProviderError
from creative_studio.services.provider_adapters import (
    HTTPProviderAdapter,
    ImageGenerationResult,
    ProgressCallback,
    report_progress,
)

logger = logging.getLogger(__name__)


# ── OpenAI DALL·E ──────────────────────────────────────────────────────

OPENAI_IMAGES_URL = "https://api.openai.com/v1/images/generations"

# Sizes accepted by dall-e-3, chosen per image type
OPENAI_IMAGE_TYPE_SIZES: dict[ImageType, str] = {
    ImageType.PRODUCT: "1024x1024",
    ImageType.LIFESTYLE: "1792x1024",
    ImageType.BACKGROUND: "1024x1792",
    ImageType.HERO: "1792x1024",
    ImageType.ICON: "1024x1024",
    ImageType.PATTERN: "1024x1024",
}
OPENAI_SUPPORTED_SIZES = {"1024x1024", "1792x1024", "1024x1792"}


class OpenAIImageAdapter(HTTPProviderAdapter):
    provider = AIProvider.OPENAI

    async def generate_image(
        self,
        request: TextToImageRequest,
        config: ProviderConfig,
        progress_callback: ProgressCallback | None = None,
    ) -> ImageGenerationResult:
        self._require_key()
        size = self._resolve_size(request)
        payload = {
            "model": config.model,
            "prompt": request.prompt,
            "n": 1,
            "size": size,
            # dall-e-3 has no tier above "hd"
            "quality": "standard" if request.quality == QualityTier.STANDARD else "hd",
            "style": request.style.value,
        }
        logger.info("OpenAI image request: model=%s size=%s", config.model, size)
        report_progress(progress_callback, 10)
        resp = await self._send(
            "POST",
            OPENAI_IMAGES_URL,
            headers={"Authorization": f"Bearer {self.api_key}"},
            json=payload,
        )
        data = self._json(resp)
        try:
            item = data["data"][0]
            url = item["url"]
        except (KeyError, IndexError, TypeError) as e:
            raise ProviderError(self.provider.value, "No image URL returned from API") from e

        width, height = (int(v) for v in size.split("x"))
        return ImageGenerationResult(
            url=url,
            dimensions=Dimensions(width=width, height=height),
            format="png",
            revised_prompt=item.get("revised_prompt"),
        )

    @staticmethod
    def _resolve_size(request: TextToImageRequest) -> str:
        if request.dimensions and request.dimensions.as_size() in OPENAI_SUPPORTED_SIZES:
            return request.dimensions.as_size()
        return OPENAI_IMAGE_TYPE_SIZES.get(request.image_type, "1024x1024")


# ── Stability AI (SDXL) ────────────────────────────────────────────────

STABILITY_API_BASE = "https://api.stability.ai/v1/generation"

# SDXL only accepts a fixed set of resolutions
SDXL_IMAGE_TYPE_DIMENSIONS: dict[ImageType, tuple[int, int]] = {
    ImageType.PRODUCT: (1024, 1024),
    ImageType.LIFESTYLE: (1344, 768),
    ImageType.BACKGROUND: (768, 1344),
    ImageType.HERO: (1344, 768),
    ImageType.ICON: (1024, 1024),
    ImageType.PATTERN: (1024, 1024),
}
SDXL_STEPS: dict[QualityTier, int] = {
    QualityTier.STANDARD: 30,
    QualityTier.HD: 40,
    QualityTier.ULTRA: 50,
}


class StableDiffusionAdapter(HTTPProviderAdapter):
    """Stability REST v1 text-to-image. Returns the image inline as a data URL."""

    provider = AIProvider.STABLE_DIFFUSION

    async def generate_image(
        self,
        request: TextToImageRequest,
        config: ProviderConfig,
        progress_callback: ProgressCallback | None = None,
    ) -> ImageGenerationResult:
        self._require_key()
        width, height = SDXL_IMAGE_TYPE_DIMENSIONS.get(request.image_type, (1024, 1024))
        text_prompts = [{"text": request.prompt, "weight": 1.0}]
        if request.negative_prompt:
            text_prompts.append({"text": request.negative_prompt, "weight": -1.0})

        report_progress(progress_callback, 10)
        resp = await self._send(
            "POST",
            f"{STABILITY_API_BASE}/{config.model}/text-to-image",
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "Accept": "application/json",
            },
            json={
                "text_prompts": text_prompts,
                "cfg_scale": 7,
                "width": width,
                "height": height,
                "samples": 1,
                "steps": SDXL_STEPS.get(request.quality, 30),
            },
        )
        data = self._json(resp)
        try:
            artifact = data["artifacts"][0]
            encoded = artifact["base64"]
        except (KeyError, IndexError, TypeError) as e:
            raise ProviderError(self.provider.value, "No image artifact returned from API") from e
        if artifact.get("finishReason") == "CONTENT_FILTERED":
            raise ProviderError(self.provider.value, "image rejected by content filter")

        return ImageGenerationResult(
            url=f"data:image/png;base64,{encoded}",
            dimensions=Dimensions(width=width, height=height),
            format="png",
            file_size=self._decoded_size(encoded),
        )


# ── Midjourney (self-hosted proxy) ─────────────────────────────────────

MIDJOURNEY_ASPECT_RATIOS: dict[ImageType, str] = {
    ImageType.PRODUCT: "1:1",
    ImageType.LIFESTYLE: "16:9",
    ImageType.BACKGROUND: "9:16",
    ImageType.HERO: "16:9",
    ImageType.ICON: "1:1",
    ImageType.PATTERN: "1:1",
}
MIDJOURNEY_ASPECT_DIMENSIONS: dict[str, tuple[int, int]] = {
    "1:1": (1024, 1024),
    "16:9": (1456, 816),
    "9:16": (816, 1456),
}


def _parse_progress(value) -> int:
    """Proxies report progress as 45, 45.0 or "45%"."""
    if value is None:
        return 0
    try:
        return int(float(str(value).rstrip("%")))
    except ValueError:
        return 0


class MidjourneyAdapter(HTTPProviderAdapter):
    """Midjourney has no public API; this targets a proxy exposing ``/imagine``
    and ``/tasks/{id}`` (the shape shared by the common self-hosted bridges).
    """

    provider = AIProvider.MIDJOURNEY

    def __init__(
        self,
        base_url: str = "",
        api_key: str = "",
        client: httpx.AsyncClient | None = None,
        poll_interval: float = 5.0,
    ):
        super().__init__(api_key=api_key, client=client, poll_interval=poll_interval)
        self.base_url = base_url.rstrip("/")

    @property
    def is_configured(self) -> bool:
        return bool(self.base_url)

    async def generate_image(
        self,
        request: TextToImageRequest,
        config: ProviderConfig,
        progress_callback: ProgressCallback | None = None,
    ) -> ImageGenerationResult:
        if not self.base_url:
            raise ProviderError(self.provider.value, "MIDJOURNEY_API_URL not configured")

        headers = {"Authorization": f"Bearer {self.api_key}"} if self.api_key else {}
        aspect = MIDJOURNEY_ASPECT_RATIOS.get(request.image_type, "1:1")
        prompt = request.prompt
        if request.negative_prompt:
            prompt += f" --no {request.negative_prompt}"

        resp = await self._send(
            "POST",
            f"{self.base_url}/imagine",
            headers=headers,
            json={"prompt": prompt, "aspect_ratio": aspect, "model": config.model},
        )
        task_id = self._json(resp).get("task_id")
        if not task_id:
            raise ProviderError(self.provider.value, "proxy did not return a task id")
        logger.info("Midjourney task %s submitted", task_id)
        report_progress(progress_callback, 5)

        while True:
            resp = await self._send("GET", f"{self.base_url}/tasks/{task_id}", headers=headers)
            task = self._json(resp)
            status = task.get("status")
            if status == "completed":
                url = task.get("image_url")
                if not url:
                    raise ProviderError(self.provider.value, "completed task has no image_url")
                width, height = MIDJOURNEY_ASPECT_DIMENSIONS[aspect]
                return ImageGenerationResult(
                    url=url, dimensions=Dimensions(width=width, height=height), format="png",
                )
            if status == "failed":
                raise ProviderError(self.provider.value, task.get("error") or "task failed")
            report_progress(progress_callback, _parse_progress(task.get("progress")))
            await asyncio.sleep(self.poll_interval)
