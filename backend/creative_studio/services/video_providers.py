"""Image-to-video adapters: RunwayML and Stability's Stable Video Diffusion.

Both providers run generation as an asynchronous job: the adapter submits
the job, then polls its status every ``poll_interval`` seconds until it
finishes. Real progress from the provider (Runway) or a deterministic step
function (Stable Video, which reports none) is forwarded to the progress
callback.
"""
from __future__ import annotations

import asyncio
import base64
import logging
import time

import httpx

from creative_studio.schemas.common import AIProvider, Platform
from creative_studio.schemas.generation import Dimensions, ImageToVideoRequest
from creative_studio.schemas.provider import ProviderConfig
from creative_studio.services.exceptions import ProviderError
from creative_studio.services.provider_adapters import (
    HTTPProviderAdapter,
    ProgressCallback,
    VideoGenerationResult,
    report_progress,
)

logger = logging.getLogger(__name__)

# Vertical platforms get portrait output
PORTRAIT_PLATFORMS = {Platform.INSTAGRAM, Platform.TIKTOK}


# ── RunwayML ───────────────────────────────────────────────────────────

RUNWAY_API_BASE = "https://api.dev.runwayml.com/v1"
RUNWAY_API_VERSION = "2024-11-06"
RUNWAY_PENDING_STATUSES = {"PENDING", "THROTTLED", "RUNNING"}


class RunwayVideoAdapter(HTTPProviderAdapter):
    provider = AIProvider.RUNWAY

    def __init__(
        self,
        api_key: str = "",
        client: httpx.AsyncClient | None = None,
        poll_interval: float = 5.0,
        base_url: str = RUNWAY_API_BASE,
    ):
        super().__init__(api_key=api_key, client=client, poll_interval=poll_interval)
        self.base_url = base_url.rstrip("/")

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "X-Runway-Version": RUNWAY_API_VERSION,
        }

    async def generate_video(
        self,
        request: ImageToVideoRequest,
        prompt: str,
        config: ProviderConfig,
        progress_callback: ProgressCallback | None = None,
    ) -> VideoGenerationResult:
        self._require_key()
        if not request.source_image_url:
            raise ProviderError(self.provider.value, "source_image_url is required")

        portrait = request.platform_optimization in PORTRAIT_PLATFORMS
        ratio = "720:1280" if portrait else "1280:720"
        started = time.monotonic()

        resp = await self._send(
            "POST",
            f"{self.base_url}/image_to_video",
            headers=self._headers(),
            json={
                "model": config.model,
                "promptImage": request.source_image_url,
                "promptText": prompt[:1000],
                "ratio": ratio,
                # Runway only renders 5 or 10 second clips
                "duration": 10 if request.duration > 5 else 5,
            },
        )
        task_id = self._json(resp).get("id")
        if not task_id:
            raise ProviderError(self.provider.value, "no task id in response")
        logger.info("Runway task %s submitted (ratio=%s)", task_id, ratio)
        report_progress(progress_callback, 5)

        while True:
            await asyncio.sleep(self.poll_interval)
            resp = await self._send(
                "GET", f"{self.base_url}/tasks/{task_id}", headers=self._headers(),
            )
            task = self._json(resp)
            status = task.get("status")

            if status == "SUCCEEDED":
                output = task.get("output") or []
                if not output:
                    raise ProviderError(self.provider.value, "task succeeded without output")
                width, height = (int(v) for v in ratio.split(":"))
                return VideoGenerationResult(
                    url=output[0],
                    thumbnail_url=request.source_image_url,
                    generation_time=time.monotonic() - started,
                    dimensions=Dimensions(width=width, height=height),
                )
            if status in ("FAILED", "CANCELLED"):
                reason = task.get("failure") or task.get("failureCode") or status.lower()
                raise ProviderError(self.provider.value, f"task {task_id} {reason}")
            if status not in RUNWAY_PENDING_STATUSES:
                raise ProviderError(self.provider.value, f"unknown task status {status!r}")

            fraction = task.get("progress")
            if isinstance(fraction, (int, float)):
                report_progress(progress_callback, int(fraction * 100))


# ── Stable Video Diffusion ─────────────────────────────────────────────

STABLE_VIDEO_API_BASE = "https://api.stability.ai/v2beta/image-to-video"
STABLE_VIDEO_DIMENSIONS = Dimensions(width=1024, height=576)


class StableVideoAdapter(HTTPProviderAdapter):
    """Stability image-to-video. The API takes no text prompt; *prompt* is
    recorded on the asset only. Output is ~4 s at 24 fps regardless of the
    requested duration.
    """

    provider = AIProvider.STABLE_VIDEO

    def __init__(
        self,
        api_key: str = "",
        client: httpx.AsyncClient | None = None,
        poll_interval: float = 5.0,
        base_url: str = STABLE_VIDEO_API_BASE,
    ):
        super().__init__(api_key=api_key, client=client, poll_interval=poll_interval)
        self.base_url = base_url.rstrip("/")

    async def generate_video(
        self,
        request: ImageToVideoRequest,
        prompt: str,
        config: ProviderConfig,
        progress_callback: ProgressCallback | None = None,
    ) -> VideoGenerationResult:
        self._require_key()
        if not request.source_image_url:
            raise ProviderError(self.provider.value, "source_image_url is required")

        started = time.monotonic()
        image_bytes = await self._load_source_image(request.source_image_url)
        report_progress(progress_callback, 5)

        resp = await self._send(
            "POST",
            self.base_url,
            headers={"Authorization": f"Bearer {self.api_key}"},
            files={"image": ("source.png", image_bytes, "image/png")},
            data={"seed": "0", "cfg_scale": "1.8", "motion_bucket_id": "127"},
        )
        generation_id = self._json(resp).get("id")
        if not generation_id:
            raise ProviderError(self.provider.value, "no generation id in response")
        logger.info("Stable Video generation %s submitted", generation_id)

        polls = 0
        while True:
            await asyncio.sleep(self.poll_interval)
            resp = await self._send(
                "GET",
                f"{self.base_url}/result/{generation_id}",
                headers={"Authorization": f"Bearer {self.api_key}", "Accept": "application/json"},
            )
            if resp.status_code == 202:
                polls += 1
                report_progress(progress_callback, min(90, 10 + polls * 10))
                continue

            result = self._json(resp)
            if result.get("finish_reason") == "CONTENT_FILTERED":
                raise ProviderError(self.provider.value, "video rejected by content filter")
            encoded = result.get("video")
            if not encoded:
                raise ProviderError(self.provider.value, "result has no video payload")
            return VideoGenerationResult(
                url=f"data:video/mp4;base64,{encoded}",
                thumbnail_url=request.source_image_url,
                generation_time=time.monotonic() - started,
                file_size=self._decoded_size(encoded),
                dimensions=STABLE_VIDEO_DIMENSIONS,
            )

    async def _load_source_image(self, url: str) -> bytes:
        # Images from the Stability image adapter arrive inline as data URLs
        if url.startswith("data:"):
            try:
                return base64.b64decode(url.split(",", 1)[1])
            except (IndexError, ValueError) as e:
                raise ProviderError(self.provider.value, "malformed data URL for source image") from e
        resp = await self._send("GET", url)
        return resp.content
