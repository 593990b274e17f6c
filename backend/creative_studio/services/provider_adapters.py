"""Provider adapter contract shared by every image and video backend.

Adapters wrap exactly one external API behind a uniform request/result
shape. They translate transport and HTTP failures into ``ProviderError``
and contain no retry, fallback, or rate-limit logic; ``AIProviderService``
owns all of that.
"""
from __future__ import annotations

import base64
import logging
from dataclasses import dataclass
from typing import Any, Callable, Protocol

import httpx

from creative_studio.schemas.common import AIProvider
from creative_studio.schemas.generation import (
    Dimensions,
    ImageToVideoRequest,
    TextToImageRequest,
)
from creative_studio.schemas.provider import ProviderConfig
from creative_studio.services.exceptions import ProviderError
from creative_studio.services.http_client_manager import get_http_client

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int], None]


@dataclass
class ImageGenerationResult:
    url: str
    dimensions: Dimensions
    format: str = "png"
    file_size: int | None = None
    revised_prompt: str | None = None


@dataclass
class VideoGenerationResult:
    url: str
    thumbnail_url: str | None = None
    generation_time: float | None = None
    file_size: int | None = None
    dimensions: Dimensions | None = None


class ImageProviderAdapter(Protocol):
    provider: AIProvider

    async def generate_image(
        self,
        request: TextToImageRequest,
        config: ProviderConfig,
        progress_callback: ProgressCallback | None = None,
    ) -> ImageGenerationResult:
        """Generate one image for *request* and return where it lives."""


class VideoProviderAdapter(Protocol):
    provider: AIProvider

    async def generate_video(
        self,
        request: ImageToVideoRequest,
        prompt: str,
        config: ProviderConfig,
        progress_callback: ProgressCallback | None = None,
    ) -> VideoGenerationResult:
        """Animate ``request.source_image_url`` guided by *prompt*."""


def report_progress(callback: ProgressCallback | None, percentage: int) -> None:
    if callback is not None:
        callback(percentage)


class HTTPProviderAdapter:
    """Common plumbing for adapters that talk to a JSON-over-HTTP API."""

    provider: AIProvider

    def __init__(
        self,
        api_key: str = "",
        client: httpx.AsyncClient | None = None,
        poll_interval: float = 5.0,
    ):
        self.api_key = api_key
        self.poll_interval = poll_interval
        self._client = client

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def _get_client(self) -> httpx.AsyncClient:
        return self._client or get_http_client(self.provider)

    def _require_key(self) -> None:
        if not self.api_key:
            raise ProviderError(self.provider.value, "API key not configured")

    async def _send(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """Issue a request; HTTP and transport failures become ProviderError.

        Raises
        ------
        ProviderError : non-2xx status or any other httpx failure
        """
        client = self._get_client()
        try:
            resp = await client.request(method, url, **kwargs)
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            body_preview = e.response.text[:300] if e.response.text else "(empty)"
            logger.warning("%s HTTP %d: %s", self.provider.value, status, body_preview)
            raise ProviderError(
                self.provider.value, f"HTTP {status}: {body_preview}", status_code=status,
            ) from e
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            # Anything else httpx raises, InvalidURL included
            raise ProviderError(self.provider.value, f"{type(e).__name__}: {e}") from e
        return resp

    def _json(self, resp: httpx.Response) -> dict[str, Any]:
        try:
            data = resp.json()
        except ValueError as e:
            raise ProviderError(self.provider.value, "malformed JSON response") from e
        if not isinstance(data, dict):
            raise ProviderError(self.provider.value, "unexpected response shape")
        return data

    def _decoded_size(self, encoded: Any) -> int:
        """Byte size of an inline base64 payload; a malformed one is a provider failure."""
        try:
            return len(base64.b64decode(encoded, validate=True))
        except (TypeError, ValueError) as e:
            raise ProviderError(self.provider.value, "malformed base64 payload") from e
