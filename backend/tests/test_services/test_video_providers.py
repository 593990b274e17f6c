"""Tests for the Runway and Stable Video adapters."""
import base64
import json

import httpx
import pytest

from creative_studio.schemas.common import AIProvider, Platform
from creative_studio.schemas.generation import Dimensions, ImageToVideoRequest
from creative_studio.services.ai_provider_service import PROVIDER_CONFIGS
from creative_studio.services.exceptions import ProviderError
from creative_studio.services.video_providers import RunwayVideoAdapter, StableVideoAdapter


def client_for(handler):
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestRunwayVideoAdapter:
    @pytest.mark.asyncio
    async def test_submit_and_poll(self):
        polls = iter([
            {"status": "PENDING"},
            {"status": "RUNNING", "progress": 0.4},
            {"status": "SUCCEEDED", "output": ["https://runway/clip.mp4"]},
        ])
        seen = {}

        def handler(request):
            assert request.headers["X-Runway-Version"] == "2024-11-06"
            if request.method == "POST":
                seen["body"] = json.loads(request.content)
                return httpx.Response(200, json={"id": "task-9"})
            assert request.url.path.endswith("/tasks/task-9")
            return httpx.Response(200, json=next(polls))

        adapter = RunwayVideoAdapter(api_key="rw", client=client_for(handler), poll_interval=0)
        request = ImageToVideoRequest(
            source_image_url="https://x/s.png", duration=8, platform_optimization=Platform.YOUTUBE,
        )
        progress = []
        result = await adapter.generate_video(request, "Slow zoom", PROVIDER_CONFIGS[AIProvider.RUNWAY], progress.append)

        assert seen["body"] == {
            "model": "gen4_turbo",
            "promptImage": "https://x/s.png",
            "promptText": "Slow zoom",
            "ratio": "1280:720",
            "duration": 10,
        }
        assert progress == [5, 40]
        assert result.url == "https://runway/clip.mp4"
        assert result.thumbnail_url == "https://x/s.png"
        assert result.dimensions == Dimensions(width=1280, height=720)
        assert result.generation_time >= 0

    @pytest.mark.asyncio
    async def test_portrait_for_instagram(self):
        seen = {}

        def handler(request):
            if request.method == "POST":
                seen["body"] = json.loads(request.content)
                return httpx.Response(200, json={"id": "t"})
            return httpx.Response(200, json={"status": "SUCCEEDED", "output": ["https://runway/c.mp4"]})

        adapter = RunwayVideoAdapter(api_key="rw", client=client_for(handler), poll_interval=0)
        result = await adapter.generate_video(
            ImageToVideoRequest(source_image_url="https://x/s.png"), "p", PROVIDER_CONFIGS[AIProvider.RUNWAY],
        )
        assert seen["body"]["ratio"] == "720:1280"
        assert seen["body"]["duration"] == 5
        assert result.dimensions == Dimensions(width=720, height=1280)

    @pytest.mark.asyncio
    async def test_failed_task(self):
        def handler(request):
            if request.method == "POST":
                return httpx.Response(200, json={"id": "t"})
            return httpx.Response(200, json={"status": "FAILED", "failure": "moderation"})

        adapter = RunwayVideoAdapter(api_key="rw", client=client_for(handler), poll_interval=0)
        with pytest.raises(ProviderError, match="moderation"):
            await adapter.generate_video(
                ImageToVideoRequest(source_image_url="https://x/s.png"), "p", PROVIDER_CONFIGS[AIProvider.RUNWAY],
            )

    @pytest.mark.asyncio
    async def test_requires_source_image(self):
        adapter = RunwayVideoAdapter(api_key="rw")
        with pytest.raises(ProviderError, match="source_image_url"):
            await adapter.generate_video(ImageToVideoRequest(), "p", PROVIDER_CONFIGS[AIProvider.RUNWAY])


class TestStableVideoAdapter:
    @pytest.mark.asyncio
    async def test_data_url_source_and_pending_polls(self):
        video = base64.b64encode(b"mp4bytes").decode()
        source = "data:image/png;base64," + base64.b64encode(b"pngbytes").decode()
        polls = iter([
            httpx.Response(202, json={"status": "in-progress"}),
            httpx.Response(202, json={"status": "in-progress"}),
            httpx.Response(200, json={"video": video, "finish_reason": "SUCCESS"}),
        ])
        seen = {}

        def handler(request):
            if request.method == "POST":
                seen["body"] = request.content
                return httpx.Response(200, json={"id": "gen-1"})
            assert request.url.path.endswith("/result/gen-1")
            return next(polls)

        adapter = StableVideoAdapter(api_key="sk-stab", client=client_for(handler), poll_interval=0)
        progress = []
        result = await adapter.generate_video(
            ImageToVideoRequest(source_image_url=source), "p", PROVIDER_CONFIGS[AIProvider.STABLE_VIDEO], progress.append,
        )

        assert b"pngbytes" in seen["body"]
        assert b"motion_bucket_id" in seen["body"]
        assert progress == [5, 20, 30]
        assert result.url == f"data:video/mp4;base64,{video}"
        assert result.file_size == len(b"mp4bytes")
        assert result.dimensions == Dimensions(width=1024, height=576)

    @pytest.mark.asyncio
    async def test_malformed_video_payload(self):
        source = "data:image/png;base64," + base64.b64encode(b"pngbytes").decode()

        def handler(request):
            if request.method == "POST":
                return httpx.Response(200, json={"id": "gen-3"})
            return httpx.Response(200, json={"video": "abc", "finish_reason": "SUCCESS"})

        adapter = StableVideoAdapter(api_key="sk-stab", client=client_for(handler), poll_interval=0)
        with pytest.raises(ProviderError, match="malformed base64"):
            await adapter.generate_video(
                ImageToVideoRequest(source_image_url=source), "p", PROVIDER_CONFIGS[AIProvider.STABLE_VIDEO],
            )

    @pytest.mark.asyncio
    async def test_downloads_remote_source(self):
        video = base64.b64encode(b"mp4").decode()
        requested = []

        def handler(request):
            requested.append((request.method, request.url.host))
            if request.url.host == "cdn.example.com":
                return httpx.Response(200, content=b"remote-png")
            if request.method == "POST":
                assert b"remote-png" in request.content
                return httpx.Response(200, json={"id": "gen-2"})
            return httpx.Response(200, json={"video": video})

        adapter = StableVideoAdapter(api_key="sk-stab", client=client_for(handler), poll_interval=0)
        await adapter.generate_video(
            ImageToVideoRequest(source_image_url="https://cdn.example.com/s.png"), "p",
            PROVIDER_CONFIGS[AIProvider.STABLE_VIDEO],
        )
        assert requested[0] == ("GET", "cdn.example.com")

    @pytest.mark.asyncio
    async def test_content_filtered(self):
        def handler(request):
            if request.method == "POST":
                return httpx.Response(200, json={"id": "gen-3"})
            return httpx.Response(200, json={"video": "", "finish_reason": "CONTENT_FILTERED"})

        adapter = StableVideoAdapter(api_key="sk-stab", client=client_for(handler), poll_interval=0)
        with pytest.raises(ProviderError, match="content filter"):
            await adapter.generate_video(
                ImageToVideoRequest(source_image_url="data:image/png;base64,eA=="), "p",
                PROVIDER_CONFIGS[AIProvider.STABLE_VIDEO],
            )
