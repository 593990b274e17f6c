"""HTTP-level tests for the v1 API."""
import time

import pytest
from fastapi.testclient import TestClient

from creative_studio.main import create_app

TERRITORY = {
    "id": "t1",
    "title": "Weekend Escape",
    "positioning": "the freedom of an unplanned weekend",
    "tone": "Bold and adventurous",
}


@pytest.fixture
def client(generation_service):
    app = create_app()
    app.state.generation_service = generation_service
    with TestClient(app) as test_client:
        yield test_client


def wait_until_done(client, queue_id, attempts=200):
    for _ in range(attempts):
        item = client.get(f"/api/v1/generations/{queue_id}").json()
        if item["status"] in ("complete", "error", "cancelled"):
            return item
        time.sleep(0.01)
    raise AssertionError(f"{queue_id} did not finish")


class TestHealth:
    def test_health(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "healthy"


class TestImageGeneration:
    def test_queue_and_poll(self, client):
        resp = client.post("/api/v1/generations/images?priority=high", json={"prompt": "a walnut chair", "territory": TERRITORY})
        assert resp.status_code == 202
        body = resp.json()
        assert body["queue_id"].startswith("gen_")
        assert body["status"] == "queued"

        item = wait_until_done(client, body["queue_id"])
        assert item["status"] == "complete"
        assert item["progress"] == 100
        assert item["result"]["url"] == "https://x/openai.png"
        assert item["result"]["provider"] == "openai"
        assert item["result"]["metadata"]["parameters"]["tier_resolution"] == "1024x1024"

    def test_enhanced_prompt_is_queued(self, client, generation_service):
        resp = client.post(
            "/api/v1/generations/images?enhance=true",
            json={"prompt": "a walnut chair", "territory": TERRITORY},
        )
        assert resp.status_code == 202
        item = generation_service.get_queue_status(resp.json()["queue_id"])
        assert item.request.prompt.startswith("Create a stunning product photography image for a walnut chair.")
        assert item.request.negative_prompt.startswith("low quality")

    def test_enhance_requires_territory(self, client):
        resp = client.post("/api/v1/generations/images?enhance=true", json={"prompt": "chair"})
        assert resp.status_code == 422
        assert "Territory" in resp.json()["detail"]

    def test_empty_prompt_rejected(self, client):
        resp = client.post("/api/v1/generations/images", json={"prompt": "  "})
        assert resp.status_code == 422
        assert resp.json()["error"] == "Invalid request"
        assert client.get("/api/v1/generations").json() == []

    def test_missing_territory_rejected(self, client):
        resp = client.post("/api/v1/generations/images", json={"prompt": "chair"})
        assert resp.status_code == 422
        assert resp.json()["detail"] == "Territory is required for image generation"
        assert client.get("/api/v1/generations").json() == []

    def test_batch_image_without_territory_rejected(self, client):
        resp = client.post("/api/v1/generations/batch", json={
            "requests": [
                {"kind": "image", "prompt": "chair", "territory": TERRITORY},
                {"kind": "image", "prompt": "table"},
            ],
        })
        assert resp.status_code == 422
        assert client.get("/api/v1/generations").json() == []

    def test_unknown_provider_rejected(self, client):
        resp = client.post("/api/v1/generations/images", json={"prompt": "chair", "provider": "dreambooth"})
        assert resp.status_code == 422


class TestVideoGeneration:
    def test_queue_video(self, client):
        resp = client.post(
            "/api/v1/generations/videos",
            json={"source_image_url": "https://x/s.png", "duration": 10, "platform_optimization": "youtube"},
        )
        assert resp.status_code == 202
        item = wait_until_done(client, resp.json()["queue_id"])
        assert item["status"] == "complete"
        assert item["result"]["metadata"]["fps"] == 60

    def test_duration_over_platform_limit(self, client):
        resp = client.post(
            "/api/v1/generations/videos",
            json={"source_image_url": "https://x/s.png", "duration": 61},
        )
        assert resp.status_code == 422


class TestQueueManagement:
    def test_unknown_id(self, client):
        assert client.get("/api/v1/generations/gen_missing").status_code == 404
        assert client.delete("/api/v1/generations/gen_missing").status_code == 404
        assert client.post("/api/v1/generations/gen_missing/retry").status_code == 404

    def test_cancel_completed_conflicts(self, client):
        queue_id = client.post("/api/v1/generations/images", json={"prompt": "chair", "territory": TERRITORY}).json()["queue_id"]
        wait_until_done(client, queue_id)
        assert client.delete(f"/api/v1/generations/{queue_id}").status_code == 409

    def test_retry_completed_rejected(self, client):
        queue_id = client.post("/api/v1/generations/images", json={"prompt": "chair", "territory": TERRITORY}).json()["queue_id"]
        wait_until_done(client, queue_id)
        assert client.post(f"/api/v1/generations/{queue_id}/retry").status_code == 422

    def test_list_and_stats(self, client):
        queue_id = client.post("/api/v1/generations/images", json={"prompt": "chair", "territory": TERRITORY}).json()["queue_id"]
        wait_until_done(client, queue_id)

        items = client.get("/api/v1/generations").json()
        assert [i["id"] for i in items] == [queue_id]

        stats = client.get("/api/v1/generations/stats").json()
        assert stats["total_complete"] == 1
        assert stats["max_concurrent"] == 3
        assert stats["queue_health"] == "healthy"


class TestBatch:
    def test_batch_round_trip(self, client):
        resp = client.post("/api/v1/generations/batch", json={
            "requests": [
                {"kind": "image", "prompt": "chair", "territory": TERRITORY},
                {"kind": "video", "source_image_url": "https://x/s.png"},
            ],
            "priority": "low",
        })
        assert resp.status_code == 202
        body = resp.json()
        assert len(body["queue_ids"]) == 2

        for queue_id in body["queue_ids"]:
            wait_until_done(client, queue_id)
        status = client.get(f"/api/v1/generations/batch/{body['batch_id']}").json()
        assert status["total"] == 2
        assert status["complete"] == 2

    def test_empty_batch(self, client):
        assert client.post("/api/v1/generations/batch", json={"requests": []}).status_code == 422

    def test_unknown_batch(self, client):
        assert client.get("/api/v1/generations/batch/batch_missing").status_code == 404


class TestPrompts:
    def test_enhance(self, client):
        resp = client.post("/api/v1/prompts/enhance", json={
            "prompt": "a canvas backpack",
            "territory": TERRITORY,
            "image_type": "lifestyle",
            "cultural_context": "australian",
        })
        assert resp.status_code == 200
        body = resp.json()
        assert body["enhanced_prompt"].startswith("Create an authentic lifestyle image")
        assert body["original_prompt"] == "a canvas backpack"
        assert len(body["cultural_adaptations"]) == 7

    def test_template(self, client):
        resp = client.post("/api/v1/prompts/template", json={
            "prompt": "smart bottle",
            "campaign_type": "launch",
            "territory": TERRITORY,
            "channel": "linkedin_post",
        })
        assert resp.status_code == 200
        assert resp.json()["enhanced_prompt"].startswith("Create a launch campaign image for smart bottle.")

    def test_unknown_image_type(self, client):
        resp = client.post("/api/v1/prompts/enhance", json={
            "prompt": "chair", "territory": TERRITORY, "image_type": "panorama",
        })
        assert resp.status_code == 422


class TestProviderStats:
    def test_counts_requests(self, client):
        queue_id = client.post("/api/v1/generations/images", json={"prompt": "chair", "territory": TERRITORY}).json()["queue_id"]
        wait_until_done(client, queue_id)

        stats = {s["provider"]: s for s in client.get("/api/v1/providers/stats").json()}
        assert stats["openai"]["requests"] == 1
        assert stats["openai"]["successes"] == 1
        assert stats["openai"]["total_cost"] == 0.04
        assert stats["runway"]["requests"] == 0
