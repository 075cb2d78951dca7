"""
Tests for the HTTP surface.
"""
import time

import pytest
from fastapi.testclient import TestClient

from conftest import FakeCredentials


@pytest.fixture
def studio():
    """A StudioSession wired to in-memory fakes."""
    from media_agent.pipeline.models import GeneratedPrompts
    from media_agent.pipeline.orchestrator import StudioSession

    async def prompts(name, description, api_key=None):
        if name == "broken":
            raise RuntimeError("Failed to parse agent's output. Please try again.")
        return GeneratedPrompts(imagePrompt="A", videoPrompt="B")

    async def image(prompt, api_key=None):
        raise RuntimeError("Professional image generation failed to return data.")

    async def video(prompt, api_key=None):
        return "url-1"

    return StudioSession(FakeCredentials(), generate_prompts=prompts, generate_image=image, generate_video=video)


@pytest.fixture
def client(studio):
    from media_agent.main import app
    from media_agent.pipeline.credentials import EnvCredentialProvider
    from media_agent.pipeline.routes import get_credentials, get_media_store, get_session
    from media_agent.pipeline.storage import MediaStore

    store = MediaStore(url_prefix="/media")
    creds = EnvCredentialProvider(api_key="test-gemini-key")
    app.dependency_overrides[get_session] = lambda: studio
    app.dependency_overrides[get_credentials] = lambda: creds
    app.dependency_overrides[get_media_store] = lambda: store
    with TestClient(app) as test_client:
        test_client.store = store
        test_client.creds = creds
        yield test_client
    app.dependency_overrides.clear()


def wait_for_status(client, status, timeout=2.0):
    deadline = time.time() + timeout
    while time.time() < deadline:
        state = client.get("/studio").json()
        if state["status"] == status:
            return state
        time.sleep(0.01)
    raise AssertionError(f"studio never reached {status}")


class TestStudioFlow:
    def test_initial_state(self, client):
        resp = client.get("/studio")
        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "IDLE"
        assert body["inputs_locked"] is False
        assert body["video_status_text"] == "Waiting..."

    def test_full_cycle(self, client):
        resp = client.post("/studio/prompts", json={"name": "Lunar X1", "description": "minimalist white"})
        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "PROMPTS_READY"
        assert body["prompts"] == {"imagePrompt": "A", "videoPrompt": "B"}

        resp = client.post("/studio/render")
        assert resp.status_code == 202
        assert resp.json()["status"] == "GENERATING_MEDIA"

        state = wait_for_status(client, "COMPLETED")
        assert state["media"] == {"image_url": None, "video_url": "url-1"}
        assert state["error"] is None

        resp = client.post("/studio/reset")
        assert resp.status_code == 200
        assert resp.json()["status"] == "IDLE"
        assert resp.json()["prompts"] is None

    def test_prompt_failure_reports_error_state(self, client):
        resp = client.post("/studio/prompts", json={"name": "broken", "description": "d"})
        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "ERROR"
        assert body["error"] == "Failed to parse agent's output. Please try again."

    def test_empty_product_is_bad_request(self, client):
        resp = client.post("/studio/prompts", json={"name": "", "description": "d"})
        assert resp.status_code == 400

    def test_render_without_prompts_conflicts(self, client):
        resp = client.post("/studio/render")
        assert resp.status_code == 409

    def test_locked_form_conflicts(self, client):
        client.post("/studio/prompts", json={"name": "n", "description": "d"})
        resp = client.post("/studio/prompts", json={"name": "n2", "description": "d2"})
        assert resp.status_code == 409

    def test_reset_with_prompts_ready_conflicts(self, client):
        client.post("/studio/prompts", json={"name": "n", "description": "d"})
        resp = client.post("/studio/reset")
        assert resp.status_code == 409
        assert client.get("/studio").json()["status"] == "PROMPTS_READY"


class TestCredentialEndpoints:
    def test_status(self, client):
        resp = client.get("/studio/credential")
        assert resp.json() == {"configured": True, "requested": False}

    def test_select_then_set(self, client, tmp_path):
        client.creds._dotenv_path = str(tmp_path / ".env")
        resp = client.post("/studio/credential/select")
        assert resp.json()["requested"] is True

        resp = client.post("/studio/credential", json={"api_key": "new-key"})
        assert resp.status_code == 200
        assert resp.json() == {"configured": True, "requested": False}
        assert client.creds.get_api_key() == "new-key"

    def test_blank_key_rejected(self, client):
        resp = client.post("/studio/credential", json={"api_key": "   "})
        assert resp.status_code == 400


class TestMediaAndOps:
    def test_serves_stored_media(self, client):
        url = client.store.put(b"MP4DATA", "video/mp4")
        resp = client.get(url)
        assert resp.status_code == 200
        assert resp.content == b"MP4DATA"
        assert resp.headers["content-type"] == "video/mp4"

    def test_unknown_media_is_404(self, client):
        assert client.get("/media/nope").status_code == 404

    def test_health(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "ok"

    def test_metrics(self, client):
        client.post("/studio/prompts", json={"name": "n", "description": "d"})
        snapshot = client.get("/metrics").json()
        assert snapshot["counters"]["requests.prompts"] == 1
