"""
Pytest configuration and fixtures for media agent tests.
"""
import asyncio
import os

import httpx
import pytest

# Set test environment before importing app modules
os.environ["GEMINI_API_KEY"] = "test-gemini-key"
os.environ["GEMINI_API_BASE"] = "https://gemini.test/v1beta"
os.environ["LOG_LEVEL"] = "DEBUG"

API_BASE = "https://gemini.test/v1beta"


class FakeCredentials:
    """CredentialProvider double that records selection requests."""

    def __init__(self, api_key="test-gemini-key"):
        self.api_key = api_key
        self.requested = False
        self.request_calls = 0

    def has_credential(self):
        return bool(self.api_key)

    async def request_credential(self):
        self.request_calls += 1
        self.requested = True

    def get_api_key(self):
        return self.api_key


class FakeClock:
    """Injectable sleep: records the requested delays and yields once."""

    def __init__(self):
        self.sleeps = []

    async def sleep(self, seconds):
        self.sleeps.append(seconds)
        await asyncio.sleep(0)


def gemini_text_response(text):
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


def mock_client(handler):
    """AsyncClient whose traffic is answered by `handler(request) -> httpx.Response`."""
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.fixture
def credentials():
    return FakeCredentials()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture(autouse=True)
def _api_base(monkeypatch):
    from media_agent import config
    monkeypatch.setattr(config, "GEMINI_API_BASE", API_BASE)


@pytest.fixture(autouse=True)
def _reset_metrics():
    from media_agent import metrics
    metrics.reset()
    yield
    metrics.reset()


@pytest.fixture
def sample_prompts():
    from media_agent.pipeline.models import GeneratedPrompts
    return GeneratedPrompts(imagePrompt="A", videoPrompt="B")
