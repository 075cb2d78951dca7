"""
Gemini / Veo access over the Generative Language REST API.

- Text + image generation: models/{model}:generateContent
- Video generation:        models/{model}:predictLongRunning → operations/{id}

All calls are async (httpx). Pass a shared `client` to reuse a connection
pool (or a MockTransport in tests); otherwise a client is opened per call.
"""

import json
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import httpx

from . import config

logger = logging.getLogger(__name__)


class GeminiAPIError(Exception):
    """Non-2xx answer from the Generative Language API."""

    def __init__(self, status_code: int, message: str):
        self.status_code = status_code
        self.message = message
        super().__init__(f"Gemini API error {status_code}: {message}")


@asynccontextmanager
async def _client_scope(client: Optional[httpx.AsyncClient]) -> AsyncIterator[httpx.AsyncClient]:
    if client is not None:
        yield client
        return
    async with httpx.AsyncClient(timeout=config.HTTP_TIMEOUT) as owned:
        yield owned


MISSING_KEY_MESSAGE = "GEMINI_API_KEY not set"


def _require_key(api_key: Optional[str]) -> str:
    if not api_key:
        raise GeminiAPIError(401, MISSING_KEY_MESSAGE)
    return api_key


def _headers(api_key: Optional[str]) -> dict:
    return {"x-goog-api-key": _require_key(api_key), "Content-Type": "application/json"}


def _error_message(resp: httpx.Response) -> str:
    """Pull `error.message` out of a Google error body, else the raw text."""
    try:
        body = resp.json()
    except ValueError:
        return resp.text[:500]
    if isinstance(body, dict) and isinstance(body.get("error"), dict):
        return body["error"].get("message") or resp.text[:500]
    return resp.text[:500]


def _check(resp: httpx.Response) -> dict:
    if resp.status_code != 200:
        raise GeminiAPIError(resp.status_code, _error_message(resp))
    try:
        return resp.json()
    except ValueError:
        # e.g. an HTML error page from a proxy with a 200 status
        raise GeminiAPIError(resp.status_code, resp.text[:500])


# =========================================================================
# generateContent
# =========================================================================

async def generate_content(
    model: str,
    parts: list,
    *,
    api_key: Optional[str],
    generation_config: Optional[dict] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> dict:
    """Call the generateContent endpoint and return the decoded JSON body."""
    body: dict = {"contents": [{"parts": parts}]}
    if generation_config:
        body["generationConfig"] = generation_config

    url = f"{config.GEMINI_API_BASE}/models/{model}:generateContent"
    async with _client_scope(client) as http:
        resp = await http.post(url, headers=_headers(api_key), json=body)
    return _check(resp)


def first_candidate_parts(result: dict) -> list:
    """`candidates[0].content.parts`, or [] when the model returned nothing."""
    candidates = result.get("candidates") or []
    if not candidates:
        return []
    return (candidates[0].get("content") or {}).get("parts") or []


def parse_json_response(text: str) -> dict:
    """Parse JSON from a Gemini response, handling markdown code blocks."""
    text = (text or "").strip()
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        if "```" in text:
            json_block = text.split("```")[1]
            if json_block.startswith("json"):
                json_block = json_block[4:]
            return json.loads(json_block.strip())
        raise ValueError(f"Gemini returned invalid JSON: {text[:200]}")


# =========================================================================
# Long-running operations (Veo)
# =========================================================================

async def predict_long_running(
    model: str,
    instance: dict,
    parameters: dict,
    *,
    api_key: Optional[str],
    client: Optional[httpx.AsyncClient] = None,
) -> dict:
    """Submit a long-running prediction; returns the operation resource."""
    url = f"{config.GEMINI_API_BASE}/models/{model}:predictLongRunning"
    body = {"instances": [instance], "parameters": parameters}
    async with _client_scope(client) as http:
        resp = await http.post(url, headers=_headers(api_key), json=body)
    operation = _check(resp)
    logger.info(f"Long-running operation submitted: {operation.get('name')}")
    return operation


async def get_operation(
    name: str,
    *,
    api_key: Optional[str],
    client: Optional[httpx.AsyncClient] = None,
) -> dict:
    """Re-fetch an operation by its resource name."""
    url = f"{config.GEMINI_API_BASE}/{name}"
    async with _client_scope(client) as http:
        resp = await http.get(url, headers=_headers(api_key))
    return _check(resp)


async def download(
    uri: str,
    *,
    api_key: Optional[str],
    client: Optional[httpx.AsyncClient] = None,
) -> httpx.Response:
    """
    GET a Google-hosted asset. Caller checks the status.

    The key goes in the `key` query parameter of the first hop only, so a
    redirect to the storage host does not carry it.
    """
    async with _client_scope(client) as http:
        return await http.get(uri, params={"key": _require_key(api_key)}, follow_redirects=True)
