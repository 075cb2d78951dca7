"""
Step 2b: The Motion — Veo 3.1 Fast via predictLongRunning.

Submits the video prompt as a long-running job, polls the operation every
POLL_INTERVAL seconds until it reports done, downloads the finished clip and
hands it to the MediaStore for a playable URL.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

import httpx

from .. import config
from ..gemini import GeminiAPIError, download, get_operation, predict_long_running
from .exceptions import VideoDownloadError, VideoGenerationError
from .storage import MediaStore

logger = logging.getLogger(__name__)

NO_VIDEO_MESSAGE = "Cinematic video generation failed."
DOWNLOAD_FAILED_MESSAGE = "Failed to download generated video asset."

VIDEO_PARAMETERS = {
    "sampleCount": 1,
    "resolution": "1080p",
    "aspectRatio": "16:9",
}

Sleep = Callable[[float], Awaitable[None]]


def extract_video_uri(operation: dict) -> Optional[str]:
    """Download reference of the first generated sample, if any."""
    response = operation.get("response") or {}

    # REST shape
    samples = (response.get("generateVideoResponse") or {}).get("generatedSamples") or []
    # SDK-style shape
    if not samples:
        samples = response.get("generatedVideos") or []

    if not samples or not isinstance(samples[0], dict):
        return None
    return (samples[0].get("video") or {}).get("uri") or None


async def generate_video(
    prompt: str,
    *,
    api_key: Optional[str],
    store: MediaStore,
    client: Optional[httpx.AsyncClient] = None,
    poll_interval: float = config.VIDEO_POLL_INTERVAL,
    max_poll_attempts: Optional[int] = config.VIDEO_MAX_POLL_ATTEMPTS,
    sleep: Sleep = asyncio.sleep,
) -> str:
    """
    Render a video for `prompt` and return its playable URL.

    Args:
        prompt:            Text-to-video prompt.
        api_key:           Gemini API key (also used for the download).
        store:             Where the downloaded bytes are kept.
        client:            Optional shared httpx client.
        poll_interval:     Seconds between operation polls.
        max_poll_attempts: Give up after this many polls. None polls forever.
        sleep:             Awaitable delay, injectable for tests.

    Raises:
        VideoGenerationError: submit/poll failure, job error, timeout, or no
            download reference on the finished operation.
        VideoDownloadError: the asset fetch failed.
    """
    try:
        operation = await predict_long_running(
            config.VIDEO_MODEL,
            {"prompt": prompt},
            VIDEO_PARAMETERS,
            api_key=api_key,
            client=client,
        )

        attempts = 0
        while not operation.get("done"):
            if max_poll_attempts is not None and attempts >= max_poll_attempts:
                raise VideoGenerationError(
                    f"Video generation timed out after {attempts * poll_interval:.0f}s"
                )
            await sleep(poll_interval)
            attempts += 1
            operation = await get_operation(operation["name"], api_key=api_key, client=client)
            logger.info(f"Veo poll #{attempts}: done={operation.get('done', False)}")
    except (GeminiAPIError, httpx.HTTPError, KeyError) as e:
        raise VideoGenerationError(str(e)) from e

    if operation.get("error"):
        error = operation["error"]
        message = error.get("message") if isinstance(error, dict) else str(error)
        raise VideoGenerationError(message or NO_VIDEO_MESSAGE)

    video_uri = extract_video_uri(operation)
    if not video_uri:
        logger.error(f"Veo finished without a video URI: {operation}")
        raise VideoGenerationError(NO_VIDEO_MESSAGE)

    try:
        resp = await download(video_uri, api_key=api_key, client=client)
    except (GeminiAPIError, httpx.HTTPError) as e:
        raise VideoDownloadError(DOWNLOAD_FAILED_MESSAGE) from e
    if not resp.is_success:
        logger.error(f"Video download returned {resp.status_code}")
        raise VideoDownloadError(DOWNLOAD_FAILED_MESSAGE)

    content_type = resp.headers.get("Content-Type", "video/mp4").split(";")[0]
    url = store.put(resp.content, content_type)
    logger.info(f"Cinematic video ready after {attempts} poll(s): {url}")
    return url
