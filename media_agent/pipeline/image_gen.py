"""
Step 2a: Studio Image — Gemini 3 Pro Image via generateContent.

Returns the rendered still as a data URL, ready for an <img> tag.
"""

import logging
from typing import Optional

import httpx

from .. import config
from ..gemini import GeminiAPIError, first_candidate_parts, generate_content
from .exceptions import ImageGenerationError

logger = logging.getLogger(__name__)

NO_IMAGE_MESSAGE = "Professional image generation failed to return data."

IMAGE_CONFIG = {
    "aspectRatio": "16:9",
    "imageSize": "1K",
}


async def generate_image(
    prompt: str,
    *,
    api_key: Optional[str],
    client: Optional[httpx.AsyncClient] = None,
) -> str:
    """Render `prompt` and return `data:<mime>;base64,<payload>`."""
    try:
        result = await generate_content(
            model=config.IMAGE_MODEL,
            parts=[{"text": prompt}],
            api_key=api_key,
            generation_config={
                "responseModalities": ["IMAGE"],
                "imageConfig": IMAGE_CONFIG,
            },
            client=client,
        )
    except (GeminiAPIError, httpx.HTTPError) as e:
        raise ImageGenerationError(str(e)) from e

    for part in first_candidate_parts(result):
        inline = part.get("inlineData") or {}
        if inline.get("data"):
            mime_type = inline.get("mimeType") or "image/png"
            logger.info(f"Studio image rendered ({mime_type}, {len(inline['data'])} b64 chars)")
            return f"data:{mime_type};base64,{inline['data']}"

    raise ImageGenerationError(NO_IMAGE_MESSAGE)
