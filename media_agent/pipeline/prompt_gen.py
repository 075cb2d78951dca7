"""
Step 1: Prompt Engineering — Gemini Flash with a JSON response schema.

Turns a product name + description into one text-to-image prompt and one
text-to-video prompt. The style rules live in the instruction text; nothing
here post-processes the prompts.
"""

import logging
from typing import Optional

import httpx
from pydantic import ValidationError

from .. import config
from ..gemini import GeminiAPIError, first_candidate_parts, generate_content, parse_json_response
from .exceptions import PromptGenerationError
from .models import GeneratedPrompts

logger = logging.getLogger(__name__)

PARSE_FAILURE_MESSAGE = "Failed to parse agent's output. Please try again."


AGENT_PROMPT = """You are an AI product media generation agent.
Task: Generate ONE detailed text prompt for TEXT-TO-IMAGE generation and ONE detailed text prompt for TEXT-TO-VIDEO generation for the following product:

Product: {name}
Context: {description}

Rules for Image Prompt:
- Use professional studio photography terminology.
- Specify 85mm or 100mm macro lenses, shallow depth of field, softbox lighting, and clean minimalist backgrounds.
- No text, logos, or watermarks.
- Focus on texture, material quality, and sleek aesthetics.

Rules for Video Prompt:
- Cinematic product reveal style.
- Specify camera movements: slow pan, gimbal tilt, or orbiting shots.
- Mention high-speed phantom-style slow motion (120fps feel).
- Focus on light reflections and dynamic angles.
- No ads, captions, or voiceover descriptions."""


RESPONSE_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "imagePrompt": {"type": "STRING"},
        "videoPrompt": {"type": "STRING"},
    },
    "required": ["imagePrompt", "videoPrompt"],
}


async def generate_prompts(
    name: str,
    description: str,
    *,
    api_key: Optional[str],
    client: Optional[httpx.AsyncClient] = None,
) -> GeneratedPrompts:
    """
    Ask the text model for the image/video prompt pair.

    Args:
        name:        Product identity.
        description: Visual vision / context for the product.
        api_key:     Gemini API key.
        client:      Optional shared httpx client.

    Returns:
        The validated GeneratedPrompts.

    Raises:
        PromptGenerationError: transport failure, API error, or output that is
            not a JSON object with non-empty imagePrompt and videoPrompt.
    """
    logger.info(f"Engineering prompts for product: {name!r}")

    try:
        result = await generate_content(
            model=config.PROMPT_MODEL,
            parts=[{"text": AGENT_PROMPT.format(name=name, description=description)}],
            api_key=api_key,
            generation_config={
                "responseMimeType": "application/json",
                "responseSchema": RESPONSE_SCHEMA,
            },
            client=client,
        )
    except (GeminiAPIError, httpx.HTTPError) as e:
        raise PromptGenerationError(str(e)) from e

    text = "".join(p.get("text", "") for p in first_candidate_parts(result))
    try:
        prompts = GeneratedPrompts.model_validate(parse_json_response(text))
    except (ValueError, ValidationError) as e:
        logger.warning(f"Unparseable agent output: {text[:200]!r}")
        raise PromptGenerationError(PARSE_FAILURE_MESSAGE) from e

    logger.info("Prompts engineered successfully")
    return prompts
