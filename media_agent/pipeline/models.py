"""
Pydantic models and enums for the product media pipeline.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


# ── Lifecycle ────────────────────────────────────────────────────────────────

class AppState(str, Enum):
    IDLE = "IDLE"
    GENERATING_PROMPTS = "GENERATING_PROMPTS"
    PROMPTS_READY = "PROMPTS_READY"
    GENERATING_MEDIA = "GENERATING_MEDIA"
    COMPLETED = "COMPLETED"
    ERROR = "ERROR"


# Form inputs are editable only here
EDITABLE_STATES = frozenset({AppState.IDLE, AppState.ERROR})

# A cycle is running; nothing may restart or reset it
IN_FLIGHT_STATES = frozenset({AppState.GENERATING_PROMPTS, AppState.GENERATING_MEDIA})


# ── Data contracts ───────────────────────────────────────────────────────────

class ProductDetails(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = ""
    description: str = ""


class GeneratedPrompts(BaseModel):
    """The agent's structured output. Accepts the backend's camelCase keys."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    image_prompt: str = Field(..., alias="imagePrompt", min_length=1)
    video_prompt: str = Field(..., alias="videoPrompt", min_length=1)


class MediaResult(BaseModel):
    """Each renderer writes only its own field; partial results are valid."""

    image_url: Optional[str] = None
    video_url: Optional[str] = None


# ── API Request / Response Models ────────────────────────────────────────────

class PromptRequest(BaseModel):
    name: str = Field("", description="Product identity, e.g. 'Lunar X1 Wireless Earbuds'")
    description: str = Field("", description="Aesthetic, textures and intended vibe")


class CredentialRequest(BaseModel):
    api_key: str = Field(..., min_length=1)


class CredentialStatus(BaseModel):
    configured: bool
    requested: bool = False


class StudioState(BaseModel):
    status: AppState
    product: ProductDetails = Field(default_factory=ProductDetails)
    prompts: Optional[GeneratedPrompts] = None
    media: MediaResult = Field(default_factory=MediaResult)
    error: Optional[str] = None
    video_status_text: str = ""
    credential_requested: bool = False
    inputs_locked: bool = False
