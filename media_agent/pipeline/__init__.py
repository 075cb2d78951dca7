"""
Product Media Pipeline

  Step 1 — Prompt Engineering: product name + description → image & video prompts
  Step 2 — Rendering: Gemini image ∥ Veo video, joined once both settle
  Studio — The single-cycle state machine behind the browser front-end
"""

from .orchestrator import StudioSession
from .routes import media_router, studio_router
from .models import AppState, GeneratedPrompts, MediaResult, ProductDetails

__all__ = [
    "StudioSession",
    "studio_router",
    "media_router",
    "AppState",
    "GeneratedPrompts",
    "MediaResult",
    "ProductDetails",
]
