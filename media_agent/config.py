"""
Service configuration, read once from the environment (and `.env`).
"""

import os

from dotenv import load_dotenv

load_dotenv()


def _optional_int(name: str) -> int | None:
    raw = os.getenv(name, "").strip()
    return int(raw) if raw else None


# ── Gemini / Veo ─────────────────────────────────────────────────────────────

GEMINI_API_BASE = os.getenv(
    "GEMINI_API_BASE", "https://generativelanguage.googleapis.com/v1beta"
).rstrip("/")

PROMPT_MODEL = os.getenv("PROMPT_MODEL", "gemini-3-flash-preview")
IMAGE_MODEL = os.getenv("IMAGE_MODEL", "gemini-3-pro-image-preview")
VIDEO_MODEL = os.getenv("VIDEO_MODEL", "veo-3.1-fast-generate-preview")

HTTP_TIMEOUT = float(os.getenv("HTTP_TIMEOUT", "120"))

# ── Video polling ────────────────────────────────────────────────────────────

VIDEO_POLL_INTERVAL = float(os.getenv("VIDEO_POLL_INTERVAL", "10"))    # seconds
VIDEO_STATUS_INTERVAL = float(os.getenv("VIDEO_STATUS_INTERVAL", "8"))  # seconds
VIDEO_MAX_POLL_ATTEMPTS = _optional_int("VIDEO_MAX_POLL_ATTEMPTS")     # None = no cap

# ── HTTP surface ─────────────────────────────────────────────────────────────

MEDIA_URL_PREFIX = os.getenv("MEDIA_URL_PREFIX", "/media").rstrip("/")
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
PORT = int(os.getenv("PORT", "8080"))
