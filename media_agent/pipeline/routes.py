"""
FastAPI routes for the product media studio.

Studio Endpoints:
  GET  /studio                      — Current studio state (poll while rendering)
  POST /studio/prompts              — Step 1: engineer image + video prompts
  POST /studio/render               — Step 2: render image + video (background)
  POST /studio/reset                — Clear everything, back to IDLE
  GET  /studio/credential           — Is an API key configured / requested?
  POST /studio/credential           — Install an API key
  POST /studio/credential/select    — Ask the front-end to (re-)select a key

Media Endpoints:
  GET  /media/{media_id}            — Rendered video bytes
"""

import logging
from functools import partial

from fastapi import APIRouter, Depends, HTTPException, Response, status

from .. import config
from .credentials import EnvCredentialProvider
from .exceptions import InvalidProductError, InvalidTransitionError
from .image_gen import generate_image
from .models import CredentialRequest, CredentialStatus, PromptRequest, StudioState
from .orchestrator import StudioSession
from .prompt_gen import generate_prompts
from .storage import MediaStore
from .video_gen import generate_video

logger = logging.getLogger(__name__)


def build_session(credentials: EnvCredentialProvider, store: MediaStore) -> StudioSession:
    """Wire the real Gemini/Veo generators into a StudioSession."""
    return StudioSession(
        credentials,
        generate_prompts=generate_prompts,
        generate_image=generate_image,
        generate_video=partial(
            generate_video,
            store=store,
            poll_interval=config.VIDEO_POLL_INTERVAL,
            max_poll_attempts=config.VIDEO_MAX_POLL_ATTEMPTS,
        ),
        store=store,
        status_interval=config.VIDEO_STATUS_INTERVAL,
    )


# Singletons: one studio per process
media_store = MediaStore()
credentials = EnvCredentialProvider()
_session = build_session(credentials, media_store)


def get_session() -> StudioSession:
    return _session


def get_credentials() -> EnvCredentialProvider:
    return credentials


def get_media_store() -> MediaStore:
    return media_store


def _conflict(e: InvalidTransitionError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


# ═════════════════════════════════════════════════════════════════════════════
# Studio Router
# ═════════════════════════════════════════════════════════════════════════════

studio_router = APIRouter(prefix="/studio", tags=["studio"])


@studio_router.get("", response_model=StudioState)
async def get_state(session: StudioSession = Depends(get_session)):
    return session.snapshot()


@studio_router.post("/prompts", response_model=StudioState)
async def create_prompts(request: PromptRequest, session: StudioSession = Depends(get_session)):
    """
    Step 1: Analyze the product and engineer prompts.

    Returns PROMPTS_READY, or ERROR with the message in `error`.

    Errors:
      - 400: Name or description missing
      - 409: Form is locked (cycle running or prompts already generated)
    """
    try:
        return await session.submit(request.name, request.description)
    except InvalidProductError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except InvalidTransitionError as e:
        raise _conflict(e)


@studio_router.post("/render", response_model=StudioState, status_code=status.HTTP_202_ACCEPTED)
async def render_media(session: StudioSession = Depends(get_session)):
    """
    Step 2: Start image + video rendering. Poll GET /studio for progress.

    Errors:
      - 409: No prompts ready, or a cycle is already running
    """
    try:
        session.start_render()
    except InvalidTransitionError as e:
        logger.warning(f"Render refused: {e}")
        raise _conflict(e)
    return session.snapshot()


@studio_router.post("/reset", response_model=StudioState)
async def reset_studio(session: StudioSession = Depends(get_session)):
    """
    Clear the studio back to IDLE.

    Errors:
      - 409: A cycle is running, or prompts are ready and not yet rendered
    """
    try:
        return session.reset()
    except InvalidTransitionError as e:
        raise _conflict(e)


# ── Credential ───────────────────────────────────────────────────────────────

@studio_router.get("/credential", response_model=CredentialStatus)
async def credential_status(creds: EnvCredentialProvider = Depends(get_credentials)):
    return CredentialStatus(configured=creds.has_credential(), requested=creds.requested)


@studio_router.post("/credential", response_model=CredentialStatus)
async def set_credential(
    request: CredentialRequest,
    creds: EnvCredentialProvider = Depends(get_credentials),
):
    try:
        creds.set_api_key(request.api_key)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return CredentialStatus(configured=creds.has_credential(), requested=creds.requested)


@studio_router.post("/credential/select", response_model=CredentialStatus)
async def select_credential(creds: EnvCredentialProvider = Depends(get_credentials)):
    await creds.request_credential()
    return CredentialStatus(configured=creds.has_credential(), requested=creds.requested)


# ═════════════════════════════════════════════════════════════════════════════
# Media Router
# ═════════════════════════════════════════════════════════════════════════════

media_router = APIRouter(prefix=config.MEDIA_URL_PREFIX, tags=["media"])


@media_router.get("/{media_id}")
async def get_media(media_id: str, store: MediaStore = Depends(get_media_store)):
    item = store.get(media_id)
    if item is None:
        raise HTTPException(status_code=404, detail="Media not found")
    return Response(content=item.data, media_type=item.content_type)
