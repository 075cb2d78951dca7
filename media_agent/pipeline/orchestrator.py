"""
StudioSession — the generation cycle state machine.

    IDLE ──submit──▶ GENERATING_PROMPTS ──ok──▶ PROMPTS_READY ──render──▶ GENERATING_MEDIA ──▶ COMPLETED
      ▲                      │                                                                    │
      │                      └──failure──▶ ERROR ──submit──▶ GENERATING_PROMPTS                    │
      └────────────────────────── reset ◀──────┴─────────────────────────────────────────────────┘

Step 1 (prompts) runs alone and is fatal on failure. Step 2 runs the image
and video renderers concurrently and waits for both to settle; their
failures are contained and the cycle always ends in COMPLETED.
"""

import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional

from .. import metrics
from ..gemini import MISSING_KEY_MESSAGE
from .credentials import CredentialProvider
from .exceptions import (
    CycleInProgressError,
    InvalidProductError,
    InvalidTransitionError,
)
from .models import (
    EDITABLE_STATES,
    IN_FLIGHT_STATES,
    AppState,
    GeneratedPrompts,
    MediaResult,
    ProductDetails,
    StudioState,
)
from .status_ticker import VIDEO_PHRASES, StatusTicker
from .storage import MediaStore

logger = logging.getLogger(__name__)

# ── UI copy ──────────────────────────────────────────────────────────────────

STATUS_WAITING = "Waiting..."
STATUS_CONTACTING = "Contacting Media Engine..."
STATUS_VIDEO_FAILED = "Video production encountered an error."
PROMPT_FAILURE_FALLBACK = "Failed to generate prompts"
CREDENTIAL_ERROR_MESSAGE = "API Key configuration error. Please re-select your key."

# Error text meaning the key is unknown to the backend (the "entity") or missing
CREDENTIAL_ERROR_SIGNATURES = ("entity was not found", MISSING_KEY_MESSAGE)

RESETTABLE_STATES = {AppState.IDLE, AppState.COMPLETED, AppState.ERROR}

PromptGenerator = Callable[..., Awaitable[GeneratedPrompts]]
Renderer = Callable[..., Awaitable[str]]


class StudioSession:
    """
    One product-media generation cycle at a time.

    Usage:
        session = StudioSession(credentials, generate_prompts=..., generate_image=..., generate_video=...)
        await session.submit("Lunar X1", "minimalist white, brushed aluminium")
        await session.render()
        session.snapshot().media   # MediaResult(image_url=..., video_url=...)
        session.reset()

    The three generators are called as `fn(prompt_or_fields..., api_key=...)`.
    """

    def __init__(
        self,
        credentials: CredentialProvider,
        *,
        generate_prompts: PromptGenerator,
        generate_image: Renderer,
        generate_video: Renderer,
        store: Optional[MediaStore] = None,
        status_interval: Optional[float] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self._credentials = credentials
        self._generate_prompts = generate_prompts
        self._generate_image = generate_image
        self._generate_video = generate_video
        self._store = store
        self._status_interval = status_interval
        self._sleep = sleep
        self._render_task: Optional[asyncio.Task] = None

        self.status = AppState.IDLE
        self.product = ProductDetails()
        self.prompts: Optional[GeneratedPrompts] = None
        self.media = MediaResult()
        self.error: Optional[str] = None
        self.video_status_text = STATUS_WAITING

    # ── State ────────────────────────────────────────────────────────────

    @property
    def inputs_locked(self) -> bool:
        return self.status not in EDITABLE_STATES

    @property
    def in_flight(self) -> bool:
        return self.status in IN_FLIGHT_STATES

    def snapshot(self) -> StudioState:
        return StudioState(
            status=self.status,
            product=self.product,
            prompts=self.prompts,
            media=self.media.model_copy(),
            error=self.error,
            video_status_text=self.video_status_text,
            credential_requested=bool(getattr(self._credentials, "requested", False)),
            inputs_locked=self.inputs_locked,
        )

    def _transition(self, status: AppState):
        logger.info(f"Studio {self.status.value} → {status.value}")
        self.status = status

    def _set_video_status(self, text: str):
        self.video_status_text = text

    # ── Step 1: Prompts ──────────────────────────────────────────────────

    async def submit(self, name: str, description: str) -> StudioState:
        """Engineer the prompt pair for a product. Allowed from IDLE and ERROR."""
        if self.in_flight:
            raise CycleInProgressError("submit", self.status)
        if self.status not in EDITABLE_STATES:
            raise InvalidTransitionError("submit", self.status)
        if not (name or "").strip() or not (description or "").strip():
            raise InvalidProductError("Product name and description are required")

        self.product = ProductDetails(name=name, description=description)
        self.prompts = None
        self.error = None
        self._transition(AppState.GENERATING_PROMPTS)
        metrics.inc_counter("requests.prompts")

        started = time.perf_counter()
        try:
            prompts = await self._generate_prompts(
                self.product.name,
                self.product.description,
                api_key=self._credentials.get_api_key(),
            )
        except asyncio.CancelledError:
            self.error = PROMPT_FAILURE_FALLBACK
            self._transition(AppState.ERROR)
            raise
        except Exception as e:
            logger.error(f"Prompt generation failed: {e}", exc_info=True)
            metrics.record_stage("prompts", started, e)
            self.error = str(e) or PROMPT_FAILURE_FALLBACK
            self._transition(AppState.ERROR)
            return self.snapshot()

        metrics.record_stage("prompts", started)
        self.prompts = prompts
        self._transition(AppState.PROMPTS_READY)
        return self.snapshot()

    # ── Step 2: Media ────────────────────────────────────────────────────

    def _begin_render(self):
        if self.in_flight:
            raise CycleInProgressError("render", self.status)
        if self.status != AppState.PROMPTS_READY or self.prompts is None:
            raise InvalidTransitionError("render", self.status)
        # Lock the cycle before the first await so nothing else can start one
        self._transition(AppState.GENERATING_MEDIA)
        metrics.inc_counter("requests.render")

    async def render(self) -> StudioState:
        """Render image + video concurrently; COMPLETED once both have settled."""
        self._begin_render()
        return await self._render()

    def start_render(self) -> asyncio.Task:
        """Validate and lock now, render in the background. Needs a running loop."""
        self._begin_render()
        self._render_task = asyncio.create_task(self._render())
        return self._render_task

    async def _render(self) -> StudioState:
        prompts = self.prompts

        if not self._credentials.has_credential():
            logger.warning("No API key configured; requesting selection before rendering")
            try:
                await self._credentials.request_credential()
            except Exception as e:
                # Renderers will fail on their own and report it
                logger.error(f"Credential selection failed: {e}", exc_info=True)

        self.error = None
        self._set_video_status(STATUS_CONTACTING)

        await asyncio.gather(
            self._run_video(prompts.video_prompt),
            self._run_image(prompts.image_prompt),
            return_exceptions=True,
        )

        self._transition(AppState.COMPLETED)
        return self.snapshot()

    async def _run_video(self, prompt: str):
        ticker_kwargs = {"sleep": self._sleep}
        if self._status_interval is not None:
            ticker_kwargs["interval"] = self._status_interval

        started = time.perf_counter()
        try:
            async with StatusTicker(VIDEO_PHRASES, self._set_video_status, **ticker_kwargs):
                url = await self._generate_video(prompt, api_key=self._credentials.get_api_key())
        except Exception as e:
            logger.error(f"Video Error: {e}", exc_info=True)
            metrics.record_stage("video", started, e)
            self._set_video_status(STATUS_VIDEO_FAILED)
            if any(signature in str(e) for signature in CREDENTIAL_ERROR_SIGNATURES):
                metrics.inc_counter("errors.credential")
                self.error = CREDENTIAL_ERROR_MESSAGE
                await self._credentials.request_credential()
            return

        metrics.record_stage("video", started)
        self.media.video_url = url

    async def _run_image(self, prompt: str):
        started = time.perf_counter()
        try:
            url = await self._generate_image(prompt, api_key=self._credentials.get_api_key())
        except Exception as e:
            # Image is the secondary deliverable: log it, leave the card empty
            logger.error(f"Image Error: {e}", exc_info=True)
            metrics.record_stage("image", started, e)
            return

        metrics.record_stage("image", started)
        self.media.image_url = url

    # ── Reset / shutdown ─────────────────────────────────────────────────

    def reset(self) -> StudioState:
        """Back to IDLE with everything cleared. Allowed from IDLE, COMPLETED and ERROR."""
        if self.in_flight:
            raise CycleInProgressError("reset", self.status)
        if self.status not in RESETTABLE_STATES:
            raise InvalidTransitionError("reset", self.status)

        if self._store is not None:
            for url in (self.media.image_url, self.media.video_url):
                if url:
                    self._store.discard(url)

        self.product = ProductDetails()
        self.prompts = None
        self.media = MediaResult()
        self.error = None
        self.video_status_text = STATUS_WAITING
        self._render_task = None
        if self.status != AppState.IDLE:
            self._transition(AppState.IDLE)
        return self.snapshot()

    async def aclose(self):
        """Cancel a background render (service shutdown)."""
        task, self._render_task = self._render_task, None
        if task is not None and not task.done():
            task.cancel()
            # wait() never raises the task's own CancelledError, so only a
            # cancellation of the caller propagates
            await asyncio.wait([task])
