"""
Pipeline exceptions.
"""


class MediaAgentError(Exception):
    """Base exception for pipeline errors."""


# ── Generation stages ────────────────────────────────────────────────────────

class PromptGenerationError(MediaAgentError):
    """Prompt stage failed (unparseable agent output or transport error). Fatal to the cycle."""


class ImageGenerationError(MediaAgentError):
    """Image stage failed. Contained: the video stage carries on."""


class VideoGenerationError(MediaAgentError):
    """Video job failed or never produced a downloadable asset."""


class VideoDownloadError(VideoGenerationError):
    """The finished video could not be fetched."""


# ── Orchestration ────────────────────────────────────────────────────────────

class InvalidProductError(MediaAgentError, ValueError):
    """Product name and description are both required."""


class InvalidTransitionError(MediaAgentError):
    """Operation not allowed in the current lifecycle state."""

    def __init__(self, operation: str, state):
        self.operation = operation
        self.state = state
        super().__init__(f"Cannot {operation} while {getattr(state, 'value', state)}")


class CycleInProgressError(InvalidTransitionError):
    """A generation cycle is already running."""
