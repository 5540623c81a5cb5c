from __future__ import annotations


class PromptVidError(Exception):
    """Base class for errors raised outside the pure rendering core."""


class EncoderUnavailableError(PromptVidError):
    """The environment cannot encode rendered frames (e.g. no ffmpeg binary)."""


class EncodingError(PromptVidError):
    def __init__(self, message: str, stderr: str = ""):
        super().__init__(message)
        self.stderr = stderr


class SurfaceError(PromptVidError, ValueError):
    """No drawable surface: the render target has unusable dimensions."""
