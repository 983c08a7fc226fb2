"""
Extraction Errors
=================

Error taxonomy for the keyframe extraction pipeline.

Per-frame anomalies (MalformedFrameError, OutOfOrderFrameError, EncodeError)
are raised by the stage that detects them and caught by the pipeline, which
drops the frame and keeps going. InvalidUsageError is the only error that
escapes a public call, and it is raised before any state is touched.
"""

from typing import Optional


class KeyframeExtractionError(Exception):
    """Base class for all extraction errors."""
    pass


class MalformedFrameError(KeyframeExtractionError):
    """Raised when a frame's buffer does not match its declared geometry."""

    def __init__(self, message: str, frame_number: Optional[int] = None) -> None:
        super().__init__(message)
        self.frame_number = frame_number


class OutOfOrderFrameError(KeyframeExtractionError):
    """Raised when a frame's timestamp or sequence number regresses."""

    def __init__(self, message: str, frame_number: Optional[int] = None) -> None:
        super().__init__(message)
        self.frame_number = frame_number


class EncodeError(KeyframeExtractionError):
    """Raised when an accepted candidate cannot be compressed."""
    pass


class InvalidUsageError(KeyframeExtractionError):
    """Raised when a call is structurally invalid for the current lifecycle."""
    pass
