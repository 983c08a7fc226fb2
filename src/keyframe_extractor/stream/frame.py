"""
Frame Data Model
=================

Raw luma frame as delivered by the upstream decoder.

This module defines the RawFrame class that is used as the interface
between the decoder output and the extraction pipeline.

Design Rules:
    - This is the ONLY frame format accepted by the pipeline
    - Carries the luma (Y) plane only; chrominance is never delivered
    - Does NOT validate geometry (see FrameIntake)
"""

from dataclasses import dataclass
from typing import Union

import numpy as np


LumaBuffer = Union[bytes, bytearray, memoryview, np.ndarray]


@dataclass(frozen=True, slots=True)
class RawFrame:
    """
    Single-channel frame from the decoder.

    The pipeline borrows the frame for the duration of one batch call
    and never keeps a reference to `luma` afterwards.

    Attributes:
        width: Frame width in pixels (longest side <= 640 by convention)
        height: Frame height in pixels
        luma: Row-major Y plane, one byte per pixel
        timestamp_ms: Presentation time in milliseconds, monotonic per stream
        frame_number: Decoder frame counter, monotonic per stream
    """

    width: int
    height: int
    luma: LumaBuffer
    timestamp_ms: int
    frame_number: int

    def __repr__(self) -> str:
        """Compact repr that doesn't dump the pixel buffer."""
        return (
            f"RawFrame(frame_number={self.frame_number}, "
            f"timestamp_ms={self.timestamp_ms}, "
            f"size={self.width}x{self.height})"
        )
