"""
Frame Intake
============

Validation and batching of incoming raw frames.

This module provides the FrameIntake class which:
    - Checks each frame's buffer against its declared geometry
    - Enforces temporal ordering across batch boundaries
    - Exposes the luma plane as a (height, width) numpy view

Design Rules:
    - Does NOT copy pixel data (views only)
    - Raises per-frame errors; the caller decides to drop and continue
    - Dropped frames never move the ordering cursor
"""

import logging
from typing import Iterable, Iterator, List, Optional

import numpy as np

from keyframe_extractor.errors import MalformedFrameError, OutOfOrderFrameError
from keyframe_extractor.stream.frame import RawFrame


logger = logging.getLogger(__name__)


class FrameIntakeMetrics:
    """Metrics for FrameIntake observability."""

    __slots__ = (
        "frames_admitted",
        "malformed_frames",
        "out_of_order_frames",
        "last_frame_number",
        "last_timestamp_ms",
    )

    def __init__(self) -> None:
        self.frames_admitted: int = 0
        self.malformed_frames: int = 0
        self.out_of_order_frames: int = 0
        self.last_frame_number: Optional[int] = None
        self.last_timestamp_ms: Optional[int] = None

    def to_dict(self) -> dict:
        """Export metrics as dict."""
        return {
            "frames_admitted": self.frames_admitted,
            "malformed_frames": self.malformed_frames,
            "out_of_order_frames": self.out_of_order_frames,
            "last_frame_number": self.last_frame_number,
            "last_timestamp_ms": self.last_timestamp_ms,
        }


class FrameIntake:
    """
    Per-frame gatekeeper in front of the state machine.

    Ordering rules:
        - frame_number must be strictly greater than the last admitted one
        - timestamp_ms must not be smaller than the last admitted one

    Example:
        intake = FrameIntake()
        try:
            plane = intake.admit(frame)
        except MalformedFrameError:
            ...  # drop and continue
    """

    def __init__(self) -> None:
        self.metrics = FrameIntakeMetrics()

    def admit(self, frame: RawFrame) -> np.ndarray:
        """
        Validate a frame and return its luma plane.

        Args:
            frame: Frame delivered by the decoder

        Returns:
            Luma plane as np.ndarray (height, width), dtype=uint8

        Raises:
            MalformedFrameError: If geometry or buffer is invalid
            OutOfOrderFrameError: If timestamp or frame number regresses
        """
        try:
            plane = self._to_plane(frame)
        except MalformedFrameError:
            self.metrics.malformed_frames += 1
            raise

        self._check_order(frame)

        self.metrics.frames_admitted += 1
        self.metrics.last_frame_number = frame.frame_number
        self.metrics.last_timestamp_ms = frame.timestamp_ms
        return plane

    def reset(self) -> None:
        """Forget ordering history and counters."""
        self.metrics = FrameIntakeMetrics()

    def _to_plane(self, frame: RawFrame) -> np.ndarray:
        if not isinstance(frame, RawFrame):
            raise MalformedFrameError(
                f"Expected RawFrame, got {type(frame).__name__}"
            )

        number = frame.frame_number
        width, height = frame.width, frame.height

        for name in ("width", "height", "timestamp_ms", "frame_number"):
            value = getattr(frame, name)
            if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
                raise MalformedFrameError(
                    f"Frame {number!r}: {name} must be an integer, got {value!r}",
                    frame_number=number if isinstance(number, int) else None,
                )
        if width <= 0 or height <= 0:
            raise MalformedFrameError(
                f"Frame {number}: dimensions must be positive, got {width}x{height}",
                frame_number=number,
            )
        if frame.timestamp_ms < 0:
            raise MalformedFrameError(
                f"Frame {number}: negative timestamp {frame.timestamp_ms}",
                frame_number=number,
            )
        if number < 0:
            raise MalformedFrameError(
                f"Frame {number}: negative frame number",
                frame_number=number,
            )

        luma = frame.luma
        if isinstance(luma, np.ndarray):
            if luma.dtype != np.uint8:
                raise MalformedFrameError(
                    f"Frame {number}: luma dtype must be uint8, got {luma.dtype}",
                    frame_number=number,
                )
            flat = luma.reshape(-1)
        else:
            try:
                flat = np.frombuffer(luma, dtype=np.uint8)
            except (TypeError, ValueError) as e:
                raise MalformedFrameError(
                    f"Frame {number}: unreadable luma buffer: {e}",
                    frame_number=number,
                )

        # Python ints; numpy scalar products can wrap
        expected = int(width) * int(height)
        if flat.size != expected:
            raise MalformedFrameError(
                f"Frame {number}: luma has {flat.size} bytes, "
                f"expected {width}x{height}={expected}",
                frame_number=number,
            )

        return flat.reshape(height, width)

    def _check_order(self, frame: RawFrame) -> None:
        last_number = self.metrics.last_frame_number
        last_ts = self.metrics.last_timestamp_ms

        if last_number is not None and frame.frame_number <= last_number:
            self.metrics.out_of_order_frames += 1
            raise OutOfOrderFrameError(
                f"Frame number went backwards: got {frame.frame_number}, "
                f"last admitted was {last_number}",
                frame_number=frame.frame_number,
            )

        if last_ts is not None and frame.timestamp_ms < last_ts:
            self.metrics.out_of_order_frames += 1
            raise OutOfOrderFrameError(
                f"Timestamp went backwards on frame {frame.frame_number}: "
                f"got {frame.timestamp_ms}ms, previous was {last_ts}ms",
                frame_number=frame.frame_number,
            )


def iter_batches(frames: Iterable[RawFrame], batch_size: int) -> Iterator[List[RawFrame]]:
    """
    Group a frame stream into batches.

    Args:
        frames: Any iterable of frames, in arrival order
        batch_size: Maximum frames per batch. Must be >= 1.

    Yields:
        Lists of at most batch_size frames; the last one may be partial.
    """
    if batch_size < 1:
        raise ValueError("batch_size must be >= 1")

    batch: List[RawFrame] = []
    for frame in frames:
        batch.append(frame)
        if len(batch) >= batch_size:
            yield batch
            batch = []

    if batch:
        yield batch
