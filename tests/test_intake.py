"""
Frame Intake Tests
==================

Geometry validation, ordering rules and batching.
"""

import numpy as np
import pytest

from keyframe_extractor.errors import MalformedFrameError, OutOfOrderFrameError
from keyframe_extractor.stream import FrameIntake, RawFrame, iter_batches


def _frame(frame_number, timestamp_ms=None, width=4, height=3, luma=None):
    if timestamp_ms is None:
        timestamp_ms = frame_number * 40
    if luma is None:
        luma = bytes(range(width * height))
    return RawFrame(
        width=width,
        height=height,
        luma=luma,
        timestamp_ms=timestamp_ms,
        frame_number=frame_number,
    )


class TestGeometry:
    """Tests for buffer and dimension validation."""

    def test_bytes_become_row_major_plane(self):
        """Bytes are reshaped to (height, width)."""
        plane = FrameIntake().admit(_frame(0))

        assert plane.shape == (3, 4)
        assert plane.dtype == np.uint8
        assert plane[1, 0] == 4

    def test_accepts_ndarray_and_memoryview(self):
        """ndarray and memoryview buffers are both accepted."""
        intake = FrameIntake()
        data = np.arange(12, dtype=np.uint8)

        assert intake.admit(_frame(0, luma=data.reshape(3, 4))).shape == (3, 4)
        assert intake.admit(_frame(1, luma=memoryview(data.tobytes()))).shape == (3, 4)

    def test_short_buffer_is_malformed(self):
        """A buffer shorter than width x height is rejected."""
        intake = FrameIntake()

        with pytest.raises(MalformedFrameError) as exc_info:
            intake.admit(_frame(7, luma=b"\x00" * 11))

        assert exc_info.value.frame_number == 7
        assert intake.metrics.malformed_frames == 1

    def test_long_buffer_is_malformed(self):
        """A buffer longer than width x height is rejected."""
        with pytest.raises(MalformedFrameError):
            FrameIntake().admit(_frame(0, luma=b"\x00" * 13))

    @pytest.mark.parametrize("width,height", [(0, 3), (4, 0), (-4, 3)])
    def test_non_positive_dimensions(self, width, height):
        """Zero or negative dimensions are rejected."""
        with pytest.raises(MalformedFrameError):
            FrameIntake().admit(_frame(0, width=width, height=height, luma=b""))

    def test_wrong_dtype_is_malformed(self):
        """Non-uint8 arrays are rejected."""
        luma = np.zeros((3, 4), dtype=np.float32)

        with pytest.raises(MalformedFrameError):
            FrameIntake().admit(_frame(0, luma=luma))

    def test_negative_timestamp_is_malformed(self):
        """Timestamps must be non-negative."""
        with pytest.raises(MalformedFrameError):
            FrameIntake().admit(_frame(0, timestamp_ms=-1))

    def test_negative_frame_number_is_malformed(self):
        """Frame numbers must be non-negative."""
        intake = FrameIntake()

        with pytest.raises(MalformedFrameError) as exc_info:
            intake.admit(_frame(-1, timestamp_ms=0))

        assert exc_info.value.frame_number == -1
        assert intake.metrics.last_frame_number is None

    def test_small_numpy_dimensions_do_not_wrap(self):
        """uint8 dimensions are multiplied without overflow."""
        intake = FrameIntake()
        side = np.uint8(16)

        with pytest.raises(MalformedFrameError):
            intake.admit(_frame(0, width=side, height=side, luma=b""))

        plane = intake.admit(_frame(1, width=side, height=side, luma=bytes(256)))
        assert plane.shape == (16, 16)

    def test_non_frame_is_malformed(self):
        """Anything other than a RawFrame is rejected."""
        with pytest.raises(MalformedFrameError):
            FrameIntake().admit({"width": 4, "height": 3})

    def test_malformed_frame_does_not_move_cursor(self):
        """A dropped frame leaves the ordering cursor untouched."""
        intake = FrameIntake()
        intake.admit(_frame(5))

        with pytest.raises(MalformedFrameError):
            intake.admit(_frame(9, luma=b""))

        intake.admit(_frame(6))
        assert intake.metrics.last_frame_number == 6


class TestOrdering:
    """Tests for timestamp and frame number ordering."""

    def test_frame_number_regression(self):
        """A smaller frame number is out of order."""
        intake = FrameIntake()
        intake.admit(_frame(10))

        with pytest.raises(OutOfOrderFrameError) as exc_info:
            intake.admit(_frame(9, timestamp_ms=1000))

        assert exc_info.value.frame_number == 9
        assert intake.metrics.out_of_order_frames == 1

    def test_repeated_frame_number(self):
        """A repeated frame number is out of order."""
        intake = FrameIntake()
        intake.admit(_frame(3))

        with pytest.raises(OutOfOrderFrameError):
            intake.admit(_frame(3))

    def test_timestamp_regression(self):
        """A smaller timestamp is out of order even with a larger frame number."""
        intake = FrameIntake()
        intake.admit(_frame(1, timestamp_ms=500))

        with pytest.raises(OutOfOrderFrameError):
            intake.admit(_frame(2, timestamp_ms=499))

    def test_equal_timestamps_allowed(self):
        """Equal timestamps with increasing frame numbers are admitted."""
        intake = FrameIntake()
        intake.admit(_frame(1, timestamp_ms=500))
        intake.admit(_frame(2, timestamp_ms=500))

        assert intake.metrics.frames_admitted == 2

    def test_gaps_allowed(self):
        """Frame numbers may skip values."""
        intake = FrameIntake()
        intake.admit(_frame(1))
        intake.admit(_frame(100))

        assert intake.metrics.last_frame_number == 100

    def test_reset_forgets_cursor(self):
        """After reset, earlier frame numbers are admitted again."""
        intake = FrameIntake()
        intake.admit(_frame(10))
        intake.reset()

        intake.admit(_frame(0))
        assert intake.metrics.to_dict()["frames_admitted"] == 1


class TestIterBatches:
    """Tests for batch grouping."""

    def test_partial_last_batch(self):
        """Leftover frames form a short final batch."""
        batches = list(iter_batches(range(7), batch_size=3))

        assert batches == [[0, 1, 2], [3, 4, 5], [6]]

    def test_empty_stream(self):
        """An empty stream yields no batches."""
        assert list(iter_batches([], batch_size=30)) == []

    def test_invalid_batch_size(self):
        """batch_size must be positive."""
        with pytest.raises(ValueError):
            list(iter_batches([1, 2], batch_size=0))
