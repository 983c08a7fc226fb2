"""
Test Configuration
==================

Pytest fixtures and test configuration for the keyframe extractor.
"""

from typing import Callable, List, Sequence

import cv2
import numpy as np
import pytest

from keyframe_extractor.config import Settings
from keyframe_extractor.stream.frame import RawFrame


WIDTH = 320
HEIGHT = 240
FRAME_SPACING_MS = 500

STEP_1_LINES = [
    "Step 1",
    "Chop the onions",
    "and the garlic finely",
    "Heat oil in a pan",
]

STEP_2_LINES = [
    "Step 2",
    "Fry until golden",
    "Add tomatoes and salt",
    "Simmer for 10 minutes",
]


def render_text_plane(
    lines: Sequence[str],
    inverted: bool = False,
    width: int = WIDTH,
    height: int = HEIGHT,
) -> np.ndarray:
    """Draw text lines on a flat background (white on black, or inverted)."""
    background, ink = (255, 0) if inverted else (0, 255)
    plane = np.full((height, width), background, dtype=np.uint8)
    for i, line in enumerate(lines):
        cv2.putText(
            plane,
            line,
            (12, 40 + i * 50),
            cv2.FONT_HERSHEY_SIMPLEX,
            0.9,
            ink,
            2,
            cv2.LINE_AA,
        )
    return plane


def make_frame(
    plane: np.ndarray,
    frame_number: int,
    timestamp_ms: int = None,
) -> RawFrame:
    """Wrap a luma plane as a RawFrame at the default frame spacing."""
    if timestamp_ms is None:
        timestamp_ms = frame_number * FRAME_SPACING_MS
    height, width = plane.shape
    return RawFrame(
        width=width,
        height=height,
        luma=plane.tobytes(),
        timestamp_ms=timestamp_ms,
        frame_number=frame_number,
    )


def make_stream(planes: Sequence[np.ndarray], start: int = 0) -> List[RawFrame]:
    """Number a sequence of planes consecutively."""
    return [make_frame(plane, start + i) for i, plane in enumerate(planes)]


@pytest.fixture
def step_1_plane() -> np.ndarray:
    """Provide "Step 1" slide: white text on black."""
    return render_text_plane(STEP_1_LINES)


@pytest.fixture
def step_2_plane() -> np.ndarray:
    """Provide "Step 2" slide: black text on white."""
    return render_text_plane(STEP_2_LINES, inverted=True)


@pytest.fixture
def black_plane() -> np.ndarray:
    """Provide a uniform black plane."""
    return np.zeros((HEIGHT, WIDTH), dtype=np.uint8)


@pytest.fixture
def white_plane() -> np.ndarray:
    """Provide a uniform white plane."""
    return np.full((HEIGHT, WIDTH), 255, dtype=np.uint8)


@pytest.fixture
def frame_factory() -> Callable[..., RawFrame]:
    """Provide the RawFrame factory."""
    return make_frame


@pytest.fixture
def stream_factory() -> Callable[..., List[RawFrame]]:
    """Provide the consecutive-stream factory."""
    return make_stream


@pytest.fixture
def scenario_frames(step_1_plane, step_2_plane) -> List[RawFrame]:
    """Frames 0-10 show "Step 1", frames 11-15 show "Step 2"."""
    return make_stream([step_1_plane] * 11 + [step_2_plane] * 5)


@pytest.fixture
def settings() -> Settings:
    """Provide default settings."""
    return Settings()
