"""
Text Detector
=============

Per-frame estimate of how much legible text a luma plane contains.

This module provides the TextDetector protocol and two implementations:
    - GradientTextDetector: edge-density heuristic, no inference library
    - ConstantTextDetector: fixed confidence, for tests and external gating

Algorithm (GradientTextDetector):
    1. Finite differences gx, gy over the luma plane (no smoothing at <= 640px)
    2. Edge pixel where |gx| + |gy| > edge_threshold
    3. Area-average the edge mask into a coarse cell grid → edge density
    4. A cell is text-like when its density >= cell_density_min
    5. confidence = text_cells / total_cells

Text produces dense, short, high-contrast edges, so text regions light up
many cells while flat backgrounds and soft gradients light up none.
"""

import logging
from typing import Protocol

import cv2
import numpy as np

from keyframe_extractor.models.scores import TextDetectionResult


logger = logging.getLogger(__name__)


class TextDetector(Protocol):
    """
    Protocol for text presence estimators.

    All implementations must score a luma plane without keeping
    a reference to it.
    """

    def detect(self, plane: np.ndarray) -> TextDetectionResult:
        """
        Estimate text presence.

        Args:
            plane: Luma plane (H, W), uint8

        Returns:
            TextDetectionResult with confidence in [0, 1]
        """
        ...


class GradientTextDetector:
    """
    Gradient-density text detector.

    Attributes:
        grid_size: Cells per side of the classification grid
        edge_threshold: Minimum L1 gradient magnitude for an edge pixel (0-510)
        cell_density_min: Edge density a cell must exceed to be text-like
    """

    def __init__(
        self,
        grid_size: int = 16,
        edge_threshold: int = 40,
        cell_density_min: float = 0.08,
    ) -> None:
        """
        Initialize gradient text detector.

        Args:
            grid_size: Cells per side (>= 1)
            edge_threshold: Edge magnitude threshold in luma units
            cell_density_min: Density threshold in (0, 1]

        Raises:
            ValueError: If parameters are invalid
        """
        if grid_size < 1:
            raise ValueError("grid_size must be >= 1")
        if not 0 <= edge_threshold < 510:
            raise ValueError("edge_threshold must be in [0, 510)")
        if not 0 < cell_density_min <= 1:
            raise ValueError("cell_density_min must be in (0, 1]")

        self.grid_size = grid_size
        self.edge_threshold = edge_threshold
        self.cell_density_min = cell_density_min

        logger.info(
            f"GradientTextDetector initialized: grid={grid_size}, "
            f"edge_threshold={edge_threshold}, cell_density_min={cell_density_min}"
        )

    def detect(self, plane: np.ndarray) -> TextDetectionResult:
        """
        Score text presence from edge density.

        Args:
            plane: Luma plane (H, W), uint8

        Returns:
            TextDetectionResult; planes smaller than 2x2 score 0
        """
        if plane.ndim != 2:
            raise ValueError(f"Plane must be 2D, got shape {plane.shape}")

        height, width = plane.shape
        if height < 2 or width < 2:
            return TextDetectionResult(confidence=0.0, text_cells=0, total_cells=0)

        edges = self._edge_mask(plane)

        rows = min(self.grid_size, edges.shape[0])
        cols = min(self.grid_size, edges.shape[1])
        density = cv2.resize(
            edges.astype(np.float32),
            (cols, rows),
            interpolation=cv2.INTER_AREA,
        )

        text_cells = int(np.count_nonzero(density > self.cell_density_min))
        total_cells = rows * cols
        confidence = min(1.0, max(0.0, text_cells / total_cells))

        return TextDetectionResult(
            confidence=confidence,
            text_cells=text_cells,
            total_cells=total_cells,
        )

    def _edge_mask(self, plane: np.ndarray) -> np.ndarray:
        """Boolean (H-1, W-1) mask of pixels with strong local gradient."""
        signed = plane.astype(np.int16)
        gx = np.abs(np.diff(signed, axis=1))[:-1, :]
        gy = np.abs(np.diff(signed, axis=0))[:, :-1]
        return (gx + gy) > self.edge_threshold


class ConstantTextDetector:
    """
    Deterministic detector returning a fixed confidence.

    Useful when text gating is done upstream, and for exercising the
    state machine without rendering real text.

    Attributes:
        confidence: Confidence reported for every frame
    """

    def __init__(self, confidence: float = 1.0) -> None:
        if not 0.0 <= confidence <= 1.0:
            raise ValueError("confidence must be in [0, 1]")
        self.confidence = confidence
        self.calls = 0

    def detect(self, plane: np.ndarray) -> TextDetectionResult:
        """Return the configured confidence."""
        self.calls += 1
        return TextDetectionResult(
            confidence=self.confidence,
            text_cells=0,
            total_cells=0,
        )
