"""
Diff Filter
===========

Cheap structural-similarity score between two luma frames.

Both frames are reduced to a small fixed grid by block averaging, and the
score is the normalized mean absolute difference between the grids.
Cost is O(pixels) for the reduction and O(grid²) for the comparison,
independent of resolution.

Formulas:
    signature = area-average(plane) → (grid_size, grid_size) float32
    diff      = mean(|sig_a - sig_b|) / 255, clamped to [0, 1]

Thresholds:
    diff <  same_max            → content unchanged (STABLE)
    same_max <= diff <= cut_min → content moving (CONTENT_DRIFT)
    diff >  cut_min             → scene cut (SCENE_CUT)
"""

import logging

import cv2
import numpy as np

from keyframe_extractor.models.reason_codes import ReasonCode


logger = logging.getLogger(__name__)


class DiffFilter:
    """
    Grid-signature frame comparator.

    Signatures are also used as deduplication fingerprints, so both
    consumers must share one DiffFilter (same grid size).

    Attributes:
        grid_size: Side length of the signature grid
        same_max: Scores below this mean "unchanged"
        cut_min: Scores above this mean "scene cut"

    Example:
        diff_filter = DiffFilter(grid_size=16, same_max=0.02, cut_min=0.2)

        ref = diff_filter.signature(plane_a)
        score = diff_filter.score(plane_b, ref)
    """

    def __init__(
        self,
        grid_size: int = 16,
        same_max: float = 0.02,
        cut_min: float = 0.2,
    ) -> None:
        """
        Initialize diff filter.

        Args:
            grid_size: Signature grid side length (>= 2)
            same_max: Upper bound for "unchanged", in [0, 1)
            cut_min: Lower bound for "scene cut", in (same_max, 1]

        Raises:
            ValueError: If parameters are invalid
        """
        if grid_size < 2:
            raise ValueError("grid_size must be >= 2")
        if not 0.0 <= same_max < cut_min <= 1.0:
            raise ValueError(
                f"Thresholds must satisfy 0 <= same_max < cut_min <= 1, "
                f"got same_max={same_max}, cut_min={cut_min}"
            )

        self.grid_size = grid_size
        self.same_max = same_max
        self.cut_min = cut_min

        logger.info(
            f"DiffFilter initialized: grid={grid_size}x{grid_size}, "
            f"same_max={same_max}, cut_min={cut_min}"
        )

    def signature(self, plane: np.ndarray) -> np.ndarray:
        """
        Downsample a luma plane to the signature grid.

        Args:
            plane: Luma plane (H, W), uint8

        Returns:
            Signature (grid_size, grid_size), float32, values in [0, 255]

        Raises:
            ValueError: If plane is not 2D or is empty
        """
        if plane.ndim != 2 or plane.size == 0:
            raise ValueError(f"Plane must be a non-empty 2D array, got shape {plane.shape}")

        # INTER_AREA is exact block averaging when shrinking
        return cv2.resize(
            plane.astype(np.float32),
            (self.grid_size, self.grid_size),
            interpolation=cv2.INTER_AREA,
        )

    def compare(self, sig_a: np.ndarray, sig_b: np.ndarray) -> float:
        """
        Normalized mean absolute difference between two signatures.

        Args:
            sig_a: Signature from signature()
            sig_b: Signature from signature()

        Returns:
            Difference in [0, 1], 0 = identical
        """
        if sig_a.shape != sig_b.shape:
            raise ValueError(
                f"Signature shapes must match. Got: {sig_a.shape} vs {sig_b.shape}"
            )

        diff = float(np.mean(np.abs(sig_a - sig_b))) / 255.0
        return min(1.0, max(0.0, diff))

    def score(self, plane: np.ndarray, reference: np.ndarray) -> float:
        """Score a plane against a reference signature."""
        return self.compare(self.signature(plane), reference)

    def classify(self, diff: float) -> ReasonCode:
        """
        Map a difference score to its scanning outcome.

        Returns:
            STABLE, CONTENT_DRIFT or SCENE_CUT
        """
        if diff > self.cut_min:
            return ReasonCode.SCENE_CUT
        if diff >= self.same_max:
            return ReasonCode.CONTENT_DRIFT
        return ReasonCode.STABLE
