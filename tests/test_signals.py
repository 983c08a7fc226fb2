"""
Signal Tests
============

Grid diff filter and text presence heuristics.
"""

import numpy as np
import pytest

from keyframe_extractor.models.reason_codes import ReasonCode
from keyframe_extractor.signals import (
    ConstantTextDetector,
    DiffFilter,
    GradientTextDetector,
)


class TestDiffFilter:
    """Tests for signatures and difference scores."""

    def test_signature_shape(self, step_1_plane):
        """Signatures are grid_size x grid_size float32."""
        sig = DiffFilter(grid_size=8).signature(step_1_plane)

        assert sig.shape == (8, 8)
        assert sig.dtype == np.float32

    def test_identical_planes_score_zero(self, step_1_plane):
        """Byte-identical planes have zero difference."""
        diff_filter = DiffFilter()
        ref = diff_filter.signature(step_1_plane)

        assert diff_filter.score(step_1_plane.copy(), ref) == 0.0

    def test_black_white_score_one(self, black_plane, white_plane):
        """Maximal luma change scores 1."""
        diff_filter = DiffFilter()

        diff = diff_filter.compare(
            diff_filter.signature(black_plane),
            diff_filter.signature(white_plane),
        )

        assert diff == pytest.approx(1.0)

    def test_slide_change_is_scene_cut(self, step_1_plane, step_2_plane):
        """Switching slides exceeds cut_min."""
        diff_filter = DiffFilter()
        diff = diff_filter.score(step_2_plane, diff_filter.signature(step_1_plane))

        assert diff > diff_filter.cut_min
        assert diff_filter.classify(diff) == ReasonCode.SCENE_CUT

    def test_small_noise_is_stable(self, step_1_plane):
        """Low-amplitude sensor noise stays below same_max."""
        rng = np.random.default_rng(7)
        noise = rng.integers(-2, 3, size=step_1_plane.shape)
        noisy = np.clip(step_1_plane.astype(np.int16) + noise, 0, 255).astype(np.uint8)

        diff_filter = DiffFilter()
        diff = diff_filter.score(noisy, diff_filter.signature(step_1_plane))

        assert diff_filter.classify(diff) == ReasonCode.STABLE

    def test_classify_bands(self):
        """Diff values map to STABLE, CONTENT_DRIFT and SCENE_CUT."""
        diff_filter = DiffFilter(same_max=0.02, cut_min=0.2)

        assert diff_filter.classify(0.0) == ReasonCode.STABLE
        assert diff_filter.classify(0.02) == ReasonCode.CONTENT_DRIFT
        assert diff_filter.classify(0.2) == ReasonCode.CONTENT_DRIFT
        assert diff_filter.classify(0.21) == ReasonCode.SCENE_CUT

    def test_shape_mismatch(self):
        """Signatures from different grids cannot be compared."""
        with pytest.raises(ValueError):
            DiffFilter().compare(np.zeros((8, 8)), np.zeros((16, 16)))

    def test_tiny_plane(self):
        """Planes smaller than the grid still produce a signature."""
        sig = DiffFilter(grid_size=16).signature(np.full((1, 1), 128, dtype=np.uint8))

        assert sig.shape == (16, 16)

    @pytest.mark.parametrize("same_max,cut_min", [(0.2, 0.2), (0.3, 0.1), (-0.1, 0.2), (0.1, 1.5)])
    def test_invalid_thresholds(self, same_max, cut_min):
        """Threshold ordering is enforced."""
        with pytest.raises(ValueError):
            DiffFilter(same_max=same_max, cut_min=cut_min)


class TestGradientTextDetector:
    """Tests for edge-density text detection."""

    def test_rendered_text_detected(self, step_1_plane):
        """Rendered text lines clear the default confidence floor."""
        result = GradientTextDetector().detect(step_1_plane)

        assert result.confidence >= 0.05
        assert result.total_cells == 256
        assert 0 < result.text_cells < result.total_cells

    def test_inverted_text_detected(self, step_2_plane):
        """Dark text on a light background is detected too."""
        assert GradientTextDetector().detect(step_2_plane).confidence >= 0.05

    def test_uniform_plane_scores_zero(self, black_plane, white_plane):
        """Flat planes have no edges."""
        detector = GradientTextDetector()

        assert detector.detect(black_plane).confidence == 0.0
        assert detector.detect(white_plane).confidence == 0.0

    def test_single_row_scores_zero(self):
        """Planes with fewer than two rows cannot hold text."""
        result = GradientTextDetector().detect(np.zeros((1, 64), dtype=np.uint8))

        assert result.confidence == 0.0
        assert result.total_cells == 0

    def test_small_plane_caps_grid(self):
        """The grid never exceeds the edge mask size."""
        plane = np.zeros((5, 5), dtype=np.uint8)
        plane[::2, :] = 255

        result = GradientTextDetector(grid_size=16).detect(plane)

        assert result.total_cells == 16

    def test_density_must_exceed_minimum(self):
        """A cell exactly at cell_density_min is not text-like."""
        # Edge mask is 2x2 with its bottom row set: density 0.5
        plane = np.zeros((3, 3), dtype=np.uint8)
        plane[2, :] = 255

        at_threshold = GradientTextDetector(grid_size=1, cell_density_min=0.5)
        below_threshold = GradientTextDetector(grid_size=1, cell_density_min=0.4)

        assert at_threshold.detect(plane).text_cells == 0
        assert below_threshold.detect(plane).text_cells == 1

    def test_invalid_parameters(self):
        """Out-of-range parameters are rejected."""
        with pytest.raises(ValueError):
            GradientTextDetector(grid_size=0)
        with pytest.raises(ValueError):
            GradientTextDetector(cell_density_min=0)


class TestConstantTextDetector:
    """Tests for the fixed-confidence detector."""

    def test_returns_configured_confidence(self, black_plane):
        """Every frame gets the same confidence."""
        detector = ConstantTextDetector(0.4)

        assert detector.detect(black_plane).confidence == 0.4
        assert detector.calls == 1

    def test_rejects_out_of_range(self):
        """Confidence must be a probability."""
        with pytest.raises(ValueError):
            ConstantTextDetector(1.5)
