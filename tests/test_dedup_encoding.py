"""
Deduplication and Encoding Tests
================================

Bounded keyframe history and image encoding.
"""

import cv2
import numpy as np
import pytest

from keyframe_extractor.dedup import Deduplicator
from keyframe_extractor.encoding import KeyframeEncoder
from keyframe_extractor.errors import EncodeError
from keyframe_extractor.models.scores import DedupReason
from keyframe_extractor.signals import DiffFilter


GRID = 4


def _sig(level):
    return np.full((GRID, GRID), float(level), dtype=np.float32)


@pytest.fixture
def dedup():
    return Deduplicator(DiffFilter(grid_size=GRID), capacity=3)


class TestDeduplicator:
    """Tests for the keyframe history."""

    def test_empty_history_is_new(self, dedup):
        """Everything is new before the first commit."""
        decision = dedup.check(_sig(0))

        assert not decision.is_duplicate
        assert decision.reason == DedupReason.NEW_CONTENT
        assert decision.nearest_index is None

    def test_identical_is_duplicate(self, dedup):
        """A stored signature matches itself."""
        dedup.commit(_sig(100))

        decision = dedup.check(_sig(100))

        assert decision.is_duplicate
        assert decision.reason == DedupReason.TOO_SIMILAR
        assert decision.min_distance == 0.0

    def test_matches_any_stored_entry(self, dedup):
        """The nearest stored signature decides."""
        for level in (0, 100, 200):
            dedup.commit(_sig(level))

        decision = dedup.check(_sig(100))

        assert decision.is_duplicate
        assert decision.nearest_index == 1

    def test_different_content_accepted(self, dedup):
        """Distinct content is reported as changed."""
        dedup.commit(_sig(0))

        decision = dedup.check(_sig(200))

        assert not decision.is_duplicate
        assert decision.reason == DedupReason.CONTENT_CHANGED

    def test_check_does_not_store(self, dedup):
        """check() never mutates history."""
        dedup.check(_sig(0))

        assert len(dedup) == 0

    def test_capacity_evicts_oldest(self, dedup):
        """Only the last `capacity` keyframes are remembered."""
        for level in (0, 60, 120, 180):
            dedup.commit(_sig(level))

        assert len(dedup) == 3
        assert not dedup.check(_sig(0)).is_duplicate
        assert dedup.check(_sig(180)).is_duplicate

    def test_accept_commits_only_new(self, dedup):
        """accept() stores new content and skips duplicates."""
        assert not dedup.accept(_sig(10)).is_duplicate
        assert dedup.accept(_sig(10)).is_duplicate
        assert len(dedup) == 1

    def test_clear(self, dedup):
        """clear() empties history and reports how much was dropped."""
        dedup.commit(_sig(0))
        dedup.commit(_sig(100))

        assert dedup.clear() == 2
        assert len(dedup) == 0

    def test_invalid_capacity(self):
        """Capacity must be positive."""
        with pytest.raises(ValueError):
            Deduplicator(DiffFilter(), capacity=0)


class TestKeyframeEncoder:
    """Tests for JPEG/WebP encoding."""

    def test_jpeg_roundtrip_dimensions(self, step_1_plane):
        """JPEG output decodes to the source dimensions."""
        encoded = KeyframeEncoder().encode(step_1_plane)

        assert encoded.format == "jpeg"
        assert encoded.data[:2] == b"\xff\xd8"
        decoded = cv2.imdecode(np.frombuffer(encoded.data, np.uint8), cv2.IMREAD_GRAYSCALE)
        assert decoded.shape == step_1_plane.shape
        assert (encoded.width, encoded.height) == (320, 240)

    def test_webp(self, step_1_plane):
        """WebP output carries a RIFF header."""
        encoded = KeyframeEncoder(format="webp", quality=60).encode(step_1_plane)

        assert encoded.data[:4] == b"RIFF"

    def test_quality_affects_size(self, step_1_plane):
        """Lower quality yields smaller output."""
        low = KeyframeEncoder(quality=10).encode(step_1_plane)
        high = KeyframeEncoder(quality=95).encode(step_1_plane)

        assert len(low.data) < len(high.data)

    def test_crop(self, step_1_plane):
        """Top/bottom crop reduces the encoded height."""
        encoded = KeyframeEncoder(crop_top_ratio=0.1, crop_bottom_ratio=0.2).encode(step_1_plane)

        assert encoded.height == 240 - 24 - 48
        assert encoded.width == 320

    def test_rejects_non_uint8(self):
        """Only uint8 planes are encodable."""
        with pytest.raises(EncodeError):
            KeyframeEncoder().encode(np.zeros((8, 8), dtype=np.float32))

    def test_rejects_non_2d(self):
        """Only single-channel planes are encodable."""
        with pytest.raises(EncodeError):
            KeyframeEncoder().encode(np.zeros((8, 8, 3), dtype=np.uint8))

    def test_invalid_configuration(self):
        """Unknown formats and bad crops are rejected up front."""
        with pytest.raises(ValueError):
            KeyframeEncoder(format="png")
        with pytest.raises(ValueError):
            KeyframeEncoder(quality=0)
        with pytest.raises(ValueError):
            KeyframeEncoder(crop_top_ratio=0.5, crop_bottom_ratio=0.5)
