"""
Score Models
============

Transient per-frame scores passed between the signal stages,
the state machine and the deduplicator.

None of these leave the pipeline.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


@dataclass(frozen=True, slots=True)
class FrameScore:
    """
    Similarity and legibility scores for one frame.

    Attributes:
        diff_score: Normalized difference vs the current reference [0, 1]
        text_score: Text confidence [0, 1], None when not evaluated
    """

    diff_score: float
    text_score: Optional[float] = None

    def __repr__(self) -> str:
        text = "n/a" if self.text_score is None else f"{self.text_score:.3f}"
        return f"FrameScore(diff={self.diff_score:.4f}, text={text})"


@dataclass(frozen=True, slots=True)
class TextDetectionResult:
    """
    Output of a text detector for one frame.

    Attributes:
        confidence: Fraction of text-like cells [0, 1]
        text_cells: Number of cells classified as text-like
        total_cells: Number of cells in the grid
    """

    confidence: float
    text_cells: int
    total_cells: int

    def __post_init__(self) -> None:
        """Validate invariants."""
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError("confidence must be in [0, 1]")
        if self.text_cells < 0 or self.total_cells < 0:
            raise ValueError("cell counts must be non-negative")


class DedupReason(str, Enum):
    """Why the deduplicator accepted or rejected a candidate."""

    NEW_CONTENT = "NEW_CONTENT"          # history empty
    CONTENT_CHANGED = "CONTENT_CHANGED"  # differs from every stored keyframe
    TOO_SIMILAR = "TOO_SIMILAR"          # matches a stored keyframe


@dataclass(frozen=True, slots=True)
class DedupDecision:
    """
    Deduplication verdict for a candidate signature.

    Attributes:
        is_duplicate: True if the candidate must not be emitted
        reason: Why the decision was taken
        min_distance: Smallest difference to any stored signature [0, 1]
        nearest_index: History index of the closest signature (0 = oldest)
    """

    is_duplicate: bool
    reason: DedupReason
    min_distance: float
    nearest_index: Optional[int] = None
