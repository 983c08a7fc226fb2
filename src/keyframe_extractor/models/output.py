"""
Extraction Output Models
========================

This module defines the output contract of the keyframe extractor.

Output Contract (per keyframe):
    {
        "frame_number": 12,
        "timestamp_ms": 6000,
        "confidence": 0.42,
        "width": 320,
        "height": 240,
        "image": b"\\xff\\xd8..."   # encoded, lossy, single channel
    }

Design Rules:
    - Keyframes are immutable once created
    - Ownership of the encoded bytes transfers to the caller
    - Keyframes are emitted in strictly increasing frame_number order
"""

from dataclasses import dataclass, field
from typing import List

from pydantic import BaseModel, ConfigDict, Field

from keyframe_extractor.models.state import ExtractionStats


class KeptKeyframe(BaseModel):
    """
    A frame selected as new, stable, legible content.

    Attributes:
        frame_number: Decoder frame counter of the source frame
        timestamp_ms: Presentation time of the source frame
        confidence: Text confidence of the source frame [0, 1]
        width: Width of the encoded image
        height: Height of the encoded image
        image: Encoded image bytes
    """

    model_config = ConfigDict(frozen=True)

    frame_number: int = Field(
        ...,
        ge=0,
        description="Decoder frame counter of the source frame",
    )

    timestamp_ms: int = Field(
        ...,
        ge=0,
        description="Presentation time of the source frame in milliseconds",
    )

    confidence: float = Field(
        ...,
        ge=0.0,
        le=1.0,
        description="Text confidence of the source frame",
    )

    width: int = Field(..., gt=0, description="Encoded image width")
    height: int = Field(..., gt=0, description="Encoded image height")

    image: bytes = Field(..., repr=False, description="Encoded image bytes")

    def __repr__(self) -> str:
        """Compact repr that doesn't dump the image."""
        return (
            f"KeptKeyframe(frame_number={self.frame_number}, "
            f"timestamp_ms={self.timestamp_ms}, "
            f"confidence={self.confidence:.3f}, "
            f"size={self.width}x{self.height}, "
            f"image={len(self.image)}B)"
        )

    def to_dict(self) -> dict:
        """Export a JSON-safe summary (image length instead of bytes)."""
        return {
            "frame_number": self.frame_number,
            "timestamp_ms": self.timestamp_ms,
            "confidence": round(self.confidence, 4),
            "width": self.width,
            "height": self.height,
            "image_bytes": len(self.image),
        }


@dataclass(frozen=True, slots=True)
class ExtractionProgress:
    """
    Progress event emitted by the stream processor after each batch.

    Attributes:
        progress: Fraction of the stream consumed [0, 1]
        keyframes: Keyframes produced by this batch
        is_complete: True only for the final event of a run
    """

    progress: float
    keyframes: List[KeptKeyframe] = field(default_factory=list)
    is_complete: bool = False


@dataclass(frozen=True, slots=True)
class ExtractionRunResult:
    """
    Result of a complete extraction run.

    Attributes:
        keyframes: Every keyframe emitted during the run, in order
        stats: Final run statistics
    """

    keyframes: List[KeptKeyframe]
    stats: ExtractionStats
