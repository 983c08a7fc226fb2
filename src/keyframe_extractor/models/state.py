"""
Pipeline State Models
=====================

Lifecycle state and run statistics of the extraction pipeline.

Core Concepts:
    - PipelineState: Discrete state machine states
    - ExtractionStats: Run-level counters exposed to callers

Transitions:
    IDLE → SCANNING:       first admitted frame becomes the reference
    SCANNING → CANDIDATE:  content settled and text confidence is high enough
    CANDIDATE → COOLDOWN:  candidate emitted
    CANDIDATE → SCANNING:  candidate rejected, it becomes the reference
    COOLDOWN → SCANNING:   after the configured number of absorbed frames
    any → IDLE:            reset()
"""

from dataclasses import dataclass
from enum import Enum


class PipelineState(str, Enum):
    """
    Discrete states of the keyframe state machine.

    Attributes:
        IDLE: No reference frame yet
        SCANNING: Comparing frames against the reference, counting stability
        CANDIDATE: A settled frame awaits the deduplication verdict
        COOLDOWN: Absorbing frames right after an emission
    """

    IDLE = "IDLE"
    SCANNING = "SCANNING"
    CANDIDATE = "CANDIDATE"
    COOLDOWN = "COOLDOWN"


@dataclass(frozen=True, slots=True)
class ExtractionStats:
    """
    Snapshot of run-level counters.

    Both counters are monotonically non-decreasing for the lifetime of a
    run and are zeroed by reset(). extracted_frames <= processed_frames.

    Attributes:
        processed_frames: Frames consumed, including dropped ones
        extracted_frames: Keyframes emitted
    """

    processed_frames: int = 0
    extracted_frames: int = 0

    def to_dict(self) -> dict:
        """Export as dictionary for logging/serialization."""
        return {
            "processed_frames": self.processed_frames,
            "extracted_frames": self.extracted_frames,
        }
