"""
Data Models
===========

Typed models for the keyframe extractor.

This module re-exports all data models for convenient access.

Models:
    State:
        - PipelineState: IDLE, SCANNING, CANDIDATE, COOLDOWN
        - ExtractionStats: processed / extracted counters

    Scores (internal):
        - FrameScore: diff and text scores for one frame
        - TextDetectionResult: text detector output
        - DedupDecision, DedupReason: deduplicator verdict

    Output:
        - KeptKeyframe: emitted keyframe
        - ExtractionProgress: per-batch progress event
        - ExtractionRunResult: whole-run result

    Codes:
        - ReasonCode: per-frame outcome
"""

from keyframe_extractor.models.state import ExtractionStats, PipelineState
from keyframe_extractor.models.scores import (
    DedupDecision,
    DedupReason,
    FrameScore,
    TextDetectionResult,
)
from keyframe_extractor.models.output import (
    ExtractionProgress,
    ExtractionRunResult,
    KeptKeyframe,
)
from keyframe_extractor.models.reason_codes import ReasonCode

__all__ = [
    # State
    "PipelineState",
    "ExtractionStats",
    # Scores
    "FrameScore",
    "TextDetectionResult",
    "DedupDecision",
    "DedupReason",
    # Output
    "KeptKeyframe",
    "ExtractionProgress",
    "ExtractionRunResult",
    # Codes
    "ReasonCode",
]
