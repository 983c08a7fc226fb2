"""
Stream Module
=============

Frame intake for the extraction pipeline.

This module provides the ingestion layer:
    - RawFrame: Luma frame as delivered by the decoder
    - FrameIntake: Per-frame validation and ordering checks
    - iter_batches: Groups a frame stream into fixed-size batches

Example:
    from keyframe_extractor.stream import RawFrame, iter_batches

    for batch in iter_batches(frames, batch_size=30):
        keyframes = pipeline.process_batch(batch)
"""

from keyframe_extractor.stream.frame import LumaBuffer, RawFrame
from keyframe_extractor.stream.intake import FrameIntake, FrameIntakeMetrics, iter_batches


__all__ = [
    "LumaBuffer",
    "RawFrame",
    "FrameIntake",
    "FrameIntakeMetrics",
    "iter_batches",
]
