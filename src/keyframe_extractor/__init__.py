"""
Keyframe Extractor
==================

Streaming keyframe extraction over luma-only video frames.

This package consumes decoded frames in batches and emits a small set of
encoded keyframes: frames where displayed content (typically on-screen
text) has settled, deduplicated against recent emissions.

Components:
    - stream: RawFrame, geometry and ordering checks, batching
    - signals: grid diff filter and text presence heuristic
    - agent: deterministic settle/emit/cooldown state machine
    - dedup: bounded history of emitted keyframe signatures
    - encoding: JPEG/WebP encoding of kept frames
    - pipeline: KeyframePipeline orchestrating all of the above
    - processor: whole-stream driver with progress events

Example:
    import keyframe_extractor

    pipeline = keyframe_extractor.create()
    for batch in batches:
        for keyframe in pipeline.process_batch(batch):
            save(keyframe.image)
    pipeline.dispose()
"""

__version__ = "0.1.0"

from keyframe_extractor.config import Settings, load_config, setup_logging
from keyframe_extractor.errors import (
    EncodeError,
    InvalidUsageError,
    KeyframeExtractionError,
    MalformedFrameError,
    OutOfOrderFrameError,
)
from keyframe_extractor.models.output import (
    ExtractionProgress,
    ExtractionRunResult,
    KeptKeyframe,
)
from keyframe_extractor.models.state import ExtractionStats, PipelineState
from keyframe_extractor.pipeline import KeyframePipeline, create
from keyframe_extractor.processor import KeyframeStreamProcessor
from keyframe_extractor.stream.frame import RawFrame

__all__ = [
    "__version__",
    "create",
    "KeyframePipeline",
    "KeyframeStreamProcessor",
    "RawFrame",
    "KeptKeyframe",
    "ExtractionStats",
    "ExtractionProgress",
    "ExtractionRunResult",
    "PipelineState",
    "Settings",
    "load_config",
    "setup_logging",
    "KeyframeExtractionError",
    "MalformedFrameError",
    "OutOfOrderFrameError",
    "EncodeError",
    "InvalidUsageError",
]
