"""
Signals Module
==============

Per-frame signals consumed by the state machine.

This module provides:
    - DiffFilter: grid signatures and frame-to-reference difference
    - TextDetector: protocol for text presence estimation
    - GradientTextDetector: edge-density text heuristic
    - ConstantTextDetector: fixed-confidence stand-in

No inference library: every signal is a plain pixel scan.
"""

from keyframe_extractor.signals.diff_filter import DiffFilter
from keyframe_extractor.signals.text_detector import (
    ConstantTextDetector,
    GradientTextDetector,
    TextDetector,
)

__all__ = [
    "DiffFilter",
    "TextDetector",
    "GradientTextDetector",
    "ConstantTextDetector",
]
