"""
Agent Module
============

Deterministic keyframe state machine.

The state machine reasons over grid signatures and text confidence,
NOT over raw pixel buffers.
"""

from keyframe_extractor.agent.state_machine import (
    KeyframeStateMachine,
    StateThresholds,
    StepResult,
)

__all__ = [
    "KeyframeStateMachine",
    "StateThresholds",
    "StepResult",
]
