"""
Reason Codes
============

Fixed set of machine-readable reason codes for per-frame outcomes.

Each consumed frame gets exactly ONE reason code that explains what the
pipeline did with it. Codes are used in debug logs and diagnostics.

Rules:
    - No free-text explanations
    - One clear cause per code
"""

from enum import Enum


class ReasonCode(str, Enum):
    """
    Machine-readable per-frame outcome codes.

    Attributes:
        REFERENCE_SET: First frame of a run became the reference
        STABLE: Frame matches the reference, run not yet long enough
        AWAITING_TEXT: Content settled but text confidence is too low
        CONTENT_DRIFT: Moderate change, reference re-anchored
        SCENE_CUT: Large change, reference replaced
        CANDIDATE_READY: Settled, legible frame offered for deduplication
        EMITTED: Candidate accepted and encoded
        DUPLICATE_REJECTED: Candidate too similar to recent keyframes
        ENCODE_FAILED: Candidate accepted but could not be encoded
        COOLDOWN: Frame absorbed after an emission
        COOLDOWN_COMPLETE: Last cooldown frame, became the new reference
        MALFORMED_FRAME: Dropped, buffer does not match geometry
        OUT_OF_ORDER_FRAME: Dropped, timestamp or sequence regressed
    """

    # Scanning outcomes
    REFERENCE_SET = "REFERENCE_SET"
    STABLE = "STABLE"
    AWAITING_TEXT = "AWAITING_TEXT"
    CONTENT_DRIFT = "CONTENT_DRIFT"
    SCENE_CUT = "SCENE_CUT"

    # Candidate outcomes
    CANDIDATE_READY = "CANDIDATE_READY"
    EMITTED = "EMITTED"
    DUPLICATE_REJECTED = "DUPLICATE_REJECTED"
    ENCODE_FAILED = "ENCODE_FAILED"

    # Cooldown outcomes
    COOLDOWN = "COOLDOWN"
    COOLDOWN_COMPLETE = "COOLDOWN_COMPLETE"

    # Intake outcomes
    MALFORMED_FRAME = "MALFORMED_FRAME"
    OUT_OF_ORDER_FRAME = "OUT_OF_ORDER_FRAME"
