"""
Keyframe State Machine
======================

Deterministic settle/emit/cooldown cycle over per-frame scores.

This module decides when displayed content has "settled" into a keyframe
candidate:
    IDLE → SCANNING → CANDIDATE → COOLDOWN → SCANNING

Key Features:
    - Frame-count based stability (a run of low-diff frames)
    - Reference re-anchoring on drift and scene cuts
    - Text confidence gating before promotion
    - Cooldown after each emission to absorb residual noise
    - Machine-readable reason codes

Transition Rules:
    IDLE:      first frame → reference, run = 1, SCANNING
    SCANNING:  diff > cut_min              → SCENE_CUT, re-anchor
               same_max <= diff <= cut_min → CONTENT_DRIFT, re-anchor
               diff < same_max             → run += 1; when run >= settle_frames
                                             and text >= min_confidence → CANDIDATE
    CANDIDATE: resolve_candidate(True)  → COOLDOWN
               resolve_candidate(False) → candidate is the new reference, SCANNING
    COOLDOWN:  absorb cooldown_frames frames; the last one becomes the
               reference, SCANNING

The run length counts the reference itself, so settle_frames=2 means
"the reference plus one matching frame".
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional

import numpy as np

from keyframe_extractor.errors import InvalidUsageError
from keyframe_extractor.models.reason_codes import ReasonCode
from keyframe_extractor.models.scores import FrameScore
from keyframe_extractor.models.state import PipelineState
from keyframe_extractor.signals.diff_filter import DiffFilter


logger = logging.getLogger(__name__)


@dataclass
class StateThresholds:
    """
    Thresholds for state transitions.

    Loaded from configuration file.
    """

    # Diff thresholds
    same_max: float = 0.02
    cut_min: float = 0.2

    # Stability
    settle_frames: int = 2
    cooldown_frames: int = 3

    # Text gating
    min_confidence: float = 0.05


@dataclass
class StepResult:
    """Result of feeding one frame to the state machine."""

    state: PipelineState
    reason_code: ReasonCode
    score: Optional[FrameScore] = None

    @property
    def is_candidate(self) -> bool:
        """True when the frame must be offered to the deduplicator."""
        return self.state == PipelineState.CANDIDATE

    def __repr__(self) -> str:
        return f"StepResult({self.state.value}, {self.reason_code.value}, {self.score!r})"


class KeyframeStateMachine:
    """
    Settle detector with cooldown.

    Holds only signatures (never pixel buffers): the reference, and the
    pending candidate while one is being resolved.

    Attributes:
        thresholds: Configured threshold values
        diff_filter: Shared signature comparator
    """

    def __init__(self, diff_filter: DiffFilter, thresholds: StateThresholds) -> None:
        """
        Initialize state machine.

        Args:
            diff_filter: Comparator producing the signatures fed to step()
            thresholds: Configured threshold values

        Raises:
            ValueError: If thresholds are inconsistent
        """
        if thresholds.settle_frames < 1:
            raise ValueError("settle_frames must be >= 1")
        if thresholds.cooldown_frames < 0:
            raise ValueError("cooldown_frames must be >= 0")
        if not 0.0 <= thresholds.min_confidence <= 1.0:
            raise ValueError("min_confidence must be in [0, 1]")

        self.diff_filter = diff_filter
        self.thresholds = thresholds

        self._state = PipelineState.IDLE
        self._reference: Optional[np.ndarray] = None
        self._candidate: Optional[np.ndarray] = None
        self._stable_count: int = 0
        self._cooldown_remaining: int = 0

        logger.info(
            f"KeyframeStateMachine initialized: "
            f"settle={thresholds.settle_frames} frames, "
            f"cooldown={thresholds.cooldown_frames} frames, "
            f"min_confidence={thresholds.min_confidence}"
        )

    @property
    def state(self) -> PipelineState:
        """Current state."""
        return self._state

    @property
    def stable_count(self) -> int:
        """Length of the current run of matching frames, reference included."""
        return self._stable_count

    @property
    def cooldown_remaining(self) -> int:
        """Frames still to absorb before scanning resumes."""
        return self._cooldown_remaining

    @property
    def reference(self) -> Optional[np.ndarray]:
        """Signature of the current reference frame."""
        return self._reference

    def step(
        self,
        signature: np.ndarray,
        text_confidence: Callable[[], float],
    ) -> StepResult:
        """
        Feed one admitted frame.

        Args:
            signature: Frame signature from the shared DiffFilter
            text_confidence: Returns the frame's text confidence; only
                called once the frame has settled

        Returns:
            StepResult with the new state and reason code

        Raises:
            InvalidUsageError: If a candidate is still unresolved
        """
        if self._state == PipelineState.CANDIDATE:
            raise InvalidUsageError(
                "resolve_candidate() must be called before the next step()"
            )

        if self._state == PipelineState.IDLE:
            self._anchor(signature)
            return StepResult(PipelineState.SCANNING, ReasonCode.REFERENCE_SET)

        if self._state == PipelineState.COOLDOWN:
            return self._absorb(signature)

        return self._scan(signature, text_confidence)

    def resolve_candidate(self, accepted: bool) -> PipelineState:
        """
        Apply the deduplication verdict for the pending candidate.

        Args:
            accepted: True if the candidate was emitted

        Returns:
            The new state

        Raises:
            InvalidUsageError: If there is no pending candidate
        """
        if self._state != PipelineState.CANDIDATE or self._candidate is None:
            raise InvalidUsageError("No candidate pending")

        candidate = self._candidate
        self._candidate = None

        if accepted and self.thresholds.cooldown_frames > 0:
            self._state = PipelineState.COOLDOWN
            self._cooldown_remaining = self.thresholds.cooldown_frames
            self._stable_count = 0
        else:
            # Rejected candidates (and zero-length cooldowns) re-anchor on the candidate
            self._anchor(candidate)

        return self._state

    def reset(self) -> None:
        """Return to IDLE and drop every held signature."""
        self._state = PipelineState.IDLE
        self._reference = None
        self._candidate = None
        self._stable_count = 0
        self._cooldown_remaining = 0

    def _anchor(self, signature: np.ndarray) -> None:
        self._reference = signature
        self._stable_count = 1
        self._cooldown_remaining = 0
        self._state = PipelineState.SCANNING

    def _absorb(self, signature: np.ndarray) -> StepResult:
        self._cooldown_remaining -= 1
        if self._cooldown_remaining > 0:
            return StepResult(PipelineState.COOLDOWN, ReasonCode.COOLDOWN)

        self._anchor(signature)
        return StepResult(PipelineState.SCANNING, ReasonCode.COOLDOWN_COMPLETE)

    def _scan(
        self,
        signature: np.ndarray,
        text_confidence: Callable[[], float],
    ) -> StepResult:
        diff = self.diff_filter.compare(signature, self._reference)
        outcome = self.diff_filter.classify(diff)

        if outcome != ReasonCode.STABLE:
            self._anchor(signature)
            logger.debug(f"{outcome.value}: diff={diff:.4f}, reference replaced")
            return StepResult(PipelineState.SCANNING, outcome, FrameScore(diff))

        self._stable_count += 1
        if self._stable_count < self.thresholds.settle_frames:
            return StepResult(PipelineState.SCANNING, ReasonCode.STABLE, FrameScore(diff))

        text = text_confidence()
        score = FrameScore(diff_score=diff, text_score=text)

        if text < self.thresholds.min_confidence:
            return StepResult(PipelineState.SCANNING, ReasonCode.AWAITING_TEXT, score)

        self._state = PipelineState.CANDIDATE
        self._candidate = signature
        logger.debug(
            f"Content settled after {self._stable_count} frames "
            f"(diff={diff:.4f}, text={text:.3f})"
        )
        return StepResult(PipelineState.CANDIDATE, ReasonCode.CANDIDATE_READY, score)
