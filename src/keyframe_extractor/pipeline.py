"""
Keyframe Pipeline
=================

Orchestrates intake, scoring, the state machine, deduplication and
encoding for one extraction run.

Per frame, in arrival order:
    1. Count it (processed_frames), whatever happens next
    2. Validate geometry and ordering (FrameIntake)
    3. Reduce to a grid signature (DiffFilter)
    4. Step the state machine; text confidence is computed lazily
    5. On CANDIDATE: dedup check → encode → commit → KeptKeyframe

Design Rules:
    - Synchronous: process_batch runs to completion, no background work
    - No internal locking; callers serialize calls on one instance
    - No single anomalous frame aborts a batch
    - Pixel buffers are borrowed for the duration of the call only
"""

import logging
from typing import List, Optional, Sequence

import numpy as np
from pydantic import ValidationError

from keyframe_extractor.agent.state_machine import KeyframeStateMachine, StateThresholds
from keyframe_extractor.config import Settings
from keyframe_extractor.dedup.deduplicator import Deduplicator
from keyframe_extractor.encoding.image_encoder import KeyframeEncoder
from keyframe_extractor.errors import (
    EncodeError,
    InvalidUsageError,
    MalformedFrameError,
    OutOfOrderFrameError,
)
from keyframe_extractor.models.output import KeptKeyframe
from keyframe_extractor.models.reason_codes import ReasonCode
from keyframe_extractor.models.state import ExtractionStats, PipelineState
from keyframe_extractor.signals.diff_filter import DiffFilter
from keyframe_extractor.signals.text_detector import GradientTextDetector, TextDetector
from keyframe_extractor.stream.frame import RawFrame
from keyframe_extractor.stream.intake import FrameIntake


logger = logging.getLogger(__name__)


class PipelineMetrics:
    """Diagnostic counters for one run."""

    __slots__ = (
        "dropped_malformed",
        "dropped_out_of_order",
        "duplicates_rejected",
        "encode_failures",
        "detector_failures",
        "scene_cuts",
    )

    def __init__(self) -> None:
        self.dropped_malformed: int = 0
        self.dropped_out_of_order: int = 0
        self.duplicates_rejected: int = 0
        self.encode_failures: int = 0
        self.detector_failures: int = 0
        self.scene_cuts: int = 0

    def to_dict(self) -> dict:
        """Export metrics as dict."""
        return {
            "dropped_malformed": self.dropped_malformed,
            "dropped_out_of_order": self.dropped_out_of_order,
            "duplicates_rejected": self.duplicates_rejected,
            "encode_failures": self.encode_failures,
            "detector_failures": self.detector_failures,
            "scene_cuts": self.scene_cuts,
        }


class KeyframePipeline:
    """
    Streaming keyframe extractor.

    One instance per run. Not safe for concurrent use; the in-flight
    guard only rejects re-entrant calls, it does not serialize threads.

    Example:
        pipeline = KeyframePipeline.create()

        for batch in batches:
            for keyframe in pipeline.process_batch(batch):
                save(keyframe.image)

        print(pipeline.stats())
        pipeline.dispose()
    """

    def __init__(
        self,
        diff_filter: DiffFilter,
        text_detector: TextDetector,
        state_machine: KeyframeStateMachine,
        deduplicator: Deduplicator,
        encoder: KeyframeEncoder,
    ) -> None:
        """
        Initialize pipeline from its stages.

        Prefer KeyframePipeline.create(); this constructor exists to
        inject custom stages (e.g. a different TextDetector).

        Args:
            diff_filter: Shared signature comparator
            text_detector: Text confidence estimator
            state_machine: Settle/cooldown state machine using diff_filter
            deduplicator: Emitted-keyframe history using diff_filter
            encoder: Keyframe image encoder
        """
        self._diff_filter = diff_filter
        self._text_detector = text_detector
        self._state_machine = state_machine
        self._deduplicator = deduplicator
        self._encoder = encoder
        self._intake = FrameIntake()

        self._processed: int = 0
        self._extracted: int = 0
        self._metrics = PipelineMetrics()

        self._in_flight = False
        self._disposed = False

    @classmethod
    def create(
        cls,
        settings: Optional[Settings] = None,
        text_detector: Optional[TextDetector] = None,
    ) -> "KeyframePipeline":
        """
        Build a fresh pipeline (IDLE, zero stats) from settings.

        Args:
            settings: Configuration; defaults to Settings()
            text_detector: Overrides the configured GradientTextDetector

        Returns:
            New KeyframePipeline
        """
        settings = settings or Settings()

        diff_filter = DiffFilter(
            grid_size=settings.diff.grid_size,
            same_max=settings.diff.same_max,
            cut_min=settings.diff.cut_min,
        )
        if text_detector is None:
            text_detector = GradientTextDetector(
                grid_size=settings.text.grid_size,
                edge_threshold=settings.text.edge_threshold,
                cell_density_min=settings.text.cell_density_min,
            )
        thresholds = StateThresholds(
            same_max=settings.diff.same_max,
            cut_min=settings.diff.cut_min,
            settle_frames=settings.state.settle_frames,
            cooldown_frames=settings.state.cooldown_frames,
            min_confidence=settings.text.min_confidence,
        )
        pipeline = cls(
            diff_filter=diff_filter,
            text_detector=text_detector,
            state_machine=KeyframeStateMachine(diff_filter, thresholds),
            deduplicator=Deduplicator(diff_filter, capacity=settings.dedup.capacity),
            encoder=KeyframeEncoder(
                format=settings.encoder.format,
                quality=settings.encoder.quality,
                crop_top_ratio=settings.encoder.crop_top_ratio,
                crop_bottom_ratio=settings.encoder.crop_bottom_ratio,
            ),
        )
        logger.info("KeyframePipeline created")
        return pipeline

    @property
    def state(self) -> PipelineState:
        """Current state machine state."""
        return self._state_machine.state

    @property
    def disposed(self) -> bool:
        """Whether dispose() has been called."""
        return self._disposed

    def process_batch(self, batch: Sequence[RawFrame]) -> List[KeptKeyframe]:
        """
        Consume a batch of frames in order.

        Args:
            batch: Frames in non-decreasing timestamp / increasing
                frame_number order; may be empty

        Returns:
            Keyframes emitted while consuming this batch, in order

        Raises:
            InvalidUsageError: If batch is None, the pipeline is disposed,
                or a batch is already in flight
        """
        self._check_usable("process_batch")
        if batch is None or isinstance(batch, (str, bytes)):
            raise InvalidUsageError(
                f"batch must be a sequence of RawFrame, got {type(batch).__name__}"
            )

        kept: List[KeptKeyframe] = []
        self._in_flight = True
        try:
            for frame in batch:
                self._processed += 1
                keyframe = self._consume(frame)
                if keyframe is not None:
                    kept.append(keyframe)
                    self._extracted += 1
        finally:
            self._in_flight = False

        if kept:
            logger.info(
                f"Batch emitted {len(kept)} keyframe(s): "
                f"{[k.frame_number for k in kept]} "
                f"(processed={self._processed}, extracted={self._extracted})"
            )
        return kept

    def stats(self) -> ExtractionStats:
        """Snapshot of run statistics."""
        return ExtractionStats(
            processed_frames=self._processed,
            extracted_frames=self._extracted,
        )

    def get_metrics(self) -> dict:
        """Get pipeline metrics for observability."""
        return {
            "state": self._state_machine.state.value,
            "processed_frames": self._processed,
            "extracted_frames": self._extracted,
            **self._metrics.to_dict(),
            "history_size": len(self._deduplicator),
        }

    def reset(self) -> None:
        """
        Clear all derived history and statistics.

        Reference, stability run, cooldown, dedup history, ordering cursor
        and counters are cleared together; nothing from before the reset
        is observable afterwards.

        Raises:
            InvalidUsageError: If disposed or a batch is in flight
        """
        self._check_usable("reset")

        self._state_machine.reset()
        self._deduplicator.clear()
        self._intake.reset()
        self._processed = 0
        self._extracted = 0
        self._metrics = PipelineMetrics()

        logger.info("KeyframePipeline reset")

    def dispose(self) -> None:
        """
        Release held buffers. Safe to call more than once.

        Raises:
            InvalidUsageError: If a batch is in flight
        """
        if self._disposed:
            logger.debug("KeyframePipeline already disposed")
            return
        if self._in_flight:
            raise InvalidUsageError("dispose() called while a batch is in flight")

        self._state_machine.reset()
        self._deduplicator.clear()
        self._intake.reset()
        self._disposed = True

        logger.info(
            f"KeyframePipeline disposed "
            f"(processed={self._processed}, extracted={self._extracted})"
        )

    def _check_usable(self, operation: str) -> None:
        if self._disposed:
            raise InvalidUsageError(f"{operation}() called on a disposed pipeline")
        if self._in_flight:
            raise InvalidUsageError(f"{operation}() called while a batch is in flight")

    def _consume(self, frame: RawFrame) -> Optional[KeptKeyframe]:
        """Run one frame through every stage."""
        try:
            plane = self._intake.admit(frame)
        except MalformedFrameError as e:
            self._metrics.dropped_malformed += 1
            logger.warning(f"{ReasonCode.MALFORMED_FRAME.value}: {e}")
            return None
        except OutOfOrderFrameError as e:
            self._metrics.dropped_out_of_order += 1
            logger.warning(f"{ReasonCode.OUT_OF_ORDER_FRAME.value}: {e}")
            return None

        signature = self._diff_filter.signature(plane)
        result = self._state_machine.step(
            signature,
            lambda: self._text_confidence(frame, plane),
        )

        if result.reason_code == ReasonCode.SCENE_CUT:
            self._metrics.scene_cuts += 1

        if not result.is_candidate:
            return None

        return self._resolve_candidate(frame, plane, signature, result.score.text_score)

    def _text_confidence(self, frame: RawFrame, plane: np.ndarray) -> float:
        """Detector confidence; a failing detector scores 0 (never promoted)."""
        try:
            return self._text_detector.detect(plane).confidence
        except InvalidUsageError:
            raise
        except Exception as e:
            self._metrics.detector_failures += 1
            logger.error(f"Text detection failed on frame {frame.frame_number}: {e}")
            return 0.0

    def _resolve_candidate(
        self,
        frame: RawFrame,
        plane: np.ndarray,
        signature: np.ndarray,
        confidence: float,
    ) -> Optional[KeptKeyframe]:
        decision = self._deduplicator.check(signature)
        if decision.is_duplicate:
            self._metrics.duplicates_rejected += 1
            self._state_machine.resolve_candidate(accepted=False)
            logger.debug(
                f"{ReasonCode.DUPLICATE_REJECTED.value}: frame {frame.frame_number} "
                f"(distance={decision.min_distance:.4f})"
            )
            return None

        try:
            encoded = self._encoder.encode(plane)
            keyframe = KeptKeyframe(
                frame_number=int(frame.frame_number),
                timestamp_ms=int(frame.timestamp_ms),
                confidence=confidence,
                width=encoded.width,
                height=encoded.height,
                image=encoded.data,
            )
        except (EncodeError, ValidationError) as e:
            self._metrics.encode_failures += 1
            self._state_machine.resolve_candidate(accepted=False)
            logger.error(
                f"{ReasonCode.ENCODE_FAILED.value}: frame {frame.frame_number}: {e}"
            )
            return None

        self._deduplicator.commit(signature)
        self._state_machine.resolve_candidate(accepted=True)

        logger.debug(
            f"{ReasonCode.EMITTED.value}: frame {frame.frame_number} "
            f"({decision.reason.value}, confidence={confidence:.3f})"
        )
        return keyframe


def create(settings: Optional[Settings] = None) -> KeyframePipeline:
    """Create a fresh pipeline. Shorthand for KeyframePipeline.create()."""
    return KeyframePipeline.create(settings)
