"""
Keyframe Stream Processor
=========================

Drives a KeyframePipeline over a whole frame stream.

This module provides the KeyframeStreamProcessor class which:
    - Resets the pipeline at the start of every run
    - Groups frames into fixed-size batches
    - Yields a progress event after each batch
    - Yields one completion event at the end of the run
    - Supports cooperative stop between batches

Design Rules:
    - Does NOT decode video; frames arrive already as RawFrame
    - One run at a time per processor
    - Stop takes effect after the current batch
"""

import logging
from typing import Iterable, Iterator, List, Optional

from keyframe_extractor.config import Settings
from keyframe_extractor.errors import InvalidUsageError
from keyframe_extractor.models.output import (
    ExtractionProgress,
    ExtractionRunResult,
    KeptKeyframe,
)
from keyframe_extractor.pipeline import KeyframePipeline
from keyframe_extractor.stream.frame import RawFrame
from keyframe_extractor.stream.intake import iter_batches


logger = logging.getLogger(__name__)


class KeyframeStreamProcessor:
    """
    Batch driver with progress reporting.

    Example:
        processor = KeyframeStreamProcessor.create(load_config())

        for event in processor.process(frames, total_frames=len(frames)):
            show_progress(event.progress)
            store(event.keyframes)

        processor.dispose()
    """

    def __init__(self, pipeline: KeyframePipeline, batch_size: int = 30) -> None:
        """
        Initialize processor.

        Args:
            pipeline: Pipeline owned by this processor
            batch_size: Frames per process_batch call

        Raises:
            ValueError: If batch_size < 1
        """
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")

        self.pipeline = pipeline
        self.batch_size = batch_size

        self._is_processing = False
        self._stop_requested = False

        logger.info(f"KeyframeStreamProcessor initialized: batch_size={batch_size}")

    @classmethod
    def create(cls, settings: Optional[Settings] = None) -> "KeyframeStreamProcessor":
        """
        Build a processor and its pipeline from settings.

        Args:
            settings: Configuration; defaults to Settings(). The batch size
                comes from settings.stream.batch_size.

        Returns:
            New KeyframeStreamProcessor
        """
        settings = settings or Settings()
        return cls(
            KeyframePipeline.create(settings),
            batch_size=settings.stream.batch_size,
        )

    @property
    def is_processing(self) -> bool:
        """Whether a run is active."""
        return self._is_processing

    def process(
        self,
        frames: Iterable[RawFrame],
        total_frames: Optional[int] = None,
    ) -> Iterator[ExtractionProgress]:
        """
        Run the pipeline over a frame stream.

        The run starts on first iteration. When total_frames is omitted
        and frames has a length, the length is used.

        Args:
            frames: Frames in arrival order
            total_frames: Expected frame count, used for progress only

        Yields:
            ExtractionProgress after each batch, then one final event
            with is_complete=True (skipped if stop() was called)

        Raises:
            InvalidUsageError: If a run is already active
            ValueError: If total_frames is negative
        """
        if self._is_processing:
            raise InvalidUsageError("A run is already active on this processor")
        if total_frames is None and hasattr(frames, "__len__"):
            total_frames = len(frames)
        if total_frames is not None and total_frames < 0:
            raise ValueError("total_frames must be >= 0")

        self._is_processing = True
        self._stop_requested = False
        try:
            self.pipeline.reset()
            consumed = 0

            for batch in iter_batches(frames, self.batch_size):
                keyframes = self.pipeline.process_batch(batch)
                consumed += len(batch)

                yield ExtractionProgress(
                    progress=self._progress(consumed, total_frames),
                    keyframes=keyframes,
                )

                if self._stop_requested:
                    logger.info(f"Run stopped after {consumed} frames")
                    return

            stats = self.pipeline.stats()
            logger.info(
                f"Run complete: processed={stats.processed_frames}, "
                f"extracted={stats.extracted_frames}"
            )
            yield ExtractionProgress(progress=1.0, keyframes=[], is_complete=True)
        finally:
            self._is_processing = False

    def process_all(
        self,
        frames: Iterable[RawFrame],
        total_frames: Optional[int] = None,
    ) -> ExtractionRunResult:
        """Run to completion and collect every keyframe."""
        keyframes: List[KeptKeyframe] = []
        for event in self.process(frames, total_frames):
            keyframes.extend(event.keyframes)
        return ExtractionRunResult(keyframes=keyframes, stats=self.pipeline.stats())

    def stop(self) -> None:
        """Stop the active run after its current batch."""
        if self._is_processing:
            self._stop_requested = True

    def reset(self) -> None:
        """Reset the pipeline between runs."""
        if self._is_processing:
            raise InvalidUsageError("reset() called while a run is active")
        self.pipeline.reset()

    def dispose(self) -> None:
        """Stop any run and dispose the pipeline."""
        self.stop()
        self.pipeline.dispose()

    @staticmethod
    def _progress(consumed: int, total_frames: Optional[int]) -> float:
        if not total_frames:
            return 0.0
        return min(consumed / total_frames, 1.0)
