"""
Keyframe Deduplicator
=====================

History-aware rejection of candidates that repeat recently emitted content.

A long static shot can make the state machine settle again and again
(every cooldown ends in a fresh reference that immediately settles).
The deduplicator remembers the signatures of the last K emitted keyframes
and rejects any candidate that is within same_max of one of them.

Design Rules:
    - Bounded memory: FIFO of at most `capacity` signatures
    - Same grid representation as the DiffFilter
    - check() never mutates history; commit() is explicit
"""

import logging
from collections import deque
from typing import Deque, Optional

import numpy as np

from keyframe_extractor.models.scores import DedupDecision, DedupReason
from keyframe_extractor.signals.diff_filter import DiffFilter


logger = logging.getLogger(__name__)


class Deduplicator:
    """
    Bounded fingerprint history of emitted keyframes.

    Attributes:
        capacity: Maximum number of remembered keyframes (K)
        same_max: Candidates within this distance of history are duplicates

    Example:
        dedup = Deduplicator(diff_filter, capacity=8)

        decision = dedup.check(signature)
        if not decision.is_duplicate:
            ...  # encode
            dedup.commit(signature)
    """

    def __init__(
        self,
        diff_filter: DiffFilter,
        capacity: int = 8,
        same_max: Optional[float] = None,
    ) -> None:
        """
        Initialize deduplicator.

        Args:
            diff_filter: Comparator that produced the signatures
            capacity: History size (>= 1)
            same_max: Duplicate threshold; defaults to diff_filter.same_max
        """
        if capacity < 1:
            raise ValueError("capacity must be >= 1")

        self.diff_filter = diff_filter
        self.capacity = capacity
        self.same_max = diff_filter.same_max if same_max is None else same_max
        self._history: Deque[np.ndarray] = deque(maxlen=capacity)

        logger.info(
            f"Deduplicator initialized: capacity={capacity}, same_max={self.same_max}"
        )

    def __len__(self) -> int:
        return len(self._history)

    def check(self, signature: np.ndarray) -> DedupDecision:
        """
        Compare a candidate against every stored signature.

        Args:
            signature: Candidate signature

        Returns:
            DedupDecision; duplicate when the minimum distance <= same_max
        """
        if not self._history:
            return DedupDecision(
                is_duplicate=False,
                reason=DedupReason.NEW_CONTENT,
                min_distance=1.0,
            )

        distances = [self.diff_filter.compare(signature, stored) for stored in self._history]
        nearest = int(np.argmin(distances))
        min_distance = distances[nearest]

        if min_distance <= self.same_max:
            return DedupDecision(
                is_duplicate=True,
                reason=DedupReason.TOO_SIMILAR,
                min_distance=min_distance,
                nearest_index=nearest,
            )

        return DedupDecision(
            is_duplicate=False,
            reason=DedupReason.CONTENT_CHANGED,
            min_distance=min_distance,
            nearest_index=nearest,
        )

    def commit(self, signature: np.ndarray) -> None:
        """Store an emitted keyframe's signature, evicting the oldest at capacity."""
        if len(self._history) == self.capacity:
            logger.debug(f"Dedup history full ({self.capacity}), evicting oldest")
        self._history.append(signature)

    def accept(self, signature: np.ndarray) -> DedupDecision:
        """
        Check a candidate and store it if it is new.

        Returns:
            The DedupDecision taken
        """
        decision = self.check(signature)
        if not decision.is_duplicate:
            self.commit(signature)
        return decision

    def clear(self) -> int:
        """
        Forget all stored signatures.

        Returns:
            Number of signatures cleared.
        """
        cleared = len(self._history)
        self._history.clear()
        return cleared
