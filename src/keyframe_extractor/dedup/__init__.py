"""
Dedup Module
============

Bounded history of emitted keyframe fingerprints.
"""

from keyframe_extractor.dedup.deduplicator import Deduplicator

__all__ = [
    "Deduplicator",
]
