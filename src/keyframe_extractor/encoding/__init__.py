"""
Encoding Module
===============

Compression of accepted keyframes.
"""

from keyframe_extractor.encoding.image_encoder import EncodedImage, KeyframeEncoder

__all__ = [
    "EncodedImage",
    "KeyframeEncoder",
]
