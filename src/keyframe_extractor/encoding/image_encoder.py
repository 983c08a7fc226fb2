"""
Image Encoder
=============

Dedicated module for encoding accepted luma planes into compressed images.

Design Rules:
    - This is the ONLY place in the codebase that encodes images
    - Single-channel input, lossy output (JPEG or WebP)
    - Fails with EncodeError; never returns empty bytes
    - Optional top/bottom crop before encoding (status bars, captions)
"""

import logging
from dataclasses import dataclass

import cv2
import numpy as np

from keyframe_extractor.errors import EncodeError


logger = logging.getLogger(__name__)


_EXTENSIONS = {
    "jpeg": ".jpg",
    "webp": ".webp",
}

_QUALITY_FLAGS = {
    "jpeg": cv2.IMWRITE_JPEG_QUALITY,
    "webp": cv2.IMWRITE_WEBP_QUALITY,
}


@dataclass(frozen=True, slots=True)
class EncodedImage:
    """
    Compressed image ready to be packaged as a keyframe.

    Attributes:
        data: Encoded bytes
        width: Width of the encoded image
        height: Height of the encoded image
        format: Image format name
    """

    data: bytes
    width: int
    height: int
    format: str

    def __repr__(self) -> str:
        return (
            f"EncodedImage({self.format}, {self.width}x{self.height}, "
            f"{len(self.data)}B)"
        )


class KeyframeEncoder:
    """
    Lossy single-channel image encoder backed by OpenCV.

    Attributes:
        format: "jpeg" or "webp"
        quality: Encoder quality 1-100
        crop_top_ratio: Fraction of rows removed from the top
        crop_bottom_ratio: Fraction of rows removed from the bottom
    """

    def __init__(
        self,
        format: str = "jpeg",
        quality: int = 70,
        crop_top_ratio: float = 0.0,
        crop_bottom_ratio: float = 0.0,
    ) -> None:
        """
        Initialize encoder.

        Args:
            format: Output format ("jpeg" or "webp")
            quality: Encoder quality in [1, 100]
            crop_top_ratio: Top crop in [0, 1)
            crop_bottom_ratio: Bottom crop in [0, 1)

        Raises:
            ValueError: If parameters are invalid
        """
        if format not in _EXTENSIONS:
            raise ValueError(
                f"Unsupported format {format!r}, expected one of {sorted(_EXTENSIONS)}"
            )
        if not 1 <= quality <= 100:
            raise ValueError("quality must be in [1, 100]")
        if crop_top_ratio < 0 or crop_bottom_ratio < 0:
            raise ValueError("crop ratios must be non-negative")
        if crop_top_ratio + crop_bottom_ratio >= 1.0:
            raise ValueError("crop ratios must leave at least part of the frame")

        self.format = format
        self.quality = quality
        self.crop_top_ratio = crop_top_ratio
        self.crop_bottom_ratio = crop_bottom_ratio

        logger.info(
            f"KeyframeEncoder initialized: format={format}, quality={quality}, "
            f"crop=({crop_top_ratio}, {crop_bottom_ratio})"
        )

    def encode(self, plane: np.ndarray) -> EncodedImage:
        """
        Encode a luma plane.

        Args:
            plane: Luma plane (H, W), uint8

        Returns:
            EncodedImage with the compressed bytes and final dimensions

        Raises:
            EncodeError: If the plane is invalid or compression fails
        """
        if plane.ndim != 2 or plane.dtype != np.uint8:
            raise EncodeError(
                f"Expected 2D uint8 plane, got shape {plane.shape}, dtype {plane.dtype}"
            )

        cropped = self._crop(plane)
        if cropped.size == 0:
            raise EncodeError(f"Nothing left to encode after crop of {plane.shape}")

        try:
            ok, buffer = cv2.imencode(
                _EXTENSIONS[self.format],
                np.ascontiguousarray(cropped),
                [_QUALITY_FLAGS[self.format], self.quality],
            )
        except cv2.error as e:
            raise EncodeError(f"{self.format} encoding failed: {e}")

        if not ok or buffer is None or buffer.size == 0:
            raise EncodeError(f"{self.format} encoding returned no data")

        height, width = cropped.shape
        return EncodedImage(
            data=buffer.tobytes(),
            width=width,
            height=height,
            format=self.format,
        )

    def _crop(self, plane: np.ndarray) -> np.ndarray:
        height = plane.shape[0]
        top = int(height * self.crop_top_ratio)
        bottom = height - int(height * self.crop_bottom_ratio)
        return plane[top:bottom, :]
