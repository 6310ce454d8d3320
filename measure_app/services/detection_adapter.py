"""Adapter between the external detector and the measurement core.

Decodes images from the supported sources, runs the backend and hands the
core a plain list of :class:`DetectedObject` in detector order.
"""

import asyncio
import base64
import binascii
import logging
from pathlib import Path
from typing import List, Optional, Union

import cv2
import numpy as np

from ..backends.base_backend import BaseBackend
from ..core.entities import DetectedObject
from ..core.exceptions import DetectionError, ImageDecodeError, ModelError

logger = logging.getLogger(__name__)

ImageSource = Union[np.ndarray, bytes, bytearray, str, Path]


def _bytes_to_image(data: bytes) -> np.ndarray:
    arr = np.frombuffer(data, dtype=np.uint8)
    if arr.size == 0:
        raise ImageDecodeError("Empty image buffer")
    img = cv2.imdecode(arr, cv2.IMREAD_COLOR)
    if img is None:
        raise ImageDecodeError("Failed to decode image buffer")
    return img


def _data_url_to_bytes(data_url: str) -> bytes:
    header, sep, payload = data_url.partition(',')
    if not sep or ';base64' not in header:
        raise ImageDecodeError("Only base64 encoded data URLs are supported")
    try:
        return base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ImageDecodeError(f"Invalid base64 payload in data URL: {e}") from e


def decode_image(source: ImageSource) -> np.ndarray:
    """Decode an image into a BGR array.

    Args:
        source: decoded array, encoded bytes, ``data:image/...;base64,`` URL
            or a path to an image file

    Returns:
        Image as numpy array (BGR)

    Raises:
        ImageDecodeError: If the source cannot be read or decoded
    """
    if isinstance(source, np.ndarray):
        if source.ndim not in (2, 3) or source.size == 0:
            raise ImageDecodeError(f"Invalid image array with shape {source.shape}")
        return source
    if isinstance(source, (bytes, bytearray)):
        return _bytes_to_image(bytes(source))
    if isinstance(source, str) and source.startswith('data:'):
        return _bytes_to_image(_data_url_to_bytes(source))
    if isinstance(source, (str, Path)):
        path = Path(source)
        if not path.is_file():
            raise ImageDecodeError(f"Image not found: {path}")
        try:
            data = path.read_bytes()
        except OSError as e:
            raise ImageDecodeError(f"Failed to read image {path}: {e}") from e
        return _bytes_to_image(data)
    raise ImageDecodeError(f"Unsupported image source type: {type(source).__name__}")


class DetectionAdapter:
    """Runs a detector backend and normalises its output for the core."""

    def __init__(self, backend: BaseBackend, confidence_threshold: float = 0.5,
                 iou_threshold: float = 0.45):
        """Initialize the adapter.

        Args:
            backend: Loaded (or loadable) detector backend
            confidence_threshold: Detections must score strictly above this
            iou_threshold: IoU threshold for NMS, forwarded to the backend
        """
        self.backend = backend
        self.confidence_threshold = confidence_threshold
        self.iou_threshold = iou_threshold

    def update_thresholds(self, confidence: Optional[float] = None,
                          iou: Optional[float] = None):
        if confidence is not None:
            self.confidence_threshold = max(0.0, min(1.0, confidence))
        if iou is not None:
            self.iou_threshold = max(0.0, min(1.0, iou))

    def detect(self, image: np.ndarray) -> List[DetectedObject]:
        """Run detection on a decoded image.

        Raises:
            DetectionError: If no model is loaded or inference fails
        """
        if not self.backend.is_model_loaded():
            raise DetectionError("Model not loaded")

        try:
            raw = self.backend.predict(image, conf=self.confidence_threshold, iou=self.iou_threshold)
        except ModelError as e:
            raise DetectionError(f"Failed to detect objects: {e}") from e

        detections = []
        for det in raw:
            if det.score <= self.confidence_threshold:
                continue
            if not det.class_name or det.width < 0 or det.height < 0:
                logger.warning(f"Dropping malformed detection: {det}")
                continue
            detections.append(det)

        logger.info(f"{len(detections)} of {len(raw)} detections above confidence {self.confidence_threshold}")
        return detections

    async def decode_image_async(self, source: ImageSource) -> np.ndarray:
        return await asyncio.to_thread(decode_image, source)

    async def detect_async(self, image: np.ndarray) -> List[DetectedObject]:
        return await asyncio.to_thread(self.detect, image)
