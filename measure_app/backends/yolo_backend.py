"""YOLO backend implementation using Ultralytics."""
import logging
from pathlib import Path
from typing import List, Dict, Any, Tuple
import cv2
import numpy as np
from .base_backend import BaseBackend
from ..core.entities import DetectedObject
from ..core.exceptions import ModelError

logger = logging.getLogger(__name__)


class YoloBackend(BaseBackend):
    """YOLO backend using the Ultralytics implementation."""

    def __init__(self, config: Dict[str, Any]):
        super().__init__(config)
        self.model = None
        self.model_path = None

    def load_model(self, model_path_or_name: str) -> bool:
        """Load a YOLO model from a weights file or a hub model name."""
        try:
            from ultralytics import YOLO
        except ImportError as e:
            raise ModelError("Ultralytics not installed. Install with: pip install ultralytics") from e

        if Path(model_path_or_name).suffix == '.pt' and not Path(model_path_or_name).exists():
            logger.info(f"Weights {model_path_or_name} not found locally, Ultralytics will download them")

        try:
            self.model = YOLO(model_path_or_name)
        except Exception as e:
            self.is_loaded = False
            raise ModelError(f"Failed to load YOLO model {model_path_or_name}: {e}") from e

        self.model_path = model_path_or_name
        self.is_loaded = True
        self.model_info = {
            'backend': 'ultralytics',
            'model_type': 'YOLO',
            'model_path': model_path_or_name,
            'device': str(self.model.device) if hasattr(self.model, 'device') else 'unknown'
        }
        logger.info(f"Loaded YOLO model: {model_path_or_name}")
        return True

    def predict(self, image: np.ndarray, **kwargs) -> List[DetectedObject]:
        """Run YOLO inference; boxes are returned in original image coordinates.

        Images larger than ``max_size`` are downscaled for inference and the
        boxes are scaled back and clamped to the original image bounds.
        """
        if not self.is_loaded or self.model is None:
            raise ModelError("No model loaded")

        conf_threshold = kwargs.get('conf', self.config.get('detection_confidence_threshold', 0.5))
        iou_threshold = kwargs.get('iou', self.config.get('detection_iou_threshold', 0.45))
        max_size = kwargs.get('max_size', self.config.get('max_inference_size', 640))

        original_height, original_width = image.shape[:2]
        resized, (scale_x, scale_y) = _resize_for_inference(image, max_size)

        try:
            results = self.model(
                resized,
                conf=conf_threshold,
                iou=iou_threshold,
                max_det=100,
                verbose=False
            )
        except Exception as e:
            raise ModelError(f"YOLO prediction failed: {e}") from e

        detections: List[DetectedObject] = []
        for result in results:
            if result.boxes is None or len(result.boxes) == 0:
                continue
            xyxy = result.boxes.xyxy.cpu().numpy()
            conf = result.boxes.conf.cpu().numpy()
            cls = result.boxes.cls.cpu().numpy().astype(int)

            for (x1, y1, x2, y2), score, cls_id in zip(xyxy, conf, cls):
                x1 = min(max(float(x1) * scale_x, 0.0), original_width)
                y1 = min(max(float(y1) * scale_y, 0.0), original_height)
                x2 = min(max(float(x2) * scale_x, 0.0), original_width)
                y2 = min(max(float(y2) * scale_y, 0.0), original_height)
                detections.append(DetectedObject(
                    bbox=(x1, y1, x2 - x1, y2 - y1),
                    class_name=str(result.names[int(cls_id)]),
                    score=float(score),
                ))

        logger.debug(f"YOLO returned {len(detections)} detections on {original_width}x{original_height} image")
        return detections

    def get_model_info(self) -> Dict[str, Any]:
        """Get information about the loaded YOLO model."""
        if not self.is_loaded:
            return {'status': 'not_loaded'}

        info = self.model_info.copy()
        if self.model is not None and hasattr(self.model, 'names'):
            info['num_classes'] = len(self.model.names)
            info['class_names'] = self.model.names
        return info

    def unload_model(self) -> None:
        """Unload the current YOLO model."""
        self.model = None
        self.model_path = None
        super().unload_model()


def _resize_for_inference(image: np.ndarray, max_size: int) -> Tuple[np.ndarray, Tuple[float, float]]:
    """Downscale so the longest side is ``max_size``; returns the image and the factors back."""
    height, width = image.shape[:2]
    if height <= max_size and width <= max_size:
        return image, (1.0, 1.0)

    scale = max_size / max(height, width)
    new_width = max(1, int(width * scale))
    new_height = max(1, int(height * scale))
    resized = cv2.resize(image, (new_width, new_height), interpolation=cv2.INTER_LINEAR)
    return resized, (width / new_width, height / new_height)
