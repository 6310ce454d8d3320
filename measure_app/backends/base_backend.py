"""Base backend interface for detector implementations."""
from abc import ABC, abstractmethod
from typing import List, Dict, Any
import numpy as np
from ..core.entities import DetectedObject


class BaseBackend(ABC):
    """Abstract base class for object-detector backends.

    A backend turns a decoded BGR image into :class:`DetectedObject` records
    with ``(x, y, width, height)`` boxes in original image pixels.
    """

    def __init__(self, config: Dict[str, Any]):
        self.config = config
        self.is_loaded = False
        self.model_info: Dict[str, Any] = {}

    @abstractmethod
    def load_model(self, model_path_or_name: str) -> bool:
        """Load a model from path or model name."""
        pass

    @abstractmethod
    def predict(self, image: np.ndarray, **kwargs) -> List[DetectedObject]:
        """Run inference on an image."""
        pass

    @abstractmethod
    def get_model_info(self) -> Dict[str, Any]:
        """Get information about the loaded model."""
        pass

    def is_model_loaded(self) -> bool:
        """Check if a model is currently loaded."""
        return self.is_loaded

    def unload_model(self) -> None:
        """Unload the current model to free memory."""
        self.is_loaded = False
        self.model_info = {}
