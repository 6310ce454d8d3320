"""
Object measurement from images using a reference object of known size.
"""

__version__ = "1.0.0"

from .config.settings import Config, load_config, save_config
from .core.entities import DetectedObject, ReferenceObjectSpec, CalibrationState, MeasurementResult, CycleResult

__all__ = [
    "Config", "load_config", "save_config",
    "DetectedObject", "ReferenceObjectSpec", "CalibrationState", "MeasurementResult", "CycleResult",
]
