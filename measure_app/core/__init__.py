"""Core domain entities and the calibration/measurement pipeline."""

from .entities import (
    BBox, DetectedObject, ReferenceObjectSpec, CalibrationState,
    MeasurementResult, CycleResult
)
from .exceptions import (
    ApplicationError, MeasurementError, UnknownReferenceError,
    DegenerateReferenceError, DetectionError, ImageDecodeError,
    ModelError, ConfigError
)
from .reference_catalog import ReferenceCatalog, REFERENCE_OBJECTS, default_catalog
from .calibration import calibrate
from .matching import ReferenceMatcher
from .calibration_manager import CalibrationManager, resolve_calibration, DEFAULT_PIXELS_PER_CM
from .measurement import measure, round_half_away_from_zero, format_dimensions, format_label

__all__ = [
    "BBox", "DetectedObject", "ReferenceObjectSpec", "CalibrationState",
    "MeasurementResult", "CycleResult",
    "ApplicationError", "MeasurementError", "UnknownReferenceError",
    "DegenerateReferenceError", "DetectionError", "ImageDecodeError",
    "ModelError", "ConfigError",
    "ReferenceCatalog", "REFERENCE_OBJECTS", "default_catalog",
    "calibrate", "ReferenceMatcher",
    "CalibrationManager", "resolve_calibration", "DEFAULT_PIXELS_PER_CM",
    "measure", "round_half_away_from_zero", "format_dimensions", "format_label",
]
