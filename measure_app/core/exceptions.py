"""Custom exceptions for the application."""

class ApplicationError(Exception):
    """Base application error."""
    pass

class MeasurementError(ApplicationError):
    """Base exception for calibration and measurement errors."""
    pass

class UnknownReferenceError(MeasurementError):
    """Selected reference object is not in the catalog."""

    def __init__(self, reference_id: str):
        super().__init__(f"Unknown reference object: '{reference_id}'")
        self.reference_id = reference_id

class DegenerateReferenceError(MeasurementError):
    """Reference box or catalog entry has a zero/negative dimension."""
    pass

class DetectionError(ApplicationError):
    """Base exception for detection-related errors."""
    pass

class ImageDecodeError(DetectionError):
    """Image could not be decoded."""
    pass

class ModelError(ApplicationError):
    """Model loading/inference errors."""
    pass

class ConfigError(ApplicationError):
    """Configuration-related errors."""
    pass
