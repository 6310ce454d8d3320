"""Domain entities (data-only structures) used across services."""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

BBox = Tuple[float, float, float, float]  # (x, y, width, height), top-left origin

CALIBRATION_SOURCES = ("none", "reference", "fallback")


@dataclass(frozen=True, slots=True)
class DetectedObject:
    """One raw detection as produced by the detector backend."""
    bbox: BBox
    class_name: str
    score: float

    @property
    def width(self) -> float:
        return self.bbox[2]

    @property
    def height(self) -> float:
        return self.bbox[3]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'bbox': [float(v) for v in self.bbox],
            'class': self.class_name,
            'score': float(self.score),
        }


@dataclass(frozen=True, slots=True)
class ReferenceObjectSpec:
    id: str
    name: str
    physical_width: float  # cm
    physical_height: float  # cm

    def __post_init__(self):
        if self.physical_width <= 0 or self.physical_height <= 0:
            raise ValueError(
                f"Reference '{self.id}' must have positive dimensions, "
                f"got {self.physical_width}x{self.physical_height}"
            )

    @property
    def longest_side(self) -> float:
        return max(self.physical_width, self.physical_height)


@dataclass(frozen=True, slots=True)
class CalibrationState:
    """Pixels-per-centimeter scale for the currently selected reference."""
    reference_object_id: str
    scale: float = 0.0  # pixels per cm
    is_calibrated: bool = False
    source: str = "none"  # none|reference|fallback

    def __post_init__(self):
        if self.is_calibrated and not self.scale > 0:
            raise ValueError(f"Calibrated state requires a positive scale, got {self.scale}")
        if self.source not in CALIBRATION_SOURCES:
            raise ValueError(f"Unknown calibration source: {self.source}")

    @classmethod
    def initial(cls, reference_object_id: str) -> "CalibrationState":
        return cls(reference_object_id=reference_object_id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'reference_object': self.reference_object_id,
            'pixels_per_cm': self.scale,
            'is_calibrated': self.is_calibrated,
            'source': self.source,
        }


@dataclass(frozen=True, slots=True)
class MeasurementResult:
    source_object: DetectedObject
    width_cm: float
    height_cm: float
    width_inches: float
    height_inches: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            'object': self.source_object.to_dict(),
            'width_cm': self.width_cm,
            'height_cm': self.height_cm,
            'width_inches': self.width_inches,
            'height_inches': self.height_inches,
        }


@dataclass(frozen=True, slots=True)
class CycleResult:
    """Snapshot published to readers after one detection-and-measurement cycle."""
    cycle_id: str
    state: CalibrationState
    measurements: List[MeasurementResult]
    used_fallback: bool
    detections: List[DetectedObject] = field(default_factory=list)
    latency_ms: int = 0
    image_size: Optional[Tuple[int, int]] = None  # (width, height)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'cycle_id': self.cycle_id,
            'calibration': self.state.to_dict(),
            'used_fallback': self.used_fallback,
            'image_size': list(self.image_size) if self.image_size else None,
            'latency_ms': self.latency_ms,
            'measurements': [m.to_dict() for m in self.measurements],
        }
