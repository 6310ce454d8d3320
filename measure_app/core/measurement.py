"""Conversion of pixel bounding boxes to physical dimensions."""
from __future__ import annotations
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Sequence
from .entities import CalibrationState, DetectedObject, MeasurementResult

CM_PER_INCH = 2.54


def round_half_away_from_zero(value: float, places: int = 1) -> float:
    """Round like a person would: 0.25 -> 0.3, -0.25 -> -0.3.

    The value goes through its shortest decimal repr so that e.g. 2.45
    rounds to 2.5 even though the binary float is slightly below it.
    """
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(repr(float(value))).quantize(quantum, rounding=ROUND_HALF_UP))


def measure_object(detection: DetectedObject, scale: float) -> MeasurementResult:
    width_cm = detection.width / scale
    height_cm = detection.height / scale
    return MeasurementResult(
        source_object=detection,
        width_cm=round_half_away_from_zero(width_cm),
        height_cm=round_half_away_from_zero(height_cm),
        width_inches=round_half_away_from_zero(width_cm / CM_PER_INCH),
        height_inches=round_half_away_from_zero(height_cm / CM_PER_INCH),
    )


def measure(detections: Sequence[DetectedObject], state: CalibrationState) -> List[MeasurementResult]:
    """Measure every detection, preserving input order.

    Without a calibrated scale there is nothing to measure and the result is empty.
    """
    if not state.is_calibrated:
        return []
    return [measure_object(d, state.scale) for d in detections]


def format_dimensions(result: MeasurementResult, use_metric: bool = True) -> str:
    if use_metric:
        return f"{result.width_cm} x {result.height_cm} cm"
    return f'{result.width_inches}" x {result.height_inches}"'


def format_label(result: MeasurementResult, use_metric: bool = True) -> str:
    """Overlay text for a measured object, e.g. 'cup W: 8.1cm x H: 9.5cm'."""
    if use_metric:
        width, height = f"{result.width_cm}cm", f"{result.height_cm}cm"
    else:
        width, height = f'{result.width_inches}"', f'{result.height_inches}"'
    return f"{result.source_object.class_name} W: {width} x H: {height}"
