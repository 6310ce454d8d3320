"""Services package: detector adapter, session orchestration and reporting."""

from .detection_adapter import DetectionAdapter, decode_image
from .measurement_session import MeasurementSession
from .report_service import format_cycle_report, export_cycle_json

__all__ = [
    "DetectionAdapter", "decode_image", "MeasurementSession",
    "format_cycle_report", "export_cycle_json",
]
