"""Default configuration values."""

from typing import Any, Dict

from ..core.reference_catalog import DEFAULT_REFERENCE

DEFAULT_CONFIG: Dict[str, Any] = {
    # Calibration settings
    "reference_object": DEFAULT_REFERENCE,
    "default_pixels_per_cm": 37.8,  # 96 DPI standard
    "match_mode": "substring",  # exact|substring
    "reference_synonyms": {},  # e.g. {"credit_card": ["card", "wallet"]}

    # Detection settings
    "preferred_model": "yolo12n.pt",
    "detection_confidence_threshold": 0.5,  # 0.0 to 1.0, strictly greater passes
    "detection_iou_threshold": 0.45,  # 0.0 to 1.0
    "max_inference_size": 640,

    # Display and export
    "use_metric": True,
    "results_export_dir": "data/results",

    # Debug and Logging Settings
    "debug": False,
    "log_level": "INFO",
    "log_dir": "logs",
    "log_to_file": False,
    "structured_logging": False,
}
