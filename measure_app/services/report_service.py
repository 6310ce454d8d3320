"""
ASCII measurement report and JSON export of cycle results.

The report mirrors what the measurement view shows: one box per measured
object with its size in the selected units, followed by the calibration
status and a warning when the default scale had to be used.
"""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

from ..core.entities import CycleResult, MeasurementResult
from ..core.measurement import format_dimensions
from ..core.reference_catalog import ReferenceCatalog, default_catalog

logger = logging.getLogger(__name__)

BOX_WIDTH = 47


def _boxed(text: str) -> str:
    return f"| {text}".ljust(BOX_WIDTH - 1) + "|"


def format_measurement_ascii(result: MeasurementResult, index: int, use_metric: bool = True) -> str:
    """Format a single measured object as an ASCII box."""
    obj = result.source_object
    x, y, w, h = obj.bbox
    border = "+" + "-" * (BOX_WIDTH - 2) + "+"
    return "\n".join([
        border,
        _boxed(f"{index}. {obj.class_name} ({obj.score * 100:.1f}% confidence)"),
        _boxed(f"   Size: {format_dimensions(result, use_metric)}"),
        _boxed(f"   Box: {w:.0f}x{h:.0f} px at ({x:.0f}, {y:.0f})"),
        border,
    ])


def format_calibration_status(cycle: CycleResult, catalog: Optional[ReferenceCatalog] = None) -> str:
    catalog = catalog if catalog is not None else default_catalog()
    state = cycle.state
    reference_name = (catalog.lookup(state.reference_object_id).name
                      if state.reference_object_id in catalog else state.reference_object_id)
    if not state.is_calibrated:
        return f"Calibration: pending (reference: {reference_name})"
    lines = [f"Calibration: {state.scale:.2f} pixels per cm (reference: {reference_name})"]
    if cycle.used_fallback:
        lines.append(
            f"WARNING: no {reference_name} detected, measurements are approximate. "
            f"Include a {reference_name} in the image for accurate results."
        )
    return "\n".join(lines)


def format_cycle_report(cycle: CycleResult, use_metric: bool = True,
                        catalog: Optional[ReferenceCatalog] = None) -> str:
    """Full report for one processed image."""
    parts = ["MEASUREMENT RESULTS:", ""]
    if cycle.image_size:
        parts.append(f"Image Size: {cycle.image_size[0]}x{cycle.image_size[1]} pixels")
    parts.append(f"Objects Measured: {len(cycle.measurements)}")
    parts.append("")

    if not cycle.measurements:
        parts.append("No objects detected or calibration needed")
        parts.append("")

    for i, result in enumerate(cycle.measurements, 1):
        parts.append(format_measurement_ascii(result, i, use_metric))
        parts.append("")

    parts.append(format_calibration_status(cycle, catalog))
    return "\n".join(parts)


def export_cycle_json(cycle: CycleResult, export_dir: Union[str, Path],
                      timestamp: Optional[datetime] = None) -> Path:
    """Write a cycle to ``measurements-<timestamp>.json`` in ``export_dir``.

    Returns:
        Path of the written file
    """
    export_path = Path(export_dir)
    export_path.mkdir(parents=True, exist_ok=True)
    now = timestamp or datetime.now()
    stamp = now.strftime('%Y%m%d_%H%M%S_%f')
    filepath = export_path / f"measurements-{stamp}.json"

    payload = cycle.to_dict()
    payload['exported_at'] = now.isoformat()
    with open(filepath, 'w', encoding='utf-8') as f:
        json.dump(payload, f, indent=2)

    logger.info(f"Measurements exported: {filepath}")
    return filepath
