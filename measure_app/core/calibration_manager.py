"""Calibration state transitions.

This module is the only writer of :class:`CalibrationState`. Transitions:

- uncalibrated -> calibrated, from a detected reference object
- uncalibrated -> calibrated, from the configured fallback scale
- calibrated -> uncalibrated, when the reference object changes or is reset
"""
from __future__ import annotations
import logging
from typing import Optional, Sequence, Tuple
from .calibration import calibrate
from .entities import CalibrationState, DetectedObject
from .exceptions import DegenerateReferenceError
from .matching import ReferenceMatcher
from .reference_catalog import ReferenceCatalog, default_catalog

logger = logging.getLogger(__name__)

# 96 DPI screen resolution: 96 / 2.54
DEFAULT_PIXELS_PER_CM = 37.8


class CalibrationManager:
    """Resolves the calibration state for each processed image."""

    def __init__(self, catalog: Optional[ReferenceCatalog] = None,
                 matcher: Optional[ReferenceMatcher] = None,
                 default_pixels_per_cm: float = DEFAULT_PIXELS_PER_CM):
        if not default_pixels_per_cm > 0:
            raise ValueError(f"default_pixels_per_cm must be positive, got {default_pixels_per_cm}")
        self.catalog = catalog if catalog is not None else default_catalog()
        self.matcher = matcher or ReferenceMatcher()
        self.default_pixels_per_cm = default_pixels_per_cm

    def resolve_calibration(self, detections: Sequence[DetectedObject],
                            prior_state: CalibrationState) -> Tuple[CalibrationState, bool]:
        """Return ``(new_state, used_fallback)`` for this cycle's detections.

        An already calibrated state is returned as-is. Otherwise the first
        detection matching the selected reference sets the scale; with no
        usable match the fallback scale is adopted and ``used_fallback`` is True.

        Raises:
            UnknownReferenceError: if the selected reference is not in the catalog.
        """
        if prior_state.is_calibrated:
            return prior_state, False

        reference = self.catalog.lookup(prior_state.reference_object_id)
        candidates = self.matcher.find_reference(detections, reference)
        for candidate in candidates:
            try:
                scale = calibrate(candidate.bbox, reference)
            except DegenerateReferenceError as e:
                logger.warning(f"Skipping unusable reference detection: {e}")
                continue
            logger.info(
                f"Calibrated from '{candidate.class_name}' "
                f"(score={candidate.score:.2f}): {scale:.2f} px/cm"
            )
            return CalibrationState(
                reference_object_id=reference.id,
                scale=scale,
                is_calibrated=True,
                source="reference",
            ), False

        logger.warning(
            f"No usable {reference.name} among {len(detections)} detections, "
            f"using default scale {self.default_pixels_per_cm} px/cm"
        )
        return CalibrationState(
            reference_object_id=reference.id,
            scale=self.default_pixels_per_cm,
            is_calibrated=True,
            source="fallback",
        ), True

    def change_reference(self, state: CalibrationState, reference_id: str) -> CalibrationState:
        """Select another reference object; calibration must be redone."""
        self.catalog.lookup(reference_id)
        if state.is_calibrated:
            logger.info(f"Reference changed to '{reference_id}', calibration reset")
        return CalibrationState.initial(reference_id)

    def reset(self, state: CalibrationState) -> CalibrationState:
        return CalibrationState.initial(state.reference_object_id)


def resolve_calibration(detections: Sequence[DetectedObject],
                        prior_state: CalibrationState,
                        catalog: Optional[ReferenceCatalog] = None,
                        matcher: Optional[ReferenceMatcher] = None,
                        default_pixels_per_cm: float = DEFAULT_PIXELS_PER_CM) -> Tuple[CalibrationState, bool]:
    """Functional form of :meth:`CalibrationManager.resolve_calibration`."""
    manager = CalibrationManager(catalog, matcher, default_pixels_per_cm)
    return manager.resolve_calibration(detections, prior_state)
