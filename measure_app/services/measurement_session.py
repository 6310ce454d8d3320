"""Detection-and-measurement session orchestration."""
from __future__ import annotations
import asyncio
import logging
import time
import uuid
from typing import Callable, List, Optional
from ..config.settings import Config
from ..core.calibration_manager import CalibrationManager
from ..core.entities import CalibrationState, CycleResult, MeasurementResult
from ..core.logging_config import CorrelationContext
from ..core.matching import ReferenceMatcher
from ..core.measurement import measure
from ..core.reference_catalog import DEFAULT_REFERENCE, ReferenceCatalog
from .detection_adapter import DetectionAdapter, ImageSource

logger = logging.getLogger(__name__)


class MeasurementSession:
    """Owns the calibration state of one user session.

    Cycles are serialized: an image submitted while another is processed
    waits for it, so calibration is never resolved by two cycles at once.
    Readers get immutable snapshots through :attr:`state`,
    :attr:`last_result` and the registered listeners.
    """

    def __init__(self, adapter: DetectionAdapter, manager: Optional[CalibrationManager] = None,
                 reference_object: str = DEFAULT_REFERENCE):
        self.adapter = adapter
        self.manager = manager or CalibrationManager()
        self.manager.catalog.lookup(reference_object)
        self._state = CalibrationState.initial(reference_object)
        self._last_result: Optional[CycleResult] = None
        self._listeners: List[Callable[[CycleResult], None]] = []
        self._lock = asyncio.Lock()

    @classmethod
    def from_config(cls, config: Config, adapter: DetectionAdapter,
                    catalog: Optional[ReferenceCatalog] = None) -> "MeasurementSession":
        matcher = ReferenceMatcher(config.match_mode, config.reference_synonyms)
        manager = CalibrationManager(catalog, matcher, config.default_pixels_per_cm)
        return cls(adapter, manager, config.reference_object)

    @property
    def state(self) -> CalibrationState:
        return self._state

    @property
    def last_result(self) -> Optional[CycleResult]:
        return self._last_result

    @property
    def measurements(self) -> List[MeasurementResult]:
        return list(self._last_result.measurements) if self._last_result else []

    @property
    def is_busy(self) -> bool:
        return self._lock.locked()

    def add_listener(self, callback: Callable[[CycleResult], None]) -> None:
        """Add a listener for cycle results."""
        self._listeners.append(callback)

    def remove_listener(self, callback: Callable[[CycleResult], None]) -> None:
        if callback in self._listeners:
            self._listeners.remove(callback)

    def select_reference(self, reference_id: str) -> CalibrationState:
        """Switch the reference object; the next cycle recalibrates.

        Raises:
            UnknownReferenceError: if ``reference_id`` is not in the catalog
        """
        self._state = self.manager.change_reference(self._state, reference_id)
        return self._state

    def reset_calibration(self) -> CalibrationState:
        self._state = self.manager.reset(self._state)
        return self._state

    async def process_image(self, source: ImageSource) -> CycleResult:
        """Decode, detect, calibrate and measure one image.

        Raises:
            ImageDecodeError: if the image cannot be decoded
            DetectionError: if the detector fails; calibration is left untouched
            UnknownReferenceError: if the selected reference is not in the catalog
        """
        if self.is_busy:
            logger.debug("Cycle in progress, queuing image")
        async with self._lock:
            with CorrelationContext(uuid.uuid4().hex[:8]) as cycle_id:
                start = time.perf_counter()
                image = await self.adapter.decode_image_async(source)
                detections = await self.adapter.detect_async(image)

                # No suspension point from here on: the state write is atomic
                # with respect to other cycles and reference changes.
                state, used_fallback = self.manager.resolve_calibration(detections, self._state)
                self._state = state
                measurements = measure(detections, state)

                result = CycleResult(
                    cycle_id=cycle_id,
                    state=state,
                    measurements=measurements,
                    used_fallback=used_fallback,
                    detections=list(detections),
                    latency_ms=int((time.perf_counter() - start) * 1000),
                    image_size=(int(image.shape[1]), int(image.shape[0])),
                )
                self._last_result = result
                logger.info(
                    f"Measured {len(measurements)} objects at {state.scale:.2f} px/cm "
                    f"({state.source}) in {result.latency_ms} ms"
                )
                self._notify(result)
                return result

    def _notify(self, result: CycleResult) -> None:
        for callback in list(self._listeners):
            try:
                callback(result)
            except Exception:
                logger.exception("Error in measurement listener")
