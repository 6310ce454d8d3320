"""Pytest configuration and shared fixtures for the object measurement tests.

Detector backends are replaced by :class:`FakeBackend`, which returns
scripted detections, so no model weights are needed.
"""
import os
import base64
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import cv2
import numpy as np
import pytest

from measure_app.backends.base_backend import BaseBackend
from measure_app.core.calibration_manager import CalibrationManager
from measure_app.core.entities import CalibrationState, DetectedObject
from measure_app.core.exceptions import ModelError
from measure_app.core.reference_catalog import default_catalog
from measure_app.services.detection_adapter import DetectionAdapter
from measure_app.services.measurement_session import MeasurementSession

PROJECT_ROOT = Path(__file__).parent.parent

logging.getLogger('ultralytics').setLevel(logging.WARNING)


def make_detection(class_name: str, bbox: Sequence[float], score: float = 0.9) -> DetectedObject:
    return DetectedObject(bbox=tuple(float(v) for v in bbox), class_name=class_name, score=score)


class FakeBackend(BaseBackend):
    """Backend returning queued detection lists, one per predict() call."""

    def __init__(self, batches: Optional[List[List[DetectedObject]]] = None,
                 error: Optional[Exception] = None, loaded: bool = True):
        super().__init__({})
        self.batches = list(batches or [])
        self.error = error
        self.is_loaded = loaded
        self.calls: List[Dict[str, Any]] = []

    def load_model(self, model_path_or_name: str) -> bool:
        self.is_loaded = True
        self.model_info = {'backend': 'fake', 'model_path': model_path_or_name}
        return True

    def predict(self, image: np.ndarray, **kwargs) -> List[DetectedObject]:
        self.calls.append({'shape': image.shape, **kwargs})
        if self.error is not None:
            raise self.error
        if not self.batches:
            return []
        if len(self.batches) == 1:
            return list(self.batches[0])
        return list(self.batches.pop(0))

    def get_model_info(self) -> Dict[str, Any]:
        return dict(self.model_info)


@pytest.fixture
def detection_factory():
    """Provide make_detection(class_name, bbox, score=0.9)."""
    return make_detection


@pytest.fixture
def backend_factory():
    """Provide the FakeBackend class."""
    return FakeBackend


@pytest.fixture
def catalog():
    return default_catalog()


@pytest.fixture
def quarter():
    return default_catalog().lookup('quarter')


@pytest.fixture
def uncalibrated_state():
    return CalibrationState.initial('quarter')


@pytest.fixture
def manager(catalog):
    return CalibrationManager(catalog)


@pytest.fixture
def quarter_detections():
    """Quarter of 80 px next to a phone-sized object, in detector order."""
    return [
        make_detection('quarter', [10, 10, 80, 80], 0.9),
        make_detection('cell phone', [100, 100, 165, 82], 0.8),
    ]


@pytest.fixture
def sample_image():
    """Provide a sample BGR image for testing."""
    image = np.zeros((120, 160, 3), dtype=np.uint8)
    cv2.circle(image, (40, 40), 20, (192, 192, 192), -1)
    cv2.rectangle(image, (80, 60), (150, 110), (0, 0, 255), -1)
    return image


@pytest.fixture
def png_bytes(sample_image):
    ok, buf = cv2.imencode('.png', sample_image)
    assert ok
    return buf.tobytes()


@pytest.fixture
def data_url(png_bytes):
    return "data:image/png;base64," + base64.b64encode(png_bytes).decode('ascii')


@pytest.fixture
def image_file(tmp_path, png_bytes):
    path = tmp_path / "photo.png"
    path.write_bytes(png_bytes)
    return path


@pytest.fixture
def fake_backend(quarter_detections):
    return FakeBackend([quarter_detections])


@pytest.fixture
def adapter(fake_backend):
    return DetectionAdapter(fake_backend, confidence_threshold=0.5)


@pytest.fixture
def session(adapter, manager):
    return MeasurementSession(adapter, manager, reference_object='quarter')


@pytest.fixture
def failing_backend():
    return FakeBackend(error=ModelError("inference crashed"))


@pytest.fixture
def clean_env(monkeypatch):
    """Remove MEASURE_* variables so tests see only what they set."""
    for key in list(os.environ):
        if key.startswith("MEASURE_"):
            monkeypatch.delenv(key, raising=False)
    return monkeypatch


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: mark test as unit test")
    config.addinivalue_line("markers", "integration: mark test as integration test")
    config.addinivalue_line("markers", "service: mark test as service test")
    config.addinivalue_line("markers", "external: mark test as requiring model weights or network")


def pytest_collection_modifyitems(config, items):
    """Add markers based on test file location and skip external tests by default."""
    for item in items:
        path = str(item.fspath)
        if f"{os.sep}integration{os.sep}" in path:
            item.add_marker(pytest.mark.integration)
        elif f"{os.sep}unit{os.sep}" in path:
            item.add_marker(pytest.mark.unit)
        if f"{os.sep}test_services{os.sep}" in path:
            item.add_marker(pytest.mark.service)

        if item.get_closest_marker("external") and not os.getenv("RUN_EXTERNAL_TESTS"):
            item.add_marker(pytest.mark.skip(reason="External tests disabled"))
