"""Unit tests for scale calibration."""
import pytest
from measure_app.core.calibration import calibrate
from measure_app.core.entities import ReferenceObjectSpec
from measure_app.core.exceptions import DegenerateReferenceError


def test_quarter_scale(quarter):
    scale = calibrate((10, 10, 80, 80), quarter)

    assert scale == pytest.approx(80 / 2.426)
    assert scale == pytest.approx(32.97, abs=0.01)


@pytest.mark.parametrize("bbox,expected_pixels", [
    ((0, 0, 120, 70), 120),
    ((0, 0, 70, 120), 120),
    ((5, 5, 33.3, 33.3), 33.3),
])
def test_uses_longest_pixel_and_physical_side(catalog, bbox, expected_pixels):
    card = catalog.lookup('credit_card')

    assert calibrate(bbox, card) == pytest.approx(expected_pixels / 8.56)


def test_orientation_does_not_matter_for_paper(catalog):
    a4 = catalog.lookup('a4_paper')

    portrait = calibrate((0, 0, 210, 297), a4)
    landscape = calibrate((0, 0, 297, 210), a4)

    assert portrait == landscape == pytest.approx(10.0)


@pytest.mark.parametrize("bbox", [
    (0, 0, 0, 0),
    (0, 0, -5, -1),
    (10, 10, 0, -3),
])
def test_degenerate_box_raises(quarter, bbox):
    with pytest.raises(DegenerateReferenceError):
        calibrate(bbox, quarter)


def test_zero_width_box_with_height_still_calibrates(quarter):
    assert calibrate((0, 0, 0, 48.52), quarter) == pytest.approx(20.0)


def test_non_positive_physical_size_raises():
    # Bypass the constructor check to simulate a corrupt catalog entry
    spec = object.__new__(ReferenceObjectSpec)
    object.__setattr__(spec, 'id', 'broken')
    object.__setattr__(spec, 'name', 'Broken')
    object.__setattr__(spec, 'physical_width', 0.0)
    object.__setattr__(spec, 'physical_height', -1.0)

    with pytest.raises(DegenerateReferenceError):
        calibrate((0, 0, 50, 50), spec)
