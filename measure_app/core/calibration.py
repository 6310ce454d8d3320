"""Scale calibration from a single reference object."""
from __future__ import annotations
from .entities import BBox, ReferenceObjectSpec
from .exceptions import DegenerateReferenceError


def calibrate(bbox: BBox, reference: ReferenceObjectSpec) -> float:
    """Return pixels per centimeter for a box believed to depict ``reference``.

    The longer pixel edge is divided by the longer physical edge, so a card
    lying rotated by 90 degrees still calibrates the same way.

    Raises:
        DegenerateReferenceError: if either dimension is zero or negative.
    """
    _, _, width, height = bbox
    pixel_dimension = max(width, height)
    physical_dimension = reference.longest_side
    if pixel_dimension <= 0:
        raise DegenerateReferenceError(
            f"Reference box for '{reference.id}' has no extent: {width}x{height} px"
        )
    if physical_dimension <= 0:
        raise DegenerateReferenceError(
            f"Reference '{reference.id}' has non-positive size: {physical_dimension} cm"
        )
    return pixel_dimension / physical_dimension
