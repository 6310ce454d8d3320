"""Catalog of reference objects with known real-world size."""
from __future__ import annotations
from types import MappingProxyType
from typing import Dict, Iterable, Iterator, List, Mapping
from .entities import ReferenceObjectSpec
from .exceptions import UnknownReferenceError

# Physical dimensions in centimeters
REFERENCE_OBJECTS: Mapping[str, Dict[str, object]] = MappingProxyType({
    'quarter': {'name': 'US Quarter', 'width': 2.426, 'height': 2.426},
    'credit_card': {'name': 'Credit Card', 'width': 8.56, 'height': 5.398},
    'a4_paper': {'name': 'A4 Paper', 'width': 21.0, 'height': 29.7},
    'coin': {'name': 'Standard Coin', 'width': 2.5, 'height': 2.5},
})

DEFAULT_REFERENCE = 'quarter'


class ReferenceCatalog:
    """Read-only lookup from reference id to its physical dimensions."""

    def __init__(self, specs: Iterable[ReferenceObjectSpec]):
        entries = {}
        for spec in specs:
            if spec.id in entries:
                raise ValueError(f"Duplicate reference id: {spec.id}")
            entries[spec.id] = spec
        self._entries: Mapping[str, ReferenceObjectSpec] = MappingProxyType(entries)

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Mapping[str, object]]) -> "ReferenceCatalog":
        return cls(
            ReferenceObjectSpec(
                id=ref_id,
                name=str(entry['name']),
                physical_width=float(entry['width']),
                physical_height=float(entry['height']),
            )
            for ref_id, entry in mapping.items()
        )

    def lookup(self, reference_id: str) -> ReferenceObjectSpec:
        try:
            return self._entries[reference_id]
        except KeyError:
            raise UnknownReferenceError(reference_id) from None

    def ids(self) -> List[str]:
        return list(self._entries)

    def describe(self, reference_id: str) -> str:
        """Human-readable option text, e.g. 'US Quarter (2.426 x 2.426 cm)'."""
        spec = self.lookup(reference_id)
        return f"{spec.name} ({spec.physical_width:g} x {spec.physical_height:g} cm)"

    def __contains__(self, reference_id: object) -> bool:
        return reference_id in self._entries

    def __iter__(self) -> Iterator[ReferenceObjectSpec]:
        return iter(self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)


_default_catalog: ReferenceCatalog | None = None


def default_catalog() -> ReferenceCatalog:
    """Built-in catalog, created once per process."""
    global _default_catalog
    if _default_catalog is None:
        _default_catalog = ReferenceCatalog.from_mapping(REFERENCE_OBJECTS)
    return _default_catalog
