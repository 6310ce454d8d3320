"""Matching of detections to the selected reference object."""
from __future__ import annotations
from typing import Dict, Iterable, List, Mapping, Optional
from .entities import DetectedObject, ReferenceObjectSpec

MATCH_MODES = ("exact", "substring")


def _normalize(label: str) -> str:
    return " ".join(label.replace("_", " ").lower().split())


class ReferenceMatcher:
    """Decides whether a detection label depicts a reference object.

    ``exact`` compares the label with the reference id; ``substring`` also
    accepts labels containing the id or the catalog name. Labels listed in
    ``synonyms[reference_id]`` match in either mode.
    """

    def __init__(self, mode: str = "substring", synonyms: Optional[Mapping[str, Iterable[str]]] = None):
        if mode not in MATCH_MODES:
            raise ValueError(f"Unknown match mode '{mode}', expected one of {MATCH_MODES}")
        self.mode = mode
        self.synonyms: Dict[str, frozenset] = {
            ref_id: frozenset(_normalize(s) for s in labels)
            for ref_id, labels in (synonyms or {}).items()
        }

    def matches(self, label: str, reference: ReferenceObjectSpec) -> bool:
        norm_label = _normalize(label)
        if not norm_label:
            return False
        ref_id = _normalize(reference.id)
        if norm_label == ref_id:
            return True
        if norm_label in self.synonyms.get(reference.id, ()):
            return True
        if self.mode == "substring":
            return ref_id in norm_label or _normalize(reference.name) in norm_label
        return False

    def find_reference(self, detections: Iterable[DetectedObject],
                       reference: ReferenceObjectSpec) -> List[DetectedObject]:
        """All detections depicting ``reference``, in detection order."""
        return [d for d in detections if self.matches(d.class_name, reference)]
