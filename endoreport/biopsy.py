from __future__ import annotations

from dataclasses import dataclass, field, asdict, replace
from typing import Optional, Dict, Any, List, Tuple

from .schema import BiopsyLocation, FINDING_LABELS, GRADED, NONE


@dataclass(frozen=True)
class Findings:
    inflammation: str = NONE
    activation: str = NONE
    atrophy: str = NONE
    hp: str = NONE
    intestinal_metaplasia: str = NONE

    def items(self) -> List[Tuple[str, str]]:
        """(name, value) pairs in report order."""
        return [(name, getattr(self, name)) for name in FINDING_LABELS]

    def has_active_findings(self) -> bool:
        return self.inflammation in GRADED or self.activation in GRADED


@dataclass(frozen=True)
class Biopsy:
    id: str
    location: BiopsyLocation

    # Ordered; the first entry is the main location used for grouping.
    sub_locations: List[str] = field(default_factory=list)

    # 1-based position at creation time. Display numbering uses list order.
    sequence: int = 1

    findings: Findings = field(default_factory=Findings)
    custom_diagnosis: str = ""
    custom_notes: List[str] = field(default_factory=list)
    custom_stains: List[str] = field(default_factory=list)
    eosinophil_count: str = ""

    # default stain names expected for this specimen (informational)
    stains: List[str] = field(default_factory=list)

    esophagus_features: Optional[Dict[str, bool]] = None
    stomach_features: Optional[Dict[str, Any]] = None
    duodenum_features: Optional[Dict[str, bool]] = None

    @property
    def main_location(self) -> str:
        if not self.sub_locations:
            return ""
        return self.sub_locations[0].strip()

    @property
    def additional_locations(self) -> List[str]:
        return [s.strip() for s in self.sub_locations[1:] if s.strip()]

    @property
    def sub_location(self) -> str:
        """Comma-joined display form, e.g. "Antrum, Ön duvar"."""
        return ", ".join(s for s in self.sub_locations if s)

    @property
    def group_key(self) -> str:
        return f"{self.location.value}-{self.main_location}"

    def evolve(self, **changes) -> "Biopsy":
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["location"] = self.location.value
        return d

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Biopsy":
        findings = d.get("findings") or {}
        return cls(
            id=str(d["id"]),
            location=BiopsyLocation(d["location"]),
            sub_locations=list(d.get("sub_locations") or []),
            sequence=int(d.get("sequence") or 1),
            findings=Findings(**findings),
            custom_diagnosis=d.get("custom_diagnosis") or "",
            custom_notes=list(d.get("custom_notes") or []),
            custom_stains=list(d.get("custom_stains") or []),
            eosinophil_count=d.get("eosinophil_count") or "",
            stains=list(d.get("stains") or []),
            esophagus_features=d.get("esophagus_features"),
            stomach_features=d.get("stomach_features"),
            duodenum_features=d.get("duodenum_features"),
        )
