from __future__ import annotations

import logging
import uuid
from typing import Any, Dict, Iterator, List, Optional

from .biopsy import Biopsy, Findings
from .derive import derive_diagnosis
from .generate import ReportLine, generate_report_lines
from .preview import plain_text, render_markup
from .schema import (
    AUTO_STAINS,
    BiopsyLocation,
    DEFAULT_DIAGNOSIS,
    DEFAULT_SUB_LOCATION,
    DUODENUM_FEATURE_DEFAULTS,
    DUODENUM_FEATURE_LABELS,
    ESOPHAGUS_FEATURE_PHRASES,
    NOT_DONE,
    STOMACH_FEATURE_PHRASES,
)
from .stains import StainConfig, config_from_dict, config_to_dict, default_stain_config

logger = logging.getLogger(__name__)


def _new_id() -> str:
    return uuid.uuid4().hex


def default_findings(location: BiopsyLocation) -> Findings:
    # HP / IM are only evaluated on stomach specimens
    if location == BiopsyLocation.STOMACH:
        return Findings()
    return Findings(hp=NOT_DONE, intestinal_metaplasia=NOT_DONE)


def new_biopsy(location: BiopsyLocation, sequence: int, biopsy_id: Optional[str] = None) -> Biopsy:
    """Create a record with the location's defaults."""
    sub = DEFAULT_SUB_LOCATION.get(location, "")

    esophagus = stomach = duodenum = None
    if location == BiopsyLocation.ESOPHAGUS:
        esophagus = {k: False for k in ESOPHAGUS_FEATURE_PHRASES}
    elif location == BiopsyLocation.STOMACH:
        stomach = {k: False for k in STOMACH_FEATURE_PHRASES}
        stomach["synaptophysin"] = None
    elif location == BiopsyLocation.DUODENUM:
        duodenum = {k: k in DUODENUM_FEATURE_DEFAULTS for k in DUODENUM_FEATURE_LABELS}

    return Biopsy(
        id=biopsy_id or _new_id(),
        location=location,
        sub_locations=[sub] if sub else [],
        sequence=sequence,
        findings=default_findings(location),
        custom_diagnosis=DEFAULT_DIAGNOSIS.get(location, ""),
        stains=list(AUTO_STAINS.get(location, [])),
        esophagus_features=esophagus,
        stomach_features=stomach,
        duodenum_features=duodenum,
    )


class BiopsyStore:
    """Ordered biopsy records. List order is the report order."""

    def __init__(self, biopsies: Optional[List[Biopsy]] = None):
        self._biopsies: List[Biopsy] = list(biopsies or [])

    def __len__(self) -> int:
        return len(self._biopsies)

    def __iter__(self) -> Iterator[Biopsy]:
        return iter(list(self._biopsies))

    @property
    def biopsies(self) -> List[Biopsy]:
        return list(self._biopsies)

    def get(self, biopsy_id: str) -> Optional[Biopsy]:
        for b in self._biopsies:
            if b.id == biopsy_id:
                return b
        return None

    def index_of(self, biopsy_id: str) -> int:
        for i, b in enumerate(self._biopsies):
            if b.id == biopsy_id:
                return i
        return -1

    def add(self, location: BiopsyLocation) -> Biopsy:
        biopsy = new_biopsy(location, sequence=len(self._biopsies) + 1)
        self._biopsies.append(biopsy)
        logger.debug("Added %s biopsy %s", location.value, biopsy.id)
        return biopsy

    def update(self, biopsy: Biopsy) -> Optional[Biopsy]:
        """Replace the record with the same id, after applying diagnosis rules.

        Unknown ids are ignored.
        """
        i = self.index_of(biopsy.id)
        if i < 0:
            logger.debug("Ignoring update for unknown biopsy %s", biopsy.id)
            return None
        stored = derive_diagnosis(biopsy)
        self._biopsies[i] = stored
        return stored

    def remove(self, biopsy_id: str) -> None:
        """Delete by id. Other records keep their `sequence`."""
        before = len(self._biopsies)
        self._biopsies = [b for b in self._biopsies if b.id != biopsy_id]
        if len(self._biopsies) == before:
            logger.debug("Ignoring removal of unknown biopsy %s", biopsy_id)
        else:
            logger.debug("Removed biopsy %s", biopsy_id)


class ReportSession:
    """Session state: the biopsy store, the stain configuration and the focused field."""

    def __init__(
        self,
        store: Optional[BiopsyStore] = None,
        stain_config: Optional[StainConfig] = None,
        active_field: Optional[str] = None,
    ):
        self.store = store if store is not None else BiopsyStore()
        self.stain_config = stain_config if stain_config is not None else default_stain_config()
        self.active_field = active_field

    @property
    def biopsies(self) -> List[Biopsy]:
        return self.store.biopsies

    @property
    def active_biopsy_id(self) -> Optional[str]:
        if not self.active_field:
            return None
        for b in self.store:
            if self.active_field.startswith(f"{b.id}-"):
                return b.id
        return None

    def add_biopsy(self, location: BiopsyLocation) -> Biopsy:
        biopsy = self.store.add(location)
        self.active_field = f"{biopsy.id}-active"
        return biopsy

    def focus(self, biopsy_id: str, field_key: str = "active") -> None:
        if self.store.get(biopsy_id) is not None:
            self.active_field = f"{biopsy_id}-{field_key}"

    def update_biopsy(self, biopsy: Biopsy, field_key: Optional[str] = None) -> Optional[Biopsy]:
        stored = self.store.update(biopsy)
        if stored is not None and field_key:
            self.active_field = f"{biopsy.id}-{field_key}"
        return stored

    def remove_biopsy(self, biopsy_id: str) -> None:
        self.store.remove(biopsy_id)
        if self.active_field and self.active_field.startswith(f"{biopsy_id}-"):
            self.active_field = None

    def set_stain_config(self, config: StainConfig) -> None:
        self.stain_config = config

    def reset(self) -> None:
        self.store = BiopsyStore()
        self.active_field = None

    def report_lines(self) -> List[ReportLine]:
        return generate_report_lines(self.store.biopsies, self.stain_config)

    def report_text(self) -> str:
        return plain_text(self.report_lines())

    def report_markup(self) -> str:
        return render_markup(self.report_lines(), self.active_field)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "biopsies": [b.to_dict() for b in self.store],
            "stain_config": config_to_dict(self.stain_config),
            "active_field": self.active_field,
        }

    @classmethod
    def from_dict(cls, d: Optional[Dict[str, Any]]) -> "ReportSession":
        if not d:
            return cls()
        config = d.get("stain_config")
        return cls(
            store=BiopsyStore([Biopsy.from_dict(b) for b in d.get("biopsies") or []]),
            stain_config=config_from_dict(config) if config is not None else None,
            active_field=d.get("active_field"),
        )
