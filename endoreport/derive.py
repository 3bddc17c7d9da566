from __future__ import annotations

from typing import Optional

from .biopsy import Biopsy, Findings
from .schema import (
    BiopsyLocation,
    DUODENUM_MAPPINGS,
    DuodenumMapping,
    GRADED,
    STOMACH_AUTO_DIAGNOSES,
    STOMACH_CHRONIC,
    STOMACH_CHRONIC_ACTIVE,
    STOMACH_NORMAL,
)


def stomach_auto_diagnosis(findings: Findings) -> str:
    """
    Rules:
      - activation graded => chronic gastritis with activation
      - inflammation graded => chronic gastritis
      - otherwise => normal-looking gastric mucosa
    """
    if findings.activation in GRADED:
        return STOMACH_CHRONIC_ACTIVE
    if findings.inflammation in GRADED:
        return STOMACH_CHRONIC
    return STOMACH_NORMAL


def find_duodenum_mapping(site: str, diagnosis: str) -> Optional[DuodenumMapping]:
    for m in DUODENUM_MAPPINGS:
        if m.site == site and m.diagnosis == diagnosis:
            return m
    return None


def derive_diagnosis(biopsy: Biopsy) -> Biopsy:
    """Apply the location's diagnosis rules to a post-edit record.

    Pure and idempotent: derive_diagnosis(derive_diagnosis(b)) == derive_diagnosis(b).
    """
    if biopsy.location == BiopsyLocation.STOMACH:
        current = biopsy.custom_diagnosis
        if current and current not in STOMACH_AUTO_DIAGNOSES:
            # deliberate choice
            return biopsy
        derived = stomach_auto_diagnosis(biopsy.findings)
        if derived == current:
            return biopsy
        return biopsy.evolve(custom_diagnosis=derived)

    if biopsy.location == BiopsyLocation.DUODENUM:
        mapping = find_duodenum_mapping(biopsy.main_location, biopsy.custom_diagnosis)
        if mapping is None:
            return biopsy
        # notes are replaced, not merged
        return biopsy.evolve(
            custom_diagnosis=mapping.report_diagnosis,
            custom_notes=list(mapping.notes),
        )

    return biopsy
