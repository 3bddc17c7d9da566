from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from .biopsy import Biopsy
from .schema import (
    BiopsyLocation,
    BULLET_INDENT,
    EOSINOPHIL_PREFIX,
    ESOPHAGUS_FEATURE_PHRASES,
    FINDING_LABELS,
    NOT_DONE,
    STAIN_SECTION_HEADER,
    STAIN_SECTION_TRAILER,
    STOMACH_FEATURE_PHRASES,
    SYNAPTOPHYSIN_PHRASES,
    TITLE_SUFFIX,
)
from .stains import StainConfig, special_finding, stains_for

TITLE_FIELDS = ("location", "sublocation", "customLocation", "diagnosis", "customDiagnosis")
NOTE_FIELDS = ("customNotes", "predefinedNote")


@dataclass(frozen=True)
class ReportLine:
    """One line of report text plus the editor fields it reflects."""

    text: str
    biopsy_id: Optional[str] = None
    fields: Tuple[str, ...] = ()

    def is_highlighted(self, active_field: Optional[str]) -> bool:
        if not active_field or self.biopsy_id is None:
            return False
        if active_field == f"{self.biopsy_id}-active":
            return True
        return any(active_field == f"{self.biopsy_id}-{f}" for f in self.fields)


def count_groups(biopsies: Sequence[Biopsy]) -> Dict[str, int]:
    """Occurrences of each (location, main location) key across the list."""
    counts: Dict[str, int] = {}
    for b in biopsies:
        counts[b.group_key] = counts.get(b.group_key, 0) + 1
    return counts


def format_location(biopsy: Biopsy, current: int, total: int) -> str:
    main = biopsy.main_location
    if biopsy.location == BiopsyLocation.STOMACH:
        label = f"Mide, {main}"
    else:
        label = main

    if total > 1:
        label = f"{label} ({current}/{total})"

    extra = biopsy.additional_locations
    if extra:
        label = f"{label}, {', '.join(extra)}"
    return label


def _bullet(text: str) -> str:
    return f"{BULLET_INDENT}{text}"


def _esophagus_lines(biopsy: Biopsy) -> List[Tuple[str, str]]:
    out = []
    features = biopsy.esophagus_features or {}
    diagnosis = biopsy.custom_diagnosis or ""
    for key, phrase in ESOPHAGUS_FEATURE_PHRASES.items():
        # skip phrases already spelled out in the diagnosis
        if features.get(key) and phrase not in diagnosis:
            out.append((phrase, f"esophagus_feature-{key}"))
    return out


def _stomach_lines(biopsy: Biopsy) -> List[Tuple[str, str]]:
    out = []
    findings = biopsy.findings

    if findings.has_active_findings():
        shown = [name for name, value in findings.items() if value != NOT_DONE]
    else:
        shown = [name for name in ("hp", "intestinal_metaplasia") if getattr(findings, name) != NOT_DONE]

    for name in shown:
        out.append((f"{FINDING_LABELS[name]}: ({getattr(findings, name)})", f"finding-{name}"))

    features = biopsy.stomach_features or {}
    for key, phrase in STOMACH_FEATURE_PHRASES.items():
        if features.get(key):
            out.append((phrase, f"stomach_feature-{key}"))

    syn = features.get("synaptophysin")
    if syn in SYNAPTOPHYSIN_PHRASES:
        out.append((SYNAPTOPHYSIN_PHRASES[syn], "synaptophysin"))
    return out


def biopsy_lines(biopsy: Biopsy, index: int, current: int, total: int) -> List[ReportLine]:
    """Render one biopsy block. `index` is the 0-based list position."""
    bid = biopsy.id
    lines: List[ReportLine] = []

    location = format_location(biopsy, current, total)
    title = f"{index + 1}- {location}, {TITLE_SUFFIX}: {biopsy.custom_diagnosis or ''}"
    lines.append(ReportLine(title, bid, TITLE_FIELDS))

    structured: List[Tuple[str, str]] = []
    if biopsy.location == BiopsyLocation.ESOPHAGUS:
        structured = _esophagus_lines(biopsy)
    elif biopsy.location == BiopsyLocation.STOMACH:
        structured = _stomach_lines(biopsy)

    for text, field_key in structured:
        lines.append(ReportLine(_bullet(text), bid, (field_key,)))

    for note in biopsy.custom_notes:
        text = note if note.endswith(".") else f"{note}."
        lines.append(ReportLine(_bullet(text), bid, NOTE_FIELDS))

    if biopsy.eosinophil_count:
        lines.append(ReportLine(_bullet(f"{EOSINOPHIL_PREFIX}{biopsy.eosinophil_count}"), bid, ("eosinophilCount",)))

    return lines


def stain_lines(biopsies: Sequence[Biopsy], stain_config: StainConfig) -> List[ReportLine]:
    """Lines of the histochemical section, without header/trailer."""
    number = {b.id: i + 1 for i, b in enumerate(biopsies)}

    # locations in order of first appearance
    groups: Dict[BiopsyLocation, List[Biopsy]] = {}
    for b in biopsies:
        groups.setdefault(b.location, []).append(b)

    stomach = groups.get(BiopsyLocation.STOMACH, [])
    evaluated = {
        finding: [b for b in stomach if getattr(b.findings, finding) != NOT_DONE]
        for finding in ("hp", "intestinal_metaplasia")
    }

    out: List[ReportLine] = []
    for location, members in groups.items():
        for stain in stains_for(stain_config, location):
            relevant = members
            if location == BiopsyLocation.STOMACH:
                finding = special_finding(stain)
                if finding is not None:
                    relevant = evaluated[finding]

            numbers = sorted(number[b.id] for b in relevant)
            if numbers:
                joined = ",".join(str(n) for n in numbers)
                out.append(ReportLine(f"{joined} nolu örnekte {stain.description} {stain.name}"))

    for i, b in enumerate(biopsies):
        for stain_name in b.custom_stains:
            out.append(ReportLine(f"{i + 1}- no {stain_name}", b.id, ("customStain",)))

    return out


def generate_report_lines(biopsies: Sequence[Biopsy], stain_config: StainConfig) -> List[ReportLine]:
    """Full report as structured lines. Inputs are read-only."""
    totals = count_groups(biopsies)
    seen: Dict[str, int] = {}

    lines: List[ReportLine] = []
    for index, biopsy in enumerate(biopsies):
        key = biopsy.group_key
        seen[key] = seen.get(key, 0) + 1
        if lines:
            lines.append(ReportLine(""))
        lines.extend(biopsy_lines(biopsy, index, seen[key], totals[key]))

    stains = stain_lines(biopsies, stain_config)
    if stains:
        last = stains[-1]
        stains[-1] = ReportLine(last.text + STAIN_SECTION_TRAILER, last.biopsy_id, last.fields)
        lines.append(ReportLine(""))
        lines.append(ReportLine(STAIN_SECTION_HEADER))
        lines.extend(stains)

    return lines


def generate_report(biopsies: Sequence[Biopsy], stain_config: StainConfig) -> str:
    """Plain report text, lines joined with "\\n"."""
    return "\n".join(line.text for line in generate_report_lines(biopsies, stain_config))
