from __future__ import annotations

from dataclasses import replace
from typing import Any, Dict, Optional, Tuple

from .biopsy import Biopsy
from .preprocess import clean_input, split_locations
from .schema import (
    ENUM_SEVERITY,
    FEATURE_BAGS,
    FINDING_LABELS,
    SYNAPTOPHYSIN_PHRASES,
)

# ----------------------------
# Biopsy editor operations
# ----------------------------
# Every operation returns a new Biopsy and leaves its input untouched.
# Blank submissions and out-of-range indices return the input unchanged.
# ----------------------------


def select_site(biopsy: Biopsy, site: str) -> Biopsy:
    site = clean_input(site)
    if not site:
        return biopsy
    return biopsy.evolve(sub_locations=[site])


def toggle_sub_site(biopsy: Biopsy, site: str) -> Biopsy:
    site = clean_input(site)
    if not site:
        return biopsy
    current = [s for s in biopsy.sub_locations if s]
    if site in current:
        updated = [s for s in current if s != site]
    else:
        updated = current + [site]
    return biopsy.evolve(sub_locations=updated)


def set_custom_location(biopsy: Biopsy, text: str) -> Biopsy:
    locations = split_locations(text)
    if not locations:
        return biopsy
    return biopsy.evolve(sub_locations=locations)


def select_diagnosis(biopsy: Biopsy, diagnosis: str) -> Biopsy:
    """Pick a listed diagnosis; picking the selected one again clears it."""
    if biopsy.custom_diagnosis == diagnosis:
        return biopsy.evolve(custom_diagnosis="")
    return biopsy.evolve(custom_diagnosis=diagnosis)


def set_custom_diagnosis(biopsy: Biopsy, text: str) -> Biopsy:
    text = clean_input(text)
    if not text:
        return biopsy
    return biopsy.evolve(custom_diagnosis=text)


def toggle_predefined_note(biopsy: Biopsy, note: str) -> Biopsy:
    notes = list(biopsy.custom_notes)
    if note in notes:
        notes.remove(note)
    else:
        notes.append(note)
    return biopsy.evolve(custom_notes=notes)


def add_note(biopsy: Biopsy, text: str) -> Biopsy:
    text = clean_input(text)
    if not text:
        return biopsy
    return biopsy.evolve(custom_notes=list(biopsy.custom_notes) + [text])


def remove_note(biopsy: Biopsy, index: int) -> Biopsy:
    notes = list(biopsy.custom_notes)
    if not 0 <= index < len(notes):
        return biopsy
    del notes[index]
    return biopsy.evolve(custom_notes=notes)


def move_note(biopsy: Biopsy, index: int, offset: int) -> Biopsy:
    notes = list(biopsy.custom_notes)
    target = index + offset
    if not (0 <= index < len(notes) and 0 <= target < len(notes)):
        return biopsy
    notes[index], notes[target] = notes[target], notes[index]
    return biopsy.evolve(custom_notes=notes)


def set_finding(biopsy: Biopsy, name: str, value: str) -> Biopsy:
    if name not in FINDING_LABELS or value not in ENUM_SEVERITY:
        return biopsy
    findings = replace(biopsy.findings, **{name: value})
    return biopsy.evolve(findings=findings)


def set_eosinophil_count(biopsy: Biopsy, text: str) -> Biopsy:
    return biopsy.evolve(eosinophil_count=clean_input(text))


def add_custom_stain(biopsy: Biopsy, name: str) -> Biopsy:
    name = clean_input(name)
    if not name:
        return biopsy
    return biopsy.evolve(custom_stains=list(biopsy.custom_stains) + [name])


def remove_custom_stain(biopsy: Biopsy, index: int) -> Biopsy:
    stains = list(biopsy.custom_stains)
    if not 0 <= index < len(stains):
        return biopsy
    del stains[index]
    return biopsy.evolve(custom_stains=stains)


def toggle_feature(biopsy: Biopsy, bag: str, name: str) -> Biopsy:
    """Flip a boolean flag in one of the biopsy's feature bags."""
    if bag not in FEATURE_BAGS:
        return biopsy
    features = getattr(biopsy, bag)
    _, table = FEATURE_BAGS[bag]
    if features is None or name not in table:
        return biopsy
    updated = dict(features)
    updated[name] = not bool(updated.get(name))
    return biopsy.evolve(**{bag: updated})


def set_synaptophysin(biopsy: Biopsy, value: Optional[str]) -> Biopsy:
    features = biopsy.stomach_features
    if features is None or (value is not None and value not in SYNAPTOPHYSIN_PHRASES):
        return biopsy
    updated = dict(features)
    updated["synaptophysin"] = None if updated.get("synaptophysin") == value else value
    return biopsy.evolve(stomach_features=updated)


# ----------------------------
# Dispatch
# ----------------------------
def _index(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return -1


def apply_action(
    biopsy: Biopsy,
    action: str,
    value: Any = None,
    inputs: Optional[Dict[str, Any]] = None,
) -> Tuple[Biopsy, Optional[str]]:
    """Run one editor action and return (biopsy, field key).

    `action` may carry an argument after a colon ("finding:hp",
    "feature:stomach_features"). Text actions read their text from `inputs`
    keyed by the form field name. Unknown actions return (biopsy, None).
    """
    inputs = inputs or {}
    name, _, arg = (action or "").partition(":")

    if name == "site":
        return select_site(biopsy, value), "location"
    if name == "sub_site":
        return toggle_sub_site(biopsy, value), "sublocation"
    if name == "custom_location":
        return set_custom_location(biopsy, inputs.get("customLocation")), "customLocation"
    if name == "diagnosis":
        return select_diagnosis(biopsy, value), "diagnosis"
    if name == "custom_diagnosis":
        return set_custom_diagnosis(biopsy, inputs.get("customDiagnosis")), "customDiagnosis"
    if name == "predefined_note":
        return toggle_predefined_note(biopsy, value), "predefinedNote"
    if name == "add_note":
        return add_note(biopsy, inputs.get("newNote")), "customNotes"
    if name == "remove_note":
        return remove_note(biopsy, _index(value)), "customNotes"
    if name == "note_up":
        return move_note(biopsy, _index(value), -1), "customNotes"
    if name == "note_down":
        return move_note(biopsy, _index(value), 1), "customNotes"
    if name == "finding":
        return set_finding(biopsy, arg, value), f"finding-{arg}"
    if name == "eosinophil":
        return set_eosinophil_count(biopsy, inputs.get("eosinophilCount")), "eosinophilCount"
    if name == "add_stain":
        return add_custom_stain(biopsy, inputs.get("newStain")), "customStain"
    if name == "remove_stain":
        return remove_custom_stain(biopsy, _index(value)), "customStain"
    if name == "feature":
        prefix = arg.replace("_features", "_feature")
        return toggle_feature(biopsy, arg, value), f"{prefix}-{value}"
    if name == "synaptophysin":
        return set_synaptophysin(biopsy, value), "synaptophysin"

    return biopsy, None
