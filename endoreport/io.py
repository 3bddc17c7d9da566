from __future__ import annotations
import logging
from typing import Sequence
import pandas as pd

from .biopsy import Biopsy
from .schema import BiopsyLocation, FINDING_LABELS
from .stains import StainConfig, Stain

logger = logging.getLogger(__name__)

STAIN_COLUMNS = ["location", "name", "description"]


def stain_config_to_frame(config: StainConfig) -> pd.DataFrame:
    rows = []
    for loc in BiopsyLocation:
        for s in config.get(loc) or []:
            rows.append({"location": loc.value, "name": s.name, "description": s.description})
    logger.info("Exporting %d stain(s) to CSV", len(rows))
    return pd.DataFrame(rows, columns=STAIN_COLUMNS)


def normalize_stain_frame(df: pd.DataFrame) -> pd.DataFrame:
    df = df.copy()
    df.columns = [str(c).strip() for c in df.columns]
    cols = set(df.columns)
    for c in STAIN_COLUMNS:
        if c not in cols:
            raise ValueError(f"Stain CSV must include '{c}' column.")
    df = df[STAIN_COLUMNS].fillna("")
    for c in STAIN_COLUMNS:
        df[c] = df[c].astype(str).str.strip()
    return df


def stain_config_from_frame(df: pd.DataFrame) -> StainConfig:
    """Rebuild a StainConfig; every location is present, blank rows are skipped."""
    df = normalize_stain_frame(df)
    valid = {loc.value for loc in BiopsyLocation}
    config: StainConfig = {loc: [] for loc in BiopsyLocation}

    for r in df.to_dict("records"):
        if r["location"] not in valid:
            raise ValueError(f"Unknown biopsy location: {r['location']!r}")
        if not r["name"] or not r["description"]:
            continue
        config[BiopsyLocation(r["location"])].append(Stain(r["name"], r["description"]))
    return config


def load_stain_config_csv(path_or_buffer) -> StainConfig:
    df = pd.read_csv(path_or_buffer, dtype=str, keep_default_na=False)
    config = stain_config_from_frame(df)
    logger.info("Loaded %d stain(s) from CSV", sum(len(v) for v in config.values()))
    return config


def biopsies_to_frame(biopsies: Sequence[Biopsy]) -> pd.DataFrame:
    """One row per biopsy, in report order (index is the report number)."""
    rows = []
    for i, b in enumerate(biopsies, start=1):
        row = {
            "index": i,
            "location": b.location.value,
            "sub_location": b.sub_location,
            "diagnosis": b.custom_diagnosis,
        }
        for name, value in b.findings.items():
            row[name] = value
        row["notes"] = "; ".join(b.custom_notes)
        row["stains"] = "; ".join(b.stains)
        row["custom_stains"] = "; ".join(b.custom_stains)
        row["eosinophil_count"] = b.eosinophil_count
        rows.append(row)

    columns = ["index", "location", "sub_location", "diagnosis", *FINDING_LABELS,
               "notes", "stains", "custom_stains", "eosinophil_count"]
    logger.info("Exporting %d biopsy row(s) to CSV", len(rows))
    return pd.DataFrame(rows, columns=columns)
