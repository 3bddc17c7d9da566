from __future__ import annotations
import re
from typing import List, Optional


def clean_input(text: Optional[str]) -> str:
    if not text:
        return ""
    # Form fields are single-line; fold newlines into spaces
    text = text.replace("\r\n", " ").replace("\r", " ").replace("\n", " ")
    # Collapse runs of spaces/tabs
    text = re.sub(r"[\t ]{2,}", " ", text)
    return text.strip()


def split_locations(text: Optional[str]) -> List[str]:
    """"Antrum,  ön duvar" -> ["Antrum", "ön duvar"] (order kept, blanks dropped)."""
    parts = [clean_input(p) for p in clean_input(text).split(",")]
    return [p for p in parts if p]
