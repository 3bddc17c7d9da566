from __future__ import annotations

import re
from typing import Optional, Sequence

from .generate import ReportLine

MARK_OPEN = "<mark>"
MARK_CLOSE = "</mark>"

_MARKUP = re.compile(r"</?mark>")


def plain_text(lines: Sequence[ReportLine]) -> str:
    """Clipboard projection: never contains highlight markup."""
    return "\n".join(line.text for line in lines)


def render_markup(lines: Sequence[ReportLine], active_field: Optional[str]) -> str:
    """Preview projection with the active field's lines wrapped in <mark>."""
    out = []
    for line in lines:
        if line.is_highlighted(active_field):
            out.append(f"{MARK_OPEN}{line.text}{MARK_CLOSE}")
        else:
            out.append(line.text)
    return "\n".join(out)


def strip_markup(text: str) -> str:
    """Remove highlight tags from already-rendered preview text."""
    return _MARKUP.sub("", text or "")
