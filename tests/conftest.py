"""Shared fixtures for report tests."""

from dataclasses import replace

import pytest

from endoreport.biopsy import Findings
from endoreport.editor import select_site
from endoreport.schema import BiopsyLocation
from endoreport.stains import default_stain_config
from endoreport.store import ReportSession


@pytest.fixture
def session():
    """Session with no configured stains, so reports contain only biopsy blocks."""
    return ReportSession(stain_config={})


@pytest.fixture
def stained_session():
    return ReportSession(stain_config=default_stain_config())


@pytest.fixture
def add_stomach():
    """Add a stomach biopsy at `site` with the given findings, through the store."""

    def _add(session, site, **findings):
        b = session.add_biopsy(BiopsyLocation.STOMACH)
        b = select_site(b, site)
        b = replace(b, findings=Findings(**findings))
        return session.update_biopsy(b)

    return _add
