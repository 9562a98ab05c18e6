import sys
from pathlib import Path

# Ensure backend is importable
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "backend"))

import pytest

from phishlens.catalog import CatalogStore, load_catalog
from phishlens.engine import RiskEngine
from phishlens.lookups import no_lookup
from phishlens.redirects import RedirectResolver

from helpers import FakeSession


@pytest.fixture
def snapshot():
    return load_catalog()


@pytest.fixture
def engine():
    """Offline engine: every hop answers 200 unless a test wires routes."""
    e = RiskEngine(
        catalogs=CatalogStore(load_catalog()),
        resolver=RedirectResolver(session=FakeSession({})),
        lookup=no_lookup,
        resolve_redirects=True,
        timeout=5,
    )
    yield e
    e.close()
