"""
Shared test fixtures: seeded rate tables, rate book, scoping form builders.
"""

import os

import pytest

from scan2plan.rate_tables import RateBook, load_rate_tables
from scan2plan.schemas import DisciplineToggle, ScopeArea, ScopingForm

SEED_PATH = os.path.join(os.path.dirname(__file__), "..", "scan2plan", "data", "rate_tables.json")


@pytest.fixture(scope="session")
def rate_tables():
    """The seeded rate table snapshot shipped in data/."""
    return load_rate_tables(SEED_PATH)


@pytest.fixture
def rate_book(rate_tables):
    return RateBook(rate_tables)


@pytest.fixture
def tables_with(rate_tables):
    """Build a snapshot with some constants overridden."""
    def _build(**constants):
        updated = rate_tables.constants.model_copy(update=constants)
        return rate_tables.model_copy(update={"constants": updated})
    return _build


def sample_area(**overrides) -> ScopeArea:
    """25,000 sqft Commercial area with structural, MEPF and ACT on."""
    data = {
        "id": 1,
        "area_type": "Commercial",
        "square_footage": 25000,
        "project_scope": "Full",
        "lod": "300",
        "cad_deliverable": "AutoCAD",
        "structural": DisciplineToggle(enabled=True, sqft=25000),
        "mepf": DisciplineToggle(enabled=True, sqft=25000),
        "act": DisciplineToggle(enabled=True, sqft=15000),
        "below_floor": DisciplineToggle(enabled=False),
    }
    data.update(overrides)
    return ScopeArea(**data)


def sample_form(**overrides) -> ScopingForm:
    """Scoping form for project S2P-42-2026 with one sample_area()."""
    data = {
        "upid": "S2P-42-2026",
        "project_name": "Test Building",
        "project_address": "123 Main St, Troy NY",
        "client_company": "Acme Corp",
        "number_of_floors": 3,
        "dispatch_location": "Troy NY",
        "era": "Modern",
        "room_density": 2,
        "est_scan_days": 4,
        "techs_planned": 2,
        "pricing_tier": "Standard",
        "lod": "300",
        "bim_deliverable": "Revit",
        "bim_version": "2024",
        "georeferencing": True,
        "cad_deliverable": "AutoCAD",
        "one_way_miles": 45,
        "travel_mode": "Truck",
        "areas": [sample_area()],
    }
    data.update(overrides)
    return ScopingForm(**data)


@pytest.fixture
def form():
    return sample_form()
