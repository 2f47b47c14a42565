"""
Rate table loading and RateBook lookups.

Tests:
1. Seed snapshot loads
2. Missing file → ConfigurationError
3. Invalid JSON → ConfigurationError
4. Missing constants section → ConfigurationError
5. Empty row tables are allowed
6-9. Lookup hits
10-15. Lookup misses fall back to defaults and record a gap
16. Duplicate keys: first row wins
17. Default path loads the packaged seed
"""

import json

import pytest

from scan2plan.errors import ConfigurationError, DataGapWarning
from scan2plan.rate_tables import DEFAULT_SCAN_BASELINE, RateBook, load_rate_tables

from conftest import SEED_PATH


def _seed_json():
    with open(SEED_PATH) as f:
        return json.load(f)


def _write(tmp_path, data, name="rates.json"):
    path = tmp_path / name
    path.write_text(data if isinstance(data, str) else json.dumps(data))
    return str(path)


# ============================================================
# 1-5. Loading
# ============================================================

def test_seed_snapshot_loads(rate_tables):
    assert len(rate_tables.building_types) == 13
    assert rate_tables.constants.arch_minimum == 5000
    assert rate_tables.travel_params.mileage_rate == 4
    assert rate_tables.slam_config.slam_baseline_sqft_per_hour == 25000


def test_missing_file_raises(tmp_path):
    with pytest.raises(ConfigurationError, match="not found"):
        load_rate_tables(str(tmp_path / "nope.json"))


def test_invalid_json_raises(tmp_path):
    path = _write(tmp_path, "{not json")
    with pytest.raises(ConfigurationError, match="not valid JSON"):
        load_rate_tables(path)


def test_missing_constants_raises(tmp_path):
    data = _seed_json()
    del data["constants"]
    with pytest.raises(ConfigurationError, match="failed validation"):
        load_rate_tables(_write(tmp_path, data))


def test_empty_row_tables_allowed(tmp_path):
    data = _seed_json()
    data = {k: data[k] for k in ("constants", "travel_params", "slam_config")}
    tables = load_rate_tables(_write(tmp_path, data))
    assert tables.arch_rates == []
    assert tables.scan_modifiers == []


# ============================================================
# 6-9. Lookup hits
# ============================================================

def test_building_type_hit(rate_book):
    row = rate_book.building_type(11)
    assert row.name == "Warehouse/Storage"
    assert row.throughput_ratio == 6.0
    assert rate_book.is_slam_eligible(11) is True
    assert rate_book.is_slam_eligible(1) is False


def test_arch_and_addon_hits(rate_book):
    assert rate_book.arch_uppt(1, "0-3k", "300") == 0.60
    assert rate_book.addon_uppt("structure", 1, "0-3k", "300") == 0.15
    assert rate_book.addon_markup("20k-30k", "structure") == 1.25


def test_cad_hits(rate_book):
    assert rate_book.cad_uppt("0-3k", "A+S") == 0.08
    assert rate_book.cad_markup("0-3k", "A+S") == 1.5


def test_modifier_exact_hit(rate_book):
    assert rate_book.modifier("x7", "era", "historic") == 1.2
    assert rate_book.modifier("slam", "hazard", "yes") == 2.0


# ============================================================
# 10-15. Lookup misses
# ============================================================

def test_unknown_building_type(rate_book):
    gaps = []
    assert rate_book.building_type(99, gaps) is None
    assert rate_book.is_slam_eligible(99) is False
    assert len(gaps) == 1
    assert isinstance(gaps[0], DataGapWarning)
    assert gaps[0].table == "building_types"
    assert gaps[0].key == 99


def test_missing_scan_baseline_defaults(rate_tables):
    book = RateBook(rate_tables.model_copy(update={"scan_baselines": []}))
    gaps = []
    assert book.scan_baseline("0-3k", gaps) == DEFAULT_SCAN_BASELINE
    assert gaps[0].default == DEFAULT_SCAN_BASELINE


def test_missing_arch_rate_is_zero(rate_book):
    gaps = []
    assert rate_book.arch_uppt(1, "100k+", "300", gaps) == 0.0
    assert gaps[0].table == "arch_rates"
    assert gaps[0].key == (1, "100k+", "300")


def test_missing_markups_are_one(rate_tables):
    book = RateBook(rate_tables.model_copy(update={"addon_markups": [], "cad_markups": []}))
    gaps = []
    assert book.addon_markup("0-3k", "mepf", gaps) == 1.0
    assert book.cad_markup("0-3k", "Full", gaps) == 1.0
    assert [g.table for g in gaps] == ["addon_markups", "cad_markups"]


def test_modifier_falls_back_to_default_row(rate_book):
    gaps = []
    # No x7 density row for code 9; the default row is Standard (1.0)
    assert rate_book.modifier("x7", "density", "9", gaps) == 1.0
    assert gaps == []


def test_lookup_miss_without_gap_list(rate_book):
    assert rate_book.megaband_uppt(1, "100k-200k", "300") == 0.0


def test_gap_message_names_table_and_key(rate_book):
    gaps = []
    rate_book.cad_uppt("3k-5k", "Basic", gaps)
    assert str(gaps[0]) == "cad_rates: no row for '3k-5k', using default 0.0"


# ============================================================
# 16. Duplicate keys
# ============================================================

def test_duplicate_rows_first_wins(tmp_path):
    data = _seed_json()
    data["arch_rates"].append(
        {"building_type": 1, "band": "0-3k", "lod": "300", "uppt_per_sqft": 9.99}
    )
    book = RateBook(load_rate_tables(_write(tmp_path, data)))
    assert book.arch_uppt(1, "0-3k", "300") == 0.60


def test_default_path_loads_packaged_seed():
    tables = load_rate_tables()
    assert len(tables.building_types) == 13
