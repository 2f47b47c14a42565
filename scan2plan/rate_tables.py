"""
Rate Table Store: read-only pricing snapshot + indexed lookups.

The snapshot is exported wholesale from the configuration store (one JSON
document, see scan2plan/data/rate_tables.json). RateTables validates its shape;
RateBook indexes every table by its composite key once so the engine never
scans a list per lookup.

Lookup misses never raise. Each miss returns a documented default:
    additive rates (UppT)        → 0.0
    multiplicative factors       → 1.0
    scan throughput baseline     → 1000 sqft/hr
    building type                → None (scan cost 0, not SLAM-eligible)
and is recorded as a DataGapWarning so incomplete seeding stays visible.
"""

import json
import logging
from typing import Optional, List

from pydantic import BaseModel, ValidationError

from .config import settings
from .errors import ConfigurationError, DataGapWarning

logger = logging.getLogger(__name__)

DEFAULT_SCAN_BASELINE = 1000.0


# --- Single-row sections ---

class PricingConstants(BaseModel):
    # Above-the-line (a)
    tax_pct: float
    owner_comp_pct: float
    sales_marketing_pct: float
    overhead_pct: float
    bad_debt_pct: float

    # Partner costs (f)
    qc_pct: float
    pm_pct: float
    coo_pct: float
    registration_pct: float

    # Savings floor (s)
    savings_floor_pct: float

    # Scanner rates, $/hr
    sr_tech_rate: float
    jr_tech_rate: float

    # Whale / BIM manager
    bim_manager_pct: float = 0.0
    tier_a_threshold_sqft: float

    # Minimums
    arch_minimum: float
    full_service_minimum: float

    auto_floor_active: bool = True

    # Extras
    expedited_pct: float = 0.20
    matterport_per_sqft: float = 0.10
    georeferencing_fee: float = 0.0

    # Scope weights and discounts
    mixed_interior_weight: float = 0.65
    mixed_exterior_weight: float = 0.35
    scan_scope_full_pct: float = 1.0
    scan_scope_int_only_pct: float = 1.0
    scan_scope_ext_only_pct: float = 1.0
    uppt_scope_int_only_pct: float = 1.0
    uppt_scope_ext_only_pct: float = 1.0


class TravelParams(BaseModel):
    mileage_rate: float
    local_threshold_mi: float = 20
    overnight_threshold_mi: float
    airfare_threshold_mi: float
    local_flat_small: float
    local_flat_regional: float
    hotel_cap: float
    per_diem: float
    avg_airfare: float
    car_rental: float
    airport_parking: float


class SlamConfig(BaseModel):
    slam_scanner_rate: float
    slam_assist_rate: float
    slam_baseline_sqft_per_hour: float


# --- Row tables ---

class ScanBaseline(BaseModel):
    band: str
    sqft_per_hour: float


class BuildingType(BaseModel):
    type_number: int
    name: str
    throughput_ratio: float
    slam_eligible: bool = False
    slam_throughput_ratio: Optional[float] = None


class AddonMarkup(BaseModel):
    band: str
    structure_markup: float
    mepf_markup: float
    grade_markup: float


class CadMarkup(BaseModel):
    band: str
    basic_markup: float
    as_plus_markup: float
    full_markup: float


class ScanModifier(BaseModel):
    tier: str       # "x7" | "slam"
    category: str   # "era" | "occupied" | "power" | "hazard" | "density"
    code: str
    label: str = ""
    multiplier: float
    is_default: bool = False


class ArchRate(BaseModel):
    building_type: int
    band: str
    lod: str
    uppt_per_sqft: float
    scan_per_sqft: Optional[float] = None


class AddonRate(BaseModel):
    discipline: str  # "structure" | "mepf" | "grade"
    building_type: int
    band: str
    lod: str
    uppt_per_sqft: float


class CadRate(BaseModel):
    band: str
    basic_uppt: float
    as_plus_uppt: float
    full_uppt: float


class MegabandRate(BaseModel):
    building_type: int
    mega_band: str
    lod: str
    uppt_per_sqft: float


class RateTables(BaseModel):
    constants: PricingConstants
    travel_params: TravelParams
    slam_config: SlamConfig
    scan_baselines: List[ScanBaseline] = []
    building_types: List[BuildingType] = []
    addon_markups: List[AddonMarkup] = []
    cad_markups: List[CadMarkup] = []
    scan_modifiers: List[ScanModifier] = []
    arch_rates: List[ArchRate] = []
    addon_rates: List[AddonRate] = []
    cad_rates: List[CadRate] = []
    megaband_rates: List[MegabandRate] = []

    class Config:
        frozen = True


def load_rate_tables(path: str = None) -> RateTables:
    """
    Load and validate a rate table snapshot from JSON.

    Raises ConfigurationError when the file is missing, is not JSON, or lacks
    a required single-row section (constants, travel_params, slam_config).
    """
    path = path or settings.RATE_TABLES_PATH
    try:
        with open(path) as f:
            raw = json.load(f)
    except FileNotFoundError:
        raise ConfigurationError(f"Rate tables not found at {path}")
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Rate tables at {path} are not valid JSON: {e}")

    try:
        tables = RateTables.model_validate(raw)
    except ValidationError as e:
        raise ConfigurationError(f"Rate tables at {path} failed validation: {e}")

    logger.info(
        "Loaded rate tables from %s (%d building types, %d arch rates, %d add-on rates)",
        path, len(tables.building_types), len(tables.arch_rates), len(tables.addon_rates),
    )
    return tables


_CAD_PACKAGE_FIELDS = {
    "Basic": ("basic_uppt", "basic_markup"),
    "A+S": ("as_plus_uppt", "as_plus_markup"),
    "Full": ("full_uppt", "full_markup"),
}


class RateBook:
    """
    Composite-key index over a RateTables snapshot.

    Every lookup accepts an optional `gaps` list; misses are appended to it
    as DataGapWarning instances and logged.
    """

    def __init__(self, tables: RateTables):
        self.tables = tables
        self.constants = tables.constants
        self.travel = tables.travel_params
        self.slam = tables.slam_config

        # First row wins on duplicate keys
        self._baselines = {}
        for row in tables.scan_baselines:
            self._baselines.setdefault(row.band, row)
        self._building_types = {}
        for row in tables.building_types:
            self._building_types.setdefault(row.type_number, row)
        self._addon_markups = {}
        for row in tables.addon_markups:
            self._addon_markups.setdefault(row.band, row)
        self._cad_markups = {}
        for row in tables.cad_markups:
            self._cad_markups.setdefault(row.band, row)
        self._cad_rates = {}
        for row in tables.cad_rates:
            self._cad_rates.setdefault(row.band, row)

        self._modifiers = {}
        self._modifier_defaults = {}
        for row in tables.scan_modifiers:
            self._modifiers.setdefault((row.tier, row.category, row.code), row)
            if row.is_default:
                self._modifier_defaults.setdefault((row.tier, row.category), row)

        self._arch = {}
        for row in tables.arch_rates:
            self._arch.setdefault((row.building_type, row.band, row.lod), row)
        self._addon = {}
        for row in tables.addon_rates:
            self._addon.setdefault((row.discipline, row.building_type, row.band, row.lod), row)
        self._megaband = {}
        for row in tables.megaband_rates:
            self._megaband.setdefault((row.building_type, row.mega_band, row.lod), row)

    # --- Miss handling ---

    def _miss(self, gaps, table, key, default):
        gap = DataGapWarning(table, key, default)
        logger.warning("Rate table gap: %s", gap)
        if gaps is not None:
            gaps.append(gap)
        return default

    # --- Lookups ---

    def building_type(self, type_number: int, gaps: list = None) -> Optional[BuildingType]:
        row = self._building_types.get(type_number)
        if row is None:
            return self._miss(gaps, "building_types", type_number, None)
        return row

    def is_slam_eligible(self, type_number: int) -> bool:
        """Eligibility check used by tier resolution. Unknown types are ineligible."""
        row = self._building_types.get(type_number)
        return bool(row and row.slam_eligible)

    def scan_baseline(self, band: str, gaps: list = None) -> float:
        row = self._baselines.get(band)
        if row is None:
            return self._miss(gaps, "scan_baselines", band, DEFAULT_SCAN_BASELINE)
        return row.sqft_per_hour

    def arch_uppt(self, type_number: int, band: str, lod: str, gaps: list = None) -> float:
        row = self._arch.get((type_number, band, lod))
        if row is None:
            return self._miss(gaps, "arch_rates", (type_number, band, lod), 0.0)
        return row.uppt_per_sqft

    def megaband_uppt(self, type_number: int, mega_band: str, lod: str, gaps: list = None) -> float:
        row = self._megaband.get((type_number, mega_band, lod))
        if row is None:
            return self._miss(gaps, "megaband_rates", (type_number, mega_band, lod), 0.0)
        return row.uppt_per_sqft

    def addon_uppt(self, discipline: str, type_number: int, band: str, lod: str,
                   gaps: list = None) -> float:
        row = self._addon.get((discipline, type_number, band, lod))
        if row is None:
            return self._miss(gaps, "addon_rates", (discipline, type_number, band, lod), 0.0)
        return row.uppt_per_sqft

    def addon_markup(self, band: str, discipline: str, gaps: list = None) -> float:
        row = self._addon_markups.get(band)
        if row is None:
            return self._miss(gaps, "addon_markups", band, 1.0)
        return getattr(row, f"{discipline}_markup", 1.0)

    def cad_uppt(self, band: str, package: str, gaps: list = None) -> float:
        row = self._cad_rates.get(band)
        if row is None:
            return self._miss(gaps, "cad_rates", band, 0.0)
        fields = _CAD_PACKAGE_FIELDS.get(package)
        return getattr(row, fields[0]) if fields else 0.0

    def cad_markup(self, band: str, package: str, gaps: list = None) -> float:
        row = self._cad_markups.get(band)
        if row is None:
            return self._miss(gaps, "cad_markups", band, 1.0)
        fields = _CAD_PACKAGE_FIELDS.get(package)
        return getattr(row, fields[1]) if fields else 1.0

    def modifier(self, tier: str, category: str, code: str, gaps: list = None) -> float:
        """Exact (tier, category, code) row, else the tier+category default row, else 1.0."""
        row = self._modifiers.get((tier, category, code))
        if row is not None:
            return row.multiplier
        default = self._modifier_defaults.get((tier, category))
        if default is not None:
            return default.multiplier
        return self._miss(gaps, "scan_modifiers", (tier, category, code), 1.0)
