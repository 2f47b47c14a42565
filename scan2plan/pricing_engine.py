"""
Pricing Engine V2: rate-table-driven project quote.

Pure math, no I/O. Every dollar amount traces back to a rate-table row:

    f = QC + PM + COO + Registration (+ BIM manager on whales)
    a = tax + owner comp + sales/marketing + overhead + bad debt
    M = 1 / (1 - f - a - s)

    arch price/sqft = (UppT + base scan × scanner adj × modifier stack) × M
    add-on/sqft     = UppT × band markup × scope discount (grade exempt)
    cad/sqft        = UppT × package markup

Project total = Σ area totals + travel + expedited + floor adjustment,
then clamped up to the architecture or full-service minimum.

Input: ProjectInput + RateTables (or a pre-built RateBook)
Output: QuoteResult
"""

import logging
import math
from typing import List, Union

from .errors import ConfigurationError
from .rate_tables import RateBook, RateTables
from .schemas import AreaInput, AreaResult, ProjectInput, QuoteResult

logger = logging.getLogger(__name__)

HOURS_PER_SCAN_DAY = 8
ADDON_DISCIPLINES = ("structure", "mepf", "grade")

# Upper bound (inclusive) → band label
_BANDS = [
    (3000, "0-3k"),
    (5000, "3k-5k"),
    (10000, "5k-10k"),
    (20000, "10k-20k"),
    (30000, "20k-30k"),
    (40000, "30k-40k"),
    (50000, "40k-50k"),
    (75000, "50k-75k"),
    (100000, "75k-100k"),
]
_MEGA_BANDS = [
    (200000, "100k-200k"),
    (500000, "200k-500k"),
    (1000000, "500k-1M"),
    (2000000, "1M-2M"),
    (5000000, "2M-5M"),
]


# --- Bands ---

def get_band(sqft: float) -> str:
    """Square-footage band used by the X7 rate tables."""
    for upper, label in _BANDS:
        if sqft <= upper:
            return label
    return "100k+"


def get_mega_band(sqft: float) -> str:
    """Mega band used by the SLAM rate table."""
    for upper, label in _MEGA_BANDS:
        if sqft <= upper:
            return label
    return "5M+"


# --- Margin structure ---

def compute_partner_cost_f(constants, bim_manager_active: bool = False) -> float:
    f = constants.qc_pct + constants.pm_pct + constants.coo_pct + constants.registration_pct
    if bim_manager_active:
        f += constants.bim_manager_pct
    return f


def compute_above_the_line_a(constants) -> float:
    return (
        constants.tax_pct
        + constants.owner_comp_pct
        + constants.sales_marketing_pct
        + constants.overhead_pct
        + constants.bad_debt_pct
    )


def compute_multiplier_m(f: float, a: float, s: float) -> float:
    """
    Cost-to-price multiplier M = 1 / (1 - f - a - s).

    Raises ConfigurationError when the fractions leave no room for cost
    (denominator ≤ 0). There is no partial result in that case.
    """
    denominator = 1 - f - a - s
    if denominator <= 0:
        raise ConfigurationError(
            f"Invalid margin structure: 1 - f({f}) - a({a}) - s({s}) = {denominator:.4f} <= 0"
        )
    return 1 / denominator


# --- Tier / BIM manager ---

def resolve_pricing_tier(project: ProjectInput, book: RateBook) -> str:
    """
    X7 or SLAM.

    Explicit X7 is honored. Explicit SLAM is honored only if every area's
    building type is SLAM-eligible. AUTO picks SLAM at or above the whale
    threshold when every area is eligible.
    """
    all_eligible = all(book.is_slam_eligible(a.building_type) for a in project.areas)

    if project.pricing_tier == "X7":
        return "X7"
    if project.pricing_tier == "SLAM":
        return "SLAM" if all_eligible else "X7"

    total_sqft = sum(a.square_footage for a in project.areas)
    if total_sqft >= book.constants.tier_a_threshold_sqft and all_eligible:
        return "SLAM"
    return "X7"


def resolve_bim_manager(project: ProjectInput, tier: str) -> bool:
    if project.bim_manager == "YES":
        return True
    if project.bim_manager == "NO":
        return False
    return tier == "SLAM"


# --- Scan cost ---

def compute_modifier_stack(area: AreaInput, tier: str, book: RateBook, gaps: list = None) -> float:
    """era × occupied × power × hazard × density × scan-scope factor."""
    key = tier.lower()
    era = book.modifier(key, "era", area.era.lower(), gaps)
    occupied = book.modifier(key, "occupied", "yes" if area.occupied else "no", gaps)
    power = book.modifier(key, "power", "yes" if area.no_power_heat else "no", gaps)
    hazard = book.modifier(key, "hazard", "yes" if area.hazardous else "no", gaps)
    density = book.modifier(key, "density", str(area.room_density), gaps)

    c = book.constants
    if area.scope == "Int Only":
        scan_scope = c.scan_scope_int_only_pct
    elif area.scope == "Ext Only":
        scan_scope = c.scan_scope_ext_only_pct
    else:
        scan_scope = c.scan_scope_full_pct

    return era * occupied * power * hazard * density * scan_scope


def compute_x7_scan_cost(building_type: int, band: str, scanner: str, book: RateBook,
                         gaps: list = None) -> float:
    """Tech rate / (band baseline × building throughput ratio). 0 when throughput is 0."""
    c = book.constants
    rate = c.jr_tech_rate if scanner == "Jr" else c.sr_tech_rate
    baseline = book.scan_baseline(band, gaps)
    building = book.building_type(building_type, gaps)
    ratio = building.throughput_ratio if building else 0.0
    throughput = baseline * ratio
    if throughput <= 0:
        return 0.0
    return rate / throughput


def compute_slam_scan_cost(building_type: int, book: RateBook, gaps: list = None) -> float:
    """(scanner + assist rate) / (SLAM baseline × SLAM ratio). 0 for ineligible types."""
    building = book.building_type(building_type, gaps)
    if not building or not building.slam_eligible or not building.slam_throughput_ratio:
        return 0.0
    throughput = book.slam.slam_baseline_sqft_per_hour * building.slam_throughput_ratio
    if throughput <= 0:
        return 0.0
    return (book.slam.slam_scanner_rate + book.slam.slam_assist_rate) / throughput


# --- Architecture ---

def _uppt_scope_multiplier(scope: str, constants) -> float:
    if scope == "Int Only":
        return constants.uppt_scope_int_only_pct
    if scope == "Ext Only":
        return constants.uppt_scope_ext_only_pct
    return 1.0


def _arch_uppt(area: AreaInput, band: str, tier: str, book: RateBook, gaps: list) -> float:
    if tier == "SLAM":
        mega_band = get_mega_band(area.square_footage)

        def lookup(lod):
            return book.megaband_uppt(area.building_type, mega_band, lod, gaps)
    else:
        def lookup(lod):
            return book.arch_uppt(area.building_type, band, lod, gaps)

    c = book.constants
    if area.scope == "Mixed":
        interior = lookup(area.mixed_interior_lod or area.lod)
        exterior = lookup(area.mixed_exterior_lod or area.lod)
        return c.mixed_interior_weight * interior + c.mixed_exterior_weight * exterior

    return lookup(area.lod) * _uppt_scope_multiplier(area.scope, c)


def compute_arch_price(area: AreaInput, tier: str, M: float, modifier_stack: float,
                       book: RateBook, gaps: list = None) -> dict:
    """
    Architecture price for one area.

    Returns dict with uppt_per_sqft, scan_per_sqft (adjusted), vcogs_per_sqft,
    price_per_sqft, total.
    """
    band = get_band(area.square_footage)
    uppt = _arch_uppt(area, band, tier, book, gaps)

    if tier == "SLAM":
        base_scan = compute_slam_scan_cost(area.building_type, book, gaps)
    else:
        base_scan = compute_x7_scan_cost(
            area.building_type, band, area.scanner_assignment, book, gaps,
        )

    # Jr discount, X7 only
    c = book.constants
    scanner_adj = 1.0
    if tier == "X7" and area.scanner_assignment == "Jr" and c.sr_tech_rate:
        scanner_adj = c.jr_tech_rate / c.sr_tech_rate

    adjusted_scan = base_scan * scanner_adj * modifier_stack
    vcogs = uppt + adjusted_scan
    price = vcogs * M

    return {
        "uppt_per_sqft": uppt,
        "scan_per_sqft": adjusted_scan,
        "vcogs_per_sqft": vcogs,
        "price_per_sqft": price,
        "total": price * area.square_footage,
    }


# --- Add-ons / CAD ---

def compute_addon_per_sqft(discipline: str, area: AreaInput, book: RateBook,
                           gaps: list = None) -> float:
    band = get_band(area.square_footage)
    uppt = book.addon_uppt(discipline, area.building_type, band, area.lod, gaps)
    markup = book.addon_markup(band, discipline, gaps)

    scope_discount = 1.0
    if discipline != "grade":
        scope_discount = _uppt_scope_multiplier(area.scope, book.constants)

    return uppt * markup * scope_discount


def compute_cad_per_sqft(area: AreaInput, book: RateBook, gaps: list = None) -> float:
    if not area.cad_conversion:
        return 0.0
    band = get_band(area.square_footage)
    package = area.cad_package or "Basic"
    uppt = book.cad_uppt(band, package, gaps)
    return uppt * book.cad_markup(band, package, gaps)


def compute_area_result(area: AreaInput, tier: str, M: float, book: RateBook,
                        gaps: list = None) -> AreaResult:
    """Full pricing breakdown for a single area."""
    sqft = area.square_footage
    c = book.constants
    stack = compute_modifier_stack(area, tier, book, gaps)

    arch = compute_arch_price(area, tier, M, stack, book, gaps)

    per_sqft = {}
    for discipline in ADDON_DISCIPLINES:
        enabled = getattr(area, discipline)
        per_sqft[discipline] = compute_addon_per_sqft(discipline, area, book, gaps) if enabled else 0.0

    cad_per_sqft = compute_cad_per_sqft(area, book, gaps)
    matterport_total = c.matterport_per_sqft * sqft if area.matterport else 0.0
    georeferencing_total = c.georeferencing_fee if area.georeferencing else 0.0

    structure_total = per_sqft["structure"] * sqft
    mepf_total = per_sqft["mepf"] * sqft
    grade_total = per_sqft["grade"] * sqft
    cad_total = cad_per_sqft * sqft

    subtotal_bim = arch["total"] + structure_total + mepf_total + grade_total
    base_total = subtotal_bim + cad_total + matterport_total + georeferencing_total

    return AreaResult(
        arch_per_sqft=arch["price_per_sqft"],
        arch_total=arch["total"],
        structure_per_sqft=per_sqft["structure"],
        structure_total=structure_total,
        mepf_per_sqft=per_sqft["mepf"],
        mepf_total=mepf_total,
        grade_per_sqft=per_sqft["grade"],
        grade_total=grade_total,
        cad_per_sqft=cad_per_sqft,
        cad_total=cad_total,
        matterport_total=matterport_total,
        georeferencing_total=georeferencing_total,
        subtotal_bim=subtotal_bim,
        base_project_total=base_total,
        modifier_stack=stack,
        uppt_arch_per_sqft=arch["uppt_per_sqft"],
        scan_est_per_sqft=arch["scan_per_sqft"],
        adjusted_vcogs_per_sqft=arch["vcogs_per_sqft"],
    )


# --- Travel ---

def get_travel_mode(distance_mi: float, travel) -> str:
    """'local' (flat bracket), 'flight', or 'truck'."""
    if distance_mi <= travel.local_threshold_mi:
        return "local"
    if distance_mi > travel.airfare_threshold_mi:
        return "flight"
    return "truck"


def compute_travel_cost(travel, distance_mi: float, scan_days: int, num_techs: int) -> float:
    """
    Travel charge by mode.

    local:  flat small (≤ 1 day) or flat regional
    truck:  daily round-trip mileage, or one trip + hotel + per diem past
            the overnight threshold
    flight: airfare per tech + car rental (days + 1) + parking + hotel + per diem
    """
    if distance_mi <= 0:
        return 0.0

    mode = get_travel_mode(distance_mi, travel)

    if mode == "local":
        return travel.local_flat_small if scan_days <= 1 else travel.local_flat_regional

    if mode == "truck":
        if distance_mi > travel.overnight_threshold_mi:
            return (
                distance_mi * travel.mileage_rate
                + travel.hotel_cap * scan_days
                + travel.per_diem * scan_days
            )
        return distance_mi * travel.mileage_rate * scan_days

    return (
        travel.avg_airfare * num_techs
        + travel.car_rental * (scan_days + 1)  # +1 travel day
        + travel.airport_parking
        + travel.hotel_cap * scan_days
        + travel.per_diem * scan_days
    )


# --- Scan days / crew ---

def estimate_scan_days(areas: List[AreaInput], tier: str, book: RateBook, gaps: list = None) -> int:
    """max(1, ceil(Σ sqft / throughput / 8h)). Areas with no throughput add nothing."""
    total_hours = 0.0
    for area in areas:
        building = book.building_type(area.building_type, gaps)
        if tier == "SLAM":
            ratio = building.slam_throughput_ratio if building else None
            if ratio is None:
                ratio = 1.0
            throughput = book.slam.slam_baseline_sqft_per_hour * ratio
        else:
            baseline = book.scan_baseline(get_band(area.square_footage), gaps)
            throughput = baseline * (building.throughput_ratio if building else 0.0)
        if throughput > 0:
            total_hours += area.square_footage / throughput
    return max(1, math.ceil(total_hours / HOURS_PER_SCAN_DAY))


def estimate_num_techs(tier: str) -> int:
    return 2 if tier == "SLAM" else 1


# --- Floor / minimum ---

def compute_cost_floor(current_total: float, M: float, f: float, a: float, s: float) -> float:
    """
    cost basis = current_total / M
    floor      = cost basis / (1 - f - s) × 1 / (1 - a)
    0 when the margin structure leaves nothing to divide by.
    """
    net = 1 - f - s
    if net <= 0 or a >= 1 or M <= 0:
        return 0.0
    cost_basis = current_total / M
    return (cost_basis / net) * (1 / (1 - a))


def compute_floor_adjustment(current_total: float, M: float, f: float, a: float, s: float,
                             auto_floor_active: bool = True) -> float:
    """Explicit uplift to reach the cost floor; 0 when the total already clears it."""
    if not auto_floor_active:
        return 0.0
    cost_floor = compute_cost_floor(current_total, M, f, a, s)
    if current_total < cost_floor:
        return cost_floor - current_total
    return 0.0


def resolve_minimum(project: ProjectInput, constants) -> float:
    """Full-service minimum when any area carries structure/MEPF/grade, else arch minimum."""
    full_service = any(a.structure or a.mepf or a.grade for a in project.areas)
    return constants.full_service_minimum if full_service else constants.arch_minimum


# --- Orchestrator ---

def compute_project_quote_v2(project: ProjectInput,
                             rate_tables: Union[RateTables, RateBook]) -> QuoteResult:
    """
    Price a project end-to-end.

    Args:
        project: ProjectInput (validated upstream by pydantic)
        rate_tables: RateTables snapshot or a RateBook built from one

    Returns:
        QuoteResult with per-area breakdowns, margin structure and any
        rate-table gaps hit along the way.

    Raises:
        ConfigurationError: the margin structure leaves no room for cost.
    """
    book = rate_tables if isinstance(rate_tables, RateBook) else RateBook(rate_tables)
    c = book.constants
    gaps = []

    tier = resolve_pricing_tier(project, book)
    bim_manager = resolve_bim_manager(project, tier)

    f = compute_partner_cost_f(c, bim_manager)
    a = compute_above_the_line_a(c)
    s = c.savings_floor_pct
    M = compute_multiplier_m(f, a, s)

    area_results = [compute_area_result(area, tier, M, book, gaps) for area in project.areas]
    base_total = sum(r.base_project_total for r in area_results)

    scan_days = project.scan_days if project.scan_days is not None else \
        estimate_scan_days(project.areas, tier, book, gaps)
    num_techs = project.num_techs if project.num_techs is not None else estimate_num_techs(tier)

    if project.travel_override is not None:
        travel = project.travel_override
    else:
        travel = compute_travel_cost(book.travel, project.travel_distance_mi, scan_days, num_techs)

    expedited = base_total * c.expedited_pct if project.expedited else 0.0

    floor_adjustment = compute_floor_adjustment(
        base_total + travel + expedited, M, f, a, s, c.auto_floor_active,
    )
    total = base_total + travel + expedited + floor_adjustment

    minimum = resolve_minimum(project, c)
    minimum_applied = 0.0
    minimum_adjustment = 0.0
    if total < minimum:
        minimum_applied = minimum
        minimum_adjustment = minimum - total
        total = minimum

    if gaps:
        logger.warning("Quote priced with %d rate table gap(s)", len(gaps))
    logger.debug(
        "Quote: tier=%s M=%.4f base=%.2f travel=%.2f total=%.2f",
        tier, M, base_total, travel, total,
    )

    return QuoteResult(
        areas=area_results,
        base_project_total=base_total,
        travel_charge=travel,
        expedited_surcharge=expedited,
        floor_adjustment=floor_adjustment,
        total_quote=total,
        minimum_applied=minimum_applied,
        minimum_adjustment=minimum_adjustment,
        resolved_tier=tier,
        bim_manager_active=bim_manager,
        multiplier_m=M,
        partner_cost_f=f,
        above_the_line_a=a,
        savings_floor_s=s,
        scan_days=scan_days,
        num_techs=num_techs,
        data_gaps=list(dict.fromkeys(str(g) for g in gaps)),
    )
