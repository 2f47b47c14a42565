from pydantic import BaseModel, Field
from typing import Optional, List, Literal

Scope = Literal["Full", "Int Only", "Ext Only", "Mixed"]
IntegrityStatus = Literal["passed", "warning", "blocked"]
LineCategory = Literal["modeling", "travel", "addOn", "custom"]


# --- Scoping form (loaded by the caller, feeds the shell generator and prefill) ---

class DisciplineToggle(BaseModel):
    enabled: bool = False
    sqft: Optional[float] = None


class CustomLineItem(BaseModel):
    description: str
    amount: Optional[float] = None


class ScopeArea(BaseModel):
    id: str | int
    area_type: str
    area_name: Optional[str] = None
    square_footage: float = Field(ge=0)
    project_scope: str = "Full"
    lod: str = "300"
    mixed_interior_lod: Optional[str] = None
    mixed_exterior_lod: Optional[str] = None
    structural: Optional[DisciplineToggle] = None
    mepf: Optional[DisciplineToggle] = None
    cad_deliverable: str = "No"
    act: Optional[DisciplineToggle] = None
    below_floor: Optional[DisciplineToggle] = None
    site: Optional[DisciplineToggle] = None
    matterport: Optional[DisciplineToggle] = None
    custom_line_items: List[CustomLineItem] = []


class ScopingForm(BaseModel):
    # Project identity
    upid: str = ""
    project_name: str = ""
    project_address: str = ""
    client_company: str = ""
    number_of_floors: Optional[int] = None

    # Site conditions
    era: str = "Modern"
    room_density: Optional[int] = 2

    # CEO planning fields
    est_scan_days: Optional[int] = None
    techs_planned: Optional[int] = None
    pricing_tier: Optional[str] = None

    # Deliverables
    lod: Optional[str] = None
    bim_deliverable: str = ""
    bim_version: Optional[str] = None
    cad_deliverable: Optional[str] = None
    georeferencing: bool = False

    # Landscape
    landscape_modeling: Optional[str] = None
    landscape_acres: Optional[float | str] = None
    landscape_terrain: Optional[str] = None

    # Scan & registration only / timeline
    scan_reg_only: Optional[str] = None
    expedited: bool = False

    # Travel
    dispatch_location: str = ""
    one_way_miles: float = 0
    travel_mode: str = ""
    custom_travel_cost: Optional[float] = None
    mileage_rate: Optional[float] = None
    scan_day_fee_override: Optional[float] = None

    areas: List[ScopeArea] = []


# --- Line items ---

class LineItemShell(BaseModel):
    id: str
    area_id: Optional[str] = None  # None for project-level items
    area_name: str
    category: LineCategory
    discipline: Optional[str] = None
    description: str
    building_type: str = ""
    square_feet: Optional[float] = None
    lod: Optional[str] = None
    scope: Optional[str] = None

    # Filled in by pricing (manual or engine)
    upteam_cost: Optional[float] = None
    client_price: Optional[float] = None


class QuoteTotals(BaseModel):
    total_client_price: float
    total_upteam_cost: float
    gross_margin: float
    gross_margin_percent: float
    integrity_status: IntegrityStatus
    integrity_flags: List[str] = []


# --- Pricing engine input ---

class AreaInput(BaseModel):
    building_type: int  # building type number, 1-13 in the standard tables
    square_footage: float = Field(ge=0)
    lod: str = "300"
    scope: Scope = "Full"
    mixed_interior_lod: Optional[str] = None
    mixed_exterior_lod: Optional[str] = None
    scanner_assignment: Literal["Sr", "Jr"] = "Sr"

    # Scan modifiers
    era: Literal["Modern", "Historic"] = "Modern"
    room_density: int = Field(default=2, ge=0, le=4)
    occupied: bool = False
    no_power_heat: bool = False
    hazardous: bool = False

    # Disciplines
    structure: bool = False
    mepf: bool = False
    grade: bool = False
    cad_conversion: bool = False
    cad_package: Literal["Basic", "A+S", "Full"] = "Basic"
    matterport: bool = False
    georeferencing: bool = False


class ProjectInput(BaseModel):
    areas: List[AreaInput]
    bim_manager: Literal["YES", "NO", "AUTO"] = "AUTO"
    pricing_tier: Literal["X7", "SLAM", "AUTO"] = "AUTO"
    expedited: bool = False
    travel_distance_mi: float = 0
    num_techs: Optional[int] = Field(default=None, ge=1)
    scan_days: Optional[int] = Field(default=None, ge=0)
    travel_override: Optional[float] = None


# --- Pricing engine output ---

class AreaResult(BaseModel):
    arch_per_sqft: float
    arch_total: float
    structure_per_sqft: float
    structure_total: float
    mepf_per_sqft: float
    mepf_total: float
    grade_per_sqft: float
    grade_total: float
    cad_per_sqft: float
    cad_total: float
    matterport_total: float
    georeferencing_total: float
    subtotal_bim: float
    base_project_total: float
    modifier_stack: float
    uppt_arch_per_sqft: float      # UppT before M
    scan_est_per_sqft: float       # adjusted scan cost before M
    adjusted_vcogs_per_sqft: float

    class Config:
        frozen = True


class QuoteResult(BaseModel):
    areas: List[AreaResult]
    base_project_total: float
    travel_charge: float
    expedited_surcharge: float
    floor_adjustment: float
    total_quote: float
    minimum_applied: float     # the minimum enforced, 0 when not triggered
    minimum_adjustment: float  # amount added by the clamp
    resolved_tier: Literal["X7", "SLAM"]
    bim_manager_active: bool
    multiplier_m: float
    partner_cost_f: float
    above_the_line_a: float
    savings_floor_s: float
    scan_days: int
    num_techs: int
    data_gaps: List[str] = []

    class Config:
        frozen = True
