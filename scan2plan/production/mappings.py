"""
Prefill mapping declarations: 49 field mappings across 5 stage transitions.

Target fields are the stage-data keys persisted per stage, so they keep the
stored camelCase names. Source ids address the scoping form (SF-xx) or an
earlier stage (FC/RG/BQ/PD-xx). "A+B" reads both, "A|B" takes the first
non-null.

Mapping types:
    direct       copy the resolved source value
    chain        same, falling back to earlier stage data for the field
    transform    run a registered transform on the source value
    calculation  run a registered transform that derives a new value
    static       constant default from a registered transform
    manual       never prefilled, operator enters it
    blocked      never prefilled, upstream field not built yet
"""

from collections import Counter
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel

from ..errors import ConfigurationError
from .stages import STAGES, transition_key
from .transforms import has_transform

MappingType = Literal["direct", "chain", "transform", "calculation", "manual", "blocked", "static"]

SCH_FC = "scheduling_to_field_capture"
FC_RG = "field_capture_to_registration"
RG_BQ = "registration_to_bim_qc"
BQ_PD = "bim_qc_to_pc_delivery"
PD_DR = "pc_delivery_to_final_delivery"


class PrefillMapping(BaseModel):
    target_id: str
    target_field: str
    source_id: str
    transition: str
    type: MappingType
    description: str
    transform_key: Optional[str] = None

    class Config:
        frozen = True


def _m(target_id, target_field, source_id, transition, type, description, transform_key=None):
    return PrefillMapping(
        target_id=target_id,
        target_field=target_field,
        source_id=source_id,
        transition=transition,
        type=type,
        description=description,
        transform_key=transform_key,
    )


PREFILL_MAPPINGS: List[PrefillMapping] = [
    # --- Scheduling → Field Capture (15) ---
    _m("FC-01", "projectCode", "SF-54", SCH_FC, "direct", "Project Code (UPID)"),
    _m("FC-02", "address", "SF-01", SCH_FC, "direct", "Project Address"),
    _m("FC-06", "estSF", "SF-03", SCH_FC, "direct", "Estimated Square Footage"),
    _m("FC-07", "scope", "SF-04", SCH_FC, "transform",
       "Scope (dropdown to checkbox array)", "scopeToCheckboxArray"),
    _m("FC-08", "floors", "SF-31", SCH_FC, "direct", "Number of Floors"),
    _m("FC-09", "estScans", "SF-03", SCH_FC, "calculation",
       "Est. Scans (ScansPerKSF x SF/1000)", "calcEstScans"),
    _m("FC-18", "baseLocation", "SF-32", SCH_FC, "direct", "Base / Dispatch Location"),
    _m("FC-22", "era", "SF-41", SCH_FC, "direct", "Era (Modern/Historic)"),
    _m("FC-23", "density", "SF-42", SCH_FC, "direct", "Room Density (0-4)"),
    _m("FC-24", "buildingType", "SF-02", SCH_FC, "direct", "Building Type"),
    _m("FC-31", "scanDays", "SF-48", SCH_FC, "direct", "Est. Scan Days (CEO)"),
    _m("FC-32", "numTechs", "SF-49", SCH_FC, "direct", "# Techs Planned (CEO)"),
    _m("FC-33", "pricingTier", "SF-45", SCH_FC, "direct", "Pricing Tier (CEO)"),
    _m("FC-35", "actPresent", "SF-24", SCH_FC, "transform",
       "ACT Present (Y/N+sqft to Y/N)", "toggleSqftToBoolean"),
    _m("FC-36", "belowFloor", "SF-44", SCH_FC, "transform",
       "Below Floor (Y/N+sqft to Y/N)", "toggleSqftToBoolean"),

    # --- Field Capture → Registration (12) ---
    _m("RG-01", "projectCode", "SF-54", FC_RG, "chain", "Project Code (chain from scoping)"),
    _m("RG-02", "projectName", "SF-53", FC_RG, "chain", "Project Name (chain from scoping)"),
    _m("RG-03", "estSF", "SF-03", FC_RG, "chain", "Square Footage (chain)"),
    _m("RG-05", "fieldTech", "FC-04", FC_RG, "direct", "Field Tech (from FC)"),
    _m("RG-06", "fieldDate", "FC-03", FC_RG, "direct", "Field Date (from FC)"),
    _m("RG-08", "cloudLoA", "", FC_RG, "static", "Cloud LoA (default LoA-40)", "staticLoA40"),
    _m("RG-09", "modelLoD", "SF-05", FC_RG, "direct", "Model LoD"),
    _m("RG-10", "platform", "SF-11", FC_RG, "direct", "BIM Platform (Revit/ArchiCAD/etc)"),
    _m("RG-13", "geoRefTier", "SF-09", FC_RG, "transform",
       "GeoRef Tier (georef toggle to tier)", "georefToTier"),
    _m("RG-04", "scanCount", "", FC_RG, "manual", "Scan Count (counted in studio)"),
    _m("RG-07", "software", "", FC_RG, "manual", "Registration Software (operator choice)"),
    _m("", "fieldRMS", "FC-13", FC_RG, "direct", "Field RMS (carried for verification)"),

    # --- Registration → BIM QC (7) ---
    _m("BQ-01", "projectName", "SF-53", RG_BQ, "chain", "Project Name (chain)"),
    _m("BQ-15", "projectCode", "SF-54", RG_BQ, "chain", "Project Code (chain)"),
    _m("BQ-03", "estSF", "SF-03", RG_BQ, "chain", "Estimated SF (chain)"),
    _m("BQ-11", "georeferenced", "RG-13", RG_BQ, "transform",
       "Georeferenced (Tier 20/60 to Y, Tier 0 to N)", "geoRefTierToBoolean"),
    _m("BQ-12", "modelLoD", "SF-05", RG_BQ, "chain", "Model LoD (chain)"),
    _m("BQ-13", "revitVersion", "SF-28", RG_BQ, "direct", "Revit Version (if populated)"),
    _m("BQ-14", "scopeDiscipline", "SF-07+SF-08", RG_BQ, "transform",
       "Scope Disciplines (Y/N to checkbox array)", "disciplinesToArray"),

    # --- BIM QC → PC Delivery (8) ---
    _m("PD-01", "projectCode", "SF-54", BQ_PD, "chain", "Project Code (chain)"),
    _m("PD-02", "client", "SF-37", BQ_PD, "chain", "Client Company (chain)"),
    _m("PD-03", "projectName", "SF-53", BQ_PD, "chain", "Project Name (chain)"),
    _m("PD-04", "deliverySF", "BQ-04|SF-03", BQ_PD, "calculation",
       "SF (prefer actual BQ-04, fallback SF-03)", "preferActualSF"),
    _m("PD-09", "projectTier", "SF-03", BQ_PD, "calculation",
       "Project Tier (<10K Minnow, 10-50K Dolphin, 50K+ Whale)", "calcProjectTier"),
    _m("PD-10", "geoRefTier", "RG-13", BQ_PD, "direct", "GeoRef Tier (from Registration)"),
    _m("PD-12", "platform", "RG-10", BQ_PD, "direct", "BIM Platform (from Registration)"),
    _m("PD-11", "securityTier", "SF-60", BQ_PD, "blocked", "Security Tier (SF-60 not built yet)"),

    # --- PC Delivery → Final Delivery (7) ---
    _m("DR-01", "projectCode", "PD-01", PD_DR, "chain", "Project Code (chain)"),
    _m("DR-02", "client", "PD-02", PD_DR, "chain", "Client (chain)"),
    _m("DR-03", "projectName", "PD-03", PD_DR, "chain", "Project Name (chain)"),
    _m("DR-04", "deliverySF", "BQ-04|SF-03", PD_DR, "calculation",
       "SF (prefer actual BQ-04)", "preferActualSF"),
    _m("DR-09", "scopeTier", "SF-03", PD_DR, "calculation",
       "Scope Tier (same calc as PD-09)", "calcProjectTier"),
    _m("DR-10", "disciplines", "BQ-14", PD_DR, "chain", "Disciplines (chain from BQ)"),
    _m("DR-11", "formats", "SF-10+SF-11", PD_DR, "transform",
       "Formats (CAD+BIM to format list)", "cadBimToFormats"),
]


def _index_by_transition(mappings: List[PrefillMapping]) -> Dict[str, List[PrefillMapping]]:
    """Group mappings by transition, checking every transform key and transition name."""
    valid_transitions = {transition_key(a, b) for a, b in zip(STAGES, STAGES[1:])}
    index: Dict[str, List[PrefillMapping]] = {}
    for m in mappings:
        if m.transition not in valid_transitions:
            raise ConfigurationError(f"Mapping {m.target_field}: unknown transition {m.transition}")
        if m.transform_key and not has_transform(m.transform_key):
            raise ConfigurationError(
                f"Mapping {m.target_id or m.target_field}: no transform registered "
                f"for key {m.transform_key}"
            )
        index.setdefault(m.transition, []).append(m)
    return index


MAPPINGS_BY_TRANSITION = _index_by_transition(PREFILL_MAPPINGS)


def count_by_type(mappings: List[PrefillMapping]) -> Dict[str, int]:
    return dict(Counter(m.type for m in mappings))
